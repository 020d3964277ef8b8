"""
Indicator Catalogue Schemas.

Three-level tree: Category → SubCategory → Indicator. The catalogue is
owned by the catalogue-management side of the dashboard; the scoring and
alerting core only reads it.

Field names are snake_case; the dashboard's camelCase JSON keys
(``calculationCase``, ``riskInterpretation``, ...) are accepted as aliases.
"""

import json
from enum import StrEnum
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from riskboard.exceptions import CatalogueError


class Priority(StrEnum):
    P0 = "P0"       # Critical indicator
    P1 = "P1"       # Important indicator
    P2 = "P2"       # Supporting indicator


class IndicatorStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class _CatalogueModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Indicator(_CatalogueModel):
    """
    A single measurable risk metric.

    The business texts (definition, formula, threshold, ...) are opaque to
    the engine and never evaluated.
    """
    id: str
    name: str
    definition: str = ""
    purpose: str = ""
    formula: str = ""
    threshold: str = ""
    calculation_case: str = ""
    risk_interpretation: str = ""
    # Unrecognised classes are kept as plain strings and scored with defaults
    priority: Union[Priority, str] = Priority.P2
    status: IndicatorStatus = IndicatorStatus.ACTIVE


class SubCategory(_CatalogueModel):
    id: str
    name: str
    indicators: list[Indicator] = Field(default_factory=list)


class Category(_CatalogueModel):
    id: str
    name: str
    description: str = ""
    icon: str = ""
    color: str = ""
    subcategories: list[SubCategory] = Field(default_factory=list)

    def indicators(self) -> list[Indicator]:
        """All indicators of this category, in subcategory order."""
        return [ind for sub in self.subcategories for ind in sub.indicators]


class Catalogue(_CatalogueModel):
    """An ordered snapshot of the full indicator tree."""
    categories: list[Category] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_indicator_ids(self) -> "Catalogue":
        seen: set[str] = set()
        for category in self.categories:
            for indicator in category.indicators():
                if indicator.id in seen:
                    raise ValueError(f"Duplicate indicator id: {indicator.id}")
                seen.add(indicator.id)
        return self

    def all_indicators(self) -> list[Indicator]:
        return [ind for cat in self.categories for ind in cat.indicators()]

    def category_ids(self) -> list[str]:
        return [cat.id for cat in self.categories]


def parse_catalogue(raw: Union[str, bytes, list, dict]) -> Catalogue:
    """
    Parse a catalogue from JSON text or decoded data.

    Accepts either ``{"categories": [...]}`` or the bare category list the
    dashboard exports.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CatalogueError(f"Catalogue is not valid JSON: {e}") from e
    if isinstance(raw, list):
        raw = {"categories": raw}
    try:
        return Catalogue.model_validate(raw)
    except ValidationError as e:
        raise CatalogueError(f"Invalid catalogue: {e}") from e


def load_catalogue(path: Union[str, Path]) -> Catalogue:
    """Load a catalogue JSON file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogueError(f"Cannot read catalogue {path}: {e}") from e
    return parse_catalogue(text)

