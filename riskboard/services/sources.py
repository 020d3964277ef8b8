"""
Catalogue sources for the monitor.

The catalogue is owned elsewhere; the monitor asks a provider for the
current snapshot at the start of every pass.
"""

from pathlib import Path
from typing import Optional, Protocol, Union

import structlog

from riskboard.schemas.catalogue import Catalogue, load_catalogue

logger = structlog.get_logger(__name__)


class CatalogueProvider(Protocol):
    def load_catalogue(self) -> Catalogue:
        ...


class StaticCatalogueProvider:
    def __init__(self, catalogue: Catalogue):
        self.catalogue = catalogue

    def load_catalogue(self) -> Catalogue:
        return self.catalogue


class FileCatalogueProvider:
    """Reads a catalogue JSON file, re-parsing only when it changes on disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._cached: Optional[Catalogue] = None
        self._mtime: Optional[float] = None

    def load_catalogue(self) -> Catalogue:
        mtime = self.path.stat().st_mtime if self.path.exists() else None
        if self._cached is None or mtime != self._mtime:
            self._cached = load_catalogue(self.path)
            self._mtime = mtime
            logger.info(
                "catalogue_loaded",
                path=str(self.path),
                n_categories=len(self._cached.categories),
                n_indicators=len(self._cached.all_indicators()),
            )
        return self._cached
