"""
Risk Scoring Schemas.

Value objects produced by the score calculator and the trend analyzer.
All of them are frozen: a recomputation produces a new snapshot.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


# ── Enums ──────────────────────────────────────────────────────────────


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TrendDirection(StrEnum):
    IMPROVING = "improving"         # Risk score falling
    WORSENING = "worsening"         # Risk score rising
    STABLE = "stable"


class ForecastDirection(StrEnum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


# ── Score snapshot ─────────────────────────────────────────────────────


class RiskFactor(BaseModel):
    """Per-indicator contribution to the total score."""
    model_config = ConfigDict(frozen=True)

    indicator_id: str
    indicator_name: str
    category: str                   # Owning category name
    category_id: str
    score: float                    # Indicator score (0-100)
    weight: float                   # priority weight × category weight
    contribution: float             # Normalised share of the total
    description: str = ""


class RiskScore(BaseModel):
    """
    One scoring snapshot of the whole catalogue.

    ``factors`` is ordered by descending contribution.
    """
    model_config = ConfigDict(frozen=True)

    total_score: float
    category_scores: dict[str, float] = Field(default_factory=dict)
    indicator_scores: dict[str, float] = Field(default_factory=dict)
    risk_level: RiskLevel
    timestamp: datetime
    factors: list[RiskFactor] = Field(default_factory=list)


class IndicatorAlert(BaseModel):
    """An indicator whose score reached its priority threshold."""
    model_config = ConfigDict(frozen=True)

    id: str
    indicator_id: str
    indicator_name: str
    category: str
    current_value: float
    threshold: float
    risk_level: RiskLevel
    message: str
    timestamp: datetime
    acknowledged: bool = False


# ── History, trend, forecast ───────────────────────────────────────────


class HistoricalRiskData(BaseModel):
    """Daily summary of past scoring."""
    model_config = ConfigDict(frozen=True)

    date: str                       # YYYY-MM-DD
    total_score: float
    category_scores: dict[str, float] = Field(default_factory=dict)
    alerts_count: int = 0
    top_risk_indicators: list[str] = Field(default_factory=list)


class RiskTrend(BaseModel):
    model_config = ConfigDict(frozen=True)

    trend: TrendDirection
    change_percent: float
    average_score: float            # Mean of the most recent window


class RiskForecast(BaseModel):
    model_config = ConfigDict(frozen=True)

    predicted_score: float
    confidence: float               # 0.1-0.9
    direction: ForecastDirection
    slope: float = 0.0              # Score change per day
    horizon_days: int = 7
