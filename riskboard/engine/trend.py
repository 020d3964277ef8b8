"""
Risk Trend Analyzer.

Reads a date-ordered series of daily total scores and derives:
1. Trend: mean of the last 7 days vs the 7 days before (week over week)
2. Forecast: least-squares line over the last 7 days, extrapolated

A rising risk score is "worsening". Both operations are pure and never
modify the history they are given.
"""

from typing import Sequence

import structlog

from riskboard.schemas.scoring import (
    ForecastDirection,
    HistoricalRiskData,
    RiskForecast,
    RiskTrend,
    TrendDirection,
)

logger = structlog.get_logger(__name__)

# Days per comparison window (trend) and per regression (forecast)
WINDOW_DAYS: int = 7

# |change %| below this is "stable"
STABLE_BAND_PERCENT: float = 5.0

# |slope| (points per day) at or below this is "stable"
SLOPE_EPSILON: float = 0.1

# Returned when there is not enough history to fit a line
NEUTRAL_SCORE: float = 50.0
NEUTRAL_CONFIDENCE: float = 0.5

MIN_CONFIDENCE: float = 0.1
MAX_CONFIDENCE: float = 0.9


class TrendAnalyzer:
    """Week-over-week trend classification and short-horizon forecast."""

    def __init__(
        self,
        window_days: int = WINDOW_DAYS,
        stable_band_percent: float = STABLE_BAND_PERCENT,
    ):
        if window_days < 2:
            raise ValueError("window_days must be at least 2")
        self.window_days = window_days
        self.stable_band_percent = stable_band_percent

    def classify_trend(self, history: Sequence[HistoricalRiskData]) -> RiskTrend:
        """
        Compare the most recent window against the one before it.

        With fewer than 2 entries the trend is stable with no change.
        When the previous window is empty or averages 0 the change is
        reported as 0 (the percentage is undefined).
        """
        if len(history) < 2:
            return RiskTrend(
                trend=TrendDirection.STABLE, change_percent=0.0, average_score=0.0
            )

        w = self.window_days
        recent = [d.total_score for d in history[-w:]]
        previous = [d.total_score for d in history[-2 * w:-w]]

        recent_avg = sum(recent) / len(recent)
        previous_avg = sum(previous) / len(previous) if previous else 0.0

        if previous_avg > 0:
            # Classified at full precision (9 places drops float noise at the 5 % edge);
            # only the reported value is rounded to 2 places
            change_percent = round((recent_avg - previous_avg) / previous_avg * 100, 9)
        else:
            change_percent = 0.0

        if abs(change_percent) < self.stable_band_percent:
            trend = TrendDirection.STABLE
        elif change_percent > 0:
            trend = TrendDirection.WORSENING
        else:
            trend = TrendDirection.IMPROVING

        return RiskTrend(
            trend=trend,
            change_percent=round(change_percent, 2),
            average_score=round(recent_avg, 2),
        )

    def forecast(
        self, history: Sequence[HistoricalRiskData], horizon_days: int = 7
    ) -> RiskForecast:
        """
        Predict the total score ``horizon_days`` ahead.

        Fits ``score = slope * day + intercept`` over the last window (day
        0 = oldest), evaluates at ``n + horizon_days - 1`` and clamps to
        [0, 100]. Confidence falls as the in-window variance rises.
        """
        if horizon_days < 1:
            raise ValueError("horizon_days must be at least 1")

        if len(history) < self.window_days:
            return RiskForecast(
                predicted_score=NEUTRAL_SCORE,
                confidence=NEUTRAL_CONFIDENCE,
                direction=ForecastDirection.STABLE,
                slope=0.0,
                horizon_days=horizon_days,
            )

        scores = [d.total_score for d in history[-self.window_days:]]
        n = len(scores)
        slope, intercept = self._linear_regression(scores)

        next_index = n + horizon_days - 1
        predicted = max(0.0, min(100.0, slope * next_index + intercept))

        mean = sum(scores) / n
        variance = sum((s - mean) ** 2 for s in scores) / n
        confidence = max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, 1 - variance / 100))

        if slope > SLOPE_EPSILON:
            direction = ForecastDirection.UP
        elif slope < -SLOPE_EPSILON:
            direction = ForecastDirection.DOWN
        else:
            direction = ForecastDirection.STABLE

        logger.debug(
            "risk_forecast_computed",
            slope=round(slope, 4),
            predicted_score=round(predicted, 2),
            confidence=round(confidence, 2),
            horizon_days=horizon_days,
        )

        return RiskForecast(
            predicted_score=round(predicted, 2),
            confidence=round(confidence, 2),
            direction=direction,
            slope=round(slope, 4),
            horizon_days=horizon_days,
        )

    @staticmethod
    def _linear_regression(scores: Sequence[float]) -> tuple[float, float]:
        """
        Ordinary least squares of score against day index 0..n-1.

        Returns: (slope, intercept)
        """
        n = len(scores)
        sum_x = n * (n - 1) / 2
        sum_y = sum(scores)
        sum_xy = sum(x * y for x, y in enumerate(scores))
        sum_x2 = n * (n - 1) * (2 * n - 1) / 6

        denom = n * sum_x2 - sum_x ** 2
        if abs(denom) < 1e-12:
            return 0.0, sum_y / n

        slope = (n * sum_xy - sum_x * sum_y) / denom
        intercept = (sum_y - slope * sum_x) / n
        return slope, intercept
