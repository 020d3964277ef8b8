"""
Indicator Threshold Alerts.

Lists every indicator whose score reached the threshold of its priority
class. Independent from the user-defined alert rules: this is the fixed
"what needs attention" view shown next to the score.
"""

from datetime import datetime
from typing import Optional

from riskboard.engine.scoring import DEFAULT_THRESHOLDS, RiskThresholds
from riskboard.schemas.catalogue import Catalogue, Indicator, Priority
from riskboard.schemas.scoring import IndicatorAlert, RiskLevel, RiskScore

PRIORITY_ALERT_THRESHOLDS: dict[str, float] = {
    Priority.P0: 70.0,
    Priority.P1: 50.0,
    Priority.P2: 30.0,
}
DEFAULT_ALERT_THRESHOLD: float = 40.0

_LEVEL_TEXT = {
    RiskLevel.CRITICAL: "critical",
    RiskLevel.HIGH: "high",
    RiskLevel.MEDIUM: "medium",
    RiskLevel.LOW: "low",
}


def alert_threshold(priority: str) -> float:
    return PRIORITY_ALERT_THRESHOLDS.get(priority, DEFAULT_ALERT_THRESHOLD)


def generate_indicator_alerts(
    catalogue: Catalogue,
    risk_score: RiskScore,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
    now: Optional[datetime] = None,
) -> list[IndicatorAlert]:
    """
    Build alerts for indicators at or above their priority threshold.

    Indicators missing from ``risk_score`` (catalogue changed since the
    snapshot) are skipped. Sorted by descending score.
    """
    timestamp = now or risk_score.timestamp
    alerts: list[IndicatorAlert] = []

    for category in catalogue.categories:
        for indicator in category.indicators():
            score = risk_score.indicator_scores.get(indicator.id)
            if score is None:
                continue
            threshold = alert_threshold(indicator.priority)
            if score < threshold:
                continue

            level = thresholds.classify(score)
            alerts.append(
                IndicatorAlert(
                    id=f"alert_{indicator.id}",
                    indicator_id=indicator.id,
                    indicator_name=indicator.name,
                    category=category.name,
                    current_value=score,
                    threshold=threshold,
                    risk_level=level,
                    message=_alert_message(indicator, score, level),
                    timestamp=timestamp,
                )
            )

    alerts.sort(key=lambda a: a.current_value, reverse=True)
    return alerts


def _alert_message(indicator: Indicator, score: float, level: RiskLevel) -> str:
    message = f"{indicator.name} raised a {_LEVEL_TEXT[level]} risk alert (score: {score:.1f})"
    if indicator.purpose:
        message += f". {indicator.purpose}"
    return message
