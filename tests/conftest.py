"""
Pytest Configuration and Fixtures.

Factories for catalogues, score snapshots and alert rules, plus a
recording channel dispatcher used across the engine and service tests.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from riskboard.alerting.channels import ActionDispatcher
from riskboard.alerting.schemas import (
    ActionType,
    AlertAction,
    AlertCondition,
    AlertRule,
    ConditionOperator,
    ConditionType,
    DispatchRequest,
)
from riskboard.clock import ManualClock
from riskboard.schemas.catalogue import (
    Catalogue,
    Category,
    Indicator,
    IndicatorStatus,
    Priority,
    SubCategory,
)
from riskboard.schemas.scoring import RiskLevel, RiskScore

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


# ============================================================================
# CATALOGUE FACTORIES
# ============================================================================


def make_indicator(
    indicator_id: str = "ind-1",
    name: str = "Deposit balance ratio",
    priority: str = Priority.P1,
    status: IndicatorStatus = IndicatorStatus.ACTIVE,
    purpose: str = "",
) -> Indicator:
    return Indicator(
        id=indicator_id,
        name=name,
        priority=priority,
        status=status,
        purpose=purpose,
    )


def make_category(
    category_id: str = "A",
    indicators: Optional[list[Indicator]] = None,
    name: Optional[str] = None,
) -> Category:
    return Category(
        id=category_id,
        name=name or f"Category {category_id}",
        subcategories=[
            SubCategory(
                id=f"{category_id}-1",
                name=f"Subcategory {category_id}-1",
                indicators=indicators or [],
            )
        ],
    )


def make_catalogue(*categories: Category) -> Catalogue:
    return Catalogue(categories=list(categories))


# ============================================================================
# SCORE / RULE FACTORIES
# ============================================================================


def make_score(
    total: float = 75.0,
    category_scores: Optional[dict[str, float]] = None,
    indicator_scores: Optional[dict[str, float]] = None,
    level: RiskLevel = RiskLevel.HIGH,
) -> RiskScore:
    return RiskScore(
        total_score=total,
        category_scores=category_scores or {},
        indicator_scores=indicator_scores or {},
        risk_level=level,
        timestamp=T0,
    )


def make_condition(
    kind: str = ConditionType.RISK_SCORE,
    operator: str = ConditionOperator.GTE,
    value: float = 70.0,
    target: Optional[str] = None,
) -> AlertCondition:
    return AlertCondition(id="cond-1", type=kind, operator=operator, value=value, target=target)


def make_action(
    action_id: str = "act-1",
    action_type: ActionType = ActionType.INTERNAL_ALERT,
    enabled: bool = True,
    config: Optional[dict] = None,
) -> AlertAction:
    return AlertAction(id=action_id, type=action_type, config=config or {}, enabled=enabled)


def make_rule(
    rule_id: str = "rule-1",
    conditions: Optional[list[AlertCondition]] = None,
    actions: Optional[list[AlertAction]] = None,
    enabled: bool = True,
    cooldown_minutes: float = 30,
    last_triggered: Optional[datetime] = None,
    trigger_count: int = 0,
) -> AlertRule:
    return AlertRule(
        id=rule_id,
        name=f"Rule {rule_id}",
        enabled=enabled,
        conditions=[make_condition()] if conditions is None else conditions,
        actions=[make_action()] if actions is None else actions,
        cooldown_minutes=cooldown_minutes,
        last_triggered=last_triggered,
        trigger_count=trigger_count,
    )


# ============================================================================
# DISPATCH
# ============================================================================


class RecordingChannel:
    """Channel dispatcher that records requests and returns a fixed result."""

    def __init__(self, success: bool = True, detail: str = "ok", error: Optional[Exception] = None):
        self.success = success
        self.detail = detail
        self.error = error
        self.requests: list[DispatchRequest] = []

    async def dispatch(self, request: DispatchRequest) -> dict:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return {"success": self.success, "detail": self.detail}


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T0)


@pytest.fixture
def recorder() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def dispatcher(recorder) -> ActionDispatcher:
    return ActionDispatcher(
        dispatchers={t: recorder for t in ActionType},
        timeout_seconds=1.0,
    )
