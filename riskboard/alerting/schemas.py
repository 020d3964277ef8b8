"""
Alert Rule Schemas.

Defines alert rules (conditions + actions + cooldown), dispatch requests
handed to channels, and the per-rule outcome of an evaluation pass.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from riskboard.schemas.scoring import RiskLevel


# ── Enums ──────────────────────────────────────────────────────────────


class ConditionType(StrEnum):
    RISK_SCORE = "risk_score"               # Total score
    CATEGORY_SCORE = "category_score"       # Score of category `target`
    INDICATOR_VALUE = "indicator_value"     # Score of indicator `target`
    TREND_CHANGE = "trend_change"           # |total - value| > 5


class ConditionOperator(StrEnum):
    GT = "gt"           # greater than
    GTE = "gte"         # greater than or equal
    LT = "lt"           # less than
    LTE = "lte"         # less than or equal
    EQ = "eq"           # equal
    NEQ = "neq"         # not equal


class ActionType(StrEnum):
    EMAIL = "email"
    WEBHOOK = "webhook"
    SMS = "sms"
    CHAT = "chat"
    INTERNAL_ALERT = "internal_alert"


class RulePriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SkipReason(StrEnum):
    DISABLED = "disabled"
    COOLDOWN = "cooldown"
    CONDITIONS_NOT_MET = "conditions_not_met"


# ── Rule definition ────────────────────────────────────────────────────


class AlertCondition(BaseModel):
    """
    One predicate of a rule. All conditions of a rule must hold.

    ``type`` and ``operator`` accept unknown strings so rules persisted by
    newer versions still load; unknown values never match.
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = ""
    type: Union[ConditionType, str]
    operator: Union[ConditionOperator, str]
    value: float
    target: Optional[str] = None    # Category id or indicator id


class AlertAction(BaseModel):
    """A notification channel invocation. ``config`` is channel-specific."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = ""
    type: ActionType
    config: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True

    @field_validator("type", mode="before")
    @classmethod
    def _legacy_chat_type(cls, v: Any) -> Any:
        # Rules saved by the dashboard call the chat channel "slack"
        return ActionType.CHAT if v == "slack" else v


class AlertRule(BaseModel):
    """
    A user-defined alert rule.

    The engine mutates ``last_triggered`` and ``trigger_count`` when the
    rule fires; every other field belongs to the user.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    description: str = ""
    enabled: bool = True

    conditions: list[AlertCondition] = Field(default_factory=list)
    actions: list[AlertAction] = Field(default_factory=list)

    priority: RulePriority = RulePriority.MEDIUM
    cooldown_minutes: float = Field(default=30, ge=0)

    # Firing state
    last_triggered: Optional[datetime] = None
    trigger_count: int = Field(default=0, ge=0)


class AlertRuleCreateRequest(BaseModel):
    """
    Request to create or replace a rule.

    Rejects an empty condition list: the engine would treat it as
    always true.
    """
    name: str = Field(min_length=1)
    description: str = ""
    enabled: bool = True
    conditions: list[AlertCondition] = Field(min_length=1)
    actions: list[AlertAction] = Field(default_factory=list)
    priority: RulePriority = RulePriority.MEDIUM
    cooldown_minutes: float = Field(default=30, ge=0)

    def to_rule(self, rule_id: str) -> AlertRule:
        return AlertRule(id=rule_id, **self.model_dump())


# ── Dispatch ───────────────────────────────────────────────────────────


class DispatchPayload(BaseModel):
    """Standard payload every channel receives alongside its config."""
    model_config = ConfigDict(frozen=True)

    total_score: float
    risk_level: RiskLevel
    timestamp: datetime
    rule_id: str = ""
    rule_name: str = ""


class DispatchRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    action_id: str
    action_type: ActionType
    config: dict[str, Any] = Field(default_factory=dict)
    payload: DispatchPayload


class ActionResult(BaseModel):
    """Delivery outcome of one action."""
    model_config = ConfigDict(frozen=True)

    action_id: str
    action_type: ActionType
    success: bool
    detail: str = ""


class InternalAlert(BaseModel):
    """Alert record surfaced inside the host application."""
    model_config = ConfigDict(frozen=True)

    id: str
    rule_id: str = ""
    title: str
    message: str
    severity: str = "medium"
    total_score: float = 0.0
    timestamp: datetime


# ── Evaluation results ─────────────────────────────────────────────────


class RuleOutcome(BaseModel):
    """Result of evaluating one rule in a pass."""
    rule_id: str
    rule_name: str
    fired: bool
    skipped_reason: Optional[SkipReason] = None
    triggered_at: Optional[datetime] = None
    action_results: list[ActionResult] = Field(default_factory=list)

    @property
    def failed_actions(self) -> list[ActionResult]:
        return [r for r in self.action_results if not r.success]


class RuleSetSummary(BaseModel):
    total_rules: int
    enabled_rules: int
    total_triggers: int
    triggered_rules: int            # Rules that fired at least once
    idle_rules: int                 # Enabled rules that never fired
