"""
Alert Rule Engine: Evaluate user-defined rules against a score snapshot.

Per rule, each pass:
1. Skip if disabled
2. Cooldown gate: skip if it fired less than ``cooldown_minutes`` ago
3. Evaluate all conditions (AND)
4. Fire: stamp ``last_triggered``, increment ``trigger_count``
5. Dispatch every enabled action concurrently

Steps 2-4 run under a per-rule lock keyed by rule id. Overlapping passes
fire a rule at most once per cooldown window only when they share the same
``AlertRule`` object; passes that load separate copies from storage must be
serialised by the caller (``RiskMonitor`` holds a pass lock for this).
Dispatch happens after the lock is released, so a failing or slow channel
never undoes or delays the rule's bookkeeping.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import structlog

from riskboard.alerting.channels import ActionDispatcher
from riskboard.alerting.schemas import (
    AlertCondition,
    AlertRule,
    ConditionOperator,
    ConditionType,
    DispatchPayload,
    DispatchRequest,
    RuleOutcome,
    RuleSetSummary,
    SkipReason,
)
from riskboard.clock import Clock, SystemClock
from riskboard.schemas.catalogue import Catalogue
from riskboard.schemas.scoring import RiskScore

logger = structlog.get_logger(__name__)

# trend_change fires when the total is more than this far from the condition value
TREND_CHANGE_DELTA: float = 5.0


def compare(actual: float, operator: str, threshold: float) -> bool:
    """Apply a condition operator. Unknown operators never match."""
    if operator == ConditionOperator.GT:
        return actual > threshold
    elif operator == ConditionOperator.GTE:
        return actual >= threshold
    elif operator == ConditionOperator.LT:
        return actual < threshold
    elif operator == ConditionOperator.LTE:
        return actual <= threshold
    elif operator == ConditionOperator.EQ:
        return actual == threshold
    elif operator == ConditionOperator.NEQ:
        return actual != threshold
    return False


class AlertRuleEngine:
    """
    Evaluates alert rules and fires their actions.

    Holds no storage: rules come in, the same rule objects come back
    mutated (``last_triggered``, ``trigger_count``) and the caller persists
    them.
    """

    def __init__(
        self,
        dispatcher: Optional[ActionDispatcher] = None,
        clock: Optional[Clock] = None,
    ):
        self.dispatcher = dispatcher or ActionDispatcher.from_settings()
        self.clock = clock or SystemClock()
        self._locks: dict[str, asyncio.Lock] = {}

    # ── Conditions ───────────────────────────────────────────────────

    def evaluate_condition(
        self,
        condition: AlertCondition,
        current_score: RiskScore,
        catalogue: Optional[Catalogue] = None,
    ) -> bool:
        kind = condition.type

        if kind == ConditionType.RISK_SCORE:
            return compare(current_score.total_score, condition.operator, condition.value)

        if kind == ConditionType.CATEGORY_SCORE:
            value = current_score.category_scores.get(condition.target or "")
            if value is None:
                logger.debug(
                    "alert_condition_target_missing",
                    condition_id=condition.id,
                    kind=kind,
                    target=condition.target,
                )
                return False
            return compare(value, condition.operator, condition.value)

        if kind == ConditionType.INDICATOR_VALUE:
            value = current_score.indicator_scores.get(condition.target or "")
            if value is None:
                logger.debug(
                    "alert_condition_target_missing",
                    condition_id=condition.id,
                    kind=kind,
                    target=condition.target,
                )
                return False
            return compare(value, condition.operator, condition.value)

        if kind == ConditionType.TREND_CHANGE:
            # Distance of the current total from the reference value;
            # the operator is not consulted.
            return abs(current_score.total_score - condition.value) > TREND_CHANGE_DELTA

        return False

    def evaluate_conditions(
        self,
        conditions: Sequence[AlertCondition],
        current_score: RiskScore,
        catalogue: Optional[Catalogue] = None,
    ) -> bool:
        """True when every condition holds. An empty list is vacuously true."""
        return all(
            self.evaluate_condition(c, current_score, catalogue) for c in conditions
        )

    def test_rule(
        self,
        rule: AlertRule,
        current_score: RiskScore,
        catalogue: Optional[Catalogue] = None,
    ) -> bool:
        """Would this rule's conditions hold right now? No cooldown, no side effects."""
        return self.evaluate_conditions(rule.conditions, current_score, catalogue)

    # ── Cooldown ─────────────────────────────────────────────────────

    def is_cooling_down(self, rule: AlertRule, now: datetime) -> bool:
        if rule.last_triggered is None:
            return False
        last = rule.last_triggered
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        return now - last < timedelta(minutes=rule.cooldown_minutes)

    # ── Evaluation pass ──────────────────────────────────────────────

    async def evaluate(
        self,
        rules: Sequence[AlertRule],
        current_score: RiskScore,
        catalogue: Optional[Catalogue] = None,
    ) -> list[RuleOutcome]:
        """
        Evaluate every rule against the snapshot.

        Rules are independent and evaluated concurrently. Always returns
        one outcome per rule, in input order.
        """
        outcomes = await asyncio.gather(
            *(self._evaluate_rule(rule, current_score, catalogue) for rule in rules)
        )
        self._prune_locks({rule.id for rule in rules})

        fired = sum(1 for o in outcomes if o.fired)
        logger.info(
            "alert_pass_completed",
            n_rules=len(rules),
            n_fired=fired,
            total_score=current_score.total_score,
            risk_level=current_score.risk_level.value,
        )
        return list(outcomes)

    async def _evaluate_rule(
        self,
        rule: AlertRule,
        current_score: RiskScore,
        catalogue: Optional[Catalogue],
    ) -> RuleOutcome:
        if not rule.enabled:
            return self._skipped(rule, SkipReason.DISABLED)

        lock = self._locks.setdefault(rule.id, asyncio.Lock())
        async with lock:
            now = self.clock.now()

            if self.is_cooling_down(rule, now):
                logger.debug(
                    "alert_rule_cooldown",
                    rule_id=rule.id,
                    last_triggered=rule.last_triggered.isoformat(),
                    cooldown_minutes=rule.cooldown_minutes,
                )
                return self._skipped(rule, SkipReason.COOLDOWN)

            if not self.evaluate_conditions(rule.conditions, current_score, catalogue):
                return self._skipped(rule, SkipReason.CONDITIONS_NOT_MET)

            rule.last_triggered = now
            rule.trigger_count += 1

        logger.info(
            "alert_rule_fired",
            rule_id=rule.id,
            rule_name=rule.name,
            priority=rule.priority.value,
            trigger_count=rule.trigger_count,
            total_score=current_score.total_score,
        )

        payload = DispatchPayload(
            total_score=current_score.total_score,
            risk_level=current_score.risk_level,
            timestamp=now,
            rule_id=rule.id,
            rule_name=rule.name,
        )
        requests = [
            DispatchRequest(
                action_id=action.id,
                action_type=action.type,
                config=action.config,
                payload=payload,
            )
            for action in rule.actions
            if action.enabled
        ]
        results = await self.dispatcher.dispatch_all(requests)

        for result in results:
            if not result.success:
                logger.warning(
                    "alert_action_failed",
                    rule_id=rule.id,
                    action_id=result.action_id,
                    channel=result.action_type.value,
                    detail=result.detail,
                )

        return RuleOutcome(
            rule_id=rule.id,
            rule_name=rule.name,
            fired=True,
            triggered_at=now,
            action_results=results,
        )

    def _prune_locks(self, live_rule_ids: set[str]) -> None:
        """Drop locks of rules that are gone from the rule set and not held."""
        self._locks = {
            rule_id: lock
            for rule_id, lock in self._locks.items()
            if rule_id in live_rule_ids or lock.locked()
        }

    @staticmethod
    def _skipped(rule: AlertRule, reason: SkipReason) -> RuleOutcome:
        return RuleOutcome(
            rule_id=rule.id,
            rule_name=rule.name,
            fired=False,
            skipped_reason=reason,
        )

    # ── Reporting ────────────────────────────────────────────────────

    @staticmethod
    def summarize(rules: Sequence[AlertRule]) -> RuleSetSummary:
        """Counts shown above the rule list."""
        return RuleSetSummary(
            total_rules=len(rules),
            enabled_rules=sum(1 for r in rules if r.enabled),
            total_triggers=sum(r.trigger_count for r in rules),
            triggered_rules=sum(1 for r in rules if r.last_triggered is not None),
            idle_rules=sum(1 for r in rules if r.enabled and r.last_triggered is None),
        )
