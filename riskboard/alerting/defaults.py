"""
Built-in alert rules, used when no rule set has been saved yet.
"""

from riskboard.alerting.schemas import (
    ActionType,
    AlertAction,
    AlertCondition,
    AlertRule,
    ConditionOperator,
    ConditionType,
    RulePriority,
)


def default_rules() -> list[AlertRule]:
    """Fresh copies of the built-in rules (high and critical total score)."""
    return [
        AlertRule(
            id="high_risk_alert",
            name="High risk alert",
            description="Fires when the total risk score reaches 70",
            enabled=True,
            conditions=[
                AlertCondition(
                    id="high_risk_condition",
                    type=ConditionType.RISK_SCORE,
                    operator=ConditionOperator.GTE,
                    value=70,
                ),
            ],
            actions=[
                AlertAction(
                    id="internal_alert_action",
                    type=ActionType.INTERNAL_ALERT,
                    config={
                        "title": "High risk alert",
                        "message": "High risk detected, please take action.",
                        "severity": "high",
                    },
                    enabled=True,
                ),
            ],
            priority=RulePriority.HIGH,
            cooldown_minutes=30,
        ),
        AlertRule(
            id="critical_risk_alert",
            name="Critical risk alert",
            description="Fires when the total risk score reaches 90",
            enabled=True,
            conditions=[
                AlertCondition(
                    id="critical_risk_condition",
                    type=ConditionType.RISK_SCORE,
                    operator=ConditionOperator.GTE,
                    value=90,
                ),
            ],
            actions=[
                AlertAction(
                    id="internal_alert_critical",
                    type=ActionType.INTERNAL_ALERT,
                    config={
                        "title": "Critical risk alert",
                        "message": "Critical risk detected, start the incident response.",
                        "severity": "critical",
                    },
                    enabled=True,
                ),
                # Disabled until recipients and SMTP are configured
                AlertAction(
                    id="email_alert",
                    type=ActionType.EMAIL,
                    config={
                        "to": "security@company.com",
                        "subject": "Critical risk alert",
                        "message": "Critical risk detected, please act immediately.",
                    },
                    enabled=False,
                ),
            ],
            priority=RulePriority.CRITICAL,
            cooldown_minutes=15,
        ),
    ]
