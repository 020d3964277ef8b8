"""
Risk Monitor: one scoring and alerting pass.

Single entry point for the host application:
1. Take the current catalogue snapshot
2. Compute the RiskScore
3. Load rules, evaluate them, save the new firing state
4. List indicators over their priority threshold
5. Classify the trend and forecast from history (when available)

Passes are serialised: rules are loaded, evaluated and saved by one pass
at a time, so a rule can never fire twice inside its cooldown because two
passes read the same stale state.
"""

import asyncio
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from riskboard.alerting.engine import AlertRuleEngine
from riskboard.alerting.repository import RuleRepository
from riskboard.alerting.schemas import AlertRule, RuleOutcome, RuleSetSummary
from riskboard.engine.history import HistoryProvider
from riskboard.engine.indicator_alerts import generate_indicator_alerts
from riskboard.engine.scoring import ScoreCalculator
from riskboard.engine.trend import TrendAnalyzer
from riskboard.schemas.catalogue import Catalogue
from riskboard.schemas.scoring import IndicatorAlert, RiskForecast, RiskScore, RiskTrend
from riskboard.services.sources import CatalogueProvider

logger = structlog.get_logger(__name__)


class MonitorReport(BaseModel):
    """Everything one pass produced."""
    model_config = ConfigDict(frozen=True)

    risk_score: RiskScore
    outcomes: list[RuleOutcome] = Field(default_factory=list)
    indicator_alerts: list[IndicatorAlert] = Field(default_factory=list)
    trend: Optional[RiskTrend] = None
    forecast: Optional[RiskForecast] = None

    @property
    def fired_rules(self) -> list[str]:
        return [o.rule_id for o in self.outcomes if o.fired]


class RiskMonitor:
    def __init__(
        self,
        catalogue_provider: CatalogueProvider,
        calculator: ScoreCalculator,
        engine: AlertRuleEngine,
        repository: RuleRepository,
        history: Optional[HistoryProvider] = None,
        analyzer: Optional[TrendAnalyzer] = None,
        forecast_horizon_days: int = 7,
    ):
        self.catalogue_provider = catalogue_provider
        self.calculator = calculator
        self.engine = engine
        self.repository = repository
        self.history = history
        self.analyzer = analyzer or TrendAnalyzer()
        self.forecast_horizon_days = forecast_horizon_days
        self._pass_lock = asyncio.Lock()

    async def run_pass(self) -> MonitorReport:
        """Score the current catalogue and evaluate all rules against it."""
        catalogue = self.catalogue_provider.load_catalogue()
        score = self.calculator.compute_risk_score(catalogue)
        return await self.evaluate(score, catalogue)

    async def evaluate(self, score: RiskScore, catalogue: Catalogue) -> MonitorReport:
        """Evaluate rules against an already computed snapshot."""
        async with self._pass_lock:
            rules = self.repository.load()
            outcomes = await self.engine.evaluate(rules, score, catalogue)
            if any(o.fired for o in outcomes):
                self.repository.save(rules)

        trend, forecast = self.analyze_history()

        report = MonitorReport(
            risk_score=score,
            outcomes=outcomes,
            indicator_alerts=generate_indicator_alerts(
                catalogue, score, self.calculator.thresholds
            ),
            trend=trend,
            forecast=forecast,
        )

        logger.info(
            "monitor_pass_completed",
            total_score=score.total_score,
            risk_level=score.risk_level.value,
            fired_rules=report.fired_rules,
            n_indicator_alerts=len(report.indicator_alerts),
            trend=trend.trend.value if trend else None,
        )
        return report

    def analyze_history(self) -> tuple[Optional[RiskTrend], Optional[RiskForecast]]:
        if self.history is None:
            return None, None
        history = self.history.load_history()
        return (
            self.analyzer.classify_trend(history),
            self.analyzer.forecast(history, self.forecast_horizon_days),
        )

    def test_rule(self, rule: AlertRule) -> bool:
        """Preview: would ``rule`` fire against the current catalogue?"""
        catalogue = self.catalogue_provider.load_catalogue()
        score = self.calculator.compute_risk_score(catalogue)
        return self.engine.test_rule(rule, score, catalogue)

    def summary(self) -> RuleSetSummary:
        return self.engine.summarize(self.repository.load())
