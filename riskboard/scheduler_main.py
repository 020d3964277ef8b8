"""
Scheduler Entry Point.

Usage:
    python -m riskboard.scheduler_main

Loads the catalogue and the alert rules named in the settings, runs one
pass immediately, then re-evaluates every EVALUATION_INTERVAL_SECONDS
until interrupted.
"""

import asyncio
import signal

import structlog

from riskboard.alerting.channels import ActionDispatcher
from riskboard.alerting.engine import AlertRuleEngine
from riskboard.alerting.repository import JsonFileRuleRepository
from riskboard.config import settings
from riskboard.engine.scoring import RiskThresholds, ScoreCalculator
from riskboard.engine.simulator import HistoricalDataSimulator
from riskboard.engine.trend import TrendAnalyzer
from riskboard.logging_config import configure_logging
from riskboard.services.monitor import RiskMonitor
from riskboard.services.scheduler import EvaluationScheduler
from riskboard.services.sources import FileCatalogueProvider

logger = structlog.get_logger(__name__)


def build_monitor() -> RiskMonitor:
    """Wire a RiskMonitor from settings."""
    calculator = ScoreCalculator(
        category_weights=settings.category_weights,
        thresholds=RiskThresholds(
            medium=settings.risk_threshold_medium,
            high=settings.risk_threshold_high,
            critical=settings.risk_threshold_critical,
        ),
    )
    engine = AlertRuleEngine(dispatcher=ActionDispatcher.from_settings(settings))

    # No history store is configured in standalone mode; use the demo series
    history = HistoricalDataSimulator(
        seed=settings.simulator_seed, days=settings.history_days
    )

    return RiskMonitor(
        catalogue_provider=FileCatalogueProvider(settings.catalogue_path),
        calculator=calculator,
        engine=engine,
        repository=JsonFileRuleRepository(settings.alert_rules_path),
        history=history,
        analyzer=TrendAnalyzer(
            window_days=settings.trend_window_days,
            stable_band_percent=settings.trend_stable_band_percent,
        ),
        forecast_horizon_days=settings.forecast_horizon_days,
    )


async def main():
    configure_logging(settings.log_level, settings.log_format)
    logger.info("scheduler_starting", version=settings.app_version)

    scheduler = EvaluationScheduler(
        build_monitor(), interval_seconds=settings.evaluation_interval_seconds
    )

    logger.info("running_initial_pass")
    await scheduler.run_once()

    scheduler.start()

    stop_event = asyncio.Event()

    def _handle_signal(signum, frame):
        logger.info("shutdown_signal_received", signal=signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    await stop_event.wait()

    scheduler.stop()
    logger.info("scheduler_shutdown_complete")


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
