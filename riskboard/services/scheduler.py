"""
Evaluation Scheduler: runs a monitor pass on a fixed interval.

The host can also call ``RiskMonitor.run_pass`` directly when the
catalogue changes; the timer only guarantees a pass at least every
``interval_seconds``.
"""

from typing import Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from riskboard.services.monitor import MonitorReport, RiskMonitor

logger = structlog.get_logger(__name__)

JOB_ID = "risk_evaluation"


class EvaluationScheduler:
    def __init__(self, monitor: RiskMonitor, interval_seconds: int = 60):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.monitor = monitor
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler()
        self.last_report: Optional[MonitorReport] = None

    def start(self):
        """Register the evaluation job and start the scheduler."""
        self.scheduler.add_job(
            self.run_once,
            IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("evaluation_scheduler_started", interval_seconds=self.interval_seconds)

    def stop(self):
        """Gracefully stop the scheduler."""
        self.scheduler.shutdown(wait=True)
        logger.info("evaluation_scheduler_stopped")

    async def run_once(self) -> Optional[MonitorReport]:
        """One pass. Failures are logged; the schedule keeps running."""
        try:
            report = await self.monitor.run_pass()
        except Exception as e:
            logger.error("evaluation_pass_failed", error=str(e), exc_info=True)
            return None

        self.last_report = report
        return report
