"""
Historical Data Simulator.

Generates a plausible daily score series for demos and tests. Kept apart
from the analyzer: it is only ever used through the ``HistoryProvider``
interface, and it owns its random generator so a seed fully determines
the output.
"""

import random
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Sequence

import structlog

from riskboard.schemas.scoring import HistoricalRiskData

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY_FACTORS: dict[str, float] = {
    "A": 0.8,
    "B": 1.2,
    "C": 0.9,
    "D": 0.7,
}

DEFAULT_TOP_INDICATORS: tuple[str, ...] = (
    "黑地址关联深度",
    "充提平衡率",
    "价格操纵指数",
    "设备重复率",
)


class HistoricalDataSimulator:
    """
    Seeded generator of ``HistoricalRiskData``.

    Each day: base score uniform in [40, 70], daily variation in [-10, 10],
    total clamped to [0, 100]. Category scores scale the total by a fixed
    factor plus up to 10 points of noise.
    """

    def __init__(
        self,
        seed: int = 42,
        days: int = 30,
        category_factors: Optional[dict[str, float]] = None,
        top_indicators: Sequence[str] = DEFAULT_TOP_INDICATORS,
        end: Optional[date] = None,
    ):
        self.seed = seed
        self.days = days
        self.category_factors = dict(category_factors or DEFAULT_CATEGORY_FACTORS)
        self.top_indicators = list(top_indicators)
        self.end = end

    def generate(self, days: Optional[int] = None, end: Optional[date] = None) -> list[HistoricalRiskData]:
        """Build ``days`` consecutive entries ending on ``end`` (default: today UTC)."""
        n_days = self.days if days is None else days
        last_day = end or self.end or datetime.now(timezone.utc).date()
        rng = random.Random(self.seed)

        data: list[HistoricalRiskData] = []
        for offset in range(n_days - 1, -1, -1):
            day = last_day - timedelta(days=offset)
            base = 40 + rng.random() * 30
            variation = (rng.random() - 0.5) * 20
            total = max(0.0, min(100.0, base + variation))

            category_scores = {
                cid: round(total * factor + rng.random() * 10, 2)
                for cid, factor in self.category_factors.items()
            }
            top = rng.sample(self.top_indicators, k=min(3, len(self.top_indicators)))

            data.append(
                HistoricalRiskData(
                    date=day.isoformat(),
                    total_score=round(total, 2),
                    category_scores=category_scores,
                    alerts_count=rng.randint(5, 19),
                    top_risk_indicators=top,
                )
            )

        logger.debug("history_simulated", days=n_days, seed=self.seed)
        return data

    def load_history(self) -> list[HistoricalRiskData]:
        return self.generate()
