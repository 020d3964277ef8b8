"""
Risk Score Calculator.

Turns the indicator catalogue into one RiskScore snapshot:

1. Indicator score: priority base (× 0.3 when inactive) + keyword bonuses
2. Category score: priority-weighted mean of its indicator scores
3. Total score: category-weighted mean of category scores
4. Risk level: fixed ascending bands over the total
5. Factors: per-indicator contribution, sorted descending

Pure computation: no I/O, no randomness. The keyword bonus table and the
category weights are injected so the scoring policy can be swapped
without touching the algorithm.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping, Optional, Sequence

import structlog

from riskboard.clock import Clock, SystemClock
from riskboard.schemas.catalogue import Catalogue, Indicator, IndicatorStatus, Priority
from riskboard.schemas.scoring import RiskFactor, RiskLevel, RiskScore

logger = structlog.get_logger(__name__)

# ── Configuration ─────────────────────────────────────────────────────────

PRIORITY_BASE_SCORES: dict[str, float] = {
    Priority.P0: 80.0,
    Priority.P1: 50.0,
    Priority.P2: 20.0,
}
DEFAULT_BASE_SCORE: float = 30.0

PRIORITY_WEIGHTS: dict[str, float] = {
    Priority.P0: 1.0,
    Priority.P1: 0.7,
    Priority.P2: 0.4,
}
DEFAULT_PRIORITY_WEIGHT: float = 0.4

INACTIVE_MULTIPLIER: float = 0.3

MAX_SCORE: float = 100.0
MIN_SCORE: float = 0.0


@dataclass(frozen=True)
class PatternBonus:
    """Adds ``bonus`` points when ``pattern`` occurs in an indicator name."""
    pattern: str
    bonus: float

    def matches(self, name: str) -> bool:
        # Case-sensitive substring match
        return self.pattern in name


# Keyword table used by the bundled catalogue (Chinese indicator names).
DEFAULT_PATTERN_BONUSES: tuple[PatternBonus, ...] = (
    PatternBonus("存续", 15.0),       # Survival / dormancy
    PatternBonus("黑地址", 25.0),     # Blacklisted address
    PatternBonus("操纵", 30.0),       # Manipulation
    PatternBonus("洗钱", 35.0),       # Money laundering
    PatternBonus("僵尸", 20.0),       # Zombie accounts
    PatternBonus("HFT", 25.0),        # High-frequency trading
)


@dataclass(frozen=True)
class RiskThresholds:
    """Lower bounds of the medium / high / critical bands."""
    medium: float = 40.0
    high: float = 70.0
    critical: float = 90.0

    def __post_init__(self):
        if not (MIN_SCORE <= self.medium < self.high < self.critical <= MAX_SCORE):
            raise ValueError(
                "Invalid risk thresholds: require 0 <= medium < high < critical <= 100"
            )

    def classify(self, score: float) -> RiskLevel:
        if score >= self.critical:
            return RiskLevel.CRITICAL
        if score >= self.high:
            return RiskLevel.HIGH
        if score >= self.medium:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW


DEFAULT_THRESHOLDS = RiskThresholds()


def determine_risk_level(
    score: float, thresholds: RiskThresholds = DEFAULT_THRESHOLDS
) -> RiskLevel:
    """Classify a 0-100 score into a risk level."""
    return thresholds.classify(score)


def describe_indicator(indicator: Indicator, score: float) -> str:
    """One-line reading of an indicator score for reports."""
    if score >= 80:
        return f"{indicator.name}: very high risk, act immediately"
    elif score >= 60:
        return f"{indicator.name}: high risk, review as a priority"
    elif score >= 40:
        return f"{indicator.name}: moderate risk, monitor regularly"
    return f"{indicator.name}: low risk, routine monitoring"


class ScoreCalculator:
    """
    Computes indicator, category and total risk scores.

    Category weights: an explicit table keyed by category id. Any category
    present in the catalogue without an entry gets ``1/n``, where ``n`` is
    the number of categories being scored.
    """

    def __init__(
        self,
        category_weights: Optional[Mapping[str, float]] = None,
        bonuses: Optional[Iterable[PatternBonus]] = None,
        thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
        clock: Optional[Clock] = None,
    ):
        weights = dict(category_weights or {})
        for category_id, weight in weights.items():
            if not math.isfinite(weight) or weight < 0:
                raise ValueError(
                    f"Invalid weight for category {category_id!r}: {weight}"
                )
        self.category_weights = weights
        self.bonuses: tuple[PatternBonus, ...] = (
            DEFAULT_PATTERN_BONUSES if bonuses is None else tuple(bonuses)
        )
        self.thresholds = thresholds
        self.clock = clock or SystemClock()

    # ── Indicator level ──────────────────────────────────────────────

    def compute_indicator_score(self, indicator: Indicator) -> float:
        base = PRIORITY_BASE_SCORES.get(indicator.priority, DEFAULT_BASE_SCORE)
        if indicator.status == IndicatorStatus.INACTIVE:
            base *= INACTIVE_MULTIPLIER

        bonus = self.compute_pattern_bonus(indicator.name)
        return max(MIN_SCORE, min(MAX_SCORE, base + bonus))

    def compute_pattern_bonus(self, name: str) -> float:
        """Sum of every matching keyword bonus. Matches are independent."""
        return sum(b.bonus for b in self.bonuses if b.matches(name))

    # ── Category level ───────────────────────────────────────────────

    def compute_category_score(self, indicators: Sequence[Indicator]) -> float:
        scores = [self.compute_indicator_score(ind) for ind in indicators]
        return _weighted_mean(indicators, scores)

    def resolve_category_weights(self, category_ids: Sequence[str]) -> dict[str, float]:
        """Weight per category id, filling gaps with an even ``1/n`` share."""
        if not category_ids:
            return {}
        default = 1.0 / len(category_ids)
        return {
            cid: self.category_weights.get(cid, default)
            for cid in category_ids
        }

    # ── Total ────────────────────────────────────────────────────────

    def compute_risk_score(
        self, catalogue: Catalogue, now: Optional[datetime] = None
    ) -> RiskScore:
        """
        Score the whole catalogue.

        Args:
            catalogue: Read-only catalogue snapshot
            now: Snapshot timestamp (defaults to the calculator's clock)

        Returns:
            A new, immutable RiskScore
        """
        weights = self.resolve_category_weights(catalogue.category_ids())
        total_weight = sum(weights.values())

        category_scores: dict[str, float] = {}
        indicator_scores: dict[str, float] = {}
        factors: list[RiskFactor] = []
        weighted_total = 0.0

        for category in catalogue.categories:
            indicators = category.indicators()
            scores = [self.compute_indicator_score(ind) for ind in indicators]
            category_score = _weighted_mean(indicators, scores)
            category_weight = weights[category.id]
            category_scores[category.id] = category_score
            weighted_total += category_score * category_weight

            for indicator, score in zip(indicators, scores):
                indicator_scores[indicator.id] = score
                priority_weight = _priority_weight(indicator)
                contribution = (
                    score * priority_weight * category_weight / total_weight
                    if total_weight > 0 else 0.0
                )
                factors.append(
                    RiskFactor(
                        indicator_id=indicator.id,
                        indicator_name=indicator.name,
                        category=category.name,
                        category_id=category.id,
                        score=score,
                        weight=priority_weight * category_weight,
                        contribution=contribution,
                        description=describe_indicator(indicator, score),
                    )
                )

        total = weighted_total / total_weight if total_weight > 0 else 0.0
        # Kept unrounded: band edges are exact (39.999 is low)
        total = max(MIN_SCORE, min(MAX_SCORE, total))
        risk_level = self.thresholds.classify(total)

        factors.sort(key=lambda f: f.contribution, reverse=True)

        logger.debug(
            "risk_score_computed",
            total_score=total,
            risk_level=risk_level.value,
            n_categories=len(category_scores),
            n_indicators=len(indicator_scores),
        )

        return RiskScore(
            total_score=total,
            category_scores=category_scores,
            indicator_scores=indicator_scores,
            risk_level=risk_level,
            timestamp=now or self.clock.now(),
            factors=factors,
        )


def _priority_weight(indicator: Indicator) -> float:
    return PRIORITY_WEIGHTS.get(indicator.priority, DEFAULT_PRIORITY_WEIGHT)


def _weighted_mean(indicators: Sequence[Indicator], scores: Sequence[float]) -> float:
    """Priority-weighted mean of already computed indicator scores. Empty → 0."""
    weighted_sum = 0.0
    total_weight = 0.0
    for indicator, score in zip(indicators, scores):
        priority_weight = _priority_weight(indicator)
        weighted_sum += score * priority_weight
        total_weight += priority_weight
    return weighted_sum / total_weight if total_weight > 0 else 0.0
