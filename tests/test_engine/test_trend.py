"""
Tests for the Risk Trend Analyzer.

Covers:
- Week-over-week trend classification
- Short and partial histories
- Linear-regression forecast, clamping, confidence bounds
- Input immutability
"""

from datetime import date, timedelta

import pytest
from hypothesis import given, settings, strategies as st

from riskboard.engine.history import InMemoryHistoryProvider
from riskboard.engine.trend import TrendAnalyzer
from riskboard.schemas.scoring import (
    ForecastDirection,
    HistoricalRiskData,
    TrendDirection,
)


def _history(scores: list[float]) -> list[HistoricalRiskData]:
    start = date(2024, 1, 1)
    return [
        HistoricalRiskData(date=(start + timedelta(days=i)).isoformat(), total_score=s)
        for i, s in enumerate(scores)
    ]


@pytest.fixture
def analyzer():
    return TrendAnalyzer()


# ── Trend ──────────────────────────────────────────────────────────────


class TestClassifyTrend:
    def test_empty_history(self, analyzer):
        trend = analyzer.classify_trend([])
        assert trend.trend == TrendDirection.STABLE
        assert trend.change_percent == 0.0
        assert trend.average_score == 0.0

    def test_single_entry(self, analyzer):
        trend = analyzer.classify_trend(_history([80.0]))
        assert trend.trend == TrendDirection.STABLE
        assert trend.change_percent == 0.0

    def test_worsening_at_band_edge(self, analyzer):
        trend = analyzer.classify_trend(_history([40.0] * 7 + [42.0] * 7))
        assert trend.change_percent == 5.0
        assert trend.trend == TrendDirection.WORSENING
        assert trend.average_score == 42.0

    def test_improving(self, analyzer):
        trend = analyzer.classify_trend(_history([60.0] * 7 + [45.0] * 7))
        assert trend.change_percent == -25.0
        assert trend.trend == TrendDirection.IMPROVING

    def test_stable_inside_band(self, analyzer):
        trend = analyzer.classify_trend(_history([50.0] * 7 + [52.0] * 7))
        assert trend.change_percent == 4.0
        assert trend.trend == TrendDirection.STABLE

    def test_change_just_under_band_is_stable(self, analyzer):
        # Raw change 4.996 %; the reported value rounds up to 5.0
        trend = analyzer.classify_trend(_history([100.0] * 7 + [104.996] * 7))
        assert trend.trend == TrendDirection.STABLE
        assert trend.change_percent == 5.0

    def test_drop_just_under_band_is_stable(self, analyzer):
        trend = analyzer.classify_trend(_history([100.0] * 7 + [95.004] * 7))
        assert trend.trend == TrendDirection.STABLE
        assert trend.change_percent == -5.0

    def test_only_last_two_windows_count(self, analyzer):
        history = _history([99.0] * 10 + [40.0] * 7 + [42.0] * 7)
        assert analyzer.classify_trend(history).change_percent == 5.0

    def test_partial_previous_window(self, analyzer):
        # 2 previous days, 7 recent days
        trend = analyzer.classify_trend(_history([50.0, 50.0] + [60.0] * 7))
        assert trend.change_percent == 20.0
        assert trend.trend == TrendDirection.WORSENING

    def test_short_history_has_no_previous_window(self, analyzer):
        trend = analyzer.classify_trend(_history([50.0, 70.0, 90.0]))
        assert trend.change_percent == 0.0
        assert trend.trend == TrendDirection.STABLE
        assert trend.average_score == 70.0

    def test_previous_window_of_zeros(self, analyzer):
        trend = analyzer.classify_trend(_history([0.0] * 7 + [30.0] * 7))
        assert trend.change_percent == 0.0
        assert trend.trend == TrendDirection.STABLE

    def test_custom_window(self):
        analyzer = TrendAnalyzer(window_days=3)
        trend = analyzer.classify_trend(_history([50.0] * 3 + [60.0] * 3))
        assert trend.change_percent == 20.0

    def test_window_must_be_at_least_two(self):
        with pytest.raises(ValueError):
            TrendAnalyzer(window_days=1)


# ── Forecast ───────────────────────────────────────────────────────────


class TestForecast:
    def test_insufficient_history(self, analyzer):
        forecast = analyzer.forecast(_history([10.0] * 6))
        assert forecast.predicted_score == 50.0
        assert forecast.confidence == 0.5
        assert forecast.direction == ForecastDirection.STABLE

    def test_linear_series_one_day_ahead(self, analyzer):
        forecast = analyzer.forecast(_history([10, 20, 30, 40, 50, 60, 70]), horizon_days=1)
        assert forecast.slope == pytest.approx(10.0)
        assert forecast.predicted_score == pytest.approx(80.0)
        assert forecast.direction == ForecastDirection.UP
        # Variance 400: confidence floors at 0.1
        assert forecast.confidence == 0.1

    def test_prediction_clamped_to_100(self, analyzer):
        forecast = analyzer.forecast(_history([10, 20, 30, 40, 50, 60, 70]), horizon_days=7)
        assert forecast.predicted_score == 100.0

    def test_prediction_clamped_to_zero(self, analyzer):
        forecast = analyzer.forecast(_history([70, 60, 50, 40, 30, 20, 10]), horizon_days=7)
        assert forecast.predicted_score == 0.0
        assert forecast.direction == ForecastDirection.DOWN

    def test_flat_series(self, analyzer):
        forecast = analyzer.forecast(_history([55.0] * 7))
        assert forecast.predicted_score == 55.0
        assert forecast.slope == 0.0
        assert forecast.direction == ForecastDirection.STABLE
        assert forecast.confidence == 0.9

    def test_shallow_slope_is_stable(self, analyzer):
        scores = [50.0 + 0.05 * i for i in range(7)]
        forecast = analyzer.forecast(_history(scores))
        assert forecast.direction == ForecastDirection.STABLE

    def test_uses_last_window_only(self, analyzer):
        forecast = analyzer.forecast(_history([0.0] * 20 + [55.0] * 7), horizon_days=1)
        assert forecast.predicted_score == 55.0

    def test_horizon_must_be_positive(self, analyzer):
        with pytest.raises(ValueError):
            analyzer.forecast(_history([50.0] * 7), horizon_days=0)

    def test_does_not_mutate_history(self, analyzer):
        history = _history([10, 20, 30, 40, 50, 60, 70])
        snapshot = list(history)
        analyzer.forecast(history)
        analyzer.classify_trend(history)
        assert history == snapshot

    @given(scores=st.lists(st.floats(min_value=0, max_value=100), min_size=7, max_size=30))
    @settings(max_examples=50)
    def test_forecast_bounds(self, scores):
        forecast = TrendAnalyzer().forecast(_history(scores), horizon_days=3)
        assert 0.0 <= forecast.predicted_score <= 100.0
        assert 0.1 <= forecast.confidence <= 0.9


# ── History provider ───────────────────────────────────────────────────


class TestInMemoryHistory:
    def test_sorted_by_date(self):
        entries = _history([1.0, 2.0, 3.0])
        provider = InMemoryHistoryProvider(reversed(entries))
        assert [e.total_score for e in provider.load_history()] == [1.0, 2.0, 3.0]

    def test_append_replaces_same_day(self):
        provider = InMemoryHistoryProvider(_history([1.0, 2.0]))
        provider.append(HistoricalRiskData(date="2024-01-02", total_score=9.0))
        assert [e.total_score for e in provider.load_history()] == [1.0, 9.0]
