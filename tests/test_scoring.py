"""Tests for decision quality and performance tiers."""
import pytest

from app.schemas.summary import DecisionQuality, Performance
from app.services.scoring import MAX_BAD_DECISIONS, compute_performance, evaluate_decision, has_failed, is_bad_decision


@pytest.mark.parametrize(
    "delta, expected",
    [
        (100, DecisionQuality.GOOD),
        (15, DecisionQuality.GOOD),
        (14, DecisionQuality.RISKY),
        (1, DecisionQuality.RISKY),
        (0, DecisionQuality.BAD),
        (-1, DecisionQuality.BAD),
        (-500, DecisionQuality.BAD),
    ],
)
def test_evaluate_decision_thresholds(delta, expected):
    assert evaluate_decision(delta) is expected


def test_is_bad_decision_matches_bad_tier():
    assert is_bad_decision(0)
    assert not is_bad_decision(1)


def test_has_failed_fires_at_three():
    assert MAX_BAD_DECISIONS == 3
    assert not has_failed(2)
    assert has_failed(3)
    assert has_failed(4)


@pytest.mark.parametrize(
    "score, expected",
    [
        (250, Performance.EXCELLENT),
        (100, Performance.EXCELLENT),
        (99, Performance.GOOD),
        (50, Performance.GOOD),
        (49, Performance.AVERAGE),
        (0, Performance.AVERAGE),
        (-1, Performance.POOR),
    ],
)
def test_compute_performance_boundaries(score, expected):
    assert compute_performance(score) is expected
