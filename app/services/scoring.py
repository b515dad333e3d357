"""Decision quality tiers, auto-fail threshold and performance tiers."""
from app.schemas.summary import DecisionQuality, Performance

# Decision quality by score delta: >= 15 good; 1..14 risky; <= 0 bad
GOOD_THRESHOLD = 15
RISKY_THRESHOLD = 1

# A run fails once this many bad decisions accumulate
MAX_BAD_DECISIONS = 3

# (minimum final score, tier), checked top-down
PERFORMANCE_BANDS = [
    (100, Performance.EXCELLENT),
    (50, Performance.GOOD),
    (0, Performance.AVERAGE),
]


def evaluate_decision(xp_change: int) -> DecisionQuality:
    """Return the quality tier for a score delta."""
    if xp_change >= GOOD_THRESHOLD:
        return DecisionQuality.GOOD
    if xp_change >= RISKY_THRESHOLD:
        return DecisionQuality.RISKY
    return DecisionQuality.BAD


def is_bad_decision(xp_change: int) -> bool:
    return evaluate_decision(xp_change) is DecisionQuality.BAD


def has_failed(bad_decision_count: int) -> bool:
    return bad_decision_count >= MAX_BAD_DECISIONS


def compute_performance(score: int) -> Performance:
    """Return performance tier from final score."""
    for minimum, tier in PERFORMANCE_BANDS:
        if score >= minimum:
            return tier
    return Performance.POOR
