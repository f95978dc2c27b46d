"""Mastery and review-interval scheduling."""

MAX_MASTERY = 5
MIN_INTERVAL = 1.0
DAY_MS = 24 * 60 * 60 * 1000


def schedule_update(mastery: int, interval: float, delta: int) -> dict:
    """Calculate the next mastery level and review interval for one outcome.

    Args:
        mastery: Current mastery, 0-5
        interval: Current interval in days
        delta: +1 for a correct answer, -1 for a miss, 0 for seen-but-unscored

    Returns:
        Dict with updated mastery and interval.
    """
    new_mastery = min(MAX_MASTERY, max(0, mastery + delta))

    if delta > 0:
        new_interval = interval * 2
    elif delta == 0:
        # No caller records neutral outcomes yet.
        new_interval = interval * 1.2
    else:
        new_interval = MIN_INTERVAL

    return {
        "mastery": new_mastery,
        "interval": new_interval,
    }


def next_review_at(now_ms: int, interval: float) -> int:
    # Whole milliseconds: within 1 ms of interval * DAY_MS for fractional intervals.
    return now_ms + round(interval * DAY_MS)
