"""Per-item progress tracking and daily practice counts."""
import logging
import threading
import time
from datetime import date

from hana_vocab.db import PROGRESS_KEY, STREAK_KEY, load, save
from hana_vocab.models import Progress, StreakEntry
from hana_vocab.scheduler import next_review_at, schedule_update

logger = logging.getLogger(__name__)

# Progress and streak updates are read-modify-write on shared keys.
_state_lock = threading.Lock()


def _now_ms() -> int:
    return int(time.time() * 1000)


def get_progress(db_path: str) -> dict[str, Progress]:
    raw = load(db_path, PROGRESS_KEY)
    if not isinstance(raw, dict):
        return {}
    progress = {}
    for item_id, entry in raw.items():
        try:
            progress[item_id] = Progress.from_dict({**entry, "id": item_id})
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed progress entry for %r", item_id)
    return progress


def _save_progress(db_path: str, progress: dict[str, Progress]) -> None:
    save(db_path, PROGRESS_KEY, {item_id: p.to_dict() for item_id, p in progress.items()})


def get_streak(db_path: str) -> list[StreakEntry]:
    raw = load(db_path, STREAK_KEY)
    if not isinstance(raw, list):
        return []
    entries = []
    for entry in raw:
        try:
            entries.append(StreakEntry(date=str(entry["date"]), count=int(entry["count"])))
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed streak entry %r", entry)
    return entries


def _increment_daily_count(db_path: str, today: str) -> int:
    streak = get_streak(db_path)
    for entry in streak:
        if entry.date == today:
            entry.count += 1
            count = entry.count
            break
    else:
        streak.append(StreakEntry(date=today, count=1))
        count = 1
    save(db_path, STREAK_KEY, [{"date": e.date, "count": e.count} for e in streak])
    return count


def increment_daily_count(db_path: str, today: str | None = None) -> int:
    """Bump today's practice counter and return the new count."""
    today = today or date.today().isoformat()
    with _state_lock:
        return _increment_daily_count(db_path, today)


def get_daily_count(db_path: str, day: str) -> int:
    for entry in get_streak(db_path):
        if entry.date == day:
            return entry.count
    return 0


def record_outcome(db_path: str, item_id: str, delta: int, now: int | None = None) -> Progress:
    """Apply one practice outcome to an item and count it toward today's activity.

    Unknown items start fresh. Every call bumps the daily count, whether the
    answer was right or wrong.
    """
    now = _now_ms() if now is None else now
    with _state_lock:
        progress = get_progress(db_path)
        current = progress.get(item_id) or Progress(id=item_id)
        updated = schedule_update(current.mastery, current.interval, delta)
        entry = Progress(
            id=item_id,
            mastery=updated["mastery"],
            last_seen=now,
            next_review=next_review_at(now, updated["interval"]),
            interval=updated["interval"],
        )
        progress[item_id] = entry
        _save_progress(db_path, progress)
        _increment_daily_count(db_path, date.fromtimestamp(now / 1000).isoformat())
    logger.debug(
        "Outcome %+d for %s: mastery %d -> %d, interval %.2f days",
        delta, item_id, current.mastery, entry.mastery, entry.interval,
    )
    return entry


def mastery_bucket(progress: Progress | None) -> str:
    if progress is None or progress.mastery <= 0:
        return "unseen"
    if progress.mastery < 3:
        return "learning"
    if progress.mastery < 5:
        return "proficient"
    return "mastered"
