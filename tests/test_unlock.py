from datetime import datetime, timedelta, timezone

from app.features.levels.unlock import ProgressState, days_until, max_unlocked_level, resolve_unlock

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def test_no_schedule_means_unlocked():
    s = resolve_unlock(NOW)
    assert s.is_unlocked is True
    assert s.is_locked is False
    assert s.is_expired is False
    assert s.unlock_message is None
    assert s.validity_message is None


def test_future_schedule_locks_and_counts_days_up():
    s = resolve_unlock(NOW, unlock_at=NOW + timedelta(days=2, hours=1))
    assert s.is_unlocked is False
    assert s.is_locked is True
    assert s.unlock_message == "Unlocks in 3 days"


def test_schedule_reached_exactly_is_unlocked():
    s = resolve_unlock(NOW, unlock_at=NOW)
    assert s.is_unlocked is True
    assert s.is_locked is False


def test_one_millisecond_before_schedule_is_still_locked():
    s = resolve_unlock(NOW - timedelta(milliseconds=1), unlock_at=NOW)
    assert s.is_unlocked is False
    assert s.is_locked is True
    assert s.unlock_message == "Unlocks in 1 days"


def test_first_level_never_locked():
    s = resolve_unlock(NOW, unlock_at=NOW + timedelta(days=5), is_first_level=True)
    assert s.is_unlocked is False
    assert s.is_locked is False
    assert s.unlock_message == "Unlocks in 5 days"


def test_started_or_finished_level_stays_open():
    future = NOW + timedelta(days=5)
    assert resolve_unlock(NOW, unlock_at=future, progress=ProgressState("in_progress")).is_locked is False
    assert resolve_unlock(NOW, unlock_at=future, progress=ProgressState("completed", True)).is_locked is False
    # completed without qualifying does not count as finished
    assert resolve_unlock(NOW, unlock_at=future, progress=ProgressState("completed", False)).is_locked is True


def test_validity_messages():
    assert resolve_unlock(NOW, valid_until=NOW + timedelta(days=3)).validity_message == "Valid for 3 days"
    assert resolve_unlock(NOW, valid_until=NOW + timedelta(hours=2)).validity_message == "Valid for 1 days"
    assert resolve_unlock(NOW, valid_until=NOW).validity_message == "Valid until today"

    expired = resolve_unlock(NOW, valid_until=NOW - timedelta(seconds=1))
    assert expired.is_expired is True
    assert expired.validity_message == "Expired"


def test_naive_datetimes_are_read_as_utc():
    naive_future = (NOW + timedelta(days=1)).replace(tzinfo=None)
    s = resolve_unlock(NOW, unlock_at=naive_future)
    assert s.is_unlocked is False
    assert s.unlock_message == "Unlocks in 1 days"


def test_days_until_rounds_partial_days_up():
    assert days_until(NOW, NOW + timedelta(minutes=1)) == 1
    assert days_until(NOW, NOW + timedelta(days=1)) == 1
    assert days_until(NOW, NOW + timedelta(days=1, seconds=1)) == 2
    assert days_until(NOW, NOW - timedelta(hours=12)) == 0


def test_max_unlocked_level_after_highest_completed():
    rows = [("1", "completed", True), ("2", "completed", True), ("3", "in_progress", False)]
    assert max_unlocked_level(rows) == 3


def test_max_unlocked_level_uses_in_progress_then_floor():
    assert max_unlocked_level([("4", "in_progress", False)]) == 4
    assert max_unlocked_level([]) == 1
    assert max_unlocked_level([("Level 2", "completed", False)]) == 1
    assert max_unlocked_level([("intro", "completed", True)], floor=1) == 1


def test_max_unlocked_level_reads_spelled_levels():
    assert max_unlocked_level([("Level 02", "completed", True)]) == 3
