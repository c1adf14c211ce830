from datetime import datetime, timedelta, timezone

import pytest

from app.common.errors import InvalidInput, NotFound
from app.features.notifications.targeting import DISTRICT_TARGETS, TargetStudent, resolve_targets

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

STUDENTS = [
    TargetStudent("s1", district_id="d1", school="Oak", levels=frozenset({"1", "2"}), last_active_at=NOW - timedelta(hours=1)),
    TargetStudent("s2", district_id="d1", school="Pine", levels=frozenset({"1"}), last_active_at=NOW - timedelta(days=5)),
    TargetStudent("s3", district_id="d2", school="Oak", levels=frozenset(), last_active_at=None),
]


def test_all_students():
    assert resolve_targets(STUDENTS, "all_students") == ["s1", "s2", "s3"]


def test_level_value_is_normalized():
    assert resolve_targets(STUDENTS, "BY_LEVEL", "Level 2") == ["s1"]
    assert resolve_targets(STUDENTS, "LEVEL", "1", allowed=DISTRICT_TARGETS) == ["s1", "s2"]


def test_school_and_district():
    assert resolve_targets(STUDENTS, "SCHOOL", "Oak", allowed=DISTRICT_TARGETS) == ["s1", "s3"]
    assert resolve_targets(STUDENTS, "BY_DISTRICT", "d2") == ["s3"]


def test_activity_targets():
    assert resolve_targets(STUDENTS, "ACTIVE", now=NOW) == ["s1"]
    assert resolve_targets(STUDENTS, "INACTIVE", now=NOW) == ["s2", "s3"]
    with pytest.raises(InvalidInput):
        resolve_targets(STUDENTS, "ACTIVE")


def test_completed_all_courses():
    assert resolve_targets(STUDENTS, "COMPLETED_ALL_COURSES", completed_all_ids={"s2"}) == ["s2"]


def test_district_admin_cannot_use_global_types():
    with pytest.raises(InvalidInput, match="Invalid target type"):
        resolve_targets(STUDENTS, "ALL_STUDENTS", allowed=DISTRICT_TARGETS)


def test_missing_value():
    with pytest.raises(InvalidInput, match="School value is required"):
        resolve_targets(STUDENTS, "SCHOOL", "  ", allowed=DISTRICT_TARGETS)
    with pytest.raises(InvalidInput, match="District ID is required"):
        resolve_targets(STUDENTS, "BY_DISTRICT")


def test_nobody_matches():
    with pytest.raises(NotFound):
        resolve_targets(STUDENTS, "BY_LEVEL", "9")
    with pytest.raises(NotFound):
        resolve_targets([], "ALL_STUDENTS")
