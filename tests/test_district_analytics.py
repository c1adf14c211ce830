from datetime import datetime, timedelta, timezone

import pytest

from app.common.errors import InvalidInput
from app.features.districts.analytics import SchoolStudent, engagement, is_active, school_performance

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

STUDENTS = [
    SchoolStudent("Oak", 2, (80, 90)),
    SchoolStudent("Oak", 1, (61,)),
    SchoolStudent("Pine", 1, (95,)),
    SchoolStudent("Pine", 0, ()),
    SchoolStudent(None, 3, (100, 100, 100)),
    SchoolStudent("Elm", 1, (None,)),
]


def test_school_averages_skip_students_without_attempts():
    rows = {r.school: r for r in school_performance(STUDENTS)}
    assert rows["Oak"].avg_score == 77
    assert rows["Oak"].student_count == 2
    assert rows["Pine"].avg_score == 95
    assert rows["Pine"].student_count == 1
    assert rows["Elm"].avg_score == 0


def test_sorting_and_search():
    assert [r.school for r in school_performance(STUDENTS)] == ["Pine", "Oak", "Elm"]
    assert [r.school for r in school_performance(STUDENTS, "avgScore", "asc")] == ["Elm", "Oak", "Pine"]
    assert [r.school for r in school_performance(STUDENTS, "school", "asc")] == ["Elm", "Oak", "Pine"]
    assert [r.school for r in school_performance(STUDENTS, "studentCount")][0] == "Oak"
    assert [r.school for r in school_performance(STUDENTS, search="pi")] == ["Pine"]


def test_invalid_sort_rejected():
    with pytest.raises(InvalidInput):
        school_performance(STUDENTS, "name")
    with pytest.raises(InvalidInput):
        school_performance(STUDENTS, order="sideways")


def test_engagement_buckets():
    seen = [NOW - timedelta(hours=2), NOW - timedelta(days=2), NOW - timedelta(days=10), None]
    assert engagement(seen, NOW) == {"highly_active": 1, "moderately_active": 1, "inactive": 2}


def test_is_active_three_day_window():
    assert is_active(NOW - timedelta(days=2, hours=23), NOW) is True
    assert is_active(NOW - timedelta(days=3), NOW) is False
    assert is_active(None, NOW) is False
