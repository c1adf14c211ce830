from app.features.progress.aggregation import (
    CourseSnapshot,
    DistrictSnapshot,
    ProgressSnapshot,
    StudentSnapshot,
    aggregate_district_performance,
    aggregate_student_progress,
    count_completed_all_courses_global,
    students_completed_all_courses,
)

COURSES = [
    CourseSnapshot(id="c3", level="3", class_level="6th", title="Three"),
    CourseSnapshot(id="c1", level="1", class_level="6th", title="One", videos_count=2),
    CourseSnapshot(id="c2", level="2", class_level="6th", title="Two"),
]


def test_fresh_student():
    s = aggregate_student_progress(COURSES, [], [])
    assert s.levels_completed == 0
    assert s.total_levels == 3
    assert s.spiritual_progress_percent == 0
    assert s.knowledge_points == 0
    assert s.current_level == "1"
    assert [e.level for e in s.learning_path] == ["1", "2", "3"]
    assert [e.enabled for e in s.learning_path] == [True, False, False]
    assert s.learning_path[0].videos_count == 2


def test_completion_opens_next_level():
    progress = [ProgressSnapshot("c1", "completed", True), ProgressSnapshot("c2", "in_progress")]
    s = aggregate_student_progress(COURSES, progress, [{"score": 80}, {"score": None}, {"score": 45}])
    assert s.levels_completed == 1
    assert s.spiritual_progress_percent == 33
    assert s.knowledge_points == 125
    assert s.current_level == "2"
    by_level = {e.level: e for e in s.learning_path}
    assert by_level["1"].status == "completed"
    assert by_level["2"].status == "in_progress"
    assert by_level["2"].enabled is True
    assert by_level["3"].enabled is False


def test_completed_without_qualifying_is_not_finished():
    s = aggregate_student_progress(COURSES, [ProgressSnapshot("c1", "completed", False)], [])
    assert s.levels_completed == 0
    assert s.learning_path[0].status == "locked"
    assert s.learning_path[0].enabled is True


def test_total_levels_override_and_content_flags():
    s = aggregate_student_progress(
        COURSES,
        [ProgressSnapshot("c1", "completed", True)],
        [],
        content_progress={"c1": True},
        total_levels=4,
    )
    assert s.total_levels == 4
    assert s.spiritual_progress_percent == 25
    assert s.learning_path[0].content_completed is True
    assert s.learning_path[1].content_completed is False


def test_zero_courses_is_zero_percent():
    s = aggregate_student_progress([], [], [])
    assert s.spiritual_progress_percent == 0
    assert s.learning_path == []


def test_courses_from_another_class_do_not_count():
    current = [CourseSnapshot(id="c1", level="1", class_level="7th")]
    progress = [
        ProgressSnapshot("c1", "completed", True),
        ProgressSnapshot("old1", "completed", True),
        ProgressSnapshot("old2", "completed", True),
    ]
    s = aggregate_student_progress(current, progress, [])
    assert s.levels_completed == 1
    assert s.total_levels == 1
    assert s.spiritual_progress_percent == 100


def test_district_performance_against_own_class():
    courses = [
        CourseSnapshot(id="a1", level="1", class_level="6th"),
        CourseSnapshot(id="a2", level="2", class_level="6th"),
        CourseSnapshot(id="b1", level="1", class_level="7th"),
    ]
    north = DistrictSnapshot(
        id="d1",
        name="north",
        students=(
            StudentSnapshot("s1", "6th", attempt_scores=(80, 90), completed_course_ids=frozenset({"a1", "a2"})),
            StudentSnapshot("s2", "7th", attempt_scores=(50,), completed_course_ids=frozenset()),
            StudentSnapshot("s3", "6th"),
        ),
    )
    empty = DistrictSnapshot(id="d2", name="East")
    rows = aggregate_district_performance([north, empty], courses)

    assert [r.name for r in rows] == ["East", "north"]
    east, n = rows
    assert east.to_dict() == {
        "id": "d2",
        "name": "East",
        "student_count": 0,
        "enrolled_count": 0,
        "avg_score": 0,
        "completed_count": 0,
        "completion_percentage": 0,
    }
    assert n.student_count == 3
    assert n.enrolled_count == 2
    assert n.avg_score == 73
    assert n.completed_count == 1
    assert n.completion_percentage == 50


def test_completed_all_courses_uses_global_count():
    counts = {"s1": 3, "s2": 2, "s3": 3}
    assert students_completed_all_courses(counts, 3) == {"s1", "s3"}
    assert count_completed_all_courses_global(counts, 3) == 2
    assert students_completed_all_courses(counts, 0) == set()
