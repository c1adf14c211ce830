"""Roll-ups over a student's (or a cohort's) progress snapshots.

Nothing here touches the database: services load rows, turn them into the
small snapshot records below and hand them over.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from app.common.utils import round_half_up, safe_percent
from app.features.levels.normalization import level_number, level_sort_key
from app.features.levels.unlock import max_unlocked_level
from app.features.progress.models import COMPLETED, IN_PROGRESS, LOCKED
from app.features.progress.transitions import is_finished


@dataclass(frozen=True)
class CourseSnapshot:
    id: str
    level: str
    class_level: Optional[str] = None
    title: str = ""
    videos_count: int = 0
    notes_count: int = 0
    questions_count: int = 0


@dataclass(frozen=True)
class ProgressSnapshot:
    course_id: str
    status: str
    qualified: bool = False


@dataclass
class LearningPathEntry:
    course_id: str
    level: str
    title: str
    status: str
    enabled: bool
    videos_count: int = 0
    notes_count: int = 0
    questions_count: int = 0
    content_completed: Optional[bool] = None


@dataclass
class StudentProgressSummary:
    levels_completed: int
    total_levels: int
    spiritual_progress_percent: int
    knowledge_points: int
    current_level: str
    learning_path: List[LearningPathEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _score_of(attempt: Any) -> Optional[int]:
    if isinstance(attempt, Mapping):
        return attempt.get("score")
    return getattr(attempt, "score", None)


def aggregate_student_progress(
    courses: Sequence[CourseSnapshot],
    progress: Iterable[ProgressSnapshot],
    exam_attempts: Iterable[Any],
    content_progress: Optional[Mapping[str, bool]] = None,
    total_levels: Optional[int] = None,
    default_level: str = "1",
) -> StudentProgressSummary:
    by_course = {p.course_id: p for p in progress}
    course_by_id = {c.id: c for c in courses}

    finished = [p for p in by_course.values() if is_finished(p.status, p.qualified)]
    if total_levels is None:
        # numerator and denominator range over the same courses
        levels_completed = sum(1 for p in finished if p.course_id in course_by_id)
        total = len(courses)
    else:
        levels_completed = len(finished)
        total = total_levels
    percent = safe_percent(levels_completed, total)

    knowledge_points = sum(s for s in (_score_of(a) for a in exam_attempts) if s is not None)

    in_progress_levels = [
        course_by_id[p.course_id].level
        for p in by_course.values()
        if p.status == IN_PROGRESS and p.course_id in course_by_id
    ]
    current_level = min(in_progress_levels, key=level_sort_key) if in_progress_levels else default_level

    floor = level_number(default_level) or 1
    open_up_to = max_unlocked_level(
        (
            (course_by_id[p.course_id].level, p.status, p.qualified)
            for p in by_course.values()
            if p.course_id in course_by_id
        ),
        floor=floor,
    )

    path: List[LearningPathEntry] = []
    for course in sorted(courses, key=lambda c: level_sort_key(c.level)):
        row = by_course.get(course.id)
        if row is not None and is_finished(row.status, row.qualified):
            status = COMPLETED
        elif row is not None and row.status == IN_PROGRESS:
            status = IN_PROGRESS
        else:
            status = LOCKED
        num = level_number(course.level)
        enabled = status != LOCKED or (num is not None and num == open_up_to)
        path.append(
            LearningPathEntry(
                course_id=course.id,
                level=course.level,
                title=course.title,
                status=status,
                enabled=enabled,
                videos_count=course.videos_count,
                notes_count=course.notes_count,
                questions_count=course.questions_count,
                content_completed=None if content_progress is None else bool(content_progress.get(course.id)),
            )
        )

    return StudentProgressSummary(
        levels_completed=levels_completed,
        total_levels=total,
        spiritual_progress_percent=percent,
        knowledge_points=knowledge_points,
        current_level=current_level,
        learning_path=path,
    )


# Cohorts


@dataclass(frozen=True)
class StudentSnapshot:
    id: str
    class_level: Optional[str]
    attempt_scores: Sequence[Optional[int]] = ()
    completed_course_ids: frozenset = frozenset()


@dataclass(frozen=True)
class DistrictSnapshot:
    id: str
    name: str
    students: Sequence[StudentSnapshot] = ()


@dataclass
class DistrictPerformance:
    id: str
    name: str
    student_count: int
    enrolled_count: int
    avg_score: int
    completed_count: int
    completion_percentage: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def courses_by_class(courses: Iterable[CourseSnapshot]) -> Dict[str, Set[str]]:
    grouped: Dict[str, Set[str]] = {}
    for course in courses:
        if course.class_level:
            grouped.setdefault(course.class_level, set()).add(course.id)
    return grouped


def completed_own_class(student: StudentSnapshot, required: Mapping[str, Set[str]]) -> bool:
    """True when the student finished every course of their own class level."""
    if not student.class_level or student.class_level not in required:
        return False
    return required[student.class_level] <= set(student.completed_course_ids)


def aggregate_district_performance(
    districts: Iterable[DistrictSnapshot],
    courses: Iterable[CourseSnapshot],
) -> List[DistrictPerformance]:
    """Per-district completion measured against each student's own class."""
    required = courses_by_class(courses)
    out: List[DistrictPerformance] = []
    for district in districts:
        students = list(district.students)
        total_score = 0
        attempt_count = 0
        enrolled = 0
        completed = 0
        for student in students:
            scores = [s for s in student.attempt_scores if s is not None]
            total_score += sum(scores)
            attempt_count += len(scores)
            if scores or student.completed_course_ids:
                enrolled += 1
            if completed_own_class(student, required):
                completed += 1
        out.append(
            DistrictPerformance(
                id=district.id,
                name=district.name,
                student_count=len(students),
                enrolled_count=enrolled,
                avg_score=round_half_up(total_score / attempt_count) if attempt_count else 0,
                completed_count=completed,
                completion_percentage=safe_percent(completed, enrolled),
            )
        )
    out.sort(key=lambda d: d.name.lower())
    return out


def students_completed_all_courses(
    completed_by_student: Mapping[str, int],
    total_course_count: int,
) -> Set[str]:
    """Students whose completed+qualified count equals the system-wide course count.

    Used by the admin dashboards and announcements. Differs from
    :func:`aggregate_district_performance`, which only requires the courses
    of the student's own class.
    """
    if total_course_count <= 0:
        return set()
    return {sid for sid, count in completed_by_student.items() if count == total_course_count}


def count_completed_all_courses_global(
    completed_by_student: Mapping[str, int],
    total_course_count: int,
) -> int:
    return len(students_completed_all_courses(completed_by_student, total_course_count))
