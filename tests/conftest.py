import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Ensure repo root on sys.path for imports like `app...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Settings are read once at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.DB.models  # noqa: E402,F401
from app.common import cache  # noqa: E402
from app.common.clock import get_now  # noqa: E402
from app.common.deps import CurrentUser, get_current_user  # noqa: E402
from app.DB.base import Base  # noqa: E402
from app.DB.session import get_db  # noqa: E402
from app.features.districts.models import District  # noqa: E402
from app.features.events.models import Event  # noqa: E402
from app.features.levels.models import Course, CoursePdf, CourseVideo, LevelSchedule, QuizValidity  # noqa: E402
from app.features.progress.models import StudentProgress  # noqa: E402
from app.features.quizzes.models import ExamAttempt, Question, QuestionBank, Quiz  # noqa: E402
from app.features.users.models import DISTRICT_ADMIN, MASTER_ADMIN, STUDENT, User  # noqa: E402
from app.main import app  # noqa: E402

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


class AuthState:
    """Holds the identity the overridden ``get_current_user`` returns."""

    def __init__(self):
        self.user = None

    def login(self, user: User) -> CurrentUser:
        self.user = CurrentUser(
            id=user.id,
            email=user.email,
            role=user.role,
            name=user.name,
            class_level=user.class_level,
            district_id=user.district_id,
            school=user.school,
        )
        return self.user

    def current(self) -> CurrentUser:
        assert self.user is not None, "login() first"
        return self.user


@pytest.fixture()
def auth():
    return AuthState()


@pytest.fixture()
def client(db, auth):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_now] = lambda: NOW
    app.dependency_overrides[get_current_user] = auth.current
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class Seed:
    """Row factories for tests. Every helper commits."""

    def __init__(self, db):
        self.db = db
        self._n = 0

    def _next(self) -> int:
        self._n += 1
        return self._n

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return row

    def district(self, name=None) -> District:
        return self._save(District(name=name or f"District {self._next()}"))

    def user(self, role=STUDENT, name=None, district=None, class_level="6th", school=None, last_active_at=None) -> User:
        n = self._next()
        return self._save(
            User(
                name=name or f"User {n}",
                email=f"user{n}@example.com",
                role=role,
                class_level=class_level if role == STUDENT else None,
                school=school,
                district_id=district.id if district is not None else None,
                last_active_at=last_active_at,
            )
        )

    def student(self, **kwargs) -> User:
        return self.user(role=STUDENT, **kwargs)

    def district_admin(self, district, **kwargs) -> User:
        return self.user(role=DISTRICT_ADMIN, district=district, **kwargs)

    def master_admin(self, **kwargs) -> User:
        return self.user(role=MASTER_ADMIN, **kwargs)

    def course(self, level="1", class_level="6th", title=None) -> Course:
        return self._save(Course(class_level=class_level, level=level, title=title or f"Class {class_level} Level {level}"))

    def video(self, course, title="Intro") -> CourseVideo:
        return self._save(CourseVideo(course_id=course.id, title=title, url="https://videos.example.com/v"))

    def pdf(self, course, title="Notes") -> CoursePdf:
        return self._save(CoursePdf(course_id=course.id, title=title, url="https://files.example.com/n.pdf"))

    def quiz(self, course, n=4, correct="A", pass_percentage=70) -> Quiz:
        bank = QuestionBank(
            questions=[
                Question(
                    question=f"Question {i}",
                    option_a="a",
                    option_b="b",
                    option_c="c",
                    option_d="d",
                    correct_option=correct,
                )
                for i in range(n)
            ]
        )
        self.db.add(bank)
        self.db.flush()
        return self._save(
            Quiz(
                course_id=course.id,
                class_level=course.class_level,
                num_questions=n,
                pass_percentage=pass_percentage,
                question_bank_id=bank.id,
            )
        )

    def schedule(self, class_id, level, unlock_at) -> LevelSchedule:
        return self._save(LevelSchedule(class_id=class_id, level=level, unlock_at=unlock_at))

    def validity(self, class_id, level, valid_until) -> QuizValidity:
        return self._save(QuizValidity(class_id=class_id, level=level, valid_until=valid_until))

    def progress(self, student, course, status="completed", qualified=True) -> StudentProgress:
        return self._save(StudentProgress(student_id=student.id, course_id=course.id, status=status, qualified=qualified))

    def attempt(self, student, quiz, score, passed=None, at=None) -> ExamAttempt:
        at = at or NOW - timedelta(hours=1)
        return self._save(
            ExamAttempt(
                student_id=student.id,
                quiz_id=quiz.id,
                started_at=at - timedelta(minutes=5),
                completed_at=at,
                score=score,
                passed=score >= 70 if passed is None else passed,
            )
        )

    def event(self, title="Gathering", type="festival", when=None, district=None, creator=None) -> Event:
        return self._save(
            Event(
                title=title,
                type=type,
                description="Details",
                location="Hall",
                date=when or NOW + timedelta(days=3),
                district_id=district.id if district is not None else None,
                creator_id=creator.id if creator is not None else None,
            )
        )


@pytest.fixture()
def seed(db):
    return Seed(db)


def answers_for(quiz: Quiz, correct: int) -> dict:
    """Answer the first ``correct`` questions right and the rest wrong."""
    out = {}
    for i, q in enumerate(sorted(quiz.question_bank.questions, key=lambda q: q.id)):
        out[q.id] = q.correct_option if i < correct else ("B" if q.correct_option != "B" else "C")
    return out
