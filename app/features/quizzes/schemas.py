from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field

from app.common.schemas import ApiModel

class SubmitAnswersIn(ApiModel):
    """Answers keyed by question id."""
    answers: Any = None
    started_at: Optional[datetime] = None
    time_spent: Optional[float] = None

class SubmitLevelIn(ApiModel):
    """Answers as a list, quiz addressed by class and level."""
    class_id: str
    level_id: str
    answers: Any = None
    total_questions: Optional[int] = None
    time_spent: Optional[float] = None

class SubmissionOut(ApiModel):
    attempt_id: str
    quiz_id: str
    course_id: str
    class_level: str
    level: str
    score: int
    correct_count: int
    total_questions: int
    passed: bool
    required_percent: int
    credited: bool
    certificate_eligible: bool
    xp_earned: int
    time_spent: int
    submitted_at: datetime
    progress_status: Optional[str] = None
    qualified: bool = False

class PublicQuestion(ApiModel):
    id: str
    question: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str

class RandomQuestionsOut(ApiModel):
    class_level: str
    level: str
    course_id: str
    course_title: str
    total_questions_available: int
    questions_returned: int
    questions: List[PublicQuestion]

class QuizView(ApiModel):
    id: str
    course_id: str
    course_title: Optional[str] = None
    class_level: Optional[str] = None
    num_questions: int
    pass_percentage: Optional[int] = None
    questions: List[PublicQuestion]

class QuestionIn(ApiModel):
    question: str
    option_a: Optional[str] = None
    option_b: Optional[str] = None
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    correct_option: Any = None
    explanation: Optional[str] = None

class QuizCreateIn(ApiModel):
    class_level: str = Field(validation_alias=AliasChoices("class", "classLevel", "class_level"))
    level: str
    questions: List[QuestionIn]
    pass_percentage: Optional[int] = Field(None, ge=0, le=100)

class QuizUpdateIn(ApiModel):
    num_questions: Optional[int] = Field(None, ge=0)
    passing_marks: Optional[int] = Field(
        None, ge=0, le=100, validation_alias=AliasChoices("passingMarks", "passPercentage", "passing_marks")
    )

class QuizOut(ApiModel):
    id: str
    course_id: str
    class_level: Optional[str] = None
    num_questions: int
    pass_percentage: Optional[int] = None
    question_bank_id: str

