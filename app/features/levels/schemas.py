from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import AliasChoices, Field, field_validator

from app.common.schemas import ApiModel

T = TypeVar("T")


class Envelope(ApiModel, Generic[T]):
    success: bool = True
    data: T


# Schedules / validity

class ScheduleIn(ApiModel):
    class_id: str
    level: str
    unlock_date: date
    unlock_time: time = time(0, 0)


class ScheduleOut(ApiModel):
    id: str
    class_id: str
    level: str
    unlock_at: datetime


class ValidityIn(ApiModel):
    class_id: str
    level: str
    valid_until_date: date
    valid_until_time: time = time(23, 59)


class ValidityOut(ApiModel):
    id: str
    class_id: str
    level: str
    valid_until: datetime


# Catalogue

class VideoIn(ApiModel):
    class_level: str = Field(validation_alias=AliasChoices("class", "classLevel", "class_level"))
    level: str
    title: str
    iframe_snippet: Optional[str] = None
    url: Optional[str] = None
    youtube_id: Optional[str] = None
    thumbnail: Optional[str] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()


class VideoUpdate(ApiModel):
    title: Optional[str] = None
    url: Optional[str] = None
    iframe_snippet: Optional[str] = None


class NoteIn(ApiModel):
    class_level: str = Field(validation_alias=AliasChoices("class", "classLevel", "class_level"))
    level: str
    title: str
    url: str


class NoteUpdate(ApiModel):
    title: Optional[str] = None
    url: Optional[str] = None


class CourseTitleIn(ApiModel):
    class_level: str = Field(validation_alias=AliasChoices("class", "classLevel", "class_level"))
    level: str
    title: str


class CourseLevelsIn(ApiModel):
    class_id: str
    levels: List[str]


class VideoOut(ApiModel):
    id: str
    title: str
    url: Optional[str] = None
    youtube_id: Optional[str] = None
    thumbnail: Optional[str] = None
    iframe_snippet: Optional[str] = None


class PdfOut(ApiModel):
    id: str
    title: str
    url: str


class CourseOut(ApiModel):
    id: str
    class_level: str
    level: str
    title: str
    description: Optional[str] = None


class CourseStatusOut(CourseOut):
    """One level of the student's class with unlock state."""
    videos_count: int = 0
    notes_count: int = 0
    questions_count: int = 0
    status: str
    enabled: bool
    is_unlocked: bool
    is_expired: bool
    is_locked: bool
    unlock_message: Optional[str] = None
    validity_message: Optional[str] = None
    unlock_at: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class EducationOption(ApiModel):
    label: str
    value: str
    classes: List[str]


class CourseLevelsOut(ApiModel):
    education_options: List[EducationOption]
    class_levels: Dict[str, List[str]]
    available_classes: List[str]


class CompletionMessageIn(ApiModel):
    class_id: str
    level_id: str
    message: str


class CompletionMessageOut(ApiModel):
    id: str
    class_id: str
    level_id: str
    message: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
