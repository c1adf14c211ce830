from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from app.common.schemas import ApiModel


class DistrictOut(ApiModel):
    id: str
    name: str


class MasterStatsOut(ApiModel):
    total_students: int
    total_districts: int
    active_students: int
    course_completed: int
    avg_score: int


class DistrictStatsOut(ApiModel):
    total_students: int
    active_students: int
    completed_level1: int
    course_completed: int


class DistrictPerformanceOut(ApiModel):
    id: str
    name: str
    student_count: int
    enrolled_count: int
    avg_score: int
    completed_count: int
    completion_percentage: int


class StudentRow(ApiModel):
    id: str
    name: str
    school: Optional[str] = None
    district: Optional[str] = None
    class_level: Optional[str] = None
    current_level: str
    progress: str
    score: int
    last_active: Optional[datetime] = None
    status: str


class StudentPage(ApiModel):
    students: List[StudentRow]
    total: int
    total_pages: int
    current_page: int


class SchoolPerformanceOut(ApiModel):
    school: str
    avg_score: int
    student_count: int


class LevelCompletion(ApiModel):
    level: str
    completed: int
    total: int
    percentage: int


class Engagement(ApiModel):
    highly_active: int
    moderately_active: int
    inactive: int


class TopSchool(ApiModel):
    name: str


class AnalyticsOut(ApiModel):
    level_completion_rate: List[LevelCompletion]
    student_engagement: Engagement
    top_performing_school: Optional[TopSchool] = None
