from __future__ import annotations

from datetime import date as Date, datetime, time as Time
from typing import Optional

from app.common.schemas import ApiModel


class EventIn(ApiModel):
    title: str
    type: str
    description: str
    location: str
    date: Date
    time: Time
    cta_name: Optional[str] = None
    cta_link: Optional[str] = None


class EventUpdate(ApiModel):
    title: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    date: Optional[Date] = None
    time: Optional[Time] = None
    cta_name: Optional[str] = None
    cta_link: Optional[str] = None


class EventOut(ApiModel):
    id: int
    title: str
    type: str
    description: str
    location: str
    date: datetime
    cta_name: Optional[str] = None
    cta_link: Optional[str] = None
    district_id: Optional[str] = None
    creator_id: Optional[str] = None


class DistrictEventRow(ApiModel):
    id: int
    title: str
    type: str
    date: Date
    participants: int
    status: str


class AdminEventRow(ApiModel):
    id: int
    title: str
    type: str
    date: datetime
    participant_count: int
    cta_name: Optional[str] = None
    cta_link: Optional[str] = None
    district_name: str
    district_count: int


class StudentEventRow(ApiModel):
    id: int
    title: str
    type: str
    date: datetime
    participants: int
    description: str
    location: str
    cta_name: Optional[str] = None
    cta_link: Optional[str] = None
    district: str
    is_upcoming: bool
    is_completed: bool
