from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.common.deps import CurrentUser
from app.common.errors import Forbidden, InvalidInput, NotFound
from app.common.utils import ensure_utc
from app.Core.config import get_settings
from app.features.events.models import EVENT_TYPES, Event
from app.features.events.repository import EventRepository
from app.features.events.schemas import EventIn, EventUpdate
from app.features.levels.service import combine_utc

logger = logging.getLogger("events.service")


def validate_event_type(value: str) -> str:
    if value not in EVENT_TYPES:
        raise InvalidInput(f"Invalid event type. Must be one of: {', '.join(EVENT_TYPES)}")
    return value


def _update_fields(payload: EventUpdate, event: Event) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for name in ("title", "description", "location"):
        value = getattr(payload, name)
        if value:
            fields[name] = value
    if payload.type:
        fields["type"] = validate_event_type(payload.type)
    if payload.date is not None and payload.time is not None:
        fields["date"] = combine_utc(payload.date, payload.time)
    elif payload.date is not None or payload.time is not None:
        current = ensure_utc(event.date)
        fields["date"] = combine_utc(payload.date or current.date(), payload.time or current.time())
    # CTA fields may be cleared with an explicit null
    for name in ("cta_name", "cta_link"):
        if name in payload.model_fields_set:
            fields[name] = getattr(payload, name)
    return fields


def _student_row(event: Event, now: datetime) -> Dict[str, Any]:
    when = ensure_utc(event.date)
    return {
        "id": event.id,
        "title": event.title,
        "type": event.type,
        "date": when,
        "participants": len(event.participants),
        "description": event.description,
        "location": event.location,
        "cta_name": event.cta_name,
        "cta_link": event.cta_link,
        "district": event.district.name if event.district else "Global",
        "is_upcoming": when > now,
        "is_completed": when < now,
    }


class EventService:
    @staticmethod
    def create(db: Session, user: CurrentUser, payload: EventIn, district_id: Optional[str] = None) -> Event:
        """District event when ``district_id`` is given, otherwise a global one."""
        event = EventRepository.create(
            db,
            title=payload.title,
            type=validate_event_type(payload.type),
            description=payload.description,
            location=payload.location,
            date=combine_utc(payload.date, payload.time),
            cta_name=payload.cta_name,
            cta_link=payload.cta_link,
            creator_id=user.id,
            district_id=district_id,
        )
        db.commit()
        logger.info("event_created id=%s district=%s creator=%s", event.id, district_id, user.id)
        return event

    @staticmethod
    def update(
        db: Session,
        event_id: int,
        payload: EventUpdate,
        district_id: Optional[str] = None,
    ) -> Event:
        """Partial update; with ``district_id`` the event must belong to that district."""
        event = EventRepository.get(db, event_id)
        if event is None:
            raise NotFound("Event not found.")
        if district_id is not None and event.district_id != district_id:
            raise Forbidden("You can only edit events in your own district.")
        EventRepository.update(db, event, _update_fields(payload, event))
        db.commit()
        return event

    @staticmethod
    def district_events(db: Session, district_id: str, now: datetime) -> List[Dict[str, Any]]:
        start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        rows = []
        for event in EventRepository.list(db, district_id=district_id, start=start_of_today):
            when = ensure_utc(event.date)
            rows.append(
                {
                    "id": event.id,
                    "title": event.title,
                    "type": event.type,
                    "date": when.date(),
                    "participants": len(event.participants),
                    "status": "Active" if when > now else "Past",
                }
            )
        return rows

    @staticmethod
    def all_events(db: Session) -> List[Dict[str, Any]]:
        rows = []
        for event in EventRepository.list(db, newest_first=True):
            if event.district is not None:
                district_name, district_count = event.district.name, 1
            else:
                districts = {p.user.district_id for p in event.participants if p.user and p.user.district_id}
                district_name, district_count = "Global", len(districts)
            rows.append(
                {
                    "id": event.id,
                    "title": event.title,
                    "type": event.type,
                    "date": ensure_utc(event.date),
                    "participant_count": len(event.participants),
                    "cta_name": event.cta_name,
                    "cta_link": event.cta_link,
                    "district_name": district_name,
                    "district_count": district_count,
                }
            )
        return rows

    @staticmethod
    def student_upcoming(db: Session, user: CurrentUser, now: datetime) -> List[Dict[str, Any]]:
        horizon = now + timedelta(days=get_settings().upcoming_event_days)
        events = EventRepository.list(db, district_id=user.district_id, include_global=True, start=now, end=horizon)
        return [_student_row(e, now) for e in events]

    @staticmethod
    def student_all(db: Session, user: CurrentUser, now: datetime) -> List[Dict[str, Any]]:
        events = EventRepository.list(db, district_id=user.district_id, include_global=True, newest_first=True)
        return [_student_row(e, now) for e in events]

    @staticmethod
    def join(db: Session, user: CurrentUser, event_id: int) -> Dict[str, Any]:
        event = EventRepository.get(db, event_id)
        if event is None:
            raise NotFound("Event not found.")
        if event.district_id is not None and event.district_id != user.district_id:
            raise Forbidden("This event belongs to another district.")
        EventRepository.join(db, event, user.id)
        db.commit()
        return {"message": "Joined event.", "data": {"eventId": event.id, "participants": len(event.participants)}}
