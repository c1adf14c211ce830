from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from app.features.events.models import Event, EventParticipant


class EventRepository:
    @staticmethod
    def create(db: Session, **fields: Any) -> Event:
        event = Event(**fields)
        db.add(event)
        db.flush()
        return event

    @staticmethod
    def get(db: Session, event_id: int) -> Optional[Event]:
        return db.get(Event, event_id)

    @staticmethod
    def update(db: Session, event: Event, fields: Dict[str, Any]) -> Event:
        for key, value in fields.items():
            setattr(event, key, value)
        db.flush()
        return event

    @staticmethod
    def list(
        db: Session,
        *,
        district_id: Optional[str] = None,
        include_global: bool = False,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        newest_first: bool = False,
    ) -> List[Event]:
        """Events in a window; ``district_id`` None with ``include_global`` False means every event."""
        stmt = select(Event).options(
            selectinload(Event.district),
            selectinload(Event.participants).selectinload(EventParticipant.user),
        )
        if district_id is not None:
            if include_global:
                stmt = stmt.where(or_(Event.district_id == district_id, Event.district_id.is_(None)))
            else:
                stmt = stmt.where(Event.district_id == district_id)
        if start is not None:
            stmt = stmt.where(Event.date >= start)
        if end is not None:
            stmt = stmt.where(Event.date <= end)
        order = Event.date.desc() if newest_first else Event.date.asc()
        return list(db.execute(stmt.order_by(order, Event.id)).scalars().all())

    @staticmethod
    def join(db: Session, event: Event, user_id: str) -> EventParticipant:
        for participant in event.participants:
            if participant.user_id == user_id:
                return participant
        row = EventParticipant(user_id=user_id)
        event.participants.append(row)
        db.flush()
        return row
