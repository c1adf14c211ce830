from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.common import cache
from app.features.districts.models import District

CACHE_KEY = "districts:public"


class DistrictRepository:
    @staticmethod
    def get(db: Session, district_id: str) -> Optional[District]:
        return db.get(District, district_id)

    @staticmethod
    def list(db: Session) -> List[District]:
        return list(db.execute(select(District).order_by(District.name)).scalars().all())

    @staticmethod
    def list_public(db: Session) -> List[dict]:
        return cache.cached(
            CACHE_KEY,
            lambda: [{"id": d.id, "name": d.name} for d in DistrictRepository.list(db)],
        )

    @staticmethod
    def count(db: Session) -> int:
        return int(db.execute(select(func.count(District.id))).scalar_one())
