"""District and platform dashboards for administrators."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.common.clock import get_now
from app.common.deps import CurrentUser, require_district_admin, require_master_admin
from app.DB.session import get_db

from .repository import DistrictRepository
from .schemas import (
    AnalyticsOut,
    DistrictOut,
    DistrictPerformanceOut,
    DistrictStatsOut,
    MasterStatsOut,
    SchoolPerformanceOut,
    StudentPage,
)
from .service import DistrictService


router = APIRouter(prefix="/districts", tags=["Districts"])
master_router = APIRouter(prefix="/master-admin", tags=["Master Admin: Dashboard"])
district_router = APIRouter(prefix="/district-admin", tags=["District Admin: Dashboard"])


def _district_of(user: CurrentUser) -> str:
    if not user.district_id:
        raise HTTPException(status_code=403, detail="Admin user is not associated with a district.")
    return user.district_id


@router.get("", response_model=List[DistrictOut])
def list_districts(db: Session = Depends(get_db)):
    return DistrictRepository.list_public(db)


# ------------------------
# Master admin
# ------------------------
@master_router.get("/stats", response_model=MasterStatsOut)
def master_stats(
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return DistrictService.master_stats(db, now)


@master_router.get("/district-performance", response_model=List[DistrictPerformanceOut])
def district_performance(
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
):
    return DistrictService.district_performance(db)


@master_router.get("/students", response_model=StudentPage)
def all_students(
    search: Optional[str] = Query(None),
    level: Optional[str] = Query(None),
    district_id: Optional[str] = Query(None, alias="districtId"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    current_user: CurrentUser = Depends(require_master_admin()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return DistrictService.all_students(db, now, search, level, district_id, page, page_size)


# ------------------------
# District admin
# ------------------------
@district_router.get("/stats", response_model=DistrictStatsOut)
def district_stats(
    current_user: CurrentUser = Depends(require_district_admin()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return DistrictService.district_stats(db, _district_of(current_user), now)


@district_router.get("/students", response_model=StudentPage)
def district_students(
    search: Optional[str] = Query(None),
    level: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    current_user: CurrentUser = Depends(require_district_admin()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return DistrictService.district_students(db, _district_of(current_user), now, search, level, page, page_size)


@district_router.get("/analytics", response_model=AnalyticsOut)
def district_analytics(
    current_user: CurrentUser = Depends(require_district_admin()),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    return DistrictService.analytics(db, _district_of(current_user), now)


@district_router.get("/school-performance", response_model=List[SchoolPerformanceOut])
def school_performance(
    sort_by: str = Query("avgScore", alias="sortBy"),
    order: str = Query("desc"),
    search: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(require_district_admin()),
    db: Session = Depends(get_db),
):
    return DistrictService.school_performance(db, _district_of(current_user), sort_by, order, search)


@district_router.get("/schools", response_model=List[str])
def district_schools(
    current_user: CurrentUser = Depends(require_district_admin()),
    db: Session = Depends(get_db),
):
    return DistrictService.schools(db, _district_of(current_user))
