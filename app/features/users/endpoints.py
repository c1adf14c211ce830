from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.common.deps import CurrentUser, get_current_user
from app.DB.session import get_db

from .repository import StudentRepository
from .schemas import UserOut

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserOut)
def read_current_user(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = StudentRepository.get(db, current_user.id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "class_level": user.class_level,
        "school": user.school,
        "district_id": user.district_id,
        "district": user.district.name if user.district else None,
        "last_active_at": user.last_active_at,
    }
