from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import EmailStr

from app.common.schemas import ApiModel


class UserOut(ApiModel):
    id: str
    name: str
    email: EmailStr
    role: str
    class_level: Optional[str] = None
    school: Optional[str] = None
    district_id: Optional[str] = None
    district: Optional[str] = None
    last_active_at: Optional[datetime] = None
