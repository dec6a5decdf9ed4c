# backend/app/schemas/references.py

from typing import Optional

from .common import CamelModel


class TimeframeRead(CamelModel):
    id: str
    name: str
    start_time: str
    end_time: str
    description: Optional[str] = None


class SlotTypeRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None


class StudentLevelRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None


class RoomRead(CamelModel):
    id: str
    branch_id: str
    name: str
    facility_name: Optional[str] = None
    capacity: Optional[int] = None


class StaffRead(CamelModel):
    id: str
    branch_id: str
    full_name: str
    email: Optional[str] = None
