# backend/app/schemas/branch_slots.py

import datetime as dt
from typing import Literal, Optional

from pydantic import Field, field_validator

from ..services.time_rules import parse_wire_date
from .common import CamelModel
from .assignments import RoomAssignmentRead, StaffAssignmentRead

SlotStatus = Literal["Available", "Occupied", "Cancelled", "Maintenance"]


def wire_date(value):
    """Accept bare dates and +07:00 / Z timestamps; keep the UTC+7 calendar date."""
    if value is None:
        return None
    if isinstance(value, dt.date) and not isinstance(value, dt.datetime):
        return value
    parsed = parse_wire_date(value)
    if parsed is None:
        raise ValueError("Invalid date")
    return parsed.date()


class BranchSlotCreate(CamelModel):
    branch_id: str
    timeframe_id: Optional[str] = None
    slot_type_id: Optional[str] = None
    week_date: Optional[int] = None
    date: Optional[dt.date] = None
    status: SlotStatus = "Available"
    student_level_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value):
        return wire_date(value)


class BranchSlotUpdate(CamelModel):
    branch_id: Optional[str] = None
    timeframe_id: Optional[str] = None
    slot_type_id: Optional[str] = None
    week_date: Optional[int] = None
    date: Optional[dt.date] = None
    status: Optional[SlotStatus] = None
    student_level_id: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value):
        return wire_date(value)


class BranchSlotRead(CamelModel):
    id: str
    branch_id: str
    timeframe_id: str
    slot_type_id: str
    student_level_id: Optional[str] = None
    week_date: int
    date: Optional[dt.date] = None
    status: SlotStatus

    timeframe_name: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    slot_type_name: Optional[str] = None


class BranchSlotDetail(BranchSlotRead):
    """GET /BranchSlot/{id}: rooms carry their staff, staff is the flat list."""
    rooms: list[RoomAssignmentRead] = Field(default_factory=list)
    staff: list[StaffAssignmentRead] = Field(default_factory=list)

