# backend/app/schemas/assignments.py

from typing import Optional

from pydantic import Field

from .common import CamelModel


class AssignRoomsRequest(CamelModel):
    branch_slot_id: str
    room_ids: list[str] = Field(default_factory=list)


class AssignStaffRequest(CamelModel):
    branch_slot_id: str
    staff_id: str = Field(alias="userId")
    room_id: Optional[str] = None
    role_label: Optional[str] = Field(default=None, alias="name")


class StaffAssignmentRead(CamelModel):
    branch_slot_id: str
    staff_id: str
    staff_name: Optional[str] = None
    email: Optional[str] = None
    room_id: Optional[str] = None
    room_name: Optional[str] = None
    role_label: Optional[str] = Field(default=None, alias="name")


class RoomAssignmentRead(CamelModel):
    branch_slot_id: str
    room_id: str
    room_name: Optional[str] = None
    facility_name: Optional[str] = None
    capacity: Optional[int] = None
    staff: list[StaffAssignmentRead] = Field(default_factory=list)


class AssignmentGroupRead(CamelModel):
    """One room with its staff; room=None is the bucket of staff without a room."""
    room: Optional[RoomAssignmentRead] = None
    staff: list[StaffAssignmentRead] = Field(default_factory=list)


class SlotAssignmentsRead(CamelModel):
    branch_slot_id: str
    rooms: list[RoomAssignmentRead] = Field(default_factory=list)
    staff: list[StaffAssignmentRead] = Field(default_factory=list)
    groups: list[AssignmentGroupRead] = Field(default_factory=list)
