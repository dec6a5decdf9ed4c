# backend/app/routers/branch_slots.py
# DELETE = soft-delete (is_active) unless ?hard=true
# Static paths (/paged, /assign-*, /available-for-student) go before /{id}

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.assignments import (
    AssignRoomsRequest,
    AssignStaffRequest,
    RoomAssignmentRead,
    SlotAssignmentsRead,
)
from ..schemas.branch_slots import (
    BranchSlotCreate,
    BranchSlotDetail,
    BranchSlotRead,
    BranchSlotUpdate,
    SlotStatus,
)
from ..schemas.common import Page
from ..services.slots import assignments, availability, registry

router = APIRouter(prefix="/BranchSlot", tags=["branch_slots"])


def _page(schema, result, convert=lambda item: item):
    return Page[schema].build(
        items=[convert(item) for item in result.items],
        page_index=result.page_index,
        page_size=result.page_size,
        total_count=result.total_count,
    )


# ---------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------

@router.get("/paged", response_model=Page[BranchSlotRead])
def list_branch_slots(
    page_index: int = Query(1, alias="pageIndex", ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    branch_id: Optional[str] = Query(None, alias="branchId"),
    slot_status: Optional[SlotStatus] = Query(None, alias="status"),
    week_date: Optional[int] = Query(None, alias="weekDate", ge=0, le=6),
    timeframe_id: Optional[str] = Query(None, alias="timeframeId"),
    slot_type_id: Optional[str] = Query(None, alias="slotTypeId"),
    target_date: Optional[str] = Query(None, alias="date"),
    db: Session = Depends(get_db),
):
    result = registry.list_paged(
        db,
        filters={
            "branch_id": branch_id,
            "status": slot_status,
            "week_date": week_date,
            "timeframe_id": timeframe_id,
            "slot_type_id": slot_type_id,
            "date": target_date,
        },
        page_index=page_index,
        page_size=page_size,
    )
    return _page(BranchSlotRead, result, registry.slot_to_dict)


@router.get(
    "/available-for-student/{student_id}",
    response_model=Page[BranchSlotRead],
)
def list_available_for_student(
    student_id: str,
    page_index: int = Query(1, alias="pageIndex", ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    target_date: Optional[str] = Query(None, alias="date"),
    db: Session = Depends(get_db),
):
    result = availability.available_slots_for_student(
        db,
        student_id,
        target_date=target_date,
        page_index=page_index,
        page_size=page_size,
    )
    return _page(BranchSlotRead, result, registry.slot_to_dict)


# ---------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------

@router.post("/assign-rooms", response_model=SlotAssignmentsRead)
def assign_rooms(data: AssignRoomsRequest, db: Session = Depends(get_db)):
    assignments.assign_rooms(db, data.branch_slot_id, data.room_ids)
    return assignments.list_assignments(db, data.branch_slot_id).to_dict()


@router.post("/assign-staff", response_model=SlotAssignmentsRead)
def assign_staff(data: AssignStaffRequest, db: Session = Depends(get_db)):
    assignments.assign_staff(
        db,
        data.branch_slot_id,
        data.staff_id,
        room_id=data.room_id,
        role_label=data.role_label,
    )
    return assignments.list_assignments(db, data.branch_slot_id).to_dict()


# ---------------------------------------------------------------------
# Base CRUD
# ---------------------------------------------------------------------

@router.post("", response_model=BranchSlotRead, status_code=status.HTTP_201_CREATED)
def create_branch_slot(data: BranchSlotCreate, db: Session = Depends(get_db)):
    obj = registry.create(db, **data.model_dump())
    return registry.slot_to_dict(obj)


@router.get("/{id}", response_model=BranchSlotDetail)
def get_branch_slot(id: str, db: Session = Depends(get_db)):
    obj = registry.get_by_id(db, id)
    view = assignments.list_assignments(db, id).to_dict()
    return {
        **registry.slot_to_dict(obj),
        "rooms": view["rooms"],
        "staff": view["staff"],
    }


@router.put("/{id}", response_model=BranchSlotRead)
def update_branch_slot(id: str, data: BranchSlotUpdate, db: Session = Depends(get_db)):
    obj = registry.update(db, id, data.model_dump(exclude_unset=True))
    return registry.slot_to_dict(obj)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_branch_slot(id: str, hard: bool = False, db: Session = Depends(get_db)):
    registry.delete(db, id, hard=hard)


# ---------------------------------------------------------------------
# Domain: BranchSlot → Rooms / Staff
# ---------------------------------------------------------------------

@router.get("/{id}/assignments", response_model=SlotAssignmentsRead)
def list_slot_assignments(id: str, db: Session = Depends(get_db)):
    return assignments.list_assignments(db, id).to_dict()


@router.get("/{id}/rooms", response_model=Page[RoomAssignmentRead])
def list_slot_rooms(
    id: str,
    page_index: Optional[int] = Query(None, alias="pageIndex", ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1),
    db: Session = Depends(get_db),
):
    result = assignments.list_rooms(db, id, page_index, page_size)
    return _page(RoomAssignmentRead, result)


@router.delete("/{id}/rooms/{room_id}")
def unassign_room(id: str, room_id: str, db: Session = Depends(get_db)):
    removed_staff = assignments.unassign_room(db, id, room_id)
    return {"branchSlotId": id, "roomId": room_id, "removedStaffCount": removed_staff}


@router.delete("/{id}/staff/{staff_id}")
def unassign_staff(id: str, staff_id: str, db: Session = Depends(get_db)):
    removed = assignments.unassign_staff(db, id, staff_id)
    return {"branchSlotId": id, "staffId": staff_id, "removed": removed}
