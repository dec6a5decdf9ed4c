# backend/app/routers/references.py
# Read-only reference catalogs used by the branch slot pickers.
# Catalog CRUD lives in the catalog services, not here.

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from ..database import get_db
from ..models.generated import (
    Rooms as DBRooms,
    SlotTypes as DBSlotTypes,
    Staff as DBStaff,
    StudentLevels as DBStudentLevels,
    Timeframes as DBTimeframes,
)
from ..schemas.references import (
    RoomRead,
    SlotTypeRead,
    StaffRead,
    StudentLevelRead,
    TimeframeRead,
)

router = APIRouter(tags=["references"])


@router.get("/Timeframe", response_model=list[TimeframeRead])
def list_timeframes(db: Session = Depends(get_db)):
    return db.query(DBTimeframes).order_by(DBTimeframes.start_time).all()


@router.get("/SlotType", response_model=list[SlotTypeRead])
def list_slot_types(db: Session = Depends(get_db)):
    return db.query(DBSlotTypes).order_by(DBSlotTypes.name).all()


@router.get("/StudentLevel", response_model=list[StudentLevelRead])
def list_student_levels(db: Session = Depends(get_db)):
    return db.query(DBStudentLevels).order_by(DBStudentLevels.name).all()


@router.get("/Room", response_model=list[RoomRead])
def list_rooms(
    branch_id: Optional[str] = Query(None, alias="branchId"),
    db: Session = Depends(get_db),
):
    query = (
        db.query(DBRooms)
        .options(joinedload(DBRooms.facility))
        .filter(DBRooms.is_active == 1)
    )
    if branch_id:
        query = query.filter(DBRooms.branch_id == branch_id)

    return [
        {
            "id": r.id,
            "branch_id": r.branch_id,
            "name": r.name,
            "facility_name": r.facility.name if r.facility else None,
            "capacity": r.capacity,
        }
        for r in query.order_by(DBRooms.name).all()
    ]


@router.get("/Staff", response_model=list[StaffRead])
def list_staff(
    branch_id: Optional[str] = Query(None, alias="branchId"),
    db: Session = Depends(get_db),
):
    query = db.query(DBStaff).filter(DBStaff.is_active == 1)
    if branch_id:
        query = query.filter(DBStaff.branch_id == branch_id)
    return query.order_by(DBStaff.full_name).all()
