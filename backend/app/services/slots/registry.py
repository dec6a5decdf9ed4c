# backend/app/services/slots/registry.py
"""
Branch slot lifecycle: create / update / get / delete / list.

Rules:
- timeframeId, slotTypeId and weekDate (0..6) are required
- a supplied `date` is authoritative: weekDate is always derived from it
  in UTC+7, never the other way round
- status defaults to Available; every status can move to every other one
- delete is soft (is_active = 0) unless hard=True
"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...errors import NotFoundError, ValidationError
from ...models.generated import (
    BranchSlotRooms as DBBranchSlotRooms,
    BranchSlots as DBBranchSlots,
    BranchSlotStaff as DBBranchSlotStaff,
    Branches as DBBranches,
    SlotTypes as DBSlotTypes,
    StudentLevels as DBStudentLevels,
    Timeframes as DBTimeframes,
)
from ..time_rules import parse_wire_date, weekday_of
from .config import DEFAULT_STATUS, SlotsConfig, is_valid_status, week_day_label
from .paging import PageResult, paginate

logger = logging.getLogger(__name__)

SLOT_FIELDS = (
    "branch_id",
    "timeframe_id",
    "slot_type_id",
    "week_date",
    "date",
    "status",
    "student_level_id",
)


# ---------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------

def create(
    db: Session,
    branch_id: str,
    timeframe_id: Optional[str] = None,
    slot_type_id: Optional[str] = None,
    week_date: Optional[int] = None,
    status: Optional[str] = None,
    date: date | str | None = None,
    student_level_id: Optional[str] = None,
) -> DBBranchSlots:
    """Create a slot. With `date` set, week_date is recomputed from it."""
    values = _resolve(db, {
        "branch_id": branch_id,
        "timeframe_id": timeframe_id,
        "slot_type_id": slot_type_id,
        "week_date": week_date,
        "date": date,
        "status": status,
        "student_level_id": student_level_id,
    })

    obj = DBBranchSlots(**values)
    db.add(obj)
    db.commit()
    db.refresh(obj)

    logger.info(
        f"Branch slot created: {obj.id} branch={obj.branch_id} "
        f"week_date={obj.week_date} ({week_day_label(obj.week_date)}) "
        f"date={obj.date} status={obj.status}"
    )
    return obj


def update(db: Session, slot_id: str, patch: dict) -> DBBranchSlots:
    """
    Apply a partial patch. Keys absent from `patch` keep their value;
    `date: None` turns a dated slot back into a recurring one.
    """
    obj = get_by_id(db, slot_id)

    unknown = set(patch) - set(SLOT_FIELDS)
    if unknown:
        field = sorted(unknown)[0]
        raise ValidationError(f"Unknown field: {field}", field=field)
    if "status" in patch and not patch["status"]:
        raise ValidationError("status cannot be cleared", field="status")

    # a stored date that is not replaced keeps driving week_date
    merged = {name: getattr(obj, name) for name in SLOT_FIELDS}
    merged.update(patch)

    values = _resolve(db, merged)
    for field, value in values.items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)

    logger.info(f"Branch slot updated: {obj.id} fields={sorted(patch)}")
    return obj


def get_by_id(db: Session, slot_id: str) -> DBBranchSlots:
    obj = (
        db.query(DBBranchSlots)
        .options(
            joinedload(DBBranchSlots.timeframe),
            joinedload(DBBranchSlots.slot_type),
        )
        .filter(DBBranchSlots.id == slot_id)
        .first()
    )
    if not obj or not obj.is_active:
        raise NotFoundError(f"Branch slot not found: {slot_id}", field="branchSlotId")
    return obj


def delete(db: Session, slot_id: str, hard: bool = False) -> None:
    obj = get_by_id(db, slot_id)

    if not hard:
        obj.is_active = 0
        db.commit()
        logger.info(f"Branch slot soft-deleted: {slot_id}")
        return

    # staff first: it references the room rows
    db.query(DBBranchSlotStaff).filter(
        DBBranchSlotStaff.branch_slot_id == slot_id
    ).delete(synchronize_session=False)
    db.query(DBBranchSlotRooms).filter(
        DBBranchSlotRooms.branch_slot_id == slot_id
    ).delete(synchronize_session=False)
    db.delete(obj)
    db.commit()
    logger.info(f"Branch slot deleted: {slot_id}")


def list_paged(
    db: Session,
    filters: dict | None = None,
    page_index: int | None = None,
    page_size: int | None = None,
    config: SlotsConfig | None = None,
) -> PageResult:
    """
    Active slots, ordered by weekday then timeframe start.

    Filters (all optional): branch_id, status, week_date, timeframe_id,
    slot_type_id, date.
    """
    filters = {k: v for k, v in (filters or {}).items() if v is not None and v != ""}

    query = (
        db.query(DBBranchSlots)
        .join(DBTimeframes, DBBranchSlots.timeframe_id == DBTimeframes.id)
        .options(
            joinedload(DBBranchSlots.timeframe),
            joinedload(DBBranchSlots.slot_type),
        )
        .filter(DBBranchSlots.is_active == 1)
    )

    if "branch_id" in filters:
        query = query.filter(DBBranchSlots.branch_id == filters["branch_id"])
    if "status" in filters:
        query = query.filter(DBBranchSlots.status == filters["status"])
    if "week_date" in filters:
        query = query.filter(DBBranchSlots.week_date == int(filters["week_date"]))
    if "timeframe_id" in filters:
        query = query.filter(DBBranchSlots.timeframe_id == filters["timeframe_id"])
    if "slot_type_id" in filters:
        query = query.filter(DBBranchSlots.slot_type_id == filters["slot_type_id"])
    if "date" in filters:
        day = _to_date(filters["date"], "date")
        query = query.filter(DBBranchSlots.date == day.isoformat())

    query = query.order_by(
        DBBranchSlots.week_date,
        DBTimeframes.start_time,
        DBBranchSlots.id,
    )
    return paginate(query, page_index, page_size, config)


# ---------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------

def slot_to_dict(obj: DBBranchSlots) -> dict:
    """Flat dict for BranchSlotRead (timeframe / slot type names inlined)."""
    timeframe = obj.timeframe
    slot_type = obj.slot_type
    return {
        "id": obj.id,
        "branch_id": obj.branch_id,
        "timeframe_id": obj.timeframe_id,
        "slot_type_id": obj.slot_type_id,
        "student_level_id": obj.student_level_id,
        "week_date": obj.week_date,
        "date": date.fromisoformat(obj.date) if obj.date else None,
        "status": obj.status,
        "timeframe_name": timeframe.name if timeframe else None,
        "start_time": timeframe.start_time if timeframe else None,
        "end_time": timeframe.end_time if timeframe else None,
        "slot_type_name": slot_type.name if slot_type else None,
    }


# ---------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------

def _resolve(db: Session, values: dict) -> dict:
    """Validate a full set of slot fields; returns column values."""
    branch_id = values.get("branch_id")
    if not branch_id:
        raise ValidationError("branchId is required", field="branchId")
    branch = db.get(DBBranches, branch_id)
    if not branch or not branch.is_active:
        raise ValidationError(f"Unknown branch: {branch_id}", field="branchId")

    timeframe_id = values.get("timeframe_id")
    if not timeframe_id:
        raise ValidationError("timeframeId is required", field="timeframeId")
    if not db.get(DBTimeframes, timeframe_id):
        raise ValidationError(f"Unknown timeframe: {timeframe_id}", field="timeframeId")

    slot_type_id = values.get("slot_type_id")
    if not slot_type_id:
        raise ValidationError("slotTypeId is required", field="slotTypeId")
    if not db.get(DBSlotTypes, slot_type_id):
        raise ValidationError(f"Unknown slot type: {slot_type_id}", field="slotTypeId")

    student_level_id = values.get("student_level_id") or None
    if student_level_id and not db.get(DBStudentLevels, student_level_id):
        raise ValidationError(
            f"Unknown student level: {student_level_id}", field="studentLevelId"
        )

    status = values.get("status") or DEFAULT_STATUS
    if not is_valid_status(status):
        raise ValidationError(f"Invalid status: {status}", field="status")

    day = values.get("date")
    if day is not None and day != "":
        day = _to_date(day, "date")
        week_date = weekday_of(day)
    else:
        day = None
        week_date = _check_week_date(values.get("week_date"))

    return {
        "branch_id": branch_id,
        "timeframe_id": timeframe_id,
        "slot_type_id": slot_type_id,
        "student_level_id": student_level_id,
        "week_date": week_date,
        "date": day.isoformat() if day else None,
        "status": status,
    }


def _check_week_date(value) -> int:
    if value is None or value == "":
        raise ValidationError("weekDate is required", field="weekDate")
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError("weekDate must be an integer", field="weekDate")
    try:
        week_date = int(value)
    except ValueError:
        raise ValidationError("weekDate must be an integer", field="weekDate")
    if not 0 <= week_date <= 6:
        raise ValidationError(f"weekDate must be in 0..6, got {week_date}", field="weekDate")
    return week_date


def _to_date(value, field: str) -> date:
    """date / datetime / wire string → calendar date in UTC+7."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = parse_wire_date(value)
    if parsed is None:
        raise ValidationError(f"Invalid date: {value!r}", field=field)
    return parsed.date()
