# backend/app/services/slots/assignments.py
"""
Room and staff assignment for branch slots.

Invariants (enforced here and by the unique constraints in the schema):
✓ a room appears at most once per slot
✓ a staff member holds at most one role per slot
✓ a staff row with room_id points at a room assigned to the same slot
✓ removing a room removes the staff rows tied to it

Not enforced:
✗ one staff per room (the room picker only nudges towards it)
"""

import logging
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...errors import ConflictError, NotFoundError, ValidationError
from ...models.generated import (
    BranchSlotRooms as DBBranchSlotRooms,
    BranchSlotStaff as DBBranchSlotStaff,
    Rooms as DBRooms,
    Staff as DBStaff,
)
from . import registry
from .config import SlotsConfig, get_slots_config
from .paging import PageResult, paginate_list
from .views import RoomAssignment, SlotAssignments, StaffAssignment

logger = logging.getLogger(__name__)


# ── Rooms ────────────────────────────────────────────────────────────────


def assign_rooms(db: Session, slot_id: str, room_ids: Iterable[str]) -> list[str]:
    """
    Assign rooms to a slot. Already assigned rooms are skipped.

    Returns:
        Room ids that were newly assigned.
    """
    slot = registry.get_by_id(db, slot_id)
    wanted = list(dict.fromkeys(rid for rid in room_ids if rid))
    if not wanted:
        return []

    rooms = db.query(DBRooms).filter(DBRooms.id.in_(wanted)).all()
    found = {room.id: room for room in rooms if room.is_active}

    missing = [rid for rid in wanted if rid not in found]
    if missing:
        raise NotFoundError(f"Room not found: {', '.join(missing)}", field="roomIds")

    foreign = [rid for rid in wanted if found[rid].branch_id != slot.branch_id]
    if foreign:
        raise ValidationError(
            f"Room does not belong to branch {slot.branch_id}: {', '.join(foreign)}",
            field="roomIds",
        )

    # a concurrent request may insert the same pair between our read and
    # commit; the unique constraint rejects it and the second pass skips it
    for attempt in range(2):
        assigned = _assigned_room_ids(db, slot.id)
        added = [rid for rid in wanted if rid not in assigned]
        for rid in added:
            db.add(DBBranchSlotRooms(branch_slot_id=slot.id, room_id=rid))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            logger.warning(f"Concurrent room assignment on slot {slot.id}, retrying")
            continue
        break

    if added:
        logger.info(f"Rooms assigned to slot {slot.id}: {added}")
    return added


def unassign_room(db: Session, slot_id: str, room_id: str) -> int:
    """
    Remove a room from a slot together with the staff assigned to it.

    Returns:
        Number of staff assignments removed by the cascade.
    """
    slot = registry.get_by_id(db, slot_id)

    link = (
        db.query(DBBranchSlotRooms)
        .filter(
            DBBranchSlotRooms.branch_slot_id == slot.id,
            DBBranchSlotRooms.room_id == room_id,
        )
        .first()
    )
    if not link:
        raise NotFoundError(f"Room {room_id} is not assigned to slot {slot.id}", field="roomId")

    removed_staff = (
        db.query(DBBranchSlotStaff)
        .filter(
            DBBranchSlotStaff.branch_slot_id == slot.id,
            DBBranchSlotStaff.room_id == room_id,
        )
        .delete(synchronize_session=False)
    )
    db.delete(link)
    db.commit()

    logger.info(
        f"Room {room_id} unassigned from slot {slot.id}, "
        f"staff removed with it: {removed_staff}"
    )
    return removed_staff


def list_rooms(
    db: Session,
    slot_id: str,
    page_index: int | None = None,
    page_size: int | None = None,
    config: SlotsConfig | None = None,
) -> PageResult:
    """
    Rooms of a slot by name, each with its staff.

    No paging params → everything in one page.
    """
    config = config or get_slots_config()
    rooms = list_assignments(db, slot_id).to_dict()["rooms"]

    if page_index is None and page_size is None:
        return PageResult(
            items=rooms,
            page_index=1,
            page_size=max(len(rooms), 1),
            total_count=len(rooms),
        )
    return paginate_list(rooms, page_index, page_size, config)


# ── Staff ────────────────────────────────────────────────────────────────


def assign_staff(
    db: Session,
    slot_id: str,
    staff_id: str,
    room_id: Optional[str] = None,
    role_label: Optional[str] = None,
) -> DBBranchSlotStaff:
    """Assign a staff member to a slot, optionally inside one of its rooms."""
    slot = registry.get_by_id(db, slot_id)

    if not staff_id:
        raise ValidationError("userId is required", field="userId")

    staff = db.get(DBStaff, staff_id)
    if not staff or not staff.is_active:
        raise NotFoundError(f"Staff not found: {staff_id}", field="userId")
    if staff.branch_id != slot.branch_id:
        raise ValidationError(
            f"Staff {staff_id} does not belong to branch {slot.branch_id}",
            field="userId",
        )

    if _staff_row(db, slot.id, staff_id):
        logger.warning(f"Staff {staff_id} already assigned to slot {slot.id}")
        raise ConflictError(
            f"Staff {staff_id} is already assigned to this slot", field="userId"
        )

    room_id = room_id or None
    if room_id and room_id not in _assigned_room_ids(db, slot.id):
        raise ValidationError(
            f"Room {room_id} is not assigned to this slot", field="roomId"
        )

    obj = DBBranchSlotStaff(
        branch_slot_id=slot.id,
        staff_id=staff_id,
        room_id=room_id,
        role_label=(role_label or "").strip() or None,
    )
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # lost a race: either the staff row or the room changed under us
        if room_id and room_id not in _assigned_room_ids(db, slot.id):
            raise ValidationError(
                f"Room {room_id} is not assigned to this slot", field="roomId"
            )
        raise ConflictError(
            f"Staff {staff_id} is already assigned to this slot", field="userId"
        )

    db.refresh(obj)
    logger.info(f"Staff {staff_id} assigned to slot {slot.id} room={room_id}")
    return obj


def unassign_staff(db: Session, slot_id: str, staff_id: str) -> bool:
    """Remove a staff member from a slot. Returns False when nothing was assigned."""
    slot = registry.get_by_id(db, slot_id)

    removed = (
        db.query(DBBranchSlotStaff)
        .filter(
            DBBranchSlotStaff.branch_slot_id == slot.id,
            DBBranchSlotStaff.staff_id == staff_id,
        )
        .delete(synchronize_session=False)
    )
    db.commit()

    if removed:
        logger.info(f"Staff {staff_id} unassigned from slot {slot.id}")
    return bool(removed)


# ── Read ─────────────────────────────────────────────────────────────────


def list_assignments(db: Session, slot_id: str) -> SlotAssignments:
    """Rooms and staff of a slot, pre-joined and grouped by room."""
    slot = registry.get_by_id(db, slot_id)

    room_rows = (
        db.query(DBBranchSlotRooms)
        .options(joinedload(DBBranchSlotRooms.room).joinedload(DBRooms.facility))
        .filter(DBBranchSlotRooms.branch_slot_id == slot.id)
        .all()
    )
    staff_rows = (
        db.query(DBBranchSlotStaff)
        .options(
            joinedload(DBBranchSlotStaff.staff),
            joinedload(DBBranchSlotStaff.room),
        )
        .filter(DBBranchSlotStaff.branch_slot_id == slot.id)
        .all()
    )

    rooms = tuple(
        RoomAssignment(
            branch_slot_id=slot.id,
            room_id=row.room_id,
            room_name=row.room.name if row.room else None,
            facility_name=row.room.facility.name if row.room and row.room.facility else None,
            capacity=row.room.capacity if row.room else None,
        )
        for row in room_rows
    )
    staff = tuple(
        StaffAssignment(
            branch_slot_id=slot.id,
            staff_id=row.staff_id,
            staff_name=row.staff.full_name if row.staff else None,
            email=row.staff.email if row.staff else None,
            room_id=row.room_id,
            room_name=row.room.name if row.room else None,
            role_label=row.role_label,
        )
        for row in staff_rows
    )
    return SlotAssignments(branch_slot_id=slot.id, rooms=rooms, staff=staff)


# ── Helpers ──────────────────────────────────────────────────────────────


def _assigned_room_ids(db: Session, slot_id: str) -> set[str]:
    rows = (
        db.query(DBBranchSlotRooms.room_id)
        .filter(DBBranchSlotRooms.branch_slot_id == slot_id)
        .all()
    )
    return {room_id for (room_id,) in rows}


def _staff_row(db: Session, slot_id: str, staff_id: str) -> Optional[DBBranchSlotStaff]:
    return (
        db.query(DBBranchSlotStaff)
        .filter(
            DBBranchSlotStaff.branch_slot_id == slot_id,
            DBBranchSlotStaff.staff_id == staff_id,
        )
        .first()
    )
