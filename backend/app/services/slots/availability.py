# backend/app/services/slots/availability.py
"""
Branch slots a student can book.

A slot qualifies when:
- it is active and its status is Available
- the student holds an Active subscription covering the target date whose
  package belongs to the slot's branch and lists the slot's slot type
- its student level is empty or equals the student's level
- with a date filter: a dated slot matches that exact date, a recurring
  slot (no date) matches by weekday. A dated slot on another date is
  excluded even when its weekday coincides.

No qualifying slot → empty page, never an error.
"""

import logging
from datetime import date, datetime

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from ...errors import NotFoundError, ValidationError
from ...models.generated import (
    BranchSlots as DBBranchSlots,
    Packages as DBPackages,
    StudentSubscriptions as DBSubscriptions,
    Students as DBStudents,
    Timeframes as DBTimeframes,
    t_package_slot_types,
)
from ..time_rules import parse_wire_date, reference_today, weekday_of
from .config import SlotsConfig, get_slots_config
from .paging import PageResult, empty_page, paginate

logger = logging.getLogger(__name__)


def available_slots_for_student(
    db: Session,
    student_id: str,
    target_date: date | str | None = None,
    page_index: int | None = None,
    page_size: int | None = None,
    config: SlotsConfig | None = None,
) -> PageResult:
    """
    Available slots compatible with the student's active subscriptions.

    Returns:
        PageResult of BranchSlots rows.
    """
    config = config or get_slots_config()

    student = db.get(DBStudents, student_id)
    if not student or not student.is_active:
        raise NotFoundError(f"Student not found: {student_id}", field="studentId")

    day = _normalize_date(target_date)
    on_date = day or reference_today()

    # Step 1: (branch, slot types) the student may book
    entitlements = _get_entitlements(db, student_id, on_date, config)
    if not entitlements:
        logger.info(f"No active subscription for student {student_id} on {on_date}")
        return empty_page(page_index, page_size, config)

    # Step 2: slot query
    compatible = or_(*(
        and_(
            DBBranchSlots.branch_id == branch_id,
            DBBranchSlots.slot_type_id.in_(sorted(slot_type_ids)),
        )
        for branch_id, slot_type_ids in entitlements.items()
    ))

    if student.student_level_id:
        level_ok = or_(
            DBBranchSlots.student_level_id.is_(None),
            DBBranchSlots.student_level_id == student.student_level_id,
        )
    else:
        level_ok = DBBranchSlots.student_level_id.is_(None)

    query = (
        db.query(DBBranchSlots)
        .join(DBTimeframes, DBBranchSlots.timeframe_id == DBTimeframes.id)
        .options(
            joinedload(DBBranchSlots.timeframe),
            joinedload(DBBranchSlots.slot_type),
        )
        .filter(
            DBBranchSlots.is_active == 1,
            DBBranchSlots.status == "Available",
            compatible,
            level_ok,
        )
    )

    # Step 3: date rule
    if day is not None:
        query = query.filter(or_(
            DBBranchSlots.date == day.isoformat(),
            and_(
                DBBranchSlots.date.is_(None),
                DBBranchSlots.week_date == weekday_of(day),
            ),
        ))

    query = query.order_by(
        DBBranchSlots.week_date,
        DBTimeframes.start_time,
        DBBranchSlots.id,
    )
    return paginate(query, page_index, page_size, config)


# ── Helpers ──────────────────────────────────────────────────────────────


def _normalize_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = parse_wire_date(value)
    if parsed is None:
        raise ValidationError(f"Invalid date: {value!r}", field="date")
    return parsed.date()


def _get_entitlements(
    db: Session,
    student_id: str,
    on_date: date,
    config: SlotsConfig,
) -> dict[str, set[str]]:
    """branch_id → slot type ids, from the student's usable subscriptions."""
    day_str = on_date.isoformat()

    rows = (
        db.query(DBPackages.branch_id, t_package_slot_types.c.slot_type_id)
        .join(DBSubscriptions, DBSubscriptions.package_id == DBPackages.id)
        .join(t_package_slot_types, t_package_slot_types.c.package_id == DBPackages.id)
        .filter(
            DBSubscriptions.student_id == student_id,
            DBSubscriptions.status == config.active_subscription_status,
            DBPackages.is_active == 1,
            or_(DBSubscriptions.start_date.is_(None), DBSubscriptions.start_date <= day_str),
            or_(DBSubscriptions.end_date.is_(None), DBSubscriptions.end_date >= day_str),
        )
        .all()
    )

    entitlements: dict[str, set[str]] = {}
    for branch_id, slot_type_id in rows:
        entitlements.setdefault(branch_id, set()).add(slot_type_id)
    return entitlements
