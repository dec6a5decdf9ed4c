"""Slot lifecycle: create / update / get / delete / list."""

from __future__ import annotations

from datetime import date

import pytest

from backend.app.errors import NotFoundError, ValidationError
from backend.app.models.generated import BranchSlotRooms, BranchSlots, BranchSlotStaff
from backend.app.services.slots import assignments, registry
from backend.app.services.slots.config import SlotsConfig, week_day_label


def make_slot(db, seed, **overrides):
    fields = {
        "branch_id": seed.branch,
        "timeframe_id": seed.timeframe,
        "slot_type_id": seed.slot_type,
        "week_date": 1,
    }
    fields.update(overrides)
    return registry.create(db, **fields)


# --- create ---

def test_create_recurring_slot_defaults_to_available(db, seed) -> None:
    slot = make_slot(db, seed, week_date=3)
    assert slot.id
    assert slot.week_date == 3
    assert slot.date is None
    assert slot.status == "Available"
    assert slot.is_active == 1


def test_date_is_authoritative_over_week_date(db, seed) -> None:
    slot = make_slot(db, seed, week_date=5, date=date(2025, 6, 2))
    assert slot.date == "2025-06-02"
    assert slot.week_date == 1


def test_create_derives_week_date_from_utc_timestamp(db, seed) -> None:
    # 2025-06-01T17:30Z is 2025-06-02 00:30 in UTC+7
    slot = make_slot(db, seed, week_date=None, date="2025-06-01T17:30:00Z")
    assert slot.date == "2025-06-02"
    assert slot.week_date == 1


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"timeframe_id": None}, "timeframeId"),
        ({"slot_type_id": None}, "slotTypeId"),
        ({"week_date": None}, "weekDate"),
        ({"week_date": 7}, "weekDate"),
        ({"week_date": -1}, "weekDate"),
        ({"week_date": True}, "weekDate"),
        ({"timeframe_id": "tf-missing"}, "timeframeId"),
        ({"slot_type_id": "type-missing"}, "slotTypeId"),
        ({"student_level_id": "level-missing"}, "studentLevelId"),
        ({"branch_id": "branch-missing"}, "branchId"),
        ({"status": "Closed"}, "status"),
        ({"date": "2025-02-30"}, "date"),
    ],
)
def test_create_rejects_invalid_fields(db, seed, overrides, field) -> None:
    with pytest.raises(ValidationError) as exc:
        make_slot(db, seed, **overrides)
    assert exc.value.field == field
    assert exc.value.kind == "ValidationError"
    assert db.query(BranchSlots).count() == 0


# --- update ---

def test_update_keeps_unpatched_fields(db, seed) -> None:
    slot = make_slot(db, seed, student_level_id=seed.level)
    updated = registry.update(db, slot.id, {"timeframe_id": seed.late_timeframe})
    assert updated.timeframe_id == seed.late_timeframe
    assert updated.slot_type_id == seed.slot_type
    assert updated.student_level_id == seed.level
    assert updated.week_date == 1


@pytest.mark.parametrize("start", ["Available", "Occupied", "Cancelled", "Maintenance"])
@pytest.mark.parametrize("target", ["Available", "Occupied", "Cancelled", "Maintenance"])
def test_every_status_transition_is_allowed(db, seed, start, target) -> None:
    slot = make_slot(db, seed, status=start)
    assert registry.update(db, slot.id, {"status": target}).status == target


def test_update_with_date_rederives_week_date(db, seed) -> None:
    slot = make_slot(db, seed, week_date=0)
    updated = registry.update(db, slot.id, {"date": "2025-03-15"})
    assert updated.date == "2025-03-15"
    assert updated.week_date == 6


def test_update_week_date_cannot_contradict_stored_date(db, seed) -> None:
    slot = make_slot(db, seed, date="2025-03-10")
    updated = registry.update(db, slot.id, {"week_date": 4})
    assert updated.week_date == 1


def test_clearing_date_makes_slot_recurring(db, seed) -> None:
    slot = make_slot(db, seed, date="2025-03-10")
    updated = registry.update(db, slot.id, {"date": None, "week_date": 2})
    assert updated.date is None
    assert updated.week_date == 2


def test_update_rejects_unknown_field(db, seed) -> None:
    slot = make_slot(db, seed)
    with pytest.raises(ValidationError) as exc:
        registry.update(db, slot.id, {"capacity": 3})
    assert exc.value.field == "capacity"


def test_update_cannot_clear_status(db, seed) -> None:
    slot = make_slot(db, seed, status="Maintenance")
    with pytest.raises(ValidationError) as exc:
        registry.update(db, slot.id, {"status": None})
    assert exc.value.field == "status"
    db.expire_all()
    assert registry.get_by_id(db, slot.id).status == "Maintenance"


def test_update_invalid_week_date_leaves_row_untouched(db, seed) -> None:
    slot = make_slot(db, seed, week_date=2)
    with pytest.raises(ValidationError):
        registry.update(db, slot.id, {"week_date": 9})
    db.expire_all()
    assert registry.get_by_id(db, slot.id).week_date == 2


# --- get / delete ---

def test_get_unknown_slot_raises_not_found(db, seed) -> None:
    with pytest.raises(NotFoundError) as exc:
        registry.get_by_id(db, "missing")
    assert exc.value.field == "branchSlotId"


def test_soft_delete_hides_slot(db, seed) -> None:
    slot = make_slot(db, seed)
    registry.delete(db, slot.id)

    with pytest.raises(NotFoundError):
        registry.get_by_id(db, slot.id)
    assert db.get(BranchSlots, slot.id).is_active == 0
    assert registry.list_paged(db).total_count == 0


def test_hard_delete_removes_assignments(db, seed) -> None:
    slot = make_slot(db, seed)
    assignments.assign_rooms(db, slot.id, [seed.room_a])
    assignments.assign_staff(db, slot.id, seed.alice, room_id=seed.room_a)
    assignments.assign_staff(db, slot.id, seed.bob)

    registry.delete(db, slot.id, hard=True)

    assert db.get(BranchSlots, slot.id) is None
    assert db.query(BranchSlotRooms).count() == 0
    assert db.query(BranchSlotStaff).count() == 0


# --- list_paged ---

def test_list_orders_by_week_date_then_start_time(db, seed) -> None:
    late_monday = make_slot(db, seed, week_date=1, timeframe_id=seed.late_timeframe)
    early_monday = make_slot(db, seed, week_date=1)
    sunday = make_slot(db, seed, week_date=0, timeframe_id=seed.late_timeframe)

    page = registry.list_paged(db)
    assert [s.id for s in page.items] == [sunday.id, early_monday.id, late_monday.id]
    assert page.page_index == 1
    assert page.page_size == 10


def test_list_filters(db, seed) -> None:
    monday = make_slot(db, seed, week_date=1)
    make_slot(db, seed, week_date=2, status="Cancelled")
    dated = make_slot(db, seed, date="2025-03-11")

    assert [s.id for s in registry.list_paged(db, {"week_date": 1}).items] == [monday.id]
    assert registry.list_paged(db, {"status": "Cancelled"}).total_count == 1
    assert [s.id for s in registry.list_paged(db, {"date": "2025-03-11"}).items] == [dated.id]
    assert registry.list_paged(db, {"branch_id": seed.other_branch}).total_count == 0
    # empty values are ignored
    assert registry.list_paged(db, {"status": "", "branch_id": None}).total_count == 3


def test_list_pages(db, seed) -> None:
    for week_date in range(7):
        make_slot(db, seed, week_date=week_date)

    page = registry.list_paged(db, page_index=2, page_size=3)
    assert [s.week_date for s in page.items] == [3, 4, 5]
    assert page.total_count == 7
    assert page.total_pages == 3


def test_page_size_is_capped(db, seed) -> None:
    make_slot(db, seed)
    page = registry.list_paged(db, page_size=5000, config=SlotsConfig(max_page_size=50))
    assert page.page_size == 50


def test_slot_to_dict_inlines_references(db, seed) -> None:
    slot = registry.get_by_id(db, make_slot(db, seed, date="2025-03-10").id)
    data = registry.slot_to_dict(slot)
    assert data["date"] == date(2025, 3, 10)
    assert data["timeframe_name"] == "Morning"
    assert data["start_time"] == "08:00"
    assert data["slot_type_name"] == "Playgroup"


# --- config ---

def test_week_day_labels_start_on_sunday() -> None:
    assert week_day_label(0) == "Sunday"
    assert week_day_label(1) == "Monday"
    assert week_day_label(6) == "Saturday"


def test_config_rejects_default_page_size_above_max() -> None:
    with pytest.raises(ValueError):
        SlotsConfig(default_page_size=50, max_page_size=20)


def test_clamp_page_normalizes_missing_values() -> None:
    assert SlotsConfig().clamp_page(None, None) == (1, 10)
    assert SlotsConfig().clamp_page(0, -5) == (1, 10)
