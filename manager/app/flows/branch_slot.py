"""
manager/app/flows/branch_slot.py
Branch slot creation / edit flow: basic info → rooms → staff.

Responsibilities:
- BASIC: timeframe, slot type, date (weekDate derived) and status → create or update
- ROOMS: optional set of rooms → assign-rooms
- STAFF: optional staff member (+ room, role label) → assign-staff
- EDIT: re-hydrate all stages from the slot and its assignments
- RESUME: reload a draft saved in Redis

Every stage commits on submit. Leaving the flow never reverts a stage that
was already submitted, and a failed submit leaves the state untouched.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from backend.app.errors import NotFoundError, ValidationError
from backend.app.services.slots.views import SlotAssignments
from backend.app.services.time_rules import parse_wire_date, to_wire_date, weekday_of

from ..utils.api import ApiClient
from ..utils.state import FlowStateStore

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any, "SlotFlowState"], None]

# fields the basic info stage collects
BASIC_FIELDS = (
    "timeframe_id",
    "slot_type_id",
    "date",
    "week_date",
    "status",
    "student_level_id",
)
EDITABLE_FIELDS = BASIC_FIELDS + ("room_ids",)


# ==============================================================
# State
# ==============================================================

class FlowStage(str, Enum):
    BASIC = "basic"
    ROOMS = "rooms"
    STAFF = "staff"
    DONE = "done"


@dataclass(frozen=True)
class SlotFlowState:
    flow_id: str
    branch_id: str
    stage: FlowStage = FlowStage.BASIC
    slot_id: Optional[str] = None

    timeframe_id: Optional[str] = None
    slot_type_id: Optional[str] = None
    date: Optional[str] = None  # "YYYY-MM-DD"
    week_date: Optional[int] = None
    status: str = "Available"
    student_level_id: Optional[str] = None

    room_ids: tuple[str, ...] = ()
    assignments: Optional[SlotAssignments] = field(default=None, compare=False)

    @property
    def is_persisted(self) -> bool:
        return self.slot_id is not None

    def basic_fields(self) -> dict:
        return {name: getattr(self, name) for name in BASIC_FIELDS}

    def to_dict(self) -> dict:
        """Draft snapshot. Assignments are re-read from the API on resume."""
        return {
            "flow_id": self.flow_id,
            "branch_id": self.branch_id,
            "stage": self.stage.value,
            "slot_id": self.slot_id,
            **self.basic_fields(),
            "room_ids": list(self.room_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SlotFlowState":
        return cls(
            flow_id=data["flow_id"],
            branch_id=data["branch_id"],
            stage=FlowStage(data.get("stage", FlowStage.BASIC.value)),
            slot_id=data.get("slot_id"),
            timeframe_id=data.get("timeframe_id"),
            slot_type_id=data.get("slot_type_id"),
            date=data.get("date"),
            week_date=data.get("week_date"),
            status=data.get("status") or "Available",
            student_level_id=data.get("student_level_id"),
            room_ids=tuple(data.get("room_ids") or ()),
        )

    @classmethod
    def from_slot(cls, slot: dict, assignments: SlotAssignments, flow_id: str) -> "SlotFlowState":
        """Edit flow: every stage pre-filled from GET /BranchSlot/{id}."""
        return cls(
            flow_id=flow_id,
            branch_id=slot["branchId"],
            stage=FlowStage.BASIC,
            slot_id=slot["id"],
            timeframe_id=slot.get("timeframeId"),
            slot_type_id=slot.get("slotTypeId"),
            date=slot.get("date"),
            week_date=slot.get("weekDate"),
            status=slot.get("status") or "Available",
            student_level_id=slot.get("studentLevelId"),
            room_ids=tuple(r.room_id for r in assignments.rooms),
            assignments=assignments,
        )


# ==============================================================
# Flow
# ==============================================================

class BranchSlotFlow:
    """Drives one slot through the three stages."""

    def __init__(
        self,
        api: ApiClient,
        state: SlotFlowState,
        store: Optional[FlowStateStore] = None,
    ):
        self.api = api
        self.store = store
        self._state = state
        self._listeners: list[Listener] = []

    # ----------------------------------------------------------
    # Entry points
    # ----------------------------------------------------------

    @classmethod
    def start(
        cls,
        api: ApiClient,
        branch_id: str,
        store: Optional[FlowStateStore] = None,
        flow_id: Optional[str] = None,
    ) -> "BranchSlotFlow":
        state = SlotFlowState(flow_id=flow_id or str(uuid.uuid4()), branch_id=branch_id)
        return cls(api, state, store)

    @classmethod
    def edit(
        cls,
        api: ApiClient,
        slot_id: str,
        store: Optional[FlowStateStore] = None,
        flow_id: Optional[str] = None,
    ) -> "BranchSlotFlow":
        slot = api.get_slot(slot_id)
        assignments = api.list_assignments(slot_id)
        state = SlotFlowState.from_slot(slot, assignments, flow_id or str(uuid.uuid4()))
        return cls(api, state, store)

    @classmethod
    def resume(cls, api: ApiClient, store: FlowStateStore, flow_id: str) -> "BranchSlotFlow":
        data = store.load(flow_id)
        if data is None:
            raise NotFoundError(f"No saved flow: {flow_id}", field="flowId")

        state = SlotFlowState.from_dict(data)
        if state.slot_id:
            state = replace(state, assignments=api.list_assignments(state.slot_id))
        logger.info(f"Flow {flow_id} resumed at stage {state.stage.value}")
        return cls(api, state, store)

    # ----------------------------------------------------------
    # State & observers
    # ----------------------------------------------------------

    @property
    def state(self) -> SlotFlowState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(name, value, state)` on every field change. Returns an unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, name: str, value: Any) -> None:
        for listener in list(self._listeners):
            listener(name, value, self._state)

    def set_field(self, name: str, value: Any) -> SlotFlowState:
        """
        Change one draft field.

        Setting `date` also sets and publishes the derived `week_date`.
        `week_date` cannot be set by hand while the draft has a date.
        """
        if name not in EDITABLE_FIELDS:
            raise ValidationError(f"Unknown field: {name}", field=name)

        if name == "date":
            return self._set_date(value)

        if name == "week_date":
            if self._state.date is not None:
                raise ValidationError(
                    "weekDate is derived from date; clear the date first",
                    field="weekDate",
                )
            value = _check_week_date(value)

        if name == "room_ids":
            value = tuple(dict.fromkeys(value or ()))

        self._state = replace(self._state, **{name: value})
        self._publish(name, value)
        return self._state

    def _set_date(self, value) -> SlotFlowState:
        if value is None or value == "":
            self._state = replace(self._state, date=None)
            self._publish("date", None)
            return self._state

        # timestamps land on their UTC+7 calendar day, like the API reads them
        if isinstance(value, date) and not isinstance(value, datetime):
            day = to_wire_date(value)
        else:
            parsed = parse_wire_date(value)
            if parsed is None:
                raise ValidationError(f"Invalid date: {value!r}", field="date")
            day = parsed.date().isoformat()

        week_date = weekday_of(day)
        self._state = replace(self._state, date=day, week_date=week_date)
        self._publish("date", day)
        self._publish("week_date", week_date)
        return self._state

    # ----------------------------------------------------------
    # Stages
    # ----------------------------------------------------------

    def submit_basic(self) -> SlotFlowState:
        """Stage 1: create the slot, or update it when it already exists."""
        state = self._state
        fields = state.basic_fields()

        if state.slot_id is None:
            slot = self.api.create_slot(state.branch_id, **fields)
            logger.info(f"Flow {state.flow_id}: slot created {slot['id']}")
        else:
            slot = self.api.update_slot(state.slot_id, **fields)
            logger.info(f"Flow {state.flow_id}: slot updated {slot['id']}")

        self._commit(replace(
            state,
            slot_id=slot["id"],
            date=slot.get("date"),
            week_date=slot.get("weekDate"),
            status=slot.get("status") or state.status,
            stage=_next_stage(state.stage, FlowStage.ROOMS),
        ))
        if self._state.week_date != state.week_date:
            self._publish("week_date", self._state.week_date)
        return self._state

    def submit_rooms(self, room_ids: Optional[Iterable[str]] = None) -> SlotFlowState:
        """Stage 2: empty selection defers room assignment."""
        state = self._require_slot()
        wanted = tuple(dict.fromkeys(room_ids if room_ids is not None else state.room_ids))

        assignments = state.assignments
        if wanted:
            assignments = self.api.assign_rooms(state.slot_id, list(wanted))
            logger.info(f"Flow {state.flow_id}: rooms submitted {list(wanted)}")

        self._commit(replace(
            state,
            room_ids=tuple(r.room_id for r in assignments.rooms) if assignments else wanted,
            assignments=assignments,
            stage=_next_stage(state.stage, FlowStage.STAFF),
        ))
        return self._state

    def submit_staff(
        self,
        staff_id: Optional[str] = None,
        room_id: Optional[str] = None,
        role_label: Optional[str] = None,
    ) -> SlotFlowState:
        """Stage 3: no staff id skips the assignment."""
        state = self._require_slot()

        assignments = state.assignments
        if staff_id:
            assignments = self.api.assign_staff(
                state.slot_id, staff_id, room_id=room_id, role_label=role_label
            )
            logger.info(f"Flow {state.flow_id}: staff {staff_id} submitted room={room_id}")

        self._commit(replace(state, assignments=assignments, stage=FlowStage.DONE))
        return self._state

    def remove_room(self, room_id: str) -> SlotFlowState:
        state = self._require_slot()
        self.api.unassign_room(state.slot_id, room_id)
        return self._refresh(state)

    def remove_staff(self, staff_id: str) -> SlotFlowState:
        state = self._require_slot()
        self.api.unassign_staff(state.slot_id, staff_id)
        return self._refresh(state)

    def abandon(self) -> SlotFlowState:
        """Drop the draft. Stages already submitted stay committed."""
        if self.store is not None:
            self.store.delete(self._state.flow_id)
        logger.info(
            f"Flow {self._state.flow_id} abandoned at stage {self._state.stage.value}, "
            f"slot={self._state.slot_id}"
        )
        return self._state

    # ----------------------------------------------------------
    # Pickers
    # ----------------------------------------------------------

    def load_options(self) -> dict:
        branch_id = self._state.branch_id
        return {
            "timeframes": self.api.get_timeframes(),
            "slot_types": self.api.get_slot_types(),
            "student_levels": self.api.get_student_levels(),
            "rooms": self.api.get_rooms(branch_id),
            "staff": self.api.get_staff(branch_id),
        }

    def room_choices(self, rooms: list[dict]) -> list[dict]:
        if self._state.assignments is None:
            return list(rooms)
        return self._state.assignments.selectable_rooms(rooms)

    def staff_choices(self, staff: list[dict]) -> list[dict]:
        if self._state.assignments is None:
            return list(staff)
        return self._state.assignments.selectable_staff(staff)

    def staff_room_choices(self) -> list:
        if self._state.assignments is None:
            return []
        return self._state.assignments.rooms_for_staff_picker()

    # ----------------------------------------------------------
    # Internals
    # ----------------------------------------------------------

    def _require_slot(self) -> SlotFlowState:
        if self._state.slot_id is None:
            raise ValidationError("Basic info must be submitted first", field="branchSlotId")
        return self._state

    def _refresh(self, state: SlotFlowState) -> SlotFlowState:
        assignments = self.api.list_assignments(state.slot_id)
        self._commit(replace(
            state,
            assignments=assignments,
            room_ids=tuple(r.room_id for r in assignments.rooms),
        ))
        return self._state

    def _commit(self, state: SlotFlowState) -> None:
        self._state = state
        if self.store is not None:
            self.store.save(state.flow_id, state.to_dict())


def _next_stage(current: FlowStage, target: FlowStage) -> FlowStage:
    """Re-submitting an earlier stage in an edit flow never moves backwards."""
    order = list(FlowStage)
    return target if order.index(target) > order.index(current) else current


def _check_week_date(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("weekDate must be an integer", field="weekDate")
    try:
        week_date = int(value)
    except (TypeError, ValueError):
        raise ValidationError("weekDate must be an integer", field="weekDate")
    if not 0 <= week_date <= 6:
        raise ValidationError(f"weekDate must be in 0..6, got {week_date}", field="weekDate")
    return week_date
