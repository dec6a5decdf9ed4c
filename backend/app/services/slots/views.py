# backend/app/services/slots/views.py
"""
Pre-joined room/staff view of one branch slot.

Built once per read (list_assignments) and reused for:
  - rendering rooms with their staff plus the "no room" bucket
  - picker filtering (staff already in the slot, rooms still without staff)

The client rebuilds the same object from the JSON payload (from_dict), so
both sides share one grouping rule.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional


@dataclass(frozen=True)
class StaffAssignment:
    branch_slot_id: str
    staff_id: str
    staff_name: Optional[str] = None
    email: Optional[str] = None
    room_id: Optional[str] = None
    room_name: Optional[str] = None
    role_label: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "branch_slot_id": self.branch_slot_id,
            "staff_id": self.staff_id,
            "staff_name": self.staff_name,
            "email": self.email,
            "room_id": self.room_id,
            "room_name": self.room_name,
            "role_label": self.role_label,
        }


@dataclass(frozen=True)
class RoomAssignment:
    branch_slot_id: str
    room_id: str
    room_name: Optional[str] = None
    facility_name: Optional[str] = None
    capacity: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "branch_slot_id": self.branch_slot_id,
            "room_id": self.room_id,
            "room_name": self.room_name,
            "facility_name": self.facility_name,
            "capacity": self.capacity,
        }


@dataclass(frozen=True)
class AssignmentGroup:
    room: Optional[RoomAssignment]
    staff: tuple[StaffAssignment, ...] = ()


def _by_name(value: Optional[str]) -> str:
    return (value or "").lower()


@dataclass(frozen=True)
class SlotAssignments:
    branch_slot_id: str
    rooms: tuple[RoomAssignment, ...] = ()
    staff: tuple[StaffAssignment, ...] = ()
    _groups: tuple[AssignmentGroup, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self):
        rooms = sorted(self.rooms, key=lambda r: (_by_name(r.room_name), r.room_id))
        staff = sorted(self.staff, key=lambda s: (_by_name(s.staff_name), s.staff_id))
        room_ids = {r.room_id for r in rooms}

        groups = [
            AssignmentGroup(
                room=room,
                staff=tuple(s for s in staff if s.room_id == room.room_id),
            )
            for room in rooms
        ]
        unassigned = tuple(s for s in staff if s.room_id not in room_ids)
        if unassigned:
            groups.append(AssignmentGroup(room=None, staff=unassigned))

        object.__setattr__(self, "rooms", tuple(rooms))
        object.__setattr__(self, "staff", tuple(staff))
        object.__setattr__(self, "_groups", tuple(groups))

    # ── Grouping ─────────────────────────────────────────────────────────

    @property
    def groups(self) -> tuple[AssignmentGroup, ...]:
        """Rooms by name, each with its staff; staff without a room last."""
        return self._groups

    def staff_in_room(self, room_id: str) -> tuple[StaffAssignment, ...]:
        return tuple(s for s in self.staff if s.room_id == room_id)

    @property
    def unassigned_staff(self) -> tuple[StaffAssignment, ...]:
        for group in self._groups:
            if group.room is None:
                return group.staff
        return ()

    # ── Picker filtering (advisory) ──────────────────────────────────────

    @property
    def room_ids(self) -> set[str]:
        return {r.room_id for r in self.rooms}

    @property
    def assigned_staff_ids(self) -> set[str]:
        return {s.staff_id for s in self.staff}

    def selectable_staff(self, candidates: Iterable[dict], key: str = "id") -> list[dict]:
        """Drop candidates that already hold a role anywhere in this slot."""
        taken = self.assigned_staff_ids
        return [c for c in candidates if c.get(key) not in taken]

    def rooms_for_staff_picker(self) -> list[RoomAssignment]:
        """Slot rooms that have no staff yet (UX nudge, not a hard rule)."""
        staffed = {s.room_id for s in self.staff if s.room_id}
        return [r for r in self.rooms if r.room_id not in staffed]

    def selectable_rooms(self, candidates: Iterable[dict], key: str = "id") -> list[dict]:
        """Branch rooms not assigned to this slot yet."""
        taken = self.room_ids
        return [c for c in candidates if c.get(key) not in taken]

    # ── Serialization ────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        def room_with_staff(room: RoomAssignment) -> dict:
            return {
                **room.to_dict(),
                "staff": [s.to_dict() for s in self.staff_in_room(room.room_id)],
            }

        return {
            "branch_slot_id": self.branch_slot_id,
            "rooms": [room_with_staff(r) for r in self.rooms],
            "staff": [s.to_dict() for s in self.staff],
            "groups": [
                {
                    "room": room_with_staff(g.room) if g.room else None,
                    "staff": [s.to_dict() for s in g.staff],
                }
                for g in self._groups
            ],
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "SlotAssignments":
        """Rebuild from a camelCase API payload (GET /BranchSlot/{id}/assignments)."""
        slot_id = payload.get("branchSlotId") or payload.get("branch_slot_id")
        rooms = tuple(
            RoomAssignment(
                branch_slot_id=slot_id,
                room_id=r.get("roomId"),
                room_name=r.get("roomName"),
                facility_name=r.get("facilityName"),
                capacity=r.get("capacity"),
            )
            for r in payload.get("rooms") or []
        )
        staff = tuple(
            StaffAssignment(
                branch_slot_id=slot_id,
                staff_id=s.get("staffId"),
                staff_name=s.get("staffName"),
                email=s.get("email"),
                room_id=s.get("roomId"),
                room_name=s.get("roomName"),
                role_label=s.get("name"),
            )
            for s in payload.get("staff") or []
        )
        return cls(branch_slot_id=slot_id, rooms=rooms, staff=staff)
