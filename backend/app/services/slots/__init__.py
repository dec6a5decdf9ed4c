# backend/app/services/slots/__init__.py
"""
Branch slot subsystem.

registry     - slot lifecycle (create / update / get / delete / list)
assignments  - rooms and staff per slot, cascade on room removal
availability - slots a student can book on a date
"""

from .config import SlotsConfig, get_slots_config
from .paging import PageResult
from .views import AssignmentGroup, RoomAssignment, SlotAssignments, StaffAssignment
from . import registry, assignments, availability

__all__ = [
    "SlotsConfig",
    "get_slots_config",
    "PageResult",
    "AssignmentGroup",
    "RoomAssignment",
    "SlotAssignments",
    "StaffAssignment",
    "registry",
    "assignments",
    "availability",
]
