"""
manager/app/utils/api.py

HTTP client for the branch slot API.

Manager → Branch Slot API

Errors come back as typed exceptions (backend.app.errors), never as None:
  4xx with {"kind": ...}    → ValidationError / NotFoundError / ConflictError
  5xx, timeouts, refused    → TransportError
No automatic retry: the user decides when to resubmit.
"""

import logging
from datetime import date, datetime
from typing import Optional

import httpx
from pydantic.alias_generators import to_camel

from backend.app.errors import (
    ERROR_KINDS,
    ConflictError,
    NotFoundError,
    SlotError,
    TransportError,
    ValidationError,
)
from backend.app.services.slots.views import SlotAssignments
from backend.app.services.time_rules import to_wire_date, wire_timestamp_for

from ..config import API_TIMEOUT_SECONDS, BRANCH_SLOT_API_URL

logger = logging.getLogger(__name__)

_STATUS_ERRORS: dict[int, type[SlotError]] = {
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


def wire_value(value):
    """Dates go out as bare YYYY-MM-DD, datetimes pinned to +07:00."""
    if isinstance(value, datetime):
        return wire_timestamp_for(value)
    if isinstance(value, date):
        return to_wire_date(value)
    return value


def to_payload(fields: dict) -> dict:
    return {to_camel(name): wire_value(value) for name, value in fields.items()}


class ApiClient:
    """Blocking client: each flow stage waits for its call to resolve."""

    def __init__(
        self,
        base_url: str = BRANCH_SLOT_API_URL,
        timeout: float = API_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _request(self, method: str, path: str, **kwargs) -> Optional[dict | list]:
        """Base HTTP request."""
        try:
            resp = self.http.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"API timeout: {method} {path} -> {e}")
            raise TransportError(f"Request timed out: {method} {path}") from e
        except httpx.RequestError as e:
            logger.error(f"API request failed: {method} {path} -> {e}")
            raise TransportError(f"Request failed: {method} {path}: {e}") from e

        if resp.status_code == 204:
            return None

        if resp.status_code >= 500:
            logger.error(f"API error: {method} {path} -> {resp.status_code}")
            raise TransportError(f"Server error {resp.status_code}: {method} {path}")

        if resp.status_code >= 400:
            error = _error_from(resp)
            logger.warning(f"API error: {method} {path} -> {resp.status_code} {error.kind}")
            raise error

        return resp.json()

    # ------------------------------------------------------------------
    # Branch slots
    # ------------------------------------------------------------------

    def create_slot(self, branch_id: str, **fields) -> dict:
        """POST /BranchSlot"""
        return self._request("POST", "/BranchSlot", json=to_payload({"branch_id": branch_id, **fields}))

    def update_slot(self, slot_id: str, **fields) -> dict:
        """PUT /BranchSlot/{id}: only the given fields change."""
        return self._request("PUT", f"/BranchSlot/{slot_id}", json=to_payload(fields))

    def get_slot(self, slot_id: str) -> dict:
        """GET /BranchSlot/{id}: incl. rooms[] and staff[]."""
        return self._request("GET", f"/BranchSlot/{slot_id}")

    def delete_slot(self, slot_id: str, hard: bool = False) -> None:
        """DELETE /BranchSlot/{id}: soft-delete unless hard."""
        params = {"hard": "true"} if hard else None
        self._request("DELETE", f"/BranchSlot/{slot_id}", params=params)

    def list_slots(self, page_index: int = 1, page_size: Optional[int] = None, **filters) -> dict:
        """GET /BranchSlot/paged"""
        params = {"pageIndex": page_index, **to_payload(filters)}
        if page_size:
            params["pageSize"] = page_size
        params = {k: v for k, v in params.items() if v is not None}
        return self._request("GET", "/BranchSlot/paged", params=params)

    def available_for_student(
        self,
        student_id: str,
        on_date=None,
        page_index: int = 1,
        page_size: Optional[int] = None,
    ) -> dict:
        """GET /BranchSlot/available-for-student/{studentId}"""
        params = {"pageIndex": page_index}
        if page_size:
            params["pageSize"] = page_size
        if on_date is not None:
            params["date"] = wire_value(on_date)
        return self._request(
            "GET", f"/BranchSlot/available-for-student/{student_id}", params=params
        )

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def list_assignments(self, slot_id: str) -> SlotAssignments:
        """GET /BranchSlot/{id}/assignments"""
        result = self._request("GET", f"/BranchSlot/{slot_id}/assignments")
        return SlotAssignments.from_dict(result)

    def list_slot_rooms(
        self,
        slot_id: str,
        page_index: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> dict:
        """GET /BranchSlot/{id}/rooms"""
        params = {}
        if page_index:
            params["pageIndex"] = page_index
        if page_size:
            params["pageSize"] = page_size
        return self._request("GET", f"/BranchSlot/{slot_id}/rooms", params=params)

    def assign_rooms(self, slot_id: str, room_ids: list[str]) -> SlotAssignments:
        """POST /BranchSlot/assign-rooms"""
        result = self._request(
            "POST",
            "/BranchSlot/assign-rooms",
            json={"branchSlotId": slot_id, "roomIds": list(room_ids)},
        )
        return SlotAssignments.from_dict(result)

    def unassign_room(self, slot_id: str, room_id: str) -> dict:
        """DELETE /BranchSlot/{id}/rooms/{roomId}: staff in the room go with it."""
        return self._request("DELETE", f"/BranchSlot/{slot_id}/rooms/{room_id}")

    def assign_staff(
        self,
        slot_id: str,
        staff_id: str,
        room_id: Optional[str] = None,
        role_label: Optional[str] = None,
    ) -> SlotAssignments:
        """POST /BranchSlot/assign-staff"""
        data = {"branchSlotId": slot_id, "userId": staff_id}
        if room_id:
            data["roomId"] = room_id
        if role_label:
            data["name"] = role_label
        result = self._request("POST", "/BranchSlot/assign-staff", json=data)
        return SlotAssignments.from_dict(result)

    def unassign_staff(self, slot_id: str, staff_id: str) -> dict:
        """DELETE /BranchSlot/{id}/staff/{staffId}"""
        return self._request("DELETE", f"/BranchSlot/{slot_id}/staff/{staff_id}")

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def get_timeframes(self) -> list[dict]:
        return self._request("GET", "/Timeframe") or []

    def get_slot_types(self) -> list[dict]:
        return self._request("GET", "/SlotType") or []

    def get_student_levels(self) -> list[dict]:
        return self._request("GET", "/StudentLevel") or []

    def get_rooms(self, branch_id: Optional[str] = None) -> list[dict]:
        params = {"branchId": branch_id} if branch_id else None
        return self._request("GET", "/Room", params=params) or []

    def get_staff(self, branch_id: Optional[str] = None) -> list[dict]:
        params = {"branchId": branch_id} if branch_id else None
        return self._request("GET", "/Staff", params=params) or []


def _error_from(resp: httpx.Response) -> SlotError:
    """Map an error response back onto the shared error classes."""
    try:
        body = resp.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    cls = ERROR_KINDS.get(body.get("kind")) or _STATUS_ERRORS.get(resp.status_code, ValidationError)
    message = body.get("message") or body.get("detail") or resp.text or f"HTTP {resp.status_code}"
    return cls(str(message), field=body.get("field"))
