# backend/app/errors.py
"""
Error taxonomy shared by the service and the manager client.

Every error carries a stable `kind` (the class name) and a human-readable
message. HTTP mapping lives in main.py; the client maps response bodies
back onto the same classes.
"""

from typing import Optional


class SlotError(Exception):
    """Base class for branch slot errors."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "field": self.field}


class ValidationError(SlotError):
    """Missing or out-of-range field."""

    status_code = 422


class NotFoundError(SlotError):
    """Unknown slot, room, staff or student id."""

    status_code = 404


class ConflictError(SlotError):
    """Uniqueness rule violated (e.g. staff already in the slot)."""

    status_code = 409


class TransportError(SlotError):
    """Network failure, timeout or server error. Retry is up to the user."""

    status_code = 503


ERROR_KINDS: dict[str, type[SlotError]] = {
    cls.__name__: cls
    for cls in (ValidationError, NotFoundError, ConflictError, TransportError)
}
