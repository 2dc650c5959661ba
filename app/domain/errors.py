from __future__ import annotations

from enum import Enum


class ConflictField(str, Enum):
    email = "email"
    phone = "phone"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class InvalidInput(Exception):
    """Malformed client input (bad phone format, missing identifier)."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


# ---- record store ----
class MemberStoreError(Exception): ...
class NotFound(MemberStoreError): ...
class StoreError(MemberStoreError): ...


class Conflict(MemberStoreError):
    """A unique constraint fired; ``field`` says which one."""

    def __init__(self, field: ConflictField) -> None:
        super().__init__(f"{field.label} already exists")
        self.field = field


# ---- notification gateway ----
class DeliveryError(Exception): ...
