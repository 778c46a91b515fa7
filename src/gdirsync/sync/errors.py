"""Failure categories raised by the reconciliation engine.

Every failure names the entity kind and key it was working on, so callers
can branch on the category instead of parsing messages. The underlying API
or conversion error is kept as ``__cause__``.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for reconciliation failures."""

    operation = "sync"

    def __init__(self, entity_kind: str, key: str, message: str):
        self.entity_kind = entity_kind
        self.key = key
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        target = f"{self.entity_kind} {self.key}" if self.key else self.entity_kind
        return f"failed to {self.operation} {target}: {self.message}"


class ListFailure(SyncError):
    operation = "list"


class ConvertFailure(SyncError):
    operation = "convert"


class CreateFailure(SyncError):
    operation = "create"


class UpdateFailure(SyncError):
    operation = "update"


class DeleteFailure(SyncError):
    operation = "delete"


class LicenseFailure(SyncError):
    operation = "sync"


class SchemaFailure(SyncError):
    operation = "sync"
