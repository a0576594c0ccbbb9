"""Error kinds raised by the task queue core."""

from __future__ import annotations


class TaskQueueError(RuntimeError):
    """Base class for recoverable, per-operation task queue failures."""

    kind = "TaskQueueError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class ValidationError(TaskQueueError):
    """Raised when arguments or lifecycle rules reject an operation."""

    kind = "ValidationError"


class NotFoundError(TaskQueueError):
    """Raised when a project or task id does not resolve."""

    kind = "NotFoundError"


class ConflictError(TaskQueueError):
    """Raised when an operation would modify a frozen (approved or finalized) entity."""

    kind = "ConflictError"


class ParseError(TaskQueueError):
    """Raised when the backing file exists but cannot be read as task queue state."""

    kind = "ParseError"


class StorageError(TaskQueueError):
    """Raised when the backing file cannot be read or written."""

    kind = "StorageError"


__all__ = [
    "ConflictError",
    "NotFoundError",
    "ParseError",
    "StorageError",
    "TaskQueueError",
    "ValidationError",
]
