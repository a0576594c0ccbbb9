"""JSON file persistence for the task queue state."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import suppress
from pathlib import Path

from pydantic import ValidationError as SchemaValidationError

from ..errors import ParseError, StorageError
from .models import TaskQueueState

logger = logging.getLogger(__name__)


class JsonFileStore:
    """Load and atomically save the whole task queue state as one JSON document."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> TaskQueueState:
        """Read the backing file; a missing file yields an empty state."""

        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("Task file missing, starting empty", extra={"path": str(self._path)})
            return TaskQueueState()
        except UnicodeDecodeError as exc:
            raise ParseError(f"Task file {self._path} is not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise StorageError(f"Unable to read task file {self._path}: {exc}") from exc

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Task file {self._path} is not valid JSON: {exc}") from exc

        try:
            return TaskQueueState.model_validate(document)
        except SchemaValidationError as exc:
            raise ParseError(f"Task file {self._path} does not match the task schema: {exc}") from exc

    def save(self, state: TaskQueueState) -> None:
        """Write state through a temp file renamed into place, so readers never see a partial file."""

        payload = json.dumps(state.to_document(), indent=2) + "\n"
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(directory), prefix=f".{self._path.name}.", suffix=".tmp")
        except OSError as exc:
            raise StorageError(f"Unable to prepare task file {self._path}: {exc}") from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except BaseException as exc:
            with suppress(OSError):
                os.unlink(tmp_name)
            if isinstance(exc, OSError):
                raise StorageError(f"Unable to write task file {self._path}: {exc}") from exc
            raise

        logger.debug(
            "Saved task file",
            extra={"path": str(self._path), "project_count": len(state.projects)},
        )


__all__ = ["JsonFileStore"]
