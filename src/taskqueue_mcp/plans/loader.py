"""Plan file loading utilities."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import PlanDocument

PLAN_SUFFIXES = (".yaml", ".yml", ".json")


class PlanLoadError(RuntimeError):
    """Raised when a plan file cannot be read, parsed or validated."""


class PlanLoader:
    """Loads project plans from YAML or JSON files on disk."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else None

    def resolve(self, source: str | Path) -> Path:
        """Return the plan path, relative paths resolved against the base directory."""

        path = Path(source).expanduser()
        if not path.is_absolute() and self._base_dir is not None:
            path = self._base_dir / path
        return path

    def load(self, source: str | Path) -> PlanDocument:
        path = self.resolve(source)
        if path.suffix.lower() not in PLAN_SUFFIXES:
            raise PlanLoadError(
                f"Unsupported plan file {path}; expected one of {', '.join(PLAN_SUFFIXES)}"
            )
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PlanLoadError(f"Failed to read plan {path}: {exc}") from exc

        try:
            if path.suffix.lower() == ".json":
                document = json.loads(text)
            else:
                document = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise PlanLoadError(f"Failed to parse plan {path}: {exc}") from exc

        if not isinstance(document, dict):
            raise PlanLoadError(f"Plan {path} must contain a mapping at the top level")

        try:
            return PlanDocument.model_validate(document)
        except ValidationError as exc:
            raise PlanLoadError(f"Plan validation error in {path}: {exc}") from exc


def load_plan(source: str | Path) -> PlanDocument:
    """Convenience wrapper for loading a single plan file."""

    return PlanLoader().load(source)


__all__ = ["PLAN_SUFFIXES", "PlanLoadError", "PlanLoader", "load_plan"]
