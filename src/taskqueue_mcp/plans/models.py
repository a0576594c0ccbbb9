"""Plan document models used to seed projects from files."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PlanTask(BaseModel):
    """A task entry in a plan file."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    title: str = Field(..., description="Short title of the task.")
    description: str = Field(..., description="Detailed description of the work.")
    tool_recommendations: str | None = Field(
        default=None,
        alias="toolRecommendations",
        description="Optional advisory notes on tools to use.",
    )
    rule_recommendations: str | None = Field(
        default=None,
        alias="ruleRecommendations",
        description="Optional advisory notes on rules to review.",
    )

    @field_validator("title", "description")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Plan task title and description must not be empty")
        return value


class PlanDocument(BaseModel):
    """A project definition: goal statement, optional plan text and ordered tasks."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    initial_prompt: str = Field(..., alias="initialPrompt", description="Goal of the project.")
    project_plan: str | None = Field(
        default=None,
        alias="projectPlan",
        description="Detailed plan; the initial prompt is used when omitted.",
    )
    auto_approve: bool = Field(
        default=False,
        alias="autoApprove",
        description="Approve tasks automatically when they are marked done.",
    )
    tasks: list[PlanTask] = Field(default_factory=list, description="Tasks in execution order.")

    @field_validator("initial_prompt")
    @classmethod
    def _require_prompt(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("initialPrompt must not be empty")
        return value

    @field_validator("tasks", mode="before")
    @classmethod
    def _ensure_list(cls, value: Any):  # type: ignore[override]
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(value)
        raise ValueError("tasks must be a sequence of task objects")

    def task_drafts(self) -> list[dict[str, Any]]:
        """Return the tasks in the camelCase shape accepted by the task manager."""

        return [task.model_dump(by_alias=True, exclude_none=True) for task in self.tasks]


__all__ = ["PlanDocument", "PlanTask"]
