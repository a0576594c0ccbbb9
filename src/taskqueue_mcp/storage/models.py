"""Persisted task queue document models."""

from __future__ import annotations

from typing import Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

TaskStatus = Literal["not started", "in progress", "done"]
TASK_STATUSES: tuple[str, ...] = ("not started", "in progress", "done")


def highest_sequence(identifiers: Iterable[str], prefix: str) -> int:
    """Return the largest numeric suffix among ``<prefix><n>`` identifiers (0 if none)."""

    highest = 0
    for identifier in identifiers:
        if not identifier.startswith(prefix):
            continue
        suffix = identifier[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


class Task(BaseModel):
    """A unit of work inside a project."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Identifier unique within the owning project (task-<n>).")
    title: str = Field(..., description="Short title of the task.")
    description: str = Field(..., description="Detailed description of the work.")
    status: TaskStatus = Field(default="not started", description="Lifecycle status.")
    approved: bool = Field(default=False, description="Set once the task is approved; freezes the task.")
    completed_details: str = Field(
        default="",
        alias="completedDetails",
        description="Completion notes, present exactly when the task is done.",
    )
    tool_recommendations: str = Field(
        default="",
        alias="toolRecommendations",
        description="Advisory notes on tools to use.",
    )
    rule_recommendations: str = Field(
        default="",
        alias="ruleRecommendations",
        description="Advisory notes on rules to review.",
    )


class Project(BaseModel):
    """An ordered collection of tasks with a completion gate."""

    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(..., alias="projectId", description="Project identifier (proj-<n>).")
    initial_prompt: str = Field(..., alias="initialPrompt", description="Goal statement, immutable.")
    project_plan: str = Field(default="", alias="projectPlan", description="Detailed plan text.")
    auto_approve: bool = Field(
        default=False,
        alias="autoApprove",
        description="Approve tasks automatically when they are marked done.",
    )
    completed: bool = Field(default=False, description="Set when the project is finalized.")
    tasks: list[Task] = Field(default_factory=list, description="Tasks in execution order.")
    task_counter: int = Field(
        default=0,
        alias="taskCounter",
        description="Highest task number ever allocated in this project.",
    )

    @model_validator(mode="after")
    def _reconstruct_task_counter(self) -> "Project":
        self.task_counter = max(
            self.task_counter,
            highest_sequence((task.id for task in self.tasks), "task-"),
            len(self.tasks),
        )
        return self

    def find_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


class TaskQueueState(BaseModel):
    """Aggregate root persisted as a single JSON document."""

    model_config = ConfigDict(populate_by_name=True)

    projects: list[Project] = Field(default_factory=list)
    project_counter: int = Field(
        default=0,
        alias="projectCounter",
        description="Highest project number ever allocated.",
    )

    @model_validator(mode="after")
    def _reconstruct_project_counter(self) -> "TaskQueueState":
        self.project_counter = max(
            self.project_counter,
            highest_sequence((project.project_id for project in self.projects), "proj-"),
            len(self.projects),
        )
        return self

    def find_project(self, project_id: str) -> Project | None:
        for project in self.projects:
            if project.project_id == project_id:
                return project
        return None

    def to_document(self) -> dict:
        """Return the camelCase document written to disk."""

        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "Project",
    "TASK_STATUSES",
    "Task",
    "TaskQueueState",
    "TaskStatus",
    "highest_sequence",
]
