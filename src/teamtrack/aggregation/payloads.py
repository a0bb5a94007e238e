"""Pydantic models for the REST collaborator's task payloads.

The dashboard API speaks camelCase (``epicId``, ``assignedTo``,
``startDate``…); snake_case is accepted too. Unknown fields such as
``businessId`` or ``attachments`` are ignored. Dates stay strings here:
unparsable values are the engine's concern and must not fail validation.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .model import Epic, EpicStatus, Task, TaskStatus


def _alias(snake: str, camel: str) -> Any:
    return Field(default=None, validation_alias=AliasChoices(camel, snake))


class TaskPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str = ""
    description: Optional[str] = None
    epic: Optional[str] = None
    epic_id: Optional[str] = _alias("epic_id", "epicId")
    sprint: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    assigned_to: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("assignedTo", "assigned_to"),
    )
    start_date: Optional[str] = _alias("start_date", "startDate")
    end_date: Optional[str] = _alias("end_date", "endDate")
    is_overdue: bool = Field(default=False, validation_alias=AliasChoices("isOverdue", "is_overdue"))
    created_at: Optional[str] = _alias("created_at", "createdAt")
    updated_at: Optional[str] = _alias("updated_at", "updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("start_date", "end_date", "created_at", "updated_at", mode="before")
    @classmethod
    def _isoformat_dates(cls, value: Any) -> Any:
        # YAML snapshots load unquoted dates as date/datetime objects.
        return value.isoformat() if isinstance(value, (date, datetime)) else value

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("status", mode="before")
    @classmethod
    def _unknown_status_is_pending(cls, value: Any) -> Any:
        valid = {s.value for s in TaskStatus}
        return value if value in valid or isinstance(value, TaskStatus) else TaskStatus.PENDING

    def to_task(self) -> Task:
        return Task.from_dict(self.model_dump())


class EpicPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: Optional[str] = None
    status: EpicStatus = EpicStatus.ACTIVE

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("status", mode="before")
    @classmethod
    def _unknown_status_is_active(cls, value: Any) -> Any:
        valid = {s.value for s in EpicStatus}
        return value if value in valid or isinstance(value, EpicStatus) else EpicStatus.ACTIVE

    def to_epic(self) -> Epic:
        return Epic.from_dict(self.model_dump(mode="json"))


class TaskListPayload(BaseModel):
    """``GET /tasks`` body: the task page plus server-side epic counts."""

    model_config = ConfigDict(extra="ignore")

    tasks: list[TaskPayload] = Field(default_factory=list)
    total: Optional[int] = None
    epics: list[EpicPayload] = Field(default_factory=list)
    epic_counts: Optional[dict[str, int]] = Field(
        default=None,
        validation_alias=AliasChoices("epicCounts", "epic_counts"),
    )


def _task_field_aliases() -> dict[str, str]:
    aliases: dict[str, str] = {}
    for name, info in TaskPayload.model_fields.items():
        aliases[name] = name
        for choice in getattr(info.validation_alias, "choices", None) or ():
            if isinstance(choice, str):
                aliases[choice] = name
    return aliases


# camelCase or snake_case key -> Task field name.
TASK_FIELD_ALIASES = _task_field_aliases()
