"""Pydantic schemas for grant-year tasks.

Tasks move PENDING -> IN_PROGRESS -> COMPLETED or CANCELLED.  There is no
transition function; the stored-record schema only checks that a task's
status is consistent with its dates.
"""

from datetime import datetime, timezone
from typing import ClassVar, List, Optional

from app.models.core import TaskPriority, TaskStatus
from app.models.rules import (
    Issue,
    Schema,
    as_utc,
    id_field,
    max_length,
    min_length,
    text_field,
)

TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED.value, TaskStatus.CANCELLED.value})

TaskTitle = text_field(
    min_length(5, "Task title must be at least 5 characters"),
    max_length(200, "Task title must be less than 200 characters"),
)
TaskDescription = text_field(
    max_length(1000, "Task description must be less than 1000 characters"),
)


def completion_recorded(data: Schema) -> List[Issue]:
    if data.status == TaskStatus.COMPLETED.value and data.completed_at is None:
        return [("completed_at", "Completed tasks must have a completion date")]
    return []


def overdue_is_closed(data: Schema) -> List[Issue]:
    """A task past its due date must be completed or cancelled."""
    if data.due_date is None:
        return []
    if as_utc(data.due_date) >= datetime.now(timezone.utc):
        return []
    if data.status in TERMINAL_STATUSES:
        return []
    return [("status", "Overdue tasks must be completed or cancelled")]


class TaskCreate(Schema):
    """Payload for creating a task. Completion is recorded later."""

    grant_year_id: id_field("Invalid Grant Year ID")
    title: TaskTitle
    description: Optional[TaskDescription] = None
    status: TaskStatus
    priority: TaskPriority
    assigned_to_id: Optional[id_field("Invalid User ID")] = None
    due_date: Optional[datetime] = None
    created_by_id: id_field("Invalid User ID")


class Task(TaskCreate):
    """A stored task."""

    refinements: ClassVar = (completion_recorded, overdue_is_closed)

    id: id_field()
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TaskUpdate(Schema):
    """Partial task update. A task keeps its grant year and creator."""

    partial: ClassVar[bool] = True
    nullable: ClassVar = frozenset({"description", "assigned_to_id", "due_date", "completed_at"})

    title: Optional[TaskTitle] = None
    description: Optional[TaskDescription] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to_id: Optional[id_field("Invalid User ID")] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
