"""Progress request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, StrictBool

from relohub.schemas import CamelModel


class CompletedTask(CamelModel):
    task_id: str
    completed_at: str


class ProgressOut(CamelModel):
    user_id: str
    overall_progress: int
    category_progress: dict[str, int]
    completed_tasks: list[CompletedTask]
    updated_at: datetime | None = None


class ToggleRequest(CamelModel):
    task_id: str = Field(..., min_length=1)
    completed: StrictBool
