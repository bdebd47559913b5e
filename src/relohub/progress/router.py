"""Progress endpoints: /api/dashboard/progress."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.auth.dependencies import get_current_user
from relohub.database import get_session
from relohub.db.models import User, UserProgress
from relohub.progress.schemas import CompletedTask, ProgressOut, ToggleRequest
from relohub.progress.service import ProgressService
from relohub.schemas import ok

router = APIRouter(prefix="/api/dashboard/progress", tags=["Progress"])


def progress_response(record: UserProgress) -> ProgressOut:
    return ProgressOut(
        user_id=record.user_id,
        overall_progress=record.overall_progress,
        category_progress=dict(record.category_progress or {}),
        completed_tasks=[
            CompletedTask(task_id=entry["taskId"], completed_at=entry["completedAt"])
            for entry in record.completed_tasks or []
        ],
        updated_at=record.updated_at,
    )


@router.get("")
async def get_progress(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    record = await ProgressService(db).get_or_init(user.id)
    return ok(progress_response(record))


@router.put("")
async def toggle_task(
    body: ToggleRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    record = await ProgressService(db).toggle_task(user, body.task_id, body.completed)
    return ok(progress_response(record))
