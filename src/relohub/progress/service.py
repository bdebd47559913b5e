"""Per-user checklist progress.

The stored record is a denormalized cache: every mutation recomputes it in
full from the completed-task list and the current active universe (active
tasks inside active categories). Inactive or deleted tasks stay in the
completed list but never count.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.auth.plans import is_entitled
from relohub.clock import utcnow
from relohub.db.models import Category, Task, User, UserProgress
from relohub.errors import InvalidTaskError, PlanRequiredError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveUniverse:
    """Active category ids (display order) and active task id -> category id."""

    category_ids: list[str]
    task_categories: dict[str, str]


def percent(done: int, total: int) -> int:
    """100 * done / total rounded half up, 0 for an empty set."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


def compute_progress(completed_task_ids: set[str], universe: ActiveUniverse) -> tuple[int, dict[str, int]]:
    """Return (overall, per-category) percentages over the active universe."""
    totals: dict[str, int] = defaultdict(int)
    done: dict[str, int] = defaultdict(int)
    for task_id, category_id in universe.task_categories.items():
        totals[category_id] += 1
        if task_id in completed_task_ids:
            done[category_id] += 1

    overall = percent(sum(done.values()), len(universe.task_categories))
    per_category = {cid: percent(done[cid], totals[cid]) for cid in universe.category_ids}
    return overall, per_category


async def load_active_universe(db: AsyncSession) -> ActiveUniverse:
    categories = await db.execute(
        select(Category.id).where(Category.is_active.is_(True)).order_by(Category.order)
    )
    category_ids = list(categories.scalars().all())
    tasks = await db.execute(
        select(Task.id, Task.category_id)
        .join(Category, Category.id == Task.category_id)
        .where(Task.is_active.is_(True), Category.is_active.is_(True))
    )
    return ActiveUniverse(category_ids=category_ids, task_categories={tid: cid for tid, cid in tasks})


def completed_ids(record: UserProgress) -> set[str]:
    return {entry["taskId"] for entry in record.completed_tasks or []}


class ProgressService:
    """Reads and mutations of a user's progress record."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get_record(self, user_id: str) -> UserProgress | None:
        result = await self.db.execute(
            select(UserProgress)
            .where(UserProgress.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _recompute(self, record: UserProgress) -> UserProgress:
        universe = await load_active_universe(self.db)
        overall, per_category = compute_progress(completed_ids(record), universe)
        record.overall_progress = overall
        record.category_progress = per_category
        return record

    async def get_or_init(self, user_id: str) -> UserProgress:
        """Return the user's record, recomputed and persisted. Creates a zeroed one if missing."""
        record = await self._get_record(user_id)
        if record is None:
            record = UserProgress(user_id=user_id, completed_tasks=[], category_progress={})
            self.db.add(record)
            logger.info("Progress record created for user %s", user_id)
        await self._recompute(record)
        await self.db.commit()
        return record

    async def toggle_task(
        self,
        user: User,
        task_id: str,
        completed: bool,
        now: datetime | None = None,
    ) -> UserProgress:
        """
        Mark a task complete or incomplete, then recompute.

        Raises:
            InvalidTaskError: The task is missing or not active.
            PlanRequiredError: The user has no active paid plan (checked second).
        """
        task = await self.db.get(Task, task_id)
        category = await self.db.get(Category, task.category_id) if task is not None else None
        if task is None or not task.is_active or category is None or not category.is_active:
            raise InvalidTaskError
        if not is_entitled(user, now):
            raise PlanRequiredError()

        record = await self._get_record(user.id)
        if record is None:
            record = UserProgress(user_id=user.id, completed_tasks=[], category_progress={})
            self.db.add(record)

        entries = list(record.completed_tasks or [])
        present = any(entry["taskId"] == task_id for entry in entries)
        if completed and not present:
            entries.append({"taskId": task_id, "completedAt": (now or utcnow()).isoformat()})
        elif not completed and present:
            entries = [entry for entry in entries if entry["taskId"] != task_id]
        record.completed_tasks = entries

        await self._recompute(record)
        await self.db.commit()
        logger.info(
            "Progress recomputed for user %s: task %s completed=%s overall=%d",
            user.id,
            task_id,
            completed,
            record.overall_progress,
        )
        return record

    async def reset_all(self) -> int:
        """Delete every progress record. Returns the number removed."""
        records = (await self.db.execute(select(UserProgress))).scalars().all()
        for record in records:
            await self.db.delete(record)
        await self.db.commit()
        logger.warning("Reset progress for %d user(s)", len(records))
        return len(records)
