"""Admin curation of categories and tasks.

Every mutation validates, writes and commits first; the user-facing
notification fan-out runs afterwards and can never fail the mutation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.config import Settings, get_settings
from relohub.content.schemas import (
    CategoryCreate,
    CategoryUpdate,
    RenameResult,
    TaskCreate,
    TaskUpdate,
)
from relohub.content.sequence import (
    OrderPair,
    apply_orders,
    plan_compaction,
    plan_move,
)
from relohub.db.models import Category, Task
from relohub.errors import ConflictError, LimitExceededError, NotFoundError, ValidationError
from relohub.notifications.messages import EntityChange
from relohub.notifications.service import notify_entity_change, notify_task_moved

logger = logging.getLogger(__name__)

DISPLAY_NAME_MAX = 50
TITLE_MAX = 150
DESCRIPTION_MAX = 5000

# Field -> change tag shown to users in update notifications.
CATEGORY_CHANGE_TAGS = {
    "display_name": "name",
    "description": "description",
    "icon": "icon",
    "color": "color",
    "estimated_time_frame": "timeframe",
    "is_active": "status",
}

TASK_CHANGE_TAGS = {
    "title": "title",
    "description": "description",
    "category_id": "category",
    "estimated_duration": "duration",
    "difficulty": "difficulty",
    "external_links": "links",
    "helpful_links": "helpful links",
    "tips": "tips",
    "requirements": "requirements",
    "is_required": "required",
    "is_active": "status",
}


def _check_display_name(value: str | None) -> str:
    name = (value or "").strip()
    if not name or len(name) > DISPLAY_NAME_MAX:
        msg = f"Display name is required and must be {DISPLAY_NAME_MAX} characters or less"
        raise ValidationError(msg, fields={"displayName": msg})
    return name


def _check_title(value: str | None) -> str:
    title = (value or "").strip()
    if not title or len(title) > TITLE_MAX:
        msg = f"Title is required and must be {TITLE_MAX} characters or less"
        raise ValidationError(msg, fields={"title": msg})
    return title


def _check_description(value: str | None) -> str:
    description = (value or "").strip()
    if not description or len(description) > DESCRIPTION_MAX:
        msg = f"Description is required and must be {DESCRIPTION_MAX} characters or less"
        raise ValidationError(msg, fields={"description": msg})
    return description


def _dump_links(links: Sequence[Any]) -> list[dict[str, Any]]:
    return [link.model_dump() for link in links]


class ContentService:
    """Categories, tasks and their ordering."""

    def __init__(self, db: AsyncSession, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()

    # --- Reads ---

    async def list_categories(self, *, include_inactive: bool = True) -> list[Category]:
        stmt = select(Category).order_by(Category.order, Category.id)
        if not include_inactive:
            stmt = stmt.where(Category.is_active.is_(True))
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get_category(self, category_id: str, *, include_inactive: bool = True) -> Category:
        category = await self.db.get(Category, category_id)
        if category is None or (not include_inactive and not category.is_active):
            msg = "Category not found"
            raise NotFoundError(msg)
        return category

    async def list_tasks(
        self,
        category_id: str | None = None,
        *,
        include_inactive: bool = True,
    ) -> list[Task]:
        """Tasks ordered by category order, then task order."""
        stmt = (
            select(Task)
            .join(Category, Category.id == Task.category_id)
            .order_by(Category.order, Task.order, Task.id)
        )
        if category_id is not None:
            stmt = stmt.where(Task.category_id == category_id)
        if not include_inactive:
            stmt = stmt.where(Task.is_active.is_(True), Category.is_active.is_(True))
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get_task(self, task_id: str, *, include_inactive: bool = True) -> Task:
        task = await self.db.get(Task, task_id)
        if task is None:
            msg = "Task not found"
            raise NotFoundError(msg)
        if not include_inactive:
            category = await self.db.get(Category, task.category_id)
            if not task.is_active or category is None or not category.is_active:
                msg = "Task not found"
                raise NotFoundError(msg)
        return task

    # --- Counting helpers ---

    async def _count_active_categories(self) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Category).where(Category.is_active.is_(True))
        )
        return int(result.scalar_one())

    async def _count_tasks(self, category_id: str, *, active_only: bool) -> int:
        stmt = select(func.count()).select_from(Task).where(Task.category_id == category_id)
        if active_only:
            stmt = stmt.where(Task.is_active.is_(True))
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def _next_category_order(self) -> int:
        result = await self.db.execute(select(func.max(Category.order)))
        return int(result.scalar_one_or_none() or 0) + 1

    async def _next_task_order(self, category_id: str) -> int:
        result = await self.db.execute(select(func.max(Task.order)).where(Task.category_id == category_id))
        return int(result.scalar_one_or_none() or 0) + 1

    async def _ensure_unique_name(self, name: str, exclude_id: str | None = None) -> None:
        stmt = select(Category.id).where(func.lower(Category.display_name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        if (await self.db.execute(stmt)).first() is not None:
            msg = "A category with this name already exists"
            raise ConflictError(msg)

    async def _ensure_task_capacity(self, category_id: str) -> None:
        if await self._count_tasks(category_id, active_only=True) >= self.settings.task_limit_per_category:
            msg = f"Maximum of {self.settings.task_limit_per_category} tasks per category allowed"
            raise LimitExceededError(msg)

    async def _category_siblings(self) -> list[OrderPair]:
        result = await self.db.execute(select(Category.id, Category.order))
        return [(row.id, row.order) for row in result]

    async def _task_siblings(self, category_id: str) -> list[OrderPair]:
        result = await self.db.execute(select(Task.id, Task.order).where(Task.category_id == category_id))
        return [(row.id, row.order) for row in result]

    # --- Notification fan-out ---

    async def _announce(self, change: EntityChange, *entities: Any) -> None:
        """Fan out after the primary write committed. Failures are logged only."""
        for entity in entities:
            if entity is not None and entity in self.db:
                self.db.expunge(entity)
        try:
            await notify_entity_change(self.db, change, settings=self.settings)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.warning(
                "Notification fan-out failed for %s %s (%s)",
                change.entity_type,
                change.entity_id,
                change.action,
                exc_info=True,
            )

    # --- Categories ---

    async def create_category(self, data: CategoryCreate) -> Category:
        """Append a new category at the end of the global order."""
        if await self._count_active_categories() >= self.settings.category_limit:
            msg = f"Maximum of {self.settings.category_limit} categories allowed"
            raise LimitExceededError(msg)
        name = _check_display_name(data.display_name)
        await self._ensure_unique_name(name)

        category = Category(
            display_name=name,
            description=data.description.strip(),
            icon=data.icon or "circle",
            color=data.color or "#3B82F6",
            estimated_time_frame=data.estimated_time_frame,
            is_active=data.is_active,
            order=await self._next_category_order(),
        )
        self.db.add(category)
        await self.db.commit()
        logger.info("Category created: %s (order %d)", category.id, category.order)

        await self._announce(
            EntityChange("category", category.id, "created", category.display_name),
            category,
        )
        return category

    async def update_category(self, category_id: str, data: CategoryUpdate) -> tuple[Category, list[str]]:
        """Apply a partial update. Returns the category and the change tags."""
        category = await self.get_category(category_id)
        fields = data.model_dump(exclude_unset=True)
        if "display_name" in fields:
            fields["display_name"] = _check_display_name(fields["display_name"])
            await self._ensure_unique_name(fields["display_name"], exclude_id=category.id)
        if (
            fields.get("is_active") is True
            and not category.is_active
            and await self._count_active_categories() >= self.settings.category_limit
        ):
            msg = f"Maximum of {self.settings.category_limit} categories allowed"
            raise LimitExceededError(msg)
        if fields.get("is_active") is False and category.is_active and await self._count_active_categories() <= 1:
            msg = "Cannot deactivate the last active category"
            raise LimitExceededError(msg)

        changes: list[str] = []
        for field, value in fields.items():
            if value is None or getattr(category, field) == value:
                continue
            setattr(category, field, value)
            changes.append(CATEGORY_CHANGE_TAGS[field])

        if not changes:
            return category, changes

        await self.db.commit()
        logger.info("Category updated: %s %s", category.id, changes)
        await self._announce(
            EntityChange("category", category.id, "updated", category.display_name, changes),
            category,
        )
        return category, changes

    async def rename_category(self, category_id: str, display_name: str) -> RenameResult:
        """Identity is stable across renames, so only the display name changes."""
        category, _ = await self.update_category(category_id, CategoryUpdate(display_name=display_name))
        return RenameResult(id_changed=False, old_id=category.id, new_id=category.id)

    async def delete_category(self, category_id: str) -> None:
        """
        Delete an empty category and compact the remaining orders.

        Raises:
            LimitExceededError: It is the last (active) category.
            ConflictError: It still owns tasks.
        """
        category = await self.get_category(category_id)
        total = len(await self._category_siblings())
        if total <= 1 or (category.is_active and await self._count_active_categories() <= 1):
            msg = "Cannot delete the last category. Minimum 1 category required."
            raise LimitExceededError(msg)
        owned = await self._count_tasks(category.id, active_only=False)
        if owned:
            msg = f"Category still has {owned} task(s). Move or delete them first."
            raise ConflictError(msg, taskCount=owned)

        name = category.display_name
        await self.db.delete(category)
        await self.db.flush()
        await apply_orders(self.db, Category, plan_compaction(await self._category_siblings()))
        await self.db.commit()
        logger.info("Category deleted: %s", category_id)

        await self._announce(EntityChange("category", category_id, "deleted", name))

    async def reorder_category(self, category_id: str, new_order: Any) -> list[Category]:
        """Move one category; returns the resorted list."""
        await self.get_category(category_id)
        pairs = plan_move(await self._category_siblings(), category_id, new_order)
        if pairs:
            await apply_orders(self.db, Category, pairs)
            await self.db.commit()
            logger.info("Category reordered: %s -> %s (%d rows)", category_id, new_order, len(pairs))
        return await self.list_categories()

    async def reorder_categories(self, pairs: Sequence[OrderPair]) -> list[Category]:
        """Apply caller-supplied orders in one write. The permutation is trusted."""
        known = {item_id for item_id, _ in await self._category_siblings()}
        missing = [item_id for item_id, _ in pairs if item_id not in known]
        if missing:
            msg = f"Category not found: {missing[0]}"
            raise NotFoundError(msg)
        await apply_orders(self.db, Category, list(pairs))
        await self.db.commit()
        logger.info("Categories reordered (%d rows)", len(pairs))
        return await self.list_categories()

    # --- Tasks ---

    async def create_task(self, data: TaskCreate) -> Task:
        """Append a new task at the end of its category."""
        title = _check_title(data.title)
        description = _check_description(data.description)
        if not data.category_id:
            msg = "Category is required"
            raise ValidationError(msg, fields={"category": msg})
        category = await self.db.get(Category, data.category_id)
        if category is None:
            msg = "Category does not exist"
            raise ValidationError(msg, fields={"category": msg})
        await self._ensure_task_capacity(category.id)

        task = Task(
            title=title,
            description=description,
            category_id=category.id,
            order=await self._next_task_order(category.id),
            is_required=data.is_required,
            estimated_duration=data.estimated_duration,
            difficulty=data.difficulty,
            external_links=_dump_links(data.external_links),
            helpful_links=_dump_links(data.helpful_links),
            tips=list(data.tips),
            requirements=list(data.requirements),
            is_active=data.is_active,
        )
        self.db.add(task)
        await self.db.commit()
        logger.info("Task created: %s in %s (order %d)", task.id, category.id, task.order)

        await self._announce(EntityChange("task", task.id, "created", task.title), task, category)
        return task

    async def update_task(self, task_id: str, data: TaskUpdate) -> tuple[Task, list[str]]:
        """
        Apply a partial update. Returns the task and the change tags.

        Changing the category appends the task to the target category and
        compacts the one it left.
        """
        task = await self.get_task(task_id)
        fields = data.model_dump(exclude_unset=True)
        if "title" in fields:
            fields["title"] = _check_title(fields["title"])
        if "description" in fields:
            fields["description"] = _check_description(fields["description"])

        old_category_id = task.category_id
        moved_to: Category | None = None
        if fields.get("category_id") and fields["category_id"] != old_category_id:
            moved_to = await self.db.get(Category, fields["category_id"])
            if moved_to is None:
                msg = "Category does not exist"
                raise ValidationError(msg, fields={"category": msg})
            await self._ensure_task_capacity(moved_to.id)
            target_order = await self._next_task_order(moved_to.id)
        else:
            fields.pop("category_id", None)
            if fields.get("is_active") is True and not task.is_active:
                await self._ensure_task_capacity(task.category_id)

        changes: list[str] = []
        for field, value in fields.items():
            if value is None:
                continue
            if field in ("external_links", "helpful_links"):
                value = [dict(link) for link in value]
            if getattr(task, field) == value:
                continue
            setattr(task, field, value)
            changes.append(TASK_CHANGE_TAGS[field])

        if not changes:
            return task, changes

        if moved_to is not None:
            task.order = target_order
            await self.db.flush()
            await apply_orders(self.db, Task, plan_compaction(await self._task_siblings(old_category_id)))
        await self.db.commit()
        logger.info("Task updated: %s %s", task.id, changes)

        move_names: tuple[str, str] | None = None
        if moved_to is not None:
            old_category = await self.db.get(Category, old_category_id)
            if old_category is not None:
                move_names = (old_category.display_name, moved_to.display_name)

        await self._announce(EntityChange("task", task.id, "updated", task.title, changes), task)
        if move_names is not None:
            await self._announce_move(task.title, *move_names)
        return task, changes

    async def _announce_move(self, task_title: str, old_name: str, new_name: str) -> None:
        try:
            await notify_task_moved(self.db, task_title, old_name, new_name, settings=self.settings)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.warning("Task move notification failed for %r", task_title, exc_info=True)

    async def rename_task(self, task_id: str, title: str) -> RenameResult:
        task, _ = await self.update_task(task_id, TaskUpdate(title=title))
        return RenameResult(id_changed=False, old_id=task.id, new_id=task.id)

    async def delete_task(self, task_id: str) -> None:
        """Delete a task and compact its category. The last task of a category is kept."""
        task = await self.get_task(task_id)
        if await self._count_tasks(task.category_id, active_only=False) <= 1:
            msg = "Cannot delete the last task in a category"
            raise LimitExceededError(msg)

        title, category_id = task.title, task.category_id
        await self.db.delete(task)
        await self.db.flush()
        await apply_orders(self.db, Task, plan_compaction(await self._task_siblings(category_id)))
        await self.db.commit()
        logger.info("Task deleted: %s from %s", task_id, category_id)

        await self._announce(EntityChange("task", task_id, "deleted", title))

    async def reorder_task(self, task_id: str, new_order: Any) -> list[Task]:
        """Move one task within its category; returns that category's resorted tasks."""
        task = await self.get_task(task_id)
        category_id = task.category_id
        pairs = plan_move(await self._task_siblings(category_id), task_id, new_order)
        if pairs:
            await apply_orders(self.db, Task, pairs)
            await self.db.commit()
            logger.info("Task reordered: %s -> %s (%d rows)", task_id, new_order, len(pairs))
        return await self.list_tasks(category_id)

    async def reorder_tasks(self, category_id: str, pairs: Sequence[OrderPair]) -> list[Task]:
        """Apply caller-supplied orders within one category in one write."""
        await self.get_category(category_id)
        known = {item_id for item_id, _ in await self._task_siblings(category_id)}
        missing = [item_id for item_id, _ in pairs if item_id not in known]
        if missing:
            msg = f"Task not found in category: {missing[0]}"
            raise NotFoundError(msg)
        await apply_orders(self.db, Task, list(pairs))
        await self.db.commit()
        logger.info("Tasks reordered in %s (%d rows)", category_id, len(pairs))
        return await self.list_tasks(category_id)
