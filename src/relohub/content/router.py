"""Category and task endpoints: /api/categories/*, /api/tasks/*.

Reads are open to admins and to users holding an active paid plan (active
content only). Every mutation is admin-only.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.auth.dependencies import get_current_admin, get_entitled_user
from relohub.content.schemas import (
    CategoryCreate,
    CategoryOut,
    CategoryReorder,
    CategoryUpdate,
    OrderUpdate,
    TaskCreate,
    TaskOut,
    TaskReorder,
    TaskUpdate,
)
from relohub.content.service import ContentService
from relohub.database import get_session
from relohub.db.models import Category, Task, User
from relohub.schemas import ok

categories_router = APIRouter(prefix="/api/categories", tags=["Categories"])
tasks_router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


def _categories(rows: list[Category]) -> list[CategoryOut]:
    return [CategoryOut.model_validate(row) for row in rows]


def _tasks(rows: list[Task]) -> list[TaskOut]:
    return [TaskOut.model_validate(row) for row in rows]


def _sees_inactive(user: User, requested: bool) -> bool:
    return user.role == "admin" and requested


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


@categories_router.get("")
async def list_categories(
    include_inactive: bool = Query(True, alias="includeInactive"),
    user: User = Depends(get_entitled_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    rows = await ContentService(db).list_categories(include_inactive=_sees_inactive(user, include_inactive))
    return ok(_categories(rows))


@categories_router.post("", status_code=201)
async def create_category(
    body: CategoryCreate,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    category = await ContentService(db).create_category(body)
    return ok(CategoryOut.model_validate(category))


@categories_router.patch("/reorder")
async def reorder_categories(
    body: CategoryReorder,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    rows = await ContentService(db).reorder_categories([(p.id, p.order) for p in body.categories])
    return ok(_categories(rows))


@categories_router.get("/{category_id}")
async def get_category(
    category_id: str,
    user: User = Depends(get_entitled_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    category = await ContentService(db).get_category(category_id, include_inactive=user.role == "admin")
    return ok(CategoryOut.model_validate(category))


@categories_router.patch("/{category_id}")
async def update_category(
    category_id: str,
    body: CategoryUpdate,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    category, changes = await ContentService(db).update_category(category_id, body)
    return ok(CategoryOut.model_validate(category), changes=changes)


@categories_router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    await ContentService(db).delete_category(category_id)
    return ok(None, message="Category deleted successfully")


@categories_router.patch("/{category_id}/order")
async def move_category(
    category_id: str,
    body: OrderUpdate,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    rows = await ContentService(db).reorder_category(category_id, body.new_order)
    return ok(_categories(rows))


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@tasks_router.get("")
async def list_tasks(
    category: str | None = Query(None),
    include_inactive: bool = Query(True, alias="includeInactive"),
    user: User = Depends(get_entitled_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    rows = await ContentService(db).list_tasks(
        category,
        include_inactive=_sees_inactive(user, include_inactive),
    )
    return ok(_tasks(rows))


@tasks_router.post("", status_code=201)
async def create_task(
    body: TaskCreate,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    task = await ContentService(db).create_task(body)
    return ok(TaskOut.model_validate(task))


@tasks_router.patch("/reorder")
async def reorder_tasks(
    body: TaskReorder,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    rows = await ContentService(db).reorder_tasks(body.category_id, [(p.id, p.order) for p in body.tasks])
    return ok(_tasks(rows))


@tasks_router.get("/{task_id}")
async def get_task(
    task_id: str,
    user: User = Depends(get_entitled_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    task = await ContentService(db).get_task(task_id, include_inactive=user.role == "admin")
    return ok(TaskOut.model_validate(task))


@tasks_router.patch("/{task_id}")
async def update_task(
    task_id: str,
    body: TaskUpdate,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    task, changes = await ContentService(db).update_task(task_id, body)
    return ok(TaskOut.model_validate(task), changes=changes)


@tasks_router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    await ContentService(db).delete_task(task_id)
    return ok(None, message="Task deleted successfully")


@tasks_router.patch("/{task_id}/order")
async def move_task(
    task_id: str,
    body: OrderUpdate,
    _admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    rows = await ContentService(db).reorder_task(task_id, body.new_order)
    return ok(_tasks(rows))
