"""Request/response schemas for categories and tasks."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, Field

from relohub.schemas import CamelModel

TimeFrame = Literal[
    "",
    "Before departure",
    "First week",
    "First month",
    "1-3 months",
    "3-6 months",
    "6+ months",
    "Ongoing",
]

Duration = Literal[
    "",
    "15-30 minutes",
    "30-60 minutes",
    "1-2 hours",
    "2-4 hours",
    "Half day",
    "Full day",
    "2-3 days",
    "1 week",
    "2-4 weeks",
    "1-2 months",
]

Difficulty = Literal["easy", "medium", "hard"]

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


class CategoryCreate(CamelModel):
    display_name: str = ""
    description: str = Field("", max_length=500)
    icon: str = Field("circle", max_length=64)
    color: str = Field("#3B82F6", pattern=HEX_COLOR)
    estimated_time_frame: TimeFrame = ""
    is_active: bool = True


class CategoryUpdate(CamelModel):
    """Partial update. Unset fields are left alone."""

    display_name: str | None = None
    description: str | None = Field(None, max_length=500)
    icon: str | None = Field(None, max_length=64)
    color: str | None = Field(None, pattern=HEX_COLOR)
    estimated_time_frame: TimeFrame | None = None
    is_active: bool | None = None


class CategoryOut(CamelModel):
    id: str
    display_name: str
    description: str
    icon: str
    color: str
    order: int
    is_active: bool
    estimated_time_frame: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class LinkItem(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    url: str = Field(..., min_length=1, max_length=500)
    description: str = Field("", max_length=200)


class TaskCreate(CamelModel):
    title: str = ""
    description: str = ""
    category_id: str = Field("", validation_alias=AliasChoices("category", "categoryId", "category_id"))
    is_required: bool = False
    estimated_duration: Duration = ""
    difficulty: Difficulty = "medium"
    external_links: list[LinkItem] = Field(default_factory=list)
    helpful_links: list[LinkItem] = Field(default_factory=list)
    tips: list[str] = Field(default_factory=list)
    requirements: list[str] = Field(default_factory=list)
    is_active: bool = True


class TaskUpdate(CamelModel):
    """Partial update. Setting ``category`` moves the task to the end of that category."""

    title: str | None = None
    description: str | None = None
    category_id: str | None = Field(None, validation_alias=AliasChoices("category", "categoryId", "category_id"))
    is_required: bool | None = None
    estimated_duration: Duration | None = None
    difficulty: Difficulty | None = None
    external_links: list[LinkItem] | None = None
    helpful_links: list[LinkItem] | None = None
    tips: list[str] | None = None
    requirements: list[str] | None = None
    is_active: bool | None = None


class TaskOut(CamelModel):
    id: str
    title: str
    description: str
    category_id: str
    order: int
    is_required: bool
    estimated_duration: str
    difficulty: str
    external_links: list[dict[str, Any]]
    helpful_links: list[dict[str, Any]]
    tips: list[str]
    requirements: list[str]
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class OrderUpdate(CamelModel):
    """Validated by the sequence planner so bad values yield 'Invalid order value'."""

    new_order: Any = None


class OrderPairIn(CamelModel):
    id: str
    order: int = Field(..., ge=1)


class CategoryReorder(CamelModel):
    categories: list[OrderPairIn]


class TaskReorder(CamelModel):
    tasks: list[OrderPairIn]
    category_id: str = Field(..., validation_alias=AliasChoices("category", "categoryId", "category_id"))


class RenameResult(CamelModel):
    id_changed: bool = False
    old_id: str
    new_id: str
