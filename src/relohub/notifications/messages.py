"""User-facing text for entity-change notifications."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

MAX_LISTED_CHANGES = 3


@dataclass(frozen=True)
class EntityChange:
    """A committed change to a category or task."""

    entity_type: str  # "category" | "task"
    entity_id: str
    action: str  # "created" | "updated" | "deleted"
    entity_name: str
    changes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class NotificationContent:
    title: str
    message: str
    type: str
    priority: str


def merge_changes(existing: Iterable[str], new: Iterable[str]) -> list[str]:
    """Order-preserving union."""
    merged: list[str] = []
    for tag in [*existing, *new]:
        if tag not in merged:
            merged.append(tag)
    return merged


def render_message(entity_type: str, action: str, entity_name: str, changes: list[str]) -> str:
    if action == "updated" and changes:
        if len(changes) > MAX_LISTED_CHANGES:
            listed = ", ".join(changes[:MAX_LISTED_CHANGES]) + " and more"
        else:
            listed = ", ".join(changes)
        return f'The {entity_type} "{entity_name}" has been updated. Changes: {listed}.'
    return f'The {entity_type} "{entity_name}" has been {action}.'


def render_content(change: EntityChange) -> NotificationContent:
    label = "Task" if change.entity_type == "task" else "Category"
    priority = "high" if change.action == "deleted" else "medium"

    if change.action == "created":
        return NotificationContent(
            title=f"New {label} Added",
            message=f'A new {change.entity_type} "{change.entity_name}" has been added to your dashboard.',
            type="success",
            priority=priority,
        )
    if change.action == "updated":
        return NotificationContent(
            title=f"{label} Updated",
            message=render_message(change.entity_type, "updated", change.entity_name, change.changes),
            type="update",
            priority=priority,
        )
    if change.action == "deleted":
        return NotificationContent(
            title=f"{label} Removed",
            message=f'The {change.entity_type} "{change.entity_name}" has been removed from your dashboard.',
            type="warning",
            priority=priority,
        )
    return NotificationContent(
        title=f"{label} Changed",
        message=f'The {change.entity_type} "{change.entity_name}" has been modified.',
        type="info",
        priority=priority,
    )


def render_task_moved(task_title: str, old_category: str, new_category: str) -> NotificationContent:
    return NotificationContent(
        title="Task Moved",
        message=f'The task "{task_title}" has been moved from "{old_category}" to "{new_category}".',
        type="info",
        priority="low",
    )
