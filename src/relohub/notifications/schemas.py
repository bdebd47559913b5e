"""Notification request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from relohub.db.models import Notification
from relohub.schemas import CamelModel

NotificationType = Literal["info", "success", "warning", "error", "update"]
Priority = Literal["low", "medium", "high"]


class NotificationMetadata(CamelModel):
    entity_type: str | None = None
    entity_id: str | None = None
    action: str | None = None
    changes: list[str] = Field(default_factory=list)


class NotificationOut(CamelModel):
    id: str
    title: str
    message: str
    type: str
    priority: str
    action_required: bool
    action_url: str | None = None
    metadata: NotificationMetadata
    is_read: bool
    created_at: datetime
    updated_at: datetime
    expires_at: datetime

    @classmethod
    def from_row(cls, row: Notification, *, is_read: bool) -> NotificationOut:
        return cls(
            id=row.id,
            title=row.title,
            message=row.message,
            type=row.type,
            priority=row.priority,
            action_required=row.action_required,
            action_url=row.action_url,
            metadata=NotificationMetadata(
                entity_type=row.entity_type,
                entity_id=row.entity_id,
                action=row.entity_action,
                changes=list(row.changes or []),
            ),
            is_read=is_read,
            created_at=row.created_at,
            updated_at=row.updated_at,
            expires_at=row.expires_at,
        )


class NotificationCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    type: NotificationType = "info"
    priority: Priority = "medium"
    action_required: bool = False
    action_url: str | None = Field(None, max_length=500)


class BroadcastRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    type: NotificationType = "info"
    priority: Priority = "medium"
    action_url: str | None = Field(None, max_length=500)
    target_user_ids: list[str] | None = None
