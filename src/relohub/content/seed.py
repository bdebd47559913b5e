"""Default checklist content for an empty database."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from relohub.db.models import Category, Task

logger = structlog.get_logger()

DEFAULT_CONTENT: list[dict[str, Any]] = [
    {
        "display_name": "Before Arrival",
        "description": "Essential preparations before travelling to your new country",
        "icon": "plane-departure",
        "color": "#3B82F6",
        "estimated_time_frame": "Before departure",
        "tasks": [
            {
                "title": "Find accommodation",
                "description": "Start the housing search early. Shared flats, dormitories and "
                "short-term rentals all fill up quickly.",
                "estimated_duration": "2-4 weeks",
                "difficulty": "hard",
                "is_required": True,
                "tips": ["Keep a copy of your passport and proof of income ready"],
            },
            {
                "title": "Arrange health insurance",
                "description": "Health insurance is mandatory for residence registration and visas.",
                "estimated_duration": "1-2 hours",
                "difficulty": "medium",
                "is_required": True,
            },
            {
                "title": "Prepare necessary documents",
                "description": "Collect passport, visa, admission letters, certificates and "
                "translated copies in one folder.",
                "estimated_duration": "1 week",
                "difficulty": "medium",
                "is_required": True,
                "requirements": ["Passport", "Visa", "Birth certificate"],
            },
        ],
    },
    {
        "display_name": "Upon Arrival",
        "description": "Immediate tasks to complete in the first days",
        "icon": "location-pin",
        "color": "#10B981",
        "estimated_time_frame": "First week",
        "tasks": [
            {
                "title": "Register your address",
                "description": "Register your new address at the local residents office.",
                "estimated_duration": "Half day",
                "difficulty": "medium",
                "is_required": True,
                "requirements": ["Passport", "Landlord confirmation"],
            },
            {
                "title": "Open a bank account",
                "description": "A local account is needed for rent, salary and contracts.",
                "estimated_duration": "1-2 hours",
                "difficulty": "easy",
            },
            {
                "title": "Get a SIM card",
                "description": "Compare prepaid and contract plans before committing.",
                "estimated_duration": "30-60 minutes",
                "difficulty": "easy",
            },
        ],
    },
    {
        "display_name": "First Weeks",
        "description": "Getting settled into your new environment",
        "icon": "calendar-days",
        "color": "#F59E0B",
        "estimated_time_frame": "First month",
        "tasks": [
            {
                "title": "Learn the public transport network",
                "description": "Find out which monthly or semester tickets cover your routes.",
                "estimated_duration": "1-2 hours",
                "difficulty": "easy",
            },
            {
                "title": "Explore the city",
                "description": "Locate supermarkets, pharmacies, doctors and local offices nearby.",
                "estimated_duration": "Full day",
                "difficulty": "easy",
            },
        ],
    },
    {
        "display_name": "Ongoing",
        "description": "Continuous tasks for long-term success",
        "icon": "infinity",
        "color": "#8B5CF6",
        "estimated_time_frame": "Ongoing",
        "tasks": [
            {
                "title": "Maintain visa status",
                "description": "Track your permit expiry date and book renewal appointments early.",
                "estimated_duration": "2-4 hours",
                "difficulty": "medium",
                "is_required": True,
            },
            {
                "title": "Manage finances",
                "description": "Budget for rent, insurance, transport and semester fees.",
                "estimated_duration": "1-2 hours",
                "difficulty": "medium",
            },
        ],
    },
]


async def seed_default_content(db: AsyncSession) -> int:
    """Insert the default categories and tasks when none exist.

    Returns the number of categories created (0 when content already exists).
    """
    existing = await db.scalar(select(func.count()).select_from(Category))
    if existing:
        logger.info("seed_skipped", existing_categories=existing)
        return 0

    for category_order, entry in enumerate(DEFAULT_CONTENT, start=1):
        fields = {k: v for k, v in entry.items() if k != "tasks"}
        category = Category(order=category_order, **fields)
        db.add(category)
        await db.flush()
        for task_order, task_fields in enumerate(entry["tasks"], start=1):
            db.add(Task(category_id=category.id, order=task_order, **task_fields))

    await db.commit()
    logger.info("seed_completed", categories=len(DEFAULT_CONTENT))
    return len(DEFAULT_CONTENT)
