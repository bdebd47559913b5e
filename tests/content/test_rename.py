"""Renames keep entity identity, so progress and notifications stay attached."""

from sqlalchemy import select

from relohub.content.service import ContentService
from relohub.db.models import Notification
from relohub.progress.service import ProgressService


async def _notifications_for(db_session, user_id: str, entity_id: str) -> list[Notification]:
    result = await db_session.execute(
        select(Notification)
        .where(Notification.user_id == user_id, Notification.entity_id == entity_id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


class TestRenameCategory:
    async def test_id_is_stable(self, db_session, paid_user, make_category):
        category, tasks = await make_category("Arrival", tasks=2)
        await ProgressService(db_session).toggle_task(paid_user, tasks[0].id, True)

        result = await ContentService(db_session).rename_category(category.id, "Upon Arrival")
        assert result.id_changed is False
        assert result.old_id == result.new_id == category.id

        record = await ProgressService(db_session).get_or_init(paid_user.id)
        assert record.category_progress == {category.id: 50}

        actions = {n.entity_action for n in await _notifications_for(db_session, paid_user.id, category.id)}
        assert "updated" in actions

    async def test_same_name(self, db_session, make_category):
        category, _ = await make_category("Ongoing", tasks=1)
        result = await ContentService(db_session).rename_category(category.id, "Ongoing")
        assert (result.id_changed, result.new_id) == (False, category.id)


class TestRenameTask:
    async def test_completion_survives(self, db_session, paid_user, make_category):
        category, tasks = await make_category("Arrival", tasks=2)
        task_id = tasks[1].id
        await ProgressService(db_session).toggle_task(paid_user, task_id, True)

        result = await ContentService(db_session).rename_task(task_id, "Register at the town hall")
        assert result.id_changed is False
        assert result.old_id == result.new_id == task_id

        record = await ProgressService(db_session).get_or_init(paid_user.id)
        assert [entry["taskId"] for entry in record.completed_tasks] == [task_id]
        assert record.category_progress[category.id] == 50

        rows = await _notifications_for(db_session, paid_user.id, task_id)
        assert "updated" in {n.entity_action for n in rows}
