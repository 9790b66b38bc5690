# tests/test_notification_service.py
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from bson import ObjectId
from pymongo.errors import PyMongoError

from app.models.base import NotificationType, UserRole
from app.services.notification_service import NotificationDispatcher


def make_dispatcher(db, **kwargs):
    kwargs.setdefault("push_enabled", False)
    return NotificationDispatcher(database_getter=lambda: db, **kwargs)


class TestNotificationDispatcher:
    def test_dispatch_persists_notification(self, db, people):
        dispatcher = make_dispatcher(db)
        reporter_id = people["reporter"]["_id"]

        async def scenario():
            dispatcher.dispatch(reporter_id, NotificationType.REPORT_STATUS_UPDATED, {"report_id": "r1", "status": "resolved"})
            await dispatcher.drain()

        asyncio.run(scenario())

        stored = asyncio.run(db.notifications.find_one({"user_id": reporter_id}))
        assert stored["type"] == "report_status_updated"
        assert stored["is_read"] is False
        assert "resolved" in stored["message"]
        assert stored["data"] == {"report_id": "r1", "status": "resolved"}
        assert dispatcher.pending == 0

    def test_failures_never_escape(self, people):
        db = MagicMock()
        db.notifications.insert_one = AsyncMock(side_effect=PyMongoError("write failed"))
        dispatcher = make_dispatcher(db)

        async def scenario():
            task = dispatcher.dispatch(people["reporter"]["_id"], NotificationType.SYSTEM, {})
            await dispatcher.drain()
            return task

        task = asyncio.run(scenario())

        assert task.exception() is None
        db.notifications.insert_one.assert_awaited_once()

    def test_dispatch_to_role_reaches_every_admin(self, db, people):
        second_admin = {"_id": ObjectId(), "display_name": "Second", "email": "second@example.com", "role": "admin"}
        asyncio.run(db.users.insert_one(second_admin))
        dispatcher = make_dispatcher(db, concurrency=1)

        async def scenario():
            dispatcher.dispatch_to_role(
                UserRole.ADMIN,
                NotificationType.REPORT_CREATED,
                {"report_id": "r1", "content_type": "artwork", "reason": "spam"},
            )
            await dispatcher.drain()

        asyncio.run(scenario())

        stored = asyncio.run(db.notifications.find({}).to_list(length=None))
        assert {item["user_id"] for item in stored} == {people["admin"]["_id"], second_admin["_id"]}
        assert all(item["type"] == "report_created" for item in stored)

    def test_one_failed_delivery_does_not_stop_the_rest(self, db, people):
        dispatcher = make_dispatcher(db)
        original_send = dispatcher.send
        broken_id = people["other"]["_id"]

        async def flaky_send(user_id, notification_type, payload):
            if user_id == broken_id:
                raise RuntimeError("boom")
            await original_send(user_id, notification_type, payload)

        dispatcher.send = flaky_send
        deliveries = [
            (people["reporter"]["_id"], NotificationType.REPORT_STATUS_UPDATED, {"status": "rejected"}),
            (broken_id, NotificationType.REPORT_STATUS_UPDATED, {"status": "rejected"}),
            (people["artist"]["_id"], NotificationType.REPORT_STATUS_UPDATED, {"status": "rejected"}),
        ]

        async def scenario():
            dispatcher.dispatch_many(deliveries)
            await dispatcher.drain()

        asyncio.run(scenario())

        assert asyncio.run(db.notifications.count_documents({})) == 2

    def test_push_sent_to_every_device(self, db, people):
        reporter_id = people["reporter"]["_id"]
        asyncio.run(db.users.update_one({"_id": reporter_id}, {"$set": {"expo_push_tokens": ["ExponentPushToken[abc]", "ExponentPushToken[def]"]}}))
        dispatcher = make_dispatcher(db, push_enabled=True)
        push = MagicMock(return_value=True)

        async def scenario():
            dispatcher.dispatch(reporter_id, NotificationType.REPORT_STATUS_UPDATED, {"report_id": "r1", "status": "resolved"})
            await dispatcher.drain()

        with patch("app.services.notification_service.send_push_message", push):
            asyncio.run(scenario())

        assert [c.args[0] for c in push.call_args_list] == ["ExponentPushToken[abc]", "ExponentPushToken[def]"]
        token, body, extra, title = push.call_args.args
        assert "resolved" in body
        assert extra == {"report_id": "r1", "status": "resolved"}
        assert title == "تحديث حالة التقرير"

    def test_no_push_without_token(self, db, people):
        dispatcher = make_dispatcher(db, push_enabled=True)
        push = MagicMock(return_value=True)

        async def scenario():
            dispatcher.dispatch(people["other"]["_id"], NotificationType.REPORT_STATUS_UPDATED, {"status": "resolved"})
            await dispatcher.drain()

        with patch("app.services.notification_service.send_push_message", push):
            asyncio.run(scenario())

        push.assert_not_called()
