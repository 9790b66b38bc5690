"""
Best-effort notification dispatch

app/services/notification_service.py

Every delivery runs in its own asyncio task with an error boundary, so a
failing push or insert is logged and never reaches the request that
triggered it.
"""
from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple
from datetime import datetime
import asyncio
import logging

from bson import ObjectId

from app.core.config import settings
from app.core.database import get_database
from app.core.messages import get_message
from app.models.base import NotificationType, UserRole
from app.services.expo import send_push_message

logger = logging.getLogger(__name__)

Delivery = Tuple[ObjectId, NotificationType, Dict[str, Any]]


class NotificationDispatcher:
    """
    Spawns and tracks notification tasks
    """
    def __init__(
        self,
        database_getter: Callable = get_database,
        concurrency: Optional[int] = None,
        push_enabled: Optional[bool] = None,
    ):
        self.database_getter = database_getter
        self.concurrency = concurrency or settings.NOTIFICATION_FANOUT_CONCURRENCY
        self.push_enabled = settings.EXPO_PUSH_ENABLED if push_enabled is None else push_enabled
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, user_id: ObjectId, notification_type: NotificationType, payload: Dict[str, Any]) -> asyncio.Task:
        """Notify one user without waiting for delivery"""
        return self._spawn(self._deliver_safely(user_id, notification_type, payload))

    def dispatch_many(self, deliveries: Iterable[Delivery]) -> asyncio.Task:
        """Notify many users, at most ``concurrency`` deliveries in flight"""
        return self._spawn(self._fan_out(list(deliveries)))

    def dispatch_to_role(self, role: UserRole, notification_type: NotificationType, payload: Dict[str, Any]) -> asyncio.Task:
        """Notify every user holding ``role``; recipients are looked up inside the task"""
        return self._spawn(self._fan_out_to_role(role, notification_type, payload))

    async def drain(self):
        """Wait for every in-flight notification (used on shutdown)"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _fan_out(self, deliveries):
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(user_id, notification_type, payload):
            async with semaphore:
                await self._deliver_safely(user_id, notification_type, payload)

        await asyncio.gather(*(bounded(*delivery) for delivery in deliveries))
        logger.info(f"Fanned out {len(deliveries)} notifications")

    async def _fan_out_to_role(self, role, notification_type, payload):
        try:
            db = self.database_getter()
            cursor = db.users.find({"role": UserRole(role).value}, {"_id": 1})
            recipients = [user["_id"] async for user in cursor]
        except Exception:
            logger.exception(f"Failed to look up {UserRole(role).value} recipients")
            return
        await self._fan_out([(user_id, notification_type, payload) for user_id in recipients])

    async def _deliver_safely(self, user_id, notification_type, payload):
        try:
            await self.send(user_id, notification_type, payload)
        except Exception:
            logger.exception(f"Failed to notify user {user_id} ({NotificationType(notification_type).value})")

    async def send(self, user_id: ObjectId, notification_type: NotificationType, payload: Dict[str, Any]):
        """Persist the notification and push it to each of the user's registered devices"""
        db = self.database_getter()
        notification_type = NotificationType(notification_type)

        content = get_message(f"notifications.{notification_type.value}")
        if isinstance(content, dict):
            title = content["title"]
            body = content["body"].format(**{k: v for k, v in payload.items() if v is not None})
        else:
            title, body = content, content

        notification_doc = {
            "user_id": user_id,
            "type": notification_type.value,
            "title": title,
            "message": body,
            "data": payload,
            "is_read": False,
            "created_at": datetime.utcnow(),
        }
        await db.notifications.insert_one(notification_doc)

        if not self.push_enabled:
            return

        user = await db.users.find_one({"_id": user_id}, {"expo_push_tokens": 1})
        tokens = (user or {}).get("expo_push_tokens") or []
        extra = {key: str(value) for key, value in payload.items()}
        for token in tokens:
            await asyncio.to_thread(send_push_message, token, body, extra, title)


notification_dispatcher = NotificationDispatcher()


def get_notifier() -> NotificationDispatcher:
    return notification_dispatcher
