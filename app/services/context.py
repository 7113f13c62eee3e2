import logging
from collections import deque
from collections.abc import Awaitable, Callable

from app.models.session import Notification
from app.services import locales
from app.services.history import HistoryStore

logger = logging.getLogger(__name__)

Publisher = Callable[[dict], Awaitable[None]]

MAX_PENDING_NOTIFICATIONS = 20


class SessionContext:
    """State shared by one session's orchestrators: locale, history, notifications.

    Passed by reference into every orchestrator so each reads the locale that is
    active when it needs it.
    """

    def __init__(
        self,
        history: HistoryStore,
        locale: str = locales.DEFAULT_LOCALE,
        publish: Publisher | None = None,
    ) -> None:
        self.history = history
        self.locale = locales.normalize_locale(locale)
        self._publish = publish
        self.notifications: deque[Notification] = deque(maxlen=MAX_PENDING_NOTIFICATIONS)

    @property
    def language_name(self) -> str:
        return locales.language_name(self.locale)

    @property
    def is_default_locale(self) -> bool:
        return self.locale == locales.DEFAULT_LOCALE

    def t(self, key: str) -> str:
        return locales.t(key, self.locale)

    async def notify(self, title: str, description: str, variant: str = "destructive") -> None:
        notification = Notification(title=title, description=description, variant=variant)
        self.notifications.append(notification)
        logger.info("Notification: %s - %s", title, description)
        await self.emit({"type": "notification", **notification.model_dump()})

    async def notify_error(self, description: str) -> None:
        await self.notify(self.t("ERROR_TITLE"), description)

    def drain_notifications(self) -> list[Notification]:
        pending = list(self.notifications)
        self.notifications.clear()
        return pending

    async def emit(self, event: dict) -> None:
        if self._publish is None:
            return
        try:
            await self._publish(event)
        except Exception as e:
            logger.error("Failed to publish session event %s: %s", event.get("type"), e)
