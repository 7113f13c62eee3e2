import logging
import uuid
from collections.abc import Callable
from types import ModuleType

from app.models.history import HistoryEntryView, HistoryItem
from app.models.session import SessionSnapshot, Tab
from app.services import actions as default_actions
from app.services import locales
from app.services.context import Publisher, SessionContext
from app.services.event_bus import SessionEventBus, event_bus
from app.services.history import HistoryStore
from app.services.orchestrators import (
    Actions,
    DocumentAnalyzerOrchestrator,
    InteractionCheckerOrchestrator,
    MedicationInfoOrchestrator,
)
from app.services.playback import AudioPlayer, EventBusAudioPlayer
from app.services.storage import DatabaseKeyValueStore
from app.services.transcription import SpeechRecognizer, get_recognizer

logger = logging.getLogger(__name__)

RecognizerFactory = Callable[[str], SpeechRecognizer]


class Shell:
    """Root of one browser session: locale, history and the three feature tabs."""

    def __init__(
        self,
        history: HistoryStore,
        *,
        actions: Actions | ModuleType = default_actions,
        recognizer_factory: RecognizerFactory = get_recognizer,
        player: AudioPlayer | None = None,
        locale: str = locales.DEFAULT_LOCALE,
        publish: Publisher | None = None,
        session_id: str | None = None,
        profile_id: str | None = None,
    ) -> None:
        self.session_id = session_id or str(uuid.uuid4())
        self.profile_id = profile_id or self.session_id
        self.context = SessionContext(history, locale=locale, publish=publish)
        self.active_tab: Tab = "info"

        self.info = MedicationInfoOrchestrator(
            self.context,
            actions,
            recognizer=recognizer_factory(self.context.locale),
            player=player,
        )
        self.interaction = InteractionCheckerOrchestrator(
            self.context,
            actions,
            recognizer=recognizer_factory(self.context.locale),
        )
        self.document = DocumentAnalyzerOrchestrator(self.context, actions)

    @property
    def history(self) -> HistoryStore:
        return self.context.history

    @property
    def locale(self) -> str:
        return self.context.locale

    def set_locale(self, locale: str) -> str:
        self.context.locale = locales.normalize_locale(locale)
        self.info.dictation.set_language(self.context.locale)
        self.interaction.dictation.set_language(self.context.locale)
        logger.info("Session %s locale set to %s", self.session_id, self.context.locale)
        return self.context.locale

    def set_active_tab(self, tab: Tab) -> None:
        self.active_tab = tab

    def select_history(self, item_id: str) -> HistoryItem | None:
        item = self.history.get(item_id)
        if item is not None:
            self.active_tab = item.type
        return item

    async def clear_history(self) -> None:
        await self.history.clear()

    def history_view(self) -> list[HistoryEntryView]:
        return self.history.view()

    def snapshot(self, drain: bool = True) -> SessionSnapshot:
        notifications = self.context.drain_notifications() if drain else list(self.context.notifications)
        return SessionSnapshot(
            session_id=self.session_id,
            profile_id=self.profile_id,
            locale=self.context.locale,
            language_name=self.context.language_name,
            disclaimer_title=self.context.t("DISCLAIMER_TITLE"),
            disclaimer=self.context.t("DISCLAIMER_TEXT"),
            active_tab=self.active_tab,
            info=self.info.view(),
            interaction=self.interaction.view(),
            document=self.document.view(),
            history=self.history_view(),
            notifications=notifications,
        )

    async def close(self) -> None:
        await self.info.close()
        await self.interaction.close()
        await self.document.close()
        logger.info("Session %s closed", self.session_id)


class SessionRegistry:
    """Live shells keyed by session id, each bound to a persisted profile."""

    def __init__(
        self,
        bus: SessionEventBus = event_bus,
        actions: Actions | ModuleType = default_actions,
        recognizer_factory: RecognizerFactory = get_recognizer,
    ) -> None:
        self._bus = bus
        self._actions = actions
        self._recognizer_factory = recognizer_factory
        self._shells: dict[str, Shell] = {}

    async def create(self, profile_id: str | None = None, locale: str = locales.DEFAULT_LOCALE) -> Shell:
        session_id = str(uuid.uuid4())
        profile_id = profile_id or str(uuid.uuid4())

        history = HistoryStore(DatabaseKeyValueStore(profile_id))
        await history.load()

        async def publish(event: dict) -> None:
            await self._bus.publish(session_id, event)

        shell = Shell(
            history,
            actions=self._actions,
            recognizer_factory=self._recognizer_factory,
            player=EventBusAudioPlayer(session_id, self._bus),
            locale=locale,
            publish=publish,
            session_id=session_id,
            profile_id=profile_id,
        )
        self._shells[session_id] = shell
        logger.info("Session %s created for profile %s", session_id, profile_id)
        return shell

    def get(self, session_id: str) -> Shell | None:
        return self._shells.get(session_id)

    async def close(self, session_id: str) -> bool:
        shell = self._shells.pop(session_id, None)
        if shell is None:
            return False
        await shell.close()
        return True

    async def close_all(self) -> None:
        for session_id in list(self._shells):
            await self.close(session_id)

    def __len__(self) -> int:
        return len(self._shells)


registry = SessionRegistry()
