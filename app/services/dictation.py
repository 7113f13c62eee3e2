import logging
from collections.abc import Awaitable, Callable

from app.models.session import Tab
from app.services.context import SessionContext
from app.services.transcription import SpeechRecognizer

logger = logging.getLogger(__name__)


class VoiceDictation:
    """Microphone toggle around an optional recognizer.

    A recognized utterance stops the session and is handed to ``on_transcript``.
    Exclusivity is the ``listening`` flag, claimed before the recognizer
    connects, so starting twice is a no-op. Every change is published as a
    ``listening`` event so the page can start or stop capture to match.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        context: SessionContext,
        on_transcript: Callable[[str], Awaitable[None]],
        tab: Tab = "info",
    ) -> None:
        self._recognizer = recognizer
        self._context = context
        self._on_transcript = on_transcript
        self.tab = tab
        self.listening = False

    @property
    def available(self) -> bool:
        return self._recognizer.available

    def set_language(self, lang: str) -> None:
        """Retag the recognizer; a session already listening keeps its language."""
        if not self.listening:
            self._recognizer.lang = lang

    async def toggle(self) -> None:
        if self.listening:
            await self.stop()
        else:
            await self.start()

    async def start(self) -> None:
        if not self.available or self.listening:
            return
        self.listening = True
        self._recognizer.lang = self._context.locale
        try:
            await self._recognizer.start(self._handle_result, self._handle_error, self._handle_end)
        except Exception as e:
            logger.error("Could not start speech recognition: %s", e)
            self.listening = False
            await self._context.notify_error(self._context.t("ERROR_MICROPHONE"))
            return
        await self._publish()

    async def stop(self) -> None:
        if not self.listening:
            return
        self.listening = False
        await self._recognizer.stop()
        await self._publish()

    async def send_audio(self, audio_base64: str) -> None:
        if self.listening:
            await self._recognizer.send_audio(audio_base64)

    async def _publish(self) -> None:
        await self._context.emit({"type": "listening", "tab": self.tab, "listening": self.listening})

    async def _handle_result(self, transcript: str) -> None:
        await self.stop()
        await self._on_transcript(transcript)

    async def _handle_error(self, code: str) -> None:
        logger.error("Speech recognition error: %s", code)
        await self._context.notify_error(f"Speech recognition error: {code}")
        await self.stop()

    async def _handle_end(self) -> None:
        await self.stop()
