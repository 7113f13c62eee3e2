"""Speech recognition capability used for voice dictation.

The capability is optional. ``get_recognizer`` hands out an ElevenLabs Scribe
realtime recognizer when an API key is configured and a no-op recognizer
otherwise, so callers never check for support at runtime.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

import websockets

from app.config import ELEVENLABS_API_KEY

logger = logging.getLogger(__name__)

ResultHandler = Callable[[str], Awaitable[None]]
ErrorHandler = Callable[[str], Awaitable[None]]
EndHandler = Callable[[], Awaitable[None]]

SCRIBE_URL = "wss://api.elevenlabs.io/v1/speech-to-text/realtime"
SCRIBE_SAMPLE_RATE = 16000


class SpeechRecognizer(Protocol):
    available: bool
    lang: str

    async def start(
        self,
        on_result: ResultHandler,
        on_error: ErrorHandler,
        on_end: EndHandler,
    ) -> None: ...

    async def stop(self) -> None: ...

    async def send_audio(self, audio_base64: str) -> None: ...


class NullSpeechRecognizer:
    """Stands in when no recognition capability exists."""

    available = False

    def __init__(self, lang: str = "en") -> None:
        self.lang = lang

    async def start(self, on_result: ResultHandler, on_error: ErrorHandler, on_end: EndHandler) -> None:
        return None

    async def stop(self) -> None:
        return None

    async def send_audio(self, audio_base64: str) -> None:
        return None


class ScribeRecognizer:
    """One-utterance recognition session over ElevenLabs Scribe v2 Realtime."""

    available = True

    def __init__(self, lang: str = "en", api_key: str = ELEVENLABS_API_KEY) -> None:
        self.lang = lang
        self._api_key = api_key
        self._ws = None
        self._listen_task: asyncio.Task | None = None
        self._running = False
        self._on_result: ResultHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._on_end: EndHandler | None = None

    async def start(self, on_result: ResultHandler, on_error: ErrorHandler, on_end: EndHandler) -> None:
        """Open the recognition socket. Raises if the connection fails."""
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

        uri = (
            f"{SCRIBE_URL}"
            "?model_id=scribe_v2_realtime"
            f"&language_code={self.lang}"
            "&commit_strategy=vad"
            f"&audio_format=pcm_{SCRIBE_SAMPLE_RATE}"
        )
        headers = {"xi-api-key": self._api_key}
        self._ws = await websockets.connect(uri, additional_headers=headers)
        self._running = True
        self._listen_task = asyncio.create_task(self._listen())
        logger.info("Recognition session started (lang=%s)", self.lang)

    async def stop(self) -> None:
        self._running = False
        task = self._listen_task
        self._listen_task = None
        if task and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._ws:
            ws = self._ws
            self._ws = None
            await ws.close()

    async def send_audio(self, audio_base64: str) -> None:
        if not self._ws or not self._running:
            return
        message = {
            "message_type": "input_audio_chunk",
            "audio_base_64": audio_base64,
            "commit": False,
            "sample_rate": SCRIBE_SAMPLE_RATE,
        }
        await self._ws.send(json.dumps(message))

    async def _listen(self) -> None:
        if self._ws is None:
            return
        try:
            async for raw_message in self._ws:
                if not self._running:
                    break
                data = json.loads(raw_message)
                msg_type = data.get("message_type", "")

                if msg_type in ("committed_transcript", "committed_transcript_with_timestamps"):
                    text = data.get("text", "").strip()
                    if not text:
                        continue
                    logger.info("Recognized: %s", text[:80])
                    self._running = False
                    await self._on_result(text)
                    break
                elif msg_type in ("error", "auth_error", "quota_exceeded", "rate_limited"):
                    logger.error("ElevenLabs error: %s", data)
                    self._running = False
                    await self._on_error(msg_type)
                    break
                elif msg_type == "session_started":
                    logger.info("ElevenLabs session started: %s", data.get("session_id"))
                else:
                    logger.debug("ElevenLabs message: %s", msg_type)
        except websockets.ConnectionClosed:
            logger.warning("ElevenLabs WebSocket connection closed")
        except Exception as e:
            logger.error("ElevenLabs listener error: %s", e)
            if self._on_error:
                await self._on_error("network")
        finally:
            if self._on_end:
                await self._on_end()


def get_recognizer(lang: str = "en") -> SpeechRecognizer:
    if ELEVENLABS_API_KEY:
        return ScribeRecognizer(lang=lang)
    return NullSpeechRecognizer(lang=lang)
