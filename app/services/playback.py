import logging
from typing import Literal, Protocol

from app.services.context import SessionContext
from app.services.event_bus import SessionEventBus

logger = logging.getLogger(__name__)

PlaybackState = Literal["playing", "stopped"]


class AudioPlayer(Protocol):
    async def play(self, audio_data_uri: str) -> None: ...

    async def stop(self) -> None:
        """Pause playback and rewind to the start."""
        ...


class EventBusAudioPlayer:
    """Plays audio in the browser by publishing playback commands to the session."""

    def __init__(self, session_id: str, bus: SessionEventBus) -> None:
        self.session_id = session_id
        self._bus = bus

    async def play(self, audio_data_uri: str) -> None:
        await self._bus.publish(self.session_id, {
            "type": "playback",
            "action": "play",
            "audioDataUri": audio_data_uri,
        })

    async def stop(self) -> None:
        await self._bus.publish(self.session_id, {
            "type": "playback",
            "action": "stop",
            "position": 0,
        })


class ReadAloudControl:
    """Toggle between playing and stopped for synthesized speech."""

    def __init__(self, player: AudioPlayer, context: SessionContext) -> None:
        self._player = player
        self._context = context
        self.state: PlaybackState = "stopped"
        self.audio_data_uri: str | None = None

    @property
    def audio_ready(self) -> bool:
        return bool(self.audio_data_uri)

    async def toggle(self) -> None:
        if self.state == "playing":
            await self.stop()
            return

        if not self.audio_data_uri:
            await self._context.notify(
                self._context.t("ERROR_SPEECH_TITLE"),
                self._context.t("ERROR_AUDIO_NOT_READY"),
            )
            return

        self.state = "playing"
        await self._player.play(self.audio_data_uri)

    async def stop(self) -> None:
        if self.state == "playing":
            await self._player.stop()
        self.state = "stopped"

    async def reset(self) -> None:
        """Stop playback and forget the current audio."""
        await self.stop()
        self.audio_data_uri = None

    async def on_ended(self) -> None:
        self.state = "stopped"

    async def on_error(self) -> None:
        self.state = "stopped"
        logger.warning("Audio playback failed")
        await self._context.notify(
            self._context.t("ERROR_SPEECH_TITLE"),
            self._context.t("ERROR_AUDIO_PLAYBACK"),
        )


class NullAudioPlayer:
    """Player for sessions without an audio sink."""

    async def play(self, audio_data_uri: str) -> None:
        return None

    async def stop(self) -> None:
        return None
