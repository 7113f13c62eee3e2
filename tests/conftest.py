import asyncio
import os

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

# In-memory DB and no external API keys for tests
os.environ["OPENAI_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["ELEVENLABS_API_KEY"] = ""
os.environ["DATABASE_PATH"] = ":memory:"
os.environ["DUMMY_MODE"] = "false"

from app.database import close_db, init_db
from app.main import app
from app.models.medication import (
    DocumentAnalysisResult,
    InteractionReport,
    MedicationInfoResult,
    SpeechPayload,
    TranslationResult,
)
from app.services import llm as llm_mod
from app.services.context import SessionContext
from app.services.history import HistoryStore
from app.services.result import Err, Ok
from app.services.shell import registry
from app.services.storage import InMemoryKeyValueStore

WAV_URI = "data:audio/wav;base64,UklGRg=="


class FakeActions:
    """Scriptable stand-in for app.services.actions that records every call."""

    def __init__(self):
        self.calls: list[tuple[str, tuple]] = []
        self.info_result = Ok(MedicationInfoResult(
            uses="Pain relief.",
            side_effects="Nausea.",
            dosage_guidelines="200mg every 6 hours.",
        ))
        self.interaction_result = Ok(InteractionReport(report="No known interactions."))
        self.document_result = Ok(DocumentAnalysisResult(analysis="Amoxicillin 500mg."))
        self.speech_result = Ok(SpeechPayload(audio_data_uri=WAV_URI))
        self.translate_error_on: str | None = None
        # Set to an asyncio.Event to hold a call until the test releases it
        self.info_gate = None
        self.speech_gate = None

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def fetch_medication_info(self, medication_name):
        self.calls.append(("fetch_medication_info", (medication_name,)))
        if self.info_gate is not None:
            await self.info_gate.wait()
        return self.info_result

    async def check_interactions(self, medications):
        self.calls.append(("check_interactions", (medications,)))
        return self.interaction_result

    async def analyze_document_action(self, document_data_uri):
        self.calls.append(("analyze_document_action", (document_data_uri,)))
        return self.document_result

    async def generate_speech_from_text(self, text):
        self.calls.append(("generate_speech_from_text", (text,)))
        if self.speech_gate is not None:
            await self.speech_gate.wait()
        return self.speech_result

    async def translate_content(self, text, target_language):
        self.calls.append(("translate_content", (text, target_language)))
        if self.translate_error_on is not None and self.translate_error_on in text:
            return Err.provider("An unexpected error occurred during translation. Please try again later.")
        return Ok(TranslationResult(translated_text=f"[{target_language}] {text}"))


class FakePlayer:
    def __init__(self):
        self.played: list[str] = []
        self.stops = 0

    async def play(self, audio_data_uri):
        self.played.append(audio_data_uri)

    async def stop(self):
        self.stops += 1


class FakeRecognizer:
    """Recognizer driven by the test: call ``emit_result`` and friends."""

    available = True

    def __init__(self, lang="en", fail_start=False, start_delay=0.0):
        self.lang = lang
        self.fail_start = fail_start
        self.start_delay = start_delay
        self.started = 0
        self.stopped = 0
        self.audio: list[str] = []
        self._handlers = None

    async def start(self, on_result, on_error, on_end):
        if self.start_delay:
            await asyncio.sleep(self.start_delay)
        if self.fail_start:
            raise RuntimeError("microphone denied")
        self.started += 1
        self._handlers = (on_result, on_error, on_end)

    async def stop(self):
        self.stopped += 1

    async def send_audio(self, audio_base64):
        self.audio.append(audio_base64)

    async def emit_result(self, text):
        await self._handlers[0](text)

    async def emit_error(self, code):
        await self._handlers[1](code)

    async def emit_end(self):
        await self._handlers[2]()



class LockedKeyValueStore(InMemoryKeyValueStore):
    async def set(self, key, value):
        raise RuntimeError("database is locked")

@pytest.fixture(autouse=True)
def reset_llm_client():
    llm_mod._client = None
    yield
    llm_mod._client = None


@pytest_asyncio.fixture
async def db():
    """Provide a fresh in-memory database for each test."""
    import app.database as db_mod

    # Close any existing connection
    if db_mod._db is not None:
        try:
            await db_mod._db.close()
        except Exception:
            pass
    db_mod._db = None

    # Override module-level config directly (avoids fragile importlib.reload)
    db_mod.DATABASE_PATH = ":memory:"

    await init_db()
    database = await db_mod.get_db()
    yield database
    await registry.close_all()
    await close_db()


@pytest.fixture
def fake_actions():
    return FakeActions()


@pytest.fixture
def fake_player():
    return FakePlayer()


@pytest.fixture
def recognizer():
    return FakeRecognizer()


@pytest.fixture
def history():
    return HistoryStore(InMemoryKeyValueStore())


@pytest.fixture
def locked_history():
    """History whose writes fail like a locked SQLite file."""
    return HistoryStore(LockedKeyValueStore())

@pytest.fixture
def events():
    """Collects every event a SessionContext publishes."""
    return []


@pytest.fixture
def context(history, events):
    async def publish(event):
        events.append(event)

    return SessionContext(history, publish=publish)


@pytest.fixture
def session_actions(fake_actions, monkeypatch):
    """Route sessions created through the API to the fake adapters."""
    monkeypatch.setattr(registry, "_actions", fake_actions)
    return fake_actions


@pytest.fixture
def client(db):
    """Provide a synchronous TestClient for HTTP endpoint tests."""
    return TestClient(app)


@pytest_asyncio.fixture
async def async_client(db):
    """Provide an async httpx client for async HTTP tests."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
