import asyncio
import json
import logging

from fastapi import APIRouter, File, HTTPException, UploadFile, WebSocket, WebSocketDisconnect

from app.config import MAX_UPLOAD_BYTES
from app.models.history import HistoryEntryView
from app.models.session import (
    LocaleUpdate,
    MedicationNameBody,
    PlaybackEventBody,
    SessionCreate,
    SessionSnapshot,
)
from app.services.event_bus import event_bus
from app.services.shell import Shell, registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])
ws_router = APIRouter()

# Seconds between keep-alive pings on an idle session socket
PING_INTERVAL = 10.0


def _get_shell(session_id: str) -> Shell:
    shell = registry.get(session_id)
    if shell is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return shell


@router.post("", response_model=SessionSnapshot)
async def create_session(body: SessionCreate):
    """Open a session for a browser profile and load its saved history."""
    shell = await registry.create(profile_id=body.profile_id, locale=body.locale)
    return shell.snapshot()


@router.get("/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str):
    return _get_shell(session_id).snapshot()


@router.delete("/{session_id}")
async def close_session(session_id: str):
    if not await registry.close(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"id": session_id, "closed": True}


@router.put("/{session_id}/locale", response_model=SessionSnapshot)
async def update_locale(session_id: str, body: LocaleUpdate):
    shell = _get_shell(session_id)
    shell.set_locale(body.locale)
    return shell.snapshot()


# --- Medication info ---


@router.post("/{session_id}/info", response_model=SessionSnapshot)
async def submit_medication_info(session_id: str, body: MedicationNameBody):
    """Look up a medication. Narration is prepared in the background."""
    shell = _get_shell(session_id)
    shell.set_active_tab("info")
    await shell.info.submit(body.medication_name)
    return shell.snapshot()


@router.post("/{session_id}/read-aloud", response_model=SessionSnapshot)
async def toggle_read_aloud(session_id: str):
    shell = _get_shell(session_id)
    await shell.info.read_aloud.toggle()
    return shell.snapshot()


@router.post("/{session_id}/playback", response_model=SessionSnapshot)
async def report_playback(session_id: str, body: PlaybackEventBody):
    """Browser callback when narration playback ends or fails."""
    shell = _get_shell(session_id)
    if body.event == "ended":
        await shell.info.read_aloud.on_ended()
    else:
        await shell.info.read_aloud.on_error()
    return shell.snapshot()


# --- Interaction checker ---


@router.post("/{session_id}/interaction/medications", response_model=SessionSnapshot)
async def add_medication(session_id: str, body: MedicationNameBody):
    shell = _get_shell(session_id)
    shell.set_active_tab("interaction")
    shell.interaction.add_medication(body.medication_name)
    return shell.snapshot()


@router.delete("/{session_id}/interaction/medications/{index}", response_model=SessionSnapshot)
async def remove_medication(session_id: str, index: int):
    shell = _get_shell(session_id)
    if not shell.interaction.remove_medication(index):
        raise HTTPException(status_code=404, detail="Medication not found")
    return shell.snapshot()


@router.post("/{session_id}/interaction/check", response_model=SessionSnapshot)
async def check_interactions(session_id: str):
    shell = _get_shell(session_id)
    shell.set_active_tab("interaction")
    await shell.interaction.handle_check_interactions()
    return shell.snapshot()


# --- Document analyzer ---


@router.post("/{session_id}/document/file", response_model=SessionSnapshot)
async def select_document(session_id: str, file: UploadFile = File(...)):
    shell = _get_shell(session_id)
    shell.set_active_tab("document")
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    await shell.document.select_file(file.filename or "document", file.content_type, data)
    return shell.snapshot()


@router.post("/{session_id}/document/analyze", response_model=SessionSnapshot)
async def analyze_document(session_id: str):
    shell = _get_shell(session_id)
    shell.set_active_tab("document")
    await shell.document.analyze()
    return shell.snapshot()


# --- History ---


@router.get("/{session_id}/history", response_model=list[HistoryEntryView])
async def list_history(session_id: str):
    return _get_shell(session_id).history_view()


@router.delete("/{session_id}/history", response_model=SessionSnapshot)
async def clear_history(session_id: str):
    shell = _get_shell(session_id)
    await shell.clear_history()
    return shell.snapshot()


@router.post("/{session_id}/history/{item_id}/select", response_model=SessionSnapshot)
async def select_history(session_id: str, item_id: str):
    """Switch to the tab that produced a history entry."""
    shell = _get_shell(session_id)
    if shell.select_history(item_id) is None:
        raise HTTPException(status_code=404, detail="History entry not found")
    return shell.snapshot()


# --- Live events ---


@ws_router.websocket("/ws/sessions/{session_id}")
async def session_events_ws(websocket: WebSocket, session_id: str):
    """Push session events and accept microphone and playback messages.

    Outgoing: notification, state, result, audio_ready, playback, listening, ping.
    Incoming: mic_toggle {tab}, audio_chunk {data}, playback {event}.
    """
    await websocket.accept()
    shell = registry.get(session_id)
    if shell is None:
        await websocket.send_json({"type": "error", "message": f"Session {session_id} not found"})
        await websocket.close()
        return

    queue = event_bus.subscribe(session_id)

    async def _forward_events() -> None:
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=PING_INTERVAL)
            except asyncio.TimeoutError:
                event = {"type": "ping"}
            try:
                await websocket.send_json(event)
            except Exception:
                logger.debug("Failed to send event to session %s", session_id)
                break

    sender = asyncio.create_task(_forward_events())
    await websocket.send_json({"type": "snapshot", "snapshot": shell.snapshot(drain=False).model_dump(mode="json", by_alias=True)})

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                logger.debug("Ignoring malformed message on session %s", session_id)
                continue
            msg_type = data.get("type")

            if msg_type == "mic_toggle":
                tab = data.get("tab", shell.active_tab)
                if tab == "interaction":
                    await shell.interaction.dictation.toggle()
                else:
                    await shell.info.dictation.toggle()
            elif msg_type == "audio_chunk":
                chunk = data.get("data", "")
                await shell.info.dictation.send_audio(chunk)
                await shell.interaction.dictation.send_audio(chunk)
            elif msg_type == "playback":
                if data.get("event") == "ended":
                    await shell.info.read_aloud.on_ended()
                elif data.get("event") == "error":
                    await shell.info.read_aloud.on_error()
    except WebSocketDisconnect:
        logger.info("Client disconnected from session %s", session_id)
    except Exception as e:
        logger.error("WebSocket error for session %s: %s", session_id, e)
    finally:
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        event_bus.unsubscribe(session_id, queue)
        await shell.info.dictation.stop()
        await shell.interaction.dictation.stop()
