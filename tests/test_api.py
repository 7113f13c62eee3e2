"""Tests for REST API endpoints."""

from unittest.mock import AsyncMock, patch

from app.models.medication import MedicationInfoResult
from app.routers import tools
from app.services.result import Err, Ok

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


# --- Stateless tools ---


async def test_health(async_client):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["provider"] == "dummy"
    assert data["speech"] is False


async def test_languages(async_client):
    resp = await async_client.get("/api/languages")
    assert resp.status_code == 200
    languages = {lang["code"]: lang for lang in resp.json()}
    assert languages["en"]["default"] is True
    assert languages["fr"]["name"] == "French"


async def test_medication_info_empty_name_is_400(async_client):
    resp = await async_client.post("/api/medication-info", json={"medicationName": "   "})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Medication name cannot be empty."}


async def test_medication_info_provider_failure_is_502(async_client):
    # No provider is configured under test
    resp = await async_client.post("/api/medication-info", json={"medicationName": "Ibuprofen"})
    assert resp.status_code == 502
    assert "Please try again later." in resp.json()["error"]


async def test_medication_info_success_uses_aliases(async_client):
    result = MedicationInfoResult(uses="Pain", side_effects="Nausea", dosage_guidelines="200mg")
    with patch.object(tools.actions, "fetch_medication_info", AsyncMock(return_value=Ok(result))) as fetch:
        resp = await async_client.post("/api/medication-info", json={"medicationName": " Ibuprofen "})

    assert resp.status_code == 200
    assert resp.json() == {"uses": "Pain", "sideEffects": "Nausea", "dosageGuidelines": "200mg"}
    fetch.assert_awaited_once_with("Ibuprofen")


async def test_interactions_need_two_names(async_client):
    resp = await async_client.post("/api/interactions", json={"medications": ["Aspirin", "  "]})
    assert resp.status_code == 400


async def test_document_too_large_never_reaches_adapter(async_client):
    analyze = AsyncMock()
    with patch.object(tools.actions, "analyze_document_action", analyze):
        resp = await async_client.post(
            "/api/documents/analyze",
            files={"file": ("big.png", b"\x00" * (5 * 1024 * 1024 + 1), "image/png")},
        )

    assert resp.status_code == 400
    assert resp.json()["error"] == "File is too large. Please upload a file smaller than 5MB."
    analyze.assert_not_called()


async def test_document_wrong_type_rejected(async_client):
    resp = await async_client.post(
        "/api/documents/analyze",
        files={"file": ("rx.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert resp.status_code == 400


async def test_document_is_sent_as_data_uri(async_client):
    analyze = AsyncMock(return_value=Err.provider("An unexpected error occurred during document analysis."))
    with patch.object(tools.actions, "analyze_document_action", analyze):
        resp = await async_client.post(
            "/api/documents/analyze",
            files={"file": ("rx.png", PNG_BYTES, "image/png")},
        )

    assert resp.status_code == 502
    assert analyze.call_args.args[0].startswith("data:image/png;base64,")


async def test_speech_dummy_mode_returns_wav(async_client, monkeypatch):
    monkeypatch.setattr(tools.actions, "DUMMY_MODE", True)
    resp = await async_client.post("/api/speech", json={"text": "Hello"})
    assert resp.status_code == 200
    assert resp.json()["audioDataUri"].startswith("data:audio/wav;base64,")


async def test_translate_requires_language(async_client):
    resp = await async_client.post("/api/translate", json={"text": "Hello", "targetLanguage": ""})
    assert resp.status_code == 400


# --- Sessions ---


async def _create(async_client, **body):
    resp = await async_client.post("/api/sessions", json=body)
    assert resp.status_code == 200
    return resp.json()


async def test_create_session(async_client, session_actions):
    data = await _create(async_client, profile_id="profile-1", locale="fr")
    assert data["profile_id"] == "profile-1"
    assert data["locale"] == "fr"
    assert data["language_name"] == "French"
    assert data["active_tab"] == "info"
    assert data["info"]["state"] == "idle"
    assert data["history"] == []


async def test_get_session_not_found(async_client):
    resp = await async_client.get("/api/sessions/nonexistent-id")
    assert resp.status_code == 404


async def test_info_flow_records_history(async_client, session_actions):
    sid = (await _create(async_client))["session_id"]

    resp = await async_client.post(f"/api/sessions/{sid}/info", json={"medicationName": "Aspirin"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["info"]["result"]["sideEffects"] == "Nausea."
    assert data["info"]["last_outcome"] == "succeeded"
    assert [h["label"] for h in data["history"]] == ["Aspirin"]
    assert "translate_content" not in session_actions.names()


async def test_info_short_name_sets_field_error(async_client, session_actions):
    sid = (await _create(async_client))["session_id"]

    resp = await async_client.post(f"/api/sessions/{sid}/info", json={"medicationName": "A"})

    assert resp.json()["info"]["field_error"] == "Medication name must be at least 2 characters."
    assert session_actions.calls == []


async def test_read_aloud_before_audio_notifies(async_client, session_actions):
    sid = (await _create(async_client))["session_id"]

    resp = await async_client.post(f"/api/sessions/{sid}/read-aloud")

    data = resp.json()
    assert data["info"]["playback"] == "stopped"
    assert data["notifications"][0]["title"] == "Speech Error"


async def test_interaction_flow_in_french(async_client, session_actions):
    sid = (await _create(async_client, locale="fr"))["session_id"]
    await async_client.post(f"/api/sessions/{sid}/interaction/medications", json={"medicationName": "Aspirin"})
    dup = await async_client.post(f"/api/sessions/{sid}/interaction/medications", json={"medicationName": "aspirin"})
    assert dup.json()["interaction"]["field_error"] == "Ce médicament a déjà été ajouté."
    await async_client.post(f"/api/sessions/{sid}/interaction/medications", json={"medicationName": "Warfarin"})

    resp = await async_client.post(f"/api/sessions/{sid}/interaction/check")

    data = resp.json()
    assert data["active_tab"] == "interaction"
    assert data["interaction"]["result"]["report"] == "[French] No known interactions."
    assert data["history"][0]["type"] == "interaction"
    assert data["history"][0]["label"] == "Aspirin, Warfarin"


async def test_remove_medication(async_client, session_actions):
    sid = (await _create(async_client))["session_id"]
    await async_client.post(f"/api/sessions/{sid}/interaction/medications", json={"medicationName": "Aspirin"})

    resp = await async_client.delete(f"/api/sessions/{sid}/interaction/medications/0")
    assert resp.json()["interaction"]["medications"] == []

    missing = await async_client.delete(f"/api/sessions/{sid}/interaction/medications/3")
    assert missing.status_code == 404


async def test_check_with_one_medication_notifies(async_client, session_actions):
    sid = (await _create(async_client))["session_id"]
    await async_client.post(f"/api/sessions/{sid}/interaction/medications", json={"medicationName": "Aspirin"})

    resp = await async_client.post(f"/api/sessions/{sid}/interaction/check")

    assert resp.json()["notifications"][0]["description"] == (
        "Please add at least two medications to check for interactions."
    )
    assert "check_interactions" not in session_actions.names()


async def test_document_flow(async_client, session_actions):
    sid = (await _create(async_client))["session_id"]

    selected = await async_client.post(
        f"/api/sessions/{sid}/document/file",
        files={"file": ("rx.png", PNG_BYTES, "image/png")},
    )
    assert selected.json()["document"]["filename"] == "rx.png"

    resp = await async_client.post(f"/api/sessions/{sid}/document/analyze")
    data = resp.json()
    assert data["document"]["result"]["analysis"] == "Amoxicillin 500mg."
    assert data["history"][0]["label"] == "rx.png"


async def test_history_select_and_clear(async_client, session_actions):
    sid = (await _create(async_client))["session_id"]
    await async_client.post(f"/api/sessions/{sid}/info", json={"medicationName": "Aspirin"})
    history = (await async_client.get(f"/api/sessions/{sid}/history")).json()

    selected = await async_client.post(f"/api/sessions/{sid}/history/{history[0]['id']}/select")
    assert selected.json()["active_tab"] == "info"
    missing = await async_client.post(f"/api/sessions/{sid}/history/nope/select")
    assert missing.status_code == 404

    cleared = await async_client.delete(f"/api/sessions/{sid}/history")
    assert cleared.json()["history"] == []


async def test_history_persists_across_sessions(async_client, session_actions):
    first = (await _create(async_client, profile_id="profile-7"))["session_id"]
    await async_client.post(f"/api/sessions/{first}/info", json={"medicationName": "Aspirin"})
    await async_client.delete(f"/api/sessions/{first}")

    second = await _create(async_client, profile_id="profile-7")

    assert [h["label"] for h in second["history"]] == ["Aspirin"]


async def test_locale_update(async_client, session_actions):
    sid = (await _create(async_client))["session_id"]
    resp = await async_client.put(f"/api/sessions/{sid}/locale", json={"locale": "es"})
    assert resp.json()["language_name"] == "Spanish"


async def test_close_session(async_client, session_actions):
    sid = (await _create(async_client))["session_id"]
    resp = await async_client.delete(f"/api/sessions/{sid}")
    assert resp.json() == {"id": sid, "closed": True}
    assert (await async_client.get(f"/api/sessions/{sid}")).status_code == 404
