"""Stateless adapter endpoints: one request, one provider call."""

import logging

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse

from app.config import MAX_UPLOAD_BYTES
from app.models.medication import (
    DocumentAnalysisResult,
    InteractionCheckRequest,
    InteractionReport,
    MedicationInfoRequest,
    MedicationInfoResult,
    SpeechPayload,
    SpeechRequest,
    TranslateRequest,
    TranslationResult,
)
from app.services import actions, locales
from app.services.result import Err, ErrorKind, Result
from app.services.uploads import validate_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tools"])


def _respond(result: Result):
    """Return the Ok value, or a JSON error body with a status for the error kind."""
    if isinstance(result, Err):
        status_code = 400 if result.kind is ErrorKind.VALIDATION else 502
        return JSONResponse(status_code=status_code, content={"error": result.message})
    return result.value


@router.post("/medication-info", response_model=MedicationInfoResult)
async def medication_info(body: MedicationInfoRequest):
    """Summarize uses, side effects and dosage guidelines for one medication."""
    return _respond(await actions.fetch_medication_info(body.medication_name.strip()))


@router.post("/interactions", response_model=InteractionReport)
async def interactions(body: InteractionCheckRequest):
    """Report potential interactions between two or more medications."""
    medications = [m.strip() for m in body.medications if m.strip()]
    return _respond(await actions.check_interactions(medications))


@router.post("/documents/analyze", response_model=DocumentAnalysisResult)
async def analyze_document(file: UploadFile = File(...)):
    """Analyze an uploaded prescription image (PNG, JPEG or WebP, 5 MB max).

    Size and type are checked before the provider is contacted.
    """
    # Read one byte past the limit so oversized uploads are detected without buffering them whole.
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    checked = validate_upload(file.filename or "document", file.content_type, data)
    if isinstance(checked, Err):
        return _respond(checked)
    return _respond(await actions.analyze_document_action(checked.value))


@router.post("/speech", response_model=SpeechPayload)
async def speech(body: SpeechRequest):
    """Synthesize speech as a ``data:audio/wav;base64,...`` URI."""
    return _respond(await actions.generate_speech_from_text(body.text))


@router.post("/translate", response_model=TranslationResult)
async def translate(body: TranslateRequest):
    return _respond(await actions.translate_content(body.text, body.target_language))


@router.get("/languages")
async def list_languages():
    return [
        {"code": code, "name": name, "default": code == locales.DEFAULT_LOCALE}
        for code, name in locales.LANGUAGE_NAMES.items()
    ]
