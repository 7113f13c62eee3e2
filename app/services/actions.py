"""Adapters around single provider calls.

Each adapter checks its minimal preconditions locally, makes exactly one
provider call, and normalizes any provider failure into a generic message.
The provider's own exception text is logged, never returned.
"""

import logging

from app.config import DUMMY_MODE
from app.models.medication import (
    DocumentAnalysisResult,
    InteractionReport,
    MedicationInfoResult,
    SpeechPayload,
    TranslationResult,
)
from app.services import prompts
from app.services.audio import SAMPLE_RATE, strip_data_uri, wav_data_uri
from app.services.llm import get_llm_client
from app.services.result import Err, Ok, Result

logger = logging.getLogger(__name__)


async def fetch_medication_info(medication_name: str) -> Result[MedicationInfoResult]:
    if not medication_name:
        return Err.validation("Medication name cannot be empty.")
    if DUMMY_MODE:
        return Ok(_dummy_medication_info(medication_name))

    try:
        result = await get_llm_client().generate_json(
            system=prompts.MEDICATION_INFO_PROMPT,
            user=prompts.medication_info_user(medication_name),
            response_model=MedicationInfoResult,
        )
        return Ok(result)
    except Exception as e:
        logger.error("Medication info lookup failed for %r: %s", medication_name, e)
        return Err.provider(
            "An unexpected error occurred while fetching medication information. "
            "Please try again later."
        )


async def check_interactions(medications: list[str]) -> Result[InteractionReport]:
    if not medications or len(medications) < 2:
        return Err.validation("Please provide at least two medications to check for interactions.")
    if DUMMY_MODE:
        return Ok(_dummy_interaction_report(medications))

    try:
        result = await get_llm_client().generate_json(
            system=prompts.INTERACTION_PROMPT,
            user=prompts.interaction_user(medications),
            response_model=InteractionReport,
            tier="standard",
        )
        return Ok(result)
    except Exception as e:
        logger.error("Interaction check failed for %s: %s", medications, e)
        return Err.provider(
            "An unexpected error occurred while checking for interactions. "
            "Please try again later."
        )


async def analyze_document_action(document_data_uri: str | None) -> Result[DocumentAnalysisResult]:
    if not document_data_uri:
        return Err.validation("Document data cannot be empty.")
    if DUMMY_MODE:
        return Ok(_dummy_document_analysis())

    try:
        result = await get_llm_client().generate_json(
            system=prompts.DOCUMENT_ANALYSIS_PROMPT,
            user=prompts.document_user(),
            response_model=DocumentAnalysisResult,
            image_data_uri=document_data_uri,
            tier="standard",
        )
        return Ok(result)
    except Exception as e:
        logger.error("Document analysis failed: %s", e)
        return Err.provider(
            "An unexpected error occurred during document analysis. "
            "Please try again later."
        )


async def generate_speech_from_text(text: str) -> Result[SpeechPayload]:
    if not text:
        return Err.validation("Text to speak cannot be empty.")
    if DUMMY_MODE:
        # Half a second of silence
        return Ok(SpeechPayload(audio_data_uri=wav_data_uri(b"\x00\x00" * (SAMPLE_RATE // 2))))

    try:
        pcm_uri = await get_llm_client().synthesize_speech(text)
        if not pcm_uri:
            raise RuntimeError("No audio was generated.")
        audio_data_uri = wav_data_uri(strip_data_uri(pcm_uri))
        return Ok(SpeechPayload(audio_data_uri=audio_data_uri))
    except Exception as e:
        logger.error("Speech generation failed (%d chars): %s", len(text), e)
        return Err.provider(
            "An unexpected error occurred while generating speech. "
            "Please try again later."
        )


async def translate_content(text: str, target_language: str) -> Result[TranslationResult]:
    if not text or not target_language:
        return Err.validation("Text and target language cannot be empty.")
    if DUMMY_MODE:
        return Ok(TranslationResult(translated_text=f"[{target_language}] {text}"))

    try:
        result = await get_llm_client().generate_json(
            system=prompts.TRANSLATION_PROMPT,
            user=prompts.translation_user(text, target_language),
            response_model=TranslationResult,
        )
        return Ok(result)
    except Exception as e:
        logger.error("Translation to %s failed: %s", target_language, e)
        return Err.provider(
            "An unexpected error occurred during translation. "
            "Please try again later."
        )


def _dummy_medication_info(medication_name: str) -> MedicationInfoResult:
    """Deterministic overview for demo mode."""
    return MedicationInfoResult(
        uses=f"{medication_name} is commonly used as described on its label (demo).",
        side_effects="Common side effects may include nausea or headache (demo).",
        dosage_guidelines="Follow the dosage printed on the package or given by your pharmacist (demo).",
    )


def _dummy_interaction_report(medications: list[str]) -> InteractionReport:
    joined = ", ".join(medications)
    return InteractionReport(
        report=(
            f"Demo interaction report for {joined}. No provider was contacted. "
            "Please consult a certified healthcare professional before combining medications."
        ),
    )


def _dummy_document_analysis() -> DocumentAnalysisResult:
    return DocumentAnalysisResult(
        analysis=(
            "Demo analysis: the document could not be read in demo mode. "
            "Please consult your doctor or a pharmacist for confirmation."
        ),
    )
