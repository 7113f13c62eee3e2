"""Per-feature request orchestrators.

Every orchestrator runs the same cycle: idle -> submitting -> idle, recording
whether the last cycle succeeded or failed. Each submission bumps a generation
counter; a response that comes back after a newer submission, a file change or
``close()`` no longer matches and is dropped without touching state.
"""

import asyncio
import logging
from types import ModuleType
from typing import Literal, Protocol

from app.models.medication import (
    DocumentAnalysisResult,
    InteractionReport,
    MedicationInfoResult,
    SpeechPayload,
    TranslationResult,
)
from app.models.session import DocumentView, InteractionView, MedicationInfoView, Tab
from app.services import actions as default_actions
from app.services.context import SessionContext
from app.services.dictation import VoiceDictation
from app.services.playback import AudioPlayer, NullAudioPlayer, ReadAloudControl
from app.services.result import Err, Ok, Result
from app.services.transcription import NullSpeechRecognizer, SpeechRecognizer
from app.services.uploads import validate_upload

logger = logging.getLogger(__name__)

State = Literal["idle", "submitting"]
Outcome = Literal["succeeded", "failed"]

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50


class Actions(Protocol):
    async def fetch_medication_info(self, medication_name: str) -> Result[MedicationInfoResult]: ...

    async def check_interactions(self, medications: list[str]) -> Result[InteractionReport]: ...

    async def analyze_document_action(self, document_data_uri: str | None) -> Result[DocumentAnalysisResult]: ...

    async def generate_speech_from_text(self, text: str) -> Result[SpeechPayload]: ...

    async def translate_content(self, text: str, target_language: str) -> Result[TranslationResult]: ...


class BaseOrchestrator:
    tab: Tab

    def __init__(self, context: SessionContext, actions: Actions | ModuleType = default_actions) -> None:
        self.context = context
        self.actions = actions
        self.state: State = "idle"
        self.last_outcome: Outcome | None = None
        self.field_error: str | None = None
        self._generation = 0
        self._closed = False

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    async def _begin(self) -> int | None:
        """Enter submitting. Returns the new generation, or None if already busy."""
        if self._closed or self.state == "submitting":
            logger.debug("%s: submission ignored (state=%s)", self.tab, self.state)
            return None
        self._generation += 1
        self.state = "submitting"
        self.field_error = None
        await self.context.emit({"type": "state", "tab": self.tab, "state": self.state})
        return self._generation

    async def _finish(self, generation: int, outcome: Outcome) -> None:
        if not self._is_current(generation):
            return
        self.state = "idle"
        self.last_outcome = outcome
        await self.context.emit({
            "type": "state",
            "tab": self.tab,
            "state": self.state,
            "outcome": outcome,
        })

    def _invalidate(self) -> None:
        """Make any in-flight response stale and return to idle."""
        self._generation += 1
        if self.state == "submitting":
            self.state = "idle"
            self.last_outcome = None

    async def _fail(self, generation: int, error: Err) -> Err:
        await self.context.notify_error(error.message)
        await self._finish(generation, "failed")
        return error

    async def _abort(self, generation: int, e: Exception) -> Err:
        """Recover from an unexpected error mid-cycle so the tab can submit again."""
        logger.error("%s: request cycle failed: %s", self.tab, e)
        if self._is_current(generation):
            self.result = None
        return await self._fail(generation, Err.provider(self.context.t("ERROR_UNEXPECTED")))

    async def _translate_fields(self, fields: dict[str, str]) -> Result[dict[str, str]]:
        """Translate every field in parallel; any failure discards them all."""
        target = self.context.language_name
        names = list(fields)
        results = await asyncio.gather(
            *(self.actions.translate_content(fields[name], target) for name in names)
        )
        for result in results:
            if isinstance(result, Err):
                return result
        return Ok({name: result.value.translated_text for name, result in zip(names, results)})

    async def _emit_result(self, result) -> None:
        await self.context.emit({
            "type": "result",
            "tab": self.tab,
            "result": result.model_dump(by_alias=True),
        })

    async def close(self) -> None:
        self._closed = True
        self._invalidate()


class MedicationInfoOrchestrator(BaseOrchestrator):
    tab: Tab = "info"

    def __init__(
        self,
        context: SessionContext,
        actions: Actions | ModuleType = default_actions,
        recognizer: SpeechRecognizer | None = None,
        player: AudioPlayer | None = None,
    ) -> None:
        super().__init__(context, actions)
        self.medication_name = ""
        self.result: MedicationInfoResult | None = None
        self.read_aloud = ReadAloudControl(player or NullAudioPlayer(), context)
        self.dictation = VoiceDictation(recognizer or NullSpeechRecognizer(), context, self._on_dictated, tab=self.tab)
        self._speech_tasks: set[asyncio.Task] = set()

    async def submit(self, medication_name: str | None = None) -> Result[MedicationInfoResult] | None:
        if medication_name is not None:
            self.medication_name = medication_name
        name = self.medication_name.strip()
        if len(name) < MIN_NAME_LENGTH:
            self.field_error = self.context.t("ERROR_NAME_TOO_SHORT")
            return Err.validation(self.field_error)

        generation = await self._begin()
        if generation is None:
            return None
        try:
            return await self._lookup(generation, name)
        except Exception as e:
            return await self._abort(generation, e)

    async def _lookup(self, generation: int, name: str) -> Result[MedicationInfoResult] | None:
        self.result = None
        await self.read_aloud.reset()

        response = await self.actions.fetch_medication_info(name)
        if not self._is_current(generation):
            logger.debug("Discarding stale medication info for %s", name)
            return None
        if isinstance(response, Err):
            return await self._fail(generation, response)

        result = response.value
        if not self.context.is_default_locale:
            translated = await self._translate_fields({
                "uses": result.uses,
                "side_effects": result.side_effects,
                "dosage_guidelines": result.dosage_guidelines,
            })
            if not self._is_current(generation):
                return None
            if isinstance(translated, Err):
                await self.context.notify_error(self.context.t("ERROR_TRANSLATION"))
            else:
                result = MedicationInfoResult(**translated.value)

        self.result = result
        await self.context.history.append("info", name)
        await self._finish(generation, "succeeded")
        await self._emit_result(result)
        self._schedule_speech(generation, self.compose_summary(name, result))
        return Ok(result)

    def compose_summary(self, medication_name: str, result: MedicationInfoResult) -> str:
        t = self.context.t
        return (
            f"{t('TTS_INFO_FOR')} {medication_name}.\n"
            f"{t('ACCORDION_TITLE_USES')}: {result.uses}.\n"
            f"{t('ACCORDION_TITLE_SIDE_EFFECTS')}: {result.side_effects}.\n"
            f"{t('ACCORDION_TITLE_DOSAGE')}: {result.dosage_guidelines}."
        )

    def _schedule_speech(self, generation: int, text: str) -> None:
        task = asyncio.create_task(self._generate_audio(generation, text))
        self._speech_tasks.add(task)
        task.add_done_callback(self._speech_tasks.discard)

    async def _generate_audio(self, generation: int, text: str) -> None:
        response = await self.actions.generate_speech_from_text(text)
        if not self._is_current(generation):
            logger.debug("Discarding stale speech for generation %d", generation)
            return
        if isinstance(response, Err):
            self.read_aloud.audio_data_uri = None
            await self.context.notify(self.context.t("ERROR_SPEECH_TITLE"), response.message)
            return
        self.read_aloud.audio_data_uri = response.value.audio_data_uri
        await self.context.emit({"type": "audio_ready", "tab": self.tab})

    async def wait_for_speech(self) -> None:
        """Wait for pending speech synthesis (used on shutdown and in tests)."""
        if self._speech_tasks:
            await asyncio.gather(*self._speech_tasks, return_exceptions=True)

    async def _on_dictated(self, transcript: str) -> None:
        self.medication_name = transcript
        await self.submit()

    async def close(self) -> None:
        await super().close()
        await self.dictation.stop()
        await self.read_aloud.stop()

    def view(self) -> MedicationInfoView:
        return MedicationInfoView(
            state=self.state,
            last_outcome=self.last_outcome,
            listening=self.dictation.listening,
            field_error=self.field_error,
            medication_name=self.medication_name,
            result=self.result,
            audio_ready=self.read_aloud.audio_ready,
            playback=self.read_aloud.state,
        )


class InteractionCheckerOrchestrator(BaseOrchestrator):
    tab: Tab = "interaction"

    def __init__(
        self,
        context: SessionContext,
        actions: Actions | ModuleType = default_actions,
        recognizer: SpeechRecognizer | None = None,
    ) -> None:
        super().__init__(context, actions)
        self.medication_name = ""
        self.medications: list[str] = []
        self.result: InteractionReport | None = None
        self.dictation = VoiceDictation(recognizer or NullSpeechRecognizer(), context, self._on_dictated, tab=self.tab)

    def add_medication(self, medication_name: str | None = None) -> Result[list[str]]:
        if medication_name is not None:
            self.medication_name = medication_name
        new_med = self.medication_name.strip()

        error_key = None
        if not new_med:
            error_key = "ERROR_CANNOT_BE_EMPTY"
        elif len(new_med) < MIN_NAME_LENGTH:
            error_key = "ERROR_NAME_TOO_SHORT"
        elif len(new_med) > MAX_NAME_LENGTH:
            error_key = "ERROR_NAME_TOO_LONG"
        elif new_med.lower() in (m.lower() for m in self.medications):
            error_key = "ERROR_MED_ALREADY_ADDED"

        if error_key:
            self.field_error = self.context.t(error_key)
            return Err.validation(self.field_error)

        self.medications = [*self.medications, new_med]
        self.medication_name = ""
        self.field_error = None
        return Ok(list(self.medications))

    def remove_medication(self, index: int) -> bool:
        if not 0 <= index < len(self.medications):
            return False
        self.medications = [m for i, m in enumerate(self.medications) if i != index]
        return True

    async def handle_check_interactions(self) -> Result[InteractionReport] | None:
        if len(self.medications) < 2:
            message = self.context.t("ERROR_NOT_ENOUGH_MEDS")
            await self.context.notify_error(message)
            return Err.validation(message)

        generation = await self._begin()
        if generation is None:
            return None
        try:
            return await self._check(generation)
        except Exception as e:
            return await self._abort(generation, e)

    async def _check(self, generation: int) -> Result[InteractionReport] | None:
        self.result = None
        medications = list(self.medications)

        response = await self.actions.check_interactions(medications)
        if not self._is_current(generation):
            logger.debug("Discarding stale interaction report for %s", medications)
            return None
        if isinstance(response, Err):
            return await self._fail(generation, response)

        result = response.value
        if not self.context.is_default_locale:
            translated = await self._translate_fields({"report": result.report})
            if not self._is_current(generation):
                return None
            if isinstance(translated, Err):
                await self.context.notify_error(translated.message)
            else:
                result = InteractionReport(**translated.value)

        self.result = result
        await self.context.history.append("interaction", medications)
        await self._finish(generation, "succeeded")
        await self._emit_result(result)
        return Ok(result)

    async def _on_dictated(self, transcript: str) -> None:
        self.add_medication(transcript)

    async def close(self) -> None:
        await super().close()
        await self.dictation.stop()

    def view(self) -> InteractionView:
        return InteractionView(
            state=self.state,
            last_outcome=self.last_outcome,
            listening=self.dictation.listening,
            field_error=self.field_error,
            medication_name=self.medication_name,
            medications=list(self.medications),
            result=self.result,
        )


class DocumentAnalyzerOrchestrator(BaseOrchestrator):
    tab: Tab = "document"

    def __init__(self, context: SessionContext, actions: Actions | ModuleType = default_actions) -> None:
        super().__init__(context, actions)
        self.filename: str | None = None
        self.preview: str | None = None
        self.result: DocumentAnalysisResult | None = None

    async def select_file(self, filename: str, content_type: str | None, data: bytes) -> Result[str]:
        checked = validate_upload(filename, content_type, data)
        if isinstance(checked, Err):
            await self.context.notify_error(checked.message)
            return checked

        # A new file makes any in-flight analysis of the previous one stale.
        self._invalidate()
        self.filename = filename
        self.preview = checked.value
        self.result = None
        return checked

    async def analyze(self) -> Result[DocumentAnalysisResult] | None:
        if not self.filename or not self.preview:
            message = self.context.t("ERROR_NO_FILE")
            await self.context.notify_error(message)
            return Err.validation(message)

        generation = await self._begin()
        if generation is None:
            return None
        try:
            return await self._analyze(generation)
        except Exception as e:
            return await self._abort(generation, e)

    async def _analyze(self, generation: int) -> Result[DocumentAnalysisResult] | None:
        self.result = None
        filename = self.filename

        response = await self.actions.analyze_document_action(self.preview)
        if not self._is_current(generation):
            logger.debug("Discarding stale analysis for %s", filename)
            return None
        if isinstance(response, Err):
            return await self._fail(generation, response)

        result = response.value
        if not self.context.is_default_locale:
            translated = await self._translate_fields({"analysis": result.analysis})
            if not self._is_current(generation):
                return None
            if isinstance(translated, Err):
                await self.context.notify_error(translated.message)
            else:
                result = DocumentAnalysisResult(**translated.value)

        self.result = result
        await self.context.history.append("document", filename)
        await self._finish(generation, "succeeded")
        await self._emit_result(result)
        return Ok(result)

    def view(self) -> DocumentView:
        return DocumentView(
            state=self.state,
            last_outcome=self.last_outcome,
            field_error=self.field_error,
            filename=self.filename,
            preview=self.preview,
            result=self.result,
        )
