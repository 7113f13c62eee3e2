from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.models.history import HistoryEntryView
from app.models.medication import DocumentAnalysisResult, InteractionReport, MedicationInfoResult

Tab = Literal["info", "interaction", "document"]


class Notification(BaseModel):
    """Transient, dismissible message shown to the user."""

    title: str
    description: str
    variant: str = "destructive"


class SessionCreate(BaseModel):
    profile_id: str | None = None
    locale: str = "en"


class LocaleUpdate(BaseModel):
    locale: str


class MedicationNameBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    medication_name: str = Field("", alias="medicationName")


class PlaybackEventBody(BaseModel):
    event: Literal["ended", "error"]


class OrchestratorView(BaseModel):
    state: str
    last_outcome: str | None = None
    listening: bool = False
    field_error: str | None = None


class MedicationInfoView(OrchestratorView):
    medication_name: str = ""
    result: MedicationInfoResult | None = None
    audio_ready: bool = False
    playback: str = "stopped"


class InteractionView(OrchestratorView):
    medication_name: str = ""
    medications: list[str] = []
    result: InteractionReport | None = None


class DocumentView(OrchestratorView):
    filename: str | None = None
    preview: str | None = None
    result: DocumentAnalysisResult | None = None


class SessionSnapshot(BaseModel):
    session_id: str
    profile_id: str
    locale: str
    language_name: str
    disclaimer_title: str
    disclaimer: str
    active_tab: Tab
    info: MedicationInfoView
    interaction: InteractionView
    document: DocumentView
    history: list[HistoryEntryView] = []
    notifications: list[Notification] = []
