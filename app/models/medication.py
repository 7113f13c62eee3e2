from pydantic import BaseModel, ConfigDict, Field


class MedicationInfoResult(BaseModel):
    """Provider overview of a single medication."""

    model_config = ConfigDict(populate_by_name=True)

    uses: str = Field(description="The common uses of the medication.")
    side_effects: str = Field(
        alias="sideEffects",
        description="A summary of potential side effects.",
    )
    dosage_guidelines: str = Field(
        alias="dosageGuidelines",
        description="General dosage guidelines for the medication.",
    )


class InteractionReport(BaseModel):
    report: str = Field(
        description=(
            "A report of potential drug interactions, including guidance on "
            "consulting with a healthcare professional."
        ),
    )


class DocumentAnalysisResult(BaseModel):
    analysis: str = Field(
        description=(
            "A summary and analysis of the document, identifying medications "
            "and providing suggestions."
        ),
    )


class TranslationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    translated_text: str = Field(alias="translatedText", description="The translated text.")


class SpeechPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audio_data_uri: str = Field(alias="audioDataUri")


# --- Request bodies ---


class MedicationInfoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    medication_name: str = Field("", alias="medicationName")


class InteractionCheckRequest(BaseModel):
    medications: list[str] = []


class SpeechRequest(BaseModel):
    text: str = ""


class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    target_language: str = Field("", alias="targetLanguage")
