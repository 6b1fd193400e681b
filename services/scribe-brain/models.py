"""Pydantic models for extraction records, the correction log and the Gemini envelope."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ExtractedData(BaseModel):
    """Metadata extracted from one document. Every field is optional."""

    date: str | None = None  # yyyy-MM-dd
    contact: str | None = None
    description: str | None = None
    document_type: str | None = None
    document_subtype: str | None = None
    category: str | None = None
    subcategory: str | None = None


class CorrectionLogEntry(BaseModel):
    """One human-corrected extraction, keyed by the hash of the source image.

    Serialized with the camelCase keys of the original correction log so
    existing corrections.jsonl files stay readable.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_image_hash: str = Field(alias="originalImageHash")
    corrected_data: ExtractedData = Field(alias="correctedData")


# --- Gemini generateContent response envelope ---

class Part(BaseModel):
    text: str


class Content(BaseModel):
    parts: list[Part]


class Candidate(BaseModel):
    content: Content


class GeminiResponse(BaseModel):
    candidates: list[Candidate]


# --- Pipeline ---

class PipelineStage(str, Enum):
    IDLE = "idle"
    NORMALIZING = "normalizing"
    COMPILING = "compiling"
    CALLING = "calling"
    DECODING = "decoding"
    DONE = "done"
    FAILED = "failed"


class ExtractionOutcome(BaseModel):
    """Tagged result of one pipeline run: a record on success, a stage and cause on failure."""

    state: PipelineStage
    data: ExtractedData | None = None
    image_hash: str | None = None
    failed_stage: PipelineStage | None = None
    detail: str | None = None
    fallback_date: str | None = None
    processing_time_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.state == PipelineStage.DONE


# --- HTTP API ---

class ExtractRequest(BaseModel):
    document_path: str
    fallback_date: str | None = None


class ReviewRequest(BaseModel):
    image_hash: str
    original: ExtractedData
    edited: ExtractedData
    document_path: str | None = None
    output_path: str | None = None


class ReviewResponse(BaseModel):
    correction_logged: bool
    output_path: str | None = None


class TaxonomyAddRequest(BaseModel):
    entry: str


class TaxonomyResponse(BaseModel):
    kind: str
    entries: list[str]
    main_entries: list[str]


class PromptTemplate(BaseModel):
    template: str
