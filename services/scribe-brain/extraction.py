"""Extraction orchestrator: normalize -> compile prompt -> call Gemini -> decode.

Stages run strictly in order with a single await (the service call). Any
failure ends the run in the failed state, tagged with the stage it came from;
nothing is retried.
"""

import logging
import time
from pathlib import Path

from config import settings
from decoding import decode_response
from errors import DocumentUnreadable, EncodingFailed, EnvelopeDecodeError, PayloadDecodeError, TransportError
from gemini_client import GeminiClient
from models import ExtractionOutcome, PipelineStage
from normalizer import JPEG_MIME_TYPE, encode_jpeg_base64, load_document
from prompts import compile_prompt, file_creation_date
from workspace import Workspace

logger = logging.getLogger(__name__)

FAILURE_MESSAGES: dict[PipelineStage, str] = {
    PipelineStage.NORMALIZING: "Could not read file",
    PipelineStage.COMPILING: "Could not build prompt",
    PipelineStage.CALLING: "Could not reach AI service",
    PipelineStage.DECODING: "Could not parse AI response",
}

_RUNNING = {
    PipelineStage.NORMALIZING,
    PipelineStage.COMPILING,
    PipelineStage.CALLING,
    PipelineStage.DECODING,
}


class ExtractionPipeline:
    """Runs one extraction request end-to-end against a shared workspace."""

    def __init__(
        self,
        workspace: Workspace,
        client: GeminiClient,
        jpeg_quality: int | None = None,
        example_limit: int | None = None,
    ):
        self.workspace = workspace
        self.client = client
        self.jpeg_quality = jpeg_quality if jpeg_quality is not None else settings.JPEG_QUALITY
        self.example_limit = example_limit if example_limit is not None else settings.CORRECTION_EXAMPLES_LIMIT
        self.state = PipelineStage.IDLE

    def _advance(self, stage: PipelineStage):
        logger.debug("pipeline: %s -> %s", self.state.value, stage.value)
        self.state = stage

    async def run(self, path: str | Path, fallback_date: str | None = None) -> ExtractionOutcome:
        """Extract metadata from the document at ``path``."""
        if self.state in _RUNNING:
            raise RuntimeError(f"Extraction already in progress ({self.state.value})")

        start = time.monotonic()
        path = Path(path)
        image_hash = None

        def failed(stage: PipelineStage, error: Exception) -> ExtractionOutcome:
            self.state = PipelineStage.FAILED
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.error("Extraction failed while %s: %s", stage.value, error)
            return ExtractionOutcome(
                state=PipelineStage.FAILED,
                image_hash=image_hash,
                failed_stage=stage,
                detail=f"{FAILURE_MESSAGES[stage]}: {error}",
                fallback_date=fallback_date,
                processing_time_ms=elapsed_ms,
            )

        # Normalize the file into one page image and its upload payload
        self._advance(PipelineStage.NORMALIZING)
        try:
            document = load_document(path)
            image_hash = document.image_hash
            image_b64 = encode_jpeg_base64(document.image, quality=self.jpeg_quality)
        except (DocumentUnreadable, EncodingFailed) as e:
            return failed(PipelineStage.NORMALIZING, e)

        width, height = document.size
        logger.info("Normalized document: %dx%d px, payload %d chars", width, height, len(image_b64))

        # Compile the prompt from the template, taxonomy lists and past corrections
        self._advance(PipelineStage.COMPILING)
        if fallback_date is None:
            fallback_date = file_creation_date(path)
        try:
            prompt = compile_prompt(
                self.workspace.templates.text,
                self.workspace.document_types.entries,
                self.workspace.categories.entries,
                self.workspace.corrections.recent_examples(self.example_limit),
                fallback_date,
            )
        except ValueError as e:
            return failed(PipelineStage.COMPILING, e)

        # Single suspension point
        self._advance(PipelineStage.CALLING)
        try:
            raw = await self.client.generate(prompt, image_b64, JPEG_MIME_TYPE)
        except TransportError as e:
            return failed(PipelineStage.CALLING, e)

        self._advance(PipelineStage.DECODING)
        try:
            data = decode_response(raw)
        except (EnvelopeDecodeError, PayloadDecodeError) as e:
            return failed(PipelineStage.DECODING, e)

        self._advance(PipelineStage.DONE)
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info("Extraction completed in %dms", elapsed_ms)

        return ExtractionOutcome(
            state=PipelineStage.DONE,
            data=data,
            image_hash=image_hash,
            fallback_date=fallback_date,
            processing_time_ms=elapsed_ms,
        )
