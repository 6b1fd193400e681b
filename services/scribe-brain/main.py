"""FastAPI scribe brain service: document metadata extraction with a correction-driven learning loop.

Serves the review UI: runs extractions, records corrections, and edits the
taxonomy lists and prompt template. Visual understanding is delegated to Gemini.
Privacy: no image content or credentials are logged, only sizes and hashes.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from config import settings
from errors import ConfigurationMissing
from extraction import ExtractionPipeline
from gemini_client import GeminiClient
from models import (
    ExtractionOutcome,
    ExtractRequest,
    PipelineStage,
    PromptTemplate,
    ReviewRequest,
    ReviewResponse,
    TaxonomyAddRequest,
    TaxonomyResponse,
)
from review import default_output_path, finalize_review
from workspace import TAXONOMY_KINDS, Workspace

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
# httpx logs request URLs at INFO, and the Gemini URL carries the API key
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

_workspace: Workspace | None = None
_client: GeminiClient | None = None
_config_error: str | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the configuration directory and create the Gemini client on startup."""
    global _workspace, _client, _config_error

    try:
        _workspace = Workspace.load()
        _config_error = None
    except ConfigurationMissing as e:
        logger.error("Configuration unavailable, extraction disabled: %s", e)
        _workspace = None
        _config_error = str(e)

    if _workspace is not None:
        _client = GeminiClient(api_key=_workspace.api_key)
        logger.info("Using Gemini model %s", _client.model)

    yield

    if _client is not None:
        await _client.aclose()
        _client = None


app = FastAPI(title="MetaScribe Brain", version="1.0.0", lifespan=lifespan)


def _require_workspace() -> Workspace:
    if _workspace is None:
        raise HTTPException(status_code=503, detail=_config_error or "Configuration not loaded")
    return _workspace


def _require_taxonomy(kind: str):
    workspace = _require_workspace()
    if kind not in TAXONOMY_KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown taxonomy: {kind}")
    return workspace.taxonomy(kind)


@app.post("/api/v1/extract", response_model=ExtractionOutcome)
async def extract(request: ExtractRequest):
    """Extract metadata from the document at the given path."""
    workspace = _require_workspace()

    pipeline = ExtractionPipeline(workspace, _client)
    outcome = await pipeline.run(request.document_path, fallback_date=request.fallback_date)

    if outcome.ok:
        return outcome

    status_code = 502 if outcome.failed_stage == PipelineStage.CALLING else 422
    return JSONResponse(status_code=status_code, content=outcome.model_dump(mode="json"))


@app.post("/api/v1/review", response_model=ReviewResponse)
async def review(request: ReviewRequest):
    """Accept the reviewed record: log a correction if edited, write the JSON output."""
    workspace = _require_workspace()

    output_path = request.output_path
    if output_path is None and request.document_path:
        output_path = str(default_output_path(request.document_path))

    try:
        logged = finalize_review(
            workspace,
            original=request.original,
            edited=request.edited,
            image_hash=request.image_hash,
            output_path=output_path,
        )
    except OSError as e:
        logger.error("Could not save review result: %s", e)
        raise HTTPException(status_code=500, detail=f"Could not save result: {e}") from e

    return ReviewResponse(correction_logged=logged, output_path=output_path)


@app.get("/api/v1/taxonomy/{kind}", response_model=TaxonomyResponse)
async def get_taxonomy(kind: str):
    taxonomy = _require_taxonomy(kind)
    return TaxonomyResponse(kind=kind, entries=taxonomy.entries, main_entries=taxonomy.main_entries())


@app.get("/api/v1/taxonomy/{kind}/{parent}")
async def get_sub_entries(kind: str, parent: str):
    taxonomy = _require_taxonomy(kind)
    return {"kind": kind, "parent": parent, "sub_entries": taxonomy.sub_entries(parent)}


@app.post("/api/v1/taxonomy/{kind}", response_model=TaxonomyResponse)
async def add_taxonomy_entry(kind: str, request: TaxonomyAddRequest):
    """Add a ``Parent`` or ``Parent*Child`` entry and persist the list."""
    taxonomy = _require_taxonomy(kind)
    try:
        taxonomy.add(request.entry)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return TaxonomyResponse(kind=kind, entries=taxonomy.entries, main_entries=taxonomy.main_entries())


@app.get("/api/v1/prompt", response_model=PromptTemplate)
async def get_prompt():
    return PromptTemplate(template=_require_workspace().templates.text)


@app.put("/api/v1/prompt", response_model=PromptTemplate)
async def update_prompt(request: PromptTemplate):
    workspace = _require_workspace()
    workspace.templates.save(request.template)
    return PromptTemplate(template=workspace.templates.text)


@app.get("/health")
async def health():
    """Return service status and whether the configuration loaded."""
    base = {
        "status": "healthy",
        "configured": _workspace is not None,
    }

    if _workspace is not None:
        base["config_dir"] = str(_workspace.root)
        base["corrections"] = len(_workspace.corrections)
    else:
        base["error"] = _config_error

    return base


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
