"""
PK Validator: FastAPI Server
============================

RESTful API for validating and reformatting private keys.

Endpoints:
    POST /validate          Run the full pipeline on raw text
    POST /validate/file     Upload a text file and run the pipeline on it
    POST /clean             Clean a single candidate key
    GET  /health            Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)

Nothing is persisted: responses carry the formatted output, saving it is up
to the client.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, UploadFile
from pydantic import BaseModel, Field

from key_validator import __version__
from key_validator.config import Settings
from key_validator.models import (
    DEFAULT_JOINER,
    KEY_PLACEHOLDER,
    ExtractionMode,
    FormatOptions,
    OutputFormat,
    PipelineReport,
    Severity,
    ValidationResult,
)
from key_validator.pipeline import KeyValidationPipeline
from key_validator.validators import clean_key

load_dotenv()


# ─── Application Lifespan ───────────────────────────────────────────

_pipeline: KeyValidationPipeline | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the pipeline from settings on startup."""
    global _pipeline  # noqa: PLW0603
    settings = Settings.from_env()
    _pipeline = KeyValidationPipeline(default_var_name=settings.var_name)
    yield
    _pipeline = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="PK Validator API",
    description=(
        "Extract private keys from text, normalize them to 0x + 64 lowercase "
        "hex, convert them to env/JSON/lines/CSV/template output and verify "
        "the output parses back to the same keys."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Request / Response Schemas ─────────────────────────────────────


class ValidateRequest(BaseModel):
    """Request body for the /validate endpoint."""

    raw_text: str = Field(..., min_length=1, description="Text to extract keys from.")
    mode: ExtractionMode = ExtractionMode.SMART
    var_name: Optional[str] = Field(
        default=None, description="Variable to read in envvar mode."
    )
    output_format: OutputFormat = OutputFormat.ENV_LINE
    out_var_name: Optional[str] = Field(
        default=None, description="Variable name for env_line output."
    )
    template: str = KEY_PLACEHOLDER
    joiner: str = DEFAULT_JOINER
    approve_corrections: bool = True

    model_config = {"json_schema_extra": {"example": {
        "raw_text": "PRIVATE_KEYS=0xAB...,deadbeef...",
        "mode": "envvar",
        "var_name": "PRIVATE_KEYS",
        "output_format": "json_array",
    }}}


class CleanRequest(BaseModel):
    key: str


class ValidateResponse(PipelineReport):
    """Structured pipeline report returned by the API."""

    error_count: int
    warning_count: int


class HealthResponse(BaseModel):
    status: str
    version: str
    modes: list[str]
    formats: list[str]


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_pipeline() -> KeyValidationPipeline:
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialised")
    return _pipeline


def _run(pipeline: KeyValidationPipeline, request: ValidateRequest) -> PipelineReport:
    options = FormatOptions(
        var_name=request.out_var_name or request.var_name or pipeline.default_var_name,
        template=request.template,
        joiner=request.joiner,
    )
    return pipeline.run(
        request.raw_text,
        mode=request.mode,
        var_name=request.var_name,
        output_format=request.output_format,
        format_options=options,
        approve_corrections=request.approve_corrections,
    )


def _build_response(report: PipelineReport) -> ValidateResponse:
    """Attach finding counts to the internal report."""
    return ValidateResponse(
        **report.model_dump(exclude={"summary"}),
        error_count=sum(1 for f in report.findings if f.severity == Severity.ERROR),
        warning_count=sum(1 for f in report.findings if f.severity == Severity.WARNING),
    )


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/validate",
    summary="Validate and reformat keys from raw text",
    tags=["Validation"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def validate_keys(request: ValidateRequest) -> ValidateResponse:
    """Run the full pipeline on raw text.

    Returns a structured report with:
    - **is_valid**: `true` if no key is unfixable and input was found
    - **results**: per-key outcome (valid / fixable / unfixable) with reasons
    - **formatted**: the converted output
    - **round_trip**: re-validation of the formatted output
    """
    pipeline = _get_pipeline()
    return _build_response(_run(pipeline, request))


@app.post(
    "/validate/file",
    summary="Validate and reformat keys from an uploaded text file",
    tags=["Validation"],
    responses={
        413: {"description": "File too large (max 1 MB)"},
        400: {"description": "File is not valid UTF-8 text"},
        422: {"description": "File is empty"},
        503: {"description": "Pipeline not yet initialised"},
    },
)
async def validate_keys_file(
    file: UploadFile,
    mode: ExtractionMode = ExtractionMode.SMART,
    var_name: Optional[str] = None,
    output_format: OutputFormat = OutputFormat.ENV_LINE,
    approve_corrections: bool = True,
) -> ValidateResponse:
    """Upload a text file (.env, .txt, .json, anything) up to 1 MB."""
    if file.size and file.size > 1_048_576:
        raise HTTPException(status_code=413, detail="File too large (max 1 MB)")

    content = await file.read()
    try:
        raw_text = content.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File must be UTF-8 encoded text")

    if not raw_text.strip():
        raise HTTPException(status_code=422, detail="File is empty")

    pipeline = _get_pipeline()
    request = ValidateRequest(
        raw_text=raw_text,
        mode=mode,
        var_name=var_name,
        output_format=output_format,
        approve_corrections=approve_corrections,
    )
    report = await asyncio.to_thread(_run, pipeline, request)
    return _build_response(report)


@app.post("/clean", summary="Clean a single candidate key", tags=["Validation"])
def clean_single_key(request: CleanRequest) -> ValidationResult:
    return clean_key(request.key)


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and supported selectors."""
    _get_pipeline()
    return HealthResponse(
        status="healthy",
        version=__version__,
        modes=[m.value for m in ExtractionMode],
        formats=[f.value for f in OutputFormat],
    )
