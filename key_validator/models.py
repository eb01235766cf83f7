"""
Pydantic models for the key pipeline, strictly typed at every seam.

Candidates are plain strings. Everything derived from them (diagnostics,
per-key results, round-trip reports) is a model, so a malformed value fails
loudly at the boundary instead of leaking into formatted output.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator


# ─── Constants ──────────────────────────────────────────────────────

EXPECTED_HEX_LENGTH = 64  # 32 bytes
DEFAULT_VAR_NAME = "PRIVATE_KEYS"
KEY_PLACEHOLDER = "{key}"
DEFAULT_JOINER = ",\n"


# ─── Severity Levels ────────────────────────────────────────────────


class Severity(str, Enum):
    """Severity of a pipeline finding."""

    ERROR = "ERROR"  # Key set must not be saved as-is
    WARNING = "WARNING"  # Needs a human look
    INFO = "INFO"  # Informational observation


# ─── Selectors ──────────────────────────────────────────────────────


class ExtractionMode(str, Enum):
    """How candidates are pulled out of raw text."""

    SMART = "smart"
    ENVVAR = "envvar"
    COMMA = "comma"
    NEWLINE = "newline"
    SPACE = "space"
    SEMICOLON = "semicolon"


class OutputFormat(str, Enum):
    """Target encoding for the normalized key set.

    Unknown selectors resolve to CSV instead of raising.
    """

    ENV_LINE = "env_line"
    JSON_ARRAY = "json_array"
    LINES = "lines"
    CSV = "csv"
    PER_KEY_TEMPLATE = "per_key_template"

    @classmethod
    def _missing_(cls, value: object) -> "OutputFormat":
        return cls.CSV


class FormatOptions(BaseModel):
    """Format-specific parameters.

    var_name is used by env_line, template and joiner by per_key_template.
    """

    var_name: str = DEFAULT_VAR_NAME
    template: str = KEY_PLACEHOLDER
    joiner: str = DEFAULT_JOINER

    @field_validator("var_name", mode="before")
    @classmethod
    def _default_var_name(cls, value: object) -> object:
        return value or DEFAULT_VAR_NAME

    @field_validator("template", mode="before")
    @classmethod
    def _default_template(cls, value: object) -> object:
        return value or KEY_PLACEHOLDER

    @field_validator("joiner", mode="before")
    @classmethod
    def _default_joiner(cls, value: object) -> object:
        # An empty joiner is legitimate; only a missing one gets the default
        return DEFAULT_JOINER if value is None else value


# ─── Diagnostics ────────────────────────────────────────────────────


class DiagnosticCode(str, Enum):
    """Machine-readable tag for each corrective edit a candidate needs."""

    REMOVED_NON_HEX = "REMOVED_NON_HEX"
    CASE_NORMALIZED = "CASE_NORMALIZED"
    NON_HEX_REMAIN = "NON_HEX_REMAIN"
    BAD_LENGTH = "BAD_LENGTH"


class Diagnostic(BaseModel):
    """One recorded problem with a candidate."""

    code: DiagnosticCode
    message: str  # Human-readable, e.g. "length 3 != 64"
    details: dict = Field(default_factory=dict)


class KeyStatus(str, Enum):
    VALID = "valid"
    FIXABLE = "fixable"
    UNFIXABLE = "unfixable"


class ValidationResult(BaseModel):
    """Outcome of cleaning a single candidate.

    `cleaned` is set whenever the candidate reduces to 64 hex characters.
    `valid` is only true when no edit was needed, or after an approved
    correction set `applied`.
    """

    original: str
    cleaned: Optional[str] = None
    valid: bool = False
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    applied: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def reason(self) -> str:
        return "; ".join(d.message for d in self.diagnostics) or "ok"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> KeyStatus:
        if self.valid:
            return KeyStatus.VALID
        if self.cleaned is not None:
            return KeyStatus.FIXABLE
        return KeyStatus.UNFIXABLE


class ValidationSummary(BaseModel):
    """Counts of the three per-key outcomes."""

    total: int = 0
    valid: int = 0
    fixable: int = 0
    unfixable: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def invalid(self) -> int:
        return self.total - self.valid


# ─── Extraction ─────────────────────────────────────────────────────


class ExtractionResult(BaseModel):
    """Ordered candidates pulled from raw text.

    `fell_back` is set when envvar mode could not find the variable and
    smart detection ran instead.
    """

    mode: ExtractionMode
    candidates: list[str] = Field(default_factory=list)
    fell_back: bool = False
    notice: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.candidates


# ─── Round Trip ─────────────────────────────────────────────────────


class RoundTripReport(BaseModel):
    """Re-validation of formatted output.

    `degraded` means the output could not be parsed back at all, which is
    not the same as it containing zero keys.
    """

    output_format: OutputFormat
    candidates: list[str] = Field(default_factory=list)
    results: list[ValidationResult] = Field(default_factory=list)
    degraded: bool = False
    degraded_reason: Optional[str] = None
    expected_count: Optional[int] = None
    matches_expected: Optional[bool] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def valid_count(self) -> int:
        return sum(1 for r in self.results if r.valid)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count_mismatch(self) -> bool:
        return self.expected_count is not None and self.expected_count != len(
            self.candidates
        )


# ─── Pipeline Findings & Report ─────────────────────────────────────


class ValidationFinding(BaseModel):
    """A single pipeline finding with severity, machine-readable code, and details."""

    severity: Severity
    code: str  # Machine-readable, e.g. "KEY_UNFIXABLE"
    stage: str  # extraction / validation / correction / round_trip
    message: str  # Human-readable explanation
    key_index: Optional[int] = None  # 0-based position of the key, if any
    details: dict = Field(default_factory=dict)


class PipelineReport(BaseModel):
    """The final output of the key pipeline."""

    is_valid: bool
    extraction: Optional[ExtractionResult] = None
    results: list[ValidationResult] = Field(default_factory=list)
    corrected_results: list[ValidationResult] = Field(default_factory=list)
    keys: list[str] = Field(default_factory=list)
    output_format: OutputFormat = OutputFormat.ENV_LINE
    format_options: FormatOptions = Field(default_factory=FormatOptions)
    formatted: Optional[str] = None
    round_trip: Optional[RoundTripReport] = None
    findings: list[ValidationFinding] = Field(default_factory=list)
    corrections_applied: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def summary(self) -> ValidationSummary:
        """Counts over the results as first validated (before corrections)."""
        return ValidationSummary(
            total=len(self.results),
            valid=sum(1 for r in self.results if r.status is KeyStatus.VALID),
            fixable=sum(1 for r in self.results if r.status is KeyStatus.FIXABLE),
            unfixable=sum(1 for r in self.results if r.status is KeyStatus.UNFIXABLE),
        )
