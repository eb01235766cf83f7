"""
Main key pipeline: orchestrates the full workflow.

Flow:
  ┌──────────┐
  │ Raw text │
  └────┬─────┘
       │
  ┌────▼─────┐
  │ Extract  │   ← smart / envvar / split
  └────┬─────┘
       │
  ┌────▼─────┐
  │ Validate │   ← valid / fixable / unfixable per key
  └────┬─────┘
       │
  ┌────▼─────┐
  │ Correct  │   ← only when the caller approves
  └────┬─────┘
       │
  ┌────▼─────┐
  │  Format  │   ← env line, JSON, lines, CSV, template
  └────┬─────┘
       │
  ┌────▼─────┐
  │Round trip│   ← re-parse + re-validate the output
  └────┬─────┘
       │
  ┌────▼─────┐
  │  Report  │   ← typed findings + pass/fail
  └──────────┘

Design principles:
  - Every stage is a pure function; the pipeline only wires them together.
  - Bad keys are findings, not exceptions. The pipeline never raises for data.
  - Unfixable keys flow through to the output unchanged so they stay visible.
  - The round trip is advisory: it adds findings, it never drops output.
  - No file is read or written here; that belongs to the caller.
"""

from __future__ import annotations

import logging

from .extractor import extract
from .formatter import format_keys
from .models import (
    DEFAULT_VAR_NAME,
    ExtractionMode,
    ExtractionResult,
    FormatOptions,
    KeyStatus,
    OutputFormat,
    PipelineReport,
    RoundTripReport,
    Severity,
    ValidationFinding,
    ValidationResult,
)
from .roundtrip import verify_round_trip
from .validators import apply_corrections, resolve_output_key, validate_keys

logger = logging.getLogger(__name__)


class KeyValidationPipeline:
    """Orchestrates extraction, validation, correction, formatting and round trip.

    Usage:
        pipeline = KeyValidationPipeline()
        report = pipeline.run(raw_text, mode="envvar", output_format="json_array")
        if not report.is_valid:
            # some keys could not be fixed, review before saving
            for finding in report.findings:
                print(finding)
    """

    def __init__(self, default_var_name: str = DEFAULT_VAR_NAME):
        self.default_var_name = default_var_name

    def run(
        self,
        raw_text: str,
        mode: ExtractionMode | str = ExtractionMode.SMART,
        var_name: str | None = None,
        output_format: OutputFormat | str = OutputFormat.ENV_LINE,
        format_options: FormatOptions | None = None,
        approve_corrections: bool = True,
    ) -> PipelineReport:
        """Execute the full pipeline on raw text.

        Args:
            raw_text: Decoded input text.
            mode: Extraction strategy.
            var_name: Variable to read in envvar mode.
            output_format: Target encoding.
            format_options: Format parameters. env_line defaults to the
                pipeline's variable name.
            approve_corrections: Apply corrections to fixable keys.

        Returns:
            PipelineReport with findings and pass/fail verdict.
        """
        mode = ExtractionMode(mode)
        output_format = OutputFormat(output_format)
        var_name = var_name or self.default_var_name
        if format_options is None:
            format_options = FormatOptions(var_name=self.default_var_name)

        # ── Step 0: Empty input is terminal ─────────────────────────
        if not raw_text or not raw_text.strip():
            logger.warning("No input text provided")
            return self._terminal(
                output_format,
                format_options,
                ValidationFinding(
                    severity=Severity.ERROR,
                    code="NO_INPUT",
                    stage="extraction",
                    message="No data provided.",
                ),
            )

        # ── Step 1: Extraction ──────────────────────────────────────
        logger.info("Extracting candidates (%s mode)...", mode.value)
        extraction = extract(raw_text, mode, var_name)
        findings = self._extraction_findings(extraction, var_name)

        if extraction.is_empty:
            return self._terminal(
                output_format,
                format_options,
                *findings,
                ValidationFinding(
                    severity=Severity.ERROR,
                    code="NO_CANDIDATES",
                    stage="extraction",
                    message="No candidate keys found.",
                    details={"mode": mode.value},
                ),
                extraction=extraction,
            )

        # ── Step 2: Validation ──────────────────────────────────────
        logger.info("Validating %d candidate(s)...", len(extraction.candidates))
        results = validate_keys(extraction.candidates)
        findings.extend(self._validation_findings(results))

        # ── Step 3: Correction ──────────────────────────────────────
        corrected = apply_corrections(results, approve_corrections)
        findings.extend(self._correction_findings(results, corrected))
        corrections_applied = any(r.applied for r in corrected)
        keys = [resolve_output_key(r) for r in corrected]

        # ── Step 4: Formatting ──────────────────────────────────────
        formatted = format_keys(keys, output_format, format_options)

        # ── Step 5: Round trip ──────────────────────────────────────
        logger.info("Re-validating formatted output (%s)...", output_format.value)
        round_trip = verify_round_trip(formatted, output_format, format_options, keys)
        findings.extend(self._round_trip_findings(round_trip))

        # ── Step 6: Compile final report ────────────────────────────
        has_errors = any(f.severity == Severity.ERROR for f in findings)

        return PipelineReport(
            is_valid=not has_errors,
            extraction=extraction,
            results=results,
            corrected_results=corrected,
            keys=keys,
            output_format=output_format,
            format_options=format_options,
            formatted=formatted,
            round_trip=round_trip,
            findings=findings,
            corrections_applied=corrections_applied,
        )

    # ─── Terminal Report ─────────────────────────────────────────────

    def _terminal(
        self,
        output_format: OutputFormat,
        format_options: FormatOptions,
        *findings: ValidationFinding,
        extraction: ExtractionResult | None = None,
    ) -> PipelineReport:
        return PipelineReport(
            is_valid=False,
            extraction=extraction,
            output_format=output_format,
            format_options=format_options,
            findings=list(findings),
        )

    # ─── Findings per Stage ──────────────────────────────────────────

    def _extraction_findings(
        self, extraction: ExtractionResult, var_name: str
    ) -> list[ValidationFinding]:
        findings: list[ValidationFinding] = []
        if extraction.fell_back:
            findings.append(
                ValidationFinding(
                    severity=Severity.WARNING,
                    code="ENV_VAR_NOT_FOUND",
                    stage="extraction",
                    message=extraction.notice or f"Variable {var_name} not found.",
                    details={"var_name": var_name},
                )
            )
        return findings

    def _validation_findings(
        self, results: list[ValidationResult]
    ) -> list[ValidationFinding]:
        """One finding per key that is not already canonical."""
        findings: list[ValidationFinding] = []

        for index, result in enumerate(results):
            if result.status is KeyStatus.UNFIXABLE:
                findings.append(
                    ValidationFinding(
                        severity=Severity.ERROR,
                        code="KEY_UNFIXABLE",
                        stage="validation",
                        message=(
                            f"Key #{index + 1} is not 64 hex after cleaning "
                            f"({result.reason}). It is passed through unchanged."
                        ),
                        key_index=index,
                        details={"diagnostics": [d.code.value for d in result.diagnostics]},
                    )
                )
            elif result.status is KeyStatus.FIXABLE:
                findings.append(
                    ValidationFinding(
                        severity=Severity.WARNING,
                        code="KEY_FIXABLE",
                        stage="validation",
                        message=f"Key #{index + 1} can be auto-corrected ({result.reason}).",
                        key_index=index,
                        details={"diagnostics": [d.code.value for d in result.diagnostics]},
                    )
                )

        return findings

    def _correction_findings(
        self,
        results: list[ValidationResult],
        corrected: list[ValidationResult],
    ) -> list[ValidationFinding]:
        findings: list[ValidationFinding] = []

        for index, (before, after) in enumerate(zip(results, corrected)):
            if after.applied and not before.applied:
                findings.append(
                    ValidationFinding(
                        severity=Severity.INFO,
                        code="KEY_CORRECTED",
                        stage="correction",
                        message=f"Applied correction to key #{index + 1}.",
                        key_index=index,
                    )
                )

        if findings:
            logger.info("Applied corrections to %d key(s)", len(findings))
        return findings

    def _round_trip_findings(self, report: RoundTripReport) -> list[ValidationFinding]:
        """Flag anything the formatted output lost or changed."""
        findings: list[ValidationFinding] = []
        fmt = report.output_format.value

        if report.degraded:
            findings.append(
                ValidationFinding(
                    severity=Severity.WARNING,
                    code="ROUND_TRIP_DEGRADED",
                    stage="round_trip",
                    message=f"Formatted {fmt} output could not be parsed back: {report.degraded_reason}",
                    details={"reason": report.degraded_reason},
                )
            )
            return findings

        if report.count_mismatch:
            findings.append(
                ValidationFinding(
                    severity=Severity.WARNING,
                    code="ROUND_TRIP_COUNT_MISMATCH",
                    stage="round_trip",
                    message=(
                        f"Re-parsing the {fmt} output found {len(report.candidates)} "
                        f"key(s), expected {report.expected_count}."
                    ),
                    details={
                        "found": len(report.candidates),
                        "expected": report.expected_count,
                    },
                )
            )
        elif report.matches_expected is False:
            findings.append(
                ValidationFinding(
                    severity=Severity.WARNING,
                    code="ROUND_TRIP_MISMATCH",
                    stage="round_trip",
                    message=f"Keys re-parsed from the {fmt} output differ from the formatted keys.",
                )
            )

        return findings
