"""
Round-trip verification: parse formatted output back and re-validate it.

Each output format has an inverse rule. Four of them are exact; the
per-key template is free text, so its inverse is a smart-detect scan and
can miscount when a template glues two keys together or hides a key inside
a longer hex run.

A parse failure never raises. It is reported as `degraded`, which callers
can tell apart from "the output contained zero keys".
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from .extractor import extract_smart, find_env_value, split_by
from .models import ExtractionMode, FormatOptions, OutputFormat, RoundTripReport
from .validators import resolve_output_key, validate_keys

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"\n+")


@dataclass
class Reparsed:
    """Candidates recovered from formatted output."""

    candidates: list[str] = field(default_factory=list)
    degraded_reason: str | None = None  # Set when the output could not be parsed


# ─── Public API ──────────────────────────────────────────────────────


def reparse(
    formatted: str,
    output_format: OutputFormat | str,
    options: FormatOptions | None = None,
) -> Reparsed:
    """Apply the inverse rule of `output_format` to `formatted`."""
    output_format = OutputFormat(output_format)
    options = options or FormatOptions()

    if output_format is OutputFormat.ENV_LINE:
        value = find_env_value(formatted, options.var_name)
        if value is None:
            return Reparsed(
                degraded_reason=f"variable {options.var_name} not found in formatted output"
            )
        return Reparsed(split_by(value, ExtractionMode.COMMA))

    if output_format is OutputFormat.JSON_ARRAY:
        return _reparse_json(formatted)

    if output_format is OutputFormat.LINES:
        return Reparsed([line for line in _LINE_BREAKS.split(formatted) if line])

    if output_format is OutputFormat.PER_KEY_TEMPLATE:
        return Reparsed(extract_smart(formatted))

    pieces = (piece.strip() for piece in formatted.split(","))
    return Reparsed([piece for piece in pieces if piece])


def verify_round_trip(
    formatted: str,
    output_format: OutputFormat | str,
    options: FormatOptions | None = None,
    expected: Sequence[str] | None = None,
) -> RoundTripReport:
    """Re-parse and re-validate formatted output.

    Args:
        formatted: Text produced by format_keys().
        output_format: The format it was rendered with.
        options: The same options passed to format_keys().
        expected: The keys that were formatted. When given, the report
            records whether the count and the values survived.

    Returns:
        RoundTripReport. Advisory only, it never blocks saving.
    """
    output_format = OutputFormat(output_format)
    reparsed = reparse(formatted, output_format, options)
    results = validate_keys(reparsed.candidates)

    matches_expected: bool | None = None
    if expected is not None:
        recovered = [resolve_output_key(r) for r in results]
        matches_expected = recovered == list(expected)

    report = RoundTripReport(
        output_format=output_format,
        candidates=reparsed.candidates,
        results=results,
        degraded=reparsed.degraded_reason is not None,
        degraded_reason=reparsed.degraded_reason,
        expected_count=len(expected) if expected is not None else None,
        matches_expected=matches_expected,
    )

    if report.degraded:
        logger.warning("Round trip degraded for %s: %s", output_format.value, report.degraded_reason)
    elif report.count_mismatch:
        logger.warning(
            "Round trip for %s recovered %d key(s), expected %d",
            output_format.value,
            len(report.candidates),
            report.expected_count,
        )
    else:
        logger.info(
            "Round trip for %s: %d/%d valid",
            output_format.value,
            report.valid_count,
            len(results),
        )
    return report


# ─── Internal Helpers ────────────────────────────────────────────────


def _reparse_json(formatted: str) -> Reparsed:
    try:
        data = json.loads(formatted)
    except json.JSONDecodeError as e:
        return Reparsed(degraded_reason=f"malformed JSON: {e}")

    if not isinstance(data, list):
        return Reparsed(
            degraded_reason=f"expected a JSON array, got {type(data).__name__}"
        )

    # Non-string entries are re-serialized so they still show up as junk keys
    return Reparsed(
        [item if isinstance(item, str) else json.dumps(item) for item in data]
    )
