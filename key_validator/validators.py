"""
Deterministic normalization and validation engine for key candidates.

These functions run PURE CODE checks. They never touch the filesystem,
never log key material, and never guess: a candidate is either already
canonical, mechanically fixable, or passed through untouched.

Canonical form: "0x" followed by exactly 64 lowercase hex characters.

Each candidate ends in exactly one of three states:
  - valid      no corrective edit was needed
  - fixable    stripping non-hex characters / lowercasing yields 64 hex
  - unfixable  nothing short of guessing would yield 64 hex
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .models import (
    EXPECTED_HEX_LENGTH,
    Diagnostic,
    DiagnosticCode,
    KeyStatus,
    ValidationResult,
    ValidationSummary,
)


# ─── Constants ───────────────────────────────────────────────────────

HEX_PATTERN = re.compile(r"^[0-9a-fA-F]+$")
NON_HEX_PATTERN = re.compile(r"[^0-9a-fA-F]")
CANONICAL_KEY_PATTERN = re.compile(r"^0x[0-9a-f]{64}$")

_PREFIXES = ("0x", "0X")
_QUOTES = ('"', "'")


# ─── Normalization ───────────────────────────────────────────────────


def normalized_candidate(raw_key: str | None) -> str:
    """Trim, drop one matching pair of surrounding quotes, trim again."""
    if not raw_key:
        return ""
    key = str(raw_key).strip()
    if len(key) >= 2 and key[0] == key[-1] and key[0] in _QUOTES:
        key = key[1:-1]
    return key.strip()


def is_canonical(key: str) -> bool:
    return bool(CANONICAL_KEY_PATTERN.match(key))


def clean_key(raw_key: str) -> ValidationResult:
    """Clean a single candidate and record every edit it needed.

    Surrounding whitespace, one pair of quotes and a missing prefix are not
    edits. Removing characters and changing case are.
    """
    key = normalized_candidate(raw_key)
    if key.startswith(_PREFIXES):
        key = key[2:]

    diagnostics: list[Diagnostic] = []

    just_hex = NON_HEX_PATTERN.sub("", key)
    if just_hex != key:
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.REMOVED_NON_HEX,
                message="removed non-hex chars",
                details={"removed_count": len(key) - len(just_hex)},
            )
        )

    lower_hex = just_hex.lower()
    if lower_hex != just_hex:
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.CASE_NORMALIZED,
                message="uppercase hex lowercased",
            )
        )

    is_hex = not lower_hex or bool(HEX_PATTERN.match(lower_hex))
    if not is_hex:
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.NON_HEX_REMAIN,
                message="non-hex characters remain",
            )
        )

    if len(lower_hex) != EXPECTED_HEX_LENGTH:
        diagnostics.append(
            Diagnostic(
                code=DiagnosticCode.BAD_LENGTH,
                message=f"length {len(lower_hex)} != {EXPECTED_HEX_LENGTH}",
                details={"length": len(lower_hex), "expected": EXPECTED_HEX_LENGTH},
            )
        )

    fixable = is_hex and len(lower_hex) == EXPECTED_HEX_LENGTH
    cleaned = "0x" + lower_hex if fixable else None

    return ValidationResult(
        original=raw_key,
        cleaned=cleaned,
        valid=cleaned is not None and not diagnostics,
        diagnostics=diagnostics,
    )


def validate_keys(candidates: Iterable[str]) -> list[ValidationResult]:
    """Clean every candidate, preserving order."""
    return [clean_key(candidate) for candidate in candidates]


def summarize(results: Iterable[ValidationResult]) -> ValidationSummary:
    summary = ValidationSummary()
    for result in results:
        summary.total += 1
        if result.status is KeyStatus.VALID:
            summary.valid += 1
        elif result.status is KeyStatus.FIXABLE:
            summary.fixable += 1
        else:
            summary.unfixable += 1
    return summary


# ─── Correction ──────────────────────────────────────────────────────


def apply_corrections(
    results: Iterable[ValidationResult], approve: bool
) -> list[ValidationResult]:
    """Return new results with fixable keys corrected when `approve` is set.

    The input results are left untouched.
    """
    corrected: list[ValidationResult] = []
    for result in results:
        if approve and not result.valid and result.cleaned is not None:
            corrected.append(
                result.model_copy(update={"applied": result.cleaned, "valid": True})
            )
        else:
            corrected.append(result.model_copy())
    return corrected


def resolve_output_key(result: ValidationResult) -> str:
    """Pick the value written out for one key.

    Unfixable keys come back as the untouched original so they stay
    visible in the output instead of silently disappearing.
    """
    if result.applied:
        return result.applied
    if result.valid and result.cleaned:
        return result.cleaned

    norm = normalized_candidate(result.original)
    if (
        norm.startswith(_PREFIXES)
        and len(norm) == 2 + EXPECTED_HEX_LENGTH
        and HEX_PATTERN.match(norm[2:])
    ):
        return "0x" + norm[2:].lower()
    return result.original


def auto_correct(results: Iterable[ValidationResult], approve: bool) -> list[str]:
    """Apply (or decline) corrections and return the per-key output values."""
    return [resolve_output_key(r) for r in apply_corrections(results, approve)]
