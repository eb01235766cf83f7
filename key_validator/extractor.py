"""
Deterministic regex-based extraction of key candidates from raw text.

This module only FINDS candidates; it never judges them. Whatever it returns
goes straight to the normalizer, which decides what is valid, fixable or junk.

Every strategy is a single pure pass over the text: order of appearance is
preserved and nothing is carried between calls.
"""

from __future__ import annotations

import logging
import re

from .models import DEFAULT_VAR_NAME, ExtractionMode, ExtractionResult

logger = logging.getLogger(__name__)


# ─── Patterns ───────────────────────────────────────────────────────

# Optional 0x/0X prefix followed by exactly 64 hex characters
SMART_KEY_PATTERN = re.compile(r"(?:0[xX])?[0-9a-fA-F]{64}")

SPLIT_PATTERNS: dict[ExtractionMode, re.Pattern[str]] = {
    ExtractionMode.COMMA: re.compile(r"[,\n]"),
    ExtractionMode.NEWLINE: re.compile(r"\n+"),
    ExtractionMode.SPACE: re.compile(r"\s+"),
    ExtractionMode.SEMICOLON: re.compile(r"[;\n]"),
}


# ─── Public API ─────────────────────────────────────────────────────


def extract(
    text: str,
    mode: ExtractionMode | str = ExtractionMode.SMART,
    var_name: str = DEFAULT_VAR_NAME,
) -> ExtractionResult:
    """Pull key candidates out of raw text.

    Args:
        text: Decoded input text (file contents, pasted text, ...).
        mode: Extraction strategy.
        var_name: Variable to look for in envvar mode.

    Returns:
        ExtractionResult. An empty candidate list is a normal outcome;
        callers check `is_empty` rather than catching anything.
    """
    mode = ExtractionMode(mode)

    if mode is ExtractionMode.SMART:
        candidates = extract_smart(text)
    elif mode is ExtractionMode.ENVVAR:
        return _extract_env_var(text, var_name or DEFAULT_VAR_NAME)
    else:
        candidates = split_by(text, mode)

    logger.info("Extracted %d candidate(s) using %s mode", len(candidates), mode.value)
    return ExtractionResult(mode=mode, candidates=candidates)


def extract_smart(text: str) -> list[str]:
    """Scan for every 0x-prefixed or bare 64-hex run, left to right.

    Matches never overlap; a prefix is kept on the candidate when present.
    """
    return [match.group(0) for match in SMART_KEY_PATTERN.finditer(text)]


def split_by(text: str, mode: ExtractionMode | str) -> list[str]:
    """Split on the separator class for `mode`, trimming and dropping empties.

    Modes without a separator (smart, envvar) split like comma.
    """
    separator = SPLIT_PATTERNS.get(ExtractionMode(mode), SPLIT_PATTERNS[ExtractionMode.COMMA])
    pieces = (piece.strip() for piece in separator.split(text))
    return [piece for piece in pieces if piece]


def find_env_value(text: str, var_name: str) -> str | None:
    """Return the value of the first `NAME=value` line, or None.

    The name is matched literally. Whitespace around `=` never crosses a line
    break, so `NAME=` followed by a newline yields an empty value instead of
    swallowing the next line.
    """
    pattern = rf"^\s*{re.escape(var_name)}[^\S\n]*=[^\S\n]*(.*)$"
    match = re.search(pattern, text, re.MULTILINE)
    return match.group(1) if match else None


# ─── Internal Helpers ───────────────────────────────────────────────


def _extract_env_var(text: str, var_name: str) -> ExtractionResult:
    value = find_env_value(text, var_name)
    if value is not None:
        candidates = split_by(value, ExtractionMode.COMMA)
        logger.info("Extracted %d candidate(s) from %s", len(candidates), var_name)
        return ExtractionResult(mode=ExtractionMode.ENVVAR, candidates=candidates)

    notice = f"Variable {var_name} not found; falling back to smart-detect."
    logger.warning(notice)
    candidates = extract_smart(text)
    return ExtractionResult(
        mode=ExtractionMode.ENVVAR,
        candidates=candidates,
        fell_back=True,
        notice=notice,
    )
