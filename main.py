#!/usr/bin/env python3
"""
PK Validator: Entry Point
========================

Validate private keys and reformat them to 0x + 64 lowercase hex.

Usage:
    python main.py --env                              # read .env, smart-detect
    python main.py --file keys.txt --mode newline     # one key per line
    cat keys.txt | python main.py --format json_array # read stdin
    python main.py --env --mode envvar --save-env     # rewrite PRIVATE_KEYS in .env
    python main.py --file dump.txt --format per_key_template \\
        --template '"{key}"' --joiner ', ' --out keys.out.txt
"""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

from key_validator.config import Settings
from key_validator.exceptions import KeyValidatorError
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
from key_validator.storage import read_source, write_env_var, write_output

# ─── ANSI Color Constants ───────────────────────────────────────────

_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 72

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_IO_ERROR = 2


# ─── Argument Parsing ───────────────────────────────────────────────


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pk-validator",
        description="Validate and reformat private keys to 0x + 64 hex.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--file", help="read keys from this file")
    source.add_argument(
        "--env",
        action="store_true",
        help=f"read keys from {settings.dotenv_path}",
    )

    parser.add_argument(
        "--mode",
        choices=[m.value for m in ExtractionMode],
        default=ExtractionMode.SMART.value,
        help="how to extract keys from the content (default: smart)",
    )
    parser.add_argument(
        "--var-name",
        default=settings.var_name,
        help="variable to read in envvar mode (default: %(default)s)",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.ENV_LINE.value,
        help="target format (default: env_line)",
    )
    parser.add_argument(
        "--out-var-name",
        help="variable name for env_line output (default: --var-name)",
    )
    parser.add_argument(
        "--template",
        default=KEY_PLACEHOLDER,
        help="per-key template, {key} is replaced by each key",
    )
    parser.add_argument(
        "--joiner",
        default=DEFAULT_JOINER,
        help="joiner between per-key template entries (default: ',\\n')",
    )
    parser.add_argument(
        "--no-fix",
        action="store_true",
        help="do not auto-correct fixable keys",
    )

    dest = parser.add_mutually_exclusive_group()
    dest.add_argument(
        "--save-env",
        action="store_true",
        help=f"write the variable into {settings.dotenv_path} (env_line only, backup made)",
    )
    dest.add_argument("--out", help="write the formatted output to this file")
    return parser


# ─── Pretty Printer Helpers ─────────────────────────────────────────


def _hr(label: str = "") -> str:
    if not label:
        return f"{_DIM}{'─' * _WIDTH}{_RESET}"
    text = f" {label} "
    start = max(0, (_WIDTH - len(text)) // 2)
    tail = max(0, _WIDTH - start - len(text))
    return f"{_DIM}{'─' * start}{_RESET}{text}{_DIM}{'─' * tail}{_RESET}"


def _short(value: str, limit: int = 48) -> str:
    return value if len(value) <= limit else value[: limit - 3] + "…"


def _print_results_table(results: list[ValidationResult]) -> None:
    """Print one row per key: index, original, status, cleaned preview, note."""
    print(f"  {'#':>3}  {'Original':<48}  {'Status':<8}  {'Cleaned':<19}  Note")
    for idx, r in enumerate(results, start=1):
        status = f"{_GREEN}valid  {_RESET}" if r.valid else f"{_RED}invalid{_RESET}"
        cleaned = (
            f"{_CYAN}{r.cleaned[:12]}…{r.cleaned[-6:]}{_RESET}"
            if r.cleaned
            else f"{_DIM}{'-':<19}{_RESET}"
        )
        print(
            f"  {_DIM}{idx:>3}{_RESET}  {_short(r.original):<48}  {status}   "
            f"{cleaned}  {_YELLOW}{r.reason}{_RESET}"
        )


def _print_summary(label: str, results: list[ValidationResult]) -> None:
    valid = sum(1 for r in results if r.valid)
    invalid = len(results) - valid
    color = _RED if invalid else _GREEN
    print(
        f"  {_BOLD}{label}{_RESET}  {_GREEN}{valid} valid{_RESET}   "
        f"{color}{invalid} invalid{_RESET}   {_DIM}Total: {len(results)}{_RESET}"
    )


def _print_findings(report: PipelineReport) -> None:
    for severity, color in (
        (Severity.ERROR, _RED),
        (Severity.WARNING, _YELLOW),
        (Severity.INFO, _CYAN),
    ):
        group = [f for f in report.findings if f.severity == severity]
        if not group:
            continue
        print(f"\n  {color}{_BOLD}{severity.value} ({len(group)}){_RESET}")
        for f in group:
            print(f"    {color}[{f.code}]{_RESET} {f.message}")


# ─── Pretty Printer ─────────────────────────────────────────────────


def print_report(report: PipelineReport) -> int:
    """Pretty-print the pipeline report with ANSI color codes.

    Returns:
        0 if every key is valid, 1 otherwise.
    """
    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  PRIVATE KEY VALIDATION REPORT{_RESET}")
    print(f"{'=' * _WIDTH}")

    if report.extraction is not None:
        print(f"  Extraction:  {report.extraction.mode.value}")
        print(f"  Candidates:  {len(report.extraction.candidates)}")

    if report.results:
        print(_hr("VALIDATION"))
        _print_summary("Summary", report.results)
        _print_results_table(report.results)

    if report.round_trip is not None:
        print(_hr("RE-VALIDATE"))
        print(f"  Format:      {report.output_format.value}")
        _print_summary("Round trip", report.round_trip.results)

    _print_findings(report)

    print(f"\n{'=' * _WIDTH}")
    if report.is_valid:
        print(f"  {_GREEN}{_BOLD}ALL KEYS VALID{_RESET}")
    else:
        errors = sum(1 for f in report.findings if f.severity == Severity.ERROR)
        print(f"  {_RED}{_BOLD}KEY SET REJECTED  --  {errors} error(s) found{_RESET}")
    print(f"{'=' * _WIDTH}\n")

    return EXIT_OK if report.is_valid else EXIT_INVALID


# ─── Save Destinations ──────────────────────────────────────────────


def save_output(report: PipelineReport, args: argparse.Namespace, settings: Settings) -> None:
    """Write the formatted output where the user asked, or print it."""
    formatted = report.formatted or ""

    if args.save_env and report.output_format is not OutputFormat.ENV_LINE:
        print(
            f"{_YELLOW}ENV write is only available when output format is an ENV line. "
            f"Use --out to write a file.{_RESET}"
        )
    elif args.save_env:
        var_name = report.format_options.var_name
        backup = write_env_var(settings.dotenv_path, var_name, ",".join(report.keys))
        if backup is not None:
            print(f"{_DIM}Backup created: {backup}{_RESET}")
        print(f"{_GREEN}{settings.dotenv_path} updated successfully.{_RESET}")
        return

    if args.out:
        path = write_output(args.out, formatted)
        print(f"{_GREEN}Wrote: {path}{_RESET}")
        return

    limit = settings.preview_limit
    print(formatted[:limit] + ("\n…(truncated)…" if len(formatted) > limit else ""))


# ─── Main ────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    """Run the pipeline from the command line and return the exit code."""
    load_dotenv()
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    args = build_parser(settings).parse_args(argv)

    try:
        if args.env:
            raw_text = read_source(settings.dotenv_path)
        elif args.file:
            raw_text = read_source(args.file)
        else:
            raw_text = sys.stdin.read()
    except KeyValidatorError as e:
        print(f"{_RED}{e}{_RESET}", file=sys.stderr)
        return EXIT_INVALID

    options = FormatOptions(
        var_name=args.out_var_name or args.var_name,
        template=args.template,
        joiner=args.joiner,
    )
    pipeline = KeyValidationPipeline(default_var_name=settings.var_name)
    report = pipeline.run(
        raw_text,
        mode=args.mode,
        var_name=args.var_name,
        output_format=args.output_format,
        format_options=options,
        approve_corrections=not args.no_fix,
    )
    exit_code = print_report(report)

    if report.formatted is None:
        return exit_code

    try:
        save_output(report, args, settings)
    except KeyValidatorError as e:
        print(f"{_RED}{e}{_RESET}", file=sys.stderr)
        return EXIT_IO_ERROR

    print(f"{_CYAN}Done. Never share private keys publicly.{_RESET}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
