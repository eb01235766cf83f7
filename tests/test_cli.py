"""
Command-line entry point and settings tests.

main() is called in-process with an argv list; stdin and the dotenv path are
pointed at temporary fixtures.
"""

from __future__ import annotations

import io
import json

import pytest
from pydantic import ValidationError

from key_validator.config import Settings
from main import EXIT_INVALID, EXIT_IO_ERROR, EXIT_OK, main

HEX_A = "aa11bb22" * 8
HEX_B = "deadbeef" * 8
KEY_A = "0x" + HEX_A
KEY_B = "0x" + HEX_B

ENV_TEXT = f"RPC_URL=http://localhost:8545\nPRIVATE_KEYS=0x{HEX_A.upper()},{HEX_B}\n"


@pytest.fixture
def dotenv_file(tmp_path, monkeypatch):
    path = tmp_path / ".env"
    path.write_text(ENV_TEXT, encoding="utf-8")
    monkeypatch.setenv("PKV_DOTENV_PATH", str(path))
    return path


# ═══════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════


class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env()
        assert str(settings.dotenv_path) == ".env"
        assert settings.var_name == "PRIVATE_KEYS"
        assert settings.preview_limit == 2000
        assert settings.log_level == "WARNING"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PKV_VAR_NAME", "SIGNERS")
        monkeypatch.setenv("PKV_PREVIEW_LIMIT", "50")
        monkeypatch.setenv("PKV_LOG_LEVEL", "debug")
        settings = Settings.from_env()
        assert settings.var_name == "SIGNERS"
        assert settings.preview_limit == 50
        assert settings.log_level == "DEBUG"

    def test_unknown_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("PKV_LOG_LEVEL", "chatty")
        with pytest.raises(ValidationError):
            Settings.from_env()


# ═══════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════


class TestMain:
    def test_reads_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(f"found {KEY_A} here"))
        assert main([]) == EXIT_OK
        out = capsys.readouterr().out
        assert f"PRIVATE_KEYS={KEY_A}" in out
        assert "ALL KEYS VALID" in out

    def test_empty_stdin_is_rejected(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        assert main([]) == EXIT_INVALID
        assert "NO_INPUT" in capsys.readouterr().out

    def test_file_to_json_output(self, tmp_path):
        source = tmp_path / "keys.txt"
        source.write_text(ENV_TEXT, encoding="utf-8")
        out = tmp_path / "keys.json"

        code = main([
            "--file", str(source),
            "--mode", "envvar",
            "--format", "json_array",
            "--out", str(out),
        ])

        assert code == EXIT_OK
        assert json.loads(out.read_text(encoding="utf-8")) == [KEY_A, KEY_B]

    def test_missing_file(self, tmp_path, capsys):
        assert main(["--file", str(tmp_path / "nope.txt")]) == EXIT_INVALID
        assert "File not found" in capsys.readouterr().err

    def test_save_env_rewrites_variable(self, dotenv_file):
        code = main(["--env", "--mode", "envvar", "--save-env"])

        assert code == EXIT_OK
        assert dotenv_file.read_text(encoding="utf-8") == (
            f"RPC_URL=http://localhost:8545\nPRIVATE_KEYS={KEY_A},{KEY_B}\n"
        )
        backups = list(dotenv_file.parent.glob(".env.bak.*"))
        assert len(backups) == 1
        assert backups[0].read_text(encoding="utf-8") == ENV_TEXT

    def test_save_env_needs_env_line(self, dotenv_file, capsys):
        code = main(["--env", "--mode", "envvar", "--format", "lines", "--save-env"])

        assert code == EXIT_OK
        out = capsys.readouterr().out
        assert "only available when output format is an ENV line" in out
        assert f"{KEY_A}\n{KEY_B}" in out
        assert dotenv_file.read_text(encoding="utf-8") == ENV_TEXT

    def test_no_fix_keeps_bare_uppercase_key(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(HEX_B.upper()))
        assert main(["--mode", "newline", "--format", "csv", "--no-fix"]) == EXIT_OK
        assert HEX_B.upper() in capsys.readouterr().out

    def test_unfixable_key_exit_code(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(f"{KEY_A}\n0xabc"))
        assert main(["--mode", "newline"]) == EXIT_INVALID

    def test_preview_is_truncated(self, monkeypatch, capsys):
        monkeypatch.setenv("PKV_PREVIEW_LIMIT", "10")
        monkeypatch.setattr("sys.stdin", io.StringIO(KEY_A))
        main([])
        assert "…(truncated)…" in capsys.readouterr().out

    def test_write_failure_exit_code(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(KEY_A))
        assert main(["--out", str(tmp_path)]) == EXIT_IO_ERROR
        assert "Failed to write output file" in capsys.readouterr().err
