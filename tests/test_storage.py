"""
File I/O tests: source reading, dotenv rewriting with backup, output files.

Everything happens under pytest's tmp_path.
"""

from __future__ import annotations

import pytest

from key_validator.exceptions import (
    EmptyInputError,
    PersistenceError,
    SourceNotFoundError,
)
from key_validator.storage import read_source, write_env_var, write_output


class TestReadSource:
    def test_reads_text(self, tmp_path):
        path = tmp_path / "keys.txt"
        path.write_text("0xabc\n", encoding="utf-8")
        assert read_source(path) == "0xabc\n"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceNotFoundError, match="File not found") as exc:
            read_source(tmp_path / "nope.txt")
        assert exc.value.code == "SOURCE_NOT_FOUND"

    def test_blank_file(self, tmp_path):
        path = tmp_path / "blank.txt"
        path.write_text(" \n\t", encoding="utf-8")
        with pytest.raises(EmptyInputError) as exc:
            read_source(path)
        assert exc.value.code == "EMPTY_INPUT"

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "keys.bin"
        path.write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(PersistenceError):
            read_source(path)


class TestWriteEnvVar:
    def test_creates_missing_file_without_backup(self, tmp_path):
        path = tmp_path / ".env"
        assert write_env_var(path, "PRIVATE_KEYS", "0xa,0xb") is None
        assert path.read_text(encoding="utf-8") == "PRIVATE_KEYS=0xa,0xb\n"

    def test_replaces_existing_line_and_backs_up(self, tmp_path):
        path = tmp_path / ".env"
        original = "RPC=1\nPRIVATE_KEYS=old\nCHAIN_ID=5\n"
        path.write_text(original, encoding="utf-8")

        backup = write_env_var(path, "PRIVATE_KEYS", "0xnew")

        assert path.read_text(encoding="utf-8") == "RPC=1\nPRIVATE_KEYS=0xnew\nCHAIN_ID=5\n"
        assert backup is not None
        assert backup.name.startswith(".env.bak.")
        assert backup.read_text(encoding="utf-8") == original

    def test_appends_when_variable_absent(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("RPC=1", encoding="utf-8")
        write_env_var(path, "PRIVATE_KEYS", "0xa", backup=False)
        assert path.read_text(encoding="utf-8") == "RPC=1\nPRIVATE_KEYS=0xa\n"

    def test_no_backup_when_disabled(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("PRIVATE_KEYS=old\n", encoding="utf-8")
        assert write_env_var(path, "PRIVATE_KEYS", "0xa", backup=False) is None
        assert list(tmp_path.glob(".env.bak.*")) == []

    def test_unwritable_location(self, tmp_path):
        with pytest.raises(PersistenceError) as exc:
            write_env_var(tmp_path / "missing" / ".env", "PRIVATE_KEYS", "0xa")
        assert exc.value.code == "PERSISTENCE_FAILED"


class TestWriteOutput:
    def test_writes_verbatim(self, tmp_path):
        path = write_output(tmp_path / "keys.out.txt", "a,\nb")
        assert path.read_text(encoding="utf-8") == "a,\nb"

    def test_directory_target_fails(self, tmp_path):
        with pytest.raises(PersistenceError, match="Failed to write output file"):
            write_output(tmp_path, "a")
