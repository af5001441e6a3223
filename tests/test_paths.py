# Tests for bmsync.utils.paths
# Name sanitizing, relative paths, atomic writes and tree walking

import os
from pathlib import Path

import pytest

from bmsync.utils.paths import atomic_write, ensure_dir, relative_posix, sanitize_name, walk_files


class TestSanitizeName:
    """Tests for sanitize_name."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Customers", "customers"),
            ("Nightly Sync", "nightly-sync"),
            ("q3_revenue", "q3-revenue"),
            ("  --Hello,  World!--  ", "hello-world"),
            ("a__b--c", "a-b-c"),
            ("Ärger", "rger"),
        ],
    )
    def test_examples(self, raw, expected):
        assert sanitize_name(raw) == expected

    def test_empty_becomes_unnamed(self):
        assert sanitize_name("") == "unnamed"
        assert sanitize_name("!!!") == "unnamed"

    def test_idempotent(self):
        once = sanitize_name("Some Report (2024)")
        assert sanitize_name(once) == once


class TestRelativePosix:
    """Tests for relative_posix."""

    def test_nested_path(self, temp_dir):
        path = temp_dir / "src" / "objects" / "a" / "definition.json"
        assert relative_posix(temp_dir, path) == "src/objects/a/definition.json"


class TestAtomicWrite:
    """Tests for atomic_write."""

    def test_writes_bytes_verbatim(self, temp_dir):
        target = temp_dir / "nested" / "file.txt"
        atomic_write(target, b"a\r\nb\n")
        assert target.read_bytes() == b"a\r\nb\n"

    def test_encodes_strings_without_translation(self, temp_dir):
        target = temp_dir / "file.txt"
        atomic_write(target, "ü\n")
        assert target.read_bytes() == "ü\n".encode("utf-8")

    def test_replaces_existing(self, temp_dir):
        target = temp_dir / "file.txt"
        target.write_text("old", encoding="utf-8")
        atomic_write(target, "new")
        assert target.read_text(encoding="utf-8") == "new"

    def test_no_temp_files_left(self, temp_dir):
        atomic_write(temp_dir / "file.txt", "x")
        assert [p.name for p in temp_dir.iterdir()] == ["file.txt"]


class TestEnsureDir:
    """Tests for ensure_dir."""

    def test_creates_parents(self, temp_dir):
        target = temp_dir / "a" / "b" / "c"
        assert ensure_dir(target) == target
        assert target.is_dir()

    def test_existing_ok(self, temp_dir):
        ensure_dir(temp_dir)
        assert temp_dir.is_dir()


class TestWalkFiles:
    """Tests for walk_files."""

    def test_recursive(self, temp_dir):
        (temp_dir / "a" / "b").mkdir(parents=True)
        (temp_dir / "top.txt").write_text("1", encoding="utf-8")
        (temp_dir / "a" / "b" / "deep.txt").write_text("2", encoding="utf-8")

        names = sorted(p.name for p in walk_files(temp_dir))
        assert names == ["deep.txt", "top.txt"]

    def test_skips_dot_entries(self, temp_dir):
        (temp_dir / ".hidden").mkdir()
        (temp_dir / ".hidden" / "inside.txt").write_text("x", encoding="utf-8")
        (temp_dir / ".DS_Store").write_text("x", encoding="utf-8")
        (temp_dir / "visible.txt").write_text("x", encoding="utf-8")

        assert [p.name for p in walk_files(temp_dir)] == ["visible.txt"]

    def test_missing_directory_reports_error(self, temp_dir):
        errors: list[Path] = []
        result = list(walk_files(temp_dir / "missing", on_error=lambda p, e: errors.append(p)))
        assert result == []
        assert errors == [temp_dir / "missing"]

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="permissions not enforced")
    def test_unreadable_directory_skipped(self, temp_dir):
        locked = temp_dir / "locked"
        locked.mkdir()
        (locked / "secret.txt").write_text("x", encoding="utf-8")
        (temp_dir / "ok.txt").write_text("x", encoding="utf-8")
        locked.chmod(0)
        try:
            errors: list[Path] = []
            names = [p.name for p in walk_files(temp_dir, on_error=lambda p, e: errors.append(p))]
        finally:
            locked.chmod(0o755)

        assert names == ["ok.txt"]
        assert errors == [locked]
