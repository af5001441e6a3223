# Tests for bmsync.sync.changes
# Classifying the project tree against the hash cache

import os

import pytest

from bmsync.sync.cache import HashCache
from bmsync.sync.changes import ChangeReport, classify_changes, scan_tracked_files
from bmsync.utils.hashing import content_hash


def _write(root, rel, text):
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("utf-8"))
    return path


class TestScanTrackedFiles:
    """Tests for scan_tracked_files."""

    def test_only_tracked_folders(self, project):
        _write(project, "src/objects/a/definition.json", "{}")
        _write(project, "src/backend/job.js", "x")
        _write(project, "src/other/file.txt", "x")
        _write(project, "notes.txt", "x")

        found = {(cat, p.name) for cat, p in scan_tracked_files(project)}
        assert found == {("objects", "definition.json"), ("backend", "job.js")}

    def test_missing_src_yields_nothing(self, temp_dir):
        assert list(scan_tracked_files(temp_dir)) == []


class TestClassifyChanges:
    """Tests for classify_changes."""

    def test_empty_project(self, project):
        report = classify_changes(project, {})
        assert not report.has_changes
        assert report.changed == {} and report.new == {} and report.deleted == {}

    def test_new_files(self, project):
        _write(project, "src/reports/r.sql", "SELECT 1;")
        _write(project, "src/pages/p.html", "<p/>")

        report = classify_changes(project, {})
        assert report.new == {"reports": ["src/reports/r.sql"], "pages": ["src/pages/p.html"]}
        assert report.total.new == 2
        assert "objects" not in report.new

    def test_changed_file(self, project):
        _write(project, "src/backend/job.js", "v2")
        report = classify_changes(project, {"src/backend/job.js": content_hash("v1")})
        assert report.changed == {"backend": ["src/backend/job.js"]}
        assert report.total.changed == 1

    def test_unchanged_file_not_reported(self, project):
        _write(project, "src/backend/job.js", "v1")
        report = classify_changes(project, {"src/backend/job.js": content_hash("v1")})
        assert not report.has_changes

    def test_deleted_file(self, project):
        report = classify_changes(project, {"src/pages/gone.html": content_hash("x")})
        assert report.deleted == {"pages": ["src/pages/gone.html"]}
        assert report.total.deleted == 1

    def test_deleted_outside_categories_ignored(self, project):
        report = classify_changes(project, {"README.md": "abc", "src/misc/a.txt": "def"})
        assert report.deleted == {}

    def test_deleted_attribution_uses_first_matching_segment(self, project):
        report = classify_changes(project, {"src/objects/reports/definition.json": "abc"})
        assert report.deleted == {"objects": ["src/objects/reports/definition.json"]}

    def test_nested_object_files_in_objects_category(self, project):
        _write(project, "src/objects/a/fields/f.json", "{}")
        _write(project, "src/objects/a/actions/x.meta.json", "{}")
        report = classify_changes(project, {})
        assert sorted(report.new["objects"]) == [
            "src/objects/a/actions/x.meta.json",
            "src/objects/a/fields/f.json",
        ]

    def test_dot_files_ignored(self, project):
        _write(project, "src/pages/.draft.html", "x")
        report = classify_changes(project, {})
        assert not report.has_changes

    def test_same_content_at_two_paths_both_new(self, project):
        _write(project, "src/pages/a.html", "same")
        _write(project, "src/pages/b.html", "same")
        report = classify_changes(project, {})
        assert report.total.new == 2

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="permissions not enforced")
    def test_unreadable_file_skipped_not_deleted(self, project):
        path = _write(project, "src/reports/r.sql", "SELECT 1;")
        path.chmod(0)
        try:
            report = classify_changes(project, {"src/reports/r.sql": content_hash("old")})
        finally:
            path.chmod(0o644)
        assert not report.has_changes

    def test_changed_and_new_order(self, project):
        _write(project, "src/pages/p.html", "new")
        _write(project, "src/backend/job.js", "v2")
        report = classify_changes(project, {"src/backend/job.js": content_hash("v1")})
        assert report.changed_and_new() == ["src/backend/job.js", "src/pages/p.html"]

    def test_to_dict(self, project):
        _write(project, "src/pages/p.html", "x")
        data = classify_changes(project, {}).to_dict()
        assert data["new"] == {"pages": ["src/pages/p.html"]}
        assert data["total"] == {"changed": 0, "new": 1, "deleted": 0}


class TestCacheGetChanges:
    """Tests for HashCache.get_changes."""

    def test_no_false_positives_after_update(self, project):
        path = _write(project, "src/pages/p.html", "<p>hi</p>")
        cache = HashCache()
        cache.update_hash(project, path, path.read_bytes())
        assert not cache.get_changes(project).has_changes

    def test_report_type(self, project):
        assert isinstance(HashCache().get_changes(project), ChangeReport)
