"""
Tests for the session host store and the HTML report
"""

import json

import pytest

from ringbox.exceptions import FileOperationError
from ringbox.report import SessionReport
from ringbox.session import SessionStore


@pytest.fixture
def store():
    store = SessionStore()
    store.record("ftp-brute", "10.0.0.1", [{"user": "admin", "password": "admin"}])
    store.record("banner-grab", "10.0.0.1", {"banner": "220 <vsFTPd>"})
    return store


class TestSessionStore:
    def test_record_groups_by_host_and_module(self, store):
        host = store.get("10.0.0.1")
        assert set(host) == {"ftp-brute", "banner-grab"}
        assert host["ftp-brute"][0]["result"] == [{"user": "admin", "password": "admin"}]
        assert "timestamp" in host["ftp-brute"][0]

    def test_runs_accumulate(self, store):
        store.record("ftp-brute", "10.0.0.1", [{"user": "root", "password": "root"}])
        assert len(store.get("10.0.0.1")["ftp-brute"]) == 2

    def test_missing_target_goes_to_unknown(self):
        store = SessionStore()
        store.record("demo", None, {"x": 1})
        assert "unknown" in store.get()

    def test_get_unknown_host(self, store):
        assert store.get("192.168.0.1") is None

    def test_export_then_import(self, store, tmp_path):
        path = tmp_path / "hosts.json"
        store.export_file(str(path))
        assert json.loads(path.read_text(encoding="utf-8")) == store.hosts

        other = SessionStore()
        other.import_file(str(path))
        assert other.hosts == store.hosts

    def test_import_missing_file(self, tmp_path):
        with pytest.raises(FileOperationError) as exc_info:
            SessionStore().import_file(str(tmp_path / "missing.json"))
        assert exc_info.value.details["operation"] == "read"

    def test_import_invalid_json_keeps_store(self, store, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        before = dict(store.hosts)

        with pytest.raises(FileOperationError) as exc_info:
            store.import_file(str(path))

        assert exc_info.value.details["operation"] == "parse"
        assert store.hosts == before

    def test_export_to_bad_path(self, store, tmp_path):
        with pytest.raises(FileOperationError):
            store.export_file(str(tmp_path / "no" / "such" / "dir" / "hosts.json"))


class TestSessionReport:
    def test_render_contains_hosts(self, store):
        html = SessionReport(store.hosts).render()
        assert "<!DOCTYPE html>" in html
        assert "10.0.0.1" in html
        assert "ftp-brute" in html

    def test_render_escapes_content(self, store):
        html = SessionReport(store.hosts).render()
        assert "<vsFTPd>" not in html

    def test_render_empty(self):
        html = SessionReport({}).render()
        assert "<!DOCTYPE html>" in html

    def test_write(self, store, tmp_path):
        path = SessionReport(store.hosts).write(str(tmp_path / "report.html"))
        assert path.exists()
        assert "10.0.0.1" in path.read_text(encoding="utf-8")

    def test_write_failure(self, store, tmp_path):
        with pytest.raises(FileOperationError):
            SessionReport(store.hosts).write(str(tmp_path / "missing" / "report.html"))
