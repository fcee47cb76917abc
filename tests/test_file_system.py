"""Data directory browsing, deletion and retention tests."""
from datetime import date

import pytest

from dashboard.core.config import settings
from dashboard.core.errors import Forbidden, NotFound, ValidationFailed
from dashboard.services import file_system


@pytest.fixture()
def data_root(tmp_path, monkeypatch):
    root = tmp_path / "data"
    (root / "2025-06-01").mkdir(parents=True)
    (root / "2025-06-01" / "report.json").write_text("{}")
    (root / "2025-06-14").mkdir()
    (root / "2025-06-14" / "report.json").write_text("{}")
    (root / "cache").mkdir()
    (root / "cache" / "config.json").write_text("{}")
    (root / "notes.txt").write_text("hello")
    (root / "script.sh").write_text("echo hi")
    (root / ".env").write_text("SECRET=1")
    monkeypatch.setattr(settings, "DATA_DIR", str(root))
    return root


class TestListDirectory:
    def test_root(self, data_root):
        listing = file_system.list_directory()
        names = [item.name for item in listing.items]
        assert names == ["2025-06-01", "2025-06-14", "cache", ".env", "notes.txt", "script.sh"]
        assert listing.path == "/"
        assert listing.total_directories == 3
        assert listing.total_files == 3
        notes = next(item for item in listing.items if item.name == "notes.txt")
        assert notes.size == 5
        assert notes.path == "notes.txt"

    def test_subdirectory(self, data_root):
        listing = file_system.list_directory("2025-06-01")
        assert [item.path for item in listing.items] == ["2025-06-01/report.json"]

    @pytest.mark.parametrize("path", ["../", "../../etc", "cache/../../outside"])
    def test_traversal_refused(self, data_root, path):
        with pytest.raises(Forbidden):
            file_system.list_directory(path)

    def test_missing(self, data_root):
        with pytest.raises(NotFound):
            file_system.list_directory("nope")

    def test_not_a_directory(self, data_root):
        with pytest.raises(ValidationFailed):
            file_system.list_directory("notes.txt")


class TestDeleteItem:
    def test_delete_allowed_file(self, data_root):
        result = file_system.delete_item("notes.txt")
        assert result.type == "file"
        assert not (data_root / "notes.txt").exists()

    def test_delete_directory(self, data_root):
        result = file_system.delete_item("2025-06-01")
        assert result.type == "directory"
        assert not (data_root / "2025-06-01").exists()

    def test_protected_file(self, data_root):
        with pytest.raises(Forbidden):
            file_system.delete_item(".env")
        assert (data_root / ".env").exists()

    def test_directory_with_protected_file(self, data_root):
        with pytest.raises(Forbidden):
            file_system.delete_item("cache")
        assert (data_root / "cache").exists()

    def test_disallowed_extension(self, data_root):
        with pytest.raises(Forbidden):
            file_system.delete_item("script.sh")

    def test_root_refused(self, data_root):
        with pytest.raises(Forbidden):
            file_system.delete_item("/")

    def test_missing(self, data_root):
        with pytest.raises(NotFound):
            file_system.delete_item("ghost.txt")


class TestCleanUp:
    def test_removes_old_dated_directories(self, data_root):
        deleted = file_system.clean_up_dated_directories(7, today=date(2025, 6, 15))
        assert deleted == ["2025-06-01"]
        assert (data_root / "2025-06-14").exists()
        assert (data_root / "cache").exists()

    def test_missing_data_directory(self, tmp_path):
        assert file_system.clean_up_dated_directories(7, root=tmp_path / "missing") == []


class TestFileRoutes:
    def test_listing(self, client, auth_headers, data_root):
        r = client.get("/api/internal/files", params={"path": "2025-06-14"}, headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["total_files"] == 1

    def test_traversal(self, client, auth_headers, data_root):
        r = client.get("/api/internal/files", params={"path": "../"}, headers=auth_headers)
        assert r.status_code == 403

    def test_info(self, client, auth_headers, data_root):
        r = client.get("/api/internal/files/info", headers=auth_headers)
        body = r.json()
        assert body["exists"] is True
        assert ".env" in body["protected_files"]

    def test_delete(self, client, auth_headers, data_root):
        r = client.delete("/api/internal/files", params={"path": "notes.txt"}, headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["message"] == "Successfully deleted file"

    def test_requires_api_key(self, client, data_root):
        r = client.get("/api/internal/files")
        assert r.status_code == 401
