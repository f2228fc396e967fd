"""
HTTP surface of the archive API, exercised in-process with TestClient.
"""
import os
import pathlib
import threading

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from uniarchive.adapters import StorageUnavailable
from uniarchive.main import create_app
from uniarchive.routers.admin import STATS_KEY, admin_stats
from uniarchive.routers.files import parse_range

from conftest import PDF_BYTES, make_settings, upload

IPHONE_SAFARI = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
ANDROID_CHROME = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
DESKTOP_CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _semester_id(api, name="S1"):
    return next(s["_id"] for s in api.get("/api/semesters").json() if s["name"] == name)


@pytest.fixture
def uploaded(api):
    r = upload(api)
    assert r.status_code == 201
    return r.json()["file"]


class TestHealth:
    def test_ok(self, api):
        r = api.get("/api/health", headers={"User-Agent": IPHONE_SAFARI})
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "OK"
        assert body["database"] == "Connected"
        assert body["backend"] == "sqlite"
        assert body["isMobile"] is True
        assert body["userAgent"] == IPHONE_SAFARI

    def test_degraded_when_storage_down(self, tmp_path):
        class DownStorage:
            def ping(self):
                raise StorageUnavailable("disk gone")

            def list_semesters(self):
                raise StorageUnavailable("disk gone")

        app = create_app(make_settings(tmp_path, seed_semesters=False), storage=DownStorage())
        with TestClient(app) as client:
            r = client.get("/api/health")
            assert r.status_code == 503
            assert r.json()["status"] == "DEGRADED"
            assert r.json()["database"] == "Disconnected"

            r = client.get("/api/semesters")
            assert r.status_code == 503
            assert r.json() == {"detail": "Database not connected", "status": "Service Unavailable"}

    def test_request_id_header(self, api):
        r = api.get("/")
        assert r.status_code == 200
        assert len(r.headers["X-Request-ID"]) == 8


class TestSeeding:
    def test_five_semesters(self, api):
        names = [s["name"] for s in api.get("/api/semesters").json()]
        assert names == ["S1", "S2", "S3", "S4", "S5"]

    def test_restart_does_not_duplicate(self, settings):
        create_app(settings)
        with TestClient(create_app(settings)) as client:
            assert len(client.get("/api/semesters").json()) == 5


class TestUpload:
    def test_creates_chain(self, api, uploaded):
        assert uploaded["originalName"] == "cours1.pdf"
        assert uploaded["fileSize"] == len(PDF_BYTES)
        assert uploaded["mimeType"] == "application/pdf"
        assert uploaded["storageProvider"] == "local"
        assert uploaded["semester"]["name"] == "S1"
        assert uploaded["type"]["name"] == "cours"
        assert uploaded["type"]["displayName"] == "Cours"
        assert uploaded["subject"]["name"] == "Analyse"
        assert uploaded["year"]["year"] == "2024"
        assert uploaded["viewUrl"] == f"/api/files/{uploaded['_id']}/view"
        assert os.path.isfile(uploaded["filePath"])

    def test_response_message(self, api):
        r = upload(api)
        assert r.json()["message"] == "File uploaded successfully"

    def test_reuses_existing_nodes(self, api, uploaded):
        second = upload(api, filename="cours2.pdf").json()["file"]
        assert second["type"]["_id"] == uploaded["type"]["_id"]
        assert second["subject"]["_id"] == uploaded["subject"]["_id"]
        assert second["year"]["_id"] == uploaded["year"]["_id"]
        files = api.get(f"/api/years/{uploaded['year']['_id']}/files").json()
        assert [f["originalName"] for f in files] == ["cours2.pdf", "cours1.pdf"]

    def test_type_name_is_case_insensitive(self, api):
        r = upload(api, doc_type=" TD ")
        assert r.status_code == 201
        assert r.json()["file"]["type"]["name"] == "td"

    @pytest.mark.parametrize(
        "overrides, detail",
        [
            ({"semester": "S9"}, "Invalid semester"),
            ({"doc_type": "exam"}, "Invalid type"),
            ({"subject": "   "}, "Missing field: subject"),
            ({"year": "24"}, "Invalid year '24' (expected YYYY or YYYY-YYYY)"),
            ({"content_type": "image/png", "filename": "photo.png"}, "Only PDF files are allowed"),
            ({"content": b""}, "Uploaded file is empty"),
        ],
    )
    def test_rejects(self, api, settings, overrides, detail):
        r = upload(api, **overrides)
        assert r.status_code == 400
        assert r.json()["detail"] == detail
        assert os.listdir(settings.upload_dir) == []

    def test_missing_file(self, api):
        r = api.post("/api/upload", data={"semester": "S1", "type": "cours",
                                          "subject": "Analyse", "year": "2024"})
        assert r.status_code == 400
        assert r.json()["detail"] == "No PDF file uploaded"

    def test_too_large(self, tmp_path):
        settings = make_settings(tmp_path, max_upload_mb=1)
        with TestClient(create_app(settings)) as client:
            r = upload(client, content=b"%PDF" + b"0" * (1024 * 1024))
            assert r.status_code == 413
            assert r.json()["detail"] == "File too large (max 1MB)"
            assert os.listdir(settings.upload_dir) == []
            assert client.get("/api/admin/files").json() == []


class TestBrowse:
    def test_walk_down_the_hierarchy(self, api, uploaded):
        s1 = uploaded["semester"]["_id"]
        types = api.get(f"/api/semesters/{s1}/types").json()
        assert [t["name"] for t in types] == ["cours"]
        assert types[0]["semester"]["name"] == "S1"

        type_id = types[0]["_id"]
        subjects = api.get(f"/api/semesters/{s1}/types/{type_id}/subjects").json()
        assert [s["name"] for s in subjects] == ["Analyse"]

        subject_id = subjects[0]["_id"]
        years = api.get(f"/api/semesters/{s1}/types/{type_id}/subjects/{subject_id}/years").json()
        assert [y["year"] for y in years] == ["2024"]
        assert years[0]["semester"]["name"] == "S1"
        assert years[0]["type"]["displayName"] == "Cours"
        assert years[0]["subject"]["name"] == "Analyse"

        files = api.get(f"/api/years/{years[0]['_id']}/files").json()
        assert [f["_id"] for f in files] == [uploaded["_id"]]

    def test_types_in_catalog_order(self, api):
        for doc_type in ["compositions", "tp", "cours"]:
            upload(api, doc_type=doc_type)
        s1 = _semester_id(api)
        assert [t["name"] for t in api.get(f"/api/semesters/{s1}/types").json()] == [
            "cours", "tp", "compositions",
        ]

    def test_years_newest_first(self, api, uploaded):
        upload(api, year="2022")
        upload(api, year="2023-2024")
        s1, t, sub = (uploaded[k]["_id"] for k in ("semester", "type", "subject"))
        years = api.get(f"/api/semesters/{s1}/types/{t}/subjects/{sub}/years").json()
        assert [y["year"] for y in years] == ["2024", "2023-2024", "2022"]

    def test_empty_semester(self, api):
        s2 = _semester_id(api, "S2")
        assert api.get(f"/api/semesters/{s2}/types").json() == []

    def test_unknown_parents(self, api, uploaded):
        s1 = uploaded["semester"]["_id"]
        assert api.get("/api/semesters/nope/types").status_code == 404
        r = api.get(f"/api/semesters/{s1}/types/nope/subjects")
        assert r.status_code == 404
        assert r.json()["detail"] == "Type not found"
        assert api.get("/api/years/nope/files").json()["detail"] == "Year not found"


class TestServeFile:
    def test_view_desktop(self, api, uploaded):
        r = api.get(uploaded["viewUrl"], headers={"User-Agent": DESKTOP_CHROME})
        assert r.status_code == 200
        assert r.content == PDF_BYTES
        assert r.headers["content-type"] == "application/pdf"
        assert r.headers["content-disposition"] == 'inline; filename="cours1.pdf"'
        assert "pragma" not in r.headers

    def test_view_android(self, api, uploaded):
        r = api.get(uploaded["viewUrl"], headers={"User-Agent": ANDROID_CHROME})
        assert r.headers["content-disposition"].startswith("inline;")
        assert r.headers["cache-control"] == "no-cache, no-store, must-revalidate"
        assert r.headers["pragma"] == "no-cache"
        assert r.headers["x-content-type-options"] == "nosniff"

    def test_view_ios_safari_is_attachment(self, api, uploaded):
        r = api.get(uploaded["viewUrl"], headers={"User-Agent": IPHONE_SAFARI})
        assert r.headers["content-disposition"] == 'attachment; filename="cours1.pdf"'

    def test_download(self, api):
        record = upload(api, filename="TD 1 (v2).pdf").json()["file"]
        r = api.get(record["downloadUrl"], headers={"User-Agent": DESKTOP_CHROME})
        assert r.status_code == 200
        assert r.content == PDF_BYTES
        assert r.headers["content-disposition"] == 'attachment; filename="TD%201%20(v2).pdf"'
        assert r.headers["cache-control"] == "no-cache"
        assert "x-suggested-filename" not in r.headers

    def test_download_mobile_suggests_filename(self, api, uploaded):
        r = api.get(uploaded["downloadUrl"], headers={"User-Agent": ANDROID_CHROME})
        assert r.headers["x-suggested-filename"] == "cours1.pdf"

    def test_stream_range(self, api, uploaded):
        r = api.get(uploaded["streamUrl"], headers={"Range": "bytes=0-7"})
        assert r.status_code == 206
        assert r.content == PDF_BYTES[:8]
        assert r.headers["content-range"] == f"bytes 0-7/{len(PDF_BYTES)}"
        assert r.headers["content-length"] == "8"

    def test_stream_suffix_range(self, api, uploaded):
        r = api.get(uploaded["streamUrl"], headers={"Range": "bytes=-6"})
        assert r.status_code == 206
        assert r.content == PDF_BYTES[-6:]

    def test_stream_full(self, api, uploaded):
        r = api.get(uploaded["streamUrl"])
        assert r.status_code == 200
        assert r.content == PDF_BYTES

    def test_stream_unsatisfiable(self, api, uploaded):
        r = api.get(uploaded["streamUrl"], headers={"Range": f"bytes={len(PDF_BYTES)}-"})
        assert r.status_code == 416
        assert r.headers["content-range"] == f"bytes */{len(PDF_BYTES)}"

    def test_unknown_file(self, api):
        for kind in ("view", "download", "stream", "info"):
            r = api.get(f"/api/files/nope/{kind}")
            assert r.status_code == 404
            assert r.json()["detail"] == "File not found"

    def test_bytes_missing_on_disk(self, api, uploaded):
        os.remove(uploaded["filePath"])
        r = api.get(uploaded["viewUrl"])
        assert r.status_code == 404
        assert r.json()["detail"] == "File not found on disk"
        assert api.get(f"/api/files/{uploaded['_id']}/info").json()["exists"] is False

    def test_info(self, api, uploaded):
        info = api.get(f"/api/files/{uploaded['_id']}/info").json()
        assert info["exists"] is True
        assert info["subject"]["name"] == "Analyse"
        assert info["downloadUrl"] == uploaded["downloadUrl"]


class TestParseRange:
    @pytest.mark.parametrize(
        "header, expected",
        [
            ("bytes=0-99", (0, 99)),
            ("bytes=100-", (100, 999)),
            ("bytes=-200", (800, 999)),
            ("bytes=900-5000", (900, 999)),
            ("bytes=-5000", (0, 999)),
        ],
    )
    def test_valid(self, header, expected):
        assert parse_range(header, 1000) == expected

    @pytest.mark.parametrize("header", ["bytes=1000-", "bytes=5-2", "bytes=-0", "bytes=-", "items=0-1"])
    def test_unsatisfiable(self, header):
        with pytest.raises(HTTPException) as exc:
            parse_range(header, 1000)
        assert exc.value.status_code == 416


class TestUpdateFile:
    def test_rename(self, api, uploaded):
        r = api.put(f"/api/files/{uploaded['_id']}", json={"originalName": "  chapitre1.pdf "})
        assert r.status_code == 200
        assert r.json()["originalName"] == "chapitre1.pdf"
        assert r.json()["year"]["_id"] == uploaded["year"]["_id"]

    def test_reclassify_keeps_unchanged_levels(self, api, uploaded):
        r = api.put(f"/api/files/{uploaded['_id']}", json={"subject": "Physique", "year": "2023"})
        assert r.status_code == 200
        body = r.json()
        assert body["semester"]["name"] == "S1"
        assert body["type"]["name"] == "cours"
        assert body["subject"]["name"] == "Physique"
        assert body["year"]["year"] == "2023"
        assert body["subject"]["_id"] != uploaded["subject"]["_id"]
        assert api.get(f"/api/years/{uploaded['year']['_id']}/files").json() == []

    def test_move_to_other_semester(self, api, uploaded):
        body = api.put(f"/api/files/{uploaded['_id']}", json={"semester": "S3", "type": "td"}).json()
        assert body["semester"]["name"] == "S3"
        assert body["type"]["semester"] == body["semester"]["_id"]
        assert body["subject"]["name"] == "Analyse"

    def test_no_changes(self, api, uploaded):
        r = api.put(f"/api/files/{uploaded['_id']}", json={})
        assert r.status_code == 400
        assert r.json()["detail"] == "No changes provided"

    def test_invalid_values(self, api, uploaded):
        assert api.put(f"/api/files/{uploaded['_id']}", json={"year": "last year"}).status_code == 400
        assert api.put(f"/api/files/{uploaded['_id']}", json={"semester": "S8"}).status_code == 400
        assert api.put(f"/api/files/{uploaded['_id']}", json={"originalName": "  "}).status_code == 422

    def test_unknown_file(self, api):
        assert api.put("/api/files/nope", json={"originalName": "x.pdf"}).status_code == 404


class TestDeleteFile:
    def test_delete(self, api, uploaded):
        r = api.delete(f"/api/files/{uploaded['_id']}")
        assert r.status_code == 200
        assert r.json() == {"message": "File deleted successfully"}
        assert not os.path.exists(uploaded["filePath"])
        assert api.get(f"/api/files/{uploaded['_id']}/info").status_code == 404
        assert api.delete(f"/api/files/{uploaded['_id']}").status_code == 404

    def test_delete_with_bytes_already_gone(self, api, uploaded):
        os.remove(uploaded["filePath"])
        assert api.delete(f"/api/files/{uploaded['_id']}").status_code == 200

    def test_undeletable_bytes_are_left_orphaned(self, api, uploaded, monkeypatch):
        def refuse(self, *args, **kwargs):
            raise PermissionError("read-only volume")

        monkeypatch.setattr(pathlib.Path, "unlink", refuse)
        r = api.delete(f"/api/files/{uploaded['_id']}")
        assert r.status_code == 200
        assert r.json() == {"message": "File deleted successfully"}
        assert api.get(f"/api/files/{uploaded['_id']}/info").status_code == 404
        assert os.path.exists(uploaded["filePath"])

    def test_store_reports_failed_removal(self, app, uploaded, monkeypatch):
        def refuse(self, *args, **kwargs):
            raise PermissionError("read-only volume")

        monkeypatch.setattr(pathlib.Path, "unlink", refuse)
        assert app.state.file_store.delete(uploaded["filePath"]) is False


class TestAdmin:
    def test_all_files_newest_first(self, api):
        upload(api, filename="a.pdf")
        upload(api, semester="S2", doc_type="td", subject="Chimie", filename="b.pdf")
        files = api.get("/api/admin/files").json()
        assert [f["originalName"] for f in files] == ["b.pdf", "a.pdf"]
        assert files[0]["semester"]["name"] == "S2"

    def test_stats(self, api):
        assert api.get("/api/admin/stats").json()["totalFiles"] == 0

        upload(api, filename="a.pdf")
        upload(api, semester="S2", doc_type="td", subject="Chimie", filename="b.pdf")
        stats = api.get("/api/admin/stats").json()
        assert stats["totalFiles"] == 2
        assert stats["totalSize"] == 2 * len(PDF_BYTES)
        assert stats["totalSemesters"] == 5
        assert stats["totalTypes"] == 2
        assert stats["totalSubjects"] == 2
        assert stats["totalYears"] == 2
        assert stats["filesBySemester"] == {"S1": 1, "S2": 1}
        assert stats["filesByType"] == {"cours": 1, "td": 1}
        assert stats["lastUploadAt"] is not None

    def test_stats_refresh_after_delete(self, api, uploaded):
        assert api.get("/api/admin/stats").json()["totalFiles"] == 1
        api.delete(f"/api/files/{uploaded['_id']}")
        assert api.get("/api/admin/stats").json()["totalFiles"] == 0


class TestJsonBackend:
    def test_upload_and_browse(self, tmp_path):
        settings = make_settings(tmp_path, storage_backend="json")
        with TestClient(create_app(settings)) as client:
            assert client.get("/api/health").json()["backend"] == "json"
            record = upload(client).json()["file"]
            assert record["semester"]["name"] == "S1"
            files = client.get(f"/api/years/{record['year']['_id']}/files").json()
            assert [f["_id"] for f in files] == [record["_id"]]
            assert client.get(record["viewUrl"]).content == PDF_BYTES


class TestStatsCacheConsistency:
    def test_clear_during_computation_wins(self, app, api):
        storage = app.state.storage_adapter
        cache = app.state.stats_cache
        writers = []

        class ClearWhileReading:
            def __getattr__(self, name):
                return getattr(storage, name)

            def list_files(self, year_id=None):
                writer = threading.Thread(target=cache.clear)
                writer.start()
                writer.join(timeout=0.2)
                writers.append(writer)
                return storage.list_files(year_id)

        stats = admin_stats(ClearWhileReading(), cache)
        for writer in writers:
            writer.join(timeout=5)
        assert stats["totalFiles"] == 0
        assert STATS_KEY not in cache

    def test_cached_between_writes(self, app, api):
        first = api.get("/api/admin/stats").json()
        assert app.state.stats_cache[STATS_KEY] == first
        upload(api)
        assert STATS_KEY not in app.state.stats_cache
