"""
Storage adapter contract, run against both backends.
"""
import pytest

from uniarchive.adapters import build_storage_adapter
from uniarchive.core.catalog import DEFAULT_SEMESTERS
from uniarchive.core.seed import seed_semesters

from conftest import make_settings


@pytest.fixture(params=["sqlite", "json"])
def storage(request, tmp_path):
    adapter = build_storage_adapter(make_settings(tmp_path, storage_backend=request.param))
    seed_semesters(adapter)
    return adapter


def _file(chain, name="a.pdf", size=10):
    return {
        "originalName": name,
        "fileName": f"123-{name}",
        "filePath": f"/tmp/{name}",
        "fileSize": size,
        "mimeType": "application/pdf",
        "storageProvider": "local",
        **chain,
    }


@pytest.fixture
def chain(storage):
    s1 = storage.get_semester_by_name("S1")
    t = storage.get_or_create_type(s1["_id"], "cours", "Cours")
    sub = storage.get_or_create_subject(s1["_id"], t["_id"], "Analyse")
    y = storage.get_or_create_year(s1["_id"], t["_id"], sub["_id"], "2024")
    return {"semester": s1["_id"], "type": t["_id"], "subject": sub["_id"], "year": y["_id"]}


class TestSemesters:
    def test_seeded_in_order(self, storage):
        semesters = storage.list_semesters()
        assert [s["name"] for s in semesters] == ["S1", "S2", "S3", "S4", "S5"]
        assert semesters[0]["displayName"] == "Semestre 1"
        assert all(isinstance(s["_id"], str) for s in semesters)

    def test_seed_is_idempotent(self, storage):
        assert seed_semesters(storage) == 0
        assert storage.create_semesters(DEFAULT_SEMESTERS) == 0
        assert len(storage.list_semesters()) == 5

    def test_lookup(self, storage):
        s3 = storage.get_semester_by_name("S3")
        assert storage.get_semester(s3["_id"])["name"] == "S3"
        assert storage.get_semester_by_name("S9") is None
        assert storage.get_semester("missing") is None


class TestHierarchy:
    def test_get_or_create_reuses(self, storage):
        s1 = storage.get_semester_by_name("S1")
        first = storage.get_or_create_type(s1["_id"], "td", "Travaux Dirigés")
        again = storage.get_or_create_type(s1["_id"], "td", "Travaux Dirigés")
        assert first["_id"] == again["_id"]
        assert len(storage.list_types(s1["_id"])) == 1

    def test_same_name_under_other_parent_is_distinct(self, storage):
        s1 = storage.get_semester_by_name("S1")
        s2 = storage.get_semester_by_name("S2")
        a = storage.get_or_create_type(s1["_id"], "cours", "Cours")
        b = storage.get_or_create_type(s2["_id"], "cours", "Cours")
        assert a["_id"] != b["_id"]
        assert b["semester"] == s2["_id"]

    def test_types_follow_catalog_order(self, storage):
        s1 = storage.get_semester_by_name("S1")
        for name, label in [("ratrapages", "Rattrapages"), ("tp", "Travaux Pratiques"), ("cours", "Cours")]:
            storage.get_or_create_type(s1["_id"], name, label)
        assert [t["name"] for t in storage.list_types(s1["_id"])] == ["cours", "tp", "ratrapages"]

    def test_subjects_sorted_by_name(self, storage, chain):
        for name in ["Physique", "algèbre"]:
            storage.get_or_create_subject(chain["semester"], chain["type"], name)
        names = [s["name"] for s in storage.list_subjects(chain["semester"], chain["type"])]
        assert names == ["algèbre", "Analyse", "Physique"]

    def test_years_newest_first(self, storage, chain):
        for label in ["2022", "2023-2024"]:
            storage.get_or_create_year(chain["semester"], chain["type"], chain["subject"], label)
        years = storage.list_years(chain["semester"], chain["type"], chain["subject"])
        assert [y["year"] for y in years] == ["2024", "2023-2024", "2022"]
        assert years[0]["subject"] == chain["subject"]


class TestFiles:
    def test_create_and_get(self, storage, chain):
        created = storage.create_file(_file(chain))
        assert created["_id"]
        assert created["uploadedAt"] and created["updatedAt"]
        fetched = storage.get_file(created["_id"])
        assert fetched["originalName"] == "a.pdf"
        assert fetched["year"] == chain["year"]
        assert fetched["fileSize"] == 10

    def test_list_by_year_newest_first(self, storage, chain):
        a = storage.create_file(_file(chain, "a.pdf"))
        b = storage.create_file(_file(chain, "b.pdf"))
        assert [f["_id"] for f in storage.list_files(chain["year"])] == [b["_id"], a["_id"]]
        assert storage.list_files("other-year") == []
        assert len(storage.list_files()) == 2

    def test_update(self, storage, chain):
        created = storage.create_file(_file(chain))
        updated = storage.update_file(created["_id"], {"originalName": "renamed.pdf"})
        assert updated["originalName"] == "renamed.pdf"
        assert updated["updatedAt"] >= created["updatedAt"]
        assert updated["uploadedAt"] == created["uploadedAt"]
        assert storage.update_file("missing", {"originalName": "x"}) is None

    def test_delete(self, storage, chain):
        created = storage.create_file(_file(chain))
        assert storage.delete_file(created["_id"]) is True
        assert storage.get_file(created["_id"]) is None
        assert storage.delete_file(created["_id"]) is False

    def test_counts(self, storage, chain):
        storage.create_file(_file(chain))
        assert storage.counts() == {
            "semesters": 5,
            "types": 1,
            "subjects": 1,
            "years": 1,
            "files": 1,
        }
