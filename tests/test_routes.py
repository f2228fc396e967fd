"""
Client routing and list-page controllers.
"""
import pytest

from uniarchive.client.pages import (
    ADMIN,
    FilesPage,
    HomePage,
    SubjectsPage,
    TypesPage,
    YearsPage,
    build_page,
    resolve_route,
)
from uniarchive.client.query import QueryStatus
from uniarchive.client.retry import RetryPolicy

from conftest import upload


class TestResolveRoute:
    @pytest.mark.parametrize(
        "path, target, params",
        [
            ("/", HomePage, {}),
            ("", HomePage, {}),
            ("/admin/", ADMIN, {}),
            ("/semester/s1/types", TypesPage, {"semester_id": "s1"}),
            ("/semester/s1/type/t1/subjects", SubjectsPage, {"semester_id": "s1", "type_id": "t1"}),
            (
                "/semester/s1/type/t1/subject/m1/years",
                YearsPage,
                {"semester_id": "s1", "type_id": "t1", "subject_id": "m1"},
            ),
            ("year/y1/files", FilesPage, {"year_id": "y1"}),
        ],
    )
    def test_known(self, path, target, params):
        assert resolve_route(path) == (target, params)

    @pytest.mark.parametrize("path", ["/semester", "/semester/s1", "/year/y1", "/unknown/page"])
    def test_unknown(self, path):
        assert resolve_route(path) is None


@pytest.fixture
def no_wait():
    return RetryPolicy(sleep=lambda seconds: None)


class TestPages:
    def test_walk_from_home_to_files(self, api, archive, no_wait):
        upload(api)
        upload(api, year="2023", filename="cours-2023.pdf")

        home = build_page(archive, HomePage, {}, no_wait).load()
        assert home.status is QueryStatus.SUCCESS
        assert [c.title for c in home.cards] == ["S1", "S2", "S3", "S4", "S5"]

        target, params = resolve_route(home.cards[0].href)
        types = build_page(archive, target, params).load()
        assert [c.title for c in types.cards] == ["Cours"]

        target, params = resolve_route(types.cards[0].href)
        subjects = build_page(archive, target, params).load()
        assert [c.title for c in subjects.cards] == ["Analyse"]

        target, params = resolve_route(subjects.cards[0].href)
        years = build_page(archive, target, params).load()
        assert isinstance(years, YearsPage)
        assert [c.title for c in years.cards] == ["Collection 2024", "Collection 2023"]
        assert years.breadcrumb == {"semester": "Semestre 1", "type": "Cours", "subject": "Analyse"}

        target, params = resolve_route(years.cards[1].href)
        files = build_page(archive, target, params).load()
        assert [c.title for c in files.cards] == ["cours-2023.pdf"]

    def test_empty_state(self, api, archive):
        s2 = next(s for s in archive.list_semesters() if s.name == "S2")
        page = TypesPage(archive, semester_id=s2.id).load()
        assert page.is_empty
        assert page.cards == []
        assert page.empty_message == "Aucun type disponible pour ce semestre"

    def test_error_state(self, archive):
        page = FilesPage(archive, year_id="missing").load()
        assert page.status is QueryStatus.ERROR
        assert page.error == "Year not found"
        assert not page.is_empty

    def test_breadcrumb_empty_without_years(self, archive):
        page = YearsPage(archive, semester_id="s", type_id="t", subject_id="m")
        assert page.breadcrumb == {}

    def test_cancelled_page_skips_fetch(self, archive):
        page = TypesPage(archive, semester_id="s1")
        page.cancel()
        assert page.load().status is QueryStatus.CANCELLED
