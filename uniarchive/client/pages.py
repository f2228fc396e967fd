# uniarchive/client/pages.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Type

from ..models import Year, ref_label
from .cards import (
    Card,
    file_cards,
    semester_cards,
    subject_cards,
    type_cards,
    year_cards,
)
from .api import ArchiveClient
from .query import QueryStatus, ResourceQuery
from .retry import HOME_RETRY, RetryPolicy

logger = logging.getLogger(__name__)


class ListPage:
    """
    Controller for one browsing page: a single GET turned into cards.

    Subclasses set the fetch call, the card builder and the French texts.
    """

    title = ""
    loading_message = "Chargement..."
    error_fallback = ""
    empty_message = ""
    retry_policy: Optional[RetryPolicy] = None

    def __init__(self, client: ArchiveClient, retry_policy: Optional[RetryPolicy] = None, **params: str):
        self.client = client
        self.params = params
        policy = retry_policy if retry_policy is not None else self.retry_policy
        self.query: ResourceQuery = ResourceQuery(self.fetch, self.error_fallback, policy)

    def fetch(self) -> List[Any]:
        raise NotImplementedError

    def build_cards(self, records: List[Any]) -> List[Card]:
        raise NotImplementedError

    def load(self) -> "ListPage":
        logger.info(f"Loading {type(self).__name__} {self.params}")
        self.query.run()
        return self

    def retry(self) -> "ListPage":
        self.query.retry()
        return self

    def cancel(self) -> None:
        self.query.cancel()

    @property
    def status(self) -> QueryStatus:
        return self.query.status

    @property
    def error(self) -> Optional[str]:
        return self.query.error_message

    @property
    def records(self) -> List[Any]:
        return self.query.data or []

    @property
    def cards(self) -> List[Card]:
        return self.build_cards(self.records)

    @property
    def is_empty(self) -> bool:
        return self.status is QueryStatus.SUCCESS and not self.records


class HomePage(ListPage):
    title = "Semestres"
    error_fallback = "Erreur lors du chargement des semestres"
    empty_message = "Aucun semestre disponible"
    retry_policy = HOME_RETRY

    def fetch(self):
        return self.client.list_semesters()

    def build_cards(self, records):
        return semester_cards(records)


class TypesPage(ListPage):
    title = "Types de documents"
    loading_message = "Chargement des types..."
    error_fallback = "Erreur lors du chargement des types"
    empty_message = "Aucun type disponible pour ce semestre"

    def fetch(self):
        return self.client.list_types(self.params["semester_id"])

    def build_cards(self, records):
        return type_cards(records, self.params["semester_id"])


class SubjectsPage(ListPage):
    title = "Matières"
    loading_message = "Chargement des matières..."
    error_fallback = "Erreur lors du chargement des matières"
    empty_message = "Aucune matière disponible pour ce type"

    def fetch(self):
        return self.client.list_subjects(self.params["semester_id"], self.params["type_id"])

    def build_cards(self, records):
        return subject_cards(records, self.params["semester_id"], self.params["type_id"])


class YearsPage(ListPage):
    title = "Années"
    error_fallback = "Erreur lors du chargement des années"
    empty_message = "Aucune année disponible pour cette matière"

    def fetch(self):
        p = self.params
        return self.client.list_years(p["semester_id"], p["type_id"], p["subject_id"])

    def build_cards(self, records):
        return year_cards(records)

    @property
    def breadcrumb(self) -> Dict[str, str]:
        """Semester / type / subject labels taken from the first year."""
        if not self.records:
            return {}
        first: Year = self.records[0]
        return {
            "semester": ref_label(first.semester),
            "type": ref_label(first.doc_type),
            "subject": getattr(first.subject, "name", "") or "",
        }


class FilesPage(ListPage):
    title = "Fichiers"
    loading_message = "Chargement des fichiers..."
    error_fallback = "Erreur lors du chargement des fichiers"
    empty_message = "Aucun fichier disponible pour cette année"

    def fetch(self):
        return self.client.list_files(self.params["year_id"])

    def build_cards(self, records):
        return file_cards(records)


ADMIN = "admin"

ROUTES: List[Tuple[re.Pattern, Any]] = [
    (re.compile(r"^/$"), HomePage),
    (re.compile(r"^/admin$"), ADMIN),
    (re.compile(r"^/semester/(?P<semester_id>[^/]+)/types$"), TypesPage),
    (re.compile(r"^/semester/(?P<semester_id>[^/]+)/type/(?P<type_id>[^/]+)/subjects$"), SubjectsPage),
    (
        re.compile(
            r"^/semester/(?P<semester_id>[^/]+)/type/(?P<type_id>[^/]+)"
            r"/subject/(?P<subject_id>[^/]+)/years$"
        ),
        YearsPage,
    ),
    (re.compile(r"^/year/(?P<year_id>[^/]+)/files$"), FilesPage),
]


def resolve_route(path: str) -> Optional[Tuple[Any, Dict[str, str]]]:
    """
    Match a client path against the route table.

    Returns:
        (page class or ADMIN, path parameters), or None for an unknown path
    """
    path = "/" + (path or "").strip("/")
    for pattern, target in ROUTES:
        m = pattern.match(path)
        if m:
            return target, m.groupdict()
    return None


def build_page(
    client: ArchiveClient,
    page_cls: Type[ListPage],
    params: Dict[str, str],
    retry_policy: Optional[RetryPolicy] = None,
) -> ListPage:
    return page_cls(client, retry_policy=retry_policy, **params)
