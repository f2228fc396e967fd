# uniarchive/client/admin_console.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..core.catalog import SEMESTER_NAMES, TYPE_DISPLAY_NAMES
from ..models import AdminStats, FileRecord, ref_name
from .api import ArchiveClient
from .errors import ApiError

logger = logging.getLogger(__name__)

MAX_UPLOAD_MB = 50
MAX_UPLOAD_BYTES = MAX_UPLOAD_MB * 1024 * 1024
PDF_MIME_TYPE = "application/pdf"

TABS = ("upload", "manage", "stats")

WRONG_PASSWORD = "Mot de passe incorrect"
MISSING_FIELDS = "Veuillez remplir tous les champs"
MISSING_FILE = "Veuillez sélectionner un fichier PDF"
NOT_A_PDF = "Seuls les fichiers PDF sont autorisés"
EMPTY_FILE = "Le fichier est vide"
FILE_TOO_LARGE = f"Le fichier dépasse la taille maximale de {MAX_UPLOAD_MB} Mo"
UPLOAD_OK = "Fichier uploadé avec succès!"
UPLOAD_FAILED = "Erreur lors de l'upload: "
UPDATE_OK = "Fichier mis à jour avec succès"
UPDATE_FAILED = "Erreur lors de la mise à jour: "
DELETE_OK = "Fichier supprimé avec succès"
DELETE_FAILED = "Erreur lors de la suppression: "
LOAD_FILES_FAILED = "Erreur lors du chargement des fichiers"
LOAD_STATS_FAILED = "Erreur lors du chargement des statistiques"


class NotAuthenticated(PermissionError):
    """An admin action was attempted before login."""


@dataclass
class PdfFile:
    name: str
    content: bytes
    content_type: str = PDF_MIME_TYPE

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class UploadForm:
    semester: str = "S1"
    doc_type: str = "cours"
    subject: str = ""
    year: str = ""
    pdf: Optional[PdfFile] = None

    def validate(self) -> Optional[str]:
        """First failing rule's message, or None when the form can be sent."""
        if not self.subject.strip() or not self.year.strip():
            return MISSING_FIELDS
        if self.pdf is None:
            return MISSING_FILE
        if (self.pdf.content_type or "").lower() != PDF_MIME_TYPE:
            return NOT_A_PDF
        if self.pdf.size == 0:
            return EMPTY_FILE
        if self.pdf.size > MAX_UPLOAD_BYTES:
            return FILE_TOO_LARGE
        return None

    def reset(self) -> None:
        self.semester = "S1"
        self.doc_type = "cours"
        self.subject = ""
        self.year = ""
        self.pdf = None


class AdminConsole:
    """
    Password-gated admin panel: upload, manage and stats tabs.

    The password check is a plain client-side comparison against the
    configured constant (ARCHIVE_ADMIN_PASSWORD, default admin123).
    """

    semester_choices = SEMESTER_NAMES
    type_choices = tuple(TYPE_DISPLAY_NAMES)

    def __init__(self, client: ArchiveClient, password: Optional[str] = None):
        self.client = client
        self._password = password if password is not None else client.config.admin_password
        self.authenticated = False
        self.auth_error = ""
        self._clear()

    def _clear(self) -> None:
        self.tab = "upload"
        self.form = UploadForm()
        self.message = ""
        self.uploading = False

        self.files: List[FileRecord] = []
        self.files_error: Optional[str] = None
        self.search = ""
        self.semester_filter = ""
        self.type_filter = ""
        self.pending_delete: Optional[str] = None
        self.manage_message = ""

        self.stats: Optional[AdminStats] = None
        self.stats_error: Optional[str] = None

    def _require_auth(self) -> None:
        if not self.authenticated:
            raise NotAuthenticated("Authentification requise")

    # ---- session ----------------------------------------------------------------

    def login(self, password: str) -> bool:
        if password == self._password:
            self.authenticated = True
            self.auth_error = ""
            logger.info("Admin session opened")
            return True
        self.authenticated = False
        self.auth_error = WRONG_PASSWORD
        logger.warning("Admin login refused")
        return False

    def logout(self) -> None:
        self.authenticated = False
        self.auth_error = ""
        self._clear()

    def select_tab(self, tab: str) -> None:
        self._require_auth()
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab}")
        self.tab = tab

    # ---- upload -----------------------------------------------------------------

    @property
    def message_is_success(self) -> bool:
        return "succès" in self.message

    def submit_upload(self) -> bool:
        """Validate then POST the form; resets it on success."""
        self._require_auth()
        problem = self.form.validate()
        if problem:
            self.message = problem
            return False

        self.uploading = True
        self.message = ""
        form = self.form
        try:
            self.client.upload(
                semester=form.semester,
                doc_type=form.doc_type,
                subject=form.subject.strip(),
                year=form.year.strip(),
                filename=form.pdf.name,
                content=form.pdf.content,
                content_type=form.pdf.content_type,
            )
        except ApiError as e:
            self.message = UPLOAD_FAILED + e.message
            return False
        finally:
            self.uploading = False

        self.message = UPLOAD_OK
        self.form.reset()
        return True

    # ---- manage -----------------------------------------------------------------

    def load_files(self) -> None:
        self._require_auth()
        try:
            self.files = self.client.admin_files()
            self.files_error = None
        except ApiError as e:
            self.files = []
            self.files_error = e.message or LOAD_FILES_FAILED

    def visible_files(self) -> List[FileRecord]:
        """Files matching the search text and the semester/type filters."""
        needle = self.search.strip().lower()
        out = []
        for f in self.files:
            if needle and needle not in (f.original_name or "").lower() \
                    and needle not in ref_name(f.subject).lower():
                continue
            if self.semester_filter and ref_name(f.semester) != self.semester_filter:
                continue
            if self.type_filter and ref_name(f.doc_type) != self.type_filter:
                continue
            out.append(f)
        return out

    def edit_file(
        self,
        file_id: str,
        original_name: Optional[str] = None,
        semester: Optional[str] = None,
        doc_type: Optional[str] = None,
        subject: Optional[str] = None,
        year: Optional[str] = None,
    ) -> bool:
        self._require_auth()
        try:
            self.client.update_file(
                file_id,
                original_name=original_name,
                semester=semester,
                doc_type=doc_type,
                subject=subject,
                year=year,
            )
        except ApiError as e:
            self.manage_message = UPDATE_FAILED + e.message
            return False
        self.manage_message = UPDATE_OK
        self.load_files()
        return True

    def request_delete(self, file_id: str) -> None:
        self._require_auth()
        self.pending_delete = file_id

    def cancel_delete(self) -> None:
        self.pending_delete = None

    def confirm_delete(self) -> bool:
        """DELETE the pending file, then reload the list from the server."""
        self._require_auth()
        file_id = self.pending_delete
        if file_id is None:
            return False
        self.pending_delete = None
        try:
            self.client.delete_file(file_id)
        except ApiError as e:
            self.manage_message = DELETE_FAILED + e.message
            return False
        self.manage_message = DELETE_OK
        self.load_files()
        return True

    # ---- stats ------------------------------------------------------------------

    def load_stats(self) -> None:
        self._require_auth()
        try:
            self.stats = self.client.admin_stats()
            self.stats_error = None
        except ApiError as e:
            self.stats = None
            self.stats_error = e.message or LOAD_STATS_FAILED
