"""
Storage adapter interface for the archive.
Defines the contract that all storage backends must implement.
"""

from typing import Protocol, List, Dict, Any, Optional


class StorageUnavailable(RuntimeError):
    """The backing store cannot be reached (mapped to HTTP 503)."""


class StorageAdapter(Protocol):
    """
    Protocol defining the interface for all storage adapters.

    This allows swapping between SQLite and JSON files without changing the
    router code.

    NOTE:
    - Every method returns plain dicts in wire format: camelCase keys and a
      string `_id`. References (`semester`, `type`, `subject`, `year`) are
      stored and returned as ids; routers populate them.
    - The hierarchy Semester -> Type -> Subject -> Year -> File is a strict
      tree; `get_or_create_*` never creates a node under a missing parent.
    """

    def ping(self) -> None:
        """
        Cheap connectivity check.

        Raises:
            StorageUnavailable if the backend cannot be reached.
        """
        ...

    # ========== Semesters ==========

    def list_semesters(self) -> List[Dict[str, Any]]:
        """All semesters sorted by `order`."""
        ...

    def get_semester(self, semester_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_semester_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Resolve a semester by its machine name (S1..S5)."""
        ...

    def create_semesters(self, rows: List[Dict[str, Any]]) -> int:
        """
        Insert semesters whose `name` does not exist yet.

        Args:
            rows: dicts with name, displayName, order

        Returns:
            Number of semesters actually created.
        """
        ...

    # ========== Types ==========

    def list_types(self, semester_id: str) -> List[Dict[str, Any]]:
        """Types of a semester sorted by catalog order."""
        ...

    def get_type(self, type_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_or_create_type(self, semester_id: str, name: str, display_name: str) -> Dict[str, Any]:
        """Return the (semester, name) type, creating it when missing."""
        ...

    # ========== Subjects ==========

    def list_subjects(self, semester_id: str, type_id: str) -> List[Dict[str, Any]]:
        """Subjects of (semester, type) sorted by name."""
        ...

    def get_subject(self, subject_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_or_create_subject(self, semester_id: str, type_id: str, name: str) -> Dict[str, Any]:
        ...

    # ========== Years ==========

    def list_years(self, semester_id: str, type_id: str, subject_id: str) -> List[Dict[str, Any]]:
        """Years of a subject, most recent label first."""
        ...

    def get_year(self, year_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_or_create_year(
        self,
        semester_id: str,
        type_id: str,
        subject_id: str,
        year: str,
    ) -> Dict[str, Any]:
        ...

    # ========== Files ==========

    def list_files(self, year_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Files, newest upload first.

        Args:
            year_id: restrict to one year; None lists the whole archive
        """
        ...

    def get_file(self, file_id: str) -> Optional[Dict[str, Any]]:
        ...

    def create_file(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a file record.

        Args:
            data: originalName, fileName, filePath, fileSize, mimeType,
                  storageProvider, semester, type, subject, year

        Returns:
            The stored record (with `_id`, `uploadedAt`, `updatedAt`).
        """
        ...

    def update_file(self, file_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Overwrite the provided keys and bump `updatedAt`.

        Returns:
            The updated record, or None if the file does not exist.
        """
        ...

    def delete_file(self, file_id: str) -> bool:
        """Delete a file record; False if it did not exist."""
        ...

    # ========== Stats ==========

    def counts(self) -> Dict[str, int]:
        """Row counts: semesters, types, subjects, years, files."""
        ...
