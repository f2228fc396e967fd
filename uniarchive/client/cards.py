# uniarchive/client/cards.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..models import DocumentType, FileRecord, Semester, Subject, Year, ref_id
from .formatting import format_date, format_file_size


@dataclass(frozen=True)
class Theme:
    color: str
    gradient: str = ""
    icon: str = ""
    description: str = ""


@dataclass(frozen=True)
class Card:
    """Presentation-agnostic card built from one record."""
    record_id: str
    title: str
    theme: Theme
    subtitle: str = ""
    description: str = ""
    href: Optional[str] = None
    action: str = ""
    meta: Dict[str, str] = field(default_factory=dict)


def _gradient(*stops: str) -> str:
    return f"linear-gradient(135deg, {stops[0]} 0%, {stops[1]} 40%, {stops[2]} 100%)"


SEMESTER_THEMES: List[Theme] = [
    Theme("#ff6a00", _gradient("#ff6a00", "#ee0979", "#ff006e")),
    Theme("#a100ff", _gradient("#a100ff", "#c900ff", "#7209b7")),
    Theme("#3c41c5", _gradient("#3c41c5", "#8c52ff", "#5b21b6")),
    Theme("#00c896", _gradient("#00c896", "#00e0d6", "#0891b2")),
    Theme("#facc15", _gradient("#facc15", "#fb923c", "#ea580c")),
    Theme("#667eea", _gradient("#667eea", "#764ba2", "#4f46e5")),
]

TYPE_THEMES: Dict[str, Theme] = {
    "cours": Theme("#e65f2b", icon="📚",
                   description="Accédez à tous les documents et ressources du cours"),
    "tp": Theme("#d4af14", icon="🔬", description="Travaux pratiques et laboratoires"),
    "td": Theme("#00a67d", icon="✏️", description="Travaux dirigés et exercices pratiques"),
    "devoirs": Theme("#8b00d9", icon="📝", description="Consultez et soumettez vos devoirs"),
    "compositions": Theme("#3538a8", icon="📋",
                          description="Préparez vos examens avec les annales"),
    "ratrapages": Theme("#5a6bc4", icon="🔄",
                        description="Documents pour les sessions de rattrapage"),
}
DEFAULT_TYPE_THEME = Theme("#64748b", icon="📄", description="Documents et ressources académiques")

# Shared by subject and year cards
COLLECTION_THEMES: List[Theme] = [
    Theme(c) for c in (
        "#ff6a00", "#a100ff", "#3c41c5", "#00c896", "#facc15",
        "#667eea", "#f093fb", "#4facfe", "#43e97b", "#fa709a",
    )
]

FILE_THEMES: List[Theme] = [
    Theme("#ff4757", _gradient("#ff4757", "#ff6b7a", "#ff3838")),
    Theme("#5352ed", _gradient("#5352ed", "#706fd3", "#40407a")),
    Theme("#00d2d3", _gradient("#00d2d3", "#54a0ff", "#2f3542")),
]

_ORDINALS = ("premier", "deuxième", "troisième", "quatrième", "cinquième", "sixième")

_INT32 = 0xFFFFFFFF


def _to_int32(value: int) -> int:
    value &= _INT32
    return value - 0x100000000 if value & 0x80000000 else value


def string_hash(text: str) -> int:
    """
    31-based rolling hash over UTF-16 code units.

    Matches `((h << 5) - h) + charCode` evaluated with JavaScript integer
    semantics, so themes agree with the web front end.
    """
    h = 0
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = _to_int32(h << 5) - h + unit
    return h


def pick_theme(palette: List[Theme], key: str) -> Theme:
    return palette[abs(string_hash(key)) % len(palette)]


def semester_number(display_name: str) -> Optional[int]:
    m = re.search(r"S(\d+)", display_name, re.IGNORECASE) or re.search(r"(\d+)", display_name)
    return int(m.group(1)) if m else None


def semester_theme(display_name: str) -> Theme:
    n = semester_number(display_name) or 1
    index = min(n - 1, len(SEMESTER_THEMES) - 1)
    return SEMESTER_THEMES[max(0, index)]


def semester_label(display_name: str) -> str:
    """Short `S<n>` label; ordinal words ("Premier semestre") are understood too."""
    n = semester_number(display_name)
    if n is not None:
        return f"S{n}"
    lowered = display_name.lower()
    for i, word in enumerate(_ORDINALS, start=1):
        if word in lowered:
            return f"S{i}"
    return display_name


def type_theme(name: str) -> Theme:
    return TYPE_THEMES.get((name or "").lower(), DEFAULT_TYPE_THEME)


def initials(name: str) -> str:
    return "".join(w[:1].upper() for w in name.split(" ")[:2])


# ---- Card builders -----------------------------------------------------------

def semester_card(semester: Semester) -> Card:
    display = semester.display_name or semester.name
    return Card(
        record_id=semester.id,
        title=semester_label(display),
        subtitle="Explorez les ressources",
        description=display,
        href=f"/semester/{semester.id}/types",
        theme=semester_theme(display),
    )


def type_card(doc_type: DocumentType, semester_id: str) -> Card:
    theme = type_theme(doc_type.name)
    return Card(
        record_id=doc_type.id,
        title=doc_type.display_name or doc_type.name,
        description=theme.description,
        href=f"/semester/{semester_id}/type/{doc_type.id}/subjects",
        theme=theme,
        action="Explorer",
    )


def subject_card(subject: Subject, semester_id: str, type_id: str) -> Card:
    return Card(
        record_id=subject.id,
        title=subject.name,
        subtitle=initials(subject.name),
        description=f"Découvrez tous les contenus disponibles pour {subject.name}",
        href=f"/semester/{semester_id}/type/{type_id}/subject/{subject.id}/years",
        theme=pick_theme(COLLECTION_THEMES, subject.name),
        action="Explorer le contenu",
    )


def year_card(year: Year, index: int = 0) -> Card:
    return Card(
        record_id=year.id,
        title=f"Collection {year.year}",
        subtitle="Archives Académiques",
        description=(
            f"Accédez aux documents, devoirs et ressources de l'année académique {year.year}. "
            "Parcourez les fichiers et matériels organisés."
        ),
        href=f"/year/{year.id}/files",
        theme=COLLECTION_THEMES[index % len(COLLECTION_THEMES)],
        action="Parcourir les Fichiers",
    )


def file_card(file: FileRecord) -> Card:
    name = file.original_name or "Document sans nom"
    return Card(
        record_id=file.id,
        title=name,
        subtitle=format_file_size(file.file_size),
        description=format_date(file.uploaded_at),
        theme=pick_theme(FILE_THEMES, file.original_name or "default"),
        action="Ouvrir",
        meta={
            "size": format_file_size(file.file_size),
            "uploaded": format_date(file.uploaded_at),
            "year": ref_id(file.year) or "",
        },
    )


def semester_cards(records: List[Semester]) -> List[Card]:
    return [semester_card(s) for s in records]


def type_cards(records: List[DocumentType], semester_id: str) -> List[Card]:
    return [type_card(t, semester_id) for t in records]


def subject_cards(records: List[Subject], semester_id: str, type_id: str) -> List[Card]:
    return [subject_card(s, semester_id, type_id) for s in records]


def year_cards(records: List[Year]) -> List[Card]:
    return [year_card(y, i) for i, y in enumerate(records)]


def file_cards(records: List[FileRecord]) -> List[Card]:
    return [file_card(f) for f in records]
