"""
Fixed vocabulary of the archive: the five semesters and the six document types.
"""
from typing import Dict, List, Any

DEFAULT_SEMESTERS: List[Dict[str, Any]] = [
    {"name": "S1", "displayName": "Semestre 1", "order": 1},
    {"name": "S2", "displayName": "Semestre 2", "order": 2},
    {"name": "S3", "displayName": "Semestre 3", "order": 3},
    {"name": "S4", "displayName": "Semestre 4", "order": 4},
    {"name": "S5", "displayName": "Semestre 5", "order": 5},
]

SEMESTER_NAMES = tuple(s["name"] for s in DEFAULT_SEMESTERS)

# Insertion order doubles as the display order of type cards
TYPE_DISPLAY_NAMES: Dict[str, str] = {
    "cours": "Cours",
    "tp": "Travaux Pratiques",
    "td": "Travaux Dirigés",
    "devoirs": "Devoirs",
    "compositions": "Compositions",
    "ratrapages": "Rattrapages",
}

TYPE_NAMES = tuple(TYPE_DISPLAY_NAMES)


def type_order(name: str) -> int:
    """Position of a type in the catalog (unknown names sort last)."""
    try:
        return TYPE_NAMES.index(name) + 1
    except ValueError:
        return len(TYPE_NAMES) + 1
