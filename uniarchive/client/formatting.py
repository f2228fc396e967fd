"""
Display helpers for file metadata.
"""
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: Optional[int]) -> str:
    """
    Human-readable size with base-1024 units.

    0 or missing -> "0 Bytes"; 1024 -> "1 KB"; 1572864 -> "1.5 MB".
    """
    if not size or size <= 0:
        return "0 Bytes"
    index = 0
    while index < len(SIZE_UNITS) - 1 and size >= 1024 ** (index + 1):
        index += 1
    # half-up on the exact binary value: 1152 -> "1.13 KB"
    value = Decimal(size / (1024 ** index)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    text = f"{value:f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[index]}"


def format_date(value: Union[datetime, str, None]) -> str:
    """Upload date as dd/mm/yyyy ("" when unknown)."""
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return ""
    return value.strftime("%d/%m/%Y")
