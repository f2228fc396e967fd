"""
Seed the default semesters (S1..S5).

Runs automatically on API startup when SEED_SEMESTERS is true; can also be
invoked by hand against the configured backend.

Usage:
    python -m uniarchive.core.seed
"""
import logging

from .catalog import DEFAULT_SEMESTERS

logger = logging.getLogger(__name__)


def seed_semesters(storage) -> int:
    """
    Create the default semesters when the semesters collection is empty.

    Returns:
        Number of semesters created (0 when some already exist).
    """
    if storage.list_semesters():
        return 0
    created = storage.create_semesters(DEFAULT_SEMESTERS)
    logger.info(f"🌱 Default semesters initialized ({created} created)")
    return created


def seed():
    """Seed the backend selected by the current settings."""
    from ..adapters import build_storage_adapter
    from ..settings import get_settings

    settings = get_settings()
    print(f"📦 Using {settings.storage_backend} backend")

    adapter = build_storage_adapter(settings)
    created = seed_semesters(adapter)
    if created:
        print(f"✅ {created} semesters created")
    else:
        print("✅ Semesters already present, nothing to do")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed()
