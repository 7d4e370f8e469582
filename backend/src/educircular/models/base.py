"""Base SQLAlchemy declarative base for all models"""

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base


def utcnow() -> datetime:
    """Timezone-aware current time used for created_at/updated_at defaults.

    Set from Python rather than the server so that rows created within the
    same second still order correctly on SQLite.
    """
    return datetime.now(timezone.utc)


Base = declarative_base()
