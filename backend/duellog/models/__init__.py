"""Model registration module used by alembic autogeneration."""

from duellog.models.db.session import (  # noqa: F401
    Match,
    Session,
)
from duellog.models.db.user import UserPublic  # noqa: F401
