from sqlalchemy import Column, ForeignKey, Integer, String, Table, func
from sqlalchemy.orm import declarative_base  # type: ignore[attr-defined]
from sqlalchemy.sql.sqltypes import JSON, BigInteger, Boolean, DateTime, Enum, Float, Text

Base = declarative_base()
metadata = Base.metadata
DateTimeTZ = DateTime(timezone=True)

users = Table(
    "users",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True),
    Column("email", String, nullable=False, index=True, unique=True),
    Column("name", String, nullable=False),
    Column("password_hash", String, nullable=True),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    Column(
        "account_type",
        Enum(
            "REGULAR",
            "ADMIN",
            name="account_type",
        ),
        nullable=False,
        server_default="REGULAR",
    ),
    Column("total_matches", Integer, nullable=False, server_default="0"),
    Column("wins", Integer, nullable=False, server_default="0"),
    Column("losses", Integer, nullable=False, server_default="0"),
    Column("current_points", Float, nullable=False, server_default="1500"),
    Column("peak_points", Float, nullable=False, server_default="1500"),
)

sessions = Table(
    "sessions",
    metadata,
    Column("id", BigInteger, primary_key=True, index=True, autoincrement=True),
    Column("user_id", BigInteger, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False),
    Column("name", String(100), nullable=False),
    Column("description", Text, nullable=True),
    Column("tags", JSON, nullable=False, server_default="[]"),
    Column("decks", JSON, nullable=False, server_default="[]"),
    Column("default_deck", String, nullable=True),
    Column(
        "points_formula",
        Enum(
            "rated",
            "dc",
            name="points_formula",
        ),
        nullable=False,
        server_default="rated",
    ),
    Column("points_start", Float, nullable=False, server_default="1500"),
    Column("matches", JSON, nullable=False, server_default="[]"),
    Column("is_active", Boolean, nullable=False, server_default="t", index=True),
    Column("version", Integer, nullable=False, server_default="0"),
    Column("created", DateTimeTZ, nullable=False, server_default=func.now()),
    Column("updated", DateTimeTZ, nullable=False, server_default=func.now()),
)
