import json

from heliclockter import datetime_utc

from duellog.database import database
from duellog.models.db.session import Session, SessionCreateBody, SessionUpdateBody
from duellog.utils.db import fetch_all_parsed, fetch_one_parsed
from duellog.utils.errors import SessionNotFound, SessionVersionConflict
from duellog.utils.id_types import SessionId, UserId
from duellog.utils.types import assert_some, dict_without_none


async def get_session_for_user(session_id: SessionId, user_id: UserId) -> Session | None:
    return await fetch_one_parsed(
        database,
        Session,
        """
        SELECT *
        FROM sessions
        WHERE id = :session_id
          AND user_id = :user_id
        """,
        values={"session_id": session_id, "user_id": user_id},
    )


async def get_session_or_raise(session_id: SessionId, user_id: UserId) -> Session:
    session = await get_session_for_user(session_id, user_id)
    if session is None:
        raise SessionNotFound(session_id)
    return session


async def get_sessions_for_user(user_id: UserId, *, active: bool | None = None) -> list[Session]:
    active_filter = "AND is_active = :active" if active is not None else ""
    return await fetch_all_parsed(
        database,
        Session,
        f"""
        SELECT *
        FROM sessions
        WHERE user_id = :user_id
        {active_filter}
        ORDER BY created DESC
        """,
        values=dict_without_none({"user_id": user_id, "active": active}),
    )


async def sql_create_session(user_id: UserId, body: SessionCreateBody) -> Session:
    now = datetime_utc.now()
    inserted = await database.fetch_one(
        """
        INSERT INTO sessions (
            user_id, name, description, tags, decks, default_deck,
            points_formula, points_start, matches, is_active, version, created, updated
        )
        VALUES (
            :user_id, :name, :description, :tags, :decks, :default_deck,
            :points_formula, :points_start, '[]', TRUE, 0, :created, :updated
        )
        RETURNING *
        """,
        values={
            "user_id": user_id,
            "name": body.name,
            "description": body.description,
            "tags": json.dumps(body.tags),
            "decks": json.dumps(body.decks),
            "default_deck": body.default_deck,
            "points_formula": body.points_formula.value,
            "points_start": body.points_start,
            "created": now,
            "updated": now,
        },
    )
    return Session.model_validate(dict(assert_some(inserted)._mapping))


async def sql_update_session(
    session_id: SessionId, user_id: UserId, body: SessionUpdateBody
) -> Session:
    nullable_fields = {"description", "default_deck"}
    changes = {
        field: value
        for field, value in body.model_dump(exclude_unset=True).items()
        if value is not None or field in nullable_fields
    }
    for json_field in ("tags", "decks"):
        if json_field in changes:
            changes[json_field] = json.dumps(changes[json_field] or [])

    assignments = ", ".join(f"{field} = :{field}" for field in changes)
    set_clause = f"{assignments}, " if assignments != "" else ""
    updated = await fetch_one_parsed(
        database,
        Session,
        f"""
        UPDATE sessions
        SET {set_clause}version = version + 1, updated = :updated
        WHERE id = :session_id
          AND user_id = :user_id
        RETURNING *
        """,
        values={
            **changes,
            "session_id": session_id,
            "user_id": user_id,
            "updated": datetime_utc.now(),
        },
    )
    if updated is None:
        raise SessionNotFound(session_id)
    return updated


async def sql_save_session_matches(session: Session) -> Session:
    """
    Persist the match list of a session in a single statement.

    The write only applies when the stored version still equals the version the session
    was read with, so two concurrent ledger mutations cannot silently overwrite each other.
    """
    saved = await fetch_one_parsed(
        database,
        Session,
        """
        UPDATE sessions
        SET matches = :matches, version = version + 1, updated = :updated
        WHERE id = :session_id
          AND user_id = :user_id
          AND version = :version
        RETURNING *
        """,
        values={
            "matches": json.dumps([match.model_dump(mode="json") for match in session.matches]),
            "updated": datetime_utc.now(),
            "session_id": session.id,
            "user_id": session.user_id,
            "version": session.version,
        },
    )
    if saved is None:
        raise SessionVersionConflict(session.id, session.version)
    return saved


async def sql_save_session_decks(session: Session) -> Session:
    saved = await fetch_one_parsed(
        database,
        Session,
        """
        UPDATE sessions
        SET decks = :decks, version = version + 1, updated = :updated
        WHERE id = :session_id
          AND user_id = :user_id
          AND version = :version
        RETURNING *
        """,
        values={
            "decks": json.dumps(session.decks),
            "updated": datetime_utc.now(),
            "session_id": session.id,
            "user_id": session.user_id,
            "version": session.version,
        },
    )
    if saved is None:
        raise SessionVersionConflict(session.id, session.version)
    return saved


async def sql_delete_session(session_id: SessionId, user_id: UserId) -> None:
    deleted = await database.fetch_val(
        """
        DELETE FROM sessions
        WHERE id = :session_id
          AND user_id = :user_id
        RETURNING id
        """,
        values={"session_id": session_id, "user_id": user_id},
    )
    if deleted is None:
        raise SessionNotFound(session_id)
