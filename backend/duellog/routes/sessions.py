from fastapi import APIRouter, Depends, Query
from starlette import status

from duellog.config import config
from duellog.logic.ledger.statistics import with_stats
from duellog.logic.session_decks import add_session_deck, remove_session_deck
from duellog.logic.user_stats import refresh_user_stats
from duellog.models.db.session import SessionCreateBody, SessionDeckBody, SessionUpdateBody
from duellog.models.db.user import UserPublic
from duellog.routes.auth import user_authenticated
from duellog.routes.models import SessionResponse, SessionsResponse, SuccessResponse
from duellog.sql.sessions import (
    get_session_or_raise,
    get_sessions_for_user,
    sql_create_session,
    sql_delete_session,
    sql_save_session_decks,
    sql_update_session,
)
from duellog.utils.id_types import SessionId

router = APIRouter(prefix=config.api_prefix)


@router.get("/sessions", response_model=SessionsResponse)
async def get_sessions(
    active: bool | None = Query(default=True),
    user_public: UserPublic = Depends(user_authenticated),
) -> SessionsResponse:
    sessions = await get_sessions_for_user(user_public.id, active=active)
    return SessionsResponse(data=[with_stats(session) for session in sessions])


@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    session_body: SessionCreateBody,
    user_public: UserPublic = Depends(user_authenticated),
) -> SessionResponse:
    session = await sql_create_session(user_public.id, session_body)
    await refresh_user_stats(user_public.id)
    return SessionResponse(data=with_stats(session))


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: SessionId,
    user_public: UserPublic = Depends(user_authenticated),
) -> SessionResponse:
    session = await get_session_or_raise(session_id, user_public.id)
    return SessionResponse(data=with_stats(session))


@router.put("/sessions/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: SessionId,
    session_body: SessionUpdateBody,
    user_public: UserPublic = Depends(user_authenticated),
) -> SessionResponse:
    session = await sql_update_session(session_id, user_public.id, session_body)
    if "is_active" in session_body.model_fields_set:
        await refresh_user_stats(user_public.id)
    return SessionResponse(data=with_stats(session))


@router.delete("/sessions/{session_id}", response_model=SuccessResponse)
async def delete_session(
    session_id: SessionId,
    user_public: UserPublic = Depends(user_authenticated),
) -> SuccessResponse:
    await sql_delete_session(session_id, user_public.id)
    await refresh_user_stats(user_public.id)
    return SuccessResponse()


@router.post("/sessions/{session_id}/decks", response_model=SessionResponse)
async def add_deck(
    session_id: SessionId,
    deck_body: SessionDeckBody,
    user_public: UserPublic = Depends(user_authenticated),
) -> SessionResponse:
    session = await get_session_or_raise(session_id, user_public.id)
    saved = await sql_save_session_decks(add_session_deck(session, deck_body.deck_name))
    return SessionResponse(data=with_stats(saved))


@router.delete("/sessions/{session_id}/decks/{deck_name}", response_model=SessionResponse)
async def remove_deck(
    session_id: SessionId,
    deck_name: str,
    user_public: UserPublic = Depends(user_authenticated),
) -> SessionResponse:
    session = await get_session_or_raise(session_id, user_public.id)
    saved = await sql_save_session_decks(remove_session_deck(session, deck_name))
    return SessionResponse(data=with_stats(saved))
