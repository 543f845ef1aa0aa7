from fastapi import APIRouter, Depends
from starlette import status

from duellog.config import config
from duellog.logic.ledger.engine import (
    append_match,
    clear_matches,
    delete_match,
    edit_match,
    recompute_all,
)
from duellog.logic.ledger.statistics import with_stats
from duellog.logic.user_stats import refresh_user_stats
from duellog.models.db.session import MatchCreateBody, MatchUpdateBody
from duellog.models.db.user import UserPublic
from duellog.models.ledger import LedgerChange
from duellog.routes.auth import user_authenticated
from duellog.routes.models import MatchChangeResponse, MatchChangeView
from duellog.sql.sessions import get_session_or_raise, sql_save_session_matches
from duellog.utils.errors import SessionVersionConflict
from duellog.utils.id_types import MatchId, SessionId
from duellog.utils.logging import logger

router = APIRouter(prefix=config.api_prefix)


async def persist_ledger_change(change: LedgerChange, user_public: UserPublic) -> MatchChangeResponse:
    try:
        saved = await sql_save_session_matches(change.session)
    except SessionVersionConflict:
        logger.warning(
            f"Ledger write for session {change.session.id} lost a race, "
            f"version {change.session.version} is outdated"
        )
        raise

    await refresh_user_stats(user_public.id)
    return MatchChangeResponse(
        data=MatchChangeView(
            match=change.match,
            session=with_stats(saved),
            anomalies=change.anomalies,
        )
    )


@router.post(
    "/sessions/{session_id}/matches",
    response_model=MatchChangeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_match(
    session_id: SessionId,
    match_body: MatchCreateBody,
    user_public: UserPublic = Depends(user_authenticated),
) -> MatchChangeResponse:
    session = await get_session_or_raise(session_id, user_public.id)
    return await persist_ledger_change(append_match(session, match_body), user_public)


@router.put("/sessions/{session_id}/matches/{match_id}", response_model=MatchChangeResponse)
async def update_match(
    session_id: SessionId,
    match_id: MatchId,
    match_body: MatchUpdateBody,
    user_public: UserPublic = Depends(user_authenticated),
) -> MatchChangeResponse:
    session = await get_session_or_raise(session_id, user_public.id)
    return await persist_ledger_change(edit_match(session, match_id, match_body), user_public)


@router.delete("/sessions/{session_id}/matches/{match_id}", response_model=MatchChangeResponse)
async def delete_match_from_session(
    session_id: SessionId,
    match_id: MatchId,
    user_public: UserPublic = Depends(user_authenticated),
) -> MatchChangeResponse:
    session = await get_session_or_raise(session_id, user_public.id)
    return await persist_ledger_change(delete_match(session, match_id), user_public)


@router.delete("/sessions/{session_id}/matches", response_model=MatchChangeResponse)
async def clear_session_matches(
    session_id: SessionId,
    user_public: UserPublic = Depends(user_authenticated),
) -> MatchChangeResponse:
    session = await get_session_or_raise(session_id, user_public.id)
    return await persist_ledger_change(clear_matches(session), user_public)


@router.post("/sessions/{session_id}/recalculate", response_model=MatchChangeResponse)
async def recalculate_session(
    session_id: SessionId,
    user_public: UserPublic = Depends(user_authenticated),
) -> MatchChangeResponse:
    session = await get_session_or_raise(session_id, user_public.id)
    return await persist_ledger_change(recompute_all(session), user_public)
