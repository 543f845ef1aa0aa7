from collections.abc import Sequence
from zoneinfo import ZoneInfo

from heliclockter import datetime_utc

from duellog.logic.ledger.engine import append_match
from duellog.models.db.account import UserAccountType
from duellog.models.db.session import (
    DEFAULT_POINTS_START,
    MatchCreateBody,
    MatchResult,
    PointsFormula,
    Session,
    TurnOrder,
)
from duellog.models.db.user import UserPublic
from duellog.utils.id_types import SessionId, UserId

DUMMY_MOCK_TIME = datetime_utc(2026, 1, 11, 4, 32, 11, tzinfo=ZoneInfo("UTC"))

DUMMY_USER = UserPublic(
    id=UserId(1),
    email="duelist@example.org",
    name="Duelist",
    created=DUMMY_MOCK_TIME,
    account_type=UserAccountType.REGULAR,
)


def build_dummy_session(
    results: Sequence[MatchResult] = (),
    *,
    formula: PointsFormula = PointsFormula.RATED,
    points_start: float | None = None,
    session_id: int = 1,
    turns: Sequence[TurnOrder] | None = None,
) -> Session:
    session = Session(
        id=SessionId(session_id),
        user_id=DUMMY_USER.id,
        name=f"Dummy session {session_id}",
        points_formula=formula,
        points_start=DEFAULT_POINTS_START[formula] if points_start is None else points_start,
        created=DUMMY_MOCK_TIME,
        updated=DUMMY_MOCK_TIME,
    )
    for index, result in enumerate(results):
        session = append_match(
            session,
            MatchCreateBody(
                deck="Snake-Eye",
                opponent_deck=f"Opponent {index + 1}",
                result=result,
                turn=turns[index] if turns is not None else TurnOrder.FIRST,
            ),
            now=DUMMY_MOCK_TIME,
        ).session
    return session
