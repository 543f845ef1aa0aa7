import math
from collections.abc import Sequence

from duellog.logic.ledger.scoring import default_points_start
from duellog.models.db.session import (
    Match,
    MatchResult,
    PointsFormula,
    Session,
    SessionStats,
    SessionWithStats,
    TurnOrder,
)
from duellog.models.db.user import UserStats


def win_rate_percentage(wins: int, total: int) -> float:
    """
    Percentage of wins rounded to one decimal, halves rounded up. 0 when nothing was played.
    """
    if total < 1:
        return 0.0
    return math.floor(wins / total * 1000 + 0.5) / 10


def _count_wins(matches: Sequence[Match]) -> int:
    return sum(1 for match in matches if match.result is MatchResult.WIN)


def _turn_win_rate(matches: Sequence[Match], turn: TurnOrder) -> float:
    matches_on_turn = [match for match in matches if match.turn is turn]
    return win_rate_percentage(_count_wins(matches_on_turn), len(matches_on_turn))


def get_session_stats(session: Session) -> SessionStats:
    matches = session.matches
    total = len(matches)
    wins = _count_wins(matches)

    return SessionStats(
        total=total,
        wins=wins,
        losses=total - wins,
        win_rate=win_rate_percentage(wins, total),
        win_rate_1st=_turn_win_rate(matches, TurnOrder.FIRST),
        win_rate_2nd=_turn_win_rate(matches, TurnOrder.SECOND),
        current_points=matches[-1].points_after if total > 0 else session.points_start,
        peak_points=max([session.points_start, *(match.points_after for match in matches)]),
    )


def with_stats(session: Session) -> SessionWithStats:
    return SessionWithStats(**session.model_dump(), stats=get_session_stats(session))


def compute_user_stats(sessions: Sequence[Session]) -> UserStats:
    """
    Aggregate the active sessions of a user.

    Sessions are processed in order of last update, so current_points is the latest
    points of the most recently updated session that has matches.
    """
    active_sessions = sorted(
        (session for session in sessions if session.is_active),
        key=lambda session: session.updated,
    )
    latest_formula = (
        active_sessions[-1].points_formula if len(active_sessions) > 0 else PointsFormula.RATED
    )
    current_points = default_points_start(latest_formula)
    peak_points = current_points
    total_matches = 0
    wins = 0

    for session in active_sessions:
        total_matches += len(session.matches)
        wins += _count_wins(session.matches)
        if len(session.matches) > 0:
            current_points = session.matches[-1].points_after
            peak_points = max([peak_points, *(match.points_after for match in session.matches)])

    return UserStats(
        total_matches=total_matches,
        wins=wins,
        losses=total_matches - wins,
        current_points=current_points,
        peak_points=peak_points,
    )
