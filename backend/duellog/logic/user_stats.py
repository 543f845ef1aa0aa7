from duellog.logic.ledger.statistics import compute_user_stats
from duellog.models.db.user import UserStats
from duellog.sql.sessions import get_sessions_for_user
from duellog.sql.users import sql_update_user_stats
from duellog.utils.id_types import UserId
from duellog.utils.logging import logger


async def refresh_user_stats(user_id: UserId) -> UserStats:
    """
    Recompute the aggregate stats of a user from all of their sessions and store them.

    Callers invoke this after every session write that can change the aggregate.
    """
    sessions = await get_sessions_for_user(user_id)
    stats = compute_user_stats(sessions)
    await sql_update_user_stats(user_id, stats)
    logger.debug(
        f"Refreshed stats of user {user_id}: {stats.total_matches} matches, "
        f"{stats.current_points} points"
    )
    return stats
