from duellog.database import database
from duellog.models.db.user import UserStats, UserWithStats
from duellog.utils.db import fetch_one_parsed
from duellog.utils.id_types import UserId


async def get_user_by_id(user_id: UserId) -> UserWithStats | None:
    return await fetch_one_parsed(
        database,
        UserWithStats,
        """
        SELECT id, email, name, created, account_type,
               total_matches, wins, losses, current_points, peak_points
        FROM users
        WHERE id = :user_id
        """,
        values={"user_id": user_id},
    )


async def sql_update_user_stats(user_id: UserId, stats: UserStats) -> None:
    await database.execute(
        """
        UPDATE users
        SET total_matches = :total_matches,
            wins = :wins,
            losses = :losses,
            current_points = :current_points,
            peak_points = :peak_points
        WHERE id = :user_id
        """,
        values={"user_id": user_id, **stats.model_dump()},
    )
