#!/usr/bin/env python3
import argparse
import asyncio
import random

from duellog.database import database
from duellog.logic.ledger.engine import append_match, find_ledger_inconsistencies, recompute_all
from duellog.logic.user_stats import refresh_user_stats
from duellog.models.db.session import (
    MatchCreateBody,
    MatchResult,
    PointsFormula,
    SessionCreateBody,
    TurnOrder,
)
from duellog.sql.sessions import get_sessions_for_user, sql_create_session, sql_save_session_matches
from duellog.utils.id_types import UserId
from duellog.utils.types import assert_some

SAMPLE_DECKS = [
    "Snake-Eye",
    "Tenpai Dragon",
    "Labrynth",
    "Kashtira",
    "Branded Despia",
    "Purrely",
    "Runick",
    "Floowandereeze",
]


async def ensure_sample_user(email: str, name: str) -> UserId:
    row = await database.fetch_one(
        """
        INSERT INTO users (email, name, account_type)
        VALUES (:email, :name, 'REGULAR')
        ON CONFLICT (email)
        DO UPDATE SET name = EXCLUDED.name
        RETURNING id
        """,
        values={"email": email, "name": name},
    )
    return UserId(int(assert_some(row)._mapping["id"]))


async def seed_session(
    user_id: UserId, formula: PointsFormula, match_count: int, rng: random.Random
) -> None:
    deck = rng.choice(SAMPLE_DECKS)
    session = await sql_create_session(
        user_id,
        SessionCreateBody(
            name=f"Sample {formula.value} climb",
            points_formula=formula,
            decks=[deck],
            default_deck=deck,
        ),
    )

    for _ in range(match_count):
        change = append_match(
            session,
            MatchCreateBody(
                deck=deck,
                opponent_deck=rng.choice(SAMPLE_DECKS),
                result=rng.choice(list(MatchResult)),
                turn=rng.choice(list(TurnOrder)),
            ),
        )
        session = change.session

    saved = await sql_save_session_matches(session)
    print(
        f"Seeded session {saved.id} | formula={formula.value} | matches={len(saved.matches)} | "
        f"points={saved.matches[-1].points_after if saved.matches else saved.points_start}"
    )


async def recalculate_sessions(user_id: UserId) -> None:
    for session in await get_sessions_for_user(user_id):
        inconsistent = find_ledger_inconsistencies(session)
        if len(inconsistent) < 1:
            continue
        await sql_save_session_matches(recompute_all(session).session)
        print(f"Recalculated session {session.id}, {len(inconsistent)} matches were inconsistent")


async def async_main() -> None:
    parser = argparse.ArgumentParser(
        description="Seed sample match sessions, or repair the points ledger of existing ones."
    )
    parser.add_argument("--email", type=str, default="sample@example.org")
    parser.add_argument("--name", type=str, default="Sample Duelist")
    parser.add_argument("--matches", type=int, default=25)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument(
        "--recalculate-only",
        action="store_true",
        help="Do not create sessions, only re-derive inconsistent ledgers of the user.",
    )
    args = parser.parse_args()

    if args.matches < 0:
        raise ValueError("--matches must not be negative")

    rng = random.Random(args.seed)
    await database.connect()
    try:
        user_id = await ensure_sample_user(args.email, args.name)
        if args.recalculate_only:
            await recalculate_sessions(user_id)
        else:
            for formula in PointsFormula:
                await seed_session(user_id, formula, int(args.matches), rng)

        stats = await refresh_user_stats(user_id)
        print(
            f"User {int(user_id)} | matches={stats.total_matches} | wins={stats.wins} | "
            f"current={stats.current_points} | peak={stats.peak_points}"
        )
    finally:
        await database.disconnect()


if __name__ == "__main__":
    asyncio.run(async_main())
