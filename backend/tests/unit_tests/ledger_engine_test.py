import math

import pytest

from duellog.logic.ledger.engine import (
    append_match,
    clear_matches,
    delete_match,
    edit_match,
    find_ledger_inconsistencies,
    locate_match,
    recompute_all,
    recompute_from,
)
from duellog.models.db.session import (
    MatchCreateBody,
    MatchResult,
    MatchUpdateBody,
    PointsFormula,
    Session,
    TurnOrder,
)
from duellog.models.ledger import PointsAnomalyKind
from duellog.utils.dummy_records import DUMMY_MOCK_TIME, build_dummy_session
from duellog.utils.errors import MatchNotFound, MatchValidationError, NotFoundError
from duellog.utils.id_types import MatchId

WIN = MatchResult.WIN
LOSS = MatchResult.LOSS


def points_chain(session: Session) -> list[tuple[float, float]]:
    return [(match.points_before, match.points_after) for match in session.matches]


def create_body(
    result: MatchResult = WIN, custom_points_after: float | None = None
) -> MatchCreateBody:
    return MatchCreateBody(
        deck="Labrynth",
        opponent_deck="Kashtira",
        result=result,
        turn=TurnOrder.SECOND,
        custom_points_after=custom_points_after,
    )


def test_append_to_empty_session_starts_from_points_start() -> None:
    session = build_dummy_session()

    change = append_match(session, create_body(WIN), now=DUMMY_MOCK_TIME)

    assert change.match is not None
    assert change.match.points_before == 1500
    assert change.match.points_after == 1507
    assert len(change.session.matches) == 1
    assert change.session.matches[0] == change.match
    assert change.anomalies == []


def test_append_continues_from_last_match() -> None:
    session = build_dummy_session([WIN, WIN])

    win = append_match(session, create_body(WIN)).match
    loss = append_match(session, create_body(LOSS)).match

    assert win is not None and loss is not None
    assert (win.points_before, win.points_after) == (1514, 1521)
    assert (loss.points_before, loss.points_after) == (1514, 1507)


def test_append_leaves_earlier_matches_untouched() -> None:
    session = build_dummy_session([WIN, LOSS])

    change = append_match(session, create_body(WIN))

    assert change.session.matches[:2] == session.matches
    assert len(session.matches) == 2


def test_append_with_override_takes_custom_points() -> None:
    session = build_dummy_session([WIN])

    change = append_match(session, create_body(LOSS, custom_points_after=1600))
    followup = append_match(change.session, create_body(WIN))

    assert change.match is not None
    assert (change.match.points_before, change.match.points_after) == (1507, 1600)
    assert change.match.custom_points_after == 1600
    assert points_chain(followup.session)[-1] == (1600, 1607)


def test_append_under_dc_formula() -> None:
    at_fifteen = build_dummy_session(formula=PointsFormula.DC, points_start=15)
    at_ten = build_dummy_session(formula=PointsFormula.DC, points_start=10)

    assert points_chain(append_match(at_fifteen, create_body(LOSS)).session) == [(15, 14)]
    assert points_chain(append_match(at_ten, create_body(LOSS)).session) == [(10, 9.5)]


def test_append_accepts_mapping_payload() -> None:
    session = build_dummy_session()

    change = append_match(
        session,
        {"deck": " Purrely ", "opponent_deck": "Runick", "result": "Loss", "turn": "1st"},
    )

    assert change.match is not None
    assert change.match.deck == "Purrely"
    assert change.match.result is LOSS
    assert change.match.turn is TurnOrder.FIRST
    assert change.match.points_after == 1493


@pytest.mark.parametrize(
    ("payload", "invalid_field"),
    [
        ({"opponent_deck": "Runick", "result": "Win", "turn": "1st"}, "deck"),
        ({"deck": "   ", "opponent_deck": "Runick", "result": "Win", "turn": "1st"}, "deck"),
        ({"deck": "Purrely", "result": "Win", "turn": "1st"}, "opponent_deck"),
        ({"deck": "Purrely", "opponent_deck": "Runick", "result": "Draw", "turn": "1st"}, "result"),
        ({"deck": "Purrely", "opponent_deck": "Runick", "result": "Win", "turn": "3rd"}, "turn"),
    ],
)
def test_append_rejects_invalid_payload(payload: dict, invalid_field: str) -> None:
    session = build_dummy_session([WIN])

    with pytest.raises(MatchValidationError) as exc_info:
        append_match(session, payload)

    assert invalid_field in exc_info.value.fields
    assert len(session.matches) == 1


def test_locate_match_by_id_and_position() -> None:
    session = build_dummy_session([WIN, LOSS, WIN])

    assert locate_match(session, session.matches[1].id) == 1
    assert locate_match(session, 2) == 2

    with pytest.raises(MatchNotFound):
        locate_match(session, MatchId("missing"))
    with pytest.raises(MatchNotFound):
        locate_match(session, 3)
    with pytest.raises(NotFoundError):
        locate_match(session, -1)


def test_edit_override_propagates_to_later_matches() -> None:
    session = build_dummy_session([WIN, WIN, WIN])

    change = edit_match(session, session.matches[0].id, MatchUpdateBody(custom_points_after=1600))

    assert change.match is not None
    assert change.match.custom_points_after == 1600
    assert points_chain(change.session) == [(1500, 1600), (1600, 1607), (1607, 1614)]
    assert change.recomputed_from == 1


def test_edit_override_wins_over_result() -> None:
    session = build_dummy_session([WIN, WIN])

    change = edit_match(session, 1, {"result": "Loss", "custom_points_after": 1000})

    assert change.match is not None
    assert change.match.result is LOSS
    assert points_chain(change.session) == [(1500, 1507), (1507, 1000)]


def test_edit_override_keeps_later_overrides() -> None:
    session = build_dummy_session([WIN, WIN, WIN, WIN])
    session = edit_match(session, 2, MatchUpdateBody(custom_points_after=1700)).session

    change = edit_match(session, 0, MatchUpdateBody(custom_points_after=1400))

    assert points_chain(change.session) == [
        (1500, 1400),
        (1400, 1407),
        (1407, 1700),
        (1700, 1707),
    ]


def test_edit_result_recomputes_by_default() -> None:
    session = build_dummy_session([WIN, WIN, WIN])

    change = edit_match(
        session, 0, MatchUpdateBody(result=LOSS), recompute_on_result_edit=True
    )

    assert points_chain(change.session) == [(1500, 1493), (1493, 1500), (1500, 1507)]
    assert change.recomputed_from == 0
    assert find_ledger_inconsistencies(change.session) == []


def test_edit_result_without_recompute_keeps_legacy_points() -> None:
    session = build_dummy_session([WIN, WIN, WIN])

    change = edit_match(
        session, 0, MatchUpdateBody(result=LOSS), recompute_on_result_edit=False
    )

    assert change.match is not None
    assert change.match.result is LOSS
    assert points_chain(change.session) == points_chain(session)
    assert change.recomputed_from is None
    assert find_ledger_inconsistencies(change.session) == [0]


def test_edit_result_of_overridden_match_keeps_points() -> None:
    session = build_dummy_session([WIN, WIN])
    session = edit_match(session, 0, MatchUpdateBody(custom_points_after=1600)).session

    change = edit_match(session, 0, MatchUpdateBody(result=LOSS), recompute_on_result_edit=True)

    assert points_chain(change.session) == [(1500, 1600), (1600, 1607)]


def test_edit_clearing_override_restores_formula() -> None:
    session = build_dummy_session([WIN, LOSS, WIN])
    overridden = edit_match(session, 1, MatchUpdateBody(custom_points_after=1800)).session

    change = edit_match(overridden, 1, {"custom_points_after": None})

    assert change.match is not None
    assert change.match.custom_points_after is None
    assert points_chain(change.session) == points_chain(session)
    assert change.recomputed_from == 1


def test_edit_scalar_fields_does_not_touch_points() -> None:
    session = build_dummy_session([WIN, LOSS])

    change = edit_match(
        session,
        1,
        MatchUpdateBody(deck="Tenpai Dragon", opponent_deck="Floowandereeze", turn=TurnOrder.SECOND),
    )

    assert change.match is not None
    assert change.match.deck == "Tenpai Dragon"
    assert change.match.opponent_deck == "Floowandereeze"
    assert change.match.turn is TurnOrder.SECOND
    assert change.recomputed_from is None
    assert points_chain(change.session) == points_chain(session)


def test_edit_unknown_match_raises_before_mutation() -> None:
    session = build_dummy_session([WIN])

    with pytest.raises(MatchNotFound):
        edit_match(session, MatchId("unknown"), MatchUpdateBody(custom_points_after=1))


def test_edit_rejects_invalid_values() -> None:
    session = build_dummy_session([WIN])

    with pytest.raises(MatchValidationError) as exc_info:
        edit_match(session, 0, {"result": "Draw"})

    assert exc_info.value.fields == ["result"]
    assert session.matches[0].result is WIN


def test_delete_reconverges_later_matches() -> None:
    session = build_dummy_session([WIN, LOSS, WIN])
    assert points_chain(session) == [(1500, 1507), (1507, 1500), (1500, 1507)]

    change = delete_match(session, session.matches[1].id)

    assert points_chain(change.session) == [(1500, 1507), (1507, 1514)]
    assert change.recomputed_from == 1
    assert change.match is None
    assert len(session.matches) == 3


def test_delete_first_match_restarts_from_points_start() -> None:
    session = build_dummy_session([LOSS, WIN, WIN])

    change = delete_match(session, 0)

    assert points_chain(change.session) == [(1500, 1507), (1507, 1514)]


def test_delete_last_match_changes_nothing_else() -> None:
    session = build_dummy_session([WIN, LOSS, WIN])

    change = delete_match(session, 2)

    assert change.session.matches == session.matches[:2]


def test_delete_keeps_overrides_of_later_matches() -> None:
    session = build_dummy_session([WIN, LOSS, WIN, WIN])
    session = edit_match(session, 2, MatchUpdateBody(custom_points_after=1600)).session

    change = delete_match(session, 0)

    assert points_chain(change.session) == [(1500, 1493), (1493, 1600), (1600, 1607)]


def test_delete_unknown_match_raises() -> None:
    session = build_dummy_session([WIN])

    with pytest.raises(MatchNotFound):
        delete_match(session, MatchId("unknown"))


def test_clear_removes_all_matches() -> None:
    session = build_dummy_session([WIN, LOSS])

    change = clear_matches(session)

    assert change.session.matches == []
    assert change.anomalies == []
    assert len(session.matches) == 2


def test_recompute_is_idempotent() -> None:
    session = build_dummy_session([WIN, LOSS, LOSS, WIN], formula=PointsFormula.DC, points_start=15)
    session = edit_match(session, 1, MatchUpdateBody(custom_points_after=20)).session

    first = recompute_all(session).session
    second = recompute_all(first).session

    assert first == session
    assert second == first


def test_recompute_repairs_inconsistent_ledger() -> None:
    session = build_dummy_session([WIN, WIN, LOSS])
    broken_matches = [
        session.matches[0],
        session.matches[1].model_copy(update={"points_before": 42, "points_after": 49}),
        session.matches[2],
    ]
    broken = session.model_copy(update={"matches": broken_matches})
    assert find_ledger_inconsistencies(broken) == [1, 2]

    change = recompute_from(broken, 1)

    assert points_chain(change.session) == [(1500, 1507), (1507, 1514), (1514, 1507)]
    assert find_ledger_inconsistencies(change.session) == []


def test_recompute_from_explicit_prior_points() -> None:
    session = build_dummy_session([WIN, WIN])

    change = recompute_from(session, 0, prior_points=1000)

    assert points_chain(change.session) == [(1000, 1007), (1007, 1014)]


def test_recompute_from_past_the_end_changes_nothing() -> None:
    session = build_dummy_session([WIN, WIN])

    change = recompute_from(session, 5)

    assert change.recomputed_from == 2
    assert points_chain(change.session) == points_chain(session)
    assert change.anomalies == []


def test_negative_points_are_reported_not_clamped() -> None:
    session = build_dummy_session(formula=PointsFormula.DC)

    change = append_match(session, create_body(LOSS))

    assert change.match is not None
    assert change.match.points_after == -0.5
    assert [anomaly.kind for anomaly in change.anomalies] == [PointsAnomalyKind.NEGATIVE]
    assert change.anomalies[0].match_id == change.match.id


def test_non_finite_override_is_reported() -> None:
    session = build_dummy_session([WIN, WIN])

    change = edit_match(session, 0, MatchUpdateBody(custom_points_after=math.inf))

    assert [anomaly.kind for anomaly in change.anomalies] == [
        PointsAnomalyKind.NON_FINITE,
        PointsAnomalyKind.NON_FINITE,
    ]
    assert [anomaly.index for anomaly in change.anomalies] == [0, 1]
