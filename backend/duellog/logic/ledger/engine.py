import math
import uuid
from collections.abc import Mapping
from typing import Any, TypeVar

from heliclockter import datetime_utc
from pydantic import BaseModel, ValidationError

from duellog.config import config
from duellog.logic.ledger.scoring import compute_points_after
from duellog.models.db.session import (
    Match,
    MatchCreateBody,
    MatchUpdateBody,
    PointsFormula,
    Session,
)
from duellog.models.ledger import LedgerChange, PointsAnomaly, PointsAnomalyKind
from duellog.utils.errors import MatchNotFound, MatchValidationError
from duellog.utils.id_types import MatchId
from duellog.utils.logging import logger

BodyT = TypeVar("BodyT", bound=BaseModel)
MatchLocator = MatchId | int


def _parse_body(model: type[BodyT], payload: BodyT | Mapping[str, Any]) -> BodyT:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        fields = [".".join(str(part) for part in error["loc"]) for error in exc.errors()]
        raise MatchValidationError(
            f"Invalid match fields: {', '.join(fields)}", fields=fields
        ) from exc


def locate_match(session: Session, locator: MatchLocator) -> int:
    """
    Resolve a match id, or a zero-based position in the ledger, to a position.
    """
    if isinstance(locator, int) and not isinstance(locator, bool):
        if 0 <= locator < len(session.matches):
            return locator
        raise MatchNotFound(locator)

    for index, match in enumerate(session.matches):
        if match.id == locator:
            return index
    raise MatchNotFound(locator)


def points_before_position(session: Session, index: int) -> float:
    if index <= 0 or len(session.matches) < 1:
        return session.points_start
    return session.matches[min(index, len(session.matches)) - 1].points_after


def _recompute_matches(
    matches: list[Match], start_index: int, prior_points: float, formula: PointsFormula
) -> list[Match]:
    recomputed = matches[:start_index]
    for match in matches[start_index:]:
        if match.custom_points_after is not None:
            points_after = match.custom_points_after
        else:
            points_after = compute_points_after(prior_points, match.result, formula)

        recomputed.append(
            match.model_copy(update={"points_before": prior_points, "points_after": points_after})
        )
        prior_points = points_after

    return recomputed


def find_points_anomalies(matches: list[Match], start_index: int = 0) -> list[PointsAnomaly]:
    anomalies: list[PointsAnomaly] = []
    for index in range(max(start_index, 0), len(matches)):
        match = matches[index]
        kind: PointsAnomalyKind | None = None
        if not math.isfinite(match.points_after):
            kind = PointsAnomalyKind.NON_FINITE
        elif match.points_after < 0:
            kind = PointsAnomalyKind.NEGATIVE

        if kind is not None:
            anomalies.append(
                PointsAnomaly(
                    match_id=match.id, index=index, points_after=match.points_after, kind=kind
                )
            )
    return anomalies


def find_ledger_inconsistencies(session: Session) -> list[int]:
    """
    Return the positions whose points do not follow from their predecessor.
    """
    inconsistent: list[int] = []
    prior_points = session.points_start
    for index, match in enumerate(session.matches):
        expected_after = (
            match.custom_points_after
            if match.custom_points_after is not None
            else compute_points_after(match.points_before, match.result, session.points_formula)
        )
        if match.points_before != prior_points or match.points_after != expected_after:
            inconsistent.append(index)
        prior_points = match.points_after
    return inconsistent


def _build_change(
    session: Session,
    matches: list[Match],
    *,
    match: Match | None = None,
    recomputed_from: int | None = None,
    check_from: int | None = None,
) -> LedgerChange:
    updated_session = session.model_copy(update={"matches": matches})
    anomalies = (
        find_points_anomalies(matches, check_from) if check_from is not None else []
    )
    for anomaly in anomalies:
        logger.warning(
            f"Points of match {anomaly.match_id} in session {session.id} are "
            f"{anomaly.kind.value.lower()}: {anomaly.points_after}"
        )

    return LedgerChange(
        session=updated_session,
        match=match,
        recomputed_from=recomputed_from,
        anomalies=anomalies,
    )


def recompute_from(
    session: Session, start_index: int, prior_points: float | None = None
) -> LedgerChange:
    """
    Re-derive points_before/points_after of every match from `start_index` to the end.

    The chain is always rebuilt in full because any match may carry an override that
    breaks plain additive propagation. When `prior_points` is omitted, it is taken from
    the match preceding `start_index` (or the session's starting points).
    """
    start_index = min(max(start_index, 0), len(session.matches))
    if prior_points is None:
        prior_points = points_before_position(session, start_index)

    logger.debug(
        f"Recomputing session {session.id} from position {start_index} "
        f"({len(session.matches) - start_index} matches)"
    )
    matches = _recompute_matches(
        session.matches, start_index, prior_points, session.points_formula
    )
    return _build_change(
        session, matches, recomputed_from=start_index, check_from=start_index
    )


def recompute_all(session: Session) -> LedgerChange:
    return recompute_from(session, 0, session.points_start)


def append_match(
    session: Session,
    body: MatchCreateBody | Mapping[str, Any],
    *,
    now: datetime_utc | None = None,
) -> LedgerChange:
    match_body = _parse_body(MatchCreateBody, body)
    points_before = points_before_position(session, len(session.matches))

    if match_body.custom_points_after is not None:
        points_after = match_body.custom_points_after
    else:
        points_after = compute_points_after(
            points_before, match_body.result, session.points_formula
        )

    match = Match(
        id=MatchId(uuid.uuid4().hex),
        deck=match_body.deck,
        opponent_deck=match_body.opponent_deck,
        result=match_body.result,
        turn=match_body.turn,
        points_before=points_before,
        points_after=points_after,
        custom_points_after=match_body.custom_points_after,
        notes=match_body.notes,
        created=now or datetime_utc.now(),
    )
    matches = [*session.matches, match]
    return _build_change(session, matches, match=match, check_from=len(matches) - 1)


def edit_match(
    session: Session,
    locator: MatchLocator,
    body: MatchUpdateBody | Mapping[str, Any],
    *,
    recompute_on_result_edit: bool | None = None,
) -> LedgerChange:
    """
    Update a match in place and re-derive the ledger where the edit affects points.

    Setting an override pins the match's points_after and recomputes every later match.
    Removing an override, or changing the result of a match without one, recomputes
    the match itself and everything after it. The latter only happens when
    `recompute_on_result_edit` is enabled; otherwise the edited match keeps its
    previous points like the legacy ledger did.
    """
    index = locate_match(session, locator)
    update_body = _parse_body(MatchUpdateBody, body)
    if recompute_on_result_edit is None:
        recompute_on_result_edit = config.recompute_on_result_edit

    current = session.matches[index]
    updates: dict[str, Any] = {
        field: getattr(update_body, field)
        for field in ("deck", "opponent_deck", "result", "turn")
        if getattr(update_body, field) is not None
    }
    if "notes" in update_body.model_fields_set:
        updates["notes"] = update_body.notes

    result_changed = "result" in updates and updates["result"] != current.result
    recompute_start: int | None = None

    if update_body.sets_override:
        updates["custom_points_after"] = update_body.custom_points_after
        updates["points_after"] = update_body.custom_points_after
        recompute_start = index + 1
    elif update_body.clears_override and current.has_override:
        updates["custom_points_after"] = None
        recompute_start = index
    elif result_changed and not current.has_override:
        if recompute_on_result_edit:
            recompute_start = index
        else:
            logger.debug(
                f"Result of match {current.id} changed without recompute, "
                "its points are left as they were"
            )

    edited = current.model_copy(update=updates)
    matches = [*session.matches[:index], edited, *session.matches[index + 1 :]]

    if recompute_start is not None:
        prior_points = (
            edited.points_after
            if recompute_start > index
            else points_before_position(session, index)
        )
        matches = _recompute_matches(
            matches, recompute_start, prior_points, session.points_formula
        )

    return _build_change(
        session,
        matches,
        match=matches[index],
        recomputed_from=recompute_start,
        check_from=index,
    )


def delete_match(session: Session, locator: MatchLocator) -> LedgerChange:
    index = locate_match(session, locator)
    remaining = [*session.matches[:index], *session.matches[index + 1 :]]
    prior_points = remaining[index - 1].points_after if index > 0 else session.points_start

    matches = _recompute_matches(remaining, index, prior_points, session.points_formula)
    return _build_change(session, matches, recomputed_from=index, check_from=index)


def clear_matches(session: Session) -> LedgerChange:
    return _build_change(session, [])
