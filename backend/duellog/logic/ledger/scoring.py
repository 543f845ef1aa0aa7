from duellog.models.db.session import DEFAULT_POINTS_START, MatchResult, PointsFormula

RATED_POINTS_DELTA = 7
DC_WIN_DELTA = 1
DC_LOSS_DELTA = 1
DC_REDUCED_LOSS_DELTA = 0.5
DC_REDUCED_LOSS_THRESHOLD = 15


def default_points_start(formula: PointsFormula) -> float:
    return DEFAULT_POINTS_START[formula]


def compute_points_after(
    points_before: float, result: MatchResult, formula: PointsFormula
) -> float:
    """
    Apply the scoring rule of a session to a single match result.

    Neither formula clamps: a losing streak can take points below zero.
    """
    match formula:
        case PointsFormula.RATED:
            if result is MatchResult.WIN:
                return points_before + RATED_POINTS_DELTA
            return points_before - RATED_POINTS_DELTA
        case PointsFormula.DC:
            if result is MatchResult.WIN:
                return points_before + DC_WIN_DELTA
            if points_before >= DC_REDUCED_LOSS_THRESHOLD:
                return points_before - DC_LOSS_DELTA
            return points_before - DC_REDUCED_LOSS_DELTA
