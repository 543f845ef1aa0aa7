from enum import auto

from pydantic import BaseModel, Field

from duellog.models.db.session import Match, Session
from duellog.utils.id_types import MatchId
from duellog.utils.types import EnumAutoStr


class PointsAnomalyKind(EnumAutoStr):
    NEGATIVE = auto()
    NON_FINITE = auto()


class PointsAnomaly(BaseModel):
    match_id: MatchId
    index: int
    points_after: float
    kind: PointsAnomalyKind


class LedgerChange(BaseModel):
    session: Session
    match: Match | None = None
    recomputed_from: int | None = None
    anomalies: list[PointsAnomaly] = Field(default_factory=list)
