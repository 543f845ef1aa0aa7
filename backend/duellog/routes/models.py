from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from duellog.models.db.session import Match, SessionWithStats
from duellog.models.db.user import UserWithStats
from duellog.models.ledger import PointsAnomaly


class SuccessResponse(BaseModel):
    success: bool = True


DataT = TypeVar("DataT")


class DataResponse(BaseModel, Generic[DataT]):
    data: DataT


class SessionResponse(DataResponse[SessionWithStats]):
    pass


class SessionsResponse(DataResponse[list[SessionWithStats]]):
    pass


class MatchChangeView(BaseModel):
    match: Match | None = None
    session: SessionWithStats
    anomalies: list[PointsAnomaly] = Field(default_factory=list)


class MatchChangeResponse(DataResponse[MatchChangeView]):
    pass


class UserWithStatsResponse(DataResponse[UserWithStats]):
    pass
