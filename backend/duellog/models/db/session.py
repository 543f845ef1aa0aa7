import json
from typing import Annotated

from heliclockter import datetime_utc
from pydantic import BaseModel, Field, StringConstraints, field_validator, model_validator

from duellog.models.db.shared import BaseModelORM
from duellog.utils.id_types import MatchId, SessionId, UserId
from duellog.utils.types import EnumValueStr

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
SessionName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class PointsFormula(EnumValueStr):
    RATED = "rated"
    DC = "dc"


DEFAULT_POINTS_START: dict[PointsFormula, float] = {
    PointsFormula.RATED: 1500.0,
    PointsFormula.DC: 0.0,
}


DEFAULT_SESSION_DECKS: tuple[str, ...] = (
    "Branded",
    "Ryzeal Mitsu",
    "Mitsu Pure",
    "Mitsu FS",
    "Orcust",
    "Maliss",
)


class MatchResult(EnumValueStr):
    WIN = "Win"
    LOSS = "Loss"


class TurnOrder(EnumValueStr):
    FIRST = "1st"
    SECOND = "2nd"


class Match(BaseModel):
    id: MatchId
    deck: str
    opponent_deck: str
    result: MatchResult
    turn: TurnOrder
    points_before: float
    points_after: float
    custom_points_after: float | None = None
    notes: str | None = None
    created: datetime_utc

    @property
    def has_override(self) -> bool:
        return self.custom_points_after is not None


class MatchCreateBody(BaseModel):
    deck: NonEmptyStr
    opponent_deck: NonEmptyStr
    result: MatchResult
    turn: TurnOrder
    custom_points_after: float | None = None
    notes: str | None = None


class MatchUpdateBody(BaseModel):
    """
    Partial update of a match.

    Fields that are left out are not touched. `custom_points_after` is special: sending it
    with a number sets the override, sending it explicitly as null removes the override.
    """

    deck: NonEmptyStr | None = None
    opponent_deck: NonEmptyStr | None = None
    result: MatchResult | None = None
    turn: TurnOrder | None = None
    custom_points_after: float | None = None
    notes: str | None = None

    @property
    def sets_override(self) -> bool:
        return "custom_points_after" in self.model_fields_set and self.custom_points_after is not None

    @property
    def clears_override(self) -> bool:
        return "custom_points_after" in self.model_fields_set and self.custom_points_after is None


class SessionStats(BaseModel):
    total: int
    wins: int
    losses: int
    win_rate: float
    win_rate_1st: float
    win_rate_2nd: float
    current_points: float
    peak_points: float


class SessionBase(BaseModelORM):
    user_id: UserId
    name: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    decks: list[str] = Field(default_factory=list)
    default_deck: str | None = None
    points_formula: PointsFormula = PointsFormula.RATED
    points_start: float = 1500
    is_active: bool = True
    created: datetime_utc
    updated: datetime_utc

    @field_validator("tags", "decks", mode="before")
    @classmethod
    def parse_string_list(cls, value: object) -> list[str]:
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except (TypeError, ValueError):
                return []
        if not isinstance(value, list):
            return []
        return [str(item).strip() for item in value if str(item).strip() != ""]


class SessionInsertable(SessionBase):
    matches: list[Match] = Field(default_factory=list)

    @field_validator("matches", mode="before")
    @classmethod
    def parse_matches(cls, value: object) -> object:
        if isinstance(value, str):
            return json.loads(value)
        return value


class Session(SessionInsertable):
    id: SessionId
    version: int = 0


class SessionWithStats(Session):
    stats: SessionStats


class SessionCreateBody(BaseModel):
    name: SessionName
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    decks: list[str] = Field(default_factory=lambda: list(DEFAULT_SESSION_DECKS))
    default_deck: str | None = None
    points_formula: PointsFormula = PointsFormula.RATED
    points_start: float | None = None

    @model_validator(mode="after")
    def default_points_start(self) -> "SessionCreateBody":
        if self.points_start is None:
            self.points_start = DEFAULT_POINTS_START[self.points_formula]
        return self


class SessionUpdateBody(BaseModel):
    name: SessionName | None = None
    description: str | None = None
    tags: list[str] | None = None
    decks: list[str] | None = None
    default_deck: str | None = None
    is_active: bool | None = None


class SessionDeckBody(BaseModel):
    deck_name: NonEmptyStr
