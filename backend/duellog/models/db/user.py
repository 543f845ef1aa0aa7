from heliclockter import datetime_utc

from duellog.models.db.account import UserAccountType
from duellog.models.db.shared import BaseModelORM
from duellog.utils.id_types import UserId


class UserStats(BaseModelORM):
    total_matches: int = 0
    wins: int = 0
    losses: int = 0
    current_points: float = 1500
    peak_points: float = 1500


class UserBase(BaseModelORM):
    email: str
    name: str
    created: datetime_utc
    account_type: UserAccountType = UserAccountType.REGULAR


class UserPublic(UserBase):
    id: UserId


class UserWithStats(UserPublic, UserStats):
    pass
