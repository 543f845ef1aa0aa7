from fastapi import APIRouter, Depends, HTTPException
from starlette import status

from duellog.config import config
from duellog.logic.user_stats import refresh_user_stats
from duellog.models.db.user import UserPublic
from duellog.routes.auth import is_admin_user, user_authenticated
from duellog.routes.models import UserWithStatsResponse
from duellog.sql.users import get_user_by_id
from duellog.utils.id_types import UserId
from duellog.utils.types import assert_some

router = APIRouter(prefix=config.api_prefix)


@router.get("/users/me", response_model=UserWithStatsResponse)
async def get_me(user_public: UserPublic = Depends(user_authenticated)) -> UserWithStatsResponse:
    return UserWithStatsResponse(data=assert_some(await get_user_by_id(user_public.id)))


@router.post("/users/{user_id}/stats/recalculate", response_model=UserWithStatsResponse)
async def post_recalculate_user_stats(
    user_id: UserId, user_public: UserPublic = Depends(user_authenticated)
) -> UserWithStatsResponse:
    if user_public.id != user_id and not is_admin_user(user_public):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Can't recalculate stats of this user")

    await refresh_user_stats(user_id)
    user = await get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return UserWithStatsResponse(data=user)
