import jwt
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel, ValidationError
from starlette import status

from duellog.config import config
from duellog.models.db.account import UserAccountType
from duellog.models.db.user import UserPublic
from duellog.sql.users import get_user_by_id
from duellog.utils.id_types import UserId

ALGORITHM = "HS256"

# Tokens are issued by the account service; this API only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)


class JWTData(BaseModel):
    user_id: UserId


def decode_access_token(token: str) -> JWTData | None:
    try:
        payload = jwt.decode(token, config.jwt_secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None

    try:
        return JWTData(user_id=payload.get("sub"))
    except ValidationError:
        return None


def is_admin_user(user: UserPublic) -> bool:
    return user.account_type is UserAccountType.ADMIN


async def user_authenticated(token: str | None = Depends(oauth2_scheme)) -> UserPublic:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if token is None:
        raise credentials_exception

    token_data = decode_access_token(token)
    if token_data is None:
        raise credentials_exception

    user = await get_user_by_id(token_data.user_id)
    if user is None:
        raise credentials_exception

    return user
