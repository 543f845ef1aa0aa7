import jwt
from heliclockter import datetime_utc, timedelta

from duellog.config import config
from duellog.routes.auth import ALGORITHM, decode_access_token, is_admin_user
from duellog.utils.dummy_records import DUMMY_USER


def test_decode_access_token_reads_user_id() -> None:
    token = jwt.encode({"sub": "42"}, config.jwt_secret, algorithm=ALGORITHM)

    token_data = decode_access_token(token)

    assert token_data is not None
    assert token_data.user_id == 42


def test_decode_access_token_rejects_wrong_signature() -> None:
    token = jwt.encode({"sub": "42"}, "not-the-secret-" * 3, algorithm=ALGORITHM)

    assert decode_access_token(token) is None


def test_decode_access_token_rejects_expired_token() -> None:
    token = jwt.encode(
        {"sub": "42", "exp": datetime_utc.now() - timedelta(minutes=5)},
        config.jwt_secret,
        algorithm=ALGORITHM,
    )

    assert decode_access_token(token) is None


def test_decode_access_token_requires_subject() -> None:
    token = jwt.encode({"user": "duelist@example.org"}, config.jwt_secret, algorithm=ALGORITHM)

    assert decode_access_token(token) is None


def test_regular_user_is_not_admin() -> None:
    assert is_admin_user(DUMMY_USER) is False
