import pytest
from jose import JWTError, jwt

from marketplace.core.access import Role
from marketplace.core.config import get_settings
from marketplace.core.security import check_password, hash_password, issue_access_token, read_access_token


def test_access_token_round_trips_caller_claims():
    claims = read_access_token(issue_access_token(42, Role.COOK, "Nina Baker"))
    assert (claims["sub"], claims["role"], claims["name"]) == ("42", "cook", "Nina Baker")


def test_non_access_tokens_are_rejected():
    settings = get_settings()
    token = jwt.encode({"sub": "1", "type": "refresh"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(JWTError):
        read_access_token(token)


def test_check_password():
    stored = hash_password("secret123")
    assert check_password("secret123", stored) == (True, None)
    assert check_password("wrong", stored)[0] is False
