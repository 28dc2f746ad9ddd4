"""Fixtures shared by the API tests."""
from collections.abc import Awaitable, Callable

import pytest

from core.tokens import TokenCodec
from models.user import User
from services.auth_service import claims_for

FAKE_UUID = "00000000-0000-0000-0000-000000000000"


@pytest.fixture
async def user(make_user: Callable[..., Awaitable[User]]) -> User:
    """A verified, active account named ada."""
    return await make_user()


def bearer_for(codec: TokenCodec, account: User) -> dict[str, str]:
    """Authorization header carrying a fresh access token for `account`."""
    return {"Authorization": f"Bearer {codec.issue_access_token(claims_for(account))}"}


@pytest.fixture
def auth_headers(codec: TokenCodec, user: User) -> dict[str, str]:
    """Bearer header for the default user."""
    return bearer_for(codec, user)
