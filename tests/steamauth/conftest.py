import time

import pytest
from jose import jwt

STEAM_ID = "76561197960287930"


@pytest.fixture
def make_jwt():
    """Build an HS256 JWT; the engine never verifies signatures."""

    def _make_jwt(**claims):
        return jwt.encode(claims, "test-signing-key", algorithm="HS256")

    return _make_jwt


@pytest.fixture
def refresh_token(make_jwt):
    return make_jwt(sub=STEAM_ID, exp=int(time.time()) + 3600, iat=int(time.time()))
