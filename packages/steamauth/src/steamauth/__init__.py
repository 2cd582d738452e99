"""
# steamauth

Async login engine for a mobile-authenticator protected account: password
encryption, Guard codes, server time alignment, token rotation and
confirmation signing.

```python
from shared_lib.logging import setup_logging
from steamauth import AuthSessionMachine, CookieManager, SessionConfig, SteamAuthWebClient

setup_logging()
config = SessionConfig.from_env()

async with SteamAuthWebClient(proxy=config.proxy, timeout=config.timeout) as api:
    session = AuthSessionMachine.from_config(config, api, CookieManager())
    await session.authenticate()
    session.begin_polling()
```
"""

from .auth import AuthSessionMachine, CookieManager, SecureTokenStorage, SessionState, SessionTokens
from .config import SessionConfig
from .errors import SteamAuthError
from .steamid import SteamID, parse
from .web_client import SteamAuthWebClient

__version__ = "0.1.0"
__all__ = [
    "AuthSessionMachine",
    "CookieManager",
    "SecureTokenStorage",
    "SessionConfig",
    "SessionState",
    "SessionTokens",
    "SteamAuthError",
    "SteamAuthWebClient",
    "SteamID",
    "parse",
]
