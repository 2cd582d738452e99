"""Log in with `STEAM_*` settings and print the resulting token info.

    python -m steamauth
"""

import asyncio
import json
import logging

from shared_lib.logging import setup_logging

from .auth import AuthSessionMachine, CookieManager
from .config import SessionConfig
from .errors import SteamAuthError
from .web_client import SteamAuthWebClient

logger = logging.getLogger("steamauth")


async def main() -> int:
    config = SessionConfig.from_env()

    async with SteamAuthWebClient(proxy=config.proxy, timeout=config.timeout) as api:
        session = AuthSessionMachine.from_config(config, api, CookieManager())
        try:
            await session.authenticate()
        except SteamAuthError as e:
            logger.error(f"Login failed: {e}")
            return 1

        print(json.dumps(session.get_token_info(), indent=2))
    return 0


if __name__ == "__main__":
    setup_logging()
    raise SystemExit(asyncio.run(main()))
