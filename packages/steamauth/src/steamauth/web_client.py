"""# Steam Web API Authentication Client

HTTP implementation of `steamauth.auth.api.AuthApi` on top of the shared
`BaseClient`.

Every endpoint answers with a `{"response": {...}}` envelope; the payload is
unwrapped and validated into the pydantic models of `steamauth.auth.api`.

## Example

```python
async with SteamAuthWebClient(proxy="127.0.0.1:8080") as api:
    key = await api.fetch_public_key("my_account")
    server_time = await api.query_time()
```
"""

import json
import logging
from typing import Any

from shared_lib.baseclient import Client
from shared_lib.baseclient.exceptions import HTTPError

from .auth.api import (
    AccessTokenResult,
    DeviceDetails,
    GuardType,
    PollSessionResult,
    StartSessionResult,
)
from .crypto.rsa import EncryptedPassword, PublicKeyMaterial
from .steamid import SteamID
from .urls import SteamAuthApiUrls, SteamBaseUrls

logger = logging.getLogger(__name__)

# Persistent sessions survive a client restart
PERSISTENCE_PERSISTENT = 1
QOS_LEVEL = 2


class SteamAuthWebClient(Client):
    """Client for the authentication and two-factor web API services.

    Attributes:
        BASE_URL: Web API host
    """

    BASE_URL = SteamBaseUrls.API_URL

    def __init__(
        self,
        base_url: str | None = None,
        proxy: str | None = None,
        timeout: float = 30.0,
        **kwargs: Any,
    ):
        super().__init__(base_url=base_url, proxy=proxy, timeout=timeout, **kwargs)

    async def fetch_public_key(self, account_name: str) -> PublicKeyMaterial:
        """Fetch the RSA key the account's password must be encrypted with.

        Raises:
            HTTPError: On transport failure or a malformed envelope.
            KeyMissingError: If the key is not valid hex.
        """
        data = await self._get(
            SteamAuthApiUrls.GET_PASSWORD_RSA_PUBLIC_KEY,
            params={"account_name": account_name},
        )
        response = _unwrap(data)
        if not response.get("publickey_mod") or not response.get("publickey_exp"):
            raise HTTPError("public key missing from response", response_body=data)

        return PublicKeyMaterial.from_hex(
            response["publickey_mod"],
            response["publickey_exp"],
            str(response.get("timestamp", "")),
        )

    async def start_session(
        self,
        account_name: str,
        encrypted_password: EncryptedPassword,
        device: DeviceDetails,
    ) -> StartSessionResult:
        device_details = {
            "device_friendly_name": device.device_friendly_name,
            "platform_type": int(device.platform_type),
            "os_type": device.os_type,
            "gaming_device_type": device.gaming_device_type,
        }
        form = {
            "device_friendly_name": device.device_friendly_name,
            "account_name": account_name,
            "encrypted_password": encrypted_password.encoded,
            "encryption_timestamp": encrypted_password.timestamp,
            "remember_login": "true",
            "platform_type": int(device.platform_type),
            "persistence": PERSISTENCE_PERSISTENT,
            "website_id": device.website_id,
            "device_details": json.dumps(device_details),
            "guard_data": "",
            "language": 0,
            "qos_level": QOS_LEVEL,
        }
        data = await self._post_form(SteamAuthApiUrls.BEGIN_AUTH_SESSION_VIA_CREDENTIALS, form)
        result = StartSessionResult.model_validate(_unwrap(data))
        logger.debug(f"Auth session started, client id {result.client_id}")
        return result

    async def submit_guard_code(self, client_id: str, steam_id: SteamID, code: str) -> None:
        form = {
            "client_id": client_id,
            "steamid": str(steam_id),
            "code": code,
            "code_type": int(GuardType.DEVICE_CODE),
        }
        await self._post_form(SteamAuthApiUrls.UPDATE_AUTH_SESSION_WITH_GUARD_CODE, form)

    async def poll_session_status(self, client_id: str, request_id: str) -> PollSessionResult:
        form = {"client_id": client_id, "request_id": request_id}
        data = await self._post_form(SteamAuthApiUrls.POLL_AUTH_SESSION_STATUS, form)
        return PollSessionResult.model_validate(_unwrap(data))

    async def exchange_refresh_token(
        self, refresh_token: str, steam_id: SteamID, renew: bool = False
    ) -> AccessTokenResult:
        """Mint an access token; with `renew`, ask for a new refresh token too."""
        form = {
            "refresh_token": refresh_token,
            "steamid": str(steam_id),
            "renewal_type": 1 if renew else 0,
        }
        data = await self._post_form(SteamAuthApiUrls.GENERATE_ACCESS_TOKEN_FOR_APP, form)
        return AccessTokenResult.model_validate(_unwrap(data))

    async def query_time(self) -> int:
        """Server Unix time in seconds.

        Raises:
            HTTPError: If the time is missing or not a number.
        """
        data = await self._post_form(SteamAuthApiUrls.QUERY_TIME, {"steamid": "0"})
        server_time = _unwrap(data).get("server_time")
        try:
            return int(server_time)
        except (TypeError, ValueError) as e:
            raise HTTPError(
                f"server_time is not a number: {server_time!r}", response_body=data
            ) from e


def _unwrap(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict) or not isinstance(data.get("response"), dict):
        raise HTTPError("response envelope missing", response_body=data)
    return data["response"]
