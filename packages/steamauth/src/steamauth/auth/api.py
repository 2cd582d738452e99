"""Collaborator contracts of the session machine.

The session machine never talks HTTP itself. It drives an `AuthApi`
implementation (see `steamauth.web_client.SteamAuthWebClient`, or a fake in
tests) and hands finished session values to a `SessionCookieStore`.
"""

from enum import IntEnum
from typing import Protocol, runtime_checkable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..crypto.rsa import EncryptedPassword, PublicKeyMaterial
from ..steamid import SteamID


class GuardType(IntEnum):
    UNKNOWN = 0
    NONE = 1
    EMAIL_CODE = 2
    DEVICE_CODE = 3
    DEVICE_CONFIRMATION = 4
    EMAIL_CONFIRMATION = 5
    MACHINE_TOKEN = 6
    LEGACY_MACHINE_AUTH = 7


class PlatformType(IntEnum):
    UNKNOWN = 0
    STEAM_CLIENT = 1
    WEB_BROWSER = 2
    MOBILE_APP = 3


ANDROID_UNKNOWN_OS_TYPE = -500
DEFAULT_GAMING_DEVICE_TYPE = 528


class APIBaseModel(BaseModel):
    """Base class for collaborator models, printable as indented JSON."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    def __str__(self) -> str:
        return self.model_dump_json(indent=2)


class DeviceDetails(APIBaseModel):
    """Fixed device metadata submitted when a login session starts."""

    device_friendly_name: str
    platform_type: PlatformType = PlatformType.MOBILE_APP
    os_type: int = ANDROID_UNKNOWN_OS_TYPE
    gaming_device_type: int = DEFAULT_GAMING_DEVICE_TYPE

    @property
    def website_id(self) -> str:
        return {
            PlatformType.WEB_BROWSER: "Community",
            PlatformType.MOBILE_APP: "Mobile",
        }.get(self.platform_type, "Unknown")


class AllowedConfirmation(APIBaseModel):
    confirmation_type: int
    associated_message: str = ""


class StartSessionResult(APIBaseModel):
    """Answer to submitting encrypted credentials.

    Attributes:
        client_id: Login client id, may be replaced while polling
        request_id: Request id polled for status
        interval: Seconds the server wants between polls
        steamid: Account identifier as a decimal string
        weak_token: Short-lived JWT whose subject is the account identifier
        allowed_confirmations: Second-factor methods the account may use
    """

    client_id: str
    request_id: str
    interval: float = 5.0
    steamid: str = ""
    weak_token: str = ""
    allowed_confirmations: list[AllowedConfirmation] = Field(default_factory=list)
    extended_error_message: str = ""

    def allows(self, guard_type: GuardType) -> bool:
        return any(c.confirmation_type == guard_type for c in self.allowed_confirmations)


class PollSessionResult(APIBaseModel):
    """One login session status poll. Every field may be empty."""

    new_client_id: str = ""
    new_challenge_url: str = ""
    refresh_token: str = ""
    access_token: str = ""
    had_remote_interaction: bool = False
    account_name: str = ""


class AccessTokenResult(APIBaseModel):
    """Tokens returned by exchanging a refresh token."""

    access_token: str = Field(
        default="", validation_alias=AliasChoices("access_token", "accessToken")
    )
    refresh_token: str = Field(
        default="", validation_alias=AliasChoices("refresh_token", "refreshToken")
    )


@runtime_checkable
class AuthApi(Protocol):
    """Remote calls the login flow depends on."""

    async def fetch_public_key(self, account_name: str) -> PublicKeyMaterial: ...

    async def start_session(
        self,
        account_name: str,
        encrypted_password: EncryptedPassword,
        device: DeviceDetails,
    ) -> StartSessionResult: ...

    async def submit_guard_code(self, client_id: str, steam_id: SteamID, code: str) -> None: ...

    async def poll_session_status(self, client_id: str, request_id: str) -> PollSessionResult: ...

    async def exchange_refresh_token(
        self, refresh_token: str, steam_id: SteamID, renew: bool = False
    ) -> AccessTokenResult: ...

    async def query_time(self) -> int: ...


@runtime_checkable
class SessionCookieStore(Protocol):
    """Receives the session id and login-secure value after each rotation."""

    def store_session_cookies(self, session_id: str, login_secure: str) -> None: ...
