"""
Session configuration.

Values come from the constructor or, via `SessionConfig.from_env()`, from
environment variables (a local `.env` file is loaded first when present):

| Variable | Field |
|---|---|
| `STEAM_ACCOUNT_NAME` | `account_name` |
| `STEAM_PASSWORD` | `password` |
| `STEAM_SHARED_SECRET` | `shared_secret` |
| `STEAM_IDENTITY_SECRET` | `identity_secret` |
| `STEAM_DEVICE_NAME` | `device_friendly_name` |
| `STEAM_MAX_LOGIN_POLLS` | `max_login_polls` |
| `STEAM_POLL_INTERVAL` | `default_poll_interval` |
| `STEAM_HTTP_TIMEOUT` | `timeout` |
| `STEAM_PROXY` | `proxy` |
| `STEAM_STORAGE_DIR` | `storage_dir` |
"""

import os
import socket

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from .auth.api import DeviceDetails
from .auth.session import DEFAULT_MAX_LOGIN_POLLS, DEFAULT_POLL_INTERVAL
from .guard.totp import GuardSecrets


class SessionConfig(BaseModel):
    """
    Everything needed to log one account in.

    Secrets are held as `SecretStr` so they never show up in `repr()` or logs.
    """

    model_config = ConfigDict(frozen=True)

    account_name: str
    password: SecretStr
    shared_secret: SecretStr
    identity_secret: SecretStr = SecretStr("")
    device_friendly_name: str = Field(default_factory=lambda: f"{socket.gethostname()} (steamauth)")
    max_login_polls: int = Field(default=DEFAULT_MAX_LOGIN_POLLS, ge=1)
    default_poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    timeout: float = Field(default=30.0, gt=0)
    proxy: str | None = None
    storage_dir: str | None = None

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "SessionConfig":
        """
        Build a config from `STEAM_*` environment variables.

        ## Raises:
        - `pydantic.ValidationError`: If a required variable is missing
        """
        load_dotenv(dotenv_path)

        values: dict[str, object] = {
            "account_name": os.getenv("STEAM_ACCOUNT_NAME"),
            "password": os.getenv("STEAM_PASSWORD"),
            "shared_secret": os.getenv("STEAM_SHARED_SECRET"),
            "identity_secret": os.getenv("STEAM_IDENTITY_SECRET", ""),
            "proxy": os.getenv("STEAM_PROXY"),
            "storage_dir": os.getenv("STEAM_STORAGE_DIR"),
        }
        optional = {
            "device_friendly_name": os.getenv("STEAM_DEVICE_NAME"),
            "max_login_polls": os.getenv("STEAM_MAX_LOGIN_POLLS"),
            "default_poll_interval": os.getenv("STEAM_POLL_INTERVAL"),
            "timeout": os.getenv("STEAM_HTTP_TIMEOUT"),
        }
        values.update({k: v for k, v in optional.items() if v})
        return cls.model_validate(values)

    def guard_secrets(self) -> GuardSecrets:
        """Decode the second-factor secrets."""
        return GuardSecrets.from_base64(
            self.shared_secret.get_secret_value(),
            self.identity_secret.get_secret_value(),
        )

    def device_details(self) -> DeviceDetails:
        return DeviceDetails(device_friendly_name=self.device_friendly_name)
