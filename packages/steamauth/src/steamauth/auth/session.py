"""
# Login Session State Machine

Drives a password + Guard code login from nothing to a finalized web
session, then keeps the session's tokens rotating in the background.

## Authentication Flow:
1. **Align time**: Measure the server clock offset (once per session)
2. **Encrypt credentials**: Fetch the account's RSA key, encrypt the password
3. **Start session**: Submit credentials + device details, read the weak token
4. **Submit Guard code**: Generate the `"conf"` code at aligned time, submit it
5. **Poll**: Poll session status until a refresh token is issued, exchanging
   it for an access token when the poll did not carry one
6. **Finalize**: On every refresh token change, derive a new session id and
   login-secure value and hand them to the cookie store

## States:
```
UNAUTHENTICATED -> CREDENTIALS_ENCRYPTED -> SESSION_STARTED
    -> GUARD_CODE_SUBMITTED -> POLLING -> AUTHENTICATED -> FINALIZED
(any) -> FAILED
```

## Concurrency:
Token state is published as immutable `SessionTokens` snapshots. Every poll
(foreground or background) runs under one `asyncio.Lock` and swaps the
snapshot and the session artifacts in together, so readers never see a torn
update.

## Example:
```python
config = SessionConfig.from_env()
async with SteamAuthWebClient() as api:
    session = AuthSessionMachine.from_config(config, api, CookieManager())
    await session.authenticate()
    session.begin_polling()
    key = session.sign("list")
```
"""

import asyncio
import base64
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from .. import steamid as steamid_codec
from ..crypto import rsa
from ..errors import (
    CredentialEncryptionFailedError,
    InputError,
    InvalidIndividualIdentifierError,
    MalformedRefreshTokenError,
    MalformedWeakTokenError,
    NoRefreshTokenIssuedError,
    ProtocolError,
    RemoteCallFailedError,
    SessionNotReadyError,
    SteamAuthError,
    UnsupportedConfirmationMethodError,
)
from ..guard.time_aligner import ServerTimeAligner
from ..guard.totp import GuardSecrets, device_id
from ..steamid import SteamID
from .api import AuthApi, DeviceDetails, GuardType, SessionCookieStore, StartSessionResult
from .auth_storage import SecureTokenStorage
from .tokens import RefreshTokenClaims, SessionArtifacts, SessionTokens, decode_unverified

if TYPE_CHECKING:
    from ..config import SessionConfig

LOGIN_CODE_TAG = "conf"
CONFIRMATION_MODE = "react"
DEFAULT_MAX_LOGIN_POLLS = 10
DEFAULT_POLL_INTERVAL = 5.0

T = TypeVar("T")


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    CREDENTIALS_ENCRYPTED = "credentials_encrypted"
    SESSION_STARTED = "session_started"
    GUARD_CODE_SUBMITTED = "guard_code_submitted"
    POLLING = "polling"
    AUTHENTICATED = "authenticated"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass(frozen=True)
class ConfirmationOperation:
    """An accept/decline action on one mobile confirmation."""

    action: str
    confirmation_id: str
    nonce: str


class AuthSessionMachine:
    """
    # Login Session for One Account

    ## Core Features:
    - **Guard code login**: RSA-encrypted password + time-based code
    - **Token rotation**: Polls session status, exchanges refresh tokens
    - **Finalization**: Session id + login-secure cookie on each rotation
    - **Background refresh**: Cancellable polling task that survives failures
    - **Confirmation signing**: `sign(tag)` for downstream endpoint clients

    ## Error Handling:
    Every error raised during `authenticate()` moves the machine to `FAILED`,
    names the transition it came from and chains the collaborator error.
    Only the background loop swallows errors, after logging them.
    """

    def __init__(
        self,
        account_name: str,
        password: str,
        secrets: GuardSecrets,
        api: AuthApi,
        cookie_store: SessionCookieStore | None = None,
        *,
        device: DeviceDetails | None = None,
        aligner: ServerTimeAligner | None = None,
        token_storage: SecureTokenStorage | None = None,
        max_login_polls: int = DEFAULT_MAX_LOGIN_POLLS,
        default_poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        """
        ## Args:
        - `account_name` (str): Login name
        - `password` (str): Plain password, only ever sent RSA-encrypted
        - `secrets` (GuardSecrets): Decoded second-factor secrets
        - `api` (AuthApi): Remote collaborator calls
        - `cookie_store` (SessionCookieStore, optional): Receives finalized
          session values
        - `device` (DeviceDetails, optional): Device metadata for login
        - `aligner` (ServerTimeAligner, optional): Defaults to one built on
          `api.query_time`
        - `token_storage` (SecureTokenStorage, optional): Persists every
          finalized token snapshot
        - `max_login_polls` (int): Polls before giving up on a refresh token
        - `default_poll_interval` (float): Used when the server sends none
        - `on_error` (callable, optional): Notified of background poll errors
        """
        self.account_name = account_name
        self._password = password
        self._secrets = secrets
        self._api = api
        self._cookie_store = cookie_store
        self._device = device or DeviceDetails(device_friendly_name="steamauth")
        self._aligner = aligner or ServerTimeAligner(api.query_time)
        self._token_storage = token_storage
        self._max_login_polls = max_login_polls
        self._default_poll_interval = default_poll_interval
        self._on_error = on_error

        self.logger = logging.getLogger(__name__)

        self._lock = asyncio.Lock()
        self._state = SessionState.UNAUTHENTICATED
        self._failure: SteamAuthError | None = None
        self._steam_id: SteamID | None = None
        self._tokens: SessionTokens | None = None
        self._artifacts: SessionArtifacts | None = None
        self._poll_task: asyncio.Task | None = None

    @classmethod
    def from_config(
        cls,
        config: "SessionConfig",
        api: AuthApi,
        cookie_store: SessionCookieStore | None = None,
        **kwargs: Any,
    ) -> "AuthSessionMachine":
        """Build a machine from a `SessionConfig`."""
        if config.storage_dir and "token_storage" not in kwargs:
            kwargs["token_storage"] = SecureTokenStorage(config.storage_dir, config.account_name)
        return cls(
            account_name=config.account_name,
            password=config.password.get_secret_value(),
            secrets=config.guard_secrets(),
            api=api,
            cookie_store=cookie_store,
            device=config.device_details(),
            max_login_polls=config.max_login_polls,
            default_poll_interval=config.default_poll_interval,
            **kwargs,
        )

    # ------------------------------------------------------------------ #
    # State exposed to endpoint clients                                  #
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def failure(self) -> SteamAuthError | None:
        """The error that moved the machine to `FAILED`, if any."""
        return self._failure

    @property
    def steam_id(self) -> SteamID | None:
        return self._steam_id

    @property
    def tokens(self) -> SessionTokens | None:
        """Current token snapshot; replaced as a whole on every rotation."""
        return self._tokens

    @property
    def access_token(self) -> str:
        return self._tokens.access_token if self._tokens else ""

    @property
    def refresh_token(self) -> str:
        return self._tokens.refresh_token if self._tokens else ""

    @property
    def artifacts(self) -> SessionArtifacts | None:
        return self._artifacts

    @property
    def aligner(self) -> ServerTimeAligner:
        return self._aligner

    def is_authenticated(self) -> bool:
        return self._state == SessionState.FINALIZED and bool(self.refresh_token)

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    # ------------------------------------------------------------------ #
    # Login                                                              #
    # ------------------------------------------------------------------ #
    async def authenticate(self) -> SessionTokens:
        """
        Run the full login flow.

        ## Returns:
        - `SessionTokens`: The finalized token snapshot

        ## Raises:
        - `TimeQueryFailedError`: Server time could not be aligned
        - `CredentialEncryptionFailedError`: Key fetch or encryption failed
        - `UnsupportedConfirmationMethodError`: No device-code confirmation
        - `MalformedWeakTokenError`: Weak token subject is not an identifier
        - `InvalidIndividualIdentifierError`: Account may not use Guard codes
        - `MalformedRefreshTokenError` / `MissingExpirationClaimError`:
          Unusable refresh token
        - `NoRefreshTokenIssuedError`: Polling never produced a refresh token
        - `RemoteCallFailedError`: Any collaborator call failed
        """
        self._failure = None
        self._state = SessionState.UNAUTHENTICATED
        self.logger.info(f"Starting login for account {self.account_name}...")

        try:
            if not self._aligner.is_aligned:
                await self._aligner.align()

            encrypted = await self._encrypt_credentials()
            await self._start_session(encrypted)
            await self._submit_guard_code()
            await self._poll_until_authenticated()

        except SteamAuthError as e:
            self._fail(e)
            raise

        self.logger.info(f"✅ Authentication successful for {self._steam_id}")
        return self._current_tokens()

    async def _encrypt_credentials(self) -> rsa.EncryptedPassword:
        transition = "encrypt_credentials"
        try:
            key = await self._api.fetch_public_key(self.account_name)
            encrypted = rsa.encrypt_password(self._password, key)
        except Exception as e:
            raise CredentialEncryptionFailedError(
                f"could not encrypt credentials for {self.account_name}: {e}",
                transition=transition,
            ) from e

        self._state = SessionState.CREDENTIALS_ENCRYPTED
        self.logger.debug("Credentials encrypted with server public key")
        return encrypted

    async def _start_session(self, encrypted: rsa.EncryptedPassword) -> StartSessionResult:
        transition = "start_session"
        started = await self._remote(
            transition,
            self._api.start_session(self.account_name, encrypted, self._device),
        )

        if not started.allows(GuardType.DEVICE_CODE):
            offered = [c.confirmation_type for c in started.allowed_confirmations]
            raise UnsupportedConfirmationMethodError(
                f"device code confirmation not offered (allowed: {offered})",
                transition=transition,
                allowed=offered,
            )

        try:
            weak_claims = decode_unverified(started.weak_token)
            steam_id = steamid_codec.parse(str(weak_claims.get("sub", "")))
        except (MalformedRefreshTokenError, InputError) as e:
            raise MalformedWeakTokenError(
                f"weak token has no usable subject, credentials probably incorrect: {e}",
                transition=transition,
            ) from e

        interval = started.interval if started.interval > 0 else self._default_poll_interval
        async with self._lock:
            self._steam_id = steam_id
            self._tokens = SessionTokens(
                client_id=started.client_id,
                request_id=started.request_id,
                poll_interval=interval,
            )
            self._artifacts = None

        self._state = SessionState.SESSION_STARTED
        self.logger.info(f"Login session started for {steam_id} (poll interval {interval}s)")
        return started

    async def _submit_guard_code(self) -> None:
        transition = "submit_guard_code"
        steam_id = self._steam_id
        if steam_id is None or not steam_id.is_valid_individual():
            raise InvalidIndividualIdentifierError(
                f"steamID is not valid individual: {steam_id}",
                transition=transition,
            )

        try:
            code = self._secrets.guard_code(LOGIN_CODE_TAG, self._aligner.now())
        except SteamAuthError as e:
            e.transition = e.transition or transition
            raise

        await self._remote(
            transition,
            self._api.submit_guard_code(self._current_tokens().client_id, steam_id, code),
        )
        self._state = SessionState.GUARD_CODE_SUBMITTED
        self.logger.debug("Guard code submitted")

    async def _poll_until_authenticated(self) -> None:
        self._state = SessionState.POLLING
        for attempt in range(1, self._max_login_polls + 1):
            await self.poll()
            if self.refresh_token:
                return

            if attempt < self._max_login_polls:
                self.logger.debug(
                    f"No refresh token yet (poll {attempt}/{self._max_login_polls})"
                )
                await asyncio.sleep(self._current_tokens().poll_interval)

        raise NoRefreshTokenIssuedError(
            f"no refresh token found after {self._max_login_polls} polls",
            transition="poll_session",
        )

    # ------------------------------------------------------------------ #
    # Polling / rotation                                                 #
    # ------------------------------------------------------------------ #
    async def poll(self) -> bool:
        """
        Poll session status once and apply token rotation.

        ## Process:
        1. Adopt a replacement client id right away
        2. Without a refresh token in the response, stop there
        3. Without an access token, exchange the refresh token (no renewal)
        4. Decode the refresh token claims (unverified)
        5. Finalize if the refresh token changed

        ## Returns:
        - `bool`: True if the refresh token changed and finalization ran

        ## Raises:
        - `SessionNotReadyError`: If no login session was started
        - Any error of the transition; state is not changed to `FAILED` here,
          `authenticate()` does that for the foreground flow
        """
        transition = "poll_session"
        steam_id = self._steam_id
        if steam_id is None or self._tokens is None:
            raise SessionNotReadyError("no login session to poll", transition=transition)

        async with self._lock:
            current = self._current_tokens()
            result = await self._remote(
                transition,
                self._api.poll_session_status(current.client_id, current.request_id),
            )

            if result.new_client_id and result.new_client_id != current.client_id:
                current = replace(current, client_id=result.new_client_id)
                self._tokens = current
                self.logger.debug("Adopted new client id from poll response")

            if not result.refresh_token:
                return False

            access_token = result.access_token
            refresh_token = result.refresh_token
            if not access_token:
                # Polls do not always carry an access token; mint one from the
                # refresh token without renewing it.
                exchanged = await self._remote(
                    "exchange_refresh_token",
                    self._api.exchange_refresh_token(refresh_token, steam_id, False),
                )
                access_token = exchanged.access_token
                refresh_token = exchanged.refresh_token or refresh_token
                if not access_token:
                    raise ProtocolError(
                        "refresh token exchange returned no access token",
                        transition="exchange_refresh_token",
                    )

            try:
                claims = RefreshTokenClaims.from_token(refresh_token)
            except SteamAuthError as e:
                e.transition = e.transition or transition
                raise

            rotated = refresh_token != current.refresh_token
            updated = replace(
                current,
                access_token=access_token,
                refresh_token=refresh_token,
                claims=claims,
            )
            artifacts = (
                SessionArtifacts.create(steam_id, access_token) if rotated else self._artifacts
            )

            if rotated and artifacts is not None:
                self._store_cookies(artifacts)

            self._tokens = updated
            self._artifacts = artifacts
            if self._state not in (SessionState.AUTHENTICATED, SessionState.FINALIZED):
                self._state = SessionState.AUTHENTICATED

            if rotated:
                self._finalize(updated)

            return rotated

    def _store_cookies(self, artifacts: SessionArtifacts) -> None:
        if self._cookie_store is None:
            return
        try:
            self._cookie_store.store_session_cookies(artifacts.session_id, artifacts.login_secure)
        except Exception as e:
            raise SteamAuthError(
                f"storing session cookies failed: {e}", transition="finalize"
            ) from e

    def _finalize(self, tokens: SessionTokens) -> None:
        if self._token_storage is not None:
            if not self._token_storage.save_tokens(tokens):
                self.logger.warning("Failed to persist tokens to storage")

        self._state = SessionState.FINALIZED
        self.logger.info("Session finalized with rotated refresh token")

    # ------------------------------------------------------------------ #
    # Background refresh                                                 #
    # ------------------------------------------------------------------ #
    def begin_polling(self, interval: float | None = None) -> asyncio.Task:
        """
        Start the background refresh task.

        Polls every `interval` seconds (the server poll interval by default).
        Calling it while a task is running returns that task.

        ## Raises:
        - `SessionNotReadyError`: If `authenticate()` has not completed
        """
        if not self.is_authenticated():
            raise SessionNotReadyError("authenticate() must complete before polling")

        task = self._poll_task
        if task is not None and not task.done():
            return task

        self._poll_task = asyncio.create_task(
            self._polling_loop(interval), name=f"steamauth-poll-{self.account_name}"
        )
        return self._poll_task

    async def _polling_loop(self, interval: float | None) -> None:
        self.logger.info("Background session polling started")
        try:
            while True:
                await asyncio.sleep(interval or self._current_tokens().poll_interval)
                try:
                    await self.poll()
                except Exception as e:
                    self.logger.error(f"Error polling session: {e}", exc_info=True)
                    self._report_error(e)
        finally:
            self.logger.info("Background session polling stopped")

    def _report_error(self, error: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception as e:
            self.logger.error(f"Poll error callback failed: {e}", exc_info=True)

    async def stop_polling(self) -> None:
        """Cancel the background task and wait for it to finish."""
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> "AuthSessionMachine":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop_polling()

    # ------------------------------------------------------------------ #
    # Confirmation signing                                               #
    # ------------------------------------------------------------------ #
    def sign(self, tag: str) -> bytes:
        """
        Confirmation key for one operation, at aligned server time.

        ## Args:
        - `tag` (str): Logical action name, e.g. `"list"`, `"details"`,
          `"accept"`, `"reject"`. Keys are not reusable across tags.

        ## Raises:
        - `InputError`: If `tag` is empty
        - `NotAlignedError`: If server time was never aligned
        - `MissingSecretError`: If no identity secret is configured
        """
        if not tag:
            raise InputError("an operation tag is required to sign confirmations")
        return self._secrets.confirmation_key(self._aligner.now(), tag)

    def confirmation_params(
        self, tag: str, operation: ConfirmationOperation | None = None
    ) -> dict[str, str]:
        """
        Query/form parameters for a mobile confirmation request, signed fresh.

        ## Returns:
        - `dict`: `p` device id, `a` account, `k` base64 key, `t` time,
          `m` mode, `tag`, plus `op`/`cid`/`ck` for an operation
        """
        steam_id = self._steam_id
        if steam_id is None:
            raise SessionNotReadyError("no account identifier yet")
        if not tag:
            raise InputError("an operation tag is required to sign confirmations")

        now = self._aligner.now()
        key = self._secrets.confirmation_key(now, tag)
        params = {
            "p": device_id(steam_id),
            "a": str(steam_id),
            "k": base64.b64encode(key).decode("ascii"),
            "t": str(now),
            "m": CONFIRMATION_MODE,
            "tag": tag,
        }
        if operation is not None:
            params["op"] = operation.action
            params["cid"] = operation.confirmation_id
            params["ck"] = operation.nonce
        return params

    # ------------------------------------------------------------------ #
    # Diagnostics / teardown                                             #
    # ------------------------------------------------------------------ #
    def get_token_info(self) -> dict[str, str | bool | int | None]:
        """
        Token state for debugging; never contains full tokens.

        ## Returns:
        - `dict`: `authenticated`, `state`, `steam_id`,
          `access_token_preview`, `expires_at`, `is_expired`, `polling`
        """
        tokens = self._tokens
        if tokens is None or not tokens.refresh_token:
            return {"authenticated": False, "state": self._state.value}

        return {
            "authenticated": self.is_authenticated(),
            "state": self._state.value,
            "steam_id": str(self._steam_id),
            "access_token_preview": (
                tokens.access_token[:20] + "..." if tokens.access_token else None
            ),
            "expires_at": tokens.expires_at,
            "is_expired": tokens.is_expired,
            "polling": self.is_polling,
        }

    async def logout(self) -> None:
        """Stop polling and drop all session state and cookies."""
        await self.stop_polling()
        async with self._lock:
            self._tokens = None
            self._artifacts = None
            self._steam_id = None
        clear = getattr(self._cookie_store, "clear_session_cookies", None)
        if callable(clear):
            clear()
        self._state = SessionState.UNAUTHENTICATED
        self.logger.info("Logged out - session state cleared")

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #
    def _current_tokens(self) -> SessionTokens:
        if self._tokens is None:
            raise SessionNotReadyError("no login session started")
        return self._tokens

    async def _remote(self, transition: str, call: Awaitable[T]) -> T:
        """Await a collaborator call, wrapping its failure with context."""
        try:
            return await call
        except SteamAuthError as e:
            e.transition = e.transition or transition
            raise
        except Exception as e:
            raise RemoteCallFailedError(
                f"{transition} failed: {e}", transition=transition
            ) from e

    def _fail(self, error: SteamAuthError) -> None:
        self._state = SessionState.FAILED
        self._failure = error
        self.logger.error(f"❌ Login failed: {error}")
