import secrets
import time
from dataclasses import dataclass, field
from typing import Any

from jose import jwt
from jose.exceptions import JWTError

from ..errors import MalformedRefreshTokenError, MissingExpirationClaimError

# Consider the refresh token expired this many seconds early
TOKEN_EXPIRED_BUFFER = 300

SESSION_ID_BYTES = 12


def decode_unverified(token: str) -> dict[str, Any]:
    """
    Decode the claims of a JWT **without** verifying its signature.

    The server's signing key is not available to the client, so claims read
    here (subject, expiration) are trusted as-is. Never use them for anything
    but routing the client's own session.

    ## Raises:
    - `MalformedRefreshTokenError`: If `token` is not three dot-separated
      base64url segments with a JSON object payload
    """
    if not token or token.count(".") != 2:
        raise MalformedRefreshTokenError(
            f"expected 3 parts in JWT, got {len(token.split('.')) if token else 0}"
        )
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise MalformedRefreshTokenError(f"JWT could not be decoded: {e}") from e
    return dict(claims)


@dataclass(frozen=True)
class RefreshTokenClaims:
    """Claims read from the refresh token, signature unverified."""

    sub: str
    exp: int
    iat: int | None = None

    @classmethod
    def from_token(cls, token: str) -> "RefreshTokenClaims":
        """
        ## Raises:
        - `MalformedRefreshTokenError`: If the token cannot be decoded
        - `MissingExpirationClaimError`: If the ``exp`` claim is absent
        """
        claims = decode_unverified(token)
        exp = claims.get("exp")
        if exp is None:
            raise MissingExpirationClaimError("refresh token was missing expiration claim")
        try:
            exp = int(exp)
        except (TypeError, ValueError) as e:
            raise MissingExpirationClaimError(f"refresh token expiration is not numeric: {exp!r}") from e
        iat = claims.get("iat")
        return cls(
            sub=str(claims.get("sub", "")),
            exp=exp,
            iat=int(iat) if isinstance(iat, (int, float)) else None,
        )


@dataclass(frozen=True)
class SessionTokens:
    """
    # Session Token Snapshot

    Immutable snapshot of the token state of one login session. The session
    machine swaps in a new snapshot as a whole, so a reader holding one always
    sees a consistent `client_id`/`access_token`/`refresh_token` triple.

    ## Attributes:
    - `client_id` (str): Current client id, replaced when polls hand out a new one
    - `request_id` (str): Request id of the login session
    - `poll_interval` (float): Seconds between session polls
    - `access_token` (str): Bearer token for API calls, empty until granted
    - `refresh_token` (str): Long-lived token, empty until granted
    - `claims` (RefreshTokenClaims | None): Decoded refresh token claims
    """

    client_id: str
    request_id: str
    poll_interval: float
    access_token: str = ""
    refresh_token: str = ""
    claims: RefreshTokenClaims | None = None

    @property
    def expires_at(self) -> int | None:
        return self.claims.exp if self.claims else None

    @property
    def is_expired(self) -> bool:
        """True once the refresh token is within 5 minutes of its expiry."""
        if self.claims is None:
            return True
        return time.time() >= (self.claims.exp - TOKEN_EXPIRED_BUFFER)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for storage."""
        return {
            "client_id": self.client_id,
            "request_id": self.request_id,
            "poll_interval": self.poll_interval,
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionTokens":
        """
        Rebuild a snapshot from `to_dict()` output.

        Claims are re-derived from the refresh token rather than stored.

        ## Raises:
        - `KeyError`: If required fields are missing
        """
        refresh_token = str(data.get("refresh_token", ""))
        return cls(
            client_id=str(data["client_id"]),
            request_id=str(data["request_id"]),
            poll_interval=float(data["poll_interval"]),
            access_token=str(data.get("access_token", "")),
            refresh_token=refresh_token,
            claims=RefreshTokenClaims.from_token(refresh_token) if refresh_token else None,
        )


@dataclass(frozen=True)
class SessionArtifacts:
    """
    Values handed to cookie-based web endpoints after a token rotation.

    ## Attributes:
    - `session_id` (str): 12 random bytes, hex encoded
    - `login_secure` (str): ``"<steamid>||<access token>"``
    """

    session_id: str
    login_secure: str = field(repr=False)

    @classmethod
    def create(cls, steam_id: object, access_token: str) -> "SessionArtifacts":
        return cls(
            session_id=secrets.token_hex(SESSION_ID_BYTES),
            login_secure=f"{steam_id}||{access_token}",
        )
