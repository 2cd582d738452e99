"""
Exception types raised by the steamauth engine.

The hierarchy mirrors how callers are expected to react:

- `InputError` - the caller passed something malformed; never retried.
- `CryptoError` - the current login attempt cannot continue.
- `ProtocolError` - the server answered with something this engine does not
  support or cannot decode; login is aborted.
- `TransientRemoteError` - a remote call failed; the background refresh loop
  logs it and retries on the next tick, the foreground flow surfaces it.
- `StateError` - an operation was called before its prerequisites ran.

Every error carries the `transition` it was raised from (when raised by the
session machine) and chains the collaborator error as `__cause__`.
"""


class SteamAuthError(Exception):
    """Base exception for all steamauth errors."""

    def __init__(self, message: str, *args, transition: str | None = None, **kwargs):
        super().__init__(message, *args)
        self.message = message
        self.transition = transition
        self.details = kwargs

    def __str__(self) -> str:
        if self.transition:
            return f"[{self.transition}] {self.message}"
        return self.message


# --------------------------------------------------------------------------- #
# Input                                                                       #
# --------------------------------------------------------------------------- #
class InputError(SteamAuthError):
    """Raised for malformed caller input."""


class EmptyInputError(InputError):
    """Raised when an empty string is parsed as an identifier."""


class NotANumberError(InputError):
    """Raised when an identifier string is not an unsigned 64-bit decimal."""


class InvalidSecretError(InputError):
    """Raised when a stored second-factor secret cannot be decoded."""


# --------------------------------------------------------------------------- #
# Crypto                                                                      #
# --------------------------------------------------------------------------- #
class CryptoError(SteamAuthError):
    """Raised when a cryptographic operation cannot be performed."""


class KeyMissingError(CryptoError):
    """Raised when no usable public key material was supplied."""


class PlaintextTooLargeError(CryptoError):
    """Raised when a payload does not fit the modulus minus padding."""


class MissingSecretError(CryptoError):
    """Raised when a time code is requested without its secret."""


class CredentialEncryptionFailedError(CryptoError):
    """Raised when fetching the public key or encrypting the password fails."""


# --------------------------------------------------------------------------- #
# Protocol                                                                    #
# --------------------------------------------------------------------------- #
class ProtocolError(SteamAuthError):
    """Raised when the server response cannot be used to continue login."""


class UnsupportedConfirmationMethodError(ProtocolError):
    """Raised when the device-code confirmation method is not offered."""


class MalformedWeakTokenError(ProtocolError):
    """Raised when the weak token subject is not a valid identifier."""


class InvalidIndividualIdentifierError(ProtocolError):
    """Raised when the identifier may not receive a Guard code."""


class MalformedRefreshTokenError(ProtocolError):
    """Raised when the refresh token is not a three segment base64url JWT."""


class MissingExpirationClaimError(ProtocolError):
    """Raised when the refresh token carries no ``exp`` claim."""


class NoRefreshTokenIssuedError(ProtocolError):
    """Raised when polling finished without a refresh token."""


# --------------------------------------------------------------------------- #
# Remote                                                                      #
# --------------------------------------------------------------------------- #
class TransientRemoteError(SteamAuthError):
    """Raised when a remote collaborator call fails."""


class TimeQueryFailedError(TransientRemoteError):
    """Raised when the remote time query fails."""


class RemoteCallFailedError(TransientRemoteError):
    """Raised when any other collaborator call fails during a transition."""


# --------------------------------------------------------------------------- #
# State                                                                       #
# --------------------------------------------------------------------------- #
class StateError(SteamAuthError):
    """Raised when an operation is invoked out of order."""


class NotAlignedError(StateError):
    """Raised when aligned time is requested before alignment succeeded."""


class SessionNotReadyError(StateError):
    """Raised when a session operation requires a completed login."""
