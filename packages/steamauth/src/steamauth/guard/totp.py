"""
# Time-Based Guard Codes and Confirmation Keys

Two HMAC-SHA1 outputs derived from the second-factor secrets:

- **Guard code**: 5 characters a human could type, derived from the shared
  secret and the current 30 second time step.
- **Confirmation key**: raw 20 byte HMAC over a timestamp and an operation
  tag, derived from the identity secret. Sent base64-encoded with every
  mobile confirmation request.

Both must be computed from server-aligned time (see `ServerTimeAligner`),
the server accepts roughly one time step of drift.
"""

import base64
import binascii
import hashlib
import hmac
import struct
from dataclasses import dataclass, field

from ..errors import InvalidSecretError, MissingSecretError

GUARD_CODE_ALPHABET = "23456789BCDFGHJKMNPQRTVWXY"
GUARD_CODE_LENGTH = 5
TIME_STEP_SECONDS = 30
MAX_TAG_LENGTH = 32


def generate_guard_code(secret: bytes, tag: str, unix_time: int) -> str:
    """
    Generate the 5 character Guard code for `unix_time`.

    ## Algorithm:
    1. Counter = `unix_time // 30`, packed as 8 big-endian bytes
    2. HMAC-SHA1 of the counter keyed by the shared secret
    3. Offset = low nibble of the last digest byte; read 4 big-endian bytes
       there and clear the top bit
    4. Five times: take `value % 26` as an index into the alphabet, then
       `value //= 26` (least significant character first)

    ## Args:
    - `secret` (bytes): Decoded shared secret
    - `tag` (str): Logical action the code is generated for. The code itself
      does not depend on it.
    - `unix_time` (int): Aligned server time in seconds

    ## Raises:
    - `MissingSecretError`: If `secret` is empty
    """
    if not secret:
        raise MissingSecretError(f"shared secret required to generate {tag!r} code")

    counter = struct.pack(">Q", int(unix_time) // TIME_STEP_SECONDS)
    digest = hmac.new(secret, counter, hashlib.sha1).digest()

    start = digest[19] & 0x0F
    (full_code,) = struct.unpack(">I", digest[start : start + 4])
    full_code &= 0x7FFFFFFF

    chars = []
    for _ in range(GUARD_CODE_LENGTH):
        full_code, index = divmod(full_code, len(GUARD_CODE_ALPHABET))
        chars.append(GUARD_CODE_ALPHABET[index])
    return "".join(chars)


def generate_confirmation_key(secret: bytes, unix_time: int, tag: bytes | str) -> bytes:
    """
    Sign `tag` at `unix_time` with the identity secret.

    The signed buffer is 8 big-endian bytes of `unix_time` followed by at most
    32 bytes of the tag (longer tags are cut, an empty tag adds nothing).

    ## Returns:
    - `bytes`: Raw 20 byte HMAC-SHA1 digest. Base64 encode before sending.

    ## Raises:
    - `MissingSecretError`: If `secret` is empty
    """
    if not secret:
        raise MissingSecretError("identity secret required to sign confirmations")

    if isinstance(tag, str):
        tag = tag.encode("utf-8")

    buffer = struct.pack(">Q", int(unix_time)) + tag[:MAX_TAG_LENGTH]
    return hmac.new(secret, buffer, hashlib.sha1).digest()


def device_id(steam_id: object) -> str:
    """Return the mobile device id the confirmation endpoints expect."""
    checksum = hashlib.sha1(str(steam_id).encode("utf-8")).digest()
    return "android:" + base64.b64encode(checksum).decode("ascii")


def _decode_secret(name: str, value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidSecretError(f"error decoding {name}: {e}") from e


@dataclass(frozen=True, repr=False)
class GuardSecrets:
    """
    The two second-factor secrets of an account, decoded once.

    ## Attributes:
    - `shared_secret` (bytes): Key for Guard codes
    - `identity_secret` (bytes): Key for confirmation signatures

    `repr()` never shows the key material.
    """

    shared_secret: bytes = field(default=b"")
    identity_secret: bytes = field(default=b"")

    @classmethod
    def from_base64(cls, shared_secret: str, identity_secret: str = "") -> "GuardSecrets":
        """
        Decode both secrets from their stored base64 form.

        ## Raises:
        - `InvalidSecretError`: If either value is not valid base64
        """
        return cls(
            shared_secret=_decode_secret("shared secret", shared_secret),
            identity_secret=_decode_secret("identity secret", identity_secret),
        )

    def __repr__(self) -> str:
        return (
            f"GuardSecrets(shared_secret={'<set>' if self.shared_secret else '<empty>'}, "
            f"identity_secret={'<set>' if self.identity_secret else '<empty>'})"
        )

    def guard_code(self, tag: str, unix_time: int) -> str:
        return generate_guard_code(self.shared_secret, tag, unix_time)

    def confirmation_key(self, unix_time: int, tag: bytes | str) -> bytes:
        return generate_confirmation_key(self.identity_secret, unix_time, tag)
