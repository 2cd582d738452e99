"""
# RSA PKCS#1 v1.5 Public-Key Encryption

Encrypts the account password with the public key the login service hands out
per account. Only the encryption half of RSA is needed on the client, so it is
implemented directly on Python integers from the raw modulus and exponent
rather than through a key object.

## Block Format (RFC 8017, section 7.2.1):
```
EM = 0x00 || 0x02 || PS || 0x00 || M
```
- `PS` is at least 8 random, non-zero bytes; `len(EM) == k`, the byte length
  of the modulus.
- Ciphertext is `EM ** e mod n`, big-endian, left-padded to `k` bytes.

## Example:
```python
key = PublicKeyMaterial.from_hex(mod_hex, exp_hex, timestamp)
encrypted = encrypt_password("hunter2", key)
encrypted.encoded, encrypted.timestamp
```
"""

import base64
import secrets
from dataclasses import dataclass

from ..errors import KeyMissingError, PlaintextTooLargeError

# 0x00, 0x02, 8 bytes of minimum padding, 0x00 separator
PKCS1_V15_OVERHEAD = 11


@dataclass(frozen=True)
class PublicKeyMaterial:
    """
    Public key issued by the server for one encryption operation.

    ## Attributes:
    - `modulus` (int): RSA modulus `n`
    - `exponent` (int): RSA public exponent `e`
    - `timestamp` (str): Opaque server token echoed back with the ciphertext
    """

    modulus: int
    exponent: int
    timestamp: str

    @property
    def size_in_bytes(self) -> int:
        return (self.modulus.bit_length() + 7) // 8

    @property
    def max_plaintext_length(self) -> int:
        return self.size_in_bytes - PKCS1_V15_OVERHEAD

    @classmethod
    def from_hex(cls, modulus_hex: str, exponent_hex: str, timestamp: str) -> "PublicKeyMaterial":
        """
        Build key material from the hex strings returned by the key endpoint.

        ## Raises:
        - `KeyMissingError`: If either value is empty or not hexadecimal
        """
        try:
            modulus = int(modulus_hex, 16)
            exponent = int(exponent_hex, 16)
        except (TypeError, ValueError) as e:
            raise KeyMissingError(f"public key is not valid hex: {e}") from e
        return cls(modulus=modulus, exponent=exponent, timestamp=timestamp)


@dataclass(frozen=True)
class EncryptedPassword:
    """Base64 ciphertext plus the key timestamp it must be submitted with."""

    encoded: str
    timestamp: str


def _nonzero_random_bytes(length: int) -> bytes:
    """Return `length` bytes from a CSPRNG, resampling every zero byte."""
    out = bytearray(secrets.token_bytes(length))
    for i in range(length):
        while out[i] == 0:
            out[i] = secrets.token_bytes(1)[0]
    return bytes(out)


def pad_pkcs1_v15(message: bytes, k: int) -> bytes:
    """
    Build the type 2 encryption block for a `k` byte modulus.

    ## Raises:
    - `PlaintextTooLargeError`: If `message` is longer than `k - 11`
    """
    if len(message) > k - PKCS1_V15_OVERHEAD:
        raise PlaintextTooLargeError(
            f"message too long for RSA public key size: {len(message)} > {k - PKCS1_V15_OVERHEAD}",
            length=len(message),
            limit=k - PKCS1_V15_OVERHEAD,
        )
    padding = _nonzero_random_bytes(k - len(message) - 3)
    return b"\x00\x02" + padding + b"\x00" + message


def encrypt(plaintext: bytes, key: PublicKeyMaterial | None) -> bytes:
    """
    Encrypt `plaintext` under `key` with PKCS#1 v1.5 padding.

    ## Returns:
    - `bytes`: Ciphertext of exactly `key.size_in_bytes` bytes

    ## Raises:
    - `KeyMissingError`: If no key, or a zero modulus/exponent, is given
    - `PlaintextTooLargeError`: If `len(plaintext) > k - 11`
    """
    if key is None or key.modulus <= 0 or key.exponent <= 0:
        raise KeyMissingError("public key is missing")

    k = key.size_in_bytes
    em = pad_pkcs1_v15(plaintext, k)

    m = int.from_bytes(em, "big")
    c = pow(m, key.exponent, key.modulus)
    return c.to_bytes(k, "big")


def encrypt_password(password: str, key: PublicKeyMaterial | None) -> EncryptedPassword:
    """Encrypt an account password and base64 encode it for submission."""
    ciphertext = encrypt(password.encode("utf-8"), key)
    return EncryptedPassword(
        encoded=base64.b64encode(ciphertext).decode("ascii"),
        timestamp=key.timestamp,  # type: ignore[union-attr]
    )
