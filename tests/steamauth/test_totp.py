"""
Unit tests for Guard codes and confirmation keys.

Expected values are recomputed here from the HMAC-SHA1 definition rather
than through the module under test.
"""

import base64
import hashlib
import hmac
import struct

import pytest

from steamauth.errors import InvalidSecretError, MissingSecretError
from steamauth.guard import (
    GUARD_CODE_ALPHABET,
    GuardSecrets,
    device_id,
    generate_confirmation_key,
    generate_guard_code,
)

SHARED_SECRET_B64 = "cnOgv/KdpLoP6Nbh0GMkXkPXALQ="
IDENTITY_SECRET_B64 = base64.b64encode(b"identity-secret-bytes").decode()
SHARED_SECRET = base64.b64decode(SHARED_SECRET_B64)
IDENTITY_SECRET = base64.b64decode(IDENTITY_SECRET_B64)


def _reference_code(secret: bytes, unix_time: int) -> str:
    digest = hmac.new(secret, (unix_time // 30).to_bytes(8, "big"), hashlib.sha1).digest()
    offset = digest[-1] & 0xF
    value = int.from_bytes(digest[offset : offset + 4], "big") & 0x7FFFFFFF
    code = ""
    for _ in range(5):
        code += GUARD_CODE_ALPHABET[value % 26]
        value //= 26
    return code


class TestGuardCode:
    """Tests for generate_guard_code()."""

    @pytest.mark.parametrize("unix_time", [0, 29, 30, 1_700_000_000, 2**40])
    def test_matches_reference(self, unix_time):
        assert generate_guard_code(SHARED_SECRET, "conf", unix_time) == _reference_code(
            SHARED_SECRET, unix_time
        )

    def test_known_code_at_time_zero(self):
        """Test a fixed code for a known secret."""
        assert generate_guard_code(SHARED_SECRET, "conf", 0) == "W3J46"

    def test_shape(self):
        code = generate_guard_code(SHARED_SECRET, "conf", 1_700_000_000)

        assert len(code) == 5
        assert all(c in GUARD_CODE_ALPHABET for c in code)

    def test_stable_within_time_step(self):
        """Test all times in one 30 second window give the same code."""
        start = 1_700_000_010 - 1_700_000_010 % 30
        codes = {generate_guard_code(SHARED_SECRET, "conf", start + i) for i in range(30)}

        assert len(codes) == 1

    def test_changes_between_steps(self):
        codes = {generate_guard_code(SHARED_SECRET, "conf", t * 30) for t in range(20)}

        assert len(codes) > 1

    def test_tag_does_not_change_code(self):
        assert generate_guard_code(SHARED_SECRET, "conf", 90) == generate_guard_code(
            SHARED_SECRET, "other", 90
        )

    def test_missing_secret(self):
        with pytest.raises(MissingSecretError):
            generate_guard_code(b"", "conf", 0)


class TestConfirmationKey:
    """Tests for generate_confirmation_key()."""

    def test_matches_reference(self):
        expected = hmac.new(
            IDENTITY_SECRET, struct.pack(">Q", 1_700_000_000) + b"list", hashlib.sha1
        ).digest()

        assert generate_confirmation_key(IDENTITY_SECRET, 1_700_000_000, "list") == expected

    def test_bytes_and_str_tags_agree(self):
        assert generate_confirmation_key(IDENTITY_SECRET, 5, "accept") == generate_confirmation_key(
            IDENTITY_SECRET, 5, b"accept"
        )

    def test_empty_tag_signs_time_only(self):
        expected = hmac.new(IDENTITY_SECRET, struct.pack(">Q", 5), hashlib.sha1).digest()

        assert generate_confirmation_key(IDENTITY_SECRET, 5, "") == expected

    def test_long_tag_truncated(self):
        """Test tags longer than 32 bytes are cut."""
        long_tag = "t" * 40

        assert generate_confirmation_key(IDENTITY_SECRET, 5, long_tag) == generate_confirmation_key(
            IDENTITY_SECRET, 5, "t" * 32
        )

    def test_differs_by_tag_and_time(self):
        key = generate_confirmation_key(IDENTITY_SECRET, 5, "list")

        assert key != generate_confirmation_key(IDENTITY_SECRET, 5, "details")
        assert key != generate_confirmation_key(IDENTITY_SECRET, 6, "list")

    def test_digest_length(self):
        assert len(generate_confirmation_key(IDENTITY_SECRET, 5, "list")) == 20

    def test_missing_secret(self):
        with pytest.raises(MissingSecretError):
            generate_confirmation_key(b"", 5, "list")


class TestGuardSecrets:
    """Tests for GuardSecrets."""

    def test_from_base64(self):
        secrets = GuardSecrets.from_base64(SHARED_SECRET_B64, IDENTITY_SECRET_B64)

        assert secrets.shared_secret == SHARED_SECRET
        assert secrets.identity_secret == IDENTITY_SECRET

    def test_identity_secret_optional(self):
        secrets = GuardSecrets.from_base64(SHARED_SECRET_B64)

        assert secrets.identity_secret == b""
        with pytest.raises(MissingSecretError):
            secrets.confirmation_key(5, "list")

    def test_invalid_base64(self):
        with pytest.raises(InvalidSecretError):
            GuardSecrets.from_base64("not base64!!")

    def test_repr_hides_secrets(self):
        secrets = GuardSecrets.from_base64(SHARED_SECRET_B64, IDENTITY_SECRET_B64)

        assert SHARED_SECRET_B64 not in repr(secrets)
        assert repr(SHARED_SECRET) not in repr(secrets)
        assert "<set>" in repr(secrets)

    def test_methods_delegate(self):
        secrets = GuardSecrets.from_base64(SHARED_SECRET_B64, IDENTITY_SECRET_B64)

        assert secrets.guard_code("conf", 60) == _reference_code(SHARED_SECRET, 60)
        assert secrets.confirmation_key(60, "list") == generate_confirmation_key(
            IDENTITY_SECRET, 60, "list"
        )


class TestDeviceId:
    """Tests for device_id()."""

    def test_format(self):
        checksum = hashlib.sha1(b"76561197960287930").digest()

        assert device_id("76561197960287930") == "android:" + base64.b64encode(checksum).decode()
