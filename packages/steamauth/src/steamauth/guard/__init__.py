from .time_aligner import ServerTimeAligner
from .totp import (
    GUARD_CODE_ALPHABET,
    GuardSecrets,
    device_id,
    generate_confirmation_key,
    generate_guard_code,
)

__all__ = [
    "GUARD_CODE_ALPHABET",
    "GuardSecrets",
    "ServerTimeAligner",
    "device_id",
    "generate_confirmation_key",
    "generate_guard_code",
]
