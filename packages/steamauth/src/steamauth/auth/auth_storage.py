import json
import logging
import os
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from ..errors import SteamAuthError
from .tokens import SessionTokens

# 0o700 = Owner has read/write/execute, others have no access
DIR_PERMISSIONS = 0o700
# 0o600 = Owner has read/write, others have no access
FILE_PERMISSIONS = 0o600

DEFAULT_STORAGE_DIR = Path.home() / ".steamauth"


class SecureTokenStorage:
    """
    # Encrypted Session Token Storage

    Persists the latest `SessionTokens` snapshot of an account with Fernet
    (AES-128-CBC + HMAC). Second-factor secrets and passwords are never
    written; only what the session machine already exposes to endpoint
    clients.

    ## Storage Structure:
    ```
    ~/.steamauth/              # Storage directory (mode 0o700)
    ├── key.enc                # Encryption key (mode 0o600)
    └── <account>.tokens.enc   # Encrypted token snapshot (mode 0o600)
    ```

    ## Error Handling:
    Save/load/delete never raise; failures are logged and reported through
    the return value so a broken disk never aborts a login.
    """

    def __init__(self, storage_dir: str | os.PathLike | None = None, account_name: str = "default") -> None:
        self.storage_dir = Path(storage_dir or DEFAULT_STORAGE_DIR)
        self.storage_dir.mkdir(parents=True, exist_ok=True, mode=DIR_PERMISSIONS)

        self.token_file = self.storage_dir / f"{_safe_name(account_name)}.tokens.enc"
        self.key_file = self.storage_dir / "key.enc"

        self.logger = logging.getLogger(__name__)

        self._initialize_encryption_key()

    def _initialize_encryption_key(self) -> None:
        """Load the Fernet key, generating and saving one on first use."""
        if self.key_file.exists():
            self.key = self.key_file.read_bytes()
        else:
            self.key = Fernet.generate_key()
            self.key_file.write_bytes(self.key)
            os.chmod(self.key_file, FILE_PERMISSIONS)

        self.cipher_suite = Fernet(self.key)

    def save_tokens(self, tokens: SessionTokens) -> bool:
        """
        Encrypt and write `tokens`.

        ## Returns:
        - `bool`: True if saved, False if an error occurred (logged)
        """
        try:
            token_data = json.dumps(tokens.to_dict()).encode("utf-8")
            encrypted_data = self.cipher_suite.encrypt(token_data)

            self.token_file.write_bytes(encrypted_data)
            os.chmod(self.token_file, FILE_PERMISSIONS)

            self.logger.debug("Tokens saved securely to encrypted storage")
            return True

        except OSError as e:
            self.logger.error(f"Failed to save tokens: {e}", exc_info=True)
            return False

    def load_tokens(self) -> SessionTokens | None:
        """
        Read and decrypt the stored snapshot.

        ## Returns:
        - `SessionTokens`: If a readable snapshot exists
        - `None`: If there is none, or it cannot be decrypted or decoded
        """
        if not self.token_file.exists():
            self.logger.debug("No saved tokens found in storage")
            return None

        try:
            decrypted_data = self.cipher_suite.decrypt(self.token_file.read_bytes())
            tokens = SessionTokens.from_dict(json.loads(decrypted_data.decode("utf-8")))
            self.logger.debug("Tokens loaded successfully from encrypted storage")
            return tokens

        except (OSError, InvalidToken, ValueError, KeyError, SteamAuthError) as e:
            self.logger.error(f"Failed to load tokens: {e}", exc_info=True)
            return None

    def delete_tokens(self) -> bool:
        """Remove the stored snapshot; True when it is gone afterwards."""
        try:
            self.token_file.unlink(missing_ok=True)
            self.logger.debug("Saved tokens deleted from storage")
            return True

        except OSError as e:
            self.logger.error(f"Failed to delete tokens: {e}", exc_info=True)
            return False

    def has_saved_tokens(self) -> bool:
        return self.token_file.exists()


def _safe_name(account_name: str) -> str:
    cleaned = "".join(c if c.isalnum() or c in "-_." else "_" for c in account_name)
    return cleaned.strip(".") or "default"
