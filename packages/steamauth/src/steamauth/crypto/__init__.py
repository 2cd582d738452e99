from .rsa import EncryptedPassword, PublicKeyMaterial, encrypt, encrypt_password

__all__ = [
    "EncryptedPassword",
    "PublicKeyMaterial",
    "encrypt",
    "encrypt_password",
]
