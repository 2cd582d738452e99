"""
Login session, token rotation and web session artifacts.
"""

from .api import AuthApi, DeviceDetails, GuardType, PlatformType, SessionCookieStore
from .auth_storage import SecureTokenStorage
from .cookie_manager import CookieManager
from .session import AuthSessionMachine, ConfirmationOperation, SessionState
from .tokens import RefreshTokenClaims, SessionArtifacts, SessionTokens

__all__ = [
    "AuthApi",
    "AuthSessionMachine",
    "ConfirmationOperation",
    "CookieManager",
    "DeviceDetails",
    "GuardType",
    "PlatformType",
    "RefreshTokenClaims",
    "SecureTokenStorage",
    "SessionArtifacts",
    "SessionCookieStore",
    "SessionState",
    "SessionTokens",
]
