"""Session and identity package."""

from moneymate.auth.session import (
    AuthProviderInterface,
    AuthState,
    NotAuthenticatedError,
    SessionContext,
    SettingsAuthProvider,
    UserIdentity,
)

__all__ = [
    "AuthProviderInterface",
    "AuthState",
    "NotAuthenticatedError",
    "SessionContext",
    "SettingsAuthProvider",
    "UserIdentity",
]
