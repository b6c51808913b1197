"""
Session Context

Wraps the identity provider's auth events into a current-user identity
and loading/authenticated flags. Login and logout are fire-and-forget:
the new state arrives through the listeners, not as a return value.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, Field

from moneymate.config import SessionSettings, get_settings


logger = structlog.get_logger(__name__)


class UserIdentity(BaseModel):
    """The signed-in user as the ledger sees them."""

    id: str = Field(..., min_length=1)
    email: str
    display_name: Optional[str] = None

    @property
    def greeting_name(self) -> str:
        """Display name, or the local part of the email."""
        return self.display_name or self.email.split("@")[0]


class AuthState(BaseModel):
    user: Optional[UserIdentity] = None
    is_loading: bool = True
    is_authenticated: bool = False


AuthListener = Callable[[AuthState], None]


class NotAuthenticatedError(Exception):
    """A ledger operation was attempted without a signed-in user."""
    pass


class AuthProviderInterface(ABC):
    """Identity source behind the session."""

    @abstractmethod
    def sign_in(self) -> Optional[UserIdentity]:
        """Start a sign-in. Returns the identity once known."""
        pass

    @abstractmethod
    def sign_out(self) -> None:
        pass


class SettingsAuthProvider(AuthProviderInterface):
    """Signs in the single identity configured in the environment."""

    def __init__(self, settings: Optional[SessionSettings] = None):
        self._settings = settings

    def sign_in(self) -> Optional[UserIdentity]:
        settings = self._settings or get_settings().session
        return UserIdentity(
            id=settings.id,
            email=settings.email,
            display_name=settings.display_name,
        )

    def sign_out(self) -> None:
        return None


class SessionContext:
    """
    Current auth state plus change notifications.

    Listeners are called synchronously after every state change.
    """

    def __init__(self, provider: AuthProviderInterface):
        self._provider = provider
        self._state = AuthState()
        self._listeners: list[AuthListener] = []

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> Optional[UserIdentity]:
        return self._state.user

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener; it immediately receives the current state."""
        self._listeners.append(listener)
        listener(self._state)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: AuthState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def login(self) -> None:
        """Ask the provider to sign in. Failures leave the session signed out."""
        self._set_state(self._state.model_copy(update={"is_loading": True}))
        try:
            user = self._provider.sign_in()
        except Exception as e:
            logger.error("login_failed", error=str(e))
            self._set_state(AuthState(is_loading=False))
            return
        self._set_state(AuthState(
            user=user,
            is_loading=False,
            is_authenticated=user is not None,
        ))
        if user is not None:
            logger.info("user_signed_in", user_id=user.id)

    def logout(self) -> None:
        user = self._state.user
        try:
            self._provider.sign_out()
        except Exception as e:
            logger.error("logout_failed", error=str(e))
        self._set_state(AuthState(is_loading=False))
        if user is not None:
            logger.info("user_signed_out", user_id=user.id)

    def require_user(self) -> UserIdentity:
        if not self._state.is_authenticated or self._state.user is None:
            raise NotAuthenticatedError("Please sign in first")
        return self._state.user
