"""
Identity service.

Wraps Django authentication and SimpleJWT behind a small interface so the
checkout pipeline receives an explicit Session instead of reading the
request user from ambient state.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from django.contrib.auth import authenticate
from django.utils import timezone

from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .exceptions import AuthenticationRequiredError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """An authenticated operator session."""

    user: object
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user is not None and getattr(self.user, "is_authenticated", False))

    @property
    def role(self) -> Optional[str]:
        return getattr(self.user, "role", None)

    def as_dict(self):
        data = {
            "user_id": self.user.pk,
            "username": self.user.get_username(),
            "name": self.user.get_full_name() or self.user.get_username(),
            "role": self.role,
        }
        if self.access_token:
            data["access"] = self.access_token
            data["refresh"] = self.refresh_token
        return data


class IdentityService:
    """Authenticates operators and resolves the current session."""

    @staticmethod
    def get_session(request) -> Optional[Session]:
        """Return the session for an authenticated request, or None."""
        user = getattr(request, "user", None)
        if user is None or not user.is_authenticated or not user.is_active:
            return None
        return Session(user=user)

    @staticmethod
    def sign_in(username: str, password: str) -> Session:
        """
        Authenticate with username and password and issue a JWT pair.

        Raises:
            AuthenticationRequiredError: If the credentials are wrong or the
                account is disabled.
        """
        if not username or not password:
            raise ValidationError("Username and password are required.")

        user = authenticate(username=username, password=password)
        if user is None:
            logger.warning(f"Failed sign-in attempt for username '{username}'")
            raise AuthenticationRequiredError("Invalid username or password.")

        refresh = RefreshToken.for_user(user)
        refresh["role"] = user.role

        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])

        logger.info(f"User {user.username} signed in as {user.role}")
        return Session(
            user=user,
            access_token=str(refresh.access_token),
            refresh_token=str(refresh),
        )

    @staticmethod
    def sign_out(refresh_token: str) -> None:
        """Blacklist the refresh token so it cannot be used again."""
        if not refresh_token:
            raise ValidationError("A refresh token is required to sign out.")
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError as e:
            raise ValidationError(f"Invalid refresh token: {str(e)}")


def require_session(session: Optional[Session]) -> Session:
    """Return the session if it is authenticated, else raise."""
    if session is None or not session.is_authenticated:
        raise AuthenticationRequiredError("An active operator session is required.")
    return session
