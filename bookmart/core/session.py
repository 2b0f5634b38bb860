from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from bookmart.core.errors import AuthError, ValidationError


LOGGER = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(slots=True, frozen=True)
class Viewer:
    id: str
    email: str | None


class SessionProvider:
    """
    Thin wrapper over the Supabase auth client. Only identity is exposed;
    tokens stay inside the client library.
    """

    def __init__(self, client: Any) -> None:
        self.auth = client.auth

    def current_user(self) -> Viewer | None:
        try:
            session = self.auth.get_session()
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Session lookup failed: %s", exc)
            return None
        user = getattr(session, "user", None) if session else None
        return _viewer_from_user(user)

    def sign_in(self, email: str, password: str) -> Viewer:
        response = self._call("sign in", self.auth.sign_in_with_password, {"email": email, "password": password})
        viewer = _viewer_from_user(getattr(response, "user", None))
        if viewer is None:
            raise AuthError("Sign in did not return a user.")
        return viewer

    def sign_up(self, email: str, password: str) -> Viewer | None:
        validate_new_password(password, password)
        response = self._call("sign up", self.auth.sign_up, {"email": email, "password": password})
        # None until the address is confirmed when confirmation is enabled.
        return _viewer_from_user(getattr(response, "user", None))

    def sign_out(self) -> None:
        self._call("sign out", self.auth.sign_out)

    def send_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        options = {"redirect_to": redirect_to} if redirect_to else {}
        self._call("password reset", self.auth.reset_password_for_email, email, options)

    def change_password(self, new_password: str, confirm_password: str) -> None:
        validate_new_password(new_password, confirm_password)
        try:
            self.auth.update_user({"password": new_password})
        except Exception as exc:  # noqa: BLE001
            if "weak" in str(exc).lower() or getattr(exc, "code", None) == "weak_password":
                raise AuthError("Password is too weak. Please use a stronger password") from exc
            raise AuthError("Failed to update password") from exc

    def _call(self, action: str, method: Any, *args: Any) -> Any:
        try:
            return method(*args)
        except Exception as exc:  # noqa: BLE001
            message = getattr(exc, "message", None) or str(exc)
            raise AuthError(f"{action} failed: {message}") from exc


def validate_new_password(new_password: str, confirm_password: str) -> None:
    if len(new_password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if new_password != confirm_password:
        raise ValidationError("password", "Passwords do not match")


def _viewer_from_user(user: Any) -> Viewer | None:
    if user is None:
        return None
    user_id = getattr(user, "id", None)
    if not user_id:
        return None
    return Viewer(id=str(user_id), email=getattr(user, "email", None))
