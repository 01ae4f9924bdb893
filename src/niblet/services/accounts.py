"""Account registration and login."""

import re
from dataclasses import dataclass
from typing import Protocol

from niblet.errors import BackendError, InputValidationError

MIN_PASSWORD_LENGTH = 8
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthApi(Protocol):
    """Backend auth endpoints."""

    async def register(self, email: str, password: str) -> dict[str, object]:
        """Create an account."""

    async def login(self, email: str, password: str) -> dict[str, object]:
        """Log in."""


@dataclass(frozen=True)
class AuthSession:
    """Token issued by the backend plus where the user goes next."""

    token: str
    user: dict[str, object]
    redirect: str


@dataclass
class AccountService:
    """Validate account forms before they reach the backend."""

    auth_api: AuthApi

    async def register(
        self,
        email: str,
        password: str,
        confirm_password: str,
        accepted_terms: bool,
    ) -> AuthSession:
        """Create an account; new users always start with onboarding."""
        _validate_email(email)
        _validate_password(password)
        if password != confirm_password:
            raise InputValidationError(
                "Passwords don't match", field="confirm_password"
            )
        if not accepted_terms:
            raise InputValidationError(
                "You must agree to the terms and conditions.",
                field="terms_and_conditions",
            )
        payload = await self.auth_api.register(email.strip(), password)
        return _session_from(payload, redirect="/onboarding")

    async def login(self, email: str, password: str) -> AuthSession:
        """Log in and route the user to onboarding or the dashboard."""
        _validate_email(email)
        if not password:
            raise InputValidationError("Password is required.", field="password")
        payload = await self.auth_api.login(email.strip(), password)
        user = payload.get("user")
        completed = isinstance(user, dict) and bool(user.get("onboardingCompleted"))
        return _session_from(
            payload, redirect="/dashboard" if completed else "/onboarding"
        )


def _validate_email(email: str) -> None:
    if not EMAIL_PATTERN.match(email.strip()):
        raise InputValidationError(
            "Please enter a valid email address.", field="email"
        )


def _validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InputValidationError(
            "Password must be at least 8 characters.", field="password"
        )


def _session_from(payload: dict[str, object], redirect: str) -> AuthSession:
    token = payload.get("token")
    if not isinstance(token, str) or not token:
        raise BackendError("Backend did not return a session token")
    user = payload.get("user")
    return AuthSession(
        token=token, user=user if isinstance(user, dict) else {}, redirect=redirect
    )
