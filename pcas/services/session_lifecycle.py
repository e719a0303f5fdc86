"""Session Lifecycle Controller — login, logout, registration and session bootstrap.

Invariants:
    - register() never authenticates; the caller must log in afterwards
    - login() success: credential stored under TOKEN_KEY, user set, authenticated
    - get_current_user() failure (including no credential): credential removed,
      user None, not authenticated
    - logout() always ends logged out: credential removed, every
      APPLICATION_PREFIX key purged, LOGGED_OUT published; a failing server
      call is recorded in error only
    - initialize_auth() reads the stored credential without contacting the backend

Design Decisions:
    - Publishes SessionEvent.LOGGED_IN and LOGGED_OUT on an explicit bus;
      stores and form controllers reset themselves in their subscriptions
    - Server notification on logout only when a credential exists (nothing
      to revoke otherwise)
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from pcas.core.cache_keys import APPLICATION_PREFIX, TOKEN_KEY
from pcas.core.domain_types import Credential, SessionEvent, UserRole
from pcas.core.errors import (
    FormValidationError, NotAuthenticatedError, PcasError, ServerResponseError,
)
from pcas.core.session_events import SessionEvents
from pcas.infrastructure.api_client import ApiGateway
from pcas.infrastructure.local_cache import LocalCache
from pcas.schemas.user import LoginRequest, RegisterUserRequest, User
from pcas.services.record_store import validation_problems

logger = logging.getLogger(__name__)

AUTH_API = "/api/auth"


@dataclass
class AuthState:
    user: User | None = None
    token: Credential | None = None
    is_loading: bool = False
    error: str | None = None
    is_authenticated: bool = False


def _coerce(model: type, payload: Any):
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(dict(payload))
    except ValidationError as e:
        raise FormValidationError(validation_problems(e)) from e


def _parse_user(raw: Any) -> User:
    try:
        return User.model_validate(raw)
    except ValidationError as e:
        raise ServerResponseError("Unexpected response from server", None) from e


class SessionLifecycleController:
    """Owns the credential and the authenticated user."""

    def __init__(self, gateway: ApiGateway, cache: LocalCache, events: SessionEvents):
        self.gateway = gateway
        self.cache = cache
        self.events = events
        self.state = AuthState()

    @property
    def user(self) -> User | None:
        return self.state.user

    @property
    def is_authenticated(self) -> bool:
        return self.state.is_authenticated

    def stored_credential(self) -> Credential | None:
        return self.cache.get_text(TOKEN_KEY)

    # ─── remote operations ──────────────────────────────────────

    async def register(
        self, payload: RegisterUserRequest | Mapping[str, Any],
    ) -> User | None:
        """Create an account. The session stays unauthenticated."""
        self.state.is_loading = True
        self.state.error = None
        try:
            request = _coerce(RegisterUserRequest, payload)
            envelope = await self.gateway.post(
                f"{AUTH_API}/register", request.to_wire(),
            )
            user = _parse_user(envelope.data_field("user"))
        except PcasError as e:
            self.state.is_loading = False
            self.state.error = e.message or "Registration failed"
            self.state.is_authenticated = False
            return None
        self.state.is_loading = False
        self.state.error = None
        logger.info("Account registered", extra={"user_id": user.id})
        return user

    async def login(self, credentials: LoginRequest | Mapping[str, Any]) -> bool:
        self.state.is_loading = True
        self.state.error = None
        try:
            request = _coerce(LoginRequest, credentials)
            envelope = await self.gateway.post(
                f"{AUTH_API}/login", request.to_wire(),
            )
            token = envelope.data_field("token")
            if not token:
                raise ServerResponseError("Login response did not include a token", None)
            user = _parse_user(envelope.data_field("user"))
        except PcasError as e:
            self.state.is_loading = False
            self.state.error = e.message or "Login failed"
            self.state.is_authenticated = False
            return False
        self.cache.set_text(TOKEN_KEY, token)
        self.state.is_loading = False
        self.state.user = user
        self.state.token = token
        self.state.is_authenticated = True
        self.state.error = None
        logger.info("Logged in", extra={"user_id": user.id})
        self.events.publish(SessionEvent.LOGGED_IN)
        return True

    async def get_current_user(self) -> User | None:
        """Re-hydrate the session from the stored credential."""
        self.state.is_loading = True
        token = self.stored_credential()
        try:
            if not token:
                raise NotAuthenticatedError()
            envelope = await self.gateway.get(f"{AUTH_API}/me")
            user = _parse_user(envelope.data_field("user"))
        except PcasError as e:
            self.cache.remove(TOKEN_KEY)
            self.state.is_loading = False
            self.state.error = e.message or "Failed to get user data"
            self.state.is_authenticated = False
            self.state.token = None
            self.state.user = None
            return None
        self.state.is_loading = False
        self.state.user = user
        self.state.token = token
        self.state.is_authenticated = True
        self.state.error = None
        return user

    async def get_users_by_role(self, role: UserRole | str) -> list[User]:
        """List users of a role. Touches only is_loading/error."""
        self.state.is_loading = True
        try:
            if not self.stored_credential():
                raise NotAuthenticatedError()
            role_value = UserRole(role).value
            envelope = await self.gateway.get(f"{AUTH_API}/users/{role_value}")
            users = [_parse_user(u) for u in envelope.data_field("users") or []]
        except ValueError:
            self.state.is_loading = False
            self.state.error = f"Unknown role: {role}"
            return []
        except PcasError as e:
            self.state.is_loading = False
            self.state.error = e.message or "Failed to get users"
            return []
        self.state.is_loading = False
        self.state.error = None
        return users

    async def logout(self) -> None:
        """Notify the backend (best effort), then clear the local session."""
        self.state.is_loading = True
        failure: str | None = None
        if self.stored_credential():
            try:
                await self.gateway.post(f"{AUTH_API}/logout")
            except PcasError as e:
                failure = e.message or "Logout failed"
                logger.warning(
                    f"Logout notification failed: {failure}",
                    extra={"error_code": e.code},
                )
        self._clear_local_session()
        self.state.error = failure

    # ─── local operations ───────────────────────────────────────

    def logout_local(self) -> None:
        """Clear the local session without contacting the backend."""
        self._clear_local_session()

    def initialize_auth(self) -> Credential | None:
        token = self.stored_credential()
        if token:
            self.state.token = token
        return token

    def clear_error(self) -> None:
        self.state.error = None

    def _clear_local_session(self) -> None:
        self.cache.remove(TOKEN_KEY)
        self.cache.purge_prefix(APPLICATION_PREFIX)
        self.state.user = None
        self.state.token = None
        self.state.is_authenticated = False
        self.state.error = None
        self.state.is_loading = False
        self.events.publish(SessionEvent.LOGGED_OUT)
        logger.info("Logged out")
