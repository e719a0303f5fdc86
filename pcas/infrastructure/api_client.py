"""Remote API Gateway — one httpx client with credential and error-mapping hooks.

Invariants:
    - Every outgoing request carries "Authorization: Bearer <token>" when a
      credential is stored; the credential is read fresh per request
    - A 401 response evicts the stored credential before the error propagates
    - Every failure surfaces as an ApiRequestError subclass whose message is the
      normalized, human-readable text (see normalize_error_message)
    - Single attempt: no retries, httpx default timeout

Design Decisions:
    - httpx event hooks instead of wrapping each call: the header and the
      eviction apply to every request, including ones added later
    - A 2xx envelope with success=false is a failure too (backend signals
      business errors that way)
    - Optional transport argument: tests inject httpx.MockTransport or an
      ASGITransport around a stub backend
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from pcas.core.cache_keys import TOKEN_KEY
from pcas.core.errors import (
    ApiRequestError,
    AuthenticationError,
    ErrorContext,
    NetworkError,
    RequestValidationError,
    ServerResponseError,
)
from pcas.infrastructure.local_cache import LocalCache
from pcas.schemas.envelope import ServerEnvelope

logger = logging.getLogger(__name__)

HEALTH_PATH = "/api/health"


def normalize_error_message(payload: Any, status_code: int | None) -> str:
    """Field-error list joined, else server message, else a status line."""
    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            return ", ".join(str(e) for e in errors)
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message
    if status_code is not None:
        return f"Request failed with status code {status_code}"
    return "An error occurred"


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class ApiGateway:
    """Async client for the portal backend's JSON API."""

    def __init__(
        self,
        base_url: str,
        cache: LocalCache,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.cache = cache
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            transport=transport,
            event_hooks={
                "request": [self._attach_credential],
                "response": [self._evict_on_unauthorized],
            },
        )

    async def __aenter__(self) -> "ApiGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    # ─── hooks ──────────────────────────────────────────────────

    async def _attach_credential(self, request: httpx.Request) -> None:
        token = self.cache.get_text(TOKEN_KEY)
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    async def _evict_on_unauthorized(self, response: httpx.Response) -> None:
        if response.status_code == httpx.codes.UNAUTHORIZED:
            self.cache.remove(TOKEN_KEY)
            logger.warning(
                "Credential rejected by backend; evicted",
                extra={"path": response.request.url.path, "status_code": 401},
            )

    # ─── requests ───────────────────────────────────────────────

    async def request(
        self, method: str, path: str, body: dict | None = None,
    ) -> ServerEnvelope:
        """Send one request; return the parsed envelope or raise ApiRequestError."""
        context = ErrorContext(method=method, path=path)
        try:
            response = await self.client.request(method, path, json=body)
        except httpx.RequestError as e:
            logger.warning(
                f"Transport failure: {e}",
                extra={"method": method, "path": path, "error_code": "NETWORK_ERROR"},
            )
            raise NetworkError(context=context) from e

        payload = _decode_body(response)
        if response.is_error:
            raise self._map_error(response.status_code, payload, context)

        try:
            envelope = ServerEnvelope.model_validate(payload or {})
        except ValidationError as e:
            raise ServerResponseError(
                "Unexpected response from server", response.status_code, context,
            ) from e
        if not envelope.success:
            raise self._map_error(response.status_code, payload, context)
        return envelope

    async def get(self, path: str) -> ServerEnvelope:
        return await self.request("GET", path)

    async def post(self, path: str, body: dict | None = None) -> ServerEnvelope:
        return await self.request("POST", path, body)

    async def health(self) -> bool:
        """Liveness probe. Never raises."""
        try:
            response = await self.client.get(HEALTH_PATH)
        except httpx.RequestError as e:
            logger.info(f"Health probe failed: {e}", extra={"path": HEALTH_PATH})
            return False
        return response.is_success

    def _map_error(
        self, status_code: int, payload: Any, context: ErrorContext,
    ) -> ApiRequestError:
        message = normalize_error_message(payload, status_code)
        errors = payload.get("errors") if isinstance(payload, dict) else None
        logger.warning(
            f"Backend request failed: {message}",
            extra={
                "method": context.method, "path": context.path,
                "status_code": status_code,
            },
        )
        if status_code == httpx.codes.UNAUTHORIZED:
            return AuthenticationError(message, context=context)
        if isinstance(errors, list) and errors:
            return RequestValidationError(
                [str(e) for e in errors], status_code, context=context,
            )
        return ServerResponseError(message, status_code, context=context)
