"""Persistent Local Cache — JSON helpers and envelopes over a durable key/value store.

Invariants:
    - No method raises on storage or decoding failure: readers return the fallback,
      writers return False, and the failure is logged with its cache_key
    - write_envelope then read_envelope (no intervening write) yields equal values
    - purge_prefix removes every key starting with the prefix and nothing else
    - read_envelope treats envelopes older than max_age as absent and deletes them
    - migrate_key copies legacy -> current at most once and always drops legacy

Design Decisions:
    - Cache failures are diagnostics, never control flow: the in-memory flow
      continues whether or not the durable mirror succeeded
    - Envelopes are validated with pydantic (CacheEnvelope); a malformed
      envelope is logged and read as absent
"""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from pcas.core.boundary_protocols import KeyValueStore
from pcas.core.domain_types import FormStatus
from pcas.core.errors import CacheError
from pcas.schemas.envelope import CacheEnvelope

logger = logging.getLogger(__name__)

_STORAGE_ERRORS = (CacheError, OSError)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LocalCache:
    """Failure-tolerant access to the shared local key namespace."""

    def __init__(
        self, store: KeyValueStore, clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.clock = clock

    # ─── raw strings ────────────────────────────────────────────

    def get_text(self, key: str) -> str | None:
        try:
            return self.store.get(key)
        except _STORAGE_ERRORS as e:
            self._log_failure("read", key, e)
            return None

    def set_text(self, key: str, value: str) -> bool:
        try:
            self.store.set(key, value)
            return True
        except _STORAGE_ERRORS as e:
            self._log_failure("write", key, e)
            return False

    def remove(self, key: str) -> bool:
        try:
            self.store.remove(key)
            return True
        except _STORAGE_ERRORS as e:
            self._log_failure("remove", key, e)
            return False

    def keys(self) -> list[str]:
        try:
            return self.store.keys()
        except _STORAGE_ERRORS as e:
            self._log_failure("scan", "*", e)
            return []

    # ─── JSON ───────────────────────────────────────────────────

    def get_json(self, key: str, fallback: Any = None) -> Any:
        raw = self.get_text(key)
        if raw is None:
            return fallback
        try:
            return json.loads(raw)
        except ValueError as e:
            self._log_failure("decode", key, e)
            return fallback

    def set_json(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            self._log_failure("encode", key, e)
            return False
        return self.set_text(key, raw)

    # ─── envelopes ──────────────────────────────────────────────

    def write_envelope(
        self,
        key: str,
        values: dict[str, Any],
        status: FormStatus,
        saved_at: datetime | None = None,
    ) -> bool:
        envelope = CacheEnvelope(
            values=dict(values), status=status, saved_at=saved_at or self.clock(),
        )
        return self.set_json(key, envelope.to_wire())

    def read_envelope(
        self, key: str, max_age: timedelta | None = None,
    ) -> CacheEnvelope | None:
        raw = self.get_json(key)
        if raw is None:
            return None
        try:
            envelope = CacheEnvelope.model_validate(raw)
        except ValidationError as e:
            self._log_failure("validate", key, e)
            return None
        if max_age is not None and self._is_stale(envelope, max_age):
            logger.info(
                "Discarding stale cache envelope", extra={"cache_key": key},
            )
            self.remove(key)
            return None
        return envelope

    def _is_stale(self, envelope: CacheEnvelope, max_age: timedelta) -> bool:
        saved_at = envelope.saved_at
        if saved_at is None:
            return False
        if saved_at.tzinfo is None:
            saved_at = saved_at.replace(tzinfo=timezone.utc)
        return self.clock() - saved_at > max_age

    # ─── bulk ───────────────────────────────────────────────────

    def purge_prefix(self, prefix: str) -> int:
        """Delete every key starting with prefix. Returns number removed."""
        doomed = [k for k in self.keys() if k.startswith(prefix)]
        removed = sum(1 for k in doomed if self.remove(k))
        logger.info(
            f"Purged {removed} local cache entries", extra={"cache_key": prefix},
        )
        return removed

    def migrate_key(self, legacy_key: str, current_key: str) -> bool:
        """One-time move of legacy_key's value to current_key.

        Returns True when a value was copied. The legacy key is removed either way.
        """
        if legacy_key == current_key:
            return False
        legacy = self.get_text(legacy_key)
        if legacy is None:
            return False
        copied = False
        if self.get_text(current_key) is None:
            copied = self.set_text(current_key, legacy)
            if not copied:
                return False
        self.remove(legacy_key)
        if copied:
            logger.info(
                f"Migrated cache entry from {legacy_key}",
                extra={"cache_key": current_key},
            )
        return copied

    def _log_failure(self, operation: str, key: str, error: Exception) -> None:
        logger.warning(
            f"Local cache {operation} failed: {error}",
            extra={"cache_key": key, "error_code": "CACHE_ERROR"},
        )
