"""Envelope Schemas — the backend response wrapper and the local cache wrapper.

Invariants:
    - ServerEnvelope mirrors {success, message, data, errors?} of every response
    - CacheEnvelope mirrors {values, status, savedAt} stored per form section
    - A cache envelope missing its status reads back as in_progress
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pcas.core.domain_types import FormStatus
from pcas.schemas.base import WireModel


class ServerEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool = False
    message: str = ""
    data: Any = None
    errors: list[str] | None = None

    def data_field(self, key: str) -> Any:
        """data[key] when data is a dict, else None."""
        if isinstance(self.data, dict):
            return self.data.get(key)
        return None


class CacheEnvelope(WireModel):
    values: dict[str, Any] = Field(default_factory=dict)
    status: FormStatus = FormStatus.IN_PROGRESS
    saved_at: datetime | None = None
