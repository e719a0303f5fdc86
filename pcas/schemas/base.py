"""Wire Model Base — shared pydantic configuration for camelCase JSON.

Design Decisions:
    - alias_generator=to_camel: attribute names stay Pythonic, payloads match
      the backend's JavaScript-style keys
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for every model that crosses the HTTP or cache boundary."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-safe dict with camelCase keys and None fields dropped."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def blank_to_none(value: Any) -> Any:
    """Form inputs submit "" for untouched optional fields."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value
