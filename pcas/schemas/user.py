"""User Schemas — the authenticated user and the auth request payloads.

Invariants:
    - User is read-only from the client's perspective (owned by the session controller)
    - RegisterUserRequest.password: 10-32 chars
    - Emails are stripped and lower-cased before sending
"""

from pydantic import Field, field_validator

from pcas.core.domain_types import UserRole, PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH
from pcas.schemas.base import WireModel, require_text


class User(WireModel):
    id: str
    email: str
    full_name: str = ""
    dob: str | None = None
    phone: str | None = None
    address: str | None = None
    role: UserRole = UserRole.UNDERGRADUATE
    is_email_verified: bool = False
    is_phone_verified: bool = False
    created_at: str | None = None
    updated_at: str | None = None


class LoginRequest(WireModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return require_text(v).lower()


class RegisterUserRequest(WireModel):
    email: str
    password: str = Field(
        min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH,
    )
    full_name: str
    dob: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    phone: str
    address: str
    role: UserRole

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return require_text(v).lower()

    @field_validator("full_name", "phone", "address")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return require_text(v)
