"""Application Schemas — the four form sections as request and record models.

Invariants:
    - *Request models carry only user-editable fields (what the form submits)
    - Record models add {id, user_id, created_at, updated_at} once server-confirmed
    - Required text fields are stripped and must be non-empty
    - Optional text fields turn blank strings into None
    - Profile.photo_bytes is bounded by PHOTO_MAX_BYTES; dob is yyyy-mm-dd

Design Decisions:
    - Record inherits Request: one place for field validation
    - Meta fields optional: a record seeded locally has no server identity yet
"""

from pydantic import Field, field_validator

from pcas.core.domain_types import (
    Citizenship, FatherOccupation, Gender, MaritalStatus, PrimaryLanguage,
    PHOTO_MAX_BYTES,
)
from pcas.schemas.base import WireModel, blank_to_none, require_text

RECORD_META_FIELDS = frozenset({"id", "user_id", "created_at", "updated_at"})


class RecordMeta(WireModel):
    id: str | None = None
    user_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


# ─── Profile ────────────────────────────────────────────────────

class ProfileRequest(WireModel):
    first_name: str
    middle_name: str | None = None
    last_name: str
    address: str
    primary_lang: PrimaryLanguage
    citizen: Citizenship
    cnic: str
    gender: Gender
    dob: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    marital_status: MaritalStatus
    phone: str
    photo_name: str | None = None
    photo_bytes: int | None = Field(None, ge=0, le=PHOTO_MAX_BYTES)

    @field_validator("first_name", "last_name", "address", "cnic", "phone")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return require_text(v)

    @field_validator("middle_name", "photo_name", "photo_bytes", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)


class Profile(ProfileRequest, RecordMeta):
    """Server-confirmed profile record."""


# ─── Family ─────────────────────────────────────────────────────

class FamilyRequest(WireModel):
    father_name: str
    mother_name: str
    father_occupation: FatherOccupation

    @field_validator("father_name", "mother_name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return require_text(v)


class Family(FamilyRequest, RecordMeta):
    """Server-confirmed family record."""


# ─── Education ──────────────────────────────────────────────────

class EducationRequest(WireModel):
    matric_grades: str
    matric_pic_name: str | None = None
    fsc_grades: str
    fsc_pic_name: str | None = None
    college_name: str

    @field_validator("matric_grades", "fsc_grades", "college_name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return require_text(v)

    @field_validator("matric_pic_name", "fsc_pic_name", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)


class Education(EducationRequest, RecordMeta):
    """Server-confirmed education record."""


# ─── Extracurricular ────────────────────────────────────────────

class ExtracurricularRequest(WireModel):
    clubs: str
    cert_doc_name: str | None = None

    @field_validator("clubs")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return require_text(v)

    @field_validator("cert_doc_name", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return blank_to_none(v)


class Extracurricular(ExtracurricularRequest, RecordMeta):
    """Server-confirmed extracurricular record."""


# ─── Aggregate ──────────────────────────────────────────────────

class ApplicationData(WireModel):
    """Response of GET /api/application/all."""
    profile: Profile | None = None
    family: Family | None = None
    education: Education | None = None
    extracurricular: Extracurricular | None = None
