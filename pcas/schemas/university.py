"""University Schemas — catalog entries and the checkout summary.

Invariants:
    - programs_by_field maps a field of study to its offered programs
    - CheckoutSummary.total_pkr is the sum of its items' sem_fee_pkr
"""

from pydantic import Field

from pcas.schemas.base import WireModel


class Program(WireModel):
    id: str
    name: str
    avg_semester_fee_pkr: int = Field(0, alias="avgSemesterFeePKR")


class University(WireModel):
    id: str
    name: str
    city: str = ""
    province: str = ""
    established: int | None = None
    website: str | None = None
    phone: str | None = None
    email: str | None = None
    rating: float | None = None
    application_fee_pkr: int | None = Field(None, alias="applicationFeePKR")
    deadline_iso: str | None = Field(None, alias="deadlineISO")
    programs_by_field: dict[str, list[Program]] = Field(default_factory=dict)


class CheckoutItem(WireModel):
    uni_id: str
    program_id: str
    sem_fee_pkr: int = Field(alias="semFeePKR")


class CheckoutSummary(WireModel):
    items: list[CheckoutItem] = Field(default_factory=list)
    total_pkr: int = Field(0, alias="totalPKR")
