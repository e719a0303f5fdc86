"""Section Registry — one SectionDefinition per form section.

Invariants:
    - SECTIONS holds exactly one definition per Section, in application order
    - fetch/save paths and data_key match the backend contract
      (GET get-{section}, POST create-or-update-{section}, data.{section})
    - defaults() returns a fresh dict with every form field present
    - pinned_fields of a section are never overwritten by submitted form data
    - next_page of a section is the page of the following section (the last
      one leads to the dashboard)

Design Decisions:
    - Data, not subclasses: a new section is one more SectionDefinition, the
      store, controller and aggregate need no changes
    - Explicit module-level definitions, no auto-discovery
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pcas.core.completion import COMPLETION_PREDICATES, Predicate
from pcas.core.domain_types import Section
from pcas.schemas.application import (
    Education, EducationRequest,
    Extracurricular, ExtracurricularRequest,
    Family, FamilyRequest,
    Profile, ProfileRequest,
)
from pcas.schemas.base import WireModel
from pcas.schemas.user import User

APPLICATION_API = "/api/application"
APPLICATION_ALL_PATH = f"{APPLICATION_API}/all"
LOGIN_PAGE = "/Login"
DASHBOARD_PAGE = "/Dashboard"
_FORM_PAGES = "/MainPages/MyApplication"


@dataclass(frozen=True)
class SectionDefinition:
    """Everything the generic store and controller need to know about a section."""
    section: Section
    label: str
    record_model: type[WireModel]
    request_model: type[WireModel]
    predicate: Predicate
    default_values: dict[str, Any]
    page_path: str
    next_page: str
    prefill: Callable[[User], dict[str, Any]] | None = field(default=None)
    # Set by an upload handler, never taken from submitted form data
    pinned_fields: frozenset[str] = field(default_factory=frozenset)

    @property
    def data_key(self) -> str:
        return self.section.value

    @property
    def fetch_path(self) -> str:
        return f"{APPLICATION_API}/get-{self.section.value}"

    @property
    def save_path(self) -> str:
        return f"{APPLICATION_API}/create-or-update-{self.section.value}"

    @property
    def fetch_failed_message(self) -> str:
        return f"Failed to fetch {self.section.value} data"

    @property
    def save_failed_message(self) -> str:
        return f"Failed to save {self.section.value} data"

    def defaults(self, user: User | None = None) -> dict[str, Any]:
        values = dict(self.default_values)
        if user is not None and self.prefill is not None:
            values.update(
                {k: v for k, v in self.prefill(user).items() if v}
            )
        return values


def split_full_name(full_name: str) -> tuple[str, str, str]:
    """Split into (first, middle, last); middle joins everything in between."""
    parts = full_name.split()
    if not parts:
        return "", "", ""
    if len(parts) == 1:
        return parts[0], "", ""
    return parts[0], " ".join(parts[1:-1]), parts[-1]


def profile_prefill(user: User) -> dict[str, Any]:
    first, middle, last = split_full_name(user.full_name)
    return {
        "first_name": first,
        "middle_name": middle,
        "last_name": last,
        "address": user.address or "",
        "phone": user.phone or "",
        # backend sends ISO datetimes; the form wants yyyy-mm-dd
        "dob": (user.dob or "")[:10],
    }


PROFILE = SectionDefinition(
    section=Section.PROFILE,
    label="Profile",
    record_model=Profile,
    request_model=ProfileRequest,
    predicate=COMPLETION_PREDICATES[Section.PROFILE],
    default_values={
        "first_name": "", "middle_name": "", "last_name": "",
        "address": "", "primary_lang": "", "citizen": "", "cnic": "",
        "gender": "", "dob": "", "marital_status": "", "phone": "",
        "photo_name": "", "photo_bytes": 0,
    },
    page_path=f"{_FORM_PAGES}/Profile",
    next_page=f"{_FORM_PAGES}/Family",
    prefill=profile_prefill,
    pinned_fields=frozenset({"photo_name", "photo_bytes"}),
)

FAMILY = SectionDefinition(
    section=Section.FAMILY,
    label="Family",
    record_model=Family,
    request_model=FamilyRequest,
    predicate=COMPLETION_PREDICATES[Section.FAMILY],
    default_values={
        "father_name": "", "mother_name": "", "father_occupation": "",
    },
    page_path=f"{_FORM_PAGES}/Family",
    next_page=f"{_FORM_PAGES}/Education",
)

EDUCATION = SectionDefinition(
    section=Section.EDUCATION,
    label="Education",
    record_model=Education,
    request_model=EducationRequest,
    predicate=COMPLETION_PREDICATES[Section.EDUCATION],
    default_values={
        "matric_grades": "", "matric_pic_name": "",
        "fsc_grades": "", "fsc_pic_name": "",
        "college_name": "",
    },
    page_path=f"{_FORM_PAGES}/Education",
    next_page=f"{_FORM_PAGES}/Extracurricular",
)

EXTRACURRICULAR = SectionDefinition(
    section=Section.EXTRACURRICULAR,
    label="Extracurricular",
    record_model=Extracurricular,
    request_model=ExtracurricularRequest,
    predicate=COMPLETION_PREDICATES[Section.EXTRACURRICULAR],
    default_values={"clubs": "", "cert_doc_name": ""},
    page_path=f"{_FORM_PAGES}/Extracurricular",
    next_page=DASHBOARD_PAGE,
)

SECTIONS: dict[Section, SectionDefinition] = {
    d.section: d for d in (PROFILE, FAMILY, EDUCATION, EXTRACURRICULAR)
}
