"""Completion Rules — per-section required-field predicates and status derivation.

Invariants:
    - Predicates are pure functions of the values mapping (same input, same answer)
    - Missing keys, None, zero and whitespace-only strings count as "not filled"
    - Profile photo counts only when 0 < photo_bytes <= PHOTO_MAX_BYTES
    - StatusPolicy maps (satisfied, partially filled, empty) to a FormStatus label

Design Decisions:
    - Predicates operate on plain mappings: the same rule serves form drafts,
      cache envelopes and dumped server records
    - Status labels are configuration, not logic: DEFAULT_STATUS_POLICY marks a
      fully filled section complete, LEGACY_STATUS_POLICY reproduces the older
      pages that stop at in_progress
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pcas.core.domain_types import FormStatus, Section, PHOTO_MAX_BYTES

Values = Mapping[str, Any]
Predicate = Callable[[Values], bool]


def is_filled(values: Values, key: str) -> bool:
    """True when values[key] is present and not blank."""
    value = values.get(key)
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (int, float)):
        return value != 0
    return True


def _all_filled(values: Values, *keys: str) -> bool:
    return all(is_filled(values, k) for k in keys)


def _photo_ok(values: Values) -> bool:
    if not is_filled(values, "photo_name"):
        return False
    try:
        size = int(values.get("photo_bytes") or 0)
    except (TypeError, ValueError):
        return False
    return 0 < size <= PHOTO_MAX_BYTES


def profile_complete(values: Values) -> bool:
    return _all_filled(
        values,
        "first_name", "last_name", "address", "primary_lang", "citizen",
        "cnic", "gender", "dob", "marital_status", "phone",
    ) and _photo_ok(values)


def family_complete(values: Values) -> bool:
    return _all_filled(values, "father_name", "mother_name", "father_occupation")


def education_complete(values: Values) -> bool:
    return _all_filled(
        values,
        "matric_grades", "matric_pic_name",
        "fsc_grades", "fsc_pic_name",
        "college_name",
    )


def extracurricular_complete(values: Values) -> bool:
    return is_filled(values, "clubs")


COMPLETION_PREDICATES: dict[Section, Predicate] = {
    Section.PROFILE: profile_complete,
    Section.FAMILY: family_complete,
    Section.EDUCATION: education_complete,
    Section.EXTRACURRICULAR: extracurricular_complete,
}


# ─── Subsection progress (side panel dots) ──────────────────────

SUBSECTION_RULES: dict[Section, list[tuple[str, Predicate]]] = {
    Section.PROFILE: [
        ("Personal Information",
         lambda v: _all_filled(v, "first_name", "last_name")),
        ("Address", lambda v: is_filled(v, "address")),
        ("Language", lambda v: is_filled(v, "primary_lang")),
        ("Demographics", lambda v: is_filled(v, "citizen")),
        ("Photo & IDs", _photo_ok),
        ("Contact Details",
         lambda v: _all_filled(
             v, "cnic", "gender", "dob", "marital_status", "phone",
         )),
    ],
    Section.FAMILY: [
        ("Parents/Guardians", family_complete),
    ],
    Section.EDUCATION: [
        ("Matric (O-level Equivalence)",
         lambda v: _all_filled(v, "matric_grades", "matric_pic_name")),
        ("FSC (A-level Equivalence)",
         lambda v: _all_filled(v, "fsc_grades", "fsc_pic_name")),
        ("College", lambda v: is_filled(v, "college_name")),
    ],
    Section.EXTRACURRICULAR: [
        ("Clubs", lambda v: is_filled(v, "clubs")),
        ("Certificates", lambda v: is_filled(v, "cert_doc_name")),
    ],
}


def completed_subsections(section: Section, values: Values) -> list[str]:
    """Labels of the section's subsections whose fields are filled, in order."""
    return [label for label, rule in SUBSECTION_RULES[section] if rule(values)]


# ─── Status policy ──────────────────────────────────────────────

@dataclass(frozen=True)
class StatusPolicy:
    """Label assigned for each of the three fill levels of a section."""
    satisfied: FormStatus
    partial: FormStatus
    empty: FormStatus

    def derive(self, values: Values, predicate: Predicate) -> FormStatus:
        if predicate(values):
            return self.satisfied
        if any(is_filled(values, k) for k in values):
            return self.partial
        return self.empty


DEFAULT_STATUS_POLICY = StatusPolicy(
    satisfied=FormStatus.COMPLETE,
    partial=FormStatus.IN_PROGRESS,
    empty=FormStatus.NOT_STARTED,
)

LEGACY_STATUS_POLICY = StatusPolicy(
    satisfied=FormStatus.IN_PROGRESS,
    partial=FormStatus.NOT_STARTED,
    empty=FormStatus.NOT_STARTED,
)
