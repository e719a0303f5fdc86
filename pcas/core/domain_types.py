"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - Section, FormStatus, UserRole and the form enums encode every valid value
    - Identity values (UserId, UniId, ProgramId) are NewType'd strings
    - str Enums: values equal the strings the backend sends and accepts

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums serialize to JSON without custom encoders (cache and wire are JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
UniId = NewType("UniId", str)
ProgramId = NewType("ProgramId", str)
Credential = NewType("Credential", str)


# ─── Enums ───────────────────────────────────────────────────────

class Section(str, Enum):
    """The four server-persisted form sections, in application order."""
    PROFILE = "profile"
    FAMILY = "family"
    EDUCATION = "education"
    EXTRACURRICULAR = "extracurricular"


class FormStatus(str, Enum):
    """Status label stored in a cache envelope and shown next to a form."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class UserRole(str, Enum):
    UNDERGRADUATE = "undergraduate"
    GRADUATE = "graduate"


class PrimaryLanguage(str, Enum):
    ENGLISH = "en"
    URDU = "ur"


class Citizenship(str, Enum):
    PAKISTANI = "PK"
    NON_PAKISTANI = "Non-PK"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class MaritalStatus(str, Enum):
    MARRIED = "Married"
    UNMARRIED = "Unmarried"


class FatherOccupation(str, Enum):
    GOVERNMENT = "govt"
    NON_GOVERNMENT = "non-govt"


class SessionEvent(str, Enum):
    """Events published by the session lifecycle controller."""
    LOGGED_IN = "logged_in"
    LOGGED_OUT = "logged_out"


class SubmitAction(str, Enum):
    """Which submit button the user pressed on a form page."""
    SAVE = "save"
    SAVE_AND_CONTINUE = "save_and_continue"


class ValueSource(str, Enum):
    """Where a mounted form's values came from (precedence order)."""
    RECORD = "record"
    CACHE = "cache"
    DEFAULTS = "defaults"


class ServerStatus(str, Enum):
    CHECKING = "checking"
    ONLINE = "online"
    OFFLINE = "offline"


# ─── Limits ──────────────────────────────────────────────────────

PHOTO_MAX_BYTES = 5 * 1024 * 1024
PASSWORD_MIN_LENGTH = 10
PASSWORD_MAX_LENGTH = 32
MAX_UNIVERSITY_PICKS = 5
