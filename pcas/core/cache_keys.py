"""Cache Keys — single source of truth for local cache key names.

Invariants:
    - Every application form key starts with APPLICATION_PREFIX
      (logout purges by that prefix)
    - Form keys are per-user: pcas:application:{section}:{user_id}
    - The legacy flat key pcas:application:{section} is only ever read for
      migration, never written; section_key() refuses to produce it
    - TOKEN_KEY is unprefixed (survives purge_prefix; removed explicitly)
"""

from pcas.core.domain_types import Section, UserId
from pcas.core.errors import NotAuthenticatedError

NAMESPACE = "pcas"
TOKEN_KEY = "token"
APPLICATION_PREFIX = f"{NAMESPACE}:application:"
UNIVERSITY_PICKS_KEY = f"{NAMESPACE}:universities:picks"


def legacy_section_key(section: Section) -> str:
    return f"{APPLICATION_PREFIX}{section.value}"


def section_key(section: Section, user_id: UserId | None) -> str:
    """Per-user key. Raises NotAuthenticatedError without a user."""
    if not user_id:
        raise NotAuthenticatedError(
            f"No user to scope the {section.value} cache entry to",
        )
    return f"{APPLICATION_PREFIX}{section.value}:{user_id}"
