"""University Selection Store — the user's picks, persisted locally on every change.

Invariants:
    - Picks are loaded from UNIVERSITY_PICKS_KEY at construction
    - Every mutation that changes the picks re-serializes the whole list to the cache
    - The catalog is an in-memory cache of last-seen search results (never persisted)
    - build_checkout() prices ranked programs from the catalog; programs missing
      from the catalog are skipped

Design Decisions:
    - No remote sync: picks live only in the local cache until checkout
    - Pure pick rules in core.university_picks; this class adds persistence
"""

import logging
from collections.abc import Iterable
from typing import Any

from pcas.core.cache_keys import UNIVERSITY_PICKS_KEY
from pcas.core.domain_types import MAX_UNIVERSITY_PICKS
from pcas.core.university_picks import (
    PickList, UniPick, picks_from_snapshot, picks_to_snapshot,
)
from pcas.infrastructure.local_cache import LocalCache
from pcas.schemas.university import CheckoutItem, CheckoutSummary, University

logger = logging.getLogger(__name__)


class UniversitySelectionStore:
    """Up to max_picks universities, each with a field and ranked programs."""

    def __init__(self, cache: LocalCache, max_picks: int = MAX_UNIVERSITY_PICKS):
        self.cache = cache
        stored = cache.get_json(UNIVERSITY_PICKS_KEY, [])
        self.pick_list = PickList(
            picks=picks_from_snapshot(stored, max_picks), max_picks=max_picks,
        )
        self.catalog: dict[str, University] = {}

    @property
    def picks(self) -> list[UniPick]:
        return self.pick_list.picks

    @property
    def can_send_application(self) -> bool:
        return self.pick_list.can_send_application

    # ─── mutations ──────────────────────────────────────────────

    def add_pick(self, uni_id: str) -> bool:
        return self._persist_if(self.pick_list.add_pick(uni_id))

    def remove_pick(self, uni_id: str) -> bool:
        return self._persist_if(self.pick_list.remove_pick(uni_id))

    def set_field(self, uni_id: str, field_of_study: str) -> bool:
        return self._persist_if(self.pick_list.set_field(uni_id, field_of_study))

    def toggle_ranked_program(self, uni_id: str, program_id: str) -> bool:
        return self._persist_if(
            self.pick_list.toggle_ranked_program(uni_id, program_id),
        )

    def move_rank(self, uni_id: str, from_index: int, to_index: int) -> bool:
        return self._persist_if(
            self.pick_list.move_rank(uni_id, from_index, to_index),
        )

    def reset(self) -> bool:
        return self._persist_if(self.pick_list.reset())

    # ─── catalog ────────────────────────────────────────────────

    def cache_results(self, universities: Iterable[University | dict[str, Any]]) -> None:
        for uni in universities:
            if not isinstance(uni, University):
                uni = University.model_validate(uni)
            self.catalog[uni.id] = uni

    def build_checkout(self) -> CheckoutSummary:
        items: list[CheckoutItem] = []
        for pick in self.picks:
            uni = self.catalog.get(pick.uni_id)
            programs = uni.programs_by_field.get(pick.field_of_study or "", []) if uni else []
            by_id = {p.id: p for p in programs}
            for program_id in pick.ranked_program_ids:
                program = by_id.get(program_id)
                if program is None:
                    logger.warning(
                        f"Program {program_id} of {pick.uni_id} not in catalog; skipped",
                    )
                    continue
                items.append(CheckoutItem(
                    uni_id=pick.uni_id,
                    program_id=program_id,
                    sem_fee_pkr=program.avg_semester_fee_pkr,
                ))
        return CheckoutSummary(
            items=items, total_pkr=sum(i.sem_fee_pkr for i in items),
        )

    def _persist_if(self, changed: bool) -> bool:
        if changed:
            self.cache.set_json(UNIVERSITY_PICKS_KEY, picks_to_snapshot(self.picks))
        return changed
