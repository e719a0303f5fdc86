"""University Picks — pure state for the user's chosen universities and ranked programs.

Invariants:
    - At most max_picks picks, uni_id unique within the list
    - set_field always clears that pick's ranked_program_ids (even for the same field)
    - toggle_ranked_program appends when absent, removes when present
    - move_rank keeps the ranking a permutation of its previous contents
    - Every mutator returns True iff the list changed (callers persist on True)

Design Decisions:
    - Snapshot uses the camelCase keys already found in users' local caches
      ({uniId, fieldOfStudy, rankedProgramIds}), so existing picks still load
    - Unknown uni_id in a mutator is a no-op, not an error (UI may be stale)
"""

from dataclasses import dataclass, field

from pcas.core.domain_types import MAX_UNIVERSITY_PICKS, ProgramId, UniId


@dataclass
class UniPick:
    uni_id: UniId
    field_of_study: str | None = None
    ranked_program_ids: list[ProgramId] = field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        """Has a field of study and at least one ranked program."""
        return bool(self.field_of_study) and len(self.ranked_program_ids) > 0


@dataclass
class PickList:
    """Ordered list of UniPicks with the cap and ranking rules applied."""

    picks: list[UniPick] = field(default_factory=list)
    max_picks: int = MAX_UNIVERSITY_PICKS

    def find(self, uni_id: UniId) -> UniPick | None:
        for pick in self.picks:
            if pick.uni_id == uni_id:
                return pick
        return None

    def add_pick(self, uni_id: UniId) -> bool:
        if self.find(uni_id) is not None or len(self.picks) >= self.max_picks:
            return False
        self.picks.append(UniPick(uni_id=uni_id))
        return True

    def remove_pick(self, uni_id: UniId) -> bool:
        before = len(self.picks)
        self.picks = [p for p in self.picks if p.uni_id != uni_id]
        return len(self.picks) != before

    def set_field(self, uni_id: UniId, field_of_study: str) -> bool:
        pick = self.find(uni_id)
        if pick is None:
            return False
        pick.field_of_study = field_of_study
        # Rankings are field-specific
        pick.ranked_program_ids = []
        return True

    def toggle_ranked_program(self, uni_id: UniId, program_id: ProgramId) -> bool:
        pick = self.find(uni_id)
        if pick is None:
            return False
        if program_id in pick.ranked_program_ids:
            pick.ranked_program_ids.remove(program_id)
        else:
            pick.ranked_program_ids.append(program_id)
        return True

    def move_rank(self, uni_id: UniId, from_index: int, to_index: int) -> bool:
        pick = self.find(uni_id)
        if pick is None:
            return False
        ranking = pick.ranked_program_ids
        if not 0 <= from_index < len(ranking):
            return False
        item = ranking.pop(from_index)
        ranking.insert(max(0, min(to_index, len(ranking))), item)
        return True

    def reset(self) -> bool:
        changed = bool(self.picks)
        self.picks = []
        return changed

    @property
    def can_send_application(self) -> bool:
        return bool(self.picks) and all(p.is_ready for p in self.picks)


def picks_to_snapshot(picks: list[UniPick]) -> list[dict]:
    """Serialize picks to the JSON-safe cache shape. Pure, no IO."""
    return [
        {
            "uniId": p.uni_id,
            "fieldOfStudy": p.field_of_study,
            "rankedProgramIds": list(p.ranked_program_ids),
        }
        for p in picks
    ]


def picks_from_snapshot(data: object, max_picks: int = MAX_UNIVERSITY_PICKS) -> list[UniPick]:
    """Rebuild picks from a cache snapshot; malformed entries are skipped."""
    if not isinstance(data, list):
        return []
    picks: list[UniPick] = []
    seen: set[str] = set()
    for entry in data:
        if not isinstance(entry, dict):
            continue
        uni_id = entry.get("uniId")
        if not isinstance(uni_id, str) or uni_id in seen:
            continue
        ranked = entry.get("rankedProgramIds") or []
        picks.append(UniPick(
            uni_id=uni_id,
            field_of_study=entry.get("fieldOfStudy") or None,
            ranked_program_ids=[r for r in ranked if isinstance(r, str)],
        ))
        seen.add(uni_id)
    return picks[:max_picks]
