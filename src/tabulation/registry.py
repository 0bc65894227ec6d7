from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .models import PollDefinition


class CandidateRegistry:
    """
    Declared candidates of a poll in their authoritative order.

    Every tie in the tabulation (elimination or Borda lead) is resolved in
    favour of the candidate declared earliest, so positions are looked up here
    rather than taken from container iteration order.
    """

    def __init__(self, candidates: Sequence[str]):
        """
        Build the registry.

        Args:
            candidates: Candidate identifiers in declaration order. Repeated
                identifiers keep their first position.
        """
        self._positions: Dict[str, int] = {}
        for candidate_id in candidates:
            if candidate_id not in self._positions:
                self._positions[candidate_id] = len(self._positions)

    @classmethod
    def from_poll(cls, poll: PollDefinition) -> "CandidateRegistry":
        return cls(poll.candidates)

    @property
    def candidates(self) -> Tuple[str, ...]:
        return tuple(self._positions)

    def __contains__(self, candidate_id: object) -> bool:
        return candidate_id in self._positions

    def __iter__(self) -> Iterator[str]:
        return iter(self._positions)

    def __len__(self) -> int:
        return len(self._positions)

    def position(self, candidate_id: str) -> int:
        """0-based declaration position of a known candidate."""
        return self._positions[candidate_id]

    def precedes(self, first: str, second: str) -> bool:
        """True when ``first`` was declared before ``second``."""
        return self._positions[first] < self._positions[second]

    def earliest(self, candidate_ids: Iterable[str]) -> Optional[str]:
        """
        The earliest-declared candidate among ``candidate_ids`` (None if empty).

        Both elimination and Borda ties are settled here.
        """
        best = None
        for candidate_id in candidate_ids:
            if best is None or self.precedes(candidate_id, best):
                best = candidate_id
        return best

    def valid_preferences(self, ranking: Sequence[str]) -> List[str]:
        """
        Reduce a raw ranking to its countable entries.

        Unknown identifiers are dropped and only the first occurrence of a
        repeated candidate is kept, preserving the voter's order.
        """
        seen = set()
        preferences = []
        for candidate_id in ranking:
            if candidate_id in self._positions and candidate_id not in seen:
                seen.add(candidate_id)
                preferences.append(candidate_id)
        return preferences
