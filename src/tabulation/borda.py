import logging
from typing import Dict, Optional, Sequence, Tuple

from .registry import CandidateRegistry

logger = logging.getLogger(__name__)


class BordaAggregator:
    """
    Positional scoring over the full ballot set.

    A ballot with ``k`` valid preferences awards ``k-1`` points to its first
    choice, ``k-2`` to the second, down to 0 for the last; unranked
    candidates get nothing from that ballot.
    """

    def __init__(self, registry: CandidateRegistry, rankings: Sequence[Sequence[str]]):
        self.registry = registry
        self.rankings = [tuple(ranking) for ranking in rankings]

    def ballot_points(self, ranking: Sequence[str]) -> Dict[str, int]:
        preferences = self.registry.valid_preferences(ranking)
        k = len(preferences)
        return {candidate_id: k - 1 - i for i, candidate_id in enumerate(preferences)}

    def calculate_scores(self) -> Dict[str, int]:
        """Accumulated score for every declared candidate, in declaration order."""
        scores = {candidate_id: 0 for candidate_id in self.registry}
        for ranking in self.rankings:
            for candidate_id, points in self.ballot_points(ranking).items():
                scores[candidate_id] += points
        return scores

    def select_winner(self, scores: Dict[str, int]) -> Optional[str]:
        """
        Highest score wins, earliest declared on ties.

        Only a poll without ballots has no Borda winner. When every ballot
        ranks at most one valid candidate all scores are 0 and the tie-break
        alone decides.
        """
        if not scores or not self.rankings:
            return None
        best = max(scores.values())
        return self.registry.earliest(
            candidate_id for candidate_id, score in scores.items() if score == best
        )

    def run(self) -> Tuple[Dict[str, int], Optional[str]]:
        scores = self.calculate_scores()
        winner = self.select_winner(scores)
        logger.info(f"Borda count complete, winner: {winner}")
        return scores, winner
