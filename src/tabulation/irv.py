import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .models import Round
from .registry import CandidateRegistry

logger = logging.getLogger(__name__)


class MajorityRule(str, Enum):
    """Denominator used for the per-round majority test."""

    ALL_BALLOTS = "all"  # every ballot cast, exhausted ones included
    CONTINUING_BALLOTS = "continuing"  # only ballots still counting for someone


class RoundEngine:
    """
    Instant-runoff elimination engine.

    Each round counts every ballot for its highest-ranked candidate still in
    the race. A candidate holding a strict majority wins; otherwise the
    candidate with the fewest votes is eliminated (earliest declared on ties)
    and the count is repeated over the remaining candidates.
    """

    def __init__(
        self,
        registry: CandidateRegistry,
        rankings: Sequence[Sequence[str]],
        majority_rule: MajorityRule = MajorityRule.ALL_BALLOTS,
    ):
        """
        Initialize the engine.

        Args:
            registry: Declared candidates of the poll
            rankings: One ranking per ballot, highest preference first
            majority_rule: Which ballots form the majority denominator
        """
        self.registry = registry
        self.rankings = [tuple(ranking) for ranking in rankings]
        self.majority_rule = MajorityRule(majority_rule)
        self.rounds: List[Round] = []
        self.winner: Optional[str] = None
        self.eliminated: List[str] = []

    @property
    def total_ballots(self) -> int:
        return len(self.rankings)

    def tally(self, remaining: Sequence[str]) -> Tuple[Dict[str, int], int]:
        """
        Count first preferences among the remaining candidates.

        Args:
            remaining: Candidates still in the race, in declaration order

        Returns:
            Tuple of (votes per remaining candidate, number of exhausted ballots)
        """
        counts = {candidate_id: 0 for candidate_id in remaining}
        exhausted = 0
        for ranking in self.rankings:
            for candidate_id in ranking:
                if candidate_id in counts:
                    counts[candidate_id] += 1
                    break
            else:
                exhausted += 1
        return counts, exhausted

    def majority_threshold_base(self, exhausted: int) -> int:
        if self.majority_rule is MajorityRule.CONTINUING_BALLOTS:
            return self.total_ballots - exhausted
        return self.total_ballots

    def find_majority(self, counts: Dict[str, int], exhausted: int) -> Optional[str]:
        """Return the candidate holding a strict majority, if any."""
        base = self.majority_threshold_base(exhausted)
        for candidate_id, count in counts.items():
            if 2 * count > base:
                return candidate_id
        return None

    def select_elimination(self, counts: Dict[str, int]) -> str:
        """Fewest votes loses; ties go against the earliest-declared candidate."""
        min_votes = min(counts.values())
        return self.registry.earliest(
            candidate_id for candidate_id, count in counts.items() if count == min_votes
        )

    def run(self) -> List[Round]:
        """
        Run the complete elimination.

        Returns:
            List of Round objects; empty when there are no ballots
        """
        self.rounds = []
        self.winner = None
        self.eliminated = []

        if self.total_ballots == 0:
            logger.info("No ballots to tabulate")
            return self.rounds

        remaining = list(self.registry.candidates)
        round_number = 1

        logger.debug(
            f"Starting IRV over {self.total_ballots} ballots and "
            f"{len(remaining)} candidates ({self.majority_rule.value} majority)"
        )

        while remaining:
            counts, exhausted = self.tally(remaining)
            round_obj = Round(round_number=round_number, votes=counts)

            leader = self.find_majority(counts, exhausted)
            if leader is None and len(remaining) == 1:
                leader = remaining[0]

            if leader is not None:
                self.winner = leader
                self.rounds.append(round_obj)
                logger.debug(f"Round {round_number}: {leader} wins with {counts[leader]} votes")
                break

            loser = self.select_elimination(counts)
            round_obj.eliminated = loser
            self.rounds.append(round_obj)
            self.eliminated.append(loser)
            remaining.remove(loser)
            logger.debug(
                f"Round {round_number}: eliminating {loser} with {counts[loser]} votes "
                f"({exhausted} exhausted)"
            )
            round_number += 1

        logger.info(f"IRV complete after {len(self.rounds)} rounds, winner: {self.winner}")
        return self.rounds
