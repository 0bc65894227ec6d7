import logging
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from .borda import BordaAggregator
from .irv import MajorityRule, RoundEngine
from .models import Ballot, PollDefinition, Result, Round, rankings_of
from .registry import CandidateRegistry

logger = logging.getLogger(__name__)


def assemble_result(
    poll_id: str,
    total_votes: int,
    rounds: Sequence[Round],
    winner: Optional[str],
    borda_count: Dict[str, int],
    borda_winner: Optional[str],
) -> Result:
    """Merge the IRV and Borda outputs into a single Result value."""
    return Result(
        poll_id=poll_id,
        total_votes=total_votes,
        rounds=list(rounds),
        winner=winner,
        borda_count=dict(borda_count),
        borda_winner=borda_winner,
    )


def tabulate(
    poll: PollDefinition,
    ballots: Sequence[Ballot],
    majority_rule: Union[MajorityRule, str] = MajorityRule.ALL_BALLOTS,
) -> Result:
    """
    Compute the full result of a poll from a snapshot of its ballots.

    A fresh registry and engine are built for every call, so results depend
    on nothing but the arguments.

    Args:
        poll: Poll definition with at least two declared candidates
        ballots: Every ballot submitted to the poll
        majority_rule: Denominator policy for the IRV majority test

    Returns:
        Result combining IRV rounds and Borda scores
    """
    registry = CandidateRegistry.from_poll(poll)
    rankings = rankings_of(ballots)

    engine = RoundEngine(registry, rankings, majority_rule=majority_rule)
    rounds = engine.run()

    borda_count, borda_winner = BordaAggregator(registry, rankings).run()

    return assemble_result(
        poll_id=poll.id,
        total_votes=len(rankings),
        rounds=rounds,
        winner=engine.winner,
        borda_count=borda_count,
        borda_winner=borda_winner,
    )


def _candidate_status(candidate_id: str, round_obj: Round, result: Result) -> str:
    if candidate_id == round_obj.eliminated:
        return "eliminated"
    if round_obj.eliminated is None and candidate_id == result.winner:
        return "elected"
    return "continuing"


def round_summary(result: Result) -> pd.DataFrame:
    """
    Get summary of all rounds as a DataFrame.

    Returns:
        DataFrame with one row per round and remaining candidate
    """
    if not result.rounds:
        return pd.DataFrame(
            columns=["round", "candidate", "votes", "share", "status", "exhausted"]
        )

    summary_data: List[Dict] = []
    for round_obj in result.rounds:
        exhausted = result.total_votes - sum(round_obj.votes.values())
        for candidate_id, votes in round_obj.votes.items():
            summary_data.append(
                {
                    "round": round_obj.round_number,
                    "candidate": candidate_id,
                    "votes": votes,
                    "share": votes / result.total_votes,
                    "status": _candidate_status(candidate_id, round_obj, result),
                    "exhausted": exhausted,
                }
            )

    return pd.DataFrame(summary_data)
