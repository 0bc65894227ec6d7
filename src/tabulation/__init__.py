"""
Tabulation module for ranked-choice polls.

This module computes poll outcomes from a snapshot of ballots:
- RoundEngine: instant-runoff elimination, round by round
- BordaAggregator: positional scoring cross-check
- tabulate: runs both and assembles the Result

Ties are always resolved by candidate declaration order via CandidateRegistry.
"""

from .borda import BordaAggregator
from .irv import MajorityRule, RoundEngine
from .models import Ballot, PollDefinition, Result, Round
from .registry import CandidateRegistry
from .results import assemble_result, round_summary, tabulate
from .verification import ResultsVerifier

__all__ = [
    "Ballot",
    "BordaAggregator",
    "CandidateRegistry",
    "MajorityRule",
    "PollDefinition",
    "Result",
    "ResultsVerifier",
    "Round",
    "RoundEngine",
    "assemble_result",
    "round_summary",
    "tabulate",
]
