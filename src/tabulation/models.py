from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class PollDefinition:
    """
    A poll as supplied by the storage layer.

    The order of ``candidates`` is authoritative for every tie-break.
    """

    id: str
    title: str
    candidates: Tuple[str, ...]
    description: str = ""
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "candidates", tuple(self.candidates))

    def is_open(self, at: datetime) -> bool:
        """Whether the poll still accepts ballots at the given time."""
        return self.expires_at is None or at < self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "candidates": list(self.candidates),
            "createdAt": _isoformat(self.created_at),
        }
        if self.expires_at is not None:
            data["expiresAt"] = _isoformat(self.expires_at)
        return data


@dataclass(frozen=True)
class Ballot:
    """One voter's ranking, highest preference first."""

    id: str
    poll_id: str
    rankings: Tuple[str, ...]
    voted_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "rankings", tuple(self.rankings))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pollId": self.poll_id,
            "rankings": list(self.rankings),
            "votedAt": _isoformat(self.voted_at),
        }


@dataclass
class Round:
    """Represents one round of instant-runoff tabulation."""

    round_number: int
    votes: Dict[str, int]
    eliminated: Optional[str] = None  # None only on the terminal round

    def to_dict(self) -> Dict[str, Any]:
        data = {"roundNumber": self.round_number, "votes": dict(self.votes)}
        if self.eliminated is not None:
            data["eliminated"] = self.eliminated
        return data


@dataclass
class Result:
    """Complete outcome of a poll: IRV rounds plus the Borda cross-check."""

    poll_id: str
    total_votes: int
    rounds: List[Round] = field(default_factory=list)
    winner: Optional[str] = None
    borda_count: Dict[str, int] = field(default_factory=dict)
    borda_winner: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "pollId": self.poll_id,
            "totalVotes": self.total_votes,
            "rounds": [round_obj.to_dict() for round_obj in self.rounds],
            "bordaCount": dict(self.borda_count),
        }
        if self.winner is not None:
            data["winner"] = self.winner
        if self.borda_winner is not None:
            data["bordaWinner"] = self.borda_winner
        return data


def rankings_of(ballots: Sequence[Ballot]) -> List[Tuple[str, ...]]:
    """Extract the bare ranking tuples from a ballot sequence."""
    return [ballot.rankings for ballot in ballots]
