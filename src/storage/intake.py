import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from tabulation.models import Ballot, PollDefinition

from .errors import ValidationError


def utc_now() -> datetime:
    """Current UTC time as a naive timestamp, the form stored in DuckDB."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def new_poll(
    title: str,
    candidates: Sequence[str],
    description: str = "",
    expires_at: Optional[datetime] = None,
) -> PollDefinition:
    """
    Validate a poll request and assign its id and creation time.

    Raises:
        ValidationError: If the title is empty or the candidate list is not
            at least two unique, non-blank identifiers
    """
    if not title or not title.strip() or len(candidates) < 2:
        raise ValidationError("Title is required and at least 2 candidates are needed")
    if any(not candidate or not candidate.strip() for candidate in candidates):
        raise ValidationError("Candidate names must not be blank")
    if len(set(candidates)) != len(candidates):
        raise ValidationError("Candidate names must be unique")

    created_at = utc_now()
    expires_at = to_naive_utc(expires_at)
    if expires_at is not None and expires_at <= created_at:
        raise ValidationError("Expiry must be in the future")

    return PollDefinition(
        id=str(uuid.uuid4()),
        title=title,
        description=description or "",
        candidates=candidates,
        created_at=created_at,
        expires_at=expires_at,
    )


def new_ballot(
    poll: PollDefinition, rankings: Sequence[str], voted_at: Optional[datetime] = None
) -> Ballot:
    """
    Validate a vote for a poll and assign its id and submission time.

    Unknown or repeated candidates in ``rankings`` are accepted as-is; the
    tabulator skips them when counting.

    Raises:
        ValidationError: If rankings are empty or the poll has expired
    """
    if not rankings:
        raise ValidationError("Rankings are required")

    voted_at = voted_at or utc_now()
    if not poll.is_open(voted_at):
        raise ValidationError("Poll has expired")

    return Ballot(
        id=str(uuid.uuid4()),
        poll_id=poll.id,
        rankings=rankings,
        voted_at=voted_at,
    )
