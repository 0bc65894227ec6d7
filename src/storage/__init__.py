"""
Storage module for polls and ballots.

Provides the DuckDB-backed PollDatabase that supplies poll definitions and
ballot snapshots to the tabulator, request intake (validation, ids and
timestamps), and the error classes the web layer maps to HTTP responses.
"""

from .database import PollDatabase
from .errors import PollError, PollNotFoundError, StorageError, ValidationError
from .intake import new_ballot, new_poll, utc_now

__all__ = [
    "PollDatabase",
    "PollError",
    "PollNotFoundError",
    "StorageError",
    "ValidationError",
    "new_ballot",
    "new_poll",
    "utc_now",
]
