import logging
import random
import time
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

import duckdb

from tabulation.models import Ballot, PollDefinition

from .errors import PollNotFoundError, StorageError

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS polls (
        id VARCHAR PRIMARY KEY,
        title VARCHAR NOT NULL,
        description VARCHAR,
        candidates VARCHAR[] NOT NULL,
        created_at TIMESTAMP NOT NULL,
        expires_at TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ballots (
        id VARCHAR PRIMARY KEY,
        poll_id VARCHAR NOT NULL,
        rankings VARCHAR[] NOT NULL,
        voted_at TIMESTAMP NOT NULL
    )
    """,
]


class DatabaseConnectionManager:
    """
    Opens DuckDB connections with retry logic for lock conflicts.
    """

    def get_connection(
        self, db_path: str, read_only: bool = False, max_retries: int = 3
    ) -> duckdb.DuckDBPyConnection:
        """
        Get a database connection with retry logic.

        Args:
            db_path: Path to DuckDB file, or ":memory:"
            read_only: Whether to open in read-only mode (only for existing files)
            max_retries: Maximum number of connection attempts

        Returns:
            DuckDB connection
        """
        for attempt in range(max_retries):
            try:
                if read_only and Path(db_path).exists():
                    conn = duckdb.connect(db_path, read_only=True)
                    logger.debug(f"Opened read-only connection to {db_path}")
                else:
                    conn = duckdb.connect(db_path)
                    logger.debug(f"Opened read-write connection to {db_path}")

                return conn

            except duckdb.Error as e:
                if "Conflicting lock" in str(e) and attempt < max_retries - 1:
                    # Exponential backoff with jitter
                    wait_time = (2**attempt) + random.uniform(0, 1)  # nosec B311
                    logger.warning(
                        f"Database locked, retrying in {wait_time:.2f}s (attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(wait_time)
                    continue
                logger.error(f"Failed to connect to database after {attempt + 1} attempts: {e}")
                raise StorageError(f"Could not open database {db_path}: {e}") from e

        raise StorageError(
            f"Could not establish database connection after {max_retries} attempts"
        )


_connection_manager = DatabaseConnectionManager()


class PollDatabase:
    """
    DuckDB-backed store for poll definitions and their ballots.
    """

    def __init__(self, db_path: Optional[str] = None, read_only: bool = False):
        """
        Initialize database connection manager.

        Args:
            db_path: Path to DuckDB file. If None, uses in-memory database.
            read_only: Whether to open the file read-only
        """
        self.db_path = db_path or ":memory:"
        self.read_only = read_only
        self._conn = None  # Will be created on-demand

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create a database connection on-demand."""
        if self._conn is None:
            self._conn = _connection_manager.get_connection(self.db_path, self.read_only)
        return self._conn

    @contextmanager
    def _storage_errors(self, action: str):
        try:
            yield
        except duckdb.Error as e:
            logger.error(f"Database error while trying to {action}: {e}")
            raise StorageError(f"Failed to {action}") from e

    def initialize_schema(self):
        """Create the polls and ballots tables if they do not exist yet."""
        with self._storage_errors("initialize schema"):
            for statement in SCHEMA_STATEMENTS:
                self.conn.execute(statement)
        logger.info(f"Initialized poll schema in {self.db_path}")

    def table_exists(self, table_name: str) -> bool:
        sql = "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?"
        with self._storage_errors(f"inspect table {table_name}"):
            result = self.conn.execute(sql, [table_name]).fetchone()
        return result[0] > 0

    def create_poll(self, poll: PollDefinition):
        with self._storage_errors("create poll"):
            self.conn.execute(
                "INSERT INTO polls VALUES (?, ?, ?, ?, ?, ?)",
                [
                    poll.id,
                    poll.title,
                    poll.description,
                    list(poll.candidates),
                    poll.created_at,
                    poll.expires_at,
                ],
            )
        logger.info(f"Created poll {poll.id} with {len(poll.candidates)} candidates")

    @staticmethod
    def _row_to_poll(row) -> PollDefinition:
        poll_id, title, description, candidates, created_at, expires_at = row
        return PollDefinition(
            id=poll_id,
            title=title,
            description=description or "",
            candidates=candidates,
            created_at=created_at,
            expires_at=expires_at,
        )

    def get_poll(self, poll_id: str) -> PollDefinition:
        """
        Fetch a poll definition.

        Raises:
            PollNotFoundError: If no poll has this id
        """
        with self._storage_errors("get poll"):
            row = self.conn.execute(
                "SELECT id, title, description, candidates, created_at, expires_at "
                "FROM polls WHERE id = ?",
                [poll_id],
            ).fetchone()
        if row is None:
            raise PollNotFoundError(poll_id)
        return self._row_to_poll(row)

    def list_polls(self) -> List[PollDefinition]:
        with self._storage_errors("list polls"):
            rows = self.conn.execute(
                "SELECT id, title, description, candidates, created_at, expires_at "
                "FROM polls ORDER BY created_at, id"
            ).fetchall()
        return [self._row_to_poll(row) for row in rows]

    def add_ballot(self, ballot: Ballot):
        with self._storage_errors("create vote"):
            self.conn.execute(
                "INSERT INTO ballots VALUES (?, ?, ?, ?)",
                [ballot.id, ballot.poll_id, list(ballot.rankings), ballot.voted_at],
            )
        logger.debug(f"Stored ballot {ballot.id} for poll {ballot.poll_id}")

    def get_ballots(self, poll_id: str) -> List[Ballot]:
        """
        Fetch every ballot of a poll.

        Ballots are ordered by submission time, then id, so the same stored
        data always yields the same sequence.
        """
        with self._storage_errors("get votes"):
            rows = self.conn.execute(
                "SELECT id, poll_id, rankings, voted_at FROM ballots "
                "WHERE poll_id = ? ORDER BY voted_at, id",
                [poll_id],
            ).fetchall()
        return [
            Ballot(id=ballot_id, poll_id=owner, rankings=rankings, voted_at=voted_at)
            for ballot_id, owner, rankings, voted_at in rows
        ]

    def count_ballots(self, poll_id: str) -> int:
        with self._storage_errors("count votes"):
            result = self.conn.execute(
                "SELECT COUNT(*) FROM ballots WHERE poll_id = ?", [poll_id]
            ).fetchone()
        return result[0]

    def close(self):
        """Close database connection."""
        if self._conn:
            try:
                self._conn.close()
                logger.debug(f"Closed database connection to {self.db_path}")
            except duckdb.Error as e:
                logger.warning(f"Error closing database connection: {e}")
            finally:
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

