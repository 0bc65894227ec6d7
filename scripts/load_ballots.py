#!/usr/bin/env python3
"""
Load a poll and its ballots from a JSON file into the poll database.

Expected file layout:

    {
      "poll": {"title": "...", "description": "...", "candidates": ["A", "B"]},
      "ballots": [["A", "B"], ["B"], {"rankings": ["A"]}, ...]
    }
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from storage.database import PollDatabase  # noqa: E402
from storage.errors import PollError  # noqa: E402
from storage.intake import new_ballot, new_poll  # noqa: E402
from tabulation.models import PollDefinition  # noqa: E402

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def ballot_rankings(entry) -> Optional[List[str]]:
    """
    Extract the ranking list of one ballot entry.

    Entries are either a list of candidate ids or an object with a
    ``rankings`` list. Anything else, including a bare string, yields None.
    """
    if isinstance(entry, dict):
        entry = entry.get("rankings")
    if not isinstance(entry, list):
        return None
    return entry


def load_poll(db: PollDatabase, data: dict) -> Tuple[PollDefinition, int]:
    """
    Create the poll described by ``data`` and store its usable ballots.

    Returns:
        The stored poll and the number of skipped ballot entries
    """
    poll_data = data.get("poll", {})
    poll = new_poll(
        title=poll_data.get("title", ""),
        candidates=poll_data.get("candidates", []),
        description=poll_data.get("description", ""),
    )
    db.create_poll(poll)
    logger.info(f"Created poll '{poll.title}' ({poll.id})")

    skipped = 0
    for index, entry in enumerate(data.get("ballots", [])):
        rankings = ballot_rankings(entry)
        if rankings is None:
            logger.warning(f"Skipping ballot {index}: rankings must be a list, got {entry!r}")
            skipped += 1
            continue
        if not rankings:
            logger.warning(f"Skipping ballot {index}: empty rankings")
            skipped += 1
            continue
        db.add_ballot(new_ballot(poll, rankings))

    return poll, skipped


def main():
    parser = argparse.ArgumentParser(description="Load a poll and ballots from JSON")
    parser.add_argument("json_file", help="Path to poll JSON file")
    parser.add_argument("--db", required=True, help="Path to DuckDB database file")

    args = parser.parse_args()

    json_path = Path(args.json_file)
    if not json_path.exists():
        logger.error(f"JSON file not found: {json_path}")
        sys.exit(1)

    with open(json_path) as f:
        data = json.load(f)

    try:
        with PollDatabase(args.db) as db:
            db.initialize_schema()
            poll, skipped = load_poll(db, data)
            loaded = db.count_ballots(poll.id)
    except PollError as e:
        logger.error(f"Error loading poll: {e}")
        sys.exit(1)

    print(f"✓ Created poll '{poll.title}' ({poll.id})")
    print(f"✓ Loaded {loaded} ballots")
    if skipped:
        print(f"⚠️  Skipped {skipped} malformed or empty ballots")

    print(f"\nRun: python scripts/run_tabulation.py --db {args.db} --poll {poll.id}")


if __name__ == "__main__":
    main()
