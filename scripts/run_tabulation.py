#!/usr/bin/env python3
"""
Run instant-runoff and Borda tabulation for a stored poll.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from storage.database import PollDatabase  # noqa: E402
from storage.errors import PollError  # noqa: E402
from tabulation.irv import MajorityRule  # noqa: E402
from tabulation.results import round_summary, tabulate  # noqa: E402

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Run IRV tabulation for a poll")
    parser.add_argument("--db", help="Path to DuckDB database file with polls")
    parser.add_argument("--poll", required=True, help="Poll ID to tabulate")
    parser.add_argument(
        "--majority-rule",
        choices=[rule.value for rule in MajorityRule],
        default=MajorityRule.ALL_BALLOTS.value,
        help="Majority denominator: all ballots or continuing ballots (default: all)",
    )
    parser.add_argument("--export", help="Export results to JSON and round summary to CSV")

    args = parser.parse_args()

    if not args.db or not Path(args.db).exists():
        logger.error("Database file required and must exist. Run load_ballots.py first.")
        sys.exit(1)

    try:
        with PollDatabase(args.db, read_only=True) as db:
            poll = db.get_poll(args.poll)
            ballots = db.get_ballots(args.poll)
    except PollError as e:
        logger.error(f"Could not load poll: {e}")
        sys.exit(1)

    logger.info(f"=== Tabulating '{poll.title}' ({len(ballots)} ballots) ===")
    result = tabulate(poll, ballots, majority_rule=MajorityRule(args.majority_rule))

    print("\n=== Round-by-Round Results ===")
    summary = round_summary(result)
    if summary.empty:
        print("\nNo ballots cast.")

    for round_num in sorted(summary["round"].unique()):
        round_data = summary[summary["round"] == round_num]
        print(f"\nRound {round_num}:")

        for _, row in round_data.sort_values("votes", ascending=False).iterrows():
            status_symbol = {
                "elected": "🏆",
                "eliminated": "❌",
                "continuing": "  ",
            }.get(row["status"], "  ")
            print(
                f"  {status_symbol} {row['candidate']:25s}: {row['votes']:6d} votes ({row['share']:6.1%})"
            )

        if round_data.iloc[0]["exhausted"] > 0:
            print(f"     {'Exhausted':25s}: {round_data.iloc[0]['exhausted']:6d} votes")

    print("\n=== Final Results ===")
    print(f"IRV winner:   {result.winner or '-'}")
    print(f"Borda winner: {result.borda_winner or '-'}")
    print("\nBorda scores:")
    for candidate_id, score in sorted(
        result.borda_count.items(), key=lambda item: item[1], reverse=True
    ):
        print(f"     {candidate_id:25s}: {score:6d} points")

    if args.export:
        export_path = Path(args.export)

        with open(export_path.with_suffix(".json"), "w") as f:
            json.dump(result.to_dict(), f, indent=2)
        print(f"\n✓ Results exported to: {export_path.with_suffix('.json')}")

        rounds_path = export_path.with_stem(export_path.stem + "_rounds").with_suffix(".csv")
        summary.to_csv(rounds_path, index=False)
        print(f"✓ Round summary exported to: {rounds_path}")

    print("\n✓ Tabulation completed successfully")


if __name__ == "__main__":
    main()
