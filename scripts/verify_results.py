#!/usr/bin/env python3
"""
Verify a poll's tabulation against the IRV and Borda invariants.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from storage.database import PollDatabase  # noqa: E402
from storage.errors import PollError  # noqa: E402
from tabulation.irv import MajorityRule  # noqa: E402
from tabulation.results import tabulate  # noqa: E402
from tabulation.verification import ResultsVerifier  # noqa: E402

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Verify tabulation invariants for a poll")
    parser.add_argument("--db", required=True, help="Path to DuckDB database file")
    parser.add_argument("--poll", required=True, help="Poll ID to verify")
    parser.add_argument(
        "--majority-rule",
        choices=[rule.value for rule in MajorityRule],
        default=MajorityRule.ALL_BALLOTS.value,
    )
    parser.add_argument("--export", help="Export verification report to file")

    args = parser.parse_args()

    if not Path(args.db).exists():
        logger.error("Database file not found. Run load_ballots.py first.")
        sys.exit(1)

    try:
        with PollDatabase(args.db, read_only=True) as db:
            poll = db.get_poll(args.poll)
            ballots = db.get_ballots(args.poll)
    except PollError as e:
        logger.error(f"Could not load poll: {e}")
        sys.exit(1)

    rule = MajorityRule(args.majority_rule)
    result = tabulate(poll, ballots, majority_rule=rule)

    verifier = ResultsVerifier(poll, ballots, majority_rule=rule)
    verification_results = verifier.verify_results(result)

    report = verifier.generate_verification_report(verification_results)
    print(report)

    if args.export:
        export_path = Path(args.export)
        with open(export_path, "w") as f:
            f.write(report)
        print(f"\n✓ Verification report exported to: {export_path}")

    if verification_results["verification_passed"]:
        print("\n🎉 Verification PASSED!")
        sys.exit(0)
    else:
        print("\n⚠️  Verification FAILED - see report above for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
