import logging
from typing import Dict, List, Sequence

from .irv import MajorityRule
from .models import Ballot, PollDefinition, Result
from .registry import CandidateRegistry
from .results import tabulate

logger = logging.getLogger(__name__)


class ResultsVerifier:
    """
    Verifies a computed Result against the ballots it was computed from.

    Each check re-derives a property that must hold for every valid
    tabulation and records whether the Result satisfies it.
    """

    def __init__(
        self,
        poll: PollDefinition,
        ballots: Sequence[Ballot],
        majority_rule: MajorityRule = MajorityRule.ALL_BALLOTS,
    ):
        """
        Initialize verifier.

        Args:
            poll: Poll the result belongs to
            ballots: Ballot snapshot the result was computed from
            majority_rule: Majority rule used when the result was computed
        """
        self.poll = poll
        self.ballots = list(ballots)
        self.majority_rule = MajorityRule(majority_rule)
        self.registry = CandidateRegistry.from_poll(poll)

    @staticmethod
    def _check(name: str, passed: bool, detail: str = "") -> Dict:
        return {"check": name, "passed": bool(passed), "detail": detail}

    def check_round_count(self, result: Result) -> Dict:
        limit = len(self.registry)
        return self._check(
            "round_count",
            len(result.rounds) <= limit,
            f"{len(result.rounds)} rounds for {limit} candidates",
        )

    def check_elimination_progress(self, result: Result) -> Dict:
        """Each non-terminal round drops exactly its eliminated candidate."""
        problems = []
        for previous, current in zip(result.rounds, result.rounds[1:]):
            if previous.eliminated is None:
                problems.append(f"round {previous.round_number} is terminal but not last")
                continue
            expected = set(previous.votes) - {previous.eliminated}
            if set(current.votes) != expected:
                problems.append(
                    f"round {current.round_number} candidates do not follow "
                    f"elimination of {previous.eliminated}"
                )
        if result.rounds and result.rounds[-1].eliminated is not None:
            problems.append("final round records an elimination")
        return self._check("elimination_progress", not problems, "; ".join(problems))

    def check_winner_not_eliminated(self, result: Result) -> Dict:
        eliminated = [r.eliminated for r in result.rounds if r.eliminated is not None]
        passed = result.winner is None or result.winner not in eliminated
        return self._check(
            "winner_not_eliminated", passed, f"winner={result.winner}, eliminated={eliminated}"
        )

    def check_round_totals(self, result: Result) -> Dict:
        """Round totals never exceed the ballot count and match it unless ballots exhausted."""
        problems = []
        for round_obj in result.rounds:
            remaining = set(round_obj.votes)
            exhausted = sum(
                1
                for ballot in self.ballots
                if not any(candidate_id in remaining for candidate_id in ballot.rankings)
            )
            counted = sum(round_obj.votes.values())
            if counted > result.total_votes:
                problems.append(f"round {round_obj.round_number} counts {counted} votes")
            elif (counted == result.total_votes) != (exhausted == 0):
                problems.append(
                    f"round {round_obj.round_number} counts {counted} of "
                    f"{result.total_votes} with {exhausted} exhausted"
                )
        return self._check("round_totals", not problems, "; ".join(problems))

    def check_borda_coverage(self, result: Result) -> Dict:
        missing = [c for c in self.registry if c not in result.borda_count]
        return self._check("borda_coverage", not missing, f"missing={missing}")

    def check_borda_total(self, result: Result) -> Dict:
        expected = 0
        for ballot in self.ballots:
            k = len(self.registry.valid_preferences(ballot.rankings))
            expected += k * (k - 1) // 2
        actual = sum(result.borda_count.values())
        return self._check("borda_total", actual == expected, f"expected={expected}, actual={actual}")

    def check_determinism(self, result: Result) -> Dict:
        recomputed = tabulate(self.poll, self.ballots, majority_rule=self.majority_rule)
        return self._check("determinism", recomputed.to_dict() == result.to_dict())

    def verify_results(self, result: Result) -> Dict:
        """
        Run every check against a result.

        Returns:
            Verification report dictionary
        """
        logger.info(f"Verifying results for poll {result.poll_id}")

        checks: List[Dict] = [
            self.check_round_count(result),
            self.check_elimination_progress(result),
            self.check_winner_not_eliminated(result),
            self.check_round_totals(result),
            self.check_borda_coverage(result),
            self.check_borda_total(result),
            self.check_determinism(result),
        ]
        failed = [c["check"] for c in checks if not c["passed"]]
        if failed:
            logger.warning(f"Verification failed for poll {result.poll_id}: {failed}")

        return {
            "poll_id": result.poll_id,
            "total_votes": result.total_votes,
            "winner": result.winner,
            "borda_winner": result.borda_winner,
            "winners_agree": result.winner == result.borda_winner,
            "checks": checks,
            "failed_checks": failed,
            "verification_passed": not failed,
        }

    def generate_verification_report(self, verification_results: Dict) -> str:
        """
        Generate a human-readable verification report.

        Args:
            verification_results: Results from verify_results()

        Returns:
            Formatted verification report string
        """
        report = []
        report.append("=" * 60)
        report.append(f"TABULATION VERIFICATION REPORT: {self.poll.title}")
        report.append("=" * 60)

        if verification_results["verification_passed"]:
            report.append("PASSED - all tabulation checks hold")
        else:
            report.append("FAILED - " + ", ".join(verification_results["failed_checks"]))

        report.append("")
        report.append(f"Total ballots: {verification_results['total_votes']}")
        report.append(f"IRV winner:    {verification_results['winner'] or '-'}")
        report.append(f"Borda winner:  {verification_results['borda_winner'] or '-'}")
        if not verification_results["winners_agree"]:
            report.append("Note: IRV and Borda winners differ")

        report.append("")
        report.append("CHECKS:")
        for check in verification_results["checks"]:
            status = "ok  " if check["passed"] else "FAIL"
            line = f"  [{status}] {check['check']}"
            if check["detail"]:
                line += f" ({check['detail']})"
            report.append(line)

        return "\n".join(report)
