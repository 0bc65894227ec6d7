"""
Unit tests for ResultsVerifier.

A correct tabulation must pass every check; hand-tampered results must be
caught by the matching check.
"""

import pytest

from conftest import make_ballots, make_poll
from tabulation.models import Round
from tabulation.results import tabulate
from tabulation.verification import ResultsVerifier


def failed_checks(poll, ballots, result):
    return ResultsVerifier(poll, ballots).verify_results(result)["failed_checks"]


@pytest.mark.unit
class TestResultsVerifier:
    def test_correct_result_passes(self, cyclic_poll):
        poll, ballots = cyclic_poll
        report = ResultsVerifier(poll, ballots).verify_results(tabulate(poll, ballots))

        assert report["verification_passed"] is True
        assert report["failed_checks"] == []
        assert report["winner"] == "B"
        assert report["borda_winner"] == "A"
        assert report["winners_agree"] is False
        assert len(report["checks"]) == 7

    def test_malformed_ballots_pass(self, malformed_poll):
        poll, ballots = malformed_poll
        assert failed_checks(poll, ballots, tabulate(poll, ballots)) == []

    def test_empty_poll_passes(self):
        poll = make_poll(["P", "Q"])
        report = ResultsVerifier(poll, []).verify_results(tabulate(poll, []))

        assert report["verification_passed"] is True
        assert report["winners_agree"] is True

    def test_unanimous_single_preference_winners_agree(self):
        poll = make_poll(["X", "Y"])
        ballots = make_ballots([["X"]])
        report = ResultsVerifier(poll, ballots).verify_results(tabulate(poll, ballots))

        assert report["winner"] == "X"
        assert report["borda_winner"] == "X"
        assert report["winners_agree"] is True

    def test_eliminated_winner_detected(self, cyclic_poll):
        poll, ballots = cyclic_poll
        result = tabulate(poll, ballots)
        result.winner = "A"

        failed = failed_checks(poll, ballots, result)
        assert "winner_not_eliminated" in failed
        assert "determinism" in failed

    def test_inflated_round_detected(self, cyclic_poll):
        poll, ballots = cyclic_poll
        result = tabulate(poll, ballots)
        result.rounds[1].votes["B"] = 5

        assert "round_totals" in failed_checks(poll, ballots, result)

    def test_broken_elimination_chain_detected(self, cyclic_poll):
        poll, ballots = cyclic_poll
        result = tabulate(poll, ballots)
        result.rounds[1] = Round(round_number=2, votes={"A": 1, "B": 2})

        assert "elimination_progress" in failed_checks(poll, ballots, result)

    def test_too_many_rounds_detected(self):
        poll = make_poll(["X", "Y"])
        ballots = make_ballots([["X"]])
        result = tabulate(poll, ballots)
        result.rounds = [Round(round_number=n, votes={"X": 1}) for n in (1, 2, 3)]

        failed = failed_checks(poll, ballots, result)
        assert "round_count" in failed
        assert "elimination_progress" in failed

    def test_borda_problems_detected(self, cyclic_poll):
        poll, ballots = cyclic_poll
        result = tabulate(poll, ballots)
        del result.borda_count["C"]

        failed = failed_checks(poll, ballots, result)
        assert "borda_coverage" in failed
        assert "borda_total" in failed

    def test_text_report(self, cyclic_poll):
        poll, ballots = cyclic_poll
        verifier = ResultsVerifier(poll, ballots)
        report = verifier.generate_verification_report(
            verifier.verify_results(tabulate(poll, ballots))
        )

        assert "PASSED" in report
        assert "IRV winner:    B" in report
        assert "IRV and Borda winners differ" in report
        assert "[ok  ] determinism" in report
