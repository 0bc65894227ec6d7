"""
Unit tests for result assembly, wire serialization and round summaries.
"""

import json

import pandas as pd
import pytest

from conftest import make_ballots, make_poll
from tabulation.irv import MajorityRule
from tabulation.models import Result, Round
from tabulation.results import assemble_result, round_summary, tabulate


@pytest.mark.unit
class TestTabulate:
    def test_cyclic_preferences_result(self, cyclic_poll):
        poll, ballots = cyclic_poll
        result = tabulate(poll, ballots)

        assert result.to_dict() == {
            "pollId": "poll-1",
            "totalVotes": 3,
            "rounds": [
                {"roundNumber": 1, "votes": {"A": 1, "B": 1, "C": 1}, "eliminated": "A"},
                {"roundNumber": 2, "votes": {"B": 2, "C": 1}},
            ],
            "winner": "B",
            "bordaCount": {"A": 3, "B": 3, "C": 3},
            "bordaWinner": "A",
        }

    def test_empty_poll_result(self):
        result = tabulate(make_poll(["P", "Q"]), [])

        assert result.total_votes == 0
        assert result.rounds == []
        assert result.winner is None
        assert result.borda_count == {"P": 0, "Q": 0}
        assert result.borda_winner is None
        assert result.to_dict() == {
            "pollId": "poll-1",
            "totalVotes": 0,
            "rounds": [],
            "bordaCount": {"P": 0, "Q": 0},
        }

    def test_immediate_majority_result(self):
        result = tabulate(make_poll(["X", "Y"]), make_ballots([["X"]]))

        assert result.winner == "X"
        assert len(result.rounds) == 1
        assert result.borda_count == {"X": 0, "Y": 0}
        assert result.borda_winner == "X"
        assert result.to_dict()["bordaWinner"] == "X"

    def test_majority_rule_is_passed_through(self):
        poll = make_poll(["A", "B", "C"])
        ballots = make_ballots([["A"], ["A"], ["B"], ["C"]])

        assert len(tabulate(poll, ballots).rounds) == 3
        assert len(tabulate(poll, ballots, majority_rule="continuing").rounds) == 2
        assert (
            len(tabulate(poll, ballots, majority_rule=MajorityRule.ALL_BALLOTS).rounds)
            == 3
        )

    @pytest.mark.invariant
    def test_identical_inputs_give_identical_output(self, malformed_poll):
        poll, ballots = malformed_poll

        first = json.dumps(tabulate(poll, ballots).to_dict())
        second = json.dumps(tabulate(poll, list(ballots)).to_dict())

        assert first == second


@pytest.mark.unit
class TestAssembleResult:
    def test_copies_inputs(self):
        rounds = [Round(round_number=1, votes={"A": 1, "B": 0})]
        borda_count = {"A": 0, "B": 0}

        result = assemble_result("p", 1, rounds, "A", borda_count, None)
        rounds.append(Round(round_number=2, votes={}))
        borda_count["A"] = 99

        assert len(result.rounds) == 1
        assert result.borda_count == {"A": 0, "B": 0}
        assert result.winner == "A"
        assert result.borda_winner is None

    def test_round_wire_format_omits_missing_elimination(self):
        assert Round(round_number=3, votes={"A": 2}).to_dict() == {
            "roundNumber": 3,
            "votes": {"A": 2},
        }


@pytest.mark.unit
class TestRoundSummary:
    def test_summary_rows_and_status(self, cyclic_poll):
        poll, ballots = cyclic_poll
        summary = round_summary(tabulate(poll, ballots))

        assert len(summary) == 5
        assert list(summary.columns) == [
            "round",
            "candidate",
            "votes",
            "share",
            "status",
            "exhausted",
        ]

        round_1 = summary[summary["round"] == 1].set_index("candidate")
        assert round_1.loc["A", "status"] == "eliminated"
        assert round_1.loc["B", "status"] == "continuing"

        round_2 = summary[summary["round"] == 2].set_index("candidate")
        assert round_2.loc["B", "status"] == "elected"
        assert round_2.loc["B", "votes"] == 2
        assert round_2.loc["C", "status"] == "continuing"
        assert (summary["exhausted"] == 0).all()

    def test_summary_counts_exhausted_ballots(self, malformed_poll):
        poll, ballots = malformed_poll
        summary = round_summary(tabulate(poll, ballots))

        exhausted = summary.groupby("round")["exhausted"].first().tolist()
        assert exhausted == [1, 2, 3]

    def test_empty_summary(self):
        summary = round_summary(Result(poll_id="p", total_votes=0))

        assert isinstance(summary, pd.DataFrame)
        assert summary.empty
        assert "candidate" in summary.columns
