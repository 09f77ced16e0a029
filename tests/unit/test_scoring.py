"""
Tests for winner selection and tie-breaking.

Tests cover:
1. Weighted average comparison
2. Tie-break chain
3. Winner selection and ranking
"""

import itertools

import pytest

from sealbid.core.auction import (
    Standing,
    compare_averages,
    compare_standings,
    rank_standings,
    select_winner,
    verify_winner,
)


def standing(vendor, ws, wt, reputation=0, revealed_at=15):
    return Standing(
        vendor=vendor,
        weighted_sum=ws,
        weighted_total=wt,
        reputation=reputation,
        revealed_at=revealed_at,
    )


# =============================================================================
# Average Comparison Tests
# =============================================================================


class TestCompareAverages:
    """Cross-multiplied average comparison."""

    def test_cross_multiplication(self):
        """180/2 (90) beats 350/4 (87.5): 720 > 700."""
        a = standing("a", 180, 2)
        b = standing("b", 350, 4)
        assert compare_averages(a, b) == 1
        assert compare_averages(b, a) == -1

    def test_average_not_sum(self):
        """A larger weighted_sum does not win on its own."""
        low_sum = standing("a", 100, 1)
        high_sum = standing("b", 150, 3)
        assert compare_averages(low_sum, high_sum) == 1

    def test_equal_averages(self):
        assert compare_averages(standing("a", 80, 1), standing("b", 240, 3)) == 0

    def test_zero_scores(self):
        assert compare_averages(standing("a", 0, 5), standing("b", 0, 1)) == 0


# =============================================================================
# Tie-Break Chain Tests
# =============================================================================


class TestTieBreak:
    """Tests for the tie-break chain order."""

    def test_average_dominates_reputation(self):
        better = standing("a", 90, 1, reputation=0)
        famous = standing("b", 89, 1, reputation=10_000)
        assert compare_standings(better, famous) == 1

    def test_reputation_breaks_average_tie(self):
        a = standing("a", 80, 1, reputation=10)
        b = standing("b", 160, 2, reputation=20)
        assert compare_standings(b, a) == 1
        assert compare_standings(a, b) == -1

    def test_earlier_reveal_breaks_reputation_tie(self):
        early = standing("a", 80, 1, revealed_at=11)
        late = standing("b", 80, 1, revealed_at=12)
        assert compare_standings(early, late) == 1
        assert compare_standings(late, early) == -1

    def test_full_tie(self):
        assert compare_standings(standing("a", 80, 1), standing("b", 80, 1)) == 0


# =============================================================================
# Winner Selection Tests
# =============================================================================


class TestSelectWinner:
    """Tests for winner selection."""

    def test_empty(self):
        assert select_winner([]) is None

    def test_single(self):
        only = standing("a", 10, 1)
        assert select_winner([only]) == only

    def test_scenario_720_vs_700(self):
        winner = select_winner([standing("b", 350, 4), standing("a", 180, 2)])
        assert winner.vendor == "a"

    def test_full_tie_keeps_first_listed(self):
        """Candidate order is the final tie-break."""
        a = standing("a", 80, 1)
        b = standing("b", 80, 1)
        assert select_winner([a, b]).vendor == "a"
        assert select_winner([b, a]).vendor == "b"

    def test_earlier_reveal_wins_in_any_order(self):
        """Reveal-time tie-break is independent of list order."""
        candidates = [
            standing("a", 80, 1, revealed_at=14),
            standing("b", 80, 1, revealed_at=12),
            standing("c", 80, 1, revealed_at=13),
        ]
        for order in itertools.permutations(candidates):
            assert select_winner(list(order)).vendor == "b"

    def test_verify_winner(self):
        candidates = [standing("a", 180, 2), standing("b", 350, 4)]
        assert verify_winner("a", candidates)
        assert not verify_winner("b", candidates)
        assert not verify_winner("a", [])


# =============================================================================
# Ranking Tests
# =============================================================================


class TestRanking:

    def test_rank_order(self):
        ranked = rank_standings([
            standing("low", 50, 1),
            standing("high", 95, 1),
            standing("mid", 150, 2),
        ])
        assert [s.vendor for s in ranked] == ["high", "mid", "low"]

    @pytest.mark.parametrize("seed", range(5))
    def test_first_ranked_is_winner(self, seed):
        import random

        rng = random.Random(seed)
        candidates = [
            standing(
                f"v{i}",
                rng.randint(0, 300),
                rng.randint(1, 3),
                reputation=rng.randint(0, 2),
                revealed_at=rng.randint(11, 13),
            )
            for i in range(8)
        ]
        assert rank_standings(candidates)[0] == select_winner(candidates)

    def test_stable_for_ties(self):
        ranked = rank_standings([standing("a", 80, 1), standing("b", 80, 1)])
        assert [s.vendor for s in ranked] == ["a", "b"]
