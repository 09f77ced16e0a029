"""
Scoring - Deterministic winner selection for RFPs.

This module implements the tie-break chain used at finalization:
1. Higher weighted average score
2. Higher vendor reputation
3. Earlier reveal block
4. Earlier position in the candidate list (caller-controlled)

All comparisons use integer arithmetic only. Averages are never computed;
instead the weighted average of A (ws_A / wt_A) is compared with B's by
cross-multiplication:

    ws_A * wt_B  vs  ws_B * wt_A

which is exact because every weighted_total is positive.
"""

from dataclasses import dataclass
from functools import cmp_to_key
from typing import List, Optional, Sequence

from sealbid.utils.logger import get_logger

logger = get_logger("scoring")


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True)
class Standing:
    """
    Everything the tie-break chain needs about one candidate.

    Attributes:
        vendor: Vendor account
        weighted_sum: Sum of score * weight over accepted votes
        weighted_total: Sum of weights over accepted votes (>= 1)
        reputation: Vendor reputation at finalization time
        revealed_at: Block the vendor's proposal was revealed
    """
    vendor: str
    weighted_sum: int
    weighted_total: int
    reputation: int
    revealed_at: int


# =============================================================================
# Comparison
# =============================================================================


def compare_averages(a: Standing, b: Standing) -> int:
    """
    Compare weighted averages without division.

    Returns:
        -1 if a's average is lower, 0 if equal, +1 if higher
    """
    left = a.weighted_sum * b.weighted_total
    right = b.weighted_sum * a.weighted_total
    if left > right:
        return 1
    if left < right:
        return -1
    return 0


def compare_standings(challenger: Standing, incumbent: Standing) -> int:
    """
    Compare two candidates under the full tie-break chain.

    Returns:
        +1 if challenger ranks strictly higher
        -1 if incumbent ranks strictly higher
         0 if indistinguishable (list order decides)
    """
    by_average = compare_averages(challenger, incumbent)
    if by_average != 0:
        return by_average

    if challenger.reputation > incumbent.reputation:
        return 1
    if challenger.reputation < incumbent.reputation:
        return -1

    # Earlier reveal wins
    if challenger.revealed_at < incumbent.revealed_at:
        return 1
    if challenger.revealed_at > incumbent.revealed_at:
        return -1

    return 0


# =============================================================================
# Winner Selection
# =============================================================================


def select_winner(standings: Sequence[Standing]) -> Optional[Standing]:
    """
    Select the winning candidate.

    Left-to-right reduction carrying a running best; a challenger replaces
    the incumbent only when it ranks strictly higher, so full ties keep the
    first-seen candidate.

    Returns:
        The winning Standing, or None if no standings were given
    """
    if not standings:
        logger.debug("No standings to select winner from")
        return None

    best = standings[0]
    for candidate in standings[1:]:
        if compare_standings(candidate, best) > 0:
            best = candidate

    logger.debug(
        f"Selected winner {best.vendor} with {best.weighted_sum}/{best.weighted_total}"
    )
    return best


def verify_winner(claimed_vendor: str, standings: Sequence[Standing]) -> bool:
    """Check that claimed_vendor is the winner of the given standings."""
    winner = select_winner(standings)
    return winner is not None and winner.vendor == claimed_vendor


def rank_standings(standings: Sequence[Standing]) -> List[Standing]:
    """
    Rank all candidates from best to worst.

    Uses a stable sort with the same comparator as select_winner, so the
    first element always equals select_winner(standings).
    """
    return sorted(standings, key=cmp_to_key(lambda a, b: -compare_standings(a, b)))


__all__ = [
    "Standing",
    "compare_averages",
    "compare_standings",
    "select_winner",
    "verify_winner",
    "rank_standings",
]
