"""
Finalization - pick exactly one winner and mint the award badge.

The requester supplies a bounded candidate list after the evaluation
deadline. Candidates without a tally are skipped. The surviving standings
go through the tie-break chain in scoring.py; the order of the candidate
list is the last tie-break, so it is caller-controlled.

Awarding is irreversible: the status leaves EVALUATE, so any later
finalize call fails with NotInEvaluationPhase.
"""

from dataclasses import dataclass
from typing import List, Sequence

from sealbid.core.auction.scoring import Standing, rank_standings, select_winner
from sealbid.core.config import EngineConfig
from sealbid.core.errors import (
    BadTiming,
    NoReveals,
    NotInEvaluationPhase,
    raise_if_invalid,
)
from sealbid.core.registry.reputation import VendorRegistry
from sealbid.core.rfp.lifecycle import require_requester
from sealbid.core.rfp.models import Rfp, RfpStatus
from sealbid.core.storage.record_book import RecordBook
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import validate_array

logger = get_logger("finalization")


@dataclass(frozen=True)
class FinalizeResult:
    """Outcome of a successful finalization."""
    winner: str
    badge_id: int
    weighted_sum: int
    weighted_total: int


class Finalizer:
    """Resolves an RFP in evaluation to a single winner."""

    def __init__(self, book: RecordBook, registry: VendorRegistry, config: EngineConfig):
        self.book = book
        self.registry = registry
        self.config = config

    def standings(self, rfp_id: int, candidates: Sequence[str]) -> List[Standing]:
        """Standings for every candidate that has a tally, in list order."""
        standings = []
        for vendor in candidates:
            tally = self.book.tally(rfp_id, vendor)
            if tally is None:
                continue
            proposal = self.book.proposal(rfp_id, vendor)
            standings.append(Standing(
                vendor=vendor,
                weighted_sum=tally.weighted_sum,
                weighted_total=tally.weighted_total,
                reputation=self.registry.reputation(vendor),
                revealed_at=proposal.revealed_at,
            ))
        return standings

    def ranking(self, rfp_id: int, candidates: Sequence[str]) -> List[Standing]:
        """Read-only view of how the candidates would rank right now."""
        raise_if_invalid(validate_array(candidates, "candidates", self.config.max_candidates))
        return rank_standings(self.standings(rfp_id, candidates))

    def finalize(
        self,
        rfp: Rfp,
        caller: str,
        candidates: Sequence[str],
        current_block: int,
    ) -> FinalizeResult:
        """
        Award the RFP.

        Args:
            rfp: RFP in evaluation
            caller: Must be the requester
            candidates: Vendors to consider, at most config.max_candidates
            current_block: Must be past eval_deadline

        Returns:
            FinalizeResult with the winner's tally pair
        """
        require_requester(rfp, caller)

        if rfp.status != RfpStatus.EVALUATE:
            raise NotInEvaluationPhase(f"RFP {rfp.rfp_id} is in {rfp.status.name}")

        if current_block <= rfp.eval_deadline:
            raise BadTiming(
                f"Evaluation of RFP {rfp.rfp_id} runs until block {rfp.eval_deadline}"
            )

        raise_if_invalid(validate_array(candidates, "candidates", self.config.max_candidates))

        winner = select_winner(self.standings(rfp.rfp_id, candidates))
        if winner is None:
            logger.warning(f"Finalize of RFP {rfp.rfp_id} found no scored candidates")
            raise NoReveals(f"No scored candidates for RFP {rfp.rfp_id}")

        badge = self.registry.mint_badge(winner.vendor, rfp.rfp_id, current_block)

        rfp.advance(RfpStatus.AWARDED)
        rfp.winner = winner.vendor
        rfp.badge_id = badge.badge_id
        self.book.save_rfp(rfp)

        logger.info(
            f"RFP {rfp.rfp_id} awarded to {winner.vendor} "
            f"({winner.weighted_sum}/{winner.weighted_total}), badge {badge.badge_id}"
        )
        return FinalizeResult(
            winner=winner.vendor,
            badge_id=badge.badge_id,
            weighted_sum=winner.weighted_sum,
            weighted_total=winner.weighted_total,
        )
