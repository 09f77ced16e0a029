"""
Evaluation - evaluator approval, vote weighting and the tally engine.

Weights are integer and never below one:

    weight = 1 + reputation // WEIGHT_DIVISOR   (WEIGHT_DIVISOR = 100)

Each accepted vote updates the vendor's Tally exactly once:

    weighted_sum   += score * weight
    weighted_total += weight

Tallies are never recomputed from votes; the vote write and the tally update
happen in the same store transaction, in acceptance order.
"""

from sealbid.core.config import MAX_SCORE, WEIGHT_DIVISOR, EngineConfig
from sealbid.core.errors import (
    AlreadyVoted,
    BadArgument,
    BadTiming,
    NoProposal,
    NotApprovedEvaluator,
    NotInEvaluationPhase,
    raise_if_invalid,
)
from sealbid.core.rfp.lifecycle import require_requester
from sealbid.core.rfp.models import EvaluatorApproval, Rfp, RfpStatus, Tally, Vote
from sealbid.core.storage.record_book import RecordBook
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import validate_amount, validate_integer

logger = get_logger("evaluation")


def compute_weight(reputation: int) -> int:
    """Vote weight for an evaluator reputation (floor division, minimum 1)."""
    return 1 + max(0, reputation) // WEIGHT_DIVISOR


class EvaluationBoard:
    """Approves evaluators and accepts their scores."""

    def __init__(self, book: RecordBook, config: EngineConfig):
        self.book = book
        self.config = config

    # =========================================================================
    # Evaluators
    # =========================================================================

    def approve(self, rfp: Rfp, caller: str, evaluator: str, reputation: int) -> EvaluatorApproval:
        """Approve (or re-approve with a new reputation) an evaluator. Requester only."""
        require_requester(rfp, caller)
        raise_if_invalid(validate_amount(reputation, "reputation"))

        approval = EvaluatorApproval(
            rfp_id=rfp.rfp_id,
            evaluator=evaluator,
            approved=True,
            reputation=reputation,
        )
        self.book.save_evaluator(approval)

        logger.debug(
            f"Evaluator {evaluator} approved for RFP {rfp.rfp_id} "
            f"(reputation={reputation}, weight={self._weight(reputation)})"
        )
        return approval

    def weight_of(self, rfp_id: int, evaluator: str) -> int:
        """Weight of an evaluator on an RFP; unknown evaluators weigh 1."""
        approval = self.book.evaluator(rfp_id, evaluator)
        return self._weight(approval.reputation if approval else 0)

    def _weight(self, reputation: int) -> int:
        return compute_weight(reputation)

    # =========================================================================
    # Scoring
    # =========================================================================

    def cast_score(
        self,
        rfp: Rfp,
        evaluator: str,
        vendor: str,
        score: int,
        current_block: int,
    ) -> Tally:
        """
        Record one weighted score for a revealed vendor.

        Returns:
            The vendor's updated Tally
        """
        if rfp.status != RfpStatus.EVALUATE:
            raise NotInEvaluationPhase(f"RFP {rfp.rfp_id} is in {rfp.status.name}")

        if not rfp.in_eval_window(current_block):
            raise BadTiming(
                f"Evaluation of RFP {rfp.rfp_id} closed at block {rfp.eval_deadline}"
            )

        approval = self.book.evaluator(rfp.rfp_id, evaluator)
        if approval is None or not approval.approved:
            raise NotApprovedEvaluator(f"{evaluator} is not approved for RFP {rfp.rfp_id}")

        valid, err = validate_integer(score, "score", 0, MAX_SCORE)
        if not valid:
            raise BadArgument(err)

        if self.book.proposal(rfp.rfp_id, vendor) is None:
            raise NoProposal(f"{vendor} has no revealed proposal for RFP {rfp.rfp_id}")

        if self.book.vote(rfp.rfp_id, evaluator, vendor) is not None:
            raise AlreadyVoted(f"{evaluator} already scored {vendor} on RFP {rfp.rfp_id}")

        weight = self._weight(approval.reputation)
        self.book.save_vote(Vote(
            rfp_id=rfp.rfp_id,
            evaluator=evaluator,
            vendor=vendor,
            score=score,
            weight=weight,
            cast_at=current_block,
        ))

        tally = self.book.tally(rfp.rfp_id, vendor) or Tally(rfp_id=rfp.rfp_id, vendor=vendor)
        tally.add(score, weight)
        self.book.save_tally(tally)

        logger.debug(
            f"Score {score}x{weight} for {vendor} on RFP {rfp.rfp_id} by {evaluator}: "
            f"tally={tally.weighted_sum}/{tally.weighted_total}"
        )
        return tally
