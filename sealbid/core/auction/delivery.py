"""
Delivery - hash-gated milestone and final deliverable release.

Vendors post deliverable hashes; the requester releases them by presenting
the hash they expect. Only an exact byte match releases anything.

A release happens in two steps inside the caller's store transaction:
record_* validates and writes every record change, then pay() asks the
injected Disburser for funds. pay() is always the last step, so nothing
that runs after a payout is authorized can fail the operation. A refused or
failed payout raises PayoutFailed and the transaction rolls back the
recorded release, so custody never changes without confirmed funds.
"""

from sealbid.core.errors import (
    AlreadyReleased,
    BadArgument,
    BadTiming,
    HashMismatch,
    MilestoneMismatch,
    NotAuthorized,
    NotFound,
    NotWinner,
    PayoutFailed,
    raise_if_invalid,
)
from sealbid.core.payout import Disburser, PayoutContext, PayoutReceipt
from sealbid.core.registry.reputation import VendorRegistry
from sealbid.core.rfp.lifecycle import require_requester
from sealbid.core.rfp.models import Milestone, Rfp, RfpStatus
from sealbid.core.storage.record_book import RecordBook
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import validate_amount, validate_hash, validate_integer

logger = get_logger("delivery")

FINAL_REASON = "final"


def milestone_reason(index: int) -> str:
    return f"milestone:{index}"


class DeliveryDesk:
    """Milestone posting/release and final deliverable verification."""

    def __init__(self, book: RecordBook, registry: VendorRegistry, disburser: Disburser):
        self.book = book
        self.registry = registry
        self.disburser = disburser

    # =========================================================================
    # Milestones
    # =========================================================================

    def post_milestone(
        self,
        rfp: Rfp,
        vendor: str,
        index: int,
        deliverable_hash: bytes,
        current_block: int,
    ) -> Milestone:
        """Post (or re-post) the deliverable hash for a milestone."""
        if self.book.proposal(rfp.rfp_id, vendor) is None:
            raise NotAuthorized(f"{vendor} has no revealed proposal for RFP {rfp.rfp_id}")

        raise_if_invalid(validate_integer(index, "index"))
        raise_if_invalid(validate_hash(deliverable_hash, "deliverable_hash"))

        existing = self.book.milestone(rfp.rfp_id, vendor, index)
        if existing is not None and existing.released:
            raise AlreadyReleased(f"Milestone {index} of {vendor} on RFP {rfp.rfp_id} already released")

        milestone = Milestone(
            rfp_id=rfp.rfp_id,
            vendor=vendor,
            index=index,
            deliverable_hash=bytes(deliverable_hash),
            posted_at=current_block,
        )
        self.book.save_milestone(milestone)

        logger.debug(f"Milestone {index} posted by {vendor} for RFP {rfp.rfp_id}")
        return milestone

    def record_release(
        self,
        rfp: Rfp,
        caller: str,
        vendor: str,
        index: int,
        expected_hash: bytes,
        amount: int,
        current_block: int,
    ) -> Milestone:
        """
        Mark a milestone released if its posted hash matches expected_hash.

        The caller must follow with pay() in the same transaction.

        Returns:
            The released Milestone
        """
        require_requester(rfp, caller)
        raise_if_invalid(validate_hash(expected_hash, "expected_hash"))
        raise_if_invalid(validate_amount(amount))
        if amount == 0:
            raise BadArgument("amount must be positive")

        milestone = self.book.milestone(rfp.rfp_id, vendor, index)
        if milestone is None or not milestone.deliverable_hash:
            raise NotFound(f"No posted milestone {index} for {vendor} on RFP {rfp.rfp_id}")

        if milestone.released:
            raise AlreadyReleased(f"Milestone {index} of {vendor} on RFP {rfp.rfp_id} already released")

        if milestone.deliverable_hash != expected_hash:
            logger.warning(f"Milestone {index} hash mismatch for {vendor} on RFP {rfp.rfp_id}")
            raise MilestoneMismatch("Posted deliverable does not match expected hash")

        milestone.released = True
        milestone.released_at = current_block
        self.book.save_milestone(milestone)

        logger.info(f"Milestone {index} of {vendor} on RFP {rfp.rfp_id} released ({amount})")
        return milestone

    # =========================================================================
    # Final Deliverable
    # =========================================================================

    def post_final(self, rfp: Rfp, caller: str, deliverable_hash: bytes) -> None:
        """Winner of an awarded RFP posts the hash of the final deliverable."""
        if rfp.status != RfpStatus.AWARDED or rfp.winner is None or caller != rfp.winner:
            raise NotWinner(
                f"{caller} is not the winner of awarded RFP {rfp.rfp_id} ({rfp.status.name})"
            )

        raise_if_invalid(validate_hash(deliverable_hash, "deliverable_hash"))

        proposal = self.book.proposal(rfp.rfp_id, caller)
        proposal.deliverable_hash = bytes(deliverable_hash)
        self.book.save_proposal(proposal)

        logger.debug(f"Final deliverable posted by {caller} for RFP {rfp.rfp_id}")

    def record_completion(
        self,
        rfp: Rfp,
        caller: str,
        expected_hash: bytes,
        rep_bump: int,
        amount: int = 0,
    ) -> None:
        """
        Verify the final deliverable and complete the RFP.

        On match the winner's reputation rises by rep_bump and the RFP
        becomes COMPLETED. A positive amount is paid afterwards with pay().
        """
        require_requester(rfp, caller)

        if rfp.status != RfpStatus.AWARDED or rfp.winner is None:
            raise BadTiming(f"RFP {rfp.rfp_id} has no pending final deliverable ({rfp.status.name})")

        raise_if_invalid(validate_hash(expected_hash, "expected_hash"))
        raise_if_invalid(validate_amount(rep_bump, "rep_bump"))
        raise_if_invalid(validate_amount(amount))

        proposal = self.book.proposal(rfp.rfp_id, rfp.winner)
        if proposal is None or not proposal.deliverable_hash:
            raise NotFound(f"Winner of RFP {rfp.rfp_id} has not posted a final deliverable")

        if proposal.deliverable_hash != expected_hash:
            logger.warning(f"Final deliverable hash mismatch on RFP {rfp.rfp_id}")
            raise HashMismatch("Final deliverable does not match expected hash")

        self.registry.bump(rfp.winner, rep_bump)

        rfp.advance(RfpStatus.COMPLETED)
        self.book.save_rfp(rfp)

        logger.info(f"RFP {rfp.rfp_id} completed by {rfp.winner}")

    # =========================================================================
    # Payout
    # =========================================================================

    def pay(self, rfp: Rfp, recipient: str, amount: int, reason: str) -> PayoutReceipt:
        """Ask the Disburser for funds; raises PayoutFailed unless it confirms."""
        context = PayoutContext(rfp_id=rfp.rfp_id, payer=rfp.requester, reason=reason)
        try:
            receipt = self.disburser.disburse(context, recipient, amount)
        except Exception as e:
            logger.warning(f"Payout of {amount} to {recipient} on RFP {rfp.rfp_id} raised: {e}")
            raise PayoutFailed(f"Disbursement failed: {e}") from e

        if not receipt.success:
            logger.warning(f"Payout of {amount} to {recipient} on RFP {rfp.rfp_id} refused: {receipt.reference}")
            raise PayoutFailed(f"Disbursement refused: {receipt.reference}")

        return receipt
