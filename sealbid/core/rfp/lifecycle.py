"""
RFP Lifecycle - creation and requester-driven phase changes.

Deadlines are block heights. The engine never waits on them; it compares
the caller-supplied current block against them and rejects calls outside
the permitted window.
"""

from sealbid.core.config import EngineConfig
from sealbid.core.errors import (
    BadTiming,
    NotAuthorized,
    NotInEvaluationPhase,
    raise_if_invalid,
)
from sealbid.core.rfp.models import Rfp, RfpStatus
from sealbid.core.storage.record_book import RecordBook
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import (
    validate_amount,
    validate_deadlines,
    validate_string,
)

logger = get_logger("rfp")


def require_requester(rfp: Rfp, caller: str) -> None:
    """Only the RFP's requester may drive its state transitions."""
    if caller != rfp.requester:
        raise NotAuthorized(f"{caller} is not the requester of RFP {rfp.rfp_id}")


class RfpLifecycle:
    """Creates RFPs and moves them from bidding into evaluation."""

    def __init__(self, book: RecordBook, config: EngineConfig):
        self.book = book
        self.config = config

    def create(
        self,
        requester: str,
        title: str,
        summary: str,
        min_deposit: int,
        commit_deadline: int,
        reveal_deadline: int,
        eval_deadline: int,
        current_block: int,
    ) -> Rfp:
        """
        Publish a new RFP.

        All inputs are validated before the RFP id is drawn, so a rejected
        creation leaves no trace.
        """
        raise_if_invalid(validate_string(title, "title", self.config.max_title_length, allow_empty=False))
        raise_if_invalid(validate_string(summary, "summary", self.config.max_summary_length))
        raise_if_invalid(validate_amount(min_deposit, "min_deposit"))
        raise_if_invalid(validate_deadlines(current_block, commit_deadline, reveal_deadline, eval_deadline))

        rfp = Rfp(
            rfp_id=self.book.next_rfp_id(),
            requester=requester,
            title=title,
            summary=summary,
            min_deposit=min_deposit,
            commit_deadline=commit_deadline,
            reveal_deadline=reveal_deadline,
            eval_deadline=eval_deadline,
            created_at=current_block,
        )
        self.book.save_rfp(rfp)

        logger.info(
            f"RFP {rfp.rfp_id} created by {requester}: commit<={commit_deadline}, "
            f"reveal<={reveal_deadline}, eval<={eval_deadline}"
        )
        return rfp

    def start_evaluation(self, rfp: Rfp, caller: str, current_block: int) -> Rfp:
        """
        Close bidding and open scoring.

        Allowed once the reveal window has passed, from COMMIT (nobody
        revealed) or REVEAL.
        """
        require_requester(rfp, caller)

        if rfp.status not in (RfpStatus.COMMIT, RfpStatus.REVEAL):
            raise NotInEvaluationPhase(
                f"RFP {rfp.rfp_id} cannot enter evaluation from {rfp.status.name}"
            )

        if current_block <= rfp.reveal_deadline:
            raise BadTiming(
                f"Reveal window open until block {rfp.reveal_deadline}, now {current_block}"
            )

        rfp.advance(RfpStatus.EVALUATE)
        self.book.save_rfp(rfp)

        logger.info(f"RFP {rfp.rfp_id} entered evaluation at block {current_block}")
        return rfp
