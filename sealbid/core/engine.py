"""
Procurement Engine - the operation surface for sealed-bid RFPs.

Every mutating call:
- takes the caller's resolved account identifier and the current block,
- runs inside a single store transaction (all writes or none),
- appends one audit event describing what it accepted.

Rejections raise an EngineError subclass; see sealbid.core.errors.
"""

from typing import List, Optional, Sequence, Tuple

from sealbid.core.audit import AuditEvent, AuditJournal
from sealbid.core.auction.commit_reveal import CommitRevealBook
from sealbid.core.auction.delivery import FINAL_REASON, DeliveryDesk, milestone_reason
from sealbid.core.auction.evaluation import EvaluationBoard
from sealbid.core.auction.finalization import FinalizeResult, Finalizer
from sealbid.core.auction.scoring import Standing
from sealbid.core.config import EngineConfig
from sealbid.core.errors import NotFound, raise_if_invalid
from sealbid.core.payout import Disburser, PayoutReceipt, RecordingDisburser
from sealbid.core.registry.reputation import VendorRegistry
from sealbid.core.rfp.lifecycle import RfpLifecycle
from sealbid.core.rfp.models import (
    Badge,
    Commitment,
    EvaluatorApproval,
    Milestone,
    Proposal,
    Rfp,
    Tally,
    Vote,
)
from sealbid.core.storage.record_book import RecordBook
from sealbid.core.storage.record_store import MemoryRecordStore, RecordStore
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import validate_account, validate_block_number

logger = get_logger("engine")


class ProcurementEngine:
    """
    Facade over the RFP subsystems.

    Args:
        store: Record store (in-memory if omitted)
        disburser: Payout collaborator (a RecordingDisburser if omitted)
        config: Engine configuration
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        disburser: Optional[Disburser] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or EngineConfig()
        self.store = store if store is not None else MemoryRecordStore()
        self.disburser = disburser if disburser is not None else RecordingDisburser()

        self.book = RecordBook(self.store)
        self.audit = AuditJournal(self.store)
        self.lifecycle = RfpLifecycle(self.book, self.config)
        self.registry = VendorRegistry(self.book, self.config)
        self.bids = CommitRevealBook(self.book, self.config)
        self.evaluation = EvaluationBoard(self.book, self.config)
        self.finalizer = Finalizer(self.book, self.registry, self.config)
        self.delivery = DeliveryDesk(self.book, self.registry, self.disburser)

    # =========================================================================
    # RFP Lifecycle
    # =========================================================================

    def create_rfp(
        self,
        caller: str,
        title: str,
        summary: str,
        min_deposit: int,
        commit_deadline: int,
        reveal_deadline: int,
        eval_deadline: int,
        current_block: int,
    ) -> int:
        """Publish an RFP; returns its id."""
        self._check_call(caller, current_block)
        with self.book.transaction():
            rfp = self.lifecycle.create(
                caller, title, summary, min_deposit,
                commit_deadline, reveal_deadline, eval_deadline, current_block,
            )
            self.audit.append(rfp.rfp_id, "create", caller, current_block, {
                "title": title,
                "min_deposit": min_deposit,
                "commit_deadline": commit_deadline,
                "reveal_deadline": reveal_deadline,
                "eval_deadline": eval_deadline,
            })
        return rfp.rfp_id

    def start_evaluation(self, caller: str, rfp_id: int, current_block: int) -> None:
        self._check_call(caller, current_block)
        with self.book.transaction():
            rfp = self._load_rfp(rfp_id)
            self.lifecycle.start_evaluation(rfp, caller, current_block)
            self.audit.append(rfp_id, "start_evaluation", caller, current_block)

    # =========================================================================
    # Commit-Reveal
    # =========================================================================

    def commit(self, caller: str, rfp_id: int, commitment: bytes, current_block: int) -> None:
        self._check_call(caller, current_block)
        with self.book.transaction():
            rfp = self._load_rfp(rfp_id)
            self.bids.commit(rfp, caller, commitment, current_block)
            self.audit.append(rfp_id, "commit", caller, current_block, {
                "commitment": commitment.hex(),
            })

    def reveal(
        self,
        caller: str,
        rfp_id: int,
        uri: str,
        deposit: int,
        salt: bytes,
        current_block: int,
    ) -> None:
        self._check_call(caller, current_block)
        with self.book.transaction():
            rfp = self._load_rfp(rfp_id)
            self.bids.reveal(rfp, caller, uri, deposit, salt, current_block)
            self.audit.append(rfp_id, "reveal", caller, current_block, {
                "uri": uri,
                "deposit": deposit,
                "salt": salt.hex(),
            })

    # =========================================================================
    # Evaluation
    # =========================================================================

    def approve_evaluator(
        self,
        caller: str,
        rfp_id: int,
        evaluator: str,
        reputation: int,
        current_block: int,
    ) -> None:
        self._check_call(caller, current_block)
        raise_if_invalid(validate_account(evaluator, "evaluator"))
        with self.book.transaction():
            rfp = self._load_rfp(rfp_id)
            self.evaluation.approve(rfp, caller, evaluator, reputation)
            self.audit.append(rfp_id, "approve_evaluator", caller, current_block, {
                "evaluator": evaluator,
                "reputation": reputation,
            })

    def cast_score(
        self,
        caller: str,
        rfp_id: int,
        vendor: str,
        score: int,
        current_block: int,
    ) -> Tally:
        """Record a weighted score; returns the vendor's updated tally."""
        self._check_call(caller, current_block)
        with self.book.transaction():
            rfp = self._load_rfp(rfp_id)
            tally = self.evaluation.cast_score(rfp, caller, vendor, score, current_block)
            self.audit.append(rfp_id, "cast_score", caller, current_block, {
                "vendor": vendor,
                "score": score,
                "weighted_sum": tally.weighted_sum,
                "weighted_total": tally.weighted_total,
            })
        return tally

    # =========================================================================
    # Finalization
    # =========================================================================

    def finalize(
        self,
        caller: str,
        rfp_id: int,
        candidates: Sequence[str],
        current_block: int,
    ) -> FinalizeResult:
        self._check_call(caller, current_block)
        with self.book.transaction():
            rfp = self._load_rfp(rfp_id)
            result = self.finalizer.finalize(rfp, caller, candidates, current_block)
            self.audit.append(rfp_id, "finalize", caller, current_block, {
                "candidates": list(candidates),
                "winner": result.winner,
                "badge_id": result.badge_id,
                "weighted_sum": result.weighted_sum,
                "weighted_total": result.weighted_total,
            })
        return result

    # =========================================================================
    # Delivery
    # =========================================================================

    def post_milestone(
        self,
        caller: str,
        rfp_id: int,
        index: int,
        deliverable_hash: bytes,
        current_block: int,
    ) -> None:
        self._check_call(caller, current_block)
        with self.book.transaction():
            rfp = self._load_rfp(rfp_id)
            self.delivery.post_milestone(rfp, caller, index, deliverable_hash, current_block)
            self.audit.append(rfp_id, "post_milestone", caller, current_block, {
                "index": index,
                "deliverable_hash": deliverable_hash.hex(),
            })

    def verify_and_release(
        self,
        caller: str,
        rfp_id: int,
        vendor: str,
        index: int,
        expected_hash: bytes,
        amount: int,
        current_block: int,
    ) -> PayoutReceipt:
        self._check_call(caller, current_block)
        with self.book.transaction():
            rfp = self._load_rfp(rfp_id)
            self.delivery.record_release(
                rfp, caller, vendor, index, expected_hash, amount, current_block,
            )
            self.audit.append(rfp_id, "release_milestone", caller, current_block, {
                "vendor": vendor,
                "index": index,
                "amount": amount,
            })
            # Disburse last: only the commit itself can follow
            receipt = self.delivery.pay(rfp, vendor, amount, milestone_reason(index))
        return receipt

    def post_final(self, caller: str, rfp_id: int, deliverable_hash: bytes, current_block: int) -> None:
        self._check_call(caller, current_block)
        with self.book.transaction():
            rfp = self._load_rfp(rfp_id)
            self.delivery.post_final(rfp, caller, deliverable_hash)
            self.audit.append(rfp_id, "post_final", caller, current_block, {
                "deliverable_hash": deliverable_hash.hex(),
            })

    def verify_final(
        self,
        caller: str,
        rfp_id: int,
        expected_hash: bytes,
        rep_bump: int,
        current_block: int,
        amount: int = 0,
    ) -> Optional[PayoutReceipt]:
        self._check_call(caller, current_block)
        with self.book.transaction():
            rfp = self._load_rfp(rfp_id)
            self.delivery.record_completion(rfp, caller, expected_hash, rep_bump, amount)
            self.audit.append(rfp_id, "verify_final", caller, current_block, {
                "winner": rfp.winner,
                "rep_bump": rep_bump,
                "amount": amount,
            })
            receipt = None
            if amount > 0:
                receipt = self.delivery.pay(rfp, rfp.winner, amount, FINAL_REASON)
        return receipt

    # =========================================================================
    # Reputation
    # =========================================================================

    def set_vendor_reputation(self, caller: str, vendor: str, reputation: int, current_block: int) -> None:
        self._check_call(caller, current_block)
        raise_if_invalid(validate_account(vendor, "vendor"))
        with self.book.transaction():
            self.registry.set_reputation(caller, vendor, reputation)
            self.audit.append(None, "set_reputation", caller, current_block, {
                "vendor": vendor,
                "reputation": reputation,
            })

    # =========================================================================
    # Queries
    # =========================================================================

    def get_rfp(self, rfp_id: int) -> Rfp:
        return self._load_rfp(rfp_id)

    def get_winner(self, rfp_id: int) -> Optional[str]:
        return self._load_rfp(rfp_id).winner

    def get_vendor_reputation(self, vendor: str) -> int:
        return self.registry.reputation(vendor)

    def get_badge(self, badge_id: int) -> Badge:
        badge = self.registry.badge(badge_id)
        if badge is None:
            raise NotFound(f"Badge {badge_id} not found")
        return badge

    def badges_of(self, owner: str) -> List[Badge]:
        return self.registry.badges_of(owner)

    def get_commitment(self, rfp_id: int, vendor: str) -> Optional[Commitment]:
        return self.book.commitment(rfp_id, vendor)

    def get_proposal(self, rfp_id: int, vendor: str) -> Optional[Proposal]:
        return self.book.proposal(rfp_id, vendor)

    def revealed_vendors(self, rfp_id: int) -> List[str]:
        return self.bids.revealed_vendors(rfp_id)

    def unrevealed_vendors(self, rfp_id: int) -> List[str]:
        return self.bids.unrevealed_vendors(rfp_id)

    def get_evaluator(self, rfp_id: int, evaluator: str) -> Optional[EvaluatorApproval]:
        return self.book.evaluator(rfp_id, evaluator)

    def weight_of(self, rfp_id: int, evaluator: str) -> int:
        return self.evaluation.weight_of(rfp_id, evaluator)

    def get_vote(self, rfp_id: int, evaluator: str, vendor: str) -> Optional[Vote]:
        return self.book.vote(rfp_id, evaluator, vendor)

    def get_tally(self, rfp_id: int, vendor: str) -> Optional[Tally]:
        return self.book.tally(rfp_id, vendor)

    def get_milestone(self, rfp_id: int, vendor: str, index: int) -> Optional[Milestone]:
        return self.book.milestone(rfp_id, vendor, index)

    def standings(self, rfp_id: int, candidates: Sequence[str]) -> List[Standing]:
        """Current ranking of the candidates, best first."""
        self._load_rfp(rfp_id)
        return self.finalizer.ranking(rfp_id, candidates)

    def audit_log(self, rfp_id: Optional[int] = None) -> List[AuditEvent]:
        return self.audit.events(rfp_id)

    def verify_audit_log(self) -> Tuple[bool, str]:
        return self.audit.verify()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load_rfp(self, rfp_id: int) -> Rfp:
        rfp = self.book.rfp(rfp_id)
        if rfp is None:
            raise NotFound(f"RFP {rfp_id} not found")
        return rfp

    def _check_call(self, caller: str, current_block: int) -> None:
        raise_if_invalid(validate_account(caller, "caller"))
        raise_if_invalid(validate_block_number(current_block, "current_block"))
