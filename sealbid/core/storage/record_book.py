import json
from contextlib import contextmanager
from typing import Iterator, List, Optional

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
from sealbid.core.storage.record_store import RecordStore


# Buckets
RFP = "rfp"
COMMITMENT = "commitment"
PROPOSAL = "proposal"
EVALUATOR = "evaluator"
VOTE = "vote"
TALLY = "tally"
REPUTATION = "reputation"
MILESTONE = "milestone"
BADGE = "badge"

# Counters
RFP_COUNTER = "rfp"
BADGE_COUNTER = "badge"


def record_key(*parts) -> str:
    """Unambiguous composite key; ints are zero-padded so keys sort numerically."""
    return json.dumps([f"{p:020d}" if isinstance(p, int) else p for p in parts])


class RecordBook:
    """
    Typed access to engine records.

    Wraps a RecordStore with one getter/saver pair per record type. Holds no
    state of its own; every read goes to the store.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    @contextmanager
    def transaction(self) -> Iterator["RecordBook"]:
        with self.store.transaction():
            yield self

    # =========================================================================
    # RFPs
    # =========================================================================

    def next_rfp_id(self) -> int:
        return self.store.next_id(RFP_COUNTER)

    def rfp(self, rfp_id: int) -> Optional[Rfp]:
        data = self.store.get(RFP, record_key(rfp_id))
        return Rfp.from_dict(data) if data else None

    def save_rfp(self, rfp: Rfp) -> None:
        self.store.put(RFP, record_key(rfp.rfp_id), rfp.to_dict())

    def rfps(self) -> List[Rfp]:
        return [Rfp.from_dict(v) for _, v in self.store.items(RFP)]

    # =========================================================================
    # Commit-Reveal
    # =========================================================================

    def commitment(self, rfp_id: int, vendor: str) -> Optional[Commitment]:
        data = self.store.get(COMMITMENT, record_key(rfp_id, vendor))
        return Commitment.from_dict(data) if data else None

    def save_commitment(self, commitment: Commitment) -> None:
        key = record_key(commitment.rfp_id, commitment.vendor)
        self.store.put(COMMITMENT, key, commitment.to_dict())

    def commitments(self, rfp_id: int) -> List[Commitment]:
        return [
            Commitment.from_dict(v)
            for _, v in self.store.items(COMMITMENT)
            if v["rfp_id"] == rfp_id
        ]

    def proposal(self, rfp_id: int, vendor: str) -> Optional[Proposal]:
        data = self.store.get(PROPOSAL, record_key(rfp_id, vendor))
        return Proposal.from_dict(data) if data else None

    def save_proposal(self, proposal: Proposal) -> None:
        self.store.put(PROPOSAL, record_key(proposal.rfp_id, proposal.vendor), proposal.to_dict())

    def proposals(self, rfp_id: int) -> List[Proposal]:
        return [
            Proposal.from_dict(v)
            for _, v in self.store.items(PROPOSAL)
            if v["rfp_id"] == rfp_id
        ]

    # =========================================================================
    # Evaluation
    # =========================================================================

    def evaluator(self, rfp_id: int, evaluator: str) -> Optional[EvaluatorApproval]:
        data = self.store.get(EVALUATOR, record_key(rfp_id, evaluator))
        return EvaluatorApproval.from_dict(data) if data else None

    def save_evaluator(self, approval: EvaluatorApproval) -> None:
        key = record_key(approval.rfp_id, approval.evaluator)
        self.store.put(EVALUATOR, key, approval.to_dict())

    def vote(self, rfp_id: int, evaluator: str, vendor: str) -> Optional[Vote]:
        data = self.store.get(VOTE, record_key(rfp_id, evaluator, vendor))
        return Vote.from_dict(data) if data else None

    def save_vote(self, vote: Vote) -> None:
        key = record_key(vote.rfp_id, vote.evaluator, vote.vendor)
        self.store.put(VOTE, key, vote.to_dict())

    def tally(self, rfp_id: int, vendor: str) -> Optional[Tally]:
        data = self.store.get(TALLY, record_key(rfp_id, vendor))
        return Tally.from_dict(data) if data else None

    def save_tally(self, tally: Tally) -> None:
        self.store.put(TALLY, record_key(tally.rfp_id, tally.vendor), tally.to_dict())

    # =========================================================================
    # Reputation & Badges
    # =========================================================================

    def reputation(self, vendor: str) -> int:
        data = self.store.get(REPUTATION, record_key(vendor))
        return data["reputation"] if data else 0

    def save_reputation(self, vendor: str, reputation: int) -> None:
        self.store.put(REPUTATION, record_key(vendor), {"vendor": vendor, "reputation": reputation})

    def next_badge_id(self) -> int:
        return self.store.next_id(BADGE_COUNTER)

    def badge(self, badge_id: int) -> Optional[Badge]:
        data = self.store.get(BADGE, record_key(badge_id))
        return Badge.from_dict(data) if data else None

    def save_badge(self, badge: Badge) -> None:
        self.store.put(BADGE, record_key(badge.badge_id), badge.to_dict())

    def badges(self) -> List[Badge]:
        return [Badge.from_dict(v) for _, v in self.store.items(BADGE)]

    # =========================================================================
    # Milestones
    # =========================================================================

    def milestone(self, rfp_id: int, vendor: str, index: int) -> Optional[Milestone]:
        data = self.store.get(MILESTONE, record_key(rfp_id, vendor, index))
        return Milestone.from_dict(data) if data else None

    def save_milestone(self, milestone: Milestone) -> None:
        key = record_key(milestone.rfp_id, milestone.vendor, milestone.index)
        self.store.put(MILESTONE, key, milestone.to_dict())
