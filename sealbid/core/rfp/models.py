"""
RFP Records - data structures persisted by the engine.

Every record is a dataclass that round-trips through a JSON-compatible dict
(``to_dict`` / ``from_dict``) so it can live in any RecordStore. Hashes and
salts are hex-encoded in the dict form.

The RFP lifecycle is a forward-only state machine:

    COMMIT -> REVEAL -> EVALUATE -> AWARDED -> COMPLETED
       \\_______________/^

COMMIT may skip straight to EVALUATE when nobody revealed. ACTIVE is
reserved and never entered.
"""

from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Any, ClassVar, Dict, Optional, Tuple


# =============================================================================
# Enums
# =============================================================================


class RfpStatus(IntEnum):
    """Lifecycle state of an RFP."""
    COMMIT = 0      # Accepting sealed bids
    REVEAL = 1      # At least one bid revealed
    EVALUATE = 2    # Evaluators scoring revealed bids
    AWARDED = 3     # Winner selected, badge minted
    ACTIVE = 4      # Reserved
    COMPLETED = 5   # Final deliverable verified (terminal)

    def can_advance_to(self, target: "RfpStatus") -> bool:
        """Whether the transition self -> target is allowed."""
        return target in _TRANSITIONS.get(self, ())


_TRANSITIONS: Dict[RfpStatus, Tuple[RfpStatus, ...]] = {
    RfpStatus.COMMIT: (RfpStatus.REVEAL, RfpStatus.EVALUATE),
    RfpStatus.REVEAL: (RfpStatus.EVALUATE,),
    RfpStatus.EVALUATE: (RfpStatus.AWARDED,),
    RfpStatus.AWARDED: (RfpStatus.COMPLETED,),
}


# =============================================================================
# Serialization
# =============================================================================


class _Record:
    """Dict round-tripping shared by all records."""

    _bytes_fields: ClassVar[Tuple[str, ...]] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in self._bytes_fields and value is not None:
                value = value.hex()
            elif isinstance(value, IntEnum):
                value = int(value)
            data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        kwargs = dict(data)
        for name in cls._bytes_fields:
            if kwargs.get(name) is not None:
                kwargs[name] = bytes.fromhex(kwargs[name])
        return cls(**kwargs)


# =============================================================================
# Records
# =============================================================================


@dataclass
class Rfp(_Record):
    """
    A Request-for-Proposal.

    Attributes:
        rfp_id: Store-assigned identifier
        requester: Account with state-transition authority
        title: Short title
        summary: Free-text summary
        min_deposit: Declared minimum deposit (reserved, not enforced)
        commit_deadline: Last block accepting commits
        reveal_deadline: Last block accepting reveals
        eval_deadline: Last block accepting scores
        created_at: Creation block
        status: Lifecycle state
        winner: Winning vendor once awarded
        badge_id: Award badge once minted
    """
    rfp_id: int
    requester: str
    title: str
    summary: str
    min_deposit: int
    commit_deadline: int
    reveal_deadline: int
    eval_deadline: int
    created_at: int
    status: RfpStatus = RfpStatus.COMMIT
    winner: Optional[str] = None
    badge_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rfp":
        kwargs = dict(data)
        kwargs["status"] = RfpStatus(kwargs["status"])
        return cls(**kwargs)

    def advance(self, target: RfpStatus) -> None:
        """Move to a later status; raises ValueError on an illegal transition."""
        if not self.status.can_advance_to(target):
            raise ValueError(f"Illegal RFP transition {self.status.name} -> {target.name}")
        self.status = target

    def in_commit_window(self, block: int) -> bool:
        return block <= self.commit_deadline

    def in_reveal_window(self, block: int) -> bool:
        return self.commit_deadline < block <= self.reveal_deadline

    def in_eval_window(self, block: int) -> bool:
        return block <= self.eval_deadline


@dataclass
class Commitment(_Record):
    """A vendor's sealed bid. Immutable once stored."""
    rfp_id: int
    vendor: str
    commitment: bytes
    sealed_at: int

    _bytes_fields: ClassVar[Tuple[str, ...]] = ("commitment",)


@dataclass
class Proposal(_Record):
    """A revealed bid that matched its commitment."""
    rfp_id: int
    vendor: str
    uri: str
    deposit: int
    salt: bytes
    revealed_at: int
    deliverable_hash: Optional[bytes] = None

    _bytes_fields: ClassVar[Tuple[str, ...]] = ("salt", "deliverable_hash")


@dataclass
class EvaluatorApproval(_Record):
    rfp_id: int
    evaluator: str
    approved: bool
    reputation: int


@dataclass
class Vote(_Record):
    rfp_id: int
    evaluator: str
    vendor: str
    score: int
    weight: int
    cast_at: int


@dataclass
class Tally(_Record):
    """Running weighted score for one vendor on one RFP."""
    rfp_id: int
    vendor: str
    weighted_sum: int = 0
    weighted_total: int = 0
    vote_count: int = 0

    def add(self, score: int, weight: int) -> None:
        self.weighted_sum += score * weight
        self.weighted_total += weight
        self.vote_count += 1


@dataclass
class Milestone(_Record):
    rfp_id: int
    vendor: str
    index: int
    deliverable_hash: Optional[bytes]
    posted_at: int
    released: bool = False
    released_at: Optional[int] = None

    _bytes_fields: ClassVar[Tuple[str, ...]] = ("deliverable_hash",)


@dataclass
class Badge(_Record):
    """Immutable proof that a vendor won an RFP."""
    badge_id: int
    owner: str
    rfp_id: int
    metadata: str
    minted_at: int
