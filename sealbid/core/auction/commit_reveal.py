"""
Commit-Reveal - Sealed-bid submission for RFPs.

This module implements the two-phase bidding mechanism:
1. Commit Phase (block <= commit_deadline): vendors submit hash commitments
2. Reveal Phase (commit_deadline < block <= reveal_deadline): vendors reveal

Benefits:
- Prevents copying a competitor's bid before the reveal window
- Binding rfp_id and the vendor digest into the hash prevents replaying an
  identical (uri, deposit, salt) across RFPs or across vendors

Commitments are kept after a successful reveal so the pairing stays auditable.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from sealbid.crypto import hash_bid_commitment, random_salt
from sealbid.core.config import EngineConfig
from sealbid.core.errors import (
    AlreadyCommitted,
    AlreadyRevealed,
    BadTiming,
    HashMismatch,
    NoCommitment,
    raise_if_invalid,
)
from sealbid.core.rfp.models import Commitment, Proposal, Rfp, RfpStatus
from sealbid.core.storage.record_book import RecordBook
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import validate_amount, validate_bytes, validate_hash, validate_string

logger = get_logger("commit_reveal")


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class SealedBid:
    """
    The contents a vendor commits to and later reveals.

    Must hash to the stored commitment for the reveal to be accepted.
    """
    rfp_id: int
    vendor: str
    uri: str
    deposit: int
    salt: bytes

    def compute_commitment(self) -> bytes:
        """Compute commitment that should match."""
        return hash_bid_commitment(
            rfp_id=self.rfp_id,
            vendor=self.vendor,
            uri=self.uri,
            deposit=self.deposit,
            salt=self.salt,
        )


# =============================================================================
# Commit-Reveal Book
# =============================================================================


class CommitRevealBook:
    """
    Accepts commitments and reveals for RFPs.

    Callers pass the already-loaded RFP; the book enforces windows,
    uniqueness and the hash check, and writes Commitment/Proposal records.
    """

    def __init__(self, book: RecordBook, config: EngineConfig):
        self.book = book
        self.config = config

    # =========================================================================
    # Commit Phase
    # =========================================================================

    def commit(
        self,
        rfp: Rfp,
        vendor: str,
        commitment: bytes,
        current_block: int,
    ) -> Commitment:
        """
        Seal a bid.

        Args:
            rfp: Target RFP
            vendor: Committing vendor
            commitment: 32-byte bid hash
            current_block: Current block number

        Returns:
            The stored Commitment
        """
        raise_if_invalid(validate_hash(commitment, "commitment"))

        if rfp.status != RfpStatus.COMMIT or not rfp.in_commit_window(current_block):
            raise BadTiming(
                f"Commit phase for RFP {rfp.rfp_id} ended at block {rfp.commit_deadline}"
            )

        if self.book.commitment(rfp.rfp_id, vendor) is not None:
            raise AlreadyCommitted(f"{vendor} already committed to RFP {rfp.rfp_id}")

        record = Commitment(
            rfp_id=rfp.rfp_id,
            vendor=vendor,
            commitment=bytes(commitment),
            sealed_at=current_block,
        )
        self.book.save_commitment(record)

        logger.debug(f"Received commit from {vendor} for RFP {rfp.rfp_id} at block {current_block}")
        return record

    # =========================================================================
    # Reveal Phase
    # =========================================================================

    def reveal(
        self,
        rfp: Rfp,
        vendor: str,
        uri: str,
        deposit: int,
        salt: bytes,
        current_block: int,
    ) -> Proposal:
        """
        Reveal a sealed bid.

        The first successful reveal moves the RFP from COMMIT to REVEAL.

        Returns:
            The created Proposal
        """
        raise_if_invalid(validate_string(uri, "uri", self.config.max_uri_length, allow_empty=False))
        raise_if_invalid(validate_amount(deposit, "deposit"))
        raise_if_invalid(
            validate_bytes(salt, "salt", max_length=self.config.max_salt_length, allow_empty=False)
        )

        if rfp.status not in (RfpStatus.COMMIT, RfpStatus.REVEAL) or not rfp.in_reveal_window(current_block):
            raise BadTiming(
                f"Reveal window for RFP {rfp.rfp_id} is blocks "
                f"{rfp.commit_deadline + 1}..{rfp.reveal_deadline}, now {current_block}"
            )

        stored = self.book.commitment(rfp.rfp_id, vendor)
        if stored is None:
            raise NoCommitment(f"No commitment found for {vendor} on RFP {rfp.rfp_id}")

        if self.book.proposal(rfp.rfp_id, vendor) is not None:
            raise AlreadyRevealed(f"{vendor} already revealed for RFP {rfp.rfp_id}")

        bid = SealedBid(rfp_id=rfp.rfp_id, vendor=vendor, uri=uri, deposit=deposit, salt=bytes(salt))
        if bid.compute_commitment() != stored.commitment:
            logger.warning(f"Reveal mismatch for {vendor} on RFP {rfp.rfp_id}")
            raise HashMismatch("Reveal does not match commitment")

        proposal = Proposal(
            rfp_id=rfp.rfp_id,
            vendor=vendor,
            uri=uri,
            deposit=deposit,
            salt=bytes(salt),
            revealed_at=current_block,
        )
        self.book.save_proposal(proposal)

        if rfp.status == RfpStatus.COMMIT:
            rfp.advance(RfpStatus.REVEAL)
            self.book.save_rfp(rfp)
            logger.debug(f"RFP {rfp.rfp_id} entered reveal phase")

        logger.debug(f"Valid reveal from {vendor} for RFP {rfp.rfp_id}: deposit={deposit}")
        return proposal

    # =========================================================================
    # Queries
    # =========================================================================

    def revealed_vendors(self, rfp_id: int) -> List[str]:
        """Vendors with a proposal, in key order."""
        return [p.vendor for p in self.book.proposals(rfp_id)]

    def unrevealed_vendors(self, rfp_id: int) -> List[str]:
        """Vendors who committed but didn't reveal."""
        revealed = set(self.revealed_vendors(rfp_id))
        return [c.vendor for c in self.book.commitments(rfp_id) if c.vendor not in revealed]


# =============================================================================
# Helper Functions
# =============================================================================


def create_commitment(
    rfp_id: int,
    vendor: str,
    uri: str,
    deposit: int,
    salt: bytes,
) -> bytes:
    """
    Create a commitment for a bid.

    Args:
        rfp_id: RFP being bid on
        vendor: Vendor account
        uri: Proposal reference
        deposit: Declared deposit
        salt: Random blinding bytes

    Returns:
        32-byte commitment
    """
    return hash_bid_commitment(rfp_id=rfp_id, vendor=vendor, uri=uri, deposit=deposit, salt=salt)


def create_sealed_bid(
    rfp_id: int,
    vendor: str,
    uri: str,
    deposit: int,
    salt: Optional[bytes] = None,
) -> Tuple[bytes, SealedBid]:
    """
    Create a matching commitment/reveal pair.

    A random 32-byte salt is drawn when none is given.

    Returns:
        (commitment, SealedBid) pair
    """
    if salt is None:
        salt = random_salt()
    bid = SealedBid(rfp_id=rfp_id, vendor=vendor, uri=uri, deposit=deposit, salt=salt)
    return bid.compute_commitment(), bid


__all__ = [
    "CommitRevealBook",
    "SealedBid",
    "create_commitment",
    "create_sealed_bid",
]
