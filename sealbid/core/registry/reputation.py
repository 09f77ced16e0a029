"""
Vendor Registry - reputation and award badges.

This module provides:
- Global per-vendor reputation (read by the tie-break chain)
- Badge minting: one immutable award record per finalized RFP

Reputation only changes through set_reputation (admin) and bump (after a
verified final deliverable). Badges are never rewritten.
"""

from typing import List, Optional

from sealbid.core.config import EngineConfig
from sealbid.core.errors import NotAuthorized, raise_if_invalid
from sealbid.core.rfp.models import Badge
from sealbid.core.storage.record_book import RecordBook
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import validate_amount

logger = get_logger("registry")


def badge_metadata(rfp_id: int) -> str:
    return f"rfp:{rfp_id}"


class VendorRegistry:
    """Reputation table and badge issuer."""

    def __init__(self, book: RecordBook, config: EngineConfig):
        self.book = book
        self.config = config

    # =========================================================================
    # Reputation
    # =========================================================================

    def reputation(self, vendor: str) -> int:
        """Vendor reputation; 0 if never set."""
        return self.book.reputation(vendor)

    def set_reputation(self, caller: str, vendor: str, reputation: int) -> None:
        """Administrative override of a vendor's reputation."""
        if self.config.admin is None or caller != self.config.admin:
            raise NotAuthorized(f"{caller} may not set vendor reputation")
        raise_if_invalid(validate_amount(reputation, "reputation"))

        self.book.save_reputation(vendor, reputation)
        logger.info(f"Reputation of {vendor} set to {reputation} by {caller}")

    def bump(self, vendor: str, amount: int) -> int:
        """Increase a vendor's reputation; returns the new value."""
        raise_if_invalid(validate_amount(amount, "rep_bump"))

        updated = self.book.reputation(vendor) + amount
        self.book.save_reputation(vendor, updated)
        logger.info(f"Reputation of {vendor} bumped by {amount} to {updated}")
        return updated

    # =========================================================================
    # Badges
    # =========================================================================

    def mint_badge(self, owner: str, rfp_id: int, current_block: int) -> Badge:
        """Mint the award badge for an RFP winner."""
        badge = Badge(
            badge_id=self.book.next_badge_id(),
            owner=owner,
            rfp_id=rfp_id,
            metadata=badge_metadata(rfp_id),
            minted_at=current_block,
        )
        self.book.save_badge(badge)

        logger.info(f"Badge {badge.badge_id} minted to {owner} for RFP {rfp_id}")
        return badge

    def badge(self, badge_id: int) -> Optional[Badge]:
        return self.book.badge(badge_id)

    def badges_of(self, owner: str) -> List[Badge]:
        return [b for b in self.book.badges() if b.owner == owner]
