"""
Payout - disbursement collaborator hook.

The engine never moves value. When a milestone or final deliverable is
verified it asks a Disburser to transfer funds and only records the release
if the Disburser confirms. Any failure (exception or unsuccessful receipt)
aborts the release.
"""

from dataclasses import dataclass, field
from typing import List, Protocol, runtime_checkable

from sealbid.utils.logger import get_logger

logger = get_logger("payout")


@dataclass
class PayoutContext:
    """Who is paying and why."""
    rfp_id: int
    payer: str
    reason: str  # "milestone:<index>" or "final"


@dataclass
class PayoutReceipt:
    """Result of a disbursement request."""
    rfp_id: int
    recipient: str
    amount: int
    reference: str
    success: bool = True


@runtime_checkable
class Disburser(Protocol):
    """Escrow/transfer collaborator."""

    def disburse(self, context: PayoutContext, recipient: str, amount: int) -> PayoutReceipt:
        ...


class RecordingDisburser:
    """
    Disburser that authorizes every request and remembers it.

    Stands in for an escrow service in tests and the CLI demo.
    """

    def __init__(self):
        self.receipts: List[PayoutReceipt] = []
        self.total_released: int = 0

    def disburse(self, context: PayoutContext, recipient: str, amount: int) -> PayoutReceipt:
        reference = f"rfp{context.rfp_id}/{context.reason}/{len(self.receipts) + 1}"
        receipt = PayoutReceipt(
            rfp_id=context.rfp_id,
            recipient=recipient,
            amount=amount,
            reference=reference,
        )
        self.receipts.append(receipt)
        self.total_released += amount
        logger.info(f"Payout authorized: {amount} to {recipient} ({reference})")
        return receipt

    def stats(self) -> dict:
        """Get payout statistics."""
        return {
            "payouts": len(self.receipts),
            "total_released": self.total_released,
        }


@dataclass
class RejectingDisburser:
    """Disburser that refuses every request, modelling an escrow outage."""
    reason: str = "escrow unavailable"
    attempts: List[int] = field(default_factory=list)

    def disburse(self, context: PayoutContext, recipient: str, amount: int) -> PayoutReceipt:
        self.attempts.append(amount)
        return PayoutReceipt(
            rfp_id=context.rfp_id,
            recipient=recipient,
            amount=amount,
            reference=self.reason,
            success=False,
        )
