"""
sealbid RFP Module.

Record types and the RFP lifecycle state machine.
"""

from sealbid.core.rfp.models import (
    Badge,
    Commitment,
    EvaluatorApproval,
    Milestone,
    Proposal,
    Rfp,
    RfpStatus,
    Tally,
    Vote,
)

__all__ = [
    "Rfp",
    "RfpStatus",
    "Commitment",
    "Proposal",
    "EvaluatorApproval",
    "Vote",
    "Tally",
    "Milestone",
    "Badge",
]
