"""
sealbid Auction Module.

This module provides the sealed-bid resolution pipeline:
- Commit-reveal bid sealing
- Evaluator weighting and score tallying
- Deterministic winner selection with tie-breaking
- Hash-gated milestone and final deliverable release
"""

from sealbid.core.auction.scoring import (
    Standing,
    compare_averages,
    compare_standings,
    select_winner,
    verify_winner,
    rank_standings,
)

from sealbid.core.auction.commit_reveal import (
    CommitRevealBook,
    SealedBid,
    create_commitment,
    create_sealed_bid,
)

from sealbid.core.auction.evaluation import EvaluationBoard, compute_weight
from sealbid.core.auction.finalization import Finalizer, FinalizeResult
from sealbid.core.auction.delivery import DeliveryDesk

__all__ = [
    # Scoring
    "Standing",
    "compare_averages",
    "compare_standings",
    "select_winner",
    "verify_winner",
    "rank_standings",
    # Commit-Reveal
    "CommitRevealBook",
    "SealedBid",
    "create_commitment",
    "create_sealed_bid",
    # Evaluation
    "EvaluationBoard",
    "compute_weight",
    # Finalization
    "Finalizer",
    "FinalizeResult",
    # Delivery
    "DeliveryDesk",
]
