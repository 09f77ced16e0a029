"""
sealbid - Sealed-bid procurement engine

A transactional RFP engine integrating:
- Commit-reveal bid sealing
- Reputation-weighted evaluator scoring
- Deterministic winner selection with tie-breaking
- Hash-gated milestone and final deliverable release
- A hash-chained audit journal
"""

__version__ = "0.1.0"
