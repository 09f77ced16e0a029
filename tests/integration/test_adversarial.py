"""
Adversarial Tests - Robustness validation for sealbid.

Tests verify:
1. Bid replay and tampering resistance
2. Authorization on every privileged operation
3. Double-action rejection
4. Award irreversibility
5. Invalid input rejection
"""

import pytest

from sealbid.core.auction import create_commitment, create_sealed_bid
from sealbid.core.config import EngineConfig
from sealbid.core.engine import ProcurementEngine
from sealbid.core.errors import (
    AlreadyVoted,
    BadArgument,
    BadTiming,
    EngineError,
    HashMismatch,
    NotAuthorized,
    NotFound,
    NotInEvaluationPhase,
    PayoutFailed,
)
from sealbid.core.payout import RejectingDisburser
from sealbid.core.rfp import RfpStatus
from sealbid.crypto import sha256


REQUESTER = "requester"
SALT = b"\x11" * 32


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def engine():
    return ProcurementEngine(config=EngineConfig(max_candidates=3))


def open_rfp(engine, requester=REQUESTER):
    return engine.create_rfp(requester, "Survey", "", 0, 10, 20, 30, current_block=0)


def evaluating_rfp(engine, vendors=("acme", "bolt")):
    rfp_id = open_rfp(engine)
    bids = [create_sealed_bid(rfp_id, vendor, f"ipfs://{vendor}", 100) for vendor in vendors]
    for commitment, sealed in bids:
        engine.commit(sealed.vendor, rfp_id, commitment, current_block=5)
    for _, sealed in bids:
        engine.reveal(sealed.vendor, rfp_id, sealed.uri, sealed.deposit, sealed.salt, current_block=15)
    engine.approve_evaluator(REQUESTER, rfp_id, "eve", 100, current_block=15)
    engine.start_evaluation(REQUESTER, rfp_id, current_block=21)
    return rfp_id


# =============================================================================
# Replay Tests
# =============================================================================


class TestBidReplay:
    """Commitments cannot be reused across RFPs or vendors."""

    def test_cross_rfp_replay(self, engine):
        """A commitment sealed for RFP 1 does not reveal on RFP 2."""
        rfp1 = open_rfp(engine)
        rfp2 = open_rfp(engine)
        commitment = create_commitment(rfp1, "acme", "ipfs://a", 100, SALT)

        engine.commit("acme", rfp1, commitment, current_block=5)
        engine.commit("acme", rfp2, commitment, current_block=5)

        engine.reveal("acme", rfp1, "ipfs://a", 100, SALT, current_block=15)
        with pytest.raises(HashMismatch):
            engine.reveal("acme", rfp2, "ipfs://a", 100, SALT, current_block=15)

    def test_cross_vendor_copy(self, engine):
        """Copying a rival's commitment and preimage does not reveal."""
        rfp_id = open_rfp(engine)
        commitment = create_commitment(rfp_id, "acme", "ipfs://a", 100, SALT)

        engine.commit("acme", rfp_id, commitment, current_block=5)
        engine.commit("copycat", rfp_id, commitment, current_block=6)

        with pytest.raises(HashMismatch):
            engine.reveal("copycat", rfp_id, "ipfs://a", 100, SALT, current_block=15)
        assert engine.get_proposal(rfp_id, "copycat") is None

    @pytest.mark.parametrize("bit", [0, 7, 100, 255])
    def test_single_bit_flip_in_salt(self, engine, bit):
        rfp_id = open_rfp(engine)
        engine.commit("acme", rfp_id, create_commitment(rfp_id, "acme", "u", 1, SALT), current_block=5)

        flipped = bytearray(SALT)
        flipped[bit // 8] ^= 1 << (bit % 8)
        with pytest.raises(HashMismatch):
            engine.reveal("acme", rfp_id, "u", 1, bytes(flipped), current_block=15)


# =============================================================================
# Authorization Tests
# =============================================================================


class TestAuthorization:
    """Outsiders cannot drive state transitions."""

    def test_outsider_cannot_start_evaluation(self, engine):
        rfp_id = open_rfp(engine)
        with pytest.raises(NotAuthorized):
            engine.start_evaluation("mallory", rfp_id, current_block=21)

    def test_outsider_cannot_finalize(self, engine):
        rfp_id = evaluating_rfp(engine)
        engine.cast_score("eve", rfp_id, "acme", 50, current_block=22)
        with pytest.raises(NotAuthorized):
            engine.finalize("mallory", rfp_id, ["acme"], current_block=31)
        assert engine.get_rfp(rfp_id).status == RfpStatus.EVALUATE

    def test_vendor_cannot_approve_itself_as_evaluator(self, engine):
        rfp_id = evaluating_rfp(engine)
        with pytest.raises(NotAuthorized):
            engine.approve_evaluator("acme", rfp_id, "acme", 1000, current_block=22)

    def test_vendor_cannot_release_own_milestone(self, engine):
        rfp_id = evaluating_rfp(engine)
        report = sha256(b"report")
        engine.post_milestone("acme", rfp_id, 0, report, current_block=22)
        with pytest.raises(NotAuthorized):
            engine.verify_and_release("acme", rfp_id, "acme", 0, report, 1, current_block=23)

    def test_requester_of_other_rfp(self, engine):
        rfp_id = open_rfp(engine)
        open_rfp(engine, requester="other-requester")
        with pytest.raises(NotAuthorized):
            engine.start_evaluation("other-requester", rfp_id, current_block=21)


# =============================================================================
# Double Action Tests
# =============================================================================


class TestDoubleActions:

    def test_double_vote(self, engine):
        rfp_id = evaluating_rfp(engine)
        engine.cast_score("eve", rfp_id, "acme", 10, current_block=22)
        with pytest.raises(AlreadyVoted):
            engine.cast_score("eve", rfp_id, "acme", 100, current_block=23)
        assert engine.get_tally(rfp_id, "acme").weighted_sum == 20

    def test_refinalize_rejected(self, engine):
        """Winner and badge are immutable once awarded."""
        rfp_id = evaluating_rfp(engine)
        engine.cast_score("eve", rfp_id, "acme", 90, current_block=22)
        engine.cast_score("eve", rfp_id, "bolt", 10, current_block=22)
        first = engine.finalize(REQUESTER, rfp_id, ["acme", "bolt"], current_block=31)

        with pytest.raises(NotInEvaluationPhase):
            engine.finalize(REQUESTER, rfp_id, ["bolt"], current_block=32)

        rfp = engine.get_rfp(rfp_id)
        assert rfp.winner == first.winner == "acme"
        assert rfp.badge_id == first.badge_id
        assert engine.store.peek_counter("badge") == 1

    def test_vote_after_award(self, engine):
        rfp_id = evaluating_rfp(engine)
        engine.cast_score("eve", rfp_id, "acme", 90, current_block=22)
        engine.finalize(REQUESTER, rfp_id, ["acme"], current_block=31)
        with pytest.raises(NotInEvaluationPhase):
            engine.cast_score("eve", rfp_id, "bolt", 100, current_block=31)


# =============================================================================
# Timing Tests
# =============================================================================


class TestTiming:

    def test_finalize_before_eval_deadline(self, engine):
        rfp_id = evaluating_rfp(engine)
        engine.cast_score("eve", rfp_id, "acme", 90, current_block=22)
        with pytest.raises(BadTiming):
            engine.finalize(REQUESTER, rfp_id, ["acme"], current_block=30)

    def test_finalize_before_evaluation(self, engine):
        rfp_id = open_rfp(engine)
        with pytest.raises(NotInEvaluationPhase):
            engine.finalize(REQUESTER, rfp_id, [], current_block=31)

    def test_late_commit_after_reveals(self, engine):
        rfp_id = evaluating_rfp(engine)
        commitment, _ = create_sealed_bid(rfp_id, "late", "ipfs://late", 1)
        with pytest.raises(BadTiming):
            engine.commit("late", rfp_id, commitment, current_block=22)


# =============================================================================
# Invalid Input Tests
# =============================================================================


class TestInvalidInputs:

    def test_too_many_candidates(self, engine):
        rfp_id = evaluating_rfp(engine)
        engine.cast_score("eve", rfp_id, "acme", 90, current_block=22)
        with pytest.raises(BadArgument):
            engine.finalize(REQUESTER, rfp_id, ["acme", "b", "c", "d"], current_block=31)

    def test_candidates_not_a_list(self, engine):
        rfp_id = evaluating_rfp(engine)
        with pytest.raises(BadArgument):
            engine.finalize(REQUESTER, rfp_id, "acme", current_block=31)

    @pytest.mark.parametrize("caller", ["", None, 7, "x" * 200])
    def test_bad_caller(self, engine, caller):
        with pytest.raises(BadArgument):
            engine.create_rfp(caller, "Survey", "", 0, 10, 20, 30, current_block=0)

    @pytest.mark.parametrize("block", [-1, 2**64, "5", None])
    def test_bad_block(self, engine, block):
        with pytest.raises(BadArgument):
            engine.create_rfp(REQUESTER, "Survey", "", 0, 10, 20, 30, current_block=block)

    def test_unknown_rfp_everywhere(self, engine):
        with pytest.raises(NotFound):
            engine.commit("acme", 42, b"\x00" * 32, current_block=1)
        with pytest.raises(NotFound):
            engine.start_evaluation(REQUESTER, 42, current_block=1)
        with pytest.raises(NotFound):
            engine.get_winner(42)
        with pytest.raises(NotFound):
            engine.standings(42, [])

    def test_unencodable_uri(self, engine):
        """A lone surrogate cannot be hashed; reveal rejects it cleanly."""
        rfp_id = open_rfp(engine)
        engine.commit("acme", rfp_id, create_commitment(rfp_id, "acme", "u", 1, SALT), current_block=5)

        with pytest.raises(BadArgument):
            engine.reveal("acme", rfp_id, "ipfs://\ud800", 1, SALT, current_block=15)
        assert engine.get_proposal(rfp_id, "acme") is None

    def test_unencodable_caller(self, engine):
        rfp_id = open_rfp(engine)
        with pytest.raises(BadArgument):
            engine.commit("acme\udc80", rfp_id, b"\x00" * 32, current_block=5)
        with pytest.raises(BadArgument):
            engine.reveal("acme\udc80", rfp_id, "u", 1, SALT, current_block=15)

    def test_errors_share_base(self, engine):
        with pytest.raises(EngineError):
            engine.get_rfp(1)


# =============================================================================
# Atomicity Tests
# =============================================================================


class TestAtomicity:
    """A failed operation leaves no trace."""

    def test_payout_failure_rolls_back(self):
        engine = ProcurementEngine(disburser=RejectingDisburser())
        rfp_id = evaluating_rfp(engine)
        report = sha256(b"report")
        engine.post_milestone("acme", rfp_id, 0, report, current_block=22)
        events_before = len(engine.audit_log())

        with pytest.raises(PayoutFailed):
            engine.verify_and_release(REQUESTER, rfp_id, "acme", 0, report, 10, current_block=23)

        assert not engine.get_milestone(rfp_id, "acme", 0).released
        assert len(engine.audit_log()) == events_before
        assert engine.verify_audit_log() == (True, "")
