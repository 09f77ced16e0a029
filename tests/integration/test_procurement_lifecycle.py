"""
Integration tests for the full RFP lifecycle.

Tests verify:
1. Single-vendor scenario end to end
2. Weighted-average winner selection through the engine
3. Reveal-time tie-break through the engine
4. Persistence across SQLite reopen
"""

import pytest

from sealbid.core.auction import create_sealed_bid
from sealbid.core.config import EngineConfig
from sealbid.core.engine import ProcurementEngine
from sealbid.core.errors import NoReveals
from sealbid.core.payout import RecordingDisburser
from sealbid.core.rfp import RfpStatus
from sealbid.core.storage import MemoryRecordStore, SQLiteRecordStore
from sealbid.crypto import sha256


REQUESTER = "requester"
ADMIN = "registrar"


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(params=["memory", "sqlite"])
def engine(request, tmp_path):
    if request.param == "memory":
        store = MemoryRecordStore()
    else:
        store = SQLiteRecordStore(tmp_path / "sealbid.db")
    yield ProcurementEngine(store=store, config=EngineConfig(admin=ADMIN))
    store.close()


def open_rfp(engine):
    """Windows: commit [0,10], reveal (10,20], evaluate (20,30]."""
    return engine.create_rfp(REQUESTER, "Bridge survey", "Annual", 50, 10, 20, 30, current_block=0)


def bid(engine, rfp_id, *vendors, reveal_blocks=None):
    """Every vendor commits at block 5, then each reveals (default block 15)."""
    reveal_blocks = reveal_blocks or {}
    sealed_bids = []
    for vendor in vendors:
        commitment, sealed = create_sealed_bid(rfp_id, vendor, f"ipfs://{vendor}", 100)
        engine.commit(vendor, rfp_id, commitment, current_block=5)
        sealed_bids.append(sealed)
    for sealed in sorted(sealed_bids, key=lambda s: reveal_blocks.get(s.vendor, 15)):
        block = reveal_blocks.get(sealed.vendor, 15)
        engine.reveal(sealed.vendor, rfp_id, sealed.uri, sealed.deposit, sealed.salt, current_block=block)


# =============================================================================
# Scenario Tests
# =============================================================================


class TestSingleVendorScenario:
    """One vendor, one evaluator with reputation 250."""

    def test_full_lifecycle(self, engine):
        rfp_id = open_rfp(engine)

        commitment, sealed = create_sealed_bid(rfp_id, "V", "ipfs://v", 100)
        engine.commit("V", rfp_id, commitment, current_block=10)
        engine.reveal("V", rfp_id, sealed.uri, sealed.deposit, sealed.salt, current_block=11)
        assert engine.get_rfp(rfp_id).status == RfpStatus.REVEAL

        engine.approve_evaluator(REQUESTER, rfp_id, "E", 250, current_block=12)
        assert engine.weight_of(rfp_id, "E") == 3

        engine.start_evaluation(REQUESTER, rfp_id, current_block=21)
        tally = engine.cast_score("E", rfp_id, "V", 80, current_block=22)
        assert (tally.weighted_sum, tally.weighted_total) == (240, 3)

        result = engine.finalize(REQUESTER, rfp_id, ["V"], current_block=31)

        assert result.winner == "V"
        assert (result.weighted_sum, result.weighted_total) == (240, 3)
        rfp = engine.get_rfp(rfp_id)
        assert rfp.status == RfpStatus.AWARDED
        assert rfp.winner == "V"
        assert rfp.badge_id == result.badge_id
        badge = engine.get_badge(result.badge_id)
        assert badge.owner == "V"
        assert badge.metadata == f"rfp:{rfp_id}"
        assert badge.minted_at == 31

        milestone = sha256(b"phase-1")
        engine.post_milestone("V", rfp_id, 0, milestone, current_block=35)
        engine.verify_and_release(REQUESTER, rfp_id, "V", 0, milestone, 400, current_block=36)

        final = sha256(b"final")
        engine.post_final("V", rfp_id, final, current_block=40)
        engine.verify_final(REQUESTER, rfp_id, final, 25, current_block=41, amount=600)

        assert engine.get_rfp(rfp_id).status == RfpStatus.COMPLETED
        assert engine.get_vendor_reputation("V") == 25
        assert engine.disburser.stats() == {"payouts": 2, "total_released": 1000}

        kinds = [e.kind for e in engine.audit_log(rfp_id)]
        assert kinds == [
            "create", "commit", "reveal", "approve_evaluator", "start_evaluation",
            "cast_score", "finalize", "post_milestone", "release_milestone",
            "post_final", "verify_final",
        ]
        assert engine.verify_audit_log() == (True, "")


class TestWinnerSelection:
    """Tie-break chain applied through finalize."""

    def test_weighted_average_beats_sum(self, engine):
        """A at 180/2 beats B at 350/4 (720 > 700)."""
        rfp_id = open_rfp(engine)
        bid(engine, rfp_id, "A", "B")
        engine.approve_evaluator(REQUESTER, rfp_id, "e1", 100, current_block=15)
        engine.approve_evaluator(REQUESTER, rfp_id, "e2", 100, current_block=15)
        engine.start_evaluation(REQUESTER, rfp_id, current_block=21)

        engine.cast_score("e1", rfp_id, "A", 90, current_block=22)
        engine.cast_score("e1", rfp_id, "B", 90, current_block=22)
        engine.cast_score("e2", rfp_id, "B", 85, current_block=22)

        assert engine.get_tally(rfp_id, "B").weighted_sum == 350
        result = engine.finalize(REQUESTER, rfp_id, ["B", "A"], current_block=31)
        assert result.winner == "A"

    def test_reputation_breaks_tie(self, engine):
        rfp_id = open_rfp(engine)
        bid(engine, rfp_id, "A", "B")
        engine.set_vendor_reputation(ADMIN, "B", 50, current_block=16)
        engine.approve_evaluator(REQUESTER, rfp_id, "e", 0, current_block=16)
        engine.start_evaluation(REQUESTER, rfp_id, current_block=21)
        engine.cast_score("e", rfp_id, "A", 70, current_block=22)
        engine.cast_score("e", rfp_id, "B", 70, current_block=22)

        assert engine.finalize(REQUESTER, rfp_id, ["A", "B"], current_block=31).winner == "B"

    @pytest.mark.parametrize("candidates", [["A", "B"], ["B", "A"]])
    def test_earlier_reveal_wins_regardless_of_order(self, engine, candidates):
        rfp_id = open_rfp(engine)
        bid(engine, rfp_id, "A", "B", reveal_blocks={"A": 14, "B": 12})
        engine.approve_evaluator(REQUESTER, rfp_id, "e", 0, current_block=16)
        engine.start_evaluation(REQUESTER, rfp_id, current_block=21)
        engine.cast_score("e", rfp_id, "A", 70, current_block=22)
        engine.cast_score("e", rfp_id, "B", 70, current_block=22)

        assert engine.finalize(REQUESTER, rfp_id, candidates, current_block=31).winner == "B"

    def test_full_tie_keeps_list_order(self, engine):
        rfp_id = open_rfp(engine)
        bid(engine, rfp_id, "A", "B")
        engine.approve_evaluator(REQUESTER, rfp_id, "e", 0, current_block=16)
        engine.start_evaluation(REQUESTER, rfp_id, current_block=21)
        engine.cast_score("e", rfp_id, "A", 70, current_block=22)
        engine.cast_score("e", rfp_id, "B", 70, current_block=22)

        assert [s.vendor for s in engine.standings(rfp_id, ["B", "A"])] == ["B", "A"]
        assert engine.finalize(REQUESTER, rfp_id, ["B", "A"], current_block=31).winner == "B"

    def test_unscored_candidates_skipped(self, engine):
        rfp_id = open_rfp(engine)
        bid(engine, rfp_id, "A", "B")
        engine.approve_evaluator(REQUESTER, rfp_id, "e", 0, current_block=16)
        engine.start_evaluation(REQUESTER, rfp_id, current_block=21)
        engine.cast_score("e", rfp_id, "B", 1, current_block=22)

        result = engine.finalize(REQUESTER, rfp_id, ["A", "ghost", "B"], current_block=31)
        assert result.winner == "B"

    def test_no_reveals(self, engine):
        """Nobody revealed: finalize fails and the RFP stays in evaluation."""
        rfp_id = open_rfp(engine)
        commitment, _ = create_sealed_bid(rfp_id, "A", "ipfs://a", 1)
        engine.commit("A", rfp_id, commitment, current_block=5)
        engine.start_evaluation(REQUESTER, rfp_id, current_block=21)

        with pytest.raises(NoReveals):
            engine.finalize(REQUESTER, rfp_id, ["A"], current_block=31)

        assert engine.get_rfp(rfp_id).status == RfpStatus.EVALUATE
        assert engine.get_winner(rfp_id) is None
        assert engine.store.peek_counter("badge") == 0


# =============================================================================
# Persistence Tests
# =============================================================================


class TestPersistence:
    """Engine state survives closing and reopening the SQLite file."""

    def test_resume_after_reopen(self, tmp_path):
        path = tmp_path / "sealbid.db"

        store = SQLiteRecordStore(path)
        engine = ProcurementEngine(store=store)
        rfp_id = open_rfp(engine)
        commitment, sealed = create_sealed_bid(rfp_id, "V", "ipfs://v", 100)
        engine.commit("V", rfp_id, commitment, current_block=5)
        store.close()

        store = SQLiteRecordStore(path)
        engine = ProcurementEngine(store=store, disburser=RecordingDisburser())
        try:
            engine.reveal("V", rfp_id, sealed.uri, sealed.deposit, sealed.salt, current_block=15)
            engine.approve_evaluator(REQUESTER, rfp_id, "E", 250, current_block=15)
            engine.start_evaluation(REQUESTER, rfp_id, current_block=21)
            engine.cast_score("E", rfp_id, "V", 80, current_block=22)
            result = engine.finalize(REQUESTER, rfp_id, ["V"], current_block=31)

            assert result.winner == "V"
            assert open_rfp(engine) == rfp_id + 1
            assert engine.verify_audit_log() == (True, "")
        finally:
            store.close()
