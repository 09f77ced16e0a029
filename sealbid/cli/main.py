"""
sealbid CLI - Command Line Interface for the sealed-bid procurement engine

Main entry point for all CLI commands.
"""

import click
from pathlib import Path

from sealbid import __version__
from sealbid.utils.logger import setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default="~/.sealbid", help="Data directory")
@click.option("--env-file", default=None, help="Dotenv file with SEALBID_* settings")
@click.option("--log-file", is_flag=True, help="Also write logs under <data-dir>/logs")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, data_dir, env_file, log_file):
    """sealbid - Sealed-bid RFP engine"""
    import logging
    from sealbid.core.config import load_config

    config = load_config(env_file)
    config.data_dir = Path(data_dir).expanduser()
    config.log_dir = config.data_dir / "logs"

    level = logging.DEBUG if debug else logging.WARNING
    setup_logging(level=level, log_dir=str(config.log_dir), log_to_file=log_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Bid Commands
# =============================================================================

@cli.command("seal")
@click.option("--rfp-id", type=int, required=True, help="RFP being bid on")
@click.option("--vendor", required=True, help="Vendor account")
@click.option("--uri", required=True, help="Proposal reference to reveal later")
@click.option("--deposit", type=int, default=0, help="Declared deposit")
@click.option("--salt", default=None, help="Hex salt (random if omitted)")
def seal(rfp_id, vendor, uri, deposit, salt):
    """Compute the commitment for a sealed bid"""
    from sealbid.crypto import bytes_to_hex, hex_to_bytes
    from sealbid.core.auction.commit_reveal import create_sealed_bid

    try:
        salt_bytes = hex_to_bytes(salt) if salt is not None else None
    except ValueError:
        raise click.BadParameter("salt must be hex", param_hint="--salt")

    try:
        commitment, bid = create_sealed_bid(rfp_id, vendor, uri, deposit, salt_bytes)
    except ValueError as e:
        raise click.BadParameter(str(e))

    click.echo(f"Commitment: {bytes_to_hex(commitment)}")
    click.echo(f"Salt:       {bytes_to_hex(bid.salt)}")
    click.echo("  Keep the salt secret until the reveal window opens.")


@cli.command("keygen")
def keygen():
    """Generate a fresh account keypair"""
    from sealbid.crypto import bytes_to_hex, generate_keypair

    kp = generate_keypair()
    click.echo(f"✓ Account: {kp.address}")
    click.echo(f"  Public key: {bytes_to_hex(kp.public_key)}")
    click.echo(f"  Private key: {bytes_to_hex(kp.private_key)}")


# =============================================================================
# Demo
# =============================================================================

@cli.command("demo")
@click.pass_context
def demo(ctx):
    """Run an end-to-end RFP against a SQLite store"""
    from sealbid.crypto import bytes_to_hex, sha256
    from sealbid.core.auction.commit_reveal import create_sealed_bid
    from sealbid.core.engine import ProcurementEngine
    from sealbid.core.payout import RecordingDisburser
    from sealbid.core.storage import SQLiteRecordStore

    config = ctx.obj["config"]
    config.ensure_dirs()

    click.echo("=" * 60)
    click.echo("  SEALBID - DEMO")
    click.echo("=" * 60)
    click.echo()

    db_path = config.data_dir / "sealbid.db"
    store = SQLiteRecordStore(db_path)
    disburser = RecordingDisburser()
    engine = ProcurementEngine(store=store, disburser=disburser, config=config)

    requester = "city-procurement"
    vendors = ["acme-builders", "bolt-construction"]
    evaluators = {"senior-engineer": 250, "analyst": 0}

    try:
        click.echo("📋 Publishing RFP...")
        rfp_id = engine.create_rfp(
            requester, "Bridge inspection", "Annual structural survey",
            min_deposit=100, commit_deadline=10, reveal_deadline=20,
            eval_deadline=30, current_block=0,
        )
        click.echo(f"  ✓ RFP {rfp_id}: commit<=10, reveal<=20, eval<=30")
        click.echo()

        click.echo("🔒 Vendors seal their bids...")
        bids = {}
        for i, vendor in enumerate(vendors):
            commitment, bid = create_sealed_bid(rfp_id, vendor, f"ipfs://proposal-{i}", 100 + i)
            engine.commit(vendor, rfp_id, commitment, current_block=5)
            bids[vendor] = bid
            click.echo(f"  ✓ {vendor}: {bytes_to_hex(commitment)[:18]}...")
        click.echo()

        click.echo("🔓 Vendors reveal...")
        for vendor, bid in bids.items():
            engine.reveal(vendor, rfp_id, bid.uri, bid.deposit, bid.salt, current_block=15)
            click.echo(f"  ✓ {vendor} revealed {bid.uri}")
        click.echo()

        click.echo("⚖️  Evaluating...")
        for evaluator, rep in evaluators.items():
            engine.approve_evaluator(requester, rfp_id, evaluator, rep, current_block=15)
        engine.start_evaluation(requester, rfp_id, current_block=21)

        scores = {
            "senior-engineer": {"acme-builders": 80, "bolt-construction": 70},
            "analyst": {"acme-builders": 60, "bolt-construction": 95},
        }
        for evaluator, by_vendor in scores.items():
            for vendor, score in by_vendor.items():
                engine.cast_score(evaluator, rfp_id, vendor, score, current_block=25)
        for standing in engine.standings(rfp_id, vendors):
            click.echo(
                f"  {standing.vendor}: {standing.weighted_sum}/{standing.weighted_total}"
            )
        click.echo()

        click.echo("🏆 Finalizing...")
        result = engine.finalize(requester, rfp_id, vendors, current_block=31)
        click.echo(f"  ✓ Winner: {result.winner}")
        click.echo(f"  ✓ Badge: {result.badge_id} ({engine.get_badge(result.badge_id).metadata})")
        click.echo()

        click.echo("📦 Delivery...")
        milestone_hash = sha256(b"inspection-report-part-1")
        engine.post_milestone(result.winner, rfp_id, 0, milestone_hash, current_block=40)
        receipt = engine.verify_and_release(
            requester, rfp_id, result.winner, 0, milestone_hash, 500, current_block=41,
        )
        click.echo(f"  ✓ Milestone 0 released: {receipt.reference}")

        final_hash = sha256(b"inspection-report-final")
        engine.post_final(result.winner, rfp_id, final_hash, current_block=50)
        engine.verify_final(requester, rfp_id, final_hash, 10, current_block=51, amount=1500)
        click.echo(f"  ✓ RFP {rfp_id}: {engine.get_rfp(rfp_id).status.name}")
        click.echo()

        ok, err = engine.verify_audit_log()
        click.echo("📊 Final Statistics:")
        click.echo(f"  Store: {db_path}")
        click.echo(f"  Audit events: {len(engine.audit_log(rfp_id))} (chain {'ok' if ok else err})")
        click.echo(f"  Payouts: {disburser.stats()}")
        click.echo(f"  {result.winner} reputation: {engine.get_vendor_reputation(result.winner)}")
        click.echo()
        click.echo("✅ Demo complete!")
    finally:
        store.close()


# =============================================================================
# Info
# =============================================================================

@cli.command("audit")
@click.option("--rfp-id", type=int, default=None, help="Only events for this RFP")
@click.pass_context
def audit(ctx, rfp_id):
    """Print and verify the audit journal in the data directory"""
    from sealbid.core.engine import ProcurementEngine
    from sealbid.core.storage import SQLiteRecordStore

    config = ctx.obj["config"]
    db_path = config.data_dir / "sealbid.db"
    if not db_path.exists():
        click.echo("No store found. Run `sealbid demo` first.")
        return

    store = SQLiteRecordStore(db_path)
    try:
        engine = ProcurementEngine(store=store, config=config)
        for event in engine.audit_log(rfp_id):
            click.echo(
                f"  #{event.seq} block={event.block} rfp={event.rfp_id} "
                f"{event.kind} by {event.actor}"
            )
        ok, err = engine.verify_audit_log()
        click.echo("✓ Chain intact" if ok else f"✗ {err}")
    finally:
        store.close()


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
