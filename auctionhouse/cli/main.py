"""
Auction House CLI - command line front end for the auction engine.

Main entry point for all CLI commands. Plays the part of the wallet UI:
the caller's identity is passed with --as and amounts are decimal strings
in the display unit.
"""

import json
from pathlib import Path
from typing import Optional

import click

from auctionhouse.utils.logger import setup_logging, get_logger

logger = get_logger("cli")


# =============================================================================
# Helpers
# =============================================================================


def _identity(ctx, param, value: Optional[str]) -> Optional[str]:
    """click callback: validate and normalize a wallet address."""
    from auctionhouse.utils.validation import validate_address

    if value is None:
        return None
    valid, err = validate_address(value, param.name)
    if not valid:
        raise click.BadParameter(err)
    return value.lower()


def _amount(ctx, value: str, name: str) -> int:
    from auctionhouse.utils.format import parse_units

    try:
        return parse_units(value, ctx.obj["config"].decimals)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint=name)


def _engine(ctx):
    """Open the persistent engine on first use."""
    if "engine" not in ctx.obj:
        from auctionhouse.core.clock import ManualClock, SystemClock
        from auctionhouse.core.engine import AuctionEngine
        from auctionhouse.core.storage import StorageManager

        config = ctx.obj["config"]
        clock = ManualClock(ctx.obj["now"]) if ctx.obj["now"] is not None else SystemClock()
        storage = StorageManager(config.data_dir, config.db_name)
        ctx.obj["engine"] = AuctionEngine(clock=clock, config=config.engine, storage_manager=storage)
        ctx.call_on_close(ctx.obj["engine"].close)
    return ctx.obj["engine"]


def _fmt(ctx, amount: int) -> str:
    from auctionhouse.utils.format import format_units

    config = ctx.obj["config"]
    return f"{format_units(amount, config.decimals)} {config.symbol}"


def _fail(ctx, error: Exception):
    click.echo(f"❌ {error}")
    ctx.exit(1)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (default: ~/.auctionhouse)")
@click.option("--env-file", default=None, help="Path to a .env file")
@click.option("--now", type=int, default=None, hidden=True, help="Fixed current time (Unix seconds)")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, env_file, now):
    """Auction House - English auctions with refunds and settlement"""
    import logging
    from auctionhouse.core.config import load_config

    config = load_config(env_file)
    if data_dir:
        config.data_dir = Path(data_dir)
    config.ensure_dirs()

    level = logging.DEBUG if debug else logging.WARNING
    setup_logging(
        level=level,
        log_dir=str(config.log_dir) if config.log_dir else None,
        log_to_file=config.log_dir is not None,
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["now"] = now


# =============================================================================
# Auction Commands
# =============================================================================


@cli.command("create")
@click.option("--as", "seller", required=True, callback=_identity, help="Seller address (0x...)")
@click.option("--title", required=True, help="Listing title")
@click.option("--uri", default="", help="Metadata URI")
@click.option("--duration", type=int, default=None, help="Duration in minutes")
@click.option("--reserve", default=None, help="Reserve price")
@click.pass_context
def create(ctx, seller, title, uri, duration, reserve):
    """Create a new auction"""
    from auctionhouse.core.errors import AuctionError

    config = ctx.obj["config"]
    minutes = duration if duration is not None else config.default_duration_minutes
    reserve_price = _amount(ctx, reserve or config.default_reserve, "--reserve")

    engine = _engine(ctx)
    try:
        auction_id = engine.create(seller, minutes * 60, reserve_price, title, uri)
    except AuctionError as e:
        _fail(ctx, e)

    auction = engine.get_auction(auction_id)
    click.echo(f"✓ Auction created: #{auction_id}")
    click.echo(f"  Title: {auction.title}")
    click.echo(f"  Reserve: {_fmt(ctx, auction.reserve_price)}")
    click.echo(f"  Ends at: {auction.end_time}")


@cli.command("bid")
@click.argument("auction_id", type=int)
@click.option("--as", "bidder", required=True, callback=_identity, help="Bidder address (0x...)")
@click.option("--amount", default=None, help="Bid amount")
@click.pass_context
def bid(ctx, auction_id, bidder, amount):
    """Place a bid on an auction"""
    from auctionhouse.core.errors import AuctionError

    value = _amount(ctx, amount or ctx.obj["config"].default_bid, "--amount")

    try:
        auction = _engine(ctx).bid(auction_id, bidder, value)
    except AuctionError as e:
        _fail(ctx, e)

    click.echo(f"✓ Bid placed on #{auction_id}: {_fmt(ctx, auction.highest_bid)}")


@cli.command("end")
@click.argument("auction_id", type=int)
@click.option("--as", "caller", default=None, callback=_identity, help="Caller address (0x...)")
@click.pass_context
def end(ctx, auction_id, caller):
    """Settle an auction after its deadline"""
    from auctionhouse.core.errors import AuctionError
    from auctionhouse.core.state import AuctionOutcome

    engine = _engine(ctx)
    try:
        outcome = engine.end(auction_id, caller)
    except AuctionError as e:
        _fail(ctx, e)

    auction = engine.get_auction(auction_id)
    click.echo(f"✓ Auction #{auction_id} finalized: {outcome.value}")
    if outcome == AuctionOutcome.WON:
        click.echo(f"  Seller owed: {_fmt(ctx, auction.highest_bid)}")
    elif outcome == AuctionOutcome.RESERVE_NOT_MET:
        click.echo(f"  Refund owed to bidder: {_fmt(ctx, auction.highest_bid)}")


@cli.command("withdraw")
@click.argument("auction_id", type=int)
@click.option("--as", "caller", required=True, callback=_identity, help="Caller address (0x...)")
@click.pass_context
def withdraw(ctx, auction_id, caller):
    """Withdraw refunds or proceeds from an auction"""
    from auctionhouse.core.errors import AuctionError

    try:
        amount = _engine(ctx).withdraw(auction_id, caller)
    except AuctionError as e:
        _fail(ctx, e)

    click.echo(f"✓ Withdrawn: {_fmt(ctx, amount)}")


@cli.command("balance")
@click.argument("auction_id", type=int)
@click.option("--as", "identity", required=True, callback=_identity, help="Address (0x...)")
@click.pass_context
def balance(ctx, auction_id, identity):
    """Show what an address can withdraw from an auction"""
    from auctionhouse.core.errors import AuctionError

    try:
        owed = _engine(ctx).balance_of(auction_id, identity)
    except AuctionError as e:
        _fail(ctx, e)

    click.echo(f"Withdrawable: {_fmt(ctx, owed)}")


# =============================================================================
# Listing Commands
# =============================================================================


@cli.command("show")
@click.argument("auction_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def show(ctx, auction_id, as_json):
    """Show one auction"""
    from auctionhouse.core.errors import AuctionError
    from auctionhouse.core.listing import AuctionListing

    engine = _engine(ctx)
    try:
        auction = engine.get_auction(auction_id)
    except AuctionError as e:
        _fail(ctx, e)

    listing = AuctionListing.from_auction(auction, engine.clock.now())
    if as_json:
        click.echo(listing.model_dump_json(indent=2))
        return

    config = ctx.obj["config"]
    click.echo(listing.summary(config.decimals, config.symbol))
    if listing.uri:
        click.echo(f"  URI: {listing.uri}")


@cli.command("list")
@click.option("--limit", default=None, type=int, help="Max auctions to show")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
@click.pass_context
def list_auctions(ctx, limit, as_json):
    """List the latest auctions, newest first"""
    from auctionhouse.core.listing import AuctionListing

    engine = _engine(ctx)
    now = engine.clock.now()
    listings = [AuctionListing.from_auction(a, now) for a in engine.latest(limit)]

    if as_json:
        click.echo(json.dumps([listing.model_dump() for listing in listings], indent=2))
        return

    if not listings:
        click.echo("No auctions yet.")
        return

    config = ctx.obj["config"]
    click.echo(f"Auctions: {engine.auction_count()}")
    for listing in listings:
        click.echo(f"  {listing.summary(config.decimals, config.symbol)}")


# =============================================================================
# Payout Commands
# =============================================================================


@cli.group()
def payout():
    """Payout (transfer) management commands"""
    pass


@payout.command("list")
@click.option("--pending", is_flag=True, help="Only pending payouts")
@click.pass_context
def payout_list(ctx, pending):
    """List authorized payouts"""
    from auctionhouse.utils.format import short

    engine = _engine(ctx)
    items = engine.pending_payouts() if pending else engine.payouts()
    if not items:
        click.echo("No payouts.")
        return

    for p in items:
        click.echo(f"  {p.payout_id}: #{p.auction_id} {p.kind.value} "
                   f"{_fmt(ctx, p.amount)} -> {short(p.recipient)} [{p.status.value}]")


@payout.command("confirm")
@click.argument("payout_id", type=int)
@click.pass_context
def payout_confirm(ctx, payout_id):
    """Mark a payout as transferred"""
    from auctionhouse.core.errors import AuctionError

    try:
        p = _engine(ctx).confirm_payout(payout_id)
    except AuctionError as e:
        _fail(ctx, e)

    click.echo(f"✓ Payout {p.payout_id} {p.status.value}")


@payout.command("fail")
@click.argument("payout_id", type=int)
@click.pass_context
def payout_fail(ctx, payout_id):
    """Mark a payout as failed (amount becomes withdrawable again)"""
    from auctionhouse.core.errors import AuctionError

    try:
        p = _engine(ctx).fail_payout(payout_id)
    except AuctionError as e:
        _fail(ctx, e)

    click.echo(f"✓ Payout {p.payout_id} {p.status.value}, {_fmt(ctx, p.amount)} re-credited")


# =============================================================================
# Stats Command
# =============================================================================


@cli.command("stats")
@click.pass_context
def stats(ctx):
    """Show engine statistics"""
    engine = _engine(ctx)

    click.echo("Auction House Statistics")
    click.echo("-" * 40)
    for key, value in engine.stats().items():
        click.echo(f"  {key}: {value}")


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.pass_context
def demo(ctx):
    """Run an in-memory walkthrough of an auction's lifecycle"""
    from auctionhouse.core.clock import ManualClock
    from auctionhouse.core.engine import AuctionEngine
    from auctionhouse.utils.format import short

    seller = "0x" + "a1" * 20
    alice = "0x" + "b2" * 20
    bob = "0x" + "c3" * 20

    clock = ManualClock(start=1_700_000_000)
    engine = AuctionEngine(clock=clock)

    click.echo("=" * 60)
    click.echo("  AUCTION HOUSE - DEMO")
    click.echo("=" * 60)
    click.echo()

    click.echo("🏷️  Seller lists an item (60s, reserve 10)...")
    auction_id = engine.create(seller, 60, 10, "Vintage camera", "ipfs://camera")
    click.echo(f"  ✓ Auction #{auction_id} created by {short(seller)}")
    click.echo()

    click.echo("💰 Bidding...")
    engine.bid(auction_id, alice, 5)
    click.echo(f"  ✓ {short(alice)} bids 5")
    engine.bid(auction_id, bob, 12)
    click.echo(f"  ✓ {short(bob)} bids 12, {short(alice)} refundable: {engine.refund_of(auction_id, alice)}")
    click.echo()

    click.echo("⏱️  Advancing past the deadline...")
    clock.advance(61)
    outcome = engine.end(auction_id)
    click.echo(f"  ✓ Outcome: {outcome.value}, seller owed {engine.proceeds_of(auction_id, seller)}")
    click.echo()

    click.echo("🏦 Withdrawals...")
    click.echo(f"  ✓ {short(alice)} withdraws {engine.withdraw(auction_id, alice)}")
    click.echo(f"  ✓ {short(seller)} withdraws {engine.withdraw(auction_id, seller)}")
    for p in engine.pending_payouts():
        engine.confirm_payout(p.payout_id)
    click.echo()

    click.echo("📊 Final Statistics:")
    for key, value in engine.stats().items():
        click.echo(f"  {key}: {value}")
    click.echo()
    click.echo("✅ Demo complete!")


if __name__ == "__main__":
    cli()
