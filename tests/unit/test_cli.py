"""
Tests for the command line front end.
"""

import json

import pytest
from click.testing import CliRunner

from auctionhouse.cli.main import cli

SELLER = "0x" + "aa" * 20
ALICE = "0x" + "bb" * 20
BOB = "0x" + "cc" * 20

T0 = 1_700_000_000


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, tmp_path, monkeypatch):
    """Run a CLI command against a temporary data directory at a fixed time."""
    monkeypatch.chdir(tmp_path)
    data_dir = tmp_path / "data"

    def _invoke(*args, now=T0):
        return runner.invoke(cli, ["--data-dir", str(data_dir), "--now", str(now), *args])

    return _invoke


class TestAuctionCommands:
    def test_full_lifecycle(self, invoke):
        result = invoke("create", "--as", SELLER, "--title", "Camera", "--duration", "1", "--reserve", "0.01")
        assert result.exit_code == 0, result.output
        assert "Auction created: #1" in result.output
        assert "0.01 SHM" in result.output

        result = invoke("bid", "1", "--as", ALICE, "--amount", "0.005")
        assert result.exit_code == 0, result.output

        result = invoke("bid", "1", "--as", BOB, "--amount", "0.012")
        assert result.exit_code == 0, result.output
        assert "0.012 SHM" in result.output

        result = invoke("end", "1", now=T0 + 61)
        assert result.exit_code == 0, result.output
        assert "Won" in result.output
        assert "Seller owed: 0.012 SHM" in result.output

        result = invoke("withdraw", "1", "--as", ALICE, now=T0 + 62)
        assert result.exit_code == 0, result.output
        assert "Withdrawn: 0.005 SHM" in result.output

        result = invoke("withdraw", "1", "--as", ALICE, now=T0 + 63)
        assert result.exit_code == 1
        assert "Nothing to withdraw" in result.output

    def test_default_amounts(self, invoke):
        invoke("create", "--as", SELLER, "--title", "Defaults")
        result = invoke("bid", "1", "--as", ALICE)
        assert result.exit_code == 0, result.output
        assert "0.02 SHM" in result.output

        result = invoke("show", "1", "--json")
        data = json.loads(result.output)
        assert data["reserve_price"] == 10**16
        assert data["end_time"] == T0 + 300

    def test_bid_too_low(self, invoke):
        invoke("create", "--as", SELLER, "--title", "Camera")
        invoke("bid", "1", "--as", ALICE, "--amount", "1")
        result = invoke("bid", "1", "--as", BOB, "--amount", "1")
        assert result.exit_code == 1
        assert "must exceed" in result.output

    def test_end_too_early(self, invoke):
        invoke("create", "--as", SELLER, "--title", "Camera")
        result = invoke("end", "1")
        assert result.exit_code == 1
        assert "ends in 300s" in result.output

    def test_reserve_not_met(self, invoke):
        invoke("create", "--as", SELLER, "--title", "Camera", "--reserve", "1")
        invoke("bid", "1", "--as", ALICE, "--amount", "0.5")
        result = invoke("end", "1", now=T0 + 300)
        assert "ReserveNotMet" in result.output

        result = invoke("balance", "1", "--as", ALICE, now=T0 + 300)
        assert "Withdrawable: 0.5 SHM" in result.output

    def test_invalid_address(self, invoke):
        result = invoke("create", "--as", "alice", "--title", "Camera")
        assert result.exit_code == 2
        assert "0x-prefixed" in result.output

    def test_invalid_amount(self, invoke):
        invoke("create", "--as", SELLER, "--title", "Camera")
        result = invoke("bid", "1", "--as", ALICE, "--amount", "lots")
        assert result.exit_code == 2

    def test_unknown_auction(self, invoke):
        result = invoke("show", "4")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestListingCommands:
    def test_empty_list(self, invoke):
        result = invoke("list")
        assert result.exit_code == 0
        assert "No auctions yet." in result.output

    def test_list_newest_first(self, invoke):
        for title in ("First", "Second", "Third"):
            invoke("create", "--as", SELLER, "--title", title)

        result = invoke("list", "--json", "--limit", "2")
        data = json.loads(result.output)
        assert [item["title"] for item in data] == ["Third", "Second"]

        result = invoke("list")
        assert "Auctions: 3" in result.output
        assert result.output.index("Third") < result.output.index("First")


class TestPayoutCommands:
    def test_confirm_and_fail(self, invoke):
        invoke("create", "--as", SELLER, "--title", "Camera")
        invoke("bid", "1", "--as", ALICE, "--amount", "1")
        invoke("bid", "1", "--as", BOB, "--amount", "2")
        invoke("withdraw", "1", "--as", ALICE)

        result = invoke("payout", "list", "--pending")
        assert "1: #1 refund 1.0 SHM" in result.output
        assert "[pending]" in result.output

        result = invoke("payout", "fail", "1")
        assert result.exit_code == 0, result.output
        assert "re-credited" in result.output

        invoke("withdraw", "1", "--as", ALICE)
        result = invoke("payout", "confirm", "2")
        assert result.exit_code == 0, result.output
        assert "completed" in result.output

        result = invoke("payout", "confirm", "2")
        assert result.exit_code == 1

    def test_no_payouts(self, invoke):
        result = invoke("payout", "list")
        assert "No payouts." in result.output


class TestMiscCommands:
    def test_stats(self, invoke):
        invoke("create", "--as", SELLER, "--title", "Camera")
        result = invoke("stats")
        assert result.exit_code == 0
        assert "auction_count: 1" in result.output

    def test_demo(self, invoke):
        result = invoke("demo")
        assert result.exit_code == 0, result.output
        assert "Outcome: Won" in result.output
        assert "Demo complete!" in result.output
