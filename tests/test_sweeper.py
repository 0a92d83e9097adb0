"""
Tests for the sweep orchestration.

Uses the in-memory FakeChain from conftest.py in place of the daemon.
"""

import json
import subprocess
from unittest.mock import patch

import pytest

from sweeper.chain_cli import ChainCLI
from sweeper.config import SweepConfig
from sweeper.sweeper import FundsSweeper, SweepStatus, WalletRef
from sweeper.utils import WalletNotFoundError, NoValidWalletsError

from conftest import FakeChain


class TestResolution:
    """Tests for target and source resolution."""

    def test_resolve_target(self, config, scenario_chain):
        sweeper = FundsSweeper(config, scenario_chain)

        target = sweeper.resolve_target("admin")
        assert target == WalletRef("admin", "mantra1admin")

    def test_missing_target_raises(self, config, scenario_chain):
        sweeper = FundsSweeper(config, scenario_chain)

        with pytest.raises(WalletNotFoundError):
            sweeper.resolve_target("nobody")

    def test_unknown_sources_are_dropped(self, config, scenario_chain, caplog):
        """Unknown names are skipped with a warning, order is preserved."""
        sweeper = FundsSweeper(config, scenario_chain)

        wallets = sweeper.resolve_sources(["w3", "ghost", "w1"])

        assert [w.name for w in wallets] == ["w3", "w1"]
        assert "ghost" in caplog.text

    def test_all_sources_invalid_raises(self, config, scenario_chain):
        sweeper = FundsSweeper(config, scenario_chain)

        with pytest.raises(NoValidWalletsError):
            sweeper.resolve_sources(["ghost1", "ghost2"])
        assert scenario_chain.transfers == []


class TestPreflight:
    """Tests for the pre-confirmation report."""

    def test_total_counts_positive_balances(self, config, scenario_chain):
        sweeper = FundsSweeper(config, scenario_chain)
        wallets = sweeper.resolve_sources(["w1", "w2", "w3"])

        report = sweeper.preflight(wallets)

        assert [e.balance for e in report.entries] == [0, 50_000, 3_000_000]
        assert report.total == 3_050_000
        assert scenario_chain.transfers == []

    @pytest.mark.parametrize("balance,expected", [
        (0, 0),
        (100_000, 0),
        (100_001, 1),
        (5_000_000, 4_900_000),
    ])
    def test_planned_amount(self, config, balance, expected):
        sweeper = FundsSweeper(config, FakeChain())

        assert sweeper.planned_amount(balance) == expected


class TestSweepWallet:
    """Tests for sweeping individual wallets."""

    def _sweeper(self, config, balance, **kwargs):
        chain = FakeChain(
            keyring={"admin": "mantra1admin", "src": "mantra1src"},
            balances={"mantra1src": balance},
            **kwargs
        )
        return FundsSweeper(config, chain), chain

    def test_amount_is_balance_minus_reserve(self, config):
        sweeper, chain = self._sweeper(config, 5_000_000)

        outcome = sweeper.sweep_wallet(WalletRef("src", "mantra1src"), "admin")

        assert outcome.status == SweepStatus.SWEPT
        assert outcome.amount == 4_900_000
        assert outcome.tx_hash
        assert chain.transfers == [("src", "admin", 4_900_000)]

    def test_empty_wallet_skipped(self, config):
        sweeper, chain = self._sweeper(config, 0)

        outcome = sweeper.sweep_wallet(WalletRef("src", "mantra1src"), "admin")

        assert outcome.status == SweepStatus.SKIPPED_EMPTY
        assert chain.transfers == []

    @pytest.mark.parametrize("balance", [1, 50_000, 100_000])
    def test_balance_at_or_below_reserve_skipped(self, config, balance):
        sweeper, chain = self._sweeper(config, balance)

        outcome = sweeper.sweep_wallet(WalletRef("src", "mantra1src"), "admin")

        assert outcome.status == SweepStatus.SKIPPED_LOW_BALANCE
        assert chain.transfers == []

    def test_failed_transfer_keeps_raw_message(self, config):
        sweeper, chain = self._sweeper(config, 2_000_000, fail_wallets={"src"})

        outcome = sweeper.sweep_wallet(WalletRef("src", "mantra1src"), "admin")

        assert outcome.status == SweepStatus.FAILED
        assert outcome.error == "Error: insufficient fees"
        assert outcome.amount == 1_900_000

    def test_balance_is_requeried_at_sweep_time(self, config):
        """Funds that arrive after the pre-flight report are swept too."""
        sweeper, chain = self._sweeper(config, 1_000_000)
        wallet = WalletRef("src", "mantra1src")

        report = sweeper.preflight([wallet])
        chain.balances["mantra1src"] = 2_000_000
        outcome = sweeper.sweep_wallet(wallet, "admin")

        assert report.entries[0].balance == 1_000_000
        assert outcome.amount == 1_900_000


class TestSweep:
    """Tests for the full sweep loop."""

    def test_scenario(self, config, scenario_chain):
        """admin <- w1 (0), w2 (50000), w3 (3000000): only w3 is swept."""
        sweeper = FundsSweeper(config, scenario_chain)
        wallets = sweeper.resolve_sources(["w1", "w2", "w3"])

        summary = sweeper.sweep(wallets, "admin")

        assert scenario_chain.transfers == [("w3", "admin", 2_900_000)]
        assert summary.successful == 1
        assert summary.failed == 0
        assert summary.skipped == 2
        assert summary.total_swept == 2_900_000
        assert [o.status for o in summary.outcomes] == [
            SweepStatus.SKIPPED_EMPTY,
            SweepStatus.SKIPPED_LOW_BALANCE,
            SweepStatus.SWEPT,
        ]

    def test_failures_do_not_stop_the_loop(self, config):
        chain = FakeChain(
            keyring={"admin": "a", "w1": "b", "w2": "c", "w3": "d"},
            balances={"b": 1_000_000, "c": 1_000_000, "d": 1_000_000},
            fail_wallets={"w1", "w2"},
        )
        sweeper = FundsSweeper(config, chain)
        wallets = sweeper.resolve_sources(["w1", "w2", "w3"])

        summary = sweeper.sweep(wallets, "admin")

        assert [t[0] for t in chain.transfers] == ["w1", "w2", "w3"]
        assert summary.successful == 1
        assert summary.failed == 2

    @patch('sweeper.sweeper.time.sleep')
    def test_pause_only_after_success(self, mock_sleep, scenario_chain):
        config = SweepConfig()
        scenario_chain.keyring["w4"] = "mantra1w4"
        scenario_chain.balances["mantra1w4"] = 500_000
        scenario_chain.fail_wallets.add("w4")
        sweeper = FundsSweeper(config, scenario_chain)
        wallets = sweeper.resolve_sources(["w1", "w2", "w3", "w4"])

        sweeper.sweep(wallets, "admin")

        mock_sleep.assert_called_once_with(2.0)

    @patch('sweeper.chain_cli.subprocess.run')
    def test_undecodable_send_output_fails_only_that_wallet(self, mock_run, config):
        """A send whose output is not UTF-8 fails locally; the next wallet is still swept."""
        balance_json = json.dumps({"balances": [{"denom": "uom", "amount": "1000000"}]})

        def run(cmd, **kwargs):
            if cmd[1:3] == ["query", "bank"]:
                return subprocess.CompletedProcess(cmd, 0, stdout=balance_json, stderr="")
            if cmd[1:4] == ["tx", "bank", "send"] and cmd[4] == "w1":
                raise UnicodeDecodeError('utf-8', b'Error: \xff\xfe bad bytes', 7, 8, 'invalid start byte')
            return subprocess.CompletedProcess(cmd, 0, stdout='{"txhash": "ABC123", "code": 0}', stderr="")

        mock_run.side_effect = run
        sweeper = FundsSweeper(config, ChainCLI(config))
        wallets = [WalletRef("w1", "mantra1w1"), WalletRef("w2", "mantra1w2")]

        summary = sweeper.sweep(wallets, "admin")

        assert [o.status for o in summary.outcomes] == [SweepStatus.FAILED, SweepStatus.SWEPT]
        assert summary.outcomes[1].tx_hash == "ABC123"
        assert summary.outcomes[1].amount == 900_000
