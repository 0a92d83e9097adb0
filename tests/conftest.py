"""Shared fixtures for the sweeper test suite."""

import sys
from pathlib import Path

import pytest

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sweeper.chain_cli import TransferSuccess, TransferFailure
from sweeper.config import SweepConfig


class FakeChain:
    """
    In-memory stand-in for ChainCLI.

    ``keyring`` maps wallet names to addresses, ``balances`` maps addresses
    to amounts. Successful transfers move funds so that re-queries see the
    new balances.
    """

    def __init__(self, keyring=None, balances=None, fail_wallets=(), gas_fee=0):
        self.keyring = dict(keyring or {})
        self.balances = dict(balances or {})
        self.fail_wallets = set(fail_wallets)
        self.gas_fee = gas_fee
        self.transfers = []
        self.balance_queries = []

    def resolve_address(self, wallet_name):
        return self.keyring.get(wallet_name)

    def query_balance(self, address):
        self.balance_queries.append(address)
        return self.balances.get(address, 0)

    def submit_transfer(self, from_wallet, to_wallet_name, amount):
        self.transfers.append((from_wallet, to_wallet_name, amount))
        if from_wallet in self.fail_wallets:
            return TransferFailure(raw_message="Error: insufficient fees")

        src = self.keyring[from_wallet]
        dst = self.keyring[to_wallet_name]
        self.balances[src] = self.balances.get(src, 0) - amount - self.gas_fee
        self.balances[dst] = self.balances.get(dst, 0) + amount
        return TransferSuccess(tx_hash=f"HASH{len(self.transfers):060d}")


@pytest.fixture
def config():
    """Default config with no post-success pause."""
    return SweepConfig(post_success_delay_seconds=0)


@pytest.fixture
def scenario_chain():
    """admin target plus w1 (empty), w2 (below reserve) and w3 (sweepable)."""
    keyring = {
        "admin": "mantra1admin",
        "w1": "mantra1w1",
        "w2": "mantra1w2",
        "w3": "mantra1w3",
    }
    balances = {
        "mantra1admin": 1_000_000,
        "mantra1w1": 0,
        "mantra1w2": 50_000,
        "mantra1w3": 3_000_000,
    }
    return FakeChain(keyring=keyring, balances=balances)
