"""
Testnet Funds Sweeper for MANTRA Dukong

Sweeps native OM balances from keyring wallets into a single target wallet
through the mantrachaind command line.

Usage:
    from sweeper import FundsSweeper, SweepConfig

    sweeper = FundsSweeper(SweepConfig())
    wallets = sweeper.resolve_sources(["wallet1", "wallet2"])
    summary = sweeper.sweep(wallets, "admin")
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .config import SweepConfig
from .chain_cli import ChainCLI, TransferSuccess, TransferFailure, decode_transfer_response
from .sweeper import (
    FundsSweeper,
    WalletRef,
    SweepPlanEntry,
    PreflightReport,
    SweepOutcome,
    SweepStatus,
    SweepSummary,
)
from .utils import (
    logger,
    format_balance,
    SweepError,
    ChainCLIError,
    WalletNotFoundError,
    NoValidWalletsError,
)

__all__ = [
    "SweepConfig",
    "ChainCLI",
    "TransferSuccess",
    "TransferFailure",
    "decode_transfer_response",
    "FundsSweeper",
    "WalletRef",
    "SweepPlanEntry",
    "PreflightReport",
    "SweepOutcome",
    "SweepStatus",
    "SweepSummary",
    "logger",
    "format_balance",
    "SweepError",
    "ChainCLIError",
    "WalletNotFoundError",
    "NoValidWalletsError",
]
