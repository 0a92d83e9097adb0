"""
Funds Sweeper
=============

Moves native balances from source keyring wallets to one target wallet:

1. Resolve wallet names to addresses (unknown sources are dropped)
2. Build a pre-flight report of current balances
3. Sweep each source in input order, leaving the gas reserve behind

Balances are queried again at sweep time rather than reused from the
pre-flight report, so what is sent reflects the chain after confirmation.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from .chain_cli import ChainCLI, TransferSuccess
from .config import SweepConfig
from .utils import (
    logger,
    format_balance,
    format_tx_hash,
    WalletNotFoundError,
    NoValidWalletsError,
)


class SweepStatus(Enum):
    """Per-wallet sweep outcome."""
    SWEPT = "swept"
    FAILED = "failed"
    SKIPPED_EMPTY = "skipped_empty"
    SKIPPED_LOW_BALANCE = "skipped_low_balance"


@dataclass
class WalletRef:
    """Keyring wallet name and its resolved address."""
    name: str
    address: str


@dataclass
class SweepPlanEntry:
    """Pre-flight balance of one source wallet."""
    name: str
    address: str
    balance: int


@dataclass
class PreflightReport:
    """Balances seen before confirmation."""
    entries: List[SweepPlanEntry] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(entry.balance for entry in self.entries if entry.balance > 0)


@dataclass
class SweepOutcome:
    """Result of sweeping a single wallet."""
    wallet: str
    address: str
    status: SweepStatus
    balance: int = 0
    amount: int = 0
    tx_hash: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SweepSummary:
    """Aggregated results of one sweep run."""
    outcomes: List[SweepOutcome] = field(default_factory=list)

    def _count(self, *statuses: SweepStatus) -> int:
        return sum(1 for o in self.outcomes if o.status in statuses)

    @property
    def successful(self) -> int:
        return self._count(SweepStatus.SWEPT)

    @property
    def failed(self) -> int:
        return self._count(SweepStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(SweepStatus.SKIPPED_EMPTY, SweepStatus.SKIPPED_LOW_BALANCE)

    @property
    def total_swept(self) -> int:
        return sum(o.amount for o in self.outcomes if o.status == SweepStatus.SWEPT)


class FundsSweeper:
    """Orchestrates a sweep against the chain daemon CLI."""

    def __init__(self, config: SweepConfig, chain: Optional[ChainCLI] = None):
        self.config = config
        self.chain = chain or ChainCLI(config)

    def format_amount(self, amount: int) -> str:
        return format_balance(amount, self.config.display_decimals, self.config.display_denom)

    def resolve_target(self, target_name: str) -> WalletRef:
        """Resolve the target wallet; a missing target stops the run."""
        address = self.chain.resolve_address(target_name)
        if not address:
            raise WalletNotFoundError(f"Target wallet '{target_name}' not found in keyring")
        return WalletRef(name=target_name, address=address)

    def resolve_sources(self, names: Sequence[str]) -> List[WalletRef]:
        """
        Resolve source wallet names, dropping those not in the keyring.

        Raises:
            NoValidWalletsError: if no name resolves
        """
        wallets = []
        for name in names:
            address = self.chain.resolve_address(name)
            if not address:
                logger.warning(f"Wallet '{name}' not found in keyring - skipping")
                continue
            logger.info(f"Found wallet: {name} ({address})")
            wallets.append(WalletRef(name=name, address=address))

        if not wallets:
            raise NoValidWalletsError("No valid source wallets found")
        return wallets

    def preflight(self, wallets: Sequence[WalletRef]) -> PreflightReport:
        """Query each source balance ahead of confirmation."""
        report = PreflightReport()
        for wallet in wallets:
            balance = self.chain.query_balance(wallet.address)
            report.entries.append(SweepPlanEntry(wallet.name, wallet.address, balance))
        return report

    def planned_amount(self, balance: int) -> int:
        """Amount a wallet with ``balance`` would send, or 0 if it is skipped."""
        if balance <= self.config.gas_reserve:
            return 0
        return balance - self.config.gas_reserve

    def sweep_wallet(self, wallet: WalletRef, target_name: str) -> SweepOutcome:
        """Sweep one wallet into ``target_name``."""
        balance = self.chain.query_balance(wallet.address)

        if balance <= 0:
            logger.info(f"Skipping {wallet.name} (no balance)")
            return SweepOutcome(wallet.name, wallet.address, SweepStatus.SKIPPED_EMPTY)

        if balance <= self.config.gas_reserve:
            logger.info(f"Skipping {wallet.name} (balance too low for gas)")
            return SweepOutcome(
                wallet.name, wallet.address, SweepStatus.SKIPPED_LOW_BALANCE, balance=balance
            )

        amount = balance - self.config.gas_reserve
        logger.info(f"Sweeping {self.format_amount(amount)} from {wallet.name}")

        result = self.chain.submit_transfer(wallet.name, target_name, amount)

        if isinstance(result, TransferSuccess):
            if result.code != 0:
                logger.warning(
                    f"{wallet.name}: tx {format_tx_hash(result.tx_hash)} returned code "
                    f"{result.code}: {result.raw_log}"
                )
            logger.info(f"{wallet.name}: success - TxHash: {result.tx_hash}")
            return SweepOutcome(
                wallet.name,
                wallet.address,
                SweepStatus.SWEPT,
                balance=balance,
                amount=amount,
                tx_hash=result.tx_hash,
            )

        logger.error(f"{wallet.name}: transfer failed - {result.raw_message or '<empty response>'}")
        return SweepOutcome(
            wallet.name,
            wallet.address,
            SweepStatus.FAILED,
            balance=balance,
            amount=amount,
            error=result.raw_message,
        )

    def sweep(self, wallets: Sequence[WalletRef], target_name: str) -> SweepSummary:
        """
        Sweep every wallet in order.

        Failures stay local to their wallet; the loop always continues.
        After each successful transfer the sweeper pauses briefly so the node
        is not flooded with back-to-back broadcasts.
        """
        summary = SweepSummary()

        for wallet in wallets:
            outcome = self.sweep_wallet(wallet, target_name)
            summary.outcomes.append(outcome)

            if outcome.status == SweepStatus.SWEPT:
                time.sleep(self.config.post_success_delay_seconds)

        logger.info(
            f"Sweep complete: {summary.successful} successful, "
            f"{summary.failed} failed, {summary.skipped} skipped"
        )
        return summary
