#!/usr/bin/env python3
"""
Testnet Funds Sweeper CLI
=========================

Sweeps the native balance of one or more keyring wallets into a target
wallet on the MANTRA Dukong testnet.

Usage:
    sweep-testnet-funds admin wallet1 wallet2 wallet3
    sweep-testnet-funds --dry-run admin wallet1
"""

import sys
import argparse
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape
from rich import box

from .config import SweepConfig
from .sweeper import FundsSweeper, PreflightReport, SweepSummary, SweepStatus, WalletRef
from .utils import console, logger, setup_logging, WalletNotFoundError, NoValidWalletsError


USAGE = """Usage: {prog} <target_wallet_name> <source_wallet1> [source_wallet2] ...

Arguments:
  target_wallet_name   - The wallet name to sweep all funds to
  source_walletN       - Wallet names to sweep funds from

Example:
  {prog} admin wallet1 wallet2 wallet3

Note: Wallet names must be configured in your {binary} keyring"""

CONFIRM_PROMPT = "Do you want to proceed with sweeping funds? (y/N): "


def print_usage(prog: str, config: SweepConfig, out: Console = console):
    """Print usage with an example invocation."""
    out.print(USAGE.format(prog=prog, binary=config.binary), markup=False, highlight=False)


def print_banner(config: SweepConfig, target: WalletRef, source_count: int):
    """Print the run header."""
    body = (
        f"Target: {escape(target.name)} ({target.address})\n"
        f"Chain: {config.chain_id}\n"
        f"Source wallets: {source_count}"
    )
    console.print()
    console.print(Panel(body, title="MANTRA Testnet Funds Sweeper", style="bold cyan", box=box.DOUBLE))
    console.print()


def confirm(prompt: str = CONFIRM_PROMPT) -> bool:
    """
    Ask a single yes/no question; only an answer starting with y/Y proceeds.

    The answer is read as a line and only its first character is checked,
    so "y" and "yes" both confirm.
    """
    try:
        answer = console.input(prompt)
    except EOFError:
        console.print()
        return False
    return answer.strip()[:1] in ("y", "Y")


def print_preflight(report: PreflightReport, sweeper: FundsSweeper):
    """Show current balances and the total that will be swept."""
    fmt = sweeper.format_amount

    table = Table(title="Wallet Balances", box=box.ROUNDED)
    table.add_column("", width=2)
    table.add_column("Wallet", style="cyan")
    table.add_column("Address", style="dim")
    table.add_column("Balance", style="green", justify="right")
    table.add_column(f"Balance ({sweeper.config.denom})", justify="right")
    table.add_column("To send", style="yellow", justify="right")

    for entry in report.entries:
        if entry.balance > 0:
            mark = "[green]✓[/green]"
            raw = str(entry.balance)
        else:
            mark = "[red]✗[/red]"
            raw = "-"
        planned = sweeper.planned_amount(entry.balance)
        table.add_row(
            mark,
            escape(entry.name),
            entry.address,
            fmt(entry.balance),
            raw,
            fmt(planned) if planned else "-",
        )

    console.print(table)
    console.print(f"\nTotal to sweep: [yellow]{fmt(report.total)}[/yellow]\n")


def print_dry_run(report: PreflightReport, sweeper: FundsSweeper, target: WalletRef):
    """Describe what a real run would send."""
    planned = [(e, sweeper.planned_amount(e.balance)) for e in report.entries]
    sendable = [(e, amount) for e, amount in planned if amount > 0]
    total = sum(amount for _, amount in sendable)

    for entry, amount in sendable:
        console.print(
            f"[yellow][DRY RUN][/yellow] {escape(entry.name)} → {escape(target.name)}: "
            f"{sweeper.format_amount(amount)} ({amount}{sweeper.config.denom})"
        )
    console.print(
        f"\n[yellow][DRY RUN] Would sweep {sweeper.format_amount(total)} "
        f"from {len(sendable)} wallet(s). No transactions were sent.[/yellow]"
    )


def print_summary(summary: SweepSummary, sweeper: FundsSweeper, final_balance: int):
    """Show per-wallet results, counts and the target's final balance."""
    fmt = sweeper.format_amount

    table = Table(title="Sweep Results", box=box.ROUNDED)
    table.add_column("Wallet", style="cyan")
    table.add_column("Amount", style="green", justify="right")
    table.add_column("Status", style="white")
    table.add_column("TxHash / Detail", style="dim")

    labels = {
        SweepStatus.SWEPT: "[green]✓ Success[/green]",
        SweepStatus.FAILED: "[red]✗ Failed[/red]",
        SweepStatus.SKIPPED_EMPTY: "[yellow]Skipped[/yellow] (no balance)",
        SweepStatus.SKIPPED_LOW_BALANCE: "[red]Skipped[/red] (balance too low for gas)",
    }

    for outcome in summary.outcomes:
        if outcome.status == SweepStatus.SWEPT:
            detail = outcome.tx_hash or ""
        elif outcome.status == SweepStatus.FAILED:
            detail = escape(outcome.error or "<empty response>")
        else:
            detail = ""
        table.add_row(
            escape(outcome.wallet),
            fmt(outcome.amount) if outcome.amount else "-",
            labels[outcome.status],
            detail,
        )

    console.print(table)
    console.print(Panel(
        f"Successful: {summary.successful}\n"
        f"Failed: {summary.failed}\n"
        f"Skipped: {summary.skipped}\n\n"
        f"Target wallet final balance: [green]{fmt(final_balance)}[/green]",
        title="[green]Sweep Complete![/green]",
        border_style="cyan",
    ))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sweep-testnet-funds",
        description="Sweep native testnet funds from keyring wallets into one target wallet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sweep three wallets into 'admin'
  sweep-testnet-funds admin wallet1 wallet2 wallet3

  # Show what would be swept without sending anything
  sweep-testnet-funds --dry-run admin wallet1 wallet2
        """
    )
    parser.add_argument('target', nargs='?', help='Wallet name to sweep all funds to')
    parser.add_argument('sources', nargs='*', help='Wallet names to sweep funds from')
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show balances and planned transfers without executing them'
    )
    parser.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging verbosity'
    )
    parser.add_argument('--log-file', help='Also write logs to this file')
    return parser


def main(argv: Optional[List[str]] = None, sweeper: Optional[FundsSweeper] = None) -> int:
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    config = sweeper.config if sweeper else SweepConfig()
    config.dry_run = args.dry_run
    config.log_level = args.log_level
    config.log_file = args.log_file

    if not args.target or not args.sources:
        print_usage(parser.prog, config)
        return 1

    setup_logging(config.log_level, config.log_file)
    logger.debug(f"Config: {config.to_dict()}")
    sweeper = sweeper or FundsSweeper(config)

    try:
        target = sweeper.resolve_target(args.target)
    except WalletNotFoundError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    console.print("[yellow]Validating wallets...[/yellow]")
    try:
        wallets = sweeper.resolve_sources(args.sources)
    except NoValidWalletsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    print_banner(config, target, len(wallets))

    console.print("[yellow]Checking wallet balances...[/yellow]\n")
    report = sweeper.preflight(wallets)
    print_preflight(report, sweeper)

    if config.dry_run:
        print_dry_run(report, sweeper, target)
        return 0

    if not confirm():
        console.print("Aborted.")
        return 0

    console.print("\n[yellow]Starting sweep operation...[/yellow]\n")
    summary = sweeper.sweep(wallets, target.name)

    final_balance = sweeper.chain.query_balance(target.address)
    print_summary(summary, sweeper, final_balance)
    return 0


if __name__ == '__main__':
    sys.exit(main())
