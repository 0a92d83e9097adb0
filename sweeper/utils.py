"""
Utility Module

Exceptions, secure logging and formatting helpers shared by the sweeper.
"""

import os
import re
import logging
from decimal import Decimal
from typing import Optional

from rich.logging import RichHandler
from rich.console import Console


# Global console for Rich output
console = Console()


class SweepError(Exception):
    """Base exception for sweep failures that stop the run."""
    pass


class ChainCLIError(SweepError):
    """Raised when the chain daemon binary cannot be executed."""
    pass


class WalletNotFoundError(SweepError):
    """Raised when a required wallet is missing from the keyring."""
    pass


class NoValidWalletsError(SweepError):
    """Raised when none of the source wallets resolve."""
    pass


class SecureLogger:
    """
    Logger that sanitizes sensitive data from log messages.

    Raw daemon output is logged on failures, so anything that looks like
    key material is redacted before it reaches a handler.
    """

    # Patterns to redact from logs
    SENSITIVE_PATTERNS = [
        (r'0x[a-fA-F0-9]{64}', '[PRIVATE_KEY_REDACTED]'),  # Private keys (64 hex chars)
        (r'"mnemonic"\s*:\s*"[^"]*"', '"mnemonic": "[REDACTED]"'),
        (r'password["\']?\s*[:=]\s*["\'][^"\']+["\']', 'password=[REDACTED]'),
    ]

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _sanitize(self, msg: str) -> str:
        """Remove sensitive data from log message."""
        if not isinstance(msg, str):
            msg = str(msg)

        sanitized = msg
        for pattern, replacement in self.SENSITIVE_PATTERNS:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
        return sanitized

    def debug(self, msg: str, *args, **kwargs):
        self._logger.debug(self._sanitize(msg), *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._logger.info(self._sanitize(msg), *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._logger.warning(self._sanitize(msg), *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._logger.error(self._sanitize(msg), *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        self._logger.exception(self._sanitize(msg), *args, **kwargs)


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> SecureLogger:
    """
    Setup logging with Rich console output and an optional log file.

    Returns a SecureLogger that sanitizes sensitive data.
    """
    logger = logging.getLogger("testnet_sweeper")
    logger.setLevel(getattr(logging, log_level.upper()))

    # Close and remove existing handlers
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    # Rich console handler
    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True
    )
    rich_handler.setLevel(getattr(logging, log_level.upper()))
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    if log_file:
        # Ensure log directory exists
        log_path = os.path.abspath(log_file)
        os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    # Wrap with secure logger
    return SecureLogger(logger)


# Initialize global secure logger
logger = setup_logging()


# Formatting utilities

def format_balance(amount: int, decimals: int = 6, symbol: str = "OM") -> str:
    """Format a base-unit amount (e.g. uom) as a display amount (e.g. OM)."""
    if amount == 0:
        return f"0 {symbol}"

    value = Decimal(amount) / (Decimal(10) ** decimals)
    return f"{value:.{decimals}f} {symbol}"


def format_address(address: str, length: int = 6) -> str:
    """Format a bech32 address with ellipsis."""
    if len(address) <= length * 2 + 3:
        return address
    return f"{address[:length + 4]}...{address[-length:]}"


def format_tx_hash(tx_hash: str, length: int = 8) -> str:
    """Format transaction hash with ellipsis."""
    if len(tx_hash) <= length * 2:
        return tx_hash
    return f"{tx_hash[:length]}...{tx_hash[-length:]}"
