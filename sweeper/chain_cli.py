"""
Chain Daemon CLI Client

Thin wrapper around the ``mantrachaind`` binary. Every call shells out with
an argument list, captures the output and decodes the JSON the daemon prints.
Nothing here raises on a bad daemon response: lookups return ``None``,
balance queries return ``0`` and transfers return a ``TransferFailure``.
"""

import json
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Union, Dict, Any

from .config import SweepConfig
from .utils import logger, ChainCLIError, format_address


@dataclass
class TransferSuccess:
    """Broadcast accepted; the daemon returned a transaction hash."""
    tx_hash: str
    code: int = 0
    raw_log: str = ""
    raw: str = ""


@dataclass
class TransferFailure:
    """No transaction hash in the daemon's response."""
    raw_message: str


TransferResult = Union[TransferSuccess, TransferFailure]


def parse_json_output(output: str) -> Optional[Any]:
    """
    Parse daemon JSON output.

    ``--gas auto`` makes the daemon print a ``gas estimate: N`` line ahead of
    the JSON body, so when the whole text is not JSON the last line that
    parses is used instead.
    """
    text = (output or "").strip()
    if not text:
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    for line in reversed(text.splitlines()):
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            return json.loads(line)
        except json.JSONDecodeError:
            continue
    return None


def decode_transfer_response(raw: str) -> TransferResult:
    """Decode ``tx bank send --output json`` output into a TransferResult."""
    data = parse_json_output(raw)
    if not isinstance(data, dict):
        return TransferFailure(raw_message=raw.strip())

    tx_hash = data.get("txhash")
    if not isinstance(tx_hash, str) or not tx_hash:
        return TransferFailure(raw_message=raw.strip())

    try:
        code = int(data.get("code") or 0)
    except (TypeError, ValueError):
        code = 0

    return TransferSuccess(
        tx_hash=tx_hash,
        code=code,
        raw_log=str(data.get("raw_log") or ""),
        raw=raw.strip(),
    )


class ChainCLI:
    """Runs keyring, bank query and bank send commands against the daemon."""

    def __init__(self, config: SweepConfig):
        self.config = config

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        """Run the daemon with ``args``, capturing stdout/stderr."""
        cmd = [self.config.binary, *args]
        logger.debug(f"→ {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.config.command_timeout_seconds,
            )
        except (OSError, ValueError, subprocess.TimeoutExpired) as e:
            # ValueError covers UnicodeDecodeError from undecodable daemon output
            raise ChainCLIError(f"Failed to execute {cmd[0]} {args[0]}: {e}") from e

        logger.debug(f"← exit code {result.returncode}")
        return result

    def resolve_address(self, wallet_name: str) -> Optional[str]:
        """Look up a keyring name. Returns None when it does not resolve."""
        try:
            result = self._run(["keys", "show", wallet_name, "--address"])
        except ChainCLIError as e:
            logger.debug(f"Keyring lookup for '{wallet_name}' failed: {e}")
            return None

        if result.returncode != 0:
            return None

        address = (result.stdout or "").strip()
        return address or None

    def query_balance(self, address: str) -> int:
        """
        Get the native-denom balance of ``address`` in base units.

        A failed query is reported as a warning and counted as zero.
        """
        try:
            result = self._run([
                "query", "bank", "balances", address,
                "--node", self.config.rpc_node,
                "--output", "json",
            ])
        except ChainCLIError as e:
            logger.warning(f"Balance query for {format_address(address)} failed: {e}")
            return 0

        if result.returncode != 0:
            logger.warning(
                f"Balance query for {format_address(address)} exited with "
                f"{result.returncode}: {(result.stderr or '').strip()}"
            )
            return 0

        data = parse_json_output(result.stdout)
        if not isinstance(data, dict):
            logger.warning(f"Unreadable balance response for {format_address(address)}")
            return 0

        return self._extract_amount(data, address)

    def _extract_amount(self, data: Dict[str, Any], address: str) -> int:
        balances = data.get("balances") or []
        if not isinstance(balances, list):
            logger.warning(f"Unexpected balances field for {format_address(address)}")
            return 0

        for coin in balances:
            if not isinstance(coin, dict) or coin.get("denom") != self.config.denom:
                continue
            try:
                amount = int(coin.get("amount", 0))
            except (TypeError, ValueError):
                logger.warning(
                    f"Non-integer {self.config.denom} amount for "
                    f"{format_address(address)}: {coin.get('amount')!r}"
                )
                return 0
            return max(amount, 0)

        return 0

    def transfer_command(self, from_wallet: str, to_wallet_name: str, amount: int) -> List[str]:
        """Build the ``tx bank send`` argument list."""
        return [
            "tx", "bank", "send",
            from_wallet,
            to_wallet_name,
            f"{amount}{self.config.denom}",
            "--chain-id", self.config.chain_id,
            "--node", self.config.rpc_node,
            "--gas", "auto",
            "--gas-adjustment", self.config.gas_adjustment,
            "--gas-prices", self.config.gas_prices,
            "--broadcast-mode", "sync",
            "--yes",
            "--output", "json",
        ]

    def submit_transfer(self, from_wallet: str, to_wallet_name: str, amount: int) -> TransferResult:
        """Sign and broadcast a bank send from ``from_wallet`` to ``to_wallet_name``."""
        try:
            result = self._run(self.transfer_command(from_wallet, to_wallet_name, amount))
        except ChainCLIError as e:
            return TransferFailure(raw_message=str(e))

        # Keep both streams, the daemon reports broadcast errors on stderr
        raw = "\n".join(part for part in (result.stdout, result.stderr) if part)
        return decode_transfer_response(raw)
