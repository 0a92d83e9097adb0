"""
Configuration Module

Fixed network parameters for the MANTRA Dukong testnet sweeper.
Values are compiled in on purpose: the sweeper does not read them from the
environment or from a config file.
"""

from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict


@dataclass
class SweepConfig:
    """Sweeper network and transaction settings."""

    # Daemon
    binary: str = "mantrachaind"
    command_timeout_seconds: int = 120

    # Network
    chain_id: str = "mantra-dukong-1"
    rpc_node: str = "https://rpc.dukong.mantrachain.io"

    # Denomination
    denom: str = "uom"
    display_denom: str = "OM"
    display_decimals: int = 6

    # Gas settings
    gas_prices: str = "0.01uom"
    gas_adjustment: str = "1.5"
    gas_reserve: int = 100000  # 0.1 OM left behind for the sender's fee

    # Operation
    post_success_delay_seconds: float = 2.0
    dry_run: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)
