"""Gas pricing parameters and checks."""

from __future__ import annotations

from dataclasses import dataclass

# Fixed calldata size charged for every plain transfer.
TRANSFER_DATA_BYTES = 40


@dataclass(frozen=True)
class GasConfig:
    """Gas parameters of the chain."""

    intrinsic_gas: int = 21_000
    gas_per_byte: int = 4
    min_gas_price: int = 1_000_000_000
    block_gas_limit: int = 1_000_000


def calculate_intrinsic_gas(config: GasConfig) -> int:
    """Gas consumed by a plain transfer."""
    return config.intrinsic_gas + config.gas_per_byte * TRANSFER_DATA_BYTES


def validate_gas_price(gas_price: int, config: GasConfig) -> bool:
    return gas_price >= config.min_gas_price


def validate_gas_limit(gas_limit: int, config: GasConfig) -> bool:
    return config.intrinsic_gas <= gas_limit <= config.block_gas_limit