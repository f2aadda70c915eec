"""Applying a transaction to the world state."""

from __future__ import annotations

import logging

from speedchain.account import U256_MAX
from speedchain.crypto import to_checksum_address
from speedchain.gas import (
    GasConfig,
    calculate_intrinsic_gas,
    validate_gas_limit,
    validate_gas_price,
)
from speedchain.state import (
    BalanceOverflow,
    GasPriceTooLow,
    InsufficientBalance,
    InsufficientGas,
    InvalidGasLimit,
    InvalidNonce,
    SameAddress,
    State,
)
from speedchain.transaction import Transaction

logger = logging.getLogger(__name__)


def apply_transaction(state: State, tx: Transaction, config: GasConfig) -> None:
    """Validate ``tx`` against ``state`` and apply it, charging gas.

    Sets ``tx.gas_used``. Raises a ``StateTransitionError`` and leaves the state
    untouched if the transaction is not valid.
    """
    logger.info(
        "Processing: %s -> %s, amount: %s, gas_limit: %s, gas_price: %s",
        to_checksum_address(tx.sender),
        to_checksum_address(tx.recipient),
        tx.amount,
        tx.gas_limit,
        tx.gas_price,
    )
    if not validate_gas_price(tx.gas_price, config):
        raise GasPriceTooLow()
    if not validate_gas_limit(tx.gas_limit, config):
        raise InvalidGasLimit()
    intrinsic_gas = calculate_intrinsic_gas(config)
    if tx.gas_limit < intrinsic_gas:
        raise InsufficientGas(provided=tx.gas_limit, required=intrinsic_gas)
    if tx.sender == tx.recipient:
        raise SameAddress()

    sender = state.get_account(tx.sender)
    recipient = state.get_account(tx.recipient)

    max_cost = tx.max_transaction_cost()
    if sender.balance < max_cost:
        raise InsufficientBalance(has=sender.balance, needs=max_cost)
    if tx.nonce != sender.nonce:
        raise InvalidNonce(expected=sender.nonce, got=tx.nonce)
    if recipient.balance + tx.amount > U256_MAX:
        raise BalanceOverflow()

    tx.gas_used = intrinsic_gas
    total_cost = tx.amount + tx.actual_gas_fee()

    sender.nonce += 1
    sender.balance -= total_cost
    recipient.balance += tx.amount

    state.set_account(tx.sender, sender)
    state.set_account(tx.recipient, recipient)
    logger.info("New state root: 0x%s", state.state_root.hex())