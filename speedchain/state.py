"""World state: accounts by address and a root hash over them."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Optional

from speedchain.account import U256_MAX, Account
from speedchain.crypto import HASH_LENGTH, keccak256, to_checksum_address

logger = logging.getLogger(__name__)

ZERO_HASH = bytes(HASH_LENGTH)


class StateTransitionError(Exception):
    """Base class for reasons a transaction cannot be applied."""

    message = "State transition failed"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)


class InsufficientBalance(StateTransitionError):
    def __init__(self, has: int, needs: int) -> None:
        self.has = has
        self.needs = needs
        super().__init__(f"Insufficient balance: has {has}, needs {needs}")


class InvalidNonce(StateTransitionError):
    def __init__(self, expected: int, got: int) -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"Invalid nonce: expected {expected}, got {got}")


class GasPriceTooLow(StateTransitionError):
    message = "Gas price is too low"


class BalanceOverflow(StateTransitionError):
    message = "Balance overflow occurred"


class SameAddress(StateTransitionError):
    message = "Sender and receiver addresses are the same"


class InvalidGasLimit(StateTransitionError):
    message = "Invalid gas limit set"


class InsufficientGas(StateTransitionError):
    def __init__(self, provided: int, required: int) -> None:
        self.provided = provided
        self.required = required
        super().__init__(
            f"Insufficient gas provided: provided: {provided}, required {required}"
        )


class State:
    """Accounts keyed by address, with a root hash kept up to date."""

    def __init__(self) -> None:
        self.accounts: Dict[bytes, Account] = {}
        self._state_root = ZERO_HASH

    @property
    def state_root(self) -> bytes:
        return self._state_root

    def get_account(self, address: bytes) -> Account:
        """A copy of the account at ``address``, or a fresh empty one."""
        existing = self.accounts.get(address)
        return replace(existing) if existing is not None else Account(address)

    def set_account(self, address: bytes, account: Account) -> None:
        """Store ``account``; empty accounts are dropped. Recomputes the root."""
        if account.balance == 0 and account.nonce == 0:
            self.accounts.pop(address, None)
        else:
            self.accounts[address] = account
        self._recalculate_root()

    def _recalculate_root(self) -> None:
        data = b"".join(
            address
            + self.accounts[address].balance.to_bytes(32, "big")
            + self.accounts[address].nonce.to_bytes(8, "big")
            for address in sorted(self.accounts)
        )
        self._state_root = keccak256(data) if data else ZERO_HASH

    def get_balance(self, address: bytes) -> int:
        return self.get_account(address).balance

    def get_nonce(self, address: bytes) -> int:
        return self.get_account(address).nonce

    def account_count(self) -> int:
        return len(self.accounts)

    def fund_account(self, address: bytes, amount: int) -> None:
        """Credit ``amount`` to ``address``."""
        account = self.get_account(address)
        if account.balance + amount > U256_MAX:
            raise BalanceOverflow()
        account.balance += amount
        self.set_account(address, account)
        logger.info("Funded %s with %s tokens", to_checksum_address(address), amount)