"""Pending transactions waiting to be mined."""

from __future__ import annotations

import logging
from typing import Dict, List

from speedchain.crypto import (
    InvalidSignature,
    KeyPair,
    Signature,
    SignatureError,
    SignatureVerificationFailed,
    to_checksum_address,
)
from speedchain.transaction import Transaction

logger = logging.getLogger(__name__)


class MempoolError(Exception):
    """A transaction was refused by the mempool."""


class Mempool:
    """Signed transactions keyed by hash, up to a fixed count."""

    def __init__(self, max_size: int) -> None:
        self.max_size = max_size
        self._transactions: Dict[bytes, Transaction] = {}

    def __len__(self) -> int:
        return len(self._transactions)

    def add_transaction(self, transaction: Transaction, keypair: KeyPair) -> bytes:
        """Validate and store ``transaction``, returning its hash."""
        tx_hash = transaction.tx_hash
        if tx_hash is None:
            raise MempoolError("Transaction has no hash")
        signature = transaction.signature
        if signature is None:
            raise MempoolError("Transaction has no signature")

        self._replace_by_fee(transaction)

        if tx_hash in self._transactions:
            raise MempoolError(f"Transaction 0x{tx_hash[:8].hex()} already exists in mempool")
        if len(self._transactions) >= self.max_size:
            raise MempoolError(f"Mempool is full ({self.max_size} transactions)")

        self._verify_signature(tx_hash, signature, keypair)
        self._validate(transaction)

        self._transactions[tx_hash] = transaction.copy()
        logger.info("Transaction %s added to mempool", tx_hash[:8].hex())
        return tx_hash

    def _replace_by_fee(self, transaction: Transaction) -> None:
        existing = next(
            (
                tx
                for tx in self._transactions.values()
                if tx.sender == transaction.sender and tx.nonce == transaction.nonce
            ),
            None,
        )
        if existing is None:
            return
        if transaction.gas_price > existing.gas_price:
            logger.info(
                "Replacing tx from %s with nonce %s (new fee %s > old fee %s)",
                to_checksum_address(transaction.sender),
                transaction.nonce,
                transaction.gas_price,
                existing.gas_price,
            )
            if existing.tx_hash is not None:
                self._transactions.pop(existing.tx_hash, None)
        else:
            logger.info(
                "Duplicate nonce tx rejected (fee %s <= existing fee %s)",
                transaction.gas_price,
                existing.gas_price,
            )

    def get_transaction_hash(self, transaction: Transaction) -> bytes:
        if transaction.tx_hash is None:
            raise MempoolError("Transaction has no hash - was it properly created?")
        return transaction.tx_hash

    @staticmethod
    def _verify_signature(tx_hash: bytes, signature: Signature, keypair: KeyPair) -> None:
        try:
            keypair.verify_signature(tx_hash, signature)
        except InvalidSignature as exc:
            raise MempoolError("Transaction has invalid signature format") from exc
        except SignatureVerificationFailed as exc:
            raise MempoolError(
                "Transaction signature verification failed - unauthorized signer"
            ) from exc
        except SignatureError as exc:
            raise MempoolError(f"Signature verification error: {exc}") from exc

    @staticmethod
    def _validate(transaction: Transaction) -> None:
        if transaction.amount < 0:
            raise MempoolError("Transaction amount cannot be negative")
        if transaction.gas_price < 0:
            raise MempoolError("Transaction gas price cannot be negative")
        if not transaction.sender or not transaction.recipient:
            raise MempoolError("Transaction addresses cannot be empty")
        if transaction.sender == transaction.recipient:
            raise MempoolError("Cannot send transaction to yourself")

    def get_all_transactions(self) -> List[Transaction]:
        return [tx.copy() for tx in self._transactions.values()]

    def has_transactions(self) -> bool:
        return bool(self._transactions)

    def clear(self) -> None:
        self._transactions.clear()