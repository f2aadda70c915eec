"""The chain: storage, mempool and world state tied together."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional, Union

from speedchain.block import ZERO_HASH, Block
from speedchain.crypto import KeyPair, parse_checksummed_address
from speedchain.gas import GasConfig
from speedchain.mempool import Mempool
from speedchain.state import State, StateTransitionError
from speedchain.state_transition import apply_transaction
from speedchain.storage import Storage
from speedchain.transaction import Transaction

logger = logging.getLogger(__name__)

MEMPOOL_SIZE = 100
# Name the server-side signing key is derived from.
SIGNING_KEY_NAME = "default"


class BlockchainError(Exception):
    """An operation on the chain could not be completed."""


class Blockchain:
    """A proof-of-work chain persisted on disk with an in-memory state."""

    def __init__(self, path: Union[str, Path], difficulty: int) -> None:
        self.storage = Storage(path)
        self.state = State()
        self.mempool = Mempool(MEMPOOL_SIZE)
        self.difficulty = difficulty
        self.gas_config = GasConfig()
        self._lock = threading.RLock()

    def close(self) -> None:
        """Close the underlying storage."""
        with self._lock:
            self.storage.close()

    def __enter__(self) -> "Blockchain":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def create_transaction(
        self, sender: str, recipient: str, amount: int, gas_limit: int, gas_price: int
    ) -> str:
        """Build, sign and queue a transfer; return its hash as hex without a prefix."""
        try:
            sender_address = parse_checksummed_address(sender)
        except ValueError as exc:
            raise BlockchainError(f"Invalid sender address: {exc}") from exc
        try:
            transaction = Transaction.create(sender, recipient, amount, gas_limit, gas_price)
        except ValueError as exc:
            raise BlockchainError(f"Failed to create transaction: {exc}") from exc

        with self._lock:
            transaction.nonce = self.state.get_nonce(sender_address)

        keypair = KeyPair.generate(SIGNING_KEY_NAME)
        logger.info("Signing transaction with key %s", keypair.public_key_hex())
        transaction.sign_hash(keypair)

        return self.add_transaction(transaction, keypair).hex()

    def mine_pending_transactions(self) -> Block:
        """Apply every pending transaction, mine them into a block and store it."""
        with self._lock:
            pending = self.mempool.get_all_transactions()
            for tx in pending:
                try:
                    apply_transaction(self.state, tx.copy(), self.gas_config)
                except StateTransitionError as exc:
                    logger.warning("Invalid transaction skipped: %s", exc)

            logger.info("Mining block with %s transactions...", len(pending))

            last_index = self.get_last_index()
            if last_index == 0:
                prev_hash = ZERO_HASH
            else:
                prev_hash = self.get_block_hash_by_index(last_index)
                if prev_hash is None:
                    raise BlockchainError(f"No block found at index: {last_index}")

            block = Block.mine(last_index + 1, pending, prev_hash, self.difficulty)

            self.storage.put_index_hash(block.index, block.block_hash)
            self.storage.put_block(block.block_hash, block)
            self.storage.put_last_index(block.index)

            self.mempool.clear()
            logger.info("Block %s mined! Mempool cleared.", block.index)
            return block

    def add_transaction(self, transaction: Transaction, keypair: KeyPair) -> bytes:
        """Put a signed transaction into the mempool and return its hash."""
        with self._lock:
            return self.mempool.add_transaction(transaction, keypair)

    def get_last_index(self) -> int:
        """Index of the newest block, or 0 when the chain is empty."""
        with self._lock:
            last_index = self.storage.get_last_index()
        return 0 if last_index is None else last_index

    def get_block_hash_by_index(self, index: int) -> Optional[bytes]:
        with self._lock:
            return self.storage.get_block_hash(index)

    def get_block_by_index(self, index: int) -> Block:
        """The block at ``index``; raises if it is not stored."""
        with self._lock:
            block_hash = self.storage.get_block_hash(index)
            if block_hash is None:
                raise BlockchainError(f"No block found at index: {index}")
            block = self.storage.get_block(block_hash)
        if block is None:
            raise BlockchainError(f"Block data not found for hash: 0x{block_hash.hex()}")
        return block

    def has_pending_transactions(self) -> bool:
        with self._lock:
            return self.mempool.has_transactions()