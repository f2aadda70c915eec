"""Blocks and their proof-of-work mining."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, List

from speedchain.crypto import HASH_LENGTH, keccak256
from speedchain.transaction import Transaction, _parse_hash

logger = logging.getLogger(__name__)

ZERO_HASH = bytes(HASH_LENGTH)
MAX_DIFFICULTY = 2 * HASH_LENGTH
PROGRESS_INTERVAL = 100_000


def _hex(value: bytes) -> str:
    return "0x" + value.hex()


@dataclass
class Block:
    """A mined block holding a list of transactions."""

    index: int
    timestamp: int
    transactions: List[Transaction] = field(default_factory=list)
    prev_hash: bytes = ZERO_HASH
    block_hash: bytes = ZERO_HASH
    nonce: int = 0
    merkle_root: bytes = ZERO_HASH
    difficulty: int = 0

    @classmethod
    def mine(
        cls,
        index: int,
        transactions: Iterable[Transaction],
        prev_hash: bytes,
        difficulty: int,
    ) -> "Block":
        """Search for a nonce whose hash starts with ``difficulty`` hex zeros."""
        if not 0 <= difficulty <= MAX_DIFFICULTY:
            raise ValueError(f"difficulty must be between 0 and {MAX_DIFFICULTY}")
        transactions = list(transactions)
        timestamp = int(time.time())
        merkle_root = cls.calculate_merkle_root(transactions)

        logger.info("Mining block %s with difficulty %s...", index, difficulty)
        started = time.perf_counter()
        nonce = 0
        while True:
            block_hash = cls.calculate_hash(index, timestamp, merkle_root, prev_hash, nonce)
            if cls.meets_difficulty(block_hash, difficulty):
                logger.info(
                    "Block mined! Hash: %s (took %.3fs, nonce: %s)",
                    _hex(block_hash),
                    time.perf_counter() - started,
                    nonce,
                )
                break
            nonce += 1
            if nonce % PROGRESS_INTERVAL == 0:
                logger.info("Mining... tried %s nonces", nonce)

        return cls(
            index=index,
            timestamp=timestamp,
            transactions=transactions,
            prev_hash=bytes(prev_hash),
            block_hash=block_hash,
            nonce=nonce,
            merkle_root=merkle_root,
            difficulty=difficulty,
        )

    @staticmethod
    def calculate_hash(
        index: int, timestamp: int, merkle_root: bytes, prev_hash: bytes, nonce: int
    ) -> bytes:
        """Keccak hash over the header fields in a fixed order."""
        return keccak256(
            index.to_bytes(8, "big")
            + timestamp.to_bytes(8, "big")
            + nonce.to_bytes(8, "big")
            + bytes(merkle_root)
            + bytes(prev_hash)
        )

    @staticmethod
    def calculate_merkle_root(transactions: Iterable[Transaction]) -> bytes:
        """Keccak hash over the compact JSON of every transaction, in order."""
        encoded = b"".join(
            json.dumps(tx.to_dict(), separators=(",", ":")).encode("utf-8")
            for tx in transactions
        )
        return keccak256(encoded) if encoded else ZERO_HASH

    @staticmethod
    def meets_difficulty(block_hash: bytes, difficulty: int) -> bool:
        return block_hash.hex().startswith("0" * difficulty)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "timestamp": self.timestamp,
            "transactions": [tx.to_dict() for tx in self.transactions],
            "prev_hash": _hex(self.prev_hash),
            "block_hash": _hex(self.block_hash),
            "nonce": self.nonce,
            "merkle_root": _hex(self.merkle_root),
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Block":
        return cls(
            index=int(data["index"]),
            timestamp=int(data["timestamp"]),
            transactions=[Transaction.from_dict(tx) for tx in data["transactions"]],
            prev_hash=_parse_hash(data["prev_hash"]),
            block_hash=_parse_hash(data["block_hash"]),
            nonce=int(data["nonce"]),
            merkle_root=_parse_hash(data["merkle_root"]),
            difficulty=int(data["difficulty"]),
        )