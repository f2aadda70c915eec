"""Persistent key-value storage for blocks and the chain index."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Optional, Union

from speedchain.block import Block
from speedchain.crypto import HASH_LENGTH

logger = logging.getLogger(__name__)

LAST_INDEX_KEY = b"last_index"
DATABASE_FILE = "chain.sqlite3"


class StorageError(Exception):
    """Reading from or writing to the store failed."""


class Storage:
    """Blocks by hash, hashes by index and the last index, in one database."""

    def __init__(self, path: Union[str, Path]) -> None:
        directory = Path(path)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            self._db = sqlite3.connect(directory / DATABASE_FILE, check_same_thread=False)
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS kv (key BLOB PRIMARY KEY, value BLOB NOT NULL)"
            )
            self._db.commit()
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Failed to open database at {directory}: {exc}") from exc

    def close(self) -> None:
        self._db.close()

    def __enter__(self) -> "Storage":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _put(self, key: bytes, value: bytes, what: str) -> None:
        try:
            with self._db:
                self._db.execute(
                    "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value)
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to store {what}: {exc}") from exc

    def _get(self, key: bytes, what: str) -> Optional[bytes]:
        try:
            row = self._db.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to retrieve {what}: {exc}") from exc
        return None if row is None else bytes(row[0])

    def put_block(self, block_hash: bytes, block: Block) -> None:
        """Store ``block`` under its hash as indented JSON."""
        encoded = json.dumps(block.to_dict(), indent=2).encode("utf-8")
        self._put(bytes(block_hash), encoded, f"data with key: 0x{bytes(block_hash).hex()}")

    def get_block(self, block_hash: bytes) -> Optional[Block]:
        raw = self._get(bytes(block_hash), f"data with key: 0x{bytes(block_hash).hex()}")
        if raw is None:
            return None
        try:
            return Block.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            raise StorageError(
                f"Failed to deserialize block with hash: 0x{bytes(block_hash).hex()}"
            ) from exc

    def put_index_hash(self, index: int, block_hash: bytes) -> None:
        key = index.to_bytes(8, "little")
        self._put(key, bytes(block_hash), f"block number to hash mapping for {key.hex()}")

    def get_block_hash(self, index: int) -> Optional[bytes]:
        key = index.to_bytes(8, "little")
        raw = self._get(key, f"block hash for block number: {key.hex()}")
        if raw is None:
            return None
        if len(raw) != HASH_LENGTH:
            raise StorageError("Invalid hash length for block number")
        return raw

    def put_last_index(self, index: int) -> None:
        self._put(LAST_INDEX_KEY, index.to_bytes(8, "little"), "last index")

    def get_last_index(self) -> Optional[int]:
        raw = self._get(LAST_INDEX_KEY, "last index")
        if raw is None:
            return None
        if len(raw) != 8:
            raise StorageError("Invalid last index length")
        return int.from_bytes(raw, "little")