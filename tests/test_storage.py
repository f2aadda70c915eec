import pytest

from speedchain.block import ZERO_HASH, Block
from speedchain.storage import Storage, StorageError


def _block(index=1):
    return Block(
        index=index,
        timestamp=1_700_000_000,
        transactions=[],
        prev_hash=ZERO_HASH,
        block_hash=bytes([index]) * 32,
        nonce=42,
        merkle_root=ZERO_HASH,
        difficulty=1,
    )


def test_empty_store_returns_none(tmp_path):
    with Storage(tmp_path / "db") as store:
        assert store.get_last_index() is None
        assert store.get_block_hash(1) is None
        assert store.get_block(b"\x01" * 32) is None


def test_last_index_round_trip(tmp_path):
    with Storage(tmp_path / "db") as store:
        store.put_last_index(7)
        assert store.get_last_index() == 7
        store.put_last_index(8)
        assert store.get_last_index() == 8


def test_index_hash_round_trip(tmp_path):
    with Storage(tmp_path / "db") as store:
        store.put_index_hash(3, b"\xab" * 32)
        assert store.get_block_hash(3) == b"\xab" * 32
        assert store.get_block_hash(4) is None


def test_block_round_trip(tmp_path):
    block = _block(5)
    with Storage(tmp_path / "db") as store:
        store.put_block(block.block_hash, block)
        assert store.get_block(block.block_hash) == block


def test_wrong_length_hash_rejected(tmp_path):
    with Storage(tmp_path / "db") as store:
        store.put_index_hash(1, b"\x01" * 5)
        with pytest.raises(StorageError, match="Invalid hash length"):
            store.get_block_hash(1)


def test_data_persists_across_reopen(tmp_path):
    path = tmp_path / "db"
    block = _block(2)
    with Storage(path) as store:
        store.put_block(block.block_hash, block)
        store.put_index_hash(2, block.block_hash)
        store.put_last_index(2)
    with Storage(path) as store:
        assert store.get_last_index() == 2
        assert store.get_block_hash(2) == block.block_hash
        assert store.get_block(block.block_hash) == block


def test_use_after_close_raises(tmp_path):
    store = Storage(tmp_path / "db")
    store.close()
    with pytest.raises(StorageError):
        store.put_last_index(1)


def test_open_on_file_path_fails(tmp_path):
    target = tmp_path / "occupied"
    target.write_text("x")
    with pytest.raises(StorageError):
        Storage(target)