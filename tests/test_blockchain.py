import pytest

from speedchain.block import ZERO_HASH
from speedchain.blockchain import Blockchain, BlockchainError
from speedchain.crypto import KeyPair, to_checksum_address


def ether_to_wei(ether):
    return ether * 10**18


def gwei_to_wei(gwei):
    return gwei * 10**9


@pytest.fixture
def chain(tmp_path):
    blockchain = Blockchain(str(tmp_path / "db"), 1)
    yield blockchain
    blockchain.close()


@pytest.fixture
def alice():
    return KeyPair.generate("alice")


@pytest.fixture
def bob():
    return KeyPair.generate("bob")


def test_blockchain_integration(chain, alice, bob):
    chain.state.fund_account(alice.address, ether_to_wei(100))
    chain.state.fund_account(bob.address, ether_to_wei(100))
    assert chain.state.get_balance(alice.address) == ether_to_wei(100)
    assert chain.state.get_balance(bob.address) == ether_to_wei(100)

    first = chain.create_transaction(
        to_checksum_address(alice.address),
        to_checksum_address(bob.address),
        2_000_000_000_000_000_000,
        21_000,
        20_000_000_000,
    )
    second = chain.create_transaction(
        to_checksum_address(alice.address),
        to_checksum_address(bob.address),
        1_500_000_000_000_000_000,
        21_000,
        20_000_000_000,
    )
    assert len(first) == 64
    assert first != second

    block = chain.mine_pending_transactions()

    # A 21,000 gas limit is below the intrinsic gas of a transfer, so both are skipped.
    assert chain.state.get_balance(alice.address) == ether_to_wei(100)
    assert chain.state.get_balance(bob.address) == ether_to_wei(100)
    assert len(block.transactions) == 2
    assert chain.get_last_index() == 1
    assert not chain.has_pending_transactions()


def test_successful_transfer_moves_funds(chain, alice, bob):
    chain.state.fund_account(alice.address, ether_to_wei(100))
    amount = 2_000_000_000_000_000_000
    gas_limit = 30_000
    gas_price = gwei_to_wei(20)

    chain.create_transaction(
        to_checksum_address(alice.address),
        to_checksum_address(bob.address),
        amount,
        gas_limit,
        gas_price,
    )
    chain.mine_pending_transactions()

    assert chain.state.get_balance(bob.address) == amount
    assert chain.state.get_nonce(alice.address) == 1
    spent = ether_to_wei(100) - chain.state.get_balance(alice.address)
    assert amount < spent <= amount + gas_limit * gas_price


def test_create_transaction_queues_signed_transaction(chain, alice, bob):
    tx_id = chain.create_transaction(
        to_checksum_address(alice.address),
        to_checksum_address(bob.address),
        5,
        30_000,
        gwei_to_wei(1),
    )
    assert chain.has_pending_transactions()
    [pending] = chain.mempool.get_all_transactions()
    assert pending.tx_hash.hex() == tx_id
    assert pending.signature is not None
    assert pending.sender == alice.address


def test_nonce_follows_state(chain, alice, bob):
    chain.state.fund_account(alice.address, ether_to_wei(10))
    args = (to_checksum_address(alice.address), to_checksum_address(bob.address), 1, 30_000, gwei_to_wei(1))
    chain.create_transaction(*args)
    first_block = chain.mine_pending_transactions()
    chain.create_transaction(*args)
    [pending] = chain.mempool.get_all_transactions()
    assert pending.nonce == 1
    second_block = chain.mine_pending_transactions()
    assert second_block.prev_hash == first_block.block_hash
    assert chain.state.get_nonce(alice.address) == 2


def test_unchecksummed_sender_rejected(chain, alice, bob):
    address = to_checksum_address(alice.address)
    assert address.lower() != address
    with pytest.raises(BlockchainError):
        chain.create_transaction(address.lower(), to_checksum_address(bob.address), 1, 30_000, 10**9)


def test_invalid_recipient_rejected(chain, alice):
    with pytest.raises(BlockchainError):
        chain.create_transaction(to_checksum_address(alice.address), "0x1234", 1, 30_000, 10**9)


def test_mining_empty_chain_produces_genesis(chain):
    block = chain.mine_pending_transactions()
    assert block.index == 1
    assert block.prev_hash == ZERO_HASH
    assert block.transactions == []
    assert block.block_hash.hex().startswith("0")
    assert chain.get_block_hash_by_index(1) == block.block_hash


def test_get_block_by_index_round_trip(chain):
    mined = chain.mine_pending_transactions()
    stored = chain.get_block_by_index(1)
    assert stored.block_hash == mined.block_hash
    assert stored.nonce == mined.nonce


def test_missing_block_raises(chain):
    assert chain.get_last_index() == 0
    assert chain.get_block_hash_by_index(3) is None
    with pytest.raises(BlockchainError):
        chain.get_block_by_index(3)


def test_chain_persists_across_reopen(tmp_path):
    path = str(tmp_path / "db")
    with Blockchain(path, 1) as chain:
        mined = chain.mine_pending_transactions()
    with Blockchain(path, 1) as reopened:
        assert reopened.get_last_index() == 1
        assert reopened.get_block_by_index(1).block_hash == mined.block_hash