import pytest

from speedchain.account import U256_MAX, Account
from speedchain.state import (
    BalanceOverflow,
    GasPriceTooLow,
    InsufficientBalance,
    InsufficientGas,
    InvalidNonce,
    State,
)

ALICE = bytes.fromhex("aa" * 20)
BOB = bytes.fromhex("bb" * 20)


def test_new_state_is_empty():
    state = State()
    assert state.state_root == bytes(32)
    assert state.account_count() == 0
    assert state.get_balance(ALICE) == 0


def test_fund_account_credits_and_changes_root():
    state = State()
    state.fund_account(ALICE, 100 * 10**18)
    assert state.get_balance(ALICE) == 100 * 10**18
    assert state.account_count() == 1
    assert state.state_root != bytes(32)
    assert len(state.state_root) == 32


def test_fund_accumulates():
    state = State()
    first, second = 5, 7
    state.fund_account(ALICE, first)
    state.fund_account(ALICE, second)
    assert state.get_balance(ALICE) == first + second


def test_fund_overflow():
    state = State()
    state.fund_account(ALICE, U256_MAX)
    with pytest.raises(BalanceOverflow):
        state.fund_account(ALICE, 1)
    assert state.get_balance(ALICE) == U256_MAX


def test_zero_account_is_removed():
    state = State()
    state.fund_account(ALICE, 10)
    state.set_account(ALICE, Account(ALICE))
    assert state.account_count() == 0
    assert state.state_root == bytes(32)


def test_root_independent_of_insertion_order():
    first = State()
    first.set_account(ALICE, Account(ALICE, balance=1, nonce=2))
    first.set_account(BOB, Account(BOB, balance=3))
    second = State()
    second.set_account(BOB, Account(BOB, balance=3))
    second.set_account(ALICE, Account(ALICE, balance=1, nonce=2))
    assert first.state_root == second.state_root
    assert first.state_root != bytes(32)


def test_get_account_returns_copy():
    state = State()
    state.fund_account(ALICE, 10)
    account = state.get_account(ALICE)
    account.balance = 999
    assert state.get_balance(ALICE) == 10


def test_get_nonce():
    state = State()
    state.set_account(ALICE, Account(ALICE, nonce=4))
    assert state.get_nonce(ALICE) == 4


def test_error_messages():
    assert str(InsufficientBalance(has=1, needs=2)) == "Insufficient balance: has 1, needs 2"
    assert str(InvalidNonce(expected=0, got=3)) == "Invalid nonce: expected 0, got 3"
    assert str(InsufficientGas(provided=5, required=6)) == (
        "Insufficient gas provided: provided: 5, required 6"
    )
    assert str(GasPriceTooLow()) == "Gas price is too low"