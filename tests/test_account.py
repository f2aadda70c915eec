import pytest

from speedchain.account import Account
from speedchain.crypto import to_checksum_address

ADDRESS = bytes.fromhex("11" * 20)


def test_new_account_is_empty():
    account = Account(ADDRESS)
    assert account.balance == 0
    assert account.nonce == 0
    assert account.address == ADDRESS


def test_dict_round_trip():
    account = Account(ADDRESS, balance=10**18, nonce=3)
    assert Account.from_dict(account.to_dict()) == account


def test_dict_uses_checksummed_address():
    assert Account(ADDRESS).to_dict()["address"] == to_checksum_address(ADDRESS)


def test_rejects_bad_address_length():
    with pytest.raises(ValueError):
        Account(b"\x01\x02")