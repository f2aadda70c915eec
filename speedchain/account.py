"""Account records kept in the world state."""

from __future__ import annotations

from dataclasses import dataclass

from speedchain.crypto import ADDRESS_LENGTH, parse_address, to_checksum_address

U256_MAX = 2**256 - 1


@dataclass
class Account:
    """Balance and nonce of one address."""

    address: bytes
    balance: int = 0
    nonce: int = 0

    def __post_init__(self) -> None:
        if len(self.address) != ADDRESS_LENGTH:
            raise ValueError(f"an address must be {ADDRESS_LENGTH} bytes")
        self.address = bytes(self.address)

    def to_dict(self) -> dict:
        return {
            "balance": hex(self.balance),
            "nonce": self.nonce,
            "address": to_checksum_address(self.address),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Account":
        return cls(
            address=parse_address(data["address"]),
            balance=int(data["balance"], 16),
            nonce=int(data["nonce"]),
        )