"""Value transfer transactions."""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Optional

from speedchain.crypto import (
    HASH_LENGTH,
    KeyPair,
    Signature,
    keccak256,
    parse_address,
    to_checksum_address,
)

U64_MAX = 2**64 - 1


def _check_u64(name: str, value: int) -> int:
    if not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise ValueError(f"{name} must be an unsigned 64-bit integer")
    return value


def _parse_hash(text: str) -> bytes:
    digits = text[2:] if text.startswith("0x") else text
    value = bytes.fromhex(digits)
    if len(value) != HASH_LENGTH:
        raise ValueError("a hash must be 32 bytes")
    return value


@dataclass
class Transaction:
    """A transfer of ``amount`` from ``sender`` to ``recipient`` with gas fields."""

    sender: bytes
    recipient: bytes
    amount: int
    timestamp: int
    nonce: int = 0
    gas_limit: int = 0
    gas_price: int = 0
    gas_used: int = 0
    signature: Optional[Signature] = None
    tx_hash: Optional[bytes] = None

    @classmethod
    def create(
        cls, sender: str, recipient: str, amount: int, gas_limit: int, gas_price: int
    ) -> "Transaction":
        """Build an unsigned transaction stamped with the current time."""
        tx = cls(
            sender=parse_address(sender),
            recipient=parse_address(recipient),
            amount=_check_u64("amount", amount),
            timestamp=int(time.time()),
            gas_limit=_check_u64("gas_limit", gas_limit),
            gas_price=_check_u64("gas_price", gas_price),
        )
        tx.tx_hash = tx.unsigned_hash()
        return tx

    def unsigned_hash(self) -> bytes:
        """Keccak hash over every field except the signature and hash."""
        return keccak256(
            self.sender
            + self.recipient
            + self.amount.to_bytes(32, "big")
            + self.gas_limit.to_bytes(32, "big")
            + self.gas_price.to_bytes(32, "big")
            + self.gas_used.to_bytes(32, "big")
            + self.timestamp.to_bytes(8, "big")
            + self.nonce.to_bytes(8, "big")
        )

    def sign_hash(self, keypair: KeyPair) -> Signature:
        """Sign the unsigned hash, storing both the signature and the hash."""
        message_hash = self.unsigned_hash()
        signature = keypair.sign_hash(message_hash)
        self.signature = signature
        self.tx_hash = message_hash
        return signature

    def max_transaction_cost(self) -> int:
        return self.amount + self.gas_limit * self.gas_price

    def actual_gas_fee(self) -> int:
        return self.gas_used * self.gas_price

    def gas_refund(self) -> int:
        if self.gas_used > self.gas_limit:
            raise ValueError("gas used exceeds gas limit")
        return (self.gas_limit - self.gas_used) * self.gas_price

    def to_dict(self) -> dict:
        data = {
            "from": to_checksum_address(self.sender),
            "to": to_checksum_address(self.recipient),
            "amount": hex(self.amount),
            "timestamp": self.timestamp,
            "nonce": self.nonce,
            "gas_limit": hex(self.gas_limit),
            "gas_price": hex(self.gas_price),
            "gas_used": hex(self.gas_used),
        }
        if self.signature is not None:
            data["signature"] = self.signature.to_dict()
        if self.tx_hash is not None:
            data["hash"] = "0x" + self.tx_hash.hex()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        signature = data.get("signature")
        tx_hash = data.get("hash")
        return cls(
            sender=parse_address(data["from"]),
            recipient=parse_address(data["to"]),
            amount=int(data["amount"], 16),
            timestamp=int(data["timestamp"]),
            nonce=int(data["nonce"]),
            gas_limit=int(data["gas_limit"], 16),
            gas_price=int(data["gas_price"], 16),
            gas_used=int(data["gas_used"], 16),
            signature=Signature.from_dict(signature) if signature is not None else None,
            tx_hash=_parse_hash(tx_hash) if tx_hash is not None else None,
        )

    def copy(self) -> "Transaction":
        return replace(self)