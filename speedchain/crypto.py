"""Keccak hashing, Ethereum-style addresses and secp256k1 key pairs."""

from __future__ import annotations

import hashlib
import hmac
import logging
import string
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple, Union

from Crypto.Hash import keccak as _keccak

logger = logging.getLogger(__name__)

ADDRESS_LENGTH = 20
HASH_LENGTH = 32

# secp256k1 domain parameters
_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_G = (
    0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
    0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8,
)

_Point = Optional[Tuple[int, int]]


class SignatureError(Exception):
    """Base class for signing and verification failures."""

    message = "Signature error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)


class SigningFailed(SignatureError):
    message = "Signing failed"


class InvalidPrivateKey(SignatureError):
    message = "Invalid private key format"


class InvalidPublicKey(SignatureError):
    message = "Invalid public key format"


class InvalidSignature(SignatureError):
    message = "Invalid signature format"


class SignatureVerificationFailed(SignatureError):
    message = "Signature verification failed"


class AccountNotFound(SignatureError):
    def __init__(self, account: str) -> None:
        self.account = account
        super().__init__(f"Account not found: {account}")


class HexDecodeError(SignatureError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Hex decode error: {detail}")


class EcdsaError(SignatureError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"ECDSA error: {detail}")


def keccak256(data: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """Return the 32-byte Keccak-256 digest of ``data`` (strings are UTF-8 encoded)."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return _keccak.new(digest_bits=256, data=bytes(data)).digest()


def _check_address_bytes(address: bytes) -> bytes:
    if not isinstance(address, (bytes, bytearray)) or len(address) != ADDRESS_LENGTH:
        raise ValueError(f"an address must be {ADDRESS_LENGTH} bytes")
    return bytes(address)


def to_checksum_address(address: bytes) -> str:
    """Format a 20-byte address as a mixed-case checksummed hex string."""
    lower = _check_address_bytes(address).hex()
    digest = keccak256(lower.encode("ascii")).hex()
    return "0x" + "".join(
        char.upper() if char.isalpha() and int(nibble, 16) >= 8 else char
        for char, nibble in zip(lower, digest)
    )


def _address_digits(text: str) -> str:
    return text[2:] if text.startswith("0x") else text


def parse_address(text: str) -> bytes:
    """Parse a hex address, with or without ``0x``, ignoring letter case."""
    digits = _address_digits(text)
    if len(digits) != 2 * ADDRESS_LENGTH or not all(c in string.hexdigits for c in digits):
        raise ValueError(f"invalid address: {text!r}")
    return bytes.fromhex(digits)


def parse_checksummed_address(text: str) -> bytes:
    """Parse a hex address and require its letter case to match the checksum."""
    address = parse_address(text)
    if _address_digits(text) != to_checksum_address(address)[2:]:
        raise ValueError(f"invalid address checksum: {text!r}")
    return address


def _add(p: _Point, q: _Point) -> _Point:
    if p is None:
        return q
    if q is None:
        return p
    x1, y1 = p
    x2, y2 = q
    if x1 == x2:
        if (y1 + y2) % _P == 0:
            return None
        slope = 3 * x1 * x1 * pow(2 * y1, -1, _P) % _P
    else:
        slope = (y2 - y1) * pow(x2 - x1, -1, _P) % _P
    x3 = (slope * slope - x1 - x2) % _P
    y3 = (slope * (x1 - x3) - y1) % _P
    return x3, y3


def _mul(scalar: int, point: _Point) -> _Point:
    result: _Point = None
    addend = point
    while scalar:
        if scalar & 1:
            result = _add(result, addend)
        addend = _add(addend, addend)
        scalar >>= 1
    return result


def _address_from_point(point: Tuple[int, int]) -> bytes:
    x, y = point
    return keccak256(x.to_bytes(32, "big") + y.to_bytes(32, "big"))[-ADDRESS_LENGTH:]


def _rfc6979_nonces(secret: int, message_hash: bytes) -> Iterator[int]:
    """Deterministic ECDSA nonces (HMAC-SHA256)."""
    x = secret.to_bytes(32, "big")
    h1 = (int.from_bytes(message_hash, "big") % _N).to_bytes(32, "big")
    v = b"\x01" * 32
    k = b"\x00" * 32
    k = hmac.new(k, v + b"\x00" + x + h1, hashlib.sha256).digest()
    v = hmac.new(k, v, hashlib.sha256).digest()
    k = hmac.new(k, v + b"\x01" + x + h1, hashlib.sha256).digest()
    v = hmac.new(k, v, hashlib.sha256).digest()
    while True:
        v = hmac.new(k, v, hashlib.sha256).digest()
        candidate = int.from_bytes(v, "big")
        if 1 <= candidate < _N:
            yield candidate
        k = hmac.new(k, v + b"\x00", hashlib.sha256).digest()
        v = hmac.new(k, v, hashlib.sha256).digest()


@dataclass(frozen=True)
class Signature:
    """A recoverable secp256k1 signature."""

    r: int
    s: int
    y_parity: bool

    @property
    def v(self) -> int:
        return int(self.y_parity)

    def to_dict(self) -> dict:
        return {
            "r": hex(self.r),
            "s": hex(self.s),
            "yParity": hex(self.v),
            "v": hex(self.v),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Signature":
        try:
            r = int(data["r"], 16)
            s = int(data["s"], 16)
            parity_text = data["yParity"] if "yParity" in data else data["v"]
            parity = int(parity_text, 16)
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidSignature() from exc
        if parity in (27, 28):
            parity -= 27
        if parity not in (0, 1):
            raise InvalidSignature()
        return cls(r=r, s=s, y_parity=bool(parity))

    def recover_address(self, message_hash: bytes) -> bytes:
        """Recover the signer's address from a 32-byte prehashed message."""
        if len(message_hash) != HASH_LENGTH:
            raise InvalidSignature()
        if not (1 <= self.r < _N and 1 <= self.s < _N):
            raise InvalidSignature()
        alpha = (pow(self.r, 3, _P) + 7) % _P
        beta = pow(alpha, (_P + 1) // 4, _P)
        if beta * beta % _P != alpha:
            raise InvalidSignature()
        y = beta if (beta & 1) == int(self.y_parity) else _P - beta
        z = int.from_bytes(message_hash, "big") % _N
        r_inv = pow(self.r, -1, _N)
        u1 = (-z * r_inv) % _N
        u2 = (self.s * r_inv) % _N
        public_point = _add(_mul(u1, _G), _mul(u2, (self.r, y)))
        if public_point is None:
            raise InvalidSignature()
        return _address_from_point(public_point)


@dataclass(frozen=True)
class KeyPair:
    """A secp256k1 private key with its derived address."""

    private_key: int = field(repr=False)
    name: Optional[str] = None
    address: bytes = field(init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.private_key, int) or not 1 <= self.private_key < _N:
            raise InvalidPrivateKey()
        object.__setattr__(self, "address", _address_from_point(_mul(self.private_key, _G)))

    @classmethod
    def generate(cls, name: str) -> "KeyPair":
        """Derive a key pair deterministically from the Keccak hash of ``name``."""
        seed = int.from_bytes(keccak256(name), "big")
        keypair = cls(private_key=seed, name=name)
        logger.debug("Generated new keypair: %s - %s", name, to_checksum_address(keypair.address))
        return keypair

    def sign_hash(self, message_hash: bytes) -> Signature:
        """Sign a 32-byte prehashed message, returning a low-s signature."""
        if len(message_hash) != HASH_LENGTH:
            raise SigningFailed()
        z = int.from_bytes(message_hash, "big")
        for k in _rfc6979_nonces(self.private_key, message_hash):
            point = _mul(k, _G)
            assert point is not None
            r = point[0] % _N
            if r == 0:
                continue
            s = pow(k, -1, _N) * (z + r * self.private_key) % _N
            if s == 0:
                continue
            parity = point[1] & 1
            if s > _N // 2:
                s = _N - s
                parity ^= 1
            return Signature(r=r, s=s, y_parity=bool(parity))
        raise SigningFailed()

    def verify_signature(self, message_hash: bytes, signature: Signature) -> None:
        """Raise unless ``signature`` over ``message_hash`` was made by this key."""
        if signature.recover_address(message_hash) != self.address:
            raise SignatureVerificationFailed()

    def public_key_hex(self) -> str:
        """The address as lowercase hex without a prefix."""
        return self.address.hex()