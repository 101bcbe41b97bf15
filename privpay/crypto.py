#!/usr/bin/env python3
"""
Deterministic cryptographic utilities for private payments

Curve types, tagged hashing, ECDH and BIP32 hardened derivation on top of
the secp256k1 reference arithmetic.
"""

import hashlib
import hmac
from typing import List, Tuple

from embit import ec
from secp256k1lab.secp256k1 import GE, G

from .config import network_params
from .constants import BIP32_SEED_KEY, HARDENED, MAX_SEED_LENGTH, MIN_SEED_LENGTH
from .errors import DerivationError
from .secure import SecretBytes

# secp256k1 field prime
FIELD_PRIME = 2**256 - 2**32 - 977


class PrivateKey(int):
    """Private key that inherits from int with convenient format methods"""

    def __new__(cls, value: int):
        return super().__new__(cls, value)

    @property
    def bytes(self) -> bytes:
        """Get as 32-byte big-endian bytes"""
        return super().to_bytes(32, 'big')

    @property
    def hex(self) -> str:
        """Get as hex string"""
        return self.bytes.hex()

    @property
    def public_key(self) -> "PublicKey":
        return PublicKey(int(self) * G)

    def wif(self, network: str = "main") -> str:
        """Wallet import format for a compressed key"""
        return ec.PrivateKey(self.bytes).wif(network_params(network))

    def __repr__(self):
        # Never print the scalar itself
        return "PrivateKey(<secret>)"


class PublicKey(GE):
    """Public key that inherits from GE with convenient format methods"""

    def __new__(cls, point: GE):
        # Create a new instance bypassing __init__
        obj = object.__new__(cls)
        # Directly copy all attributes from the source point
        if hasattr(point, 'infinity'):
            obj.infinity = point.infinity
        if hasattr(point, 'x'):
            obj.x = point.x
        if hasattr(point, 'y'):
            obj.y = point.y
        return obj

    def __init__(self, point: GE):
        # Override __init__ to do nothing since we handle everything in __new__
        pass

    @classmethod
    def from_bytes(cls, data: bytes) -> "PublicKey":
        """
        Parse a 33-byte compressed point

        Raises:
            ValueError: If the encoding is not a valid compressed point
        """
        if len(data) != 33 or data[0] not in (0x02, 0x03):
            raise ValueError("Public key must be a 33-byte compressed point")
        x = int.from_bytes(data[1:], 'big')
        if x >= FIELD_PRIME:
            raise ValueError("Public key x coordinate out of range")
        # lift_x raises ValueError when x is not on the curve
        point = GE.lift_x(x)
        if data[0] == 0x03:
            point = -point
        return cls(point)

    @property
    def bytes(self) -> bytes:
        """Get as compressed bytes (33 bytes)"""
        return self.to_bytes_compressed()

    @property
    def bytes_xonly(self) -> bytes:
        """Get as x-only bytes (32 bytes)"""
        return self.to_bytes_xonly()

    @property
    def hex(self) -> str:
        """Get as compressed hex string"""
        return self.bytes.hex()

    def __add__(self, other):
        """EC point addition"""
        return PublicKey(super().__add__(other))

    def __sub__(self, other):
        return PublicKey(super().__sub__(other))

    def __rmul__(self, other):
        """Scalar multiplication: int * PublicKey"""
        if isinstance(other, int):
            return PublicKey(super().__rmul__(other))
        return NotImplemented

    def __neg__(self):
        return PublicKey(super().__neg__())

    def __hash__(self):
        if self.infinity:
            return hash(None)
        return hash(self.bytes)

    def __repr__(self):
        if self.infinity:
            return "PublicKey(infinity)"
        return f"PublicKey({self.hex})"


def tagged_hash(tag: bytes, data: bytes) -> bytes:
    """
    BIP340-style tagged hash

    Formula: SHA256(SHA256(tag) || SHA256(tag) || data)
    """
    tag_hash = hashlib.sha256(tag).digest()
    return hashlib.sha256(tag_hash + tag_hash + data).digest()


def ecdh(private_key: int, public_key: GE) -> PublicKey:
    """
    Compute the ECDH shared point private_key * public_key

    Raises:
        DerivationError: If the shared point is the point at infinity
    """
    shared = PublicKey(int(private_key) * public_key)
    if shared.infinity:
        raise DerivationError("ECDH produced the point at infinity", stage="commitment")
    return shared


def validate_seed(seed: bytes) -> None:
    """
    Basic seed sanity checks

    Raises:
        DerivationError: If the seed length is outside 16..64 bytes or the
            seed is a single repeated byte
    """
    if not MIN_SEED_LENGTH <= len(seed) <= MAX_SEED_LENGTH:
        raise DerivationError(
            f"Seed must be {MIN_SEED_LENGTH} to {MAX_SEED_LENGTH} bytes, got {len(seed)}",
            stage="seed",
        )
    if len(set(seed)) == 1:
        raise DerivationError("Seed has no entropy (single repeated byte)", stage="seed")


def master_key_from_seed(seed: bytes) -> Tuple[int, bytes]:
    """
    BIP32 master key derivation: HMAC-SHA512(key="Bitcoin seed", data=seed)

    Returns:
        Tuple of (master_private_key, chain_code)
    """
    hmac_result = hmac.new(BIP32_SEED_KEY, seed, hashlib.sha512).digest()

    master_private_key = int.from_bytes(hmac_result[:32], 'big')
    chain_code = hmac_result[32:]

    if master_private_key == 0 or master_private_key >= GE.ORDER:
        raise DerivationError("Invalid master key for seed", stage="hd")

    return master_private_key, chain_code


def derive_child_key(parent_key: int, chain_code: bytes,
                     index: int, hardened: bool) -> Tuple[int, bytes]:
    """
    Derive a child key using BIP32 CKD (Child Key Derivation)

    Args:
        parent_key: Parent private key as integer
        chain_code: Parent chain code (32 bytes)
        index: Child index (without the hardened bit)
        hardened: Whether to use hardened derivation

    Returns:
        Tuple of (child_private_key, child_chain_code)
    """
    if not 0 <= index < HARDENED:
        raise DerivationError(f"Child index {index} out of range", stage="hd")

    if hardened:
        # Hardened child: HMAC-SHA512(chain_code, 0x00 || parent_key || index)
        data = b'\x00' + parent_key.to_bytes(32, 'big') + (index + HARDENED).to_bytes(4, 'big')
    else:
        # Normal child: HMAC-SHA512(chain_code, parent_pubkey || index)
        parent_pubkey = (parent_key * G).to_bytes_compressed()
        data = parent_pubkey + index.to_bytes(4, 'big')

    hmac_result = hmac.new(chain_code, data, hashlib.sha512).digest()

    tweak = int.from_bytes(hmac_result[:32], 'big')
    child_chain_code = hmac_result[32:]

    child_private_key = (tweak + parent_key) % GE.ORDER

    if child_private_key == 0 or tweak >= GE.ORDER:
        raise DerivationError("Invalid child key derivation (try next index)", stage="hd")

    return child_private_key, child_chain_code


def parse_path(path: str) -> List[Tuple[int, bool]]:
    """Parse "m/351'/0'/0'" into [(351, True), (0, True), (0, True)]"""
    if not path.startswith("m/"):
        raise ValueError("Path must start with 'm/'")

    steps = []
    for part in path[2:].split("/"):
        if not part:
            continue
        hardened = part.endswith(("'", "h", "H"))
        steps.append((int(part[:-1] if hardened else part), hardened))
    return steps


def derive_bip32_key(seed: bytes, path: str) -> SecretBytes:
    """
    Derive an extended private key along a BIP32 path

    Args:
        seed: Wallet seed
        path: BIP32 derivation path (e.g., "m/351'/0'/0'")

    Returns:
        SecretBytes holding private_key(32) || chain_code(32)
    """
    validate_seed(seed)

    private_key, chain_code = master_key_from_seed(seed)
    for index, hardened in parse_path(path):
        private_key, chain_code = derive_child_key(private_key, chain_code, index, hardened)

    return SecretBytes(private_key.to_bytes(32, 'big') + chain_code)
