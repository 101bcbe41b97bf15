#!/usr/bin/env python3
"""
Per-index key derivation

For a commitment c with base key P = B + c*G, address index i uses

    t_i = HMAC-SHA256(key=ser_256(c), msg=ser_P(P) || ser_64(i))
    P_i = P + t_i*G
    p_i = b + c + t_i  (mod n)        receiver only

PublicDeriver needs only the commitment and is what a sender uses;
FullDeriver additionally holds the receiver's account private key and
returns p_i. Both are pure: the same (commitment, index) always produces
the same key.
"""

import hashlib
import hmac
import logging
import struct
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

from secp256k1lab.secp256k1 import GE, G

from .address import encode_address
from .commitment import Commitment
from .constants import MAX_ADDRESS_INDEX
from .crypto import PrivateKey, PublicKey
from .errors import DerivationError, InputError
from .secure import SecretBytes

logger = logging.getLogger(__name__)


@dataclass
class DerivedKey:
    """Key material for one address index"""

    index: int
    address: str
    public_key: PublicKey
    private_key: Optional[PrivateKey] = None
    network: str = "main"

    def wipe(self) -> None:
        self.private_key = None

    def to_dict(self, include_private: bool = False) -> dict:
        result = {
            "index": self.index,
            "address": self.address,
            "public_key": self.public_key.hex,
        }
        if include_private and self.private_key is not None:
            result["private_key"] = self.private_key.hex
            result["wif"] = self.private_key.wif(self.network)
        return result


class Deriver(Protocol):
    """Anything that can derive the key for an address index"""

    commitment: Commitment

    def derive_at_index(self, index: int) -> DerivedKey:
        ...


def validate_address_index(index: int) -> int:
    """
    Raises:
        InputError: If index is negative or not an integer
        DerivationError: If index does not fit in 64 bits
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise InputError(f"Address index must be an integer, got {index!r}")
    if index < 0:
        raise InputError(f"Address index must be non-negative, got {index}")
    if index > MAX_ADDRESS_INDEX:
        raise DerivationError("Address index overflows 64 bits", stage="index", index=index)
    return index


def compute_index_tweak(commitment_secret: bytes, base_public_key: PublicKey, index: int) -> int:
    """
    Per-index scalar tweak

    Raises:
        DerivationError: If the tweak is zero or not below the curve order
    """
    digest = hmac.new(
        bytes(commitment_secret),
        base_public_key.bytes + struct.pack('>Q', index),
        hashlib.sha256,
    ).digest()
    tweak = int.from_bytes(digest, 'big')
    if tweak == 0 or tweak >= GE.ORDER:
        raise DerivationError("Index tweak is not a valid scalar", stage="index", index=index)
    return tweak


class PublicDeriver:
    """Derives addresses and public keys; needs no private key"""

    def __init__(self, commitment: Commitment):
        self.commitment = commitment
        self.base_public_key = commitment.base_public_key

    def tweak_and_public_key(self, index: int) -> Tuple[int, PublicKey]:
        validate_address_index(index)
        tweak = compute_index_tweak(self.commitment.secret.buffer, self.base_public_key, index)
        public_key = self.base_public_key + PublicKey(tweak * G)
        if public_key.infinity:
            raise DerivationError("Index key is the point at infinity", stage="index", index=index)
        return tweak, public_key

    def derive_at_index(self, index: int) -> DerivedKey:
        _, public_key = self.tweak_and_public_key(index)
        return DerivedKey(
            index=index,
            address=encode_address(public_key, self.commitment.address_type, self.commitment.network),
            public_key=public_key,
            network=self.commitment.network,
        )


class FullDeriver:
    """Derives addresses, public keys and private keys (receiver only)"""

    def __init__(self, commitment: Commitment, account_private_key: SecretBytes):
        self.commitment = commitment
        self.public = PublicDeriver(commitment)
        self._account_key = SecretBytes(account_private_key.buffer[:32])

        if PublicKey(self._account_key.to_int() * G) != commitment.recipient_key:
            self._account_key.wipe()
            raise InputError("Account private key does not belong to this commitment's recipient")

    def derive_at_index(self, index: int) -> DerivedKey:
        tweak, public_key = self.public.tweak_and_public_key(index)

        private_key = (self._account_key.to_int() + self.commitment.scalar + tweak) % GE.ORDER
        if private_key == 0:
            raise DerivationError("Index private key is zero", stage="index", index=index)

        return DerivedKey(
            index=index,
            address=encode_address(public_key, self.commitment.address_type, self.commitment.network),
            public_key=public_key,
            private_key=PrivateKey(private_key),
            network=self.commitment.network,
        )

    def wipe(self) -> None:
        self._account_key.wipe()

    def __enter__(self) -> "FullDeriver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()


def index_range(start: int, end: Optional[int] = None) -> range:
    """
    Inclusive index range start..=end

    When end is absent or less than start the range is just [start].
    """
    validate_address_index(start)
    if end is not None:
        validate_address_index(end)
    if end is None or end < start:
        return range(start, start + 1)
    return range(start, end + 1)


def derive_range(deriver: Deriver, start: int, end: Optional[int] = None,
                 max_workers: int = 1, skip_invalid: bool = True) -> List[DerivedKey]:
    """
    Derive every index in start..=end, in index order

    Args:
        deriver: PublicDeriver or FullDeriver
        start: First index
        end: Last index (inclusive); see index_range for defaulting
        max_workers: Thread count; 1 derives sequentially
        skip_invalid: Log and skip indices that raise DerivationError
            instead of re-raising

    Returns:
        Derived keys ordered by index, minus any skipped indices
    """
    indices = index_range(start, end)

    def derive_one(index: int) -> Optional[DerivedKey]:
        try:
            return deriver.derive_at_index(index)
        except DerivationError as e:
            if not skip_invalid or not e.index_local:
                raise
            logger.warning("Skipping address index %d: %s", index, e)
            return None

    if max_workers is None or max_workers <= 1 or len(indices) == 1:
        results = [derive_one(i) for i in indices]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(derive_one, indices))

    return [key for key in results if key is not None]
