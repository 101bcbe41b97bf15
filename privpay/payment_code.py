#!/usr/bin/env python3
"""
Payment codes

A payment code is the receiver's reusable public identity: a version byte,
a feature byte declaring accepted address types, and the compressed public
key of the receiver's account key m/351'/coin'/account'.

Binary form (35 bytes):
    version(1) | features(1) | pubkey(33)

Text form: bech32m of the binary form, HRP "pm" on mainnet, "tp" elsewhere.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

from embit import bech32

from .address import (
    AddressType,
    address_types_from_features,
    features_from_address_types,
)
from .config import coin_type, network_params
from .constants import (
    MAX_ACCOUNT,
    PAYMENT_CODE_HRP_MAINNET,
    PAYMENT_CODE_HRP_TESTNET,
    PAYMENT_CODE_LENGTH,
    PURPOSE,
    PaymentCodeVersion,
)
from .crypto import PrivateKey, PublicKey, derive_bip32_key
from .errors import DecodeError, DerivationError
from .secure import SecretBytes


def account_path(account: int, network: str = "main") -> str:
    """BIP32 path of a payment code account key"""
    if not isinstance(account, int) or not 0 <= account <= MAX_ACCOUNT:
        raise DerivationError(f"Account index {account!r} outside the hardened range", stage="hd")
    return f"m/{PURPOSE}'/{coin_type(network)}'/{account}'"


def derive_account_key(seed: bytes, account: int, network: str = "main") -> SecretBytes:
    """Extended account private key: private_key(32) || chain_code(32)"""
    return derive_bip32_key(bytes(seed), account_path(account, network))


def hrp_for_network(network: str) -> str:
    network_params(network)
    return PAYMENT_CODE_HRP_MAINNET if network == "main" else PAYMENT_CODE_HRP_TESTNET


@dataclass(frozen=True)
class PaymentCode:
    """Receiver identity: public key plus the set of accepted address types"""

    public_key: PublicKey
    address_types: FrozenSet[AddressType] = field(default_factory=frozenset)
    network: str = "main"
    version: int = PaymentCodeVersion.V1

    def __post_init__(self):
        # Normalise any iterable of address types to a frozenset
        object.__setattr__(self, "address_types", frozenset(AddressType(t) for t in self.address_types))

    @classmethod
    def derive(cls, seed: bytes, account: int = 0,
               address_types: Optional[Iterable[AddressType]] = None,
               network: str = "main") -> "PaymentCode":
        """
        Derive the payment code for a seed and account

        Args:
            seed: Wallet seed (16 to 64 bytes)
            account: Hardened account index
            address_types: Accepted address types (default: SEGWIT_V0 only)
            network: embit network name

        Raises:
            DerivationError: Bad account index or seed
        """
        if address_types is None:
            address_types = [AddressType.default()]

        with derive_account_key(seed, account, network) as account_key:
            public_key = PrivateKey(int.from_bytes(account_key.buffer[:32], 'big')).public_key

        return cls(public_key=public_key, address_types=frozenset(address_types), network=network)

    def accepts(self, address_type: AddressType) -> bool:
        return address_type in self.address_types

    @property
    def features(self) -> int:
        return features_from_address_types(self.address_types)

    def to_bytes(self) -> bytes:
        """Fixed-width 35-byte encoding"""
        return bytes([self.version, self.features]) + self.public_key.bytes

    @classmethod
    def from_bytes(cls, data: bytes, network: str = "main") -> "PaymentCode":
        """
        Parse the 35-byte encoding

        Raises:
            DecodeError: Truncated payload, unknown version, unknown feature
                bits or invalid public key
        """
        if len(data) != PAYMENT_CODE_LENGTH:
            raise DecodeError(
                f"Payment code must be {PAYMENT_CODE_LENGTH} bytes, got {len(data)}"
            )

        try:
            version = PaymentCodeVersion(data[0])
        except ValueError:
            raise DecodeError(f"Unknown payment code version: {data[0]:#04x}")
        features = data[1]

        address_types = address_types_from_features(features)

        try:
            public_key = PublicKey.from_bytes(bytes(data[2:]))
        except ValueError as e:
            raise DecodeError(f"Invalid payment code public key: {e}")

        return cls(public_key=public_key, address_types=address_types,
                   network=network, version=version)

    def to_text(self) -> str:
        """bech32m string safe for out-of-band sharing"""
        data = bech32.convertbits(self.to_bytes(), 8, 5)
        return bech32.bech32_encode(bech32.Encoding.BECH32M, hrp_for_network(self.network), data)

    @classmethod
    def from_text(cls, text: str, network: Optional[str] = None) -> "PaymentCode":
        """
        Parse a bech32m payment code

        Args:
            text: Payment code string
            network: Expected network; when omitted "pm" decodes as main and
                "tp" as test

        Raises:
            DecodeError: Checksum mismatch, wrong HRP, unknown version or
                truncated payload
        """
        encoding, hrp, data = bech32.bech32_decode(text.strip())
        if hrp is None or data is None:
            raise DecodeError("Invalid payment code: bad bech32 string or checksum")
        if encoding != bech32.Encoding.BECH32M:
            raise DecodeError("Invalid payment code: expected bech32m checksum")

        if network is None:
            if hrp == PAYMENT_CODE_HRP_MAINNET:
                network = "main"
            elif hrp == PAYMENT_CODE_HRP_TESTNET:
                network = "test"
            else:
                raise DecodeError(f"Unknown payment code prefix: {hrp!r}")
        elif hrp != hrp_for_network(network):
            raise DecodeError(f"Payment code prefix {hrp!r} does not match network {network!r}")

        payload = bech32.convertbits(data, 5, 8, False)
        if payload is None:
            raise DecodeError("Invalid payment code: bad padding")

        return cls.from_bytes(bytes(payload), network=network)

    def to_dict(self) -> dict:
        return {
            "payment_code": self.to_text(),
            "version": self.version,
            "network": self.network,
            "public_key": self.public_key.hex,
            "address_types": sorted(t.rule.name for t in self.address_types),
        }

    def __str__(self):
        return self.to_text()
