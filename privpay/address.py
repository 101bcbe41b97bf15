#!/usr/bin/env python3
"""
Address type policy

Closed set of address types a payment code can accept. Each type has
exactly one entry in ADDRESS_TYPE_POLICY giving its payment code feature bit,
its commitment domain separator and its scriptPubKey builder. Adding a type
means adding one enum member and one table entry.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, FrozenSet, Iterable

from embit import ec, script

from .config import network_params
from .crypto import PublicKey
from .errors import DecodeError, InputError


class AddressType(IntEnum):
    """Address types, valued by their notification wire byte"""
    LEGACY = 0       # P2PKH
    SEGWIT_V0 = 1    # P2WPKH
    TAPROOT_V1 = 2   # P2TR, BIP86 key-path tweak

    @classmethod
    def default(cls) -> "AddressType":
        return cls.SEGWIT_V0

    @property
    def rule(self) -> "AddressTypeRule":
        return ADDRESS_TYPE_POLICY[self]

    def __str__(self):
        return self.rule.name


@dataclass(frozen=True)
class AddressTypeRule:
    """Encoding rule and protocol constants for one address type"""
    name: str
    feature_bit: int
    domain: int
    script_fn: Callable[[ec.PublicKey], script.Script]


ADDRESS_TYPE_POLICY: Dict[AddressType, AddressTypeRule] = {
    AddressType.LEGACY: AddressTypeRule("p2pkh", 1 << 0, 44, script.p2pkh),
    AddressType.SEGWIT_V0: AddressTypeRule("p2wpkh", 1 << 1, 84, script.p2wpkh),
    AddressType.TAPROOT_V1: AddressTypeRule("p2tr", 1 << 2, 86, script.p2tr),
}

if set(ADDRESS_TYPE_POLICY) != set(AddressType):
    raise RuntimeError("ADDRESS_TYPE_POLICY must cover every AddressType")
if len({rule.domain for rule in ADDRESS_TYPE_POLICY.values()}) != len(ADDRESS_TYPE_POLICY):
    raise RuntimeError("Address type domain separators must be unique")
if len({rule.feature_bit for rule in ADDRESS_TYPE_POLICY.values()}) != len(ADDRESS_TYPE_POLICY):
    raise RuntimeError("Address type feature bits must be unique")

KNOWN_FEATURES = 0
for _rule in ADDRESS_TYPE_POLICY.values():
    KNOWN_FEATURES |= _rule.feature_bit


def domain_separator(address_type: AddressType) -> int:
    """Domain constant bound into the commitment hash"""
    return ADDRESS_TYPE_POLICY[address_type].domain


def script_pubkey(public_key: PublicKey, address_type: AddressType) -> bytes:
    """
    Build the scriptPubKey paying to public_key

    Formats:
        LEGACY:     OP_DUP OP_HASH160 <hash160(pubkey)> OP_EQUALVERIFY OP_CHECKSIG
        SEGWIT_V0:  OP_0 <hash160(pubkey)>
        TAPROOT_V1: OP_1 <BIP86-tweaked x-only pubkey>
    """
    rule = ADDRESS_TYPE_POLICY[address_type]
    return rule.script_fn(ec.PublicKey.parse(public_key.bytes)).data


def encode_address(public_key: PublicKey, address_type: AddressType, network: str = "main") -> str:
    """Textual address for public_key on the given network"""
    rule = ADDRESS_TYPE_POLICY[address_type]
    sc = rule.script_fn(ec.PublicKey.parse(public_key.bytes))
    return sc.address(network_params(network))


def features_from_address_types(address_types: Iterable[AddressType]) -> int:
    """Payment code feature byte for a set of address types"""
    features = 0
    for address_type in address_types:
        features |= ADDRESS_TYPE_POLICY[AddressType(address_type)].feature_bit
    return features


def address_types_from_features(features: int) -> FrozenSet[AddressType]:
    """
    Address types declared by a payment code feature byte

    Raises:
        DecodeError: If unknown feature bits are set
    """
    if features & ~KNOWN_FEATURES:
        raise DecodeError(f"Unknown payment code feature bits: {features:#04x}")
    return frozenset(t for t, rule in ADDRESS_TYPE_POLICY.items() if features & rule.feature_bit)


def parse_address_type(name) -> AddressType:
    """
    Parse "p2pkh"/"p2wpkh"/"p2tr" or an enum member name, case-insensitive

    Raises:
        InputError: If the name is not a known address type
    """
    if isinstance(name, AddressType):
        return name
    text = str(name).strip().lower()
    for address_type, rule in ADDRESS_TYPE_POLICY.items():
        if text in (rule.name, address_type.name.lower()):
            return address_type
    raise InputError(
        f"Unknown address type {name!r} (expected one of "
        f"{', '.join(rule.name for rule in ADDRESS_TYPE_POLICY.values())})"
    )
