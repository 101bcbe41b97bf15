#!/usr/bin/env python3
"""
Commitment derivation

Sender and receiver each compute the same commitment scalar c from
asymmetric information:

    sender:   e = CKD(account_key, recipient_index')    E = e*G
              S = e * B            (B = receiver payment code key)
    receiver: S = b * E            (E = notification public key)

    c = hash_PrivatePayments/Commitment(ser_P(S) || ser_P(E)
                                        || ser_32(domain(address_type))
                                        || [ser_32(recipient_index)])

The address type domain and the recipient index are bound into c so the
same ECDH secret never yields the same commitment for two different
(address type, recipient index) pairs.
"""

import hmac
import logging
import struct
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from secp256k1lab.secp256k1 import GE, G

from .address import AddressType, domain_separator, parse_address_type
from .constants import MATCH_TAG_LENGTH, MAX_RECIPIENT_INDEX, TAG_COMMITMENT, TAG_MATCH
from .crypto import PublicKey, derive_child_key, ecdh, tagged_hash
from .errors import DerivationError, InputError
from .notification import Notification
from .payment_code import PaymentCode
from .secure import SecretBytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=True)
class Commitment:
    """
    Shared secret seeding every per-index key

    Attributes:
        secret: Commitment scalar c (32 bytes)
        recipient_key: Receiver payment code public key B
        address_type: Address type bound into c
        recipient_index: Recipient index bound into c, None when the
            notification omitted it
        network: Network used for address encoding
    """

    secret: SecretBytes
    recipient_key: PublicKey
    address_type: AddressType
    recipient_index: Optional[int]
    network: str = "main"

    # Unhashable: secret is a wipeable SecretBytes
    __hash__ = None

    @property
    def scalar(self) -> int:
        return self.secret.to_int()

    @property
    def base_public_key(self) -> PublicKey:
        """P = B + c*G, the point every index key is tweaked from"""
        base = self.recipient_key + PublicKey(self.scalar * G)
        if base.infinity:
            raise DerivationError("Commitment base key is the point at infinity", stage="commitment")
        return base

    def wipe(self) -> None:
        self.secret.wipe()

    def __enter__(self) -> "Commitment":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()

    def __repr__(self):
        return (f"Commitment(address_type={self.address_type.name}, "
                f"recipient_index={self.recipient_index}, network={self.network!r})")


def compute_match_tag(shared_point: PublicKey) -> bytes:
    """First bytes of hash_PrivatePayments/Match(ser_P(S))"""
    return tagged_hash(TAG_MATCH, shared_point.bytes)[:MATCH_TAG_LENGTH]


def compute_commitment_scalar(shared_point: PublicKey, sender_key: PublicKey,
                              address_type: AddressType,
                              recipient_index: Optional[int]) -> int:
    """
    Domain-separated commitment scalar

    Raises:
        DerivationError: If the hash is not a valid non-zero scalar
    """
    data = shared_point.bytes + sender_key.bytes + struct.pack('>I', domain_separator(address_type))
    if recipient_index is not None:
        data += struct.pack('>I', recipient_index)

    scalar = int.from_bytes(tagged_hash(TAG_COMMITMENT, data), 'big')
    if scalar == 0 or scalar >= GE.ORDER:
        raise DerivationError("Commitment hash is not a valid scalar", stage="commitment")
    return scalar


def validate_recipient_index(recipient_index: int) -> int:
    if isinstance(recipient_index, bool) or not isinstance(recipient_index, int):
        raise InputError(f"Recipient index must be an integer, got {recipient_index!r}")
    if not 0 <= recipient_index <= MAX_RECIPIENT_INDEX:
        raise InputError(f"Recipient index {recipient_index} outside 0..{MAX_RECIPIENT_INDEX}")
    return recipient_index


def derive_as_sender(sender_account_key: SecretBytes, payment_code: PaymentCode,
                     recipient_index: int, address_type: AddressType,
                     include_index: bool = True) -> Tuple[Notification, Commitment]:
    """
    Sender side: build the notification and the commitment for one recipient

    The ephemeral key is the hardened child recipient_index' of the sender's
    account key, so repeating the call with the same arguments is idempotent.

    Args:
        sender_account_key: Sender account private key || chain code
        payment_code: Recipient payment code
        recipient_index: Sender-chosen index for this recipient
        address_type: Address type to pay to
        include_index: Publish the recipient index in the notification

    Returns:
        Tuple of (notification, commitment)

    Raises:
        InputError: Bad recipient index, or address type not accepted
        DerivationError: Arithmetic edge case
    """
    address_type = parse_address_type(address_type)
    validate_recipient_index(recipient_index)

    if not payment_code.accepts(address_type):
        raise InputError(
            f"Payment code does not accept {address_type.rule.name} addresses "
            f"(accepts: {', '.join(sorted(t.rule.name for t in payment_code.address_types)) or 'none'})"
        )

    key = sender_account_key.buffer
    ephemeral_key, _ = derive_child_key(
        int.from_bytes(key[:32], 'big'), bytes(key[32:64]), recipient_index, hardened=True
    )
    sender_key = PublicKey(ephemeral_key * G)
    shared_point = ecdh(ephemeral_key, payment_code.public_key)

    bound_index = recipient_index if include_index else None
    scalar = compute_commitment_scalar(shared_point, sender_key, address_type, bound_index)

    notification = Notification(
        public_key=sender_key,
        address_type=address_type,
        match_tag=compute_match_tag(shared_point),
        recipient_index=bound_index,
    )
    commitment = Commitment(
        secret=SecretBytes.from_int(scalar),
        recipient_key=payment_code.public_key,
        address_type=address_type,
        recipient_index=bound_index,
        network=payment_code.network,
    )

    logger.debug("Sender derived commitment for recipient index %d (%s)",
                 recipient_index, address_type.rule.name)
    return notification, commitment


def derive_as_receiver(receiver_account_key: SecretBytes,
                       accepted: FrozenSet[AddressType],
                       notification: Notification,
                       network: str = "main") -> Optional[Commitment]:
    """
    Receiver side: re-derive the commitment announced by a notification

    Args:
        receiver_account_key: Receiver account private key || chain code
        accepted: Address types the receiver's payment code declares
        notification: Decoded notification
        network: Network used for address encoding

    Returns:
        The commitment, or None if the address type is not accepted or the
        notification is addressed to somebody else
    """
    if notification.address_type not in accepted:
        logger.debug("Ignoring notification for unaccepted address type %s",
                     notification.address_type.rule.name)
        return None

    receiver_key = int.from_bytes(receiver_account_key.buffer[:32], 'big')
    shared_point = ecdh(receiver_key, notification.public_key)

    if not hmac.compare_digest(compute_match_tag(shared_point), notification.match_tag):
        logger.debug("Notification match tag differs: not addressed to this receiver")
        return None

    scalar = compute_commitment_scalar(
        shared_point, notification.public_key, notification.address_type, notification.recipient_index
    )

    logger.debug("Receiver matched notification (%s, recipient index %s)",
                 notification.address_type.rule.name, notification.recipient_index)
    return Commitment(
        secret=SecretBytes.from_int(scalar),
        recipient_key=PublicKey(receiver_key * G),
        address_type=notification.address_type,
        recipient_index=notification.recipient_index,
        network=network,
    )
