#!/usr/bin/env python3
"""
Private Payment Role-Based Classes

The two parties of the protocol:
- Sender: Notifies a payment code and derives the addresses it pays to
- Recipient: Publishes a payment code, detects notifications addressed to
  it and recovers the address and private key for every index

Both hold only their account key m/351'/coin'/account' (never the seed)
inside a SecretBytes, and wipe it on exit when used as context managers.
"""

import dataclasses
import logging
from typing import FrozenSet, Iterable, List, Optional, Tuple

from .address import AddressType, parse_address_type
from .commitment import Commitment, derive_as_receiver, derive_as_sender
from .config import network_params
from .crypto import PrivateKey, PublicKey
from .derivation import DerivedKey, FullDeriver, PublicDeriver, derive_range
from .errors import InputError, PrivatePaymentError
from .notification import Notification
from .payment_code import PaymentCode, derive_account_key, hrp_for_network
from .secure import SecretBytes

logger = logging.getLogger(__name__)


def parse_accepted(accepted: Optional[Iterable[AddressType]]) -> FrozenSet[AddressType]:
    """Accepted address types by enum or name; None means SEGWIT_V0 only"""
    if accepted is None:
        return frozenset([AddressType.default()])
    return frozenset(parse_address_type(t) for t in accepted)


class _AccountRole:
    """Shared account key handling"""

    def __init__(self, account_key: SecretBytes, network: str = "main", account: int = 0):
        network_params(network)
        self._account_key = account_key
        self.network = network
        self.account = account

    @property
    def public_key(self) -> PublicKey:
        return PrivateKey(int.from_bytes(self._account_key.buffer[:32], 'big')).public_key

    def wipe(self) -> None:
        self._account_key.wipe()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.wipe()


class Sender(_AccountRole):
    """
    Sender Role: Pays a payment code without further interaction

    Responsibilities:
    - Derive the notification and commitment for a (recipient, index, type)
    - Derive one-time addresses from a commitment
    """

    @classmethod
    def from_seed(cls, seed: bytes, network: str = "main", account: int = 0) -> "Sender":
        """
        Args:
            seed: Wallet seed; the caller remains responsible for wiping it
            network: embit network name
            account: Hardened account index

        Raises:
            DerivationError: Bad seed or account index
        """
        return cls(derive_account_key(seed, account, network), network=network, account=account)

    def notify(self, payment_code: PaymentCode, recipient_index: int,
               address_type: AddressType = AddressType.SEGWIT_V0,
               include_index: bool = True) -> Tuple[Notification, Commitment]:
        """
        Build the notification for a recipient and the matching commitment

        Calling twice with the same arguments returns identical results.

        Raises:
            InputError: Address type not accepted by the payment code, payment
                code for another network, or recipient index out of range
        """
        if hrp_for_network(payment_code.network) != hrp_for_network(self.network):
            raise InputError(
                f"Payment code is for network {payment_code.network!r}, sender is on {self.network!r}"
            )
        # "tp" codes decode as test; addresses follow the sender's network
        payment_code = dataclasses.replace(payment_code, network=self.network)

        address_type = parse_address_type(address_type)
        notification, commitment = derive_as_sender(
            self._account_key, payment_code, recipient_index, address_type, include_index
        )
        logger.info("Notification for recipient index %d (%s): %s",
                    recipient_index, address_type.rule.name, notification.to_hex())
        return notification, commitment

    def address(self, commitment: Commitment, index: int) -> str:
        return PublicDeriver(commitment).derive_at_index(index).address

    def addresses(self, commitment: Commitment, start: int = 0, end: Optional[int] = None,
                  max_workers: int = 1) -> List[DerivedKey]:
        """Addresses for start..=end (public keys only)"""
        return derive_range(PublicDeriver(commitment), start, end, max_workers=max_workers)


class Recipient(_AccountRole):
    """
    Recipient Role: Receives private payments

    Responsibilities:
    - Publish a payment code declaring accepted address types
    - Detect notifications addressed to it among candidate scripts
    - Recover address, public key and private key for every index
    """

    def __init__(self, account_key: SecretBytes, network: str = "main", account: int = 0,
                 accepted: Optional[Iterable[AddressType]] = None):
        self.accepted = parse_accepted(accepted)
        super().__init__(account_key, network=network, account=account)
        if not self.accepted:
            logger.warning("Recipient accepts no address types and will never detect a notification")

    @classmethod
    def from_seed(cls, seed: bytes, network: str = "main", account: int = 0,
                  accepted: Optional[Iterable[AddressType]] = None) -> "Recipient":
        """
        Args:
            seed: Wallet seed; the caller remains responsible for wiping it
            network: embit network name
            account: Hardened account index
            accepted: Accepted address types (default: SEGWIT_V0 only)

        Raises:
            InputError: Unknown accepted address type or network
            DerivationError: Bad seed or account index
        """
        accepted = parse_accepted(accepted)
        account_key = derive_account_key(seed, account, network)
        try:
            return cls(account_key, network=network, account=account, accepted=accepted)
        except PrivatePaymentError:
            account_key.wipe()
            raise

    def payment_code(self) -> PaymentCode:
        return PaymentCode(public_key=self.public_key, address_types=self.accepted, network=self.network)

    def detect_notification(self, script) -> Optional[Commitment]:
        """
        Re-derive the commitment if script is a notification for this recipient

        Args:
            script: scriptPubKey bytes or hex

        Returns:
            The commitment, or None when the script is not a notification,
            declares an unaccepted address type, or is for somebody else
        """
        notification = Notification.decode(script)
        if notification is None:
            return None
        return derive_as_receiver(self._account_key, self.accepted, notification, self.network)

    def scan(self, scripts: Iterable) -> List[Tuple[int, Commitment]]:
        """
        Detect notifications among candidate scripts

        Returns:
            List of (position in scripts, commitment) for every match
        """
        found = []
        for position, script in enumerate(scripts):
            commitment = self.detect_notification(script)
            if commitment is not None:
                found.append((position, commitment))
        logger.debug("Scanned scripts, %d notification(s) matched", len(found))
        return found

    def deriver(self, commitment: Commitment) -> FullDeriver:
        return FullDeriver(commitment, self._account_key)

    def key_info(self, commitment: Commitment, index: int) -> Tuple[str, PublicKey, PrivateKey]:
        """Address, public key and private key for one index"""
        with self.deriver(commitment) as deriver:
            key = deriver.derive_at_index(index)
        return key.address, key.public_key, key.private_key

    def keys(self, commitment: Commitment, start: int = 0, end: Optional[int] = None,
             max_workers: int = 1) -> List[DerivedKey]:
        """Full key material for start..=end"""
        with self.deriver(commitment) as deriver:
            return derive_range(deriver, start, end, max_workers=max_workers)
