#!/usr/bin/env python3
"""
Notification codec

A notification announces a sender/receiver relationship on chain. It is the
data of a provably-unspendable OP_RETURN output:

    OP_RETURN <payload>

Payload (protocol version 1, 41 or 45 bytes):
    magic "PP"(2) | version(1) | address_type(1) | sender_pubkey(33)
    | match_tag(4) | [recipient_index(4, big-endian)]

Anything else decodes to None: absence of a notification is the normal case
when scanning scripts.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Optional, Union

from .address import AddressType
from .constants import (
    MATCH_TAG_LENGTH,
    NOTIFICATION_BASE_LENGTH,
    NOTIFICATION_INDEXED_LENGTH,
    NOTIFICATION_MAGIC,
    OP_PUSHDATA1,
    OP_RETURN,
    NotificationVersion,
)
from .crypto import PublicKey
from .errors import InputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """Decoded notification payload"""

    public_key: PublicKey                 # sender's per-recipient contribution E
    address_type: AddressType
    match_tag: bytes                      # lets the receiver recognise its notifications
    recipient_index: Optional[int] = None
    version: int = NotificationVersion.V1

    def encode(self) -> bytes:
        """Serialize the payload"""
        if len(self.match_tag) != MATCH_TAG_LENGTH:
            raise InputError(f"Match tag must be {MATCH_TAG_LENGTH} bytes")

        payload = (
            NOTIFICATION_MAGIC
            + bytes([self.version, self.address_type])
            + self.public_key.bytes
            + self.match_tag
        )
        if self.recipient_index is not None:
            payload += struct.pack('>I', self.recipient_index)
        return payload

    def to_script(self) -> bytes:
        """OP_RETURN scriptPubKey carrying the payload"""
        payload = self.encode()
        # Payloads are always shorter than OP_PUSHDATA1
        return bytes([OP_RETURN, len(payload)]) + payload

    def to_hex(self) -> str:
        return self.to_script().hex()

    @classmethod
    def from_payload(cls, payload: bytes) -> Optional["Notification"]:
        """
        Parse a payload, returning None if it is not a notification

        Args:
            payload: Data pushed by the OP_RETURN output
        """
        if payload[:len(NOTIFICATION_MAGIC)] != NOTIFICATION_MAGIC:
            return None

        if len(payload) not in (NOTIFICATION_BASE_LENGTH, NOTIFICATION_INDEXED_LENGTH):
            logger.debug("Notification magic with unexpected length %d", len(payload))
            return None

        try:
            version = NotificationVersion(payload[2])
        except ValueError:
            logger.debug("Unknown notification version %#04x", payload[2])
            return None

        try:
            address_type = AddressType(payload[3])
        except ValueError:
            logger.debug("Unknown notification address type %#04x", payload[3])
            return None

        try:
            public_key = PublicKey.from_bytes(payload[4:37])
        except ValueError:
            logger.debug("Notification carries an invalid public key")
            return None

        match_tag = payload[37:41]

        recipient_index = None
        if len(payload) == NOTIFICATION_INDEXED_LENGTH:
            recipient_index = struct.unpack('>I', payload[41:45])[0]

        return cls(
            public_key=public_key,
            address_type=address_type,
            match_tag=bytes(match_tag),
            recipient_index=recipient_index,
            version=version,
        )

    @classmethod
    def decode(cls, script: Union[bytes, bytearray, str]) -> Optional["Notification"]:
        """
        Decode an OP_RETURN scriptPubKey, returning None if it is not a notification

        Args:
            script: Raw script bytes or its hex encoding

        Raises:
            InputError: If script is neither bytes nor valid hex
        """
        script = script_bytes(script)

        if len(script) < 2 or script[0] != OP_RETURN:
            return None

        # Direct push (1..75 bytes) or OP_PUSHDATA1
        if script[1] == OP_PUSHDATA1:
            if len(script) < 3:
                return None
            length, offset = script[2], 3
        elif 0 < script[1] < OP_PUSHDATA1:
            length, offset = script[1], 2
        else:
            return None

        if len(script) != offset + length:
            return None

        return cls.from_payload(bytes(script[offset:]))

    def to_dict(self) -> dict:
        return {
            "script": self.to_hex(),
            "version": int(self.version),
            "address_type": self.address_type.rule.name,
            "public_key": self.public_key.hex,
            "match_tag": self.match_tag.hex(),
            "recipient_index": self.recipient_index,
        }


def script_bytes(script: Union[bytes, bytearray, str]) -> bytes:
    """Accept raw script bytes or hex"""
    if isinstance(script, (bytes, bytearray)):
        return bytes(script)
    if isinstance(script, str):
        try:
            return bytes.fromhex(script.strip())
        except ValueError:
            raise InputError(f"Script is not valid hex: {script!r}")
    raise InputError(f"Script must be bytes or hex, got {type(script).__name__}")
