#!/usr/bin/env python3
"""
Private payment protocol constants (protocol version 1)

Any two interoperating implementations must agree on every value below.
"""

from enum import IntEnum


# BIP32 purpose for payment code accounts: m/351'/coin'/account'
PURPOSE = 351
HARDENED = 0x80000000

COIN_TYPE_MAINNET = 0
COIN_TYPE_TESTNET = 1

# Seed sanity bounds (BIP32 allows 128 to 512 bits)
MIN_SEED_LENGTH = 16
MAX_SEED_LENGTH = 64

MAX_ACCOUNT = HARDENED - 1
MAX_RECIPIENT_INDEX = HARDENED - 1
MAX_ADDRESS_INDEX = 2**64 - 1


class PaymentCodeVersion(IntEnum):
    """Known payment code versions"""
    V1 = 0x01


PAYMENT_CODE_LENGTH = 35  # version(1) + features(1) + pubkey(33)
PAYMENT_CODE_HRP_MAINNET = "pm"
PAYMENT_CODE_HRP_TESTNET = "tp"


class NotificationVersion(IntEnum):
    """Known notification payload versions"""
    V1 = 0x01


NOTIFICATION_MAGIC = b"PP"
MATCH_TAG_LENGTH = 4
RECIPIENT_INDEX_LENGTH = 4
# magic(2) + version(1) + address type(1) + pubkey(33) + match tag(4)
NOTIFICATION_BASE_LENGTH = 41
NOTIFICATION_INDEXED_LENGTH = NOTIFICATION_BASE_LENGTH + RECIPIENT_INDEX_LENGTH

OP_RETURN = 0x6a
OP_PUSHDATA1 = 0x4c

# Tagged hash tags
TAG_COMMITMENT = b"PrivatePayments/Commitment"
TAG_MATCH = b"PrivatePayments/Match"

# BIP32 master key HMAC key
BIP32_SEED_KEY = b"Bitcoin seed"
