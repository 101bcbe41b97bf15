#!/usr/bin/env python3
"""
Private Payments (privpay) Package

Deterministic stealth payments from reusable payment codes: a receiver
publishes a payment code, a sender publishes one notification and both
sides then derive the same unbounded sequence of one-time addresses.
"""

# Constants
from .constants import PURPOSE, NOTIFICATION_MAGIC, PaymentCodeVersion, NotificationVersion

# Errors
from .errors import PrivatePaymentError, InputError, DecodeError, DerivationError

# Configuration
from .config import Settings, LogConfig, setup_logging

# Secrets and curve types
from .secure import SecretBytes
from .crypto import PrivateKey, PublicKey, tagged_hash

# Address type policy
from .address import AddressType, ADDRESS_TYPE_POLICY, encode_address, parse_address_type

# Protocol values
from .payment_code import PaymentCode
from .notification import Notification
from .commitment import Commitment, derive_as_sender, derive_as_receiver

# Per-index derivation
from .derivation import DerivedKey, PublicDeriver, FullDeriver, index_range, derive_range

# Role-based classes
from .roles import Sender, Recipient

# Seed sources
from .seed import seed_from_hex, seed_from_mnemonic, prompt_seed_hex

__version__ = "1.0.0"
__description__ = "Deterministic private payments from reusable payment codes"

# Public API - what gets imported with "from privpay import *"
__all__ = [
    # Constants
    "PURPOSE",
    "NOTIFICATION_MAGIC",
    "PaymentCodeVersion",
    "NotificationVersion",

    # Errors
    "PrivatePaymentError",
    "InputError",
    "DecodeError",
    "DerivationError",

    # Configuration
    "Settings",
    "LogConfig",
    "setup_logging",

    # Core types
    "SecretBytes",
    "PrivateKey",
    "PublicKey",
    "tagged_hash",
    "AddressType",
    "ADDRESS_TYPE_POLICY",
    "encode_address",
    "parse_address_type",
    "PaymentCode",
    "Notification",
    "Commitment",
    "DerivedKey",

    # Derivation
    "derive_as_sender",
    "derive_as_receiver",
    "PublicDeriver",
    "FullDeriver",
    "index_range",
    "derive_range",

    # Role-based classes
    "Sender",
    "Recipient",

    # Seed sources
    "seed_from_hex",
    "seed_from_mnemonic",
    "prompt_seed_hex",

    # Package metadata
    "__version__",
    "__description__",
]
