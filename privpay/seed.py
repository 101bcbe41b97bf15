#!/usr/bin/env python3
"""
Seed sources

Every source returns a SecretBytes; callers should use it as a context
manager so the seed is wiped once the account key has been derived.
"""

import getpass
import logging

from mnemonic import Mnemonic

from .errors import InputError
from .secure import SecretBytes

logger = logging.getLogger(__name__)


def seed_from_hex(seed_hex: str) -> SecretBytes:
    """
    Parse a hex-encoded seed

    Raises:
        InputError: If the string is not hex
    """
    try:
        return SecretBytes(bytes.fromhex(seed_hex.strip()))
    except ValueError:
        # Do not echo the secret back in the message
        raise InputError("Seed is not valid hex")


def seed_from_mnemonic(mnemonic: str, passphrase: str = "", language: str = "english") -> SecretBytes:
    """
    Convert a BIP39 mnemonic to its 64-byte seed

    Raises:
        InputError: If the mnemonic checksum is invalid
    """
    mnemo = Mnemonic(language)

    if not mnemo.check(mnemonic):
        raise InputError("Invalid BIP39 mnemonic phrase")

    return SecretBytes(mnemo.to_seed(mnemonic, passphrase=passphrase))


def prompt_seed_hex(prompt: str = "Seed Hex") -> SecretBytes:
    """
    Read a hex seed from the terminal without echoing it

    Raises:
        InputError: On end of input, interrupt or malformed hex
    """
    try:
        seed_hex = getpass.getpass(f"{prompt}: ")
    except (EOFError, KeyboardInterrupt):
        raise InputError("Seed entry aborted")

    logger.debug("Seed read from prompt")
    return seed_from_hex(seed_hex)
