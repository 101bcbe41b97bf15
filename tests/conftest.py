"""
privpay test fixtures
"""

import pytest

from privpay import AddressType, Recipient, Sender


@pytest.fixture
def receiver_seed() -> bytes:
    """Seed 00..1f (32 bytes)."""
    return bytes(range(32))


@pytest.fixture
def sender_seed() -> bytes:
    """Seed 20..5f (64 bytes)."""
    return bytes(range(32, 96))


@pytest.fixture
def other_seed() -> bytes:
    """A third, unrelated seed."""
    return bytes(range(100, 132))


@pytest.fixture
def all_types():
    return frozenset(AddressType)


@pytest.fixture
def sender(sender_seed) -> Sender:
    return Sender.from_seed(sender_seed)


@pytest.fixture
def recipient(receiver_seed, all_types) -> Recipient:
    """Recipient on account 0 accepting every address type."""
    return Recipient.from_seed(receiver_seed, accepted=all_types)


@pytest.fixture
def segwit_recipient(receiver_seed) -> Recipient:
    """Recipient on account 0 accepting only SEGWIT_V0 (the default)."""
    return Recipient.from_seed(receiver_seed)
