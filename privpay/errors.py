#!/usr/bin/env python3
"""
Private payment exception taxonomy

"Not found" outcomes (a script that is not a notification, a notification
for somebody else) are not exceptions: they are reported as ``None``.
"""

from typing import Optional


class PrivatePaymentError(ValueError):
    """Base class for all private payment errors"""


class InputError(PrivatePaymentError):
    """Malformed caller input: seed, hex, index, account or address type"""


class DecodeError(PrivatePaymentError):
    """Corrupt payment code encoding"""


class DerivationError(PrivatePaymentError):
    """
    Arithmetic edge case during key derivation

    Attributes:
        stage: Where derivation failed ("seed", "hd", "commitment", "index")
        index: Address index that failed, when the failure is index-local
    """

    def __init__(self, message: str, stage: str, index: Optional[int] = None):
        self.stage = stage
        self.index = index
        if index is not None:
            message = f"{message} (stage={stage}, index={index})"
        else:
            message = f"{message} (stage={stage})"
        super().__init__(message)

    @property
    def index_local(self) -> bool:
        """True when only a single address index is affected"""
        return self.index is not None
