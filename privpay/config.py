"""
privpay runtime configuration
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field, asdict
from typing import List

from embit.networks import NETWORKS

from .constants import COIN_TYPE_MAINNET, COIN_TYPE_TESTNET
from .errors import InputError

logger = logging.getLogger(__name__)

DEFAULT_NETWORK = "main"


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    """
    Engine settings.

    The engine itself is stateless; these only select the network whose
    address encoding is used and how index ranges are parallelised.
    """
    network: str = DEFAULT_NETWORK
    max_workers: int = 1
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def coin_type(self) -> int:
        """BIP44 coin type for the configured network."""
        return coin_type(self.network)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of problems, empty when the settings are usable
        """
        errors = []
        if self.network not in NETWORKS:
            errors.append(f"Unknown network: {self.network}")
        if self.max_workers < 1:
            errors.append(f"max_workers must be positive, got {self.max_workers}")
        if getattr(logging, self.log.level.upper(), None) is None:
            errors.append(f"Unknown log level: {self.log.level}")
        return errors

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from PRIVPAY_* environment variables."""
        environ = os.environ if environ is None else environ
        settings = cls()
        settings.network = environ.get("PRIVPAY_NETWORK", DEFAULT_NETWORK)

        workers = environ.get("PRIVPAY_MAX_WORKERS")
        if workers is not None:
            try:
                settings.max_workers = int(workers)
            except ValueError:
                raise InputError(f"PRIVPAY_MAX_WORKERS must be an integer, got {workers!r}")

        settings.log.level = environ.get("PRIVPAY_LOG_LEVEL", settings.log.level)

        problems = settings.validate()
        if problems:
            raise InputError("; ".join(problems))
        return settings

    def to_dict(self) -> dict:
        return asdict(self)


def network_params(network: str) -> dict:
    """Look up embit network parameters, rejecting unknown names."""
    try:
        return NETWORKS[network]
    except KeyError:
        raise InputError(f"Unknown network: {network!r} (expected one of {', '.join(NETWORKS)})")


def coin_type(network: str) -> int:
    """Coin type used in the account derivation path."""
    network_params(network)
    return COIN_TYPE_MAINNET if network == "main" else COIN_TYPE_TESTNET


def setup_logging(config: LogConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=[logging.StreamHandler()],
    )
    logger.debug("Logging configured at %s", logging.getLevelName(level))
