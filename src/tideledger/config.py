"""Ledger configuration."""

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

ENV_PREFIX = "LEDGER_"


@dataclass(frozen=True)
class LedgerConfig:
    """Limits and defaults applied by the domain services.

    Every field can be overridden through an environment variable named
    ``LEDGER_<FIELD NAME IN UPPER CASE>``, e.g. ``LEDGER_MAX_POSITIONS=50``.
    """

    max_account_depth: int = 6
    max_positions: int = 100
    max_backdate_days: int = 365
    default_currency: str = "EUR"
    description_min_length: int = 3
    description_max_length: int = 500
    reference_max_length: int = 50
    void_reason_min_length: int = 5
    void_reason_max_length: int = 500
    recent_transaction_days: int = 30
    template_name_min_length: int = 3
    template_name_max_length: int = 100

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LedgerConfig":
        """Build a configuration from ``LEDGER_*`` environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            LedgerConfig with overrides applied

        Raises:
            ValueError: If an integer setting is not a valid integer
        """
        if environ is None:
            environ = os.environ

        overrides = {}
        for field in fields(cls):
            raw = environ.get(ENV_PREFIX + field.name.upper())
            if raw is None:
                continue
            if field.type in (int, "int"):
                try:
                    overrides[field.name] = int(raw.strip())
                except ValueError:
                    raise ValueError(
                        f"{ENV_PREFIX}{field.name.upper()} must be an integer, got '{raw}'"
                    )
            else:
                overrides[field.name] = raw.strip()

        return cls(**overrides)


DEFAULT_CONFIG = LedgerConfig()
