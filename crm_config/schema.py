"""
Configuration schema.

Frozen dataclasses the YAML configuration set is parsed into.  Values are
already typed (``Decimal`` percentages, ``int`` pool sizes); nothing
downstream re-parses strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class BudgetDefaults:
    """Budget knobs applied to projects created from deals."""

    currency: str = "USD"
    contingency_percentage: Decimal = Decimal("10")
    overhead_percentage: Decimal = Decimal("15")
    project_length_days: int = 90


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite:///crm.db"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class CrmConfig:
    """
    The validated runtime configuration.

    ``checksum`` is the SHA-256 of the canonical JSON form of the source
    YAML, so two configs with the same checksum were loaded from
    identical data.
    """

    config_id: str
    version: int
    budget: BudgetDefaults = field(default_factory=BudgetDefaults)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    checksum: str = ""
