"""
Configuration Loader (``crm_config.loader``).

Responsibility
--------------
Load a YAML configuration file and parse it into the typed
``crm_config.schema`` dataclasses.  The single public entry point for
runtime config is ``crm_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Percentages are parsed to ``Decimal`` from their string form; floats in
  the YAML are rejected.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid value  -> ``ConfigurationError`` naming the offending key.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from crm_config.schema import (
    BudgetDefaults,
    CrmConfig,
    DatabaseSettings,
    LoggingSettings,
)
from crm_kernel.db.types import is_currency_code
from crm_kernel.exceptions import ConfigurationError

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 checksum of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, float):
        raise ConfigurationError(key, "quote decimal values so they are not read as float")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ConfigurationError(key, f"not a decimal: {value!r}") from exc


def parse_percentage(key: str, value: Any) -> Decimal:
    percentage = parse_decimal(key, value)
    if percentage < 0 or percentage > 100:
        raise ConfigurationError(key, "must be between 0 and 100")
    return percentage


def parse_positive_int(key: str, value: Any, allow_zero: bool = False) -> int:
    minimum = 0 if allow_zero else 1
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigurationError(key, f"must be an integer >= {minimum}, got {value!r}")
    return value


def parse_budget(data: dict[str, Any]) -> BudgetDefaults:
    defaults = BudgetDefaults()
    currency = data.get("currency", defaults.currency)
    if not is_currency_code(currency):
        raise ConfigurationError("budget.currency", f"not a currency code: {currency!r}")
    return BudgetDefaults(
        currency=currency,
        contingency_percentage=parse_percentage(
            "budget.contingency_percentage",
            data.get("contingency_percentage", defaults.contingency_percentage),
        ),
        overhead_percentage=parse_percentage(
            "budget.overhead_percentage",
            data.get("overhead_percentage", defaults.overhead_percentage),
        ),
        project_length_days=parse_positive_int(
            "budget.project_length_days",
            data.get("project_length_days", defaults.project_length_days),
        ),
    )


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    defaults = DatabaseSettings()
    url = data.get("url", defaults.url)
    if not isinstance(url, str) or not url:
        raise ConfigurationError("database.url", "must be a non-empty string")
    return DatabaseSettings(
        url=url,
        echo=bool(data.get("echo", defaults.echo)),
        pool_size=parse_positive_int("database.pool_size", data.get("pool_size", defaults.pool_size)),
        max_overflow=parse_positive_int(
            "database.max_overflow",
            data.get("max_overflow", defaults.max_overflow),
            allow_zero=True,
        ),
    )


def parse_logging(data: dict[str, Any]) -> LoggingSettings:
    level = str(data.get("level", LoggingSettings().level)).upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError("logging.level", f"unknown level {level!r}")
    return LoggingSettings(level=level)


def parse_config(data: dict[str, Any]) -> CrmConfig:
    """
    Parse a full configuration mapping.

    Raises:
        ConfigurationError: on a missing ``config_id`` or any invalid value.
    """
    if not data.get("config_id"):
        raise ConfigurationError("config_id", "is required")
    return CrmConfig(
        config_id=str(data["config_id"]),
        version=parse_positive_int("version", data.get("version", 1)),
        budget=parse_budget(data.get("budget") or {}),
        database=parse_database(data.get("database") or {}),
        logging=parse_logging(data.get("logging") or {}),
        checksum=compute_checksum(data),
    )
