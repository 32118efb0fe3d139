"""
crm_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files directly.

Architecture position:
    Configuration -- sits above ``crm_kernel`` and below ``crm_modules``
    and ``scripts``.  The kernel and the engines MUST NEVER import from
    ``crm_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_active_config()``.
    - Every returned ``CrmConfig`` has passed validation.
    - Same YAML always produces the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ConfigurationError`` -- a value failed validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``CRM_CONFIG_TRACE`` log entry with the config id, version and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from crm_config.loader import load_yaml_file, parse_config
from crm_config.schema import (
    BudgetDefaults,
    CrmConfig,
    DatabaseSettings,
    LoggingSettings,
)

_logger = logging.getLogger("crm_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
_DEFAULT_CONFIG_NAME = "default"


def get_active_config(
    config_dir: Path | None = None,
    config_name: str = _DEFAULT_CONFIG_NAME,
) -> CrmConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_dir: Override path to the configuration sets directory.
            Defaults to crm_config/sets/.
        config_name: File stem of the set to load (``<name>.yaml``).

    Returns:
        Frozen, validated CrmConfig.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ConfigurationError: If a value fails validation.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{config_name}.yaml"

    config = parse_config(load_yaml_file(path))

    _logger.info(
        "CRM_CONFIG_TRACE",
        extra={
            "trace_type": "CRM_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
        },
    )
    return config


__all__ = [
    "BudgetDefaults",
    "CrmConfig",
    "DatabaseSettings",
    "LoggingSettings",
    "get_active_config",
]
