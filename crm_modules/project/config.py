"""Project module configuration."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from crm_config.schema import CrmConfig


@dataclass(frozen=True)
class ProjectConfig:
    """Defaults applied when a project is created from a deal."""

    default_currency: str = "USD"
    default_contingency_percentage: Decimal = Decimal("10")
    default_overhead_percentage: Decimal = Decimal("15")
    default_project_length_days: int = 90

    @classmethod
    def from_crm_config(cls, config: CrmConfig) -> ProjectConfig:
        return cls(
            default_currency=config.budget.currency,
            default_contingency_percentage=config.budget.contingency_percentage,
            default_overhead_percentage=config.budget.overhead_percentage,
            default_project_length_days=config.budget.project_length_days,
        )
