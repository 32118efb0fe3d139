"""
crm_engines.budget -- Layered cost-and-margin model of a project budget.

Responsibility:
    Derive every calculated field of a ``ProjectBudget`` from its inputs:
    resources, expenses, total revenue and the contingency / overhead
    percentage knobs.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import crm_kernel.domain and sibling engine modules.

Invariants enforced:
    - Determinism: identical inputs always produce identical outputs.
    - total_cost == total_resource_cost + total_expense_cost
      + contingency_cost + overhead_cost.
    - margin_percentage is 0 whenever total_revenue is not positive.
    - Negative margins are valid output (an underwater project), never an
      error.  Empty resource and expense lists yield a zero subtotal.

Formulas:
    resource cost     = hourly_rate * hours_allocated   (HOURLY)
                      = daily_rate  * days_allocated    (DAILY)
    subtotal          = total_resource_cost + total_expense_cost
    contingency_cost  = subtotal * contingency_percentage / 100
    overhead_cost     = subtotal * overhead_percentage / 100
    total_cost        = subtotal + contingency_cost + overhead_cost
    gross_margin      = total_revenue - total_cost
    margin_percentage = gross_margin / total_revenue * 100

Usage:
    from crm_engines.budget import BudgetCalculator

    budget = BudgetCalculator().calculate(
        total_revenue=Decimal("10000"),
        resources=(dev,),
        expenses=(licence,),
        contingency_percentage=Decimal("10"),
        overhead_percentage=Decimal("15"),
        currency="USD",
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from crm_engines.tracer import traced_engine
from crm_kernel.domain.project import (
    ProjectBudget,
    ProjectExpense,
    ProjectResource,
    RateType,
)
from crm_kernel.logging_config import get_logger

logger = get_logger("engines.budget")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

# Inputs a caller may change through ``recalculate``.
_INPUT_FIELDS = frozenset({
    "total_revenue",
    "resources",
    "expenses",
    "contingency_percentage",
    "overhead_percentage",
    "currency",
})


def resource_cost(resource: ProjectResource) -> Decimal:
    """Planned cost of one resource in its own rate unit."""
    match resource.rate_type:
        case RateType.HOURLY:
            return resource.hourly_rate * resource.hours_allocated
        case RateType.DAILY:
            return resource.daily_rate * resource.days_allocated
        case _:
            raise ValueError(f"Unknown rate type: {resource.rate_type}")


class BudgetCalculator:
    """
    Pure function calculator for project budgets.

    Contract:
        No I/O, no database access, fully deterministic.
    Guarantees:
        - Returns a new ``ProjectBudget`` with every derived field populated.
        - Never raises on negative margins or empty collections.
    Non-goals:
        - Does not validate that revenue or percentages are non-negative;
          ``ProjectService`` does that before calling.
        - Does not convert currencies; ``currency`` is carried through.
    """

    @traced_engine(
        "budget",
        "1.0",
        fingerprint_fields=(
            "total_revenue",
            "resources",
            "expenses",
            "contingency_percentage",
            "overhead_percentage",
        ),
    )
    def calculate(
        self,
        *,
        total_revenue: Decimal,
        resources: Sequence[ProjectResource],
        expenses: Sequence[ProjectExpense],
        contingency_percentage: Decimal,
        overhead_percentage: Decimal,
        currency: str,
    ) -> ProjectBudget:
        """
        Derive the full cost and margin breakdown.

        Args:
            total_revenue: Contracted revenue of the project.
            resources: Allocated people and contractors.
            expenses: Planned non-labor costs.
            contingency_percentage: Risk buffer on the subtotal, in percent.
            overhead_percentage: Indirect cost surcharge on the subtotal, in percent.
            currency: Currency tag carried onto the result.

        Returns:
            ProjectBudget with derived fields populated.
        """
        logger.info("budget_calculation_started", extra={
            "total_revenue": str(total_revenue),
            "resource_count": len(resources),
            "expense_count": len(expenses),
            "contingency_percentage": str(contingency_percentage),
            "overhead_percentage": str(overhead_percentage),
            "currency": currency,
        })

        total_resource_cost = sum((resource_cost(r) for r in resources), _ZERO)
        total_expense_cost = sum((e.planned_cost for e in expenses), _ZERO)

        subtotal = total_resource_cost + total_expense_cost
        contingency_cost = subtotal * contingency_percentage / _HUNDRED
        overhead_cost = subtotal * overhead_percentage / _HUNDRED
        total_cost = subtotal + contingency_cost + overhead_cost

        gross_margin = total_revenue - total_cost
        if total_revenue > _ZERO:
            margin_percentage = gross_margin / total_revenue * _HUNDRED
        else:
            margin_percentage = _ZERO

        if gross_margin < _ZERO:
            logger.warning("budget_negative_margin", extra={
                "gross_margin": str(gross_margin),
                "total_revenue": str(total_revenue),
                "total_cost": str(total_cost),
            })

        logger.info("budget_calculated", extra={
            "total_resource_cost": str(total_resource_cost),
            "total_expense_cost": str(total_expense_cost),
            "contingency_cost": str(contingency_cost),
            "overhead_cost": str(overhead_cost),
            "total_cost": str(total_cost),
            "gross_margin": str(gross_margin),
            "margin_percentage": str(margin_percentage),
        })

        return ProjectBudget(
            total_revenue=total_revenue,
            contingency_percentage=contingency_percentage,
            overhead_percentage=overhead_percentage,
            currency=currency,
            resources=tuple(resources),
            expenses=tuple(expenses),
            total_resource_cost=total_resource_cost,
            total_expense_cost=total_expense_cost,
            contingency_cost=contingency_cost,
            overhead_cost=overhead_cost,
            total_cost=total_cost,
            gross_margin=gross_margin,
            margin_percentage=margin_percentage,
        )

    def recalculate(self, budget: ProjectBudget, **changes) -> ProjectBudget:
        """
        Apply input changes to ``budget`` and re-derive every calculated field.

        Only input fields may be changed; passing a derived field such as
        ``total_cost`` raises ``ValueError``.
        """
        unknown = set(changes) - _INPUT_FIELDS
        if unknown:
            raise ValueError(
                f"Cannot set derived or unknown budget fields: {sorted(unknown)}"
            )
        inputs = {name: getattr(budget, name) for name in _INPUT_FIELDS}
        inputs.update(changes)
        return self.calculate(**inputs)


def empty_budget(
    calculator: BudgetCalculator,
    total_revenue: Decimal,
    currency: str,
    contingency_percentage: Decimal,
    overhead_percentage: Decimal,
) -> ProjectBudget:
    """Budget with no resources or expenses yet (e.g. freshly converted deal)."""
    return calculator.calculate(
        total_revenue=total_revenue,
        resources=(),
        expenses=(),
        contingency_percentage=contingency_percentage,
        overhead_percentage=overhead_percentage,
        currency=currency,
    )

