"""
crm_engines.rate_conversion -- Hourly/daily rate and allocation sync.

Responsibility:
    Keep a resource's hourly and daily figures consistent when the user
    toggles its rate type or edits a rate or allocation in place.  The
    hourly rate is canonical: downstream cost math always reads
    ``hourly_rate``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Returns new
    ``ProjectResource`` instances; the caller persists them.

Invariants enforced:
    - After any operation in DAILY mode, hourly_rate == daily_rate / 8.
    - HOURLY -> DAILY: days_allocated = ceil(hours_allocated / 8),
      daily_rate = hourly_rate * 8.
    - DAILY -> HOURLY: hours_allocated = days_allocated * 8,
      hourly_rate = daily_rate / 8.
    - Editing hourly_rate in HOURLY mode leaves daily_rate untouched until
      the next mode switch.

The 8-hour workday is a fixed constant, not a configuration value.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import ROUND_CEILING, Decimal

from crm_kernel.domain.project import ProjectResource, RateType
from crm_kernel.exceptions import ResourceValidationError
from crm_kernel.logging_config import get_logger

logger = get_logger("engines.rate_conversion")

HOURS_PER_DAY = Decimal("8")

_ZERO = Decimal("0")


class RateConverter:
    """
    Pure converter between hourly and daily resource figures.

    Contract:
        Every method takes a resource and returns a new one; inputs are
        never mutated.
    Guarantees:
        - hourly -> daily -> hourly round-trips ``hourly_rate`` exactly
          (multiplication and division by 8 are exact in Decimal).
        - ``hours_allocated`` may grow on the round trip because days are
          rounded up to whole days.
    """

    def switch_rate_type(
        self,
        resource: ProjectResource,
        rate_type: RateType,
    ) -> ProjectResource:
        """Explicit user toggle of ``rate_type``; a no-op if unchanged."""
        if resource.rate_type == rate_type:
            return resource

        match rate_type:
            case RateType.DAILY:
                converted = replace(
                    resource,
                    rate_type=RateType.DAILY,
                    days_allocated=(resource.hours_allocated / HOURS_PER_DAY)
                    .to_integral_value(rounding=ROUND_CEILING),
                    daily_rate=resource.hourly_rate * HOURS_PER_DAY,
                )
            case RateType.HOURLY:
                converted = replace(
                    resource,
                    rate_type=RateType.HOURLY,
                    hours_allocated=resource.days_allocated * HOURS_PER_DAY,
                    hourly_rate=resource.daily_rate / HOURS_PER_DAY,
                )
            case _:
                raise ValueError(f"Unknown rate type: {rate_type}")

        logger.info("rate_type_switched", extra={
            "resource_name": resource.name,
            "from_rate_type": resource.rate_type.value,
            "to_rate_type": rate_type.value,
            "hourly_rate": str(converted.hourly_rate),
            "daily_rate": str(converted.daily_rate),
            "hours_allocated": str(converted.hours_allocated),
            "days_allocated": str(converted.days_allocated),
        })
        return converted

    def edit_daily_rate(
        self,
        resource: ProjectResource,
        daily_rate: Decimal,
    ) -> ProjectResource:
        """Set ``daily_rate``; in DAILY mode ``hourly_rate`` follows immediately."""
        if resource.rate_type == RateType.DAILY:
            return replace(
                resource,
                daily_rate=daily_rate,
                hourly_rate=daily_rate / HOURS_PER_DAY,
            )
        return replace(resource, daily_rate=daily_rate)

    def edit_hourly_rate(
        self,
        resource: ProjectResource,
        hourly_rate: Decimal,
    ) -> ProjectResource:
        """Set ``hourly_rate`` without touching ``daily_rate``."""
        return replace(resource, hourly_rate=hourly_rate)

    def edit_days_allocated(
        self,
        resource: ProjectResource,
        days_allocated: Decimal,
    ) -> ProjectResource:
        """Set ``days_allocated``; in DAILY mode ``hours_allocated`` follows."""
        if resource.rate_type == RateType.DAILY:
            return replace(
                resource,
                days_allocated=days_allocated,
                hours_allocated=days_allocated * HOURS_PER_DAY,
            )
        return replace(resource, days_allocated=days_allocated)

    def normalize(self, resource: ProjectResource) -> ProjectResource:
        """
        Re-establish the canonical hourly figures of a DAILY resource.

        Used when a resource arrives from a form or store with a daily rate
        but a stale hourly rate.  ``hours_allocated`` is only filled in
        from ``days_allocated`` when no hours were given; allocated hours
        kept across an hourly -> daily switch stay as they are.  HOURLY
        resources are returned unchanged.
        """
        if resource.rate_type != RateType.DAILY:
            return resource
        hours_allocated = resource.hours_allocated
        if hours_allocated == _ZERO:
            hours_allocated = resource.days_allocated * HOURS_PER_DAY
        return replace(
            resource,
            hourly_rate=resource.daily_rate / HOURS_PER_DAY,
            hours_allocated=hours_allocated,
        )


def validate_resource(resource: ProjectResource) -> None:
    """
    Reject a resource edit with a non-positive rate or allocation.

    Checks the figures of the resource's active rate type.

    Raises:
        ResourceValidationError: naming the offending field.
    """
    if not resource.name or not resource.name.strip():
        raise ResourceValidationError("name", resource.name, "Name is required")

    match resource.rate_type:
        case RateType.HOURLY:
            checks = (
                ("hourly_rate", resource.hourly_rate),
                ("hours_allocated", resource.hours_allocated),
            )
        case RateType.DAILY:
            checks = (
                ("daily_rate", resource.daily_rate),
                ("days_allocated", resource.days_allocated),
            )
        case _:
            raise ValueError(f"Unknown rate type: {resource.rate_type}")

    for field_name, value in checks:
        if value is None or value <= _ZERO:
            logger.warning("resource_validation_failed", extra={
                "resource_name": resource.name,
                "field": field_name,
                "value": str(value),
            })
            raise ResourceValidationError(field_name, value)
