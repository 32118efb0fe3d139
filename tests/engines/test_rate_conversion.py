"""
Tests for hourly/daily rate conversion.

Covers:
- Explicit rate type toggles in both directions
- In-place edits of rates and allocations
- Normalization of stale hourly figures
- Resource validation
"""

from decimal import Decimal

import pytest

from crm_engines.rate_conversion import (
    HOURS_PER_DAY,
    RateConverter,
    validate_resource,
)
from crm_kernel.domain.project import ProjectResource, RateType
from crm_kernel.exceptions import ResourceValidationError


class TestSwitchRateType:
    """Tests for toggling a resource between hourly and daily."""

    def setup_method(self):
        self.converter = RateConverter()

    def test_daily_to_hourly(self):
        """400/day and 10 days become 50/hour and 80 hours."""
        resource = ProjectResource(
            name="Casey",
            rate_type=RateType.DAILY,
            daily_rate=Decimal("400"),
            days_allocated=Decimal("10"),
        )

        converted = self.converter.switch_rate_type(resource, RateType.HOURLY)

        assert converted.rate_type == RateType.HOURLY
        assert converted.hourly_rate == Decimal("50")
        assert converted.hours_allocated == Decimal("80")

    def test_hourly_to_daily_rounds_days_up(self):
        resource = ProjectResource(
            name="Dana",
            hourly_rate=Decimal("50"),
            hours_allocated=Decimal("20"),
        )

        converted = self.converter.switch_rate_type(resource, RateType.DAILY)

        assert converted.rate_type == RateType.DAILY
        assert converted.daily_rate == Decimal("400")
        assert converted.days_allocated == Decimal("3")

    def test_exact_days_not_rounded(self):
        resource = ProjectResource(name="Dana", hourly_rate=Decimal("50"), hours_allocated=Decimal("16"))

        converted = self.converter.switch_rate_type(resource, RateType.DAILY)

        assert converted.days_allocated == Decimal("2")

    def test_round_trip_restores_hourly_rate(self):
        resource = ProjectResource(name="Dana", hourly_rate=Decimal("62.50"), hours_allocated=Decimal("10"))

        daily = self.converter.switch_rate_type(resource, RateType.DAILY)
        back = self.converter.switch_rate_type(daily, RateType.HOURLY)

        assert back.hourly_rate == Decimal("62.50")
        # 10h -> 2 days -> 16h
        assert back.hours_allocated == Decimal("16")

    def test_same_type_is_noop(self):
        resource = ProjectResource(name="Dana", hourly_rate=Decimal("50"))

        assert self.converter.switch_rate_type(resource, RateType.HOURLY) is resource

    def test_input_not_mutated(self):
        resource = ProjectResource(name="Dana", hourly_rate=Decimal("50"), hours_allocated=Decimal("8"))

        self.converter.switch_rate_type(resource, RateType.DAILY)

        assert resource.rate_type == RateType.HOURLY
        assert resource.daily_rate == Decimal("0")


class TestInPlaceEdits:
    """Tests for editing rates and allocations without a toggle."""

    def setup_method(self):
        self.converter = RateConverter()
        self.daily = ProjectResource(
            name="Casey",
            rate_type=RateType.DAILY,
            daily_rate=Decimal("400"),
            hourly_rate=Decimal("50"),
            days_allocated=Decimal("5"),
            hours_allocated=Decimal("40"),
        )
        self.hourly = ProjectResource(
            name="Dana",
            hourly_rate=Decimal("50"),
            daily_rate=Decimal("400"),
            hours_allocated=Decimal("40"),
        )

    def test_daily_rate_edit_in_daily_mode_updates_hourly(self):
        edited = self.converter.edit_daily_rate(self.daily, Decimal("600"))

        assert edited.daily_rate == Decimal("600")
        assert edited.hourly_rate == Decimal("75")

    def test_daily_rate_edit_in_hourly_mode_leaves_hourly(self):
        edited = self.converter.edit_daily_rate(self.hourly, Decimal("600"))

        assert edited.daily_rate == Decimal("600")
        assert edited.hourly_rate == Decimal("50")

    def test_hourly_rate_edit_leaves_daily_rate(self):
        edited = self.converter.edit_hourly_rate(self.hourly, Decimal("70"))

        assert edited.hourly_rate == Decimal("70")
        assert edited.daily_rate == Decimal("400")

    def test_days_edit_in_daily_mode_updates_hours(self):
        edited = self.converter.edit_days_allocated(self.daily, Decimal("7"))

        assert edited.days_allocated == Decimal("7")
        assert edited.hours_allocated == Decimal("56")

    def test_days_edit_in_hourly_mode_leaves_hours(self):
        edited = self.converter.edit_days_allocated(self.hourly, Decimal("7"))

        assert edited.hours_allocated == Decimal("40")


class TestNormalize:

    def test_stale_daily_resource_is_fixed(self):
        stale = ProjectResource(
            name="Casey",
            rate_type=RateType.DAILY,
            daily_rate=Decimal("480"),
            hourly_rate=Decimal("1"),
            days_allocated=Decimal("3"),
        )

        normalized = RateConverter().normalize(stale)

        assert normalized.hourly_rate == Decimal("480") / HOURS_PER_DAY
        assert normalized.hours_allocated == Decimal("24")

    def test_switched_resource_keeps_allocated_hours(self):
        converter = RateConverter()
        hourly = ProjectResource(name="Dana", hourly_rate=Decimal("50"), hours_allocated=Decimal("100"))

        normalized = converter.normalize(converter.switch_rate_type(hourly, RateType.DAILY))

        assert normalized.days_allocated == Decimal("13")
        assert normalized.hours_allocated == Decimal("100")
        assert normalized.hourly_rate == Decimal("50")

    def test_hourly_resource_untouched(self):
        resource = ProjectResource(name="Dana", hourly_rate=Decimal("50"))
        assert RateConverter().normalize(resource) is resource


class TestValidateResource:

    def test_valid_hourly_resource(self):
        validate_resource(ProjectResource(name="Dana", hourly_rate=Decimal("50"), hours_allocated=Decimal("1")))

    @pytest.mark.parametrize("field,value", [
        ("hourly_rate", Decimal("0")),
        ("hours_allocated", Decimal("-1")),
    ])
    def test_non_positive_hourly_figures(self, field, value):
        values = {"hourly_rate": Decimal("50"), "hours_allocated": Decimal("10"), field: value}
        with pytest.raises(ResourceValidationError) as exc_info:
            validate_resource(ProjectResource(name="Dana", **values))
        assert exc_info.value.field == field

    def test_daily_resource_checks_daily_figures(self):
        resource = ProjectResource(
            name="Casey",
            rate_type=RateType.DAILY,
            daily_rate=Decimal("400"),
            days_allocated=Decimal("0"),
        )
        with pytest.raises(ResourceValidationError) as exc_info:
            validate_resource(resource)
        assert exc_info.value.field == "days_allocated"

    def test_blank_name(self):
        with pytest.raises(ResourceValidationError) as exc_info:
            validate_resource(ProjectResource(name="  ", hourly_rate=Decimal("1"), hours_allocated=Decimal("1")))
        assert exc_info.value.field == "name"
