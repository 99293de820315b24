"""
Unit Tests for the Progressive Bracket Tax and Surtax

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import dataclasses
import pytest
from decimal import Decimal

from calculators import tax_tables
from calculators.brackets import calculate_bracket_tax, progressive_tax, solidarity_surtax
from calculators.tax_tables import (
    BracketRow,
    SCHEDULE_2025,
    ScheduleError,
    SurtaxSchedule,
    available_tax_years,
    build_brackets,
    get_schedule,
    register_schedule,
    validate_schedule,
)


def marginal_sum_tax(income, brackets):
    """Reference implementation: sum each bracket's slice."""
    tax = Decimal(0)
    lower = Decimal(0)
    for row in brackets:
        upper = row.upper_bound if row.upper_bound is not None else income
        if income <= lower:
            break
        tax += (min(income, upper) - lower) * row.rate
        lower = upper
    return tax


class TestProgressiveTax:
    """Direct lookup against the 2025 table."""

    @pytest.fixture
    def brackets(self):
        return SCHEDULE_2025.brackets

    def test_zero_and_negative_income(self):
        for income in (Decimal(0), Decimal("-500")):
            result = calculate_bracket_tax(income, SCHEDULE_2025)
            assert result.tax == Decimal(0)
            assert result.surtax == Decimal(0)

    def test_first_bracket(self, brackets):
        assert progressive_tax(Decimal("10000"), brackets) == Decimal("1700.00")

    def test_fourth_bracket(self, brackets):
        # 5336.26 + (30000 - 27146) * 0.32
        assert progressive_tax(Decimal("30000"), brackets) == Decimal("6249.54")

    def test_top_bracket(self, brackets):
        # 28105.48 + (100000 - 83696) * 0.48
        assert progressive_tax(Decimal("100000"), brackets) == Decimal("35931.40")

    def test_derived_bases(self, brackets):
        bases = [row.base for row in brackets]
        assert bases == [
            Decimal("2729.86"),
            Decimal("3944.26"),
            Decimal("5336.26"),
            Decimal("9011.78"),
            Decimal("13159.63"),
            Decimal("28105.48"),
            None,
        ]

    def test_continuity_at_every_bound(self, brackets):
        """Tax at an upper bound equals that bracket's base."""
        for row in brackets[:-1]:
            assert progressive_tax(row.upper_bound, brackets) == row.base

    def test_continuity_just_above_bound(self, brackets):
        for row, next_row in zip(brackets[:-1], brackets[1:]):
            above = row.upper_bound + Decimal("0.01")
            assert progressive_tax(above, brackets) == row.base + Decimal("0.01") * next_row.rate

    @pytest.mark.parametrize("income", ["1", "16058", "20000.50", "45000", "83696", "250000", "1000000"])
    def test_direct_lookup_matches_marginal_sum(self, brackets, income):
        income = Decimal(income)
        assert progressive_tax(income, brackets) == marginal_sum_tax(income, brackets)


class TestSolidaritySurtax:

    @pytest.fixture
    def surtax(self):
        return SCHEDULE_2025.surtax

    def test_below_first_threshold(self, surtax):
        assert solidarity_surtax(Decimal("80000"), surtax) == Decimal(0)

    def test_first_tier(self, surtax):
        assert solidarity_surtax(Decimal("100000"), surtax) == Decimal("500.000")

    def test_at_second_threshold(self, surtax):
        assert solidarity_surtax(Decimal("250000"), surtax) == Decimal("4250")

    def test_second_tier(self, surtax):
        # 170000 * 2.5% + 50000 * 5%
        assert solidarity_surtax(Decimal("300000"), surtax) == Decimal("6750")

    def test_bracket_result_total(self):
        result = calculate_bracket_tax(Decimal("100000"), SCHEDULE_2025)
        assert result.tax == Decimal("35931.40")
        assert result.surtax == Decimal("500")
        assert result.total == Decimal("36431.40")


class TestScheduleValidation:
    """Bases must agree with the marginal rates."""

    def test_shipped_schedule_is_valid(self):
        validate_schedule(SCHEDULE_2025)

    def test_inconsistent_base_rejected(self):
        rows = list(SCHEDULE_2025.brackets)
        rows[2] = BracketRow(upper_bound=Decimal("27146"), rate=Decimal("0.25"), base=Decimal("5621.56"))
        broken = dataclasses.replace(SCHEDULE_2025, brackets=tuple(rows))

        with pytest.raises(ScheduleError, match="does not match"):
            validate_schedule(broken)

    def test_bounded_last_row_rejected(self):
        broken = dataclasses.replace(
            SCHEDULE_2025, brackets=build_brackets([("10000", "0.10"), ("20000", "0.20")])
        )
        with pytest.raises(ScheduleError, match="unbounded"):
            validate_schedule(broken)

    def test_decreasing_bounds_rejected(self):
        rows = (
            BracketRow(Decimal("10000"), Decimal("0.10"), Decimal("1000")),
            BracketRow(Decimal("5000"), Decimal("0.20"), Decimal("0")),
            BracketRow(None, Decimal("0.30"), None),
        )
        with pytest.raises(ScheduleError, match="strictly increase"):
            validate_schedule(dataclasses.replace(SCHEDULE_2025, brackets=rows))

    def test_surtax_thresholds_must_increase(self):
        surtax = SurtaxSchedule(Decimal("250000"), Decimal("0.05"), Decimal("80000"), Decimal("0.025"))
        with pytest.raises(ScheduleError, match="surtax"):
            validate_schedule(dataclasses.replace(SCHEDULE_2025, surtax=surtax))


class TestScheduleRegistry:

    @pytest.fixture
    def registry(self, monkeypatch):
        """Registry copy; schedules registered in a test are dropped afterwards."""
        isolated = dict(tax_tables._SCHEDULE_REGISTRY)
        monkeypatch.setattr(tax_tables, "_SCHEDULE_REGISTRY", isolated)
        yield isolated
        isolated.clear()

    def test_default_year(self, monkeypatch):
        monkeypatch.delenv("IRS_TAX_YEAR", raising=False)
        assert get_schedule().tax_year == 2025

    def test_unknown_year(self):
        with pytest.raises(ScheduleError, match="No tax schedule for 1999"):
            get_schedule(1999)

    def test_env_override(self, registry, monkeypatch):
        schedule = dataclasses.replace(SCHEDULE_2025, tax_year=2031, flat_rate=Decimal("0.30"))
        register_schedule(schedule)
        monkeypatch.setenv("IRS_TAX_YEAR", "2031")

        assert get_schedule().flat_rate == Decimal("0.30")
        assert 2031 in available_tax_years()
        assert registry[2031] is schedule

    def test_registration_does_not_outlive_test(self, monkeypatch):
        """Schedules from other tests never reach the shared registry."""
        monkeypatch.delenv("IRS_TAX_YEAR", raising=False)
        assert available_tax_years() == [2025]

    def test_register_validates(self, registry):
        rows = list(SCHEDULE_2025.brackets)
        rows[0] = BracketRow(Decimal("16058"), Decimal("0.17"), Decimal("1"))
        with pytest.raises(ScheduleError):
            register_schedule(dataclasses.replace(SCHEDULE_2025, tax_year=2032, brackets=tuple(rows)))
        assert 2032 not in available_tax_years()
