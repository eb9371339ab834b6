"""
Tests for recurring cash flows, CCA, portfolio aggregation and reports.
"""

import logging
import pytest
from datetime import date, datetime, timezone

from backoffice.calculations.amortization import calculate_mortgage_period
from backoffice.calculations.depreciation import calculate_cca, calculate_ucc_base
from backoffice.calculations.fiscal_report import (
    UNCATEGORIZED,
    build_fiscal_report,
    collation_key,
)
from backoffice.calculations.models import (
    DepreciationSetting,
    Frequency,
    Invoice,
    LoanTerms,
    PropertyRecord,
    PropertyUnit,
    RecurringCashFlowEvent,
)
from backoffice.calculations.numbers import sum_currency
from backoffice.calculations.portfolio import (
    build_portfolio_summary,
    loan_to_value,
    summarize_property,
    weighted_average_rate,
)
from backoffice.calculations.recurrence import count_occurrences, parse_frequency
from backoffice.calculations.summary_table import SUMMARY_TABLE_COLUMNS, build_summary_table


def event(amount, frequency, start, end=None, label="Event", category=None):
    return RecurringCashFlowEvent(
        label=label,
        amount=amount,
        frequency=frequency,
        start_date=start,
        end_date=end,
        category=category,
    )


def mortgage(principal, rate, start=date(2024, 1, 1)):
    return LoanTerms(
        principal=principal,
        annual_rate=rate,
        term_months=60,
        amortization_months=300,
        start_date=start,
        payment_frequency=12,
    )


class TestParseFrequency:
    """Test stored frequency codes."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("monthly", Frequency.monthly),
            ("MONTHLY", Frequency.monthly),
            ("mensuel", Frequency.monthly),
            ("weekly", Frequency.weekly),
            ("trimestriel", Frequency.quarterly),
            ("annual", Frequency.annual),
            ("yearly", Frequency.annual),
            ("one-time", Frequency.one_time),
            (None, Frequency.one_time),
        ],
    )
    def test_known_codes(self, code, expected):
        assert parse_frequency(code) == expected

    def test_unknown_code(self):
        assert parse_frequency("fortnightly") is None


class TestCountOccurrences:
    """Test occurrences of recurring events within a calendar year."""

    def test_monthly_full_year(self):
        assert count_occurrences(event(100, Frequency.monthly, date(2024, 1, 15)), 2024) == 12

    def test_monthly_with_end_date(self):
        e = event(100, Frequency.monthly, date(2024, 1, 15), end=date(2024, 6, 30))
        assert count_occurrences(e, 2024) == 6

    def test_monthly_from_month_end(self):
        """Every month has an occurrence even when the start day is the 31st."""
        assert count_occurrences(event(100, Frequency.monthly, date(2024, 1, 31)), 2024) == 12

    def test_month_end_occurrence_in_february(self):
        """Jan 31 and Feb 29 both fall before March 1."""
        e = event(100, Frequency.monthly, date(2024, 1, 31), end=date(2024, 3, 1))
        assert count_occurrences(e, 2024) == 2

    def test_weekly_short_window(self):
        """Jan 1, 8, 15 and 22; the 29th is past the end date."""
        e = event(50, Frequency.weekly, date(2024, 1, 1), end=date(2024, 1, 28))
        assert count_occurrences(e, 2024) == 4

    def test_weekly_started_previous_year(self):
        """First occurrence inside the year is Jan 4, last is Dec 26."""
        assert count_occurrences(event(50, Frequency.weekly, date(2023, 12, 28)), 2024) == 52

    def test_quarterly_started_previous_year(self):
        e = event(500, Frequency.quarterly, date(2023, 11, 15))
        assert count_occurrences(e, 2024) == 4

    def test_annual(self):
        e = event(1000, Frequency.annual, date(2020, 3, 1))
        assert count_occurrences(e, 2024) == 1
        assert count_occurrences(e, 2019) == 0

    def test_one_time(self):
        e = event(400, Frequency.one_time, date(2024, 6, 1))
        assert count_occurrences(e, 2024) == 1
        assert count_occurrences(e, 2025) == 0

    def test_outside_window(self):
        assert count_occurrences(event(100, Frequency.monthly, date(2025, 1, 1)), 2024) == 0
        e = event(100, Frequency.monthly, date(2022, 1, 1), end=date(2023, 12, 31))
        assert count_occurrences(e, 2024) == 0

    def test_window_boundaries_are_inclusive(self):
        assert count_occurrences(event(100, Frequency.one_time, date(2024, 12, 31)), 2024) == 1
        e = event(100, Frequency.monthly, date(2023, 1, 1), end=date(2024, 1, 1))
        assert count_occurrences(e, 2024) == 1

    def test_unknown_frequency(self):
        assert count_occurrences(event(100, None, date(2024, 1, 1)), 2024) == 0

    def test_iteration_cap_returns_partial_count(self, caplog):
        e = event(100, Frequency.monthly, date(2024, 1, 1))
        with caplog.at_level(logging.WARNING):
            assert count_occurrences(e, 2024, max_iterations=5) == 5
        assert "stopped early" in caplog.text


class TestCCA:
    """Test capital cost allowance."""

    @pytest.fixture
    def setting(self):
        return DepreciationSetting(
            class_code="1", cca_rate=0.04, opening_ucc=100000, additions=10000
        )

    def test_ucc_base_applies_half_year_rule(self, setting):
        assert calculate_ucc_base(setting) == 105000

    def test_claim_limited_by_rate(self, setting):
        assert calculate_cca(setting, 10000) == pytest.approx(4200)

    def test_claim_limited_by_income(self, setting):
        assert calculate_cca(setting, 4000) == 4000

    def test_no_claim_on_loss(self, setting):
        assert calculate_cca(setting, 0) == 0
        assert calculate_cca(setting, -500) == 0

    def test_missing_or_zero_rate(self):
        assert calculate_cca(None, 10000) == 0
        assert calculate_cca(DepreciationSetting(class_code="8", cca_rate=0), 10000) == 0

    def test_dispositions_exceeding_ucc(self):
        setting = DepreciationSetting(
            class_code="1", cca_rate=0.04, opening_ucc=1000, dispositions=5000
        )
        assert calculate_ucc_base(setting) == 0
        assert calculate_cca(setting, 10000) == 0


class TestPropertySummary:
    """Test per-property KPIs."""

    def test_unleveraged_property(self):
        record = PropertyRecord(
            id="p1",
            name="Duplex",
            current_value=500000,
            revenues=[
                event(1500, Frequency.monthly, date(2024, 1, 1)),
                event(1200, Frequency.monthly, date(2024, 1, 1)),
            ],
            expenses=[event(300, Frequency.monthly, date(2024, 1, 1))],
            invoices=[Invoice(amount=100, tax1=5, tax2=10)],
            units=[
                PropertyUnit(label="1", square_feet=800, rent_expected=1000),
                PropertyUnit(label="2", rent_expected=1200.5),
            ],
            depreciation=DepreciationSetting(
                class_code="1", cca_rate=0.04, opening_ucc=100000, additions=10000
            ),
        )
        summary = summarize_property(record, as_of=date(2024, 6, 1))

        assert summary.gross_income == 2700
        assert summary.operating_expenses == 415
        assert summary.debt_service == 0
        assert summary.net_cashflow == 2285
        assert summary.cca == 2285
        assert summary.equity == 500000
        assert summary.units_count == 2
        assert summary.rent_potential_monthly == 2200.5
        assert summary.square_feet_total == 800
        assert summary.mortgage_count == 0
        assert summary.average_mortgage_rate is None
        assert summary.loan_to_value is None

    def test_mortgage_figures(self):
        terms = mortgage(100000, 0.05)
        as_of = date(2024, 6, 1)
        record = PropertyRecord(
            id="p2",
            name="Triplex",
            current_value=400000,
            revenues=[event(3000, Frequency.monthly, date(2024, 1, 1))],
            mortgages=[terms],
        )
        period = calculate_mortgage_period(terms, as_of=as_of)
        summary = summarize_property(record, as_of=as_of)

        assert summary.debt_service == period.payment
        assert summary.interest_portion == period.interest
        assert summary.principal_portion == period.principal
        assert summary.outstanding_debt == period.outstanding_balance
        assert summary.net_cashflow == round(3000 - period.payment, 2)
        assert summary.equity == round(400000 - period.outstanding_balance, 2)
        assert summary.average_mortgage_rate == pytest.approx(0.05)
        assert summary.loan_to_value == pytest.approx(period.outstanding_balance / 400000)

    def test_weighted_average_rate(self):
        first = mortgage(100000, 0.04)
        second = mortgage(50000, 0.06)
        as_of = date(2024, 2, 1)
        record = PropertyRecord(id="p3", name="Plex", mortgages=[first, second])

        b1 = calculate_mortgage_period(first, as_of=as_of).outstanding_balance
        b2 = calculate_mortgage_period(second, as_of=as_of).outstanding_balance
        summary = summarize_property(record, as_of=as_of)

        assert b1 < 100000 and b2 < 50000
        assert summary.average_mortgage_rate == pytest.approx((0.04 * b1 + 0.06 * b2) / (b1 + b2))
        assert 0.04 < summary.average_mortgage_rate < 0.06

    def test_helpers(self):
        assert weighted_average_rate([0.05], [0]) is None
        assert weighted_average_rate([], []) is None
        assert loan_to_value(0, 100000) is None
        assert loan_to_value(50000, 0) is None
        assert loan_to_value(50000, 200000) == 0.25


class TestPortfolioSummary:
    """Test portfolio reduction."""

    @pytest.fixture
    def records(self):
        return [
            PropertyRecord(
                id="a",
                name="Alpha",
                current_value=300000,
                revenues=[event(2000.333, Frequency.monthly, date(2024, 1, 1))],
                expenses=[event(250.555, Frequency.monthly, date(2024, 1, 1))],
                mortgages=[mortgage(200000, 0.045)],
                units=[PropertyUnit(label="1", square_feet=700, rent_expected=1000)],
            ),
            PropertyRecord(
                id="b",
                name="Beta",
                current_value=200000,
                revenues=[event(1500, Frequency.monthly, date(2024, 1, 1))],
                mortgages=[mortgage(120000, 0.055)],
            ),
        ]

    def test_totals_are_sum_of_rows(self, records):
        summary = build_portfolio_summary(records, as_of=date(2024, 7, 1))
        rows = summary.properties
        totals = summary.totals

        assert [row.property_name for row in rows] == ["Alpha", "Beta"]
        for key in (
            "gross_income",
            "operating_expenses",
            "debt_service",
            "interest_portion",
            "principal_portion",
            "net_cashflow",
            "cca",
            "equity",
            "outstanding_debt",
        ):
            assert getattr(totals, key) == sum_currency(getattr(row, key) for row in rows), key
        assert totals.units_count == 1
        assert totals.mortgage_count == 2
        assert totals.loan_to_value == pytest.approx(totals.outstanding_debt / 500000)
        assert 0.045 < totals.average_mortgage_rate < 0.055

    def test_row_amounts_are_rounded(self, records):
        row = build_portfolio_summary(records, as_of=date(2024, 7, 1)).properties[0]
        assert row.gross_income == 2000.33
        assert row.operating_expenses == 250.56

    def test_failing_property_degrades_to_neutral_row(self, records, caplog):
        broken = PropertyRecord(
            id="c",
            name="Broken",
            current_value=100000,
            mortgages=[mortgage(50000, 0.05, start=None)],
        )
        with caplog.at_level(logging.WARNING):
            summary = build_portfolio_summary(records + [broken], as_of=date(2024, 7, 1))

        assert len(summary.properties) == 3
        neutral = summary.properties[2]
        assert neutral.property_id == "c"
        assert neutral.gross_income == 0
        assert neutral.outstanding_debt == 0
        assert neutral.average_mortgage_rate is None
        assert "could not be summarized" in caplog.text

        healthy = build_portfolio_summary(records, as_of=date(2024, 7, 1))
        assert summary.totals == healthy.totals

    def test_empty_portfolio(self):
        summary = build_portfolio_summary([], as_of=date(2024, 1, 1))
        assert summary.properties == []
        assert summary.totals.gross_income == 0
        assert summary.totals.average_mortgage_rate is None
        assert summary.totals.loan_to_value is None

    def test_to_dict(self, records):
        data = build_portfolio_summary(records, as_of=date(2024, 7, 1)).to_dict()
        assert data["properties"][0]["property_id"] == "a"
        assert "net_cashflow" in data["totals"]


class TestSummaryTable:
    def test_rows_and_totals(self):
        records = [
            PropertyRecord(
                id="a",
                name="Alpha",
                revenues=[event(1000, Frequency.monthly, date(2024, 1, 1))],
            ),
            PropertyRecord(
                id="b",
                name="Beta",
                revenues=[event(500, Frequency.monthly, date(2024, 1, 1))],
            ),
        ]
        table = build_summary_table(build_portfolio_summary(records, as_of=date(2024, 2, 1)))

        assert table["headers"] == [title for _, title in SUMMARY_TABLE_COLUMNS]
        assert table["headers"][0] == "Property"
        assert [row["label"] for row in table["rows"]] == ["Alpha", "Beta"]
        assert table["totals"]["label"] == "TOTAL"
        assert table["totals"]["gross_income"] == 1500
        assert set(table["totals"]) == {key for key, _ in SUMMARY_TABLE_COLUMNS}


class TestFiscalReport:
    """Test the yearly expense report."""

    @pytest.fixture
    def properties(self):
        return [
            PropertyRecord(
                id="p2",
                name="Bloc Fiscal 2",
                expenses=[
                    event(50, Frequency.weekly, date(2024, 1, 1), end=date(2024, 1, 28),
                          label="Déneigement", category="Entretien"),
                    event(400, Frequency.one_time, date(2024, 5, 1), label="Inspection"),
                ],
            ),
            PropertyRecord(
                id="p1",
                name="Bloc Fiscal",
                expenses=[
                    event(100, Frequency.monthly, date(2024, 1, 1),
                          label="Taxes municipales", category="Taxes"),
                    event(1000, Frequency.annual, date(2024, 3, 1),
                          label="Assurance", category="Assurances"),
                ],
            ),
            PropertyRecord(
                id="p3",
                name="Empty",
                expenses=[event(100, Frequency.monthly, date(2025, 1, 1))],
            ),
        ]

    def test_totals_roll_up(self, properties):
        generated_at = datetime(2024, 12, 31, tzinfo=timezone.utc)
        report = build_fiscal_report(properties, 2024, generated_at=generated_at)

        assert report.year == 2024
        assert report.generated_at == generated_at
        assert report.total_amount == 2800
        assert [p.property_name for p in report.properties] == ["Bloc Fiscal", "Bloc Fiscal 2"]

        first, second = report.properties
        assert first.total_amount == 2200
        assert [(c.category, c.total_amount) for c in first.categories] == [
            ("Assurances", 1000),
            ("Taxes", 1200),
        ]
        assert first.categories[1].items[0].occurrences == 12

        assert second.total_amount == 600
        assert [(c.category, c.total_amount) for c in second.categories] == [
            ("Entretien", 200),
            (UNCATEGORIZED, 400),
        ]
        weekly = second.categories[0].items[0]
        assert weekly.occurrences == 4
        assert weekly.unit_amount == 50

    def test_skips_ineligible_events(self):
        record = PropertyRecord(
            id="p",
            name="Skipped",
            expenses=[
                event(0, Frequency.monthly, date(2024, 1, 1)),
                event(-10, Frequency.monthly, date(2024, 1, 1)),
                event(100, None, date(2024, 1, 1)),
                event(100, Frequency.monthly, None),
            ],
        )
        report = build_fiscal_report([record], 2024)
        assert report.properties == []
        assert report.total_amount == 0

    def test_categories_merge_ignoring_case(self):
        record = PropertyRecord(
            id="p",
            name="Merge",
            expenses=[
                event(10, Frequency.one_time, date(2024, 2, 1), label="B", category="Taxes"),
                event(20, Frequency.one_time, date(2024, 3, 1), label="A", category=" taxes "),
                event(5, Frequency.one_time, date(2024, 4, 1), label="C", category="  "),
            ],
        )
        report = build_fiscal_report([record], 2024)
        categories = report.properties[0].categories

        assert [c.category for c in categories] == ["Taxes", UNCATEGORIZED]
        assert [item.label for item in categories[0].items] == ["A", "B"]
        assert categories[0].total_amount == 30

    def test_sorting_ignores_accents_and_case(self):
        names = ["Entretien", "Électricité", "assurance"]
        assert sorted(names, key=collation_key) == ["assurance", "Électricité", "Entretien"]

    def test_to_dict(self, properties):
        data = build_fiscal_report(properties, 2024).to_dict()
        item = data["properties"][0]["categories"][0]["items"][0]
        assert item["frequency"] == "annual"
        assert item["start_date"] == "2024-03-01"
        assert item["end_date"] is None
