"""
Unit tests for plantops.analysis.aggregation.

Tests cover:
- Parameter selection
- Daily averaging of hourly slots
- Compliance rows on a fixed date axis
- Monthly averages
- Daily and monthly QAF
"""

import pytest
from datetime import date

from plantops.analysis.aggregation import (
    ComplianceRow,
    build_analysis_table,
    compute_compliance_rows,
    compute_daily_averages,
    compute_daily_qaf,
    compute_daily_reading_stats,
    compute_monthly_averages,
    compute_monthly_qaf,
    qaf_status,
    readings_frame,
    select_parameters,
)
from plantops.analysis.models import AnalyticsThresholds
from plantops.core.models import Bounds, HourlyReading, MaterialType, Parameter

D1 = date(2024, 3, 1)
D2 = date(2024, 3, 2)
D3 = date(2024, 3, 3)


@pytest.fixture
def parameters():
    return [
        Parameter(id="p1", name="Fineness", category="Tonasa 4", unit="Cement Mill",
                  min_value=10.0, max_value=20.0, opc_min_value=12.0, opc_max_value=18.0),
        Parameter(id="p2", name="Residue", category="Tonasa 4", unit="Cement Mill",
                  min_value=0.0, max_value=5.0),
        Parameter(id="p3", name="Feed", category="Tonasa 4", unit="Raw Mill",
                  min_value=100.0, max_value=200.0),
    ]


class TestSelectParameters:
    """Test category/unit selection."""

    def test_selects_matching_unit(self, parameters):
        selected = select_parameters(parameters, "Tonasa 4", "Cement Mill")
        assert [p.id for p in selected] == ["p1", "p2"]

    def test_incomplete_selection_is_empty(self, parameters):
        assert select_parameters(parameters, "Tonasa 4", None) == []
        assert select_parameters(parameters, "", "Cement Mill") == []


class TestDailyAverages:
    """Test averaging of hourly slots."""

    def test_missing_slots_are_excluded(self):
        """Slots [10, 12, None, 14] average to 12, not 9."""
        reading = HourlyReading("Budi", "p1", D1, hours=(10, 12, None, 14))
        assert compute_daily_averages([reading]) == {("p1", D1): pytest.approx(12.0)}

    def test_malformed_slots_are_filtered(self):
        reading = HourlyReading("Budi", "p1", D1, hours=("abc", float("nan"), "5", float("inf")))
        assert compute_daily_averages([reading]) == {("p1", D1): pytest.approx(5.0)}

    def test_operators_are_pooled(self):
        readings = [
            HourlyReading("Budi", "p1", D1, hours=(10, 10)),
            HourlyReading("Sari", "p1", D1, hours=(16,)),
        ]
        assert compute_daily_averages(readings)[("p1", D1)] == pytest.approx(12.0)

    def test_day_without_valid_slots_is_absent(self):
        reading = HourlyReading("Budi", "p1", D1, hours=(None, "x"))
        assert compute_daily_averages([reading]) == {}

    def test_parameter_filter(self):
        readings = [
            HourlyReading("Budi", "p1", D1, hours=(1,)),
            HourlyReading("Budi", "p9", D1, hours=(2,)),
        ]
        assert list(compute_daily_averages(readings, ["p1"])) == [("p1", D1)]

    def test_readings_frame_has_one_row_per_valid_slot(self):
        reading = HourlyReading("Budi", "p1", D1, hours=(1, None, 3))
        df = readings_frame([reading])
        assert list(df["hour"]) == [1, 3]
        assert list(df["value"]) == [1.0, 3.0]


class TestDailyReadingStats:
    """Test single reading statistics."""

    def test_stats(self):
        stats = compute_daily_reading_stats(HourlyReading("Budi", "p1", D1, hours=(10, 12, None, 14)))
        assert stats.total == pytest.approx(36.0)
        assert stats.avg == pytest.approx(12.0)
        assert stats.min == 10.0
        assert stats.max == 14.0
        assert stats.count == 3

    def test_empty_reading(self):
        assert compute_daily_reading_stats(HourlyReading("Budi", "p1", D1)) is None


class TestComplianceRows:
    """Test daily compliance rows."""

    def test_rows_for_every_date(self, parameters):
        readings = [HourlyReading("Budi", "p1", D1, hours=(15,))]
        rows = compute_compliance_rows(parameters[:1], readings, dates=[D1, D2])
        assert len(rows) == 2
        assert rows[0].value == pytest.approx(15.0)
        assert rows[0].percentage == pytest.approx(50.0)
        # No data is None, never 0
        assert rows[1].value is None
        assert rows[1].percentage is None

    def test_material_context(self, parameters):
        readings = [HourlyReading("Budi", "p1", D1, hours=(19,))]
        rows = compute_compliance_rows(parameters[:1], readings, material=MaterialType.OPC)
        assert rows[0].percentage == pytest.approx(116.67, abs=0.01)
        assert rows[0].in_target is False

    def test_invalid_range_gives_undefined_percentage(self):
        param = Parameter(id="p", name="Broken", min_value=5.0, max_value=5.0)
        rows = compute_compliance_rows([param], [HourlyReading("Budi", "p", D1, hours=(5,))])
        assert rows[0].value == pytest.approx(5.0)
        assert rows[0].percentage is None

    def test_nameless_parameters_are_skipped(self):
        param = Parameter(id="p", name="", min_value=0.0, max_value=1.0)
        assert compute_compliance_rows([param], []) == []


class TestMonthlyAverages:
    """Test per-parameter monthly averages."""

    def test_only_defined_days_count(self):
        rows = [
            ComplianceRow("p1", D1, 15.0, 50.0),
            ComplianceRow("p1", D2, None, None),
            ComplianceRow("p1", D3, 20.0, 100.0),
        ]
        monthly = compute_monthly_averages(rows)["p1"]
        assert monthly.percentage == pytest.approx(75.0)
        assert monthly.raw == pytest.approx(17.5)
        assert monthly.days_with_value == 2

    def test_no_data_is_none(self):
        monthly = compute_monthly_averages([ComplianceRow("p1", D1, None, None)])["p1"]
        assert monthly.percentage is None
        assert monthly.raw is None
        assert monthly.days_with_value == 0


class TestQAF:
    """Test daily and monthly Quality Achievement Factor."""

    @pytest.fixture
    def uneven_rows(self):
        # Day 1: 1 of 1 in target. Day 2: 1 of 3 in target.
        return [
            ComplianceRow("p1", D1, 15.0, 50.0),
            ComplianceRow("p1", D2, 15.0, 50.0),
            ComplianceRow("p2", D2, 30.0, 150.0),
            ComplianceRow("p3", D2, 1.0, -10.0),
            ComplianceRow("p2", D1, None, None),
        ]

    def test_daily_qaf(self, uneven_rows):
        daily = compute_daily_qaf(uneven_rows)
        assert [q.date for q in daily] == [D1, D2]
        assert daily[0].value == pytest.approx(100.0)
        assert (daily[0].in_range, daily[0].total) == (1, 1)
        assert daily[1].value == pytest.approx(33.333, abs=1e-3)
        assert (daily[1].in_range, daily[1].total) == (1, 3)
        assert daily[0].status == "good"
        assert daily[1].status == "poor"

    def test_monthly_qaf_sums_counters(self, uneven_rows):
        """2 / 4 = 50%, not the 66.7% mean of the daily values."""
        monthly = compute_monthly_qaf(uneven_rows)
        assert monthly.value == pytest.approx(50.0)
        assert (monthly.in_range, monthly.total) == (2, 4)

    def test_day_without_data_is_undefined(self):
        daily = compute_daily_qaf([ComplianceRow("p1", D1, None, None)])
        assert daily[0].value is None
        assert daily[0].status == "none"

    def test_no_rows(self):
        assert compute_daily_qaf([]) == []
        assert compute_monthly_qaf([]).value is None

    def test_status_bands(self):
        assert qaf_status(None) == "none"
        assert qaf_status(95.0) == "good"
        assert qaf_status(85.0) == "fair"
        assert qaf_status(84.9) == "poor"
        assert qaf_status(90.0, AnalyticsThresholds(qaf_good=90.0)) == "good"


class TestBuildAnalysisTable:
    """Test the grouped month table."""

    def test_table_shape(self, parameters):
        readings = [
            HourlyReading("Budi", "p2", D1, hours=(2.5,)),
            HourlyReading("Budi", "p1", D2, hours=(12,)),
        ]
        table = build_analysis_table(parameters[:2], readings, MaterialType.OPC, dates=[D1, D2])
        assert [row.parameter.id for row in table] == ["p1", "p2"]
        assert table[0].bounds == Bounds(12.0, 18.0)
        assert table[0].raw_values == [None, 12.0]
        assert table[0].percentages == [None, 0.0]
        assert table[1].bounds == Bounds(0.0, 5.0)
        assert table[1].monthly.percentage == pytest.approx(50.0)

    def test_empty_selection(self):
        assert build_analysis_table([], []) == []
