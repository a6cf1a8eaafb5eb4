"""Unit tests for volume aggregation and reporting views"""

import pytest
from datetime import date
from premium_analyzer.domain.aggregation import (
    aggregate,
    aggregate_market_baseline,
    lender_band_matrix,
    monthly_lender_shares,
    premium_statistics,
    summary_statistics,
    top_lenders,
)
from premium_analyzer.domain.filters import FilterCriteria, apply_filters


@pytest.fixture
def records(make_enriched):
    return [
        make_enriched(lender="HSBC UK", loan_amount=100000, premium_bps=249, document_date=date(2023, 1, 7)),
        make_enriched(lender="HSBC UK", loan_amount=50000, premium_bps=5, document_date=date(2023, 2, 3)),
        make_enriched(lender="Barclays", loan_amount=150000, premium_bps=255, document_date=date(2023, 1, 20)),
        make_enriched(lender="NatWest", loan_amount=75000, premium_bps=-30, document_date=date(2023, 2, 14)),
        make_enriched(lender="NatWest", loan_amount=60000, premium_bps=None, document_date=date(2023, 1, 9)),
        make_enriched(lender="Halifax", loan_amount=0, premium_bps=100, document_date=date(2023, 1, 9)),
    ]


def test_aggregate_totals_are_consistent(records):
    """Test band totals, month totals and grand total agree"""
    result = aggregate(records)

    assert sum(result.totals_by_band.values()) == pytest.approx(result.grand_total)
    assert sum(result.totals_by_month.values()) == pytest.approx(result.grand_total)
    assert result.grand_total == 375000


def test_aggregate_orders_bands_numerically(records):
    """Test negative bands sort before positive ones"""
    result = aggregate(records)

    assert result.bands == ["-40--20", "0-20", "240-260"]
    assert result.months == ["2023-01", "2023-02"]


def test_aggregate_fills_every_cell(records):
    """Test the matrix is zero-filled for empty band/month combinations"""
    result = aggregate(records)

    assert result.cells["240-260"] == {"2023-01": 250000, "2023-02": 0.0}
    assert result.cells["0-20"] == {"2023-01": 0.0, "2023-02": 50000}
    assert result.totals_by_month == {"2023-01": 250000, "2023-02": 125000}


def test_aggregate_skips_unknown_band_and_zero_loans(records):
    """Test unmatched and zero-volume records stay out of the totals"""
    result = aggregate(records)

    assert "Unknown" not in result.bands
    assert "100-120" not in result.bands


def test_aggregate_empty():
    """Test aggregating nothing gives an empty result"""
    result = aggregate([])

    assert result.bands == []
    assert result.months == []
    assert result.grand_total == 0.0


def test_market_baseline_ignores_lender_selection(records):
    """Test the baseline keeps other criteria but not the lender filter"""
    criteria = FilterCriteria(lenders=["HSBC UK"], start_month="2023-01", end_month="2023-01")

    selected = aggregate(apply_filters(records, criteria))
    baseline = aggregate_market_baseline(records, criteria)

    assert selected.grand_total == 100000
    assert baseline.grand_total == 250000
    assert baseline.months == ["2023-01"]


def test_lender_band_matrix_percentages(records):
    """Test heatmap percentages in both lender and band orientation"""
    heatmap = lender_band_matrix(records)

    assert heatmap.lenders == ["Barclays", "HSBC UK", "Halifax", "NatWest"]
    assert heatmap.lender_pct["Halifax"]["100-120"] == 0.0
    assert heatmap.bands == ["-40--20", "0-20", "100-120", "240-260"]
    assert heatmap.lender_pct["HSBC UK"]["240-260"] == pytest.approx(100000 / 150000 * 100)
    assert heatmap.band_pct["240-260"]["Barclays"] == pytest.approx(60.0)
    assert heatmap.band_totals["240-260"] == 250000
    assert heatmap.by_band["0-20"]["NatWest"] == 0.0


def test_monthly_lender_shares_restricted_to_bands(records):
    """Test monthly shares only count the selected bands"""
    shares = monthly_lender_shares(records, ["240-260"])

    assert shares.months == ["2023-01"]
    assert shares.month_totals == {"2023-01": 250000}
    assert shares.shares["2023-01"]["Barclays"] == pytest.approx(60.0)
    assert shares.shares["2023-01"]["HSBC UK"] == pytest.approx(40.0)


def test_top_lenders_per_month(records):
    """Test lenders are selected if they rank in the top N in any month"""
    shares = monthly_lender_shares(records)

    assert top_lenders(shares, per_month=1) == ["Barclays", "NatWest"]
    assert top_lenders(shares, per_month=5) == ["Barclays", "HSBC UK", "Halifax", "NatWest"]


def test_summary_statistics():
    """Test descriptive statistics over values, ignoring None"""
    stats = summary_statistics([10, None, 20, 30, 40])

    assert stats.count == 4
    assert stats.minimum == 10
    assert stats.maximum == 40
    assert stats.mean == 25
    assert stats.median == 25
    assert stats.std_dev == pytest.approx(11.1803, rel=1e-4)


def test_premium_statistics_empty(make_enriched):
    """Test statistics of records without premiums"""
    stats = premium_statistics([make_enriched(premium_bps=None)])

    assert stats.count == 0
    assert stats.mean is None
