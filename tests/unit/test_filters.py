"""Unit tests for the filter pipeline"""

import pytest
from datetime import date
from pydantic import ValidationError
from premium_analyzer.domain.filters import (
    FilterCriteria,
    FilterFlags,
    LtvBucket,
    active_stages,
    apply_filters,
    premium_range_filter,
    without_lender_filter,
)


@pytest.fixture
def records(make_enriched):
    return [
        make_enriched(lender="HSBC UK", loan_amount=100000, premium_bps=249, ltv=75.0, document_date=date(2023, 1, 7)),
        make_enriched(
            lender="Barclays",
            loan_amount=150000,
            premium_bps=120,
            ltv=85.0,
            normalized_term=60,
            product_type="Variable Rate",
            document_date=date(2023, 2, 3),
        ),
        make_enriched(
            lender="NatWest",
            loan_amount=75000,
            premium_bps=None,
            ltv=None,
            purchase_type="First Time Buyer",
            document_date=date(2023, 3, 14),
        ),
    ]


def _lenders(records):
    return [record.lender for record in records]


def test_no_criteria_returns_everything(records):
    """Test default criteria keep every record in order"""
    assert apply_filters(records) == tuple(records)


def test_date_range_filter(records):
    """Test month range is inclusive on both ends"""
    criteria = FilterCriteria(start_month="2023-02", end_month="2023-03")

    assert _lenders(apply_filters(records, criteria)) == ["Barclays", "NatWest"]


def test_lender_filter_matches_provider_alias(make_enriched):
    """Test lender selection matches provider as well as standard lender name"""
    record = make_enriched(lender="Nationwide Building Society", provider="Nationwide")

    assert apply_filters([record], FilterCriteria(lenders=["Nationwide"])) == (record,)
    assert apply_filters([record], FilterCriteria(lenders=["HSBC UK"])) == ()


def test_premium_range_filter_on_known_premium(records):
    """Test known premiums are compared directly"""
    criteria = FilterCriteria(min_premium_bps=100, max_premium_bps=200)

    assert _lenders(apply_filters(records, criteria)) == ["Barclays"]


def test_premium_range_filter_band_overlap(make_enriched):
    """Test band-only records pass when the band overlaps the range"""
    record = make_enriched(premium_bps=None, premium_band="240-260")

    assert premium_range_filter(record, FilterCriteria(min_premium_bps=250, max_premium_bps=300))
    assert premium_range_filter(record, FilterCriteria(min_premium_bps=200, max_premium_bps=240))
    assert not premium_range_filter(record, FilterCriteria(min_premium_bps=260, max_premium_bps=300))
    assert not premium_range_filter(
        make_enriched(premium_bps=None), FilterCriteria(min_premium_bps=0, max_premium_bps=100)
    )


def test_product_and_purchase_type_filters(records):
    """Test product and purchase type membership"""
    assert _lenders(apply_filters(records, FilterCriteria(product_types=["Variable Rate"]))) == ["Barclays"]
    assert _lenders(apply_filters(records, FilterCriteria(purchase_types=["First Time Buyer"]))) == ["NatWest"]


def test_ltv_bucket_keeps_records_without_ltv(records):
    """Test LTV buckets split at 80 and keep records lacking LTV"""
    below = apply_filters(records, FilterCriteria(ltv_bucket=LtvBucket.BELOW_80))
    above = apply_filters(records, FilterCriteria(ltv_bucket="above-80"))

    assert _lenders(below) == ["HSBC UK", "NatWest"]
    assert _lenders(above) == ["Barclays", "NatWest"]


def test_term_filter(records):
    """Test exact match on normalized term"""
    assert _lenders(apply_filters(records, FilterCriteria(term=60))) == ["Barclays"]


def test_disabled_flag_skips_stage(records):
    """Test a switched-off flag ignores its criterion"""
    criteria = FilterCriteria(lenders=["HSBC UK"], term=24)

    assert _lenders(apply_filters(records, criteria)) == ["HSBC UK"]
    assert _lenders(apply_filters(records, criteria, FilterFlags(lenders=False))) == ["HSBC UK", "NatWest"]


def test_without_lender_filter_keeps_other_flags():
    """Test only the lender flag is switched off"""
    flags = without_lender_filter(FilterFlags(term=False))

    assert flags.lenders is False
    assert flags.term is False
    assert flags.date_range is True


def test_active_stages_only_restricting_criteria():
    """Test stages with empty criteria are not evaluated"""
    criteria = FilterCriteria(start_month="2023-01", product_types=["Fixed Rate"])

    names = [stage.name for stage in active_stages(criteria, FilterFlags())]

    assert names == ["date_range", "product_types"]


def test_criteria_selections_are_canonical():
    """Test selections are de-duplicated and sorted"""
    criteria = FilterCriteria(lenders=["NatWest", "HSBC UK", "NatWest", " "])

    assert criteria.lenders == ("HSBC UK", "NatWest")
    assert criteria == FilterCriteria(lenders=("HSBC UK", "NatWest"))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"start_month": "2023-13"},
        {"start_month": "2023-05", "end_month": "2023-01"},
        {"min_premium_bps": 300, "max_premium_bps": 100},
        {"term": 36},
    ],
)
def test_invalid_criteria_rejected(kwargs):
    """Test malformed criteria raise a validation error"""
    with pytest.raises(ValidationError):
        FilterCriteria(**kwargs)
