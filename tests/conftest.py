"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Callable, List, Optional

from premium_analyzer.config import Settings
from premium_analyzer.domain.models import EnrichedLoanRecord, NormalizedLoanRecord, RateQuote, UNKNOWN_BAND
from premium_analyzer.session import AnalysisSession
from premium_analyzer.utils.date_utils import month_key


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults, isolated from any .env file"""
    return Settings(_env_file=None)


@pytest.fixture
def make_record() -> Callable[..., NormalizedLoanRecord]:
    """Factory for normalized records with sensible defaults"""

    def _make(
        lender: str = "HSBC UK",
        document_date: date = date(2023, 1, 7),
        rate: float = 3.99,
        loan_amount: float = 250000.0,
        ltv: Optional[float] = 75.0,
        product_type: str = "Fixed Rate",
        purchase_type: str = "Remortgage",
        normalized_term: Optional[int] = 24,
        provider: Optional[str] = None,
    ) -> NormalizedLoanRecord:
        return NormalizedLoanRecord(
            lender=lender,
            provider=provider if provider is not None else lender,
            base_lender=lender,
            document_date=document_date,
            month=month_key(document_date),
            rate=rate,
            loan_amount=loan_amount,
            ltv=ltv,
            product_type=product_type,
            purchase_type=purchase_type,
            tie_in_period=normalized_term,
            normalized_term=normalized_term,
        )

    return _make


@pytest.fixture
def make_enriched(make_record) -> Callable[..., EnrichedLoanRecord]:
    """Factory for enriched records with a given premium and band"""

    def _make(
        lender: str = "HSBC UK",
        loan_amount: float = 100000.0,
        premium_bps: Optional[int] = 249,
        premium_band: Optional[str] = None,
        document_date: date = date(2023, 1, 7),
        **kwargs,
    ) -> EnrichedLoanRecord:
        record = make_record(lender=lender, loan_amount=loan_amount, document_date=document_date, **kwargs)
        if premium_band is None:
            if premium_bps is None:
                premium_band = UNKNOWN_BAND
            else:
                lower = (premium_bps // 20) * 20
                premium_band = f"{lower}-{lower + 20}"
        quote = RateQuote(term_months=24, effective_date=document_date, rate=0.015) if premium_bps is not None else None
        return EnrichedLoanRecord(
            record=record,
            quote=quote,
            premium_bps=premium_bps,
            premium_band=premium_band,
            month=record.month,
        )

    return _make


@pytest.fixture
def swap_quotes() -> List[RateQuote]:
    """Term-24 quotes dated 2023-01-01, 2023-01-05 and 2023-01-10"""
    return [
        RateQuote(term_months=24, effective_date=date(2023, 1, 1), rate=0.012),
        RateQuote(term_months=24, effective_date=date(2023, 1, 5), rate=0.013),
        RateQuote(term_months=24, effective_date=date(2023, 1, 10), rate=0.014),
    ]


@pytest.fixture
def raw_swap_quotes() -> List[dict]:
    """Swap quotes in the source field layout for both standard terms"""
    return [
        {"effective_at": "2023-01-01", "product_term_in_months": 24, "rate": 0.012},
        {"effective_at": "2023-01-05", "product_term_in_months": 24, "rate": 0.013},
        {"effective_at": "2023-01-10", "product_term_in_months": 24, "rate": 0.014},
        {"effective_at": "2023-01-01", "product_term_in_months": 60, "rate": 0.015},
        {"effective_at": "2023-02-01", "product_term_in_months": 60, "rate": 0.016},
    ]


@pytest.fixture
def raw_records() -> List[dict]:
    """Disclosure rows covering matched, unmatched, Right to Buy and malformed cases"""
    return [
        {
            "Provider": "HSBC UK",
            "BaseLender": "HSBC UK",
            "DocumentDate": "2023-01-07",
            "InitialRate": 3.99,
            "Loan": 100000,
            "LTV": 75,
            "ProductType": "Fixed Rate",
            "PurchaseType": "Remortgage",
            "TieInPeriod": 24,
        },
        {
            "Provider": "Barclays Bank UK PLC",
            "DocumentDate": "2023-02-03",
            "InitialRate": "4.25%",
            "Loan": "150,000",
            "LTV": 0.85,
            "ProductType": "Fixed Rate",
            "First_Time_Buyer": "Yes",
            "TieInPeriod": "5 years",
        },
        {
            "Provider": "NatWest",
            "DocumentDate": "2022-12-01",
            "InitialRate": 4.1,
            "Loan": 75000,
            "ProductType": "Fixed Rate",
            "PurchaseType": "Home mover",
            "TieInPeriod": 24,
        },
        {
            "Provider": "Halifax",
            "DocumentDate": "2023-01-20",
            "InitialRate": 4.5,
            "Loan": 90000,
            "ProductType": "Fixed Rate",
            "PurchaseType": "Home mover",
            "TieInPeriod": 36,
        },
        {
            "Provider": "Lloyds Bank",
            "DocumentDate": "2023-01-15",
            "InitialRate": 4.0,
            "Loan": 120000,
            "ProductType": "Right to Buy Fixed",
            "TieInPeriod": 24,
        },
        "not a record",
    ]


@pytest.fixture
def session(test_settings: Settings, raw_records, raw_swap_quotes) -> AnalysisSession:
    """Session loaded with the sample disclosure rows"""
    analysis = AnalysisSession(test_settings)
    analysis.load(raw_records, raw_swap_quotes)
    return analysis
