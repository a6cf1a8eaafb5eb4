"""Deterministic mock disclosure records and swap-rate quotes for demos and tests"""

import random
from datetime import date
from typing import Any, Dict, List, Optional

from premium_analyzer.utils.date_utils import generate_date_range

MOCK_LENDERS = [
    "Nationwide Building Society",
    "Barclays Bank UK PLC",
    "HSBC UK",
    "NatWest",
    "Santander UK",
    "Halifax",
    "Lloyds Bank",
]
MOCK_PRODUCT_TYPES = ["Fixed Rate", "Variable Rate"]
MOCK_PURCHASE_TYPES = ["First Time Buyer", "Home mover", "Remortgage"]
MOCK_TIE_IN_PERIODS = [24, 60]


def generate_mock_disclosure_records(
    count: int = 100,
    seed: Optional[int] = None,
    start: date = date(2023, 1, 1),
    end: date = date(2023, 12, 31),
) -> List[Dict[str, Any]]:
    """
    Disclosure rows in the source field layout.

    Rates are percentages between 1 and 7, loans between 100,000 and
    1,000,000, LTV between 50 and 95. The same seed yields the same rows.
    """
    rng = random.Random(seed)
    span_days = (end - start).days
    records = []

    for _ in range(count):
        provider = rng.choice(MOCK_LENDERS)
        document_date = date.fromordinal(start.toordinal() + rng.randint(0, span_days)).isoformat()
        rate = round(rng.uniform(1, 7), 2)
        records.append(
            {
                "Provider": provider,
                "BaseLender": provider,
                "DocumentDate": document_date,
                "Timestamp": document_date,
                "Rate": rate,
                "InitialRate": rate,
                "Loan": rng.randint(100_000, 1_000_000),
                "LTV": rng.randint(50, 95),
                "ProductType": rng.choice(MOCK_PRODUCT_TYPES),
                "PurchaseType": rng.choice(MOCK_PURCHASE_TYPES),
                "TieInPeriod": rng.choice(MOCK_TIE_IN_PERIODS),
            }
        )

    return records


def generate_mock_swap_quotes(
    start: date = date(2023, 1, 1),
    end: date = date(2023, 12, 31),
    seed: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """One quote per day per term (24 and 60 months), rates as fractions between 0.005 and 0.04"""
    rng = random.Random(seed)
    quotes = []

    for day in generate_date_range(start, end):
        for term in MOCK_TIE_IN_PERIODS:
            quotes.append(
                {
                    "effective_at": day.isoformat(),
                    "product_term_in_months": term,
                    "rate": round(rng.uniform(0.005, 0.04), 5),
                }
            )

    return quotes
