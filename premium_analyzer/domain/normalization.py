"""Disclosure record normalization - canonical lender, dates, LTV and committed term"""

import logging
import math
import re
from typing import Any, Dict, Mapping, Optional, Tuple

from premium_analyzer.config import Settings, settings
from premium_analyzer.domain.exceptions import InvalidRecordError
from premium_analyzer.domain.models import NormalizedLoanRecord
from premium_analyzer.utils.date_utils import month_key, parse_date

logger = logging.getLogger(__name__)

# Source spellings seen in disclosure exports, in order of preference
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "base_lender": ("BaseLender", "base_lender", "baseLender"),
    "provider": ("Provider", "provider", "lender"),
    "document_date": ("DocumentDate", "document_date", "documentDate"),
    "timestamp": ("Timestamp", "timestamp"),
    "initial_rate": ("InitialRate", "initial_rate", "initialRate"),
    "rate": ("Rate", "rate"),
    "loan": ("Loan", "loan", "loan_amount"),
    "ltv": ("LTV", "Loan_To_Value", "Loan-to-Value", "loan_to_value", "ltv"),
    "product_type": ("ProductType", "Mortgage_Type", "product_type"),
    "purchase_type": ("PurchaseType", "purchase_type"),
    "tie_in_period": ("TieInPeriod", "tie_in_period", "tieInPeriod"),
    "description": ("Description", "Product_Description", "description"),
}

# Buyer flag columns -> purchase type, checked in order
BUYER_FLAGS: Tuple[Tuple[str, str], ...] = (
    ("First_Time_Buyer", "First Time Buyer"),
    ("Second_Time_Buyer", "Home mover"),
    ("Remortgages", "Remortgage"),
)

RIGHT_TO_BUY = "Right to buy"
UNKNOWN_PURCHASE_TYPE = "Unknown"

_RIGHT_TO_BUY_PATTERN = re.compile(r"right to buy|\brtb\b")
_DIGIT_RUN = re.compile(r"\d+")

# Normalized term buckets: (low, high) inclusive -> canonical months
TERM_BUCKETS: Tuple[Tuple[int, int, int], ...] = (
    (24, 27, 24),  # 2-year fixed
    (60, 63, 60),  # 5-year fixed
)


def field_value(raw: Mapping[str, Any], name: str) -> Any:
    """Return the first non-null value among the source spellings of a field"""
    for key in FIELD_ALIASES[name]:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def coerce_float(value: Any) -> Optional[float]:
    """Parse numbers and numeric strings ("3.99%", "250,000"); None if not numeric"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace("%", "").replace(",", "").replace("£", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _is_yes(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return _clean_text(value).lower() in ("yes", "y", "true", "1")


def normalize_term(period: Any) -> Optional[int]:
    """
    Map a tie-in period to a standard committed term.

    Numbers are months. Text that is purely numeric is months too; otherwise
    the first digit run is read as years ("2 years", "5yr fixed") unless the
    text says months. The result is bucketed: 24-27 -> 24, 60-63 -> 60,
    anything else -> None.
    """
    months = _term_in_months(period)
    if months is None:
        return None
    for low, high, canonical in TERM_BUCKETS:
        if low <= months <= high:
            return canonical
    return None


def _term_in_months(period: Any) -> Optional[int]:
    if period is None or isinstance(period, bool):
        return None
    if isinstance(period, (int, float)):
        return int(period) if math.isfinite(period) else None

    text = str(period).strip().lower()
    if not text:
        return None
    numeric = coerce_float(text)
    if numeric is not None:
        return int(numeric)

    match = _DIGIT_RUN.search(text)
    if match is None:
        return None
    value = int(match.group())
    if "month" in text or "mth" in text:
        return value
    return value * 12


def standardize_ltv(raw: Mapping[str, Any]) -> Optional[float]:
    """LTV as a percentage; values inside (0, 1) are fractions and are scaled by 100"""
    ltv = coerce_float(field_value(raw, "ltv"))
    if ltv is None:
        return None
    if 0 < ltv < 1:
        ltv *= 100
    return ltv


def is_right_to_buy(raw: Mapping[str, Any]) -> bool:
    """Right to Buy products are flagged in product type, purchase type or description"""
    text = " ".join(
        _clean_text(field_value(raw, name)).lower()
        for name in ("product_type", "purchase_type", "description")
    )
    return bool(_RIGHT_TO_BUY_PATTERN.search(text))


def determine_purchase_type(raw: Mapping[str, Any]) -> str:
    """Explicit purchase type, else derived from buyer flags or Right to Buy markers"""
    explicit = _clean_text(field_value(raw, "purchase_type"))
    if explicit:
        return explicit

    for column, purchase_type in BUYER_FLAGS:
        if _is_yes(raw.get(column)):
            return purchase_type

    if is_right_to_buy(raw):
        return RIGHT_TO_BUY
    return UNKNOWN_PURCHASE_TYPE


def normalize_record(raw: Mapping[str, Any], config: Optional[Settings] = None) -> NormalizedLoanRecord:
    """
    Canonicalize one raw disclosure record.

    A missing loan amount coerces to 0 and a missing rate stays None, so the
    record is kept without a premium. A missing or unparseable document date
    falls back to the configured default date, so a single bad field never
    aborts the batch.

    Raises:
        InvalidRecordError: If the record is not a mapping of fields
    """
    config = config or settings
    if not isinstance(raw, Mapping):
        raise InvalidRecordError(f"Disclosure record must be a mapping, got {type(raw).__name__}")

    base_lender = _clean_text(field_value(raw, "base_lender"))
    provider = _clean_text(field_value(raw, "provider"))
    lender = base_lender or provider

    document_date = parse_date(field_value(raw, "document_date")) or parse_date(field_value(raw, "timestamp"))
    if document_date is None:
        logger.debug("Missing document date, using default", extra={"lender": lender})
        document_date = config.default_document_date

    rate = coerce_float(field_value(raw, "initial_rate"))
    if rate is None:
        rate = coerce_float(field_value(raw, "rate"))

    tie_in_period = field_value(raw, "tie_in_period")

    return NormalizedLoanRecord(
        lender=lender,
        provider=provider,
        base_lender=base_lender,
        document_date=document_date,
        month=month_key(document_date),
        rate=rate,
        loan_amount=coerce_float(field_value(raw, "loan")) or 0.0,
        ltv=standardize_ltv(raw),
        product_type=_clean_text(field_value(raw, "product_type")),
        purchase_type=determine_purchase_type(raw),
        tie_in_period=tie_in_period,
        normalized_term=normalize_term(tie_in_period),
    )
