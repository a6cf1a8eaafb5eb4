"""Premium over swap - basis-point margin of a disclosed rate over its benchmark quote"""

import logging
import math
from typing import Any, Optional

from premium_analyzer.config import Settings, settings
from premium_analyzer.domain.exceptions import AnomalousRateWarning
from premium_analyzer.domain.models import UNKNOWN_BAND, NormalizedLoanRecord, PremiumBand, RateQuote
from premium_analyzer.domain.normalization import coerce_float

logger = logging.getLogger(__name__)

BPS_PER_UNIT = 10_000


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (2.5 -> 3, -2.5 -> -2)"""
    return math.floor(value + 0.5)


def is_anomalous_rate(value: Any, config: Optional[Settings] = None) -> bool:
    """Disclosed rate at or above the percentage ceiling"""
    config = config or settings
    rate = coerce_float(value)
    return rate is not None and rate >= config.percent_rate_upper


def normalize_rate(value: Any, lender: str = "", config: Optional[Settings] = None) -> Optional[float]:
    """
    Convert a disclosed rate to a decimal fraction.

    Unit inference rules:
    - Lenders in `tenth_scaled_lenders` publishing values below
      `tenth_scaled_below` are divided by 10 (0.49 -> 0.049)
    - Values inside (percent_rate_lower, percent_rate_upper) are
      percentages and are divided by 100 (3.99 -> 0.0399)
    - Values at or above percent_rate_upper are logged as anomalous and
      used unchanged
    - Anything else is assumed to be a fraction already

    Returns None when the value is not numeric.
    """
    config = config or settings
    rate = coerce_float(value)
    if rate is None:
        return None

    if lender in config.tenth_scaled_lenders and rate < config.tenth_scaled_below:
        return rate / 10
    if config.percent_rate_lower < rate < config.percent_rate_upper:
        return rate / 100
    if rate >= config.percent_rate_upper:
        warning = AnomalousRateWarning(lender, rate)
        logger.warning(str(warning), extra={"lender": lender, "rate": rate, "warning": type(warning).__name__})
    return rate


def rate_source_lender(record: NormalizedLoanRecord, config: Optional[Settings] = None) -> str:
    """Lender name that decides rate corrections: the provider when it is tenth-scaled, else the standard lender"""
    config = config or settings
    if record.provider in config.tenth_scaled_lenders:
        return record.provider
    return record.lender


def compute_premium(
    record: NormalizedLoanRecord,
    quote: Optional[RateQuote],
    config: Optional[Settings] = None,
) -> Optional[int]:
    """Premium in basis points, None when there is no quote or the rate is not numeric"""
    if quote is None:
        return None

    config = config or settings
    rate = normalize_rate(record.rate, rate_source_lender(record, config), config)
    if rate is None:
        logger.warning("Invalid disclosed rate", extra={"lender": record.lender, "rate": record.rate})
        return None

    return round_half_up((rate - quote.rate) * BPS_PER_UNIT)


def clamp_premium(bps: int, config: Optional[Settings] = None) -> int:
    """Clamp a premium to the configured band range"""
    config = config or settings
    return max(config.band_min_bps, min(config.band_max_bps, bps))


def band_for(bps: Optional[int], config: Optional[Settings] = None) -> Optional[PremiumBand]:
    """Premium band containing the clamped premium"""
    config = config or settings
    if bps is None:
        return None
    width = config.band_width_bps
    lower = (clamp_premium(bps, config) // width) * width
    return PremiumBand(lower=lower, width=width)


def assign_band(bps: Optional[int], config: Optional[Settings] = None) -> str:
    """Band label such as "240-260", or "Unknown" when the premium is unknown"""
    band = band_for(bps, config)
    return band.label if band is not None else UNKNOWN_BAND
