"""Configuration management using Pydantic Settings"""

from datetime import date
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Analysis configuration, overridable through PREMIUM_* environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="PREMIUM_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Service
    service_name: str = "premium-analyzer"
    log_level: str = "INFO"

    # Premium banding (basis points)
    band_min_bps: int = -60
    band_max_bps: int = 560
    band_width_bps: int = 20

    # Swap matching
    match_tolerance_days: int = 5

    # Record normalization
    ltv_threshold_pct: float = 80.0
    default_document_date: date = date(1970, 1, 1)
    exclude_right_to_buy: bool = True

    # Rate unit inference: bare values inside (lower, upper) are percentages
    percent_rate_lower: float = 0.5
    percent_rate_upper: float = 15.0

    # Lenders whose disclosed rates are published one decimal place too high
    tenth_scaled_lenders: List[str] = ["Nationwide Building Society"]
    tenth_scaled_below: float = 0.5

    # Reporting
    top_lenders_per_month: int = 5


settings = Settings()
