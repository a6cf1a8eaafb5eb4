"""Structured JSON logging for analysis runs"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from premium_analyzer.config import settings
from premium_analyzer.domain.models import EnrichmentStats


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_enrichment_summary(stats: EnrichmentStats, duration_ms: float) -> None:
    """Log one structured record describing a completed enrichment run"""
    logging.getLogger("premium_analyzer.enrichment").info(
        "Enrichment completed",
        extra={
            "step": "enrichment_complete",
            "input_records": stats.input_records,
            "enriched_records": stats.enriched_records,
            "matched_records": stats.matched_records,
            "invalid_records": stats.invalid_records,
            "right_to_buy_excluded": stats.right_to_buy_excluded,
            "non_standard_terms": stats.non_standard_terms,
            "excluded_records": stats.matching.excluded_count,
            "excluded_loan_volume": stats.matching.excluded_volume,
            "exclusion_rate": round(stats.exclusion_rate, 4),
            "misses_by_month": dict(stats.matching.misses_by_month),
            "anomalous_rates": stats.anomalous_rates,
            "duration_ms": duration_ms,
        },
    )
