"""Enrichment - normalize, match and band a batch of disclosure records"""

from typing import Any, List, Mapping, Optional, Sequence, Tuple

from premium_analyzer.config import Settings, settings
from premium_analyzer.domain.exceptions import EmptyInputError, InvalidRecordError
from premium_analyzer.domain.matching import QuoteIndex, QuoteLike, match_quote, parse_quote
from premium_analyzer.domain.models import (
    EnrichedLoanRecord,
    EnrichmentResult,
    EnrichmentStats,
    NormalizedLoanRecord,
    RateQuote,
)
from premium_analyzer.domain.normalization import is_right_to_buy, normalize_record
from premium_analyzer.domain.premium import assign_band, compute_premium, is_anomalous_rate
from premium_analyzer.domain.recovery import RecoveryPolicy, with_recovery

SKIP_INVALID_RECORD = RecoveryPolicy(name="normalize_record", recover_from=(InvalidRecordError,))
SKIP_INVALID_QUOTE = RecoveryPolicy(name="parse_quote", recover_from=(InvalidRecordError,))


def parse_quotes(raw_quotes: Sequence[QuoteLike]) -> List[RateQuote]:
    """Parse benchmark rows, dropping malformed ones"""
    parse = with_recovery(parse_quote, SKIP_INVALID_QUOTE)
    outcomes = [parse(raw) for raw in raw_quotes]
    return [outcome.value for outcome in outcomes if outcome.ok]


def enrich_record(
    record: NormalizedLoanRecord,
    index: QuoteIndex,
    stats: EnrichmentStats,
    config: Optional[Settings] = None,
) -> EnrichedLoanRecord:
    """Match one normalized record and attach its premium and band"""
    config = config or settings

    quote = None
    if record.normalized_term is None:
        # Non-standard terms never reach the matcher
        stats.non_standard_terms += 1
        stats.non_standard_volume += record.loan_amount
    else:
        quote = match_quote(record, index, stats=stats.matching, config=config)

    premium_bps = compute_premium(record, quote, config)
    if quote is not None:
        stats.matched_records += 1
        stats.matched_volume += record.loan_amount
        if is_anomalous_rate(record.rate, config):
            stats.anomalous_rates += 1

    return EnrichedLoanRecord(
        record=record,
        quote=quote,
        premium_bps=premium_bps,
        premium_band=assign_band(premium_bps, config),
        month=record.month,
    )


def enrich_records(
    raw_records: Sequence[Mapping[str, Any]],
    raw_quotes: Sequence[QuoteLike],
    config: Optional[Settings] = None,
) -> EnrichmentResult:
    """
    Main entry point: turn raw disclosure records into enriched records.

    Flow:
    1. Parse benchmark quotes and index them by term
    2. Drop Right to Buy products (when configured)
    3. Normalize each record; malformed records are dropped and counted
    4. Match, compute premium and assign band

    Unmatched records stay in the result with premium None and band
    "Unknown"; their count, volume and document months are reported in
    `stats.matching`.

    Raises:
        EmptyInputError: If there are no records, or no usable quotes
    """
    config = config or settings
    if not raw_records:
        raise EmptyInputError("No disclosure records to analyse")
    if not raw_quotes:
        raise EmptyInputError("No swap rate quotes to match against")

    quotes = parse_quotes(raw_quotes)
    if not quotes:
        raise EmptyInputError("None of the swap rate quotes could be parsed")
    index = QuoteIndex(quotes)

    stats = EnrichmentStats(input_records=len(raw_records))
    normalize = with_recovery(normalize_record, SKIP_INVALID_RECORD)
    enriched: List[EnrichedLoanRecord] = []

    for raw in raw_records:
        if config.exclude_right_to_buy and isinstance(raw, Mapping) and is_right_to_buy(raw):
            stats.right_to_buy_excluded += 1
            continue

        outcome = normalize(raw, config)
        if not outcome.ok:
            stats.invalid_records += 1
            continue

        record = outcome.value
        stats.input_volume += record.loan_amount
        stats.ltv.observe(record.ltv, config.ltv_threshold_pct)
        enriched.append(enrich_record(record, index, stats, config))

    stats.enriched_records = len(enriched)
    return EnrichmentResult(records=tuple(enriched), stats=stats)


def enrich(
    raw_records: Sequence[Mapping[str, Any]],
    raw_quotes: Sequence[QuoteLike],
    config: Optional[Settings] = None,
) -> Tuple[EnrichedLoanRecord, ...]:
    """Enriched records only, for callers that do not need the statistics"""
    return enrich_records(raw_records, raw_quotes, config).records
