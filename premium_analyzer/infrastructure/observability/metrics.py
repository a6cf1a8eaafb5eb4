"""Prometheus metrics for enrichment coverage, filter cache efficiency and stage latency"""

from prometheus_client import Counter, Histogram

from premium_analyzer.domain.models import EnrichmentStats

# Enrichment metrics
records_enriched_counter = Counter(
    "premium_records_enriched_total",
    "Disclosure records that completed enrichment",
    ["outcome"],  # matched | unmatched
)

matching_exclusion_counter = Counter(
    "premium_matching_exclusions_total",
    "Records left without a benchmark quote",
    ["reason"],  # no_quote | non_standard_term | right_to_buy | invalid
)

excluded_volume_counter = Counter(
    "premium_excluded_loan_volume_total",
    "Loan volume of records that matched no benchmark quote",
)

anomalous_rate_counter = Counter(
    "premium_anomalous_rates_total",
    "Disclosed rates outside the expected percentage range",
)

# Filter cache metrics
filter_cache_counter = Counter(
    "premium_filter_cache_lookups_total",
    "Filter cache lookups",
    ["result"],  # hit | miss
)

# Pipeline latency
stage_duration_histogram = Histogram(
    "premium_stage_duration_seconds",
    "Analysis stage latency",
    ["stage"],  # enrich | filter | aggregate | lender_share
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)


def record_enrichment(stats: EnrichmentStats) -> None:
    """Record coverage metrics for a completed enrichment run"""
    records_enriched_counter.labels(outcome="matched").inc(stats.matched_records)
    records_enriched_counter.labels(outcome="unmatched").inc(stats.enriched_records - stats.matched_records)

    matching_exclusion_counter.labels(reason="no_quote").inc(stats.matching.excluded_count)
    matching_exclusion_counter.labels(reason="non_standard_term").inc(stats.non_standard_terms)
    matching_exclusion_counter.labels(reason="right_to_buy").inc(stats.right_to_buy_excluded)
    matching_exclusion_counter.labels(reason="invalid").inc(stats.invalid_records)

    excluded_volume_counter.inc(stats.matching.excluded_volume)
    anomalous_rate_counter.inc(stats.anomalous_rates)
