"""Aggregation layer - loan volume by premium band, month and lender"""

import statistics
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from premium_analyzer.domain.filters import FilterCriteria, FilterFlags, apply_filters, without_lender_filter
from premium_analyzer.domain.models import (
    UNKNOWN_BAND,
    AggregationResult,
    EnrichedLoanRecord,
    HeatmapData,
    MonthlyLenderShares,
    SummaryStatistics,
    band_sort_key,
)


def _has_known_band(record: EnrichedLoanRecord) -> bool:
    return bool(record.premium_band) and record.premium_band != UNKNOWN_BAND


def _pct(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def aggregate(records: Iterable[EnrichedLoanRecord]) -> AggregationResult:
    """
    Sum loan volume into a band x month matrix.

    A record qualifies when it has a known band, a month and a positive
    loan amount. Each qualifying record is added exactly once to its cell,
    its band total, its month total and the grand total, so
    sum(totals_by_band) == sum(totals_by_month) == grand_total.
    """
    cells: Dict[str, Dict[str, float]] = defaultdict(dict)
    totals_by_band: Dict[str, float] = defaultdict(float)
    totals_by_month: Dict[str, float] = defaultdict(float)
    grand_total = 0.0

    for record in records:
        amount = record.loan_amount
        if not _has_known_band(record) or not record.month or amount <= 0:
            continue

        band, month = record.premium_band, record.month
        row = cells[band]
        row[month] = row.get(month, 0.0) + amount
        totals_by_band[band] += amount
        totals_by_month[month] += amount
        grand_total += amount

    bands = sorted(totals_by_band, key=band_sort_key)
    months = sorted(totals_by_month)

    return AggregationResult(
        bands=bands,
        months=months,
        cells={band: {month: cells[band].get(month, 0.0) for month in months} for band in bands},
        totals_by_band={band: totals_by_band[band] for band in bands},
        totals_by_month={month: totals_by_month[month] for month in months},
        grand_total=grand_total,
    )


def aggregate_market_baseline(
    records: Sequence[EnrichedLoanRecord],
    criteria: Optional[FilterCriteria] = None,
    flags: Optional[FilterFlags] = None,
) -> AggregationResult:
    """Aggregate with every selected filter except the lender selection ("% of market" denominator)"""
    return aggregate(apply_filters(records, criteria, without_lender_filter(flags)))


def lender_band_matrix(records: Iterable[EnrichedLoanRecord]) -> HeatmapData:
    """
    Lender x band volumes for heatmap views.

    `lender_pct` expresses each cell as a share of the lender's own volume,
    `band_pct` as a share of the band's volume across lenders.
    """
    by_lender: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    lenders_seen = set()
    bands_seen = set()

    for record in records:
        if not record.lender or not _has_known_band(record):
            continue
        by_lender[record.lender][record.premium_band] += record.loan_amount
        lenders_seen.add(record.lender)
        bands_seen.add(record.premium_band)

    lenders = sorted(lenders_seen)
    bands = sorted(bands_seen, key=band_sort_key)

    lender_volumes = {lender: {band: by_lender[lender].get(band, 0.0) for band in bands} for lender in lenders}
    band_volumes = {band: {lender: lender_volumes[lender][band] for lender in lenders} for band in bands}
    lender_totals = {lender: sum(lender_volumes[lender].values()) for lender in lenders}
    band_totals = {band: sum(band_volumes[band].values()) for band in bands}

    return HeatmapData(
        lenders=lenders,
        bands=bands,
        by_lender=lender_volumes,
        by_band=band_volumes,
        lender_pct={
            lender: {band: _pct(lender_volumes[lender][band], lender_totals[lender]) for band in bands}
            for lender in lenders
        },
        band_pct={
            band: {lender: _pct(band_volumes[band][lender], band_totals[band]) for lender in lenders}
            for band in bands
        },
        lender_totals=lender_totals,
        band_totals=band_totals,
    )


def monthly_lender_shares(
    records: Iterable[EnrichedLoanRecord],
    selected_bands: Optional[Sequence[str]] = None,
) -> MonthlyLenderShares:
    """Each lender's share of monthly volume, optionally restricted to selected bands"""
    band_filter = set(selected_bands) if selected_bands else None
    volumes: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))

    for record in records:
        if not record.lender or not record.month:
            continue
        if band_filter is not None and record.premium_band not in band_filter:
            continue
        volumes[record.month][record.lender] += record.loan_amount

    months = sorted(volumes)
    month_totals = {month: sum(volumes[month].values()) for month in months}

    return MonthlyLenderShares(
        months=months,
        volumes={month: dict(volumes[month]) for month in months},
        shares={
            month: {lender: _pct(amount, month_totals[month]) for lender, amount in volumes[month].items()}
            for month in months
        },
        month_totals=month_totals,
    )


def top_lenders(shares: MonthlyLenderShares, per_month: int = 5) -> List[str]:
    """Lenders ranked in the top `per_month` by share in at least one month"""
    selected = set()
    for month in shares.months:
        ranked = sorted(shares.shares[month].items(), key=lambda item: (-item[1], item[0]))
        selected.update(lender for lender, _ in ranked[:per_month])
    return sorted(selected)


def summary_statistics(values: Iterable[Optional[float]]) -> SummaryStatistics:
    """Min, max, mean, median and population standard deviation of the non-null values"""
    data = sorted(float(value) for value in values if value is not None)
    if not data:
        return SummaryStatistics(count=0)

    return SummaryStatistics(
        count=len(data),
        minimum=data[0],
        maximum=data[-1],
        mean=statistics.fmean(data),
        median=statistics.median(data),
        std_dev=statistics.pstdev(data),
    )


def premium_statistics(records: Iterable[EnrichedLoanRecord]) -> SummaryStatistics:
    """Summary statistics of the known premiums (bps)"""
    return summary_statistics(record.premium_bps for record in records)
