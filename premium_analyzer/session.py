"""Analysis session - enriched record set, filter cache and the views built on them"""

import logging
import time
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from premium_analyzer.config import Settings, settings as default_settings
from premium_analyzer.domain.aggregation import (
    aggregate,
    lender_band_matrix,
    monthly_lender_shares,
    premium_statistics,
    top_lenders,
)
from premium_analyzer.domain.enrichment import enrich_records
from premium_analyzer.domain.exceptions import EmptyInputError
from premium_analyzer.domain.filter_cache import FilterCache
from premium_analyzer.domain.filters import FilterCriteria, FilterFlags, without_lender_filter
from premium_analyzer.domain.market_share import lender_share
from premium_analyzer.domain.matching import QuoteLike
from premium_analyzer.domain.models import (
    AggregationResult,
    EnrichedLoanRecord,
    EnrichmentResult,
    EnrichmentStats,
    HeatmapData,
    LenderShareResult,
    MonthlyLenderShares,
    SummaryStatistics,
)
from premium_analyzer.infrastructure.observability.logging import log_enrichment_summary
from premium_analyzer.infrastructure.observability.metrics import (
    filter_cache_counter,
    record_enrichment,
    stage_duration_histogram,
)

logger = logging.getLogger(__name__)


class AnalysisSession:
    """
    One analysis run over a loaded disclosure batch.

    Holds the enriched records, their enrichment statistics and the filter
    cache. Every view is computed from cached filtered slices, so repeating
    a filter selection never rescans the record set.

    Example:
        session = AnalysisSession()
        session.load(raw_records, swap_quotes)
        criteria = FilterCriteria(start_month="2023-01", lenders=["HSBC"])
        matrix = session.aggregate(criteria)
        baseline = session.market_baseline(criteria)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self._records: Tuple[EnrichedLoanRecord, ...] = ()
        self._stats = EnrichmentStats()
        self._cache = FilterCache()

    @property
    def records(self) -> Tuple[EnrichedLoanRecord, ...]:
        return self._records

    @property
    def stats(self) -> EnrichmentStats:
        return self._stats

    @property
    def cache(self) -> FilterCache:
        return self._cache

    def load(
        self,
        raw_records: Sequence[Mapping[str, Any]],
        quotes: Sequence[QuoteLike],
    ) -> EnrichmentResult:
        """
        Enrich a new batch and make it the session's record set.

        The previous record set and every cached slice are replaced. On
        EmptyInputError the session keeps its previous state.

        Raises:
            EmptyInputError: If there are no records, or no usable quotes
        """
        start_time = time.time()
        try:
            with stage_duration_histogram.labels(stage="enrich").time():
                result = enrich_records(raw_records, quotes, self.settings)
        except EmptyInputError as e:
            logger.error(f"Cannot load batch: {e}", extra={"step": "load"})
            raise

        self._records = result.records
        self._stats = result.stats
        self.invalidate_cache()

        duration_ms = (time.time() - start_time) * 1000
        record_enrichment(result.stats)
        log_enrichment_summary(result.stats, duration_ms)
        return result

    def invalidate_cache(self) -> None:
        self._cache.invalidate()

    def filtered(
        self,
        criteria: Optional[FilterCriteria] = None,
        flags: Optional[FilterFlags] = None,
    ) -> Tuple[EnrichedLoanRecord, ...]:
        """Records matching the criteria, served from the filter cache"""
        hits_before = self._cache.hits
        with stage_duration_histogram.labels(stage="filter").time():
            records = self._cache.get_filtered(self._records, criteria, flags)
        filter_cache_counter.labels(result="hit" if self._cache.hits > hits_before else "miss").inc()
        return records

    def aggregate(
        self,
        criteria: Optional[FilterCriteria] = None,
        flags: Optional[FilterFlags] = None,
    ) -> AggregationResult:
        records = self.filtered(criteria, flags)
        with stage_duration_histogram.labels(stage="aggregate").time():
            return aggregate(records)

    def market_baseline(
        self,
        criteria: Optional[FilterCriteria] = None,
        flags: Optional[FilterFlags] = None,
    ) -> AggregationResult:
        """Aggregation with the lender selection ignored ("% of market" denominator)"""
        return self.aggregate(criteria, without_lender_filter(flags))

    def lender_share(
        self,
        criteria: Optional[FilterCriteria],
        selected_bands: Sequence[str],
    ) -> LenderShareResult:
        records = self.filtered(criteria, without_lender_filter())
        with stage_duration_histogram.labels(stage="lender_share").time():
            return lender_share(records, selected_bands, self.settings.ltv_threshold_pct)

    def lender_band_matrix(self, criteria: Optional[FilterCriteria] = None) -> HeatmapData:
        return lender_band_matrix(self.filtered(criteria))

    def market_share_trends(
        self,
        criteria: Optional[FilterCriteria] = None,
        selected_bands: Optional[Sequence[str]] = None,
    ) -> Tuple[MonthlyLenderShares, List[str]]:
        """Monthly lender shares across the market, plus the lenders that reach the top N in any month"""
        shares = monthly_lender_shares(self.filtered(criteria, without_lender_filter()), selected_bands)
        return shares, top_lenders(shares, self.settings.top_lenders_per_month)

    def premium_statistics(self, criteria: Optional[FilterCriteria] = None) -> SummaryStatistics:
        return premium_statistics(self.filtered(criteria))
