"""Memoized filter results keyed by the canonical filter state"""

import json
import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

from premium_analyzer.domain.filters import FILTER_STAGES, FilterCriteria, FilterFlags, apply_filters
from premium_analyzer.domain.models import EnrichedLoanRecord

logger = logging.getLogger(__name__)

FilterFn = Callable[
    [Sequence[EnrichedLoanRecord], FilterCriteria, FilterFlags],
    Tuple[EnrichedLoanRecord, ...],
]


def cache_key(criteria: FilterCriteria, flags: FilterFlags) -> str:
    """
    Canonical serialization of a filter state.

    Criteria read only by disabled stages are left out, so e.g. the market
    baseline (lender stage off) shares one entry across lender selections.
    """
    fields = {
        name
        for stage in FILTER_STAGES
        if getattr(flags, stage.name)
        for name in stage.fields
    }
    values = criteria.model_dump(mode="json")
    payload = {
        "flags": flags.model_dump(),
        "criteria": {name: values[name] for name in fields},
    }
    return json.dumps(payload, sort_keys=True)


class FilterCache:
    """
    Filtered record slices for one source record set.

    Entries are only ever added; `invalidate()` must be called whenever the
    source records change.
    """

    def __init__(self, filter_fn: Optional[FilterFn] = None):
        self._filter_fn = filter_fn or apply_filters
        self._entries: Dict[str, Tuple[EnrichedLoanRecord, ...]] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get_filtered(
        self,
        records: Sequence[EnrichedLoanRecord],
        criteria: Optional[FilterCriteria] = None,
        flags: Optional[FilterFlags] = None,
    ) -> Tuple[EnrichedLoanRecord, ...]:
        """Filtered records, computed once per distinct filter state"""
        criteria = criteria or FilterCriteria()
        flags = flags or FilterFlags()
        key = cache_key(criteria, flags)

        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        filtered = self._filter_fn(records, criteria, flags)
        self._entries[key] = filtered
        return filtered

    def invalidate(self) -> None:
        """Drop every cached slice"""
        dropped = len(self._entries)
        self._entries.clear()
        logger.info("Filter cache invalidated", extra={"entries_dropped": dropped})
