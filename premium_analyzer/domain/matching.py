"""Swap-rate matching - find the benchmark quote in effect on a record's document date"""

import bisect
import logging
from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from premium_analyzer.config import Settings, settings
from premium_analyzer.domain.exceptions import InvalidRecordError
from premium_analyzer.domain.models import MatchingStats, NormalizedLoanRecord, RateQuote
from premium_analyzer.domain.normalization import coerce_float
from premium_analyzer.utils.date_utils import days_between, parse_date

logger = logging.getLogger(__name__)

QuoteLike = Union[RateQuote, Mapping[str, Any]]

QUOTE_FIELD_ALIASES = {
    "term": ("product_term_in_months", "term_months", "term"),
    "effective_date": ("effective_at", "effective_date", "Date", "date"),
    "rate": ("rate", "Rate"),
}


def _quote_field(raw: Mapping[str, Any], name: str) -> Any:
    for key in QUOTE_FIELD_ALIASES[name]:
        if raw.get(key) is not None:
            return raw[key]
    return None


def parse_quote(raw: QuoteLike) -> RateQuote:
    """
    Build a RateQuote from a raw benchmark row.

    Raises:
        InvalidRecordError: If term, effective date or rate is missing or not parseable
    """
    if isinstance(raw, RateQuote):
        return raw
    if not isinstance(raw, Mapping):
        raise InvalidRecordError(f"Rate quote must be a mapping, got {type(raw).__name__}")

    term = coerce_float(_quote_field(raw, "term"))
    effective_date = parse_date(_quote_field(raw, "effective_date"))
    rate = coerce_float(_quote_field(raw, "rate"))

    if term is None or effective_date is None or rate is None:
        raise InvalidRecordError(f"Rate quote missing term, date or rate: {dict(raw)}")

    return RateQuote(term_months=int(term), effective_date=effective_date, rate=rate)


class QuoteIndex:
    """Benchmark quotes grouped by term, each group sorted by effective date"""

    def __init__(self, quotes: Iterable[RateQuote]):
        grouped: Dict[int, List[RateQuote]] = defaultdict(list)
        for quote in quotes:
            grouped[quote.term_months].append(quote)

        # Stable sort: quotes sharing a date keep their input order
        self._quotes = {term: sorted(items, key=lambda q: q.effective_date) for term, items in grouped.items()}
        self._dates = {term: [q.effective_date for q in items] for term, items in self._quotes.items()}
        self.terms: List[int] = sorted(self._quotes)

    def __len__(self) -> int:
        return sum(len(items) for items in self._quotes.values())

    def quotes_for(self, term: int) -> List[RateQuote]:
        return list(self._quotes.get(term, []))

    def resolve_term(self, term: int) -> Optional[int]:
        """The requested term if quoted, else the closest quoted term (ties go to the shorter)"""
        if term in self._quotes:
            return term
        if not self.terms:
            return None
        return min(self.terms, key=lambda t: (abs(t - term), t))

    def match(self, term: int, document_date: date, tolerance_days: int) -> Optional[RateQuote]:
        """
        Last quote in effect on the document date.

        Falls back to the earliest quote when none precedes the document
        date, provided it lies within the tolerance window.
        """
        resolved = self.resolve_term(term)
        if resolved is None:
            return None

        quotes = self._quotes[resolved]
        position = bisect.bisect_right(self._dates[resolved], document_date)
        if position > 0:
            return quotes[position - 1]

        # Nothing precedes the document date, so the earliest quote is also the nearest
        nearest = quotes[0]
        if days_between(document_date, nearest.effective_date) <= tolerance_days:
            return nearest
        return None


def build_quote_index(quotes: Sequence[QuoteLike]) -> QuoteIndex:
    """Index raw or parsed quotes; malformed rows raise InvalidRecordError"""
    return QuoteIndex(parse_quote(quote) for quote in quotes)


def match_quote(
    record: NormalizedLoanRecord,
    quotes: Union[QuoteIndex, Sequence[QuoteLike]],
    tolerance_days: Optional[int] = None,
    stats: Optional[MatchingStats] = None,
    config: Optional[Settings] = None,
) -> Optional[RateQuote]:
    """
    Find the benchmark quote applicable to a normalized record.

    A None result is recorded in `stats` (count, loan volume and the
    document month) when a stats accumulator is supplied.

    Raises:
        InvalidRecordError: If the record has no standard committed term
    """
    config = config or settings
    if record.normalized_term is None:
        raise InvalidRecordError(f"Record from {record.lender or 'unknown lender'} has no standard committed term")

    tolerance = config.match_tolerance_days if tolerance_days is None else tolerance_days
    index = quotes if isinstance(quotes, QuoteIndex) else build_quote_index(quotes)

    quote = index.match(record.normalized_term, record.document_date, tolerance)
    if quote is None:
        logger.debug(
            "No swap rate in effect",
            extra={"lender": record.lender, "document_date": record.document_date.isoformat()},
        )
        if stats is not None:
            stats.record_miss(record)
    return quote
