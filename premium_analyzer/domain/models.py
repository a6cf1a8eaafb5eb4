"""Domain models - pure Python dataclasses representing analysis entities"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

UNKNOWN_BAND = "Unknown"
TOTAL_MARKET_LABEL = "Total Market"

_BAND_LABEL = re.compile(r"^(-?\d+)-(-?\d+)$")


@dataclass(frozen=True)
class RateQuote:
    """Wholesale swap-rate benchmark quote"""

    term_months: int
    effective_date: date
    rate: float  # decimal fraction, 0.015 == 1.5%


@dataclass(frozen=True)
class NormalizedLoanRecord:
    """Disclosure record with canonical field names, units and committed term"""

    lender: str  # BaseLender preferred over Provider, trimmed, may be ""
    provider: str
    base_lender: str
    document_date: date
    month: str  # YYYY-MM
    rate: Optional[float]  # as disclosed, unit not yet inferred; None when absent
    loan_amount: float
    ltv: Optional[float]  # percentage 0-100
    product_type: str
    purchase_type: str
    tie_in_period: Any
    normalized_term: Optional[int]  # 24, 60 or None


@dataclass(frozen=True)
class EnrichedLoanRecord:
    """Normalized record joined with its benchmark quote and premium band"""

    record: NormalizedLoanRecord
    quote: Optional[RateQuote]
    premium_bps: Optional[int]
    premium_band: str
    month: Optional[str]

    @property
    def lender(self) -> str:
        return self.record.lender

    @property
    def provider(self) -> str:
        return self.record.provider

    @property
    def base_lender(self) -> str:
        return self.record.base_lender

    @property
    def loan_amount(self) -> float:
        return self.record.loan_amount

    @property
    def ltv(self) -> Optional[float]:
        return self.record.ltv

    @property
    def product_type(self) -> str:
        return self.record.product_type

    @property
    def purchase_type(self) -> str:
        return self.record.purchase_type

    @property
    def normalized_term(self) -> Optional[int]:
        return self.record.normalized_term

    @property
    def document_date(self) -> date:
        return self.record.document_date

    @property
    def matched(self) -> bool:
        return self.quote is not None


@dataclass(frozen=True, order=True)
class PremiumBand:
    """Half-open premium interval [lower, lower + width) in basis points"""

    lower: int
    width: int = 20

    @property
    def upper(self) -> int:
        return self.lower + self.width

    @property
    def label(self) -> str:
        return f"{self.lower}-{self.upper}"

    @classmethod
    def parse(cls, label: Optional[str]) -> Optional["PremiumBand"]:
        """Parse a "{lower}-{upper}" label; None for "Unknown" or malformed labels"""
        if not label:
            return None
        match = _BAND_LABEL.match(label.strip())
        if match is None:
            return None
        lower, upper = int(match.group(1)), int(match.group(2))
        if upper <= lower:
            return None
        return cls(lower=lower, width=upper - lower)


def band_sort_key(label: str) -> Tuple[int, float]:
    """Order band labels by lower bound, unparseable labels last"""
    band = PremiumBand.parse(label)
    if band is None:
        return (1, 0.0)
    return (0, float(band.lower))


@dataclass
class AggregationResult:
    """Loan volume by premium band and month"""

    bands: List[str] = field(default_factory=list)
    months: List[str] = field(default_factory=list)
    cells: Dict[str, Dict[str, float]] = field(default_factory=dict)  # band -> month -> volume
    totals_by_band: Dict[str, float] = field(default_factory=dict)
    totals_by_month: Dict[str, float] = field(default_factory=dict)
    grand_total: float = 0.0


@dataclass
class MatchingStats:
    """Records for which no benchmark quote could be found"""

    excluded_count: int = 0
    excluded_volume: float = 0.0
    misses_by_month: Dict[str, int] = field(default_factory=dict)

    def record_miss(self, record: NormalizedLoanRecord) -> None:
        self.excluded_count += 1
        self.excluded_volume += record.loan_amount
        self.misses_by_month[record.month] = self.misses_by_month.get(record.month, 0) + 1


@dataclass
class LtvStats:
    """Loan-to-value coverage observed while normalizing a batch"""

    records_with_ltv: int = 0
    records_missing_ltv: int = 0
    ltv_sum: float = 0.0
    below_threshold: int = 0
    above_threshold: int = 0

    @property
    def average_ltv(self) -> Optional[float]:
        if self.records_with_ltv == 0:
            return None
        return self.ltv_sum / self.records_with_ltv

    def observe(self, ltv: Optional[float], threshold: float) -> None:
        if ltv is None:
            self.records_missing_ltv += 1
            return
        self.records_with_ltv += 1
        self.ltv_sum += ltv
        if ltv < threshold:
            self.below_threshold += 1
        else:
            self.above_threshold += 1


@dataclass
class EnrichmentStats:
    """Outcome counts for one enrichment run"""

    input_records: int = 0
    invalid_records: int = 0
    right_to_buy_excluded: int = 0
    non_standard_terms: int = 0
    non_standard_volume: float = 0.0
    enriched_records: int = 0
    matched_records: int = 0
    anomalous_rates: int = 0
    input_volume: float = 0.0
    matched_volume: float = 0.0
    matching: MatchingStats = field(default_factory=MatchingStats)
    ltv: LtvStats = field(default_factory=LtvStats)

    @property
    def exclusion_rate(self) -> float:
        if self.input_records == 0:
            return 0.0
        return self.matching.excluded_count / self.input_records


@dataclass(frozen=True)
class EnrichmentResult:
    """Enriched record set plus the statistics gathered while building it"""

    records: Tuple[EnrichedLoanRecord, ...]
    stats: EnrichmentStats


@dataclass
class ShareCell:
    """Loan volume and share of the filtered market, split by LTV threshold"""

    amount: float = 0.0
    pct: float = 0.0
    below_ltv: float = 0.0
    below_ltv_pct: float = 0.0
    above_ltv: float = 0.0
    above_ltv_pct: float = 0.0


@dataclass
class LenderShareRow:
    """One lender (or the Total Market row) across the selected bands"""

    lender: str
    bands: Dict[str, ShareCell] = field(default_factory=dict)
    total: ShareCell = field(default_factory=ShareCell)


@dataclass
class LenderShareResult:
    """Lender market share over selected premium bands"""

    lenders: List[str]
    per_lender: Dict[str, LenderShareRow]
    band_totals: Dict[str, ShareCell]
    grand_total: ShareCell
    summary_row: LenderShareRow


@dataclass
class HeatmapData:
    """Lender x premium band volumes with row and column percentages"""

    lenders: List[str]
    bands: List[str]
    by_lender: Dict[str, Dict[str, float]]  # lender -> band -> volume
    by_band: Dict[str, Dict[str, float]]  # band -> lender -> volume
    lender_pct: Dict[str, Dict[str, float]]  # share of each lender's own volume
    band_pct: Dict[str, Dict[str, float]]  # share of each band's volume
    lender_totals: Dict[str, float]
    band_totals: Dict[str, float]


@dataclass
class MonthlyLenderShares:
    """Per-month lender volumes and market shares"""

    months: List[str]
    volumes: Dict[str, Dict[str, float]]  # month -> lender -> volume
    shares: Dict[str, Dict[str, float]]  # month -> lender -> pct
    month_totals: Dict[str, float]


@dataclass(frozen=True)
class SummaryStatistics:
    """Descriptive statistics for a numeric record attribute"""

    count: int
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    mean: Optional[float] = None
    median: Optional[float] = None
    std_dev: Optional[float] = None
