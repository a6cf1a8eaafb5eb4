"""Filter pipeline - independent predicates over enriched records, toggled by flags"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Callable, Iterable, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from premium_analyzer.domain.models import EnrichedLoanRecord, PremiumBand

MonthKey = Annotated[str, Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$")]

# The bucket names fix the threshold
LTV_BUCKET_THRESHOLD_PCT = 80.0


class LtvBucket(str, Enum):
    ALL = "all"
    BELOW_80 = "below-80"
    ABOVE_80 = "above-80"


class FilterCriteria(BaseModel):
    """User-selected view over the enriched record set"""

    model_config = ConfigDict(frozen=True)

    start_month: Optional[MonthKey] = Field(None, description="First month included (YYYY-MM)")
    end_month: Optional[MonthKey] = Field(None, description="Last month included (YYYY-MM)")
    lenders: Tuple[str, ...] = Field((), description="Lender names or aliases; empty selects all")
    min_premium_bps: Optional[int] = None
    max_premium_bps: Optional[int] = None
    product_types: Tuple[str, ...] = ()
    purchase_types: Tuple[str, ...] = ()
    ltv_bucket: LtvBucket = LtvBucket.ALL
    term: Optional[Literal[24, 60]] = None

    @field_validator("lenders", "product_types", "purchase_types", mode="before")
    @classmethod
    def _canonical_selection(cls, value):
        """De-duplicate and sort selections so equal selections serialize identically"""
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(sorted({str(item).strip() for item in value if str(item).strip()}))

    @model_validator(mode="after")
    def _check_ranges(self) -> "FilterCriteria":
        if self.start_month and self.end_month and self.start_month > self.end_month:
            raise ValueError(f"start_month {self.start_month} is after end_month {self.end_month}")
        if (
            self.min_premium_bps is not None
            and self.max_premium_bps is not None
            and self.min_premium_bps > self.max_premium_bps
        ):
            raise ValueError("min_premium_bps must not exceed max_premium_bps")
        return self


class FilterFlags(BaseModel):
    """Which criteria apply; every criterion is on unless switched off"""

    model_config = ConfigDict(frozen=True)

    date_range: bool = True
    lenders: bool = True
    premium_range: bool = True
    product_types: bool = True
    purchase_types: bool = True
    ltv_bucket: bool = True
    term: bool = True


Predicate = Callable[[EnrichedLoanRecord, FilterCriteria], bool]


@dataclass(frozen=True)
class FilterStage:
    """One criterion of the pipeline"""

    name: str  # FilterFlags field that toggles the stage
    fields: Tuple[str, ...]  # FilterCriteria fields the stage reads
    predicate: Predicate
    is_active: Callable[[FilterCriteria], bool]


def date_range_filter(record: EnrichedLoanRecord, criteria: FilterCriteria) -> bool:
    if record.month is None:
        return False
    if criteria.start_month is not None and record.month < criteria.start_month:
        return False
    if criteria.end_month is not None and record.month > criteria.end_month:
        return False
    return True


def lender_filter(record: EnrichedLoanRecord, criteria: FilterCriteria) -> bool:
    selected = criteria.lenders
    return record.lender in selected or record.provider in selected or record.base_lender in selected


def premium_range_filter(record: EnrichedLoanRecord, criteria: FilterCriteria) -> bool:
    """
    Known premiums must lie inside the range. Records carrying only a band
    label pass when the band's half-open interval overlaps the range.
    """
    low, high = criteria.min_premium_bps, criteria.max_premium_bps

    if record.premium_bps is not None:
        if low is not None and record.premium_bps < low:
            return False
        if high is not None and record.premium_bps > high:
            return False
        return True

    band = PremiumBand.parse(record.premium_band)
    if band is None:
        return False
    if high is not None and band.lower > high:
        return False
    if low is not None and band.upper <= low:
        return False
    return True


def product_type_filter(record: EnrichedLoanRecord, criteria: FilterCriteria) -> bool:
    return record.product_type in criteria.product_types


def purchase_type_filter(record: EnrichedLoanRecord, criteria: FilterCriteria) -> bool:
    return record.purchase_type in criteria.purchase_types


def ltv_bucket_filter(record: EnrichedLoanRecord, criteria: FilterCriteria) -> bool:
    # Records without LTV data cannot be bucketed and are kept
    if criteria.ltv_bucket is LtvBucket.ALL or record.ltv is None:
        return True
    if criteria.ltv_bucket is LtvBucket.BELOW_80:
        return record.ltv < LTV_BUCKET_THRESHOLD_PCT
    return record.ltv >= LTV_BUCKET_THRESHOLD_PCT


def term_filter(record: EnrichedLoanRecord, criteria: FilterCriteria) -> bool:
    return record.normalized_term == criteria.term


FILTER_STAGES: List[FilterStage] = [
    FilterStage(
        name="date_range",
        fields=("start_month", "end_month"),
        predicate=date_range_filter,
        is_active=lambda c: c.start_month is not None or c.end_month is not None,
    ),
    FilterStage(
        name="lenders",
        fields=("lenders",),
        predicate=lender_filter,
        is_active=lambda c: bool(c.lenders),
    ),
    FilterStage(
        name="premium_range",
        fields=("min_premium_bps", "max_premium_bps"),
        predicate=premium_range_filter,
        is_active=lambda c: c.min_premium_bps is not None or c.max_premium_bps is not None,
    ),
    FilterStage(
        name="product_types",
        fields=("product_types",),
        predicate=product_type_filter,
        is_active=lambda c: bool(c.product_types),
    ),
    FilterStage(
        name="purchase_types",
        fields=("purchase_types",),
        predicate=purchase_type_filter,
        is_active=lambda c: bool(c.purchase_types),
    ),
    FilterStage(
        name="ltv_bucket",
        fields=("ltv_bucket",),
        predicate=ltv_bucket_filter,
        is_active=lambda c: c.ltv_bucket is not LtvBucket.ALL,
    ),
    FilterStage(
        name="term",
        fields=("term",),
        predicate=term_filter,
        is_active=lambda c: c.term is not None,
    ),
]


def active_stages(criteria: FilterCriteria, flags: FilterFlags) -> List[FilterStage]:
    """Stages whose flag is on and whose criterion actually restricts anything"""
    return [stage for stage in FILTER_STAGES if getattr(flags, stage.name) and stage.is_active(criteria)]


def apply_filters(
    records: Iterable[EnrichedLoanRecord],
    criteria: Optional[FilterCriteria] = None,
    flags: Optional[FilterFlags] = None,
) -> Tuple[EnrichedLoanRecord, ...]:
    """Records satisfying every enabled criterion, in input order"""
    criteria = criteria or FilterCriteria()
    flags = flags or FilterFlags()

    stages = active_stages(criteria, flags)
    if not stages:
        return tuple(records)

    predicates = [stage.predicate for stage in stages]
    return tuple(record for record in records if all(predicate(record, criteria) for predicate in predicates))


def without_lender_filter(flags: Optional[FilterFlags] = None) -> FilterFlags:
    """Flags for market-wide denominators: everything as selected except the lender stage"""
    return (flags or FilterFlags()).model_copy(update={"lenders": False})
