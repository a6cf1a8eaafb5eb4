"""Lender market share across selected premium bands"""

from typing import Dict, Iterable, List, Sequence

from premium_analyzer.domain.models import (
    TOTAL_MARKET_LABEL,
    EnrichedLoanRecord,
    LenderShareResult,
    LenderShareRow,
    ShareCell,
)


def _pct(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def _add(cell: ShareCell, amount: float, ltv, ltv_threshold_pct: float) -> None:
    cell.amount += amount
    # Records without LTV count in the amount only
    if ltv is None:
        return
    if ltv < ltv_threshold_pct:
        cell.below_ltv += amount
    else:
        cell.above_ltv += amount


def _fill_pct(cell: ShareCell, whole: ShareCell) -> None:
    cell.pct = _pct(cell.amount, whole.amount)
    cell.below_ltv_pct = _pct(cell.below_ltv, whole.below_ltv)
    cell.above_ltv_pct = _pct(cell.above_ltv, whole.above_ltv)


def _as_summary(cell: ShareCell) -> ShareCell:
    return ShareCell(
        amount=cell.amount,
        pct=100.0,
        below_ltv=cell.below_ltv,
        below_ltv_pct=100.0,
        above_ltv=cell.above_ltv,
        above_ltv_pct=100.0,
    )


def lender_share(
    records: Iterable[EnrichedLoanRecord],
    selected_bands: Sequence[str],
    ltv_threshold_pct: float = 80.0,
) -> LenderShareResult:
    """
    Each lender's share of the selected premium bands.

    Requirements:
    - `records` are filtered with every criterion except the lender
      selection, so shares are relative to the whole filtered market
    - Every lender present in `records` gets a row, zero-filled for bands
      it has no volume in
    - Band percentages are relative to the band's total, the lender total
      to the overall total across the selected bands
    - The "Total Market" summary row carries the band and overall totals
      at exactly 100% everywhere

    Args:
        records: Enriched records, lender filter disabled
        selected_bands: Band labels to report on, in display order
        ltv_threshold_pct: Split point for the below/above LTV columns

    Returns:
        LenderShareResult with lenders sorted by name
    """
    records = list(records)
    bands: List[str] = list(dict.fromkeys(selected_bands))
    band_set = set(bands)

    lenders = sorted({record.lender for record in records if record.lender})
    per_lender: Dict[str, LenderShareRow] = {
        lender: LenderShareRow(lender=lender, bands={band: ShareCell() for band in bands}) for lender in lenders
    }
    band_totals: Dict[str, ShareCell] = {band: ShareCell() for band in bands}

    for record in records:
        if not record.lender or record.premium_band not in band_set:
            continue
        amount = record.loan_amount or 0.0
        _add(per_lender[record.lender].bands[record.premium_band], amount, record.ltv, ltv_threshold_pct)
        _add(band_totals[record.premium_band], amount, record.ltv, ltv_threshold_pct)

    grand_total = ShareCell()
    for band in bands:
        grand_total.amount += band_totals[band].amount
        grand_total.below_ltv += band_totals[band].below_ltv
        grand_total.above_ltv += band_totals[band].above_ltv

    for row in per_lender.values():
        for band, cell in row.bands.items():
            _fill_pct(cell, band_totals[band])
            row.total.amount += cell.amount
            row.total.below_ltv += cell.below_ltv
            row.total.above_ltv += cell.above_ltv
        _fill_pct(row.total, grand_total)

    summary_row = LenderShareRow(
        lender=TOTAL_MARKET_LABEL,
        bands={band: _as_summary(band_totals[band]) for band in bands},
        total=_as_summary(grand_total),
    )

    return LenderShareResult(
        lenders=lenders,
        per_lender=per_lender,
        band_totals=band_totals,
        grand_total=grand_total,
        summary_row=summary_row,
    )
