"""
Portfolio Construction Tool: Statistics & Sector Breakdown

Pure aggregation over final allocations:
- total weight and its cash-reserve complement
- average conviction / upside, holdings count, estimated beta
- per-sector count, weight and member tickers
"""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

from portfolio_builder.config.constants import NEUTRAL_BETA, WEIGHT_DECIMALS
from portfolio_builder.schemas.construction_output import (
    Allocation,
    PortfolioStats,
    SectorExposure,
)


def compute_totals(allocations: Sequence[Allocation]) -> Tuple[float, float]:
    """
    Returns (total_weight, cash_reserve), both rounded to one decimal.

    cash_reserve is derived from the rounded total so the two always sum
    to 100.
    """
    total = round(sum(a.weight for a in allocations), WEIGHT_DECIMALS)
    cash = round(100.0 - total, WEIGHT_DECIMALS)
    return total, cash


def compute_sector_breakdown(
    allocations: Sequence[Allocation],
) -> Dict[str, SectorExposure]:
    """Group allocations by sector, in order of first appearance."""
    grouped: Dict[str, list[Allocation]] = {}
    for a in allocations:
        grouped.setdefault(a.sector_key, []).append(a)

    return {
        sector: SectorExposure(
            count=len(members),
            weight=round(sum(m.weight for m in members), WEIGHT_DECIMALS),
            tickers=[m.ticker for m in members],
        )
        for sector, members in grouped.items()
    }


def compute_portfolio_stats(allocations: Sequence[Allocation]) -> PortfolioStats:
    """
    Summary statistics for the final allocations.

    estimated_beta stays at the neutral placeholder until per-candidate
    betas are supplied by the research stage.
    """
    if not allocations:
        return PortfolioStats(
            average_conviction=0,
            average_upside=None,
            holdings_count=0,
            estimated_beta=NEUTRAL_BETA,
        )

    average_conviction = round(sum(a.conviction_score for a in allocations) / len(allocations))

    upsides = [a.composite_upside for a in allocations if a.composite_upside is not None]
    average_upside = (
        round(sum(upsides) / len(upsides), WEIGHT_DECIMALS) if upsides else None
    )

    return PortfolioStats(
        average_conviction=average_conviction,
        average_upside=average_upside,
        holdings_count=len(allocations),
        estimated_beta=NEUTRAL_BETA,
    )
