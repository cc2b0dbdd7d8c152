"""
Portfolio Constructor
Conviction-weighted construction pipeline.

Receives screened Candidates + ConstructionConfig.
Produces PortfolioConstructionResult with:
- Allocations within position bounds and sector caps
- Whole-share sizing against total capital
- Sector breakdown and portfolio statistics

This pipeline sizes positions. It never researches candidates or places
orders.
"""

from __future__ import annotations

import logging
from typing import Sequence

from portfolio_builder.config.constants import NEUTRAL_BETA
from portfolio_builder.schemas.construction_output import (
    Candidate,
    ConstructionConfig,
    PortfolioConstructionResult,
    PortfolioStats,
    Strategy,
)
from portfolio_builder.tools.candidate_screener import screen_candidates
from portfolio_builder.tools.portfolio_stats import (
    compute_portfolio_stats,
    compute_sector_breakdown,
    compute_totals,
)
from portfolio_builder.tools.share_allocator import allocate_shares
from portfolio_builder.tools.weight_optimizer import (
    apply_sector_constraints,
    assign_initial_weights,
    enforce_position_bounds,
    normalize_weights,
    settle_weights,
    total_weight,
)

logger = logging.getLogger(__name__)


def empty_construction_result(strategy: Strategy = "balanced") -> PortfolioConstructionResult:
    """Terminal result when no candidate survives screening: all cash."""
    return PortfolioConstructionResult(
        allocations=[],
        total_weight=0.0,
        cash_reserve=100.0,
        sector_breakdown={},
        portfolio_stats=PortfolioStats(
            average_conviction=0,
            average_upside=None,
            holdings_count=0,
            estimated_beta=NEUTRAL_BETA,
        ),
        strategy=strategy,
    )


def run_construction_pipeline(
    candidates: Sequence[Candidate],
    config: ConstructionConfig,
    strategy: Strategy = "balanced",
) -> PortfolioConstructionResult:
    """
    Run the deterministic construction pipeline.

    Args:
        candidates: Screened candidates with conviction scores
        config: Capital, holdings limit, cash reserve and bounds
        strategy: Recorded on the result; does not change weighting yet

    Returns:
        Validated PortfolioConstructionResult
    """
    logger.info(
        f"[Construction] Running construction pipeline ({strategy}) on "
        f"{len(candidates)} candidates, ${config.total_capital:,.0f} capital ..."
    )

    # Step 1: Screen
    eligible = screen_candidates(candidates, config)
    if not eligible:
        logger.info(
            f"[Construction] No candidate at conviction >= {config.min_conviction}; "
            f"portfolio stays 100% cash"
        )
        return empty_construction_result(strategy)

    target_total = config.target_total_weight

    # Step 2: Seed weights within position bounds
    allocations = assign_initial_weights(eligible, config)

    # Step 3: Shrink over-concentrated sectors
    allocations = apply_sector_constraints(allocations, config.max_sector_pct)

    # Step 4: Normalize, re-clamp, normalize again
    allocations = normalize_weights(allocations, target_total)
    allocations = enforce_position_bounds(
        allocations, config.min_position_pct, config.max_position_pct
    )
    allocations = normalize_weights(allocations, target_total)
    logger.debug(
        f"[Construction] After normalization: {total_weight(allocations):.1f}% "
        f"(target {target_total:.1f}%)"
    )

    # Step 5: Settle residual bound / sector violations
    allocations = settle_weights(allocations, config)

    # Step 6: Whole shares
    allocations = allocate_shares(allocations, config.total_capital)

    # Step 7: Aggregates
    sector_breakdown = compute_sector_breakdown(allocations)
    stats = compute_portfolio_stats(allocations)
    total, cash = compute_totals(allocations)

    result = PortfolioConstructionResult(
        allocations=allocations,
        total_weight=total,
        cash_reserve=cash,
        sector_breakdown=sector_breakdown,
        portfolio_stats=stats,
        strategy=strategy,
    )

    invested = sum(a.target_value for a in allocations)
    logger.info(
        f"[Construction] Done — {stats.holdings_count} holdings across "
        f"{len(sector_breakdown)} sectors, {total:.1f}% invested "
        f"(${invested:,.0f}), {cash:.1f}% cash"
    )
    return result
