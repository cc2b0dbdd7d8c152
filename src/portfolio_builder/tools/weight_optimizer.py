"""
Portfolio Construction Tool: Weight Optimizer

Pure functions for:
- Seeding weights from suggested weights within position bounds
- Shrinking over-concentrated sectors
- Normalizing weights to the investable total (100 - cash reserve)
- Re-clamping to position bounds
- Settling the residual gap without breaking bounds or sector caps

Every function returns a new list of Allocation copies; inputs are never
mutated. No LLM, no I/O.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from portfolio_builder.config.constants import (
    MAX_SETTLE_PASSES,
    SETTLE_TOLERANCE_PCT,
    WEIGHT_DECIMALS,
)
from portfolio_builder.exceptions import PositionBoundsError
from portfolio_builder.schemas.construction_output import (
    Allocation,
    Candidate,
    ConstructionConfig,
)

logger = logging.getLogger(__name__)

_EPS = 1e-9


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def clamp_weight(weight: float, min_pct: float, max_pct: float) -> float:
    return min(max(weight, min_pct), max_pct)


def round_weight(weight: float) -> float:
    return round(weight, WEIGHT_DECIMALS)


def floor_weight(weight: float) -> float:
    """Round down to one decimal, ignoring float noise just below a tenth."""
    scale = 10 ** WEIGHT_DECIMALS
    return math.floor(weight * scale + 1e-6) / scale


def total_weight(allocations: Sequence[Allocation]) -> float:
    return sum(a.weight for a in allocations)


def compute_sector_weights(allocations: Sequence[Allocation]) -> Dict[str, float]:
    """Aggregate weight per sector label (missing sector -> 'Unknown')."""
    weights: Dict[str, float] = defaultdict(float)
    for a in allocations:
        weights[a.sector_key] += a.weight
    return dict(weights)


# ---------------------------------------------------------------------------
# Pipeline Stages
# ---------------------------------------------------------------------------

def assign_initial_weights(
    candidates: Sequence[Candidate],
    config: ConstructionConfig,
) -> List[Allocation]:
    """Seed each allocation with its suggested weight clamped to position bounds."""
    return [
        Allocation.from_candidate(
            c,
            clamp_weight(c.suggested_weight, config.min_position_pct, config.max_position_pct),
        )
        for c in candidates
    ]


def apply_sector_constraints(
    allocations: Sequence[Allocation],
    max_sector_pct: float,
) -> List[Allocation]:
    """
    Scale every sector above max_sector_pct down to exactly the cap.

    Single proportional pass: sectors at or under the cap are untouched and
    the freed weight is not handed to other sectors.
    """
    sector_weights = compute_sector_weights(allocations)
    overweight = {s: w for s, w in sector_weights.items() if w > max_sector_pct}

    if not overweight:
        return list(allocations)

    for sector, weight in overweight.items():
        logger.debug(
            f"[Weights] Sector {sector} at {weight:.1f}% > cap {max_sector_pct:.1f}%, "
            f"scaling by {max_sector_pct / weight:.3f}"
        )

    return [
        a.model_copy(update={"weight": a.weight * max_sector_pct / overweight[a.sector_key]})
        if a.sector_key in overweight
        else a
        for a in allocations
    ]


def normalize_weights(
    allocations: Sequence[Allocation],
    target_total: float,
) -> List[Allocation]:
    """
    Rescale all weights by one factor so they sum to target_total.

    Weights are rounded to one decimal, so the sum may drift from the target
    by a few tenths. No-op when the current total is zero.
    """
    current_total = total_weight(allocations)
    if current_total == 0:
        return list(allocations)

    scale = target_total / current_total
    return [
        a.model_copy(update={"weight": round_weight(a.weight * scale)})
        for a in allocations
    ]


def enforce_position_bounds(
    allocations: Sequence[Allocation],
    min_pct: float,
    max_pct: float,
) -> List[Allocation]:
    """Re-clamp every weight to [min_pct, max_pct]."""
    if min_pct > max_pct:
        raise PositionBoundsError(
            f"min_position_pct {min_pct} exceeds max_position_pct {max_pct}"
        )
    return [
        a.model_copy(update={"weight": clamp_weight(a.weight, min_pct, max_pct)})
        for a in allocations
    ]


# ---------------------------------------------------------------------------
# Settling
# ---------------------------------------------------------------------------

def _cap_sectors(
    weights: List[float],
    sectors: List[str],
    cap: float,
) -> List[float]:
    totals: Dict[str, float] = defaultdict(float)
    for w, s in zip(weights, sectors):
        totals[s] += w
    return [
        w * cap / totals[s] if totals[s] > cap else w
        for w, s in zip(weights, sectors)
    ]


def _fill_headroom(
    weights: List[float],
    sectors: List[str],
    gap: float,
    max_pct: float,
    cap: float,
) -> Tuple[List[float], float]:
    """Hand out up to `gap` to positions below max in sectors below the cap."""
    totals: Dict[str, float] = defaultdict(float)
    for w, s in zip(weights, sectors):
        totals[s] += w

    eligible = [
        i for i, (w, s) in enumerate(zip(weights, sectors))
        if w < max_pct - _EPS and totals[s] < cap - _EPS
    ]
    if not eligible:
        return weights, 0.0

    basis = sum(weights[i] for i in eligible)
    increments: Dict[int, float] = {}
    for i in eligible:
        share = weights[i] / basis if basis > 0 else 1.0 / len(eligible)
        increments[i] = min(gap * share, max_pct - weights[i])

    by_sector: Dict[str, List[int]] = defaultdict(list)
    for i in increments:
        by_sector[sectors[i]].append(i)
    for sector, idxs in by_sector.items():
        room = cap - totals[sector]
        wanted = sum(increments[i] for i in idxs)
        if wanted > room:
            factor = room / wanted
            for i in idxs:
                increments[i] *= factor

    new_weights = list(weights)
    for i, inc in increments.items():
        new_weights[i] += inc
    return new_weights, sum(increments.values())


def _trim_excess(
    weights: List[float],
    excess: float,
    min_pct: float,
) -> Tuple[List[float], float]:
    """Take up to `excess` from positions above min, proportional to their surplus."""
    surplus = {i: w - min_pct for i, w in enumerate(weights) if w > min_pct + _EPS}
    available = sum(surplus.values())
    if available <= 0:
        return weights, 0.0

    take = min(excess, available)
    new_weights = list(weights)
    for i, extra in surplus.items():
        new_weights[i] -= take * extra / available
    return new_weights, take


def settle_weights(
    allocations: Sequence[Allocation],
    config: ConstructionConfig,
) -> List[Allocation]:
    """
    Bring weights into bounds, under sector caps and as close to the
    investable total as those constraints allow.

    Runs after the two clamp/normalize passes, which on their own can leave
    weights outside the position bounds or sectors above the cap:

    1. clamp to [min_position_pct, max_position_pct], shrink over-cap sectors
    2. while |target - total| > SETTLE_TOLERANCE_PCT (at most
       MAX_SETTLE_PASSES times): distribute a shortfall over positions with
       headroom, or trim an excess from positions above the minimum
    3. floor every weight to one decimal

    Whatever cannot be placed stays in the cash reserve. The minimum bound
    gives way in two cases: a sector has more members than
    max_sector_pct / min_position_pct, or the holdings at the minimum
    already add up to more than the investable total. In the second case
    every position's floor drops to target / len(allocations), rounded down.
    """
    if not allocations:
        return []

    min_pct, max_pct = config.min_position_pct, config.max_position_pct
    cap = config.max_sector_pct
    target = config.target_total_weight

    if len(allocations) * min_pct > target:
        min_pct = floor_weight(target / len(allocations))
        logger.warning(
            f"[Weights] {len(allocations)} holdings x {config.min_position_pct:.1f}% "
            f"exceeds investable {target:.1f}%; minimum lowered to {min_pct:.1f}%"
        )

    sectors = [a.sector_key for a in allocations]
    weights = [clamp_weight(a.weight, min_pct, max_pct) for a in allocations]
    weights = _cap_sectors(weights, sectors, cap)

    passes = 0
    for passes in range(1, MAX_SETTLE_PASSES + 1):
        gap = target - sum(weights)
        if abs(gap) <= SETTLE_TOLERANCE_PCT:
            break
        if gap > 0:
            weights, moved = _fill_headroom(weights, sectors, gap, max_pct, cap)
        else:
            weights, moved = _trim_excess(weights, -gap, min_pct)
        if moved <= _EPS:
            break

    settled = [floor_weight(w) for w in weights]
    logger.debug(
        f"[Weights] Settled after {passes} pass(es): total {sum(settled):.1f}% "
        f"vs target {target:.1f}%"
    )
    return [a.model_copy(update={"weight": w}) for a, w in zip(allocations, settled)]
