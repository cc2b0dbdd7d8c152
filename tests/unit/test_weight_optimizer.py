"""
Weight Optimizer — Unit Tests
Tests for initial weighting, sector shrink, normalization, bounds and settling.
"""

from __future__ import annotations

import pytest

from portfolio_builder.exceptions import PositionBoundsError, ValidationError
from portfolio_builder.schemas.construction_output import Allocation, Candidate
from portfolio_builder.tools.weight_optimizer import (
    apply_sector_constraints,
    assign_initial_weights,
    clamp_weight,
    compute_sector_weights,
    enforce_position_bounds,
    floor_weight,
    normalize_weights,
    settle_weights,
    total_weight,
)

from tests.fixtures.portfolio_data import candidate_record, make_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_alloc(ticker: str, sector: str | None, weight: float) -> Allocation:
    return Allocation.from_candidate(
        Candidate(**candidate_record(ticker, sector, 80, 100.0, weight)), weight
    )


def _weights(allocations) -> list[float]:
    return [a.weight for a in allocations]


# ---------------------------------------------------------------------------
# Helper Function Tests
# ---------------------------------------------------------------------------

class TestHelpers:

    @pytest.mark.schema
    @pytest.mark.parametrize("weight,expected", [(12.0, 10.0), (1.0, 2.0), (6.5, 6.5)])
    def test_clamp_weight(self, weight, expected):
        assert clamp_weight(weight, 2.0, 10.0) == expected

    @pytest.mark.schema
    @pytest.mark.parametrize("weight,expected", [(7.49, 7.4), (7.5, 7.5), (0.1 + 0.2, 0.3)])
    def test_floor_weight(self, weight, expected):
        assert floor_weight(weight) == pytest.approx(expected)

    @pytest.mark.schema
    def test_sector_weights_group_unknown(self):
        allocs = [
            _make_alloc("A", "Energy", 5.0),
            _make_alloc("B", None, 3.0),
            _make_alloc("C", "", 2.0),
        ]
        assert compute_sector_weights(allocs) == {"Energy": 5.0, "Unknown": 5.0}


# ---------------------------------------------------------------------------
# Stage Tests
# ---------------------------------------------------------------------------

class TestAssignInitialWeights:

    @pytest.mark.schema
    def test_suggested_weight_clamped(self):
        cands = [
            Candidate(**candidate_record("HIGH", "Energy", 90, 50.0, 12)),
            Candidate(**candidate_record("LOW", "Energy", 90, 50.0, 1)),
            Candidate(**candidate_record("MID", "Energy", 90, 50.0, 6)),
        ]
        allocs = assign_initial_weights(cands, make_config())
        assert _weights(allocs) == [10.0, 2.0, 6.0]
        assert all(a.shares == 0 for a in allocs)


class TestApplySectorConstraints:

    @pytest.mark.schema
    def test_overweight_sector_scaled_to_cap(self):
        allocs = [
            _make_alloc("AAPL", "Technology", 10.0),
            _make_alloc("MSFT", "Technology", 10.0),
            _make_alloc("XOM", "Energy", 5.0),
        ]
        out = apply_sector_constraints(allocs, 15.0)
        assert _weights(out) == pytest.approx([7.5, 7.5, 5.0])

    @pytest.mark.schema
    def test_freed_weight_not_redistributed(self):
        allocs = [_make_alloc("A", "Technology", 20.0), _make_alloc("B", "Energy", 5.0)]
        out = apply_sector_constraints(allocs, 10.0)
        assert total_weight(out) == pytest.approx(15.0)

    @pytest.mark.schema
    def test_input_not_mutated(self):
        allocs = [_make_alloc("A", "Technology", 20.0)]
        apply_sector_constraints(allocs, 10.0)
        assert allocs[0].weight == 20.0


class TestNormalizeWeights:

    @pytest.mark.schema
    def test_scaled_to_target(self):
        allocs = [_make_alloc("A", "Technology", 7.5), _make_alloc("B", "Technology", 7.5)]
        out = normalize_weights(allocs, 95.0)
        assert _weights(out) == [47.5, 47.5]

    @pytest.mark.schema
    def test_rounded_to_one_decimal(self):
        allocs = [_make_alloc(t, "Energy", 1.0) for t in ("A", "B", "C")]
        out = normalize_weights(allocs, 10.0)
        assert _weights(out) == [3.3, 3.3, 3.3]

    @pytest.mark.schema
    def test_zero_total_is_noop(self):
        allocs = [_make_alloc("A", "Energy", 0.0)]
        assert _weights(normalize_weights(allocs, 95.0)) == [0.0]


class TestEnforcePositionBounds:

    @pytest.mark.schema
    def test_reclamps(self):
        allocs = [_make_alloc("A", "Energy", 47.5), _make_alloc("B", "Energy", 0.5)]
        out = enforce_position_bounds(allocs, 2.0, 10.0)
        assert _weights(out) == [10.0, 2.0]

    @pytest.mark.schema
    def test_inverted_bounds_raise(self):
        with pytest.raises(PositionBoundsError):
            enforce_position_bounds([_make_alloc("A", "Energy", 5.0)], 12.0, 10.0)

    @pytest.mark.schema
    def test_bounds_error_is_validation_error(self):
        assert issubclass(PositionBoundsError, ValidationError)


# ---------------------------------------------------------------------------
# Settling Tests
# ---------------------------------------------------------------------------

class TestSettleWeights:

    @pytest.mark.behavior
    def test_empty(self):
        assert settle_weights([], make_config()) == []

    @pytest.mark.behavior
    def test_normalized_overshoot_pulled_back_under_caps(self):
        # two-pass output for two Tech names under a 15% cap
        allocs = [_make_alloc("AAPL", "Technology", 47.5), _make_alloc("MSFT", "Technology", 47.5)]
        out = settle_weights(allocs, make_config(max_sector_pct=15))
        assert _weights(out) == [7.5, 7.5]

    @pytest.mark.behavior
    def test_shortfall_stays_in_cash_when_positions_full(self):
        allocs = [_make_alloc(t, s, 5.0) for t, s in (("A", "Energy"), ("B", "Utilities"), ("C", "Materials"))]
        out = settle_weights(allocs, make_config())
        assert _weights(out) == [10.0, 10.0, 10.0]

    @pytest.mark.behavior
    def test_excess_trimmed_towards_target(self):
        allocs = [_make_alloc(f"T{i}", f"Sector{i}", 10.0) for i in range(12)]
        out = settle_weights(allocs, make_config())
        assert _weights(out) == [7.9] * 12
        assert total_weight(out) <= 95.0

    @pytest.mark.behavior
    def test_shortfall_prefers_headroom_and_respects_caps(self):
        allocs = [
            _make_alloc("T1", "Technology", 10.0),
            _make_alloc("T2", "Technology", 10.0),
            _make_alloc("T3", "Technology", 4.0),
            _make_alloc("E1", "Energy", 4.0),
        ]
        cfg = make_config()
        out = settle_weights(allocs, cfg)
        sectors = compute_sector_weights(out)
        assert sectors["Technology"] <= cfg.max_sector_pct
        assert all(cfg.min_position_pct <= w <= cfg.max_position_pct for w in _weights(out))
        # Tech fills to its cap, Energy to its position max
        assert sectors["Technology"] == pytest.approx(25.0, abs=0.1)
        assert out[3].weight == 10.0

    @pytest.mark.behavior
    def test_minimum_yields_to_overpopulated_sector(self):
        allocs = [_make_alloc(t, "Technology", 2.0) for t in ("A", "B", "C")]
        out = settle_weights(allocs, make_config(max_sector_pct=5))
        assert _weights(out) == [1.6, 1.6, 1.6]
        assert compute_sector_weights(out)["Technology"] <= 5.0

    @pytest.mark.behavior
    def test_minimum_yields_when_holdings_exceed_investable(self):
        allocs = [_make_alloc(f"T{i}", f"Sector{i}", 8.0) for i in range(12)]
        out = settle_weights(allocs, make_config(min_position_pct=8))
        assert _weights(out) == [7.9] * 12
        assert total_weight(out) <= 95.0

    @pytest.mark.behavior
    def test_minimum_kept_when_it_fits(self):
        allocs = [_make_alloc(f"T{i}", f"Sector{i}", 8.0) for i in range(3)]
        out = settle_weights(allocs, make_config(min_position_pct=8))
        assert _weights(out) == [10.0, 10.0, 10.0]

    @pytest.mark.behavior
    def test_one_decimal_minimum_survives_floor(self):
        # sector exactly full at the minimum: nothing moves, floor must not cut 2.3
        allocs = [_make_alloc(t, "Technology", 2.3) for t in ("A", "B", "C")]
        out = settle_weights(allocs, make_config(min_position_pct=2.3, max_sector_pct=6.9))
        assert _weights(out) == [2.3, 2.3, 2.3]

    @pytest.mark.behavior
    def test_weights_floored_to_one_decimal(self):
        allocs = [_make_alloc(f"T{i}", f"Sector{i}", 10.0) for i in range(12)]
        out = settle_weights(allocs, make_config())
        for w in _weights(out):
            assert round(w, 1) == w

    @pytest.mark.behavior
    def test_input_not_mutated(self):
        allocs = [_make_alloc("A", "Technology", 47.5)]
        settle_weights(allocs, make_config())
        assert allocs[0].weight == 47.5
