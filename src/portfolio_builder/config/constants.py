"""
Centralized configuration for the Portfolio Builder engine.

This module defines all defaults, thresholds, and labels used by the
construction and rebalancing pipelines. Centralizing these values makes it
easier to tune the system and understand decision boundaries.
"""

# ============================================================================
# CONSTRUCTION DEFAULTS
# ============================================================================
# Defaults for ConstructionConfig; every run may override them.

DEFAULT_MAX_HOLDINGS = 12
"""Maximum number of positions kept after screening"""

DEFAULT_CASH_RESERVE_PCT = 5.0
"""Percentage of capital deliberately left uninvested"""

DEFAULT_MAX_SECTOR_PCT = 25.0
"""Maximum aggregate weight of any one sector (percentage points)"""

DEFAULT_MAX_POSITION_PCT = 10.0
"""Maximum weight of a single position (percentage points)"""

DEFAULT_MIN_POSITION_PCT = 2.0
"""Minimum weight of a single position (percentage points)"""

DEFAULT_MIN_CONVICTION = 50
"""Candidates scoring below this conviction are screened out"""

# ============================================================================
# WEIGHT ROUNDING & CONVERGENCE
# ============================================================================

WEIGHT_DECIMALS = 1
"""Weights are reported in tenths of a percentage point"""

TOTAL_WEIGHT_TOLERANCE_PCT = 0.5
"""Tolerance on total weight vs. target (residual drift goes to cash)"""

MAX_SETTLE_PASSES = 25
"""Upper bound on redistribution passes in settle_weights()"""

SETTLE_TOLERANCE_PCT = 0.01
"""Settle loop stops once the gap to target is below this"""

# ============================================================================
# SECTORS & STATISTICS
# ============================================================================

UNKNOWN_SECTOR = "Unknown"
"""Sector label used when a candidate or holding has no sector"""

NEUTRAL_BETA = 1.0
"""Placeholder portfolio beta (no per-candidate beta source yet)"""

# ============================================================================
# REBALANCING
# ============================================================================

DEFAULT_MIN_TRADE_VALUE = 500.0
"""Orders below this dollar value are dropped as sub-economic"""

REASON_REMOVED = "Removed from portfolio"
REASON_REDUCE = "Reduce overweight position"
REASON_NEW = "New position"
REASON_INCREASE = "Increase underweight position"

SELL_REASONS = (REASON_REMOVED, REASON_REDUCE)
BUY_REASONS = (REASON_NEW, REASON_INCREASE)

# ============================================================================
# MARKET DATA
# ============================================================================

MAX_PRICE_FETCH_WORKERS = 8
"""Concurrent quote lookups per batch"""

PRICE_FIELDS = ("regularMarketPrice", "currentPrice")
"""Quote fields checked in order for a usable price"""
