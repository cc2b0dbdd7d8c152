"""
Portfolio Rebalancer
Transition from current holdings to target allocations.

Receives current Holdings + TargetAllocations + available cash.
Produces RebalanceOutput with:
- Sell orders (exits and reductions, in holdings order)
- Buy orders funded by available cash plus sell proceeds
- Net cash change and trade count

This pipeline plans trades. It never executes them.
"""

from __future__ import annotations

import logging
from typing import Sequence

from portfolio_builder.config.constants import DEFAULT_MIN_TRADE_VALUE
from portfolio_builder.schemas.rebalance_output import (
    Holding,
    RebalanceOutput,
    TargetAllocation,
)
from portfolio_builder.tools.order_generator import (
    compute_net_cash_change,
    generate_buy_orders,
    generate_sell_orders,
)

logger = logging.getLogger(__name__)


def run_rebalance_pipeline(
    current_holdings: Sequence[Holding],
    target_allocations: Sequence[TargetAllocation],
    available_cash: float,
    min_trade_value: float = DEFAULT_MIN_TRADE_VALUE,
) -> RebalanceOutput:
    """
    Run the deterministic rebalancing pipeline.

    Sells are assumed to settle before buys, so their proceeds join the
    available cash pool.

    Args:
        current_holdings: Existing positions with current prices
        target_allocations: Desired end state
        available_cash: Uninvested cash before trading (>= 0)
        min_trade_value: Orders below this dollar value are dropped

    Returns:
        Validated RebalanceOutput
    """
    if available_cash < 0:
        raise ValueError(f"available_cash must be >= 0, got {available_cash}")

    logger.info(
        f"[Rebalance] Running rebalance pipeline: {len(current_holdings)} holdings, "
        f"{len(target_allocations)} targets, ${available_cash:,.0f} cash ..."
    )

    # Phase 1: Sells
    sell_orders, cash_from_sells = generate_sell_orders(
        current_holdings, target_allocations, min_trade_value
    )

    # Phase 2: Buys against the combined pool
    investable_cash = available_cash + cash_from_sells
    buy_orders = generate_buy_orders(
        current_holdings, target_allocations, investable_cash, min_trade_value
    )

    net_cash_change = compute_net_cash_change(cash_from_sells, buy_orders)

    output = RebalanceOutput(
        sell_orders=sell_orders,
        buy_orders=buy_orders,
        cash_from_sells=cash_from_sells,
        net_cash_change=net_cash_change,
        trades_count=len(sell_orders) + len(buy_orders),
    )

    logger.info(
        f"[Rebalance] Done — {len(sell_orders)} sells (${cash_from_sells:,.0f}), "
        f"{len(buy_orders)} buys (${output.total_buy_cost:,.0f}), "
        f"net cash ${net_cash_change:,.0f}"
    )
    return output
