"""
Portfolio Rebalancer Tool: Order Generator

Pure functions for:
- Diffing current holdings against target allocations
- Generating sell orders (full exits and reductions)
- Generating buy orders (new positions and increases) against a cash pool
- Computing net cash change

Sells are generated first; their proceeds fund the buys. Orders worth less
than the minimum trade value are dropped, not deferred. No LLM, no I/O.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

from portfolio_builder.config.constants import (
    DEFAULT_MIN_TRADE_VALUE,
    REASON_INCREASE,
    REASON_NEW,
    REASON_REDUCE,
    REASON_REMOVED,
)
from portfolio_builder.schemas.rebalance_output import (
    BuyOrder,
    Holding,
    SellOrder,
    TargetAllocation,
)

logger = logging.getLogger(__name__)


def generate_sell_orders(
    holdings: Sequence[Holding],
    targets: Sequence[TargetAllocation],
    min_trade_value: float = DEFAULT_MIN_TRADE_VALUE,
) -> Tuple[List[SellOrder], float]:
    """
    Sell holdings that left the target set, trim holdings above target shares.

    Returns:
        (sell_orders, cash_from_sells)
    """
    target_map: Dict[str, TargetAllocation] = {t.ticker: t for t in targets}
    orders: List[SellOrder] = []
    cash_from_sells = 0.0

    for holding in holdings:
        target = target_map.get(holding.ticker)

        if target is None:
            shares, reason = holding.shares, REASON_REMOVED
        elif target.target_shares < holding.shares:
            shares, reason = holding.shares - target.target_shares, REASON_REDUCE
        else:
            continue

        if shares <= 0:
            continue

        proceeds = shares * holding.current_price
        if proceeds < min_trade_value:
            logger.debug(
                f"[Rebalance] Skip sell {holding.ticker}: ${proceeds:,.2f} "
                f"< min trade ${min_trade_value:,.2f}"
            )
            continue

        orders.append(SellOrder(
            ticker=holding.ticker,
            shares=shares,
            estimated_proceeds=proceeds,
            reason=reason,
        ))
        cash_from_sells += proceeds

    return orders, cash_from_sells


def generate_buy_orders(
    holdings: Sequence[Holding],
    targets: Sequence[TargetAllocation],
    investable_cash: float,
    min_trade_value: float = DEFAULT_MIN_TRADE_VALUE,
) -> List[BuyOrder]:
    """
    Buy up to target shares, in target order, while cash lasts.

    Each accepted buy is deducted from the remaining pool, so the total
    cost never exceeds investable_cash. A buy that does not fit is skipped
    and later, cheaper buys may still be accepted.
    """
    current_map: Dict[str, Holding] = {h.ticker: h for h in holdings}
    orders: List[BuyOrder] = []
    remaining = investable_cash

    for target in targets:
        current = current_map.get(target.ticker)
        current_shares = current.shares if current else 0

        if target.target_shares <= current_shares:
            continue

        shares = target.target_shares - current_shares
        cost = shares * target.current_price

        if cost < min_trade_value:
            logger.debug(
                f"[Rebalance] Skip buy {target.ticker}: ${cost:,.2f} "
                f"< min trade ${min_trade_value:,.2f}"
            )
            continue
        if cost > remaining:
            logger.debug(
                f"[Rebalance] Skip buy {target.ticker}: ${cost:,.2f} "
                f"> remaining cash ${remaining:,.2f}"
            )
            continue

        orders.append(BuyOrder(
            ticker=target.ticker,
            shares=shares,
            estimated_cost=cost,
            reason=REASON_NEW if current_shares == 0 else REASON_INCREASE,
        ))
        remaining -= cost

    return orders


def compute_net_cash_change(
    cash_from_sells: float,
    buy_orders: Sequence[BuyOrder],
) -> float:
    """Sell proceeds minus total buy cost."""
    return cash_from_sells - sum(b.estimated_cost for b in buy_orders)
