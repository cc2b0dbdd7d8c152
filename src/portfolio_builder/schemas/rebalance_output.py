"""
Portfolio Rebalancer — Input & Output Schemas

Input contract (Holding, TargetAllocation) and output contract
(SellOrder, BuyOrder, RebalanceOutput) for the rebalancing pipeline.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portfolio_builder.config.constants import BUY_REASONS, SELL_REASONS


# ---------------------------------------------------------------------------
# Input Models
# ---------------------------------------------------------------------------

class Holding(BaseModel):
    """A position in the current portfolio, supplied externally."""

    model_config = ConfigDict(frozen=True)

    ticker: str = Field(..., min_length=1, max_length=10)
    shares: int = Field(..., ge=0)
    current_price: float = Field(..., gt=0)
    sector: Optional[str] = Field(None)

    @field_validator("ticker")
    @classmethod
    def ticker_uppercase(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def market_value(self) -> float:
        return self.shares * self.current_price


class TargetAllocation(BaseModel):
    """Desired end state for one ticker."""

    model_config = ConfigDict(frozen=True)

    ticker: str = Field(..., min_length=1, max_length=10)
    target_weight: float = Field(..., ge=0.0, le=100.0)
    target_shares: int = Field(..., ge=0)
    current_price: float = Field(..., gt=0)

    @field_validator("ticker")
    @classmethod
    def ticker_uppercase(cls, v: str) -> str:
        return v.strip().upper()


# ---------------------------------------------------------------------------
# Output Models
# ---------------------------------------------------------------------------

class SellOrder(BaseModel):
    """Sell all or part of a holding."""

    ticker: str = Field(..., min_length=1, max_length=10)
    shares: int = Field(..., gt=0)
    estimated_proceeds: float = Field(..., ge=0)
    reason: str = Field(...)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        if v not in SELL_REASONS:
            raise ValueError(f"reason must be one of {SELL_REASONS}, got '{v}'")
        return v


class BuyOrder(BaseModel):
    """Open or increase a position."""

    ticker: str = Field(..., min_length=1, max_length=10)
    shares: int = Field(..., gt=0)
    estimated_cost: float = Field(..., ge=0)
    reason: str = Field(...)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        if v not in BUY_REASONS:
            raise ValueError(f"reason must be one of {BUY_REASONS}, got '{v}'")
        return v


class RebalanceOutput(BaseModel):
    """Top-level output contract for the rebalancing pipeline."""

    sell_orders: List[SellOrder] = Field(default_factory=list)
    buy_orders: List[BuyOrder] = Field(default_factory=list)
    cash_from_sells: float = Field(0.0, ge=0)
    net_cash_change: float = Field(...)
    trades_count: int = Field(..., ge=0)

    @property
    def total_buy_cost(self) -> float:
        return sum(b.estimated_cost for b in self.buy_orders)

    @model_validator(mode="after")
    def validate_cash_flow(self) -> "RebalanceOutput":
        """Net cash change is sell proceeds minus buy cost."""
        expected_net = self.cash_from_sells - self.total_buy_cost
        if abs(self.net_cash_change - expected_net) > 1e-6:
            raise ValueError(
                f"net_cash_change={self.net_cash_change:.2f} doesn't match "
                f"sells({self.cash_from_sells:.2f}) - buys({self.total_buy_cost:.2f}) "
                f"= {expected_net:.2f}"
            )
        return self

    @model_validator(mode="after")
    def validate_trades_count(self) -> "RebalanceOutput":
        expected = len(self.sell_orders) + len(self.buy_orders)
        if self.trades_count != expected:
            raise ValueError(f"trades_count={self.trades_count}, expected {expected}")
        return self
