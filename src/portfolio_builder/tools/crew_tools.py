"""
CrewAI Tool Wrappers

JSON-in / JSON-out adapters that expose the construction, price and
rebalance operations to an agent orchestration layer. Requires the
`agents` extra (crewai).
"""

from __future__ import annotations

import json

from crewai.tools import BaseTool
from pydantic import BaseModel, Field, TypeAdapter

from portfolio_builder.config.constants import DEFAULT_MIN_TRADE_VALUE
from portfolio_builder.pipelines.portfolio_constructor import run_construction_pipeline
from portfolio_builder.pipelines.portfolio_rebalancer import run_rebalance_pipeline
from portfolio_builder.schemas.construction_output import ConstructionConfig, Strategy
from portfolio_builder.schemas.rebalance_output import Holding, TargetAllocation
from portfolio_builder.tools.candidate_screener import load_candidates
from portfolio_builder.tools.market_data_fetcher import fetch_current_prices

_holdings_adapter = TypeAdapter(list[Holding])
_targets_adapter = TypeAdapter(list[TargetAllocation])


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class OptimizeAllocationInput(BaseModel):
    candidates_json: str = Field(..., description="JSON list of Candidate records")
    config_json: str = Field(..., description="JSON of ConstructionConfig")
    strategy: Strategy = Field("balanced", description="value, growth or balanced")


class OptimizePortfolioAllocationTool(BaseTool):
    """Build a constrained target allocation from ranked candidates."""

    name: str = "optimize_portfolio_allocation"
    description: str = (
        "Optimize portfolio allocation from candidates with conviction scores. "
        "Applies sector caps, position limits and cash reserve, then sizes "
        "whole-share positions. Invalid candidate records are skipped and "
        "listed under 'errors'"
    )
    args_schema: type[BaseModel] = OptimizeAllocationInput

    def _run(self, candidates_json: str, config_json: str, strategy: Strategy = "balanced") -> str:
        config = ConstructionConfig.model_validate_json(config_json)
        candidates, errors = load_candidates(json.loads(candidates_json), source=self.name)
        result = run_construction_pipeline(candidates, config, strategy)

        payload = result.model_dump(mode="json")
        payload["errors"] = [e.to_dict() for e in errors]
        return json.dumps(payload, indent=2)


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------

class FetchPricesInput(BaseModel):
    tickers: list[str] = Field(..., description="Stock tickers to quote")


class FetchCurrentPricesTool(BaseTool):
    """Fetch current market prices for a list of tickers."""

    name: str = "fetch_current_prices"
    description: str = (
        "Fetch current market prices for a list of tickers; failures are "
        "reported per ticker in 'errors'"
    )
    args_schema: type[BaseModel] = FetchPricesInput

    def _run(self, tickers: list[str]) -> str:
        return fetch_current_prices(tickers).model_dump_json(indent=2)


# ---------------------------------------------------------------------------
# Rebalance
# ---------------------------------------------------------------------------

class RebalanceInput(BaseModel):
    holdings_json: str = Field(..., description="JSON list of Holding records")
    targets_json: str = Field(..., description="JSON list of TargetAllocation records")
    available_cash: float = Field(..., ge=0, description="Uninvested cash")
    min_trade_value: float = Field(
        DEFAULT_MIN_TRADE_VALUE, description="Minimum trade value to execute"
    )


class RebalancePortfolioTool(BaseTool):
    """Calculate the trades that move current holdings to target allocations."""

    name: str = "rebalance_portfolio"
    description: str = (
        "Calculate buy and sell orders needed to rebalance an existing "
        "portfolio to target allocations"
    )
    args_schema: type[BaseModel] = RebalanceInput

    def _run(
        self,
        holdings_json: str,
        targets_json: str,
        available_cash: float,
        min_trade_value: float = DEFAULT_MIN_TRADE_VALUE,
    ) -> str:
        holdings = _holdings_adapter.validate_json(holdings_json)
        targets = _targets_adapter.validate_json(targets_json)
        output = run_rebalance_pipeline(holdings, targets, available_cash, min_trade_value)
        return json.dumps(output.model_dump(), indent=2)
