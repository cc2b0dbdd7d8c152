"""
Portfolio Construction — Input & Output Schemas

Input contract (Candidate, ConstructionConfig) and output contract
(Allocation, SectorExposure, PortfolioStats, PortfolioConstructionResult)
for the construction pipeline.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from portfolio_builder.config.constants import (
    DEFAULT_CASH_RESERVE_PCT,
    DEFAULT_MAX_HOLDINGS,
    DEFAULT_MAX_POSITION_PCT,
    DEFAULT_MAX_SECTOR_PCT,
    DEFAULT_MIN_CONVICTION,
    DEFAULT_MIN_POSITION_PCT,
    NEUTRAL_BETA,
    TOTAL_WEIGHT_TOLERANCE_PCT,
    UNKNOWN_SECTOR,
    WEIGHT_DECIMALS,
)


Strategy = Literal["value", "growth", "balanced"]


def sector_label(sector: Optional[str]) -> str:
    """Sector key used for grouping; missing or blank sectors map to 'Unknown'."""
    if sector is None or not sector.strip():
        return UNKNOWN_SECTOR
    return sector


# ---------------------------------------------------------------------------
# Input Models
# ---------------------------------------------------------------------------

class Candidate(BaseModel):
    """A screened investment candidate, produced by an external research stage."""

    model_config = ConfigDict(frozen=True)

    ticker: str = Field(..., min_length=1, max_length=10)
    company_name: str = Field(..., min_length=1)
    sector: Optional[str] = Field(None)
    current_price: float = Field(..., gt=0)
    conviction_score: float = Field(..., ge=0, le=100)
    conviction_level: str = Field(..., min_length=1)
    suggested_weight: float = Field(..., ge=0, le=100)
    max_weight: float = Field(..., ge=0, le=100)
    composite_upside: Optional[float] = Field(None, description="Expected upside %")
    tier1_score: float = Field(0.0)
    bull_factors: List[str] = Field(default_factory=list)
    bear_factors: List[str] = Field(default_factory=list)
    key_risks: List[str] = Field(default_factory=list)
    beta: Optional[float] = Field(None, description="Not used until a beta source exists")

    @field_validator("ticker")
    @classmethod
    def ticker_uppercase(cls, v: str) -> str:
        return v.strip().upper()


class ConstructionConfig(BaseModel):
    """Per-run construction parameters. All percentages are 0-100."""

    total_capital: float = Field(..., gt=0)
    max_holdings: int = Field(DEFAULT_MAX_HOLDINGS, ge=1)
    cash_reserve_pct: float = Field(DEFAULT_CASH_RESERVE_PCT, ge=0, le=100)
    max_sector_pct: float = Field(DEFAULT_MAX_SECTOR_PCT, gt=0, le=100)
    max_position_pct: float = Field(DEFAULT_MAX_POSITION_PCT, gt=0, le=100)
    min_position_pct: float = Field(DEFAULT_MIN_POSITION_PCT, ge=0, le=100)
    min_conviction: float = Field(DEFAULT_MIN_CONVICTION, ge=0, le=100)

    @property
    def target_total_weight(self) -> float:
        return 100.0 - self.cash_reserve_pct

    @model_validator(mode="after")
    def validate_position_bounds(self) -> "ConstructionConfig":
        if self.min_position_pct > self.max_position_pct:
            raise ValueError(
                f"min_position_pct={self.min_position_pct} exceeds "
                f"max_position_pct={self.max_position_pct}"
            )
        return self

    @field_validator(
        "cash_reserve_pct", "max_sector_pct", "max_position_pct", "min_position_pct"
    )
    @classmethod
    def one_decimal(cls, v: float) -> float:
        """Weights are tenths of a percent; a finer bound could not be met."""
        if abs(round(v, WEIGHT_DECIMALS) - v) > 1e-9:
            raise ValueError(f"{v} has more than {WEIGHT_DECIMALS} decimal place(s)")
        return v


# ---------------------------------------------------------------------------
# Output Models
# ---------------------------------------------------------------------------

class Allocation(BaseModel):
    """One position in a constructed portfolio. Stages copy, never mutate."""

    model_config = ConfigDict(frozen=True)

    ticker: str = Field(..., min_length=1, max_length=10)
    company_name: str = Field(..., min_length=1)
    sector: Optional[str] = Field(None)
    weight: float = Field(..., ge=0.0, le=100.0, description="% of total capital")
    shares: int = Field(0, ge=0)
    target_value: float = Field(0.0, ge=0.0, description="shares x current_price")
    current_price: float = Field(..., gt=0)
    conviction_score: float = Field(..., ge=0, le=100)
    conviction_level: str = Field(...)
    composite_upside: Optional[float] = Field(None)
    tier1_score: float = Field(0.0)
    bull_factors: List[str] = Field(default_factory=list)
    bear_factors: List[str] = Field(default_factory=list)
    key_risks: List[str] = Field(default_factory=list)

    @property
    def sector_key(self) -> str:
        return sector_label(self.sector)

    @classmethod
    def from_candidate(cls, candidate: Candidate, weight: float) -> "Allocation":
        return cls(
            ticker=candidate.ticker,
            company_name=candidate.company_name,
            sector=candidate.sector,
            weight=weight,
            current_price=candidate.current_price,
            conviction_score=candidate.conviction_score,
            conviction_level=candidate.conviction_level,
            composite_upside=candidate.composite_upside,
            tier1_score=candidate.tier1_score,
            bull_factors=list(candidate.bull_factors),
            bear_factors=list(candidate.bear_factors),
            key_risks=list(candidate.key_risks),
        )


class SectorExposure(BaseModel):
    """Aggregate of the allocations in one sector."""

    count: int = Field(..., ge=0)
    weight: float = Field(..., ge=0.0)
    tickers: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_count(self) -> "SectorExposure":
        if self.count != len(self.tickers):
            raise ValueError(
                f"count={self.count} doesn't match {len(self.tickers)} tickers"
            )
        return self


class PortfolioStats(BaseModel):
    """Summary statistics over the final allocations."""

    average_conviction: float = Field(..., ge=0, le=100)
    average_upside: Optional[float] = Field(None)
    holdings_count: int = Field(..., ge=0)
    estimated_beta: float = Field(NEUTRAL_BETA)


class PortfolioConstructionResult(BaseModel):
    """Top-level output contract for the construction pipeline."""

    allocations: List[Allocation] = Field(default_factory=list)
    total_weight: float = Field(..., ge=0.0, le=100.0)
    cash_reserve: float = Field(..., ge=0.0, le=100.0)
    sector_breakdown: Dict[str, SectorExposure] = Field(default_factory=dict)
    portfolio_stats: PortfolioStats = Field(...)
    strategy: Strategy = Field("balanced")

    @model_validator(mode="after")
    def validate_complement(self) -> "PortfolioConstructionResult":
        """cash_reserve is the complement of total_weight."""
        if abs(self.total_weight + self.cash_reserve - 100.0) > 1e-6:
            raise ValueError(
                f"total_weight({self.total_weight}) + cash_reserve({self.cash_reserve}) != 100"
            )
        return self

    @model_validator(mode="after")
    def validate_holdings_count(self) -> "PortfolioConstructionResult":
        if self.portfolio_stats.holdings_count != len(self.allocations):
            raise ValueError(
                f"holdings_count={self.portfolio_stats.holdings_count} but "
                f"{len(self.allocations)} allocations"
            )
        return self

    @property
    def is_empty(self) -> bool:
        return not self.allocations

    def within_target(self, cash_reserve_pct: float) -> bool:
        """True when total weight respects the investable target (with tolerance)."""
        return self.total_weight <= 100.0 - cash_reserve_pct + TOTAL_WEIGHT_TOLERANCE_PCT
