"""
Market Data — Price Batch Schema

Result of a batched quote lookup: prices for the tickers that resolved,
one error string for each ticker that did not.
"""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field, field_validator


class PriceFetchResult(BaseModel):
    """Prices keyed by ticker plus per-ticker error messages."""

    prices: Dict[str, float] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)

    @field_validator("prices")
    @classmethod
    def prices_positive(cls, v: Dict[str, float]) -> Dict[str, float]:
        bad = [t for t, p in v.items() if p <= 0]
        if bad:
            raise ValueError(f"non-positive prices for {bad}")
        return v

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
