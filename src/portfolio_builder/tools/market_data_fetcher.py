"""
Market Data Fetcher — Current prices via yfinance.

Fetches the latest quote for a batch of tickers. Lookups run concurrently
and are isolated per ticker: a failed lookup becomes an error string in the
result and never aborts the rest of the batch. No retries; callers own
retry policy.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

import yfinance as yf

from portfolio_builder.config.constants import MAX_PRICE_FETCH_WORKERS, PRICE_FIELDS
from portfolio_builder.exceptions import ConfigurationError, PriceFetchError
from portfolio_builder.schemas.price_output import PriceFetchResult

logger = logging.getLogger(__name__)


def _unique_tickers(tickers: Iterable[str]) -> List[str]:
    seen: dict[str, None] = {}
    for t in tickers:
        sym = t.strip().upper()
        if sym:
            seen.setdefault(sym, None)
    return list(seen)


def fetch_quote_price(ticker: str) -> float:
    """
    Latest price for one ticker.

    Raises:
        PriceFetchError: quote has no positive price field
    """
    info = yf.Ticker(ticker).info or {}
    for field in PRICE_FIELDS:
        price = info.get(field)
        if price is not None and price > 0:
            return float(price)
    raise PriceFetchError(f"No price for {ticker}")


def _lookup(ticker: str) -> tuple[str, Optional[float], Optional[str]]:
    try:
        return ticker, fetch_quote_price(ticker), None
    except PriceFetchError as e:
        return ticker, None, e.message
    except Exception as e:
        return ticker, None, f"Failed to fetch {ticker}: {e}"


def fetch_current_prices(
    tickers: Iterable[str],
    max_workers: int = MAX_PRICE_FETCH_WORKERS,
) -> PriceFetchResult:
    """
    Batch-fetch current prices for all tickers.

    Returns PriceFetchResult with prices for tickers that resolved and one
    error message per ticker that did not, both in input order.

    Raises:
        ConfigurationError: max_workers < 1
    """
    if max_workers < 1:
        raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}")

    symbols = _unique_tickers(tickers)
    if not symbols:
        return PriceFetchResult()

    logger.info(f"[MarketData] Fetching prices for {len(symbols)} tickers via yfinance ...")

    workers = min(max_workers, len(symbols))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        outcomes = list(executor.map(_lookup, symbols))

    prices: dict[str, float] = {}
    errors: List[str] = []
    for ticker, price, error in outcomes:
        if error is not None:
            logger.warning(f"[MarketData] {error}")
            errors.append(error)
        else:
            prices[ticker] = price

    logger.info(f"[MarketData] Fetched {len(prices)}/{len(symbols)} prices")
    return PriceFetchResult(prices=prices, errors=errors)
