"""
Portfolio Construction Tool: Candidate Screener

Pure functions for:
- Parsing raw candidate records into validated Candidate models
- Filtering by minimum conviction
- Ranking by conviction (stable) and truncating to max holdings

No LLM, no network I/O.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from portfolio_builder.exceptions import (
    ErrorSeverity,
    ProcessingError,
    record_failure,
)
from portfolio_builder.schemas.construction_output import Candidate, ConstructionConfig

logger = logging.getLogger(__name__)


def load_candidates(
    records: Iterable[dict],
    source: str = "screening",
) -> Tuple[List[Candidate], List[ProcessingError]]:
    """
    Parse raw candidate dicts into Candidate models.

    A record that fails validation (e.g. non-positive price) is dropped and
    reported; the remaining records are still returned. Duplicate tickers
    keep the first occurrence.

    Returns:
        (candidates, errors)
    """
    candidates: List[Candidate] = []
    errors: List[ProcessingError] = []
    seen: set[str] = set()

    for idx, record in enumerate(records):
        try:
            candidate = Candidate.model_validate(record)
        except PydanticValidationError as e:
            ticker = record.get("ticker") if isinstance(record, dict) else None
            errors.append(record_failure(
                e, source, "CANDIDATE_VALIDATION_ERROR",
                index=idx, ticker=ticker,
            ))
            logger.warning(f"[Screener] Dropping record {idx} ({ticker}): invalid candidate")
            continue

        if candidate.ticker in seen:
            errors.append(ProcessingError(
                source=source,
                error_type="DUPLICATE_TICKER",
                message=f"Duplicate ticker {candidate.ticker}; keeping first occurrence",
                severity=ErrorSeverity.INFO,
                context={"index": idx, "ticker": candidate.ticker},
            ))
            continue

        seen.add(candidate.ticker)
        candidates.append(candidate)

    return candidates, errors


def screen_candidates(
    candidates: Sequence[Candidate],
    config: ConstructionConfig,
) -> List[Candidate]:
    """
    Keep candidates at or above min_conviction, highest conviction first,
    at most max_holdings of them.

    sorted() is stable, so equal scores keep their input order.
    """
    eligible = [c for c in candidates if c.conviction_score >= config.min_conviction]
    eligible = sorted(eligible, key=lambda c: c.conviction_score, reverse=True)
    screened = eligible[: config.max_holdings]

    logger.debug(
        f"[Screener] {len(candidates)} candidates -> {len(eligible)} eligible "
        f"-> {len(screened)} kept (max_holdings={config.max_holdings})"
    )
    return screened
