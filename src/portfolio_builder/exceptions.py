"""
Exception hierarchy for the Portfolio Builder engine.

Bad configuration and bad prices are raised. Bad records inside a batch
(candidate lists, quote lookups) are not: they become ProcessingError
entries next to the records that did load, and the batch carries on.
"""

import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """How a collected batch error should be treated downstream."""

    CRITICAL = "critical"
    """Result is unusable without this record"""

    WARNING = "warning"
    """Record dropped; the rest of the batch is still valid"""

    INFO = "info"
    """Nothing lost (e.g. a duplicate that was skipped)"""


@dataclass
class ProcessingError:
    """One rejected record from a batch, kept for the caller's report."""

    source: str
    error_type: str
    message: str
    severity: ErrorSeverity
    context: Dict[str, Any] = field(default_factory=dict)
    traceback_str: Optional[str] = None

    def to_dict(self, include_traceback: bool = False) -> dict:
        """
        JSON-safe view of the error.

        Tracebacks are left out unless asked for; tool output goes to an
        agent, not a developer.
        """
        data = {
            "source": self.source,
            "error_type": self.error_type,
            "severity": self.severity.value,
            "message": self.message,
            "context": dict(self.context),
        }
        if include_traceback and self.traceback_str:
            data["traceback"] = self.traceback_str
        return data


# ============================================================================
# BASE EXCEPTION CLASSES
# ============================================================================

class PortfolioBuilderException(Exception):
    """
    Root of every error raised by the engine.

    error_code defaults to the class name so callers can branch on it
    without importing the class.
    """

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or type(self).__name__


class DataProcessingError(PortfolioBuilderException):
    """External data could not be fetched or used."""


class ValidationError(PortfolioBuilderException):
    """An input value is outside what the engine can size."""


class ConfigurationError(PortfolioBuilderException):
    """A runtime setting is unusable."""


# ============================================================================
# INPUT VALIDATION EXCEPTIONS
# ============================================================================

class InvalidPriceError(ValidationError):
    """A price needed to size shares is zero or negative."""


class PositionBoundsError(ValidationError):
    """min_position_pct is above max_position_pct."""


# ============================================================================
# MARKET DATA EXCEPTIONS
# ============================================================================

class PriceFetchError(DataProcessingError):
    """
    A quote came back without a usable price.

    fetch_current_prices() catches it per ticker and reports the message
    in PriceFetchResult.errors.
    """


# ============================================================================
# HELPERS
# ============================================================================

def record_failure(
    exception: Exception,
    source: str,
    error_type: str,
    severity: ErrorSeverity = ErrorSeverity.WARNING,
    **context: Any,
) -> ProcessingError:
    """
    Turn an exception caught inside a batch loop into a ProcessingError.

    Must be called from the except block so the active traceback is
    captured. INFO entries carry no traceback.
    """
    tb = None if severity is ErrorSeverity.INFO else traceback.format_exc()
    return ProcessingError(
        source=source,
        error_type=error_type,
        message=str(exception),
        severity=severity,
        context=context,
        traceback_str=tb,
    )
