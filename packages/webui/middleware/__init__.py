"""HTTP middleware for the web API."""

from .correlation import CorrelationIdFilter, CorrelationMiddleware, configure_logging_with_correlation

__all__ = ["CorrelationIdFilter", "CorrelationMiddleware", "configure_logging_with_correlation"]
