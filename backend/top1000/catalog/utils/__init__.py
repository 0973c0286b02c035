"""Catalog utilities for request admission and retries."""

from .rate_limiter import AdmissionGate
from .retry import http_retry


__all__ = [
    # Admission
    "AdmissionGate",
    # Retry decorators
    "http_retry",
]
