"""
HTTP Client Module

Thin requests-based HTTP client used by the RPC data sources.
"""

from .client import HttpClient, HttpError, HttpResponse

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
]
