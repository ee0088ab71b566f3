"""
Shared error codes used across layers (Domain/Infrastructure/CLI).

This package exposes ErrorCode at `shared.codes` so every client error
carries a stable numeric code independent of the HTTP status.
"""
from enum import IntEnum


class ErrorCode(IntEnum):
    """Unified client error codes (single source of truth)."""

    # Success
    SUCCESS = 0

    # Configuration / local errors (1xxxx)
    CONFIGURATION_ERROR = 10000
    DECODING_ERROR = 10001

    # Remote API errors (2xxxx)
    API_ERROR = 20000
    NOT_FOUND = 20001

    # Permission errors (3xxxx)
    UNAUTHORIZED = 30001
    FORBIDDEN = 30002

    # System errors (4xxxx)
    SERVER_ERROR = 40000
    TRANSPORT_ERROR = 40001

    # Rate limit errors (5xxxx)
    RATE_LIMITED = 50000


__all__ = ["ErrorCode"]
