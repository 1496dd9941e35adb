"""Shared enums for the shortlink service.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Outcome labels for allocation and resolution metrics."""

    SUCCESS = "success"
    DEDUPLICATED = "deduplicated"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    EXHAUSTED = "exhausted"
    ERROR = "error"
