from typing import Optional


class ESGMetricsError(Exception):
    """Base class for every error raised by the calculators."""


class ValidationError(ESGMetricsError, ValueError):
    """
    Malformed or out-of-range input record (bad enum value, negative count,
    non-positive exposure). Raised before any computation proceeds.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConfigurationError(ESGMetricsError, LookupError):
    """
    A lookup table supplied by the caller (GWP table, scoring table, data
    quality table) is missing an expected key.
    """

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key
