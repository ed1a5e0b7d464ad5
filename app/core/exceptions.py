from typing import Optional


class ConfigurationError(Exception):
    """A provider credential or required setting is missing."""


class ProviderError(Exception):
    """An external provider call failed or returned an unusable payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(ProviderError):
    pass


class EmptyResponseError(ProviderError):
    pass


class NoPlacesFoundError(Exception):
    """Every category search came back empty."""


class PlanningValidationError(Exception):
    """The planning request breaks a business rule (e.g. alcohol with minors)."""
