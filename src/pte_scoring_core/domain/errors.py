"""
Scoring Errors

Error taxonomy for the scoring engine. Only InvalidRequest is meant to reach
callers of the orchestrator; the rest are absorbed into fallback results.
"""


class ScoringError(Exception):
    """Base class for scoring engine failures"""


class ProviderUnavailable(ScoringError):
    """Raised when a provider is not configured or cannot be reached"""


class ProviderTimeout(ScoringError):
    """Raised when a provider call exceeds its time budget"""


class MalformedProviderOutput(ScoringError):
    """Raised when a provider response does not follow the JSON contract"""


class InvalidRequest(ScoringError, ValueError):
    """Raised when a scoring request is structurally invalid"""


class ConfigurationError(ScoringError, ValueError):
    """Raised when configuration values cannot be parsed"""
