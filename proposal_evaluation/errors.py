"""Error taxonomy for the proposal evaluation engine.

Every terminal failure of an evaluation run is one of these exceptions. Each
carries the wire ``error_code`` and the HTTP-style status the service layer
reports, so components raise and the service only translates.
"""

from typing import Optional


class EvaluationError(Exception):
    """Base class for all terminal evaluation failures."""

    error_code: str = "EVALUATION_FAILED"
    http_status: int = 500

    def __init__(self, message: str, *, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ---------------------------------------------------------------------------
# Input failures
# ---------------------------------------------------------------------------


class NotFoundError(EvaluationError):
    """The requested project does not exist."""

    http_status = 404


class EvaluationValidationError(EvaluationError):
    """The request or its data cannot form a valid evaluation set."""

    http_status = 400


class InvalidRequestError(EvaluationValidationError):
    pass


class NoProposalsError(EvaluationValidationError):
    pass


class NoEligibleProposalsError(EvaluationValidationError):
    pass


class MismatchedComparisonSetError(EvaluationValidationError):
    pass


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(EvaluationError):
    """Narrative backend selection or credentials are missing."""

    error_code = "CONFIGURATION_ERROR"


# ---------------------------------------------------------------------------
# Narrative backend failures
# ---------------------------------------------------------------------------


class NarrativeTimeoutError(EvaluationError):
    """The narrative call exceeded its time budget."""

    error_code = "TIMEOUT"

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"AI evaluation timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


class NarrativeAPIError(EvaluationError):
    """The narrative backend answered with a non-success status or was unreachable."""

    error_code = "AI_API_ERROR"

    def __init__(self, provider: str, status_code: Optional[int], body: str = "") -> None:
        if status_code:
            message = f"AI API error: {status_code}"
        else:
            message = f"AI API request failed: {body}"
        super().__init__(message, details={"provider": provider})
        self.provider = provider
        self.status_code = status_code
        self.body = body


class InvalidResponseError(EvaluationError):
    """The narrative response was empty or not parseable JSON."""

    error_code = "INVALID_JSON"


class SchemaViolationError(EvaluationError):
    """The narrative response or merged result broke the result contract."""

    error_code = "INVALID_JSON"


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class DataStoreError(EvaluationError):
    """A read or write against the data store failed."""
