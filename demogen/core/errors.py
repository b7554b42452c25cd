"""Error taxonomy shared by the pipeline stages and the HTTP layer."""
from __future__ import annotations
from typing import Any, Optional


class DemoGenError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(DemoGenError):
    """Client-supplied input violates the use-case schema. Never retried."""
    code = "VALIDATION_ERROR"
    status_code = 400


class ProviderError(DemoGenError):
    """An upstream generative service failed, timed out or returned garbage."""
    code = "PROVIDER_ERROR"
    status_code = 502

    def __init__(self, provider: str, message: str, details: Optional[Any] = None):
        super().__init__(f"{provider}: {message}", details)
        self.provider = provider


class ContentMergeError(DemoGenError):
    code = "MERGE_ERROR"


class DependencyResolutionError(DemoGenError):
    code = "DEPENDENCY_RESOLUTION_ERROR"


class DeploymentPreconditionError(DemoGenError):
    """The target project is missing a directory the deployer writes into."""
    code = "DEPLOYMENT_PRECONDITION_ERROR"


class DeploymentError(DemoGenError):
    """Writing the component into the target project failed."""
    code = "DEPLOYMENT_ERROR"


class NotFoundError(DemoGenError):
    code = "NOT_FOUND"
    status_code = 404


class RateLimitError(DemoGenError):
    code = "RATE_LIMIT_EXCEEDED"
    status_code = 429

    def __init__(self, message: str, retry_after: int):
        super().__init__(message, {"retryAfter": retry_after})
        self.retry_after = retry_after


class InvalidTransitionError(DemoGenError):
    code = "INVALID_TRANSITION"
