"""Infrastructure-specific exception classes."""

from .base import InfrastructureError


class VendorFeedError(InfrastructureError):
    """Base exception for traffic feed failures (network, HTTP status, payload)."""

    pass


class VendorTimeoutError(VendorFeedError):
    """Raised when the traffic feed does not answer within the configured timeout."""

    pass


class StoreUnavailableError(InfrastructureError):
    """Raised when the incident store cannot be reached or a statement fails."""

    pass


class VendorCircuitOpenError(VendorFeedError):
    """Raised instead of calling the traffic feed while its circuit breaker is open."""

    def __init__(self, name: str, failure_count: int, retry_in_seconds: float):
        super().__init__(
            f"Circuit breaker '{name}' is open after {failure_count} failures",
            "VENDOR_CIRCUIT_OPEN",
            {"retry_in_seconds": round(retry_in_seconds, 1)},
        )
        self.name = name
        self.failure_count = failure_count
