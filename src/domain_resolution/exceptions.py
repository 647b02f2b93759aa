"""
Exception classes for the domain resolution system.

All exceptions inherit from DomainResolutionError and provide structured
error information with codes, messages, and optional details.

Only ResolutionError belongs to the resolution taxonomy. Configuration and
transport failures share the base class but are never swallowed by the
null-returning lookups of the dispatcher.
"""

import re
from typing import Optional

from domain_resolution.enums import ResolutionErrorCode, TransportErrorCode


class DomainResolutionError(Exception):
    """Base exception for all domain resolution errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(DomainResolutionError):
    """Raised when a naming service cannot be built from its configuration."""

    def __init__(self, message: str, details: Optional[dict] = None) -> None:
        super().__init__(code="configuration_error", message=message, details=details)


class InvalidOwnerError(DomainResolutionError, ValueError):
    """Raised when a registry stores an owner in no recognized address format."""

    def __init__(self, owner: str, reason: Optional[str] = None) -> None:
        details = {"owner": owner}
        if reason:
            details["reason"] = reason
        super().__init__(
            code="invalid_owner",
            message=f"Unrecognized Zilliqa owner: {owner!r}",
            details=details,
        )


class TransportError(DomainResolutionError):
    """Raised when a JSON-RPC round-trip fails."""

    def __init__(
        self,
        code: TransportErrorCode,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        super().__init__(code=code.value, message=message, details=details)
        self.transport_code = code


# Message templates per resolution error code, filled from the error details
RESOLUTION_ERROR_MESSAGES: dict[ResolutionErrorCode, str] = {
    ResolutionErrorCode.UNSUPPORTED_DOMAIN: "Domain {domain} is not supported",
    ResolutionErrorCode.UNREGISTERED_DOMAIN: "Domain {domain} is not registered",
    ResolutionErrorCode.UNSPECIFIED_RESOLVER: "Domain {domain} is not configured",
    ResolutionErrorCode.UNSPECIFIED_CURRENCY: (
        "Domain {domain} has no {currency_ticker} attached to it"
    ),
    ResolutionErrorCode.RECORD_NOT_FOUND: "No {record_name} record found for {domain}",
    ResolutionErrorCode.NAMING_SERVICE_DOWN: "{method} naming service is down at the moment",
    ResolutionErrorCode.UNSUPPORTED_METHOD: "Method {method_name} is not supported for {domain}",
}


class ResolutionError(DomainResolutionError):
    """
    Raised when a domain cannot be resolved.

    The failure kind is carried by ``error_code``; callers branch on it
    instead of parsing the message.
    """

    def __init__(self, error_code: ResolutionErrorCode, **details) -> None:
        template = RESOLUTION_ERROR_MESSAGES[error_code]
        try:
            message = template.format(**details)
        except KeyError:
            message = error_code.value
        super().__init__(code=error_code.value, message=message, details=details)
        self.error_code = error_code


# Transport codes that mean the backing node cannot currently serve requests
NAMING_SERVICE_DOWN_CODES = frozenset({
    TransportErrorCode.INVALID_RESPONSE,
    TransportErrorCode.RATE_LIMITED,
    TransportErrorCode.TIMEOUT,
})

# Messages produced by Ethereum nodes (and Infura) when they are unavailable
NAMING_SERVICE_DOWN_PATTERNS = (
    re.compile(r"Invalid JSON RPC response"),
    re.compile(r"legacy access request rate exceeded"),
)


def is_naming_service_down(error: BaseException) -> bool:
    """
    Classify a failed contract call as an outage of the naming service.

    This is the only place where error messages are inspected. Transport
    errors are classified by code first; any other error counts only when
    its message carries one of the known malformed-response or rate-limit
    signatures.

    Args:
        error: The exception raised by a contract call

    Returns:
        True if the error should surface as NamingServiceDown
    """
    if isinstance(error, ResolutionError):
        return False
    if isinstance(error, TransportError) and error.transport_code in NAMING_SERVICE_DOWN_CODES:
        return True
    message = str(error)
    return any(pattern.search(message) for pattern in NAMING_SERVICE_DOWN_PATTERNS)
