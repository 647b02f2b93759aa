"""
Enumeration types for the domain resolution system.

These enums provide type-safe constants for naming services, capabilities,
error codes, and logging levels throughout the system.
"""

from enum import Enum


class NamingServiceType(Enum):
    """Naming service that produced a resolution."""

    ENS = "ens"
    CNS = "cns"
    ZNS = "zns"


class Capability(Enum):
    """Optional operations a naming service may support."""

    RESOLVE = "resolve"
    RECORDS = "records"
    REVERSE = "reverse"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class ResolutionErrorCode(Enum):
    """Backend-agnostic failure kinds of a resolution."""

    UNSUPPORTED_DOMAIN = "UnsupportedDomain"
    UNREGISTERED_DOMAIN = "UnregisteredDomain"
    UNSPECIFIED_RESOLVER = "UnspecifiedResolver"
    UNSPECIFIED_CURRENCY = "UnspecifiedCurrency"
    RECORD_NOT_FOUND = "RecordNotFound"
    NAMING_SERVICE_DOWN = "NamingServiceDown"
    UNSUPPORTED_METHOD = "UnsupportedMethod"


class TransportErrorCode(Enum):
    """Error codes for JSON-RPC transport failures."""

    INVALID_RESPONSE = "invalid_response"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    RPC_ERROR = "rpc_error"
