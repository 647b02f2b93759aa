"""
Data models for the domain resolution system.

This module defines the unified resolution result returned by every naming
service, the registry record read from chain, and null-address helpers.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


NULL_ADDRESS = "0x0000000000000000000000000000000000000000"
NULL_NODE = "0x" + "0" * 64


def is_null_address(value: Optional[str]) -> bool:
    """True for values that mean "nothing set" on chain."""
    if not value:
        return True
    if not isinstance(value, str):
        return False
    lowered = value.lower()
    return lowered in ("0x", NULL_ADDRESS, NULL_NODE)


@dataclass
class ResolutionMeta:
    """Ownership metadata of a resolved domain."""

    owner: Optional[str]
    type: str  # 'ens', 'cns', 'zns' or '' for unclaimed domains
    ttl: int = 0


@dataclass
class Resolution:
    """Unified resolution result across all naming services."""

    addresses: dict[str, str] = field(default_factory=dict)
    meta: ResolutionMeta = field(
        default_factory=lambda: ResolutionMeta(owner=None, type="", ttl=0)
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the plain JSON shape."""
        return {
            "addresses": dict(self.addresses),
            "meta": {
                "owner": self.meta.owner,
                "type": self.meta.type,
                "ttl": self.meta.ttl,
            },
        }


def unclaimed_resolution() -> Resolution:
    """Build the response for a valid but unregistered domain."""
    return Resolution(
        addresses={},
        meta=ResolutionMeta(owner=None, type="", ttl=0),
    )


@dataclass(frozen=True)
class RegistryRecord:
    """Owner and resolver of a node as stored in a registry."""

    owner: Optional[str]
    resolver: Optional[str]

    @property
    def has_owner(self) -> bool:
        return not is_null_address(self.owner)

    @property
    def has_resolver(self) -> bool:
        return not is_null_address(self.resolver)
