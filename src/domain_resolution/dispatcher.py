"""
Resolution Dispatcher for the domain resolution system.

This module routes every public query to the one naming service that owns
the domain, and maps backend outcomes onto the public contract:
- Backend selection by domain suffix, in ENS, CNS, ZNS order
- Unregistered domains resolve to a fresh unclaimed response
- Null-returning lookups swallow only resolution errors
- Reverse lookup goes to the first backend able to do it
"""

from typing import Optional, Sequence

import httpx

from .audit_logger import AuditLogger
from .cns import Cns
from .config import ResolutionConfig
from .enums import Capability, LogLevel, ResolutionErrorCode
from .ens import Ens
from .exceptions import DomainResolutionError, ResolutionError
from .models import Resolution, unclaimed_resolution
from .naming_service import NamingService
from .zns import Zns


class ResolutionDispatcher:
    """
    Entry point of domain resolution.

    Holds an ordered collection of naming services. Suffix patterns do not
    overlap, so at most one backend matches a domain.
    """

    COMPONENT = "dispatcher"

    def __init__(
        self,
        backends: Sequence[NamingService],
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            backends: Naming services in priority order
            logger: Optional audit logger for logging
        """
        self._backends: tuple[NamingService, ...] = tuple(backends)
        self._logger = logger

    @classmethod
    def from_config(
        cls,
        config: ResolutionConfig,
        logger: Optional[AuditLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ResolutionDispatcher":
        """
        Build the enabled naming services from configuration.

        Raises:
            ConfigurationError: If an enabled source cannot be resolved
        """
        backends: list[NamingService] = []
        sources = (
            (Ens, config.blockchain.ens),
            (Cns, config.blockchain.cns),
            (Zns, config.blockchain.zns),
        )
        for backend_class, source in sources:
            if source is False:
                continue
            backends.append(backend_class(
                source=source,
                logger=logger,
                timeout=config.timeout,
                transport=transport,
            ))
        return cls(backends, logger=logger)

    async def __aenter__(self) -> "ResolutionDispatcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        for backend in self._backends:
            await backend.aclose()

    @property
    def backends(self) -> tuple[NamingService, ...]:
        return self._backends

    def backend_for(self, domain: str) -> Optional[NamingService]:
        """First naming service whose suffix pattern matches the domain."""
        for backend in self._backends:
            if backend.is_supported_domain(domain):
                return backend
        return None

    def _require_backend(self, domain: str) -> NamingService:
        backend = self.backend_for(domain)
        if backend is None:
            raise ResolutionError(ResolutionErrorCode.UNSUPPORTED_DOMAIN, domain=domain)
        return backend

    async def resolve(self, domain: str) -> Resolution:
        """
        Resolve a domain into addresses and ownership metadata.

        Args:
            domain: The domain to resolve

        Returns:
            The resolution; an unclaimed response when nobody owns the domain

        Raises:
            ResolutionError: UnsupportedDomain, UnspecifiedResolver or
                NamingServiceDown
        """
        backend = self._require_backend(domain)
        self._log_info(f"Resolving {domain}", {"domain": domain, "service": backend.service_type.value})
        try:
            resolution = await backend.resolve(domain)
        except ResolutionError as e:
            if e.error_code == ResolutionErrorCode.UNREGISTERED_DOMAIN:
                self._log_info(f"{domain} is unclaimed", {"domain": domain})
                return unclaimed_resolution()
            self._log_failure(f"Resolution of {domain} failed", e, {"domain": domain})
            raise
        except DomainResolutionError as e:
            self._log_failure(f"Resolution of {domain} failed", e, {"domain": domain})
            raise

        self._log_info(
            f"Resolved {domain}",
            {"domain": domain, "owner": resolution.meta.owner, "ttl": resolution.meta.ttl},
        )
        return resolution

    async def address_or_throw(self, domain: str, currency_ticker: str) -> str:
        """
        Address of a currency attached to a domain.

        Raises:
            ResolutionError: For every resolution failure, including
                UnregisteredDomain
        """
        backend = self._require_backend(domain)
        return await backend.address(domain, currency_ticker)

    async def address(self, domain: str, currency_ticker: str) -> Optional[str]:
        """
        Address of a currency attached to a domain, or None.

        Only resolution errors are converted to None; transport and
        configuration failures still raise.
        """
        try:
            return await self.address_or_throw(domain, currency_ticker)
        except ResolutionError as e:
            self._log_info(
                f"No {currency_ticker} address for {domain}",
                {"domain": domain, "reason": e.code},
            )
            return None

    async def reverse(self, address: str, currency_ticker: str) -> Optional[str]:
        """
        Domain registered as the reverse record of an address.

        Raises:
            ResolutionError: UnsupportedMethod when no configured naming
                service supports reverse lookup
        """
        for backend in self._backends:
            if backend.supports(Capability.REVERSE):
                return await backend.reverse(address, currency_ticker)
        raise ResolutionError(
            ResolutionErrorCode.UNSUPPORTED_METHOD,
            method_name="reverse",
            domain=address,
        )

    def is_supported_domain(self, domain: str) -> bool:
        return self.backend_for(domain) is not None

    def is_supported_domain_in_network(self, domain: str) -> bool:
        """True when a backend owns the domain and knows its registry."""
        backend = self.backend_for(domain)
        return backend is not None and backend.is_supported_network()

    async def record(self, domain: str, key: str) -> str:
        backend = self._require_backend(domain)
        return await backend.record(domain, key)

    async def records(self, domain: str, keys: Sequence[str]) -> dict[str, str]:
        backend = self._require_backend(domain)
        return await backend.records(domain, keys)

    async def owner(self, domain: str) -> Optional[str]:
        backend = self._require_backend(domain)
        return await backend.owner(domain)

    def namehash(self, domain: str) -> str:
        backend = self._require_backend(domain)
        return backend.namehash(domain)

    def _log_info(self, message: str, data: dict) -> None:
        """Log info message if logger is available."""
        if self._logger:
            self._logger.log(LogLevel.INFO, self.COMPONENT, message, data)

    def _log_failure(self, message: str, error: Exception, data: dict) -> None:
        """Log error message if logger is available."""
        if self._logger:
            self._logger.log_error(self.COMPONENT, message, error=error, additional_data=data)
