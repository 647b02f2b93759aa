"""
Common interface and plumbing of the naming-service backends.

Every backend exposes the same query surface. Capabilities a backend lacks
(e.g. reverse lookup on ZNS) are declared through ``capabilities`` and raise
UnsupportedMethod when invoked directly.
"""

import asyncio
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import httpx

from domain_resolution.audit_logger import AuditLogger
from domain_resolution.config import SourceConfig, SourceSetting, normalize_source
from domain_resolution.enums import (
    Capability,
    LogLevel,
    NamingServiceType,
    ResolutionErrorCode,
)
from domain_resolution.exceptions import (
    ConfigurationError,
    ResolutionError,
    is_naming_service_down,
)
from domain_resolution.models import RegistryRecord, Resolution, is_null_address
from domain_resolution.networks import NetworkTable
from domain_resolution.transport import ContractCaller, JsonRpcClient


async def call_contract(
    caller: ContractCaller,
    service: NamingServiceType,
    contract_address: str,
    method_name: str,
    params: Sequence[Any] = (),
) -> Any:
    """
    Perform a contract read on behalf of a naming service.

    Failures classified as an outage surface as NamingServiceDown naming
    the service; every other error propagates unchanged.
    """
    try:
        return await caller.call(contract_address, method_name, params)
    except Exception as e:
        if is_naming_service_down(e):
            raise ResolutionError(
                ResolutionErrorCode.NAMING_SERVICE_DOWN,
                method=service.name,
                cause=str(e),
            ) from e
        raise


@dataclass(frozen=True)
class ResolvedSource:
    """Concrete source a backend was built from."""

    url: str
    network: str
    registry_address: Optional[str]


def resolve_source(
    source: Optional[SourceSetting],
    table: NetworkTable,
    service: NamingServiceType,
) -> ResolvedSource:
    """
    Normalize a configured source and pick the registry address.

    Registry precedence: explicit registry, then the network default.

    Raises:
        ConfigurationError: If the network or URL cannot be determined
    """
    if source is False:
        raise ConfigurationError(
            f"{service.name} is disabled in configuration",
            {"service": service.value},
        )

    normalized: SourceConfig = normalize_source(source, table)
    if not normalized.network:
        raise ConfigurationError(
            f"Unspecified network in {service.name} configuration",
            {"service": service.value, "url": normalized.url},
        )
    if not normalized.url:
        raise ConfigurationError(
            f"Unspecified url in {service.name} configuration",
            {"service": service.value, "network": normalized.network},
        )

    registry = normalized.registry or table.registry_address(normalized.network)
    return ResolvedSource(
        url=normalized.url,
        network=normalized.network,
        registry_address=registry,
    )


class NamingService(ABC):
    """Abstract naming-service backend."""

    service_type: NamingServiceType
    capabilities: frozenset = frozenset({Capability.RESOLVE, Capability.RECORDS})

    def __init__(
        self,
        source: ResolvedSource,
        caller: ContractCaller,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._source = source
        self._caller = caller
        self._logger = logger

    @property
    def url(self) -> str:
        return self._source.url

    @property
    def network(self) -> str:
        return self._source.network

    @property
    def registry_address(self) -> Optional[str]:
        return self._source.registry_address

    @property
    def caller(self) -> ContractCaller:
        return self._caller

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def is_supported_network(self) -> bool:
        """True when a registry contract is known for the configured network."""
        return self.registry_address is not None

    def ensure_supported_domain(self, domain: str) -> None:
        if not self.is_supported_domain(domain):
            raise ResolutionError(ResolutionErrorCode.UNSUPPORTED_DOMAIN, domain=domain)

    def require_registry(self) -> str:
        """
        Raises:
            ConfigurationError: If no registry is known for the network
        """
        if self.registry_address is None:
            raise ConfigurationError(
                f"No {self.service_type.name} registry on network {self.network}",
                {"service": self.service_type.value, "network": self.network},
            )
        return self.registry_address

    async def call(
        self,
        contract_address: str,
        method_name: str,
        params: Sequence[Any] = (),
    ) -> Any:
        self._log(
            LogLevel.DEBUG,
            f"{method_name} on {contract_address}",
            {"contract": contract_address, "method": method_name},
        )
        return await call_contract(
            self._caller, self.service_type, contract_address, method_name, params
        )

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log(level, self.service_type.value, message, data)

    @abstractmethod
    def is_supported_domain(self, domain: str) -> bool:
        """Syntax-only check of the domain suffix; performs no I/O."""

    @abstractmethod
    def namehash(self, domain: str) -> str:
        """Registry node of the domain; raises UnsupportedDomain."""

    @abstractmethod
    async def owner(self, domain: str) -> Optional[str]:
        """Owner address, or None when nobody owns the domain."""

    @abstractmethod
    async def resolver(self, domain: str) -> str:
        """Resolver address; raises UnregisteredDomain or UnspecifiedResolver."""

    @abstractmethod
    async def resolve(self, domain: str) -> Resolution:
        """Full resolution of the domain."""

    @abstractmethod
    async def address(self, domain: str, currency_ticker: str) -> str:
        """Address of ``currency_ticker``; raises UnspecifiedCurrency when unset."""

    @abstractmethod
    async def record(self, domain: str, key: str) -> str:
        """Single resolver record; raises RecordNotFound when unset."""

    async def records(self, domain: str, keys: Sequence[str]) -> dict[str, str]:
        """Several resolver records; missing ones map to ''."""
        values = await asyncio.gather(
            *(self._record_or_empty(domain, key) for key in keys)
        )
        return dict(zip(keys, values))

    async def _record_or_empty(self, domain: str, key: str) -> str:
        try:
            return await self.record(domain, key)
        except ResolutionError as e:
            if e.error_code == ResolutionErrorCode.RECORD_NOT_FOUND:
                return ""
            raise

    async def reverse(self, address: str, currency_ticker: str) -> Optional[str]:
        """Domain pointing back at ``address``, when the backend supports it."""
        raise ResolutionError(
            ResolutionErrorCode.UNSUPPORTED_METHOD,
            method_name="reverse",
            domain=address,
        )

    async def aclose(self) -> None:
        await self._caller.aclose()


class EthereumRegistryClient:
    """
    Reads owner and resolver slots of an Ethereum registry.

    ENS and CNS registries differ only in their method names, so both
    backends compose this reader rather than inheriting it.
    """

    def __init__(
        self,
        service: NamingService,
        owner_method: str,
        resolver_method: str,
    ) -> None:
        self._service = service
        self._owner_method = owner_method
        self._resolver_method = resolver_method

    async def owner_of(self, node: str) -> Optional[str]:
        registry = self._service.require_registry()
        owner = await self._service.call(registry, self._owner_method, [node])
        return None if is_null_address(owner) else owner

    async def resolver_of(self, node: str) -> Optional[str]:
        registry = self._service.require_registry()
        resolver = await self._service.call(registry, self._resolver_method, [node])
        return None if is_null_address(resolver) else resolver

    async def registry_record(self, node: str) -> RegistryRecord:
        """Read owner and resolver of a node concurrently."""
        owner, resolver = await asyncio.gather(
            self.owner_of(node),
            self.resolver_of(node),
        )
        return RegistryRecord(owner=owner, resolver=resolver)

    async def resolver_or_raise(self, domain: str, node: str) -> RegistryRecord:
        """
        Read the registry record and require a resolver.

        Raises:
            ResolutionError: UnregisteredDomain when nobody owns the node,
                UnspecifiedResolver when an owner set no resolver
        """
        record = await self.registry_record(node)
        if not record.has_resolver:
            if not record.has_owner:
                raise ResolutionError(ResolutionErrorCode.UNREGISTERED_DOMAIN, domain=domain)
            raise ResolutionError(ResolutionErrorCode.UNSPECIFIED_RESOLVER, domain=domain)
        return record


def build_caller(
    caller_class: type,
    url: str,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ContractCaller:
    """Create a contract caller talking JSON-RPC to ``url``."""
    return caller_class(JsonRpcClient(url, timeout=timeout, transport=transport))


def suffix_matcher(pattern: str):
    """
    Build a case-sensitive suffix check that also requires a dot after
    the first character.
    """
    regex = re.compile(pattern)

    def matches(domain: str) -> bool:
        return domain.find(".") > 0 and regex.fullmatch(domain) is not None

    return matches


def parse_ttl(value: Any) -> int:
    """TTL stored as a record string; 0 when unset or not a number."""
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0
