"""
Ethereum Name Service backend.

Domains ending in .eth, .luxe, .xyz or .kred are resolved through the ENS
registry: owner/resolver/ttl slots live in the registry, the ETH address and
text records in the resolver. ENS is the only backend with reverse lookup.
"""

import asyncio
from typing import Optional

import httpx

from domain_resolution.audit_logger import AuditLogger
from domain_resolution.config import SourceSetting
from domain_resolution.enums import Capability, LogLevel, NamingServiceType, ResolutionErrorCode
from domain_resolution.exceptions import ResolutionError
from domain_resolution.models import Resolution, ResolutionMeta, is_null_address
from domain_resolution.namehash import namehash
from domain_resolution.naming_service import (
    EthereumRegistryClient,
    NamingService,
    build_caller,
    parse_ttl,
    resolve_source,
    suffix_matcher,
)
from domain_resolution.networks import ENS_NETWORKS
from domain_resolution.transport import ContractCaller, EthereumContractCaller

ETH_TICKER = "ETH"
ETH_ADDRESS_KEY = "crypto.ETH.address"

_is_ens_domain = suffix_matcher(r"^[^-]*[^-]*\.(eth|luxe|xyz|kred)$")


class Ens(NamingService):
    """ENS backend over an Ethereum JSON-RPC endpoint."""

    service_type = NamingServiceType.ENS
    capabilities = frozenset({Capability.RESOLVE, Capability.RECORDS, Capability.REVERSE})

    def __init__(
        self,
        source: SourceSetting = True,
        caller: Optional[ContractCaller] = None,
        logger: Optional[AuditLogger] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            source: URL, SourceConfig or True for the mainnet defaults
            caller: Contract caller; built from the source URL when omitted
            logger: Optional audit logger
            timeout: Request timeout in seconds of the built caller
            transport: Optional httpx transport of the built caller

        Raises:
            ConfigurationError: If the network or URL cannot be determined
        """
        resolved = resolve_source(source, ENS_NETWORKS, self.service_type)
        if caller is None:
            caller = build_caller(EthereumContractCaller, resolved.url, timeout, transport)
        super().__init__(resolved, caller, logger)
        self._registry = EthereumRegistryClient(self, "owner", "resolver")

    def is_supported_domain(self, domain: str) -> bool:
        return _is_ens_domain(domain)

    def namehash(self, domain: str) -> str:
        self.ensure_supported_domain(domain)
        return namehash(domain)

    async def owner(self, domain: str) -> Optional[str]:
        return await self._registry.owner_of(self.namehash(domain))

    async def resolver(self, domain: str) -> str:
        record = await self._registry.resolver_or_raise(domain, self.namehash(domain))
        return record.resolver

    async def _ttl(self, node: str) -> int:
        ttl = await self.call(self.require_registry(), "ttl", [node])
        return parse_ttl(ttl)

    async def _eth_address(self, resolver: str, node: str) -> Optional[str]:
        address = await self.call(resolver, "addr", [node])
        return None if is_null_address(address) else address

    async def resolve(self, domain: str) -> Resolution:
        node = self.namehash(domain)
        record = await self._registry.resolver_or_raise(domain, node)

        ttl, eth_address = await asyncio.gather(
            self._ttl(node),
            self._eth_address(record.resolver, node),
        )

        addresses = {ETH_TICKER: eth_address} if eth_address else {}
        self._log(LogLevel.DEBUG, f"Resolved {domain}", {"domain": domain, "owner": record.owner})
        return Resolution(
            addresses=addresses,
            meta=ResolutionMeta(owner=record.owner, type=self.service_type.value, ttl=ttl),
        )

    async def address(self, domain: str, currency_ticker: str) -> str:
        ticker = currency_ticker.upper()
        node = self.namehash(domain)
        record = await self._registry.resolver_or_raise(domain, node)
        if ticker != ETH_TICKER:
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_CURRENCY,
                domain=domain,
                currency_ticker=ticker,
            )

        eth_address = await self._eth_address(record.resolver, node)
        if not eth_address:
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_CURRENCY,
                domain=domain,
                currency_ticker=ticker,
            )
        return eth_address

    async def record(self, domain: str, key: str) -> str:
        node = self.namehash(domain)
        record = await self._registry.resolver_or_raise(domain, node)

        if key == ETH_ADDRESS_KEY:
            value = await self._eth_address(record.resolver, node)
        else:
            value = await self.call(record.resolver, "text", [node, key])

        if not value or is_null_address(value):
            raise ResolutionError(
                ResolutionErrorCode.RECORD_NOT_FOUND,
                domain=domain,
                record_name=key,
            )
        return value

    async def reverse(self, address: str, currency_ticker: str) -> Optional[str]:
        """
        Find the primary name registered for an Ethereum address.

        Args:
            address: 0x-prefixed Ethereum address
            currency_ticker: Only 'ETH' is supported

        Returns:
            The domain, or None when the address has no reverse record
        """
        ticker = currency_ticker.upper()
        if ticker != ETH_TICKER:
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_CURRENCY,
                domain=address,
                currency_ticker=ticker,
            )

        reverse_node = namehash(f"{address.lower().removeprefix('0x')}.addr.reverse")
        resolver = await self._registry.resolver_of(reverse_node)
        if resolver is None:
            return None

        name = await self.call(resolver, "name", [reverse_node])
        return name or None
