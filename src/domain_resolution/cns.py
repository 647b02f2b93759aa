"""
Crypto Name Service backend for .crypto domains.

The CNS registry is an ERC-721 contract: the namehash of a domain is its
token id, ``ownerOf``/``resolverOf`` give the registry record and the
resolver stores every record, ttl included, under ``get(key, tokenId)``.
"""

import asyncio
from typing import Optional

import httpx

from domain_resolution.audit_logger import AuditLogger
from domain_resolution.config import SourceSetting
from domain_resolution.enums import LogLevel, NamingServiceType, ResolutionErrorCode
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
from domain_resolution.networks import CNS_NETWORKS
from domain_resolution.transport import ContractCaller, EthereumContractCaller

_is_cns_domain = suffix_matcher(r"^.+\.crypto$")


def currency_key(currency_ticker: str) -> str:
    return f"crypto.{currency_ticker.upper()}.address"


class Cns(NamingService):
    """CNS backend over an Ethereum JSON-RPC endpoint."""

    service_type = NamingServiceType.CNS

    def __init__(
        self,
        source: SourceSetting = True,
        caller: Optional[ContractCaller] = None,
        logger: Optional[AuditLogger] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        resolved = resolve_source(source, CNS_NETWORKS, self.service_type)
        if caller is None:
            caller = build_caller(EthereumContractCaller, resolved.url, timeout, transport)
        super().__init__(resolved, caller, logger)
        self._registry = EthereumRegistryClient(self, "ownerOf", "resolverOf")

    def is_supported_domain(self, domain: str) -> bool:
        return _is_cns_domain(domain)

    def namehash(self, domain: str) -> str:
        self.ensure_supported_domain(domain)
        return namehash(domain)

    async def owner(self, domain: str) -> Optional[str]:
        return await self._registry.owner_of(self.namehash(domain))

    async def resolver(self, domain: str) -> str:
        record = await self._registry.resolver_or_raise(domain, self.namehash(domain))
        return record.resolver

    async def _get(self, resolver: str, key: str, token_id: str) -> Optional[str]:
        value = await self.call(resolver, "get", [key, token_id])
        return None if is_null_address(value) else value

    async def resolve(self, domain: str) -> Resolution:
        token_id = self.namehash(domain)
        record = await self._registry.resolver_or_raise(domain, token_id)

        ttl, eth_address = await asyncio.gather(
            self._get(record.resolver, "ttl", token_id),
            self._get(record.resolver, currency_key("ETH"), token_id),
        )

        addresses = {"ETH": eth_address} if eth_address else {}
        self._log(LogLevel.DEBUG, f"Resolved {domain}", {"domain": domain, "owner": record.owner})
        return Resolution(
            addresses=addresses,
            meta=ResolutionMeta(
                owner=record.owner,
                type=self.service_type.value,
                ttl=parse_ttl(ttl),
            ),
        )

    async def address(self, domain: str, currency_ticker: str) -> str:
        token_id = self.namehash(domain)
        record = await self._registry.resolver_or_raise(domain, token_id)
        address = await self._get(record.resolver, currency_key(currency_ticker), token_id)
        if not address:
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_CURRENCY,
                domain=domain,
                currency_ticker=currency_ticker.upper(),
            )
        return address

    async def record(self, domain: str, key: str) -> str:
        token_id = self.namehash(domain)
        record = await self._registry.resolver_or_raise(domain, token_id)
        value = await self._get(record.resolver, key, token_id)
        if not value:
            raise ResolutionError(
                ResolutionErrorCode.RECORD_NOT_FOUND,
                domain=domain,
                record_name=key,
            )
        return value

    async def records(self, domain: str, keys) -> dict[str, str]:
        token_id = self.namehash(domain)
        record = await self._registry.resolver_or_raise(domain, token_id)
        values = await asyncio.gather(
            *(self._get(record.resolver, key, token_id) for key in keys)
        )
        return {key: value or "" for key, value in zip(keys, values)}
