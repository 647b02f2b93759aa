"""
Zilliqa Name Service backend for .zil domains.

ZNS keeps its data in contract state instead of contract methods. The
registry ``records`` map holds ``[owner, resolver]`` per node in one entry,
and each resolver's ``records`` field is a flat map of dotted keys such as
``crypto.ZIL.address``.
"""

from typing import Any, Optional, Sequence

import httpx

from domain_resolution.audit_logger import AuditLogger
from domain_resolution.config import SourceSetting
from domain_resolution.enums import LogLevel, NamingServiceType, ResolutionErrorCode
from domain_resolution.exceptions import ResolutionError
from domain_resolution.models import RegistryRecord, Resolution, ResolutionMeta, is_null_address
from domain_resolution.namehash import zns_namehash
from domain_resolution.naming_service import (
    NamingService,
    build_caller,
    parse_ttl,
    resolve_source,
    suffix_matcher,
)
from domain_resolution.networks import ZNS_NETWORKS
from domain_resolution.transport import ContractCaller, ZilliqaContractCaller
from domain_resolution.zilliqa_address import normalize_owner

_is_zns_domain = suffix_matcher(r"^.+\.zil$")


def nest_records(records: dict[str, str]) -> dict[str, Any]:
    """
    Turn dotted record keys into a nested structure.

    ``{"crypto.ZIL.address": "zil1..", "ttl": "0"}`` becomes
    ``{"crypto": {"ZIL": {"address": "zil1.."}}, "ttl": "0"}``.
    When one key is a prefix of another, the deeper key wins whatever the
    order of the records.
    """
    nested: dict[str, Any] = {}
    for key, value in records.items():
        *path, leaf = key.split(".")
        target = nested
        for segment in path:
            if not isinstance(target.get(segment), dict):
                target[segment] = {}
            target = target[segment]
        if not isinstance(target.get(leaf), dict):
            target[leaf] = value
    return nested


def addresses_from(nested: dict[str, Any]) -> dict[str, str]:
    crypto = nested.get("crypto")
    if not isinstance(crypto, dict):
        return {}
    return {
        ticker: entry["address"]
        for ticker, entry in crypto.items()
        if isinstance(entry, dict) and entry.get("address")
    }


class Zns(NamingService):
    """ZNS backend over a Zilliqa JSON-RPC endpoint."""

    service_type = NamingServiceType.ZNS

    def __init__(
        self,
        source: SourceSetting = True,
        caller: Optional[ContractCaller] = None,
        logger: Optional[AuditLogger] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        resolved = resolve_source(source, ZNS_NETWORKS, self.service_type)
        if caller is None:
            caller = build_caller(ZilliqaContractCaller, resolved.url, timeout, transport)
        super().__init__(resolved, caller, logger)

    def is_supported_domain(self, domain: str) -> bool:
        return _is_zns_domain(domain)

    def namehash(self, domain: str) -> str:
        self.ensure_supported_domain(domain)
        return zns_namehash(domain)

    async def registry_record(self, domain: str) -> Optional[RegistryRecord]:
        """
        Read the registry entry of a domain.

        Returns:
            The owner/resolver pair, or None when the domain is not registered
        """
        node = self.namehash(domain)
        entries = await self.call(self.require_registry(), "records", [node])
        entry = (entries or {}).get(node)
        if not entry:
            return None

        arguments = entry.get("arguments") or []
        owner = arguments[0] if len(arguments) > 0 else None
        resolver = arguments[1] if len(arguments) > 1 else None
        return RegistryRecord(
            owner=None if is_null_address(owner) else owner,
            resolver=None if is_null_address(resolver) else resolver,
        )

    async def _registered(self, domain: str) -> RegistryRecord:
        record = await self.registry_record(domain)
        if record is None:
            raise ResolutionError(ResolutionErrorCode.UNREGISTERED_DOMAIN, domain=domain)
        return record

    async def _configured(self, domain: str) -> RegistryRecord:
        record = await self._registered(domain)
        if not record.has_resolver:
            raise ResolutionError(ResolutionErrorCode.UNSPECIFIED_RESOLVER, domain=domain)
        return record

    async def resolver_records(self, resolver: Optional[str]) -> dict[str, str]:
        """Whole flat record map of a resolver; empty for the null resolver."""
        if is_null_address(resolver):
            return {}
        records = await self.call(resolver, "records")
        return records if isinstance(records, dict) else {}

    async def owner(self, domain: str) -> Optional[str]:
        record = await self.registry_record(domain)
        if record is None or not record.has_owner:
            return None
        return normalize_owner(record.owner)

    async def resolver(self, domain: str) -> str:
        record = await self._configured(domain)
        return record.resolver

    async def resolve(self, domain: str) -> Resolution:
        record = await self._registered(domain)
        nested = nest_records(await self.resolver_records(record.resolver))

        owner = normalize_owner(record.owner) if record.has_owner else None
        self._log(LogLevel.DEBUG, f"Resolved {domain}", {"domain": domain, "owner": owner})
        return Resolution(
            addresses=addresses_from(nested),
            meta=ResolutionMeta(
                owner=owner,
                type=self.service_type.value,
                ttl=parse_ttl(nested.get("ttl")),
            ),
        )

    async def address(self, domain: str, currency_ticker: str) -> str:
        ticker = currency_ticker.upper()
        record = await self._configured(domain)
        records = await self.resolver_records(record.resolver)
        address = records.get(f"crypto.{ticker}.address")
        if not address:
            raise ResolutionError(
                ResolutionErrorCode.UNSPECIFIED_CURRENCY,
                domain=domain,
                currency_ticker=ticker,
            )
        return address

    async def record(self, domain: str, key: str) -> str:
        record = await self._configured(domain)
        records = await self.resolver_records(record.resolver)
        value = records.get(key)
        if not value or is_null_address(value):
            raise ResolutionError(
                ResolutionErrorCode.RECORD_NOT_FOUND,
                domain=domain,
                record_name=key,
            )
        return value

    async def records(self, domain: str, keys: Sequence[str]) -> dict[str, str]:
        record = await self._configured(domain)
        records = await self.resolver_records(record.resolver)
        return {key: records.get(key) or "" for key in keys}
