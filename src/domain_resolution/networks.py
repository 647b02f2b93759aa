"""
Network tables - known chains, default RPC endpoints and registry contracts.

This module contains immutable lookup tables for every supported chain family:
- Ethereum networks (ENS and CNS registries)
- Zilliqa networks (ZNS registry)

Tables are built once at import time and handed to naming services by reference.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Union


@dataclass(frozen=True)
class NetworkTable:
    """Lookup tables for one naming service on one chain family."""

    network_ids: Mapping[int, str]
    default_urls: Mapping[str, str]
    # Ordered (host fragment, network name) pairs used to infer a network from a URL
    url_fragments: tuple[tuple[str, str], ...]
    registries: Mapping[str, str]

    def network_name(self, network: Union[str, int, None]) -> Optional[str]:
        """Map a chain id or name to the canonical network name."""
        if network is None:
            return None
        if isinstance(network, int):
            return self.network_ids.get(network)
        return network

    def network_from_url(self, url: str) -> Optional[str]:
        """
        Infer the network from an RPC endpoint URL.

        Args:
            url: The endpoint URL (e.g., 'https://ropsten.infura.io')

        Returns:
            The first network whose host fragment occurs in the URL, or None
        """
        for fragment, name in self.url_fragments:
            if fragment in url:
                return name
        return None

    def default_url(self, network: str) -> Optional[str]:
        return self.default_urls.get(network)

    def registry_address(self, network: str) -> Optional[str]:
        return self.registries.get(network)


# ============================================================================
# ETHEREUM
# ============================================================================
ETHEREUM_NETWORK_IDS = MappingProxyType({
    1: "mainnet",
    3: "ropsten",
    4: "rinkeby",
    5: "goerli",
    42: "kovan",
})

ETHEREUM_DEFAULT_URLS = MappingProxyType({
    name: f"https://{name}.infura.io" for name in ETHEREUM_NETWORK_IDS.values()
})

ETHEREUM_URL_FRAGMENTS = tuple((name, name) for name in ETHEREUM_NETWORK_IDS.values())

ENS_REGISTRY_ADDRESS = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"

ENS_REGISTRIES = MappingProxyType({
    "mainnet": ENS_REGISTRY_ADDRESS,
    "ropsten": ENS_REGISTRY_ADDRESS,
    "rinkeby": ENS_REGISTRY_ADDRESS,
    "goerli": ENS_REGISTRY_ADDRESS,
})

CNS_REGISTRIES = MappingProxyType({
    "mainnet": "0x608624cA9dacbf78B19232e15f67107Da0AeE715",
})


# ============================================================================
# ZILLIQA
# ============================================================================
ZILLIQA_NETWORK_IDS = MappingProxyType({
    1: "mainnet",
    333: "testnet",
    111: "localnet",
})

ZILLIQA_DEFAULT_URLS = MappingProxyType({
    "mainnet": "https://api.zilliqa.com",
    "testnet": "https://dev-api.zilliqa.com",
    "localnet": "http://localhost:4201",
})

# dev-api must be tested before api, which it contains
ZILLIQA_URL_FRAGMENTS = (
    ("dev-api.zilliqa.com", "testnet"),
    ("api.zilliqa.com", "mainnet"),
    ("localhost", "localnet"),
)

ZNS_REGISTRIES = MappingProxyType({
    "mainnet": "zil1jcgu2wlx6xejqk9jw3aaankw6lsjzeunx2j0jz",
})


# ============================================================================
# TABLES PER NAMING SERVICE
# ============================================================================
ENS_NETWORKS = NetworkTable(
    network_ids=ETHEREUM_NETWORK_IDS,
    default_urls=ETHEREUM_DEFAULT_URLS,
    url_fragments=ETHEREUM_URL_FRAGMENTS,
    registries=ENS_REGISTRIES,
)

CNS_NETWORKS = NetworkTable(
    network_ids=ETHEREUM_NETWORK_IDS,
    default_urls=ETHEREUM_DEFAULT_URLS,
    url_fragments=ETHEREUM_URL_FRAGMENTS,
    registries=CNS_REGISTRIES,
)

ZNS_NETWORKS = NetworkTable(
    network_ids=ZILLIQA_NETWORK_IDS,
    default_urls=ZILLIQA_DEFAULT_URLS,
    url_fragments=ZILLIQA_URL_FRAGMENTS,
    registries=ZNS_REGISTRIES,
)

DEFAULT_NETWORK = "mainnet"
