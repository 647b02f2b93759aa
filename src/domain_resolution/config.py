"""
Configuration dataclasses for the domain resolution system.

This module defines the per-naming-service source settings, logging settings,
source normalization against the network tables, and JSON file loading.
"""

import json
import os
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional, Union

from .networks import DEFAULT_NETWORK, NetworkTable


@dataclass
class SourceConfig:
    """Where a naming service reads its chain data from."""

    url: Optional[str] = None
    network: Optional[Union[str, int]] = None
    registry: Optional[str] = None


# A source may be given as a full config, a bare RPC URL, True for the
# defaults, or False to disable the naming service.
SourceSetting = Union[SourceConfig, str, bool]


@dataclass
class BlockchainConfig:
    """Sources of all naming services."""

    ens: SourceSetting = True
    cns: SourceSetting = True
    zns: SourceSetting = True


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class ResolutionConfig:
    """Main configuration combining all sub-configurations."""

    blockchain: BlockchainConfig = field(default_factory=BlockchainConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    timeout: float = 10.0


def normalize_source(source: Optional[SourceSetting], table: NetworkTable) -> SourceConfig:
    """
    Resolve a source setting into a concrete url/network/registry triple.

    Rules:
    - True or None: the default network and its default URL
    - A string: used as the URL, network inferred from its host
    - A SourceConfig: numeric networks are mapped to names; an explicit
      registry defaults the network to mainnet; a known network without a
      URL gets its default URL; a URL without a network has it inferred

    Args:
        source: The configured source
        table: Network tables of the naming service

    Returns:
        A new SourceConfig; url or network stay None when unresolvable
    """
    if source is None or source is True:
        url = table.default_url(DEFAULT_NETWORK)
        return SourceConfig(url=url, network=table.network_from_url(url))

    if isinstance(source, str):
        return SourceConfig(url=source, network=table.network_from_url(source))

    if not isinstance(source, SourceConfig):
        raise TypeError(f"Unsupported source setting: {source!r}")

    network = table.network_name(source.network)
    url = source.url

    if source.registry:
        network = network or DEFAULT_NETWORK
        url = url or table.default_url(network)

    if network and not url:
        url = table.default_url(network)

    if url and not network:
        network = table.network_from_url(url)

    return SourceConfig(url=url, network=network, registry=source.registry)


def _parse_source(data: Union[dict, str, bool, None]) -> SourceSetting:
    if data is None:
        return True
    if isinstance(data, (bool, str)):
        return data
    if not data.get("enabled", True):
        return False
    return SourceConfig(
        url=data.get("url"),
        network=data.get("network"),
        registry=data.get("registry"),
    )


def create_default_config() -> ResolutionConfig:
    """
    Create a default configuration.

    Returns:
        ResolutionConfig with every naming service on its mainnet defaults
    """
    return ResolutionConfig()


def load_config_from_file(config_path: Path) -> Optional[ResolutionConfig]:
    """
    Load configuration from a JSON file.

    Example file::

        {
          "blockchain": {
            "ens": {"url": "https://mainnet.infura.io/v3/<id>"},
            "cns": {"network": 1},
            "zns": false
          },
          "logging": {"level": "debug", "output_format": "json"},
          "timeout": 5
        }

    Args:
        config_path: Path to the configuration file

    Returns:
        ResolutionConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        blockchain_data = data.get("blockchain", {})
        blockchain = BlockchainConfig(
            ens=_parse_source(blockchain_data.get("ens")),
            cns=_parse_source(blockchain_data.get("cns")),
            zns=_parse_source(blockchain_data.get("zns")),
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "info"),
            output_format=logging_data.get("output_format", "text"),
        )

        return ResolutionConfig(
            blockchain=blockchain,
            logging=logging_config,
            timeout=float(data.get("timeout", 10.0)),
        )

    except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except FileNotFoundError:
        return None


# Environment variables overriding the source URL of each naming service
SOURCE_URL_ENV_VARS = {
    "ens": "ENS_URL",
    "cns": "CNS_URL",
    "zns": "ZNS_URL",
}


def apply_env_overrides(
    config: ResolutionConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> ResolutionConfig:
    """
    Override source URLs and the log level from environment variables.

    Provider URLs usually embed a project id, so they are kept out of the
    JSON config and read from the environment (or a .env file) instead.
    Disabled sources stay disabled.

    Args:
        config: Configuration to update in place
        environ: Variables to read (defaults to os.environ)

    Returns:
        The same configuration object
    """
    env = os.environ if environ is None else environ

    for name, var in SOURCE_URL_ENV_VARS.items():
        url = (env.get(var) or "").strip()
        current = getattr(config.blockchain, name)
        if not url or current is False:
            continue
        if isinstance(current, SourceConfig):
            setattr(config.blockchain, name, replace(current, url=url))
        else:
            setattr(config.blockchain, name, url)

    level = (env.get("LOG_LEVEL") or "").strip().lower()
    if level:
        config.logging.level = level

    return config
