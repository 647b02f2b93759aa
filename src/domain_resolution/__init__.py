"""
Domain Resolution - blockchain domain names to cryptocurrency addresses.

This package resolves ENS (.eth, .luxe, .xyz, .kred), CNS (.crypto) and
ZNS (.zil) domains by reading their on-chain registries and resolvers, and
reports failures through a single backend-agnostic error taxonomy.
"""

__version__ = "0.1.0"
__author__ = "Domain Resolution Team"

from domain_resolution.exceptions import (
    DomainResolutionError,
    ConfigurationError,
    InvalidOwnerError,
    TransportError,
    ResolutionError,
    is_naming_service_down,
)
from domain_resolution.enums import (
    NamingServiceType,
    Capability,
    LogLevel,
    ResolutionErrorCode,
    TransportErrorCode,
)
from domain_resolution.models import (
    NULL_ADDRESS,
    NULL_NODE,
    Resolution,
    ResolutionMeta,
    RegistryRecord,
    is_null_address,
    unclaimed_resolution,
)
from domain_resolution.networks import (
    NetworkTable,
    ENS_NETWORKS,
    CNS_NETWORKS,
    ZNS_NETWORKS,
    DEFAULT_NETWORK,
)
from domain_resolution.config import (
    SourceConfig,
    BlockchainConfig,
    LoggingConfig,
    ResolutionConfig,
    normalize_source,
    apply_env_overrides,
    create_default_config,
    load_config_from_file,
)
from domain_resolution.namehash import (
    namehash,
    zns_namehash,
    normalize_name,
)
from domain_resolution.transport import (
    ContractCaller,
    JsonRpcClient,
    EthereumContractCaller,
    ZilliqaContractCaller,
)
from domain_resolution.zilliqa_address import (
    normalize_owner,
    to_bech32,
)
from domain_resolution.audit_logger import (
    AuditLogger,
    LogEntry,
)
from domain_resolution.naming_service import (
    NamingService,
    EthereumRegistryClient,
    call_contract,
)
from domain_resolution.ens import Ens
from domain_resolution.cns import Cns
from domain_resolution.zns import Zns
from domain_resolution.dispatcher import ResolutionDispatcher
from domain_resolution.cli import (
    main as cli_main,
    create_parser,
)

__all__ = [
    # Exceptions
    "DomainResolutionError",
    "ConfigurationError",
    "InvalidOwnerError",
    "TransportError",
    "ResolutionError",
    "is_naming_service_down",
    # Enums
    "NamingServiceType",
    "Capability",
    "LogLevel",
    "ResolutionErrorCode",
    "TransportErrorCode",
    # Models
    "NULL_ADDRESS",
    "NULL_NODE",
    "Resolution",
    "ResolutionMeta",
    "RegistryRecord",
    "is_null_address",
    "unclaimed_resolution",
    # Networks
    "NetworkTable",
    "ENS_NETWORKS",
    "CNS_NETWORKS",
    "ZNS_NETWORKS",
    "DEFAULT_NETWORK",
    # Configuration
    "SourceConfig",
    "BlockchainConfig",
    "LoggingConfig",
    "ResolutionConfig",
    "normalize_source",
    "apply_env_overrides",
    "create_default_config",
    "load_config_from_file",
    # Namehash
    "namehash",
    "zns_namehash",
    "normalize_name",
    # Transport
    "ContractCaller",
    "JsonRpcClient",
    "EthereumContractCaller",
    "ZilliqaContractCaller",
    # Zilliqa addresses
    "normalize_owner",
    "to_bech32",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # Naming services
    "NamingService",
    "EthereumRegistryClient",
    "call_contract",
    "Ens",
    "Cns",
    "Zns",
    # Dispatcher
    "ResolutionDispatcher",
    # CLI
    "cli_main",
    "create_parser",
]
