"""
Domain normalization and namehash computation.

Namehash derives the fixed-width node used as the on-chain key of a domain:

    namehash("")      = 0x00..00
    namehash("eth")   = H(namehash("") + H("eth"))
    namehash("a.eth") = H(namehash("eth") + H("a"))

ENS and CNS use keccak-256 as H; ZNS uses SHA-256.
"""

import hashlib
from typing import Callable

import idna
from eth_hash.auto import keccak

from domain_resolution.models import NULL_NODE

HashFunction = Callable[[bytes], bytes]


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def normalize_name(domain: str) -> str:
    """
    Convert a domain to its hashing form (lowercase, UTS #46 mapped).

    ASCII names are only lowercased. Names with international characters
    are mapped with UTS #46 (non-transitional), but kept in Unicode since
    labels are hashed as UTF-8.

    Raises:
        idna.IDNAError: If the name contains disallowed code points
    """
    domain_lower = domain.strip().lower()
    has_non_ascii = any(ord(c) > 127 for c in domain_lower)
    if not has_non_ascii:
        return domain_lower
    return idna.uts46_remap(domain_lower, std3_rules=False, transitional=False)


def namehash(domain: str, hash_function: HashFunction = keccak) -> str:
    """
    Compute the namehash of a domain.

    Args:
        domain: Dotted domain name (e.g., 'brad.crypto')
        hash_function: Digest used for labels and nodes (keccak-256 by default)

    Returns:
        0x-prefixed 64 character hex node
    """
    name = normalize_name(domain)
    if not name:
        return NULL_NODE

    node = b"\x00" * 32
    for label in reversed(name.split(".")):
        label_hash = hash_function(label.encode("utf-8"))
        node = hash_function(node + label_hash)
    return "0x" + node.hex()


def zns_namehash(domain: str) -> str:
    """Namehash variant used by the Zilliqa naming service."""
    return namehash(domain, hash_function=sha256)
