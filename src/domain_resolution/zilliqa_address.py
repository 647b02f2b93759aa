"""
Zilliqa address helpers.

ZNS registries store owners either as 20 byte addresses or as secp256k1
public keys. Both are presented to callers as bech32 ``zil1...`` addresses.
"""

import hashlib
import re

import bech32
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from domain_resolution.exceptions import InvalidOwnerError

ZILLIQA_HRP = "zil"

_HEX_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")
_COMPRESSED_KEY = re.compile(r"^(0x)?0[23][0-9a-fA-F]{64}$")
_UNCOMPRESSED_KEY = re.compile(r"^(0x)?(04)?[0-9a-fA-F]{128}$")


def to_bech32(address_bytes: bytes) -> str:
    """Encode 20 address bytes as a ``zil1...`` string."""
    data = bech32.convertbits(address_bytes, 8, 5)
    return bech32.bech32_encode(ZILLIQA_HRP, data)


def compress_public_key(raw_key: bytes) -> bytes:
    """
    Compress an uncompressed secp256k1 point (64 bytes, no 0x04 prefix).

    Raises:
        ValueError: If the bytes are not a point on the curve
    """
    public_key = ec.EllipticCurvePublicKey.from_encoded_point(
        ec.SECP256K1(), b"\x04" + raw_key
    )
    return public_key.public_bytes(Encoding.X962, PublicFormat.CompressedPoint)


def address_from_public_key(compressed_key: bytes) -> bytes:
    """Zilliqa address: the last 20 bytes of SHA-256 of the compressed key."""
    return hashlib.sha256(compressed_key).digest()[-20:]


def normalize_owner(owner: str) -> str:
    """
    Present a stored ZNS owner as a bech32 address.

    Accepted forms:
    - ``0x`` + 40 hex: a plain address
    - ``02``/``03`` + 64 hex: a compressed public key
    - ``04`` + 128 hex, or bare 128 hex: an uncompressed public key

    Args:
        owner: The owner value read from the registry

    Returns:
        The ``zil1...`` address; bech32 input is returned unchanged

    Raises:
        InvalidOwnerError: For any other value, or a key that is not a
            point on secp256k1
    """
    if owner.startswith("zil1"):
        return owner

    if _HEX_ADDRESS.match(owner):
        return to_bech32(bytes.fromhex(owner[2:]))

    if _COMPRESSED_KEY.match(owner):
        key = bytes.fromhex(owner.removeprefix("0x"))
        return to_bech32(address_from_public_key(key))

    if _UNCOMPRESSED_KEY.match(owner):
        raw = owner.removeprefix("0x")
        if len(raw) == 130:
            raw = raw[2:]
        try:
            compressed = compress_public_key(bytes.fromhex(raw))
        except ValueError as e:
            raise InvalidOwnerError(owner, str(e)) from e
        return to_bech32(address_from_public_key(compressed))

    raise InvalidOwnerError(owner)
