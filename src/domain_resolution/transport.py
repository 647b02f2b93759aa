"""
Contract callers for reading naming-service contracts over JSON-RPC.

This module provides an async JSON-RPC client with a uniform failure
taxonomy, plus the Ethereum (eth_call + ABI) and Zilliqa
(GetSmartContractSubState) callers built on top of it.

Failure mapping of JsonRpcClient:
- Non-JSON body, malformed envelope or HTTP 5xx -> INVALID_RESPONSE
- HTTP 429 -> RATE_LIMITED
- Timeout -> TIMEOUT
- Connection failure -> NETWORK_ERROR
- JSON-RPC error object -> RPC_ERROR
"""

import itertools
import json
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

import bech32
import httpx
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_hash.auto import keccak

from .enums import TransportErrorCode
from .exceptions import TransportError


class ContractCaller(ABC):
    """Reads a value from a deployed contract."""

    @abstractmethod
    async def call(
        self,
        contract_address: str,
        method_name: str,
        params: Sequence[Any] = (),
    ) -> Any:
        """
        Invoke a read-only contract method.

        Returns:
            The decoded value, or None when the contract has nothing stored
        """

    async def aclose(self) -> None:
        """Release network resources held by the caller."""


class JsonRpcClient:
    """
    Async JSON-RPC 2.0 client.

    The underlying httpx client is opened lazily on first request; tests
    inject an ``httpx.MockTransport`` through ``transport``.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self._url

    async def __aenter__(self) -> "JsonRpcClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def request(self, method: str, params: list) -> Any:
        """
        Send one JSON-RPC request and return its ``result``.

        Args:
            method: RPC method name (e.g., 'eth_call')
            params: Positional RPC parameters

        Returns:
            The ``result`` member of the response envelope

        Raises:
            TransportError: On any transport, HTTP or RPC level failure
        """
        client = self._ensure_client()
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        details = {"url": self._url, "method": method}

        try:
            response = await client.post(self._url, json=payload)
        except httpx.TimeoutException as e:
            raise TransportError(
                TransportErrorCode.TIMEOUT,
                f"Request to {self._url} timed out",
                details,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                TransportErrorCode.NETWORK_ERROR,
                f"Network error: {e}",
                details,
            ) from e

        if response.status_code == 429:
            raise TransportError(
                TransportErrorCode.RATE_LIMITED,
                "Rate limited by JSON RPC endpoint",
                {**details, "http_status_code": 429},
            )

        if response.status_code >= 500:
            raise TransportError(
                TransportErrorCode.INVALID_RESPONSE,
                f"Invalid JSON RPC response: HTTP {response.status_code}",
                {**details, "http_status_code": response.status_code},
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(
                TransportErrorCode.INVALID_RESPONSE,
                f"Invalid JSON RPC response: {response.text[:200]!r}",
                {**details, "http_status_code": response.status_code},
            ) from e

        if not isinstance(body, dict) or ("result" not in body and "error" not in body):
            raise TransportError(
                TransportErrorCode.INVALID_RESPONSE,
                f"Invalid JSON RPC response: {body!r}",
                {**details, "http_status_code": response.status_code},
            )

        error = body.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise TransportError(
                TransportErrorCode.RPC_ERROR,
                message,
                {**details, "rpc_error": error},
            )

        return body.get("result")


# Method name -> (ABI input types, ABI output types)
ETHEREUM_METHODS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    # ENS registry
    "owner": (("bytes32",), ("address",)),
    "resolver": (("bytes32",), ("address",)),
    "ttl": (("bytes32",), ("uint64",)),
    # ENS resolver
    "addr": (("bytes32",), ("address",)),
    "text": (("bytes32", "string"), ("string",)),
    "name": (("bytes32",), ("string",)),
    # CNS registry
    "ownerOf": (("uint256",), ("address",)),
    "resolverOf": (("uint256",), ("address",)),
    # CNS resolver
    "get": (("string", "uint256"), ("string",)),
}


def method_selector(method_name: str, input_types: Sequence[str]) -> bytes:
    """First 4 bytes of the keccak-256 of the canonical method signature."""
    signature = f"{method_name}({','.join(input_types)})"
    return keccak(signature.encode("ascii"))[:4]


def _coerce_param(abi_type: str, value: Any) -> Any:
    if isinstance(value, str) and value.startswith("0x"):
        if abi_type == "bytes32":
            return bytes.fromhex(value[2:])
        if abi_type.startswith("uint"):
            return int(value, 16)
    return value


class EthereumContractCaller(ContractCaller):
    """Calls Ethereum contracts with ``eth_call`` against the latest block."""

    def __init__(self, client: JsonRpcClient) -> None:
        self._client = client

    @property
    def client(self) -> JsonRpcClient:
        return self._client

    def encode_call(self, method_name: str, params: Sequence[Any]) -> str:
        """
        Build the hex calldata for a known method.

        Raises:
            KeyError: If the method has no known ABI
        """
        input_types, _ = ETHEREUM_METHODS[method_name]
        args = [_coerce_param(t, v) for t, v in zip(input_types, params)]
        calldata = method_selector(method_name, input_types) + encode(list(input_types), args)
        return "0x" + calldata.hex()

    async def call(
        self,
        contract_address: str,
        method_name: str,
        params: Sequence[Any] = (),
    ) -> Any:
        _, output_types = ETHEREUM_METHODS[method_name]
        transaction = {
            "to": contract_address,
            "data": self.encode_call(method_name, params),
        }

        try:
            result = await self._client.request("eth_call", [transaction, "latest"])
        except TransportError as e:
            # Reverts mean the contract has nothing for this key
            if (
                e.transport_code == TransportErrorCode.RPC_ERROR
                and "execution reverted" in e.message.lower()
            ):
                return None
            raise

        if result is None or result == "0x":
            return None
        if not isinstance(result, str) or not result.startswith("0x"):
            raise TransportError(
                TransportErrorCode.INVALID_RESPONSE,
                f"Invalid JSON RPC response: unexpected eth_call result {result!r}",
                {"method": method_name},
            )

        try:
            decoded = decode(list(output_types), bytes.fromhex(result[2:]))
        except (DecodingError, ValueError) as e:
            raise TransportError(
                TransportErrorCode.INVALID_RESPONSE,
                f"Invalid JSON RPC response: cannot decode {method_name} result",
                {"method": method_name, "result": result},
            ) from e
        return decoded[0]

    async def aclose(self) -> None:
        await self._client.aclose()


def bech32_to_hex(address: str) -> str:
    """
    Decode a bech32 Zilliqa address to lowercase hex without 0x.

    Hex addresses are passed through (lowercased, prefix stripped).

    Raises:
        ValueError: If the bech32 string is malformed
    """
    if not address.lower().startswith("zil1"):
        return address.lower().removeprefix("0x")
    hrp, data = bech32.bech32_decode(address)
    if hrp != "zil" or data is None:
        raise ValueError(f"Invalid Zilliqa address: {address}")
    raw = bech32.convertbits(data, 5, 8, False)
    if raw is None or len(raw) != 20:
        raise ValueError(f"Invalid Zilliqa address: {address}")
    return bytes(raw).hex()


class ZilliqaContractCaller(ContractCaller):
    """Reads Zilliqa contract state with ``GetSmartContractSubState``."""

    def __init__(self, client: JsonRpcClient) -> None:
        self._client = client

    @property
    def client(self) -> JsonRpcClient:
        return self._client

    async def call(
        self,
        contract_address: str,
        method_name: str,
        params: Sequence[Any] = (),
    ) -> Any:
        """
        Read one state field, optionally narrowed to map keys.

        Args:
            contract_address: bech32 or hex contract address
            method_name: The contract field (e.g., 'records')
            params: Map keys narrowing the field, sent JSON encoded

        Returns:
            The field value, or None when the contract has no such field
        """
        rpc_params = [
            bech32_to_hex(contract_address),
            method_name,
            [json.dumps(key) for key in params],
        ]
        result = await self._client.request("GetSmartContractSubState", rpc_params)
        if not result:
            return None
        if not isinstance(result, dict):
            raise TransportError(
                TransportErrorCode.INVALID_RESPONSE,
                f"Invalid JSON RPC response: unexpected state {result!r}",
                {"field": method_name},
            )
        return result.get(method_name)

    async def aclose(self) -> None:
        await self._client.aclose()
