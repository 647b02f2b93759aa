"""
Property-based tests for the Resolution Dispatcher.

Verifies backend routing, the unclaimed response, the null-returning
address lookup and reverse lookup capability dispatch.
"""

import asyncio
from io import StringIO

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from fakes import FakeCaller
from domain_resolution.audit_logger import AuditLogger
from domain_resolution.cns import Cns
from domain_resolution.config import BlockchainConfig, ResolutionConfig
from domain_resolution.dispatcher import ResolutionDispatcher
from domain_resolution.enums import LogLevel, ResolutionErrorCode, TransportErrorCode
from domain_resolution.ens import Ens
from domain_resolution.exceptions import InvalidOwnerError, ResolutionError, TransportError
from domain_resolution.namehash import namehash, zns_namehash
from domain_resolution.networks import CNS_REGISTRIES, ENS_REGISTRY_ADDRESS, ZNS_REGISTRIES
from domain_resolution.zns import Zns


CNS_REGISTRY = CNS_REGISTRIES["mainnet"]
OWNER = "0x8aaD44321A86b170879d7A244c1e8d360c99DdA8"
RESOLVER = "0xb66DcE2DA6afAAa98F2013446dBCB0f4B0ab2842"
ETH_ADDRESS = "0x714ef33943d925731FBB89C99aF5780D888bD106"

label_strategy = st.text(
    alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789"),
    min_size=1,
    max_size=15,
)


def run(coro):
    return asyncio.run(coro)


def make_dispatcher(
    ens_caller=None,
    cns_caller=None,
    zns_caller=None,
    logger=None,
) -> ResolutionDispatcher:
    return ResolutionDispatcher(
        [
            Ens(caller=ens_caller or FakeCaller()),
            Cns(caller=cns_caller or FakeCaller()),
            Zns(caller=zns_caller or FakeCaller()),
        ],
        logger=logger,
    )


def cns_caller_for(domain: str, records: dict) -> FakeCaller:
    token_id = namehash(domain)
    caller = FakeCaller({
        (CNS_REGISTRY, "ownerOf", token_id): OWNER,
        (CNS_REGISTRY, "resolverOf", token_id): RESOLVER,
    })
    for key, value in records.items():
        caller.set(RESOLVER, "get", key, token_id, value=value)
    return caller


class TestRoutingProperty:
    """
    Property 13: Each query goes to the backend owning the suffix.

    *For any* supported domain, only the owning backend's contracts SHALL
    be read.
    """

    @given(label=label_strategy, suffix=st.sampled_from(["eth", "crypto", "zil"]))
    @settings(max_examples=50)
    def test_only_owning_backend_is_called(self, label: str, suffix: str) -> None:
        callers = {"eth": FakeCaller(), "crypto": FakeCaller(), "zil": FakeCaller()}
        dispatcher = make_dispatcher(callers["eth"], callers["crypto"], callers["zil"])

        run(dispatcher.resolve(f"{label}.{suffix}"))

        for name, caller in callers.items():
            assert bool(caller.calls) == (name == suffix)

    @given(label=label_strategy, suffix=st.sampled_from(["com", "org", "io", "zilliqa"]))
    @settings(max_examples=50)
    def test_unsupported_domains_raise(self, label: str, suffix: str) -> None:
        dispatcher = make_dispatcher()
        domain = f"{label}.{suffix}"

        assert not dispatcher.is_supported_domain(domain)
        for operation in (
            dispatcher.resolve(domain),
            dispatcher.address_or_throw(domain, "ETH"),
            dispatcher.record(domain, "ttl"),
        ):
            with pytest.raises(ResolutionError) as exc_info:
                run(operation)
            assert exc_info.value.error_code == ResolutionErrorCode.UNSUPPORTED_DOMAIN

    def test_supported_in_network_needs_registry(self) -> None:
        dispatcher = ResolutionDispatcher([
            Ens(caller=FakeCaller()),
            Zns(source="https://dev-api.zilliqa.com", caller=FakeCaller()),
        ])
        assert dispatcher.is_supported_domain_in_network("brad.eth")
        assert dispatcher.is_supported_domain("brad.zil")
        assert not dispatcher.is_supported_domain_in_network("brad.zil")
        assert not dispatcher.is_supported_domain_in_network("brad.crypto")

    def test_namehash_uses_backend_hash(self) -> None:
        dispatcher = make_dispatcher()
        assert dispatcher.namehash("brad.crypto") == namehash("brad.crypto")
        assert dispatcher.namehash("brad.zil") != namehash("brad.zil")


class TestUnclaimedResponseProperty:
    """
    Property 14: Unregistered domains resolve to a fresh unclaimed response.

    *For any* unregistered domain, resolve SHALL return empty addresses, no
    owner, empty type and zero ttl, as a new object on every call.
    """

    @given(label=label_strategy, suffix=st.sampled_from(["eth", "crypto", "zil"]))
    @settings(max_examples=50)
    def test_unregistered_is_unclaimed(self, label: str, suffix: str) -> None:
        dispatcher = make_dispatcher()

        first = run(dispatcher.resolve(f"{label}.{suffix}"))
        first.addresses["ETH"] = "mutated"
        second = run(dispatcher.resolve(f"{label}.{suffix}"))

        assert second.to_dict() == {
            "addresses": {},
            "meta": {"owner": None, "type": "", "ttl": 0},
        }
        assert first is not second

    def test_other_resolution_errors_propagate(self) -> None:
        token_id = namehash("owned.crypto")
        caller = FakeCaller({(CNS_REGISTRY, "ownerOf", token_id): OWNER})
        dispatcher = make_dispatcher(cns_caller=caller)

        with pytest.raises(ResolutionError) as exc_info:
            run(dispatcher.resolve("owned.crypto"))
        assert exc_info.value.error_code == ResolutionErrorCode.UNSPECIFIED_RESOLVER


class TestAddressProperty:
    """
    Property 15: address swallows only resolution errors.

    *For any* resolution failure, address SHALL return None while
    address_or_throw raises; infrastructure failures SHALL raise from both.
    """

    def test_unclaimed_zil_domain(self) -> None:
        dispatcher = make_dispatcher()

        assert run(dispatcher.address("unclaimed.zil", "ETH")) is None
        with pytest.raises(ResolutionError) as exc_info:
            run(dispatcher.address_or_throw("unclaimed.zil", "ETH"))
        assert exc_info.value.error_code == ResolutionErrorCode.UNREGISTERED_DOMAIN

    @given(
        suffix=st.sampled_from(["eth", "crypto", "zil"]),
        ticker=st.sampled_from(["ETH", "BTC", "ZIL"]),
    )
    @settings(max_examples=30)
    def test_unregistered_wins_over_currency(self, suffix: str, ticker: str) -> None:
        dispatcher = make_dispatcher()

        with pytest.raises(ResolutionError) as exc_info:
            run(dispatcher.address_or_throw(f"free.{suffix}", ticker))
        assert exc_info.value.error_code == ResolutionErrorCode.UNREGISTERED_DOMAIN

    @given(ticker=st.sampled_from(["BTC", "ZIL", "LTC"]))
    @settings(max_examples=10)
    def test_unspecified_currency_is_none(self, ticker: str) -> None:
        caller = cns_caller_for("known.crypto", {"crypto.ETH.address": ETH_ADDRESS, "ttl": "120"})
        dispatcher = make_dispatcher(cns_caller=caller)

        assert run(dispatcher.address("known.crypto", "eth")) == ETH_ADDRESS
        assert run(dispatcher.address("known.crypto", ticker)) is None

        resolution = run(dispatcher.resolve("known.crypto"))
        assert resolution.meta.ttl == 120
        assert resolution.addresses["ETH"] == ETH_ADDRESS

    def test_unsupported_domain_is_none(self) -> None:
        assert run(make_dispatcher().address("brad.com", "ETH")) is None

    def test_naming_service_down_is_none(self) -> None:
        caller = FakeCaller(error=TransportError(TransportErrorCode.TIMEOUT, "timed out"))
        dispatcher = make_dispatcher(cns_caller=caller)
        assert run(dispatcher.address("brad.crypto", "ETH")) is None

    def test_infrastructure_failures_raise(self) -> None:
        caller = FakeCaller(error=TransportError(TransportErrorCode.NETWORK_ERROR, "refused"))
        dispatcher = make_dispatcher(cns_caller=caller)
        with pytest.raises(TransportError):
            run(dispatcher.address("brad.crypto", "ETH"))

        dispatcher = make_dispatcher(cns_caller=FakeCaller(error=RuntimeError("boom")))
        with pytest.raises(RuntimeError):
            run(dispatcher.address("brad.crypto", "ETH"))


class TestReverseProperty:
    """
    Property 16: Reverse lookup goes to the first capable backend.

    *For any* configuration, reverse SHALL use the ENS backend when present
    and raise UnsupportedMethod otherwise.
    """

    def test_reverse_uses_ens(self) -> None:
        reverse_node = namehash(("ab" * 20) + ".addr.reverse")
        ens_caller = FakeCaller({
            (ENS_REGISTRY_ADDRESS, "resolver", reverse_node): RESOLVER,
            (RESOLVER, "name", reverse_node): "brad.eth",
        })
        dispatcher = make_dispatcher(ens_caller=ens_caller)
        assert run(dispatcher.reverse("0x" + "ab" * 20, "ETH")) == "brad.eth"

    def test_reverse_without_capable_backend(self) -> None:
        dispatcher = ResolutionDispatcher([Cns(caller=FakeCaller()), Zns(caller=FakeCaller())])
        with pytest.raises(ResolutionError) as exc_info:
            run(dispatcher.reverse("0x" + "ab" * 20, "ETH"))
        assert exc_info.value.error_code == ResolutionErrorCode.UNSUPPORTED_METHOD


class TestDispatcherLifecycle:
    """Construction from config and resource cleanup."""

    def test_context_manager_closes_backends(self) -> None:
        callers = [FakeCaller(), FakeCaller(), FakeCaller()]
        dispatcher = make_dispatcher(*callers)

        async def use():
            async with dispatcher:
                pass

        run(use())
        assert all(caller.closed for caller in callers)

    def test_from_config_skips_disabled_sources(self) -> None:
        config = ResolutionConfig(blockchain=BlockchainConfig(ens=True, cns=False, zns=True))
        dispatcher = ResolutionDispatcher.from_config(config)
        assert [type(b) for b in dispatcher.backends] == [Ens, Zns]
        assert not dispatcher.is_supported_domain("brad.crypto")

    def test_from_config_uses_transport(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            # Every slot empty
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x"})

        config = ResolutionConfig(blockchain=BlockchainConfig(ens=False, cns=True, zns=False))

        async def resolve():
            async with ResolutionDispatcher.from_config(
                config, transport=httpx.MockTransport(handler)
            ) as dispatcher:
                return await dispatcher.resolve("brad.crypto")

        assert run(resolve()).meta.owner is None

    def test_resolution_is_logged(self) -> None:
        output = StringIO()
        logger = AuditLogger(output_format="json", output_stream=output, level=LogLevel.INFO)
        dispatcher = make_dispatcher(logger=logger)

        run(dispatcher.resolve("free.crypto"))

        messages = [entry.message for entry in logger.entries]
        assert "Resolving free.crypto" in messages
        assert "free.crypto is unclaimed" in messages
        assert all(entry.component == "dispatcher" for entry in logger.entries)

    def test_invalid_zns_owner_is_logged(self) -> None:
        node = zns_namehash("brad.zil")
        zns_caller = FakeCaller({
            (ZNS_REGISTRIES["mainnet"], "records", node): {node: {"arguments": ["0xdeadbeef", RESOLVER]}},
        })
        logger = AuditLogger(output_format="json", output_stream=StringIO())
        dispatcher = make_dispatcher(zns_caller=zns_caller, logger=logger)

        with pytest.raises(InvalidOwnerError):
            run(dispatcher.resolve("brad.zil"))

        failure = logger.entries[-1]
        assert failure.level == LogLevel.ERROR
        assert failure.data["error_code"] == "invalid_owner"
