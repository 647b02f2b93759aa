"""
Property-based tests for Audit Logger module.

Uses Hypothesis to verify output formats, level filtering and masking of
credentials in log data.
"""

import json
from io import StringIO

import pytest
from hypothesis import given, settings, assume
from hypothesis import strategies as st

from domain_resolution.audit_logger import AuditLogger, LEVEL_ORDER
from domain_resolution.config import LoggingConfig
from domain_resolution.enums import LogLevel, ResolutionErrorCode
from domain_resolution.exceptions import ResolutionError


SENSITIVE_PATTERNS = [
    'token', 'secret', 'password', 'api_key', 'project_id',
    'auth', 'authorization', 'credential', 'private_key',
    'access_token', 'api_secret',
]


@st.composite
def component_name_strategy(draw) -> str:
    """Generate valid component names."""
    return draw(st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-"),
        min_size=1,
        max_size=50,
    ))


@st.composite
def message_strategy(draw) -> str:
    """Generate valid log messages."""
    return draw(st.text(
        alphabet=st.characters(
            whitelist_categories=('L', 'N', 'P', 'S', 'Z'),
            blacklist_characters='\x00\n\r',
        ),
        min_size=1,
        max_size=200,
    ))


@st.composite
def non_sensitive_key_strategy(draw) -> str:
    """Generate keys that are neither sensitive nor URLs."""
    key = draw(st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz_"),
        min_size=1,
        max_size=20,
    ))
    for pattern in SENSITIVE_PATTERNS:
        assume(pattern not in key)
    assume(not key.endswith("url"))
    return key


@st.composite
def sensitive_key_strategy(draw) -> str:
    """Generate keys that ARE sensitive."""
    base = draw(st.sampled_from(SENSITIVE_PATTERNS))
    prefix = draw(st.sampled_from(['', 'infura_', 'rpc_', 'app_']))
    suffix = draw(st.sampled_from(['', '_value', '_1']))
    return f"{prefix}{base}{suffix}"


@st.composite
def simple_value_strategy(draw):
    """Generate simple JSON-serializable values."""
    return draw(st.one_of(
        st.text(min_size=0, max_size=50),
        st.integers(min_value=-1000, max_value=1000),
        st.booleans(),
        st.none(),
    ))


@st.composite
def non_sensitive_data_strategy(draw) -> dict:
    """Generate data dictionaries without sensitive keys."""
    keys = draw(st.lists(non_sensitive_key_strategy(), max_size=5, unique=True))
    return {key: draw(simple_value_strategy()) for key in keys}


class TestDualFormatProperty:
    """
    Property 19: Log entries in the configured format.

    *For any* log entry, "both" SHALL produce a JSON line followed by a
    text line, and "json" or "text" exactly one line of that format.
    """

    @given(
        level=st.sampled_from(list(LogLevel)),
        component=component_name_strategy(),
        message=message_strategy(),
        data=non_sensitive_data_strategy(),
    )
    @settings(max_examples=100)
    def test_dual_format_produces_both_outputs(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: dict,
    ) -> None:
        output = StringIO()
        logger = AuditLogger(output_format="both", output_stream=output, level=LogLevel.DEBUG)

        logger.log(level, component, message, data)

        lines = [line for line in output.getvalue().split('\n') if line]
        assert len(lines) == 2

        parsed = json.loads(lines[0])
        assert parsed["level"] == level.value
        assert parsed["component"] == component
        assert parsed["message"] == message
        assert parsed["data"] == data
        assert "timestamp" in parsed

        assert level.value.upper() in lines[1]
        assert component in lines[1]
        assert message in lines[1]

    @given(
        output_format=st.sampled_from(["json", "text"]),
        message=message_strategy(),
    )
    @settings(max_examples=50)
    def test_single_format_produces_one_line(self, output_format: str, message: str) -> None:
        output = StringIO()
        logger = AuditLogger(output_format=output_format, output_stream=output)

        logger.log(LogLevel.INFO, "dispatcher", message)

        lines = [line for line in output.getvalue().split('\n') if line]
        assert len(lines) == 1
        if output_format == "json":
            assert json.loads(lines[0])["message"] == message
        else:
            assert lines[0].startswith("[")
            assert "INFO [dispatcher]" in lines[0]

    def test_invalid_format_rejected(self) -> None:
        with pytest.raises(ValueError):
            AuditLogger(output_format="xml")


class TestLevelFilterProperty:
    """
    Property 20: Entries below the minimum level are dropped.

    *For any* pair of levels, an entry SHALL be written exactly when its
    level is at least the logger's level.
    """

    @given(
        minimum=st.sampled_from(list(LogLevel)),
        level=st.sampled_from(list(LogLevel)),
    )
    @settings(max_examples=50)
    def test_level_filter(self, minimum: LogLevel, level: LogLevel) -> None:
        output = StringIO()
        logger = AuditLogger(output_format="json", output_stream=output, level=minimum)

        entry = logger.log(level, "ens", "call")

        written = LEVEL_ORDER[level] >= LEVEL_ORDER[minimum]
        assert (entry is not None) == written
        assert bool(output.getvalue()) == written
        assert len(logger.entries) == (1 if written else 0)

    def test_from_config(self) -> None:
        logger = AuditLogger.from_config(LoggingConfig(level="warn", output_format="both"))
        assert logger.level == LogLevel.WARN
        assert logger.output_format == "both"


class TestMaskingProperty:
    """
    Property 21: Credentials never reach the output.

    *For any* sensitive key, the logged value SHALL be masked, including
    inside nested dictionaries, and URLs SHALL lose path and query.
    """

    @given(
        key=sensitive_key_strategy(),
        value=st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789", min_size=8, max_size=40),
    )
    @settings(max_examples=100)
    def test_sensitive_values_are_masked(self, key: str, value: str) -> None:
        output = StringIO()
        logger = AuditLogger(output_format="both", output_stream=output)

        entry = logger.log(LogLevel.INFO, "config", "loaded", {key: value, "nested": {key: value}})

        assert entry.data[key] == AuditLogger.MASK_VALUE
        assert entry.data["nested"][key] == AuditLogger.MASK_VALUE
        assert value not in output.getvalue()

    @given(project_id=st.text(alphabet="0123456789abcdef", min_size=32, max_size=32))
    @settings(max_examples=50)
    def test_rpc_urls_are_masked(self, project_id: str) -> None:
        output = StringIO()
        logger = AuditLogger(output_format="json", output_stream=output)

        logger.log(LogLevel.INFO, "ens", "connected", {"url": f"https://mainnet.infura.io/v3/{project_id}"})

        parsed = json.loads(output.getvalue())
        assert parsed["data"]["url"] == f"https://mainnet.infura.io/{AuditLogger.MASK_VALUE}"
        assert project_id not in output.getvalue()

    def test_plain_urls_are_kept(self) -> None:
        assert AuditLogger.mask_url("https://api.zilliqa.com") == "https://api.zilliqa.com"
        assert AuditLogger.mask_url("https://user:pw@api.zilliqa.com/") == "https://api.zilliqa.com/"

    @given(data=non_sensitive_data_strategy())
    @settings(max_examples=100)
    def test_non_sensitive_data_unchanged(self, data: dict) -> None:
        logger = AuditLogger(output_format="json", output_stream=StringIO())
        assert logger.mask_sensitive_data(data) == data


class TestErrorContext:
    """Errors are logged with their type and code."""

    def test_log_error_includes_resolution_code(self) -> None:
        logger = AuditLogger(output_format="json", output_stream=StringIO())
        error = ResolutionError(ResolutionErrorCode.UNSPECIFIED_RESOLVER, domain="brad.crypto")

        entry = logger.log_error(
            "dispatcher",
            "resolve failed",
            error=error,
            request_url="https://mainnet.infura.io/v3/secret-id",
        )

        assert entry.level == LogLevel.ERROR
        assert entry.data["error_type"] == "ResolutionError"
        assert entry.data["error_code"] == "UnspecifiedResolver"
        assert entry.data["error_message"] == "Domain brad.crypto is not configured"
        assert "secret-id" not in entry.data["request_url"]
