"""Tests for the typed pipeline errors (quarterly_macro/errors.py)."""

from quarterly_macro.errors import (
    ConfigError,
    DatasetIOError,
    FormatError,
    JoinError,
    NetworkError,
    ParseError,
    PipelineError,
)


def test_all_errors_are_pipeline_errors():
    for error in (
        NetworkError(500, "https://x"),
        ParseError("value", "abc"),
        FormatError("bad shape"),
        DatasetIOError("/tmp/x.csv"),
        ConfigError("API_KEY"),
        JoinError("empty"),
    ):
        assert isinstance(error, PipelineError)


def test_with_context_renders_in_message():
    error = FormatError("count mismatch").with_context(dataset="eu_gdp", stage="extract")
    assert str(error) == "[stage=extract, dataset=eu_gdp] count mismatch"


def test_with_context_does_not_overwrite():
    error = JoinError("missing").with_context(stage="join")
    error.with_context(dataset="eu_gdp", stage="extract")
    assert error.stage == "join"
    assert error.dataset == "eu_gdp"


def test_network_error_fields():
    error = NetworkError(404, "https://x/y", "not found")
    assert error.status == 404
    assert error.url == "https://x/y"
    assert "status 404" in str(error)

    transport = NetworkError(None, "https://x/y")
    assert transport.status is None
    assert "status" not in str(transport)


def test_parse_error_truncates_long_raw_value():
    error = ParseError("body", "x" * 1000)
    assert len(str(error)) < 300
    assert error.raw_value == "x" * 1000


def test_stdlib_compatible_bases():
    assert isinstance(DatasetIOError("/x"), OSError)
    assert isinstance(ConfigError("API_KEY"), ValueError)
