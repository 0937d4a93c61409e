"""Unit tests for quota policy helpers."""

import pytest

from throttle_gate.core.errors import ValidationAppError
from throttle_gate.core.quotas import build_quota_function, parse_quota_overrides


class TestParseQuotaOverrides:
    def test_parse_none_returns_empty(self) -> None:
        assert parse_quota_overrides(None) == {}
        assert parse_quota_overrides("") == {}

    def test_parse_pairs_with_whitespace(self) -> None:
        result = parse_quota_overrides(" 10.0.0.1 : 5 , 10.0.0.2:100 ,, ")
        assert result == {"10.0.0.1": 5, "10.0.0.2": 100}

    def test_identifier_may_contain_colons(self) -> None:
        result = parse_quota_overrides("api_key:partner:300,::1:7")
        assert result == {"api_key:partner": 300, "::1": 7}

    def test_later_duplicates_win(self) -> None:
        assert parse_quota_overrides("a:1,a:2") == {"a": 2}

    @pytest.mark.parametrize("value", ["no-separator", ":5", "a:many", "a:-1"])
    def test_malformed_values_raise(self, value: str) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            parse_quota_overrides(value)

        assert exc_info.value.code == "invalid_quota_override"


class TestBuildQuotaFunction:
    def test_default_and_overrides(self) -> None:
        quota_for = build_quota_function(10, {"vip": 1000})

        assert quota_for("vip") == 1000
        assert quota_for("anyone") == 10

    def test_overrides_are_copied(self) -> None:
        overrides = {"vip": 1000}
        quota_for = build_quota_function(10, overrides)
        overrides["vip"] = 1

        assert quota_for("vip") == 1000

    def test_negative_default_rejected(self) -> None:
        with pytest.raises(ValueError):
            build_quota_function(-1)
