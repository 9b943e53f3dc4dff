"""Tests for disconnect code parsing and the reconnect decision."""

import pytest

from kaya_bot.disconnect import (
    DisconnectReason,
    ReconnectAction,
    decide_reconnect,
    describe_disconnect,
    extract_status_code,
)


class TestExtractStatusCode:
    def test_prefers_output_status_code(self) -> None:
        last = {"error": {"statusCode": 500, "output": {"statusCode": 401}}}
        assert extract_status_code(last) == 401

    def test_falls_back_to_error_status_code(self) -> None:
        assert extract_status_code({"error": {"statusCode": 515}}) == 515

    def test_zero_output_code_falls_through(self) -> None:
        last = {"error": {"statusCode": 428, "output": {"statusCode": 0}}}
        assert extract_status_code(last) == 428

    @pytest.mark.parametrize(
        "last",
        [
            None,
            "boom",
            {},
            {"error": None},
            {"error": "Connection Failure"},
            {"error": {"message": "no code"}},
            {"error": {"output": {"statusCode": "401"}}},
            {"error": {"statusCode": True}},
        ],
    )
    def test_missing_or_invalid_code(self, last) -> None:
        assert extract_status_code(last) is None

    def test_float_code_accepted(self) -> None:
        assert extract_status_code({"error": {"output": {"statusCode": 401.0}}}) == 401


class TestDescribeDisconnect:
    def test_payload_when_present(self) -> None:
        payload = {"statusCode": 401, "error": "Unauthorized"}
        assert describe_disconnect({"error": {"output": {"payload": payload}}}) == payload

    def test_error_otherwise(self) -> None:
        error = {"message": "closed"}
        assert describe_disconnect({"error": error}) == error


class TestDecideReconnect:
    @pytest.mark.parametrize("code", [DisconnectReason.BAD_SESSION, DisconnectReason.LOGGED_OUT, 401, 500])
    def test_relogin(self, code) -> None:
        decision = decide_reconnect(code)
        assert decision.action is ReconnectAction.RELOGIN
        assert decision.purge_credentials
        assert decision.delay == 2.0

    @pytest.mark.parametrize("code", [DisconnectReason.RESTART_REQUIRED, DisconnectReason.CONNECTION_CLOSED])
    def test_restart(self, code) -> None:
        decision = decide_reconnect(code)
        assert decision.action is ReconnectAction.RESTART
        assert not decision.purge_credentials
        assert decision.delay == 2.0

    @pytest.mark.parametrize("code", [408, 411, 403, 440, 503, 999, None])
    def test_retry(self, code) -> None:
        decision = decide_reconnect(code)
        assert decision.action is ReconnectAction.RETRY
        assert not decision.purge_credentials
        assert decision.delay == 5.0

    def test_custom_delays(self) -> None:
        assert decide_reconnect(401, restart_delay=0.5, retry_delay=9).delay == 0.5
        assert decide_reconnect(408, restart_delay=0.5, retry_delay=9).delay == 9

    def test_timed_out_aliases_connection_lost(self) -> None:
        assert DisconnectReason.TIMED_OUT is DisconnectReason.CONNECTION_LOST
        assert DisconnectReason(408) is DisconnectReason.CONNECTION_LOST
