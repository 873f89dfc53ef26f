"""Tests for request/response envelopes and reply parsing."""

import json
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID

import pytest

from arango_sdk.exceptions import CursorNotFoundError, DeserializationError, ServerError
from arango_sdk.protocol.envelope import RequestEnvelope, ResponseEnvelope, dumps, parse_envelope
from tests.fakes import error, ok, reply


class TestDumps:
    """Tests for JSON body encoding."""

    def test_plain_values(self) -> None:
        assert json.loads(dumps({"a": [1, "x", None, True]})) == {"a": [1, "x", None, True]}

    def test_extended_types(self) -> None:
        body = json.loads(
            dumps(
                {
                    "when": datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC),
                    "day": date(2024, 1, 2),
                    "price": Decimal("9.5"),
                    "id": UUID("12345678-1234-5678-1234-567812345678"),
                }
            )
        )
        assert body["when"] == "2024-01-02T03:04:05+00:00"
        assert body["day"] == "2024-01-02"
        assert body["price"] == 9.5
        assert body["id"] == "12345678-1234-5678-1234-567812345678"

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(TypeError):
            dumps({"x": object()})


class TestRequestEnvelope:
    """Tests for RequestEnvelope."""

    def test_with_header_replaces_case_insensitively(self) -> None:
        request = RequestEnvelope("GET", "http://h/x", headers={"authorization": "Basic abc"})
        updated = request.with_header("Authorization", "Bearer t")
        assert updated.headers == {"Authorization": "Bearer t"}
        assert request.headers == {"authorization": "Basic abc"}

    def test_with_header_none_removes(self) -> None:
        request = RequestEnvelope("GET", "http://h/x", headers={"Authorization": "Basic abc", "Accept": "a"})
        assert request.with_header("Authorization", None).headers == {"Accept": "a"}

    def test_repr_hides_headers(self) -> None:
        request = RequestEnvelope("GET", "http://h/x", headers={"Authorization": "Bearer secret"})
        assert "secret" not in repr(request)

    def test_default_expected(self) -> None:
        assert RequestEnvelope("GET", "http://h").expected == frozenset({200, 201, 202, 204})


class TestResponseEnvelope:
    """Tests for ResponseEnvelope."""

    def test_is_success(self) -> None:
        assert ResponseEnvelope(204).is_success
        assert not ResponseEnvelope(404).is_success
        assert not ResponseEnvelope(302).is_success

    def test_json_invalid(self) -> None:
        with pytest.raises(DeserializationError) as exc_info:
            ResponseEnvelope(502, b"<html>bad gateway</html>").json()
        assert exc_info.value.code == 502
        assert exc_info.value.body == "<html>bad gateway</html>"


class TestParseEnvelope:
    """Tests for parse_envelope."""

    def test_success_returns_payload(self) -> None:
        data = parse_envelope(ok(200, result=[1, 2]))
        assert data["result"] == [1, 2]

    def test_empty_success_body(self) -> None:
        assert parse_envelope(ResponseEnvelope(204)) == {}

    def test_empty_error_body(self) -> None:
        with pytest.raises(ServerError) as exc_info:
            parse_envelope(ResponseEnvelope(503))
        assert exc_info.value.code == 503

    def test_error_flag(self) -> None:
        with pytest.raises(ServerError) as exc_info:
            parse_envelope(error(404, 1203, "collection or view not found"))
        err = exc_info.value
        assert err.code == 404
        assert err.error_num == 1203
        assert err.message == "collection or view not found"

    def test_error_flag_wins_over_2xx_status(self) -> None:
        with pytest.raises(ServerError):
            parse_envelope(reply(200, {"error": True, "errorNum": 4, "errorMessage": "odd"}))

    def test_cursor_not_found(self) -> None:
        with pytest.raises(CursorNotFoundError):
            parse_envelope(error(404, 1600, "cursor not found"))

    def test_unexpected_status_without_error_flag(self) -> None:
        with pytest.raises(ServerError) as exc_info:
            parse_envelope(reply(500, {"message": "boom"}))
        assert exc_info.value.code == 500
        assert exc_info.value.message == "HTTP 500"

    def test_expected_statuses(self) -> None:
        with pytest.raises(ServerError):
            parse_envelope(ok(202), expected=frozenset({200, 201}))
        assert parse_envelope(ok(201), expected=frozenset({200, 201}))["code"] == 201

    def test_non_json_body(self) -> None:
        with pytest.raises(DeserializationError):
            parse_envelope(reply(200, b"not json"))

    def test_non_object_body(self) -> None:
        with pytest.raises(DeserializationError):
            parse_envelope(reply(200, [1, 2, 3]))

    def test_non_boolean_error_field(self) -> None:
        with pytest.raises(DeserializationError):
            parse_envelope(reply(200, {"error": "yes"}))

    def test_non_integer_error_num(self) -> None:
        with pytest.raises(DeserializationError) as exc_info:
            parse_envelope(reply(500, {"error": True, "errorNum": "oops"}))
        assert exc_info.value.code == 500
        with pytest.raises(DeserializationError):
            parse_envelope(reply(500, {"errorNum": {"x": 1}}))

    def test_non_integer_code(self) -> None:
        with pytest.raises(DeserializationError):
            parse_envelope(reply(400, {"error": True, "errorNum": 1501, "code": "bad"}))
