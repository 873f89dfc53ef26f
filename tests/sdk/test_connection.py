"""Tests for blocking and asyncio connections."""

import json
from unittest.mock import patch

import pytest

from arango_sdk import ArangoDB
from arango_sdk.config import ArangoConfig, AuthMode
from arango_sdk.connection import ArangoConnection, AsyncArangoConnection, quote_segment
from arango_sdk.database import Database
from arango_sdk.exceptions import AuthenticationError, DeserializationError, ServerError, TransportError
from arango_sdk.transport import AsyncHTTPXTransport, HTTPXTransport
from arango_sdk.types import ServerRole
from tests.fakes import (
    TEST_URL,
    AsyncScriptedTransport,
    ScriptedTransport,
    error,
    make_async_connection,
    make_config,
    make_connection,
    ok,
    reply,
)

VERSION = reply(200, {"server": "arango", "version": "3.11.4", "license": "community"})
ROLE = reply(200, {"error": False, "code": 200, "role": "SINGLE"})


class TestConnectionInit:
    """Tests for connection construction."""

    def test_config_or_options(self) -> None:
        conn = ArangoConnection(url="http://db:8529", database="shop")
        assert conn.url == "http://db:8529"
        assert conn.database_name == "shop"
        assert conn.config.auth_mode is AuthMode.NONE

    def test_config_and_options_conflict(self) -> None:
        with pytest.raises(TypeError):
            ArangoConnection(ArangoConfig(), database="shop")

    def test_not_connected_until_connect(self) -> None:
        conn = ArangoConnection(make_config(), transport=ScriptedTransport())
        assert not conn.is_connected
        conn.connect()
        assert conn.is_connected

    def test_run_requires_connection(self) -> None:
        conn = ArangoConnection(make_config(), transport=ScriptedTransport())
        with pytest.raises(TransportError, match="Not connected"):
            conn.server_version()

    def test_context_manager_closes_transport(self) -> None:
        transport = ScriptedTransport()
        with ArangoConnection(make_config(), transport=transport) as conn:
            assert conn.is_connected
        assert transport.closed
        assert not conn.is_connected

    def test_connect_creates_engine_from_config(self) -> None:
        conn = ArangoConnection(make_config()).connect()
        try:
            assert isinstance(conn._transport, HTTPXTransport)
        finally:
            conn.close()

    def test_blocking_aiohttp_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="no blocking transport"):
            ArangoConnection(make_config(engine="aiohttp")).connect()

    def test_repr_has_no_password(self) -> None:
        assert "secret" not in repr(ArangoConnection(make_config()))


class TestRequestBuilding:
    """Tests for URL and request construction."""

    def test_url_for_database(self) -> None:
        conn = ArangoConnection(make_config())
        assert conn.url_for("_api/cursor", "shop") == f"{TEST_URL}/_db/shop/_api/cursor"

    def test_url_for_server_root(self) -> None:
        conn = ArangoConnection(make_config())
        assert conn.url_for("/_api/version") == f"{TEST_URL}/_api/version"

    def test_database_name_is_encoded(self) -> None:
        conn = ArangoConnection(make_config())
        assert conn.url_for("_api/cursor", "my db/1") == f"{TEST_URL}/_db/my%20db%2F1/_api/cursor"
        assert quote_segment("ä") == "%C3%A4"

    def test_build_request_defaults(self) -> None:
        conn = ArangoConnection(make_config())
        request = conn.build_request("get", "_api/collection", params={"excludeSystem": True, "skip": None})
        assert request.method == "GET"
        assert request.url == f"{TEST_URL}/_db/test_db/_api/collection"
        assert request.params == {"excludeSystem": "true"}
        assert request.body is None
        assert request.headers["Accept"] == "application/json"
        assert "Content-Type" not in request.headers
        assert request.headers["Authorization"].startswith("Basic ")

    def test_build_request_with_body(self) -> None:
        conn = ArangoConnection(make_config())
        request = conn.build_request("POST", "_api/cursor", body={"query": "RETURN 1"}, expected=frozenset({201}))
        assert json.loads(request.body) == {"query": "RETURN 1"}
        assert request.headers["Content-Type"] == "application/json"
        assert request.expected == frozenset({201})

    def test_round_robin_hosts(self) -> None:
        conn = ArangoConnection(make_config(url=("http://a:8529", "http://b:8529/")))
        urls = [conn.url_for("_api/version") for _ in range(3)]
        assert urls == ["http://a:8529/_api/version", "http://b:8529/_api/version", "http://a:8529/_api/version"]


class TestServerOperations:
    """Tests for server-level operations over a blocking connection."""

    def test_server_version(self) -> None:
        transport = ScriptedTransport(VERSION)
        conn = make_connection(transport)
        version = conn.server_version()
        assert version.version == "3.11.4"
        assert version.major == 3
        assert conn.version is version
        assert transport.requests[0].url == f"{TEST_URL}/_api/version"

    def test_server_version_details_param(self) -> None:
        transport = ScriptedTransport(VERSION)
        make_connection(transport).server_version(details=True)
        assert transport.requests[0].params == {"details": "true"}

    def test_non_arango_peer(self) -> None:
        conn = make_connection(ScriptedTransport(reply(200, {"server": "nginx", "version": "1.25"})))
        with pytest.raises(DeserializationError):
            conn.server_version()

    def test_server_role(self) -> None:
        conn = make_connection(ScriptedTransport(reply(200, {"role": "COORDINATOR"})))
        role = conn.server_role()
        assert role is ServerRole.COORDINATOR
        assert role.is_cluster
        assert conn.role is role

    def test_unknown_server_role(self) -> None:
        conn = make_connection(ScriptedTransport(reply(200, {"role": "WIZARD"})))
        with pytest.raises(DeserializationError):
            conn.server_role()

    def test_negotiate(self) -> None:
        transport = ScriptedTransport(VERSION, ROLE)
        conn = make_connection(transport)
        assert conn.negotiate().version == "3.11.4"
        assert conn.role is ServerRole.SINGLE
        assert len(transport.requests) == 2

    def test_accessible_databases(self) -> None:
        transport = ScriptedTransport(ok(result=["_system", "shop"]))
        conn = make_connection(transport)
        assert conn.accessible_databases() == ["_system", "shop"]
        assert transport.requests[0].url == f"{TEST_URL}/_db/_system/_api/database/user"

    def test_accessible_databases_bad_shape(self) -> None:
        conn = make_connection(ScriptedTransport(ok(result={"_system": True})))
        with pytest.raises(DeserializationError):
            conn.accessible_databases()

    def test_create_database(self) -> None:
        transport = ScriptedTransport(ok(201, result=True))
        conn = make_connection(transport)
        db = conn.create_database("shop", users=[{"username": "alice"}])
        assert isinstance(db, Database)
        assert db.name == "shop"
        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url == f"{TEST_URL}/_db/_system/_api/database"
        assert json.loads(request.body) == {"name": "shop", "users": [{"username": "alice"}]}

    def test_create_existing_database(self) -> None:
        conn = make_connection(ScriptedTransport(error(409, 1207, "duplicate database name")))
        with pytest.raises(ServerError) as exc_info:
            conn.create_database("shop")
        assert exc_info.value.error_num == 1207

    def test_drop_database(self) -> None:
        transport = ScriptedTransport(ok(result=True))
        assert make_connection(transport).drop_database("old shop") is True
        assert transport.requests[0].url == f"{TEST_URL}/_db/_system/_api/database/old%20shop"
        assert transport.requests[0].method == "DELETE"

    def test_raw_request(self) -> None:
        transport = ScriptedTransport(ok(result={"foo": 1}))
        data = make_connection(transport).request("GET", "_api/engine")
        assert data["result"] == {"foo": 1}
        assert transport.requests[0].url == f"{TEST_URL}/_db/test_db/_api/engine"

    def test_transport_error_propagates(self) -> None:
        conn = make_connection(ScriptedTransport(TransportError("connection refused")))
        with pytest.raises(TransportError):
            conn.server_version()

    def test_db_defaults_to_configured_database(self) -> None:
        conn = make_connection(ScriptedTransport())
        assert conn.db().name == "test_db"
        assert conn.db("other").name == "other"


class TestEstablish:
    """Tests for the establish_* helpers."""

    def test_establish_basic_auth(self) -> None:
        transport = ScriptedTransport(VERSION, ROLE)
        with patch("arango_sdk.connection.sync.create_transport", return_value=transport):
            conn = ArangoConnection.establish_basic_auth(TEST_URL, "root", "secret")
        assert conn.is_connected
        assert conn.version is not None
        assert conn.config.auth_mode is AuthMode.BASIC

    def test_establish_jwt_logs_in_first(self) -> None:
        transport = ScriptedTransport(reply(200, {"jwt": "t1"}), VERSION, ROLE)
        with patch("arango_sdk.connection.sync.create_transport", return_value=transport):
            conn = ArangoConnection.establish_jwt(TEST_URL, "root", "secret")
        assert transport.requests[0].url.endswith("/_open/auth")
        assert transport.requests[1].headers["Authorization"] == "Bearer t1"
        assert conn.role is ServerRole.SINGLE

    def test_establish_without_auth(self) -> None:
        transport = ScriptedTransport(VERSION, ROLE)
        with patch("arango_sdk.connection.sync.create_transport", return_value=transport):
            conn = ArangoConnection.establish_without_auth(TEST_URL)
        assert "Authorization" not in transport.requests[0].headers
        assert conn.config.auth_mode is AuthMode.NONE

    @pytest.mark.asyncio
    async def test_async_establish_jwt(self) -> None:
        transport = AsyncScriptedTransport(reply(200, {"jwt": "t1"}), VERSION, ROLE)
        with patch("arango_sdk.connection.aio.create_async_transport", return_value=transport):
            conn = await AsyncArangoConnection.establish_jwt(TEST_URL, "root", "secret")
        assert conn.version is not None
        assert conn.version.server == "arango"
        await conn.close()
        assert transport.closed

    def test_failed_establish_closes_transport(self) -> None:
        transport = ScriptedTransport(error(503, 503, "service unavailable"))
        with patch("arango_sdk.connection.sync.create_transport", return_value=transport):
            with pytest.raises(ServerError):
                ArangoConnection.establish_basic_auth(TEST_URL, "root", "secret")
        assert transport.closed

    def test_failed_login_closes_transport(self) -> None:
        transport = ScriptedTransport(error(401, 401, "Wrong credentials"))
        with patch("arango_sdk.connection.sync.create_transport", return_value=transport):
            with pytest.raises(AuthenticationError):
                ArangoConnection.establish_jwt(TEST_URL, "root", "wrong")
        assert transport.closed

    @pytest.mark.asyncio
    async def test_async_failed_establish_closes_transport(self) -> None:
        transport = AsyncScriptedTransport(error(503, 503, "service unavailable"))
        with patch("arango_sdk.connection.aio.create_async_transport", return_value=transport):
            with pytest.raises(ServerError):
                await AsyncArangoConnection.establish_without_auth(TEST_URL)
        assert transport.closed


class TestAsyncConnection:
    """Tests for the asyncio connection."""

    @pytest.mark.asyncio
    async def test_operations_return_awaitables(self) -> None:
        transport = AsyncScriptedTransport(VERSION, ok(result=["_system"]))
        conn = await make_async_connection(transport)
        assert (await conn.server_version()).version == "3.11.4"
        assert await conn.accessible_databases() == ["_system"]

    @pytest.mark.asyncio
    async def test_run_requires_connection(self) -> None:
        conn = AsyncArangoConnection(make_config(), transport=AsyncScriptedTransport())
        with pytest.raises(TransportError):
            await conn.server_version()

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        transport = AsyncScriptedTransport()
        async with AsyncArangoConnection(make_config(), transport=transport) as conn:
            assert conn.is_connected
        assert transport.closed

    @pytest.mark.asyncio
    async def test_engine_from_config(self) -> None:
        conn = await AsyncArangoConnection(make_config()).connect()
        try:
            assert isinstance(conn._transport, AsyncHTTPXTransport)
        finally:
            await conn.close()


class TestFactory:
    """Tests for the ArangoDB factory."""

    def test_connect(self) -> None:
        conn = ArangoDB.connect("http://db:8529", username="root", password="pw")
        assert isinstance(conn, ArangoConnection)
        assert not conn.is_connected
        assert conn.config.auth_mode is AuthMode.BASIC

    def test_connect_async(self) -> None:
        conn = ArangoDB.connect_async("http://db:8529", auth_mode="none")
        assert isinstance(conn, AsyncArangoConnection)

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ARANGODB_HOST", "db1:8529")
        monkeypatch.setenv("ARANGO_DATABASE", "shop")
        monkeypatch.delenv("ARANGO_USER", raising=False)
        monkeypatch.delenv("ARANGO_PASSWORD", raising=False)
        monkeypatch.delenv("ARANGO_AUTH_MODE", raising=False)
        monkeypatch.delenv("ARANGO_ENGINE", raising=False)
        monkeypatch.delenv("ARANGO_BATCH_SIZE", raising=False)
        conn = ArangoDB.from_env(asynchronous=True)
        assert isinstance(conn, AsyncArangoConnection)
        assert conn.url == "http://db1:8529"
        assert conn.database_name == "shop"
