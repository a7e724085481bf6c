from __future__ import annotations
import json

import httpx
import pytest

from astra_sdk.adapters.http.devops import DevopsHttpClient
from astra_sdk.adapters.http.stargate import DocumentApiClient, GraphQLApiClient, RestApiClient, TOKEN_HEADER
from astra_sdk.config import const
from astra_sdk.errors import ConnectionFailure
from astra_sdk.ports import GatewayCredentials


def _devops_transport(seen: list, *, status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/v2/authenticateServiceAccount":
            body = json.loads(request.content)
            if body["clientSecret"] != "secret":
                return httpx.Response(401)
            return httpx.Response(200, json={"token": "AstraCS:sa:token"})
        if request.url.path == "/v2/currentOrg":
            return httpx.Response(status, json={"id": "org-1", "name": "demo"})
        if request.url.path.endswith("/secureBundleURL"):
            return httpx.Response(200, json={"downloadURL": "https://bundles.example.com/scb.zip"})
        if request.url.host == "bundles.example.com":
            return httpx.Response(200, content=b"PK-bundle")
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def test_handshake_with_token():
    seen: list = []
    client = DevopsHttpClient("AstraCS:a:b", base_url="https://devops.test", transport=_devops_transport(seen))
    assert client.handshake()["id"] == "org-1"
    assert seen[0].headers["Authorization"] == "Bearer AstraCS:a:b"


@pytest.mark.parametrize("status", [401, 403])
def test_handshake_rejected(status):
    client = DevopsHttpClient("AstraCS:a:b", base_url="https://devops.test", transport=_devops_transport([], status=status))
    with pytest.raises(ConnectionFailure) as ei:
        client.handshake()
    assert ei.value.status == status


def test_service_account_authentication():
    seen: list = []
    client = DevopsHttpClient(client_id="cid", client_secret="secret", base_url="https://devops.test", transport=_devops_transport(seen))
    client.handshake()
    assert [r.url.path for r in seen] == ["/v2/authenticateServiceAccount", "/v2/currentOrg"]
    assert seen[1].headers["Authorization"] == "Bearer AstraCS:sa:token"


def test_service_account_rejected():
    client = DevopsHttpClient(client_id="cid", client_secret="bad", base_url="https://devops.test", transport=_devops_transport([]))
    with pytest.raises(ConnectionFailure):
        client.handshake()


def test_requires_credentials():
    with pytest.raises(ValueError):
        DevopsHttpClient()


def test_download_secure_bundle(tmp_path):
    seen: list = []
    client = DevopsHttpClient("AstraCS:a:b", base_url="https://devops.test", transport=_devops_transport(seen))
    dest = tmp_path / "secure_connect_bundle_db1.zip"
    assert client.download_secure_bundle("db1", dest, timeout=3) == dest
    assert dest.read_bytes() == b"PK-bundle"
    assert not (tmp_path / "secure_connect_bundle_db1.zip.part").exists()
    assert seen[0].url.path == "/v2/databases/db1/secureBundleURL"


def test_download_timeout_is_connection_failure(tmp_path):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = DevopsHttpClient("AstraCS:a:b", base_url="https://devops.test", transport=httpx.MockTransport(handler))
    dest = tmp_path / "scb.zip"
    with pytest.raises(ConnectionFailure):
        client.download_secure_bundle("db1", dest, timeout=0.1)
    assert not dest.exists()


def _stargate_transport(seen: list):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/api/rest/v1/auth":
            return httpx.Response(201, json={"authToken": "auth-token"})
        if request.url.path == "/api/rest/v2/schemas/namespaces":
            return httpx.Response(200, json={"data": [{"name": "ns1"}]})
        if request.url.path == "/api/rest/v2/schemas/keyspaces":
            return httpx.Response(200, json={"data": [{"name": "ks1"}, {"name": "ks2"}]})
        if request.url.path.startswith("/api/graphql"):
            return httpx.Response(200, json={"data": {"ok": True}})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def test_gateway_uses_token_header():
    seen: list = []
    creds = GatewayCredentials(endpoint="https://db1-r.apps.test", token="AstraCS:a:b")
    assert RestApiClient(creds, transport=_stargate_transport(seen)).keyspaces() == ["ks1", "ks2"]
    assert seen[0].headers[TOKEN_HEADER] == "AstraCS:a:b"


def test_gateway_exchanges_username_password_once():
    seen: list = []
    creds = GatewayCredentials(endpoint="https://db1-r.apps.test", username="u", password="p")
    doc = DocumentApiClient(creds, transport=_stargate_transport(seen))
    assert doc.namespaces() == ["ns1"]
    doc.namespaces()
    assert [r.url.path for r in seen].count("/api/rest/v1/auth") == 1
    assert seen[-1].headers[TOKEN_HEADER] == "auth-token"


def test_graphql_keyspace_path():
    seen: list = []
    creds = GatewayCredentials(endpoint="https://db1-r.apps.test", token="t", keyspace="ks1")
    gql = GraphQLApiClient(creds, transport=_stargate_transport(seen))
    assert gql.execute("{ ok }") == {"data": {"ok": True}}
    assert seen[0].url.path == "/api/graphql/ks1"


def _html_on(*paths: str, seen: list | None = None):
    """Like the devops transport, but answers 200 text/html on the given paths."""
    inner = _devops_transport(seen if seen is not None else [])

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path in paths:
            return httpx.Response(200, content=b"<html>proxy login</html>", headers={"content-type": "text/html"})
        return inner.handle_request(request)

    return httpx.MockTransport(handler)


def test_handshake_non_json_body_is_connection_failure():
    client = DevopsHttpClient("AstraCS:a:b", base_url="https://devops.test", transport=_html_on("/v2/currentOrg"))
    with pytest.raises(ConnectionFailure) as ei:
        client.handshake()
    assert ei.value.status == 200


def test_handshake_non_object_json_is_connection_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["not", "an", "object"])

    client = DevopsHttpClient("AstraCS:a:b", base_url="https://devops.test", transport=httpx.MockTransport(handler))
    with pytest.raises(ConnectionFailure):
        client.handshake()


def test_service_account_non_json_body_is_connection_failure():
    client = DevopsHttpClient(
        client_id="cid", client_secret="secret", base_url="https://devops.test", transport=_html_on("/v2/authenticateServiceAccount")
    )
    with pytest.raises(ConnectionFailure):
        client.handshake()


def test_download_non_json_bundle_url(tmp_path):
    client = DevopsHttpClient("AstraCS:a:b", base_url="https://devops.test", transport=_html_on("/v2/databases/db1/secureBundleURL"))
    dest = tmp_path / "scb.zip"
    with pytest.raises(ConnectionFailure):
        client.download_secure_bundle("db1", dest)
    assert not dest.exists()
    assert not (tmp_path / "scb.zip.part").exists()


def test_download_write_error_is_connection_failure(tmp_path):
    client = DevopsHttpClient("AstraCS:a:b", base_url="https://devops.test", transport=_devops_transport([]))
    # каталога нет: open() падает с OSError
    dest = tmp_path / "absent" / "scb.zip"
    with pytest.raises(ConnectionFailure):
        client.download_secure_bundle("db1", dest)
    assert not dest.exists()


def test_gateway_non_json_auth_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, content=b"<html/>")

    creds = GatewayCredentials(endpoint="https://db1-r.apps.test", username="u", password="p")
    doc = DocumentApiClient(creds, transport=httpx.MockTransport(handler))
    with pytest.raises(ConnectionFailure):
        doc.namespaces()


def test_default_url_ignores_environment(monkeypatch):
    monkeypatch.setenv("ASTRA_DEVOPS_URL", "https://elsewhere.test")
    client = DevopsHttpClient("AstraCS:a:b")
    assert client.base == const.DEVOPS_URL.rstrip("/")
    client.close()
