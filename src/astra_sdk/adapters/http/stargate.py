from __future__ import annotations
import logging
from typing import Any, Mapping, Optional

import httpx

from astra_sdk.config import const
from astra_sdk.errors import ConnectionFailure
from astra_sdk.ports import GatewayCredentials

_log = logging.getLogger("astra_sdk.stargate")

TOKEN_HEADER = "X-Cassandra-Token"


def stargate_endpoint(database_id: str, region: str) -> str:
    return const.STARGATE_URL_TEMPLATE.format(db_id=database_id, region=region)


class _StargateHttp:
    service = "Stargate"

    def __init__(self, creds: GatewayCredentials, *, timeout: float = const.DEFAULT_TIMEOUT_SEC, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.creds = creds
        self._token = creds.token
        self._http = httpx.Client(base_url=creds.endpoint.rstrip("/"), timeout=timeout, transport=transport)

    @property
    def keyspace(self) -> Optional[str]:
        return self.creds.keyspace

    def _auth_token(self) -> str:
        if self._token:
            return self._token
        # username/password -> token через auth endpoint (один раз)
        try:
            r = self._http.post("/api/rest/v1/auth", json={"username": self.creds.username, "password": self.creds.password})
        except httpx.HTTPError as e:
            raise ConnectionFailure(self.service, str(e)) from e
        if r.is_error:
            raise ConnectionFailure(self.service, "username/password rejected", status=r.status_code)
        try:
            data = r.json()
        except ValueError as e:
            raise ConnectionFailure(self.service, "unexpected auth response", status=r.status_code) from e
        self._token = data.get("authToken") if isinstance(data, dict) else None
        if not self._token:
            raise ConnectionFailure(self.service, "auth response has no token", status=r.status_code)
        return self._token

    def request(self, method: str, path: str, **kw: Any) -> Any:
        headers = dict(kw.pop("headers", None) or {})
        headers[TOKEN_HEADER] = self._auth_token()
        try:
            r = self._http.request(method, path, headers=headers, **kw)
        except httpx.HTTPError as e:
            raise ConnectionFailure(self.service, str(e)) from e
        if r.status_code in (401, 403):
            raise ConnectionFailure(self.service, "token rejected", status=r.status_code)
        r.raise_for_status()
        return r.json() if r.content else None

    def close(self) -> None:
        self._http.close()


class DocumentApiClient(_StargateHttp):
    service = "Api Document"

    def namespaces(self) -> list[str]:
        data = self.request("GET", "/api/rest/v2/schemas/namespaces") or {}
        return [ns.get("name") for ns in data.get("data", [])]


class RestApiClient(_StargateHttp):
    service = "Api Rest"

    def keyspaces(self) -> list[str]:
        data = self.request("GET", "/api/rest/v2/schemas/keyspaces") or {}
        return [ks.get("name") for ks in data.get("data", [])]


class GraphQLApiClient(_StargateHttp):
    service = "Api GraphQL"

    def execute(self, query: str, variables: Optional[Mapping[str, Any]] = None, *, keyspace: Optional[str] = None) -> Any:
        ks = keyspace or self.keyspace
        path = f"/api/graphql/{ks}" if ks else "/api/graphql-schema"
        return self.request("POST", path, json={"query": query, "variables": dict(variables or {})})
