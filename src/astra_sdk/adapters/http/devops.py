from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import httpx

from astra_sdk.config import const
from astra_sdk.errors import ConnectionFailure

_log = logging.getLogger("astra_sdk.devops")


class DevopsHttpClient:
    """Control plane client: authentication, current organization, secure bundle download."""

    service = "Api Devops"

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = const.DEFAULT_TIMEOUT_SEC,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not token and not (client_id and client_secret):
            raise ValueError("either token or client_id/client_secret is required")
        self.base = (base_url or const.DEVOPS_URL).rstrip("/")
        self._token = token
        self._client_id = client_id
        self._client_secret = client_secret
        self._http = httpx.Client(base_url=self.base, timeout=timeout, transport=transport)
        self.organization: Optional[Mapping[str, Any]] = None

    def _fail(self, r: httpx.Response, detail: str) -> ConnectionFailure:
        return ConnectionFailure(self.service, detail, status=r.status_code)

    def _json(self, r: httpx.Response) -> Mapping[str, Any]:
        # прокси может вернуть 200 с html вместо json
        try:
            data = r.json()
        except ValueError as e:
            raise self._fail(r, "unexpected response") from e
        if not isinstance(data, dict):
            raise self._fail(r, "unexpected response")
        return data

    def _authenticate(self) -> str:
        # service account: clientId/clientSecret -> bearer token
        try:
            r = self._http.post(
                "/v2/authenticateServiceAccount",
                json={"clientId": self._client_id, "clientName": self._client_id, "clientSecret": self._client_secret},
            )
        except httpx.HTTPError as e:
            raise ConnectionFailure(self.service, str(e)) from e
        if r.status_code in (401, 403):
            raise self._fail(r, "client credentials rejected")
        if r.is_error:
            raise self._fail(r, "authentication failed")
        token = self._json(r).get("token")
        if not token:
            raise self._fail(r, "authentication response has no token")
        return token

    def _headers(self) -> dict[str, str]:
        if not self._token:
            self._token = self._authenticate()
        return {"Authorization": f"Bearer {self._token}"}

    def handshake(self) -> Mapping[str, Any]:
        """One call to validate credentials, keeps the current organization."""
        try:
            r = self._http.get("/v2/currentOrg", headers=self._headers())
        except httpx.HTTPError as e:
            raise ConnectionFailure(self.service, str(e)) from e
        if r.status_code in (401, 403):
            raise self._fail(r, "token provided is invalid")
        if r.is_error:
            raise self._fail(r, "unexpected response")
        self.organization = self._json(r)
        _log.info("devops.connected", extra={"extra": {"organization": self.organization.get("id")}})
        return self.organization

    def download_secure_bundle(self, database_id: str, dest: Path, *, timeout: Optional[float] = None) -> Path:
        dest = Path(dest)
        tmp = dest.with_name(dest.name + ".part")
        # timeout=None у httpx отключает таймаут, поэтому передаём только заданный
        kw = {} if timeout is None else {"timeout": timeout}
        try:
            r = self._http.post(f"/v2/databases/{database_id}/secureBundleURL", headers=self._headers(), **kw)
            if r.is_error:
                raise self._fail(r, f"cannot get secure bundle url for '{database_id}'")
            url = self._json(r).get("downloadURL")
            if not url:
                raise self._fail(r, "secure bundle url is missing in response")
            with self._http.stream("GET", url, **kw) as resp:
                if resp.is_error:
                    raise self._fail(resp, f"cannot download secure bundle for '{database_id}'")
                with tmp.open("wb") as fh:
                    for chunk in resp.iter_bytes():
                        fh.write(chunk)
            # публикуем атомарно: читатели видят либо старое, либо целое
            os.replace(tmp, dest)
        except httpx.HTTPError as e:
            tmp.unlink(missing_ok=True)
            raise ConnectionFailure(self.service, str(e)) from e
        except ConnectionFailure:
            tmp.unlink(missing_ok=True)
            raise
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise ConnectionFailure(self.service, f"cannot write secure bundle '{dest}': {e}") from e
        _log.info("devops.bundle_downloaded", extra={"extra": {"database_id": database_id, "path": str(dest)}})
        return dest

    def close(self) -> None:
        self._http.close()
