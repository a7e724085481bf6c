# tests/conftest.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import pytest

from astra_sdk.config import const
from astra_sdk.errors import ConnectionFailure
from astra_sdk.ports import CqlCredentials, GatewayCredentials
from astra_sdk.services.activator import ClientFactories
from astra_sdk.services.settings import Settings

TOKEN = "AstraCS:abcdefgh:0123456789"


# ---- фейковые под-клиенты: без сети ----
@dataclass
class FakeDevops:
    token: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    reject: bool = False
    downloads: list = field(default_factory=list)
    closed: bool = False

    def handshake(self):
        if self.reject:
            raise ConnectionFailure("Api Devops", "token provided is invalid", status=401)
        return {"id": "org-1"}

    def download_secure_bundle(self, database_id: str, dest: Path, *, timeout: Optional[float] = None) -> Path:
        self.downloads.append((database_id, Path(dest), timeout))
        Path(dest).write_bytes(b"PK\x05\x06" + b"\0" * 18)
        return Path(dest)

    def close(self) -> None:
        self.closed = True


@dataclass
class FakeGateway:
    creds: Any
    closed: bool = False

    def close(self) -> None:
        self.closed = True


class Recorder:
    """Collects every fake client created by the factories."""

    def __init__(self, reject: bool = False) -> None:
        self.reject = reject
        self.devops: list[FakeDevops] = []
        self.gateways: list[FakeGateway] = []
        self.cql: list[FakeGateway] = []

    @property
    def downloads(self) -> list:
        return [d for cp in self.devops for d in cp.downloads]

    def factories(self) -> ClientFactories:
        def control_plane(*, token, client_id, client_secret):
            cp = FakeDevops(token=token, client_id=client_id, client_secret=client_secret, reject=self.reject)
            self.devops.append(cp)
            return cp

        def gateway(creds: GatewayCredentials):
            gw = FakeGateway(creds)
            self.gateways.append(gw)
            return gw

        def cql(creds: CqlCredentials):
            c = FakeGateway(creds)
            self.cql.append(c)
            return c

        return ClientFactories(control_plane=control_plane, cql=cql, document=gateway, rest=gateway, graphql=gateway)


@pytest.fixture
def home(tmp_path, monkeypatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv(const.ASTRA_HOME_ENV, str(home))
    for name in const.FIELD_NAMES:
        monkeypatch.delenv(name, raising=False)
    for name in ("ASTRA_CONFIG_FILE", "ASTRA_DEVOPS_URL", "ASTRA_DOWNLOAD_TIMEOUT", "ASTRA_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def settings(home) -> Settings:
    return Settings.from_sources()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def builder(settings, recorder):
    from astra_sdk import AstraClient

    def make(**fields):
        b = AstraClient.builder().with_settings(settings).with_environ({}).with_factories(recorder.factories())
        for name, value in fields.items():
            getattr(b, f"with_{name}")(value)
        return b

    return make


def write_astrarc(home: Path, text: str) -> Path:
    p = home / const.ASTRARC_FILENAME
    p.write_text(text, encoding="utf-8")
    return p


@pytest.fixture
def astrarc(home):
    def write(text: str) -> Path:
        return write_astrarc(home, text)

    return write


@pytest.fixture
def token() -> str:
    return TOKEN
