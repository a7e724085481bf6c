from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Protocol


class Closeable(Protocol):
    def close(self) -> None: ...


class BundleDownloader(Protocol):
    def download_secure_bundle(self, database_id: str, dest: Path, *, timeout: Optional[float] = None) -> Path: ...


class ControlPlane(BundleDownloader, Closeable, Protocol):
    def handshake(self) -> Mapping[str, Any]: ...


@dataclass(frozen=True)
class GatewayCredentials:
    endpoint: str
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    keyspace: Optional[str] = None


@dataclass(frozen=True)
class CqlCredentials:
    bundle: Path
    username: str
    password: str
    keyspace: Optional[str] = None


ControlPlaneFactory = Callable[..., ControlPlane]
GatewayFactory = Callable[[GatewayCredentials], Closeable]
CqlFactory = Callable[[CqlCredentials], Closeable]
