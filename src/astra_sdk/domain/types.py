# src/astra_sdk/domain/types.py
from __future__ import annotations
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Union

from astra_sdk.config import const

# canonical field name -> attribute of RawConfig
FIELD_ATTRS: Mapping[str, str] = MappingProxyType(
    {
        const.ASTRA_DB_ID: "database_id",
        const.ASTRA_DB_REGION: "database_region",
        const.ASTRA_DB_APPLICATION_TOKEN: "token",
        const.ASTRA_DB_CLIENT_ID: "client_id",
        const.ASTRA_DB_CLIENT_SECRET: "client_secret",
        const.ASTRA_DB_USERNAME: "username",
        const.ASTRA_DB_PASSWORD: "password",
        const.ASTRA_DB_KEYSPACE: "keyspace",
        const.ASTRA_DB_SECURE_BUNDLE: "secure_bundle",
    }
)


def redact(value: Optional[str]) -> str:
    if value is None:
        return "-"
    if len(value) <= 8:
        return "*" * len(value)
    return value[:2] + "*" * (len(value) - 6) + value[-4:]


@dataclass(frozen=True, slots=True)
class RawConfig:
    """Resolved connection parameters, frozen at build time."""

    database_id: Optional[str] = None
    database_region: Optional[str] = None
    token: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    keyspace: Optional[str] = None
    secure_bundle: Optional[str] = None
    config_file: Optional[str] = None
    config_section: Optional[str] = None

    @classmethod
    def from_fields(cls, values: Mapping[str, Optional[str]], **extra: Optional[str]) -> "RawConfig":
        kw = {FIELD_ATTRS[name]: v for name, v in values.items() if name in FIELD_ATTRS}
        kw.update(extra)
        return cls(**kw)

    def get(self, name: str) -> Optional[str]:
        return getattr(self, FIELD_ATTRS[name])

    def present(self, *names: str) -> bool:
        return all(self.get(n) for n in names)

    def as_fields(self) -> dict[str, Optional[str]]:
        return {name: self.get(name) for name in FIELD_ATTRS}

    def redacted(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for name, value in self.as_fields().items():
            if value is None:
                continue
            out[name] = redact(value) if name in const.SECRET_FIELDS else value
        return out

    def __repr__(self) -> str:
        shown = ", ".join(f"{f.name}={getattr(self, f.name)!r}" for f in fields(self) if f.name not in ("token", "client_secret", "password"))
        return f"RawConfig({shown})"


class CapabilityKind(str, Enum):
    CONTROL_PLANE = "control_plane"
    NATIVE_DRIVER = "native_driver"
    DOCUMENT_GATEWAY = "document_gateway"
    TABULAR_GATEWAY = "tabular_gateway"
    GRAPH_GATEWAY = "graph_gateway"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    CapabilityKind.CONTROL_PLANE: "Api Devops",
    CapabilityKind.NATIVE_DRIVER: "CQL session",
    CapabilityKind.DOCUMENT_GATEWAY: "Api Document",
    CapabilityKind.TABULAR_GATEWAY: "Api Rest",
    CapabilityKind.GRAPH_GATEWAY: "Api GraphQL",
}


class BundleSource(str, Enum):
    EXPLICIT = "explicit"
    CACHED = "cached"
    DOWNLOADED = "downloaded"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True, slots=True)
class BundleLocation:
    source: BundleSource
    path: Optional[Path] = None

    @property
    def resolved(self) -> bool:
        return self.source is not BundleSource.UNRESOLVED

    @classmethod
    def unresolved(cls) -> "BundleLocation":
        return cls(BundleSource.UNRESOLVED)


@dataclass(frozen=True, slots=True)
class Available:
    kind: CapabilityKind
    client: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Unavailable:
    kind: CapabilityKind
    missing: tuple[str, ...] = ()
    cause: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return False


Activation = Union[Available, Unavailable]


class CapabilitySet(Mapping[CapabilityKind, Activation]):
    """Read-only result of activation, one entry per CapabilityKind."""

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[CapabilityKind, Activation]) -> None:
        missing = [k for k in CapabilityKind if k not in items]
        if missing:
            raise ValueError(f"activation result missing for: {', '.join(k.value for k in missing)}")
        self._items = MappingProxyType(dict(items))

    def __getitem__(self, kind: CapabilityKind) -> Activation:
        return self._items[kind]

    def __iter__(self) -> Iterator[CapabilityKind]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def available(self) -> list[CapabilityKind]:
        return [k for k, a in self._items.items() if a.ok]

    def unavailable(self) -> list[Unavailable]:
        return [a for a in self._items.values() if not a.ok]  # type: ignore[misc]

    def __repr__(self) -> str:
        return f"CapabilitySet(available={[k.value for k in self.available()]})"
