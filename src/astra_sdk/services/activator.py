# src/astra_sdk/services/activator.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Sequence

from astra_sdk.adapters.cql.session import CqlClient
from astra_sdk.adapters.http.devops import DevopsHttpClient
from astra_sdk.adapters.http.stargate import DocumentApiClient, GraphQLApiClient, RestApiClient, stargate_endpoint
from astra_sdk.config import const
from astra_sdk.domain import Activation, Available, BundleLocation, CapabilityKind, CapabilitySet, RawConfig, Unavailable
from astra_sdk.errors import AstraError
from astra_sdk.ports import ControlPlaneFactory, CqlCredentials, CqlFactory, GatewayCredentials, GatewayFactory

_log = logging.getLogger("astra_sdk.activator")


# ---- требования к полям: вычисляются и объясняют, чего не хватает ----


class Requirement(Protocol):
    def missing(self, cfg: RawConfig, bundle: BundleLocation) -> tuple[str, ...]: ...


@dataclass(frozen=True)
class Field:
    name: str

    def missing(self, cfg: RawConfig, bundle: BundleLocation) -> tuple[str, ...]:
        return () if cfg.get(self.name) else (self.name,)


@dataclass(frozen=True)
class BundleResolved:
    def missing(self, cfg: RawConfig, bundle: BundleLocation) -> tuple[str, ...]:
        return () if bundle.resolved else (const.ASTRA_DB_SECURE_BUNDLE,)


@dataclass(frozen=True)
class All:
    parts: tuple[Requirement, ...]

    def __init__(self, *parts: Requirement) -> None:
        object.__setattr__(self, "parts", parts)

    def missing(self, cfg: RawConfig, bundle: BundleLocation) -> tuple[str, ...]:
        out: list[str] = []
        for p in self.parts:
            for name in p.missing(cfg, bundle):
                if name not in out:
                    out.append(name)
        return tuple(out)


@dataclass(frozen=True)
class AnyOf:
    """Satisfied by any alternative; reports the alternative closest to completion."""

    alternatives: tuple[Requirement, ...]

    def __init__(self, *alternatives: Requirement) -> None:
        object.__setattr__(self, "alternatives", alternatives)

    def missing(self, cfg: RawConfig, bundle: BundleLocation) -> tuple[str, ...]:
        best: Optional[tuple[str, ...]] = None
        for alt in self.alternatives:
            m = alt.missing(cfg, bundle)
            if not m:
                return ()
            if best is None or len(m) < len(best):
                best = m
        return best or ()


TOKEN = Field(const.ASTRA_DB_APPLICATION_TOKEN)
CLIENT_CREDENTIALS = All(Field(const.ASTRA_DB_CLIENT_ID), Field(const.ASTRA_DB_CLIENT_SECRET))
USER_PASSWORD = All(Field(const.ASTRA_DB_USERNAME), Field(const.ASTRA_DB_PASSWORD))
DATABASE = All(Field(const.ASTRA_DB_ID), Field(const.ASTRA_DB_REGION))

GATEWAY_REQUIREMENT = All(DATABASE, AnyOf(TOKEN, USER_PASSWORD))


@dataclass(frozen=True)
class CapabilityRule:
    kind: CapabilityKind
    requirement: Requirement

    def missing(self, cfg: RawConfig, bundle: BundleLocation) -> tuple[str, ...]:
        return self.requirement.missing(cfg, bundle)


RULES: tuple[CapabilityRule, ...] = (
    CapabilityRule(CapabilityKind.CONTROL_PLANE, AnyOf(TOKEN, CLIENT_CREDENTIALS)),
    CapabilityRule(CapabilityKind.NATIVE_DRIVER, All(DATABASE, BundleResolved(), AnyOf(TOKEN, USER_PASSWORD, CLIENT_CREDENTIALS))),
    CapabilityRule(CapabilityKind.DOCUMENT_GATEWAY, GATEWAY_REQUIREMENT),
    CapabilityRule(CapabilityKind.TABULAR_GATEWAY, GATEWAY_REQUIREMENT),
    CapabilityRule(CapabilityKind.GRAPH_GATEWAY, GATEWAY_REQUIREMENT),
)


# ---- фабрики под-клиентов ----


def _default_control_plane(devops_url: str, timeout: float) -> ControlPlaneFactory:
    def factory(*, token: Optional[str], client_id: Optional[str], client_secret: Optional[str]):
        return DevopsHttpClient(token, client_id=client_id, client_secret=client_secret, base_url=devops_url, timeout=timeout)

    return factory


def _default_gateway(cls: type, timeout: float) -> GatewayFactory:
    def factory(creds: GatewayCredentials):
        return cls(creds, timeout=timeout)

    return factory


@dataclass
class ClientFactories:
    control_plane: Optional[ControlPlaneFactory] = None
    cql: CqlFactory = CqlClient
    document: Optional[GatewayFactory] = None
    rest: Optional[GatewayFactory] = None
    graphql: Optional[GatewayFactory] = None
    devops_url: str = const.DEVOPS_URL
    timeout: float = const.DEFAULT_TIMEOUT_SEC

    def __post_init__(self) -> None:
        if self.control_plane is None:
            self.control_plane = _default_control_plane(self.devops_url, self.timeout)
        if self.document is None:
            self.document = _default_gateway(DocumentApiClient, self.timeout)
        if self.rest is None:
            self.rest = _default_gateway(RestApiClient, self.timeout)
        if self.graphql is None:
            self.graphql = _default_gateway(GraphQLApiClient, self.timeout)


def native_credentials(cfg: RawConfig) -> tuple[str, str]:
    # clientId/clientSecret > username/password > 'token'/appToken
    if cfg.client_id and cfg.client_secret:
        return cfg.client_id, cfg.client_secret
    if cfg.username and cfg.password:
        return cfg.username, cfg.password
    return "token", cfg.token or ""


@dataclass
class CapabilityActivator:
    factories: ClientFactories = field(default_factory=ClientFactories)
    rules: Sequence[CapabilityRule] = RULES

    def __post_init__(self) -> None:
        self._by_kind: Dict[CapabilityKind, CapabilityRule] = {r.kind: r for r in self.rules}
        absent = [k.value for k in CapabilityKind if k not in self._by_kind]
        if absent:
            raise ValueError(f"no capability rule for: {', '.join(absent)}")

    def evaluate(self, kind: CapabilityKind, cfg: RawConfig, bundle: BundleLocation) -> tuple[str, ...]:
        return self._by_kind[kind].missing(cfg, bundle)

    def _construct(self, kind: CapabilityKind, build: Callable[[], object], missing: Sequence[str]) -> Activation:
        if missing:
            _log.info("capability.inactive", extra={"extra": {"capability": kind.value, "missing": list(missing)}})
            return Unavailable(kind, tuple(missing))
        try:
            client = build()
        except AstraError as e:
            _log.warning("capability.failed", extra={"extra": {"capability": kind.value, "error": str(e)}})
            return Unavailable(kind, (), e)
        _log.info("capability.enabled", extra={"extra": {"capability": kind.value}})
        return Available(kind, client)

    def activate_control_plane(self, cfg: RawConfig) -> Activation:
        kind = CapabilityKind.CONTROL_PLANE

        def build():
            client = self.factories.control_plane(token=cfg.token, client_id=cfg.client_id, client_secret=cfg.client_secret)
            try:
                client.handshake()
            except Exception:
                client.close()
                raise
            return client

        return self._construct(kind, build, self.evaluate(kind, cfg, BundleLocation.unresolved()))

    def activate(self, cfg: RawConfig, bundle: BundleLocation, *, control_plane: Optional[Activation] = None) -> CapabilitySet:
        """Evaluates every rule independently; a missing capability never blocks another one."""
        items: Dict[CapabilityKind, Activation] = {}
        items[CapabilityKind.CONTROL_PLANE] = control_plane or self.activate_control_plane(cfg)

        def cql():
            username, password = native_credentials(cfg)
            return self.factories.cql(CqlCredentials(bundle=Path(bundle.path), username=username, password=password, keyspace=cfg.keyspace))

        items[CapabilityKind.NATIVE_DRIVER] = self._construct(
            CapabilityKind.NATIVE_DRIVER, cql, self.evaluate(CapabilityKind.NATIVE_DRIVER, cfg, bundle)
        )

        gateways = (
            (CapabilityKind.DOCUMENT_GATEWAY, self.factories.document),
            (CapabilityKind.TABULAR_GATEWAY, self.factories.rest),
            (CapabilityKind.GRAPH_GATEWAY, self.factories.graphql),
        )
        for kind, factory in gateways:
            missing = self.evaluate(kind, cfg, bundle)
            creds = None
            if not missing:
                creds = GatewayCredentials(
                    endpoint=stargate_endpoint(cfg.database_id, cfg.database_region),
                    token=cfg.token,
                    username=None if cfg.token else cfg.username,
                    password=None if cfg.token else cfg.password,
                    keyspace=cfg.keyspace,
                )
            items[kind] = self._construct(kind, lambda f=factory, c=creds: f(c), missing)
        return CapabilitySet(items)
