# src/astra_sdk/client.py
"""
Public entry point to the Astra APIs.

    client = AstraClient.builder().with_token("AstraCS:...").with_database_id(db).with_database_region(r).build()
    client.devops()        # control plane (DevOps API)
    client.cql()           # CQL session handle (needs the secure connect bundle)
    client.api_document()  # document (schemaless) API
    client.api_rest()      # tabular REST API
    client.api_graphql()   # GraphQL API

Every capability is decided once in ``build()``; the client never changes afterwards.
"""

from __future__ import annotations
import logging
import os
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Mapping, Optional

from astra_sdk.config import const
from astra_sdk.domain import BundleLocation, CapabilityKind, CapabilitySet, RawConfig
from astra_sdk.errors import CapabilityUnavailable, IllegalArgument
from astra_sdk.services.activator import CapabilityActivator, ClientFactories
from astra_sdk.services.astrarc import AstraRc
from astra_sdk.services.bundle import BundleResolver
from astra_sdk.services.config_chain import ConfigSourceChain
from astra_sdk.services.settings import Settings

_log = logging.getLogger("astra_sdk.client")


def is_valid_token(token: Optional[str]) -> bool:
    """Application tokens are issued with the literal ``AstraCS:`` prefix."""
    return bool(token) and token.startswith(const.TOKEN_PREFIX) and len(token) > len(const.TOKEN_PREFIX)


def _require_text(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise IllegalArgument(name)
    return str(value).strip()


class AstraClient:
    """Immutable handle over the capabilities activated at build time."""

    def __init__(self, config: RawConfig, bundle: BundleLocation, capabilities: CapabilitySet) -> None:
        self._config = config
        self._bundle = bundle
        self._capabilities = capabilities
        self._closed = False
        self._close_lock = Lock()

    @staticmethod
    def builder() -> "AstraClientBuilder":
        return AstraClientBuilder()

    # --- состояние ---
    @property
    def config(self) -> RawConfig:
        return self._config

    @property
    def bundle(self) -> BundleLocation:
        return self._bundle

    @property
    def capabilities(self) -> CapabilitySet:
        return self._capabilities

    @property
    def database_id(self) -> Optional[str]:
        return self._config.database_id

    @property
    def database_region(self) -> Optional[str]:
        return self._config.database_region

    def is_available(self, kind: CapabilityKind) -> bool:
        return self._capabilities[kind].ok

    def _get(self, kind: CapabilityKind) -> Any:
        activation = self._capabilities[kind]
        if not activation.ok:
            raise CapabilityUnavailable(kind, activation.missing, activation.cause)
        return activation.client

    def require_all(self, *kinds: CapabilityKind) -> None:
        """Fails once, listing every requested capability that is not available."""
        wanted = kinds or tuple(CapabilityKind)
        down = [self._capabilities[k] for k in wanted if not self._capabilities[k].ok]
        if not down:
            return
        first, rest = down[0], down[1:]
        raise CapabilityUnavailable(first.kind, first.missing, first.cause, others=[(a.kind, a.missing) for a in rest])

    # --- accessors ---
    def devops(self):
        return self._get(CapabilityKind.CONTROL_PLANE)

    def cql(self):
        return self._get(CapabilityKind.NATIVE_DRIVER)

    def api_document(self):
        return self._get(CapabilityKind.DOCUMENT_GATEWAY)

    def api_rest(self):
        return self._get(CapabilityKind.TABULAR_GATEWAY)

    def api_graphql(self):
        return self._get(CapabilityKind.GRAPH_GATEWAY)

    # --- lifecycle ---
    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        # закрываем всех, даже если кто-то упал
        for activation in self._capabilities.values():
            if not (activation.ok and hasattr(activation.client, "close")):
                continue
            try:
                activation.client.close()
            except Exception as e:
                _log.warning("client.close_failed", extra={"extra": {"capability": activation.kind.value, "error": str(e)}})
        _log.info("client.closed")

    def __enter__(self) -> "AstraClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"AstraClient(database_id={self.database_id!r}, available={[k.value for k in self._capabilities.available()]})"


class AstraClientBuilder:
    """Collects optional parameters; ``build()`` resolves them and activates capabilities."""

    def __init__(self) -> None:
        self._explicit: Dict[str, str] = {}
        self._properties: Dict[str, str] = {}
        self._environ: Optional[Mapping[str, str]] = None
        self._settings: Optional[Settings] = None
        self._config_file: Optional[str] = None
        self._config_section: str = const.ASTRARC_DEFAULT_SECTION
        self._cache_dir: Optional[Path] = None
        self._download_timeout: Optional[float] = None
        self._factories: Optional[ClientFactories] = None

    def _set(self, name: str, value: Optional[str]) -> "AstraClientBuilder":
        self._explicit[name] = _require_text(value, name)
        return self

    def with_database_id(self, database_id: str) -> "AstraClientBuilder":
        return self._set(const.ASTRA_DB_ID, database_id)

    def with_database_region(self, region: str) -> "AstraClientBuilder":
        return self._set(const.ASTRA_DB_REGION, region)

    def with_token(self, token: str) -> "AstraClientBuilder":
        return self._set(const.ASTRA_DB_APPLICATION_TOKEN, token)

    def with_client_id(self, client_id: str) -> "AstraClientBuilder":
        return self._set(const.ASTRA_DB_CLIENT_ID, client_id)

    def with_client_secret(self, client_secret: str) -> "AstraClientBuilder":
        return self._set(const.ASTRA_DB_CLIENT_SECRET, client_secret)

    def with_username(self, username: str) -> "AstraClientBuilder":
        return self._set(const.ASTRA_DB_USERNAME, username)

    def with_password(self, password: str) -> "AstraClientBuilder":
        return self._set(const.ASTRA_DB_PASSWORD, password)

    def with_keyspace(self, keyspace: str) -> "AstraClientBuilder":
        return self._set(const.ASTRA_DB_KEYSPACE, keyspace)

    def with_secure_bundle(self, path: str | os.PathLike) -> "AstraClientBuilder":
        return self._set(const.ASTRA_DB_SECURE_BUNDLE, None if path is None else os.fspath(path))

    def with_config_file(self, path: str | os.PathLike) -> "AstraClientBuilder":
        self._config_file = _require_text(None if path is None else os.fspath(path), "config_file")
        return self

    def with_config_section(self, section: str) -> "AstraClientBuilder":
        self._config_section = _require_text(section, "config_section")
        return self

    def with_properties(self, properties: Mapping[str, str]) -> "AstraClientBuilder":
        self._properties.update(properties)
        return self

    def with_environ(self, environ: Mapping[str, str]) -> "AstraClientBuilder":
        self._environ = environ
        return self

    def with_settings(self, settings: Settings) -> "AstraClientBuilder":
        self._settings = settings
        return self

    def with_cache_dir(self, cache_dir: str | os.PathLike) -> "AstraClientBuilder":
        self._cache_dir = Path(_require_text(None if cache_dir is None else os.fspath(cache_dir), "cache_dir"))
        return self

    def with_download_timeout(self, seconds: float) -> "AstraClientBuilder":
        if seconds is None or seconds <= 0:
            raise IllegalArgument("download_timeout", "must be a positive number of seconds")
        self._download_timeout = float(seconds)
        return self

    def with_factories(self, factories: ClientFactories) -> "AstraClientBuilder":
        self._factories = factories
        return self

    def _resolve_settings(self) -> Settings:
        settings = self._settings or Settings.from_sources(self._environ)
        return settings.with_overrides(
            cache_dir=self._cache_dir,
            config_file=self._config_file,
            download_timeout=self._download_timeout,
        )

    def build(self) -> AstraClient:
        _log.info("client.initializing")
        settings = self._resolve_settings()
        rc = AstraRc(settings.config_file)
        chain = ConfigSourceChain(
            self._explicit,
            properties=self._properties,
            environ=self._environ,
            config_file=rc,
            section=self._config_section,
        )
        raw = RawConfig.from_fields(chain.resolve_all(), config_file=str(rc.path), config_section=self._config_section)
        _log.info("client.config", extra={"extra": raw.redacted()})
        if raw.token and not is_valid_token(raw.token):
            _log.warning("client.token_format", extra={"extra": {"expected_prefix": const.TOKEN_PREFIX}})

        factories = self._factories or ClientFactories(devops_url=settings.devops_url, timeout=settings.download_timeout)
        activator = CapabilityActivator(factories)

        control_plane = activator.activate_control_plane(raw)
        bundle = BundleLocation.unresolved()
        if raw.database_id:
            resolver = BundleResolver(
                settings.cache_dir,
                control_plane.client if control_plane.ok else None,
                timeout=settings.download_timeout,
            )
            try:
                bundle = resolver.resolve(raw.database_id, raw.secure_bundle)
            except Exception:
                if control_plane.ok:
                    control_plane.client.close()
                raise

        capabilities = activator.activate(raw, bundle, control_plane=control_plane)
        client = AstraClient(raw, bundle, capabilities)
        _log.info("client.initialized", extra={"extra": {"available": [k.value for k in capabilities.available()]}})
        return client
