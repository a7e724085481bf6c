# src/astra_sdk/services/context.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from astra_sdk.config import const
from astra_sdk.errors import AstraError, CapabilityUnavailable, IllegalArgument
from astra_sdk.services.activator import ClientFactories
from astra_sdk.services.astrarc import AstraRc
from astra_sdk.services.config_chain import ConfigSourceChain
from astra_sdk.services.settings import Settings
from astra_sdk.domain import CapabilityKind

# клиент импортируем лениво: client -> services, а не наоборот


@dataclass
class SessionContext:
    """
    Состояние сессии CLI: какой токен, какой файл/секция, какая база выбрана.
    Создаётся явно и передаётся командам; глобального синглтона нет.
    """

    settings: Settings
    config_section: str = const.ASTRARC_DEFAULT_SECTION
    properties: Dict[str, str] = field(default_factory=dict)
    factories: Optional[ClientFactories] = None
    token: Optional[str] = None
    database_id: Optional[str] = None
    database_region: Optional[str] = None
    _client: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def config_file(self) -> Path:
        return self.settings.config_file

    @property
    def astrarc(self) -> AstraRc:
        return AstraRc(self.settings.config_file)

    @property
    def client(self):
        if self._client is None:
            raise AstraError("session is not connected, try [astra setup]")
        return self._client

    def resolve_token(self) -> str:
        """Token from -D properties, then environment, then the config file section."""
        chain = ConfigSourceChain(properties=self.properties, config_file=self.astrarc, section=self.config_section)
        return chain.require(const.ASTRA_DB_APPLICATION_TOKEN)

    def _builder(self):
        from astra_sdk.client import AstraClient

        b = (
            AstraClient.builder()
            .with_settings(self.settings)
            .with_config_section(self.config_section)
            .with_properties(self.properties)
        )
        if self.token:
            b = b.with_token(self.token)
        if self.database_id:
            b = b.with_database_id(self.database_id)
        if self.database_region:
            b = b.with_database_region(self.database_region)
        if self.factories is not None:
            b = b.with_factories(self.factories)
        return b

    def rebuild(self):
        previous = self._client
        self._client = self._builder().build()
        if previous is not None:
            previous.close()
        return self._client

    def connect(self, token: Optional[str] = None):
        """Validates the token format and builds a client; the control plane must come up."""
        from astra_sdk.client import is_valid_token

        token = token or self.token or self.resolve_token()
        if not is_valid_token(token):
            raise IllegalArgument(
                const.ASTRA_DB_APPLICATION_TOKEN,
                f"token provided is invalid, it should start with '{const.TOKEN_PREFIX}...'",
            )
        self.token = token
        client = self.rebuild()
        activation = client.capabilities[CapabilityKind.CONTROL_PLANE]
        if not activation.ok:
            raise CapabilityUnavailable(CapabilityKind.CONTROL_PLANE, activation.missing, activation.cause)
        return client

    def use_database(self, database_id: str, region: str):
        if not database_id or not region:
            raise IllegalArgument("database", "database id and region are required")
        self.database_id = database_id
        self.database_region = region
        return self.rebuild()

    def exit_database(self):
        self.database_id = None
        self.database_region = None
        return self.rebuild()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
