# src/astra_sdk/services/config_chain.py
from __future__ import annotations
import logging
import os
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from astra_sdk.config import const
from astra_sdk.errors import ConfigurationError
from astra_sdk.services.astrarc import AstraRc

_log = logging.getLogger("astra_sdk.config")


class Source(str, Enum):
    EXPLICIT = "explicit"
    PROPERTY = "property"
    ENVIRONMENT = "environment"
    CONFIG_FILE = "config_file"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ConfigSourceChain:
    """
    Разрешение поля по источникам, от старшего к младшему:
    explicit > process property > environment > секция ~/.astrarc.
    Отсутствие значения во всех источниках — не ошибка, а None.
    """

    def __init__(
        self,
        explicit: Optional[Mapping[str, Optional[str]]] = None,
        *,
        properties: Optional[Mapping[str, str]] = None,
        environ: Optional[Mapping[str, str]] = None,
        config_file: Optional[AstraRc] = None,
        section: str = const.ASTRARC_DEFAULT_SECTION,
    ) -> None:
        self._explicit = dict(explicit or {})
        self._properties = dict(properties or {})
        self._environ = os.environ if environ is None else environ
        self._rc = config_file
        self.section = section

    @property
    def config_file(self) -> Optional[AstraRc]:
        return self._rc

    def lookup(self, name: str) -> Tuple[Optional[str], Optional[Source]]:
        value = _clean(self._explicit.get(name))
        if value is not None:
            return value, Source.EXPLICIT
        value = _clean(self._properties.get(name))
        if value is not None:
            return value, Source.PROPERTY
        value = _clean(self._environ.get(name))
        if value is not None:
            return value, Source.ENVIRONMENT
        # файл читаем только если до него дошли
        if self._rc is not None:
            value = _clean(self._rc.lookup(self.section, name))
            if value is not None:
                return value, Source.CONFIG_FILE
        return None, None

    def resolve(self, name: str) -> Optional[str]:
        return self.lookup(name)[0]

    def require(self, name: str) -> str:
        value = self.resolve(name)
        if value is not None:
            return value
        if self._rc is not None and not self._rc.has_section(self.section):
            raise ConfigurationError(
                f"'{name}' is not set and section '{self.section}' has not been found in config file '{self._rc.path}'",
                path=self._rc.path,
                section=self.section,
                field=name,
            )
        raise ConfigurationError(f"'{name}' has not been found in any configuration source", section=self.section, field=name)

    def resolve_all(self) -> Dict[str, Optional[str]]:
        resolved: Dict[str, Optional[str]] = {}
        origins: Dict[str, str] = {}
        for name in const.FIELD_NAMES:
            value, source = self.lookup(name)
            resolved[name] = value
            if source is not None:
                origins[name] = source.value
        _log.debug("config.resolved", extra={"extra": {"sources": origins, "section": self.section}})
        return resolved
