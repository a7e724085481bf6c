# src/astra_sdk/services/astrarc.py
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from astra_sdk.config import const
from astra_sdk.errors import ConfigurationError

_log = logging.getLogger("astra_sdk.astrarc")


def _parse_sections(text: str) -> Dict[str, Dict[str, str]]:
    sections: Dict[str, Dict[str, str]] = {}
    current: Optional[Dict[str, str]] = None
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line.startswith(";"):
            continue
        if line.startswith("[") and line.endswith("]"):
            current = sections.setdefault(line[1:-1].strip(), {})
            continue
        if "=" in line and current is not None:
            k, v = line.split("=", 1)
            current[k.strip()] = v.strip().strip('"').strip("'")
    return sections


class AstraRc:
    """
    Файл конфигурации ~/.astrarc: секции [name] с парами KEY=VALUE.
    Читается лениво, при первом обращении; отсутствие файла не ошибка.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()
        self._sections: Optional[Dict[str, Dict[str, str]]] = None

    def exists(self) -> bool:
        return self.path.is_file()

    def _load(self) -> Dict[str, Dict[str, str]]:
        if self._sections is None:
            if self.exists():
                _log.debug("astrarc.load", extra={"extra": {"path": str(self.path)}})
                try:
                    text = self.path.read_text(encoding="utf-8")
                except UnicodeDecodeError as e:
                    raise ConfigurationError(f"config file '{self.path}' is not valid UTF-8: {e.reason}", path=self.path) from e
                self._sections = _parse_sections(text)
            else:
                self._sections = {}
        return self._sections

    def sections(self) -> list[str]:
        return list(self._load().keys())

    def has_section(self, name: str) -> bool:
        return name in self._load()

    def get_section(self, name: str) -> Optional[Mapping[str, str]]:
        sec = self._load().get(name)
        return dict(sec) if sec is not None else None

    def require_section(self, name: str) -> Mapping[str, str]:
        sec = self.get_section(name)
        if sec is None:
            raise ConfigurationError(
                f"section '{name}' has not been found in config file '{self.path}'",
                path=self.path,
                section=name,
            )
        return sec

    def lookup(self, section: str, key: str) -> Optional[str]:
        sec = self._load().get(section)
        if not sec:
            return None
        value = sec.get(key)
        return value if value and value.strip() else None

    def update_section(self, name: str, values: Mapping[str, str]) -> None:
        sec = self._load().setdefault(name, {})
        sec.update({k: v for k, v in values.items() if v is not None})

    def render(self) -> str:
        out: list[str] = []
        for name, values in self._load().items():
            out.append(f"[{name}]")
            out.extend(f"{k}={v}" for k, v in values.items())
            out.append("")
        return "\n".join(out)

    def save(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(self.render(), encoding="utf-8")
        os.replace(tmp, self.path)
        _log.info("astrarc.saved", extra={"extra": {"path": str(self.path), "sections": self.sections()}})
        return self.path

    @classmethod
    def default(cls, home: Optional[Path] = None) -> "AstraRc":
        return cls((home or Path.home()) / const.ASTRARC_FILENAME)
