# src/astra_sdk/services/settings.py
from __future__ import annotations
from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Mapping, Optional

from astra_sdk.config import const


def _home(environ: Mapping[str, str]) -> Path:
    override = environ.get(const.ASTRA_HOME_ENV)
    if override:
        return Path(override).expanduser().resolve()
    return Path.home()


@dataclass(frozen=True, slots=True)
class Settings:
    home: Path
    cache_dir: Path
    config_file: Path
    devops_url: str = const.DEVOPS_URL
    download_timeout: float = const.DEFAULT_TIMEOUT_SEC
    log_level: str = "INFO"

    @staticmethod
    def from_sources(environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        home = _home(env)

        def pick_env(key: str, default: str) -> str:
            return (env.get(key) or "").strip() or default

        timeout_raw = pick_env("ASTRA_DOWNLOAD_TIMEOUT", str(const.DEFAULT_TIMEOUT_SEC))
        try:
            timeout = float(timeout_raw)
        except ValueError:
            timeout = const.DEFAULT_TIMEOUT_SEC

        return Settings(
            home=home,
            cache_dir=home / const.CACHE_FOLDER,
            config_file=Path(pick_env("ASTRA_CONFIG_FILE", str(home / const.ASTRARC_FILENAME))).expanduser(),
            devops_url=pick_env("ASTRA_DEVOPS_URL", const.DEVOPS_URL).rstrip("/"),
            download_timeout=timeout,
            log_level=pick_env("ASTRA_LOG_LEVEL", "INFO").upper(),
        )

    def with_overrides(self, **kw) -> "Settings":
        # None означает "не трогать"
        safe = {k: v for k, v in kw.items() if v is not None}
        for key in ("home", "cache_dir", "config_file"):
            if key in safe:
                safe[key] = Path(safe[key]).expanduser()
        return replace(self, **safe)
