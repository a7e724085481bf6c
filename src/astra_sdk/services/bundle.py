# src/astra_sdk/services/bundle.py
from __future__ import annotations
import logging
from pathlib import Path
from threading import Lock
from typing import ClassVar, Dict, Optional, Tuple

from astra_sdk.config import const
from astra_sdk.domain import BundleLocation, BundleSource
from astra_sdk.errors import AstraError, ConfigurationError
from astra_sdk.ports import BundleDownloader

_log = logging.getLogger("astra_sdk.bundle")


def bundle_path(cache_dir: Path, database_id: str) -> Path:
    return Path(cache_dir) / f"{const.SECURE_CONNECT_PREFIX}{database_id}.zip"


class BundleResolver:
    """
    Ищет secure connect bundle для базы:
      1) явный путь (должен существовать)
      2) кэш <cache_dir>/secure_connect_bundle_<db>.zip (без проверки свежести)
      3) скачивание через DevOps API, если есть downloader
      4) иначе Unresolved

    Within one process builds for the same database id are serialized.
    Separate processes sharing a cache dir must synchronize themselves;
    the downloader publishes the file with an atomic rename.
    """

    _locks: ClassVar[Dict[Tuple[str, str], Lock]] = {}
    _locks_guard: ClassVar[Lock] = Lock()

    def __init__(
        self,
        cache_dir: Path,
        downloader: Optional[BundleDownloader] = None,
        *,
        timeout: Optional[float] = const.DEFAULT_TIMEOUT_SEC,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.downloader = downloader
        self.timeout = timeout

    @classmethod
    def _lock_for(cls, cache_dir: Path, database_id: str) -> Lock:
        key = (str(cache_dir.resolve()), database_id)
        with cls._locks_guard:
            lock = cls._locks.get(key)
            if lock is None:
                lock = cls._locks[key] = Lock()
            return lock

    def cached_path(self, database_id: str) -> Path:
        return bundle_path(self.cache_dir, database_id)

    def resolve(self, database_id: str, explicit_path: Optional[str] = None) -> BundleLocation:
        if explicit_path:
            path = Path(explicit_path).expanduser()
            if not path.is_file():
                raise ConfigurationError(
                    f"Cannot read file {explicit_path} provided for the cloud bundle",
                    path=path,
                    field=const.ASTRA_DB_SECURE_BUNDLE,
                )
            _log.info("bundle.explicit", extra={"extra": {"path": str(path)}})
            return BundleLocation(BundleSource.EXPLICIT, path)

        with self._lock_for(self.cache_dir, database_id):
            target = self.cached_path(database_id)
            if target.is_file():
                _log.info("bundle.cached", extra={"extra": {"path": str(target)}})
                return BundleLocation(BundleSource.CACHED, target)

            if self.downloader is None:
                _log.info("bundle.unresolved", extra={"extra": {"database_id": database_id}})
                return BundleLocation.unresolved()

            self.cache_dir.mkdir(parents=True, exist_ok=True)
            _log.info("bundle.download", extra={"extra": {"database_id": database_id, "path": str(target)}})
            try:
                path = self.downloader.download_secure_bundle(database_id, target, timeout=self.timeout)
            except AstraError as e:
                _log.warning("bundle.download_failed", extra={"extra": {"database_id": database_id, "error": str(e)}})
                return BundleLocation.unresolved()
            return BundleLocation(BundleSource.DOWNLOADED, Path(path))
