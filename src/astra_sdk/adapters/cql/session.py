from __future__ import annotations
import logging
from threading import Lock
from typing import Any, Optional

from astra_sdk.ports import CqlCredentials

_log = logging.getLogger("astra_sdk.cql")


class CqlClient:
    """
    Handle over a CQL session opened with the secure connect bundle.
    The driver session is opened on first use of ``session()``.
    """

    def __init__(self, creds: CqlCredentials) -> None:
        self.creds = creds
        self._cluster: Any = None
        self._session: Any = None
        self._lock = Lock()

    @property
    def keyspace(self) -> Optional[str]:
        return self.creds.keyspace

    def session(self) -> Any:
        with self._lock:
            if self._session is None:
                # тяжёлый драйвер грузим только при реальном подключении (extra "cql")
                from cassandra.auth import PlainTextAuthProvider
                from cassandra.cluster import Cluster

                auth = PlainTextAuthProvider(self.creds.username, self.creds.password)
                self._cluster = Cluster(cloud={"secure_connect_bundle": str(self.creds.bundle)}, auth_provider=auth)
                self._session = self._cluster.connect(self.creds.keyspace) if self.creds.keyspace else self._cluster.connect()
                _log.info("cql.connected", extra={"extra": {"bundle": str(self.creds.bundle), "keyspace": self.creds.keyspace}})
            return self._session

    def execute(self, statement: str, *params: Any) -> Any:
        return self.session().execute(statement, params or None)

    def close(self) -> None:
        with self._lock:
            if self._cluster is not None:
                self._cluster.shutdown()
            self._cluster = None
            self._session = None
