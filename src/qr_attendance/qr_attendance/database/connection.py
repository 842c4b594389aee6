from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import mysql.connector
from mysql.connector import pooling

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 5

    @classmethod
    def from_mapping(cls, db_config: Mapping[str, Any]) -> "DBConfig":
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config["password"]),
            database=str(db_config["database"]),
            pool_size=int(db_config.get("pool_size", 5)),
        )


class DatabaseConnection:
    """Store handle shared by all repositories.

    Owned by the process entry point: ``open()`` on startup, ``close()`` on
    shutdown. Repositories receive it explicitly and borrow one pooled
    connection per operation.
    """

    def __init__(self, config: DBConfig):
        self._config = config
        self._pool: Optional[pooling.MySQLConnectionPool] = None

    @property
    def config(self) -> DBConfig:
        return self._config

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def open(self) -> "DatabaseConnection":
        if self._pool is None:
            self._pool = pooling.MySQLConnectionPool(
                pool_name=f"qr_attendance_{self._config.database}",
                pool_size=self._config.pool_size,
                host=self._config.host,
                port=int(self._config.port),
                user=self._config.user,
                password=self._config.password,
                database=self._config.database,
            )
            logger.info(
                "Opened MySQL pool %s@%s:%s/%s (size=%s)",
                self._config.user,
                self._config.host,
                self._config.port,
                self._config.database,
                self._config.pool_size,
            )
        return self

    def close(self) -> None:
        """Drop the pool. Teardown is best-effort.

        mysql-connector has no public call that closes a pool's idle
        connections; they are closed when the pool is garbage-collected or when
        the process exits. Connections borrowed through connect() are always
        returned by db_cursor(). After close(), connect() falls back to direct
        connections until open() is called again.
        """

        if self._pool is not None:
            logger.info("Closing MySQL pool for %s", self._config.database)
            self._pool = None

    def connect(self):
        if self._pool is None:
            return mysql.connector.connect(
                host=self._config.host,
                port=int(self._config.port),
                user=self._config.user,
                password=self._config.password,
                database=self._config.database,
            )
        return self._pool.get_connection()
