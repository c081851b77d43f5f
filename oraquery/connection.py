"""Single-session Oracle connection management."""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

import oracledb

from oraquery.errors import (
    ConnectionErrorClassifier,
    NotConnectedError,
    QueryToolError,
    is_credentials_error,
)

logger = logging.getLogger(__name__)

# Fetch CLOB/BLOB columns as str/bytes instead of LOB locators
oracledb.defaults.fetch_lobs = False


@dataclass
class ConnectionConfig:
    hostname: str
    port: int
    service_name: str
    username: str
    password: str

    @property
    def server(self) -> str:
        return f"{self.hostname}:{self.port}"


def service_name_dsn(config: ConnectionConfig) -> str:
    return f"{config.hostname}:{config.port}/{config.service_name}"


def sid_dsn(config: ConnectionConfig) -> str:
    return f"{config.hostname}:{config.port}:{config.service_name}"


def descriptor_dsn(config: ConnectionConfig) -> str:
    return (
        f"(DESCRIPTION=(ADDRESS=(PROTOCOL=TCP)(HOST={config.hostname})(PORT={config.port}))"
        f"(CONNECT_DATA=(SERVICE_NAME={config.service_name})))"
    )


# Tried in order; the first that connects wins
DSN_BUILDERS: Tuple[Callable[[ConnectionConfig], str], ...] = (
    service_name_dsn,
    sid_dsn,
    descriptor_dsn,
)


class OracleSession:
    """
    Owns the one live database connection of the process.

    A successful connect replaces any previous connection. Query and metadata
    operations obtain the handle through require_connection().
    """

    def __init__(self, connect_func: Optional[Callable] = None):
        self._connect_func = connect_func or oracledb.connect_async
        self.connection = None
        self.config: Optional[ConnectionConfig] = None

    @property
    def connected(self) -> bool:
        return self.connection is not None

    def require_connection(self):
        if self.connection is None:
            raise NotConnectedError()
        return self.connection

    async def _release_previous(self) -> None:
        previous, self.connection = self.connection, None
        self.config = None
        if previous is None:
            return
        try:
            await previous.close()
        except Exception as e:
            logger.warning("Error closing previous connection: %s", e)

    async def connect(self, config: ConnectionConfig) -> str:
        """
        Connect using each candidate connect string in turn.

        Returns:
            The connect string that succeeded

        Raises:
            ConnectionFailure: every candidate failed, or the credentials were
                rejected (remaining candidates are then skipped)
        """
        await self._release_previous()

        last_error = None
        for attempt, build_dsn in enumerate(DSN_BUILDERS, 1):
            dsn = build_dsn(config)
            logger.info("Attempt %d - connect string: %s (user %s)", attempt, dsn, config.username)
            try:
                connection = await self._connect_func(
                    user=config.username,
                    password=config.password,
                    dsn=dsn,
                )
            except oracledb.Error as e:
                logger.warning("Attempt %d failed: %s", attempt, e)
                last_error = e
                if is_credentials_error(e):
                    break
                continue

            self.connection = connection
            self.config = config
            logger.info("Connected to %s as %s", config.server, config.username)
            return dsn

        raise ConnectionErrorClassifier.build_failure(last_error, config.hostname)

    async def disconnect(self) -> bool:
        """Close the held connection. Returns False if there was none."""
        connection, self.connection = self.connection, None
        self.config = None
        if connection is None:
            return False
        try:
            await connection.close()
        except oracledb.Error as e:
            raise QueryToolError(f"Disconnect error: {e}") from e
        logger.info("Disconnected")
        return True

    async def close(self) -> None:
        """Best-effort close used on process shutdown."""
        if self.connection is None:
            return
        logger.info("Closing Oracle connection")
        try:
            await self.disconnect()
        except Exception as e:
            logger.error("Error closing connection: %s", e)

    def status(self) -> dict:
        return {
            "connected": self.connected,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
