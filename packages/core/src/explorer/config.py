"""Process-wide configuration.

Configuration is an explicit value: the front ends build one with
:meth:`ExplorerConfig.from_env` at start-up and hand it to the service,
while tests construct it directly.
"""

import os
from dataclasses import dataclass, field

import structlog
from dotenv import find_dotenv, load_dotenv

from cipherdb.errors import MissingDatabasePath

logger = structlog.get_logger(__name__)

DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 3000


def _parse_port(raw: str | None) -> int:
    if not raw:
        return DEFAULT_API_PORT
    try:
        return int(raw)
    except ValueError:
        logger.warning("invalid_api_port", value=raw, fallback=DEFAULT_API_PORT)
        return DEFAULT_API_PORT


@dataclass(frozen=True)
class ExplorerConfig:
    """Settings shared by every operation.

    Attributes:
        database_path: Default database file, used when a call does not
            name one.
        password: SQLCipher secret. Never part of ``repr`` and never
            accepted from request parameters.
        log_level: Minimum level for structured logs.
        log_format: ``json`` or ``console``.
        api_host: Bind address for the HTTP front end.
        api_port: Port for the HTTP front end.
    """

    database_path: str | None = None
    password: str | None = field(default=None, repr=False)
    log_level: str = "INFO"
    log_format: str = "json"
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT

    @classmethod
    def from_env(cls) -> "ExplorerConfig":
        """Build a configuration from ``.env`` and the process environment."""
        load_dotenv(find_dotenv(usecwd=True))
        return cls(
            database_path=os.environ.get("SQLCIPHER_DATABASE_PATH") or None,
            password=os.environ.get("SQLCIPHER_PASSWORD") or None,
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_format=os.environ.get("LOG_FORMAT", "json").lower(),
            api_host=os.environ.get("API_HOST", DEFAULT_API_HOST),
            api_port=_parse_port(os.environ.get("API_PORT")),
        )

    @property
    def password_configured(self) -> bool:
        return bool(self.password and self.password.strip())

    def resolve_database_path(self, provided: object = None) -> str:
        """Pick the database for one call.

        The call's own path wins, then the configured default.

        Raises:
            MissingDatabasePath: If neither is available.
        """
        if isinstance(provided, str) and provided.strip():
            return provided
        if self.database_path:
            return self.database_path
        raise MissingDatabasePath(
            "Database path is required. Either provide database_path "
            "or set SQLCIPHER_DATABASE_PATH."
        )

    def warnings(self) -> list[str]:
        notices = []
        if not self.password_configured:
            notices.append(
                "SQLCIPHER_PASSWORD is not set; databases are opened as plain SQLite files"
            )
        if not self.database_path:
            notices.append(
                "SQLCIPHER_DATABASE_PATH is not set; every call must pass database_path"
            )
        return notices
