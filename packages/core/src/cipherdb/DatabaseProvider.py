"""SQLCipher / SQLite database connection provider.

Opens a **read-only** connection to a database file that may be encrypted
with SQLCipher or may be a plain SQLite file, verifies that it is readable,
and guarantees the handle is closed when the caller is done with it.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from functools import partial
from pathlib import Path

import aiosqlite
import structlog
from sqlcipher3 import dbapi2 as sqlcipher

from cipherdb.errors import (
    DatabaseFileNotFound,
    InvalidPasswordOrCorrupt,
    VerificationFailed,
)

logger = structlog.get_logger(__name__)

# SQLCipher 3 defaults: 1024-byte pages, 64,000 PBKDF2 iterations,
# PBKDF2-HMAC-SHA1 key derivation and HMAC-SHA1 page authentication.
CIPHER_COMPATIBILITY = 3

# Touches the schema page, so a wrong key or a garbled file fails here
# instead of on the first real query.
VERIFICATION_QUERY = "SELECT count(*) FROM sqlite_master"

_SQLITE_NOTADB = 26
_NOT_A_DATABASE_MARKERS = ("file is not a database", "malformed")

_INVALID_KEY_MESSAGE = "Invalid password or database is corrupted"


def escape_key(key: str) -> str:
    """Escape a secret for embedding in a ``PRAGMA key`` literal."""
    return key.replace("\\", "\\\\").replace("'", "''")


def _is_not_a_database(error: Exception) -> bool:
    if getattr(error, "sqlite_errorcode", None) == _SQLITE_NOTADB:
        return True
    message = str(error).lower()
    return any(marker in message for marker in _NOT_A_DATABASE_MARKERS)


class DatabaseProvider:
    """Open verified, read-only connections to one database file.

    A provider holds only the path and the optional key. Every call to
    :meth:`connect` produces a fresh connection owned by the caller; nothing
    is pooled or reused between operations.
    """

    def __init__(self, db_path: str, key: str | None = None) -> None:
        """Remember the database location and secret.

        Args:
            db_path: Filesystem path to the database file.
            key: SQLCipher passphrase. ``None`` or whitespace-only means the
                file is treated as a plain SQLite database.
        """
        self._db_path = db_path
        self._key = key if key and key.strip() else None

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def encrypted(self) -> bool:
        return self._key is not None

    def __repr__(self) -> str:
        return f"DatabaseProvider(path={self._db_path!r}, encrypted={self.encrypted})"

    def _resolve(self) -> Path:
        try:
            resolved = Path(self._db_path).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise DatabaseFileNotFound(
                f"Database file not found: {self._db_path}"
            ) from e

        if not resolved.is_file():
            raise DatabaseFileNotFound(f"Database file not found: {self._db_path}")
        return resolved

    async def open(self) -> aiosqlite.Connection:
        """Open and verify a read-only connection.

        Returns:
            An open ``aiosqlite`` connection backed by SQLCipher.

        Raises:
            DatabaseFileNotFound: If the path is not an existing file.
            InvalidPasswordOrCorrupt: If a key was applied and the file
                still does not read as a database.
            VerificationFailed: For any other failure while opening or
                verifying the file.
        """
        resolved = self._resolve()

        connector = partial(
            sqlcipher.connect, f"{resolved.as_uri()}?mode=ro", uri=True
        )
        connection = aiosqlite.Connection(connector, iter_chunk_size=64)
        try:
            await connection
        except sqlcipher.Error as e:
            await self.close(connection)
            raise VerificationFailed(f"Failed to open database: {e}") from e

        try:
            if self._key is not None:
                await self._apply_key(connection)
            await self._verify(connection)
        except BaseException:
            await self.close(connection)
            raise

        logger.debug("database_opened", path=str(resolved), encrypted=self.encrypted)
        return connection

    async def _apply_key(self, connection: aiosqlite.Connection) -> None:
        # PRAGMA key cannot take bound parameters; the secret is embedded
        # as an escaped literal and never echoed in the error below.
        try:
            async with connection.execute(f"PRAGMA key = '{escape_key(self._key)}'"):
                pass
        except sqlcipher.Error as e:
            raise VerificationFailed("Failed to set encryption key") from e

        # Cipher settings attach to the keyed codec, so they follow the key.
        try:
            async with connection.execute(
                f"PRAGMA cipher_compatibility = {CIPHER_COMPATIBILITY}"
            ):
                pass
        except sqlcipher.Error as e:
            raise VerificationFailed(
                f"Failed to set SQLCipher {CIPHER_COMPATIBILITY} compatibility: {e}"
            ) from e

    async def _verify(self, connection: aiosqlite.Connection) -> None:
        try:
            async with connection.execute(VERIFICATION_QUERY) as cursor:
                await cursor.fetchone()
        except sqlcipher.Error as e:
            if self._key is not None and _is_not_a_database(e):
                raise InvalidPasswordOrCorrupt(_INVALID_KEY_MESSAGE) from e
            raise VerificationFailed(f"Failed to verify database: {e}") from e

    @staticmethod
    async def close(connection: aiosqlite.Connection | None) -> None:
        """Close a connection, best effort.

        Safe to call twice, with ``None``, or on a connection that never
        finished opening. Failures are logged, never raised.
        """
        if connection is None:
            return
        try:
            await connection.close()
        except Exception as e:  # noqa: BLE001
            logger.warning("close_failed", error=str(e))

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a verified connection and close it when the block exits."""
        connection = await self.open()
        try:
            yield connection
        finally:
            await self.close(connection)
