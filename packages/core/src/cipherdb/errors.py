"""Error taxonomy for the introspection engine.

Every failure the engine can report is one of these classes. The ``kind``
attribute is the stable, transport-facing name of the failure; messages are
human readable and must never contain the database secret.
"""


class ExplorerError(Exception):
    """Base class for all classified engine failures."""

    kind = "ExplorerError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Arguments and parameters
# ---------------------------------------------------------------------------


class InvalidArguments(ExplorerError):
    kind = "InvalidArguments"


class InvalidParameter(ExplorerError):
    kind = "InvalidParameter"

    def __init__(self, parameter: str, message: str) -> None:
        super().__init__(message)
        self.parameter = parameter


class MissingDatabasePath(ExplorerError):
    kind = "MissingDatabasePath"


class UnknownOperation(ExplorerError):
    kind = "UnknownOperation"


# ---------------------------------------------------------------------------
# Query classifier and identifier sanitizer
# ---------------------------------------------------------------------------


class InvalidQuery(ExplorerError, ValueError):
    kind = "InvalidQuery"


class WriteQueryRejected(ExplorerError, ValueError):
    kind = "WriteQueryRejected"


class InvalidIdentifier(ExplorerError, ValueError):
    kind = "InvalidIdentifier"


# ---------------------------------------------------------------------------
# Connection manager
# ---------------------------------------------------------------------------


class DatabaseFileNotFound(ExplorerError):
    kind = "FileNotFound"


class VerificationFailed(ExplorerError):
    kind = "VerificationFailed"


class InvalidPasswordOrCorrupt(ExplorerError):
    kind = "InvalidPasswordOrCorrupt"


# ---------------------------------------------------------------------------
# Introspection and execution
# ---------------------------------------------------------------------------


class TableNotFound(ExplorerError):
    kind = "TableNotFound"


class ColumnNotFound(ExplorerError):
    kind = "ColumnNotFound"

    def __init__(self, message: str, columns: list[str] | None = None) -> None:
        super().__init__(message)
        self.columns = columns or []


class InfoUnavailable(ExplorerError):
    kind = "InfoUnavailable"


class QueryFailed(ExplorerError):
    kind = "QueryFailed"


class OperationTimeout(ExplorerError):
    kind = "OperationTimeout"
