"""Argument validation for operation calls.

Every check runs before a connection is opened, so a bad call never
touches the database file.
"""

from collections.abc import Mapping
from typing import Any

from cipherdb.errors import InvalidArguments, InvalidParameter
from cipherdb.identifiers import sanitize_identifier

LIMIT_BOUNDS = (1, 1000)
OFFSET_BOUNDS = (0, 1_000_000)
MAX_SAMPLE_SIZE_BOUNDS = (1, 1_000_000)
TIMEOUT_MS_BOUNDS = (1, 600_000)

DEFAULT_LIMIT = 10
DEFAULT_OFFSET = 0
DEFAULT_MAX_SAMPLE_SIZE = 10_000
DEFAULT_TIMEOUT_MS = 30_000


def require_arguments(arguments: object) -> dict[str, Any]:
    """Return the argument mapping, rejecting anything that is not one."""
    if arguments is None or not isinstance(arguments, Mapping):
        raise InvalidArguments("Arguments must be an object")
    return dict(arguments)


def bounded_int(
    arguments: Mapping[str, Any],
    name: str,
    default: int,
    bounds: tuple[int, int],
) -> int:
    """Read an optional integer argument and check it against ``bounds``.

    Integral floats (``10.0``) are accepted; booleans, strings and
    fractional numbers are not.

    Raises:
        InvalidParameter: If the value is non-numeric or out of range.
    """
    value = arguments.get(name)
    if value is None:
        return default

    minimum, maximum = bounds
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParameter(name, f"{name} must be a number")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidParameter(name, f"{name} must be an integer")
        value = int(value)
    if not minimum <= value <= maximum:
        raise InvalidParameter(
            name, f"{name} must be between {minimum} and {maximum}, got {value}"
        )
    return value


def required_string(arguments: Mapping[str, Any], name: str) -> str:
    value = arguments.get(name)
    if not isinstance(value, str) or not value.strip():
        raise InvalidArguments(f"Missing required argument: {name}")
    return value


def optional_string(arguments: Mapping[str, Any], name: str) -> str | None:
    value = arguments.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidArguments(f"{name} must be a string")
    return value or None


def string_list(
    arguments: Mapping[str, Any], name: str, *, required: bool = False
) -> list[str] | None:
    """Read an argument that may be one string or a list of strings.

    Returns:
        The values as a list, or ``None`` when the argument is absent and
        not required.
    """
    value = arguments.get(name)
    if value is None:
        if required:
            raise InvalidArguments(f"Missing required argument: {name}")
        return None
    if isinstance(value, str):
        return [value]
    if (
        isinstance(value, list)
        and value
        and all(isinstance(item, str) for item in value)
    ):
        return list(value)
    raise InvalidArguments(f"{name} must be a string or a non-empty array of strings")


def table_name(arguments: Mapping[str, Any], *, required: bool = True) -> str | None:
    """Read and sanitize the ``table_name`` argument.

    Raises:
        InvalidIdentifier: If the name is missing (when required) or unsafe.
    """
    value = arguments.get("table_name")
    if not required and not value:
        return None
    return sanitize_identifier(value)
