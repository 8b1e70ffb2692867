"""Identifier sanitizer.

The only sanctioned way to turn a table or column name into SQL text.
Caller-supplied names must match a conservative identifier pattern before
they are quoted; names read back from the catalog are already known to the
database and are only delimiter-escaped.
"""

import re

from cipherdb.errors import InvalidIdentifier

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def sanitize_identifier(name: object) -> str:
    """Return ``name`` unchanged if it is a safe identifier.

    Raises:
        InvalidIdentifier: If ``name`` is empty, not a string, or contains
            anything other than letters, digits, ``_`` and ``$`` (or starts
            with a digit).
    """
    if not name or not isinstance(name, str):
        raise InvalidIdentifier("Invalid identifier: must be a non-empty string")

    if not _IDENTIFIER_PATTERN.match(name):
        raise InvalidIdentifier(
            f'Invalid identifier: "{name}" contains invalid characters. '
            "Only letters, numbers, underscores, and dollar signs are allowed."
        )
    return name


def quote_identifier(name: object) -> str:
    """Sanitize a caller-supplied identifier and wrap it in double quotes."""
    return quote_catalog_identifier(sanitize_identifier(name))


def quote_catalog_identifier(name: str) -> str:
    """Quote a name that was read from the database catalog.

    Embedded double quotes are doubled so the result is always a single,
    closed identifier token.
    """
    return '"' + name.replace('"', '""') + '"'
