"""Plain-text rendering of operation results for the REPL."""

from typing import Any

MAX_CELL_WIDTH = 40


def _cell(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<blob {len(bytes(value))} bytes>"
    text = str(value).replace("\n", " ")
    if len(text) > MAX_CELL_WIDTH:
        text = text[: MAX_CELL_WIDTH - 3] + "..."
    return text


def format_grid(columns: list[str], rows: list[dict[str, Any]]) -> str:
    """Render rows as a bordered text grid.

    Example::

        +----+-------+
        | id | name  |
        +----+-------+
        | 1  | Alice |
        +----+-------+
    """
    if not columns:
        return "(no columns)"

    cells = [[_cell(row.get(c)) for c in columns] for row in rows]
    widths = [
        max([len(name)] + [len(line[i]) for line in cells])
        for i, name in enumerate(columns)
    ]

    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def render(values: list[str]) -> str:
        return "| " + " | ".join(v.ljust(w) for v, w in zip(values, widths)) + " |"

    lines = [border, render(columns), border]
    lines += [render(line) for line in cells]
    lines.append(border)
    return "\n".join(lines)


def format_records(records: list[dict[str, Any]]) -> str:
    """Render a list of flat mappings as a grid keyed by the first record."""
    if not records:
        return "(no rows)"
    return format_grid(list(records[0]), records)


def format_mapping(mapping: dict[str, Any]) -> str:
    width = max((len(key) for key in mapping), default=0)
    return "\n".join(f"{key.ljust(width)} : {_cell(value)}" for key, value in mapping.items())
