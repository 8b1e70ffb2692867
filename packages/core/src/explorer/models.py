"""Result envelope returned by every operation."""

import base64
from dataclasses import dataclass
from typing import Any


def to_jsonable(value: Any) -> Any:
    """Convert engine results into JSON-compatible values.

    Objects exposing ``to_dict`` are expanded, and binary values become
    ``{"$blob": <base64>, "size": n}``.
    """
    if hasattr(value, "to_dict"):
        return to_jsonable(value.to_dict())
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        return {"$blob": base64.b64encode(raw).decode("ascii"), "size": len(raw)}
    return value


@dataclass
class ToolResult:
    """Outcome of one operation call.

    Attributes:
        success: Whether the operation completed.
        data: Operation-specific payload on success.
        message: Short human-readable summary on success.
        error: Human-readable failure message, scrubbed of the secret.
        error_kind: Stable failure classification, e.g. ``TableNotFound``.
    """

    success: bool
    data: Any = None
    message: str | None = None
    error: str | None = None
    error_kind: str | None = None

    @classmethod
    def ok(cls, data: Any, message: str | None = None) -> "ToolResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, error_kind: str) -> "ToolResult":
        return cls(success=False, error=error, error_kind=error_kind)

    def to_dict(self) -> dict:
        if self.success:
            return {
                "success": True,
                "data": to_jsonable(self.data),
                "message": self.message,
            }
        return {"success": False, "error": self.error, "error_kind": self.error_kind}
