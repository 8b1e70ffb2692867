"""Pydantic request/response models for the API."""

from typing import Any

from pydantic import BaseModel


class QueryRequest(BaseModel):
    """Body for the query endpoint."""

    query: str
    database_path: str | None = None


class ToolResponse(BaseModel):
    """Envelope returned by every operation endpoint.

    ``data`` and ``message`` are set on success, ``error`` and
    ``error_kind`` on failure.
    """

    success: bool
    data: Any = None
    message: str | None = None
    error: str | None = None
    error_kind: str | None = None


class HealthResponse(BaseModel):
    status: str
    message: str
    password_configured: bool


class InfoResponse(BaseModel):
    """Service description for ``GET /api/info``."""

    name: str
    version: str
    endpoints: dict[str, str]
    tool_count: int
    tools: list[str]
