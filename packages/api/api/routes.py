"""API route definitions."""

import json

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from api.schemas import HealthResponse, InfoResponse, QueryRequest, ToolResponse
from explorer import SERVER_NAME, VERSION
from explorer.ExplorerService import ExplorerService
from explorer.models import ToolResult
from explorer.tools import TOOL_NAMES

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _service_dependency(request: Request) -> ExplorerService:
    """Retrieve the shared ExplorerService instance from app state."""
    return request.app.state.service


def _respond(result: ToolResult) -> JSONResponse:
    """Map a tool result onto an HTTP response.

    Success is 200, an unknown operation is 404 and any other failure is
    400; the body is the result envelope in every case.
    """
    if result.success:
        code = status.HTTP_200_OK
    elif result.error_kind == "UnknownOperation":
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content=result.to_dict())


# ---------------------------------------------------------------------------
# Health and service info
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
async def health_check(service: ExplorerService = Depends(_service_dependency)):
    """Liveness probe. Does not touch the database."""
    return HealthResponse(
        status="ok",
        message=f"{SERVER_NAME} is running",
        password_configured=service.config.password_configured,
    )


@router.get("/api/info", response_model=InfoResponse)
async def api_info():
    """Describe the service and its endpoints."""
    return InfoResponse(
        name=SERVER_NAME,
        version=VERSION,
        endpoints={
            "health": "GET /health",
            "info": "GET /api/info",
            "query": "POST /api/query",
            "tool": "POST /api/tool/{tool_name}",
        },
        tool_count=len(TOOL_NAMES),
        tools=TOOL_NAMES,
    )


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


@router.post("/api/query", response_model=ToolResponse)
async def execute_query(
    body: QueryRequest,
    service: ExplorerService = Depends(_service_dependency),
):
    """Run a read-only SELECT query."""
    result = await service.call_tool("execute_query", body.model_dump(exclude_none=True))
    return _respond(result)


@router.post("/api/tool/{tool_name}", response_model=ToolResponse)
async def call_tool(
    tool_name: str,
    request: Request,
    service: ExplorerService = Depends(_service_dependency),
):
    """Run any catalog operation with the JSON body as its arguments.

    An empty body means no arguments. The body is passed through as-is so
    that a non-object body is reported as ``InvalidArguments`` by the
    service rather than rejected by request parsing.
    """
    raw = await request.body()
    if not raw.strip():
        arguments: object = {}
    else:
        try:
            arguments = json.loads(raw)
        except json.JSONDecodeError:
            return _respond(ToolResult.fail("Request body must be valid JSON", "InvalidArguments"))

    result = await service.call_tool(tool_name, arguments)
    return _respond(result)
