import logging
import os
import threading
import webbrowser
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from oraquery.config import Settings
from oraquery.connection import ConnectionConfig, OracleSession
from oraquery.diagnostics import ping_host
from oraquery.errors import QueryToolError
from oraquery.executor import QueryExecutor
from oraquery.metadata import MetadataReader
from oraquery.models import (
    ConnectRequest,
    ConnectResponse,
    DescribeRequest,
    DescribeResponse,
    DiagnoseRequest,
    DiagnoseResponse,
    ExecuteRequest,
    ExecuteResponse,
    MessageResponse,
    StatusResponse,
    TablesResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_session(request: Request) -> OracleSession:
    return request.app.state.session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.post("/connect")
async def connect(
    request: ConnectRequest, session: OracleSession = Depends(get_session)
) -> ConnectResponse:
    config = ConnectionConfig(
        hostname=request.hostname,
        port=request.port,
        service_name=request.service_name,
        username=request.username,
        password=request.password,
    )
    await session.connect(config)
    return ConnectResponse(
        message="Connected to Oracle Database",
        server=config.server,
        service=config.service_name,
        user=config.username,
    )


@router.post("/disconnect")
async def disconnect(session: OracleSession = Depends(get_session)) -> MessageResponse:
    await session.disconnect()
    return MessageResponse(success=True, message="Disconnected from Oracle Database")


@router.post("/execute")
async def execute_query(
    request: ExecuteRequest, session: OracleSession = Depends(get_session)
) -> ExecuteResponse:
    result = await QueryExecutor(session).execute(request.query, request.page, request.page_size)
    return ExecuteResponse(
        results=result.rows,
        total_count=result.total_count,
        page=result.page,
        page_size=result.page_size,
    )


@router.get("/tables")
async def list_tables(session: OracleSession = Depends(get_session)) -> TablesResponse:
    return TablesResponse(tables=await MetadataReader(session).list_tables())


@router.post("/describe")
async def describe_table(
    request: DescribeRequest, session: OracleSession = Depends(get_session)
) -> DescribeResponse:
    descriptor = await MetadataReader(session).describe(request.table)
    return DescribeResponse(
        owner=descriptor.owner,
        table=descriptor.table_name,
        columns=descriptor.columns,
    )


@router.get("/status")
async def status(session: OracleSession = Depends(get_session)) -> StatusResponse:
    return StatusResponse(**session.status())


@router.post("/diagnose")
async def diagnose(
    request: DiagnoseRequest, settings: Settings = Depends(get_settings)
) -> DiagnoseResponse:
    result = await ping_host(request.hostname, timeout=settings.ping_timeout)
    return DiagnoseResponse(
        hostname=request.hostname,
        port=request.port,
        ping_success=result.success,
        ping_result=result.output,
        suggestions=result.suggestions,
    )


async def query_tool_error_handler(request: Request, exc: QueryToolError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({str(error["loc"][-1]) for error in exc.errors() if error.get("loc")})
    message = "Invalid or missing fields: " + ", ".join(fields) if fields else "Invalid request"
    return JSONResponse(status_code=400, content={"success": False, "message": message})


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.session.close()


def create_app(settings: Optional[Settings] = None, session: Optional[OracleSession] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Oracle Query Tool", lifespan=lifespan)
    app.state.settings = settings
    app.state.session = session or OracleSession()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(QueryToolError, query_tool_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)

    # Browser UI, served from the static directory when it exists
    if os.path.isdir(settings.static_dir):
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app


app = create_app()


def _open_browser(url: str) -> None:
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.warning("Could not open browser (%s); go to %s", e, url)
        return
    if not opened:
        logger.warning("Could not open browser automatically; go to %s", url)


def main() -> None:
    import uvicorn

    settings = app.state.settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Oracle Query Tool available at %s", settings.url)

    if settings.open_browser:
        threading.Timer(1.0, _open_browser, args=(settings.url,)).start()

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level)


# Entry point for manual testing
if __name__ == "__main__":
    main()
