"""FastAPI application for the network-support log collector"""

import logging
import os
from contextlib import asynccontextmanager
from string import Template
from typing import Optional
from fastapi import FastAPI, HTTPException, status, Request, BackgroundTasks
from fastapi.responses import JSONResponse, FileResponse, HTMLResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from network_support.models import (
    LogJob,
    LogResource,
    LogCollection,
    ErrorResponse,
)
from network_support.log_manager import get_log_manager
from network_support.middleware import RequestIDMiddleware, get_request_id
from network_support.artifacts import (
    artifact_filename,
    build_download_url,
    delete_artifact_file,
    get_artifact_path,
)
from network_support.config import get_settings


VERSION = "0.1.0"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    Rebuilds the registry from the logs directory before the first request
    is served, and gives running collections a moment to finish on shutdown.
    """
    # Startup
    settings = get_settings()
    logging.getLogger().setLevel(settings.effective_log_level)
    logger.info(f"Starting log collector v{VERSION}, archives in {settings.logs_dir}")

    log_manager = get_log_manager()
    logger.info(f"{len(log_manager.registry)} logs known at startup")

    yield  # Application runs here

    # Shutdown
    pending = log_manager.runner.pending()
    if pending:
        logger.info(f"Waiting for {pending} running collections")
        await log_manager.runner.wait_idle(timeout=5.0)
    logger.info("Program exiting")


# Create FastAPI app
app = FastAPI(
    title="Network Support Log Collector API",
    description="Collects diagnostic logs of this host into downloadable archives on demand",
    version=VERSION,
    lifespan=lifespan
)

# Wire up middleware
# Use environment variable directly to avoid loading full settings at import time
cors_allowed_origins = os.getenv("CORS_ALLOWED_ORIGINS", r".*")
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=cors_allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
    allow_credentials=True
)
app.add_middleware(RequestIDMiddleware)


# ============================================================================
# Exception Handlers
# ============================================================================


def _error_content(status_code: int, error: str, message: str, request_id: str, details=None) -> dict:
    return ErrorResponse(
        status=status_code,
        error=error,
        message=message,
        request_id=request_id,
        details=details,
    ).model_dump(exclude_none=True)


@app.exception_handler(StarletteHTTPException)
async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handle Starlette HTTP exceptions (e.g., 404 for unknown routes).

    Ensures consistent error format with request_id.
    """
    request_id = get_request_id(request)

    # FastAPI's HTTPException subclasses Starlette's; detail may already be ours
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        detail.setdefault("type", "error")
        detail.setdefault("status", exc.status_code)
        detail.setdefault("request_id", request_id)
        return JSONResponse(
            status_code=exc.status_code,
            content=detail,
            headers={"X-Request-ID": request_id}
        )

    if exc.status_code == 404:
        error_code = "NOT_FOUND"
    elif exc.status_code == 405:
        error_code = "METHOD_NOT_ALLOWED"
    else:
        error_code = "HTTP_ERROR"

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(exc.status_code, error_code, str(exc.detail or "An error occurred"), request_id),
        headers={"X-Request-ID": request_id}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors (422 Unprocessable Entity).

    Ensures consistent error format with request_id.
    """
    request_id = get_request_id(request)

    # Extract first error for simplicity
    first_error = exc.errors()[0] if exc.errors() else {}
    field = " -> ".join(str(loc) for loc in first_error.get("loc", []))
    message = first_error.get("msg", "Validation error")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_content(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            f"Validation failed for {field}: {message}" if field else message,
            request_id,
            details=jsonable_errors(exc),
        ),
        headers={"X-Request-ID": request_id}
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors without the non-serializable 'ctx'/'input' parts"""
    return [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


# ============================================================================
# Helpers
# ============================================================================


def _to_resource(log: LogJob, request: Request) -> LogResource:
    """Render a registry record for the caller, with URLs built from its base URL"""
    download_url = build_download_url(str(request.base_url), artifact_filename(log.artifact_name))
    return LogResource(
        id=log.id,
        state=log.state,
        error=log.error,
        created_at=log.created_at,
        download_url=download_url,
        links={
            "self": str(request.url_for("get_log", log_id=log.id)),
            "download": download_url,
        },
    )


def _require_log_id(log_id: Optional[str], request_id: str) -> str:
    """Reject blank path parameters with a 400"""
    if log_id is None or not log_id.strip():
        logger.error(f"Missing log id in path (request_id={request_id})")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "VALIDATION_ERROR",
                "message": "Missing parameter log id",
                "request_id": request_id
            }
        )
    return log_id


def _log_not_found(log_id: str, request_id: str) -> HTTPException:
    logger.error(f"Log with id {log_id} not found (request_id={request_id})")
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error": "NOT_FOUND",
            "message": "log not found",
            "request_id": request_id
        }
    )


# ============================================================================
# Home page
# ============================================================================


HOME_PAGE_TEMPLATE = Template("""<html>
  <head>
    <title>Logs Collector</title>
    <script type="text/javascript">
      var logsUrl = "./static/logs/$filename";
      function checkAndDownloadLogs() {
          var timerVar;
          var logsReady = false;

          function checkURL(urlToCheck) {
              var request = new XMLHttpRequest();
              request.open('HEAD', urlToCheck, true);
              request.onreadystatechange = function() {
                  if (request.readyState === 4) {
                      if (request.status === 200) {
                          console.log("logs are ready!");
                          logsReady = true;
                      } else {
                          console.log("logs are not ready yet");
                          logsReady = false;
                      }
                  }
              };
              request.send();
          }

          function checkIfLogsExist() {
              checkURL(logsUrl);
              if (logsReady) {
                  clearInterval(timerVar);
                  window.location.replace(logsUrl);
              }
          }
          timerVar = setInterval(checkIfLogsExist, 1000);
      }

      window.addEventListener("load", checkAndDownloadLogs, false);
    </script>
  </head>
  <body>
    <h1>Logs Collector</h1>
    <p>Please wait while the logs are being collected, this will take a few minutes.</p>
    <p>Once ready, the download will start automatically.</p>
    <p>Logs should be available <a href="./static/logs/$filename">here</a>.</p>
  </body>
</html>
""")


@app.get("/", response_class=HTMLResponse)
async def home_page(request: Request):
    """
    Start a collection and return a page that downloads the archive when ready.
    """
    request_id = get_request_id(request)
    log = get_log_manager().create_log()
    logger.info(f"Home page started log {log.id} (request_id={request_id})")
    return HTMLResponse(HOME_PAGE_TEMPLATE.substitute(filename=artifact_filename(log.artifact_name)))


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy"}


@app.get("/v1")
async def api_version(request: Request):
    """API version document"""
    return {
        "id": "v1",
        "type": "apiVersion",
        "version": VERSION,
        "links": {
            "self": str(request.url_for("api_version")),
            "logs": str(request.url_for("list_logs")),
        },
    }


# ============================================================================
# Log Endpoints
# ============================================================================


@app.get(
    "/v1/logs",
    response_model=LogCollection,
    status_code=status.HTTP_200_OK
)
async def list_logs(request: Request):
    """
    List all known logs.

    Download URLs are recomputed for every request.
    """
    request_id = get_request_id(request)
    logs = get_log_manager().list_logs()
    logger.debug(f"Listing {len(logs)} logs (request_id={request_id})")
    return LogCollection(data=[_to_resource(log, request) for log in logs])


@app.post(
    "/v1/logs",
    response_model=LogResource,
    status_code=status.HTTP_201_CREATED
)
async def create_log(request: Request):
    """
    Start a new log collection.

    Returns immediately with the log in state "creating"; collection runs
    in the background. Poll GET /v1/logs/{log_id} until it is "created".
    """
    request_id = get_request_id(request)
    log = get_log_manager().create_log()
    logger.info(f"Log {log.id} created and collection started (request_id={request_id})")
    return _to_resource(log, request)


@app.get(
    "/v1/logs/{log_id}",
    response_model=LogResource,
    status_code=status.HTTP_200_OK,
    responses={404: {"description": "Log not found", "model": ErrorResponse}}
)
async def get_log(log_id: str, request: Request):
    """Get one log by id"""
    request_id = get_request_id(request)
    log_id = _require_log_id(log_id, request_id)
    logger.debug(f"Load log: {log_id} (request_id={request_id})")

    log = get_log_manager().get_log(log_id)
    if log is None:
        raise _log_not_found(log_id, request_id)

    return _to_resource(log, request)


@app.delete(
    "/v1/logs/{log_id}",
    response_model=LogResource,
    status_code=status.HTTP_200_OK,
    responses={404: {"description": "Log not found", "model": ErrorResponse}}
)
async def delete_log(log_id: str, request: Request, background_tasks: BackgroundTasks):
    """
    Delete a log.

    The log disappears from the API immediately; its archive is removed
    after the response is sent. A collection still running is not stopped.
    """
    request_id = get_request_id(request)
    log_id = _require_log_id(log_id, request_id)

    log = get_log_manager().delete_log(log_id)
    if log is None:
        raise _log_not_found(log_id, request_id)

    background_tasks.add_task(delete_artifact_file, log.artifact_name)
    logger.info(f"Log {log_id} deleted, archive removal scheduled (request_id={request_id})")
    return _to_resource(log, request)


@app.api_route(
    "/static/logs/{filename}",
    methods=["GET", "HEAD"],
    responses={
        200: {"description": "Log archive download"},
        404: {"description": "Archive not found", "model": ErrorResponse}
    }
)
async def download_archive(filename: str, request: Request):
    """Serve a collected archive from the logs directory"""
    request_id = get_request_id(request)

    file_path = get_artifact_path(filename)
    if not file_path:
        logger.debug(f"Archive {filename} not available (request_id={request_id})")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "NOT_FOUND",
                "message": f"Archive {filename} not found",
                "request_id": request_id
            }
        )

    return FileResponse(
        file_path,
        filename=file_path.name,
        media_type="application/octet-stream"
    )
