from fastapi import FastAPI, HTTPException, Depends, Request, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from contextlib import asynccontextmanager
from typing import List, Dict, Any, Optional
import secrets
import os
from loguru import logger

from .domain.app_constants import (
    APP_NAME, APP_VERSION, ALLOWED_HOSTS, SESSION_TOKEN_HEADER, SESSION_TOKEN_SECRET,
)
from .domain.errors import CorruptDocumentError, MissingSecretError, PathTraversalError
from .domain.models import HealthResponse, RuntimeResponse, DocumentResponse, StatusResponse
from .infrastructure.documents import split_document_path
from .infrastructure.history import LaunchRecord
from .composition_root import AppServices

API_KEY_HEADER = APIKeyHeader(name=SESSION_TOKEN_HEADER, auto_error=False)


def create_app(services: AppServices) -> FastAPI:
    """
    Build the HTTP surface for one set of services.

    Nothing here binds a socket: tests drive the returned app in-process,
    and ProcessLauncher.serve() runs it on the launcher's listener.
    """
    configuration = services.configuration

    def require_local(request: Request) -> None:
        client_host = request.client.host if request.client else ""
        if client_host not in ALLOWED_HOSTS:
            raise HTTPException(status_code=403, detail="Access denied: Non-local requests forbidden")

    def verify_session_token(token: Optional[str] = Depends(API_KEY_HEADER)) -> bool:
        expected = configuration.secrets.require(SESSION_TOKEN_SECRET)
        if not token or not secrets.compare_digest(token, expected):
            raise HTTPException(status_code=401, detail="Invalid session token")
        return True

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        pid = os.getpid()
        logger.debug(f"[{pid}] LIFESPAN START")
        yield
        logger.debug(f"[{pid}] LIFESPAN STOP")

    app = FastAPI(title=f"{APP_NAME} Core", version=APP_VERSION, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=configuration.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
    )

    @app.exception_handler(MissingSecretError)
    async def missing_secret_handler(request: Request, exc: MissingSecretError):
        logger.warning(exc.message)
        return JSONResponse(status_code=503, content={"detail": exc.message})

    @app.exception_handler(PathTraversalError)
    async def path_traversal_handler(request: Request, exc: PathTraversalError):
        return JSONResponse(status_code=400, content={"detail": "Path escapes the data directory"})

    @app.exception_handler(CorruptDocumentError)
    async def corrupt_document_handler(request: Request, exc: CorruptDocumentError):
        logger.warning(exc.message)
        return JSONResponse(status_code=409, content={"detail": "Stored document is not valid JSON"})

    # --- Public Routes (no auth required) ---

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        return {"status": "ok", "version": APP_VERSION, "state": services.launcher.state.value}

    @app.get("/runtime", response_model=RuntimeResponse)
    def get_runtime():
        return {
            "host": configuration.host,
            "backend_port": configuration.backend_port,
            "peer_port": configuration.peer_port,
            "data_dir": str(configuration.data_dir),
            "allowed_origins": configuration.allowed_origins,
            "secrets": configuration.secrets.names(),
        }

    @app.get("/launches", response_model=List[LaunchRecord])
    def get_launches(limit: int = Query(20, ge=1, le=100)):
        return services.journal.get_recent(limit)

    @app.get("/documents", response_model=DocumentResponse)
    def get_document(path: str = Query(..., min_length=1)):
        try:
            document = services.documents.read(split_document_path(path))
        except IsADirectoryError:
            raise HTTPException(status_code=400, detail="Path names the data directory itself")
        if document is None:
            raise HTTPException(status_code=404, detail="Document not found")
        return {"path": path, "document": document}

    # --- Protected Routes (require session token secret) ---

    @app.put("/documents", response_model=DocumentResponse, dependencies=[Depends(verify_session_token)])
    def put_document(document: Dict[str, Any], path: str = Query(..., min_length=1)):
        try:
            services.documents.write(split_document_path(path), document)
        except IsADirectoryError:
            raise HTTPException(status_code=400, detail="Path names the data directory itself")
        return {"path": path, "document": document}

    @app.post("/shutdown", response_model=StatusResponse,
              dependencies=[Depends(require_local), Depends(verify_session_token)])
    def shutdown_application():
        """Asks the launcher to stop serving; the entry point then releases the port."""
        if services.launcher.request_shutdown():
            logger.debug("Shutdown requested via API")
            return {"status": "shutting_down"}
        return {"status": "not_serving"}

    return app
