"""design-kb REST API.

Exposes the same operations as the MCP server over HTTP. Every response is a
JSON envelope: ``{success, message, data, timestamp}`` on success and
``{error, message, timestamp}`` on failure.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import messages
from .config import API_BASE_PATH, SERVER_NAME, SERVER_VERSION, Settings
from .errors import ConfigError, ValidationError
from .logging_config import configure_logging
from .services import KnowledgeBase, utc_timestamp

logger = logging.getLogger(__name__)

ENDPOINTS = {
    f"POST {API_BASE_PATH}/features": "Add or update a feature definition",
    f"DELETE {API_BASE_PATH}/features/:name": "Delete a feature definition",
    f"POST {API_BASE_PATH}/terms": "Add or update a ubiquitous-language term",
    f"DELETE {API_BASE_PATH}/terms/:name": "Delete a ubiquitous-language term",
    f"POST {API_BASE_PATH}/details": "Get full records by name",
    f"GET {API_BASE_PATH}/resources/features": "List feature definitions",
    f"GET {API_BASE_PATH}/resources/terms": "List ubiquitous-language terms",
    f"GET {API_BASE_PATH}/resources/statistics": "Get statistics",
    f"GET {API_BASE_PATH}/health": "Health check",
}


# ============================================================================
# Envelopes
# ============================================================================


def success_response(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "message": message,
            "data": data,
            "timestamp": utc_timestamp(),
        },
    )


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "timestamp": utc_timestamp()},
    )


def _validation_failed(message: str) -> JSONResponse:
    return error_response(400, "Validation Error", message)


def _execution_failed(error: Exception) -> JSONResponse:
    """Entity validation failures are the client's fault; anything else is ours."""
    if isinstance(error, ValidationError):
        return _validation_failed(error.message)
    return error_response(500, "Execution Error", error.message)


def _repository_failed(error: Exception) -> JSONResponse:
    return error_response(500, "Repository Error", error.message)


def _section(body: Any, key: str) -> Any:
    return body.get(key) if isinstance(body, dict) else None


# ============================================================================
# Dependencies
# ============================================================================


async def get_knowledge_base(request: Request) -> KnowledgeBase:
    """Return the app's knowledge base, opening it if lifespan did not run."""
    state = request.app.state
    if getattr(state, "kb", None) is None:
        state.kb = KnowledgeBase.open(state.settings.data_file)
    return state.kb


router = APIRouter(prefix=API_BASE_PATH)


# ============================================================================
# Features
# ============================================================================


@router.post("/features")
async def add_or_update_feature(
    body: Any = Body(None),
    kb: KnowledgeBase = Depends(get_knowledge_base),
) -> JSONResponse:
    """Add or update a feature. Body: ``{"feature": <feature record>}``."""
    feature = _section(body, "feature")

    checked = kb.add_or_update_feature.validate_input(feature)
    if not checked.ok:
        return _validation_failed(checked.error.message)

    result = await kb.add_or_update_feature.execute(feature)
    if not result.ok:
        return _execution_failed(result.error)

    name = feature["feature"]["name"].strip()
    is_update = result.value.is_update
    return success_response(
        messages.feature_saved(name, is_update),
        {"featureName": name, "isUpdate": is_update},
        status_code=200 if is_update else 201,
    )


@router.delete("/features/{name}")
async def delete_feature(
    name: str,
    kb: KnowledgeBase = Depends(get_knowledge_base),
) -> JSONResponse:
    checked = kb.delete_feature.validate_input(name)
    if not checked.ok:
        return _validation_failed(checked.error.message)

    result = await kb.delete_feature.execute(name)
    if not result.ok:
        return _execution_failed(result.error)
    if not result.value.found:
        return error_response(404, "Not Found", messages.feature_not_found(name))

    return success_response(
        messages.feature_deleted(name),
        {"featureName": name, "deleted": True},
    )


# ============================================================================
# Terms
# ============================================================================


@router.post("/terms")
async def add_or_update_term(
    body: Any = Body(None),
    kb: KnowledgeBase = Depends(get_knowledge_base),
) -> JSONResponse:
    """Add or update a term. Body: ``{"term": <term record>}``."""
    term = _section(body, "term")

    checked = kb.add_or_update_term.validate_input(term)
    if not checked.ok:
        return _validation_failed(checked.error.message)

    result = await kb.add_or_update_term.execute(term)
    if not result.ok:
        return _execution_failed(result.error)

    name = term["term"]["name"].strip()
    is_update = result.value.is_update
    return success_response(
        messages.term_saved(name, is_update),
        {"termName": name, "isUpdate": is_update},
        status_code=200 if is_update else 201,
    )


@router.delete("/terms/{name}")
async def delete_term(
    name: str,
    kb: KnowledgeBase = Depends(get_knowledge_base),
) -> JSONResponse:
    checked = kb.delete_term.validate_input(name)
    if not checked.ok:
        return _validation_failed(checked.error.message)

    result = await kb.delete_term.execute(name)
    if not result.ok:
        return _execution_failed(result.error)
    if not result.value.found:
        return error_response(404, "Not Found", messages.term_not_found(name))

    return success_response(
        messages.term_deleted(name),
        {"termName": name, "deleted": True},
    )


# ============================================================================
# Details and resources
# ============================================================================


@router.post("/details")
async def get_details(
    body: Any = Body(None),
    kb: KnowledgeBase = Depends(get_knowledge_base),
) -> JSONResponse:
    """Full records by name. Body: ``{"featureNames": [...], "termNames": [...]}``."""
    if body is not None and not isinstance(body, dict):
        return _validation_failed("Request body must be a JSON object")
    feature_names = _section(body, "featureNames")
    term_names = _section(body, "termNames")

    checked = kb.get_details.validate_input(feature_names, term_names)
    if not checked.ok:
        return _validation_failed(checked.error.message)

    result = await kb.get_details.execute(feature_names, term_names)
    if not result.ok:
        return _execution_failed(result.error)

    return success_response(messages.DETAILS_RETRIEVED, result.value.to_wire())


@router.get("/resources/features")
async def list_features(kb: KnowledgeBase = Depends(get_knowledge_base)) -> JSONResponse:
    result = await kb.features.get_list()
    if not result.ok:
        return _repository_failed(result.error)
    return success_response(messages.FEATURES_LISTED, [s.to_wire() for s in result.value])


@router.get("/resources/terms")
async def list_terms(kb: KnowledgeBase = Depends(get_knowledge_base)) -> JSONResponse:
    result = await kb.terms.get_list()
    if not result.ok:
        return _repository_failed(result.error)
    return success_response(messages.TERMS_LISTED, [s.to_wire() for s in result.value])


@router.get("/resources/statistics")
async def get_statistics(kb: KnowledgeBase = Depends(get_knowledge_base)) -> JSONResponse:
    result = await kb.statistics()
    if not result.ok:
        return _repository_failed(result.error)
    return success_response(messages.STATISTICS_RETRIEVED, result.value.to_wire())


@router.get("/health")
async def health_check(kb: KnowledgeBase = Depends(get_knowledge_base)) -> JSONResponse:
    """Health check: both repositories must be able to read the document."""
    health = await kb.health()
    healthy = health["status"] == "healthy"
    if not healthy:
        logger.warning(f"Health check failed: {health['details']}")
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": health["status"],
            "timestamp": utc_timestamp(),
            "details": health["details"],
            "version": health["version"],
            "uptime": health["uptime"],
        },
    )


# ============================================================================
# Application
# ============================================================================


def register_error_handlers(app: FastAPI) -> None:
    """Render framework errors in the same envelope as route errors."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        logger.warning(f"Validation error on {request.method} {request.url.path}: {errors}")
        return _validation_failed(", ".join(errors) or "Invalid request")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(
                404, "Not Found", messages.route_not_found(request.method, request.url.path)
            )
        return error_response(exc.status_code, "HTTP Error", str(exc.detail))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
        return error_response(500, "Internal Server Error", str(exc))


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        kb = KnowledgeBase.open(settings.data_file)
        app.state.kb = kb
        stats = await kb.statistics()
        if stats.ok:
            logger.info(
                f"REST API initialized with {stats.value.feature_count} features, "
                f"{stats.value.term_count} terms from {settings.data_file}"
            )
        else:
            logger.warning(f"Design document is not readable yet: {stats.error.message}")
        yield
        logger.info("Shutting down REST API")

    app = FastAPI(
        title="design-kb REST API",
        description="Feature definitions and ubiquitous-language terms over HTTP",
        version=SERVER_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.kb = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    register_error_handlers(app)
    app.include_router(router)

    @app.get("/")
    async def service_index() -> dict[str, Any]:
        return {
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "description": "REST API for feature definitions and ubiquitous-language terms",
            "endpoints": ENDPOINTS,
        }

    return app


def run_server(settings: Settings | None = None):
    """Run the REST API with uvicorn."""
    import uvicorn

    settings = settings or Settings.from_env()
    configure_logging(log_dir=settings.log_dir, log_level=settings.log_level)
    app = create_app(settings)

    logger.info(f"Starting REST API on http://{settings.host}:{settings.port}{API_BASE_PATH}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


def main():
    """Entry point for the REST API server."""
    import sys

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    run_server(settings)


if __name__ == "__main__":
    main()
