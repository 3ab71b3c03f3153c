"""Application entrypoint: ``uvicorn oppflow.main:app``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from oppflow.api.v1._authz import status_for
from oppflow.api.v1.router import get_api_router
from oppflow.core.config import get_config
from oppflow.core.exceptions import OppflowError, ValidationError
from oppflow.core.startup import bootstrap
from oppflow.schemas import ErrorEnvelope

logger = logging.getLogger(__name__)


def error_response(exc: OppflowError) -> JSONResponse:
    envelope = ErrorEnvelope(
        error_code=exc.error_code,
        detail=exc.message or exc.error_code,
        field=getattr(exc, "field", None),
    )
    return JSONResponse(status_code=status_for(exc), content=envelope.model_dump(exclude_none=True))


async def handle_oppflow_error(request: Request, exc: OppflowError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            "api.request.failed",
            extra={"event": "api.request.failed", "path": request.url.path, "error_code": exc.error_code},
        )
    return error_response(exc)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "header")]
    return error_response(
        ValidationError(first.get("msg", "Invalid request."), field=".".join(location) or None)
    )


def create_app() -> FastAPI:
    cfg = get_config()
    app = FastAPI(title=cfg.APP_NAME, version=cfg.APP_VERSION)
    app.add_exception_handler(OppflowError, handle_oppflow_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.include_router(get_api_router())

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    bootstrap()
    cfg = get_config()
    uvicorn.run(app, host=cfg.API_HOST, port=cfg.API_PORT, log_config=None)
