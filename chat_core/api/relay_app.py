"""FastAPI application for the chat relay.

Run with:
    chat-relay
"""

from __future__ import annotations as _annotations

import fastapi
from fastapi import Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chat_core.api import service
from chat_core.api.schemas import ChatRequest, ErrorResponse
from chat_core.config.settings import Settings, settings
from chat_core.domain.exceptions import BusinessError
from chat_core.infrastructure.logging.logger import logger
from chat_core.upstream import UpstreamClient


def get_settings() -> Settings:
    return settings


def get_upstream() -> UpstreamClient:
    return service.get_default_client()


def create_app() -> fastapi.FastAPI:
    app = fastapi.FastAPI(title="Social Yaan Relay", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BusinessError)
    async def business_error_handler(_request: fastapi.Request, exc: BusinessError) -> JSONResponse:
        return JSONResponse(status_code=exc.http_status, content={"error": exc.message, "code": exc.code})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_request: fastapi.Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Rejected malformed chat request", extra={"extra": {"errors": str(exc.errors())}})
        return JSONResponse(status_code=400, content={"error": "Invalid request body", "code": "VALIDATION_ERROR"})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(_request: fastapi.Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled relay error: {exc!r}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error", "code": "INTERNAL_ERROR"})

    @app.get("/health")
    async def health_check() -> dict:
        """Basic liveness probe."""
        return {"status": "ok"}

    @app.post("/api/chat", responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
    async def chat(
        body: ChatRequest,
        cfg: Settings = Depends(get_settings),
        upstream: UpstreamClient = Depends(get_upstream),
    ) -> JSONResponse:
        """Forward one chat request upstream and return its body verbatim."""
        req = body.to_domain(cfg.default_endpoint)
        return JSONResponse(content=await service.relay_chat(req, client=upstream))

    return app


app = create_app()


def main() -> None:
    import uvicorn

    logger.info(f"Server running on port {settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
