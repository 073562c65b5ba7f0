import logging

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from upload_gateway.api.deps import get_storage_client, require_authorization
from upload_gateway.api.routers.uploads import router as uploads_router
from upload_gateway.common.config import Settings, get_settings
from upload_gateway.common.logging import setup_logging
from upload_gateway.infra.observability.metrics import metrics_app
from upload_gateway.infra.observability.middleware import MetricsMiddleware
from upload_gateway.infra.storage.client import StorageClient, StorageError
from upload_gateway.infra.storage.s3_client import S3StorageClient

INVALID_BODY_MESSAGE = "invalid request body"

# S3 returns these on part PUTs; browsers need them exposed to read the ETag
EXPOSED_HEADERS = [
    "Content-Length",
    "Content-Type",
    "ETag",
    "X-Request-Id",
]


def _error_message(detail) -> str:
    if isinstance(detail, dict):
        message = detail.get("message")
        if message is not None:
            return str(message)
    if detail is None:
        return ""
    return str(detail)


def create_app(
    settings: Settings | None = None,
    storage_client: StorageClient | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(
        title="Multipart Upload Gateway",
        version="1.0.0",
        description="Issues multipart upload sessions and presigned part URLs",
    )

    startup_logger = logging.getLogger("upload_gateway.startup")
    app.state.settings = settings
    app.state.storage_client = storage_client or S3StorageClient(settings=settings)
    startup_logger.info(
        "storage configured [event=storage_ready] (bucket=%s, region=%s, endpoint=%s, "
        "key_prefix=%s, verify_on_presign=%s)",
        settings.S3_BUCKET,
        settings.S3_REGION,
        settings.S3_ENDPOINT_URL or "<aws>",
        settings.S3_KEY_PREFIX,
        settings.VERIFY_UPLOAD_ON_PRESIGN,
    )

    if settings.CORS_ENABLED:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS or ["*"],
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
            allow_headers=["Origin", "Content-Length", "Content-Type", "Authorization"],
            expose_headers=EXPOSED_HEADERS,
        )

    app.include_router(
        uploads_router,
        tags=["uploads"],
        dependencies=[Depends(require_authorization)],
    )

    if settings.ENABLE_METRICS:
        app.add_middleware(MetricsMiddleware)
        app.mount("/metrics", metrics_app)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger = logging.getLogger("http")
        message = _error_message(exc.detail)
        logger.log(
            logging.WARNING if exc.status_code < 500 else logging.ERROR,
            "http_exception status=%s detail=%s method=%s path=%s request_id=%s",
            exc.status_code,
            message,
            request.method,
            request.url.path,
            request.headers.get("X-Request-Id"),
            extra={
                "extra": {
                    "status": exc.status_code,
                    "detail": message,
                    "method": request.method,
                    "route": request.url.path,
                    "request_id": request.headers.get("X-Request-Id"),
                }
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        logging.getLogger("http").warning(
            "request_validation_failed method=%s path=%s errors=%s",
            request.method,
            request.url.path,
            len(exc.errors()),
        )
        return JSONResponse(status_code=400, content={"error": INVALID_BODY_MESSAGE})

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/ready")
    def ready(storage: StorageClient = Depends(get_storage_client)):
        try:
            storage.check_bucket()
        except StorageError as exc:
            return {"status": "not_ready", "detail": {"storage": str(exc)}}
        return {"status": "ready"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("upload_gateway.main:app", host="0.0.0.0", port=8080, reload=True)
