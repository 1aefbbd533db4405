"""
Main entry point for the WordSwap report API.

This module initializes and configures the FastAPI application with security headers,
request size limits, compression, CORS and rate limiting, and registers the status and
PDF report routers.
"""

import json
import os
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

# Importing the API routers.
from wordswap.app import __version__
from wordswap.app.api.routes import status_router, pdf_router
from wordswap.app.api.routes.pdf_routes import limiter
from wordswap.app.configs.config_singleton import get_config
# Constants for allowed origins, JSON media type and upload size.
from wordswap.app.utils.constant.constant import ALLOWED_ORIGINS, JSON_MEDIA_TYPE, MAX_PDF_SIZE_BYTES
from wordswap.app.utils.logging.logger import log_info
from wordswap.app.utils.system_utils.error_handling import SecurityAwareErrorHandler

# Allowance for multipart framing and form fields on top of the file itself.
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


def _error_response(e: Exception, operation_type: str, request: Request) -> JSONResponse:
    """Build a sanitized JSON error response for an exception raised inside a middleware."""
    error_info = SecurityAwareErrorHandler.handle_safe_error(e, operation_type, endpoint=str(request.url))
    return JSONResponse(content=error_info, status_code=error_info.get("status_code", 500))


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    SecurityHeadersMiddleware adds essential security-related HTTP headers to every response.
    """

    async def dispatch(self, request: Request, call_next):
        """
        Add security-related HTTP headers to every response.

        Args:
            request (Request): The incoming HTTP request.
            call_next (Callable): Function to execute the next middleware or route handler.

        Returns:
            Response: The HTTP response with additional security headers.
        """
        try:
            response = await call_next(request)
        except Exception as e:
            return _error_response(e, "api_dispatch_main", request)
        # Prevent MIME type sniffing and framing.
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Processed documents must not be cached by intermediaries.
        response.headers.setdefault("Cache-Control", "no-store, max-age=0")
        return response


class RequestSizeMiddleware(BaseHTTPMiddleware):
    """
    RequestSizeMiddleware rejects requests whose declared body size exceeds the limit.
    """

    def __init__(self, app, max_content_length: int = 10 * 1024 * 1024):
        """
        Initialize the middleware to enforce a maximum request body size.

        Args:
            app: The ASGI application.
            max_content_length (int): Maximum allowed size of the request body in bytes.
        """
        super().__init__(app)
        self.max_content_length = max_content_length

    async def dispatch(self, request: Request, call_next):
        """
        Return a 413 error response when the content length exceeds the limit.
        """
        content_length = request.headers.get("content-length")
        try:
            if content_length is not None and int(content_length) > self.max_content_length:
                return Response(
                    status_code=413,
                    content=json.dumps({"detail": "Request body too large"}),
                    media_type=JSON_MEDIA_TYPE,
                )
        except ValueError:
            return Response(
                status_code=400,
                content=json.dumps({"detail": "Invalid Content-Length header"}),
                media_type=JSON_MEDIA_TYPE,
            )
        return await call_next(request)


def _init_middlewares(app: FastAPI) -> None:
    """
    Initialize and add middleware components to the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance.
    """
    # Add custom middleware to set security headers on all responses.
    app.add_middleware(SecurityHeadersMiddleware)
    # Enforce a maximum request body size derived from the upload limit.
    max_upload = get_config("max_pdf_size_bytes", MAX_PDF_SIZE_BYTES)
    app.add_middleware(RequestSizeMiddleware, max_content_length=max_upload + MULTIPART_OVERHEAD_BYTES)
    # Compress responses larger than 1KB.
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Set up CORS configuration.
    cors_config = {
        "allow_origins": ALLOWED_ORIGINS,
        "allow_credentials": True,
        "allow_methods": ["POST", "GET"],
        "allow_headers": ["*"],
        # Let browsers read the download name and match total.
        "expose_headers": ["Content-Disposition", "X-Total-Matches"],
        "max_age": 600,
    }
    # In production, filter out localhost origins.
    if os.environ.get("ENVIRONMENT") == "production":
        cors_config["allow_origins"] = [
            origin for origin in ALLOWED_ORIGINS if not origin.startswith("http://localhost")
        ]
    app.add_middleware(CORSMiddleware, **cors_config)


def _init_rate_limiting(app: FastAPI) -> None:
    """
    Register the slowapi limiter and its 429 handler on the application.

    Args:
        app (FastAPI): The FastAPI application instance.
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: The fully configured FastAPI application instance.
    """
    try:
        app = FastAPI(
            title="WordSwap Report API",
            version=__version__,
            description="""
            Counts find/replace pairs in uploaded PDF documents and returns a copy of each document
            with descriptive metadata and an appended report page. Document text is never modified.
            Processing is performed in memory; nothing is stored between requests.
            """,
            docs_url="/api/docs",
            redoc_url="/api/redoc",
        )

        _init_middlewares(app)
        _init_rate_limiting(app)

        # Include routers for the API endpoints.
        app.include_router(status_router, tags=["Status"])
        app.include_router(pdf_router, prefix="/pdf", tags=["PDF Processing"])

        @app.middleware("http")
        async def add_process_time_header(request: Request, call_next):
            """
            Add processing time and request ID headers to every response.
            """
            request_id = f"req_{time.time()}_{os.urandom(4).hex()}"
            request.state.request_id = request_id
            start_time = time.time()
            try:
                response = await call_next(request)
            except Exception as exp:
                return _error_response(exp, "api_process_time_header", request)
            process_time = time.time() - start_time
            response.headers["X-Process-Time"] = str(process_time)
            response.headers["X-Request-ID"] = request_id
            log_info(
                f"[REQUEST] {request.method} {request.url.path} completed in {process_time:.4f}s [ID: {request_id}]"
            )
            return response

        log_info("[OK] API application created and configured successfully")
        return app
    except Exception as e:
        # Log and re-raise any errors during application creation.
        SecurityAwareErrorHandler.log_processing_error(e, "create_app")
        raise


# Create the FastAPI app.
app = create_app()
