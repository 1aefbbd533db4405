"""
Status endpoints for monitoring service health.

This module provides a lightweight status endpoint and a health check that reports process
resource usage gathered with psutil. Errors are converted into sanitized responses so that
internal details are not leaked.
"""

import os
import threading
import time

import psutil
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from wordswap.app import __version__
from wordswap.app.configs.config_singleton import get_config
from wordswap.app.utils.constant.constant import STATUS_CACHE_TTL
from wordswap.app.utils.logging.logger import log_info
from wordswap.app.utils.system_utils.error_handling import SecurityAwareErrorHandler
from wordswap.app.utils.system_utils.synchronization_utils import pdf_engine_lock

# Create a rate limiter using the client's remote address.
limiter = Limiter(key_func=get_remote_address)

# Instantiate the API router.
router = APIRouter()


@router.get("/status")
@limiter.limit("60/minute")
async def status(request: Request, response: Response) -> JSONResponse:
    """
    Get a simple API status with current timestamp and version info.

    Parameters:
        request (Request): The incoming HTTP request.
        response (Response): The outgoing HTTP response.

    Returns:
        JSONResponse: Status information, or a secure error response if an exception occurs.
    """
    try:
        status_data = {
            "status": "success",
            "service": get_config("tool_name", "WordSwap"),
            "timestamp": time.time(),
            "api_version": os.environ.get("API_VERSION", __version__),
        }
        resp = JSONResponse(content=status_data)
        # Allow short-lived client caching of the status payload.
        resp.headers["Cache-Control"] = f"public, max-age={STATUS_CACHE_TTL}"
        resp.headers["X-Cache-TTL"] = str(STATUS_CACHE_TTL)
        return resp
    except Exception as e:
        log_info(f"[STATUS] Error retrieving status: {str(e)}")
        error_response = SecurityAwareErrorHandler.handle_safe_error(
            e, "api_status_router", resource_id=str(request.url)
        )
        return JSONResponse(content=error_response, status_code=error_response.get("status_code", 500))


@router.get("/health")
@limiter.limit("30/minute")
async def health_check(request: Request, response: Response) -> JSONResponse:
    """
    Perform a health check with process metrics.

    Parameters:
        request (Request): The incoming HTTP request.
        response (Response): The outgoing HTTP response.

    Returns:
        JSONResponse: Health information, or a secure error response if an exception occurs.
    """
    try:
        # Gather process metrics using psutil.
        process = psutil.Process(os.getpid())
        memory_info = process.memory_info()
        health_data = {
            "status": "healthy",
            "timestamp": time.time(),
            "services": {
                "api": "online",
                "document_processing": "online",
            },
            "process": {
                "cpu_percent": process.cpu_percent(),
                "memory_percent": process.memory_percent(),
                "memory_rss_mb": round(memory_info.rss / (1024 * 1024), 2),
                "threads_count": threading.active_count(),
                "uptime": time.time() - process.create_time(),
            },
            "system_memory_percent": psutil.virtual_memory().percent,
            "pdf_engine_lock": {
                "acquisitions": pdf_engine_lock.acquisition_count,
                "timeouts": pdf_engine_lock.timeout_count,
            },
        }
        return JSONResponse(content=health_data)
    except Exception as e:
        error_response = SecurityAwareErrorHandler.handle_safe_error(
            e, "api_health_router", resource_id=str(request.url)
        )
        return JSONResponse(content=error_response, status_code=error_response.get("status_code", 500))
