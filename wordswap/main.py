"""
Main entry point for the WordSwap report API.
This module creates the FastAPI application from the API factory, loads the server settings from
the configuration singleton and starts the Uvicorn server. Debug mode enables auto-reload.
"""

import uvicorn
from wordswap.app.api.main import create_app
from wordswap.app.utils.logging.logger import log_info
from wordswap.app.configs.config_singleton import get_config

# Create the FastAPI application instance using the factory function.
app = create_app()

# Load the server settings from the configuration.
port = get_config("api_port", 8000)
host = get_config("api_host", "0.0.0.0")
debug = get_config("debug", False)

if __name__ == "__main__":
    log_info(f"[OK] Starting server on {host}:{port} (debug={debug})")
    uvicorn.run(
        "wordswap.main:app",         # Path to the ASGI application.
        host=host,
        port=port,
        reload=debug,                # Auto-reload in debug mode.
        log_level="info",
        workers=1,
        limit_concurrency=100,
        timeout_keep_alive=600
    )
