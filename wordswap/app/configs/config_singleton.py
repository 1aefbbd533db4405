"""
Configuration singleton for the WordSwap service.

This module provides direct access to configuration values
without requiring service imports.
"""

import os
from typing import Any

from dotenv import load_dotenv

from wordswap.app.utils.constant.constant import MAX_PDF_SIZE_BYTES

# Load environment variables
load_dotenv()

# Global configuration dictionary
_config = {}


def _load_config_from_env() -> None:
    """Load configuration from environment variables."""

    # Report branding
    _config["tool_name"] = os.getenv("WORDSWAP_TOOL_NAME", "WordSwap")
    _config["report_author"] = os.getenv("WORDSWAP_REPORT_AUTHOR", "WordSwap Professional")

    # Matching configuration
    _config["match_max_workers"] = _parse_int(os.getenv("MATCH_MAX_WORKERS", "4"), 4)

    # Upload limits
    _config["max_pdf_size_bytes"] = _parse_int(
        os.getenv("MAX_PDF_SIZE_BYTES", str(MAX_PDF_SIZE_BYTES)), MAX_PDF_SIZE_BYTES
    )

    # API configuration
    _config["api_port"] = _parse_int(os.getenv("API_PORT", "8000"), 8000)
    _config["api_host"] = os.getenv("API_HOST", "0.0.0.0")
    _config["debug"] = os.getenv("DEBUG", "false").lower() == "true"


def _parse_int(value: str, default: int) -> int:
    """Parse an integer setting, falling back to the default on bad input."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_config(key: str, default: Any = None) -> Any:
    """
    Get configuration value by key.

    Args:
        key: Configuration key
        default: Default value if key not found

    Returns:
        Configuration value
    """
    # Make sure config is loaded
    if not _config:
        _load_config_from_env()
    return _config.get(key, default)


def set_config(key: str, value: Any) -> None:
    """
    Set configuration value.

    Args:
        key: Configuration key
        value: Configuration value
    """
    _config[key] = value


# Initialize configuration
_load_config_from_env()
