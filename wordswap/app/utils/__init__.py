"""
Utilities package for the report pipeline.

This package contains logging, configuration constants, validation,
synchronization and parallel processing helpers.
"""

from wordswap.app.utils.logging.logger import default_logger

# Export the default logger
__all__ = ["default_logger"]
