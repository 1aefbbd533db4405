"""
WordSwap application package.

This package contains the PDF find/replace report pipeline and the
HTTP API that exposes it.
"""

from wordswap.app.utils.logging.logger import default_logger

# Initialize logging
logger = default_logger

# Set version
__version__ = "1.0.0"
