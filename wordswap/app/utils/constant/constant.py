"""
Constants for the WordSwap report service.

This module defines configuration constants organized into several categories:
1. Environment and network settings (allowed origins).
2. Default timeouts for engine access and parallel counting.
3. Report page geometry, fonts and colours.
4. File handling constants including file size limits, MIME types and file signatures.
5. Log and error handling constants, including patterns for detecting sensitive data
   and error messages.
"""

import os

# Allowed origins for CORS, read from the environment or default values.
ALLOWED_ORIGINS = os.environ.get(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:8000,http://localhost:5173",
).split(",")

# Cache TTL for the status endpoints in seconds.
STATUS_CACHE_TTL = 60

# Timeout for acquiring the process-wide PDF engine lock.
DEFAULT_ENGINE_LOCK_TIMEOUT = 30.0  # 30 seconds
# Default timeout for acquiring thread locks.
DEFAULT_LOCK_TIMEOUT = 30.0  # 30 seconds
# Overall timeout for one parallel counting run.
DEFAULT_BATCH_TIMEOUT = 600.0
# Timeout for counting a single page.
DEFAULT_ITEM_TIMEOUT = 120.0

# Suffix appended to the base name of the processed document.
OUTPUT_FILENAME_SUFFIX = "_updated"
# Fallback display name when the caller did not supply one.
DEFAULT_SOURCE_NAME = "document.pdf"

# Report page geometry (points, measured from the top-left corner of the page).
REPORT_PAGE_WIDTH = 595.28  # A4
REPORT_PAGE_HEIGHT = 841.89  # A4
REPORT_MARGIN_X = 50
REPORT_LINE_INDENT_X = 60
REPORT_TITLE_Y = 50
REPORT_SOURCE_Y = 80
REPORT_TOTAL_Y = 95
REPORT_SUMMARY_HEADER_Y = 130
REPORT_FIRST_LINE_Y = 150
REPORT_LINE_SPACING = 15
REPORT_LINE_MARKER = "- "

# Font names understood by PyMuPDF for the Base-14 Helvetica family.
REPORT_FONT_REGULAR = "helv"
REPORT_FONT_BOLD = "hebo"
# Text outside Latin-1 cannot be encoded in the Base-14 fonts; it is drawn with PyMuPDF's
# built-in CJK font embedded under this resource name.
REPORT_FONT_UNICODE = "wsuni"
REPORT_UNICODE_FONT_SOURCE = "cjk"
REPORT_TITLE_FONT_SIZE = 18
REPORT_HEADER_FONT_SIZE = 12
REPORT_BODY_FONT_SIZE = 10
REPORT_TITLE_COLOR = (0.1, 0.4, 0.8)
REPORT_TEXT_COLOR = (0.0, 0.0, 0.0)

# Metadata keys that PyMuPDF accepts in Document.set_metadata.
EDITABLE_METADATA_KEYS = (
    "author",
    "producer",
    "creator",
    "title",
    "subject",
    "keywords",
    "creationDate",
    "modDate",
    "trapped",
)

# Media type for JSON responses.
JSON_MEDIA_TYPE = "application/json"
# MIME type for PDF files.
APPLICATION_PDF = "application/pdf"
# Single file validation: maximum PDF file size (25 MB).
MAX_PDF_SIZE_BYTES = 25 * 1024 * 1024
# File signatures (magic bytes) for supported file types.
FILE_SIGNATURES = {"pdf": [(b"%PDF", 0)]}

# Text strings for log messages.
ERROR_WORD = "[ERROR]"
WARNING_WORD = "[WARNING]"

# Directory for the rotating application log.
LOG_DIR = os.environ.get("LOG_DIR", "logs/app_log")
# File path for detailed error logs, read from the environment.
ERROR_LOG_PATH = os.environ.get(
    "ERROR_LOG_PATH", "logs/error_logs/detailed_errors.log"
)
# Flag to indicate whether to use JSON logging for errors.
USE_JSON_LOGGING = os.environ.get("ERROR_JSON_LOGGING", "true").lower() == "true"
# Service name, defaulting to 'wordswap' if not provided.
SERVICE_NAME = os.environ.get("SERVICE_NAME", "wordswap")
# Standard safe message to display when error details are redacted.
SAFE_MESSAGE = "Error details have been redacted for security."

# Regex pattern for detecting email addresses.
EMAIL_PATTERN = r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"
# List of keywords considered sensitive.
SENSITIVE_KEYWORDS = [
    "password",
    "secret",
    "token",
    "credential",
    "ssn",
    "credit",
    "cvv",
    "passport",
    "bank",
    "api_key",
    "access_token",
    "refresh_token",
    "bearer",
    "authorization",
    "privkey",
]
# List of URL patterns for recognizing and redacting sensitive URLs.
URL_PATTERNS = [
    r"https?://[^\s/$.?#].[^\s]*",  # Standard URLs.
    r"file://[^\s]*",  # File URLs.
    r"ftp://[^\s]*",  # FTP URLs.
    r"s3://[^\s]*",  # S3 URLs.
]

# Mapping from exception types to user-friendly error messages.
ERROR_TYPE_MESSAGES = {
    "ValueError": "Invalid value provided",
    "TypeError": "Incorrect data type",
    "KeyError": "Required key not found",
    "FileNotFoundError": "Required file not found",
    "PermissionError": "Permission denied",
    "OSError": "Operating system error",
    "TimeoutError": "Operation timed out",
    "MemoryError": "Insufficient memory to complete operation",
    "RuntimeError": "Runtime execution error",
    "DocumentParseError": "The document could not be read",
    "DocumentWriteError": "The processed document could not be written",
    "Exception": "An error occurred",
}
