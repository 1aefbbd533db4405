"""
Utility functions for validating uploaded PDF files.
This module provides functions to:
  - Detect the file type from its signature (magic bytes).
  - Sanitize user-supplied filenames before they are echoed back in headers and reports.
  - Read a single uploaded PDF, rejecting empty, oversized and non-PDF uploads.
"""

import logging
import os
import re
import time
from typing import Optional, Tuple

from fastapi import UploadFile
from fastapi.responses import JSONResponse

from wordswap.app.configs.config_singleton import get_config
from wordswap.app.utils.constant.constant import FILE_SIGNATURES, MAX_PDF_SIZE_BYTES
from wordswap.app.utils.logging.logger import log_info, log_warning

# Configure module-level logger.
_logger = logging.getLogger("file_validation_utils")


def get_file_signature(content: bytes) -> Optional[str]:
    """
    Determine the file type from the content's signature (magic bytes).

    Args:
        content (bytes): The first chunk of file content.

    Returns:
        Optional[str]: The file type if recognized (e.g., 'pdf'), otherwise None.
    """
    # Signatures are at least 4 bytes long.
    if not content or len(content) < 4:
        return None
    # Compare each known signature at its offset.
    for file_type, signatures in FILE_SIGNATURES.items():
        for signature, offset in signatures:
            if content[offset:offset + len(signature)] == signature:
                return file_type
    return None


def sanitize_filename(filename: Optional[str]) -> str:
    """
    Sanitize a filename to prevent path traversal and header injection.

    Args:
        filename (Optional[str]): The original filename.

    Returns:
        str: A sanitized filename.
    """
    # Fall back to a default name for missing filenames.
    if not filename:
        return "unnamed_file"
    # Remove any directory paths by eliminating forward and backward slashes.
    filename = re.sub(r"[/\\]", "", filename)
    # Remove null bytes and control characters.
    filename = filename.replace("\x00", "")
    filename = re.sub(r"[\x01-\x1F\x7F]", "", filename)
    # Remove quotes and characters that could be used in command injection.
    filename = re.sub(r"[\"';&|`$><^]", "", filename)
    # Truncate overly long names while keeping the extension.
    if len(filename) > 255:
        base, ext = os.path.splitext(filename)
        filename = base[:250] + ext
    # If nothing is left, use the default name.
    if not filename:
        filename = "unnamed_file"
    return filename


def validate_pdf_file(content: bytes) -> bool:
    """
    Check that content carries the PDF signature.

    Structural problems beyond the header are left to the extractor, which reports them as
    a parse failure.

    Args:
        content (bytes): The file content.

    Returns:
        bool: True if content starts like a PDF, False otherwise.
    """
    return get_file_signature(content) == "pdf"


def _error_response(status_code: int, detail: str, operation_id: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, "operation_id": operation_id})


async def read_and_validate_file(file: UploadFile, operation_id: str,
                                 max_size: Optional[int] = None) -> Tuple[Optional[bytes], Optional[JSONResponse], float]:
    """
    Reads and validates a single uploaded PDF file.

    The function checks:
      - The file is not empty.
      - The file size does not exceed the configured maximum.
      - The content starts with the PDF signature.

    Args:
        file (UploadFile): The uploaded file.
        operation_id (str): Operation identifier for logging.
        max_size (Optional[int]): Size limit in bytes; defaults to the configured limit.

    Returns:
        Tuple[Optional[bytes], Optional[JSONResponse], float]:
          - The file content as bytes if valid; otherwise, None.
          - A JSONResponse error if validation fails; otherwise, None.
          - The elapsed time for reading the file.
    """
    max_size = max_size or get_config("max_pdf_size_bytes", MAX_PDF_SIZE_BYTES)

    # Read the entire file content.
    file_read_start = time.time()
    content = await file.read()
    file_read_time = time.time() - file_read_start
    log_info(
        f"[SECURITY] File read completed in {file_read_time:.3f}s. Size: {len(content) / 1024:.1f}KB "
        f"[operation_id={operation_id}]"
    )

    if not content:
        log_warning(f"[SECURITY] Empty upload [operation_id={operation_id}]")
        return None, _error_response(400, "Empty file content", operation_id), file_read_time

    # Enforce the size limit.
    if len(content) > max_size:
        log_warning(
            f"[SECURITY] PDF size exceeds limit: {len(content) / (1024 * 1024):.2f}MB > "
            f"{max_size / (1024 * 1024):.2f}MB [operation_id={operation_id}]"
        )
        return None, _error_response(
            413, f"PDF file size exceeds maximum allowed ({max_size // (1024 * 1024)}MB)", operation_id
        ), file_read_time

    # Only PDF uploads are accepted.
    if not validate_pdf_file(content):
        log_warning(f"[SECURITY] Upload is not a PDF [operation_id={operation_id}]")
        return None, _error_response(400, "Only PDF files are supported", operation_id), file_read_time

    return content, None, file_read_time
