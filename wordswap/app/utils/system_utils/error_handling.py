"""
Error handling utilities with security and privacy in mind.
This module provides centralized error handling that prevents leakage of document text,
search strings or environment details in error messages while keeping enough diagnostics
for maintainers. Detailed records are appended to a separate error log keyed by an error id,
and callers only ever see a sanitized message with a reference id.
"""

import asyncio
import json
import os
import re
import time
import traceback
import uuid
from typing import Dict, Any, Optional

from fastapi import HTTPException

from wordswap.app.domain.exceptions import DocumentParseError, DocumentWriteError
from wordswap.app.utils.constant.constant import ERROR_TYPE_MESSAGES, SAFE_MESSAGE, ERROR_LOG_PATH, SERVICE_NAME, \
    USE_JSON_LOGGING, SENSITIVE_KEYWORDS, URL_PATTERNS, EMAIL_PATTERN
from wordswap.app.utils.logging.logger import log_warning, log_error


class SecurityAwareErrorHandler:
    """
    Error handler that keeps user content out of logs and responses.

    Every handled error gets a unique error id. The full record (stack trace included) goes to
    the detailed error log, while the one-line log entry and any response only carry a
    sanitized message.
    """

    @staticmethod
    def _new_trace_id() -> str:
        # Trace ids combine the current second with a short random suffix.
        return f"trace_{int(time.time())}_{uuid.uuid4().hex[:8]}"

    @staticmethod
    def log_processing_error(
            e: Exception,
            operation_type: str,
            resource_id: str = "",
            trace_id: Optional[str] = None
    ) -> str:
        """
        Log an error safely without leaking sensitive information and return a trace ID.

        Args:
            e (Exception): The exception to log.
            operation_type (str): The type of operation during which the error occurred.
            resource_id (str): Identifier of the affected resource.
            trace_id (Optional[str]): Optional trace identifier.

        Returns:
            str: The trace identifier associated with the logged error.
        """
        # Generate a unique error identifier.
        error_id = str(uuid.uuid4())
        # Generate a trace identifier if not provided.
        if not trace_id:
            trace_id = SecurityAwareErrorHandler._new_trace_id()
        # Sanitize the error message for logging.
        sanitized_message = SecurityAwareErrorHandler._sanitize_error_message(str(e))
        # Log a concise error message with resource details.
        log_error(f"[ERROR] {operation_type} error (ID: {error_id}, Trace: {trace_id}): {sanitized_message}")
        # Log detailed error information including stack trace and resource identifier.
        SecurityAwareErrorHandler._log_detailed_error(
            error_id, type(e).__name__, str(e), operation_type, traceback.format_exc(),
            {"resource_id": resource_id, "trace_id": trace_id}
        )
        return trace_id

    @staticmethod
    def _log_detailed_error(
            error_id: str,
            error_type: str,
            error_message: str,
            operation_type: str,
            stack_trace: str,
            additional_info: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Append a detailed error record to the error log file.

        Args:
            error_id (str): Unique error identifier.
            error_type (str): Type of error.
            error_message (str): The raw error message.
            operation_type (str): The operation type during which the error occurred.
            stack_trace (str): The complete stack trace.
            additional_info (Optional[Dict[str, Any]]): Extra contextual information.
        """
        try:
            # Ensure the log directory exists.
            log_dir = os.path.dirname(ERROR_LOG_PATH)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            # Build an error record dictionary with all relevant details.
            error_record = {
                "error_id": error_id,
                "timestamp": time.time(),
                "error_type": error_type,
                "operation_type": operation_type,
                "sanitized_message": SecurityAwareErrorHandler._sanitize_error_message(error_message),
                "stack_trace": stack_trace,
                "environment": os.environ.get("ENVIRONMENT", "development"),
                "service": SERVICE_NAME,
                "additional_info": SecurityAwareErrorHandler._sanitize_additional_info(additional_info),
                "environment_info": SecurityAwareErrorHandler._capture_env_info()
            }
            if USE_JSON_LOGGING:
                with open(ERROR_LOG_PATH, "a", encoding="utf-8") as f:
                    f.write(json.dumps(error_record) + "\n")
            else:
                # Plain-text record for environments that do not ingest JSON logs.
                with open(ERROR_LOG_PATH, "a", encoding="utf-8") as f:
                    f.write(f"\n--- ERROR: {error_id} at {time.ctime(error_record['timestamp'])} ---\n")
                    f.write(f"Type: {error_type}\n")
                    f.write(f"Operation: {operation_type}\n")
                    f.write(f"Sanitized: {error_record['sanitized_message']}\n")
                    f.write("Stack Trace:\n")
                    f.write(stack_trace)
                    if error_record.get("additional_info"):
                        f.write("\nAdditional Info:\n")
                        for k, v in error_record["additional_info"].items():
                            f.write(f"  {k}: {v}\n")
                    f.write("\n----------------------------------------\n")
        except OSError as log_error_ex:
            log_warning(f"Failed to log detailed error information: {str(log_error_ex)}")

    @staticmethod
    def _sanitize_additional_info(additional_info: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Sanitize string values of an additional info dictionary."""
        sanitized = {}
        if additional_info:
            for key, value in additional_info.items():
                if isinstance(value, str):
                    sanitized[key] = SecurityAwareErrorHandler._sanitize_error_message(value)
                else:
                    sanitized[key] = value
        return sanitized

    @staticmethod
    def _capture_env_info() -> Dict[str, Any]:
        """Capture the deployment-related environment variables that are set."""
        env_vars = ["ENVIRONMENT", "SERVICE_NAME", "SERVICE_VERSION", "HOSTNAME", "DEPLOYMENT_ID"]
        return {var: os.environ[var] for var in env_vars if var in os.environ}

    @staticmethod
    def _sanitize_error_message(message: str) -> str:
        """
        Sanitize an error message to remove sensitive information.

        Args:
            message (str): The error message to sanitize.

        Returns:
            str: The sanitized error message.
        """
        # If the message is empty or None, return a default notice.
        if not message:
            return "Error details not available"
        # Convert message to lower case for uniform comparison.
        message_lower = message.lower()
        # Check each sensitive keyword in the message.
        for keyword in SENSITIVE_KEYWORDS:
            if keyword in message_lower:
                return "Error details redacted for security"

        # Replace file paths with their base name only.
        def path_replacer(match):
            path = match.group(0)
            return f"[PATH]/{os.path.basename(path)}"

        path_pattern = r'(?:\/[\w\-. ]+)+\/[\w\-. ]+'
        message = re.sub(path_pattern, path_replacer, message)

        # Collapse JSON objects to a field count.
        def json_replacer(match):
            json_str = match.group(0)
            key_count = json_str.count(':')
            return f"[JSON_CONTENT:{key_count}_fields]"

        json_pattern = r'\{.*\}'
        message = re.sub(json_pattern, json_replacer, message, flags=re.DOTALL)
        # Redact URLs.
        for pattern in URL_PATTERNS:
            message = re.sub(pattern, '[URL_REDACTED]', message)
        # Redact tokens.
        token_pattern = r'(auth|token|bearer|jwt|api[-_]?key)[^\s]*'
        message = re.sub(token_pattern, '[AUTH_TOKEN]', message, flags=re.IGNORECASE)
        # Redact email addresses.
        message = re.sub(EMAIL_PATTERN, '[EMAIL]', message)
        # Redact long number sequences.
        number_sequence = r'\b\d{8,16}\b'
        message = re.sub(number_sequence, '[NUMBER_SEQUENCE]', message)
        # Redact IP addresses.
        ip_pattern = r'\b(?:\d{1,3}\.){3}\d{1,3}\b'
        message = re.sub(ip_pattern, '[IP_ADDRESS]', message)
        return message

    @staticmethod
    def is_error_sensitive(e: Exception) -> bool:
        """
        Determine if an error might contain sensitive information.

        Args:
            e (Exception): The exception to check.

        Returns:
            bool: True if the error message likely contains sensitive data, otherwise False.
        """
        message_lower = str(e).lower()
        if any(keyword in message_lower for keyword in SENSITIVE_KEYWORDS):
            return True
        sensitive_patterns = [
            EMAIL_PATTERN,
            r'password[=:]\S+',
            r'token[=:]\S+',
            r'secret[=:]\S+',
            r'Bearer\s+[A-Za-z0-9._-]+',
            r'\b(?:\d{1,3}\.){3}\d{1,3}\b',
            r'traceback',
        ]
        return any(re.search(pattern, str(e), re.IGNORECASE) for pattern in sensitive_patterns)

    @staticmethod
    def _status_code_for(e: Exception) -> int:
        """Map an exception to the HTTP status code reported by the API layer."""
        if isinstance(e, HTTPException):
            return e.status_code
        if isinstance(e, (TimeoutError, asyncio.TimeoutError)):
            return 504
        if isinstance(e, (DocumentParseError, DocumentWriteError)):
            return 422
        if isinstance(e, (ValueError, TypeError)):
            return 400
        if isinstance(e, PermissionError):
            return 403
        return 500

    @staticmethod
    def handle_safe_error(
            e: Exception,
            operation_type: str,
            endpoint: Optional[str] = None,
            resource_id: str = "",
            additional_info: Optional[Dict[str, Any]] = None,
            trace_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build a sanitized error response for the API layer.

        Args:
            e (Exception): The exception to handle.
            operation_type (str): Type of operation.
            endpoint (Optional[str]): Relevant API endpoint if applicable.
            resource_id (str): Identifier for the resource involved.
            additional_info (Optional[Dict[str, Any]]): Additional context merged into the response.
            trace_id (Optional[str]): Optional trace identifier.

        Returns:
            Dict[str, Any]: An error response with a reference id and HTTP status code.
        """
        trace_id = SecurityAwareErrorHandler.log_processing_error(
            e, operation_type, resource_id or (endpoint or ""), trace_id
        )
        error_id = str(uuid.uuid4())
        error_type = type(e).__name__
        # HTTP errors raised on purpose already carry a user-facing detail.
        if isinstance(e, HTTPException) and e.detail:
            safe_message = str(e.detail)
        else:
            safe_message = ERROR_TYPE_MESSAGES.get(error_type, ERROR_TYPE_MESSAGES['Exception'])
        if SecurityAwareErrorHandler.is_error_sensitive(e):
            safe_message = SAFE_MESSAGE
        response = {
            "status": "error",
            "error": f"{safe_message.rstrip('.')}. Reference ID: {error_id}",
            "error_type": error_type,
            "status_code": SecurityAwareErrorHandler._status_code_for(e),
            "error_id": error_id,
            "trace_id": trace_id,
            "timestamp": time.time()
        }
        if additional_info:
            response.update({k: v for k, v in additional_info.items() if k not in response})
        return response
