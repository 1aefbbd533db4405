import asyncio
import unittest
import uuid
from unittest.mock import patch

from fastapi import HTTPException

from wordswap.app.domain.exceptions import DocumentParseError, DocumentWriteError
from wordswap.app.utils.system_utils.error_handling import SecurityAwareErrorHandler


class TestSecurityAwareErrorHandler(unittest.TestCase):
    """Unit tests for SecurityAwareErrorHandler."""

    def setUp(self):
        # Patch uuid.uuid4 to return a predictable UUID.
        self.uuid_patcher = patch(
            'uuid.uuid4',
            return_value=uuid.UUID('12345678-1234-5678-1234-567812345678')
        )
        self.mock_uuid = self.uuid_patcher.start()

        # Keep detailed records out of the error log file.
        self.detail_patcher = patch.object(SecurityAwareErrorHandler, '_log_detailed_error')
        self.mock_detail = self.detail_patcher.start()

    def tearDown(self):
        self.uuid_patcher.stop()
        self.detail_patcher.stop()

    # log_processing_error returns a trace id and writes a detailed record
    @patch('wordswap.app.utils.system_utils.error_handling.log_error')
    def test_log_processing_error(self, mock_log_error):
        trace_id = SecurityAwareErrorHandler.log_processing_error(ValueError("bad"), "unit_op", "res-1")

        self.assertTrue(trace_id.startswith("trace_"))
        mock_log_error.assert_called_once()
        self.assertIn("unit_op", mock_log_error.call_args[0][0])
        self.mock_detail.assert_called_once()
        self.assertEqual(self.mock_detail.call_args[0][5]["resource_id"], "res-1")

    # an explicit trace id is kept
    @patch('wordswap.app.utils.system_utils.error_handling.log_error')
    def test_log_processing_error_keeps_trace_id(self, _mock_log_error):
        trace_id = SecurityAwareErrorHandler.log_processing_error(ValueError("bad"), "unit_op", trace_id="t-1")

        self.assertEqual(trace_id, "t-1")

    # messages with sensitive keywords are fully redacted
    def test_sanitize_sensitive_keyword(self):
        message = SecurityAwareErrorHandler._sanitize_error_message("wrong password for user")

        self.assertEqual(message, "Error details redacted for security")

    # paths, emails and number sequences are redacted
    def test_sanitize_patterns(self):
        message = SecurityAwareErrorHandler._sanitize_error_message(
            "failed at /home/user/docs/file.pdf for jane@example.com id 1234567890"
        )

        self.assertIn("[PATH]/file.pdf", message)
        self.assertIn("[EMAIL]", message)
        self.assertIn("[NUMBER_SEQUENCE]", message)
        self.assertNotIn("/home/user", message)

    # empty messages get a placeholder
    def test_sanitize_empty(self):
        self.assertEqual(SecurityAwareErrorHandler._sanitize_error_message(""), "Error details not available")

    # sensitive error detection
    def test_is_error_sensitive(self):
        self.assertTrue(SecurityAwareErrorHandler.is_error_sensitive(ValueError("token=abc")))
        self.assertFalse(SecurityAwareErrorHandler.is_error_sensitive(ValueError("page 3 missing")))

    # status codes per exception type
    def test_status_codes(self):
        cases = [
            (HTTPException(status_code=404, detail="nope"), 404),
            (asyncio.TimeoutError(), 504),
            (DocumentParseError("x"), 422),
            (DocumentWriteError("x"), 422),
            (ValueError("x"), 400),
            (PermissionError("x"), 403),
            (RuntimeError("x"), 500),
        ]
        for error, expected in cases:
            self.assertEqual(SecurityAwareErrorHandler._status_code_for(error), expected)

    # handle_safe_error builds a sanitized response
    @patch('wordswap.app.utils.system_utils.error_handling.log_error')
    def test_handle_safe_error(self, _mock_log_error):
        response = SecurityAwareErrorHandler.handle_safe_error(
            DocumentParseError("raw engine detail"), "unit_op", endpoint="/pdf/report"
        )

        self.assertEqual(response["status"], "error")
        self.assertEqual(response["status_code"], 422)
        self.assertEqual(response["error_type"], "DocumentParseError")
        self.assertEqual(response["error_id"], "12345678-1234-5678-1234-567812345678")
        self.assertTrue(response["error"].startswith("The document could not be read. Reference ID:"))
        self.assertNotIn("raw engine detail", response["error"])

    # HTTP exceptions keep their detail
    @patch('wordswap.app.utils.system_utils.error_handling.log_error')
    def test_handle_safe_error_http_detail(self, _mock_log_error):
        response = SecurityAwareErrorHandler.handle_safe_error(
            HTTPException(status_code=400, detail="Bad pairs"), "unit_op"
        )

        self.assertTrue(response["error"].startswith("Bad pairs. Reference ID:"))
        self.assertEqual(response["status_code"], 400)

    # sensitive errors use the generic safe message
    @patch('wordswap.app.utils.system_utils.error_handling.log_error')
    def test_handle_safe_error_sensitive(self, _mock_log_error):
        response = SecurityAwareErrorHandler.handle_safe_error(ValueError("secret leaked"), "unit_op")

        self.assertTrue(response["error"].startswith("Error details have been redacted for security. Reference ID:"))

    # additional info does not override standard keys
    @patch('wordswap.app.utils.system_utils.error_handling.log_error')
    def test_handle_safe_error_additional_info(self, _mock_log_error):
        response = SecurityAwareErrorHandler.handle_safe_error(
            ValueError("x"), "unit_op", additional_info={"file_name": "a.pdf", "status": "ignored"}
        )

        self.assertEqual(response["file_name"], "a.pdf")
        self.assertEqual(response["status"], "error")
