"""
This router defines the PDF report endpoint.

Clients upload a PDF together with an ordered list of find/replace pairs and the matching flags.
The service counts the occurrences of every pair, appends a report page to a copy of the document
and streams the processed PDF back as a download. The document text itself is never changed.

The endpoint includes:
- Upload validation (signature and size)
- Rate limiting
- Secure error handling
"""

import json
import uuid
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, File, UploadFile, Form, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from slowapi import Limiter
from slowapi.util import get_remote_address

from wordswap.app.domain.models import MatchOptions, SearchPair
from wordswap.app.services.replacement_report_service import ReplacementReportService
from wordswap.app.utils.constant.constant import APPLICATION_PDF
from wordswap.app.utils.logging.logger import log_info, log_warning
from wordswap.app.utils.system_utils.error_handling import SecurityAwareErrorHandler
from wordswap.app.utils.validation.file_validation import read_and_validate_file, sanitize_filename

# Rate limiter by client IP
limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


def parse_pairs(raw_pairs: str) -> List[SearchPair]:
    """
    Parse the JSON pair list sent by the client.

    Each entry is an object with "find_text", "replace_text" and an optional "id". Missing ids are
    assigned from the entry's 1-based position.

    Raises:
        ValueError: If the payload is not a JSON array of such objects.
    """
    try:
        entries = json.loads(raw_pairs)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid pairs JSON: {e.msg}") from e
    if not isinstance(entries, list):
        raise ValueError("Pairs must be a JSON array")

    pairs = []
    for position, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            raise ValueError(f"Pair {position} must be a JSON object")
        try:
            pairs.append(SearchPair(
                id=str(entry.get("id") or position),
                find_text=entry.get("find_text") or "",
                replace_text=entry.get("replace_text") or "",
            ))
        except ValidationError as e:
            raise ValueError(f"Pair {position} is invalid: {e.error_count()} error(s)") from e
    return pairs


def content_disposition(file_name: str) -> str:
    """Build an attachment header with an ASCII fallback name and the UTF-8 name."""
    safe_name = sanitize_filename(file_name)
    ascii_name = safe_name.encode("ascii", "ignore").decode("ascii") or "document_updated.pdf"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(safe_name)}"


@router.post("/report")
@limiter.limit("10/minute")
async def pdf_report(
    request: Request,
    file: UploadFile = File(...),
    pairs: str = Form(...),
    case_sensitive: bool = Form(False),
    whole_word: bool = Form(False),
) -> Response:
    """
    Count find-text occurrences in a PDF and return it with an appended report page.

    Args:
        request: The incoming HTTP request.
        file: The uploaded PDF file.
        pairs: JSON array of {"id", "find_text", "replace_text"} objects.
        case_sensitive: Match exact letter case.
        whole_word: Only match whole words.

    Returns:
        The processed PDF as an attachment on success, or a JSON error response.
    """
    operation_id = f"report_{uuid.uuid4().hex[:12]}"

    # Parse the pair list before touching the upload.
    try:
        search_pairs = parse_pairs(pairs)
    except ValueError as e:
        log_warning(f"[SECURITY] Rejected pair list: {e} [operation_id={operation_id}]")
        return JSONResponse(status_code=400, content={"detail": str(e), "operation_id": operation_id})

    # At least one non-empty find text is required.
    if not any(pair.find_text for pair in search_pairs):
        return JSONResponse(
            status_code=400,
            content={"detail": "At least one search string is required", "operation_id": operation_id},
        )

    # Read and validate the upload.
    content, error_response, _ = await read_and_validate_file(file, operation_id)
    if error_response is not None:
        return error_response

    source_name = sanitize_filename(file.filename)
    log_info(f"[OK] Report requested for {len(search_pairs)} pair(s) [operation_id={operation_id}]")

    try:
        result = await ReplacementReportService().process(
            content,
            source_name,
            search_pairs,
            MatchOptions(case_sensitive=case_sensitive, whole_word=whole_word),
        )
    except Exception as e:
        err = SecurityAwareErrorHandler.handle_safe_error(
            e, "api_pdf_report_router", endpoint=str(request.url), resource_id=operation_id
        )
        return JSONResponse(content=err, status_code=err.get("status_code", 500))

    if not result.success:
        return JSONResponse(
            status_code=422,
            content={"success": False, "error": result.error, "file_name": result.file_name},
        )

    return Response(
        content=result.output,
        media_type=APPLICATION_PDF,
        headers={
            "Content-Disposition": content_disposition(result.file_name),
            "X-Total-Matches": str(result.total_matches),
        },
    )
