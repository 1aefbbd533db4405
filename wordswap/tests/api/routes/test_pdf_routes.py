import json

import pymupdf
import pytest
from fastapi.testclient import TestClient

from wordswap.app.api.main import create_app
from wordswap.app.api.routes.pdf_routes import limiter, parse_pairs, content_disposition
from wordswap.app.configs.config_singleton import get_config, set_config


def build_pdf(page_texts):
    doc = pymupdf.open()
    for text in page_texts:
        page = doc.new_page()
        if text:
            page.insert_text((72, 100), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def client():
    limiter.reset()
    return TestClient(create_app())


@pytest.fixture
def cat_pdf_bytes():
    return build_pdf(["The cat sat on the mat", "concatenate this"])


def post_report(client, content, pairs, filename="animals.pdf", **flags):
    data = {"pairs": pairs if isinstance(pairs, str) else json.dumps(pairs)}
    data.update({key: str(value).lower() for key, value in flags.items()})
    return client.post(
        "/pdf/report",
        files={"file": (filename, content, "application/pdf")},
        data=data,
    )


class TestPdfReportRoute:

    # Test successful report download
    def test_report_success(self, client, cat_pdf_bytes):
        response = post_report(
            client, cat_pdf_bytes,
            [{"id": "1", "find_text": "cat", "replace_text": "dog"}],
            whole_word=True,
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["x-total-matches"] == "1"
        assert 'filename="animals_updated.pdf"' in response.headers["content-disposition"]
        with pymupdf.open(stream=response.content, filetype="pdf") as doc:
            assert doc.page_count == 3
            assert "cat -> dog: 1 occurrences" in doc[-1].get_text()

    # Test case-sensitive flag is applied
    def test_report_case_sensitive(self, client, cat_pdf_bytes):
        pairs = [{"find_text": "THE", "replace_text": "a"}]

        insensitive = post_report(client, cat_pdf_bytes, pairs)
        sensitive = post_report(client, cat_pdf_bytes, pairs, case_sensitive=True)

        assert insensitive.headers["x-total-matches"] == "2"
        assert sensitive.headers["x-total-matches"] == "0"

    # Test security headers are present
    def test_security_headers(self, client, cat_pdf_bytes):
        response = post_report(client, cat_pdf_bytes, [{"find_text": "cat"}])

        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
        assert "x-request-id" in response.headers

    # Test malformed pairs JSON is rejected
    def test_invalid_pairs_json(self, client, cat_pdf_bytes):
        response = post_report(client, cat_pdf_bytes, "{not json")

        assert response.status_code == 400
        assert "Invalid pairs JSON" in response.json()["detail"]

    # Test pairs must be an array
    def test_pairs_not_array(self, client, cat_pdf_bytes):
        response = post_report(client, cat_pdf_bytes, {"find_text": "cat"})

        assert response.status_code == 400

    # Test at least one search string is required
    def test_no_search_text(self, client, cat_pdf_bytes):
        response = post_report(client, cat_pdf_bytes, [{"find_text": "", "replace_text": "x"}])

        assert response.status_code == 400
        assert response.json()["detail"] == "At least one search string is required"

    # Test non-PDF uploads are rejected
    def test_not_a_pdf(self, client):
        response = post_report(client, b"plain text file", [{"find_text": "cat"}], filename="notes.txt")

        assert response.status_code == 400
        assert response.json()["detail"] == "Only PDF files are supported"

    # Test oversized uploads are rejected
    def test_too_large(self, cat_pdf_bytes):
        previous = get_config("max_pdf_size_bytes")
        set_config("max_pdf_size_bytes", 100)
        try:
            limiter.reset()
            response = post_report(TestClient(create_app()), cat_pdf_bytes, [{"find_text": "cat"}])
        finally:
            set_config("max_pdf_size_bytes", previous)

        assert response.status_code == 413

    # Test unreadable PDFs produce a failure payload
    def test_unreadable_pdf(self, client):
        response = post_report(client, b"%PDF-1.4\nthis is not a real document", [{"find_text": "cat"}])

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"]
        assert body["file_name"] == ""

    # Test the endpoint is rate limited
    def test_rate_limit(self, client, cat_pdf_bytes):
        statuses = [post_report(client, cat_pdf_bytes, "{bad").status_code for _ in range(11)]

        assert statuses[:10] == [400] * 10
        assert statuses[10] == 429


class TestParsePairs:

    # Test ids are assigned by position when missing
    def test_default_ids(self):
        pairs = parse_pairs(json.dumps([{"find_text": "a"}, {"id": "x", "find_text": "b", "replace_text": "c"}]))

        assert [pair.id for pair in pairs] == ["1", "x"]
        assert pairs[0].replace_text == ""
        assert pairs[1].replace_text == "c"

    # Test entries must be objects
    def test_entry_not_object(self):
        with pytest.raises(ValueError):
            parse_pairs(json.dumps(["cat"]))

    # Test wrong field types are rejected
    def test_wrong_field_type(self):
        with pytest.raises(ValueError):
            parse_pairs(json.dumps([{"find_text": ["cat"]}]))


class TestContentDisposition:

    # Test ASCII names
    def test_ascii_name(self):
        assert content_disposition("a_updated.pdf") == (
            "attachment; filename=\"a_updated.pdf\"; filename*=UTF-8''a_updated.pdf"
        )

    # Test non-ASCII names get an encoded variant
    def test_unicode_name(self):
        header = content_disposition("Café_updated.pdf")

        assert 'filename="Caf_updated.pdf"' in header
        assert "filename*=UTF-8''Caf%C3%A9_updated.pdf" in header
