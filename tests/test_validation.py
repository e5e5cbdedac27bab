"""
Test cases for request input validation
"""
import pytest

from shared.errors import InputError
from shared.validation import (
    validate_int_range,
    validate_max_jobs,
    validate_pdf,
    validate_threshold,
    validate_url,
)


def code_of(func, *args, **kwargs):
    with pytest.raises(InputError) as exc_info:
        func(*args, **kwargs)
    return exc_info.value.code


class TestValidateUrl:
    def test_valid_url_is_stripped(self):
        assert validate_url("  https://jobs.example.com/openings ") == "https://jobs.example.com/openings"

    @pytest.mark.parametrize("url", [None, "", 42])
    def test_missing(self, url):
        assert code_of(validate_url, url) == "INVALID_URL"

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/?q=<script>alert(1)</script>",
            "data:text/html;base64,AAAA",
            "https://example.com/careers?onerror=steal()",
        ],
    )
    def test_dangerous_content(self, url):
        assert code_of(validate_url, url) == "DANGEROUS_URL"

    def test_protocol(self):
        assert code_of(validate_url, "ftp://example.com") == "INVALID_PROTOCOL"

    def test_missing_host(self):
        assert code_of(validate_url, "http:///careers") == "INVALID_URL_FORMAT"

    def test_localhost_allowed_outside_production(self):
        assert validate_url("http://localhost:3000/jobs") == "http://localhost:3000/jobs"
        assert validate_url("http://192.168.1.10/jobs") == "http://192.168.1.10/jobs"

    @pytest.mark.parametrize("url", ["http://localhost/jobs", "http://127.0.0.1:8000/jobs"])
    def test_localhost_rejected_in_production(self, url):
        assert code_of(validate_url, url, production=True) == "LOCALHOST_NOT_ALLOWED"

    @pytest.mark.parametrize("url", ["http://10.0.0.5/jobs", "http://172.16.4.1/", "http://192.168.0.1/"])
    def test_private_ip_rejected_in_production(self, url):
        assert code_of(validate_url, url, production=True) == "PRIVATE_IP_NOT_ALLOWED"

    def test_public_host_allowed_in_production(self):
        assert validate_url("https://careers.example.org", production=True)


class TestValidatePdf:
    def test_valid(self):
        validate_pdf(b"%PDF-1.7 body", "application/pdf")

    def test_wrong_type(self):
        assert code_of(validate_pdf, b"%PDF-1.7", "image/png") == "INVALID_FILE_TYPE"

    def test_empty(self):
        assert code_of(validate_pdf, b"", "application/pdf") == "EMPTY_FILE"

    def test_too_large(self):
        content = b"%PDF-" + b"x" * (2 * 1024 * 1024)
        assert code_of(validate_pdf, content, "application/pdf", max_size_mb=2) == "FILE_TOO_LARGE"

    def test_signature(self):
        assert code_of(validate_pdf, b"hello", "application/pdf") == "INVALID_PDF_SIGNATURE"

    def test_field_name(self):
        with pytest.raises(InputError) as exc_info:
            validate_pdf(b"", "application/pdf", field="cv")
        assert exc_info.value.field == "cv"


class TestValidateNumbers:
    @pytest.mark.parametrize("value, expected", [(5, 5), ("7", 7), (3.0, 3), ("100", 100)])
    def test_coercion(self, value, expected):
        assert validate_max_jobs(value) == expected

    @pytest.mark.parametrize("value", ["abc", None, True, [1]])
    def test_not_a_number(self, value):
        assert code_of(validate_max_jobs, value) == "INVALID_NUMBER"

    @pytest.mark.parametrize("value", [2.5, "nan", "inf"])
    def test_not_integer(self, value):
        assert code_of(validate_threshold, value) == "NOT_INTEGER"

    def test_bounds(self):
        assert validate_threshold(0) == 0
        assert validate_threshold(100) == 100
        assert code_of(validate_threshold, 101) == "OUT_OF_RANGE"
        assert code_of(validate_max_jobs, 0) == "OUT_OF_RANGE"

    def test_error_names_field(self):
        with pytest.raises(InputError) as exc_info:
            validate_int_range("x", "batch", 1, 5)
        assert exc_info.value.field == "batch"
        assert exc_info.value.to_dict() == {
            "error": "batch must be a valid number",
            "field": "batch",
            "code": "INVALID_NUMBER",
        }
