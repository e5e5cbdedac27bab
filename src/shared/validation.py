"""
Input validation for analysis requests.

Everything here raises InputError; nothing that fails validation ever
reaches the pipeline.
"""

import ipaddress
from typing import Any, Optional
from urllib.parse import urlparse

from .errors import InputError

PDF_SIGNATURE = b"%PDF-"

DANGEROUS_PATTERNS = (
    "javascript:",
    "data:",
    "file:",
    "vbscript:",
    "<script",
    "onerror=",
    "onclick=",
)


def validate_url(url: Any, production: bool = False) -> str:
    """Validate a career page URL and return it stripped."""
    if not url or not isinstance(url, str):
        raise InputError("URL is required and must be a string", "url", "INVALID_URL")

    url = url.strip()
    lowered = url.lower()
    # Checked before parsing so embedded payloads never reach the scraper
    for pattern in DANGEROUS_PATTERNS:
        if pattern in lowered:
            raise InputError(
                "URL contains potentially dangerous content", "url", "DANGEROUS_URL"
            )

    try:
        parsed = urlparse(url)
    except ValueError:
        raise InputError("Invalid URL format", "url", "INVALID_URL_FORMAT")

    if parsed.scheme not in ("http", "https"):
        raise InputError(
            "URL must use HTTP or HTTPS protocol", "url", "INVALID_PROTOCOL"
        )
    if not parsed.hostname:
        raise InputError("Invalid URL format", "url", "INVALID_URL_FORMAT")

    if production:
        hostname = parsed.hostname.lower()
        if hostname == "localhost":
            raise InputError(
                "Localhost URLs are not allowed in production",
                "url",
                "LOCALHOST_NOT_ALLOWED",
            )
        try:
            address = ipaddress.ip_address(hostname)
        except ValueError:
            address = None
        if address is not None and address.is_loopback:
            raise InputError(
                "Localhost URLs are not allowed in production",
                "url",
                "LOCALHOST_NOT_ALLOWED",
            )
        if address is not None and address.is_private:
            raise InputError(
                "Private IP addresses are not allowed", "url", "PRIVATE_IP_NOT_ALLOWED"
            )

    return url


def validate_pdf(
    content: bytes,
    content_type: Optional[str],
    max_size_mb: int = 10,
    field: str = "resume",
) -> None:
    """Validate an uploaded resume: type, size and PDF signature."""
    if content_type != "application/pdf":
        raise InputError("Only PDF files are allowed", field, "INVALID_FILE_TYPE")

    if len(content) == 0:
        raise InputError("File is empty", field, "EMPTY_FILE")

    if len(content) > max_size_mb * 1024 * 1024:
        raise InputError(
            f"File size must not exceed {max_size_mb}MB", field, "FILE_TOO_LARGE"
        )

    if not content.startswith(PDF_SIGNATURE):
        raise InputError(
            "Invalid PDF file - missing PDF signature", field, "INVALID_PDF_SIGNATURE"
        )


def validate_int_range(value: Any, field: str, minimum: int, maximum: int) -> int:
    """Coerce value to an integer in [minimum, maximum]."""
    if isinstance(value, bool):
        raise InputError(f"{field} must be a valid number", field, "INVALID_NUMBER")

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InputError(f"{field} must be a valid number", field, "INVALID_NUMBER")

    if number != number or not number.is_integer():
        raise InputError(f"{field} must be an integer", field, "NOT_INTEGER")

    number = int(number)
    if number < minimum or number > maximum:
        raise InputError(
            f"{field} must be between {minimum} and {maximum}", field, "OUT_OF_RANGE"
        )
    return number


def validate_max_jobs(value: Any) -> int:
    return validate_int_range(value, "max_jobs", 1, 100)


def validate_threshold(value: Any) -> int:
    return validate_int_range(value, "threshold", 0, 100)
