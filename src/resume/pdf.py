import fitz  # PyMuPDF

from shared.errors import ServiceError

SERVICE_NAME = "resume-parser"


def extract_text_from_pdf_bytes(pdf_bytes: bytes) -> str:
    """Extract readable text from a PDF file."""
    text = ""
    try:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
            for page in doc:
                text += page.get_text("text")
    except (RuntimeError, ValueError) as e:  # fitz.FileDataError is a RuntimeError
        raise ServiceError(
            f"Failed to parse resume: {e}",
            SERVICE_NAME,
            "PARSING_FAILED",
            retryable=False,
        )
    return text.strip()
