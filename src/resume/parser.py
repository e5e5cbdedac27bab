"""
Resume parser: turns an uploaded document into a CandidateProfile.

PDF documents go through PyMuPDF and the text heuristics, YAML CVs are
mapped field by field, anything else is treated as UTF-8 plain text.
"""

import asyncio

from loguru import logger

from shared.errors import ServiceError
from shared.models import CandidateProfile
from shared.validation import PDF_SIGNATURE

from .cv_yaml import parse_cv_yaml
from .extractor import build_profile
from .pdf import SERVICE_NAME, extract_text_from_pdf_bytes


class ResumeParser:
    """Extracts structured candidate data from resume documents."""

    async def extract(self, buffer: bytes) -> CandidateProfile:
        """
        Parse a document buffer.

        Raises:
            ServiceError: EMPTY_DOCUMENT if no text is extractable,
                PARSING_FAILED if the buffer cannot be read
        """
        # PyMuPDF and the regex heuristics are CPU-bound
        return await asyncio.to_thread(self.extract_sync, buffer)

    def extract_sync(self, buffer: bytes) -> CandidateProfile:
        if buffer.startswith(PDF_SIGNATURE):
            text = extract_text_from_pdf_bytes(buffer)
        else:
            profile = parse_cv_yaml(buffer)
            if profile is not None:
                return profile
            try:
                text = buffer.decode("utf-8").strip()
            except UnicodeDecodeError:
                raise ServiceError(
                    "Failed to parse resume: unsupported document format",
                    SERVICE_NAME,
                    "PARSING_FAILED",
                    retryable=False,
                )

        if not text:
            raise ServiceError(
                "No text could be extracted from the resume",
                SERVICE_NAME,
                "EMPTY_DOCUMENT",
                retryable=False,
            )

        profile = build_profile(text)
        logger.info(
            f"Parsed resume: {profile.years_of_experience} years, "
            f"{len(profile.skills)} skills, {len(profile.technologies)} technologies, "
            f"{len(profile.previous_roles)} roles"
        )
        return profile
