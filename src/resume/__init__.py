"""
Resume Service - candidate profile extraction.
"""

from typing import Protocol

from shared.models import CandidateProfile

from .parser import ResumeParser


class DocumentParser(Protocol):
    """Turns a raw document buffer into a CandidateProfile."""

    async def extract(self, buffer: bytes) -> CandidateProfile: ...


__all__ = ["DocumentParser", "ResumeParser"]
