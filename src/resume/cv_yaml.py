"""
CV loader for YAML resumes.
Maps the legacy CV layout and the RenderCV layout onto a CandidateProfile.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import yaml
from loguru import logger

from shared.errors import ServiceError
from shared.keywords import MAX_YEARS, find_technologies
from shared.models import CandidateProfile

SERVICE_NAME = "resume-parser"

YEAR = re.compile(r"(\d{4})")


@dataclass
class ExperienceEntry:
    """Work experience entry."""

    company: str = ""
    title: str = ""
    start_date: str = ""
    end_date: str = ""
    highlights: list[str] = field(default_factory=list)
    technologies: list[str] = field(default_factory=list)


@dataclass
class CVData:
    """CV fields relevant to matching."""

    name: str = ""
    headline: str = ""
    summary: str = ""
    core_competencies: list[str] = field(default_factory=list)
    technical_skills: dict[str, list[str]] = field(default_factory=dict)
    experience: list[ExperienceEntry] = field(default_factory=list)
    years_of_experience: Optional[int] = None


def looks_like_cv_yaml(data: Any) -> bool:
    return isinstance(data, dict) and any(
        key in data for key in ("cv", "personal", "experience", "technical_skills")
    )


def load_cv_data(data: dict) -> CVData:
    """Load CV from parsed YAML. Supports both legacy and RenderCV formats."""
    # Detect format: RenderCV uses "cv" as root key
    if "cv" in data:
        return _load_rendercv_format(data)

    personal = data.get("personal") or {}
    experience = [
        ExperienceEntry(
            company=exp.get("company", ""),
            title=exp.get("title", ""),
            start_date=str(exp.get("start_date", "")),
            end_date=str(exp.get("end_date", "")),
            highlights=(exp.get("achievements") or []) + (exp.get("responsibilities") or []),
            technologies=exp.get("technologies") or [],
        )
        for exp in data.get("experience") or []
    ]

    return CVData(
        name=personal.get("name", ""),
        headline=personal.get("headline", ""),
        summary=data.get("summary", ""),
        core_competencies=data.get("core_competencies") or [],
        technical_skills=data.get("technical_skills") or {},
        experience=experience,
        years_of_experience=data.get("years_of_experience"),
    )


def _load_rendercv_format(data: dict) -> CVData:
    """Load CV from RenderCV YAML format."""
    cv = data.get("cv") or {}
    sections = cv.get("sections") or {}

    experience = [
        ExperienceEntry(
            company=exp.get("company", ""),
            title=exp.get("position", ""),
            start_date=str(exp.get("start_date", "")),
            end_date=str(exp.get("end_date", "")),
            highlights=exp.get("highlights") or [],
        )
        for exp in sections.get("experience") or []
    ]

    # Parse skills into technical_skills dict
    technical_skills = {}
    for skill in sections.get("skills") or []:
        label = skill.get("label", "").lower().replace(" ", "_")
        details = skill.get("details", "")
        if details:
            technical_skills[label] = [s.strip() for s in details.split(",") if s.strip()]

    summary_list = sections.get("summary") or []

    return CVData(
        name=cv.get("name", ""),
        headline=cv.get("label", ""),  # RenderCV uses 'label' for headline
        summary=summary_list[0] if summary_list else "",
        technical_skills=technical_skills,
        experience=experience,
    )


def _years_from_experience(entries: list[ExperienceEntry]) -> int:
    """Span from the earliest start year to the latest end year (or now)."""
    current_year = datetime.now().year
    starts, ends = [], []
    for exp in entries:
        start = YEAR.search(exp.start_date)
        if not start:
            continue
        starts.append(int(start.group(1)))
        end = YEAR.search(exp.end_date)
        ends.append(int(end.group(1)) if end else current_year)

    if not starts:
        return 0
    return max(0, min(max(ends) - min(starts), MAX_YEARS))


def to_context_string(cv: CVData) -> str:
    """Convert CV to plain text, used as the profile's raw text."""
    sections = []

    if cv.name:
        sections.append(f"# {cv.name}")
    if cv.headline:
        sections.append(cv.headline)
    if cv.summary:
        sections.append(f"\n## Professional Summary\n{cv.summary.strip()}")
    if cv.core_competencies:
        sections.append("\n## Core Competencies")
        sections.append(", ".join(map(str, cv.core_competencies)))

    if cv.technical_skills:
        sections.append("\n## Technical Skills")
        for category, skills in cv.technical_skills.items():
            category_name = category.replace("_", " ").title()
            sections.append(f"{category_name}: {', '.join(map(str, skills))}")

    if cv.experience:
        sections.append("\n## Professional Experience")
        for exp in cv.experience:
            sections.append(f"\n### {exp.title} at {exp.company}")
            if exp.start_date:
                sections.append(f"Period: {exp.start_date} - {exp.end_date}")
            for highlight in exp.highlights:
                sections.append(f"- {highlight}")
            if exp.technologies:
                sections.append(f"Technologies: {', '.join(map(str, exp.technologies))}")

    return "\n".join(sections).strip()


def profile_from_cv_data(cv: CVData) -> CandidateProfile:
    raw_text = to_context_string(cv)

    listed = [skill for skills in cv.technical_skills.values() for skill in skills]
    for exp in cv.experience:
        listed.extend(exp.technologies)

    # Known technologies first, then anything else the CV lists explicitly
    technologies = find_technologies(raw_text)
    known = {tech.lower() for tech in technologies}
    skills = [str(s) for s in cv.core_competencies + listed if str(s).lower() not in known]

    years = cv.years_of_experience
    if not isinstance(years, int) or years < 0:
        years = _years_from_experience(cv.experience)

    return CandidateProfile(
        skills=list(dict.fromkeys(skills)),
        technologies=technologies,
        years_of_experience=years,
        previous_roles=list(dict.fromkeys(exp.title for exp in cv.experience if exp.title)),
        raw_text=raw_text,
    )


def parse_cv_yaml(buffer: bytes) -> Optional[CandidateProfile]:
    """
    Parse a YAML CV buffer.

    Returns:
        CandidateProfile, or None if the buffer is not a YAML CV

    Raises:
        ServiceError: if the YAML is a CV but yields no usable text
    """
    try:
        data = yaml.safe_load(buffer.decode("utf-8"))
    except (UnicodeDecodeError, yaml.YAMLError):
        return None

    if not looks_like_cv_yaml(data):
        return None

    cv = load_cv_data(data)
    profile = profile_from_cv_data(cv)
    if not profile.raw_text:
        raise ServiceError(
            "No text could be extracted from the CV",
            SERVICE_NAME,
            "EMPTY_DOCUMENT",
            retryable=False,
        )

    logger.info(f"Loaded YAML CV for: {cv.name or 'unknown candidate'}")
    return profile
