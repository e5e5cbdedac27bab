"""
Heuristic extraction of a candidate profile from plain resume text.
"""

import re
from datetime import datetime

from shared.keywords import MAX_YEARS, find_skills, find_stated_years, find_technologies
from shared.models import CandidateProfile

DATE_RANGE = re.compile(r"(\d{4})\s*[-–—]\s*(present|current|\d{4})", re.IGNORECASE)

SKILLS_SECTION = re.compile(
    r"(?:^|\n)\s*(?:skills|technical skills|core competencies|expertise)[:\s]*\n"
    r"([\s\S]*?)"
    r"(?=\n\s*(?:experience|education|projects|certifications)\b|$)",
    re.IGNORECASE,
)

BULLET = re.compile(r"^\s*[•\-\*]\s*(.+)$", re.MULTILINE)

TITLE_KEYWORDS = [
    "engineer", "developer", "architect", "manager", "lead", "senior", "junior",
    "principal", "staff", "director", "analyst", "consultant", "specialist",
    "administrator", "designer", "scientist", "researcher", "intern", "coordinator",
    "technician", "programmer", "cto", "ceo", "vp", "head of",
]

DATE_HINT = re.compile(r"\d{4}|\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)", re.IGNORECASE)


def extract_years_of_experience(text: str) -> int:
    """
    Years of experience from explicit mentions ("5+ years of experience"),
    falling back to the sum of year ranges ("2018 - 2021", "2021 - present").
    """
    years = find_stated_years(text)
    if years:
        return years

    current_year = datetime.now().year
    total = 0
    for match in DATE_RANGE.finditer(text):
        start = int(match.group(1))
        end = int(match.group(2)) if match.group(2).isdigit() else current_year
        if 1970 <= start <= current_year and end >= start:
            total += end - start

    return min(total, MAX_YEARS)


def extract_skills(text: str) -> list[str]:
    """Skills from the skills section (keywords and bullet items), else the whole text."""
    skills: list[str] = []

    section = SKILLS_SECTION.search(text)
    if section:
        body = section.group(1)
        skills.extend(find_skills(body))
        for item in BULLET.findall(body):
            cleaned = item.strip().lower()
            if 2 < len(cleaned) < 50 and cleaned not in skills:
                skills.append(cleaned)

    if not skills:
        skills = find_skills(text)

    return skills


def extract_previous_roles(text: str) -> list[str]:
    """Lines that look like job titles followed by (or containing) dates."""
    roles: list[str] = []
    lines = text.splitlines()

    for i, raw_line in enumerate(lines):
        line = raw_line.strip()
        if not line or len(line) > 100:
            continue

        lowered = line.lower()
        if not any(keyword in lowered for keyword in TITLE_KEYWORDS):
            continue

        next_line = lines[i + 1].strip() if i + 1 < len(lines) else ""
        if not (DATE_HINT.search(next_line) or re.search(r"\d{4}", line)):
            continue

        role = DATE_RANGE.sub("", line)
        role = re.sub(r"^[•\-\*]\s*", "", role)
        role = re.sub(r"\s+at\s+.+$", "", role, flags=re.IGNORECASE)
        role = re.sub(r"\s*[,|]\s*.+$", "", role).strip()

        if 3 < len(role) < 80 and role not in roles:
            roles.append(role)

    return roles


def build_profile(text: str) -> CandidateProfile:
    """Build a CandidateProfile from extracted resume text."""
    return CandidateProfile(
        skills=extract_skills(text),
        technologies=find_technologies(text),
        years_of_experience=extract_years_of_experience(text),
        previous_roles=extract_previous_roles(text),
        raw_text=text,
    )
