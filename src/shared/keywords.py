"""
Keyword tables and text helpers used to pull skills and experience out of
free text (resumes and scraped job pages).
"""

import re

TECHNOLOGY_KEYWORDS = [
    # Programming languages
    "JavaScript", "TypeScript", "Python", "Java", "C++", "C#", "Ruby", "Go", "Rust",
    "PHP", "Swift", "Kotlin", "Scala", "R", "MATLAB", "Perl", "Shell", "Bash",
    # Frontend
    "React", "Angular", "Vue", "Svelte", "Next.js", "Nuxt", "HTML", "CSS", "SASS",
    "LESS", "Tailwind", "Bootstrap", "Material UI", "jQuery", "Webpack", "Vite",
    # Backend
    "Node.js", "Express", "Django", "Flask", "FastAPI", "Spring", "ASP.NET",
    "Rails", "Laravel", "NestJS", "Fastify",
    # Databases
    "PostgreSQL", "MySQL", "MongoDB", "Redis", "Elasticsearch", "DynamoDB",
    "Cassandra", "Oracle", "SQL Server", "SQLite", "MariaDB",
    # Cloud & DevOps
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Jenkins", "GitLab CI",
    "GitHub Actions", "Terraform", "Ansible", "CircleCI", "Travis CI",
    # Tools & others
    "Git", "GraphQL", "REST", "gRPC", "Microservices", "CI/CD", "Agile", "Scrum",
    "TDD", "Jest", "Mocha", "Pytest", "JUnit", "Selenium", "Cypress",
]

SKILL_KEYWORDS = [
    "leadership", "communication", "problem solving", "teamwork", "project management",
    "analytical", "critical thinking", "collaboration", "mentoring", "architecture",
    "design patterns", "system design", "debugging", "testing", "documentation",
    "code review", "performance optimization", "security", "scalability", "API design",
]

YEARS_PATTERNS = [
    re.compile(r"(\d+)\+?\s*years?\s+(?:of\s+)?(?:professional\s+)?experience", re.IGNORECASE),
    re.compile(r"experience[:\s]+(\d+)\+?\s*years?", re.IGNORECASE),
]

MAX_YEARS = 50


def _keyword_pattern(keyword: str) -> re.Pattern:
    # \b does not work next to symbols such as "C++" or "C#"
    flags = 0 if len(keyword) <= 2 else re.IGNORECASE
    return re.compile(rf"(?<![\w+#.]){re.escape(keyword)}(?![\w+#])", flags)


_TECH_PATTERNS = [(tech, _keyword_pattern(tech)) for tech in TECHNOLOGY_KEYWORDS]
_SKILL_PATTERNS = [(skill, _keyword_pattern(skill)) for skill in SKILL_KEYWORDS]


def find_technologies(text: str) -> list[str]:
    """Return every known technology mentioned in the text, in table order."""
    return [tech for tech, pattern in _TECH_PATTERNS if pattern.search(text)]


def find_skills(text: str) -> list[str]:
    """Return every known soft/engineering skill mentioned in the text."""
    return [skill.lower() for skill, pattern in _SKILL_PATTERNS if pattern.search(text)]


def find_stated_years(text: str) -> int:
    """Largest explicit "N years of experience" mention, 0 if none."""
    best = 0
    for pattern in YEARS_PATTERNS:
        for match in pattern.finditer(text):
            years = int(match.group(1))
            if best < years <= MAX_YEARS:
                best = years
    return best
