"""
Analysis Pipeline - Main entry point.

Runs one analysis session in-process and prints the ranked results:
Fetch → Extract → Match → Rank

Usage:
    # Analyze a career page against a resume
    jobfit-analyze --url https://example.com/careers --resume cv.pdf

    # Stricter threshold, machine-readable output
    jobfit-analyze -u https://example.com/careers -r cv.yaml --threshold 80 --json
"""

import asyncio
import json
import sys
from pathlib import Path

import click
from loguru import logger

from shared.config import get_settings
from shared.errors import InputError
from shared.logging import setup_logging
from shared.models import SessionRecord, SessionStatus, SummaryStats

from .orchestrator import create_orchestrator


def format_report(record: SessionRecord) -> str:
    """Human-readable summary of a finished session."""
    if record.status == SessionStatus.FAILED:
        stage = record.failed_stage.value if record.failed_stage else "unknown"
        return f"Analysis failed during {stage}: {record.error}"

    summary = SummaryStats.from_results(record.results)
    lines = [
        f"Analyzed {summary.total_jobs} jobs: {summary.suitable_jobs} suitable "
        f"({summary.suitability_percentage}%), average score {summary.average_score}",
        "",
    ]
    for rank, result in enumerate(record.results, 1):
        marker = "✓" if result.suitable else " "
        location = f" - {result.location}" if result.location else ""
        lines.append(f"{rank:>3}. [{marker}] {result.match_score:>3}  {result.job_title}{location}")
        if result.missing_skills:
            lines.append(f"          missing: {', '.join(result.missing_skills)}")
        if result.apply_url:
            lines.append(f"          {result.apply_url}")
    return "\n".join(lines)


@click.command()
@click.option(
    "--url",
    "-u",
    required=True,
    help="Career page URL to scrape",
)
@click.option(
    "--resume",
    "-r",
    "resume_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Resume file (PDF, YAML CV or plain text)",
)
@click.option(
    "--max-jobs",
    "-j",
    type=int,
    default=None,
    help="Maximum jobs to analyze (default from settings)",
)
@click.option(
    "--threshold",
    "-t",
    type=int,
    default=None,
    help="Minimum match score for a job to be suitable (default from settings)",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the final session record as JSON",
)
def main(url: str, resume_path: Path, max_jobs: int, threshold: int, as_json: bool):
    """
    Job Fit Analyzer - score career page postings against a resume.

    Examples:
        # Default settings
        jobfit-analyze --url https://example.com/careers --resume cv.pdf

        # Analyze up to 5 jobs, suitable from 60
        jobfit-analyze -u https://example.com/careers -r cv.pdf -j 5 -t 60
    """
    setup_logging()
    settings = get_settings()
    document = resume_path.read_bytes()

    async def run() -> SessionRecord:
        orchestrator = create_orchestrator(settings)
        try:
            session_id = await orchestrator.start_analysis(url, document, max_jobs, threshold)
            return await orchestrator.wait(session_id)
        finally:
            await orchestrator.shutdown()

    try:
        record = asyncio.run(run())
    except InputError as e:
        raise click.BadParameter(e.message, param_hint=f"'{e.field}'")

    if as_json:
        payload = record.model_dump(mode="json")
        payload["summary"] = SummaryStats.from_results(record.results).model_dump()
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(f"\n{format_report(record)}")

    if record.status == SessionStatus.FAILED:
        logger.error(f"Session {record.session_id} failed: {record.error}")
        sys.exit(1)


if __name__ == "__main__":
    main()
