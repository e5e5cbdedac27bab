"""
Test cases for the command line entry points
"""
import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from api.main import main as api_main
from pipeline.main import format_report, main
from pipeline.orchestrator import AnalysisOrchestrator
from pipeline.session_store import SessionStore
from shared.models import MatchResult, Operation, SessionRecord, SessionStatus

from conftest import FakeParser, FakeScraper, make_posting


@pytest.fixture
def resume_file(tmp_path):
    path = tmp_path / "cv.txt"
    path.write_text("Python developer with 5 years of experience")
    return path


@pytest.fixture
def build(settings, engine):
    def factory(scraper):
        def create(_settings=None):
            return AnalysisOrchestrator(SessionStore(), scraper, FakeParser(), engine, settings)

        return create

    return factory


class TestAnalyzeCommand:
    def test_prints_ranked_report(self, resume_file, build):
        scraper = FakeScraper([make_posting("Backend Engineer"), make_posting("Data Engineer")])
        with patch("pipeline.main.create_orchestrator", build(scraper)), patch("pipeline.main.setup_logging"):
            result = CliRunner().invoke(
                main, ["--url", "https://example.com/careers", "--resume", str(resume_file)]
            )

        assert result.exit_code == 0, result.output
        assert "Analyzed 2 jobs" in result.output
        assert "Backend Engineer" in result.output
        assert scraper.calls == [("https://example.com/careers", 10)]

    def test_json_output(self, resume_file, build):
        scraper = FakeScraper([make_posting("Backend Engineer")])
        with patch("pipeline.main.create_orchestrator", build(scraper)), patch("pipeline.main.setup_logging"):
            result = CliRunner().invoke(
                main,
                ["-u", "https://example.com/careers", "-r", str(resume_file), "-t", "40", "--json"],
            )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["status"] == "completed"
        assert data["threshold"] == 40
        assert data["summary"]["total_jobs"] == 1
        assert data["results"][0]["suitable"] is True

    def test_failed_session_exits_non_zero(self, resume_file, build):
        with patch("pipeline.main.create_orchestrator", build(FakeScraper([]))), patch("pipeline.main.setup_logging"):
            result = CliRunner().invoke(
                main, ["--url", "https://example.com/careers", "--resume", str(resume_file)]
            )

        assert result.exit_code == 1
        assert "No job postings found" in result.output

    def test_invalid_input_is_usage_error(self, resume_file, build):
        with patch("pipeline.main.create_orchestrator", build(FakeScraper([]))), patch("pipeline.main.setup_logging"):
            result = CliRunner().invoke(
                main, ["--url", "ftp://example.com", "--resume", str(resume_file)]
            )

        assert result.exit_code == 2
        assert "HTTP or HTTPS" in result.output


class TestFormatReport:
    def test_failed(self):
        record = SessionRecord(
            session_id="s1",
            status=SessionStatus.FAILED,
            error="Analysis cancelled",
            failed_stage=Operation.MATCHING,
        )
        assert format_report(record) == "Analysis failed during matching: Analysis cancelled"

    def test_completed(self):
        result = MatchResult(
            job_id="j1",
            job_title="SRE",
            location="Zurich",
            match_score=81,
            suitable=True,
            missing_skills=["Terraform"],
            reasoning="Good fit.",
            apply_url="https://example.com/jobs/sre",
        )
        record = SessionRecord(session_id="s1", status=SessionStatus.COMPLETED, results=[result])
        report = format_report(record)
        assert "1 suitable (100.0%)" in report
        assert "SRE - Zurich" in report
        assert "missing: Terraform" in report
        assert "https://example.com/jobs/sre" in report


class TestApiCommand:
    def test_runs_uvicorn_with_overrides(self):
        with patch("api.main.uvicorn.run") as mock_run, patch("api.main.setup_logging"):
            result = CliRunner().invoke(api_main, ["--host", "127.0.0.1", "--port", "9000"])

        assert result.exit_code == 0, result.output
        mock_run.assert_called_once()
        args, kwargs = mock_run.call_args
        assert args == ("api.server:create_app",)
        assert kwargs["factory"] is True
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 9000
        assert kwargs["reload"] is False
