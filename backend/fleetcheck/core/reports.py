"""
Plain-text test reports for downloadable attempt summaries.
"""
import re
from datetime import date, datetime
from typing import Any, List, Optional

from fleetcheck.core.datetime_utils import utc_now
from fleetcheck.models.models import TestAttempt, TestStatus

NOT_AVAILABLE = "N/A"
NOT_ANSWERED = "Not answered"


def _format_date(value: Optional[datetime]) -> str:
    if value is None:
        return NOT_AVAILABLE
    return value.strftime("%Y-%m-%d")


def _format_score(score: Optional[float]) -> str:
    if score is None:
        return NOT_AVAILABLE
    return f"{score:g}%"


def _pass_fail(passed: Optional[bool]) -> str:
    if passed is None:
        return NOT_AVAILABLE
    return "PASS" if passed else "FAIL"


def _format_answer(answer: Any) -> str:
    if answer is None or answer == "":
        return NOT_ANSWERED
    return str(answer)


def build_test_report(
    attempt: TestAttempt, generated_at: Optional[datetime] = None
) -> str:
    """
    Render a test attempt as a plain-text report.

    Args:
        attempt: Attempt to report on
        generated_at: Timestamp printed in the footer (defaults to now, UTC)

    Returns:
        Report text, newline terminated
    """
    generated_at = generated_at or utc_now()
    title = f"Test Report - {attempt.test_type}"

    lines: List[str] = [
        title,
        "=" * len(title),
        "",
        "Test Information:",
        f"- Test ID: {attempt.id}",
        f"- Test Type: {attempt.test_type}",
        f"- Date Taken: {_format_date(attempt.started_at)}",
        f"- Completed: {_format_date(attempt.completed_at)}",
        "",
        "Results:",
        f"- Status: {TestStatus(attempt.status).value}",
        f"- Score: {_format_score(attempt.score)}",
        f"- Pass/Fail: {_pass_fail(attempt.passed)}",
        "",
        "Answers:",
    ]

    answers = attempt.answers or []
    if answers:
        for index, answer in enumerate(answers, start=1):
            lines.append(f"Q{index}: {_format_answer(answer)}")
    else:
        lines.append("No answers recorded")

    lines.extend(
        ["", f"Generated on: {generated_at.strftime('%Y-%m-%d %H:%M:%S %Z')}".rstrip()]
    )
    return "\n".join(lines) + "\n"


def report_filename(test_type: str, on: Optional[date] = None) -> str:
    """
    Download filename for a report, e.g. "Safety_Test_Report_2024-03-01.txt".

    Whitespace runs in the test type become single underscores.
    """
    on = on or utc_now().date()
    slug = re.sub(r"\s+", "_", test_type.strip()) or "Test"
    return f"{slug}_Report_{on.isoformat()}.txt"
