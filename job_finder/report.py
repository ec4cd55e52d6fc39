import datetime as dt
import re

from job_finder.schemas import Step

_MARKDOWN_NOISE = re.compile(r"\*\*|###|`")


def clean_output(text: str) -> str:
    """Drop bold markers, heading hashes and backticks so the report reads as plain text."""
    return _MARKDOWN_NOISE.sub("", text)


def render_markdown_report(
    workflow_name: str,
    job_type: str,
    location: str,
    steps: list[Step],
    generated_at: dt.datetime | None = None,
) -> str:
    generated_at = generated_at or dt.datetime.now()
    lines = [
        "# JOB FINDER REPORT",
        "",
        f"Generated: {generated_at:%Y-%m-%d %H:%M}",
        f"Workflow: {workflow_name}",
        f"Query: {job_type}",
        f"Location: {location}",
        "",
        "---",
    ]

    for i, step in enumerate(steps, 1):
        lines += ["", f"## SECTION {i}: {step.title.upper()}", ""]
        lines.append(clean_output(step.output) if step.output else "_No output generated._")
        if step.sources:
            lines += ["", "**DIRECT LINKS FOUND:**", ""]
            lines += [f"- [{source.title}]({source.uri})" for source in step.sources]
        lines += ["", "---"]

    return "\n".join(lines) + "\n"


def report_filename(day: dt.date | None = None) -> str:
    day = day or dt.date.today()
    return f"Job_Finder_Report_{day.isoformat()}.md"
