"""CSV export of the job list."""
from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable

from jobcollector.log import get_logger
from jobcollector.models import JobRecord

log = get_logger(__name__)

HEADERS: list[str] = ["Title", "Company", "Location", "Salary", "URL", "Date Captured", "Status"]


def _row(job: JobRecord) -> list[str]:
    return [job.title, job.company, job.location, job.salary, job.url, job.date_captured, job.status]


def to_csv(jobs: Iterable[JobRecord]) -> str:
    """Plain header row, then one fully quoted row per job, joined by newlines."""
    buf = io.StringIO()
    buf.write(",".join(HEADERS))
    rows = [_row(job) for job in jobs]
    if rows:
        buf.write("\n")
        csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n").writerows(rows)
    # no newline after the last row
    return buf.getvalue().rstrip("\n")


def export_filename(today: date | None = None) -> str:
    return f"job_applications_{(today or datetime.now(timezone.utc).date()).isoformat()}.csv"


def write_csv(jobs: Iterable[JobRecord], directory: Path, today: date | None = None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(today)
    path.write_text(to_csv(jobs), encoding="utf-8")
    log.info("Exported job list → %s", path)
    return path
