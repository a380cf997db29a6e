#!/usr/bin/env python3
"""
Command-line access to the job collector.

    python collect.py url https://careers.tencent.com/jobdesc.html?postId=1 [--ai]
    python collect.py text posting.txt [--url URL]
    python collect.py image screenshot.png [--url URL]
    python collect.py list [--query QUERY]
    python collect.py status ITEM_ID applied
    python collect.py edit ITEM_ID --title "Backend Engineer" --salary "30-50k"
    python collect.py delete ITEM_ID [--yes]
    python collect.py export [--out DIR]
    python collect.py resolve URL
"""
from __future__ import annotations

import argparse
import mimetypes
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT))

from jobcollector import org_resolver
from jobcollector.config import DATA_DIR
from jobcollector.controller import ApplicationController, build_controller
from jobcollector.errors import CaptureError, JobCollectorError
from jobcollector.export import write_csv
from jobcollector.log import get_logger
from jobcollector.models import STATUSES, JobRecord

log = get_logger(__name__)


def _ask_yn(prompt: str, default: bool = False) -> bool:
    hint = "Y/n" if default else "y/N"
    val = input(f"  {prompt} ({hint}): ").strip().lower()
    if not val:
        return default
    return val in ("y", "yes")


def _print_job(job: JobRecord) -> None:
    print(f"  {job.id}  [{job.status_label}]  {job.title} @ {job.company}")
    details = " | ".join(p for p in (job.location, job.salary, job.url) if p)
    if details:
        print(f"      {details}")


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if path.is_file():
        return path.read_text(encoding="utf-8", errors="ignore")
    return source


# ── Commands ─────────────────────────────────────────────────────────────


def cmd_url(ctl: ApplicationController, args: argparse.Namespace) -> int:
    hint = ctl.identify_company(args.url)
    if hint:
        log.info("Matched company: %s", hint)
    job = ctl.capture_url(args.url, use_ai=args.ai)
    if job is None:
        print("  Nothing to capture: empty URL")
        return 1
    _print_job(job)
    return 0


def cmd_text(ctl: ApplicationController, args: argparse.Namespace) -> int:
    job = ctl.capture_text(_read_text(args.source), url=args.url)
    if job is None:
        print("  Nothing to capture: empty text")
        return 1
    _print_job(job)
    return 0


def cmd_image(ctl: ApplicationController, args: argparse.Namespace) -> int:
    path = Path(args.path)
    mime = mimetypes.guess_type(path.name)[0] or "image/png"
    _print_job(ctl.capture_image(path, url=args.url, mime_type=mime))
    return 0


def cmd_list(ctl: ApplicationController, args: argparse.Namespace) -> int:
    jobs = ctl.search(args.query)
    if not jobs:
        print("  No records.")
        return 0
    for job in jobs:
        _print_job(job)
    print(f"\n  {len(jobs)} of {len(ctl.records())} record(s)")
    return 0


def cmd_status(ctl: ApplicationController, args: argparse.Namespace) -> int:
    job = ctl.set_status(args.id, args.status)
    if job is None:
        print(f"  No record with id {args.id}")
        return 1
    _print_job(job)
    return 0


def cmd_edit(ctl: ApplicationController, args: argparse.Namespace) -> int:
    current = ctl.store.get(args.id)
    if current is None:
        print(f"  No record with id {args.id}")
        return 1
    changes = {
        k: getattr(args, k)
        for k in ("title", "company", "location", "salary", "url", "description", "status")
        if getattr(args, k) is not None
    }
    if args.requirement is not None:
        changes["requirements"] = args.requirement
    job = ctl.edit(current.with_changes(**changes))
    _print_job(job)
    return 0


def cmd_delete(ctl: ApplicationController, args: argparse.Namespace) -> int:
    confirm = (lambda _prompt: True) if args.yes else _ask_yn
    if ctl.delete(args.id, confirm=confirm):
        print(f"  Deleted {args.id}")
        return 0
    print(f"  Nothing deleted ({args.id})")
    return 1


def cmd_export(ctl: ApplicationController, args: argparse.Namespace) -> int:
    path = write_csv(ctl.records(), Path(args.out) if args.out else DATA_DIR / "exports")
    print(f"  Exported {len(ctl.records())} record(s) → {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="collect", description="Capture and track job applications.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("url", help="capture from a job posting URL")
    p.add_argument("url")
    p.add_argument("--ai", action="store_true", help="fetch the page and use the deep-search model")
    p.set_defaults(func=cmd_url)

    p = sub.add_parser("text", help="capture from pasted text (file path, literal text, or - for stdin)")
    p.add_argument("source")
    p.add_argument("--url", default="")
    p.set_defaults(func=cmd_text)

    p = sub.add_parser("image", help="capture from a screenshot")
    p.add_argument("path")
    p.add_argument("--url", default="")
    p.set_defaults(func=cmd_image)

    p = sub.add_parser("list", help="list records, newest first")
    p.add_argument("--query", "-q", default="")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("status", help="change a record's status")
    p.add_argument("id")
    p.add_argument("status", choices=STATUSES)
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("edit", help="edit fields of a record")
    p.add_argument("id")
    for name in ("title", "company", "location", "salary", "url", "description"):
        p.add_argument(f"--{name}")
    p.add_argument("--status", choices=STATUSES)
    p.add_argument("--requirement", action="append", help="repeat to replace the requirements list")
    p.set_defaults(func=cmd_edit)

    p = sub.add_parser("delete", help="permanently delete a record")
    p.add_argument("id")
    p.add_argument("--yes", "-y", action="store_true", help="skip the confirmation prompt")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("export", help="write the job list to CSV")
    p.add_argument("--out", help="output directory (default: data/exports)")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("resolve", help="show the company guessed from a URL")
    p.add_argument("url")
    p.set_defaults(func=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "resolve":
        name = org_resolver.resolve(args.url)
        print(f"  {name}" if name else "  (no match)")
        return 0 if name else 1

    try:
        return args.func(build_controller(), args)
    except CaptureError as exc:
        log.error("Capture failed: %s", exc.cause or exc)
        print(f"  ✗ {exc}")
        return 2
    except JobCollectorError as exc:
        log.error("%s", exc)
        print(f"  ✗ {exc}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
