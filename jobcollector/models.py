"""Data models for captured jobs and extraction results."""
from __future__ import annotations

import random
import string
import time
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any

DEFAULT_TITLE = "待完善职位"
DEFAULT_COMPANY = "未知企业"

STATUSES: tuple[str, ...] = ("captured", "applied", "interview", "rejected")
STATUS_LABELS: dict[str, str] = {
    "captured": "已采集",
    "applied": "已投递",
    "interview": "面试中",
    "rejected": "未通过",
}

_TEXT_FIELDS = ("title", "company", "location", "salary", "url", "description")
_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_record_id() -> str:
    """``item_<epoch ms>_<9 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"item_{int(time.time() * 1000)}_{suffix}"


def utc_timestamp() -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value if v is not None)
    text = str(value).strip()
    return text or None


def _as_requirements(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        items = [line.strip(" -•*\t") for line in value.splitlines()]
    elif isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value if v is not None]
    else:
        return None
    items = [i for i in items if i]
    return items or None


@dataclass
class ExtractionResult:
    """Partial, untrusted fields inferred from a URL, text, or image."""

    title: str | None = None
    company: str | None = None
    location: str | None = None
    salary: str | None = None
    description: str | None = None
    requirements: list[str] | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ExtractionResult":
        """Coerce loosely typed service JSON; unknown keys are ignored."""
        if not isinstance(payload, dict):
            return cls()
        return cls(
            title=_as_text(payload.get("title")),
            company=_as_text(payload.get("company")),
            location=_as_text(payload.get("location")),
            salary=_as_text(payload.get("salary")),
            description=_as_text(payload.get("description")),
            requirements=_as_requirements(payload.get("requirements")),
        )

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass
class JobRecord:
    id: str
    title: str = DEFAULT_TITLE
    company: str = DEFAULT_COMPANY
    location: str = ""
    salary: str = ""
    url: str = ""
    description: str = ""
    requirements: list[str] = field(default_factory=list)
    date_captured: str = field(default_factory=utc_timestamp)
    status: str = "captured"

    def __post_init__(self) -> None:
        if self.status not in STATUSES:
            raise ValueError(f"Unknown status {self.status!r}; expected one of {', '.join(STATUSES)}")
        for name in _TEXT_FIELDS:
            if getattr(self, name) is None:
                raise ValueError(f"{name} must be a string, not None")

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]

    @classmethod
    def from_extraction(cls, result: ExtractionResult, *, url: str = "") -> "JobRecord":
        """New ``captured`` record: extraction fields over defaults."""
        return cls(
            id=new_record_id(),
            title=result.title or DEFAULT_TITLE,
            company=result.company or DEFAULT_COMPANY,
            location=result.location or "",
            salary=result.salary or "",
            url=url or "",
            description=result.description or "",
            requirements=list(result.requirements or []),
            date_captured=utc_timestamp(),
            status="captured",
        )

    def with_changes(self, **changes: Any) -> "JobRecord":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialized form; keeps the ``dateCaptured`` key of stored blobs."""
        data = asdict(self)
        data["dateCaptured"] = data.pop("date_captured")
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobRecord":
        if not isinstance(data, dict) or not data.get("id"):
            raise ValueError("record must be an object with an id")
        reqs = data.get("requirements") or []
        if not isinstance(reqs, list):
            reqs = [str(reqs)]
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            company=str(data.get("company") or ""),
            location=str(data.get("location") or ""),
            salary=str(data.get("salary") or ""),
            url=str(data.get("url") or ""),
            description=str(data.get("description") or ""),
            requirements=[str(r) for r in reqs],
            date_captured=str(data.get("dateCaptured") or data.get("date_captured") or utc_timestamp()),
            status=str(data.get("status") or "captured"),
        )
