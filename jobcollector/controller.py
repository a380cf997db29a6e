"""
Capture and manage job records.

Capture: input → pick extraction path → merge onto defaults → store.
Edit/delete/search/export operate on the store's current snapshot.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable

from jobcollector import org_resolver
from jobcollector.errors import CaptureError, ExtractionError
from jobcollector.export import export_filename, to_csv
from jobcollector.gateway import ExtractionGateway
from jobcollector.log import get_logger
from jobcollector.models import STATUSES, ExtractionResult, JobRecord
from jobcollector.store import RecordStore

log = get_logger(__name__)

PASTED_TEXT_URL = "手动粘贴"
SCREENSHOT_URL = "截图识别"

URL_FAILURE_MESSAGE = "解析失败。请尝试开启「AI 增强模式」或粘贴职位描述文本。"
IMAGE_FAILURE_MESSAGE = "截图识别失败，请确保文字清晰"
DELETE_PROMPT = "确定要永久删除这条投递记录吗？"


class ApplicationController:
    def __init__(self, store: RecordStore, gateway: ExtractionGateway) -> None:
        self.store = store
        self.gateway = gateway

    # ── capture ──────────────────────────────────────────────────────────

    @staticmethod
    def identify_company(url: str | None) -> str | None:
        return org_resolver.resolve(url)

    def _store_capture(self, result: ExtractionResult, url: str) -> JobRecord:
        record = JobRecord.from_extraction(result, url=url)
        self.store.add(record)
        log.info("Captured %s @ %s (%s)", record.title, record.company, record.id)
        return record

    def capture_url(self, url: str, *, use_ai: bool = False) -> JobRecord | None:
        """Capture from a posting URL; ``use_ai`` enables page fetching."""
        url = (url or "").strip()
        if not url:
            return None
        try:
            if use_ai:
                result = self.gateway.extract_from_url_advanced(url)
            else:
                result = self.gateway.extract_from_url_basic(url, self.identify_company(url))
        except ExtractionError as exc:
            raise CaptureError(URL_FAILURE_MESSAGE, cause=exc) from exc
        return self._store_capture(result, url)

    def capture_text(self, text: str, *, url: str = "") -> JobRecord | None:
        if not (text or "").strip():
            return None
        url = (url or "").strip()
        result = self.gateway.extract_text(text, self.identify_company(url))
        return self._store_capture(result, url or PASTED_TEXT_URL)

    def capture_image(
        self, image: bytes | str | Path, *, url: str = "", mime_type: str = "image/png"
    ) -> JobRecord:
        try:
            result = self.gateway.extract_image(image, mime_type)
        except ExtractionError as exc:
            raise CaptureError(IMAGE_FAILURE_MESSAGE, cause=exc) from exc
        return self._store_capture(result, (url or "").strip() or SCREENSHOT_URL)

    # ── manage ───────────────────────────────────────────────────────────

    def edit(self, record: JobRecord) -> JobRecord | None:
        """Replace the stored record with the same id. Returns ``None`` if unknown.

        ``id`` and ``date_captured`` always come from the stored copy.
        """
        current = self.store.get(record.id)
        if current is None:
            log.warning("Edit for unknown record %s ignored", record.id)
            return None
        if record.status not in STATUSES:
            raise ValueError(f"Unknown status {record.status!r}")
        updated = record.with_changes(id=current.id, date_captured=current.date_captured)
        self.store.replace(updated)
        return updated

    def set_status(self, record_id: str, status: str) -> JobRecord | None:
        current = self.store.get(record_id)
        if current is None:
            return None
        return self.edit(current.with_changes(status=status))

    def delete(self, record_id: str, confirm: Callable[[str], bool]) -> bool:
        """Remove a record after ``confirm(DELETE_PROMPT)`` agrees. No undo."""
        if self.store.get(record_id) is None:
            return False
        if not confirm(DELETE_PROMPT):
            log.debug("Delete of %s cancelled", record_id)
            return False
        return self.store.remove(record_id)

    def records(self) -> tuple[JobRecord, ...]:
        return self.store.records()

    def search(self, query: str = "") -> list[JobRecord]:
        q = (query or "").strip().lower()
        return [r for r in self.store.records() if not q or q in r.title.lower() or q in r.company.lower()]

    def status_counts(self) -> dict[str, int]:
        counts = dict.fromkeys(STATUSES, 0)
        for r in self.store.records():
            counts[r.status] += 1
        return counts

    def export_csv(self) -> tuple[str, str]:
        """``(filename, content)`` for the full list."""
        return export_filename(), to_csv(self.store.records())


def build_controller(settings: dict | None = None) -> ApplicationController:
    """Controller wired to the configured storage file and LLM endpoint."""
    from jobcollector.config import ensure_dirs, load_settings, storage_path
    from jobcollector.store import open_store

    settings = settings or load_settings()
    ensure_dirs()
    store = open_store(storage_path(settings), key=settings["storage"]["key"])
    return ApplicationController(store, ExtractionGateway(settings=settings))
