"""Extract job fields from URLs, pasted text, and screenshots via an LLM.

Talks to any OpenAI-compatible chat endpoint (Groq by default). URL-basic
and text extraction always return something usable: on failure they fall
back to a placeholder built from the input. Advanced URL and image
extraction raise ``ExtractionError`` instead, since there is nothing
sensible to fall back to.
"""
from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any, Callable

from jobcollector.config import get_api_key, load_settings
from jobcollector.errors import ExtractionError
from jobcollector.log import get_logger
from jobcollector.models import DEFAULT_COMPANY, ExtractionResult
from jobcollector.page_fetch import fetch_page_text

log = get_logger(__name__)

BASIC_TITLE_FALLBACK = "待补充职位"
BASIC_FAILURE_TITLE = "手动填写的职位"
TEXT_FAILURE_COMPANY = "未知"
TEXT_TITLE_CHARS = 20

_FIELDS_HINT = (
    '{"title": "职位名称", "company": "公司名称", "location": "工作地点", '
    '"salary": "薪资范围", "description": "职位简介", "requirements": ["要求1", "要求2"]}'
)

_ADVANCED_PROMPT = """\
你是一个专业的招聘数据提取助手。
任务：识别此 URL 对应职位的职位名称、公司、地点、薪资。
URL: {url}

以下是抓取到的页面内容（可能为空或不完整，请结合 URL 本身推断）：
{page_text}

只返回一个 JSON 对象，键如下（未知的字段用空字符串或空列表）：
{fields}
"""

_BASIC_PROMPT = """\
分析以下招聘链接，推测其职位名称和公司。
链接: {url}
已知公司参考: {hint}
要求：观察 URL 路径中的关键词（如 web_developer, hr_manager 等）。
如果实在无法确定职位，职位名请返回 "官网职位 (请手动填写)"。
只返回一个 JSON 对象：{{"title": "", "company": "", "location": ""}}
"""

_TEXT_PROMPT = """\
从以下文本中提取招聘信息。公司名称参考: {hint}
只返回一个 JSON 对象，键如下（未知的字段用空字符串或空列表）：
{fields}

文本内容: {text}
"""

_IMAGE_PROMPT = (
    "这是一个招聘页面的截图，请识别并提取：职位名称、公司名称、工作地点、薪资范围。"
    "请以中文 JSON 格式返回，只返回一个 JSON 对象，键如下：" + _FIELDS_HINT
)


def parse_json_object(raw: str) -> dict[str, Any]:
    """Pull the outermost ``{...}`` out of an LLM reply."""
    start = raw.find("{")
    end = raw.rfind("}") + 1
    if start == -1 or end == 0:
        raise ValueError("LLM did not return valid JSON")
    data = json.loads(raw[start:end])
    if not isinstance(data, dict):
        raise ValueError("LLM JSON is not an object")
    return data


def image_to_base64(image: bytes | str | Path) -> str:
    """Bare base64 payload for raw bytes, a file path, or a (data-URL) string."""
    if isinstance(image, Path):
        image = image.read_bytes()
    if isinstance(image, (bytes, bytearray)):
        return base64.b64encode(bytes(image)).decode("ascii")
    return image.split(",", 1)[1] if "," in image else image


class ExtractionGateway:
    def __init__(
        self,
        api_key: str | None = None,
        settings: dict[str, Any] | None = None,
        *,
        client: Any = None,
        page_fetcher: Callable[..., str] = fetch_page_text,
    ) -> None:
        self.settings = settings or load_settings()
        self.api_key = api_key if api_key is not None else get_api_key()
        self._client = client
        self._page_fetcher = page_fetcher

    # ── plumbing ─────────────────────────────────────────────────────────

    @property
    def llm(self) -> dict[str, Any]:
        return self.settings["llm"]

    def client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ExtractionError("No LLM API key configured (set LLM_API_KEY or GROQ_API_KEY)")
            from openai import OpenAI

            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.llm["base_url"],
                timeout=self.llm.get("timeout", 60),
            )
        return self._client

    def _complete(self, model: str, content: Any, max_tokens: int = 800) -> ExtractionResult:
        try:
            resp = self.client().chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": content}],
                max_tokens=max_tokens,
                temperature=0.1,
            )
            raw = (resp.choices[0].message.content or "").strip()
            return ExtractionResult.from_payload(parse_json_object(raw))
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"{model}: {exc}") from exc

    # ── operations ───────────────────────────────────────────────────────

    def extract_from_url_advanced(self, url: str) -> ExtractionResult:
        """Fetch the page and let the large model read it. Raises on failure."""
        fetch = self.settings.get("fetch", {})
        try:
            page_text = self._page_fetcher(
                url,
                timeout=fetch.get("timeout", 15),
                max_chars=fetch.get("max_page_chars", 6000),
            )
        except Exception as exc:
            log.warning("Page reading failed for %s: %s", url, exc)
            page_text = ""
        if not page_text:
            log.info("No page text for %s, asking from the URL alone", url)

        model = self.llm["model"]
        log.info("Advanced URL extraction (%s): %s", model, url)
        prompt = _ADVANCED_PROMPT.format(url=url, page_text=page_text or "（无）", fields=_FIELDS_HINT)
        try:
            result = self._complete(model, prompt)
        except ExtractionError as exc:
            log.error("Advanced extraction failed for %s: %s", url, exc)
            raise
        log.info("Advanced extraction complete: title=%s, company=%s", result.title, result.company)
        return result

    def extract_from_url_basic(self, url: str, hint: str | None = None) -> ExtractionResult:
        """Infer from the URL string only. Never raises."""
        model = self.llm["fast_model"]
        try:
            data = self._complete(model, _BASIC_PROMPT.format(url=url, hint=hint or "未知"), max_tokens=300)
        except ExtractionError as exc:
            log.warning("Basic URL extraction failed (%s), using placeholder", exc)
            return ExtractionResult(title=BASIC_FAILURE_TITLE, company=hint or DEFAULT_COMPANY)
        return ExtractionResult(
            title=data.title or BASIC_TITLE_FALLBACK,
            company=data.company or hint or DEFAULT_COMPANY,
            location=data.location or "",
        )

    def extract_text(self, text: str, hint: str | None = None) -> ExtractionResult:
        """Extract from pasted posting text. Never raises."""
        model = self.llm["fast_model"]
        prompt = _TEXT_PROMPT.format(hint=hint or "", fields=_FIELDS_HINT, text=text)
        try:
            result = self._complete(model, prompt)
        except ExtractionError as exc:
            log.warning("Text extraction failed (%s), using text prefix as title", exc)
            return ExtractionResult(title=text.strip()[:TEXT_TITLE_CHARS], company=hint or TEXT_FAILURE_COMPANY)
        log.info("Text extraction complete: title=%s, company=%s", result.title, result.company)
        return result

    def extract_image(self, image: bytes | str | Path, mime_type: str = "image/png") -> ExtractionResult:
        """OCR a screenshot through the vision model. Raises on failure."""
        model = self.llm["vision_model"]
        try:
            data = image_to_base64(image)
            content = [
                {"type": "text", "text": _IMAGE_PROMPT},
                {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{data}"}},
            ]
            result = self._complete(model, content)
        except OSError as exc:
            log.error("OCR failed: cannot read image (%s)", exc)
            raise ExtractionError(f"Cannot read image: {exc}") from exc
        except ExtractionError as exc:
            log.error("OCR failed: %s", exc)
            raise
        log.info("Image extraction complete: title=%s, company=%s", result.title, result.company)
        return result
