"""Fetch a job page and reduce it to text an LLM can read.

Prefers schema.org ``JobPosting`` JSON-LD when the page embeds it, otherwise
falls back to the visible body text. Failures return an empty string; the
caller decides whether a URL-only prompt is good enough.
"""
from __future__ import annotations

import json
from typing import Any

import requests
from bs4 import BeautifulSoup
from bs4.element import Tag

from jobcollector.log import get_logger

log = get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36 JobCollector/0.3"
)
_NOISE_TAGS = ["script", "style", "noscript", "svg", "header", "footer", "nav", "form"]


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _is_job_posting(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    typ = node.get("@type") or ""
    if isinstance(typ, list):
        return any(isinstance(t, str) and t.lower() == "jobposting" for t in typ)
    return str(typ).lower() == "jobposting"


def _jsonld_postings(soup: BeautifulSoup) -> list[dict[str, Any]]:
    postings: list[dict[str, Any]] = []
    for tag in soup.find_all("script", type="application/ld+json"):
        if not isinstance(tag, Tag):
            continue
        raw = tag.string or tag.get_text(strip=False) or ""
        try:
            data = json.loads(raw)
        except ValueError:
            continue
        nodes = data if isinstance(data, list) else [data]
        for node in nodes:
            graph = node.get("@graph") if isinstance(node, dict) else None
            if isinstance(graph, list):
                nodes.extend(n for n in graph if isinstance(n, dict))
            if _is_job_posting(node):
                postings.append(node)
    return postings


def _place_name(value: Any) -> str:
    # schema.org allows a plain string, a Place/Country object or a list of either
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        name = value.get("name")
        return name if isinstance(name, str) else ""
    if isinstance(value, list):
        return " / ".join(n for n in (_place_name(v) for v in value) if n)
    return ""


def _posting_text(posting: dict[str, Any]) -> str:
    lines: list[str] = []
    if posting.get("title"):
        lines.append(f"Title: {posting['title']}")

    org = posting.get("hiringOrganization")
    if isinstance(org, dict) and org.get("name"):
        lines.append(f"Company: {org['name']}")
    elif isinstance(org, str):
        lines.append(f"Company: {org}")

    locs = posting.get("jobLocation")
    for loc in locs if isinstance(locs, list) else [locs]:
        if not isinstance(loc, dict):
            continue
        addr = loc.get("address")
        if isinstance(addr, dict):
            parts = [_place_name(addr.get(k)) for k in ("addressLocality", "addressRegion", "addressCountry")]
            place = ", ".join(p for p in parts if p)
            if place:
                lines.append(f"Location: {place}")

    salary = posting.get("baseSalary")
    if salary:
        lines.append(f"Salary: {json.dumps(salary, ensure_ascii=False)}")

    desc = posting.get("description")
    if isinstance(desc, str) and desc:
        lines.append("Description: " + _soup(desc).get_text(" ", strip=True))
    return "\n".join(lines)


def html_to_text(html: str, max_chars: int = 6000) -> str:
    """Readable text for *html*, JSON-LD job data first."""
    soup = _soup(html)
    postings = _jsonld_postings(soup)
    if postings:
        return _posting_text(postings[0])[:max_chars]

    for tag in soup.find_all(_NOISE_TAGS):
        tag.decompose()
    title = soup.title.get_text(strip=True) if soup.title else ""
    body = soup.get_text(" ", strip=True)
    text = f"{title}\n{body}" if title else body
    return text[:max_chars]


def fetch_page_text(url: str, *, timeout: float = 15.0, max_chars: int = 6000) -> str:
    """GET *url* and return its readable text, or ``""`` when unreachable."""
    url = url.strip()
    if not url.startswith("http"):
        url = "https://" + url
    headers = {"User-Agent": USER_AGENT, "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8"}
    try:
        r = requests.get(url, headers=headers, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as exc:
        log.warning("Page fetch failed for %s: %s", url, exc)
        return ""

    if "html" not in r.headers.get("Content-Type", "html").lower():
        log.debug("Skipping non-HTML response from %s", url)
        return ""

    try:
        text = html_to_text(r.text or "", max_chars=max_chars)
    except (ValueError, TypeError, AttributeError, KeyError) as exc:
        log.warning("Could not read page content from %s: %s", url, exc)
        return ""
    log.debug("Fetched %d chars of page text from %s", len(text), url)
    return text
