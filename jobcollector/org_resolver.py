"""Guess the hiring organization from a job-posting URL.

Known recruiting domains map to a display name; anything else falls back to
the registered-name label of the hostname (``www.google.com`` -> ``Google``).
Never raises: unusable input yields ``None``.
"""
from __future__ import annotations

import re
from urllib.parse import urlparse

# Order matters only for overlapping suffixes; none of these overlap.
RECRUITMENT_DOMAINS: dict[str, str] = {
    "tencent.com": "Tencent (腾讯)",
    "careers.tencent.com": "Tencent (腾讯)",
    "alibaba.com": "Alibaba (阿里巴巴)",
    "talent.alibaba.com": "Alibaba (阿里巴巴)",
    "bytedance.com": "ByteDance (字节跳动)",
    "jobs.bytedance.com": "ByteDance (字节跳动)",
    "huawei.com": "Huawei (华为)",
    "career.huawei.com": "Huawei (华为)",
    "google.com": "Google",
    "apple.com": "Apple",
    "amazon.jobs": "Amazon",
    "careers.microsoft.com": "Microsoft",
    "tesla.com": "Tesla",
    "jobs.meituan.com": "Meituan (美团)",
    "campus.kuaishou.cn": "Kuaishou (快手)",
    "jobs.58.com": "58.com (58同城)",
    "zhaopin.com": "Zhaopin (智联招聘)",
    "lagou.com": "Lagou (拉勾)",
    "bosszhipin.com": "Boss Zhipin (Boss直聘)",
    "linkedin.com": "LinkedIn (领英)",
}

GENERIC_LABELS = frozenset({"com", "cn", "net", "org", "careers", "jobs", "talent"})

_HOSTNAME_RE = re.compile(r"^[\w\-.]+$")


def _hostname(url: str) -> str | None:
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host or not _HOSTNAME_RE.match(host):
        return None
    return host


def _keyword_match(text: str) -> str | None:
    for domain, name in RECRUITMENT_DOMAINS.items():
        if domain.split(".")[0] in text:
            return name
    return None


def resolve(url_text: str | None) -> str | None:
    """Best-guess organization name for *url_text*, or ``None``."""
    if not url_text:
        return None

    clean = url_text.strip().lower()
    if not clean:
        return None
    if not clean.startswith("http"):
        clean = "https://" + clean

    host = _hostname(clean)
    if host is None:
        return _keyword_match(url_text.lower())

    for domain, name in RECRUITMENT_DOMAINS.items():
        if host == domain or host.endswith("." + domain):
            return name

    parts = host.split(".")
    if len(parts) < 2:
        return None

    idx = len(parts) - 2
    label = parts[idx]
    if label in GENERIC_LABELS:
        if idx == 0:
            return None
        label = parts[idx - 1]
    if not label:
        return None
    return label[0].upper() + label[1:]
