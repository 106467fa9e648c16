"""Article body fetch + extraction, and bullet construction.

Policy:
- Extraction is best-effort: every failure yields an empty string and the
  caller falls back to the feed snippet, then the title.
- Only public http(s) targets are fetched.
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import urlparse

import requests
import trafilatura

from techposter.text.sanitize import sanitize, split_sentences

logger = logging.getLogger(__name__)

DEFAULT_BULLET = "Fresh insights coming soon."
MAX_BULLETS = 4
MAX_BULLET_CHARS = 180

_PRIVATE_NETS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


class ExtractionError(Exception):
    """Raised internally when a page cannot be fetched or parsed."""


def _is_private_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return any(ip in net for net in _PRIVATE_NETS)


def validate_fetch_url(url: str) -> Optional[str]:
    """Return an error string if the URL should not be fetched."""
    try:
        p = urlparse(url)
    except ValueError:
        return "invalid_url"
    if p.scheme not in ("http", "https"):
        return "bad_scheme"
    host = (p.hostname or "").strip().lower()
    if not host:
        return "missing_host"
    if host in ("localhost", "localhost.localdomain"):
        return "blocked_host"
    if _is_private_ip(host):
        return "blocked_private_ip"
    return None


@dataclass(frozen=True)
class ArticleExtractor:
    timeout: int = 15
    user_agent: str = "techposter/0.1"
    max_bytes: int = 2_000_000

    def _download(self, url: str) -> str:
        err = validate_fetch_url(url)
        if err:
            raise ExtractionError(err)
        resp = requests.get(
            url,
            headers={"User-Agent": self.user_agent, "Accept": "text/html,application/xhtml+xml"},
            timeout=(5, self.timeout),
            allow_redirects=True,
            stream=True,
        )
        try:
            if not 200 <= resp.status_code < 300:
                raise ExtractionError(f"http_{resp.status_code}")
            content = b""
            for chunk in resp.iter_content(chunk_size=64 * 1024):
                if not chunk:
                    continue
                content += chunk
                if len(content) > self.max_bytes:
                    raise ExtractionError("too_large")
        finally:
            resp.close()
        return content.decode(resp.encoding or "utf-8", errors="replace")

    def fetch_article_text(self, url: str) -> str:
        """Main readable text of the page at `url`, or "" on any failure."""
        if not url:
            return ""
        try:
            html = self._download(url)
            if not html.strip():
                return ""
            text = trafilatura.extract(html, url=url, include_comments=False, include_tables=False)
            return sanitize(text or "")
        except Exception as e:
            logger.warning(f"Failed to fetch article text {url}: {e}")
            return ""


def choose_text(article_text: str, snippet: str, title: str) -> Tuple[str, str]:
    """Three-tier fallback: article text, then snippet, then title.

    Returns (text, tier).
    """
    if article_text and article_text.strip():
        return article_text, "article"
    if snippet and snippet.strip():
        return snippet, "snippet"
    return title, "title"


def build_bullets(text: Optional[str], fallback: str = DEFAULT_BULLET) -> List[str]:
    bullets: List[str] = []
    for sentence in split_sentences(text):
        if not sentence:
            continue
        if len(sentence) > MAX_BULLET_CHARS:
            sentence = sentence[: MAX_BULLET_CHARS - 3].strip() + "..."
        bullets.append(sentence)
        if len(bullets) >= MAX_BULLETS:
            break
    return bullets or [fallback]
