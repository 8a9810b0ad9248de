"""Image download + technical validation.

Policy:
- Never fetch non-http(s), localhost, or private-network URLs.
- Read at most `max_bytes`; the real pixel size comes from decoding, not headers.
- Every failure is a status on the result, never an exception.
"""

from __future__ import annotations

import io
import ipaddress
import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

import requests
from PIL import Image, UnidentifiedImageError


logger = logging.getLogger(__name__)

BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class ProbeResult:
    status: str
    width: int = 0
    height: int = 0
    content: Optional[bytes] = field(default=None, repr=False)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


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


def _is_private_ip(hostname: str) -> bool:
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return any(ip in net for net in _PRIVATE_NETS)


def validate_fetch_url(url: str) -> Optional[str]:
    """Return an error string if the URL must not be fetched."""
    try:
        p = urlparse(url)
    except Exception:
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


def read_dimensions(content: bytes) -> Optional[tuple]:
    try:
        with Image.open(io.BytesIO(content)) as img:
            return img.size
    except (UnidentifiedImageError, OSError, ValueError):
        return None


def probe_image(url: str, *, timeout: float = 15.0, max_bytes: int = 15_000_000) -> ProbeResult:
    """Download an image and report its decoded pixel size."""
    if not url:
        return ProbeResult(status="error", error="empty_url")
    err = validate_fetch_url(url)
    if err:
        return ProbeResult(status="blocked", error=err)
    try:
        with requests.get(
            url,
            headers={"User-Agent": BROWSER_UA},
            timeout=(5, timeout),
            allow_redirects=True,
            stream=True,
        ) as resp:
            if resp.status_code >= 400:
                return ProbeResult(status=f"http_{resp.status_code}", error=f"http_{resp.status_code}")
            content = b""
            for chunk in resp.iter_content(chunk_size=64 * 1024):
                if not chunk:
                    continue
                content += chunk
                if len(content) > max_bytes:
                    return ProbeResult(status="too_large", error="too_large")
    except requests.RequestException as e:
        logger.info("Image probe failed for %s: %s", url, e)
        return ProbeResult(status="unreachable", error=str(e))
    try:
        size = read_dimensions(content)
    except Image.DecompressionBombError as e:
        logger.info("Oversized image rejected %s: %s", url, e)
        return ProbeResult(status="too_large", error="decompression_bomb")
    if not size:
        return ProbeResult(status="not_image", error="undecodable")
    width, height = size
    return ProbeResult(status="ok", width=int(width), height=int(height), content=content)


def passes_gates(
    width: int,
    height: int,
    *,
    min_short_side: int,
    min_aspect: float = 0.6,
    max_aspect: float = 1.6,
) -> Optional[str]:
    """Return None if the size passes, else "too_small" / "bad_aspect".

    Out-of-range aspect usually means a composite or split-panel image.
    """
    if width <= 0 or height <= 0:
        return "too_small"
    if min(width, height) < min_short_side:
        return "too_small"
    aspect = width / height
    if aspect < min_aspect or aspect > max_aspect:
        return "bad_aspect"
    return None


def is_reachable(url: str, *, timeout: float = 10.0) -> bool:
    """Lightweight reachability check: HEAD, falling back to a streamed GET."""
    if validate_fetch_url(url):
        return False
    headers = {"User-Agent": BROWSER_UA}
    try:
        resp = requests.head(url, headers=headers, timeout=timeout, allow_redirects=True)
        if resp.status_code < 400:
            return True
        if resp.status_code not in (403, 405, 501):
            return False
        resp = requests.get(url, headers=headers, timeout=timeout, allow_redirects=True, stream=True)
        ok = resp.status_code < 400
        resp.close()
        return ok
    except requests.RequestException as e:
        logger.info("Reachability probe failed for %s: %s", url, e)
        return False
