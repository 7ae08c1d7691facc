from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urlsplit

from .models import NormalizedRecord

_PUNCT_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_DEFAULT_PORTS = {"http": 80, "https": 443}


def canonical_url(url: Optional[str]) -> Optional[str]:
    """
    Reduce a URL to scheme://host[:port]/path.

    Query string, fragment, credentials, default ports and any trailing
    slashes or whitespace are dropped; scheme and host are lower-cased, the
    path is otherwise kept as-is. The result canonicalizes to itself.
    Returns None for empty or unparsable URLs and for URLs without a scheme
    or host.
    """
    if not url or not url.strip():
        return None
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not host:
        return None

    scheme = parts.scheme.lower()
    netloc = f"[{host}]" if ":" in host else host
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        netloc = f"{netloc}:{port}"
    path = parts.path.rstrip("/ \t\r\n")
    return f"{scheme}://{netloc}{path}"


def normalize_title(title: Optional[str]) -> str:
    t = (title or "").lower()
    t = _PUNCT_RE.sub("", t)
    return _WHITESPACE_RE.sub(" ", t).strip()


def identity_keys(record: NormalizedRecord) -> List[str]:
    """All keys under which `record` can collide with another record."""
    keys = []
    url = canonical_url(record.link)
    if url:
        keys.append(f"url:{url}")
    title = normalize_title(record.title)
    if title:
        keys.append(f"title:{title}")
    return keys


def identity_key(record: NormalizedRecord) -> str:
    """Primary identity: canonical URL, else normalized title."""
    url = canonical_url(record.link)
    if url:
        return f"url:{url}"
    return f"title:{normalize_title(record.title)}"
