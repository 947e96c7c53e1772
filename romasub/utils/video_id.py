import re
from typing import Optional
from urllib.parse import urlparse, parse_qs

VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_PATH_ID_RE = re.compile(r"^/(?:embed|shorts|live|v)/([A-Za-z0-9_-]{11})(?:[/?#]|$)")


def is_video_id(value: Optional[str]) -> bool:
    return bool(value) and bool(VIDEO_ID_RE.match(value))


def resolve_video_id(raw: Optional[str]) -> Optional[str]:
    """Return the 11-character video id referenced by ``raw``, or None.

    ``raw`` may be a bare id or a short-link, watch, embed or shorts URL.
    Malformed input resolves to None instead of raising.
    """
    if not raw:
        return None
    value = raw.strip().strip('`').strip('"').strip("'").strip()
    if is_video_id(value):
        return value
    try:
        p = urlparse(value)
    except ValueError:
        return None
    if p.scheme not in ("http", "https") or not p.netloc:
        return None
    host = (p.hostname or "").lower()

    if host == "youtu.be" or host.endswith(".youtu.be"):
        candidate = (p.path or "").strip("/").split("/")[0]
        return candidate if is_video_id(candidate) else None

    if host == "youtube.com" or host.endswith(".youtube.com") or host == "youtube-nocookie.com" \
            or host.endswith(".youtube-nocookie.com"):
        v = (parse_qs(p.query or "").get("v") or [None])[0]
        if v:
            return v if is_video_id(v) else None
        m = _PATH_ID_RE.match(p.path or "")
        if m:
            return m.group(1)
    return None


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"
