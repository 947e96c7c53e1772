"""Parser for cue-based subtitle text (WebVTT, and SRT which shares its grammar)."""

import html
import re
from typing import List, Optional
from romasub.models.transcript import Segment
from romasub.parsers.merge import merge_short

MIN_CUE_DURATION = 0.2

_COMMA_DECIMAL_RE = re.compile(r"(\d{1,2}:\d{2}:\d{2}|(?:\d{1,2}:)?\d{2}:\d{2}),(\d{3})")
_TIME_RE = re.compile(
    r"(?:(\d{1,2}):)?(\d{2}):(\d{2}\.\d{3})\s*-->\s*(?:(\d{1,2}):)?(\d{2}):(\d{2}\.\d{3})"
)
_TAG_RE = re.compile(r"</?[^>]+>")


def _to_sec(h: Optional[str], m: str, s: str) -> float:
    return int(h or 0) * 3600 + int(m) * 60 + float(s)


def _close(cue: Optional[dict], out: List[Segment]):
    if cue is None or not cue["text"].strip():
        return
    end = cue["end"]
    if end <= cue["start"]:
        end = cue["start"] + MIN_CUE_DURATION
    out.append(Segment(start=cue["start"], end=end, text=cue["text"].strip()))


def parse_cues(content: str) -> List[Segment]:
    """Parse cue blocks into raw segments, before merging."""
    text = _COMMA_DECIMAL_RE.sub(r"\1.\2", content.replace("\r", ""))
    segments: List[Segment] = []
    cue = None
    for line in text.split("\n"):
        m = _TIME_RE.search(line)
        if m:
            _close(cue, segments)
            cue = {
                "start": _to_sec(m.group(1), m.group(2), m.group(3)),
                "end": _to_sec(m.group(4), m.group(5), m.group(6)),
                "text": "",
            }
            continue
        if not line.strip():
            _close(cue, segments)
            cue = None
            continue
        if cue is not None:
            clean = html.unescape(_TAG_RE.sub("", line)).strip()
            if clean:
                cue["text"] = f"{cue['text']} {clean}" if cue["text"] else clean
    _close(cue, segments)
    return segments


def parse_vtt(content: str, max_gap: float = None, min_chars: int = None) -> List[Segment]:
    return merge_short(parse_cues(content), max_gap=max_gap, min_chars=min_chars)


def looks_like_vtt(content: Optional[str]) -> bool:
    return bool(content) and "WEBVTT" in content
