"""Parser for structured timed-text events (YouTube ``json3``)."""

import json
import re
from typing import Any, Dict, Iterable, List, Union
from romasub.errors import TimedTextError
from romasub.models.transcript import Segment
from romasub.parsers.merge import merge_short

DEFAULT_DURATION_MS = 2000
MIN_EVENT_DURATION = 0.01

_NEWLINES_RE = re.compile(r"\n+")


def _num(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def events_to_segments(events: Iterable[Dict[str, Any]]) -> List[Segment]:
    segments = []
    for ev in events:
        if not isinstance(ev, dict):
            continue
        segs = ev.get("segs") or []
        text = "".join((s.get("utf8") or "") for s in segs if isinstance(s, dict))
        text = _NEWLINES_RE.sub(" ", text).strip()
        if not text:
            continue
        start = max(0.0, _num(ev.get("tStartMs")) / 1000.0)
        duration_ms = _num(ev.get("dDurationMs")) or DEFAULT_DURATION_MS
        end = max(start + MIN_EVENT_DURATION, start + duration_ms / 1000.0)
        segments.append(Segment(start=start, end=end, text=text))
    return segments


def parse_json3(content: Union[str, Dict[str, Any]], max_gap: float = None, min_chars: int = None) -> List[Segment]:
    if isinstance(content, str):
        try:
            data = json.loads(content)
        except ValueError as e:
            raise TimedTextError(f"Could not parse timed-text JSON: {e}") from e
    else:
        data = content
    events = data.get("events") if isinstance(data, dict) else None
    if not events:
        raise TimedTextError("Timed-text document has no events.")
    return merge_short(events_to_segments(events), max_gap=max_gap, min_chars=min_chars)
