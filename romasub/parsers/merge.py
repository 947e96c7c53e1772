from typing import List
from romasub.config import settings
from romasub.models.transcript import Segment


def merge_short(segments: List[Segment], max_gap: float = None, min_chars: int = None) -> List[Segment]:
    """Fold micro-fragments into their predecessor.

    A segment is merged into the previously accepted one when the gap between
    them is below ``max_gap`` and either text is shorter than ``min_chars``.
    Single left-to-right pass; each adjacent pair is looked at once.
    """
    max_gap = settings.MERGE_MAX_GAP if max_gap is None else max_gap
    min_chars = settings.MERGE_MIN_CHARS if min_chars is None else min_chars

    merged: List[Segment] = []
    for seg in segments:
        last = merged[-1] if merged else None
        if last is not None and seg.start - last.end < max_gap \
                and (len(seg.text) < min_chars or len(last.text) < min_chars):
            merged[-1] = Segment(
                start=last.start,
                end=max(last.end, seg.end),
                text=f"{last.text} {seg.text}".strip()
            )
        else:
            merged.append(seg)
    return merged
