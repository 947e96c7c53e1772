from typing import List, Sequence
from romasub.errors import AssemblyError
from romasub.models.transcript import Segment, TranscriptLine


def assemble(segments: Sequence[Segment], romaji: Sequence[str], translations: Sequence[str]) -> List[TranscriptLine]:
    if not (len(segments) == len(romaji) == len(translations)):
        raise AssemblyError(
            "Enrichment output does not line up with segments.",
            details=f"segments={len(segments)} romaji={len(romaji)} translations={len(translations)}"
        )
    return [
        TranscriptLine(start=s.start, end=s.end, text=s.text, romaji=r or "", translation=t or "")
        for s, r, t in zip(segments, romaji, translations)
    ]
