from typing import List, Optional, Sequence
from romasub.config import Settings, settings as default_settings
from romasub.core.source import TranscriptSource
from romasub.errors import SourceExhausted
from romasub.models.transcript import Segment, SourceAttempt
from romasub.providers.whisper import WhisperSource
from romasub.providers.youtube import CaptionApiSource, CaptionTrackSource, YtDlpSubtitleSource
from romasub.utils.logger import logger
from romasub.utils.workspace import TempWorkspace


class SourceChain:
    """Tries transcript sources in order and stops at the first usable result.

    A ``None`` slot is a source that was not enabled at startup; it is skipped
    without counting as a failure.
    """

    def __init__(self, sources: Sequence[Optional[TranscriptSource]]):
        self.sources = list(sources)

    def run(self, video_id: str, workspace: TempWorkspace) -> List[Segment]:
        attempts: List[SourceAttempt] = []
        for source in self.sources:
            if source is None:
                continue
            result = source.attempt(video_id, workspace)
            attempts.append(result.attempt)
            if result.ok:
                return sorted(result.segments, key=lambda s: s.start)
        logger.error(f"All transcript sources failed for {video_id}: "
                     + "; ".join(f"{a.source}: {a.error}" for a in attempts))
        raise SourceExhausted(attempts)


def build_source_chain(config: Settings = None) -> SourceChain:
    """Source registry in priority order, populated from configuration."""
    config = config or default_settings
    return SourceChain([
        CaptionApiSource(languages=config.CAPTION_LANGS),
        CaptionTrackSource(languages=config.CAPTION_LANGS),
        YtDlpSubtitleSource(languages=config.CAPTION_LANGS) if config.USE_YTDLP else None,
        WhisperSource(),
    ])
