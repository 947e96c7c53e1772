from typing import Callable, List, Optional
from romasub.errors import InputError
from romasub.models.transcript import TranscriptLine
from romasub.services.assembler import assemble
from romasub.services.enrichment import BatchEnricher
from romasub.services.source_chain import SourceChain, build_source_chain
from romasub.utils.logger import logger
from romasub.utils.video_id import resolve_video_id
from romasub.utils.workspace import TempWorkspace


class TranscriptService:
    """Resolve -> acquire -> enrich -> assemble, for one request at a time."""

    def __init__(
        self,
        chain: Optional[SourceChain] = None,
        enricher: Optional[BatchEnricher] = None,
        workspace_factory: Callable[[], TempWorkspace] = TempWorkspace,
    ):
        self.chain = chain or build_source_chain()
        self.enricher = enricher or BatchEnricher()
        self.workspace_factory = workspace_factory

    def build(self, raw_url: Optional[str], skip_translate: bool = False) -> List[TranscriptLine]:
        raw = (raw_url or "").strip()
        if not raw:
            raise InputError("Missing url")
        video_id = resolve_video_id(raw)
        if not video_id:
            raise InputError("Could not find a video id in the URL", details=raw)

        logger.info(f"Fetching captions for {video_id}...")
        with self.workspace_factory() as workspace:
            segments = self.chain.run(video_id, workspace)

        texts = [s.text for s in segments]
        romaji = self.enricher.transliterate(texts)
        translations = self.enricher.translate(texts, skip=skip_translate)
        return assemble(segments, romaji, translations)
