from abc import ABC, abstractmethod
from typing import List
from romasub.models.transcript import Segment, SourceResult
from romasub.utils.logger import logger
from romasub.utils.workspace import TempWorkspace

class TranscriptSource(ABC):
    name: str = "source"

    @abstractmethod
    def _fetch(self, video_id: str, workspace: TempWorkspace) -> List[Segment]:
        """Fetch segments for a video. May raise; an empty list counts as failure."""
        pass

    def attempt(self, video_id: str, workspace: TempWorkspace) -> SourceResult:
        logger.info(f"Trying transcript source '{self.name}'...")
        try:
            segments = self._fetch(video_id, workspace)
        except Exception as e:
            logger.warning(f"Source '{self.name}' failed: {e}")
            return SourceResult.failure(self.name, str(e) or e.__class__.__name__)
        if not segments:
            logger.warning(f"Source '{self.name}' returned no segments.")
            return SourceResult.failure(self.name, f"{self.name} returned no segments")
        logger.info(f"Source '{self.name}' returned {len(segments)} segments.")
        return SourceResult.success(self.name, segments)
