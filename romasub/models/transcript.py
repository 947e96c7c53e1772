from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

class Segment(BaseModel):
    start: float
    end: float
    text: str

class TranscriptLine(BaseModel):
    """One fully enriched segment as returned to the caller."""

    model_config = ConfigDict(populate_by_name=True)

    start: float
    end: float
    text: str
    romaji: str = ""
    translation: str = Field(default="", alias="vn")

class SourceAttempt(BaseModel):
    source: str
    ok: bool
    segment_count: int = 0
    error: Optional[str] = None

class SourceResult(BaseModel):
    attempt: SourceAttempt
    segments: List[Segment] = []

    @property
    def ok(self) -> bool:
        return self.attempt.ok

    @classmethod
    def success(cls, source: str, segments: List[Segment]) -> "SourceResult":
        return cls(
            attempt=SourceAttempt(source=source, ok=True, segment_count=len(segments)),
            segments=segments,
        )

    @classmethod
    def failure(cls, source: str, error: str) -> "SourceResult":
        return cls(attempt=SourceAttempt(source=source, ok=False, error=error))

class BatchOutcome(BaseModel):
    values: List[str]
    degraded: bool = False
    reason: Optional[str] = None
