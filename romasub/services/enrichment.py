import os
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence
import pykakasi
from jinja2 import Environment, FileSystemLoader
from romasub.config import settings
from romasub.errors import LanguageServiceError
from romasub.models.transcript import BatchOutcome
from romasub.services.language import LanguageService, parse_string_array
from romasub.utils.logger import logger

PROMPTS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "prompts")

_JAPANESE_RE = re.compile(r"[\u3040-\u30ff\u3400-\u9fff]")


class Degrade(str, Enum):
    """What a failed batch or pass yields in place of model output."""

    EMPTY = "empty"
    ECHO = "echo"

    def fill(self, texts: Sequence[str]) -> List[str]:
        if self is Degrade.ECHO:
            return list(texts)
        return ["" for _ in texts]


@dataclass
class EnrichmentPass:
    name: str
    template: str
    system_prompt: str
    batch_size: int
    temperature: float
    on_batch_failure: Degrade = Degrade.EMPTY
    on_service_failure: Degrade = Degrade.EMPTY
    context: Dict[str, Any] = field(default_factory=dict)


def chunk(items: Sequence[str], size: int) -> List[List[str]]:
    if size < 1:
        raise ValueError("batch size must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def has_japanese(text: str) -> bool:
    return bool(_JAPANESE_RE.search(text or ""))


@lru_cache(maxsize=1)
def _kakasi():
    return pykakasi.kakasi()


def local_romaji(text: str) -> str:
    """Hepburn romaji computed locally, for lines the model left empty."""
    if not has_japanese(text):
        return ""
    parts = [item["hepburn"] for item in _kakasi().convert(text) if item.get("hepburn")]
    return " ".join(parts).strip()


class BatchEnricher:
    """Adds romaji and a translation to every segment text, batch by batch."""

    def __init__(
        self,
        service: Optional[LanguageService] = None,
        romaji_batch_size: Optional[int] = None,
        translate_batch_size: Optional[int] = None,
        target_language: Optional[str] = None,
        local_fallback: Optional[bool] = None,
    ):
        self.service = service or LanguageService()
        self.env = Environment(loader=FileSystemLoader(PROMPTS_DIR))
        self.local_fallback = settings.LOCAL_ROMAJI_FALLBACK if local_fallback is None else local_fallback
        self.romaji_pass = EnrichmentPass(
            name="romaji",
            template="romaji.jinja2",
            system_prompt="You are a precise Japanese to romaji (Hepburn) transliteration engine.",
            batch_size=romaji_batch_size or settings.ROMAJI_BATCH_SIZE,
            temperature=0.1,
        )
        language = target_language or settings.TARGET_LANGUAGE
        self.translate_pass = EnrichmentPass(
            name="translation",
            template="translate.jinja2",
            system_prompt="You are an accurate translation assistant.",
            batch_size=translate_batch_size or settings.TRANSLATE_BATCH_SIZE,
            temperature=0.2,
            on_service_failure=Degrade.ECHO,
            context={"language": language},
        )

    def run_batch(self, stage: EnrichmentPass, batch: List[str]) -> BatchOutcome:
        """One model call. Raises LanguageServiceError if the service is unreachable."""
        prompt = self.env.get_template(stage.template).render(sentences=batch, **stage.context)
        reply = self.service.complete(stage.system_prompt, prompt, stage.temperature)
        values = parse_string_array(reply)
        if values is None:
            return BatchOutcome(values=stage.on_batch_failure.fill(batch), degraded=True,
                                reason="reply is not a JSON array")
        if len(values) != len(batch):
            return BatchOutcome(values=stage.on_batch_failure.fill(batch), degraded=True,
                                reason=f"expected {len(batch)} items, got {len(values)}")
        return BatchOutcome(values=values)

    def run_pass(self, stage: EnrichmentPass, texts: Sequence[str]) -> List[str]:
        if not texts:
            return []
        batches = chunk(texts, stage.batch_size)
        results: List[str] = []
        try:
            for i, batch in enumerate(batches):
                logger.info(f"{stage.name}: batch {i + 1}/{len(batches)} ({len(batch)} lines)")
                outcome = self.run_batch(stage, batch)
                if outcome.degraded:
                    logger.warning(f"{stage.name}: batch {i + 1} degraded: {outcome.reason}")
                results.extend(outcome.values)
        except LanguageServiceError as e:
            logger.warning(f"{stage.name}: language service unavailable, degrading whole pass: {e}")
            return stage.on_service_failure.fill(texts)
        return results

    def transliterate(self, texts: Sequence[str]) -> List[str]:
        romaji = self.run_pass(self.romaji_pass, texts)
        if self.local_fallback:
            romaji = [r if r.strip() else local_romaji(t) for r, t in zip(romaji, texts)]
        return romaji

    def translate(self, texts: Sequence[str], skip: bool = False) -> List[str]:
        if skip:
            return ["" for _ in texts]
        return self.run_pass(self.translate_pass, texts)
