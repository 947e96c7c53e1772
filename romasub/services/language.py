import json
from typing import Any, List, Optional
import openai
from openai import OpenAI
from romasub.config import settings
from romasub.errors import LanguageServiceError


class LanguageService:
    """Chat-completion client used for transliteration and translation."""

    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None):
        if client is None and settings.LLM_API_KEY:
            client = OpenAI(
                api_key=settings.LLM_API_KEY,
                base_url=settings.LLM_BASE_URL,
                timeout=settings.LLM_TIMEOUT,
                max_retries=0
            )
        self.client = client
        self.model = model or settings.LLM_MODEL

    def complete(self, system: str, prompt: str, temperature: float) -> str:
        if self.client is None:
            raise LanguageServiceError("Language service not configured (LLM_API_KEY missing).")
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt}
                ]
            )
        except openai.OpenAIError as e:
            raise LanguageServiceError(f"Language service request failed: {e}") from e
        try:
            content = response.choices[0].message.content
        except (IndexError, AttributeError, TypeError):
            # no usable choice, e.g. a filtered reply; the caller degrades the batch
            return ""
        return (content or "").strip()


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.splitlines()
    if len(lines) >= 2 and lines[-1].strip().startswith("```"):
        return "\n".join(lines[1:-1]).strip()
    return stripped


def _extract_array_block(text: str) -> Optional[str]:
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def parse_string_array(text: str) -> Optional[List[str]]:
    """Return the JSON array of strings in a model reply, or None."""
    if not text:
        return None
    candidates = [text.strip(), _strip_code_fence(text), _extract_array_block(text)]
    for candidate in candidates:
        if not candidate:
            continue
        try:
            data: Any = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, list):
            return ["" if x is None else str(x) for x in data]
    return None
