import os
import re
from typing import Any, Callable, List, Optional
import openai
import yt_dlp
from openai import OpenAI
from romasub.config import settings
from romasub.core.source import TranscriptSource
from romasub.errors import AudioDownloadError, TranscriptionError
from romasub.models.transcript import Segment
from romasub.utils.logger import logger
from romasub.utils.video_id import watch_url
from romasub.utils.workspace import TempWorkspace

PSEUDO_SEGMENT_SECONDS = 5.0

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+|(?<=[。！？])\s*")
_NOT_AUDIO = ('.part', '.ytdl', '.vtt', '.srt', '.json')


def _field(item: Any, key: str) -> Any:
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def _num(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def split_sentences(text: str) -> List[Segment]:
    """Pseudo-segments of fixed width for a transcript without timing."""
    parts = [p.strip() for p in _SENTENCE_SPLIT_RE.split(text or "")]
    parts = [p for p in parts if p]
    return [
        Segment(start=i * PSEUDO_SEGMENT_SECONDS, end=(i + 1) * PSEUDO_SEGMENT_SECONDS, text=p)
        for i, p in enumerate(parts)
    ]


def segments_from_response(resp: Any) -> List[Segment]:
    raw_segments = _field(resp, "segments") or []
    if not raw_segments:
        return split_sentences(_field(resp, "text") or "")

    segments = []
    for s in raw_segments:
        text = str(_field(s, "text") or "").strip()
        if not text:
            continue
        start = max(0.0, _num(_field(s, "start")))
        end = _num(_field(s, "end")) or (start + 3)
        segments.append(Segment(start=start, end=max(start + 0.01, end), text=text))
    return segments


class WhisperSource(TranscriptSource):
    """Speech recognition over the video's audio track."""

    name = "whisper"

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: Optional[str] = None,
        audio_format: Optional[str] = None,
        min_audio_bytes: Optional[int] = None,
        downloader: Optional[Callable[[str, dict], None]] = None,
    ):
        if client is None and settings.LLM_API_KEY:
            client = OpenAI(
                api_key=settings.LLM_API_KEY,
                base_url=settings.LLM_BASE_URL,
                timeout=settings.WHISPER_TIMEOUT,
                max_retries=0
            )
        self.client = client
        self.model = model or settings.WHISPER_MODEL
        self.audio_format = audio_format or settings.AUDIO_FORMAT
        self.min_audio_bytes = settings.MIN_AUDIO_BYTES if min_audio_bytes is None else min_audio_bytes
        self.downloader = downloader or self._download

    def _download(self, url: str, opts: dict):
        with yt_dlp.YoutubeDL(opts) as ydl:
            ydl.download([url])

    def download_audio(self, video_id: str, workspace: TempWorkspace) -> str:
        opts = {
            'format': self.audio_format,
            'outtmpl': workspace.path('.%(ext)s'),
            'quiet': True,
            'no_warnings': True,
            'noplaylist': True,
            'http_headers': {
                'User-Agent': settings.HTTP_USER_AGENT,
                'Accept-Language': settings.HTTP_ACCEPT_LANGUAGE,
            },
        }
        logger.info("Downloading audio for ASR...")
        try:
            self.downloader(watch_url(video_id), opts)
        except yt_dlp.utils.DownloadError as e:
            raise AudioDownloadError(f"Audio download failed: {e}") from e

        candidates = [f for f in workspace.files() if not f.endswith(_NOT_AUDIO)]
        if not candidates:
            raise AudioDownloadError("Audio download produced no file.")
        path = max(candidates, key=os.path.getsize)
        size = os.path.getsize(path)
        if size < self.min_audio_bytes:
            raise AudioDownloadError(f"Audio file too small ({size} bytes), download probably failed.")
        return path

    def transcribe(self, path: str) -> List[Segment]:
        logger.info("Transcribing audio with Whisper (this may take a while)...")
        try:
            with open(path, "rb") as f:
                resp = self.client.audio.transcriptions.create(
                    file=f,
                    model=self.model,
                    response_format="verbose_json"
                )
        except openai.APIStatusError as e:
            raise TranscriptionError(
                f"Speech recognition request failed (status={e.status_code}): {e.message}",
                status=e.status_code
            ) from e
        except openai.OpenAIError as e:
            raise TranscriptionError(f"Speech recognition request failed (status=None): {e}") from e
        if not resp:
            raise TranscriptionError("Speech recognition returned no result.")
        try:
            return segments_from_response(resp)
        except (TypeError, ValueError, AttributeError) as e:
            raise TranscriptionError(f"Malformed speech recognition response: {e}") from e

    def _fetch(self, video_id: str, workspace: TempWorkspace) -> List[Segment]:
        if self.client is None:
            raise TranscriptionError("LLM_API_KEY missing, speech recognition disabled.")
        return self.transcribe(self.download_audio(video_id, workspace))
