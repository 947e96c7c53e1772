import os
import re
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse
import requests
import yt_dlp
from youtube_transcript_api import YouTubeTranscriptApi, NoTranscriptFound
from romasub.config import settings
from romasub.core.source import TranscriptSource
from romasub.errors import CaptionUnavailable
from romasub.models.transcript import Segment
from romasub.parsers.timedtext import parse_json3
from romasub.parsers.webvtt import looks_like_vtt, parse_vtt
from romasub.utils.logger import logger
from romasub.utils.video_id import watch_url
from romasub.utils.workspace import TempWorkspace


def _http_headers() -> Dict[str, str]:
    return {
        'User-Agent': settings.HTTP_USER_AGENT,
        'Accept-Language': settings.HTTP_ACCEPT_LANGUAGE,
    }


def _field(item: Any, key: str) -> Any:
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def _num(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


class CaptionApiSource(TranscriptSource):
    """Published captions through youtube-transcript-api."""

    name = "youtube-transcript-api"

    def __init__(self, languages: Optional[List[str]] = None, api_factory: Callable[[], Any] = YouTubeTranscriptApi):
        self.languages = list(languages or settings.CAPTION_LANGS)
        self.api_factory = api_factory

    def _fetch(self, video_id: str, workspace: TempWorkspace) -> List[Segment]:
        transcript_list = self.api_factory().list(video_id)
        try:
            transcript = transcript_list.find_transcript(self.languages)
        except NoTranscriptFound:
            transcript = next(iter(transcript_list), None)
        if transcript is None:
            raise CaptionUnavailable("Video has no public captions.")

        segments = []
        for item in transcript.fetch():
            offset = _num(_field(item, "start"))
            duration = _num(_field(item, "duration")) or 2
            text = str(_field(item, "text") or "").strip()
            if not text:
                continue
            segments.append(Segment(
                start=max(0.0, offset),
                end=max(0.01, offset + duration),
                text=text
            ))
        return segments


def pick_track(info: Dict[str, Any], languages: List[str]) -> Tuple[str, List[Dict[str, Any]]]:
    """Choose a caption track from yt-dlp metadata.

    Manual subtitles win over automatic captions. Within a group the first
    language in ``languages`` wins, falling back to the first track listed.
    For automatic captions the ``-orig`` track is the untranslated one.
    """
    manual = info.get('subtitles') or {}
    automatic = info.get('automatic_captions') or {}
    for group, is_auto in ((manual, False), (automatic, True)):
        tracks = {lang: fmts for lang, fmts in group.items() if lang != 'live_chat' and fmts}
        if not tracks:
            continue
        if is_auto:
            for lang in tracks:
                if lang.endswith('-orig'):
                    return lang, tracks[lang]
        for lang in languages:
            if lang in tracks:
                return lang, tracks[lang]
        lang = next(iter(tracks))
        return lang, tracks[lang]
    raise CaptionUnavailable("No caption tracks listed for this video.")


def track_url(formats: List[Dict[str, Any]], fmt: str) -> str:
    """URL of the ``fmt`` rendition, rewriting the ``fmt`` query parameter if needed."""
    for it in formats:
        if isinstance(it, dict) and (it.get('ext') or '').lower() == fmt and it.get('url'):
            return it['url']
    base = next((it['url'] for it in formats if isinstance(it, dict) and it.get('url')), None)
    if not base:
        raise CaptionUnavailable("Caption track has no download URL.")
    p = urlparse(base)
    query = {k: v[0] for k, v in parse_qs(p.query, keep_blank_values=True).items()}
    query['fmt'] = fmt
    return urlunparse(p._replace(query=urlencode(query)))


class CaptionTrackSource(TranscriptSource):
    """Raw caption track download: WebVTT first, then json3 timed-text events."""

    name = "caption-track"

    def __init__(
        self,
        languages: Optional[List[str]] = None,
        session_factory: Callable[[], requests.Session] = requests.Session,
        info_loader: Optional[Callable[[str], Dict[str, Any]]] = None,
        timeout: Optional[float] = None,
    ):
        self.languages = list(languages or settings.CAPTION_LANGS)
        self.session_factory = session_factory
        self.info_loader = info_loader or self._load_info
        self.timeout = timeout or settings.HTTP_TIMEOUT

    def _load_info(self, video_id: str) -> Dict[str, Any]:
        opts = {
            'quiet': True,
            'no_warnings': True,
            'skip_download': True,
            'http_headers': _http_headers(),
        }
        with yt_dlp.YoutubeDL(opts) as ydl:
            return ydl.extract_info(watch_url(video_id), download=False)

    def _get_text(self, session: requests.Session, url: str) -> str:
        resp = session.get(url, headers=_http_headers(), timeout=self.timeout)
        resp.raise_for_status()
        return resp.text

    def _fetch(self, video_id: str, workspace: TempWorkspace) -> List[Segment]:
        info = self.info_loader(video_id) or {}
        lang, formats = pick_track(info, self.languages)
        logger.info(f"Using caption track '{lang}'.")

        # fresh session per fetch, nothing is shared across requests
        with self.session_factory() as session:
            return self._fetch_track(session, formats)

    def _fetch_track(self, session: requests.Session, formats: List[Dict[str, Any]]) -> List[Segment]:
        try:
            body = self._get_text(session, track_url(formats, 'vtt'))
            if looks_like_vtt(body):
                segments = parse_vtt(body)
                if segments:
                    return segments
            logger.info("WebVTT rendition unusable, trying json3...")
        except requests.RequestException as e:
            logger.warning(f"WebVTT download failed: {e}")

        return parse_json3(self._get_text(session, track_url(formats, 'json3')))


class YtDlpSubtitleSource(TranscriptSource):
    """Subtitle files written to disk by yt-dlp."""

    name = "yt-dlp-subtitles"

    def __init__(self, languages: Optional[List[str]] = None, downloader: Optional[Callable[[str, dict], None]] = None):
        self.languages = list(languages or settings.CAPTION_LANGS)
        self.downloader = downloader or self._download

    def _download(self, url: str, opts: dict):
        with yt_dlp.YoutubeDL(opts) as ydl:
            ydl.download([url])

    def _pick_file(self, files: List[str]) -> str:
        for lang in self.languages:
            pattern = re.compile(rf"\.{re.escape(lang)}\.", re.IGNORECASE)
            for f in files:
                if pattern.search(os.path.basename(f)):
                    return f
        return files[0]

    def _fetch(self, video_id: str, workspace: TempWorkspace) -> List[Segment]:
        opts = {
            'quiet': True,
            'no_warnings': True,
            'skip_download': True,
            'writesubtitles': True,
            'writeautomaticsub': True,
            'subtitleslangs': self.languages,
            'subtitlesformat': 'vtt/srt/best',
            'outtmpl': workspace.path('.%(ext)s'),
            'http_headers': _http_headers(),
        }
        try:
            self.downloader(watch_url(video_id), opts)
        except yt_dlp.utils.DownloadError as e:
            # Partial failures (one language erroring) still leave usable files.
            logger.warning(f"yt-dlp subtitle download reported an error: {e}")

        files = workspace.files()
        vtts = [f for f in files if f.endswith('.vtt')]
        srts = [f for f in files if f.endswith('.srt')]
        if not vtts and not srts:
            raise CaptionUnavailable("yt-dlp wrote no subtitle file (.vtt/.srt).")
        path = self._pick_file(vtts or srts)
        logger.info(f"Parsing subtitle file {os.path.basename(path)}")
        with open(path, "r", encoding="utf-8") as f:
            return parse_vtt(f.read())
