import tempfile
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # LLM Configuration
    LLM_API_KEY: Optional[str] = None
    LLM_BASE_URL: str = "https://api.openai.com/v1"
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TIMEOUT: float = 60.0
    WHISPER_MODEL: str = "whisper-1"
    WHISPER_TIMEOUT: float = 180.0

    # Language Settings
    TARGET_LANGUAGE: str = "Vietnamese"
    CAPTION_LANGS: List[str] = ["ja", "ja-JP", "en", "en-US", "vi", "zh-Hans", "zh-Hant", "ko"]

    # Sources
    USE_YTDLP: bool = False
    AUDIO_FORMAT: str = "139/140/bestaudio[ext=m4a]/bestaudio"
    MIN_AUDIO_BYTES: int = 10 * 1024
    HTTP_USER_AGENT: str = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    HTTP_ACCEPT_LANGUAGE: str = "en-US,en;q=0.8"
    HTTP_TIMEOUT: float = 30.0

    # Segment merging / enrichment batching
    MERGE_MAX_GAP: float = 0.15
    MERGE_MIN_CHARS: int = 4
    ROMAJI_BATCH_SIZE: int = 40
    TRANSLATE_BATCH_SIZE: int = 30
    LOCAL_ROMAJI_FALLBACK: bool = True

    # Auth
    REQUIRE_AUTH: bool = False
    FIREBASE_PROJECT_ID: Optional[str] = None

    # System Settings
    LOG_LEVEL: str = "INFO"
    SYNC_INTERVAL: float = 0.2
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Paths
    TMP_DIR: str = tempfile.gettempdir()
    OUTPUT_DIR: str = "outputs"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
