"""FastAPI application exposing the transcript pipeline."""

from functools import lru_cache
from typing import List, Optional
from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from romasub.api.auth import ANONYMOUS, Principal, TokenVerifier, extract_bearer_token
from romasub.config import settings
from romasub.errors import AuthError, ConfigurationError, InternalError, RomasubError
from romasub.models.transcript import TranscriptLine
from romasub.services.transcript import TranscriptService
from romasub.utils.logger import logger


@lru_cache
def get_transcript_service() -> TranscriptService:
    return TranscriptService()


def get_token_verifier() -> Optional[TokenVerifier]:
    if not settings.FIREBASE_PROJECT_ID:
        return None
    return TokenVerifier(settings.FIREBASE_PROJECT_ID)


def auth_required() -> bool:
    return settings.REQUIRE_AUTH


def require_principal(
    authorization: Optional[str] = Header(default=None),
    required: bool = Depends(auth_required),
    verifier: Optional[TokenVerifier] = Depends(get_token_verifier),
) -> Principal:
    if not required:
        return ANONYMOUS
    if verifier is None:
        raise ConfigurationError("Auth required but the identity provider is not configured")
    token = extract_bearer_token(authorization)
    if not token:
        raise AuthError("Unauthenticated")
    return verifier.verify(token)


async def _handle_romasub_error(request: Request, exc: RomasubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"[{request.url.path}] {exc.message}: {exc.details}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    app = FastAPI(title="romasub", description="Video transcripts with romaji and translation")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RomasubError, _handle_romasub_error)

    @app.get("/transcript", response_model=List[TranscriptLine])
    @app.get("/api/transcript", response_model=List[TranscriptLine], include_in_schema=False)
    async def transcript(
        url: Optional[str] = Query(default=None),
        skip_translate: str = Query(default="0", alias="skipTranslate"),
        principal: Principal = Depends(require_principal),
        service: TranscriptService = Depends(get_transcript_service),
    ):
        if not principal.anonymous:
            logger.info(f"Transcript requested by {principal.uid}")
        try:
            return await run_in_threadpool(service.build, url, skip_translate.strip() == "1")
        except RomasubError:
            raise
        except Exception as e:
            logger.exception("Unexpected failure while building transcript")
            raise InternalError("Transcription failed", details=str(e)) from e

    return app


app = create_app()
