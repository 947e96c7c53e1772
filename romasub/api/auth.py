"""Bearer credential verification against the identity provider."""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Mapping, Optional
import jwt
from jwt import PyJWKClient
from romasub.errors import AuthError

FIREBASE_JWKS_URL = "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"


@dataclass(frozen=True)
class Principal:
    """Opaque caller identity. ``uid`` is None for anonymous requests."""

    uid: Optional[str]
    email: Optional[str] = None
    claims: Mapping[str, Any] = field(default_factory=dict)

    @property
    def anonymous(self) -> bool:
        return self.uid is None


ANONYMOUS = Principal(uid=None)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


@lru_cache
def _get_jwk_client(jwks_url: str) -> PyJWKClient:
    return PyJWKClient(jwks_url)


class TokenVerifier:
    """Verifies identity-provider ID tokens (RS256, project-scoped)."""

    def __init__(self, project_id: str, jwks_url: str = FIREBASE_JWKS_URL):
        self.project_id = project_id
        self.issuer = f"https://securetoken.google.com/{project_id}"
        self.jwks_url = jwks_url

    def _signing_key(self, token: str):
        return _get_jwk_client(self.jwks_url).get_signing_key_from_jwt(token).key

    def verify(self, token: str) -> Principal:
        if not token:
            raise AuthError("Unauthenticated")
        try:
            payload = jwt.decode(
                token,
                self._signing_key(token),
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=self.issuer,
            )
        except jwt.PyJWTError as e:
            raise AuthError("Invalid token", details=str(e)) from e
        uid = str(payload.get("sub") or "").strip()
        if not uid:
            raise AuthError("Invalid token", details="token has no subject")
        return Principal(uid=uid, email=payload.get("email"), claims=payload)
