import httpx
import logging
from typing import Optional

from ctrlaltvibe.core.config import settings

logger = logging.getLogger(__name__)

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"

class OAuthService:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    async def verify_google_token(self, token: str) -> Optional[dict]:
        try:
            async with httpx.AsyncClient(timeout=settings.EXTERNAL_REQUEST_TIMEOUT_SECONDS, transport=self._transport) as client:
                response = await client.get(GOOGLE_TOKENINFO_URL, params={"id_token": token})
        except httpx.HTTPError as e:
            logger.error(f"Google token verification failed: {str(e)}")
            return None

        if response.status_code != 200:
            logger.warning(f"Google rejected ID token with status {response.status_code}")
            return None

        claims = response.json()
        if settings.GOOGLE_CLIENT_ID and claims.get("aud") != settings.GOOGLE_CLIENT_ID:
            logger.warning("Google ID token audience does not match this client")
            return None
        if not claims.get("email"):
            return None
        return claims

oauth_service = OAuthService()
