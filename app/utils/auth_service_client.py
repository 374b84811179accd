import logging
import httpx
from typing import Any, Dict, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)


class AuthServiceClientError(Exception):
    """Raised when the auth service client cannot complete its task."""


class AuthServiceClient:
    """
    Client for the auth service (GoTrue compatible API).

    Verifies access tokens. Signature and expiry checks happen on the auth
    service side, so a revoked token stops working immediately.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or settings.AUTH_SERVICE_URL or "").rstrip("/")
        self._api_key = api_key if api_key is not None else settings.AUTH_SERVICE_API_KEY
        self._timeout = timeout if timeout is not None else settings.SESSION_VALIDATION_TIMEOUT_SECONDS
        self._transport = transport

    async def get_user(self, access_token: str) -> Dict[str, Any]:
        """
        Resolve the user an access token belongs to.

        Args:
            access_token: Bearer token taken from the request

        Returns:
            User object from the auth service; always contains "id"

        Raises:
            AuthServiceClientError: If the token is rejected or the call fails
        """
        if not access_token:
            raise AuthServiceClientError("access token is empty")

        if not self._base_url:
            raise AuthServiceClientError("AUTH_SERVICE_URL not configured")

        url = f"{self._base_url}/auth/v1/user"
        headers = {"Authorization": f"Bearer {access_token}"}
        if self._api_key:
            headers["apikey"] = self._api_key

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url, headers=headers)
                response.raise_for_status()
                user = response.json()

        except httpx.HTTPStatusError as exc:
            logger.warning(f"Auth service rejected token: {exc.response.status_code}")
            raise AuthServiceClientError(f"Auth service HTTP error: {exc.response.status_code}") from exc

        except httpx.RequestError as exc:
            logger.error(f"Request error when calling auth service: {exc}")
            raise AuthServiceClientError(f"Auth service request error: {exc}") from exc

        except ValueError as exc:
            logger.error(f"Auth service returned invalid JSON: {exc}")
            raise AuthServiceClientError("Auth service returned invalid JSON") from exc

        if not isinstance(user, dict) or not user.get("id"):
            raise AuthServiceClientError("Auth service response has no user id")

        return user
