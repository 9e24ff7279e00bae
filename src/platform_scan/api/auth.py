"""Exchange a long-lived API token for a short-lived OAuth2 bearer token."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from platform_scan.errors import AuthError
from platform_scan.models import AccessToken

logger = logging.getLogger(__name__)

_CLIENT_ID = "platform-api-user"


class TokenAuthenticator:
    """Performs the ``api_token`` grant once and remembers the result."""

    def __init__(self, http: httpx.AsyncClient, auth_url: str) -> None:
        self._http = http
        self._auth_url = auth_url
        self._token: AccessToken | None = None

    @property
    def token(self) -> AccessToken | None:
        return self._token

    async def authenticate(self, api_token: str) -> AccessToken:
        if self._token is not None:
            return self._token
        if not api_token:
            raise AuthError("No API token given.")

        logger.debug("Requesting access token from %s", self._auth_url)
        try:
            response = await self._http.post(
                self._auth_url,
                auth=(_CLIENT_ID, ""),
                data={"grant_type": "api_token", "api_token": api_token},
            )
        except httpx.HTTPError as exc:
            raise AuthError(f"Token exchange failed: {exc}") from exc

        if response.status_code >= 400:
            raise AuthError(f"Token exchange rejected ({response.status_code}).")

        try:
            self._token = AccessToken.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise AuthError("Token exchange returned an unexpected response.") from exc

        logger.info("Authenticated (token type %s, expires in %ss)", self._token.token_type, self._token.expires_in)
        return self._token
