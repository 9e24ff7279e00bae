import os

import httpx

from platform_scan.api.auth import TokenAuthenticator
from platform_scan.api.client import ApiClient
from platform_scan.api.pagination import DEFAULT_MAX_PAGES

DEFAULT_API_URL = "https://api.platform.sh"
DEFAULT_AUTH_URL = "https://auth.api.platform.sh/oauth2/token"
DEFAULT_TIMEOUT = 30.0


def get_api_url() -> str:
    return os.getenv("PLATFORMSH_API_URL", DEFAULT_API_URL)


def get_auth_url() -> str:
    return os.getenv("PLATFORMSH_AUTH_URL", DEFAULT_AUTH_URL)


async def connect(
    api_token: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> ApiClient:
    """Authenticate once and return a client that owns the HTTP connection pool."""
    http = httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, transport=transport)
    try:
        token = await TokenAuthenticator(http, get_auth_url()).authenticate(api_token)
    except BaseException:
        await http.aclose()
        raise
    return ApiClient(http, get_api_url(), token, max_pages=max_pages)
