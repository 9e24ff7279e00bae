from platform_scan.api.auth import TokenAuthenticator
from platform_scan.api.client import ApiClient
from platform_scan.api.git import GitObjectResolver, SearchResult, decode_blob
from platform_scan.api.pagination import DEFAULT_MAX_PAGES, PaginatedFetcher, resolve_href
from platform_scan.api.session import connect

__all__ = [
    "DEFAULT_MAX_PAGES",
    "ApiClient",
    "GitObjectResolver",
    "PaginatedFetcher",
    "SearchResult",
    "TokenAuthenticator",
    "connect",
    "decode_blob",
    "resolve_href",
]
