class PlatformScanError(Exception):
    """Base class for all platform-scan errors."""


class AuthError(PlatformScanError):
    """Raised when the access token cannot be exchanged for a bearer token."""


class PageFetchError(PlatformScanError):
    """Raised when an API request fails or its body cannot be decoded."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url


class PageLimitExceededError(PageFetchError):
    """Raised when a paginated collection keeps returning ``next`` links past the page limit."""


class DecodeError(PlatformScanError):
    """Raised when blob content cannot be decoded or parsed."""
