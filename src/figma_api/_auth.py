"""
Authentication providers for the Figma API clients.

The main classes are:
- AuthProvider: Abstract base class for authentication providers.
- AccessTokenAuthProvider: Personal access token sent as `X-Figma-Token`.
- BearerTokenAuthProvider: OAuth2 access token sent as `Authorization: Bearer`.

Example:
    >>> from figma_api._auth import AccessTokenAuthProvider
    >>> auth = AccessTokenAuthProvider(access_token="figd_...")
    >>> headers = auth.get_auth_headers()
    >>> # {"X-Figma-Token": "figd_..."}
"""

from abc import ABC, abstractmethod
from typing import override

FIGMA_TOKEN_HEADER = "X-Figma-Token"


class AuthProvider(ABC):
    """
    Abstract base class for authentication providers.

    Implementations must be safe to share between threads and tasks.

    Example:
        >>> class MyAuthProvider(AuthProvider):
        ...     def get_auth_headers(self) -> dict[str, str]:
        ...         return {"X-Figma-Token": load_token_from_vault()}
    """

    @abstractmethod
    def get_auth_headers(self) -> dict[str, str]:
        """
        Return authorization headers for HTTP requests.

        Returns:
            Headers to merge into every request.
        """
        pass


class AccessTokenAuthProvider(AuthProvider):
    """
    Authenticates with a Figma personal access token.

    Args:
        access_token: The personal access token.
    """

    def __init__(self, access_token: str):
        assert access_token, "Access token can not be empty."
        self._access_token = access_token

    @override
    def get_auth_headers(self) -> dict[str, str]:
        return {FIGMA_TOKEN_HEADER: self._access_token}

    def __repr__(self) -> str:
        return "AccessTokenAuthProvider(access_token='***')"


class BearerTokenAuthProvider(AuthProvider):
    """
    Authenticates with an OAuth2 access token.

    Args:
        access_token: The OAuth2 access token (without "Bearer" prefix).
    """

    def __init__(self, access_token: str):
        assert access_token, "Access token can not be empty."
        self._access_token = access_token

    @override
    def get_auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    def __repr__(self) -> str:
        return "BearerTokenAuthProvider(access_token='***')"
