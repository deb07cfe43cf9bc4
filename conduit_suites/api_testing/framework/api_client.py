"""
================================================================================
Conduit API Client with Allure Integration
================================================================================

Synchronous client for the Conduit REST API:
    - Per-instance token (no process-wide token cache)
    - `Authorization: Token <jwt>` on authenticated calls
    - Every request logged to loguru and attached to Allure (redacted + cURL)
    - Non-2xx responses are returned, never raised
    - Only transport failures raise ApiError
    - No automatic retry: callers own retry and backoff

Token argument semantics (all resource methods):
    token=USE_CLIENT_TOKEN  (default) send the client's own token, if any
    token="<jwt>"           send this token
    token=None              send no Authorization header

================================================================================
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import allure
import httpx
from loguru import logger

from conduit_tools.common.environment_config import EnvironmentConfig
from conduit_tools.common.exceptions import ApiError, AuthError
from conduit_tools.report_tools.allure_utils import attach_api_exchange

from .responses import ApiResponse, extract_token


class _UseClientToken:
    def __repr__(self) -> str:
        return "USE_CLIENT_TOKEN"


USE_CLIENT_TOKEN: Any = _UseClientToken()

TokenArg = Union[str, None, _UseClientToken]


class ApiClient:
    """
    Conduit REST client bound to one base URL and one token.

    Usage:
        >>> with ApiClient(config) as api:
        ...     api.login("john@example.com", "password123")
        ...     resp = api.create_article("Title", "About", "Body", ["tag"])
        ...     resp.status_code
        201

    Args:
        config: Resolved configuration (defaults to EnvironmentConfig.instance())
        base_url: Override for api.base_url
        transport: Optional httpx transport (httpx.MockTransport in unit tests)
    """

    def __init__(
        self,
        config: Optional[EnvironmentConfig] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config or EnvironmentConfig.instance()
        self.base_url = (base_url or self.config.api_base_url).rstrip("/")
        self.timeout = self.config.api_timeout
        self.token: Optional[str] = None
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> "ApiClient":
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
        self.token = None

    # =========================================================================
    # Core request
    # =========================================================================

    def _resolve_token(self, token: TokenArg) -> Optional[str]:
        if token is USE_CLIENT_TOKEN:
            return self.token
        return token or None

    def request(
        self,
        method: str,
        path: str,
        json_body: Optional[Any] = None,
        token: TokenArg = USE_CLIENT_TOKEN,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        """
        Issue one HTTP request.

        Args:
            method: HTTP method
            path: Path relative to the API base URL (e.g. "/articles")
            json_body: JSON-serializable request body
            token: See module docstring
            params: Query parameters; None values are dropped

        Returns:
            ApiResponse for any HTTP status

        Raises:
            ApiError: On connection, DNS or timeout failures
            RuntimeError: If the client is used outside its context manager
        """
        if self._client is None:
            raise RuntimeError(
                "ApiClient must be used within a context manager. "
                "Use 'with ApiClient() as api:'"
            )

        headers: Dict[str, str] = {}
        resolved = self._resolve_token(token)
        if resolved:
            headers["Authorization"] = f"Token {resolved}"
        query = {k: v for k, v in (params or {}).items() if v is not None}

        url = f"{self.base_url}{path}"
        if query:
            url = str(httpx.URL(url, params=query))

        with allure.step(f"{method} {path}"):
            started = time.monotonic()
            try:
                raw = self._client.request(method, path, json=json_body, headers=headers, params=query or None)
            except httpx.TransportError as e:
                logger.error(f"{method} {url} failed: {type(e).__name__}: {e}")
                attach_api_exchange(method, url, headers, json_body, None, None)
                raise ApiError(f"{method} {url} failed: {e}", method=method, url=url) from e
            elapsed_ms = (time.monotonic() - started) * 1000

            response = ApiResponse(
                status_code=raw.status_code,
                body=raw.text,
                content_type=raw.headers.get("content-type", ""),
                headers={k.lower(): v for k, v in raw.headers.items()},
                elapsed_ms=elapsed_ms,
            )
            logger.debug(f"{method} {url} -> {response.status_code} ({elapsed_ms:.0f}ms)")
            parsed = response.json()
            attach_api_exchange(
                method,
                url,
                {**self._client.headers, **headers},
                json_body,
                response.status_code,
                parsed if parsed is not None else response.body,
                elapsed_ms,
            )
        return response

    # =========================================================================
    # Authentication and users
    # =========================================================================

    def try_login(self, email: str, password: str) -> ApiResponse:
        """POST /users/login without interpreting the result."""
        return self.request(
            "POST", "/users/login",
            {"user": {"email": email, "password": password}},
            token=None,
        )

    def login(self, email: str, password: str) -> str:
        """
        Log in and adopt the returned token as this client's token.

        Raises:
            AuthError: On non-2xx, or a 2xx without a token
        """
        response = self.try_login(email, password)
        if not response.ok:
            raise AuthError(
                f"Login failed for {email}: HTTP {response.status_code}",
                status_code=response.status_code,
                response=response,
            )
        token = extract_token(response)
        if not token:
            raise AuthError(
                f"Login response for {email} has no user.token",
                status_code=response.status_code,
                response=response,
            )
        self.token = token
        logger.info(f"Logged in via API as {email}")
        return token

    def register(self, username: str, email: str, password: str) -> ApiResponse:
        return self.request(
            "POST", "/users",
            {"user": {"username": username, "email": email, "password": password}},
            token=None,
        )

    def get_current_user(self, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("GET", "/user", token=token)

    def update_user(self, token: TokenArg = USE_CLIENT_TOKEN, **fields: Any) -> ApiResponse:
        """PUT /user with any of email, username, password, bio, image."""
        return self.request("PUT", "/user", {"user": fields}, token=token)

    # =========================================================================
    # Articles
    # =========================================================================

    def create_article(
        self,
        title: str,
        description: str,
        body: str,
        tags: Optional[Sequence[str]] = None,
        token: TokenArg = USE_CLIENT_TOKEN,
    ) -> ApiResponse:
        article = {
            "title": title,
            "description": description,
            "body": body,
            "tagList": list(tags or []),
        }
        return self.request("POST", "/articles", {"article": article}, token=token)

    def update_article(
        self,
        slug: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        body: Optional[str] = None,
        token: TokenArg = USE_CLIENT_TOKEN,
    ) -> ApiResponse:
        """PUT /articles/{slug}. Only the given fields are sent."""
        fields = {"title": title, "description": description, "body": body}
        article = {k: v for k, v in fields.items() if v is not None}
        return self.request("PUT", f"/articles/{slug}", {"article": article}, token=token)

    def delete_article(self, slug: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("DELETE", f"/articles/{slug}", token=token)

    def get_article(self, slug: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("GET", f"/articles/{slug}", token=token)

    def list_articles(
        self,
        tag: Optional[str] = None,
        author: Optional[str] = None,
        favorited: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
        token: TokenArg = USE_CLIENT_TOKEN,
    ) -> ApiResponse:
        params = {"tag": tag, "author": author, "favorited": favorited, "limit": limit, "offset": offset}
        return self.request("GET", "/articles", token=token, params=params)

    def get_feed(self, limit: int = 20, offset: int = 0, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("GET", "/articles/feed", token=token, params={"limit": limit, "offset": offset})

    def favorite_article(self, slug: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("POST", f"/articles/{slug}/favorite", token=token)

    def unfavorite_article(self, slug: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("DELETE", f"/articles/{slug}/favorite", token=token)

    def get_tags(self) -> ApiResponse:
        return self.request("GET", "/tags", token=None)

    # =========================================================================
    # Comments
    # =========================================================================

    def add_comment(self, slug: str, body: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("POST", f"/articles/{slug}/comments", {"comment": {"body": body}}, token=token)

    def get_comments(self, slug: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("GET", f"/articles/{slug}/comments", token=token)

    def delete_comment(self, slug: str, comment_id: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("DELETE", f"/articles/{slug}/comments/{comment_id}", token=token)

    def like_comment(self, slug: str, comment_id: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("POST", f"/articles/{slug}/comments/{comment_id}/like", token=token)

    def unlike_comment(self, slug: str, comment_id: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("DELETE", f"/articles/{slug}/comments/{comment_id}/like", token=token)

    def dislike_comment(self, slug: str, comment_id: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("POST", f"/articles/{slug}/comments/{comment_id}/dislike", token=token)

    def undislike_comment(self, slug: str, comment_id: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("DELETE", f"/articles/{slug}/comments/{comment_id}/dislike", token=token)

    # =========================================================================
    # Profiles
    # =========================================================================

    def get_profile(self, username: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("GET", f"/profiles/{username}", token=token)

    def follow_user(self, username: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("POST", f"/profiles/{username}/follow", token=token)

    def unfollow_user(self, username: str, token: TokenArg = USE_CLIENT_TOKEN) -> ApiResponse:
        return self.request("DELETE", f"/profiles/{username}/follow", token=token)

    def is_reachable(self) -> bool:
        """True if the API answers GET /tags with any HTTP status."""
        try:
            self.get_tags()
        except ApiError:
            return False
        return True


__all__ = [
    "ApiClient",
    "TokenArg",
    "USE_CLIENT_TOKEN",
]
