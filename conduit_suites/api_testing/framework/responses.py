"""
================================================================================
API Responses and Typed Payloads
================================================================================

`ApiResponse` is the immutable result of every ApiClient call. Non-2xx
statuses are values, not errors: negative tests assert on them directly.

Typed payloads decode the Conduit JSON envelopes:

    {"user": {...}}      -> UserPayload
    {"profile": {...}}   -> ProfilePayload
    {"article": {...}}   -> ArticlePayload
    {"comment": {...}}   -> CommentPayload
    {"errors": {...}}    -> ErrorPayload

Absent fields decode to None. The extractors never raise: malformed bodies,
error bodies and missing fields all yield None.

================================================================================
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Type, TypeVar, Union

# Markers of leaked internals in an error body
SENSITIVE_MARKERS = (
    "stacktrace",
    "exception",
    "at io.spring",
    "at java.",
    "at org.",
    "/home/",
    "/usr/",
    "jdbc:",
    "password",
)

UUID_PATTERN = re.compile(r"[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}")

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

P = TypeVar("P", bound="Payload")


def _parse_json(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None


def _dig(data: Any, path: Sequence[str]) -> Any:
    for key in path:
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
        if data is None:
            return None
    return data


@dataclass(frozen=True)
class ApiResponse:
    """
    Immutable HTTP response.

    Attributes:
        status_code: HTTP status as returned by the server
        body: Raw response text ("" when empty)
        content_type: Content-Type header, or "" if absent
        headers: Response headers (lower-cased keys)
        elapsed_ms: Round trip time
    """

    status_code: int
    body: str = ""
    content_type: str = ""
    headers: Mapping[str, str] = field(default_factory=dict, compare=False, repr=False)
    elapsed_ms: Optional[float] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_json(self) -> bool:
        return "json" in self.content_type.lower()

    def json(self) -> Any:
        """Parsed body, or None if the body is empty or not JSON."""
        return _parse_json(self.body)

    def extract_field(self, *path: str) -> Any:
        """
        Walk a key path through the JSON body.

        >>> resp.extract_field("article", "author", "username")
        'johnjacob'
        """
        return _dig(self.json(), path)

    def decode(self, payload_type: Type[P]) -> Optional[P]:
        """Decode the body into a typed payload, or None if its envelope is absent."""
        return payload_type.from_body(self.json())

    def contains_sensitive_info(self, ignore: Sequence[str] = ()) -> bool:
        """
        True if the body leaks stack traces, filesystem paths, credentials or UUIDs.

        `ignore` drops markers the endpoint legitimately echoes, such as
        "password" in an "email or password is invalid" login error.
        """
        lowered = self.body.lower()
        skipped = {marker.lower() for marker in ignore}
        if any(marker in lowered for marker in SENSITIVE_MARKERS if marker not in skipped):
            return True
        return bool(UUID_PATTERN.search(self.body))

    def contains_email_address(self) -> bool:
        return bool(EMAIL_PATTERN.search(self.body))


# ================================================================================
# Typed payloads
# ================================================================================

class Payload:
    """Base for payloads wrapped in a named JSON envelope."""

    envelope: ClassVar[str] = ""

    @classmethod
    def from_json(cls: Type[P], data: Mapping[str, Any]) -> P:
        raise NotImplementedError

    @classmethod
    def from_body(cls: Type[P], body: Any) -> Optional[P]:
        if not isinstance(body, Mapping):
            return None
        inner = body.get(cls.envelope)
        if not isinstance(inner, Mapping):
            return None
        return cls.from_json(inner)


@dataclass(frozen=True)
class ProfilePayload(Payload):
    envelope: ClassVar[str] = "profile"

    username: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    following: Optional[bool] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ProfilePayload":
        return cls(
            username=data.get("username"),
            bio=data.get("bio"),
            image=data.get("image"),
            following=data.get("following"),
        )


@dataclass(frozen=True)
class UserPayload(Payload):
    envelope: ClassVar[str] = "user"

    email: Optional[str] = None
    token: Optional[str] = None
    username: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "UserPayload":
        return cls(
            email=data.get("email"),
            token=data.get("token"),
            username=data.get("username"),
            bio=data.get("bio"),
            image=data.get("image"),
        )


def _author(data: Mapping[str, Any]) -> Optional[ProfilePayload]:
    author = data.get("author")
    return ProfilePayload.from_json(author) if isinstance(author, Mapping) else None


@dataclass(frozen=True)
class ArticlePayload(Payload):
    envelope: ClassVar[str] = "article"

    slug: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    body: Optional[str] = None
    tag_list: Optional[List[str]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    favorited: Optional[bool] = None
    favorites_count: Optional[int] = None
    author: Optional[ProfilePayload] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ArticlePayload":
        tags = data.get("tagList")
        return cls(
            slug=data.get("slug"),
            title=data.get("title"),
            description=data.get("description"),
            body=data.get("body"),
            tag_list=list(tags) if isinstance(tags, list) else None,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            favorited=data.get("favorited"),
            favorites_count=data.get("favoritesCount"),
            author=_author(data),
        )


@dataclass(frozen=True)
class CommentPayload(Payload):
    envelope: ClassVar[str] = "comment"

    id: Optional[str] = None
    body: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    author: Optional[ProfilePayload] = None
    likes_count: Optional[int] = None
    dislikes_count: Optional[int] = None
    current_user_reaction: Optional[str] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "CommentPayload":
        comment_id = data.get("id")
        return cls(
            id=str(comment_id) if comment_id is not None else None,
            body=data.get("body"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            author=_author(data),
            likes_count=data.get("likesCount"),
            dislikes_count=data.get("dislikesCount"),
            current_user_reaction=data.get("currentUserReaction"),
        )


@dataclass(frozen=True)
class ErrorPayload(Payload):
    """Validation errors: {"errors": {"field": ["message", ...]}}."""

    envelope: ClassVar[str] = "errors"

    errors: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ErrorPayload":
        errors: Dict[str, List[str]] = {}
        for key, value in data.items():
            if isinstance(value, list):
                errors[key] = [str(v) for v in value]
            elif value is not None:
                errors[key] = [str(value)]
        return cls(errors=errors)

    def messages(self) -> List[str]:
        """Flatten to "field message" strings as the frontend renders them."""
        return [f"{key} {message}" for key, messages in self.errors.items() for message in messages]


def decode_list(body: Any, key: str, payload_type: Type[P]) -> Optional[List[P]]:
    """Decode a list envelope such as {"articles": [...]} or {"comments": [...]}."""
    items = _dig(body, (key,))
    if not isinstance(items, list):
        return None
    return [payload_type.from_json(item) for item in items if isinstance(item, Mapping)]


# ================================================================================
# Tolerant extractors
# ================================================================================

Body = Union[ApiResponse, Mapping[str, Any], str, bytes, None]


def _as_json(body: Body) -> Any:
    if isinstance(body, ApiResponse):
        return body.json()
    if isinstance(body, Mapping):
        return body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        return _parse_json(body)
    return None


def _first_str(body: Body, *paths: Sequence[str]) -> Optional[str]:
    data = _as_json(body)
    for path in paths:
        value = _dig(data, path)
        if value is not None and not isinstance(value, (Mapping, list)):
            return str(value)
    return None


def extract_slug(body: Body) -> Optional[str]:
    return _first_str(body, ("article", "slug"))


def extract_created_at(body: Body) -> Optional[str]:
    return _first_str(body, ("article", "createdAt"), ("comment", "createdAt"))


def extract_updated_at(body: Body) -> Optional[str]:
    return _first_str(body, ("article", "updatedAt"), ("comment", "updatedAt"))


def extract_comment_id(body: Body) -> Optional[str]:
    return _first_str(body, ("comment", "id"))


def extract_token(body: Body) -> Optional[str]:
    return _first_str(body, ("user", "token"))


__all__ = [
    "ApiResponse",
    "ArticlePayload",
    "CommentPayload",
    "ErrorPayload",
    "Payload",
    "ProfilePayload",
    "UserPayload",
    "decode_list",
    "extract_comment_id",
    "extract_created_at",
    "extract_slug",
    "extract_token",
    "extract_updated_at",
]
