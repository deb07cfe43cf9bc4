"""
================================================================================
API Testing Framework
================================================================================

Modules:
    - api_client: Conduit REST client with Allure logging
    - responses: ApiResponse, typed payloads and tolerant extractors
    - data_factory: Generated users, articles and comments

================================================================================
"""

from .api_client import USE_CLIENT_TOKEN, ApiClient
from .responses import (
    ApiResponse,
    ArticlePayload,
    CommentPayload,
    ErrorPayload,
    ProfilePayload,
    UserPayload,
    extract_comment_id,
    extract_created_at,
    extract_slug,
    extract_updated_at,
)

__all__ = [
    "ApiClient",
    "ApiResponse",
    "ArticlePayload",
    "CommentPayload",
    "ErrorPayload",
    "ProfilePayload",
    "USE_CLIENT_TOKEN",
    "UserPayload",
    "extract_comment_id",
    "extract_created_at",
    "extract_slug",
    "extract_updated_at",
]
