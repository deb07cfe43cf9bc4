"""
================================================================================
Test Data Factory
================================================================================

Factories for Conduit test data: users, articles and comments.

Features:
- Unique, collision-free titles, usernames and emails per run
- Security payloads (XSS, oversized input) for negative tests
- Cleanup tracking for teardown of created articles and comments

================================================================================
"""

import random
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from loguru import logger


XSS_PAYLOADS = (
    "<script>alert(1)</script>",
    "<img src=x onerror=alert(1)>",
    "<svg onload=alert(1)>",
    "<a href=\"javascript:alert(1)\">click</a>",
)


@dataclass
class GeneratedData:
    """Generated entity plus how to remove it."""
    data: Dict[str, Any]
    data_type: str
    created_at: datetime = field(default_factory=datetime.now)
    cleanup_handler: Optional[Callable[[Dict[str, Any]], Any]] = None


class DataFactoryBase:
    """
    Common helpers for generated test data.

    Everything generated carries PREFIX so leftovers are recognizable in a
    shared environment.
    """

    PREFIX = "autotest"

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)
        self._generated_items: List[GeneratedData] = []

    def unique_id(self, prefix: str = "") -> str:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        return f"{self.PREFIX}{prefix}{timestamp}{uuid4().hex[:6]}"

    def random_string(self, length: int = 10) -> str:
        chars = string.ascii_lowercase + string.digits
        return "".join(self._random.choice(chars) for _ in range(length))

    def track(
        self,
        data: Dict[str, Any],
        data_type: str,
        cleanup_handler: Optional[Callable[[Dict[str, Any]], Any]] = None,
    ) -> GeneratedData:
        generated = GeneratedData(data=data, data_type=data_type, cleanup_handler=cleanup_handler)
        self._generated_items.append(generated)
        return generated

    def cleanup_all(self) -> None:
        """Run cleanup handlers in reverse creation order. Failures are logged, not raised."""
        for item in reversed(self._generated_items):
            if item.cleanup_handler is None:
                continue
            try:
                item.cleanup_handler(item.data)
            except Exception as e:
                logger.warning(f"Cleanup failed for {item.data_type} {item.data}: {e}")
        self._generated_items.clear()


class UserFactory(DataFactoryBase):
    def create_valid(self, **overrides: Any) -> Dict[str, Any]:
        name = self.unique_id("u")[:30]
        data = {
            "username": name,
            "email": f"{name}@example.com",
            "password": f"Pw-{self.random_string(12)}",
        }
        data.update(overrides)
        return data


class ArticleFactory(DataFactoryBase):
    """
    Article payloads.

    Tags are lower-case and unique per call so tag filters only match
    articles created by the same test.
    """

    def create_valid(self, **overrides: Any) -> Dict[str, Any]:
        marker = self.random_string(6)
        data = {
            "title": f"Autotest article {self.unique_id('-')}",
            "description": f"Generated description {marker}",
            "body": f"Generated body {marker}.\n\nSecond paragraph.",
            "tags": [f"autotest{marker}"],
        }
        data.update(overrides)
        return data

    def create_oversized(self, length: int = 100_000) -> Dict[str, Any]:
        return self.create_valid(body="x" * length)


class CommentFactory(DataFactoryBase):
    def create_text(self) -> str:
        return f"Autotest comment {self.unique_id('-')}"

    def create_xss(self, index: int = 0) -> str:
        """A comment carrying a script payload plus a unique marker to find it by."""
        return f"{XSS_PAYLOADS[index % len(XSS_PAYLOADS)]} {self.unique_id('-')}"


__all__ = [
    "ArticleFactory",
    "CommentFactory",
    "DataFactoryBase",
    "GeneratedData",
    "UserFactory",
    "XSS_PAYLOADS",
]
