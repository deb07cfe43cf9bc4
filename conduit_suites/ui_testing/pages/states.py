"""UI-observable follow and favorite states."""

import re
from dataclasses import dataclass
from typing import Optional

_DIGITS = re.compile(r"\d+")


def parse_count(text: Optional[str]) -> int:
    """Digits in a button label ("♥ 12" -> 12); 0 when there are none."""
    if not text:
        return 0
    return int("".join(_DIGITS.findall(text)) or 0)


def is_active_button(classes: Optional[str]) -> bool:
    """Conduit marks an active toggle with btn-primary / btn-secondary and no outline."""
    tokens = (classes or "").split()
    active = any(t in ("btn-primary", "btn-secondary") for t in tokens)
    return active and not any(t.startswith("btn-outline") for t in tokens)


@dataclass(frozen=True)
class FollowState:
    following: bool
    label: str = ""


@dataclass(frozen=True)
class FavoriteState:
    """
    Favorite toggle as rendered.

    Raises:
        ValueError: If count is negative
    """
    favorited: bool
    count: int = 0

    def __post_init__(self):
        if self.count < 0:
            raise ValueError(f"Favorite count cannot be negative: {self.count}")


__all__ = [
    "FavoriteState",
    "FollowState",
    "is_active_button",
    "parse_count",
]
