"""
================================================================================
Article Page Object
================================================================================

Article view at /article/<slug>: content, favorite and follow toggles,
owner controls and the comment thread.

Synchronization:
    - favorite()/unfavorite() wait for the button's active class to flip
    - follow_author()/unfollow_author() wait for the label to flip
    - post_comment() waits until one more comment with exactly this text
      is rendered than before the submit
    - delete_comment() waits until one fewer is rendered

================================================================================
"""

from __future__ import annotations

import json
import re
from typing import Dict, List, Optional

import allure
from loguru import logger

from conduit_suites.ui_testing.framework.browser_session import BrowserSession
from conduit_suites.ui_testing.framework.page_base import BasePage

from .states import FavoriteState, FollowState, is_active_button, parse_count


# Markup that would execute if rendered unescaped
_EXECUTABLE_MARKUP = (
    re.compile(r"<\s*script\b", re.IGNORECASE),
    re.compile(r"<[^>]+\son[a-z]+\s*=", re.IGNORECASE),
    re.compile(r"<[^>]+(href|src)\s*=\s*[\"']?\s*javascript:", re.IGNORECASE),
)


def contains_executable_markup(html: str) -> bool:
    """True if an HTML fragment carries a live script tag, inline handler or javascript: URL."""
    return any(pattern.search(html) for pattern in _EXECUTABLE_MARKUP)


def _normalize(text: str) -> str:
    return " ".join(text.split())


def comment_card(text: str) -> str:
    """Selector for comment cards whose body text equals `text` (whitespace-normalized)."""
    return f".card:not(.comment-form):has(.card-text:text-is({json.dumps(_normalize(text), ensure_ascii=False)}))"


class ArticlePage(BasePage):
    READY_SELECTOR = ".banner h1"

    LOCATORS = {
        "title": ".banner h1",
        "body": ".article-content",
        "author": ".banner .article-meta .author",
        "tags": ".tag-list .tag-pill",
        "favorite_button": ".banner .article-meta button:has(i.ion-heart)",
        "follow_button": ".banner .article-meta button:has(i.ion-plus-round)",
        "edit_button": ".banner .article-meta a[href^='/editor/']",
        "delete_button": ".banner .article-meta button.btn-outline-danger",
        "comment_input": ".comment-form textarea",
        "comment_submit": ".comment-form button",
        "comment_bodies": ".card:not(.comment-form) .card-text",
        "comment_delete": ".mod-options .ion-trash-a",
        "comment_like": ".comment-reactions button:has(i.ion-thumbsup)",
        "comment_dislike": ".comment-reactions button:has(i.ion-thumbsdown)",
        "sign_in_prompt": "a[href='/user/login']",
    }

    def __init__(self, browser: BrowserSession, slug: Optional[str] = None, **kwargs):
        super().__init__(browser, **kwargs)
        self.slug = slug

    @property
    def path(self) -> str:
        return f"/article/{self.slug}"

    def current_slug(self) -> Optional[str]:
        path = self.browser.current_path
        if "/article/" not in path:
            return None
        return path.rsplit("/article/", 1)[1].strip("/") or None

    # =========================================================================
    # Content
    # =========================================================================

    def title(self) -> str:
        return self.text("title")

    def body_text(self) -> str:
        return self.text("body")

    def author(self) -> str:
        return self.text("author")

    def tags(self) -> List[str]:
        return self.texts("tags")

    def has_owner_controls(self) -> bool:
        return self.count("edit_button") > 0 and self.count("delete_button") > 0

    @allure.step("Delete article from UI")
    def delete_article(self) -> None:
        self.click("delete_button")
        self.wait(lambda: self.browser.current_path == "/", "redirect to home after delete", scenario="navigation")

    def edit_article(self) -> None:
        self.click("edit_button")
        self.wait(lambda: self.browser.current_path.startswith("/editor/"), "editor route", scenario="navigation")

    # =========================================================================
    # Favorite toggle
    # =========================================================================

    def is_favorited(self) -> bool:
        if self.count("favorite_button") == 0:
            return False
        return is_active_button(self.browser.attribute_of(self.selector("favorite_button"), "class"))

    def favorite_count(self) -> int:
        return parse_count(self.text_if_present("favorite_button"))

    def favorite_state(self) -> FavoriteState:
        return FavoriteState(favorited=self.is_favorited(), count=self.favorite_count())

    @allure.step("Favorite article")
    def favorite(self) -> FavoriteState:
        if self.is_favorited():
            logger.info("Article already favorited; not clicking")
            return self.favorite_state()
        self.click("favorite_button")
        self.wait(self.is_favorited, "favorite button active", scenario="favorite")
        return self.favorite_state()

    @allure.step("Unfavorite article")
    def unfavorite(self) -> FavoriteState:
        if not self.is_favorited():
            logger.info("Article not favorited; not clicking")
            return self.favorite_state()
        self.click("favorite_button")
        self.wait(lambda: not self.is_favorited(), "favorite button inactive", scenario="favorite")
        return self.favorite_state()

    # =========================================================================
    # Follow author
    # =========================================================================

    def follow_button_label(self) -> str:
        return self.text_if_present("follow_button") or ""

    def is_following_author(self) -> bool:
        return "unfollow" in self.follow_button_label().lower()

    def follow_state(self) -> FollowState:
        label = self.follow_button_label()
        return FollowState(following="unfollow" in label.lower(), label=label)

    @allure.step("Follow article author")
    def follow_author(self) -> FollowState:
        if self.is_following_author():
            return self.follow_state()
        self.click("follow_button")
        self.wait(self.is_following_author, "author follow button shows Unfollow", scenario="follow")
        return self.follow_state()

    @allure.step("Unfollow article author")
    def unfollow_author(self) -> FollowState:
        if not self.is_following_author():
            return self.follow_state()
        self.click("follow_button")
        self.wait(lambda: not self.is_following_author(), "author follow button shows Follow", scenario="follow")
        return self.follow_state()

    # =========================================================================
    # Comments
    # =========================================================================

    def comment_texts(self) -> List[str]:
        return self.texts("comment_bodies")

    def comment_count(self, text: str) -> int:
        """Number of rendered comments whose body equals `text` once whitespace is collapsed."""
        wanted = _normalize(text)
        return sum(1 for body in self.comment_texts() if _normalize(body) == wanted)

    def has_comment(self, text: str) -> bool:
        return self.comment_count(text) > 0

    def can_comment(self) -> bool:
        return self.count("comment_input") > 0

    @allure.step("Post comment")
    def post_comment(self, text: str) -> List[str]:
        """Submit a comment and wait until it is rendered. Returns all comment bodies."""
        before = self.comment_count(text)
        self.fill("comment_input", text)
        self.click("comment_submit")
        self.wait(lambda: self.comment_count(text) > before, "posted comment rendered", scenario="comment")
        return self.comment_texts()

    @allure.step("Delete comment")
    def delete_comment(self, text: str) -> None:
        before = self.comment_count(text)
        self.browser.click(comment_card(text), child=self.selector("comment_delete"))
        self.wait(lambda: self.comment_count(text) < before, "deleted comment removed", scenario="comment")

    def comments_inner_html(self) -> List[str]:
        return self.browser.inner_html_of(self.selector("comment_bodies"))

    def has_executable_script_in_comments(self) -> bool:
        """True if any comment rendered live markup or a JS dialog fired."""
        if self.browser.dialogs:
            return True
        return any(contains_executable_markup(html) for html in self.comments_inner_html())

    # =========================================================================
    # Comment reactions
    # =========================================================================

    def comment_reactions(self, text: str) -> Dict[str, object]:
        like_sel = self.selector("comment_like")
        dislike_sel = self.selector("comment_dislike")
        card = comment_card(text)
        return {
            "likes": parse_count(self.browser.text_of(card, child=like_sel)),
            "dislikes": parse_count(self.browser.text_of(card, child=dislike_sel)),
            "liked": is_active_button(self.browser.attribute_of(card, "class", child=like_sel)),
            "disliked": "btn-danger" in (self.browser.attribute_of(card, "class", child=dislike_sel) or "").split(),
        }

    @allure.step("Like comment")
    def like_comment(self, text: str) -> Dict[str, object]:
        if self.comment_reactions(text)["liked"]:
            return self.comment_reactions(text)
        self.browser.click(comment_card(text), child=self.selector("comment_like"))

        def liked():
            reactions = self.comment_reactions(text)
            return reactions if reactions["liked"] else None

        return self.wait(liked, "comment like registered", scenario="comment")


__all__ = [
    "ArticlePage",
    "comment_card",
    "contains_executable_markup",
]
