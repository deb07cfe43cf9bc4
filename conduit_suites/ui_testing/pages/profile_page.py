"""
================================================================================
Profile Page Object
================================================================================

User profile at /profile/<username>: bio, follow toggle and article tabs.

The follow button re-renders after the follow request resolves; `follow()`
and `unfollow()` return only once the label has flipped. Calling either when
the target state is already shown does not click.

================================================================================
"""

from __future__ import annotations

from typing import List

import allure
from loguru import logger

from conduit_suites.ui_testing.framework.browser_session import BrowserSession
from conduit_suites.ui_testing.framework.page_base import BasePage

from .states import FollowState


class ProfilePage(BasePage):
    READY_SELECTOR = ".user-info h4"

    LOCATORS = {
        "username": ".user-info h4",
        "bio": ".user-info p",
        "avatar": ".user-info .user-img",
        "follow_button": ".user-info .btn.action-btn",
        "edit_settings": ".user-info a[href='/user/settings']",
        "tab_links": ".articles-toggle .nav-link",
        "article_titles": ".article-preview h1",
        "article_previews": ".article-preview",
    }

    def __init__(self, browser: BrowserSession, username: str, **kwargs):
        super().__init__(browser, **kwargs)
        self.username = username

    @property
    def path(self) -> str:
        return f"/profile/{self.username}"

    def displayed_username(self) -> str:
        return self.text("username")

    def bio(self) -> str:
        return self.text_if_present("bio") or ""

    def is_own_profile(self) -> bool:
        return self.count("edit_settings") > 0

    # =========================================================================
    # Follow toggle
    # =========================================================================

    def follow_button_label(self) -> str:
        return self.text_if_present("follow_button") or ""

    def is_following(self) -> bool:
        return "unfollow" in self.follow_button_label().lower()

    def follow_state(self) -> FollowState:
        label = self.follow_button_label()
        return FollowState(following="unfollow" in label.lower(), label=label)

    @allure.step("Follow user from profile")
    def follow(self) -> FollowState:
        if self.is_following():
            logger.info(f"Already following {self.username}; not clicking")
            return self.follow_state()
        self.click("follow_button")
        self.wait(self.is_following, f"follow button for {self.username} shows Unfollow", scenario="follow")
        return self.follow_state()

    @allure.step("Unfollow user from profile")
    def unfollow(self) -> FollowState:
        if not self.is_following():
            logger.info(f"Not following {self.username}; not clicking")
            return self.follow_state()
        self.click("follow_button")
        self.wait(lambda: not self.is_following(), f"follow button for {self.username} shows Follow", scenario="follow")
        return self.follow_state()

    # =========================================================================
    # Article tabs
    # =========================================================================

    def article_titles(self) -> List[str]:
        return self.texts("article_titles")

    def open_tab(self, label: str) -> None:
        """Switch between "My Articles" and "Favorited Articles"."""
        self.click("tab_links", has_text=label)
        self.wait(
            lambda: "active" in (self.browser.attribute_of(self.selector("tab_links"), "class", has_text=label) or ""),
            f"profile tab '{label}' active",
            scenario="navigation",
        )

    def wait_for_article(self, title: str) -> List[str]:
        def listed():
            titles = self.article_titles()
            return titles if title in titles else None

        return self.wait(listed, f"article '{title}' listed on {self.username}'s profile", scenario="api_consistency")
