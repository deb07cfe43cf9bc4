"""
================================================================================
Favorite API Test Suite
================================================================================

Favoriting articles: counts, idempotence and the favorited filter.

================================================================================
"""

from __future__ import annotations

from typing import Any, Dict

import allure
import pytest

from conduit_suites.api_testing.framework.api_client import ApiClient
from conduit_suites.api_testing.framework.responses import ArticlePayload, decode_list


@allure.epic("Conduit API")
@allure.feature("Favorites")
@pytest.mark.favorites
class TestFavoriteAPI:

    @pytest.mark.P0
    @allure.title("Favorite increments the count and sets the flag")
    def test_favorite(self, created_article: Dict[str, Any], other_user: Dict[str, Any]):
        article = other_user["api"].favorite_article(created_article["slug"]).decode(ArticlePayload)

        assert article is not None
        assert article.favorited is True
        assert article.favorites_count == 1

    @pytest.mark.P0
    @allure.title("Favoriting twice leaves the count unchanged")
    def test_favorite_is_idempotent(self, created_article: Dict[str, Any], other_user: Dict[str, Any]):
        api = other_user["api"]
        first = api.favorite_article(created_article["slug"]).decode(ArticlePayload)
        second = api.favorite_article(created_article["slug"]).decode(ArticlePayload)

        assert second.favorited is True
        assert second.favorites_count == first.favorites_count

    @pytest.mark.P1
    @allure.title("Unfavorite restores the count")
    def test_unfavorite(self, created_article: Dict[str, Any], other_user: Dict[str, Any]):
        api = other_user["api"]
        api.favorite_article(created_article["slug"])
        article = api.unfavorite_article(created_article["slug"]).decode(ArticlePayload)

        assert article.favorited is False
        assert article.favorites_count == 0

    @pytest.mark.P1
    @allure.title("favorited filter lists the user's favorites")
    def test_list_favorited(self, created_article: Dict[str, Any], other_user: Dict[str, Any]):
        api = other_user["api"]
        api.favorite_article(created_article["slug"])

        articles = decode_list(api.list_articles(favorited=other_user["username"]).json(), "articles", ArticlePayload)
        assert articles is not None
        assert created_article["slug"] in [a.slug for a in articles]

    @pytest.mark.P1
    @pytest.mark.security
    @allure.title("Anonymous favorite is unauthorized")
    def test_favorite_without_token(self, created_article: Dict[str, Any], api_client: ApiClient):
        response = api_client.favorite_article(created_article["slug"], token=None)
        assert response.status_code == 401
