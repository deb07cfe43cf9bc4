"""
================================================================================
Conduit Page Objects
================================================================================

One class per view. Actions that trigger asynchronous UI changes wait for the
change before returning.

================================================================================
"""

from .article_page import ArticlePage
from .article_preview import ArticlePreview
from .editor_page import EditorPage
from .home_page import HomePage
from .login_page import LoginPage
from .navbar import NavBar
from .profile_page import ProfilePage
from .register_page import RegisterPage
from .settings_page import SettingsPage
from .states import FavoriteState, FollowState

__all__ = [
    "ArticlePage",
    "ArticlePreview",
    "EditorPage",
    "FavoriteState",
    "FollowState",
    "HomePage",
    "LoginPage",
    "NavBar",
    "ProfilePage",
    "RegisterPage",
    "SettingsPage",
]
