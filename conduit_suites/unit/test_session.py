import httpx
import jwt
import pytest

from conduit_tools.common.environment_config import Credentials
from conduit_tools.common.exceptions import PreconditionNotMet, TokenMismatchError
from conduit_suites.api_testing.framework.api_client import ApiClient
from conduit_suites.session import API, BROWSER, Session, same_subject, token_subject


def _token(subject: str, **claims) -> str:
    return jwt.encode({"sub": subject, **claims}, "unit-secret", algorithm="HS256")


JOHN = _token("john")
JOHN_AGAIN = _token("john", iat=1700000000)
JANE = _token("jane")


@pytest.fixture
def api(unit_config):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"user": {"email": "john@example.com", "token": JOHN, "username": "johnjacob"}})

    with ApiClient(unit_config, transport=httpx.MockTransport(handler)) as client:
        yield client


@pytest.fixture
def session(unit_config, browser, api) -> Session:
    return Session.from_config(unit_config, browser=browser, api=api)


class TestSubjects:

    def test_token_subject(self):
        assert token_subject(JOHN) == "john"
        assert token_subject("opaque-token") is None
        assert token_subject(None) is None

    def test_same_subject(self):
        assert same_subject(JOHN, JOHN_AGAIN)
        assert not same_subject(JOHN, JANE)
        assert same_subject("opaque", "opaque")
        assert not same_subject("opaque", "other-opaque")
        assert not same_subject(JOHN, None)


class TestAcquire:

    def test_login_via_api_then_mirror(self, session, browser):
        session.login_via_api(Credentials("john@example.com", "password123", "johnjacob"))
        session.mirror_to_browser()

        assert session.token_source == API
        assert session.subject == "john"
        assert session.api_token() == JOHN
        assert browser.get_local_storage_token() == JOHN
        assert browser.get_local_storage_user()["username"] == "johnjacob"
        assert session.is_consistent()

    def test_mirror_without_token(self, session):
        with pytest.raises(PreconditionNotMet):
            session.mirror_to_browser()

    def test_sync_adopts_browser_token(self, session, browser):
        browser.set_local_storage_token(JANE, "jane")

        assert session.sync_from_browser() == JANE
        assert session.token_source == BROWSER
        assert session.username == "jane"
        assert session.api_token() == JANE

    def test_sync_with_empty_browser_keeps_session_token(self, session):
        session.adopt_token(JOHN, API)
        assert session.sync_from_browser() == JOHN

    def test_sync_same_subject_is_accepted(self, session, browser):
        session.adopt_token(JOHN, API)
        browser.set_local_storage_token(JOHN_AGAIN)

        assert session.sync_from_browser() == JOHN


class TestMismatch:

    def test_mismatch_raises_until_reconciled(self, session, browser):
        session.adopt_token(JOHN, API)
        browser.set_local_storage_token(JANE, "jane")

        assert not session.is_consistent()
        with pytest.raises(TokenMismatchError, match="jane"):
            session.sync_from_browser()
        # Nothing was silently overwritten
        assert session.auth_token == JOHN
        assert browser.get_local_storage_token() == JANE

    def test_reconcile_prefer_api(self, session, browser):
        session.adopt_token(JOHN, API)
        browser.set_local_storage_token(JANE, "jane")

        assert session.reconcile(prefer=API) == JOHN
        assert browser.get_local_storage_token() == JOHN
        assert session.is_consistent()

    def test_reconcile_prefer_browser(self, session, browser):
        session.adopt_token(JOHN, API)
        browser.set_local_storage_token(JANE, "jane")

        assert session.reconcile(prefer=BROWSER) == JANE
        assert session.api_token() == JANE
        assert session.token_source == BROWSER
        assert session.is_consistent()

    def test_reconcile_rejects_unknown_preference(self, session):
        session.adopt_token(JOHN, API)
        with pytest.raises(ValueError):
            session.reconcile(prefer="cookie")

    def test_reconcile_browser_without_token(self, session):
        with pytest.raises(PreconditionNotMet):
            session.reconcile(prefer=BROWSER)


def test_single_channel_session_is_consistent(unit_config, api):
    session = Session.from_config(unit_config, api=api)
    session.adopt_token(JOHN, API)

    assert session.is_consistent()
    with pytest.raises(PreconditionNotMet):
        session.sync_from_browser()


def test_drop_tokens(session, browser, fake_page):
    session.adopt_token(JOHN, API)
    session.mirror_to_browser()

    session.drop_tokens()

    assert session.auth_token is None
    assert session.api_token() is None
    assert session.browser_token() is None
    assert fake_page.context.cookies_cleared == 1
