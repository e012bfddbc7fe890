"""
Librus session management and authentication.

Handles login to Librus Synergia through the api.librus.pl OAuth
form, which hands back a session cookie valid for the web portal.
"""

import logging
from typing import Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup, Tag

from librus_bot.portal.base import PortalAuthError, PortalError

logger = logging.getLogger(__name__)

OAUTH_URL = "https://api.librus.pl/OAuth/Authorization"
OAUTH_CLIENT_ID = "46"


class PortalSession:
    """
    Manages an authenticated session with Librus Synergia.

    Handles:
    - OAuth form login with username/password
    - Session cookie management
    - Fetching portal pages as parsed HTML
    """

    # User agent to mimic a real browser
    USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )

    REQUEST_TIMEOUT = 30

    def __init__(self, base_url: str = "https://synergia.librus.pl"):
        """
        Initialize portal session.

        Args:
            base_url: Synergia base URL, without trailing slash
        """
        self.base_url = base_url.rstrip("/")

        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": self.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "pl-PL,pl;q=0.9,en;q=0.5",
        })

        self._authenticated = False

    @property
    def is_authenticated(self) -> bool:
        """Check if session is authenticated."""
        return self._authenticated

    def url(self, path: str) -> str:
        """Build full URL from a portal path."""
        return urljoin(self.base_url + "/", path.lstrip("/"))

    def login(self, login: str, password: str) -> None:
        """
        Authenticate with Librus using username/password.

        Not retried: a failure here is reported to the caller as is.

        Raises:
            PortalAuthError: If login fails for any reason
        """
        logger.info(f"Logging in to {self.base_url} as {login}")

        try:
            # Step 1: open the OAuth form to obtain the pre-login cookies
            response = self.session.get(
                OAUTH_URL,
                params={
                    "client_id": OAUTH_CLIENT_ID,
                    "response_type": "code",
                    "scope": "mydata",
                },
                timeout=self.REQUEST_TIMEOUT,
            )
            response.raise_for_status()

            # Step 2: submit credentials
            response = self.session.post(
                OAUTH_URL,
                params={"client_id": OAUTH_CLIENT_ID},
                data={"action": "login", "login": login, "pass": password},
                timeout=self.REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            self._check_login_response(response)

            # Step 3: the 2FA step is a no-op redirect for accounts without 2FA
            response = self.session.get(
                f"{OAUTH_URL}/2FA",
                params={"client_id": OAUTH_CLIENT_ID},
                timeout=self.REQUEST_TIMEOUT,
            )
            response.raise_for_status()

        except requests.exceptions.RequestException as e:
            logger.error(f"Login request failed: {e}")
            raise PortalAuthError(f"Login request failed: {e}") from e

        self._authenticated = True
        logger.info("Login successful")

    def _check_login_response(self, response: requests.Response) -> None:
        """
        Inspect the credentials POST response for a rejection.

        The endpoint answers with JSON ``{"status": "error", "errors": [...]}``
        on bad credentials and a redirect target on success.
        """
        try:
            data = response.json()
        except ValueError:
            return

        if isinstance(data, dict) and data.get("status") == "error":
            errors = data.get("errors") or []
            message = "; ".join(
                e.get("message", str(e)) if isinstance(e, dict) else str(e)
                for e in errors
            )
            raise PortalAuthError(
                f"Login rejected: {message or 'credentials may be incorrect'}"
            )

    def get_page(self, path: str) -> BeautifulSoup:
        """
        Fetch a portal page and parse it.

        Args:
            path: Portal path, e.g. ``/ogloszenia``

        Returns:
            BeautifulSoup: Parsed page

        Raises:
            PortalError: If the session is not logged in or the request fails
        """
        if not self.is_authenticated:
            raise PortalError("Not logged in")

        try:
            response = self.session.get(self.url(path), timeout=self.REQUEST_TIMEOUT)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise PortalError(f"Failed to fetch {path}: {e}") from e

        return BeautifulSoup(response.text, "lxml")

    def close(self) -> None:
        self.session.close()
        self._authenticated = False

    def __enter__(self) -> "PortalSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def page_text(tag: Optional[Tag]) -> str:
    """Whitespace-normalized text of a tag, empty for None."""
    if tag is None:
        return ""
    return " ".join(tag.get_text(" ").split())
