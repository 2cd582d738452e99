import logging
from urllib.parse import quote

SESSION_ID_COOKIE = "sessionid"
LOGIN_SECURE_COOKIE = "steamLoginSecure"


class CookieManager:
    """
    # Web Session Cookie Manager

    Holds the cookies community web endpoints authenticate with. The session
    machine hands it a fresh session id and login-secure value every time the
    refresh token rotates.

    ## Cookie Format:
    Cookies are formatted as: `name1=value1; name2=value2`. The login-secure
    value is URL-quoted, as browsers send it.

    ## Example:
    ```python
    cookies = CookieManager()
    cookies.store_session_cookies("0123abcd...", "76561197960287930||eyJ...")

    cookies.get_cookie_header()
    # "sessionid=0123abcd...; steamLoginSecure=76561197960287930%7C%7CeyJ..."
    ```
    """

    def __init__(self) -> None:
        self.cookies: dict[str, str] = {}
        self.logger = logging.getLogger(__name__)

    def store_session_cookies(self, session_id: str, login_secure: str) -> None:
        """
        Replace the session cookies.

        ## Args:
        - `session_id` (str): Hex session id, sent as `sessionid`
        - `login_secure` (str): Composite credential, sent as `steamLoginSecure`
        """
        self.cookies[SESSION_ID_COOKIE] = session_id
        self.cookies[LOGIN_SECURE_COOKIE] = quote(login_secure, safe="")
        self.logger.debug("Session cookies updated in cookie manager")

    @property
    def session_id(self) -> str | None:
        return self.cookies.get(SESSION_ID_COOKIE)

    def get_cookie_header(self) -> str:
        """Return the `Cookie` header value, empty when no cookies are set."""
        if not self.cookies:
            return ""
        return "; ".join(f"{key}={value}" for key, value in self.cookies.items())

    def clear_session_cookies(self) -> None:
        """Remove the session cookies; safe when none are set."""
        self.cookies.pop(SESSION_ID_COOKIE, None)
        self.cookies.pop(LOGIN_SECURE_COOKIE, None)
        self.logger.debug("Session cookies cleared from cookie manager")

    def has_session_cookies(self) -> bool:
        return SESSION_ID_COOKIE in self.cookies and LOGIN_SECURE_COOKIE in self.cookies
