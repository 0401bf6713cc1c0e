from __future__ import annotations

import base64
import ipaddress
import logging
import socket
import time
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode, urlsplit

import httpx
from jose import jwt
from jose.exceptions import JOSEError

logger = logging.getLogger(__name__)

ZOOM_TOKEN_URL = "https://zoom.us/oauth/token"
ZOOM_API_BASE = "https://api.zoom.us/v2"
TELEGRAM_API_BASE = "https://api.telegram.org"
GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
GOOGLE_MEET_SCOPES = (
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/calendar",
)
GOOGLE_CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"

SLACK_TEST_TEXT = (
    "*Test Message from {app}*\n\n"
    "This is a test message to verify your Slack integration is working correctly.\n\n"
    "If you can see this message, your webhook configuration is successful!"
)
TELEGRAM_TEST_TEXT = (
    "<b>Test Message from {app}</b>\n\n"
    "This is a test message to verify your Telegram integration is working correctly.\n\n"
    "If you can see this message, your bot configuration is successful!"
)

_BLOCKED_HOSTS = {"localhost", "0.0.0.0", "::1"}


class IntegrationError(Exception):
    """Raised when a third-party check fails; the message is safe to show to users."""


def _is_private_ip(ip: str) -> bool:
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return True
    return (
        addr.is_private
        or addr.is_loopback
        or addr.is_link_local
        or addr.is_reserved
        or addr.is_multicast
        or addr.is_unspecified
    )


# PUBLIC_INTERFACE
def is_safe_outbound_url(url: str, resolve: bool = True) -> bool:
    """
    Return True when url may be requested from the server.

    Only http(s) URLs with a host are allowed. localhost and private, loopback,
    link-local or reserved addresses are rejected, including any address the
    hostname resolves to. An unresolvable hostname is allowed; the request
    itself will fail.
    """
    url = (url or "").strip()
    if not url:
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme.lower() not in ("http", "https"):
        return False
    host = (parts.hostname or "").lower()
    if not host:
        return False
    if host in _BLOCKED_HOSTS:
        return False

    try:
        ipaddress.ip_address(host)
    except ValueError:
        pass
    else:
        return not _is_private_ip(host)

    if not resolve:
        return True
    try:
        infos = socket.getaddrinfo(host, None)
    except (socket.gaierror, UnicodeError):
        return True
    return not any(_is_private_ip(info[4][0]) for info in infos)


def _json_object(resp: httpx.Response, error: str) -> Dict[str, Any]:
    """Decode a JSON object body; anything else (HTML error pages, arrays) raises IntegrationError."""
    try:
        payload = resp.json()
    except ValueError:
        raise IntegrationError(f"{error}: response is not JSON") from None
    if not isinstance(payload, dict):
        raise IntegrationError(f"{error}: unexpected response")
    return payload


def _oauth_client_config(credentials: Dict[str, Any]) -> Dict[str, Any]:
    """Return the 'web' or 'installed' section of a Google OAuth client JSON."""
    section = credentials.get("web") or credentials.get("installed") or credentials
    if not section.get("client_id") or not section.get("client_secret"):
        raise IntegrationError("Invalid Google credentials file: client_id and client_secret are required")
    return section


class IntegrationClient:
    """
    Outbound HTTP calls made from the settings pages.

    Each call opens a short-lived httpx.AsyncClient bounded by timeout. A
    transport may be injected (httpx.MockTransport in tests).
    """

    def __init__(
        self,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        app_name: str = "Workspace Settings",
    ) -> None:
        self.timeout = timeout
        self.transport = transport
        self.app_name = app_name

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    # PUBLIC_INTERFACE
    async def verify_zoom_credentials(self, account_id: str, client_id: str, client_secret: str) -> Dict[str, Any]:
        """
        Obtain a server-to-server OAuth token and list users with it.

        Returns the users payload on success; raises IntegrationError otherwise.
        """
        if not account_id or not client_id or not client_secret:
            raise IntegrationError("Zoom credentials not configured")

        basic = base64.b64encode(f"{client_id}:{client_secret}".encode("utf-8")).decode("ascii")
        try:
            async with self._client() as client:
                token_resp = await client.post(
                    ZOOM_TOKEN_URL,
                    headers={"Authorization": f"Basic {basic}"},
                    data={"grant_type": "account_credentials", "account_id": account_id},
                )
                if token_resp.status_code != 200:
                    raise IntegrationError("Failed to get Zoom access token")
                access_token = _json_object(token_resp, "Failed to get Zoom access token").get("access_token")
                if not access_token:
                    raise IntegrationError("Failed to get Zoom access token")

                users_resp = await client.get(
                    f"{ZOOM_API_BASE}/users",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                if users_resp.status_code != 200:
                    raise IntegrationError("Zoom API rejected the access token")
                return _json_object(users_resp, "Zoom API returned an invalid users response")
        except httpx.HTTPError as exc:
            logger.warning("Zoom connection test failed: %s", exc)
            raise IntegrationError(f"Zoom connection failed: {exc}") from exc

    # PUBLIC_INTERFACE
    async def send_slack_test(self, webhook_url: str) -> None:
        """Post a test message to a Slack incoming webhook."""
        if not webhook_url:
            raise IntegrationError("Slack webhook URL is required")
        payload = {
            "text": SLACK_TEST_TEXT.format(app=self.app_name),
            "username": self.app_name,
            "icon_emoji": ":white_check_mark:",
        }
        try:
            async with self._client() as client:
                resp = await client.post(webhook_url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Slack test message failed: %s", exc)
            raise IntegrationError(f"Slack request failed: {exc}") from exc
        if resp.status_code != 200:
            raise IntegrationError(f"Slack responded with status {resp.status_code}")

    # PUBLIC_INTERFACE
    async def send_telegram_test(self, bot_token: str, chat_id: str) -> None:
        """Send a test message through the Telegram Bot API."""
        if not bot_token or not chat_id:
            raise IntegrationError("Telegram bot token and chat id are required")
        url = f"{TELEGRAM_API_BASE}/bot{quote(bot_token, safe=':')}/sendMessage"
        payload = {
            "chat_id": chat_id,
            "text": TELEGRAM_TEST_TEXT.format(app=self.app_name),
            "parse_mode": "HTML",
        }
        try:
            async with self._client() as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Telegram test message failed: %s", exc)
            raise IntegrationError(f"Telegram request failed: {exc}") from exc
        if resp.status_code != 200:
            raise IntegrationError(f"Telegram responded with status {resp.status_code}")

    # PUBLIC_INTERFACE
    def google_auth_url(self, credentials: Dict[str, Any], redirect_uri: str) -> str:
        """Build the offline-access consent URL for a Google OAuth client JSON."""
        config = _oauth_client_config(credentials)
        params = {
            "client_id": config["client_id"],
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(GOOGLE_MEET_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{config.get('auth_uri') or GOOGLE_AUTH_URI}?{urlencode(params)}"

    # PUBLIC_INTERFACE
    async def exchange_google_code(
        self, credentials: Dict[str, Any], code: str, redirect_uri: str
    ) -> Dict[str, Any]:
        """Exchange an authorization code for a token payload."""
        config = _oauth_client_config(credentials)
        data = {
            "code": code,
            "client_id": config["client_id"],
            "client_secret": config["client_secret"],
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            async with self._client() as client:
                resp = await client.post(config.get("token_uri") or GOOGLE_TOKEN_URI, data=data)
        except httpx.HTTPError as exc:
            raise IntegrationError(f"Google token request failed: {exc}") from exc
        try:
            token = _json_object(resp, "Google rejected the code")
        except IntegrationError:
            if resp.status_code == 200:
                raise
            token = {}
        if resp.status_code != 200 or "access_token" not in token:
            raise IntegrationError(token.get("error_description") or token.get("error") or "Google rejected the code")
        return token

    # PUBLIC_INTERFACE
    async def verify_google_calendar(self, service_account: Dict[str, Any], calendar_id: str) -> Dict[str, Any]:
        """
        Check that a service account can read calendar_id.

        Signs an RS256 JWT assertion with the account's private key, exchanges it
        for an access token and fetches the calendar resource.
        """
        if service_account.get("type") != "service_account":
            raise IntegrationError("Invalid JSON file: Must be a service account credentials file")
        for field in ("client_email", "private_key"):
            if not service_account.get(field):
                raise IntegrationError(f"Invalid JSON file: Missing required field '{field}'")
        calendar_id = (calendar_id or "").strip() or "primary"

        token_uri = service_account.get("token_uri") or GOOGLE_TOKEN_URI
        now = int(time.time())
        claims = {
            "iss": service_account["client_email"],
            "scope": GOOGLE_CALENDAR_SCOPE,
            "aud": token_uri,
            "iat": now,
            "exp": now + 3600,
        }
        headers = {"kid": service_account["private_key_id"]} if service_account.get("private_key_id") else None
        try:
            assertion = jwt.encode(claims, service_account["private_key"], algorithm="RS256", headers=headers)
        except (JOSEError, ValueError) as exc:
            raise IntegrationError(f"Invalid service account private key: {exc}") from exc

        try:
            async with self._client() as client:
                token_resp = await client.post(
                    token_uri,
                    data={"grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer", "assertion": assertion},
                )
                if token_resp.status_code != 200:
                    raise IntegrationError("Google rejected the service account credentials")
                access_token = _json_object(token_resp, "Google rejected the service account credentials").get(
                    "access_token"
                )
                if not access_token:
                    raise IntegrationError("Google rejected the service account credentials")

                cal_resp = await client.get(
                    f"{GOOGLE_CALENDAR_API_BASE}/calendars/{quote(calendar_id, safe='')}",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as exc:
            raise IntegrationError(f"Google Calendar request failed: {exc}") from exc
        if cal_resp.status_code != 200:
            raise IntegrationError(f"Calendar '{calendar_id}' is not accessible (status {cal_resp.status_code})")
        return _json_object(cal_resp, f"Calendar '{calendar_id}' returned an invalid response")
