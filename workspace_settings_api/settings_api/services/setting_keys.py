"""
Closed registry of known setting keys.

Every key the service reads or writes is a SettingKey member with a declared
value type and default. Values are validated and encoded to their stored
string form here, at the boundary, so the store only ever sees strings.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Union


class UnknownSettingKeyError(KeyError):
    """Raised when a key is not part of the SettingKey registry."""


class SettingValueError(ValueError):
    """Raised when a value does not match the declared type of its key."""


class SettingKey(str, Enum):
    # System
    DEFAULT_LANGUAGE = "defaultLanguage"
    DATE_FORMAT = "dateFormat"
    TIME_FORMAT = "timeFormat"
    CALENDAR_START_DAY = "calendarStartDay"
    DEFAULT_TIMEZONE = "defaultTimezone"
    EMAIL_VERIFICATION = "emailVerification"
    LANDING_PAGE_ENABLED = "landingPageEnabled"
    TERMS_CONDITIONS_URL = "termsConditionsUrl"

    # Brand
    LOGO_DARK = "logoDark"
    LOGO_LIGHT = "logoLight"
    FAVICON = "favicon"
    TITLE_TEXT = "titleText"
    FOOTER_TEXT = "footerText"
    THEME_COLOR = "themeColor"
    CUSTOM_COLOR = "customColor"
    SIDEBAR_VARIANT = "sidebarVariant"
    SIDEBAR_STYLE = "sidebarStyle"
    LAYOUT_DIRECTION = "layoutDirection"
    THEME_MODE = "themeMode"

    # Storage
    STORAGE_TYPE = "storage_type"
    STORAGE_FILE_TYPES = "storage_file_types"
    STORAGE_MAX_UPLOAD_SIZE = "storage_max_upload_size"
    AWS_ACCESS_KEY_ID = "aws_access_key_id"
    AWS_SECRET_ACCESS_KEY = "aws_secret_access_key"
    AWS_DEFAULT_REGION = "aws_default_region"
    AWS_BUCKET = "aws_bucket"
    AWS_URL = "aws_url"
    AWS_ENDPOINT = "aws_endpoint"
    WASABI_ACCESS_KEY = "wasabi_access_key"
    WASABI_SECRET_KEY = "wasabi_secret_key"
    WASABI_REGION = "wasabi_region"
    WASABI_BUCKET = "wasabi_bucket"
    WASABI_URL = "wasabi_url"
    WASABI_ROOT = "wasabi_root"

    # Currency
    DECIMAL_FORMAT = "decimalFormat"
    DEFAULT_CURRENCY = "defaultCurrency"
    DECIMAL_SEPARATOR = "decimalSeparator"
    THOUSANDS_SEPARATOR = "thousandsSeparator"
    FLOAT_NUMBER = "floatNumber"
    CURRENCY_SYMBOL_SPACE = "currencySymbolSpace"
    CURRENCY_SYMBOL_POSITION = "currencySymbolPosition"

    # ReCaptcha
    RECAPTCHA_ENABLED = "recaptchaEnabled"
    RECAPTCHA_VERSION = "recaptchaVersion"
    RECAPTCHA_SITE_KEY = "recaptchaSiteKey"
    RECAPTCHA_SECRET_KEY = "recaptchaSecretKey"

    # ChatGPT
    CHATGPT_KEY = "chatgptKey"
    CHATGPT_MODEL = "chatgptModel"

    # Cookie consent
    ENABLE_LOGGING = "enableLogging"
    STRICTLY_NECESSARY_COOKIES = "strictlyNecessaryCookies"
    COOKIE_TITLE = "cookieTitle"
    STRICTLY_COOKIE_TITLE = "strictlyCookieTitle"
    COOKIE_DESCRIPTION = "cookieDescription"
    STRICTLY_COOKIE_DESCRIPTION = "strictlyCookieDescription"
    CONTACT_US_DESCRIPTION = "contactUsDescription"
    CONTACT_US_URL = "contactUsUrl"

    # SEO
    META_KEYWORDS = "metaKeywords"
    META_DESCRIPTION = "metaDescription"
    META_IMAGE = "metaImage"

    # Email
    EMAIL_PROVIDER = "email_provider"
    EMAIL_DRIVER = "email_driver"
    EMAIL_HOST = "email_host"
    EMAIL_PORT = "email_port"
    EMAIL_USERNAME = "email_username"
    EMAIL_PASSWORD = "email_password"
    EMAIL_ENCRYPTION = "email_encryption"
    EMAIL_FROM_ADDRESS = "email_from_address"
    EMAIL_FROM_NAME = "email_from_name"

    # Slack
    SLACK_ENABLED = "slack_enabled"
    SLACK_WEBHOOK_URL = "slack_webhook_url"

    # Telegram
    TELEGRAM_ENABLED = "telegram_enabled"
    TELEGRAM_BOT_TOKEN = "telegram_bot_token"
    TELEGRAM_CHAT_ID = "telegram_chat_id"

    # Zoom
    ZOOM_ACCOUNT_ID = "zoom_account_id"
    ZOOM_CLIENT_ID = "zoom_client_id"
    ZOOM_CLIENT_SECRET = "zoom_client_secret"
    IS_ZOOM_MEETING_TEST = "is_zoom_meeting_test"

    # Google Meet
    GOOGLE_MEET_JSON_FILE = "google_meet_json_file"
    GOOGLE_MEET_TOKEN = "google_meet_token"
    GOOGLE_MEET_REFRESH_TOKEN = "google_meet_refresh_token"
    IS_GOOGLE_MEETING_TEST = "is_google_meeting_test"

    # Google Calendar
    GOOGLE_CALENDAR_ENABLED = "googleCalendarEnabled"
    GOOGLE_CALENDAR_ID = "googleCalendarId"
    GOOGLE_CALENDAR_JSON_PATH = "googleCalendarJsonPath"
    IS_GOOGLECALENDAR_SYNC = "is_googlecalendar_sync"

    # Invoice
    INVOICE_TEMPLATE = "invoice_template"
    INVOICE_QR_DISPLAY = "invoice_qr_display"
    INVOICE_COLOR = "invoice_color"
    INVOICE_FOOTER_TITLE = "invoice_footer_title"
    INVOICE_FOOTER_NOTES = "invoice_footer_notes"


@dataclass(frozen=True)
class SettingDefinition:
    """Declared type and default of a key. Provisioned keys are seeded for new scopes."""

    value_type: type = str
    default: Any = None
    provisioned: bool = False


K = SettingKey

SETTING_DEFINITIONS: Dict[SettingKey, SettingDefinition] = {
    K.DEFAULT_LANGUAGE: SettingDefinition(str, "en", True),
    K.DATE_FORMAT: SettingDefinition(str, "Y-m-d", True),
    K.TIME_FORMAT: SettingDefinition(str, "H:i", True),
    K.CALENDAR_START_DAY: SettingDefinition(str, "sunday", True),
    K.DEFAULT_TIMEZONE: SettingDefinition(str, "UTC", True),
    K.EMAIL_VERIFICATION: SettingDefinition(bool, False, True),
    K.LANDING_PAGE_ENABLED: SettingDefinition(bool, True, True),
    K.TERMS_CONDITIONS_URL: SettingDefinition(str),
    K.LOGO_DARK: SettingDefinition(str, "/images/logos/logo-dark.png", True),
    K.LOGO_LIGHT: SettingDefinition(str, "/images/logos/logo-light.png", True),
    K.FAVICON: SettingDefinition(str, "/images/logos/favicon.png", True),
    K.TITLE_TEXT: SettingDefinition(str, "Taskly", True),
    K.FOOTER_TEXT: SettingDefinition(str, "© 2024 Taskly. All rights reserved.", True),
    K.THEME_COLOR: SettingDefinition(str, "green", True),
    K.CUSTOM_COLOR: SettingDefinition(str, "#10B77F", True),
    K.SIDEBAR_VARIANT: SettingDefinition(str, "inset", True),
    K.SIDEBAR_STYLE: SettingDefinition(str, "plain", True),
    K.LAYOUT_DIRECTION: SettingDefinition(str, "left", True),
    K.THEME_MODE: SettingDefinition(str, "light", True),
    K.STORAGE_TYPE: SettingDefinition(str, "local", True),
    K.STORAGE_FILE_TYPES: SettingDefinition(str, "jpg,png,webp,gif,pdf,doc,docx,txt,csv", True),
    K.STORAGE_MAX_UPLOAD_SIZE: SettingDefinition(int, 2048, True),
    K.AWS_ACCESS_KEY_ID: SettingDefinition(str, "", True),
    K.AWS_SECRET_ACCESS_KEY: SettingDefinition(str, "", True),
    K.AWS_DEFAULT_REGION: SettingDefinition(str, "us-east-1", True),
    K.AWS_BUCKET: SettingDefinition(str, "", True),
    K.AWS_URL: SettingDefinition(str, "", True),
    K.AWS_ENDPOINT: SettingDefinition(str, "", True),
    K.WASABI_ACCESS_KEY: SettingDefinition(str, "", True),
    K.WASABI_SECRET_KEY: SettingDefinition(str, "", True),
    K.WASABI_REGION: SettingDefinition(str, "us-east-1", True),
    K.WASABI_BUCKET: SettingDefinition(str, "", True),
    K.WASABI_URL: SettingDefinition(str, "", True),
    K.WASABI_ROOT: SettingDefinition(str, "", True),
    K.DECIMAL_FORMAT: SettingDefinition(str, "2", True),
    K.DEFAULT_CURRENCY: SettingDefinition(str, "GEL", True),
    K.DECIMAL_SEPARATOR: SettingDefinition(str, ".", True),
    K.THOUSANDS_SEPARATOR: SettingDefinition(str, ",", True),
    K.FLOAT_NUMBER: SettingDefinition(bool, True, True),
    K.CURRENCY_SYMBOL_SPACE: SettingDefinition(bool, False, True),
    K.CURRENCY_SYMBOL_POSITION: SettingDefinition(str, "before", True),
    K.RECAPTCHA_ENABLED: SettingDefinition(bool, False),
    K.RECAPTCHA_VERSION: SettingDefinition(str, "v2"),
    K.RECAPTCHA_SITE_KEY: SettingDefinition(str, ""),
    K.RECAPTCHA_SECRET_KEY: SettingDefinition(str, ""),
    K.CHATGPT_KEY: SettingDefinition(str, ""),
    K.CHATGPT_MODEL: SettingDefinition(str, ""),
    K.ENABLE_LOGGING: SettingDefinition(bool, True),
    K.STRICTLY_NECESSARY_COOKIES: SettingDefinition(bool, True),
    K.COOKIE_TITLE: SettingDefinition(str, "Cookie Consent"),
    K.STRICTLY_COOKIE_TITLE: SettingDefinition(str, "Strictly Necessary Cookies"),
    K.COOKIE_DESCRIPTION: SettingDefinition(
        str, "We use cookies to enhance your browsing experience and provide personalized content."
    ),
    K.STRICTLY_COOKIE_DESCRIPTION: SettingDefinition(
        str, "These cookies are essential for the website to function properly."
    ),
    K.CONTACT_US_DESCRIPTION: SettingDefinition(
        str, "If you have any questions about our cookie policy, please contact us."
    ),
    K.CONTACT_US_URL: SettingDefinition(str, "https://example.com/contact"),
    K.META_KEYWORDS: SettingDefinition(str),
    K.META_DESCRIPTION: SettingDefinition(str),
    K.META_IMAGE: SettingDefinition(str),
    K.EMAIL_PROVIDER: SettingDefinition(str, "smtp"),
    K.EMAIL_DRIVER: SettingDefinition(str, "smtp"),
    K.EMAIL_HOST: SettingDefinition(str, "smtp.example.com"),
    K.EMAIL_PORT: SettingDefinition(str, "587"),
    K.EMAIL_USERNAME: SettingDefinition(str, "user@example.com"),
    K.EMAIL_PASSWORD: SettingDefinition(str, ""),
    K.EMAIL_ENCRYPTION: SettingDefinition(str, "tls"),
    K.EMAIL_FROM_ADDRESS: SettingDefinition(str, "noreply@example.com"),
    K.EMAIL_FROM_NAME: SettingDefinition(str, "WorkDo System"),
    K.SLACK_ENABLED: SettingDefinition(bool, False),
    K.SLACK_WEBHOOK_URL: SettingDefinition(str, ""),
    K.TELEGRAM_ENABLED: SettingDefinition(bool, False),
    K.TELEGRAM_BOT_TOKEN: SettingDefinition(str, ""),
    K.TELEGRAM_CHAT_ID: SettingDefinition(str, ""),
    K.ZOOM_ACCOUNT_ID: SettingDefinition(str, ""),
    K.ZOOM_CLIENT_ID: SettingDefinition(str, ""),
    K.ZOOM_CLIENT_SECRET: SettingDefinition(str, ""),
    K.IS_ZOOM_MEETING_TEST: SettingDefinition(bool, False),
    K.GOOGLE_MEET_JSON_FILE: SettingDefinition(str, ""),
    K.GOOGLE_MEET_TOKEN: SettingDefinition(str, ""),
    K.GOOGLE_MEET_REFRESH_TOKEN: SettingDefinition(str, ""),
    K.IS_GOOGLE_MEETING_TEST: SettingDefinition(bool, False),
    K.GOOGLE_CALENDAR_ENABLED: SettingDefinition(bool, False),
    K.GOOGLE_CALENDAR_ID: SettingDefinition(str, ""),
    K.GOOGLE_CALENDAR_JSON_PATH: SettingDefinition(str, ""),
    K.IS_GOOGLECALENDAR_SYNC: SettingDefinition(bool, False),
    K.INVOICE_TEMPLATE: SettingDefinition(str, "new_york"),
    K.INVOICE_QR_DISPLAY: SettingDefinition(bool, False),
    K.INVOICE_COLOR: SettingDefinition(str, "#FFFFFF"),
    K.INVOICE_FOOTER_TITLE: SettingDefinition(str, ""),
    K.INVOICE_FOOTER_NOTES: SettingDefinition(str, ""),
}

# Brand and system keys a new company workspace inherits from the superadmin.
INHERITED_FROM_SUPERADMIN = (
    K.DEFAULT_LANGUAGE, K.DATE_FORMAT, K.TIME_FORMAT, K.CALENDAR_START_DAY,
    K.DEFAULT_TIMEZONE, K.EMAIL_VERIFICATION, K.LANDING_PAGE_ENABLED,
    K.LOGO_DARK, K.LOGO_LIGHT, K.FAVICON, K.TITLE_TEXT, K.FOOTER_TEXT,
    K.THEME_COLOR, K.CUSTOM_COLOR, K.SIDEBAR_VARIANT, K.SIDEBAR_STYLE,
    K.LAYOUT_DIRECTION, K.THEME_MODE,
)

COOKIE_KEYS = (
    K.ENABLE_LOGGING, K.STRICTLY_NECESSARY_COOKIES, K.COOKIE_TITLE, K.STRICTLY_COOKIE_TITLE,
    K.COOKIE_DESCRIPTION, K.STRICTLY_COOKIE_DESCRIPTION, K.CONTACT_US_DESCRIPTION, K.CONTACT_US_URL,
)

CURRENCY_KEYS = (
    K.DECIMAL_FORMAT, K.DEFAULT_CURRENCY, K.DECIMAL_SEPARATOR, K.THOUSANDS_SEPARATOR,
    K.FLOAT_NUMBER, K.CURRENCY_SYMBOL_SPACE, K.CURRENCY_SYMBOL_POSITION,
)

# Keys stored company-wide in self-hosted deployments; the settings page
# overlays them from the owner's company-wide row.
COMPANY_WIDE_KEYS = (
    *CURRENCY_KEYS,
    K.RECAPTCHA_ENABLED, K.RECAPTCHA_VERSION, K.RECAPTCHA_SITE_KEY, K.RECAPTCHA_SECRET_KEY,
    *COOKIE_KEYS,
    K.META_KEYWORDS, K.META_DESCRIPTION, K.META_IMAGE,
)

_TRUE_STRINGS = {"1", "true", "on", "yes"}
_FALSE_STRINGS = {"0", "false", "off", "no", ""}

KeyLike = Union[SettingKey, str]


# PUBLIC_INTERFACE
def coerce_key(key: KeyLike) -> SettingKey:
    """Return the SettingKey for key, raising UnknownSettingKeyError for typos."""
    if isinstance(key, SettingKey):
        return key
    try:
        return SettingKey(key)
    except ValueError:
        raise UnknownSettingKeyError(f"Unknown setting key '{key}'") from None


# PUBLIC_INTERFACE
def get_definition(key: KeyLike) -> SettingDefinition:
    return SETTING_DEFINITIONS.get(coerce_key(key), SettingDefinition())


# PUBLIC_INTERFACE
def encode_value(key: KeyLike, value: Any) -> str:
    """
    Validate value against the declared type of key and return its stored form.

    bool keys store '1'/'0', int keys store the decimal string, None stores ''.
    Raises SettingValueError when the value cannot represent the declared type.
    """
    setting_key = coerce_key(key)
    value_type = get_definition(setting_key).value_type
    if value is None:
        return ""

    if value_type is bool:
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, int) and value in (0, 1):
            return str(value)
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in _TRUE_STRINGS:
                return "1"
            if normalized in _FALSE_STRINGS:
                return "0"
        raise SettingValueError(f"Setting '{setting_key.value}' expects a boolean, got {value!r}")

    if value_type is int:
        if isinstance(value, bool):
            raise SettingValueError(f"Setting '{setting_key.value}' expects an integer, got {value!r}")
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, str):
            try:
                return str(int(value.strip()))
            except ValueError:
                raise SettingValueError(
                    f"Setting '{setting_key.value}' expects an integer, got {value!r}"
                ) from None
        raise SettingValueError(f"Setting '{setting_key.value}' expects an integer, got {value!r}")

    if isinstance(value, bool):
        # a bool sent to a text key is almost always a form wiring mistake
        raise SettingValueError(f"Setting '{setting_key.value}' expects text, got {value!r}")
    if isinstance(value, (str, int, float)):
        return str(value)
    raise SettingValueError(f"Setting '{setting_key.value}' expects text, got {type(value).__name__}")


# PUBLIC_INTERFACE
def decode_value(key: KeyLike, raw: Optional[str]) -> Any:
    """Typed read of a stored string. The store itself never calls this."""
    if raw is None:
        return None
    value_type = get_definition(key).value_type
    if value_type is bool:
        return raw.strip().lower() in _TRUE_STRINGS
    if value_type is int:
        try:
            return int(raw)
        except ValueError:
            return get_definition(key).default
    return raw


# PUBLIC_INTERFACE
def encode_many(values: Dict[KeyLike, Any]) -> Dict[SettingKey, str]:
    """Encode a whole form submission, failing before anything is written."""
    return {coerce_key(k): encode_value(k, v) for k, v in values.items()}


# PUBLIC_INTERFACE
def default_settings(include_cookie_defaults: bool = False) -> Dict[SettingKey, Any]:
    """
    Provisioning defaults for system, brand, storage and currency settings.

    Cookie consent defaults are only provisioned for demo deployments.
    """
    defaults = {k: d.default for k, d in SETTING_DEFINITIONS.items() if d.provisioned}
    if include_cookie_defaults:
        defaults.update({k: SETTING_DEFINITIONS[k].default for k in COOKIE_KEYS})
    return defaults


def key_values(keys: Iterable[KeyLike]) -> list[str]:
    return [coerce_key(k).value for k in keys]
