from __future__ import annotations

from typing import Annotated, Dict, Literal, Optional
from urllib.parse import urlsplit
from uuid import UUID

from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator

EMAIL_PASSWORD_MASK = "••••••••••••"

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
INVOICE_TEMPLATES = Literal[
    "new_york", "toronto", "rio", "london", "istanbul", "mumbai", "hong_kong", "tokyo", "sydney", "paris"
]


def _check_http_url(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return value
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError("must be a valid http(s) URL")
    return value


HttpUrlText = Annotated[str, AfterValidator(_check_http_url)]


# ---- Read models ----


class SettingsPageRead(BaseModel):
    """Everything the settings page needs for the current scope."""
    settings: Dict[str, str] = Field(default_factory=dict, description="Merged key/value settings")
    slack_settings: Dict[str, str] = Field(default_factory=dict, description="Slack integration settings")
    telegram_settings: Dict[str, str] = Field(default_factory=dict, description="Telegram integration settings")
    invoice_settings: Dict[str, str] = Field(default_factory=dict, description="Invoice settings of the scope")
    current_workspace_id: Optional[UUID] = Field(None, description="Workspace the settings belong to")
    cacheSize: str = Field(..., description="Cache size in MB")
    isSaasMode: bool = Field(..., description="Deployment mode")
    isDemoMode: bool = Field(False, description="Demo deployment flag")
    appUrl: str = Field("", description="Public application URL")


class EmailSettingsRead(BaseModel):
    """Email settings with the password masked."""
    provider: str
    driver: str
    host: str
    port: str
    username: str
    password: str = Field("", description="Masked when a password is stored")
    encryption: str
    fromAddress: str
    fromName: str


class GoogleAuthUrlRead(BaseModel):
    url: str = Field(..., description="Google consent screen URL")


# ---- Update models ----


class SystemSettingsUpdate(BaseModel):
    defaultLanguage: str = Field(..., min_length=1)
    dateFormat: str = Field(..., min_length=1)
    timeFormat: str = Field(..., min_length=1)
    calendarStartDay: str = Field(..., min_length=1)
    defaultTimezone: str = Field(..., min_length=1)
    emailVerification: Optional[bool] = None
    landingPageEnabled: Optional[bool] = None
    termsConditionsUrl: Optional[HttpUrlText] = None


class BrandSettings(BaseModel):
    logoDark: Optional[str] = None
    logoLight: Optional[str] = None
    favicon: Optional[str] = None
    titleText: Optional[str] = Field(None, max_length=255)
    footerText: Optional[str] = Field(None, max_length=500)
    themeColor: Literal["blue", "green", "purple", "orange", "red", "custom"] = "green"
    customColor: str = Field("#10B77F", pattern=HEX_COLOR_PATTERN)
    sidebarVariant: Literal["inset", "floating", "minimal"] = "inset"
    sidebarStyle: Literal["plain", "colored", "gradient"] = "plain"
    layoutDirection: Literal["left", "right"] = "left"
    themeMode: Literal["light", "dark", "system"] = "light"


class BrandSettingsUpdate(BaseModel):
    """Brand page payload; wrapped in 'settings' like the form that posts it."""
    settings: BrandSettings


class StorageSettingsUpdate(BaseModel):
    """Storage provider settings; provider credentials are required for the chosen type."""
    storage_type: Literal["local", "aws_s3", "wasabi"]
    allowedFileTypes: str = Field(..., min_length=1)
    maxUploadSize: int = Field(..., ge=1)
    awsAccessKeyId: Optional[str] = None
    awsSecretAccessKey: Optional[str] = None
    awsDefaultRegion: Optional[str] = None
    awsBucket: Optional[str] = None
    awsUrl: Optional[str] = None
    awsEndpoint: Optional[str] = None
    wasabiAccessKey: Optional[str] = None
    wasabiSecretKey: Optional[str] = None
    wasabiRegion: Optional[str] = None
    wasabiBucket: Optional[str] = None
    wasabiUrl: Optional[str] = None
    wasabiRoot: Optional[str] = None

    def provider_fields(self) -> Dict[str, Optional[str]]:
        if self.storage_type == "aws_s3":
            return {
                "aws_access_key_id": self.awsAccessKeyId,
                "aws_secret_access_key": self.awsSecretAccessKey,
                "aws_default_region": self.awsDefaultRegion,
                "aws_bucket": self.awsBucket,
                "aws_url": self.awsUrl,
                "aws_endpoint": self.awsEndpoint,
            }
        if self.storage_type == "wasabi":
            return {
                "wasabi_access_key": self.wasabiAccessKey,
                "wasabi_secret_key": self.wasabiSecretKey,
                "wasabi_region": self.wasabiRegion,
                "wasabi_bucket": self.wasabiBucket,
                "wasabi_url": self.wasabiUrl,
                "wasabi_root": self.wasabiRoot,
            }
        return {}

    def missing_provider_fields(self):
        return [k for k, v in self.provider_fields().items() if not v]


class CurrencySettingsUpdate(BaseModel):
    """Currency formatting; every field has the default the page would submit."""
    decimalFormat: Literal["0", "1", "2", "3", "4"] = "2"
    defaultCurrency: str = Field("GEL", pattern=r"^[A-Z]{3}$")
    decimalSeparator: Literal[".", ","] = "."
    thousandsSeparator: Optional[str] = ","
    floatNumber: bool = True
    currencySymbolSpace: bool = False
    currencySymbolPosition: Literal["before", "after"] = "before"

    @field_validator("decimalFormat", mode="before")
    @classmethod
    def _decimal_format_as_text(cls, v):
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v


class RecaptchaSettingsUpdate(BaseModel):
    recaptchaEnabled: bool = False
    recaptchaVersion: Literal["v2", "v3"]
    recaptchaSiteKey: str = Field(..., min_length=1)
    recaptchaSecretKey: str = Field(..., min_length=1)


class ChatGptSettingsUpdate(BaseModel):
    chatgptKey: str = Field(..., min_length=1)
    chatgptModel: str = Field(..., min_length=1)


class CookieSettingsUpdate(BaseModel):
    enableLogging: bool
    strictlyNecessaryCookies: bool
    cookieTitle: str = Field(..., min_length=1, max_length=255)
    strictlyCookieTitle: str = Field(..., min_length=1, max_length=255)
    cookieDescription: str = Field(..., min_length=1)
    strictlyCookieDescription: str = Field(..., min_length=1)
    contactUsDescription: str = Field(..., min_length=1)
    contactUsUrl: HttpUrlText = Field(..., min_length=1)


class SeoSettingsUpdate(BaseModel):
    metaKeywords: str = Field(..., min_length=1, max_length=255)
    metaDescription: str = Field(..., min_length=1, max_length=160)
    metaImage: str = Field(..., min_length=1)


class EmailSettingsUpdate(BaseModel):
    """SMTP settings. An empty or masked password keeps the stored one."""
    provider: str = Field(..., min_length=1)
    driver: str = Field(..., min_length=1)
    host: str = Field(..., min_length=1)
    port: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password: Optional[str] = None
    encryption: str = Field(..., min_length=1)
    fromAddress: EmailStr
    fromName: str = Field(..., min_length=1)

    @field_validator("port", mode="before")
    @classmethod
    def _port_as_text(cls, v):
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v

    def password_changed(self) -> bool:
        return bool(self.password) and self.password != EMAIL_PASSWORD_MASK


class SlackSettingsUpdate(BaseModel):
    slack_enabled: bool = False
    slack_webhook_url: Optional[HttpUrlText] = None


class SlackTestRequest(BaseModel):
    """Webhook to test; the stored one is used when omitted."""
    webhook_url: Optional[str] = None


class TelegramSettingsUpdate(BaseModel):
    telegram_enabled: bool = False
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None


class TelegramTestRequest(BaseModel):
    bot_token: Optional[str] = None
    chat_id: Optional[str] = None


class ZoomSettingsUpdate(BaseModel):
    """Server-to-server OAuth app credentials; also the body of the connection test."""
    zoom_account_id: str = Field(..., min_length=1)
    zoom_client_id: str = Field(..., min_length=1)
    zoom_client_secret: str = Field(..., min_length=1)


class GoogleCallbackRequest(BaseModel):
    code: str = Field(..., min_length=1, description="Authorization code returned by Google")


class InvoiceSettingsUpdate(BaseModel):
    invoice_template: INVOICE_TEMPLATES
    invoice_qr_display: bool = False
    invoice_color: str = Field(..., pattern=HEX_COLOR_PATTERN)
    invoice_footer_title: Optional[str] = Field(None, max_length=255)
    invoice_footer_notes: Optional[str] = None
