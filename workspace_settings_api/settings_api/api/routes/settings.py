from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from settings_api.core.deps import (
    get_file_storage,
    get_integration_client,
    get_settings_store,
    get_tenant_context,
)
from settings_api.core.settings import get_app_settings
from settings_api.core.tenancy import ScopePolicy, TenantContext
from settings_api.db.models.tenancy import UserType
from settings_api.schemas.common import MessageResponse
from settings_api.schemas.settings import (
    EMAIL_PASSWORD_MASK,
    BrandSettingsUpdate,
    ChatGptSettingsUpdate,
    CookieSettingsUpdate,
    CurrencySettingsUpdate,
    EmailSettingsRead,
    EmailSettingsUpdate,
    GoogleAuthUrlRead,
    GoogleCallbackRequest,
    InvoiceSettingsUpdate,
    RecaptchaSettingsUpdate,
    SeoSettingsUpdate,
    SettingsPageRead,
    SlackSettingsUpdate,
    SlackTestRequest,
    StorageSettingsUpdate,
    SystemSettingsUpdate,
    TelegramSettingsUpdate,
    TelegramTestRequest,
    ZoomSettingsUpdate,
)
from settings_api.services.cache import clear_cache as clear_cache_dir
from settings_api.services.cache import get_cache_size
from settings_api.services.file_storage import FileStorage, StoredFileError
from settings_api.services.integrations import IntegrationClient, IntegrationError, is_safe_outbound_url
from settings_api.services.setting_keys import (
    COMPANY_WIDE_KEYS,
    SettingKey,
    SettingValueError,
    UnknownSettingKeyError,
)
from settings_api.services.settings_store import ScopedSettingsStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])

K = SettingKey
MAX_JSON_UPLOAD_BYTES = 2048 * 1024
INVOICE_KEYS = (
    K.INVOICE_TEMPLATE, K.INVOICE_QR_DISPLAY, K.INVOICE_COLOR, K.INVOICE_FOOTER_TITLE, K.INVOICE_FOOTER_NOTES,
)
SLACK_DEFAULTS = {K.SLACK_ENABLED: "0", K.SLACK_WEBHOOK_URL: ""}
TELEGRAM_DEFAULTS = {K.TELEGRAM_ENABLED: "0", K.TELEGRAM_BOT_TOKEN: "", K.TELEGRAM_CHAT_ID: ""}


async def _write(
    store: ScopedSettingsStore,
    ctx: TenantContext,
    values: Dict[Any, Any],
    group: str,
    policy: ScopePolicy = ScopePolicy.WORKSPACE,
) -> Dict[str, str]:
    """Persist one settings page in a single transaction; failures become a 400."""
    scope = ctx.scope(policy)
    try:
        return await store.update_settings(
            values,
            user_id=scope.user_id,
            workspace_id=scope.effective_workspace_id,
        )
    except (SQLAlchemyError, SettingValueError, UnknownSettingKeyError) as exc:
        logger.exception("Failed to update %s settings", group)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to update {group} settings: {exc}",
        )


async def _write_upload(
    store: ScopedSettingsStore,
    ctx: TenantContext,
    storage: FileStorage,
    values: Dict[Any, Any],
    group: str,
    new_path: str,
    old_path: str,
) -> Dict[str, str]:
    """Write settings pointing at new_path; old_path is removed only once the write committed."""
    try:
        saved = await _write(store, ctx, values, group)
    except HTTPException:
        storage.delete(new_path)
        raise
    if old_path and old_path != new_path:
        storage.delete(old_path)
    return saved


async def _set_flag(store: ScopedSettingsStore, ctx: TenantContext, key: SettingKey, ok: bool) -> None:
    """Record an integration check result in its own transaction."""
    scope = ctx.scope()
    await store.update_setting(key, ok, user_id=scope.user_id, workspace_id=scope.effective_workspace_id)


async def _get(store: ScopedSettingsStore, ctx: TenantContext, key: SettingKey, default: str = "") -> str:
    scope = ctx.scope()
    value = await store.get_setting(key, default, user_id=scope.user_id, workspace_id=scope.effective_workspace_id)
    return value if value is not None else default


def _require_workspace(ctx: TenantContext) -> None:
    if ctx.workspace_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No workspace found. Please select a workspace.",
        )


async def _read_json_upload(upload: UploadFile, field: str) -> bytes:
    content = await upload.read()
    if len(content) > MAX_JSON_UPLOAD_BYTES:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"{field} may not be greater than 2048 kilobytes.")
    try:
        parsed = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"{field} must be a file of type: json.")
    if not isinstance(parsed, dict):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"{field} must contain a JSON object.")
    return content


def _google_redirect_uri() -> str:
    return get_app_settings().APP_URL.rstrip("/") + "/settings/google-meet/callback"


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=SettingsPageRead,
    summary="Load settings page",
    description="Merged settings of the current scope plus integration status flags and cache size.",
)
async def get_settings_page(
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> SettingsPageRead:
    app_settings = get_app_settings()
    scope = ctx.scope()
    merged = await store.load_settings(scope.user_id, scope.workspace_id, ctx.user_type, ctx.lang)

    for key in (K.GOOGLE_MEET_JSON_FILE, K.GOOGLE_MEET_TOKEN, K.GOOGLE_MEET_REFRESH_TOKEN):
        merged[key.value] = await _get(store, ctx, key, "")
    for flag in (K.IS_GOOGLE_MEETING_TEST, K.IS_ZOOM_MEETING_TEST, K.IS_GOOGLECALENDAR_SYNC):
        merged[flag.value] = await _get(store, ctx, flag, "0")

    # Company-wide groups (currency, recaptcha, cookie, seo) live on the owner's
    # row in self-hosted mode and take precedence over provisioned workspace rows
    if ctx.user_type == UserType.COMPANY and not ctx.is_saas:
        company_scope = ctx.scope(ScopePolicy.COMPANY_WIDE)
        merged.update(
            await store.get_many(
                COMPANY_WIDE_KEYS, user_id=company_scope.user_id, workspace_id=company_scope.effective_workspace_id
            )
        )

    if merged.get(K.EMAIL_PASSWORD.value):
        merged[K.EMAIL_PASSWORD.value] = EMAIL_PASSWORD_MASK

    slack = {k.value: await _get(store, ctx, k, d) for k, d in SLACK_DEFAULTS.items()}
    telegram = {k.value: await _get(store, ctx, k, d) for k, d in TELEGRAM_DEFAULTS.items()}
    invoice = await store.get_many(INVOICE_KEYS, user_id=scope.user_id, workspace_id=scope.workspace_id)

    return SettingsPageRead(
        settings=merged,
        slack_settings=slack,
        telegram_settings=telegram,
        invoice_settings=invoice,
        current_workspace_id=scope.workspace_id,
        cacheSize=get_cache_size(),
        isSaasMode=ctx.is_saas,
        isDemoMode=app_settings.IS_DEMO,
        appUrl=app_settings.APP_URL,
    )


# PUBLIC_INTERFACE
@router.post("/system", response_model=MessageResponse, summary="Update system settings")
async def update_system_settings(
    payload: SystemSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    values = payload.model_dump(exclude_none=True)
    values[K.TERMS_CONDITIONS_URL.value] = payload.termsConditionsUrl or ""
    saved = await _write(store, ctx, values, "system")
    return MessageResponse(message="System settings updated successfully.", details={"settings": saved})


# PUBLIC_INTERFACE
@router.post("/brand", response_model=MessageResponse, summary="Update brand settings")
async def update_brand_settings(
    payload: BrandSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    saved = await _write(store, ctx, payload.settings.model_dump(exclude_none=True), "brand")
    return MessageResponse(message="Brand settings updated successfully.", details={"settings": saved})


# PUBLIC_INTERFACE
@router.post(
    "/storage",
    response_model=MessageResponse,
    summary="Update storage settings",
    description="Local, AWS S3 or Wasabi storage. Credentials are required for the selected provider.",
)
async def update_storage_settings(
    payload: StorageSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    missing = payload.missing_provider_fields()
    if missing:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Missing required fields for {payload.storage_type}: {', '.join(missing)}",
        )
    values: Dict[Any, Any] = {
        K.STORAGE_TYPE: payload.storage_type,
        K.STORAGE_FILE_TYPES: payload.allowedFileTypes,
        K.STORAGE_MAX_UPLOAD_SIZE: payload.maxUploadSize,
    }
    values.update(payload.provider_fields())
    saved = await _write(store, ctx, values, "storage")
    return MessageResponse(message="Storage settings updated successfully.", details={"settings": saved})


# PUBLIC_INTERFACE
@router.post(
    "/currency",
    response_model=MessageResponse,
    summary="Update currency settings",
    description="Company-wide in self-hosted mode. Missing fields take their defaults.",
)
async def update_currency_settings(
    payload: CurrencySettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    values = payload.model_dump()
    if not values.get(K.THOUSANDS_SEPARATOR.value):
        values[K.THOUSANDS_SEPARATOR.value] = ","
    saved = await _write(store, ctx, values, "currency", ScopePolicy.COMPANY_WIDE)
    return MessageResponse(message="Currency settings updated successfully.", details={"settings": saved})


# PUBLIC_INTERFACE
@router.post("/recaptcha", response_model=MessageResponse, summary="Update ReCaptcha settings")
async def update_recaptcha_settings(
    payload: RecaptchaSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    saved = await _write(store, ctx, payload.model_dump(), "ReCaptcha", ScopePolicy.COMPANY_WIDE)
    return MessageResponse(message="ReCaptcha settings updated successfully.", details={"settings": saved})


# PUBLIC_INTERFACE
@router.post("/chatgpt", response_model=MessageResponse, summary="Update Chat GPT settings")
async def update_chatgpt_settings(
    payload: ChatGptSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    await _write(store, ctx, payload.model_dump(), "Chat GPT")
    return MessageResponse(message="Chat GPT settings updated successfully.")


# PUBLIC_INTERFACE
@router.post("/cookie", response_model=MessageResponse, summary="Update cookie consent settings")
async def update_cookie_settings(
    payload: CookieSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    saved = await _write(store, ctx, payload.model_dump(), "cookie", ScopePolicy.COMPANY_WIDE)
    return MessageResponse(message="Cookie settings updated successfully.", details={"settings": saved})


# PUBLIC_INTERFACE
@router.post("/seo", response_model=MessageResponse, summary="Update SEO settings")
async def update_seo_settings(
    payload: SeoSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    saved = await _write(store, ctx, payload.model_dump(), "SEO", ScopePolicy.COMPANY_WIDE)
    return MessageResponse(message="SEO settings updated successfully.", details={"settings": saved})


# PUBLIC_INTERFACE
@router.get("/email", response_model=EmailSettingsRead, summary="Get email settings")
async def get_email_settings(
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> EmailSettingsRead:
    """Email settings of the current scope. A stored password is never returned, only a mask."""
    password = await _get(store, ctx, K.EMAIL_PASSWORD, "")
    return EmailSettingsRead(
        provider=await _get(store, ctx, K.EMAIL_PROVIDER, "smtp"),
        driver=await _get(store, ctx, K.EMAIL_DRIVER, "smtp"),
        host=await _get(store, ctx, K.EMAIL_HOST, "smtp.example.com"),
        port=await _get(store, ctx, K.EMAIL_PORT, "587"),
        username=await _get(store, ctx, K.EMAIL_USERNAME, "user@example.com"),
        password=EMAIL_PASSWORD_MASK if password else "",
        encryption=await _get(store, ctx, K.EMAIL_ENCRYPTION, "tls"),
        fromAddress=await _get(store, ctx, K.EMAIL_FROM_ADDRESS, "noreply@example.com"),
        fromName=await _get(store, ctx, K.EMAIL_FROM_NAME, "WorkDo System"),
    )


# PUBLIC_INTERFACE
@router.post("/email", response_model=MessageResponse, summary="Update email settings")
async def update_email_settings(
    payload: EmailSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    values: Dict[Any, Any] = {
        K.EMAIL_PROVIDER: payload.provider,
        K.EMAIL_DRIVER: payload.driver,
        K.EMAIL_HOST: payload.host,
        K.EMAIL_PORT: payload.port,
        K.EMAIL_USERNAME: payload.username,
        K.EMAIL_ENCRYPTION: payload.encryption,
        K.EMAIL_FROM_ADDRESS: str(payload.fromAddress),
        K.EMAIL_FROM_NAME: payload.fromName,
    }
    if payload.password_changed():
        values[K.EMAIL_PASSWORD] = payload.password
    await _write(store, ctx, values, "email")
    return MessageResponse(message="Email settings updated successfully.")


# PUBLIC_INTERFACE
@router.get("/slack", response_model=Dict[str, str], summary="Get Slack settings")
async def get_slack_settings(
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> Dict[str, str]:
    return {k.value: await _get(store, ctx, k, d) for k, d in SLACK_DEFAULTS.items()}


# PUBLIC_INTERFACE
@router.post("/slack", response_model=MessageResponse, summary="Update Slack settings")
async def update_slack_settings(
    payload: SlackSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    url = payload.slack_webhook_url or ""
    if url and not await run_in_threadpool(is_safe_outbound_url, url):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or unsafe webhook URL.")
    await _write(store, ctx, {K.SLACK_ENABLED: payload.slack_enabled, K.SLACK_WEBHOOK_URL: url}, "Slack")
    return MessageResponse(message="Slack settings updated successfully.")


# PUBLIC_INTERFACE
@router.post("/slack/test", response_model=MessageResponse, summary="Send a Slack test message")
async def test_slack_webhook(
    payload: SlackTestRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
    client: IntegrationClient = Depends(get_integration_client),
) -> MessageResponse:
    url = payload.webhook_url or await _get(store, ctx, K.SLACK_WEBHOOK_URL, "")
    if not url:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Slack webhook URL is not configured.")
    if not await run_in_threadpool(is_safe_outbound_url, url):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or unsafe webhook URL.")
    try:
        await client.send_slack_test(url)
    except IntegrationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Failed to send Slack test message: {exc}")
    return MessageResponse(message="Test message sent successfully to Slack.")


# PUBLIC_INTERFACE
@router.get("/telegram", response_model=Dict[str, str], summary="Get Telegram settings")
async def get_telegram_settings(
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> Dict[str, str]:
    return {k.value: await _get(store, ctx, k, d) for k, d in TELEGRAM_DEFAULTS.items()}


# PUBLIC_INTERFACE
@router.post("/telegram", response_model=MessageResponse, summary="Update Telegram settings")
async def update_telegram_settings(
    payload: TelegramSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    values = {
        K.TELEGRAM_ENABLED: payload.telegram_enabled,
        K.TELEGRAM_BOT_TOKEN: payload.telegram_bot_token or "",
        K.TELEGRAM_CHAT_ID: payload.telegram_chat_id or "",
    }
    await _write(store, ctx, values, "Telegram")
    return MessageResponse(message="Telegram settings updated successfully.")


# PUBLIC_INTERFACE
@router.post("/telegram/test", response_model=MessageResponse, summary="Send a Telegram test message")
async def test_telegram_bot(
    payload: TelegramTestRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
    client: IntegrationClient = Depends(get_integration_client),
) -> MessageResponse:
    bot_token = payload.bot_token or await _get(store, ctx, K.TELEGRAM_BOT_TOKEN, "")
    chat_id = payload.chat_id or await _get(store, ctx, K.TELEGRAM_CHAT_ID, "")
    try:
        await client.send_telegram_test(bot_token, chat_id)
    except IntegrationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Failed to send Telegram test message: {exc}")
    return MessageResponse(message="Test message sent successfully to Telegram.")


# PUBLIC_INTERFACE
@router.post(
    "/zoom",
    response_model=MessageResponse,
    summary="Update Zoom settings",
    description="Saving credentials resets the connection test status.",
)
async def update_zoom_settings(
    payload: ZoomSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    _require_workspace(ctx)
    values: Dict[Any, Any] = payload.model_dump()
    values[K.IS_ZOOM_MEETING_TEST] = False
    await _write(store, ctx, values, "Zoom")
    return MessageResponse(message="Zoom settings updated successfully!")


# PUBLIC_INTERFACE
@router.post("/zoom/test", response_model=MessageResponse, summary="Test Zoom credentials")
async def test_zoom_connection(
    payload: ZoomSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
    client: IntegrationClient = Depends(get_integration_client),
) -> MessageResponse:
    """Check the submitted credentials against Zoom and record the result in is_zoom_meeting_test."""
    _require_workspace(ctx)
    try:
        await client.verify_zoom_credentials(
            payload.zoom_account_id, payload.zoom_client_id, payload.zoom_client_secret
        )
    except IntegrationError as exc:
        await _set_flag(store, ctx, K.IS_ZOOM_MEETING_TEST, False)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Zoom connection test failed: {exc}")
    await _set_flag(store, ctx, K.IS_ZOOM_MEETING_TEST, True)
    return MessageResponse(message="Zoom connection test successful!")


# PUBLIC_INTERFACE
@router.post(
    "/google-meet",
    response_model=MessageResponse,
    summary="Upload Google Meet credentials",
    description="Stores the OAuth client JSON and clears tokens and the connection status.",
)
async def update_google_meet_settings(
    google_meet_json_file: UploadFile = File(...),
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
    storage: FileStorage = Depends(get_file_storage),
) -> MessageResponse:
    _require_workspace(ctx)
    content = await _read_json_upload(google_meet_json_file, "google_meet_json_file")

    old_path = await _get(store, ctx, K.GOOGLE_MEET_JSON_FILE, "")
    path = storage.save("google_meet", "google_meet_credentials.json", content)
    values = {
        K.GOOGLE_MEET_JSON_FILE: path,
        K.GOOGLE_MEET_TOKEN: "",
        K.GOOGLE_MEET_REFRESH_TOKEN: "",
        K.IS_GOOGLE_MEETING_TEST: False,
    }
    await _write_upload(store, ctx, storage, values, "Google Meet", path, old_path)
    return MessageResponse(message="Google Meet settings updated successfully!")


# PUBLIC_INTERFACE
@router.get("/google-meet/auth-url", response_model=GoogleAuthUrlRead, summary="Start Google Meet authorization")
async def google_meet_auth_url(
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
    storage: FileStorage = Depends(get_file_storage),
    client: IntegrationClient = Depends(get_integration_client),
) -> GoogleAuthUrlRead:
    _require_workspace(ctx)
    json_file = await _get(store, ctx, K.GOOGLE_MEET_JSON_FILE, "")
    if not storage.exists(json_file):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please upload Google Meet credentials file first.",
        )
    await _set_flag(store, ctx, K.IS_GOOGLE_MEETING_TEST, False)
    try:
        url = client.google_auth_url(storage.read_json(json_file), _google_redirect_uri())
    except (IntegrationError, StoredFileError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return GoogleAuthUrlRead(url=url)


# PUBLIC_INTERFACE
@router.post("/google-meet/callback", response_model=MessageResponse, summary="Complete Google Meet authorization")
async def google_meet_callback(
    payload: GoogleCallbackRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
    storage: FileStorage = Depends(get_file_storage),
    client: IntegrationClient = Depends(get_integration_client),
) -> MessageResponse:
    """Exchange the authorization code and store the token; marks the connection as tested."""
    _require_workspace(ctx)
    json_file = await _get(store, ctx, K.GOOGLE_MEET_JSON_FILE, "")
    try:
        token = await client.exchange_google_code(storage.read_json(json_file), payload.code, _google_redirect_uri())
    except (IntegrationError, StoredFileError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    values: Dict[Any, Any] = {K.GOOGLE_MEET_TOKEN: json.dumps(token)}
    if token.get("refresh_token"):
        values[K.GOOGLE_MEET_REFRESH_TOKEN] = token["refresh_token"]
    values[K.IS_GOOGLE_MEETING_TEST] = True
    await _write(store, ctx, values, "Google Meet")
    return MessageResponse(message="Authentication Successful")


# PUBLIC_INTERFACE
@router.post(
    "/google-calendar",
    response_model=MessageResponse,
    summary="Update Google Calendar settings",
    description="A changed calendar id or a new service account file resets the sync status.",
)
async def update_google_calendar_settings(
    googleCalendarEnabled: bool = Form(False),
    googleCalendarId: Optional[str] = Form(None, max_length=255),
    googleCalendarJson: Optional[UploadFile] = File(None),
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
    storage: FileStorage = Depends(get_file_storage),
) -> MessageResponse:
    calendar_id = googleCalendarId or ""
    values: Dict[Any, Any] = {
        K.GOOGLE_CALENDAR_ENABLED: googleCalendarEnabled,
        K.GOOGLE_CALENDAR_ID: calendar_id,
    }
    credentials_changed = calendar_id != await _get(store, ctx, K.GOOGLE_CALENDAR_ID, "")

    new_path = old_path = ""
    if googleCalendarJson is not None and googleCalendarJson.filename:
        content = await _read_json_upload(googleCalendarJson, "googleCalendarJson")
        credentials_changed = True
        old_path = await _get(store, ctx, K.GOOGLE_CALENDAR_JSON_PATH, "")
        new_path = storage.save("google-calendar", f"google-calendar-{ctx.user_id}.json", content)
        values[K.GOOGLE_CALENDAR_JSON_PATH] = new_path

    if credentials_changed:
        values[K.IS_GOOGLECALENDAR_SYNC] = False

    if new_path:
        await _write_upload(store, ctx, storage, values, "Google Calendar", new_path, old_path)
    else:
        await _write(store, ctx, values, "Google Calendar")
    message = (
        "Google Calendar integration enabled successfully"
        if googleCalendarEnabled
        else "Google Calendar integration disabled."
    )
    return MessageResponse(message=message)


# PUBLIC_INTERFACE
@router.post("/google-calendar/sync", response_model=MessageResponse, summary="Test Google Calendar access")
async def sync_google_calendar(
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
    storage: FileStorage = Depends(get_file_storage),
    client: IntegrationClient = Depends(get_integration_client),
) -> MessageResponse:
    """Verify the service account can read the configured calendar; records is_googlecalendar_sync."""
    if await _get(store, ctx, K.GOOGLE_CALENDAR_ENABLED, "0") != "1":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Google Calendar integration is not enabled.")
    json_path = await _get(store, ctx, K.GOOGLE_CALENDAR_JSON_PATH, "")
    if not json_path.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Google Calendar service account JSON is not uploaded.",
        )
    calendar_id = await _get(store, ctx, K.GOOGLE_CALENDAR_ID, "")

    try:
        await client.verify_google_calendar(storage.read_json(json_path), calendar_id)
    except (IntegrationError, StoredFileError) as exc:
        await _set_flag(store, ctx, K.IS_GOOGLECALENDAR_SYNC, False)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Google Calendar sync failed: {exc}")
    await _set_flag(store, ctx, K.IS_GOOGLECALENDAR_SYNC, True)
    return MessageResponse(message="Google Calendar synced successfully.")


# PUBLIC_INTERFACE
@router.post("/invoice", response_model=MessageResponse, summary="Update invoice settings")
async def update_invoice_settings(
    payload: InvoiceSettingsUpdate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: ScopedSettingsStore = Depends(get_settings_store),
) -> MessageResponse:
    values = payload.model_dump()
    values[K.INVOICE_FOOTER_TITLE.value] = payload.invoice_footer_title or ""
    values[K.INVOICE_FOOTER_NOTES.value] = payload.invoice_footer_notes or ""
    await _write(store, ctx, values, "invoice")
    return MessageResponse(message="Invoice settings updated successfully.")


# PUBLIC_INTERFACE
@router.post("/cache/clear", response_model=MessageResponse, summary="Clear cache")
async def clear_cache(ctx: TenantContext = Depends(get_tenant_context)) -> MessageResponse:
    try:
        removed = await run_in_threadpool(clear_cache_dir)
    except OSError as exc:
        logger.exception("Failed to clear cache")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Failed to clear cache: {exc}")
    return MessageResponse(message="Cache cleared successfully.", details={"removed": removed})
