"""
Settings API endpoints.

Covers:
- Currency settings persisted under the resolved scope and reflected on the settings page.
- Self-hosted mode collapsing company-wide groups onto the company owner.
- Email password masking.
- Integration pages (Slack, Telegram, Zoom, Google Meet, Google Calendar) and their status flags.
- Invoice, ReCaptcha, cookie and SEO pages.
- Access control and the error envelope for validation failures.
"""

import json

import pytest
from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from settings_api.core.deps import get_settings_store
from settings_api.db.session import get_async_session
from settings_api.repositories.settings import SettingRepository
from settings_api.schemas.settings import EMAIL_PASSWORD_MASK
from settings_api.services.integrations import (
    GOOGLE_CALENDAR_API_BASE,
    GOOGLE_TOKEN_URI,
    TELEGRAM_API_BASE,
    ZOOM_API_BASE,
    ZOOM_TOKEN_URL,
)
from settings_api.services.setting_keys import SettingKey
from settings_api.services.settings_store import ScopedSettingsStore

CURRENCY_FORM = {
    "decimalFormat": "2",
    "defaultCurrency": "USD",
    "decimalSeparator": ".",
    "thousandsSeparator": ",",
    "floatNumber": True,
    "currencySymbolSpace": False,
    "currencySymbolPosition": "before",
}
CURRENCY_STORED = {
    "decimalFormat": "2",
    "defaultCurrency": "USD",
    "decimalSeparator": ".",
    "thousandsSeparator": ",",
    "floatNumber": "1",
    "currencySymbolSpace": "0",
    "currencySymbolPosition": "before",
}
EMAIL_FORM = {
    "provider": "smtp",
    "driver": "smtp",
    "host": "smtp.acme.com",
    "port": 2525,
    "username": "mailer",
    "password": "s3cret",
    "encryption": "tls",
    "fromAddress": "noreply@acme.com",
    "fromName": "Acme",
}
ZOOM_FORM = {"zoom_account_id": "acc", "zoom_client_id": "cid", "zoom_client_secret": "secret"}
RECAPTCHA_FORM = {
    "recaptchaEnabled": True,
    "recaptchaVersion": "v3",
    "recaptchaSiteKey": "site-key",
    "recaptchaSecretKey": "secret-key",
}
COOKIE_FORM = {
    "enableLogging": False,
    "strictlyNecessaryCookies": True,
    "cookieTitle": "Cookies",
    "strictlyCookieTitle": "Required cookies",
    "cookieDescription": "We use cookies.",
    "strictlyCookieDescription": "These keep you signed in.",
    "contactUsDescription": "Questions?",
    "contactUsUrl": "https://acme.com/contact",
}
SEO_FORM = {"metaKeywords": "projects,tasks", "metaDescription": "Acme projects", "metaImage": "seo/cover.png"}


async def _stored(session_maker, user_id, workspace_id, keys=None):
    async with session_maker() as s:
        return await SettingRepository(s).get_values(user_id, workspace_id, keys)


async def _set(session_maker, user, key, value):
    async with session_maker() as s:
        await ScopedSettingsStore(s).update_setting(
            key, value, user_id=user.id, workspace_id=user.current_workspace_id
        )


class TestCurrencySettings:
    @pytest.mark.asyncio
    async def test_currency_form_round_trips_through_settings_page(
        self, client, session_maker, company, auth_headers
    ):
        headers = auth_headers(company)
        ws = company.current_workspace_id

        res = await client.post("/api/v1/settings/currency", json=CURRENCY_FORM, headers=headers)
        assert res.status_code == 200, res.text
        assert res.json()["details"]["settings"] == CURRENCY_STORED

        assert await _stored(session_maker, company.id, ws, list(CURRENCY_STORED)) == CURRENCY_STORED

        page = await client.get("/api/v1/settings", headers=headers)
        assert page.status_code == 200
        body = page.json()
        assert {k: body["settings"][k] for k in CURRENCY_STORED} == CURRENCY_STORED
        assert body["current_workspace_id"] == str(ws)
        assert body["isSaasMode"] is True
        assert body["cacheSize"] == "0.00"

    @pytest.mark.asyncio
    async def test_empty_thousands_separator_becomes_comma(self, client, session_maker, company, auth_headers):
        form = dict(CURRENCY_FORM, thousandsSeparator="")
        res = await client.post("/api/v1/settings/currency", json=form, headers=auth_headers(company))
        assert res.status_code == 200

        stored = await _stored(session_maker, company.id, company.current_workspace_id, ["thousandsSeparator"])
        assert stored == {"thousandsSeparator": ","}

    @pytest.mark.asyncio
    async def test_invalid_currency_code_is_rejected(self, client, session_maker, company, auth_headers):
        form = dict(CURRENCY_FORM, defaultCurrency="usd")
        res = await client.post("/api/v1/settings/currency", json=form, headers=auth_headers(company))

        assert res.status_code == 422
        body = res.json()
        assert body["error"]["type"] == "validation_error"
        assert body["error"]["details"][0]["loc"][-1] == "defaultCurrency"
        assert await _stored(session_maker, company.id, company.current_workspace_id) == {}


class TestSelfHostedMode:
    """Company-wide groups collapse onto the owner's row when IS_SAAS is off."""

    @pytest.mark.asyncio
    async def test_currency_written_by_any_admin_lands_on_owner(
        self, client, session_maker, monkeypatch, company, second_company, auth_headers
    ):
        monkeypatch.setenv("IS_SAAS", "false")

        res = await client.post("/api/v1/settings/currency", json=CURRENCY_FORM, headers=auth_headers(second_company))
        assert res.status_code == 200, res.text

        assert await _stored(session_maker, company.id, None, list(CURRENCY_STORED)) == CURRENCY_STORED
        assert await _stored(session_maker, second_company.id, None) == {}
        assert await _stored(session_maker, second_company.id, second_company.current_workspace_id) == {}

    @pytest.mark.asyncio
    async def test_owner_page_shows_company_wide_values(
        self, client, monkeypatch, company, second_company, auth_headers
    ):
        monkeypatch.setenv("IS_SAAS", "false")
        await client.post("/api/v1/settings/currency", json=CURRENCY_FORM, headers=auth_headers(second_company))

        page = await client.get("/api/v1/settings", headers=auth_headers(company))
        assert page.status_code == 200
        body = page.json()
        assert body["isSaasMode"] is False
        assert {k: body["settings"][k] for k in CURRENCY_STORED} == CURRENCY_STORED

    @pytest.mark.asyncio
    async def test_workspace_groups_stay_per_admin(
        self, client, session_maker, monkeypatch, company, second_company, auth_headers
    ):
        monkeypatch.setenv("IS_SAAS", "false")
        res = await client.post(
            "/api/v1/settings/chatgpt",
            json={"chatgptKey": "sk-test", "chatgptModel": "gpt-4o"},
            headers=auth_headers(second_company),
        )
        assert res.status_code == 200

        stored = await _stored(session_maker, second_company.id, second_company.current_workspace_id)
        assert stored == {"chatgptKey": "sk-test", "chatgptModel": "gpt-4o"}

    @pytest.mark.asyncio
    async def test_company_wide_currency_overrides_provisioned_workspaces(
        self, client, session_maker, monkeypatch, company, second_company, auth_headers
    ):
        monkeypatch.setenv("IS_SAAS", "false")
        async with session_maker() as s:
            store = ScopedSettingsStore(s, is_saas=False)
            await store.create_default_settings(company.id, company.current_workspace_id)
            await store.create_default_settings(second_company.id, second_company.current_workspace_id)

        res = await client.post("/api/v1/settings/currency", json=CURRENCY_FORM, headers=auth_headers(company))
        assert res.status_code == 200, res.text

        for admin in (company, second_company):
            page = (await client.get("/api/v1/settings", headers=auth_headers(admin))).json()
            assert {k: page["settings"][k] for k in CURRENCY_STORED} == CURRENCY_STORED

        # the provisioned workspace row itself is left alone
        provisioned = await _stored(session_maker, company.id, company.current_workspace_id, ["defaultCurrency"])
        assert provisioned == {"defaultCurrency": "GEL"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path, form",
        [("recaptcha", RECAPTCHA_FORM), ("cookie", COOKIE_FORM), ("seo", SEO_FORM)],
    )
    async def test_site_groups_land_on_owner(
        self, client, session_maker, monkeypatch, company, second_company, auth_headers, path, form
    ):
        monkeypatch.setenv("IS_SAAS", "false")

        res = await client.post(f"/api/v1/settings/{path}", json=form, headers=auth_headers(second_company))
        assert res.status_code == 200, res.text

        saved = res.json()["details"]["settings"]
        assert await _stored(session_maker, company.id, None, list(form)) == saved
        assert await _stored(session_maker, second_company.id, second_company.current_workspace_id) == {}

        page = (await client.get("/api/v1/settings", headers=auth_headers(company))).json()
        assert {k: page["settings"][k] for k in form} == saved


class TestSystemAndBrand:
    @pytest.mark.asyncio
    async def test_superadmin_writes_company_wide_row(self, client, session_maker, superadmin, auth_headers):
        form = {
            "defaultLanguage": "en",
            "dateFormat": "d/m/Y",
            "timeFormat": "H:i",
            "calendarStartDay": "monday",
            "defaultTimezone": "Europe/Berlin",
            "emailVerification": True,
        }
        res = await client.post("/api/v1/settings/system", json=form, headers=auth_headers(superadmin))
        assert res.status_code == 200, res.text

        stored = await _stored(
            session_maker, superadmin.id, None, ["dateFormat", "emailVerification", "termsConditionsUrl"]
        )
        assert stored == {"dateFormat": "d/m/Y", "emailVerification": "1", "termsConditionsUrl": ""}

    @pytest.mark.asyncio
    async def test_brand_settings_show_on_page(self, client, company, auth_headers):
        headers = auth_headers(company)
        res = await client.post(
            "/api/v1/settings/brand",
            json={"settings": {"themeColor": "blue", "layoutDirection": "right", "titleText": "Acme"}},
            headers=headers,
        )
        assert res.status_code == 200, res.text

        settings = (await client.get("/api/v1/settings", headers=headers)).json()["settings"]
        assert settings["themeColor"] == "blue"
        assert settings["layoutDirection"] == "right"
        assert settings["titleText"] == "Acme"

    @pytest.mark.asyncio
    async def test_storage_provider_fields_are_required(self, client, company, auth_headers):
        res = await client.post(
            "/api/v1/settings/storage",
            json={"storage_type": "aws_s3", "allowedFileTypes": "jpg,png", "maxUploadSize": 4096},
            headers=auth_headers(company),
        )
        assert res.status_code == 422
        assert "aws_access_key_id" in res.json()["error"]["message"]


class TestEmailSettings:
    @pytest.mark.asyncio
    async def test_password_is_masked_and_kept(self, client, session_maker, company, auth_headers):
        headers = auth_headers(company)
        ws = company.current_workspace_id

        res = await client.post("/api/v1/settings/email", json=EMAIL_FORM, headers=headers)
        assert res.status_code == 200, res.text

        read = (await client.get("/api/v1/settings/email", headers=headers)).json()
        assert read["password"] == EMAIL_PASSWORD_MASK
        assert read["port"] == "2525"
        assert read["fromAddress"] == "noreply@acme.com"

        # re-submitting the mask leaves the stored password alone
        form = dict(EMAIL_FORM, password=EMAIL_PASSWORD_MASK, host="mail.acme.com")
        assert (await client.post("/api/v1/settings/email", json=form, headers=headers)).status_code == 200

        stored = await _stored(session_maker, company.id, ws, ["email_password", "email_host"])
        assert stored == {"email_password": "s3cret", "email_host": "mail.acme.com"}

        page = (await client.get("/api/v1/settings", headers=headers)).json()
        assert page["settings"]["email_password"] == EMAIL_PASSWORD_MASK

    @pytest.mark.asyncio
    async def test_invalid_sender_address(self, client, company, auth_headers):
        form = dict(EMAIL_FORM, fromAddress="not-an-address")
        res = await client.post("/api/v1/settings/email", json=form, headers=auth_headers(company))
        assert res.status_code == 422


class TestSlackSettings:
    @pytest.mark.asyncio
    async def test_private_webhook_is_rejected(self, client, session_maker, company, auth_headers):
        res = await client.post(
            "/api/v1/settings/slack",
            json={"slack_enabled": True, "slack_webhook_url": "http://127.0.0.1/hooks/abc"},
            headers=auth_headers(company),
        )
        assert res.status_code == 400
        assert await _stored(session_maker, company.id, company.current_workspace_id) == {}

    @pytest.mark.asyncio
    async def test_defaults_when_not_configured(self, client, company, auth_headers):
        res = await client.get("/api/v1/settings/slack", headers=auth_headers(company))
        assert res.json() == {"slack_enabled": "0", "slack_webhook_url": ""}


class TestZoomSettings:
    @pytest.mark.asyncio
    async def test_connection_test_sets_and_resets_flag(self, client, http_stub, company, auth_headers):
        headers = auth_headers(company)
        http_stub[("POST", ZOOM_TOKEN_URL)] = (200, {"access_token": "zoom-token"})
        http_stub[("GET", f"{ZOOM_API_BASE}/users")] = (200, {"users": []})

        ok = await client.post("/api/v1/settings/zoom/test", json=ZOOM_FORM, headers=headers)
        assert ok.status_code == 200, ok.text
        page = (await client.get("/api/v1/settings", headers=headers)).json()
        assert page["settings"]["is_zoom_meeting_test"] == "1"

        http_stub[("POST", ZOOM_TOKEN_URL)] = (401, {"reason": "Invalid client_id or client_secret"})
        failed = await client.post("/api/v1/settings/zoom/test", json=ZOOM_FORM, headers=headers)
        assert failed.status_code == 400
        assert failed.json()["error"]["message"].startswith("Zoom connection test failed")
        page = (await client.get("/api/v1/settings", headers=headers)).json()
        assert page["settings"]["is_zoom_meeting_test"] == "0"

    @pytest.mark.asyncio
    async def test_non_json_token_response_resets_flag(self, client, http_stub, company, auth_headers):
        headers = auth_headers(company)
        http_stub[("POST", ZOOM_TOKEN_URL)] = (200, {"access_token": "zoom-token"})
        http_stub[("GET", f"{ZOOM_API_BASE}/users")] = (200, {"users": []})
        assert (await client.post("/api/v1/settings/zoom/test", json=ZOOM_FORM, headers=headers)).status_code == 200

        # a gateway answering 200 with a bare string instead of a token object
        http_stub[("POST", ZOOM_TOKEN_URL)] = (200, "maintenance")
        failed = await client.post("/api/v1/settings/zoom/test", json=ZOOM_FORM, headers=headers)
        assert failed.status_code == 400
        page = (await client.get("/api/v1/settings", headers=headers)).json()
        assert page["settings"]["is_zoom_meeting_test"] == "0"

    @pytest.mark.asyncio
    async def test_saving_credentials_resets_flag(self, client, session_maker, company, auth_headers):
        res = await client.post("/api/v1/settings/zoom", json=ZOOM_FORM, headers=auth_headers(company))
        assert res.status_code == 200

        stored = await _stored(session_maker, company.id, company.current_workspace_id)
        assert stored == {**ZOOM_FORM, "is_zoom_meeting_test": "0"}

    @pytest.mark.asyncio
    async def test_requires_a_workspace(self, client, superadmin, auth_headers):
        res = await client.post("/api/v1/settings/zoom", json=ZOOM_FORM, headers=auth_headers(superadmin))
        assert res.status_code == 400
        assert res.json()["error"]["message"] == "No workspace found. Please select a workspace."


class TestGoogleMeet:
    @pytest.mark.asyncio
    async def test_upload_authorize_and_callback(self, client, http_stub, company, auth_headers):
        headers = auth_headers(company)
        credentials = {"web": {"client_id": "client-123", "client_secret": "shh"}}

        res = await client.post(
            "/api/v1/settings/google-meet",
            files={"google_meet_json_file": ("client.json", json.dumps(credentials).encode(), "application/json")},
            headers=headers,
        )
        assert res.status_code == 200, res.text

        auth = await client.get("/api/v1/settings/google-meet/auth-url", headers=headers)
        assert auth.status_code == 200, auth.text
        assert "client_id=client-123" in auth.json()["url"]
        assert "access_type=offline" in auth.json()["url"]

        http_stub[("POST", GOOGLE_TOKEN_URI)] = (200, {"access_token": "at", "refresh_token": "rt"})
        callback = await client.post("/api/v1/settings/google-meet/callback", json={"code": "abc"}, headers=headers)
        assert callback.status_code == 200, callback.text

        settings = (await client.get("/api/v1/settings", headers=headers)).json()["settings"]
        assert settings["google_meet_refresh_token"] == "rt"
        assert settings["is_google_meeting_test"] == "1"
        assert settings["google_meet_json_file"].startswith("google_meet/")

    @pytest.mark.asyncio
    async def test_failed_write_keeps_the_previous_file(
        self, client, session_maker, app_env, company, auth_headers
    ):
        from settings_api.api.main import app

        headers = auth_headers(company)
        credentials = json.dumps({"web": {"client_id": "c", "client_secret": "s"}}).encode()
        upload = {"google_meet_json_file": ("client.json", credentials, "application/json")}
        assert (await client.post("/api/v1/settings/google-meet", files=upload, headers=headers)).status_code == 200
        first = (await _stored(session_maker, company.id, company.current_workspace_id))["google_meet_json_file"]

        async def _failing_store(session: AsyncSession = Depends(get_async_session)) -> ScopedSettingsStore:
            store = ScopedSettingsStore(session)

            async def _upsert(*args, **kwargs):
                raise SQLAlchemyError("database is locked")

            store.repo.upsert = _upsert
            return store

        app.dependency_overrides[get_settings_store] = _failing_store
        res = await client.post("/api/v1/settings/google-meet", files=upload, headers=headers)
        assert res.status_code == 400

        stored = await _stored(session_maker, company.id, company.current_workspace_id)
        assert stored["google_meet_json_file"] == first
        remaining = [p.name for p in (app_env / "storage" / "google_meet").iterdir()]
        assert remaining == [first.split("/")[-1]]

    @pytest.mark.asyncio
    async def test_upload_must_be_json(self, client, company, auth_headers):
        res = await client.post(
            "/api/v1/settings/google-meet",
            files={"google_meet_json_file": ("client.json", b"not json", "application/json")},
            headers=auth_headers(company),
        )
        assert res.status_code == 422

    @pytest.mark.asyncio
    async def test_auth_url_needs_uploaded_credentials(self, client, company, auth_headers):
        res = await client.get("/api/v1/settings/google-meet/auth-url", headers=auth_headers(company))
        assert res.status_code == 400


class TestSiteSettings:
    @pytest.mark.asyncio
    async def test_recaptcha_cookie_and_seo_use_the_workspace_in_saas(
        self, client, session_maker, company, auth_headers
    ):
        headers = auth_headers(company)
        for path, form in (("recaptcha", RECAPTCHA_FORM), ("cookie", COOKIE_FORM), ("seo", SEO_FORM)):
            res = await client.post(f"/api/v1/settings/{path}", json=form, headers=headers)
            assert res.status_code == 200, res.text

        stored = await _stored(session_maker, company.id, company.current_workspace_id)
        assert stored["recaptchaEnabled"] == "1"
        assert stored["recaptchaVersion"] == "v3"
        assert stored["enableLogging"] == "0"
        assert stored["contactUsUrl"] == "https://acme.com/contact"
        assert stored["metaDescription"] == "Acme projects"
        assert await _stored(session_maker, company.id, None) == {}

    @pytest.mark.asyncio
    async def test_cookie_contact_url_must_be_http(self, client, company, auth_headers):
        form = dict(COOKIE_FORM, contactUsUrl="javascript:alert(1)")
        res = await client.post("/api/v1/settings/cookie", json=form, headers=auth_headers(company))
        assert res.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_recaptcha_version(self, client, company, auth_headers):
        form = dict(RECAPTCHA_FORM, recaptchaVersion="v4")
        res = await client.post("/api/v1/settings/recaptcha", json=form, headers=auth_headers(company))
        assert res.status_code == 422


class TestInvoiceSettings:
    @pytest.mark.asyncio
    async def test_invoice_settings_show_on_page(self, client, session_maker, company, auth_headers):
        headers = auth_headers(company)
        form = {"invoice_template": "london", "invoice_qr_display": True, "invoice_color": "#112233"}

        res = await client.post("/api/v1/settings/invoice", json=form, headers=headers)
        assert res.status_code == 200, res.text

        expected = {
            "invoice_template": "london",
            "invoice_qr_display": "1",
            "invoice_color": "#112233",
            "invoice_footer_title": "",
            "invoice_footer_notes": "",
        }
        assert await _stored(session_maker, company.id, company.current_workspace_id) == expected
        page = (await client.get("/api/v1/settings", headers=headers)).json()
        assert page["invoice_settings"] == expected

    @pytest.mark.asyncio
    async def test_rejects_unknown_template_and_bad_color(self, client, company, auth_headers):
        headers = auth_headers(company)
        bad_template = {"invoice_template": "berlin", "invoice_color": "#112233"}
        bad_color = {"invoice_template": "london", "invoice_color": "blue"}
        assert (await client.post("/api/v1/settings/invoice", json=bad_template, headers=headers)).status_code == 422
        assert (await client.post("/api/v1/settings/invoice", json=bad_color, headers=headers)).status_code == 422


class TestTelegramSettings:
    send_url = f"{TELEGRAM_API_BASE}/bot123:ABC/sendMessage"

    @pytest.mark.asyncio
    async def test_defaults_when_not_configured(self, client, company, auth_headers):
        res = await client.get("/api/v1/settings/telegram", headers=auth_headers(company))
        assert res.status_code == 200
        assert res.json() == {"telegram_enabled": "0", "telegram_bot_token": "", "telegram_chat_id": ""}

    @pytest.mark.asyncio
    async def test_saved_settings_are_used_by_the_test_message(self, client, http_stub, company, auth_headers):
        headers = auth_headers(company)
        form = {"telegram_enabled": True, "telegram_bot_token": "123:ABC", "telegram_chat_id": "-100200"}

        res = await client.post("/api/v1/settings/telegram", json=form, headers=headers)
        assert res.status_code == 200, res.text
        read = (await client.get("/api/v1/settings/telegram", headers=headers)).json()
        assert read == {"telegram_enabled": "1", "telegram_bot_token": "123:ABC", "telegram_chat_id": "-100200"}

        http_stub[("POST", self.send_url)] = (200, {"ok": True})
        sent = await client.post("/api/v1/settings/telegram/test", json={}, headers=headers)
        assert sent.status_code == 200, sent.text

        page = (await client.get("/api/v1/settings", headers=headers)).json()
        assert page["telegram_settings"]["telegram_chat_id"] == "-100200"

    @pytest.mark.asyncio
    async def test_failed_test_message(self, client, http_stub, company, auth_headers):
        http_stub[("POST", self.send_url)] = (400, {"ok": False, "description": "chat not found"})
        res = await client.post(
            "/api/v1/settings/telegram/test",
            json={"bot_token": "123:ABC", "chat_id": "1"},
            headers=auth_headers(company),
        )
        assert res.status_code == 400
        assert res.json()["error"]["message"].startswith("Failed to send Telegram test message")

    @pytest.mark.asyncio
    async def test_test_message_needs_a_chat(self, client, company, auth_headers):
        res = await client.post("/api/v1/settings/telegram/test", json={}, headers=auth_headers(company))
        assert res.status_code == 400


class TestGoogleCalendar:
    calendar_url = f"{GOOGLE_CALENDAR_API_BASE}/calendars/primary"

    @staticmethod
    def _upload(service_account):
        return {"googleCalendarJson": ("service.json", json.dumps(service_account).encode(), "application/json")}

    @pytest.mark.asyncio
    async def test_upload_and_sync(
        self, client, http_stub, session_maker, app_env, company, service_account, auth_headers
    ):
        headers = auth_headers(company)
        ws = company.current_workspace_id

        res = await client.post(
            "/api/v1/settings/google-calendar",
            data={"googleCalendarEnabled": "true", "googleCalendarId": "primary"},
            files=self._upload(service_account),
            headers=headers,
        )
        assert res.status_code == 200, res.text
        assert res.json()["message"] == "Google Calendar integration enabled successfully"
        stored = await _stored(session_maker, company.id, ws)
        assert stored["googleCalendarEnabled"] == "1"
        assert stored["googleCalendarId"] == "primary"
        assert stored["googleCalendarJsonPath"].startswith("google-calendar/")
        assert stored["is_googlecalendar_sync"] == "0"
        assert (app_env / "storage" / stored["googleCalendarJsonPath"]).is_file()

        http_stub[("POST", GOOGLE_TOKEN_URI)] = (200, {"access_token": "cal-token"})
        http_stub[("GET", self.calendar_url)] = (200, {"id": "primary", "summary": "Team"})
        synced = await client.post("/api/v1/settings/google-calendar/sync", headers=headers)
        assert synced.status_code == 200, synced.text
        page = (await client.get("/api/v1/settings", headers=headers)).json()
        assert page["settings"]["is_googlecalendar_sync"] == "1"

        del http_stub[("GET", self.calendar_url)]
        failed = await client.post("/api/v1/settings/google-calendar/sync", headers=headers)
        assert failed.status_code == 400
        assert "not accessible" in failed.json()["error"]["message"]
        page = (await client.get("/api/v1/settings", headers=headers)).json()
        assert page["settings"]["is_googlecalendar_sync"] == "0"

    @pytest.mark.asyncio
    async def test_sync_status_survives_unchanged_settings(self, client, session_maker, company, auth_headers):
        headers = auth_headers(company)
        await client.post(
            "/api/v1/settings/google-calendar",
            data={"googleCalendarEnabled": "true", "googleCalendarId": "primary"},
            headers=headers,
        )
        await _set(session_maker, company, SettingKey.IS_GOOGLECALENDAR_SYNC, True)

        same = await client.post(
            "/api/v1/settings/google-calendar",
            data={"googleCalendarEnabled": "false", "googleCalendarId": "primary"},
            headers=headers,
        )
        assert same.status_code == 200
        assert same.json()["message"] == "Google Calendar integration disabled."
        stored = await _stored(session_maker, company.id, company.current_workspace_id)
        assert stored["is_googlecalendar_sync"] == "1"
        assert stored["googleCalendarEnabled"] == "0"

        changed = await client.post(
            "/api/v1/settings/google-calendar",
            data={"googleCalendarEnabled": "true", "googleCalendarId": "team@acme.com"},
            headers=headers,
        )
        assert changed.status_code == 200
        stored = await _stored(session_maker, company.id, company.current_workspace_id)
        assert stored["is_googlecalendar_sync"] == "0"

    @pytest.mark.asyncio
    async def test_new_service_account_replaces_the_old_file(
        self, client, session_maker, app_env, company, service_account, auth_headers
    ):
        headers = auth_headers(company)
        form = {"googleCalendarEnabled": "true", "googleCalendarId": "primary"}

        await client.post(
            "/api/v1/settings/google-calendar", data=form, files=self._upload(service_account), headers=headers
        )
        first = (await _stored(session_maker, company.id, company.current_workspace_id))["googleCalendarJsonPath"]
        await _set(session_maker, company, SettingKey.IS_GOOGLECALENDAR_SYNC, True)

        res = await client.post(
            "/api/v1/settings/google-calendar", data=form, files=self._upload(service_account), headers=headers
        )
        assert res.status_code == 200, res.text

        stored = await _stored(session_maker, company.id, company.current_workspace_id)
        assert stored["googleCalendarJsonPath"] != first
        assert stored["is_googlecalendar_sync"] == "0"
        remaining = [p.name for p in (app_env / "storage" / "google-calendar").iterdir()]
        assert remaining == [stored["googleCalendarJsonPath"].split("/")[-1]]

    @pytest.mark.asyncio
    async def test_sync_requires_enabled_integration(self, client, company, auth_headers):
        res = await client.post("/api/v1/settings/google-calendar/sync", headers=auth_headers(company))
        assert res.status_code == 400
        assert res.json()["error"]["message"] == "Google Calendar integration is not enabled."

    @pytest.mark.asyncio
    async def test_sync_requires_uploaded_credentials(self, client, company, auth_headers):
        headers = auth_headers(company)
        await client.post(
            "/api/v1/settings/google-calendar",
            data={"googleCalendarEnabled": "true", "googleCalendarId": "primary"},
            headers=headers,
        )
        res = await client.post("/api/v1/settings/google-calendar/sync", headers=headers)
        assert res.status_code == 400
        assert "not uploaded" in res.json()["error"]["message"]


class TestCache:
    @pytest.mark.asyncio
    async def test_clear_cache(self, client, app_env, company, auth_headers):
        cache_dir = app_env / "cache"
        cache_dir.mkdir()
        (cache_dir / "views.php").write_bytes(b"x" * 10)
        (cache_dir / ".gitignore").write_text("*\n")

        res = await client.post("/api/v1/settings/cache/clear", headers=auth_headers(company))
        assert res.status_code == 200
        assert res.json()["details"] == {"removed": 1}
        assert (cache_dir / ".gitignore").exists()


class TestAccessControl:
    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        res = await client.get("/api/v1/settings")
        assert res.status_code == 401
        assert res.json()["error"]["type"] == "http_error"

    @pytest.mark.asyncio
    async def test_invalid_token(self, client, company):
        res = await client.get("/api/v1/settings", headers={"Authorization": "Bearer not-a-token"})
        assert res.status_code == 401

    @pytest.mark.asyncio
    async def test_member_cannot_manage_settings(self, client, member, auth_headers):
        res = await client.post("/api/v1/settings/currency", json=CURRENCY_FORM, headers=auth_headers(member))
        assert res.status_code == 403

    @pytest.mark.asyncio
    async def test_inactive_user(self, client, session, company, auth_headers):
        company.is_active = False
        await session.commit()

        res = await client.get("/api/v1/settings", headers=auth_headers(company))
        assert res.status_code == 403

    @pytest.mark.asyncio
    async def test_correlation_id_is_echoed(self, client):
        res = await client.get("/api/v1/health", headers={"X-Correlation-ID": "abc-123"})
        assert res.status_code == 200
        assert res.headers["X-Correlation-ID"] == "abc-123"


class TestHealth:
    @pytest.mark.asyncio
    async def test_liveness_reports_deployment_mode(self, client):
        res = await client.get("/api/v1/health")
        assert res.status_code == 200
        assert res.json()["details"] == {"saas_mode": True, "demo_mode": False}

    @pytest.mark.asyncio
    async def test_readiness_queries_the_database(self, client):
        res = await client.get("/api/v1/health/ready")
        assert res.status_code == 200
        assert res.json()["message"] == "Ready"
