"""Tests for Settings configuration model."""

from markbot.config import Settings


class TestDefaults:
    def test_default_platform(self):
        assert Settings().chat_platform == "webhook"

    def test_default_rate_limit(self):
        s = Settings()
        assert s.rate_limit_window_seconds == 60.0
        assert s.rate_limit_max_requests == 60
        assert s.rate_limit_max_entries == 10_000

    def test_default_message_length(self):
        assert Settings().max_message_length == 1000

    def test_default_webhook_port(self):
        assert Settings().webhook_port == 8443

    def test_default_timeouts(self):
        s = Settings()
        assert s.store_timeout_seconds == 5.0
        assert s.ai_timeout_seconds == 8.0
        assert s.metadata_timeout_seconds == 5.0

    def test_env_is_ignored_under_pytest(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_PORT", "9999")
        assert Settings().webhook_port == 8443


class TestSupabaseEnabled:
    def test_disabled_by_default(self):
        assert Settings().supabase_enabled is False

    def test_needs_url_and_key(self):
        assert Settings(supabase_url="https://x.supabase.co").supabase_enabled is False
        s = Settings(supabase_url="https://x.supabase.co", supabase_service_role_key="k")
        assert s.supabase_enabled is True


class TestWhatsAppEnabled:
    def test_disabled_by_default(self):
        assert Settings().whatsapp_enabled is False

    def test_needs_token_and_phone_number_id(self):
        assert Settings(whatsapp_access_token="t").whatsapp_enabled is False
        s = Settings(whatsapp_access_token="t", whatsapp_phone_number_id="PN1")
        assert s.whatsapp_enabled is True
