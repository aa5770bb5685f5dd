"""Tests for Settings."""

from eduhooks.config import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.student_email_domain == "student.school.com"
        assert settings.session_ttl_hours == 24
        assert settings.blob_base_url == "https://storage.ronin.co"
        assert settings.placeholder_name == "User"
        assert settings.sort_sentinel == 1000

    def test_from_env_defaults(self, monkeypatch):
        for name in (
            "EDUHOOKS_STUDENT_EMAIL_DOMAIN",
            "EDUHOOKS_SESSION_TTL_HOURS",
            "EDUHOOKS_BLOB_BASE_URL",
            "EDUHOOKS_PLACEHOLDER_NAME",
            "EDUHOOKS_SORT_SENTINEL",
            "EDUHOOKS_LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)
        assert Settings.from_env() == Settings()

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("EDUHOOKS_STUDENT_EMAIL_DOMAIN", "pupils.example.org")
        monkeypatch.setenv("EDUHOOKS_SESSION_TTL_HOURS", "12")
        monkeypatch.setenv("EDUHOOKS_BLOB_BASE_URL", "https://blobs.example.com/")
        monkeypatch.setenv("EDUHOOKS_PLACEHOLDER_NAME", "Member")
        monkeypatch.setenv("EDUHOOKS_SORT_SENTINEL", "500")
        monkeypatch.setenv("EDUHOOKS_LOG_LEVEL", "debug")
        settings = Settings.from_env()
        assert settings.student_email_domain == "pupils.example.org"
        assert settings.session_ttl_hours == 12
        assert settings.blob_base_url == "https://blobs.example.com"
        assert settings.placeholder_name == "Member"
        assert settings.sort_sentinel == 500
        assert settings.log_level == "DEBUG"
