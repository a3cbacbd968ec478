import pytest

from clientscope.config.settings import Settings


@pytest.mark.unit
class TestSettings:
    def test_default_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("LEAD_PROJECT_ACCESS", raising=False)
        monkeypatch.delenv("BROADCAST_TASK_COMPLETION", raising=False)
        monkeypatch.delenv("BCRYPT_ROUNDS", raising=False)
        settings = Settings()
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert "postgresql" in settings.database_url
        assert settings.secure_cookies is True
        assert settings.bcrypt_rounds == 12

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://user:pass@db:5432/mydb")
        monkeypatch.setenv("SECRET_KEY", "my-secret")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        settings = Settings()
        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.secret_key == "my-secret"

    def test_scoping_flags_default_off(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LEAD_PROJECT_ACCESS", raising=False)
        monkeypatch.delenv("BROADCAST_TASK_COMPLETION", raising=False)
        settings = Settings()
        assert settings.lead_project_access is False
        assert settings.broadcast_task_completion is False

    def test_scoping_flags_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LEAD_PROJECT_ACCESS", "true")
        monkeypatch.setenv("BROADCAST_TASK_COMPLETION", "1")
        settings = Settings()
        assert settings.lead_project_access is True
        assert settings.broadcast_task_completion is True

    def test_allowed_origins_from_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ALLOWED_ORIGINS", '["https://portal.agency.com"]')
        settings = Settings()
        assert settings.allowed_origins == ["https://portal.agency.com"]
