"""Tests for Settings validation."""

import pytest
from pydantic import ValidationError


class TestSettingsDefaults:
    def test_default_model_and_fields(self, tmp_path):
        from config.settings import Settings
        # Use _env_file=None to test code defaults without .env overrides
        s = Settings(_env_file=None, sqlite_db_path=tmp_path / "n.db", log_dir=tmp_path / "logs")
        assert s.gemini_model == "gemini-2.5-flash"
        assert s.episode_number_field == "episode_number"
        assert s.patreon_post_field == "patreon_post_id"
        assert s.access_type_field == "section"
        assert s.access_taxonomy == "chapter-categories"
        assert s.http_timeout == 30.0
        assert s.patreon_api_base == "https://www.patreon.com/api/oauth2/v2"

    def test_credentials_default_to_unset(self, tmp_path, monkeypatch):
        from config.settings import Settings
        for name in ("GEMINI_API_KEY", "PATREON_ACCESS_TOKEN", "PATREON_PAID_TIER_ID"):
            monkeypatch.delenv(name, raising=False)
        s = Settings(_env_file=None, sqlite_db_path=tmp_path / "n.db", log_dir=tmp_path / "logs")
        assert not s.has_gemini_key
        assert not s.has_patreon_token
        assert not s.has_paid_tier

    def test_helpers_reflect_configured_credentials(self, settings):
        assert settings.has_gemini_key
        assert settings.has_patreon_token
        assert settings.has_paid_tier


class TestSettingsValidation:
    def test_zero_timeout_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="http_timeout"):
            Settings(_env_file=None, sqlite_db_path=tmp_path / "n.db", log_dir=tmp_path / "logs", http_timeout=0)

    def test_lock_stale_below_one_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="lock_stale_after_seconds"):
            Settings(_env_file=None, sqlite_db_path=tmp_path / "n.db", log_dir=tmp_path / "logs", lock_stale_after_seconds=0)

    def test_blank_field_name_raises(self, tmp_path):
        from config.settings import Settings
        with pytest.raises(ValidationError, match="blank"):
            Settings(_env_file=None, sqlite_db_path=tmp_path / "n.db", log_dir=tmp_path / "logs", episode_number_field="   ")

    def test_field_names_are_stripped(self, tmp_path):
        from config.settings import Settings
        s = Settings(_env_file=None, sqlite_db_path=tmp_path / "n.db", log_dir=tmp_path / "logs", access_type_field=" tier ")
        assert s.access_type_field == "tier"

    def test_path_parent_dirs_created(self, tmp_path):
        from config.settings import Settings
        deep_path = tmp_path / "a" / "b" / "novelgate.db"
        Settings(_env_file=None, sqlite_db_path=deep_path, log_dir=tmp_path / "logs")
        assert deep_path.parent.exists()

    def test_env_vars_override_defaults(self, tmp_path, monkeypatch):
        from config.settings import Settings
        monkeypatch.setenv("PATREON_PAID_TIER_ID", "tier-9")
        monkeypatch.setenv("EPISODE_NUMBER_FIELD", "ep_no")
        s = Settings(_env_file=None, sqlite_db_path=tmp_path / "n.db", log_dir=tmp_path / "logs")
        assert s.patreon_paid_tier_id == "tier-9"
        assert s.episode_number_field == "ep_no"


class TestGetSettings:
    def test_cached_instance(self, tmp_path, monkeypatch):
        import config.settings as settings_module
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(settings_module, "_settings_instance", None)
        assert settings_module.get_settings() is settings_module.get_settings()
