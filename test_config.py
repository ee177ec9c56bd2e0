import pytest

from config import Settings, StartupConfigError, load_settings


@pytest.fixture
def clean_env(monkeypatch):
    """
    Fixture removing all configuration variables from the environment.

    Args:
        monkeypatch: pytest monkeypatch fixture
    """
    for name in ["SHEET_ID", "API_KEY", "SHEET_NAME", "PORT", "SHEET_FORMAT", "CORS_ORIGINS", "UPSTREAM_TIMEOUT"]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadSettings:
    """
    Tests for load_settings and Settings.
    """

    def test_defaults_with_required_values(self, clean_env):
        clean_env.setenv("SHEET_ID", "abc")
        clean_env.setenv("API_KEY", "key")

        settings = load_settings(_env_file=None)

        assert settings.sheet_id == "abc"
        assert settings.api_key == "key"
        assert settings.sheet_name == "Sheet1"
        assert settings.port == 3000
        assert settings.sheet_format == "grid"
        assert settings.cors_origin_list == ["*"]
        assert settings.upstream_timeout is None

    def test_reads_optional_values(self, clean_env):
        clean_env.setenv("SHEET_ID", "abc")
        clean_env.setenv("API_KEY", "key")
        clean_env.setenv("SHEET_NAME", "Compliance")
        clean_env.setenv("PORT", "8080")
        clean_env.setenv("SHEET_FORMAT", "values")
        clean_env.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
        clean_env.setenv("UPSTREAM_TIMEOUT", "2.5")

        settings = load_settings(_env_file=None)

        assert settings.sheet_name == "Compliance"
        assert settings.port == 8080
        assert settings.sheet_format == "values"
        assert settings.cors_origin_list == ["https://a.example", "https://b.example"]
        assert settings.upstream_timeout == 2.5

    def test_reads_dotenv_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SHEET_ID=from-file\nAPI_KEY=file-key\n")

        settings = load_settings(_env_file=env_file)

        assert settings.sheet_id == "from-file"
        assert settings.api_key == "file-key"

    @pytest.mark.parametrize(
        "env",
        [
            {},
            {"SHEET_ID": "abc"},
            {"API_KEY": "key"},
            {"SHEET_ID": "", "API_KEY": "key"},
        ],
        ids=["nothing", "missing-api-key", "missing-sheet-id", "empty-sheet-id"]
    )
    def test_missing_required_values_is_fatal(self, clean_env, env):
        """
        Test that a missing or empty SHEET_ID or API_KEY refuses to load.
        """
        for name, value in env.items():
            clean_env.setenv(name, value)

        with pytest.raises(StartupConfigError) as exc_info:
            load_settings(_env_file=None)

        assert "FATAL ERROR" in str(exc_info.value)

    @pytest.mark.parametrize(
        "name, value",
        [("SHEET_FORMAT", "csv"), ("PORT", "not-a-port"), ("UPSTREAM_TIMEOUT", "0")],
        ids=["unknown-format", "bad-port", "zero-timeout"]
    )
    def test_invalid_values_are_fatal(self, clean_env, name, value):
        clean_env.setenv("SHEET_ID", "abc")
        clean_env.setenv("API_KEY", "key")
        clean_env.setenv(name, value)

        with pytest.raises(StartupConfigError):
            load_settings(_env_file=None)

    def test_settings_accept_field_names(self, clean_env):
        settings = Settings(_env_file=None, sheet_id="abc", api_key="key")
        assert settings.sheet_id == "abc"
