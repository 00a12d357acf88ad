import pytest

from config import Settings


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    for name in (
        "DATABASE_URL", "SECRET_KEY", "ALGORITHM", "BCRYPT_ROUNDS", "CORS_ORIGINS",
        "HOST", "PORT", "WEB_CONCURRENCY", "SSL_KEYFILE", "SSL_CERTFILE",
        "STATIC_DIR", "LOG_LEVEL", "CREATE_TABLES",
    ):
        # recorded first so anything load_dotenv sets is rolled back too
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


class TestSettingsFromEnv:
    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings.database_url == "sqlite:///./tasks.db"
        assert settings.algorithm == "HS256"
        assert settings.port == 3000
        assert settings.cors_origins == ["*"]
        assert settings.workers >= 1
        assert settings.create_tables is True
        assert settings.use_tls is False

    def test_overrides(self, clean_env):
        clean_env.setenv("DATABASE_URL", "postgresql://u:p@db/tasks")
        clean_env.setenv("SECRET_KEY", "s3")
        clean_env.setenv("BCRYPT_ROUNDS", "6")
        clean_env.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")
        clean_env.setenv("WEB_CONCURRENCY", "4")
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("CREATE_TABLES", "false")

        settings = Settings.from_env()
        assert settings.database_url == "postgresql://u:p@db/tasks"
        assert settings.secret_key == "s3"
        assert settings.bcrypt_rounds == 6
        assert settings.cors_origins == ["https://a.example.com", "https://b.example.com"]
        assert settings.workers == 4
        assert settings.log_level == "DEBUG"
        assert settings.create_tables is False

    def test_tls_needs_both_files(self, clean_env):
        clean_env.setenv("SSL_KEYFILE", "server.key")
        assert Settings.from_env().use_tls is False
        clean_env.setenv("SSL_CERTFILE", "server.cert")
        assert Settings.from_env().use_tls is True

    def test_bad_integer_fails_fast(self, clean_env):
        clean_env.setenv("PORT", "eighty")
        with pytest.raises(ValueError):
            Settings.from_env()

    def test_dotenv_file_is_read(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("SECRET_KEY=from-dotenv\n")
        assert Settings.from_env().secret_key == "from-dotenv"
