from core import settings


def _clear(monkeypatch):
    for name in (
        "DATABASE_URL",
        "DB_USER",
        "DB_PASSWORD",
        "DB_NAME",
        "DB_HOST",
        "DB_PORT",
        "DB_POOL_MIN",
        "DB_POOL_MAX",
        "DB_IDLE_TIMEOUT_MS",
        "DB_CONNECT_TIMEOUT_MS",
        "SCHEMA_BOOTSTRAP",
        "SCHEMA_DIR",
        "CORS_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    _clear(monkeypatch)

    cfg = settings.load_settings()

    assert cfg.database.host == "localhost"
    assert cfg.database.port == 5432
    assert cfg.database.max_connections == 10
    assert cfg.database.connect_timeout_ms == 2000
    assert cfg.schema_bootstrap is True
    assert cfg.schema_dir == settings.DEFAULT_SCHEMA_DIR
    assert cfg.cors_origins == settings.DEFAULT_CORS_ORIGINS


def test_discrete_fields_and_invalid_numbers(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("DB_USER", "care")
    monkeypatch.setenv("DB_PASSWORD", "s3cret")
    monkeypatch.setenv("DB_NAME", "visits")
    monkeypatch.setenv("DB_PORT", "not-a-port")
    monkeypatch.setenv("DB_POOL_MAX", "4")
    monkeypatch.setenv("DB_POOL_MIN", "9")
    monkeypatch.setenv("SCHEMA_BOOTSTRAP", "false")

    cfg = settings.load_settings()

    assert cfg.database.port == 5432
    assert cfg.database.max_connections == 4
    assert cfg.database.min_connections == 4
    assert cfg.schema_bootstrap is False
    assert cfg.database.connect_kwargs() == {
        "user": "care",
        "password": "s3cret",
        "database": "visits",
        "host": "localhost",
        "port": 5432,
    }
    assert cfg.database.describe()["password"] == "***"


def test_database_url_takes_precedence_and_drops_sslmode(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("DATABASE_URL", "postgresql://care:pw@db:5432/visits?sslmode=require&application_name=api")
    monkeypatch.setenv("DB_HOST", "ignored")

    db_settings = settings.load_database_settings()

    assert db_settings.connect_kwargs() == {
        "dsn": "postgresql://care:pw@db:5432/visits?application_name=api",
    }
    assert db_settings.describe()["dsn"] == "postgresql://care:***@db:5432/visits?application_name=api"


def test_cors_origins_from_env(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example ,")

    assert settings.load_settings().cors_origins == ("https://a.example", "https://b.example")
