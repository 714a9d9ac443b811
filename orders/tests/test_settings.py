import pytest

from orders.settings import get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    for name in ("DATABASE_URL", "DB_POOL_SIZE", "DB_ECHO", "DB_CREATE_TABLES", "LOG_LEVEL", "ORDERS_PAGE_SIZE"):
        monkeypatch.delenv(name, raising=False)
    s = get_settings()
    assert s.database_url.startswith("postgresql+psycopg://")
    assert s.db_pool_size == 5
    assert s.db_echo is False
    assert s.db_create_tables is True
    assert s.log_level == "INFO"
    assert s.page_size == 20


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///x.db")
    monkeypatch.setenv("DB_POOL_SIZE", "2")
    monkeypatch.setenv("DB_ECHO", "yes")
    monkeypatch.setenv("DB_CREATE_TABLES", "0")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = get_settings()
    assert s.database_url == "sqlite+aiosqlite:///x.db"
    assert s.db_pool_size == 2
    assert s.db_echo is True
    assert s.db_create_tables is False
    assert s.log_level == "DEBUG"
    assert get_settings() is s
