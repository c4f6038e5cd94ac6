from sqlalchemy import text

from typify.db import _create_engine_with_retries, _normalize_url, engine

def test_app_engine_enforces_foreign_keys():
    with engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

def test_first_sqlite_connection_gets_pragmas(tmp_path):
    file_engine = _create_engine_with_retries(f"sqlite:///{tmp_path / 'typify.db'}")
    try:
        with file_engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
    finally:
        file_engine.dispose()

def test_normalize_url():
    assert _normalize_url("postgres://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
    assert _normalize_url("postgresql+psycopg://u:p@h/db") == "postgresql+psycopg://u:p@h/db"
    assert _normalize_url("sqlite:///./typify.db") == "sqlite:///./typify.db"
