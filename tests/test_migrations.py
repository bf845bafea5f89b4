"""Tests for the Alembic migration of the SQL document store."""

from pathlib import Path

from sqlalchemy import create_engine, inspect

import travel_threads
from travel_threads.scripts.migrate import MIGRATIONS_DIR, build_config, run_upgrade_head


def test_build_config_points_at_migrations() -> None:
    cfg = build_config("sqlite:///example.db")

    assert cfg.get_main_option("script_location") == MIGRATIONS_DIR
    assert cfg.get_main_option("sqlalchemy.url") == "sqlite:///example.db"
    assert Path(MIGRATIONS_DIR, "env.py").is_file()
    assert Path(MIGRATIONS_DIR).parent == Path(travel_threads.__file__).parent


def test_upgrade_head_creates_document_table(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'threads.db'}"

    run_upgrade_head(url)

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert "document" in inspector.get_table_names()
        columns = {column["name"] for column in inspector.get_columns("document")}
        assert columns == {"collection", "doc_id", "data", "updated_at"}
        primary_key = inspector.get_pk_constraint("document")["constrained_columns"]
        assert primary_key == ["collection", "doc_id"]
    finally:
        engine.dispose()
