from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect, text

from database import make_engine

ROOT = Path(__file__).resolve().parent.parent


def _alembic_config(url):
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", url)
    return cfg


class TestMigrations:
    def test_upgrade_creates_schema(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'migrated.db'}"
        command.upgrade(_alembic_config(url), "head")

        engine = make_engine(url)
        try:
            inspector = inspect(engine)
            assert {"users", "tasks"} <= set(inspector.get_table_names())
            (fk,) = inspector.get_foreign_keys("tasks")
            assert fk["options"].get("ondelete") == "CASCADE"
            with engine.connect() as conn:
                ddl = dict(conn.execute(text("SELECT name, sql FROM sqlite_master WHERE type = 'table'")).all())
            assert "AUTOINCREMENT" in ddl["users"]
            assert "AUTOINCREMENT" in ddl["tasks"]
        finally:
            engine.dispose()

    def test_downgrade_drops_schema(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'migrated.db'}"
        cfg = _alembic_config(url)
        command.upgrade(cfg, "head")
        command.downgrade(cfg, "base")

        engine = make_engine(url)
        try:
            assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
        finally:
            engine.dispose()
