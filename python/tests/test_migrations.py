"""Tests for database migrations.

Migrations run against a throwaway SQLite file per module so they never
touch the database other tests use.

Tests cover:
- upgrade head creates every table the ORM maps
- schema constraints (role check, audit action check, cascades)
- downgrade base removes everything
"""

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from clipshare.db.engine import create_db_engine
from clipshare.db.models import Base

REPO_ROOT = Path(__file__).resolve().parent.parent.parent


def make_alembic_config(database_url: str) -> Config:
    cfg = Config(str(REPO_ROOT / "migrations" / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    cfg.attributes["configure_logger"] = False
    return cfg


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'migrations.db'}"


@pytest.fixture
def migrated_engine(database_url: str):
    """Engine on a database upgraded to head."""
    command.upgrade(make_alembic_config(database_url), "head")
    engine = create_db_engine(database_url)
    yield engine
    engine.dispose()


class TestUpgrade:
    def test_creates_all_mapped_tables(self, migrated_engine):
        tables = set(inspect(migrated_engine).get_table_names())

        assert set(Base.metadata.tables) <= tables
        assert "alembic_version" in tables

    def test_user_defaults_and_role_check(self, migrated_engine):
        with migrated_engine.begin() as conn:
            conn.execute(
                text("INSERT INTO users (id, email, password_hash) VALUES ('u1', 'a@b.c', 'h')")
            )
            row = conn.execute(text("SELECT role, banned FROM users WHERE id = 'u1'")).one()
        assert row.role == "USER"
        assert not row.banned

        with pytest.raises(IntegrityError):
            with migrated_engine.begin() as conn:
                conn.execute(
                    text(
                        "INSERT INTO users (id, email, password_hash, role) "
                        "VALUES ('u2', 'x@b.c', 'h', 'OWNER')"
                    )
                )

    def test_admin_log_action_check(self, migrated_engine):
        with pytest.raises(IntegrityError):
            with migrated_engine.begin() as conn:
                conn.execute(
                    text(
                        "INSERT INTO admin_logs (id, action, details) "
                        "VALUES ('l1', 'DROP_TABLES', 'nope')"
                    )
                )

    def test_deleting_user_cascades_to_clips_and_comments(self, migrated_engine):
        with migrated_engine.begin() as conn:
            conn.execute(
                text("INSERT INTO users (id, email, password_hash) VALUES ('u1', 'a@b.c', 'h')")
            )
            conn.execute(
                text(
                    "INSERT INTO clips (id, title, video_ref, file_name, file_size, user_id) "
                    "VALUES ('c1', 't', 'r', 'f.mp4', 1, 'u1'), "
                    "('c2', 'legacy', 'r2', 'g.mp4', 1, NULL)"
                )
            )
            conn.execute(
                text(
                    "INSERT INTO comments (id, clip_id, user_id, content) "
                    "VALUES ('m1', 'c2', 'u1', 'hi')"
                )
            )

        with migrated_engine.begin() as conn:
            conn.execute(text("DELETE FROM users WHERE id = 'u1'"))
            clips = conn.execute(text("SELECT id FROM clips")).scalars().all()
            comments = conn.execute(text("SELECT count(*) FROM comments")).scalar_one()

        assert clips == ["c2"]
        assert comments == 0


class TestDowngrade:
    def test_downgrade_base_drops_everything(self, database_url, migrated_engine):
        command.downgrade(make_alembic_config(database_url), "base")

        tables = set(inspect(migrated_engine).get_table_names())
        assert tables <= {"alembic_version"}

    def test_upgrade_is_repeatable(self, database_url, migrated_engine):
        cfg = make_alembic_config(database_url)
        command.downgrade(cfg, "base")
        command.upgrade(cfg, "head")

        assert "clips" in inspect(migrated_engine).get_table_names()
