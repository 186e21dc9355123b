from datetime import UTC, datetime
from pathlib import Path

import pytest

from duplicate_post.adapters.clock import FixedClock
from duplicate_post.adapters.sqlite.migrator import SQLiteMigrator
from duplicate_post.adapters.sqlite.repos import SQLiteContentStore, SQLiteUserRepo
from duplicate_post.rules.loader import load_rules
from duplicate_post.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def rules() -> Rules:
    """The project's real rules.yaml."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 1, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """A migrated SQLite database in a temp dir."""
    path = str(tmp_path / "duplicate_post.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def content_store(db_path: str, rules: Rules) -> SQLiteContentStore:
    return SQLiteContentStore(db_path, taxonomies=rules.taxonomies)


@pytest.fixture
def user_repo(db_path: str) -> SQLiteUserRepo:
    return SQLiteUserRepo(db_path)
