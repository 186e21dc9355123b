import builtins
import logging
import sqlite3
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from duplicate_post.domain.entities import (
    THUMBNAIL_META_KEY,
    ContentRecord,
    NewContentRecord,
    User,
)
from duplicate_post.domain.errors import ContentStoreError
from duplicate_post.domain.meta import serialize_meta_value

logger = logging.getLogger(__name__)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _parse_dt(s: str | None) -> datetime:
    return datetime.fromisoformat(s) if s else datetime.min


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn


class SQLiteContentStore(_SQLiteRepo):
    """
    Content store backed by SQLite.

    Every write runs in its own connection and transaction. Store failures
    surface as ContentStoreError.
    """

    def __init__(self, db_path: str, taxonomies: dict[str, list[str]] | None = None):
        super().__init__(db_path)
        self._taxonomies = taxonomies or {}

    # --- Records ---

    def get(self, record_id: int) -> ContentRecord | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM posts WHERE id = ?", (record_id,)).fetchone()
            return self._row_to_record(row) if row else None
        except sqlite3.Error as e:
            raise ContentStoreError(str(e), operation="get") from e
        finally:
            conn.close()

    def insert(self, record: NewContentRecord) -> int:
        now = _now_iso()
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                INSERT INTO posts (
                    post_type, title, content, excerpt, status,
                    author_id, parent_id, menu_order,
                    comment_status, ping_status, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    record.post_type,
                    record.title,
                    record.content,
                    record.excerpt,
                    record.status,
                    record.author_id,
                    record.parent_id,
                    record.menu_order,
                    record.comment_status,
                    record.ping_status,
                    now,
                    now,
                ),
            )
            conn.commit()
            new_id = cursor.lastrowid
            if not new_id:
                raise ContentStoreError("Could not insert post into the database.", operation="insert")
            return int(new_id)
        except sqlite3.Error as e:
            conn.rollback()
            raise ContentStoreError(
                f"Could not insert post into the database: {e}", operation="insert"
            ) from e
        finally:
            conn.close()

    def list(
        self,
        post_type: str | None = None,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[builtins.list[ContentRecord], int]:
        query = "FROM posts WHERE status != 'trash'"
        params: builtins.list[str | int] = []
        if post_type:
            query += " AND post_type = ?"
            params.append(post_type)
        if status:
            query += " AND status = ?"
            params.append(status)

        conn = self._get_conn()
        try:
            total = conn.execute(f"SELECT COUNT(*) AS n {query}", params).fetchone()["n"]
            rows = conn.execute(
                f"SELECT * {query} ORDER BY id DESC LIMIT ? OFFSET ?",
                [*params, limit, offset],
            ).fetchall()
            return [self._row_to_record(r) for r in rows], int(total)
        except sqlite3.Error as e:
            raise ContentStoreError(str(e), operation="list") from e
        finally:
            conn.close()

    # --- Taxonomies ---

    def get_object_taxonomies(self, post_type: str) -> builtins.list[str]:
        return builtins.list(self._taxonomies.get(post_type, []))

    def create_term(self, taxonomy: str, name: str, slug: str | None = None) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "INSERT INTO terms (taxonomy, name, slug) VALUES (?, ?, ?)",
                (taxonomy, name, slug or name.lower().replace(" ", "-")),
            )
            conn.commit()
            return int(cursor.lastrowid or 0)
        except sqlite3.Error as e:
            conn.rollback()
            raise ContentStoreError(str(e), operation="create_term") from e
        finally:
            conn.close()

    def get_object_terms(self, record_id: int, taxonomy: str) -> builtins.list[int]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT tr.term_id FROM term_relationships tr
                JOIN terms t ON t.id = tr.term_id
                WHERE tr.post_id = ? AND t.taxonomy = ?
                ORDER BY tr.term_order ASC, tr.term_id ASC
            """,
                (record_id, taxonomy),
            ).fetchall()
            return [int(r["term_id"]) for r in rows]
        except sqlite3.Error as e:
            raise ContentStoreError(str(e), operation="get_object_terms") from e
        finally:
            conn.close()

    def set_object_terms(self, record_id: int, term_ids: Sequence[int], taxonomy: str) -> None:
        """Replace the record's terms in one taxonomy."""
        conn = self._get_conn()
        try:
            conn.execute(
                """
                DELETE FROM term_relationships
                WHERE post_id = ?
                  AND term_id IN (SELECT id FROM terms WHERE taxonomy = ?)
            """,
                (record_id, taxonomy),
            )
            for position, term_id in enumerate(dict.fromkeys(term_ids)):
                row = conn.execute(
                    "SELECT taxonomy FROM terms WHERE id = ?", (term_id,)
                ).fetchone()
                if row is None or row["taxonomy"] != taxonomy:
                    raise ContentStoreError(
                        f"Term {term_id} does not exist in taxonomy '{taxonomy}'",
                        operation="set_object_terms",
                    )
                conn.execute(
                    "INSERT INTO term_relationships (post_id, term_id, term_order) VALUES (?, ?, ?)",
                    (record_id, term_id, position),
                )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise ContentStoreError(str(e), operation="set_object_terms") from e
        except ContentStoreError:
            conn.rollback()
            raise
        finally:
            conn.close()

    # --- Metadata ---

    def get_meta(self, record_id: int) -> dict[str, builtins.list[str | None]]:
        """All metadata of a record, raw storage values, grouped by key in insertion order."""
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT meta_key, meta_value FROM post_meta WHERE post_id = ? ORDER BY meta_id ASC",
                (record_id,),
            ).fetchall()
        except sqlite3.Error as e:
            raise ContentStoreError(str(e), operation="get_meta") from e
        finally:
            conn.close()

        meta: dict[str, builtins.list[str | None]] = {}
        for row in rows:
            meta.setdefault(row["meta_key"], []).append(row["meta_value"])
        return meta

    def add_meta(self, record_id: int, key: str, value: Any) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "INSERT INTO post_meta (post_id, meta_key, meta_value) VALUES (?, ?, ?)",
                (record_id, key, serialize_meta_value(value)),
            )
            conn.commit()
            return int(cursor.lastrowid or 0)
        except sqlite3.Error as e:
            conn.rollback()
            raise ContentStoreError(str(e), operation="add_meta") from e
        finally:
            conn.close()

    # --- Featured image ---

    def get_thumbnail_id(self, record_id: int) -> int | None:
        values = self.get_meta(record_id).get(THUMBNAIL_META_KEY, [])
        for value in values:
            text = str(value or "")
            if text.isascii() and text.isdigit() and int(text) > 0:
                return int(text)
        return None

    def set_thumbnail(self, record_id: int, thumbnail_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "DELETE FROM post_meta WHERE post_id = ? AND meta_key = ?",
                (record_id, THUMBNAIL_META_KEY),
            )
            conn.execute(
                "INSERT INTO post_meta (post_id, meta_key, meta_value) VALUES (?, ?, ?)",
                (record_id, THUMBNAIL_META_KEY, str(thumbnail_id)),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise ContentStoreError(str(e), operation="set_thumbnail") from e
        finally:
            conn.close()

    def _row_to_record(self, row: dict[str, Any]) -> ContentRecord:
        return ContentRecord(
            id=int(row["id"]),
            post_type=row["post_type"],
            title=row["title"],
            content=row["content"],
            excerpt=row["excerpt"],
            status=row["status"],
            author_id=int(row["author_id"]),
            parent_id=int(row["parent_id"]),
            menu_order=int(row["menu_order"]),
            comment_status=row["comment_status"],
            ping_status=row["ping_status"],
            created_at=_parse_dt(row["created_at"]),
            updated_at=_parse_dt(row["updated_at"]),
        )


class SQLiteUserRepo(_SQLiteRepo):
    def get_by_id(self, user_id: int) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                return None
            return self._hydrate(conn, row)
        finally:
            conn.close()

    def get_by_login(self, login: str) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE login = ?", (login,)).fetchone()
            if not row:
                return None
            return self._hydrate(conn, row)
        finally:
            conn.close()

    def create(
        self,
        login: str,
        roles: Sequence[str],
        display_name: str = "",
    ) -> User:
        now = _now_iso()
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "INSERT INTO users (login, display_name, status, created_at) "
                "VALUES (?, ?, 'active', ?)",
                (login, display_name or login, now),
            )
            user_id = int(cursor.lastrowid or 0)
            for role in roles:
                conn.execute(
                    "INSERT INTO role_assignments (user_id, role, created_at) VALUES (?, ?, ?)",
                    (user_id, role, now),
                )
            conn.commit()
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return self._hydrate(conn, row)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def set_status(self, user_id: int, status: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("UPDATE users SET status = ? WHERE id = ?", (status, user_id))
            conn.commit()
        finally:
            conn.close()

    def list_all(self) -> list[User]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM users ORDER BY id ASC").fetchall()
            return [self._hydrate(conn, r) for r in rows]
        finally:
            conn.close()

    def _hydrate(self, conn: sqlite3.Connection, row: dict[str, Any]) -> User:
        role_rows = conn.execute(
            "SELECT role FROM role_assignments WHERE user_id = ? ORDER BY id ASC",
            (row["id"],),
        ).fetchall()
        return User(
            id=int(row["id"]),
            login=row["login"],
            display_name=row["display_name"],
            roles=[r["role"] for r in role_rows],
            status=row["status"],
            created_at=_parse_dt(row["created_at"]),
        )
