"""SQLite content store: novels, episodes, taxonomy, metadata and options."""

import json
import logging
import re
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from config.exceptions import DatabaseError
from models.enums import AccessType
from models.episode import Episode, Term
from models.novel import Novel

logger = logging.getLogger(__name__)

# SQL for creating all tables
_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS novels (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS novel_meta (
    novel_id INTEGER NOT NULL REFERENCES novels(id),
    meta_key TEXT NOT NULL,
    meta_value TEXT,
    PRIMARY KEY (novel_id, meta_key)
);

CREATE TABLE IF NOT EXISTS episodes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL DEFAULT '',
    content TEXT DEFAULT '',
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS episode_meta (
    episode_id INTEGER NOT NULL REFERENCES episodes(id),
    meta_key TEXT NOT NULL,
    meta_value TEXT,
    PRIMARY KEY (episode_id, meta_key)
);

CREATE TABLE IF NOT EXISTS terms (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    slug TEXT NOT NULL,
    taxonomy TEXT NOT NULL,
    UNIQUE (taxonomy, slug)
);

CREATE TABLE IF NOT EXISTS episode_terms (
    episode_id INTEGER NOT NULL REFERENCES episodes(id),
    term_id INTEGER NOT NULL REFERENCES terms(id),
    PRIMARY KEY (episode_id, term_id)
);

CREATE TABLE IF NOT EXISTS custom_fields (
    episode_id INTEGER NOT NULL REFERENCES episodes(id),
    field_name TEXT NOT NULL,
    value TEXT,
    PRIMARY KEY (episode_id, field_name)
);

CREATE TABLE IF NOT EXISTS options (
    name TEXT PRIMARY KEY,
    value TEXT
);

CREATE TABLE IF NOT EXISTS locks (
    name TEXT PRIMARY KEY,
    acquired_at TEXT NOT NULL
);
"""

# Indexes added via migration (idempotent)
_MIGRATION_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_episode_meta_key_value ON episode_meta(meta_key, meta_value)",
    "CREATE INDEX IF NOT EXISTS idx_episode_terms_term ON episode_terms(term_id)",
]

_LOCK_FORMAT = "%Y-%m-%d %H:%M:%S"


def slugify(name: str) -> str:
    """Lowercase, hyphen-separated slug for a term name."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.strip().lower())
    return slug.strip("-")


class Database:
    """SQLite implementation of the content store.

    Episode numbers, Patreon post ids and access terms are read through the
    configured field names and taxonomy, so an ``Episode`` returned from here
    is the same view the unlock engine reasons about.
    """

    supports_custom_fields = True

    def __init__(
        self,
        db_path: str | Path,
        episode_number_field: str = "episode_number",
        patreon_post_field: str = "patreon_post_id",
        access_taxonomy: str = "chapter-categories",
    ):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.episode_number_field = episode_number_field
        self.patreon_post_field = patreon_post_field
        self.access_taxonomy = access_taxonomy
        self._init_db()

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.sqlite_db_path,
            episode_number_field=settings.episode_number_field,
            patreon_post_field=settings.patreon_post_field,
            access_taxonomy=settings.access_taxonomy,
        )

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    def _init_db(self):
        with self._get_conn() as conn:
            conn.executescript(_CREATE_TABLES_SQL)
        self._migrate()

    def _migrate(self):
        """Apply idempotent schema migrations (indexes)."""
        with self._get_conn() as conn:
            for sql in _MIGRATION_SQL:
                try:
                    conn.execute(sql)
                except sqlite3.OperationalError as e:
                    logger.debug("Migration skipped (already applied): %s", e)

    # ---- Novel CRUD ----

    def create_novel(self, novel: Novel) -> int:
        with self._get_conn() as conn:
            cursor = conn.execute("INSERT INTO novels (title) VALUES (?)", (novel.title,))
            return cursor.lastrowid

    def get_novel(self, novel_id: int) -> Optional[Novel]:
        with self._get_conn() as conn:
            row = conn.execute("SELECT * FROM novels WHERE id = ?", (novel_id,)).fetchone()
            if not row:
                return None
            return Novel(
                id=row["id"], title=row["title"],
                created_at=row["created_at"], updated_at=row["updated_at"],
            )

    def list_novels(self) -> list[Novel]:
        with self._get_conn() as conn:
            rows = conn.execute("SELECT * FROM novels ORDER BY title COLLATE NOCASE").fetchall()
            return [
                Novel(id=r["id"], title=r["title"], created_at=r["created_at"], updated_at=r["updated_at"])
                for r in rows
            ]

    def get_novel_meta(self, novel_id: int, key: str) -> Optional[str]:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT meta_value FROM novel_meta WHERE novel_id = ? AND meta_key = ?",
                (novel_id, key),
            ).fetchone()
            return row["meta_value"] if row else None

    def set_novel_meta(self, novel_id: int, key: str, value: str) -> None:
        with self._get_conn() as conn:
            conn.execute(
                "INSERT INTO novel_meta (novel_id, meta_key, meta_value) VALUES (?, ?, ?) "
                "ON CONFLICT(novel_id, meta_key) DO UPDATE SET meta_value = excluded.meta_value",
                (novel_id, key, value),
            )

    def delete_novel_meta(self, novel_id: int, key: str) -> None:
        with self._get_conn() as conn:
            conn.execute(
                "DELETE FROM novel_meta WHERE novel_id = ? AND meta_key = ?",
                (novel_id, key),
            )

    # ---- Episode CRUD ----

    def create_episode(self, episode: Episode) -> int:
        """Insert an episode and its number, Patreon id and access term."""
        with self._get_conn() as conn:
            cursor = conn.execute(
                "INSERT INTO episodes (title, content) VALUES (?, ?)",
                (episode.title, episode.content),
            )
            episode_id = cursor.lastrowid
        if episode.episode_number is not None:
            self.set_episode_meta(episode_id, self.episode_number_field, str(episode.episode_number))
        if episode.patreon_post_id:
            self.set_episode_meta(episode_id, self.patreon_post_field, episode.patreon_post_id)
        if episode.access != AccessType.UNKNOWN:
            term = self.get_term_by("name", episode.access.term_name) or self.insert_term(episode.access.term_name)
            self.set_episode_terms(episode_id, [term.id])
        return episode_id

    def get_episode(self, episode_id: int) -> Optional[Episode]:
        with self._get_conn() as conn:
            row = conn.execute("SELECT * FROM episodes WHERE id = ?", (episode_id,)).fetchone()
            if not row:
                return None
            return self._row_to_episode(conn, row)

    def list_episodes(self) -> list[Episode]:
        with self._get_conn() as conn:
            rows = conn.execute("SELECT * FROM episodes ORDER BY id").fetchall()
            return [self._row_to_episode(conn, r) for r in rows]

    def find_episodes_by_meta(self, key: str, value: str, limit: Optional[int] = None) -> list[Episode]:
        sql = (
            "SELECT e.* FROM episodes e JOIN episode_meta m ON m.episode_id = e.id "
            "WHERE m.meta_key = ? AND m.meta_value = ? ORDER BY e.id"
        )
        params: tuple = (key, str(value))
        if limit is not None:
            sql += " LIMIT ?"
            params += (limit,)
        with self._get_conn() as conn:
            rows = conn.execute(sql, params).fetchall()
            return [self._row_to_episode(conn, r) for r in rows]

    def get_episodes_by_term(self, slug: str) -> list[Episode]:
        """Return all episodes carrying the access-taxonomy term with ``slug``."""
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT e.* FROM episodes e "
                "JOIN episode_terms et ON et.episode_id = e.id "
                "JOIN terms t ON t.id = et.term_id "
                "WHERE t.taxonomy = ? AND t.slug = ? ORDER BY e.id",
                (self.access_taxonomy, slug),
            ).fetchall()
            return [self._row_to_episode(conn, r) for r in rows]

    def search_episodes(self, text: str, limit: int = 5) -> list[Episode]:
        """Full-text style search over title and content (substring match)."""
        pattern = f"%{text}%"
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT * FROM episodes WHERE title LIKE ? OR content LIKE ? "
                "ORDER BY id DESC LIMIT ?",
                (pattern, pattern, limit),
            ).fetchall()
            return [self._row_to_episode(conn, r) for r in rows]

    def get_episode_meta(self, episode_id: int, key: str) -> Optional[str]:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT meta_value FROM episode_meta WHERE episode_id = ? AND meta_key = ?",
                (episode_id, key),
            ).fetchone()
            return row["meta_value"] if row else None

    def set_episode_meta(self, episode_id: int, key: str, value: str) -> None:
        with self._get_conn() as conn:
            conn.execute(
                "INSERT INTO episode_meta (episode_id, meta_key, meta_value) VALUES (?, ?, ?) "
                "ON CONFLICT(episode_id, meta_key) DO UPDATE SET meta_value = excluded.meta_value",
                (episode_id, key, value),
            )
            conn.execute(
                "UPDATE episodes SET updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (episode_id,),
            )

    def delete_episode_meta(self, episode_id: int, key: str) -> None:
        with self._get_conn() as conn:
            conn.execute(
                "DELETE FROM episode_meta WHERE episode_id = ? AND meta_key = ?",
                (episode_id, key),
            )

    def _row_to_episode(self, conn: sqlite3.Connection, row) -> Episode:
        meta = {
            m["meta_key"]: m["meta_value"]
            for m in conn.execute(
                "SELECT meta_key, meta_value FROM episode_meta WHERE episode_id = ? AND meta_key IN (?, ?)",
                (row["id"], self.episode_number_field, self.patreon_post_field),
            ).fetchall()
        }
        term_rows = conn.execute(
            "SELECT t.name FROM terms t JOIN episode_terms et ON et.term_id = t.id "
            "WHERE et.episode_id = ? AND t.taxonomy = ? ORDER BY t.id",
            (row["id"], self.access_taxonomy),
        ).fetchall()
        access = AccessType.UNKNOWN
        for t in term_rows:
            name = t["name"].lower()
            if name == AccessType.ADVANCE.value:
                access = AccessType.ADVANCE
            elif name == AccessType.FREE.value:
                access = AccessType.FREE
        return Episode(
            id=row["id"], title=row["title"], content=row["content"] or "",
            episode_number=_parse_int(meta.get(self.episode_number_field)),
            access=access,
            patreon_post_id=meta.get(self.patreon_post_field) or None,
            created_at=row["created_at"], updated_at=row["updated_at"],
        )

    # ---- Taxonomy ----

    def get_term_by(self, field: str, value: str) -> Optional[Term]:
        """Look up an access-taxonomy term by ``name`` (case-insensitive) or ``slug``."""
        if field == "name":
            sql = "SELECT * FROM terms WHERE taxonomy = ? AND name = ? COLLATE NOCASE"
        elif field == "slug":
            sql = "SELECT * FROM terms WHERE taxonomy = ? AND slug = ?"
        else:
            raise ValueError(f"Unsupported term field: {field}")
        with self._get_conn() as conn:
            row = conn.execute(sql, (self.access_taxonomy, value)).fetchone()
            if not row:
                return None
            return Term(id=row["id"], name=row["name"], slug=row["slug"], taxonomy=row["taxonomy"])

    def insert_term(self, name: str) -> Term:
        slug = slugify(name)
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    "INSERT INTO terms (name, slug, taxonomy) VALUES (?, ?, ?)",
                    (name, slug, self.access_taxonomy),
                )
                term_id = cursor.lastrowid
        except sqlite3.IntegrityError as e:
            raise DatabaseError(f"Could not create term '{name}'", {"slug": slug}) from e
        logger.info("Created term '%s' in %s", name, self.access_taxonomy)
        return Term(id=term_id, name=name, slug=slug, taxonomy=self.access_taxonomy)

    def set_episode_terms(self, episode_id: int, term_ids: list[int]) -> None:
        """Replace the episode's access-taxonomy terms with ``term_ids``."""
        with self._get_conn() as conn:
            conn.execute(
                "DELETE FROM episode_terms WHERE episode_id = ? AND term_id IN "
                "(SELECT id FROM terms WHERE taxonomy = ?)",
                (episode_id, self.access_taxonomy),
            )
            conn.executemany(
                "INSERT INTO episode_terms (episode_id, term_id) VALUES (?, ?)",
                [(episode_id, term_id) for term_id in term_ids],
            )

    def get_episode_terms(self, episode_id: int) -> list[Term]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT t.* FROM terms t JOIN episode_terms et ON et.term_id = t.id "
                "WHERE et.episode_id = ? AND t.taxonomy = ? ORDER BY t.id",
                (episode_id, self.access_taxonomy),
            ).fetchall()
            return [
                Term(id=r["id"], name=r["name"], slug=r["slug"], taxonomy=r["taxonomy"])
                for r in rows
            ]

    # ---- Custom fields ----

    def get_custom_field(self, episode_id: int, field_name: str) -> Optional[str]:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT value FROM custom_fields WHERE episode_id = ? AND field_name = ?",
                (episode_id, field_name),
            ).fetchone()
            return row["value"] if row else None

    def set_custom_field(self, episode_id: int, field_name: str, value: str) -> None:
        with self._get_conn() as conn:
            conn.execute(
                "INSERT INTO custom_fields (episode_id, field_name, value) VALUES (?, ?, ?) "
                "ON CONFLICT(episode_id, field_name) DO UPDATE SET value = excluded.value",
                (episode_id, field_name, value),
            )

    # ---- Options ----

    def get_option(self, name: str, default: Any = None) -> Any:
        with self._get_conn() as conn:
            row = conn.execute("SELECT value FROM options WHERE name = ?", (name,)).fetchone()
        if not row or row["value"] is None:
            return default
        return json.loads(row["value"])

    def set_option(self, name: str, value: Any) -> None:
        with self._get_conn() as conn:
            conn.execute(
                "INSERT INTO options (name, value) VALUES (?, ?) "
                "ON CONFLICT(name) DO UPDATE SET value = excluded.value",
                (name, json.dumps(value, ensure_ascii=False)),
            )

    # ---- Advisory locks ----

    def try_acquire_lock(self, name: str, stale_after_seconds: int, now: Optional[datetime] = None) -> bool:
        """Take the named lock unless a fresh holder exists.

        A lock older than ``stale_after_seconds`` is assumed abandoned and
        taken over.
        """
        now = now or datetime.now()
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute("SELECT acquired_at FROM locks WHERE name = ?", (name,)).fetchone()
            if row:
                acquired_at = datetime.strptime(row["acquired_at"], _LOCK_FORMAT)
                if now - acquired_at < timedelta(seconds=stale_after_seconds):
                    conn.rollback()
                    return False
                logger.warning("Taking over stale lock '%s' (acquired %s)", name, row["acquired_at"])
            conn.execute(
                "INSERT OR REPLACE INTO locks (name, acquired_at) VALUES (?, ?)",
                (name, now.strftime(_LOCK_FORMAT)),
            )
            conn.commit()
            return True
        finally:
            conn.close()

    def release_lock(self, name: str, acquired_at: Optional[datetime] = None) -> None:
        """Drop the named lock.

        With ``acquired_at``, only the holder that took the lock at that time
        releases it; a lock taken over since then is left alone.
        """
        with self._get_conn() as conn:
            if acquired_at is None:
                conn.execute("DELETE FROM locks WHERE name = ?", (name,))
                return
            cursor = conn.execute(
                "DELETE FROM locks WHERE name = ? AND acquired_at = ?",
                (name, acquired_at.strftime(_LOCK_FORMAT)),
            )
            if cursor.rowcount == 0:
                logger.warning("Lock '%s' was taken over by another run; not releasing", name)


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None
