from __future__ import annotations

import shutil
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from instabill.domain.errors import PersistenceWriteError


class SqliteKeyValueStore:
    """Durable key-value store backed by a single SQLite table.

    Values are opaque text (callers store JSON). Reads of missing keys return
    None; write failures surface as PersistenceWriteError.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def init_db(self) -> None:
        self.run_migrations()

    def run_migrations(self) -> None:
        conn = self._conn()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_kv),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise RuntimeError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_kv(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
        )

    def get(self, key: str) -> Optional[str]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT value FROM kv_store WHERE key=?", (key,))
        r = cur.fetchone()
        conn.close()
        if not r:
            return None
        return str(r[0])

    def set(self, key: str, value: str) -> None:
        try:
            conn = self._conn()
        except sqlite3.Error as e:
            raise PersistenceWriteError(f"Could not open store for '{key}': {e}") from e
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """,
                (key, value),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceWriteError(f"Could not write '{key}': {e}") from e
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        try:
            conn = self._conn()
        except sqlite3.Error as e:
            raise PersistenceWriteError(f"Could not open store for '{key}': {e}") from e
        try:
            conn.execute("DELETE FROM kv_store WHERE key=?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceWriteError(f"Could not delete '{key}': {e}") from e
        finally:
            conn.close()

    def keys(self) -> list[str]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT key FROM kv_store ORDER BY key")
        rows = cur.fetchall()
        conn.close()
        return [str(r[0]) for r in rows]

    def integrity_check(self) -> str:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("PRAGMA integrity_check")
        r = cur.fetchone()
        conn.close()
        return str(r[0]) if r else "unknown"
