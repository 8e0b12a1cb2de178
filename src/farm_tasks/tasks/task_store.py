# src/farm_tasks/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from datetime import date, datetime, timedelta
from pathlib import Path

from .task_models import PendingTask, Todo

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 500


def _day_bounds_ms(day: date) -> tuple[int, int]:
    """[start, end) of a local calendar day in epoch milliseconds."""
    start = datetime.combine(day, datetime.min.time())
    end = start + timedelta(days=1)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000)


class TaskStore:
    """
    SQLite store for the daily checklist (todos) and the alert queue (pending tasks).

    Every mutating call commits before returning, so an acknowledgment is never
    lost to a crash or restart.

    Deduplication is NOT enforced here; the reconciler checks before it adds.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info(
            "TaskStore ready db=%s todos=%s pending=%s",
            self._db_path,
            self.count_todos(),
            self.count_pending_tasks(),
        )

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA synchronous=FULL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS todos (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task TEXT NOT NULL,
                    due_date TEXT NOT NULL,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    is_automatic INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS pending_tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    action_url TEXT NOT NULL DEFAULT '',
                    timestamp INTEGER NOT NULL
                )
                """
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_todos_task_due ON todos(task, due_date)")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_pending_title_ts ON pending_tasks(title, timestamp)"
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_todo(row: sqlite3.Row) -> Todo:
        return Todo(
            id=int(row["id"]),
            task=str(row["task"]),
            due_date=str(row["due_date"]),
            is_completed=bool(row["is_completed"]),
            is_automatic=bool(row["is_automatic"]),
        )

    @staticmethod
    def _row_to_pending(row: sqlite3.Row) -> PendingTask:
        return PendingTask(
            id=int(row["id"]),
            title=str(row["title"]),
            action_url=str(row["action_url"] or ""),
            timestamp=int(row["timestamp"]),
        )

    def _count(self, table: str) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
            return int(n)
        finally:
            conn.close()

    # ---- todos ----

    def count_todos(self) -> int:
        return self._count("todos")

    def add_todo(self, task: str, due_date: str, is_automatic: bool = False) -> Todo:
        if not task or not task.strip():
            raise ValueError("task is required")

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO todos(task, due_date, is_completed, is_automatic, created_at)
                VALUES (?, ?, 0, ?, ?)
                """,
                (task, due_date, int(bool(is_automatic)), time.time()),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for todos insert")
            logger.debug("Todo added id=%s due=%s auto=%s task=%r", rowid, due_date, is_automatic, task)
            return Todo(
                id=int(rowid),
                task=task,
                due_date=due_date,
                is_completed=False,
                is_automatic=bool(is_automatic),
            )
        finally:
            conn.close()

    def toggle_todo(self, todo_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE todos SET is_completed = 1 - is_completed WHERE id = ?",
                (int(todo_id),),
            )
            conn.commit()
        finally:
            conn.close()

    def remove_todo(self, todo_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM todos WHERE id = ?", (int(todo_id),))
            conn.commit()
        finally:
            conn.close()

    def get_todo(self, todo_id: int) -> Todo | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM todos WHERE id = ?", (int(todo_id),)).fetchone()
            return self._row_to_todo(row) if row else None
        finally:
            conn.close()

    def find_todo(self, task: str, due_date: str) -> Todo | None:
        """Oldest todo with exactly this title for the given day."""
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM todos WHERE task = ? AND due_date = ? ORDER BY id ASC LIMIT 1",
                (task, due_date),
            ).fetchone()
            return self._row_to_todo(row) if row else None
        finally:
            conn.close()

    def list_todos(self, due_date: str | None = None) -> list[Todo]:
        conn = self._get_conn()
        try:
            if due_date is None:
                rows = conn.execute("SELECT * FROM todos ORDER BY id ASC").fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM todos WHERE due_date = ? ORDER BY id ASC",
                    (due_date,),
                ).fetchall()
            return [self._row_to_todo(r) for r in rows]
        finally:
            conn.close()

    # ---- pending tasks ----

    def count_pending_tasks(self) -> int:
        return self._count("pending_tasks")

    def add_pending_task(
        self, title: str, action_url: str, now_ts: float | None = None
    ) -> PendingTask:
        if now_ts is None:
            now_ts = time.time()
        timestamp = int(now_ts * 1000)

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "INSERT INTO pending_tasks(title, action_url, timestamp) VALUES (?, ?, ?)",
                (title, action_url, timestamp),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for pending_tasks insert")
            logger.debug("Pending task added id=%s title=%r url=%s", rowid, title, action_url)
            return PendingTask(id=int(rowid), title=title, action_url=action_url, timestamp=timestamp)
        finally:
            conn.close()

    def remove_pending_task(self, pending_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM pending_tasks WHERE id = ?", (int(pending_id),))
            conn.commit()
        finally:
            conn.close()

    def get_pending_task(self, pending_id: int) -> PendingTask | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM pending_tasks WHERE id = ?", (int(pending_id),)
            ).fetchone()
            return self._row_to_pending(row) if row else None
        finally:
            conn.close()

    def find_pending_task(self, title: str, day: date) -> PendingTask | None:
        """Pending task with this title created on the given local day."""
        start_ms, end_ms = _day_bounds_ms(day)
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT *
                FROM pending_tasks
                WHERE title = ?
                  AND timestamp >= ?
                  AND timestamp < ?
                ORDER BY id ASC
                    LIMIT 1
                """,
                (title, start_ms, end_ms),
            ).fetchone()
            return self._row_to_pending(row) if row else None
        finally:
            conn.close()

    def find_pending_by_action_url(self, action_url: str, day: date) -> PendingTask | None:
        start_ms, end_ms = _day_bounds_ms(day)
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT *
                FROM pending_tasks
                WHERE action_url = ?
                  AND timestamp >= ?
                  AND timestamp < ?
                ORDER BY id ASC
                    LIMIT 1
                """,
                (action_url, start_ms, end_ms),
            ).fetchone()
            return self._row_to_pending(row) if row else None
        finally:
            conn.close()

    def list_pending_tasks(self) -> list[PendingTask]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM pending_tasks ORDER BY id ASC").fetchall()
            return [self._row_to_pending(r) for r in rows]
        finally:
            conn.close()

    # ---- maintenance ----

    def clear_all_tasks(self) -> None:
        """Empty both collections in a single transaction."""
        conn = self._get_conn()
        try:
            with conn:
                conn.execute("DELETE FROM todos")
                conn.execute("DELETE FROM pending_tasks")
        finally:
            conn.close()
        logger.info("TaskStore cleared (todos + pending tasks)")

    def run_maintenance(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> bool:
        """
        Startup growth guard: wipe everything when either collection exceeds max_entries.

        Returns True if the store was wiped.
        """
        todos = self.count_todos()
        pending = self.count_pending_tasks()
        if todos <= max_entries and pending <= max_entries:
            return False

        logger.warning(
            "TaskStore over limit (todos=%s pending=%s max=%s); clearing all tasks",
            todos,
            pending,
            max_entries,
        )
        self.clear_all_tasks()
        return True
