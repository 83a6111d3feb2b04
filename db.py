import sqlite3
import aiosqlite
import os
import datetime
import json
import uuid
from contextlib import contextmanager, asynccontextmanager
from typing import List, Tuple, Optional

from werkzeug.security import generate_password_hash, check_password_hash


class NotFoundError(ValueError):
    """Raised when a record is missing or not owned by the caller."""


class DuplicateEmailError(ValueError):
    """Raised when an email address is already registered."""


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLES = (
        """CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );""",
        """CREATE TABLE IF NOT EXISTS workouts (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    type TEXT NOT NULL,
                    name TEXT NOT NULL,
                    duration INTEGER NOT NULL,
                    calories_burned REAL,
                    notes TEXT,
                    exercises TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
                );""",
        """CREATE TABLE IF NOT EXISTS goals (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    type TEXT NOT NULL,
                    target REAL NOT NULL,
                    unit TEXT NOT NULL,
                    deadline TEXT NOT NULL,
                    progress REAL NOT NULL DEFAULT 0,
                    completed INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
                );""",
    )

    _INDEXES = (
        "CREATE INDEX IF NOT EXISTS idx_workouts_user_date ON workouts (user_id, date);",
        "CREATE INDEX IF NOT EXISTS idx_goals_user_deadline ON goals (user_id, deadline);",
    )

    def __init__(self, db_path: str = "fittrack.db") -> None:
        self._db_path = db_path
        directory = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(directory, exist_ok=True)
        self._ensure_schema()
        self._ensure_indexes()

    @property
    def db_path(self) -> str:
        return self._db_path

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for sql in self._TABLES:
                conn.execute(sql)

    def _ensure_indexes(self) -> None:
        with self._connection() as conn:
            for sql in self._INDEXES:
                conn.execute(sql)


class AsyncDatabase(Database):
    """Provides asynchronous connection management."""

    @asynccontextmanager
    async def _async_connection(self):
        conn = await aiosqlite.connect(self._db_path)
        conn.row_factory = aiosqlite.Row
        try:
            await conn.execute("PRAGMA foreign_keys=on;")
            yield conn
            await conn.commit()
        finally:
            await conn.close()


class AsyncBaseRepository(AsyncDatabase):
    """Asynchronous repository helpers on top of aiosqlite."""

    async def execute(self, query: str, params: Tuple = ()) -> int:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            return cursor.lastrowid

    async def fetch_all(self, query: str, params: Tuple = ()) -> List[aiosqlite.Row]:
        async with self._async_connection() as conn:
            cursor = await conn.execute(query, params)
            return await cursor.fetchall()

    async def fetch_one(self, query: str, params: Tuple = ()) -> Optional[aiosqlite.Row]:
        rows = await self.fetch_all(query, params)
        return rows[0] if rows else None

    async def ping(self) -> None:
        await self.fetch_all("SELECT 1;")


class UserRepository(AsyncBaseRepository):
    """Repository for user accounts.

    Passwords are stored as salted werkzeug hashes. Records returned by the
    public methods never contain the hash.
    """

    @staticmethod
    def _to_public(row: aiosqlite.Row) -> dict:
        return {
            "id": row["id"],
            "name": row["name"],
            "email": row["email"],
            "createdAt": row["created_at"],
        }

    async def _email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        row = await self.fetch_one("SELECT id FROM users WHERE email = ?;", (email,))
        return row is not None and row["id"] != exclude_id

    async def create(self, name: str, email: str, password: str) -> dict:
        email = normalize_email(email)
        if await self._email_taken(email):
            raise DuplicateEmailError("email already registered")
        user_id = uuid.uuid4().hex
        try:
            async with self._async_connection() as conn:
                await conn.execute(
                    "INSERT INTO users (id, name, email, password_hash, created_at) VALUES (?, ?, ?, ?, ?);",
                    (user_id, name, email, generate_password_hash(password), _now()),
                )
        except sqlite3.IntegrityError:
            raise DuplicateEmailError("email already registered")
        return await self.fetch(user_id)

    async def fetch(self, user_id: str) -> dict:
        row = await self.fetch_one(
            "SELECT id, name, email, created_at FROM users WHERE id = ?;", (user_id,)
        )
        if row is None:
            raise NotFoundError("user not found")
        return self._to_public(row)

    async def fetch_by_email(self, email: str) -> Optional[dict]:
        """Return the full row for ``email`` including the password hash."""
        row = await self.fetch_one(
            "SELECT id, name, email, password_hash, created_at FROM users WHERE email = ?;",
            (normalize_email(email),),
        )
        return dict(row) if row is not None else None

    async def authenticate(self, email: str, password: str) -> Optional[dict]:
        row = await self.fetch_by_email(email)
        if row is None or not check_password_hash(row["password_hash"], password):
            return None
        return {
            "id": row["id"],
            "name": row["name"],
            "email": row["email"],
            "createdAt": row["created_at"],
        }

    async def update(
        self,
        user_id: str,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> dict:
        fields = []
        params: list[str] = []
        if name is not None:
            fields.append("name = ?")
            params.append(name)
        if email is not None:
            email = normalize_email(email)
            if await self._email_taken(email, exclude_id=user_id):
                raise DuplicateEmailError("email already registered")
            fields.append("email = ?")
            params.append(email)
        if password is not None:
            fields.append("password_hash = ?")
            params.append(generate_password_hash(password))
        if fields:
            params.append(user_id)
            try:
                async with self._async_connection() as conn:
                    cursor = await conn.execute(
                        f"UPDATE users SET {', '.join(fields)} WHERE id = ?;",
                        tuple(params),
                    )
                    if cursor.rowcount == 0:
                        raise NotFoundError("user not found")
            except sqlite3.IntegrityError:
                raise DuplicateEmailError("email already registered")
        return await self.fetch(user_id)


class OwnedRecordRepository(AsyncBaseRepository):
    """Base repository for records owned by exactly one user.

    Every method takes the owner's id as its first argument and filters on
    it, so a record owned by someone else behaves exactly like a missing one.
    """

    table = ""
    label = "record"
    columns: Tuple[str, ...] = ()
    json_columns: Tuple[str, ...] = ()
    defaults: dict = {}
    order_by = "created_at"

    def _select(self) -> str:
        return ", ".join(("id", "user_id", *self.columns, "created_at"))

    def _encode(self, column: str, value):
        if column in self.json_columns:
            return json.dumps(list(value or []))
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (datetime.date, datetime.datetime)):
            return value.isoformat()
        return value

    def _to_record(self, row: aiosqlite.Row) -> dict:
        raise NotImplementedError

    def _columns_only(self, fields: dict) -> dict:
        return {k: v for k, v in fields.items() if k in self.columns}

    def _not_found(self) -> NotFoundError:
        return NotFoundError(f"{self.label} not found")

    async def _fetch_in(self, conn, user_id: str, record_id: str) -> dict:
        cursor = await conn.execute(
            f"SELECT {self._select()} FROM {self.table} WHERE id = ? AND user_id = ?;",
            (record_id, user_id),
        )
        row = await cursor.fetchone()
        if row is None:
            raise self._not_found()
        return self._to_record(row)

    async def list_for_user(self, user_id: str) -> List[dict]:
        rows = await self.fetch_all(
            f"SELECT {self._select()} FROM {self.table} WHERE user_id = ? ORDER BY {self.order_by};",
            (user_id,),
        )
        return [self._to_record(r) for r in rows]

    async def fetch_for_user(self, user_id: str, record_id: str) -> dict:
        async with self._async_connection() as conn:
            return await self._fetch_in(conn, user_id, record_id)

    async def create_for_user(self, user_id: str, fields: dict) -> dict:
        data = {**self.defaults, **self._columns_only(fields)}
        record_id = uuid.uuid4().hex
        cols = ["id", "user_id", *data.keys(), "created_at"]
        params = [record_id, user_id]
        params.extend(self._encode(c, v) for c, v in data.items())
        params.append(_now())
        placeholders = ", ".join("?" for _ in cols)
        async with self._async_connection() as conn:
            await conn.execute(
                f"INSERT INTO {self.table} ({', '.join(cols)}) VALUES ({placeholders});",
                tuple(params),
            )
            return await self._fetch_in(conn, user_id, record_id)

    async def update_for_user(self, user_id: str, record_id: str, fields: dict) -> dict:
        data = self._columns_only(fields)
        async with self._async_connection() as conn:
            if data:
                assignments = ", ".join(f"{c} = ?" for c in data)
                params = [self._encode(c, v) for c, v in data.items()]
                params.extend([record_id, user_id])
                cursor = await conn.execute(
                    f"UPDATE {self.table} SET {assignments} WHERE id = ? AND user_id = ?;",
                    tuple(params),
                )
                if cursor.rowcount == 0:
                    raise self._not_found()
            return await self._fetch_in(conn, user_id, record_id)

    async def delete_for_user(self, user_id: str, record_id: str) -> None:
        async with self._async_connection() as conn:
            cursor = await conn.execute(
                f"DELETE FROM {self.table} WHERE id = ? AND user_id = ?;",
                (record_id, user_id),
            )
            if cursor.rowcount == 0:
                raise self._not_found()


class WorkoutRepository(OwnedRecordRepository):
    """Repository for workouts and their embedded exercises."""

    table = "workouts"
    label = "workout"
    columns = (
        "date",
        "type",
        "name",
        "duration",
        "calories_burned",
        "notes",
        "exercises",
    )
    json_columns = ("exercises",)
    defaults = {"exercises": []}
    order_by = "date DESC, created_at DESC"

    def _to_record(self, row: aiosqlite.Row) -> dict:
        return {
            "id": row["id"],
            "user": row["user_id"],
            "date": row["date"],
            "type": row["type"],
            "name": row["name"],
            "duration": int(row["duration"]),
            "caloriesBurned": row["calories_burned"],
            "notes": row["notes"],
            "exercises": json.loads(row["exercises"] or "[]"),
            "createdAt": row["created_at"],
        }


class GoalRepository(OwnedRecordRepository):
    """Repository for goal management."""

    table = "goals"
    label = "goal"
    columns = (
        "name",
        "type",
        "target",
        "unit",
        "deadline",
        "progress",
        "completed",
    )
    defaults = {"progress": 0.0, "completed": False}
    order_by = "deadline ASC, created_at ASC"

    def _to_record(self, row: aiosqlite.Row) -> dict:
        return {
            "id": row["id"],
            "user": row["user_id"],
            "name": row["name"],
            "type": row["type"],
            "target": float(row["target"]),
            "unit": row["unit"],
            "deadline": row["deadline"],
            "progress": float(row["progress"]),
            "completed": bool(row["completed"]),
            "createdAt": row["created_at"],
        }


