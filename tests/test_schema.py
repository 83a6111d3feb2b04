import os
import sqlite3
import sys
import asyncio

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import Database, UserRepository, WorkoutRepository


class TestSchema:
    def test_creates_tables_and_indexes(self, tmp_path):
        db_file = tmp_path / "test.db"
        Database(str(db_file))
        conn = sqlite3.connect(str(db_file))
        tables = {
            r[0]
            for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        indexes = {
            r[0]
            for r in conn.execute("SELECT name FROM sqlite_master WHERE type='index'")
        }
        conn.close()
        assert {"users", "workouts", "goals"} <= tables
        assert "idx_workouts_user_date" in indexes
        assert "idx_goals_user_deadline" in indexes

    def test_reopening_keeps_rows_and_references(self, tmp_path):
        db_file = str(tmp_path / "test.db")

        async def seed():
            user = await UserRepository(db_file).create("Ann", "ann@example.com", "secret1")
            await WorkoutRepository(db_file).create_for_user(
                user["id"],
                {"date": "2024-05-01", "type": "cardio", "name": "Run", "duration": 30},
            )
            return user

        user = asyncio.run(seed())
        Database(db_file)

        async def reopen():
            workouts = WorkoutRepository(db_file)
            await workouts.create_for_user(
                user["id"],
                {"date": "2024-05-02", "type": "cardio", "name": "Ride", "duration": 60},
            )
            return await workouts.list_for_user(user["id"])

        assert [w["name"] for w in asyncio.run(reopen())] == ["Ride", "Run"]

        conn = sqlite3.connect(db_file)
        refs = {row[2] for row in conn.execute("PRAGMA foreign_key_list(workouts)")}
        conn.close()
        assert refs == {"users"}
