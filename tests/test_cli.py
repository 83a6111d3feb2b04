import os
import sys
import asyncio
import yaml

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from cli import DEMO_EMAIL, DEMO_PASSWORD, _seed_demo, backup_db, init_config, restore_db
from db import GoalRepository, UserRepository, WorkoutRepository


def test_demo_seed_runs_once(tmp_path):
    db_file = str(tmp_path / "demo.db")
    assert asyncio.run(_seed_demo(db_file)) is True
    assert asyncio.run(_seed_demo(db_file)) is False

    async def check():
        user = await UserRepository(db_file).authenticate(DEMO_EMAIL, DEMO_PASSWORD)
        workouts = await WorkoutRepository(db_file).list_for_user(user["id"])
        goals = await GoalRepository(db_file).list_for_user(user["id"])
        return workouts, goals

    workouts, goals = asyncio.run(check())
    assert len(workouts) == 2
    assert workouts[0]["name"] == "Morning run"
    assert [g["name"] for g in goals] == ["12 workouts this month", "Run 50 km"]


def test_backup_and_restore(tmp_path):
    db_file = tmp_path / "fit.db"
    backup = tmp_path / "backup.db"
    db_file.write_bytes(b"original")
    backup_db(str(db_file), str(backup))
    db_file.write_bytes(b"changed")
    restore_db(str(backup), str(db_file))
    assert db_file.read_bytes() == b"original"


def test_init_config_keeps_existing_secret(tmp_path, monkeypatch):
    monkeypatch.delenv("ENCRYPT_SETTINGS", raising=False)
    path = tmp_path / "settings.yaml"
    init_config(str(path))
    first = yaml.safe_load(path.read_text())
    assert first["jwt_secret"]
    assert first["port"] == 5000
    init_config(str(path))
    assert yaml.safe_load(path.read_text())["jwt_secret"] == first["jwt_secret"]
