import argparse
import asyncio
import datetime
import logging
import secrets
import shutil

import uvicorn

from config import YamlConfig, load_settings
from db import DuplicateEmailError, GoalRepository, UserRepository, WorkoutRepository
from rest_api import FitnessAPI

log = logging.getLogger("fittrack.cli")

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo1234"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def serve(yaml_path: str) -> None:
    settings = load_settings(yaml_path)
    configure_logging(settings.log_level)
    api = FitnessAPI(settings)
    log.info("Starting Fittrack API on %s:%s", settings.host, settings.port)
    uvicorn.run(api.app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


def init_config(yaml_path: str) -> None:
    config = YamlConfig(yaml_path)
    data = config.load()
    if not data.get("jwt_secret"):
        data["jwt_secret"] = secrets.token_urlsafe(32)
    data.setdefault("database_url", "sqlite:///fittrack.db")
    data.setdefault("port", 5000)
    config.save(data)
    print(f"Settings written to {yaml_path}")


async def _seed_demo(db_path: str) -> bool:
    users = UserRepository(db_path)
    try:
        user = await users.create("Demo User", DEMO_EMAIL, DEMO_PASSWORD)
    except DuplicateEmailError:
        return False
    workouts = WorkoutRepository(db_path)
    goals = GoalRepository(db_path)
    today = datetime.date.today()
    await workouts.create_for_user(
        user["id"],
        {
            "date": today - datetime.timedelta(days=2),
            "type": "strength",
            "name": "Upper body",
            "duration": 45,
            "calories_burned": 320.0,
            "exercises": [
                {"name": "Bench Press", "sets": 5, "reps": 5, "weight": 80.0},
                {"name": "Pull Up", "sets": 3, "reps": 8},
            ],
        },
    )
    await workouts.create_for_user(
        user["id"],
        {
            "date": today,
            "type": "cardio",
            "name": "Morning run",
            "duration": 30,
            "calories_burned": 280.0,
            "exercises": [{"name": "Run", "duration": 30.0, "distance": 5.0}],
        },
    )
    await goals.create_for_user(
        user["id"],
        {
            "name": "Run 50 km",
            "type": "distance",
            "target": 50.0,
            "unit": "km",
            "deadline": today + datetime.timedelta(days=30),
            "progress": 5.0,
        },
    )
    await goals.create_for_user(
        user["id"],
        {
            "name": "12 workouts this month",
            "type": "workout",
            "target": 12.0,
            "unit": "workouts",
            "deadline": today + datetime.timedelta(days=21),
            "progress": 2.0,
        },
    )
    return True


def demo_data(yaml_path: str) -> None:
    """Create a demo account with sample workouts and goals if it is missing."""
    settings = load_settings(yaml_path)
    if asyncio.run(_seed_demo(settings.db_path)):
        print(f"Demo account created: {DEMO_EMAIL} / {DEMO_PASSWORD}")
    else:
        print("Demo account already exists")


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def main() -> None:
    parser = argparse.ArgumentParser(description="Fittrack utility commands")
    sub = parser.add_subparsers(dest="cmd", required=True)

    srv = sub.add_parser("serve")
    srv.add_argument("--yaml", default="settings.yaml")

    init = sub.add_parser("init-config")
    init.add_argument("--yaml", default="settings.yaml")

    demo = sub.add_parser("demo")
    demo.add_argument("--yaml", default="settings.yaml")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--yaml", default="settings.yaml")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--yaml", default="settings.yaml")
    rst.add_argument("--in", dest="src", default="backup.db")

    args = parser.parse_args()

    if args.cmd == "serve":
        serve(args.yaml)
    elif args.cmd == "init-config":
        init_config(args.yaml)
    elif args.cmd == "demo":
        demo_data(args.yaml)
    elif args.cmd == "backup":
        backup_db(load_settings(args.yaml).db_path, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, load_settings(args.yaml).db_path)


if __name__ == "__main__":
    main()
