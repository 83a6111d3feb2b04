import os
import sys
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from stats_service import StatisticsService


def _workout(date: str, wtype: str = "cardio", duration: int = 30, calories=None, created="") -> dict:
    return {
        "id": f"{date}-{wtype}-{created}",
        "date": date,
        "type": wtype,
        "name": wtype.title(),
        "duration": duration,
        "caloriesBurned": calories,
        "createdAt": created,
    }


class StatisticsServiceTest(unittest.TestCase):
    def setUp(self) -> None:
        self.end = datetime.date(2024, 5, 7)
        self.workouts = [
            _workout("2024-05-07", "strength", 45, 300.0),
            _workout("2024-05-07", "cardio", 15, 120.5),
            _workout("2024-05-03", "cardio", 30),
            _workout("2024-04-20", "flexibility", 60, 100.0),
        ]
        self.goals = [
            {"name": "Far", "target": 10, "progress": 1, "deadline": "2024-09-01", "completed": False},
            {"name": "Done", "target": 5, "progress": 5, "deadline": "2024-05-10", "completed": True},
            {"name": "Near", "target": 10, "progress": 6, "deadline": "2024-06-01", "completed": False},
        ]
        self.stats = StatisticsService(self.workouts, self.goals)

    def test_goal_percentage(self) -> None:
        self.assertEqual(StatisticsService.goal_percentage({"target": 10, "progress": 0}), 0)
        self.assertEqual(StatisticsService.goal_percentage({"target": 10, "progress": 6}), 60)
        self.assertEqual(StatisticsService.goal_percentage({"target": 3, "progress": 1}), 33)
        self.assertEqual(StatisticsService.goal_percentage({"target": 10, "progress": 15}), 150)
        self.assertEqual(StatisticsService.goal_percentage({"target": 0, "progress": 5}), 0)

    def test_daily_activity(self) -> None:
        daily = self.stats.daily_activity(end=self.end)
        self.assertEqual(len(daily), 7)
        self.assertEqual(daily[0]["date"], "2024-05-01")
        self.assertEqual(daily[-1]["date"], "2024-05-07")
        self.assertEqual(daily[-1]["day"], "Tue")
        self.assertEqual(daily[-1]["minutes"], 60)
        self.assertAlmostEqual(daily[-1]["calories"], 420.5)
        self.assertEqual(daily[2]["minutes"], 30)
        self.assertEqual(daily[1]["minutes"], 0)

    def test_activity_summary(self) -> None:
        summary = self.stats.activity_summary(end=self.end)
        self.assertEqual(summary["workouts"], 3)
        self.assertEqual(summary["minutes"], 90)
        self.assertEqual(summary["calories"], 420.5)
        self.assertEqual(summary["active_days"], 2)
        self.assertEqual(summary["avg_minutes"], 45)

    def test_empty_summary(self) -> None:
        summary = StatisticsService().activity_summary(end=self.end)
        self.assertEqual(summary["workouts"], 0)
        self.assertEqual(summary["avg_minutes"], 0)

    def test_type_breakdown(self) -> None:
        self.assertEqual(
            self.stats.type_breakdown(),
            [
                {"type": "strength", "count": 1},
                {"type": "cardio", "count": 2},
                {"type": "flexibility", "count": 1},
            ],
        )

    def test_recent_workouts(self) -> None:
        recent = self.stats.recent_workouts(limit=2)
        self.assertEqual([w["date"] for w in recent], ["2024-05-07", "2024-05-07"])
        self.assertEqual(len(self.stats.recent_workouts()), 4)

    def test_upcoming_goals(self) -> None:
        self.assertEqual([g["name"] for g in self.stats.upcoming_goals()], ["Near", "Far"])
        self.assertEqual(
            [g["name"] for g in self.stats.upcoming_goals(include_completed=True)],
            ["Done", "Near", "Far"],
        )

    def test_filter_workouts(self) -> None:
        self.workouts[2]["notes"] = "Easy recovery jog"
        self.assertEqual(
            [w["date"] for w in self.stats.filter_workouts(workout_type="cardio")],
            ["2024-05-07", "2024-05-03"],
        )
        self.assertEqual(
            [w["type"] for w in self.stats.filter_workouts(search="STRENGTH")], ["strength"]
        )
        self.assertEqual(
            [w["date"] for w in self.stats.filter_workouts(search="recovery")], ["2024-05-03"]
        )
        self.assertEqual(self.stats.filter_workouts(search="recovery", workout_type="strength"), [])
        self.assertEqual(
            [w["date"] for w in self.stats.filter_workouts()],
            ["2024-05-07", "2024-05-07", "2024-05-03", "2024-04-20"],
        )

    def test_filter_goals(self) -> None:
        self.goals[0]["type"] = "distance"
        self.goals[1]["type"] = "workout"
        self.goals[2]["type"] = "workout"
        self.assertEqual([g["name"] for g in self.stats.filter_goals()], ["Near", "Far", "Done"])
        self.assertEqual(
            [g["name"] for g in self.stats.filter_goals(status="completed")], ["Done"]
        )
        self.assertEqual(
            [g["name"] for g in self.stats.filter_goals(status="in-progress")], ["Near", "Far"]
        )
        self.assertEqual(
            [g["name"] for g in self.stats.filter_goals(goal_type="workout")], ["Near", "Done"]
        )
        self.assertEqual([g["name"] for g in self.stats.filter_goals(search="fa")], ["Far"])


if __name__ == "__main__":
    unittest.main()
