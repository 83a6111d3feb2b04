from __future__ import annotations
import datetime
from typing import Dict, List, Optional

from schemas import WORKOUT_TYPES


def _as_date(value: str | datetime.date) -> datetime.date:
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value)[:10])


class StatisticsService:
    """Compute dashboard figures from workouts and goals fetched by the client."""

    def __init__(
        self,
        workouts: Optional[List[dict]] = None,
        goals: Optional[List[dict]] = None,
    ) -> None:
        self.workouts = list(workouts or [])
        self.goals = list(goals or [])

    @staticmethod
    def goal_percentage(goal: dict) -> int:
        """Return progress as a whole percentage of the goal's target."""
        target = float(goal.get("target") or 0)
        if target <= 0:
            return 0
        return round(float(goal.get("progress") or 0) / target * 100)

    def _in_window(
        self, start: datetime.date, end: datetime.date
    ) -> List[dict]:
        return [w for w in self.workouts if start <= _as_date(w["date"]) <= end]

    def daily_activity(
        self, end: Optional[datetime.date] = None, days: int = 7
    ) -> List[Dict[str, object]]:
        """Return minutes and calories per day for the ``days`` ending at ``end``."""
        end = end or datetime.date.today()
        start = end - datetime.timedelta(days=days - 1)
        result: List[Dict[str, object]] = []
        for offset in range(days):
            day = start + datetime.timedelta(days=offset)
            result.append(
                {"date": day.isoformat(), "day": day.strftime("%a"), "minutes": 0, "calories": 0.0}
            )
        by_date = {item["date"]: item for item in result}
        for w in self._in_window(start, end):
            item = by_date[_as_date(w["date"]).isoformat()]
            item["minutes"] += int(w.get("duration") or 0)
            item["calories"] += float(w.get("caloriesBurned") or 0)
        return result

    def activity_summary(
        self, end: Optional[datetime.date] = None, days: int = 7
    ) -> Dict[str, float]:
        daily = self.daily_activity(end, days)
        end = end or datetime.date.today()
        start = end - datetime.timedelta(days=days - 1)
        minutes = sum(d["minutes"] for d in daily)
        active_days = len([d for d in daily if d["minutes"] > 0])
        return {
            "workouts": len(self._in_window(start, end)),
            "minutes": minutes,
            "calories": round(sum(d["calories"] for d in daily), 1),
            "active_days": active_days,
            "avg_minutes": round(minutes / active_days) if active_days else 0,
        }

    def type_breakdown(self) -> List[Dict[str, object]]:
        counts = {t: 0 for t in WORKOUT_TYPES}
        for w in self.workouts:
            counts[w.get("type", "other")] = counts.get(w.get("type", "other"), 0) + 1
        return [
            {"type": t, "count": c} for t, c in counts.items() if c > 0
        ]

    def recent_workouts(self, limit: int = 5) -> List[dict]:
        ordered = sorted(
            self.workouts,
            key=lambda w: (str(w["date"]), w.get("createdAt") or ""),
            reverse=True,
        )
        return ordered[:limit]

    def upcoming_goals(self, limit: int = 3, include_completed: bool = False) -> List[dict]:
        goals = [g for g in self.goals if include_completed or not g.get("completed")]
        goals.sort(key=lambda g: str(g["deadline"]))
        return goals[:limit]

    def filter_workouts(self, search: str = "", workout_type: str = "all") -> List[dict]:
        """Return workouts whose name or notes contain ``search``, newest first."""
        term = search.strip().lower()
        matches = [
            w
            for w in self.workouts
            if (workout_type == "all" or w.get("type") == workout_type)
            and (
                term in (w.get("name") or "").lower()
                or term in (w.get("notes") or "").lower()
            )
        ]
        return sorted(matches, key=lambda w: str(w["date"]), reverse=True)

    def filter_goals(
        self, search: str = "", goal_type: str = "all", status: str = "all"
    ) -> List[dict]:
        """Return goals matching the filters; open goals first, then by deadline.

        ``status`` is one of ``all``, ``completed`` or ``in-progress``.
        """
        term = search.strip().lower()
        matches = [
            g
            for g in self.goals
            if term in (g.get("name") or "").lower()
            and (goal_type == "all" or g.get("type") == goal_type)
            and (
                status == "all"
                or (status == "completed" and g.get("completed"))
                or (status == "in-progress" and not g.get("completed"))
            )
        ]
        return sorted(matches, key=lambda g: (bool(g.get("completed")), str(g["deadline"])))
