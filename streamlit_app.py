import datetime
import os
import warnings
from typing import Any, Callable, Optional

import altair as alt
import pandas as pd
import requests
import streamlit as st
from altair.utils.deprecation import AltairDeprecationWarning

from client import APIError, FitnessClient, GENERIC_ERROR
from schemas import GOAL_TYPES, WORKOUT_TYPES
from stats_service import StatisticsService

warnings.filterwarnings("ignore", category=AltairDeprecationWarning)

EXERCISE_COLUMNS = ["name", "sets", "reps", "weight", "duration", "distance"]
PAGES = ["Dashboard", "Workouts", "Goals", "Profile"]


def exercise_rows(frame: pd.DataFrame) -> list[dict]:
    """Convert edited exercise rows into API payload entries.

    Rows without a name are dropped and empty cells are omitted.
    """
    rows: list[dict] = []
    for record in frame.to_dict("records"):
        name = str(record.get("name") or "").strip()
        if not name or name.lower() == "nan":
            continue
        item: dict[str, Any] = {"name": name}
        for col in ("sets", "reps"):
            value = record.get(col)
            if value is not None and not pd.isna(value):
                item[col] = int(value)
        for col in ("weight", "duration", "distance"):
            value = record.get(col)
            if value is not None and not pd.isna(value):
                item[col] = float(value)
        rows.append(item)
    return rows


class FitnessApp:
    """Streamlit front end for the fitness tracking API."""

    def __init__(self, api_url: str = "http://localhost:5000") -> None:
        self._configure_page()
        for key, default in {"token": None, "user": None}.items():
            if key not in st.session_state:
                st.session_state[key] = default
        self.client = FitnessClient(api_url, token=st.session_state.token)

    def _configure_page(self) -> None:
        if st.session_state.get("layout_set"):
            return
        st.set_page_config(page_title="Fittrack", page_icon="🏋️", layout="wide")
        st.session_state.layout_set = True

    def _call(
        self, func: Callable[..., Any], *args: Any, success: Optional[str] = None
    ) -> Any:
        """Run a client call; on failure show the server message and return None."""
        try:
            result = func(*args)
        except APIError as e:
            if e.status_code == 401 and self.client.authenticated:
                self._clear_session()
            st.error(e.message)
            return None
        except requests.RequestException:
            st.error(GENERIC_ERROR)
            return None
        if success:
            st.toast(success)
        return result

    def _clear_session(self) -> None:
        self.client.logout()
        st.session_state.token = None
        st.session_state.user = None

    def _store_session(self, user: Optional[dict]) -> None:
        if user is None:
            return
        st.session_state.token = self.client.token
        st.session_state.user = user
        st.rerun()

    # Auth

    def _auth_page(self) -> None:
        st.title("Fittrack")
        login_tab, register_tab = st.tabs(["Login", "Register"])
        with login_tab:
            with st.form("login_form"):
                email = st.text_input("Email", key="login_email")
                password = st.text_input("Password", type="password", key="login_password")
                if st.form_submit_button("Login"):
                    self._store_session(self._call(self.client.login, email, password))
        with register_tab:
            with st.form("register_form"):
                name = st.text_input("Name", key="register_name")
                email = st.text_input("Email", key="register_email")
                password = st.text_input("Password", type="password", key="register_password")
                if st.form_submit_button("Create account"):
                    self._store_session(
                        self._call(self.client.register, name, email, password)
                    )

    # Dashboard

    def _dashboard_page(self) -> None:
        st.header("Dashboard")
        workouts = self._call(self.client.list_workouts)
        goals = self._call(self.client.list_goals)
        if workouts is None or goals is None:
            return
        stats = StatisticsService(workouts, goals)
        summary = stats.activity_summary()
        cols = st.columns(4)
        cols[0].metric("Workouts", summary["workouts"], help="Last 7 days")
        cols[1].metric("Active Minutes", summary["minutes"], help=f"{summary['avg_minutes']} mins avg/day")
        cols[2].metric("Calories Burned", summary["calories"], help="Last 7 days")
        cols[3].metric("Active Days", summary["active_days"])

        left, right = st.columns(2)
        with left:
            st.subheader("Weekly Activity")
            daily = pd.DataFrame(stats.daily_activity())
            chart = (
                alt.Chart(daily)
                .mark_bar()
                .encode(
                    x=alt.X("day:N", sort=list(daily["day"])),
                    y=alt.Y("minutes:Q", title="Minutes"),
                    tooltip=["date", "minutes", "calories"],
                )
            )
            st.altair_chart(chart, use_container_width=True)
        with right:
            st.subheader("Workout Types")
            breakdown = stats.type_breakdown()
            if breakdown:
                pie = (
                    alt.Chart(pd.DataFrame(breakdown))
                    .mark_arc(innerRadius=50)
                    .encode(theta="count:Q", color="type:N", tooltip=["type", "count"])
                )
                st.altair_chart(pie, use_container_width=True)
            else:
                st.info("No workouts logged yet.")

        left, right = st.columns(2)
        with left:
            st.subheader("Recent Workouts")
            recent = stats.recent_workouts()
            if recent:
                st.dataframe(
                    pd.DataFrame(recent)[["date", "name", "type", "duration"]],
                    hide_index=True,
                    use_container_width=True,
                )
            else:
                st.info("No workouts logged yet.")
        with right:
            st.subheader("Goal Progress")
            upcoming = stats.upcoming_goals()
            if not upcoming:
                st.info("No active goals.")
            for goal in upcoming:
                self._goal_progress(goal)

    @staticmethod
    def _goal_progress(goal: dict) -> None:
        pct = StatisticsService.goal_percentage(goal)
        st.markdown(f"**{goal['name']}** {pct}%")
        st.progress(max(0, min(pct, 100)))
        st.caption(
            f"{goal['progress']:g} / {goal['target']:g} {goal['unit']} · Due {goal['deadline']}"
        )

    # Workouts

    @staticmethod
    def _workout_fields(prefix: str, workout: Optional[dict] = None) -> dict:
        """Render workout inputs inside a form and return the payload they describe."""
        workout = workout or {}
        cols = st.columns(2)
        date = cols[0].date_input(
            "Date",
            datetime.date.fromisoformat(workout["date"]) if workout else datetime.date.today(),
            key=f"{prefix}_date",
        )
        wtype = cols[1].selectbox(
            "Type",
            WORKOUT_TYPES,
            index=WORKOUT_TYPES.index(workout.get("type", WORKOUT_TYPES[0])),
            key=f"{prefix}_type",
        )
        name = st.text_input("Name", workout.get("name", ""), key=f"{prefix}_name")
        cols = st.columns(2)
        duration = cols[0].number_input(
            "Duration (min)",
            min_value=1,
            value=int(workout.get("duration", 30)),
            step=1,
            key=f"{prefix}_duration",
        )
        calories = cols[1].number_input(
            "Calories Burned",
            min_value=0.0,
            value=float(workout.get("caloriesBurned") or 0.0),
            key=f"{prefix}_calories",
        )
        notes = st.text_area("Notes", workout.get("notes") or "", key=f"{prefix}_notes")
        st.caption("Exercises")
        edited = st.data_editor(
            pd.DataFrame(workout.get("exercises", []), columns=EXERCISE_COLUMNS),
            num_rows="dynamic",
            key=f"{prefix}_exercises",
            use_container_width=True,
        )
        return {
            "date": date.isoformat(),
            "type": wtype,
            "name": name,
            "duration": int(duration),
            "caloriesBurned": calories or None,
            "notes": notes or None,
            "exercises": exercise_rows(edited),
        }

    def _workout_form(self) -> None:
        with st.expander("Log Workout", expanded=False):
            with st.form("add_workout", clear_on_submit=True):
                payload = self._workout_fields("new_workout")
                if st.form_submit_button("Save Workout"):
                    if self._call(self.client.create_workout, payload, success="Workout logged"):
                        st.rerun()

    def _workouts_page(self) -> None:
        st.header("Workouts")
        self._workout_form()
        workouts = self._call(self.client.list_workouts)
        if workouts is None:
            return
        cols = st.columns([3, 1])
        search = cols[0].text_input("Search workouts", key="workout_search")
        wtype = cols[1].selectbox("Workout type", ["all", *WORKOUT_TYPES], key="workout_type_filter")
        shown = StatisticsService(workouts).filter_workouts(search, wtype)
        if not shown:
            st.info("No workouts found." if workouts else "No workouts logged yet.")
            return
        for workout in shown:
            title = f"{workout['date']} · {workout['name']} ({workout['type']}, {workout['duration']} min)"
            with st.expander(title):
                if workout.get("caloriesBurned"):
                    st.write(f"Calories burned: {workout['caloriesBurned']:g}")
                if workout.get("notes"):
                    st.write(workout["notes"])
                if workout["exercises"]:
                    st.dataframe(
                        pd.DataFrame(workout["exercises"]),
                        hide_index=True,
                        use_container_width=True,
                    )
                wid = workout["id"]
                with st.form(f"edit_workout_{wid}"):
                    fields = self._workout_fields(f"workout_{wid}", workout)
                    if st.form_submit_button("Update"):
                        if self._call(self.client.update_workout, wid, fields, success="Workout updated"):
                            st.rerun()
                if st.button("Delete", key=f"delete_workout_{wid}"):
                    if self._call(self.client.delete_workout, wid, success="Workout deleted"):
                        st.rerun()

    # Goals

    @staticmethod
    def _goal_fields(prefix: str, goal: Optional[dict] = None) -> dict:
        """Render goal inputs inside a form and return the payload they describe."""
        goal = goal or {}
        name = st.text_input("Name", goal.get("name", ""), key=f"{prefix}_name")
        cols = st.columns(3)
        gtype = cols[0].selectbox(
            "Type",
            GOAL_TYPES,
            index=GOAL_TYPES.index(goal.get("type", GOAL_TYPES[0])),
            key=f"{prefix}_type",
        )
        target = cols[1].number_input(
            "Target", min_value=0.0, value=float(goal.get("target", 1.0)), key=f"{prefix}_target"
        )
        unit = cols[2].text_input("Unit", goal.get("unit", ""), key=f"{prefix}_unit")
        cols = st.columns(3)
        deadline = cols[0].date_input(
            "Deadline",
            datetime.date.fromisoformat(goal["deadline"])
            if goal
            else datetime.date.today() + datetime.timedelta(days=30),
            key=f"{prefix}_deadline",
        )
        progress = cols[1].number_input(
            "Current Progress",
            min_value=0.0,
            value=float(goal.get("progress", 0.0)),
            key=f"{prefix}_progress",
        )
        completed = cols[2].checkbox(
            "Completed", value=bool(goal.get("completed", False)), key=f"{prefix}_completed"
        )
        return {
            "name": name,
            "type": gtype,
            "target": target,
            "unit": unit,
            "deadline": deadline.isoformat(),
            "progress": progress,
            "completed": completed,
        }

    def _goal_form(self) -> None:
        with st.expander("New Goal", expanded=False):
            with st.form("add_goal", clear_on_submit=True):
                payload = self._goal_fields("new_goal")
                if st.form_submit_button("Save Goal"):
                    if self._call(self.client.create_goal, payload, success="Goal created"):
                        st.rerun()

    def _goals_page(self) -> None:
        st.header("Goals")
        self._goal_form()
        goals = self._call(self.client.list_goals)
        if goals is None:
            return
        cols = st.columns([2, 1, 1])
        search = cols[0].text_input("Search goals", key="goal_search")
        gtype = cols[1].selectbox("Goal type", ["all", *GOAL_TYPES], key="goal_type_filter")
        status = cols[2].selectbox(
            "Status", ["all", "in-progress", "completed"], key="goal_status_filter"
        )
        shown = StatisticsService(goals=goals).filter_goals(search, gtype, status)
        if not shown:
            st.info("No goals found." if goals else "No goals yet.")
            return
        for goal in shown:
            gid = goal["id"]
            with st.container(border=True):
                self._goal_progress(goal)
                with st.expander("Edit"):
                    with st.form(f"edit_goal_{gid}"):
                        fields = self._goal_fields(f"goal_{gid}", goal)
                        if st.form_submit_button("Save"):
                            if self._call(self.client.update_goal, gid, fields, success="Goal updated"):
                                st.rerun()
                if st.button("Delete", key=f"delete_goal_{gid}"):
                    if self._call(self.client.delete_goal, gid, success="Goal deleted"):
                        st.rerun()

    # Profile

    def _profile_page(self) -> None:
        st.header("Profile")
        profile = self._call(self.client.get_profile)
        if profile is None:
            return
        with st.form("profile_form"):
            name = st.text_input("Name", profile["name"])
            email = st.text_input("Email", profile["email"])
            password = st.text_input("New Password", type="password")
            if st.form_submit_button("Save Changes"):
                fields = {}
                if name != profile["name"]:
                    fields["name"] = name
                if email != profile["email"]:
                    fields["email"] = email
                if password:
                    fields["password"] = password
                if fields:
                    updated = self._call(
                        lambda: self.client.update_profile(**fields),
                        success="Profile updated",
                    )
                    if updated:
                        st.session_state.user = updated
                        st.rerun()

    def run(self) -> None:
        if not self.client.authenticated:
            self._auth_page()
            return
        user = st.session_state.user or {}
        with st.sidebar:
            st.title("Fittrack")
            st.caption(user.get("name", ""))
            page = st.radio("Navigation", PAGES, key="page")
            if st.button("Logout"):
                self._clear_session()
                st.rerun()
        if page == "Dashboard":
            self._dashboard_page()
        elif page == "Workouts":
            self._workouts_page()
        elif page == "Goals":
            self._goals_page()
        else:
            self._profile_page()


if __name__ == "__main__":
    from config import load_settings

    api_url = os.environ.get("API_URL") or load_settings(
        os.environ.get("YAML_PATH", "settings.yaml")
    ).api_url
    FitnessApp(api_url).run()
