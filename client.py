import requests
from typing import Any, Optional

GENERIC_ERROR = "Something went wrong, please try again"


class APIError(Exception):
    """Raised for any non-2xx response; ``message`` is safe to show users."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class FitnessClient:
    """REST client for the fitness tracking API.

    ``session`` only needs a requests-style ``request`` method, so a
    ``fastapi.testclient.TestClient`` can stand in for ``requests.Session``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        token: Optional[str] = None,
        session: Any = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        kwargs: dict[str, Any] = {"headers": headers}
        if payload is not None:
            kwargs["json"] = payload
        if isinstance(self.session, requests.Session):
            kwargs["timeout"] = self.timeout
        resp = self.session.request(method, f"{self.base_url}/api{path}", **kwargs)
        try:
            body = resp.json()
        except ValueError:
            body = None
        if resp.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            raise APIError(resp.status_code, message or GENERIC_ERROR)
        return body

    def _authenticate(self, path: str, payload: dict) -> dict:
        data = self._request("POST", path, payload)
        self.token = data["token"]
        return data["user"]

    # Auth

    def register(self, name: str, email: str, password: str) -> dict:
        return self._authenticate(
            "/users/register", {"name": name, "email": email, "password": password}
        )

    def login(self, email: str, password: str) -> dict:
        return self._authenticate(
            "/users/login", {"email": email, "password": password}
        )

    def logout(self) -> None:
        self.token = None

    def get_profile(self) -> dict:
        return self._request("GET", "/users/profile")

    def update_profile(self, **fields: Any) -> dict:
        return self._request("PATCH", "/users/profile", fields)

    # Workouts

    def list_workouts(self) -> list[dict]:
        return self._request("GET", "/workouts")

    def get_workout(self, workout_id: str) -> dict:
        return self._request("GET", f"/workouts/{workout_id}")

    def create_workout(self, workout: dict) -> dict:
        return self._request("POST", "/workouts", workout)

    def update_workout(self, workout_id: str, fields: dict) -> dict:
        return self._request("PATCH", f"/workouts/{workout_id}", fields)

    def delete_workout(self, workout_id: str) -> dict:
        return self._request("DELETE", f"/workouts/{workout_id}")

    # Goals

    def list_goals(self) -> list[dict]:
        return self._request("GET", "/goals")

    def get_goal(self, goal_id: str) -> dict:
        return self._request("GET", f"/goals/{goal_id}")

    def create_goal(self, goal: dict) -> dict:
        return self._request("POST", "/goals", goal)

    def update_goal(self, goal_id: str, fields: dict) -> dict:
        return self._request("PATCH", f"/goals/{goal_id}", fields)

    def delete_goal(self, goal_id: str) -> dict:
        return self._request("DELETE", f"/goals/{goal_id}")

    def health(self) -> dict:
        return self._request("GET", "/health")
