import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

WORKOUT_TYPES = ("strength", "cardio", "flexibility", "sports", "other")
GOAL_TYPES = ("weight", "workout", "distance", "strength", "custom")

WorkoutType = Literal["strength", "cardio", "flexibility", "sports", "other"]
GoalType = Literal["weight", "workout", "distance", "strength", "custom"]

Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Email = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        to_lower=True,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
    ),
]
Password = Annotated[str, StringConstraints(min_length=6)]

# largest value an SQLite INTEGER column holds
MAX_INTEGER = 2**63 - 1


class Payload(BaseModel):
    """Base for request bodies; unknown keys (``user``, ``id``...) are ignored.

    Update models declare non-nullable fields with a ``None`` default that is
    never validated, so an explicit ``null`` is rejected while an absent key
    leaves the stored value alone.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_fields(self, partial: bool = False) -> dict:
        return self.model_dump(exclude_unset=partial)


class RegisterRequest(Payload):
    name: Text
    email: Email
    password: Password


class LoginRequest(Payload):
    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    password: Annotated[str, StringConstraints(min_length=1)]


class ProfileUpdate(Payload):
    name: Text = None
    email: Email = None
    password: Password = None


class ExerciseIn(Payload):
    name: Text
    sets: Optional[int] = Field(default=None, ge=0, le=MAX_INTEGER)
    reps: Optional[int] = Field(default=None, ge=0, le=MAX_INTEGER)
    weight: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    duration: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    distance: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class _WorkoutFields(Payload):
    def to_fields(self, partial: bool = False) -> dict:
        data = super().to_fields(partial)
        if "exercises" in data:
            data["exercises"] = [e.model_dump(exclude_none=True) for e in self.exercises]
        return data


class WorkoutCreate(_WorkoutFields):
    date: datetime.date
    type: WorkoutType
    name: Text
    duration: int = Field(gt=0, le=MAX_INTEGER)
    calories_burned: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False, alias="caloriesBurned")
    notes: Optional[str] = None
    exercises: List[ExerciseIn] = []


class WorkoutUpdate(_WorkoutFields):
    date: datetime.date = None
    type: WorkoutType = None
    name: Text = None
    duration: int = Field(default=None, gt=0, le=MAX_INTEGER)
    calories_burned: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False, alias="caloriesBurned")
    notes: Optional[str] = None
    exercises: List[ExerciseIn] = None


class GoalCreate(Payload):
    name: Text
    type: GoalType
    target: float = Field(gt=0, allow_inf_nan=False)
    unit: Text
    deadline: datetime.date
    progress: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    completed: bool = False


class GoalUpdate(Payload):
    name: Text = None
    type: GoalType = None
    target: float = Field(default=None, gt=0, allow_inf_nan=False)
    unit: Text = None
    deadline: datetime.date = None
    progress: float = Field(default=None, ge=0, allow_inf_nan=False)
    completed: bool = None
