import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Type

from fastapi import (
    FastAPI,
    HTTPException,
    APIRouter,
    Request,
    Depends,
)
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import CredentialVerifier, TokenSigner
from config import APP_VERSION, load_settings, resolve_secret
from db import (
    DuplicateEmailError,
    GoalRepository,
    NotFoundError,
    OwnedRecordRepository,
    UserRepository,
    WorkoutRepository,
)
from schemas import (
    GoalCreate,
    GoalUpdate,
    LoginRequest,
    Payload,
    ProfileUpdate,
    RegisterRequest,
    WorkoutCreate,
    WorkoutUpdate,
)
from settings_schema import AppSettings

log = logging.getLogger("fittrack.api")

SERVER_ERROR = "Server error"


class FieldError(Exception):
    """A request value that passed parsing but violates a constraint."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


@contextmanager
def translate_errors(action: str):
    """Map store exceptions to HTTP errors; unexpected ones become a bare 500."""
    try:
        yield
    except (HTTPException, FieldError):
        raise
    except DuplicateEmailError:
        log.info("Rejected %s: email already registered", action)
        raise FieldError("email", "Email already registered")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e).capitalize())
    except Exception:
        log.exception("%s failed", action)
        raise HTTPException(status_code=500, detail=SERVER_ERROR)


def _error_field(error: dict) -> str:
    if error.get("type") == "json_invalid":
        return "body"
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]
    return ".".join(loc) or "body"


class FitnessAPI:
    """Provides the REST endpoints for accounts, workouts and goals."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        yaml_path: str = "settings.yaml",
    ) -> None:
        self.settings = settings or load_settings(yaml_path)
        db_path = self.settings.db_path
        self.users = UserRepository(db_path)
        self.workouts = WorkoutRepository(db_path)
        self.goals = GoalRepository(db_path)
        self.signer = TokenSigner(
            resolve_secret(self.settings), self.settings.token_ttl_seconds
        )
        self.verifier = CredentialVerifier(self.signer, self.users)

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            log.info("Fittrack API ready (database=%s)", db_path)
            yield
            log.info("Fittrack API stopped")

        self.app = FastAPI(
            title="Fittrack API",
            description="REST API for personal workout and goal tracking",
            version=APP_VERSION,
            lifespan=lifespan,
        )
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.settings.cors_origins,
            allow_credentials=False,
            allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
        self._setup_error_handlers()
        self._setup_routes()

    def _setup_error_handlers(self) -> None:
        @self.app.exception_handler(StarletteHTTPException)
        async def http_error(request: Request, exc: StarletteHTTPException):
            return JSONResponse(
                status_code=exc.status_code,
                content={"message": exc.detail},
                headers=getattr(exc, "headers", None),
            )

        @self.app.exception_handler(RequestValidationError)
        async def validation_error(request: Request, exc: RequestValidationError):
            errors = exc.errors()
            field = _error_field(errors[0]) if errors else "body"
            return JSONResponse(
                status_code=400,
                content={"message": f"Invalid value for '{field}'", "field": field},
            )

        @self.app.exception_handler(FieldError)
        async def field_error(request: Request, exc: FieldError):
            return JSONResponse(
                status_code=400,
                content={"message": exc.message, "field": exc.field},
            )

    def _setup_routes(self) -> None:
        users_router = APIRouter(prefix="/api/users", tags=["Users"])
        workouts_router = APIRouter(prefix="/api/workouts", tags=["Workouts"])
        goals_router = APIRouter(prefix="/api/goals", tags=["Goals"])
        current_user = Depends(self.verifier)

        @self.app.get(
            "/api/health",
            summary="Health check",
            description="Verify API and database connectivity.",
        )
        async def health():
            with translate_errors("health check"):
                await self.users.ping()
            return {"status": "ok"}

        @users_router.post("/register", status_code=201)
        async def register(payload: RegisterRequest):
            with translate_errors("registration"):
                user = await self.users.create(
                    payload.name, payload.email, payload.password
                )
            log.info("Registered account %s", user["id"])
            return {"token": self.signer.issue(user["id"]), "user": user}

        @users_router.post("/login")
        async def login(payload: LoginRequest):
            with translate_errors("login"):
                user = await self.users.authenticate(payload.email, payload.password)
            if user is None:
                log.info("Rejected login attempt")
                raise HTTPException(status_code=401, detail="Invalid email or password")
            return {"token": self.signer.issue(user["id"]), "user": user}

        @users_router.get("/profile")
        async def get_profile(user: dict = current_user):
            return user

        @users_router.patch("/profile")
        async def update_profile(payload: ProfileUpdate, user: dict = current_user):
            with translate_errors("profile update"):
                return await self.users.update(user["id"], **payload.to_fields(partial=True))

        self._setup_record_routes(
            workouts_router, self.workouts, "Workout", WorkoutCreate, WorkoutUpdate
        )
        self._setup_record_routes(
            goals_router, self.goals, "Goal", GoalCreate, GoalUpdate
        )

        self.app.include_router(users_router)
        self.app.include_router(workouts_router)
        self.app.include_router(goals_router)

    def _setup_record_routes(
        self,
        router: APIRouter,
        repo: OwnedRecordRepository,
        label: str,
        create_model: Type[Payload],
        update_model: Type[Payload],
    ) -> None:
        """Register list/get/create/update/delete on ``router`` for ``repo``."""
        current_user = Depends(self.verifier)
        noun = label.lower()

        @router.get("", name=f"list_{noun}s")
        async def list_records(user: dict = current_user):
            with translate_errors(f"list {noun}s"):
                return await repo.list_for_user(user["id"])

        @router.get("/{record_id}", name=f"get_{noun}")
        async def get_record(record_id: str, user: dict = current_user):
            with translate_errors(f"get {noun}"):
                return await repo.fetch_for_user(user["id"], record_id)

        @router.post("", status_code=201, name=f"create_{noun}")
        async def create_record(payload: create_model, user: dict = current_user):
            with translate_errors(f"create {noun}"):
                return await repo.create_for_user(user["id"], payload.to_fields())

        @router.patch("/{record_id}", name=f"update_{noun}")
        async def update_record(
            record_id: str, payload: update_model, user: dict = current_user
        ):
            with translate_errors(f"update {noun}"):
                return await repo.update_for_user(
                    user["id"], record_id, payload.to_fields(partial=True)
                )

        @router.delete("/{record_id}", name=f"delete_{noun}")
        async def delete_record(record_id: str, user: dict = current_user):
            with translate_errors(f"delete {noun}"):
                await repo.delete_for_user(user["id"], record_id)
            return {"message": f"{label} deleted"}
