"""Shared pytest fixtures for all test suites."""

from collections.abc import AsyncGenerator, Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Annotated, Any

import pytest
from fastapi import APIRouter, Depends, FastAPI
from fastapi.responses import JSONResponse, Response
from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool
from starlette.requests import Request

from backend.app.api.auth import get_signed_in_user_id
from backend.app.api.controller import AUTH_CONTROLLERS, ApplicationController, get_controller
from backend.app.cache import get_cache_store
from backend.app.config import Settings, get_settings
from backend.app.db.engine import get_session
from backend.app.db.inmemory import InMemoryCacheStore
from backend.app.db.models import Base, Category, Community, Post, User
from backend.app.main import create_app

TEST_HOST = "testserver"


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SignedIn:
    """Mutable stand-in for the session cookie's user id."""

    def __init__(self) -> None:
        self.user_id: int | None = None

    async def __call__(self) -> int | None:
        return self.user_id


# Routes used only by tests to exercise controller helpers
test_router = APIRouter(prefix="/test", tags=["test"])


@test_router.post("/posts", status_code=201)
async def create_post(
    controller: Annotated[ApplicationController, Depends(get_controller)],
) -> dict[str, str]:
    return {"status": "created"}


@test_router.post("/posts.json", status_code=201)
async def create_post_json(
    controller: Annotated[ApplicationController, Depends(get_controller)],
) -> dict[str, str]:
    return {"status": "created"}


@test_router.get("/context")
async def show_context(
    controller: Annotated[ApplicationController, Depends(get_controller)],
) -> dict[str, Any]:
    ctx = controller.ctx
    return {
        "community_id": ctx.community_id,
        "user_id": ctx.user.id if ctx.user else None,
        "pinned_links": [link.id for link in ctx.pinned_links],
        "hot_questions": [post.id for post in ctx.hot_questions],
        "header_categories": [category.name for category in ctx.header_categories],
        "open_flags": ctx.open_flags,
        "first_visit_notice": ctx.first_visit_notice,
    }


def _guarded(check_name: str):
    async def endpoint(
        controller: Annotated[ApplicationController, Depends(get_controller)],
    ) -> Response:
        if not getattr(controller, check_name)():
            return controller.performed
        return JSONResponse({"ok": True})

    return endpoint


for _name in ("verify_moderator", "verify_admin", "verify_global_admin", "verify_global_moderator"):
    test_router.add_api_route(f"/{_name}", _guarded(_name), methods=["GET"], name=_name)


@test_router.get("/privilege/{name}")
async def privilege(
    name: str,
    controller: Annotated[ApplicationController, Depends(get_controller)],
    post_id: int | None = None,
    render_error: bool = True,
) -> Response:
    post = None
    if post_id is not None:
        result = await controller.session.execute(select(Post).where(Post.id == post_id))
        post = result.scalar_one()

    if not await controller.check_your_privilege(name, post, render_error):
        return controller.performed or JSONResponse({"ok": False})
    return JSONResponse({"ok": True})



# Routes named after controllers the warning redirect skips
exempt_router = APIRouter(prefix="/test/exempt")


async def exempt_action(
    controller: Annotated[ApplicationController, Depends(get_controller)],
) -> dict[str, str]:
    return {"controller": controller.controller_name}


for _name in sorted(AUTH_CONTROLLERS | {"custom_sessions", "errors"}):
    exempt_router.add_api_route(
        f"/{_name}", exempt_action, methods=["GET"], name=f"exempt_{_name}", tags=[_name]
    )


# Plain routes, outside the controller, for reading and writing the session flash
flash_router = APIRouter(prefix="/test/flash")


@flash_router.post("")
async def set_flash(request: Request) -> dict[str, str]:
    request.session["flash"] = "Saved."
    return {"status": "ok"}


@flash_router.get("")
async def read_flash(request: Request) -> dict[str, str | None]:
    return {"flash": request.session.get("flash")}

@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def sync_engine(db_path: Path) -> Generator[Engine, None, None]:
    """Sync engine used to create the schema and seed rows."""
    engine = create_engine(f"sqlite:///{db_path}", poolclass=NullPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def async_engine(db_path: Path, sync_engine: Engine) -> AsyncEngine:
    """Async engine over the same database file the app reads."""
    return create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)


@pytest.fixture
def db(sync_engine: Engine) -> Generator[Session, None, None]:
    """Sync session for seeding and asserting on rows."""
    with Session(sync_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def community(db: Session) -> Community:
    """Community served at the TestClient's default Host."""
    community = Community(name="Test Community", host=TEST_HOST)
    db.add(community)
    db.commit()

    for sequence, name in ((1, "Meta"), (0, "Q&A")):
        db.add(Category(community_id=community.id, name=name, sequence=sequence))
    db.commit()
    return community


@pytest.fixture
def make_user(db: Session):
    """Factory creating users with optional global roles."""

    def _make_user(username: str = "alice", email: str | None = None, **flags: Any) -> User:
        user = User(username=username, email=email or f"{username}@example.com", **flags)
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def test_settings(db_path: Path) -> Settings:
    return Settings(
        environment="test",
        database_url=f"sqlite+aiosqlite:///{db_path}",
        redis_url=None,
        csrf_protection_enabled=False,
        secret_key="test-secret",
    )


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def signed_in() -> SignedIn:
    return SignedIn()


@pytest.fixture
def app(
    test_settings: Settings,
    async_engine: AsyncEngine,
    cache_store: InMemoryCacheStore,
    signed_in: SignedIn,
) -> FastAPI:
    """Application wired to the test database, cache and session user."""
    application = create_app(test_settings)
    application.include_router(test_router)
    application.include_router(exempt_router)
    application.include_router(flash_router)

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncSession(async_engine, expire_on_commit=False) as session:
            yield session

    application.dependency_overrides[get_session] = override_session
    application.dependency_overrides[get_cache_store] = lambda: cache_store
    application.dependency_overrides[get_settings] = lambda: test_settings
    application.dependency_overrides[get_signed_in_user_id] = signed_in
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Test client that does not follow redirects."""
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def an_hour_ago() -> datetime:
    return utcnow() - timedelta(hours=1)


@pytest.fixture
def in_an_hour() -> datetime:
    return utcnow() + timedelta(hours=1)


def build_request(
    path: str = "/posts",
    method: str = "POST",
    query: str = "",
    headers: dict[str, str] | None = None,
    client: tuple[str, int] | None = ("203.0.113.9", 5000),
    body: bytes = b"",
) -> Request:
    """Build a bare ASGI request."""
    scope: dict[str, Any] = {
        "type": "http",
        "method": method,
        "path": path,
        "raw_path": path.encode(),
        "query_string": query.encode(),
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
        "server": ("testserver", 80),
        "scheme": "http",
        "path_params": {},
    }

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


@pytest.fixture
def make_request():
    """Factory for requests that never touch the app."""
    return build_request
