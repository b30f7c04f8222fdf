import os

# The app lifespan bootstraps the schema on the configured engine; keep it in memory.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_db  # noqa: E402
from app.core.config import get_settings  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models.department import Department  # noqa: E402
from app.models.faculty import Faculty, FacultyRole  # noqa: E402


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def department(db_session) -> Department:
    item = Department(name="Computer Science", code="CSE")
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture()
def make_member(db_session):
    def _make(department_id: int, *, name: str, role: FacultyRole = FacultyRole.faculty, expertise=None) -> Faculty:
        member = Faculty(
            name=name,
            email=f"{name.lower().replace(' ', '.')}@example.com",
            department_id=department_id,
            role=role,
            expertise=list(expertise or []),
        )
        db_session.add(member)
        db_session.commit()
        db_session.refresh(member)
        return member

    return _make


@pytest.fixture()
def issue_token():
    # Stands in for the identity service that signs tokens with the shared secret.
    settings = get_settings()

    def _issue(subject, *, role: str, expires_in: timedelta = timedelta(minutes=30)) -> str:
        claims = {"sub": str(subject), "role": role, "exp": datetime.now(timezone.utc) + expires_in}
        return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    return _issue


@pytest.fixture()
def headers_for(issue_token):
    def _headers(member: Faculty) -> dict[str, str]:
        token = issue_token(member.id, role=FacultyRole(member.role).value)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def admin(make_member, department) -> Faculty:
    return make_member(department.id, name="Admin User", role=FacultyRole.admin)


@pytest.fixture()
def admin_headers(admin, headers_for) -> dict[str, str]:
    return headers_for(admin)
