"""
Shared fixtures: an in-memory database per test, seeded branches and one user per role.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sahl.core.database import get_db, init_db
from sahl.core.security import create_user_token
from sahl.main import app
from sahl.schemas import UserCreate
from sahl.services.branch_service import BranchService, seed_branches
from sahl.services.user_service import UserService

PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def branches(db):
    seed_branches(db, ["laban", "tuwaiq"])
    branch_service = BranchService(db)
    return {
        "laban": branch_service.get_by_code("laban"),
        "tuwaiq": branch_service.get_by_code("tuwaiq"),
    }


def _make_user(db, name, email, role, branch=None, **overrides):
    data = dict(
        name=name,
        email=email,
        password=PASSWORD,
        role=role,
        branch_id=branch.id if branch else None,
    )
    data.update(overrides)
    user = UserService(db).create(UserCreate(**data))
    db.commit()
    return user


@pytest.fixture
def admin(db, branches):
    return _make_user(db, "Site Admin", "admin@sahl.sa", "admin")


@pytest.fixture
def manager(db, branches):
    return _make_user(db, "Laban Manager", "manager@sahl.sa", "manager", branches["laban"])


@pytest.fixture
def employee(db, branches):
    return _make_user(db, "Ahmed", "ahmed@sahl.sa", "employee", branches["laban"])


@pytest.fixture
def other_employee(db, branches):
    return _make_user(db, "Khalid", "khalid@sahl.sa", "employee", branches["laban"])


@pytest.fixture
def make_user(db, branches):
    def factory(name, email, role="employee", branch="laban", **overrides):
        return _make_user(db, name, email, role, branches[branch] if branch else None, **overrides)
    return factory


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def manager_headers(manager):
    return auth_headers(manager)


@pytest.fixture
def employee_headers(employee):
    return auth_headers(employee)
