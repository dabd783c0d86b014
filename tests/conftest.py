import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("LOG_DIR", "./logs")
os.environ["TESTING"] = "true"

import uuid
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from ctrlaltvibe.core.config import settings
from ctrlaltvibe.core.constants import RoleEnum
from ctrlaltvibe.core.database import Base, get_db
from ctrlaltvibe.core.security import get_password_hash
from ctrlaltvibe.crud.project import project as crud_project
from ctrlaltvibe.crud.user import user as crud_user
from ctrlaltvibe.models import all as _models  # noqa: F401
from ctrlaltvibe.schemas.project import ProjectCreate
from tests.helpers.fakes import SpyDelivery
import main

test_db_url = settings.TEST_DATABASE_URL or "sqlite:///./test.db"


@pytest.fixture(scope="session")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(test_db_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
    if test_db_url.startswith("sqlite") and os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="function")
def db_session(database_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture(scope="function")
def client(db_session):
    # Re-initialize the app for each test function: fresh cache and connection registry
    from importlib import reload
    reload(main)
    main.app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client

@pytest.fixture
def app_state(client):
    return main.app.state

@pytest.fixture
def spy_delivery(client):
    from ctrlaltvibe.utils import deps
    spy = SpyDelivery()
    main.app.dependency_overrides[deps.get_notification_delivery] = lambda: spy
    return spy

@pytest.fixture
def user_factory(db_session):
    def _user_factory(username=None, password="testpass123", role=RoleEnum.USER):
        username = username or f"user_{uuid.uuid4().hex[:10]}"
        user_data = {
            "username": username,
            "email": f"{username}@test.com",
            "hashed_password": get_password_hash(password),
            "role": role.value,
        }
        return crud_user.create(db_session, obj_in=user_data)
    return _user_factory

@pytest.fixture
def auth_headers(client):
    def _auth_headers(user, password="testpass123"):
        response = client.post("/api/login", json={"username": user.username, "password": password})
        body = response.json()
        token = (body.get("data") or {}).get("token", {}).get("access_token")
        assert token, f"Login failed or token missing: {body}"
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers

@pytest.fixture
def project_factory(db_session):
    def _project_factory(author, title=None, tags=None, featured=False, is_private=False):
        project_in = ProjectCreate(
            title=title or f"Project {uuid.uuid4().hex[:8]}",
            description="A project built over a weekend",
            project_url="https://example.com/app",
            image_url="https://example.com/cover.png",
            is_private=is_private,
            tags=tags or [],
        )
        project = crud_project.create_with_author(db_session, obj_in=project_in, author_id=author.id)
        if featured:
            project = crud_project.set_featured(db_session, db_obj=project, featured=True)
        return project
    return _project_factory

@pytest.fixture
def unique_tag():
    return f"tag-{uuid.uuid4().hex[:8]}"
