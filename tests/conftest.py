import base64
import os
import tempfile

# Point the app at a throwaway SQLite file before db.py creates its engine.
_DB_DIR = tempfile.mkdtemp(prefix="finance-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"

import pytest
from fastapi.testclient import TestClient

from db import Base, SessionLocal, engine
from main import app
from app.services.users import create_user

USERNAME = "alice"
PASSWORD = "s3cret"


def basic_auth(username, password):
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


@pytest.fixture(autouse=True)
def fresh_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    return create_user(db, USERNAME, PASSWORD, rounds=4)


@pytest.fixture
def client(user):
    return TestClient(app, headers=basic_auth(USERNAME, PASSWORD))
