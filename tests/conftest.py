import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("MAX_VERSIONS_PER_BATCH", "100")

import pytest
from fastapi.testclient import TestClient

from app.database.database import SessionLocal, engine
from app.models.tests_models import Base
from app.main import app


@pytest.fixture(autouse=True)
def fresh_schema():
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
def client():
    with TestClient(app) as c:
        yield c
