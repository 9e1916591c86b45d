from pathlib import Path
import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{Path(__file__).resolve().parent / 'wayfinder_test.db'}")
os.environ.setdefault("GRAPH_SOURCE", "database")

from wayfinder.db import Base, SessionLocal, engine
from wayfinder.loader import graph_store
from wayfinder.main import app
from wayfinder.seed import seed


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    seed()
    graph_store.refresh()
    yield
    SessionLocal().close()


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)
