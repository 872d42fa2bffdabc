import os
os.environ["TESTING"] = "1"
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

from ebus.main import app
from ebus.database import Base, get_db
from ebus import pubsub, schemas

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def fresh_database():
    # every test starts from an empty state document
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    pubsub._redis = None
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def make_item(item_id="X", **overrides):
    data = {
        "id": item_id,
        "name": f"Item {item_id}",
        "barcode": None,
        "total_quantity": 10,
        "available_quantity": 10,
    }
    data.update(overrides)
    return schemas.InventoryItem(**data)


def make_state(items=(), allocations=(), event_id="E1"):
    event = schemas.Event(
        id=event_id,
        name="Gala",
        items=[schemas.EventItemAllocation(**alloc) for alloc in allocations],
    )
    return schemas.AppState(inventory=list(items), events=[event])
