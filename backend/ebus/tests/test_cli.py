from ..cli import manage
from .. import store
from .conftest import TestingSessionLocal


def test_seed_and_backfill(monkeypatch):
    monkeypatch.setattr(manage, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(manage, "init_db", lambda: None)

    summary = manage.seed_inventory()
    assert summary == {"created": 5, "skipped": False}
    assert manage.seed_inventory() == {"created": 0, "skipped": True}

    session = TestingSessionLocal()
    try:
        state = store.load_state(session)
    finally:
        session.close()
    assert {item.id for item in state.inventory} >= {"ITEM-001", "ITEM-005"}
    assert all(len(item.barcode) == 12 for item in state.inventory)
    assert state.logs[0].type == "SUCCESS"

    assert manage.backfill_barcodes() == {"updated": 0}
