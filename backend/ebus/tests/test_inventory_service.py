import pytest

from .. import schemas
from ..services import events as event_service
from ..services import inventory as inventory_service
from .conftest import make_item, make_state


def test_add_item_assigns_id_and_barcode():
    state, item = inventory_service.add_item(schemas.AppState(), schemas.InventoryItemCreate(name="Truss 3m"))
    assert item.id.startswith("ITEM-")
    assert len(item.barcode) == 12
    assert state.inventory == [item]


def test_add_item_rejects_duplicate_barcode():
    state = make_state(items=[make_item("A", barcode="880000000001")])
    with pytest.raises(inventory_service.DuplicateBarcode) as exc:
        inventory_service.add_item(state, schemas.InventoryItemCreate(name="B", barcode="8800 0000 0001"))
    assert exc.value.conflict.id == "A"
    assert exc.value.barcode == "880000000001"


def test_update_item_allows_own_barcode_but_not_others():
    state = make_state(items=[make_item("A", barcode="880000000001"), make_item("B", barcode="880000000002")])
    state, item = inventory_service.update_item(
        state, "A", schemas.InventoryItemUpdate(barcode="880000000001", name="Renamed")
    )
    assert item.name == "Renamed"
    with pytest.raises(inventory_service.DuplicateBarcode):
        inventory_service.update_item(state, "A", schemas.InventoryItemUpdate(barcode="880000000002"))


def test_update_item_replaces_short_barcode():
    state = make_state(items=[make_item("A", barcode="880000000001")])
    state, item = inventory_service.update_item(state, "A", schemas.InventoryItemUpdate(barcode="12 3"))
    assert len(item.barcode) == 12
    assert item.barcode.startswith("88")
    assert state.inventory[0].barcode == item.barcode


def test_update_unknown_item():
    with pytest.raises(inventory_service.ItemNotFound):
        inventory_service.update_item(make_state(), "nope", schemas.InventoryItemUpdate(name="x"))


def test_restock_adds_to_total_and_available():
    state, item = inventory_service.restock(make_state(items=[make_item("A")]), "A", 5)
    assert item.total_quantity == 15
    assert item.available_quantity == 15


def test_bulk_import_merges_by_name():
    state = make_state(items=[make_item("A", name="Speaker")])
    payloads = [
        schemas.InventoryItemCreate(name="speaker", total_quantity=2, available_quantity=2),
        schemas.InventoryItemCreate(name="Mixer", total_quantity=1, available_quantity=1),
    ]
    state, touched = inventory_service.bulk_import(state, payloads)
    assert len(state.inventory) == 2
    assert state.inventory[0].total_quantity == 12
    assert state.inventory[0].available_quantity == 12
    assert state.inventory[1].name == "Mixer"
    assert len(touched) == 2


@pytest.mark.parametrize(
    "action,field",
    [("TO_MAINTENANCE", "maintenance_quantity"), ("TO_BROKEN", "broken_quantity"), ("TO_LOST", "lost_quantity")],
)
def test_status_moves_are_bounded_by_available(action, field):
    state = make_state(items=[make_item("A", available_quantity=3)])
    _, item = inventory_service.change_status(state, "A", action, 5)
    assert item.available_quantity == 0
    assert getattr(item, field) == 3


def test_fixed_prefers_maintenance_then_broken():
    state = make_state(items=[make_item("A", available_quantity=0, maintenance_quantity=1, broken_quantity=2)])
    _, item = inventory_service.change_status(state, "A", "FIXED", 2)
    assert item.maintenance_quantity == 1
    assert item.broken_quantity == 0
    assert item.available_quantity == 2


def test_dispose_removes_from_total():
    state = make_state(items=[make_item("A", broken_quantity=2, total_quantity=10)])
    _, item = inventory_service.change_status(state, "A", "DISPOSE", 3)
    assert item.total_quantity == 7
    assert item.broken_quantity == 0


def test_delete_refused_while_in_use():
    state = make_state(items=[make_item("A", in_use_quantity=1)])
    with pytest.raises(inventory_service.ItemInUse):
        inventory_service.delete_item(state, "A")


def test_delete_strips_allocations():
    state = make_state(items=[make_item("A"), make_item("B")], allocations=[{"item_id": "A", "quantity": 1}, {"item_id": "B", "quantity": 1}])
    state, _ = inventory_service.delete_item(state, "A")
    assert [i.id for i in state.inventory] == ["B"]
    assert [a.item_id for a in state.events[0].items] == ["B"]


def test_backfill_barcodes_reports_updated_items():
    state = make_state(items=[make_item("A"), make_item("B", barcode="880000000002")])
    state, updated = inventory_service.backfill_barcodes(state)
    assert [i.id for i in updated] == ["A"]
    assert all(len(i.barcode) == 12 for i in state.inventory)


def test_allocation_quantity_cannot_drop_below_returned():
    state = make_state(items=[make_item("A")], allocations=[{"item_id": "A", "quantity": 5, "returned_quantity": 3}])
    _, alloc = event_service.update_allocation(state, "E1", "A", schemas.AllocationUpdate(quantity=1, done=True))
    assert alloc.quantity == 3
    assert alloc.done is True


def test_allocate_item_accumulates_without_moving_stock():
    state = make_state(items=[make_item("A")])
    state, _ = event_service.allocate_item(state, "E1", "A", 2)
    state, alloc = event_service.allocate_item(state, "E1", "A", 3)
    assert alloc.quantity == 5
    assert state.inventory[0].available_quantity == 10


def test_event_errors():
    state = make_state(items=[make_item("A")])
    with pytest.raises(event_service.EventNotFound):
        event_service.allocate_item(state, "nope", "A", 1)
    with pytest.raises(event_service.AllocationNotFound):
        event_service.remove_allocation(state, "E1", "A")
    with pytest.raises(event_service.EventError):
        event_service.allocate_item(state, "E1", "missing", 1)
