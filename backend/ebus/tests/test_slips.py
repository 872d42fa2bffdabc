"""Signature collection and hand-off slip deltas."""

from .. import schemas
from ..services import reconciliation, slips
from .conftest import make_item, make_state

MANAGER = {"name": "Minh", "title": "Warehouse manager", "signed_at": "2024-05-01T08:00:00Z", "data_url": "data:image/png;base64,AAA"}
OPERATOR = {"name": "Hoa", "signed_at": "2024-05-01T08:05:00Z", "data_url": "data:image/png;base64,BBB"}


def scan(state, direction, quantity, status=None, barcode="X"):
    command = schemas.ScanCommand(
        event_id="E1", barcode=barcode, direction=direction, quantity=quantity, status=status
    )
    return reconciliation.apply_scan(state, command).state


def sign(state, direction, create_slip=True, manager=MANAGER, operator=OPERATOR, **kwargs):
    command = schemas.SignatureCommand(
        event_id="E1",
        direction=direction,
        manager=manager,
        operator=operator,
        create_slip=create_slip,
        **kwargs,
    )
    return slips.save_signature(state, command)


def base_state(**item_overrides):
    item = make_item("X", total_quantity=20, available_quantity=20, **item_overrides)
    return make_state(items=[item], allocations=[{"item_id": "X", "quantity": 10}])


def test_outbound_slip_covers_all_scans_once():
    state = scan(scan(base_state(), "OUT", 6), "OUT", 4)
    outcome = sign(state, "OUT")
    slip = outcome.slip
    assert slip is not None
    assert slip.slip_no == 1
    assert slip.direction == "OUT"
    assert [(line.item_id, line.scanned_out) for line in slip.items] == [("X", 10)]
    assert slip.items[0].name == "Item X"
    assert slip.manager.name == "Minh" and slip.operator.name == "Hoa"

    again = sign(outcome.state, "OUT")
    assert again.slip is None
    assert again.pending_items == []
    assert len(again.state.events[0].checklist.slips) == 1


def test_outbound_slip_commits_inventory():
    state = scan(base_state(), "OUT", 6)
    outcome = sign(state, "OUT")
    item = outcome.state.inventory[0]
    assert item.available_quantity == 14
    assert item.in_use_quantity == 6
    assert item.usage_count == 6


def test_second_outbound_slip_only_covers_new_scans():
    state = scan(base_state(), "OUT", 6)
    first = sign(state, "OUT")
    state = scan(first.state, "OUT", 4)
    second = sign(state, "OUT")
    assert second.slip.slip_no == 2
    assert second.slip.items[0].scanned_out == 4
    slip_list = second.state.events[0].checklist.slips
    assert [s.slip_no for s in slip_list] == [2, 1]
    item = second.state.inventory[0]
    assert item.usage_count == 10
    assert item.in_use_quantity == 10
    assert item.available_quantity == 10


def test_slip_requires_both_signatures():
    state = scan(base_state(), "OUT", 3)
    only_manager = sign(state, "OUT", operator=None)
    assert only_manager.slip is None
    assert only_manager.state.inventory[0].available_quantity == 20
    pair = only_manager.state.events[0].checklist.signatures.outbound
    assert pair.manager.name == "Minh"
    assert pair.operator is None

    completed = sign(only_manager.state, "OUT", manager=None)
    assert completed.slip is not None
    pair = completed.state.events[0].checklist.signatures.outbound
    assert pair.manager.name == "Minh" and pair.operator.name == "Hoa"


def test_signature_without_create_slip_only_stores_pair():
    state = scan(base_state(), "OUT", 3)
    outcome = sign(state, "OUT", create_slip=False, note="truck 1")
    assert outcome.slip is None
    assert [line.scanned_out for line in outcome.pending_items] == [3]
    pair = outcome.state.events[0].checklist.signatures.outbound
    assert pair.note == "truck 1"
    assert pair.direction == "OUT"
    assert outcome.state.events[0].checklist.slips == []


def test_no_slip_without_pending_movement():
    outcome = sign(base_state(), "OUT")
    assert outcome.slip is None
    assert outcome.state.events[0].checklist.signatures.outbound is not None


def test_inbound_slip_is_bounded_by_outbound_total():
    state = scan(base_state(), "OUT", 4)
    state = sign(state, "OUT").state
    state = scan(state, "IN", 3)
    first_in = sign(state, "IN")
    assert first_in.slip.slip_no == 1
    line = first_in.slip.items[0]
    assert line.scanned_in == 3
    assert line.scanned_out == 4

    state = scan(first_in.state, "IN", 1, status="DAMAGED")
    second_in = sign(state, "IN")
    assert second_in.slip.slip_no == 2
    assert second_in.slip.items[0].scanned_in == 1
    assert second_in.slip.items[0].damaged == 1


def test_inbound_slip_ignores_returns_beyond_outbound():
    state = scan(base_state(), "OUT", 2)
    state = scan(state, "IN", 5)
    outcome = sign(state, "IN")
    assert outcome.slip.items[0].scanned_in == 2


def test_inbound_slip_credits_inventory():
    state = scan(base_state(), "OUT", 4)
    state = sign(state, "OUT").state
    state = scan(state, "IN", 4)
    scanned = state.inventory[0]
    outcome = sign(state, "IN")
    item = outcome.state.inventory[0]
    assert item.available_quantity == scanned.available_quantity + 4
    assert item.in_use_quantity == max(0, scanned.in_use_quantity - 4)
    assert item.usage_count == scanned.usage_count


def test_caller_snapshot_is_used_for_delta():
    state = scan(base_state(), "OUT", 5)
    snapshot = [{"item_id": "X", "name": "Custom", "order_qty": 10, "scanned_out": 2}]
    outcome = sign(state, "OUT", items_snapshot=snapshot)
    assert outcome.slip.items[0].scanned_out == 2
    assert outcome.slip.items[0].name == "Custom"


def test_directions_are_counted_separately():
    state = scan(base_state(), "OUT", 2)
    state = sign(state, "OUT").state
    state = scan(state, "IN", 2)
    outcome = sign(state, "IN")
    assert outcome.slip.slip_no == 1
    assert slips.covered_totals(outcome.state.events[0].checklist.slips, "OUT") == {"X": 2}
    assert slips.covered_totals(outcome.state.events[0].checklist.slips, "IN") == {"X": 2}


def test_unknown_event_is_noop():
    state = base_state()
    command = schemas.SignatureCommand(event_id="nope", direction="OUT", create_slip=True)
    outcome = slips.save_signature(state, command)
    assert outcome.state is state
    assert outcome.slip is None
