"""Event checklist shape, defaults and the per-item reconciliation view."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence
from uuid import uuid4

from .. import schemas

# purpose: keep checklist records loadable across schema revisions and derive the row view
# status: active
# depends_on: ebus.schemas.EventChecklist

LOG_LIMIT = 50

_TALLY_FIELDS = ("outbound", "inbound", "damaged", "lost", "notes")
_LIST_FIELDS = ("logs", "slips")


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:12]}"


def create_empty_checklist() -> schemas.EventChecklist:
    return schemas.EventChecklist()


def normalize_checklist(raw: Any = None) -> schemas.EventChecklist:
    """Return a checklist with every field present.

    Records written by older clients may lack tallies, signature pairs or
    slips, and may carry explicit nulls where a mapping is expected.
    """

    if raw is None:
        return create_empty_checklist()
    if isinstance(raw, schemas.EventChecklist):
        raw = raw.model_dump()
    data = dict(raw)
    for field in _TALLY_FIELDS:
        data[field] = {key: value for key, value in (data.get(field) or {}).items() if value is not None}
    for field in _LIST_FIELDS:
        data[field] = list(data.get(field) or [])
    data["signatures"] = data.get("signatures") or {}
    return schemas.EventChecklist.model_validate(data)


def count(tally: Mapping[str, int], item_id: str) -> int:
    """Default-zero lookup into a per-item tally."""

    return int(tally.get(item_id, 0) or 0)


def add_to(tally: dict[str, int], item_id: str, quantity: int) -> None:
    tally[item_id] = count(tally, item_id) + quantity


def missing_quantity(order_qty: int, scanned_in: int, lost: int) -> int:
    return max(0, order_qty - scanned_in - lost)


def find_event(state: schemas.AppState, event_id: str) -> Optional[schemas.Event]:
    return next((event for event in state.events if event.id == event_id), None)


def find_item(inventory: Iterable[schemas.InventoryItem], item_id: str) -> Optional[schemas.InventoryItem]:
    return next((item for item in inventory if item.id == item_id), None)


def find_allocation(event: schemas.Event, item_id: str) -> Optional[schemas.EventItemAllocation]:
    return next((alloc for alloc in event.items if alloc.item_id == item_id), None)


def checklist_item_ids(event: schemas.Event, checklist: schemas.EventChecklist) -> list[str]:
    """Allocated items first, then anything only seen by the scanner."""

    ids: dict[str, None] = {}
    for alloc in event.items:
        ids.setdefault(alloc.item_id, None)
    for tally in (checklist.outbound, checklist.inbound, checklist.damaged, checklist.lost):
        for item_id in tally:
            ids.setdefault(item_id, None)
    return list(ids)


def build_rows(
    event: schemas.Event,
    inventory: Sequence[schemas.InventoryItem],
) -> list[schemas.ChecklistRow]:
    checklist = normalize_checklist(event.checklist)
    rows = []
    for item_id in checklist_item_ids(event, checklist):
        item = find_item(inventory, item_id)
        alloc = find_allocation(event, item_id)
        order_qty = alloc.quantity if alloc else 0
        scanned_in = count(checklist.inbound, item_id)
        lost = count(checklist.lost, item_id)
        rows.append(
            schemas.ChecklistRow(
                item_id=item_id,
                name=item.name if item else None,
                barcode=item.barcode if item else None,
                order_qty=order_qty,
                scanned_out=count(checklist.outbound, item_id),
                scanned_in=scanned_in,
                damaged=count(checklist.damaged, item_id),
                lost=lost,
                missing=missing_quantity(order_qty, scanned_in, lost),
                note=checklist.notes.get(item_id, ""),
            )
        )
    return rows


def summarize(rows: Iterable[schemas.ChecklistSlipItem]) -> schemas.ChecklistTotals:
    totals = schemas.ChecklistTotals()
    for row in rows:
        totals.expected += row.order_qty
        totals.scanned_out += row.scanned_out
        totals.scanned_in += row.scanned_in
        totals.missing += row.missing
        totals.damaged += row.damaged
        totals.lost += row.lost
    return totals


def build_view(event: schemas.Event, inventory: Sequence[schemas.InventoryItem]) -> schemas.ChecklistView:
    rows = build_rows(event, inventory)
    return schemas.ChecklistView(
        event_id=event.id,
        checklist=normalize_checklist(event.checklist),
        rows=rows,
        totals=summarize(rows),
    )


def prepend_log(checklist: schemas.EventChecklist, entry: schemas.ChecklistLogEntry) -> None:
    checklist.logs = [entry, *checklist.logs][:LOG_LIMIT]


def update_note(
    state: schemas.AppState,
    event_id: str,
    item_id: str,
    note: str,
) -> schemas.AppState:
    """Set the free-text note for one item; a blank note clears it."""

    if find_event(state, event_id) is None:
        return state
    next_state = state.model_copy(deep=True)
    event = find_event(next_state, event_id)
    checklist = normalize_checklist(event.checklist)
    text = (note or "").strip()
    if text:
        checklist.notes[item_id] = text
    else:
        checklist.notes.pop(item_id, None)
    event.checklist = checklist
    return next_state
