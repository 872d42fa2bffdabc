"""Barcode scan reducer for event checklists.

A scan moves the checklist tallies of one event and, for returns, the
quantity buckets of the scanned inventory item. Outbound scans only touch
the checklist: stock leaves the warehouse when a signed outbound slip is
created (see ``services.slips``).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from prometheus_client import Counter

from .. import barcodes, schemas
from . import checklist as checklist_service

logger = logging.getLogger(__name__)

SCAN_COUNT = Counter(
    "checklist_scans_total", "Checklist scans processed", ["direction", "status"]
)


@dataclass
class ScanOutcome:
    state: schemas.AppState
    entry: Optional[schemas.ChecklistLogEntry] = None
    item: Optional[schemas.InventoryItem] = None
    allocation: Optional[schemas.EventItemAllocation] = None


def requested_quantity(quantity: Optional[float]) -> int:
    """Round half up and never go below one."""

    if quantity is None or not math.isfinite(quantity):
        return 1
    return max(1, int(math.floor(quantity + 0.5)))


def applied_return_quantity(
    allocation: Optional[schemas.EventItemAllocation],
    requested: int,
) -> int:
    remaining = 0
    if allocation is not None:
        remaining = max(0, allocation.quantity - allocation.returned_quantity)
    # untracked items are accepted as scanned
    return min(requested, remaining) if remaining > 0 else requested


def _return_to_inventory(item: schemas.InventoryItem, status: str, quantity: int) -> None:
    if status == "DAMAGED":
        item.broken_quantity += quantity
    elif status == "LOST":
        item.lost_quantity += quantity
    else:
        item.available_quantity += quantity
    item.in_use_quantity = max(0, item.in_use_quantity - quantity)


def apply_scan(state: schemas.AppState, command: schemas.ScanCommand) -> ScanOutcome:
    """Apply one scan to the event named by ``command``.

    Unknown events leave the state untouched. Unknown barcodes only append a
    ``MISSING`` log entry.
    """

    if checklist_service.find_event(state, command.event_id) is None:
        logger.warning("scan for unknown event %s ignored", command.event_id)
        return ScanOutcome(state=state)

    next_state = state.model_copy(deep=True)
    event = checklist_service.find_event(next_state, command.event_id)
    checklist = checklist_service.normalize_checklist(event.checklist)
    quantity = requested_quantity(command.quantity)
    note = (command.note or "").strip() or None
    code = barcodes.normalize(command.barcode)
    item = barcodes.find_by_barcode(next_state.inventory, code)

    if item is None:
        logger.warning("unknown barcode %r scanned for event %s", code, event.id)
        entry = schemas.ChecklistLogEntry(
            id=checklist_service.new_id("scan"),
            barcode=code,
            direction=command.direction,
            status="MISSING",
            quantity=quantity,
            note=note,
            timestamp=checklist_service.utcnow_iso(),
        )
        checklist_service.prepend_log(checklist, entry)
        event.checklist = checklist
        SCAN_COUNT.labels(command.direction, "MISSING").inc()
        return ScanOutcome(state=next_state, entry=entry)

    allocation = checklist_service.find_allocation(event, item.id)
    if command.direction == "OUT":
        status = "OK"
        applied = quantity
        checklist_service.add_to(checklist.outbound, item.id, applied)
    else:
        status = command.status or "OK"
        applied = applied_return_quantity(allocation, quantity)
        checklist_service.add_to(checklist.inbound, item.id, applied)
        if status == "DAMAGED":
            checklist_service.add_to(checklist.damaged, item.id, applied)
        elif status == "LOST":
            checklist_service.add_to(checklist.lost, item.id, applied)
        _return_to_inventory(item, status, applied)
        if note:
            checklist.notes[item.id] = note
        if allocation is None:
            allocation = schemas.EventItemAllocation(item_id=item.id, quantity=0)
            event.items.append(allocation)
        allocation.returned_quantity += applied

    entry = schemas.ChecklistLogEntry(
        id=checklist_service.new_id("scan"),
        barcode=item.barcode or code,
        item_id=item.id,
        item_name=item.name,
        direction=command.direction,
        status=status,
        quantity=applied,
        note=note,
        timestamp=checklist_service.utcnow_iso(),
    )
    checklist_service.prepend_log(checklist, entry)
    event.checklist = checklist
    SCAN_COUNT.labels(command.direction, status).inc()
    return ScanOutcome(state=next_state, entry=entry, item=item, allocation=allocation)
