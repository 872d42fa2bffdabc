"""Two-signature hand-off slips.

Each slip covers only the movement not yet covered by earlier slips of the
same direction, so several partial hand-offs (one per truck, say) can be
signed without counting an item twice. Creating a slip is also the moment
the inventory movement is committed: outbound slips move stock from
available to in use, inbound slips credit it back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from prometheus_client import Counter

from .. import schemas
from . import checklist as checklist_service

logger = logging.getLogger(__name__)

SLIP_COUNT = Counter("checklist_slips_total", "Checklist slips created", ["direction"])

_PAIR_KEYS = {"OUT": "outbound", "IN": "inbound"}


@dataclass
class SignatureOutcome:
    state: schemas.AppState
    slip: Optional[schemas.ChecklistSlip] = None
    pending_items: list[schemas.ChecklistSlipItem] = field(default_factory=list)


def snapshot_rows(
    event: schemas.Event,
    checklist: schemas.EventChecklist,
    inventory: Sequence[schemas.InventoryItem] = (),
) -> list[schemas.ChecklistSlipItem]:
    rows = []
    for item_id in checklist_service.checklist_item_ids(event, checklist):
        alloc = checklist_service.find_allocation(event, item_id)
        order_qty = alloc.quantity if alloc else 0
        scanned_in = checklist_service.count(checklist.inbound, item_id)
        lost = checklist_service.count(checklist.lost, item_id)
        item = checklist_service.find_item(inventory, item_id)
        rows.append(
            schemas.ChecklistSlipItem(
                item_id=item_id,
                name=item.name if item else None,
                order_qty=order_qty,
                scanned_out=checklist_service.count(checklist.outbound, item_id),
                scanned_in=scanned_in,
                damaged=checklist_service.count(checklist.damaged, item_id),
                lost=lost,
                missing=checklist_service.missing_quantity(order_qty, scanned_in, lost),
            )
        )
    return rows


def covered_totals(slips: Sequence[schemas.ChecklistSlip], direction: str) -> dict[str, int]:
    """Per-item quantity already covered by slips of ``direction``."""

    totals: dict[str, int] = {}
    for slip in slips:
        if slip.direction != direction:
            continue
        for line in slip.items:
            qty = line.scanned_out if direction == "OUT" else line.scanned_in
            checklist_service.add_to(totals, line.item_id, qty)
    return totals


def pending_items(
    checklist: schemas.EventChecklist,
    direction: str,
    rows: Sequence[schemas.ChecklistSlipItem],
) -> list[schemas.ChecklistSlipItem]:
    """Rows reduced to the movement no earlier slip has covered."""

    covered = covered_totals(checklist.slips, direction)
    pending = []
    for row in rows:
        prior = checklist_service.count(covered, row.item_id)
        if direction == "OUT":
            delta = row.scanned_out - prior
            if delta > 0:
                pending.append(row.model_copy(update={"scanned_out": delta}))
        else:
            total_out = checklist_service.count(checklist.outbound, row.item_id)
            remaining_out = max(0, total_out - prior)
            delta = min(remaining_out, row.scanned_in - prior)
            if delta > 0:
                pending.append(row.model_copy(update={"scanned_in": delta, "scanned_out": total_out}))
    return pending


def _merge_signatures(
    current: Optional[schemas.ChecklistSignaturePair],
    command: schemas.SignatureCommand,
) -> schemas.ChecklistSignaturePair:
    pair = current.model_copy(deep=True) if current else schemas.ChecklistSignaturePair(direction=command.direction)
    pair.direction = command.direction
    if command.manager is not None:
        pair.manager = command.manager
    if command.operator is not None:
        pair.operator = command.operator
    if command.note is not None:
        pair.note = command.note
    return pair


def _commit_movement(
    inventory: Sequence[schemas.InventoryItem],
    direction: str,
    items: Sequence[schemas.ChecklistSlipItem],
) -> None:
    for line in items:
        item = checklist_service.find_item(inventory, line.item_id)
        if item is None:
            continue
        if direction == "OUT":
            qty = line.scanned_out
            item.available_quantity -= qty
            item.in_use_quantity += qty
            item.usage_count += qty
        else:
            qty = line.scanned_in
            item.available_quantity += qty
            item.in_use_quantity = max(0, item.in_use_quantity - qty)


def save_signature(state: schemas.AppState, command: schemas.SignatureCommand) -> SignatureOutcome:
    """Record signatures for one direction and, when asked, cut a slip.

    A slip needs ``create_slip``, both signatures and at least one pending
    line; otherwise only the signature pair is stored.
    """

    if checklist_service.find_event(state, command.event_id) is None:
        logger.warning("signature for unknown event %s ignored", command.event_id)
        return SignatureOutcome(state=state)

    next_state = state.model_copy(deep=True)
    event = checklist_service.find_event(next_state, command.event_id)
    checklist = checklist_service.normalize_checklist(event.checklist)
    direction = command.direction
    pair_key = _PAIR_KEYS[direction]

    rows = command.items_snapshot
    if rows is None:
        rows = snapshot_rows(event, checklist, next_state.inventory)
    pending = pending_items(checklist, direction, rows)

    pair = _merge_signatures(getattr(checklist.signatures, pair_key), command)
    setattr(checklist.signatures, pair_key, pair)

    slip = None
    if command.create_slip and pair.manager and pair.operator and pending:
        slip_no = sum(1 for existing in checklist.slips if existing.direction == direction) + 1
        slip = schemas.ChecklistSlip(
            id=checklist_service.new_id("slip"),
            direction=direction,
            slip_no=slip_no,
            created_at=checklist_service.utcnow_iso(),
            manager=pair.manager,
            operator=pair.operator,
            note=pair.note,
            items=pending,
        )
        checklist.slips = [slip, *checklist.slips]
        _commit_movement(next_state.inventory, direction, pending)
        SLIP_COUNT.labels(direction).inc()
        logger.info(
            "slip %s #%s created for event %s with %d lines",
            direction, slip_no, event.id, len(pending),
        )

    event.checklist = checklist
    return SignatureOutcome(state=next_state, slip=slip, pending_items=[] if slip else pending)
