"""Warehouse stock operations over the application state."""

from __future__ import annotations

import logging
from typing import Sequence
from uuid import uuid4

from .. import barcodes, schemas
from .checklist import find_item

logger = logging.getLogger(__name__)


class InventoryError(RuntimeError):
    """Base error for inventory operations."""


class ItemNotFound(InventoryError):
    """Raised when an inventory item cannot be located."""


class DuplicateBarcode(InventoryError):
    """Raised when a barcode is already assigned to another item."""

    def __init__(self, barcode: str, conflict: schemas.InventoryItem) -> None:
        super().__init__(f"Barcode {barcode} already used by {conflict.name} ({conflict.id})")
        self.barcode = barcode
        self.conflict = conflict


class ItemInUse(InventoryError):
    """Raised when deleting an item that is still out at events."""

    def __init__(self, item: schemas.InventoryItem) -> None:
        super().__init__(f"{item.name} has {item.in_use_quantity} units in use")
        self.item = item


def _require_item(state: schemas.AppState, item_id: str) -> schemas.InventoryItem:
    item = find_item(state.inventory, item_id)
    if item is None:
        raise ItemNotFound(f"Item {item_id} not found")
    return item


def _check_barcode(inventory: Sequence[schemas.InventoryItem], code: str | None, exclude_id: str | None) -> None:
    conflict = barcodes.find_duplicate(inventory, code, exclude_id)
    if conflict is not None:
        logger.info("barcode %s rejected, already used by %s", code, conflict.id)
        raise DuplicateBarcode(barcodes.normalize(code), conflict)


def _assign_barcode(
    inventory: Sequence[schemas.InventoryItem],
    item: schemas.InventoryItem,
) -> schemas.InventoryItem:
    item = barcodes.ensure_barcode(item)
    # generated codes are not collision free
    while barcodes.find_duplicate(inventory, item.barcode, item.id) is not None:
        item = barcodes.ensure_barcode(item.model_copy(update={"barcode": None}), uuid4().hex[:4])
    return item


def add_item(
    state: schemas.AppState,
    payload: schemas.InventoryItemCreate,
) -> tuple[schemas.AppState, schemas.InventoryItem]:
    data = payload.model_dump()
    item_id = data.pop("id") or f"ITEM-{uuid4().hex[:8].upper()}"
    if find_item(state.inventory, item_id) is not None:
        raise InventoryError(f"Item {item_id} already exists")
    item = schemas.InventoryItem(id=item_id, **data)
    if item.barcode:
        _check_barcode(state.inventory, item.barcode, item.id)
    item = _assign_barcode(state.inventory, item)
    next_state = state.model_copy(deep=True)
    next_state.inventory.append(item)
    return next_state, item


def update_item(
    state: schemas.AppState,
    item_id: str,
    payload: schemas.InventoryItemUpdate,
) -> tuple[schemas.AppState, schemas.InventoryItem]:
    _require_item(state, item_id)
    changes = payload.model_dump(exclude_unset=True)
    if "barcode" in changes:
        changes["barcode"] = barcodes.normalize(changes["barcode"]) or None
        _check_barcode(state.inventory, changes["barcode"], item_id)
    next_state = state.model_copy(deep=True)
    item = find_item(next_state.inventory, item_id)
    for key, value in changes.items():
        setattr(item, key, value)
    if "barcode" in changes:
        # codes too short to scan reliably are replaced like on creation
        idx = next_state.inventory.index(item)
        item = _assign_barcode(next_state.inventory, item)
        next_state.inventory[idx] = item
    return next_state, item


def restock(state: schemas.AppState, item_id: str, quantity: int) -> tuple[schemas.AppState, schemas.InventoryItem]:
    _require_item(state, item_id)
    next_state = state.model_copy(deep=True)
    item = find_item(next_state.inventory, item_id)
    item.total_quantity += quantity
    item.available_quantity += quantity
    return next_state, item


def bulk_import(
    state: schemas.AppState,
    payloads: Sequence[schemas.InventoryItemCreate],
) -> tuple[schemas.AppState, list[schemas.InventoryItem]]:
    """Merge items by case-insensitive name, appending the rest."""

    next_state = state.model_copy(deep=True)
    touched = []
    for payload in payloads:
        existing = next(
            (item for item in next_state.inventory if item.name.lower() == payload.name.lower()),
            None,
        )
        if existing is not None:
            existing.total_quantity += payload.total_quantity
            existing.available_quantity += payload.available_quantity
            touched.append(existing)
        else:
            next_state, item = add_item(next_state, payload)
            touched.append(item)
    return next_state, touched


def change_status(
    state: schemas.AppState,
    item_id: str,
    action: schemas.StatusAction,
    quantity: int,
) -> tuple[schemas.AppState, schemas.InventoryItem]:
    """Move units between the quantity buckets of one item.

    Moves out of available stock are bounded by what is available.
    """

    _require_item(state, item_id)
    next_state = state.model_copy(deep=True)
    item = find_item(next_state.inventory, item_id)
    safe_qty = min(quantity, item.available_quantity)
    if action == "TO_MAINTENANCE":
        item.available_quantity -= safe_qty
        item.maintenance_quantity += safe_qty
    elif action == "TO_BROKEN":
        item.available_quantity -= safe_qty
        item.broken_quantity += safe_qty
    elif action == "TO_LOST":
        item.available_quantity -= safe_qty
        item.lost_quantity += safe_qty
    elif action == "FIXED":
        if item.maintenance_quantity >= quantity:
            item.maintenance_quantity -= quantity
        elif item.broken_quantity >= quantity:
            item.broken_quantity -= quantity
        item.available_quantity += quantity
    elif action == "DISPOSE":
        item.total_quantity -= quantity
        item.broken_quantity = max(0, item.broken_quantity - quantity)
    return next_state, item


def delete_item(state: schemas.AppState, item_id: str) -> tuple[schemas.AppState, schemas.InventoryItem]:
    item = _require_item(state, item_id)
    if item.in_use_quantity > 0:
        raise ItemInUse(item)
    next_state = state.model_copy(deep=True)
    next_state.inventory = [i for i in next_state.inventory if i.id != item_id]
    for event in next_state.events:
        event.items = [alloc for alloc in event.items if alloc.item_id != item_id]
    return next_state, item


def backfill_barcodes(state: schemas.AppState) -> tuple[schemas.AppState, list[schemas.InventoryItem]]:
    """Assign generated codes to items whose barcode is missing or too short."""

    next_state = state.model_copy(deep=True)
    next_state.inventory = barcodes.ensure_inventory_barcodes(next_state.inventory)
    before = {item.id: item.barcode for item in state.inventory}
    for idx, item in enumerate(next_state.inventory):
        if before.get(item.id) == item.barcode:
            continue
        next_state.inventory[idx] = _assign_barcode(next_state.inventory, item)
    updated = [item for item in next_state.inventory if before.get(item.id) != item.barcode]
    return next_state, updated
