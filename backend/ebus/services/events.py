"""Event records and their equipment allocations."""

from __future__ import annotations

from uuid import uuid4

from .. import schemas
from .checklist import create_empty_checklist, find_allocation, find_event, find_item


# purpose: maintain planned equipment per event ahead of checklist scanning
# status: active


class EventError(RuntimeError):
    """Base error for event operations."""


class EventNotFound(EventError):
    """Raised when an event cannot be located."""


class AllocationNotFound(EventError):
    """Raised when an event has no allocation for the item."""


def _require_event(state: schemas.AppState, event_id: str) -> schemas.Event:
    event = find_event(state, event_id)
    if event is None:
        raise EventNotFound(f"Event {event_id} not found")
    return event


def create_event(state: schemas.AppState, payload: schemas.EventCreate) -> tuple[schemas.AppState, schemas.Event]:
    data = payload.model_dump()
    event_id = data.pop("id") or f"EVT-{uuid4().hex[:8].upper()}"
    if find_event(state, event_id) is not None:
        raise EventError(f"Event {event_id} already exists")
    event = schemas.Event(id=event_id, checklist=create_empty_checklist(), **data)
    next_state = state.model_copy(deep=True)
    next_state.events.append(event)
    return next_state, event


def allocate_item(
    state: schemas.AppState,
    event_id: str,
    item_id: str,
    quantity: int,
) -> tuple[schemas.AppState, schemas.EventItemAllocation]:
    """Add planned quantity for an item.

    Stock is not moved here; the outbound slip commits it.
    """

    _require_event(state, event_id)
    if find_item(state.inventory, item_id) is None:
        raise EventError(f"Item {item_id} not found")
    next_state = state.model_copy(deep=True)
    event = find_event(next_state, event_id)
    alloc = find_allocation(event, item_id)
    if alloc is None:
        alloc = schemas.EventItemAllocation(item_id=item_id, quantity=0)
        event.items.append(alloc)
    alloc.quantity += quantity
    return next_state, alloc


def update_allocation(
    state: schemas.AppState,
    event_id: str,
    item_id: str,
    payload: schemas.AllocationUpdate,
) -> tuple[schemas.AppState, schemas.EventItemAllocation]:
    event = _require_event(state, event_id)
    if find_allocation(event, item_id) is None:
        raise AllocationNotFound(f"Item {item_id} is not allocated to event {event_id}")
    next_state = state.model_copy(deep=True)
    alloc = find_allocation(find_event(next_state, event_id), item_id)
    if payload.quantity is not None:
        # already returned units cannot be un-ordered
        alloc.quantity = max(payload.quantity, alloc.returned_quantity)
    if payload.done is not None:
        alloc.done = payload.done
    return next_state, alloc


def remove_allocation(state: schemas.AppState, event_id: str, item_id: str) -> schemas.AppState:
    event = _require_event(state, event_id)
    if find_allocation(event, item_id) is None:
        raise AllocationNotFound(f"Item {item_id} is not allocated to event {event_id}")
    next_state = state.model_copy(deep=True)
    event = find_event(next_state, event_id)
    event.items = [alloc for alloc in event.items if alloc.item_id != item_id]
    return next_state
