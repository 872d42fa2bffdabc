from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from .. import schemas, store
from ..services import events as event_service
from ..services.checklist import find_event, find_item

router = APIRouter(prefix="/api/events", tags=["events"])


def _raise_http(exc: event_service.EventError):
    if isinstance(exc, (event_service.EventNotFound, event_service.AllocationNotFound)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("", response_model=List[schemas.Event])
async def list_events(event_status: Optional[str] = None, db: Session = Depends(get_db)):
    events = store.load_state(db).events
    if event_status:
        events = [e for e in events if e.status == event_status]
    return events


@router.post("", response_model=schemas.Event)
async def create_event(payload: schemas.EventCreate, db: Session = Depends(get_db)):
    state = store.load_state(db)
    try:
        state, event = event_service.create_event(state, payload)
    except event_service.EventError as exc:
        _raise_http(exc)
    await store.commit(db, state, f"Created event {event.name}", "SUCCESS")
    return event


@router.get("/{event_id}", response_model=schemas.Event)
async def get_event(event_id: str, db: Session = Depends(get_db)):
    event = find_event(store.load_state(db), event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.post("/{event_id}/items", response_model=schemas.EventItemAllocation)
async def allocate_item(
    event_id: str,
    payload: schemas.AllocationIn,
    db: Session = Depends(get_db),
):
    state = store.load_state(db)
    try:
        state, alloc = event_service.allocate_item(state, event_id, payload.item_id, payload.quantity)
    except event_service.EventError as exc:
        _raise_http(exc)
    event = find_event(state, event_id)
    item = find_item(state.inventory, payload.item_id)
    await store.commit(db, state, f"Allocated {payload.quantity} x {item.name} to {event.name}")
    return alloc


@router.put("/{event_id}/items/{item_id}", response_model=schemas.EventItemAllocation)
async def update_allocation(
    event_id: str,
    item_id: str,
    payload: schemas.AllocationUpdate,
    db: Session = Depends(get_db),
):
    state = store.load_state(db)
    try:
        state, alloc = event_service.update_allocation(state, event_id, item_id, payload)
    except event_service.EventError as exc:
        _raise_http(exc)
    await store.commit(db, state, f"Updated allocation of {item_id} in event {event_id}")
    return alloc


@router.delete("/{event_id}/items/{item_id}", status_code=204)
async def remove_allocation(event_id: str, item_id: str, db: Session = Depends(get_db)):
    state = store.load_state(db)
    try:
        state = event_service.remove_allocation(state, event_id, item_id)
    except event_service.EventError as exc:
        _raise_http(exc)
    await store.commit(db, state, f"Removed {item_id} from event {event_id}")
    return Response(status_code=204)
