from fastapi import APIRouter, Depends, HTTPException, Request
import os
from sqlalchemy.orm import Session
from typing import List
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..database import get_db
from .. import schemas, store
from ..services import checklist as checklist_service
from ..services import reconciliation, slips

limiter = Limiter(key_func=get_remote_address, enabled=os.getenv("TESTING") != "1")
SCAN_RATE_LIMIT = os.getenv("SCAN_RATE_LIMIT", "120/minute")
SIGNATURE_RATE_LIMIT = os.getenv("SIGNATURE_RATE_LIMIT", "20/minute")

router = APIRouter(prefix="/api/events/{event_id}/checklist", tags=["checklist"])


def _load_event(db: Session, event_id: str):
    state = store.load_state(db)
    event = checklist_service.find_event(state, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return state, event


@router.get("", response_model=schemas.ChecklistView)
async def get_checklist(event_id: str, db: Session = Depends(get_db)):
    state, event = _load_event(db, event_id)
    return checklist_service.build_view(event, state.inventory)


@router.get("/slips", response_model=List[schemas.ChecklistSlip])
async def list_slips(event_id: str, direction: str | None = None, db: Session = Depends(get_db)):
    _, event = _load_event(db, event_id)
    slip_list = event.checklist.slips
    if direction:
        slip_list = [s for s in slip_list if s.direction == direction]
    return slip_list


@router.post("/scan", response_model=schemas.ScanOut)
@limiter.limit(SCAN_RATE_LIMIT)
async def scan(request: Request, event_id: str, payload: schemas.ScanIn, db: Session = Depends(get_db)):
    state, event = _load_event(db, event_id)
    command = schemas.ScanCommand(event_id=event_id, **payload.model_dump())
    outcome = reconciliation.apply_scan(state, command)
    entry = outcome.entry
    if outcome.item is None:
        message = f"Unknown barcode {entry.barcode} scanned for {event.name}"
        level = "WARNING"
    else:
        message = f"Scan {entry.direction} {entry.status} {entry.quantity} x {entry.item_name} ({event.name})"
        level = "INFO"
    await store.commit(db, outcome.state, message, level)
    updated = checklist_service.find_event(outcome.state, event_id)
    return schemas.ScanOut(
        entry=entry,
        item=outcome.item,
        allocation=outcome.allocation,
        checklist=updated.checklist,
    )


@router.post("/signatures", response_model=schemas.SignatureOut)
@limiter.limit(SIGNATURE_RATE_LIMIT)
async def save_signature(request: Request, event_id: str, payload: schemas.SignatureIn, db: Session = Depends(get_db)):
    state, event = _load_event(db, event_id)
    command = schemas.SignatureCommand(event_id=event_id, **payload.model_dump())
    outcome = slips.save_signature(state, command)
    if outcome.slip is not None:
        message = f"Slip {outcome.slip.direction} #{outcome.slip.slip_no} signed for {event.name}"
        level = "SUCCESS"
    else:
        message = f"Signature saved ({payload.direction}) for {event.name}"
        level = "INFO"
    await store.commit(db, outcome.state, message, level)
    updated = checklist_service.find_event(outcome.state, event_id)
    return schemas.SignatureOut(
        slip=outcome.slip,
        signatures=updated.checklist.signatures,
        pending_items=outcome.pending_items,
    )


@router.put("/notes/{item_id}", response_model=schemas.ChecklistView)
async def update_note(
    event_id: str,
    item_id: str,
    payload: schemas.NoteIn,
    db: Session = Depends(get_db),
):
    state, _ = _load_event(db, event_id)
    state = checklist_service.update_note(state, event_id, item_id, payload.note)
    await store.commit(db, state, f"Updated checklist note for {item_id}")
    event = checklist_service.find_event(state, event_id)
    return checklist_service.build_view(event, state.inventory)
