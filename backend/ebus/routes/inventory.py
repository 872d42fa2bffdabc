from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from .. import barcodes, schemas, store
from ..services import inventory as inventory_service
from ..services.checklist import find_item

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


def _raise_http(exc: inventory_service.InventoryError):
    if isinstance(exc, inventory_service.ItemNotFound):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, inventory_service.DuplicateBarcode):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "barcode": exc.barcode,
                "conflict_id": exc.conflict.id,
                "conflict_name": exc.conflict.name,
            },
        ) from exc
    if isinstance(exc, inventory_service.ItemInUse):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/items", response_model=List[schemas.InventoryItem])
async def list_items(
    name: Optional[str] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
):
    items = store.load_state(db).inventory
    if name:
        items = [i for i in items if name.lower() in i.name.lower()]
    if category:
        items = [i for i in items if i.category == category]
    return items


@router.post("/items", response_model=schemas.InventoryItem)
async def create_item(item: schemas.InventoryItemCreate, db: Session = Depends(get_db)):
    state = store.load_state(db)
    try:
        state, created = inventory_service.add_item(state, item)
    except inventory_service.InventoryError as exc:
        _raise_http(exc)
    await store.commit(db, state, f"Added item {created.name}", "SUCCESS")
    return created


@router.put("/items/{item_id}", response_model=schemas.InventoryItem)
async def update_item(
    item_id: str,
    item: schemas.InventoryItemUpdate,
    db: Session = Depends(get_db),
):
    state = store.load_state(db)
    try:
        state, updated = inventory_service.update_item(state, item_id, item)
    except inventory_service.InventoryError as exc:
        _raise_http(exc)
    await store.commit(db, state, f"Updated item {updated.name}")
    return updated


@router.delete("/items/{item_id}", status_code=204)
async def delete_item(item_id: str, db: Session = Depends(get_db)):
    state = store.load_state(db)
    try:
        state, removed = inventory_service.delete_item(state, item_id)
    except inventory_service.ItemInUse as exc:
        await store.commit(db, state, f"Delete refused: {exc.item.name} is in use", "WARNING")
        _raise_http(exc)
    except inventory_service.InventoryError as exc:
        _raise_http(exc)
    await store.commit(db, state, f"Deleted item {removed.name}", "SUCCESS")
    return Response(status_code=204)


@router.post("/items/{item_id}/restock", response_model=schemas.InventoryItem)
async def restock_item(
    item_id: str,
    payload: schemas.RestockIn,
    db: Session = Depends(get_db),
):
    state = store.load_state(db)
    try:
        state, item = inventory_service.restock(state, item_id, payload.quantity)
    except inventory_service.InventoryError as exc:
        _raise_http(exc)
    await store.commit(db, state, f"Restocked {payload.quantity} x {item.name}")
    return item


@router.post("/items/{item_id}/status", response_model=schemas.InventoryItem)
async def change_item_status(
    item_id: str,
    payload: schemas.StatusChangeIn,
    db: Session = Depends(get_db),
):
    state = store.load_state(db)
    try:
        state, item = inventory_service.change_status(state, item_id, payload.action, payload.quantity)
    except inventory_service.InventoryError as exc:
        _raise_http(exc)
    message = f"Status {payload.action} for {payload.quantity} x {item.name}"
    if payload.note:
        message = f"{message}: {payload.note}"
    await store.commit(db, state, message)
    return item


@router.post("/import", response_model=List[schemas.InventoryItem])
async def import_items(
    items: List[schemas.InventoryItemCreate],
    db: Session = Depends(get_db),
):
    state = store.load_state(db)
    try:
        state, touched = inventory_service.bulk_import(state, items)
    except inventory_service.InventoryError as exc:
        _raise_http(exc)
    await store.commit(db, state, f"Imported {len(items)} items")
    return touched


@router.post("/barcodes/backfill", response_model=schemas.BarcodeBackfillOut)
async def backfill_barcodes(db: Session = Depends(get_db)):
    state = store.load_state(db)
    state, updated = inventory_service.backfill_barcodes(state)
    if updated:
        await store.commit(db, state, f"Generated barcodes for {len(updated)} items")
    return schemas.BarcodeBackfillOut(updated=len(updated), items=updated)


@router.get("/lookup", response_model=schemas.InventoryItem)
async def lookup_barcode(code: str, db: Session = Depends(get_db)):
    item = barcodes.find_by_barcode(store.load_state(db).inventory, code)
    if item is None:
        raise HTTPException(status_code=404, detail="Barcode not found")
    return item


@router.get("/items/{item_id}/barcode.png")
async def item_barcode_png(item_id: str, db: Session = Depends(get_db)):
    item = find_item(store.load_state(db).inventory, item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    if not item.barcode:
        raise HTTPException(status_code=400, detail="Item has no barcode")
    return Response(content=barcodes.generate_barcode_png(item.barcode), media_type="image/png")
