"""CLI utilities for warehouse maintenance."""

from __future__ import annotations

import json

import typer

from .. import activity, schemas, store
from ..data.loaders import get_sample_inventory
from ..database import SessionLocal, init_db
from ..services import inventory as inventory_service

app = typer.Typer(help="Warehouse maintenance commands")


def seed_inventory(force: bool = False) -> dict[str, int | bool]:
    """Load the starter catalogue when the store holds no inventory."""

    init_db()
    session = SessionLocal()
    try:
        state = store.load_state(session)
        if state.inventory and not force:
            return {"created": 0, "skipped": True}
        payloads = [schemas.InventoryItemCreate(**row) for row in get_sample_inventory()]
        state, touched = inventory_service.bulk_import(state, payloads)
        activity.log_action(state, f"Seeded {len(touched)} items", "SUCCESS")
        store.save_state(session, state)
        return {"created": len(touched), "skipped": False}
    finally:
        session.close()


def backfill_barcodes() -> dict[str, int]:
    init_db()
    session = SessionLocal()
    try:
        state = store.load_state(session)
        state, updated = inventory_service.backfill_barcodes(state)
        if updated:
            activity.log_action(state, f"Generated barcodes for {len(updated)} items")
            store.save_state(session, state)
        return {"updated": len(updated)}
    finally:
        session.close()


@app.command("seed")
def seed_command(
    force: bool = typer.Option(False, help="Merge the catalogue even if inventory exists"),
) -> None:
    typer.echo(json.dumps(seed_inventory(force=force)))


@app.command("backfill-barcodes")
def backfill_barcodes_command() -> None:
    """Assign generated barcodes to items without a usable one."""

    typer.echo(json.dumps(backfill_barcodes()))


if __name__ == "__main__":
    app()
