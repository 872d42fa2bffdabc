"""Whole-state document persistence."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from . import activity, models, pubsub, schemas
from .services.checklist import normalize_checklist

logger = logging.getLogger(__name__)

# purpose: persist the application state as one document and echo changes to listeners
# status: active
# depends_on: ebus.models.StateDocument, ebus.pubsub

STATE_DOCUMENT_KEY = os.getenv("STATE_DOCUMENT_KEY", "main")


def serialize_state(state: schemas.AppState) -> dict[str, Any]:
    # datetimes become ISO strings, unset optionals become null
    return state.model_dump(mode="json")


def normalize_state(raw: dict[str, Any] | None) -> schemas.AppState:
    """Fill defaults for records written by older clients."""

    data = dict(raw or {})
    events = []
    for event in data.get("events") or []:
        event = dict(event)
        event["items"] = list(event.get("items") or [])
        event["checklist"] = normalize_checklist(event.get("checklist"))
        events.append(event)
    return schemas.AppState.model_validate(
        {
            "inventory": list(data.get("inventory") or []),
            "events": events,
            "logs": list(data.get("logs") or []),
            "last_updated": data.get("last_updated"),
        }
    )


def load_state(db: Session, key: str | None = None) -> schemas.AppState:
    doc = db.get(models.StateDocument, key or STATE_DOCUMENT_KEY)
    if doc is None:
        return schemas.AppState()
    state = normalize_state(doc.payload)
    if state.last_updated is None:
        state.last_updated = doc.last_updated
    return state


def save_state(db: Session, state: schemas.AppState, key: str | None = None) -> schemas.AppState:
    key = key or STATE_DOCUMENT_KEY
    state.last_updated = datetime.now(timezone.utc)
    payload = serialize_state(state)
    doc = db.get(models.StateDocument, key)
    if doc is None:
        doc = models.StateDocument(key=key)
        db.add(doc)
    doc.payload = payload
    doc.last_updated = state.last_updated
    db.commit()
    logger.debug(
        "saved state %s: %d items, %d events",
        key, len(state.inventory), len(state.events),
    )
    return state


async def commit(
    db: Session,
    state: schemas.AppState,
    message: str,
    type: schemas.ActivityType = "INFO",
) -> schemas.AppState:
    """Record the activity entry, write the document and notify listeners."""

    activity.log_action(state, message, type)
    save_state(db, state)
    await pubsub.publish_state_event(
        STATE_DOCUMENT_KEY,
        {"type": "state_updated", "last_updated": state.last_updated},
    )
    return state
