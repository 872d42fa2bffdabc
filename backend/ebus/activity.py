from datetime import datetime, timezone
from uuid import uuid4

from . import schemas

ACTIVITY_LIMIT = 50


def log_action(
    state: schemas.AppState,
    message: str,
    type: schemas.ActivityType = "INFO",
) -> schemas.ActivityEntry:
    entry = schemas.ActivityEntry(
        id=f"log-{uuid4().hex[:12]}",
        timestamp=datetime.now(timezone.utc),
        message=message,
        type=type,
    )
    state.logs = [entry, *state.logs][:ACTIVITY_LIMIT]
    return entry


def recent(state: schemas.AppState, type: str | None = None, limit: int = ACTIVITY_LIMIT):
    entries = state.logs
    if type:
        entries = [entry for entry in entries if entry.type == type]
    return entries[:limit]
