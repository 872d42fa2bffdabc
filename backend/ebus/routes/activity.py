from sqlalchemy.orm import Session
from fastapi import APIRouter, Depends
from ..database import get_db
from .. import schemas, activity, store

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.get("/", response_model=list[schemas.ActivityEntry])
async def list_activity(
    type: schemas.ActivityType | None = None,
    limit: int = activity.ACTIVITY_LIMIT,
    db: Session = Depends(get_db),
):
    return activity.recent(store.load_state(db), type=type, limit=limit)
