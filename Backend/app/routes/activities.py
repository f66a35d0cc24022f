import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ActivityNotFound, NotConnected, StravaAPIError
from app.db.crud.activity import list_activities_for_user
from app.db.schemas.activity import (
    ActivityEnvelope,
    ActivityList,
    ActivityRead,
    ActivityUpdate,
    SyncResponse,
)
from app.dependencies import RequestContext, get_db, get_request_context
from app.strava.mirror import apply_edit, mirror_activity_edit, remote_fields
from app.strava.sync import sync_activities

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/activities", tags=["Activities"])


@router.get("", response_model=ActivityList)
def list_activities(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    try:
        rows = list_activities_for_user(db, ctx.user_id)
    except SQLAlchemyError as e:
        logger.exception("Get activities failed for user %s", ctx.user_id)
        raise HTTPException(status_code=500, detail="Failed to fetch activities") from e
    return ActivityList(activities=[ActivityRead.model_validate(a) for a in rows])


@router.post("/sync", response_model=SyncResponse)
def sync(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    try:
        result = sync_activities(db, ctx.user_id)
    except NotConnected as e:
        raise HTTPException(status_code=400, detail="Strava not connected") from e
    except (StravaAPIError, SQLAlchemyError, ValueError) as e:
        db.rollback()
        logger.error("Sync activities failed for user %s: %s", ctx.user_id, e)
        raise HTTPException(status_code=500, detail="Failed to sync activities") from e

    return SyncResponse(
        message=f"Synced {result.saved} activities",
        total_fetched=result.fetched,
        saved=result.saved,
    )


@router.patch("/{activity_id}", response_model=ActivityEnvelope)
def edit_activity(
    activity_id: int,
    patch: ActivityUpdate,
    background_tasks: BackgroundTasks,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    Update the local activity, then mirror name/type/description to Strava
    after the response has been sent. The mirror never affects this result.
    """
    try:
        activity = apply_edit(db, activity_id, ctx.user_id, patch)
    except ActivityNotFound as e:
        raise HTTPException(status_code=404, detail="Activity not found") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Update activity %s failed", activity_id)
        raise HTTPException(status_code=500, detail="Failed to update activity") from e

    fields = remote_fields(patch)
    if fields:
        background_tasks.add_task(mirror_activity_edit, activity.id, ctx.user_id, fields)

    return ActivityEnvelope(activity=ActivityRead.model_validate(activity))
