import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.core.errors import ActivityNotFound
from app.db import engine as db_engine
from app.db.crud.activity import get_activity_for_user, update_activity
from app.db.crud.strava_token import get_token_by_user_id
from app.db.models.activity import Activity
from app.db.schemas.activity import ActivityUpdate
from app.strava import client as strava_client
from app.strava.tokens import access_token_of, ensure_valid_token

logger = logging.getLogger(__name__)
# Mirror failures land here so they can be routed/alerted on separately.
deadletter = logging.getLogger("app.strava.mirror.deadletter")

# Strava treats date, distance and duration as immutable for uploaded activities.
REMOTE_FIELDS = ("name", "type", "description")


def apply_edit(db: Session, activity_id: int, user_id: int, patch: ActivityUpdate) -> Activity:
    """
    Apply a partial edit to the local activity. Fields not present in the
    patch keep their values. Missing and foreign activities both raise
    ActivityNotFound.
    """
    activity = get_activity_for_user(db, activity_id, user_id)
    if activity is None:
        raise ActivityNotFound(f"Activity {activity_id} not found")
    return update_activity(db, activity, patch.model_dump(exclude_unset=True))


def remote_fields(patch: ActivityUpdate) -> Dict[str, Any]:
    """
    The subset of an edit that Strava accepts. Null values are dropped, so
    clearing a description is kept local and Strava keeps its old text.
    """
    changes = patch.model_dump(exclude_unset=True)
    return {k: changes[k] for k in REMOTE_FIELDS if changes.get(k) is not None}


def mirror_activity_edit(activity_id: int, user_id: int, fields: Dict[str, Any]) -> None:
    """
    Push an already committed local edit to Strava. Runs as a background task
    after the response; every failure goes to the dead-letter logger and
    stops there.
    """
    if not fields:
        return

    db = db_engine.SessionLocal()
    try:
        if get_token_by_user_id(db, user_id) is None:
            return
        activity = get_activity_for_user(db, activity_id, user_id)
        if activity is None:
            return
        token = ensure_valid_token(db, user_id)
        strava_client.update_activity(access_token_of(token), activity.strava_id, fields)
        logger.info("Mirrored edit of activity %s to Strava (%s)", activity_id, ", ".join(sorted(fields)))
    except Exception as e:
        deadletter.error(
            "Strava mirror failed activity_id=%s user_id=%s fields=%s error=%s",
            activity_id, user_id, sorted(fields), e,
        )
    finally:
        db.close()
