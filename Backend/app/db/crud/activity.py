from typing import Any
from sqlalchemy import select
from sqlalchemy.orm import Session
from app.core.errors import ActivityOwnershipConflict
from app.db.crud._upsert import insert_for
from app.db.models.activity import Activity
from app.db.schemas.activity import ActivityUpsert
from app.utils.clock import utcnow

MUTABLE_FIELDS = ("name", "type", "start_date", "distance", "duration", "description")


def list_activities_for_user(db: Session, user_id: int) -> list[Activity]:
    """Activities of a user, newest start date first."""
    stmt = (
        select(Activity)
        .where(Activity.user_id == user_id)
        .order_by(Activity.start_date.desc(), Activity.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def get_activity_by_strava_id(db: Session, strava_id: str) -> Activity | None:
    return db.execute(select(Activity).where(Activity.strava_id == strava_id)).scalar_one_or_none()


def get_activity_for_user(db: Session, activity_id: int, user_id: int) -> Activity | None:
    """None both when the row is missing and when another user owns it."""
    stmt = select(Activity).where(Activity.id == activity_id, Activity.user_id == user_id)
    return db.execute(stmt).scalar_one_or_none()


def upsert_activity(db: Session, payload: ActivityUpsert) -> Activity:
    """
    Insert the activity or overwrite its mutable fields, keyed by strava_id, in a
    single INSERT ... ON CONFLICT statement. The update only applies to a row
    owned by the same user; a row owned by someone else is left untouched and
    ActivityOwnershipConflict is raised.
    """
    now = utcnow()
    ins = insert_for(db, Activity).values(
        **payload.model_dump(),
        created_at=now,
        updated_at=now,
    )
    update_cols = {field: getattr(ins.excluded, field) for field in MUTABLE_FIELDS}
    update_cols["updated_at"] = now
    stmt = ins.on_conflict_do_update(
        index_elements=["strava_id"],
        set_=update_cols,
        where=Activity.user_id == ins.excluded.user_id,
    )
    db.execute(stmt)
    db.commit()

    activity = get_activity_by_strava_id(db, payload.strava_id)
    if activity is None or activity.user_id != payload.user_id:
        raise ActivityOwnershipConflict(payload.strava_id)
    db.refresh(activity)
    return activity


def update_activity(db: Session, activity: Activity, changes: dict[str, Any]) -> Activity:
    for field, value in changes.items():
        if field in MUTABLE_FIELDS:
            setattr(activity, field, value)
    activity.updated_at = utcnow()
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity
