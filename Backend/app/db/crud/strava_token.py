from datetime import datetime
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from app.db.models.strava_token import StravaToken
from app.db.crud._upsert import insert_for
from app.utils.crypto import encrypt_secret
from app.utils.clock import utcnow


def get_token_by_user_id(db: Session, user_id: int) -> StravaToken | None:
    return db.execute(select(StravaToken).where(StravaToken.user_id == user_id)).scalar_one_or_none()


def upsert_token(
    db: Session,
    *,
    user_id: int,
    access_token: str,
    refresh_token: str,
    expires_at: datetime,
    strava_user_id: str | None = None,
    scope: str | None = None,
) -> StravaToken:
    """
    Insert or overwrite the single token row of `user_id` in one statement.
    Plaintext tokens come in; they are encrypted here.
    `strava_user_id` and `scope` keep their stored values when passed as None.
    """
    values = {
        "user_id": user_id,
        "access_token": encrypt_secret(access_token),
        "refresh_token": encrypt_secret(refresh_token),
        "expires_at": expires_at,
        "strava_user_id": strava_user_id or "",
        "scope": scope,
        "updated_at": utcnow(),
    }
    ins = insert_for(db, StravaToken).values(**values)
    update_cols = {
        "access_token": ins.excluded.access_token,
        "refresh_token": ins.excluded.refresh_token,
        "expires_at": ins.excluded.expires_at,
        "updated_at": ins.excluded.updated_at,
    }
    if strava_user_id:
        update_cols["strava_user_id"] = ins.excluded.strava_user_id
    if scope is not None:
        update_cols["scope"] = ins.excluded.scope

    stmt = ins.on_conflict_do_update(index_elements=["user_id"], set_=update_cols)
    db.execute(stmt)
    db.commit()

    token = get_token_by_user_id(db, user_id)
    db.refresh(token)
    return token


def update_refreshed_token(
    db: Session,
    *,
    user_id: int,
    access_token: str,
    refresh_token: str,
    expires_at: datetime,
) -> StravaToken | None:
    """
    Overwrite the credentials of an existing row after a refresh. Never
    inserts: returns None when the row is gone (the user unlinked meanwhile).
    """
    result = db.execute(
        update(StravaToken)
        .where(StravaToken.user_id == user_id)
        .values(
            access_token=encrypt_secret(access_token),
            refresh_token=encrypt_secret(refresh_token),
            expires_at=expires_at,
            updated_at=utcnow(),
        )
    )
    db.commit()
    if result.rowcount == 0:
        return None

    token = get_token_by_user_id(db, user_id)
    db.refresh(token)
    return token
