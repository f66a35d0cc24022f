import logging
from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import STRAVA_PAGE_SIZE, STRAVA_SYNC_MAX_PAGES
from app.core.errors import RemoteFetchError, StravaAPIError
from app.db.crud.activity import upsert_activity
from app.db.crud.sync_state import record_sync_result
from app.db.schemas.activity import ActivityUpsert
from app.db.schemas.strava import StravaActivitySummary
from app.strava import client as strava_client
from app.strava.tokens import access_token_of, ensure_valid_token
from app.utils.clock import to_naive_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    fetched: int
    saved: int


def map_strava_activity(raw: Dict[str, Any], user_id: int) -> ActivityUpsert:
    """
    Strava summary activity -> local row. Distance stays in meters and
    moving_time (seconds) becomes duration.
    """
    summary = StravaActivitySummary.model_validate(raw)
    return ActivityUpsert(
        user_id=user_id,
        strava_id=str(summary.id),
        name=summary.name,
        type=summary.type,
        start_date=to_naive_utc(summary.start_date),
        distance=summary.distance,
        duration=summary.moving_time,
        description=summary.description or None,
    )


def _save_page(db: Session, user_id: int, items: list[Dict[str, Any]]) -> int:
    saved = 0
    for raw in items:
        try:
            upsert_activity(db, map_strava_activity(raw, user_id))
            saved += 1
        except Exception as e:
            # One bad record never aborts the sync.
            db.rollback()
            logger.warning("Failed to save Strava activity %s for user %s: %s", raw.get("id"), user_id, e)
    return saved


def _record(db: Session, user_id: int, fetched: int, saved: int, error: str | None = None) -> None:
    try:
        record_sync_result(db, user_id=user_id, fetched=fetched, saved=saved, error=error)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not record sync state for user %s", user_id)


def sync_activities(
    db: Session,
    user_id: int,
    *,
    per_page: int = STRAVA_PAGE_SIZE,
    max_pages: int = STRAVA_SYNC_MAX_PAGES,
) -> SyncResult:
    """
    Pull the user's Strava activities page by page and upsert each one by
    Strava id.

    Raises NotConnected before anything is written when the user has no
    token, and RemoteFetchError when Strava fails to return a page. Pages
    processed before a failure stay saved.
    """
    token = ensure_valid_token(db, user_id)
    access_token = access_token_of(token)

    fetched = 0
    saved = 0
    page = 1
    while True:
        try:
            items = strava_client.list_athlete_activities(access_token, page=page, per_page=per_page)
        except StravaAPIError as e:
            _record(db, user_id, fetched, saved, error=str(e))
            raise RemoteFetchError(e.status_code, e.detail) from e

        fetched += len(items)
        saved += _save_page(db, user_id, items)

        if len(items) < per_page:
            break
        if page >= max_pages:
            logger.warning(
                "Stopped Strava sync for user %s at page cap %s; older activities were not fetched",
                user_id, max_pages,
            )
            break
        page += 1

    logger.info("Strava sync for user %s: fetched=%s saved=%s pages=%s", user_id, fetched, saved, page)
    _record(db, user_id, fetched, saved)
    return SyncResult(fetched=fetched, saved=saved)
