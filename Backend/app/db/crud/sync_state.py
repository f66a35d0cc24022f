from sqlalchemy import select
from sqlalchemy.orm import Session
from app.db.models.sync_state import SyncState
from app.utils.clock import utcnow


def get_sync_state(db: Session, user_id: int, provider: str = "strava") -> SyncState | None:
    stmt = select(SyncState).where(SyncState.user_id == user_id, SyncState.provider == provider)
    return db.execute(stmt).scalar_one_or_none()


def record_sync_result(
    db: Session,
    *,
    user_id: int,
    fetched: int | None,
    saved: int | None,
    error: str | None = None,
    provider: str = "strava",
) -> SyncState:
    state = get_sync_state(db, user_id, provider)
    if state is None:
        state = SyncState(user_id=user_id, provider=provider, error_count=0)
        db.add(state)

    state.last_synced_at = utcnow()
    state.last_fetched = fetched
    state.last_saved = saved
    if error:
        state.status = "error"
        state.error_count = (state.error_count or 0) + 1
        state.last_error = error
    else:
        state.status = "ok"
        state.error_count = 0
        state.last_error = None

    db.commit()
    db.refresh(state)
    return state
