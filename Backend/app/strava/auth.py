import logging

import redis
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import FRONTEND_URL, STRAVA_REDIRECT_URI
from app.core.errors import StravaAPIError
from app.core.redis_kv import begin_connect, finish_connect
from app.db.crud.strava_token import get_token_by_user_id
from app.db.crud.sync_state import get_sync_state
from app.db.schemas.strava import StravaStatus
from app.dependencies import RequestContext, get_db, get_request_context
from app.strava import client as strava_client
from app.strava.tokens import store_initial_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/strava", tags=["Strava Auth"])


def _dashboard(query: str) -> RedirectResponse:
    return RedirectResponse(f"{FRONTEND_URL}/dashboard?{query}", status_code=302)


@router.get("/connect")
def connect_strava(request: Request, ctx: RequestContext = Depends(get_request_context)):
    """Send the caller to Strava's consent page."""
    try:
        state = begin_connect(ctx.user_id)
    except redis.RedisError as e:
        logger.exception("Could not store OAuth state")
        raise HTTPException(status_code=503, detail="OAuth state store unavailable") from e

    redirect_uri = STRAVA_REDIRECT_URI or str(request.url_for("strava_callback"))
    return RedirectResponse(strava_client.build_authorize_url(state, redirect_uri), status_code=302)


@router.get("/callback", name="strava_callback")
def strava_callback(
    code: str | None = None,
    error: str | None = None,
    state: str | None = None,
    db: Session = Depends(get_db),
):
    if error:
        return _dashboard("error=strava_denied")
    if not code:
        raise HTTPException(status_code=400, detail="No authorization code provided")

    try:
        user_id = finish_connect(state)
    except redis.RedisError as e:
        logger.exception("Could not read OAuth state")
        raise HTTPException(status_code=503, detail="OAuth state store unavailable") from e
    if user_id is None:
        raise HTTPException(status_code=400, detail="No user session found")

    try:
        tokens = strava_client.exchange_code_for_tokens(code)
        store_initial_token(db, user_id, tokens)
    except (StravaAPIError, ValueError, SQLAlchemyError) as e:
        db.rollback()
        logger.error("Strava callback failed for user %s: %s", user_id, e)
        return _dashboard("error=strava_error")

    logger.info("Linked Strava account for user %s", user_id)
    return _dashboard("connected=true")


@router.get("/status", response_model=StravaStatus)
def strava_status(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    try:
        token = get_token_by_user_id(db, ctx.user_id)
        state = get_sync_state(db, ctx.user_id)
    except SQLAlchemyError as e:
        logger.exception("Strava status lookup failed")
        raise HTTPException(status_code=500, detail="Failed to check Strava connection") from e

    return StravaStatus(
        connected=token is not None,
        last_synced_at=state.last_synced_at if state else None,
    )
