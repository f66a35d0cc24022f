import logging
from datetime import timedelta
from typing import Any, Dict

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.config import STRAVA_TOKEN_SKEW_SECONDS
from app.core.errors import NotConnected, StravaAPIError
from app.db.crud.strava_token import get_token_by_user_id, update_refreshed_token, upsert_token
from app.db.models.strava_token import StravaToken
from app.db.schemas.strava import StravaTokenExchange
from app.strava import client as strava_client
from app.utils.clock import from_epoch, utcnow
from app.utils.crypto import decrypt_secret

logger = logging.getLogger(__name__)


def access_token_of(token: StravaToken) -> str:
    return decrypt_secret(token.access_token)


def is_expiring(token: StravaToken) -> bool:
    return utcnow() >= token.expires_at - timedelta(seconds=STRAVA_TOKEN_SKEW_SECONDS)


def store_initial_token(db: Session, user_id: int, exchange_result: Dict[str, Any]) -> StravaToken:
    """
    Persist the result of the authorization-code exchange. Re-linking a user
    overwrites the existing row in place.
    """
    tokens = StravaTokenExchange.model_validate(exchange_result)
    if not tokens.refresh_token:
        raise ValueError("Token exchange response has no refresh_token")
    if tokens.athlete is None:
        raise ValueError("Token exchange response has no athlete")

    return upsert_token(
        db,
        user_id=user_id,
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_at=from_epoch(tokens.expires_at),
        strava_user_id=str(tokens.athlete.id),
        scope=tokens.scope,
    )


def ensure_valid_token(db: Session, user_id: int) -> StravaToken:
    """
    Return the user's Strava token, refreshing it first when it is expired or
    about to expire.

    Raises NotConnected when the user never linked Strava, or when the
    row is deleted while the refresh is in flight. A failed refresh is
    logged and the stale token is returned: the next Strava call will fail on
    its own and report the problem there.
    """
    token = get_token_by_user_id(db, user_id)
    if token is None:
        raise NotConnected(f"User {user_id} has no Strava token")

    if not is_expiring(token):
        return token

    stored_refresh = decrypt_secret(token.refresh_token)
    try:
        refreshed = StravaTokenExchange.model_validate(strava_client.refresh_access_token(stored_refresh))
    except (StravaAPIError, ValidationError) as e:
        logger.warning("Strava token refresh failed for user %s, using stale token: %s", user_id, e)
        return token

    # Strava may hand out a new refresh token; keep the old one if it does not.
    refreshed_token = update_refreshed_token(
        db,
        user_id=user_id,
        access_token=refreshed.access_token,
        refresh_token=refreshed.refresh_token or stored_refresh,
        expires_at=from_epoch(refreshed.expires_at),
    )
    if refreshed_token is None:
        raise NotConnected(f"User {user_id} unlinked Strava during token refresh")
    return refreshed_token
