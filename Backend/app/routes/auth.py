import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.crud.user import get_or_create_user
from app.db.schemas.user import UserEnvelope, UserLogin, UserRead
from app.dependencies import RequestContext, get_db, get_request_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login", response_model=UserEnvelope)
def login(payload: UserLogin, db: Session = Depends(get_db)):
    """First login creates the user; later logins return the stored row."""
    try:
        user = get_or_create_user(db, payload)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Login failed for %s", payload.firebase_uid)
        raise HTTPException(status_code=500, detail="Login failed") from e
    return UserEnvelope(user=UserRead.model_validate(user))


@router.get("/me", response_model=UserEnvelope)
def me(ctx: RequestContext = Depends(get_request_context)):
    return UserEnvelope(user=UserRead.model_validate(ctx.user))
