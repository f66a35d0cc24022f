from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.db.engine import SessionLocal
from app.db.crud.user import get_user_by_firebase_uid
from app.db.models.user import User


# --- Database Dependency ---
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    """Caller identity for one request, passed explicitly to whatever needs it."""
    user: User
    credential: str

    @property
    def user_id(self) -> int:
        return self.user.id


def get_request_context(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    firebase_uid: str | None = Header(default=None, alias="X-Firebase-UID"),
    db: Session = Depends(get_db),
) -> RequestContext:
    # The bearer token is verified upstream by the identity provider's
    # gateway; here we only require that it is present.
    if creds is None or creds.scheme.lower() != "bearer" or not creds.credentials:
        raise HTTPException(status_code=401, detail="No token provided")
    if not firebase_uid:
        raise HTTPException(status_code=401, detail="Firebase UID required")

    user = get_user_by_firebase_uid(db, firebase_uid)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return RequestContext(user=user, credential=creds.credentials)
