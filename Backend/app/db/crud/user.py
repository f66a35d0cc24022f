from sqlalchemy import select
from sqlalchemy.orm import Session
from app.db.models.user import User
from app.db.schemas.user import UserLogin


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_firebase_uid(db: Session, firebase_uid: str) -> User | None:
    return db.execute(select(User).where(User.firebase_uid == firebase_uid)).scalar_one_or_none()


def get_or_create_user(db: Session, payload: UserLogin) -> User:
    user = get_user_by_firebase_uid(db, payload.firebase_uid)
    if user:
        return user

    user = User(
        firebase_uid=payload.firebase_uid,
        email=payload.email,
        name=payload.name,
        profile_picture=payload.profile_picture,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
