from sqlalchemy.orm import Session
from sqlalchemy.dialects import postgresql, sqlite


def insert_for(db: Session, model):
    """
    Dialect-specific INSERT that supports ON CONFLICT. Postgres in production,
    SQLite for local runs and tests; both expose the same on_conflict_do_update.
    """
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)
