"""Database helpers backed by SQLAlchemy."""

from __future__ import annotations

from contextlib import contextmanager

from chair_app.extensions import db as sa_db


@contextmanager
def session_scope():
    """Provide a transactional scope for ORM usage."""

    session = sa_db.session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
