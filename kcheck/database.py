"""Database utilities and setup."""
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from kcheck.config import DATABASE_URL, DB_DIR

# Create engine
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Base class for models
class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def get_db():
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a compound write as one unit.
    Commits when the block exits cleanly, rolls everything back otherwise.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def init_db(bind=None) -> None:
    """Initialize database (create all tables)."""
    # Import models so every table is registered on the metadata
    import kcheck.models.db  # noqa: F401

    if bind is None:
        if DATABASE_URL.startswith("sqlite:///"):
            DB_DIR.mkdir(parents=True, exist_ok=True)
        bind = engine
    Base.metadata.create_all(bind=bind)
