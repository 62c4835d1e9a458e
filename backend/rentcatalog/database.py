from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from rentcatalog.config import settings

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    echo=False,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """FastAPI dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Enable PostGIS and create all database tables."""
    # Models must be imported so they register on Base.metadata
    import rentcatalog.models  # noqa: F401

    bind = bind or engine
    with bind.begin() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS postgis"))
    Base.metadata.create_all(bind=bind)


def flush_db(bind=None):
    """Delete all catalog rows. Use when starting fresh with integration tests."""
    from rentcatalog.models import Application, Lease, Listing, Location, Room

    db = SessionLocal(bind=bind) if bind is not None else SessionLocal()
    try:
        db.query(Lease).delete()
        db.query(Application).delete()
        db.query(Room).delete()
        db.query(Listing).delete()
        db.query(Location).delete()
        db.commit()
    finally:
        db.close()
