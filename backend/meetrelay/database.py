"""Database connection and session management."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool
from meetrelay.config import settings


def build_engine(database_url: str, environment: str):
    """Create the SQLAlchemy engine for the configured database."""
    if database_url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    # Pooler connections (port 6543) manage pooling themselves
    if "pooler.supabase.com" in database_url or database_url.endswith(":6543"):
        return create_engine(
            database_url,
            poolclass=NullPool,
            echo=environment == "development",
        )

    return create_engine(
        database_url,
        pool_size=20,
        max_overflow=10,
        pool_pre_ping=True,
        echo=environment == "development",
    )


engine = build_engine(settings.database_url, settings.environment)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
