from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from greenghost.config import settings
import logging

# Set up logging
logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

# For Neon.tech, ensure SSL is configured
if "neon.tech" in DATABASE_URL and "sslmode" not in DATABASE_URL:
    DATABASE_URL += "&sslmode=require" if "?" in DATABASE_URL else "?sslmode=require"
    logger.info("Added sslmode=require to Neon database URL")

if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,  # Auto-reconnect on broken connections
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_connection() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful!")
        return True
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        return False


def init_db():
    """Create any missing tables. Alembic owns schema changes in production."""
    from greenghost import models  # noqa: F401  registers the mappers
    Base.metadata.create_all(bind=engine)
