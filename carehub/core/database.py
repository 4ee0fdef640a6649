from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator
import fnmatch
import logging
import redis
from .config import settings

logger = logging.getLogger(__name__)

database_url = settings.get_database_url

if database_url.startswith("sqlite"):
    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
    )
else:
    # PostgreSQL with appropriate connection pool settings
    engine = create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,  # Recycle connections after 30 minutes
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Redis setup - mock for testing
if settings.TESTING:
    # Use a simple dict-based mock for Redis in tests
    class RedisMock:
        def __init__(self):
            self.data = {}

        def setex(self, key, time, value):
            self.data[key] = value
            return True

        def get(self, key):
            return self.data.get(key)

        def delete(self, *keys):
            removed = 0
            for key in keys:
                if key in self.data:
                    del self.data[key]
                    removed += 1
            return removed

        def incr(self, key):
            try:
                self.data[key] = str(int(self.data.get(key, 0)) + 1)
            except (TypeError, ValueError):
                self.data[key] = "1"
            return int(self.data[key])

        def keys(self, pattern="*"):
            return [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]

        def flushdb(self):
            self.data.clear()
            return True

    redis_client = RedisMock()
else:
    # Real Redis client for production
    redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Redis dependency
def get_redis():
    """Get Redis client."""
    return redis_client

# Database initialization
def init_db():
    """Initialize database tables and the bootstrap admin account."""
    from .. import models  # noqa: F401  register every table on Base.metadata

    Base.metadata.create_all(bind=engine)

    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        db = SessionLocal()
        try:
            seed_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
        finally:
            db.close()

def seed_admin(db: Session, email: str, password: str):
    """Create an admin account unless one already uses this email."""
    from ..models.user import User
    from .security import UserRole, get_password_hash

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        return existing

    admin = User(
        email=email,
        password_hash=get_password_hash(password),
        role=UserRole.ADMIN,
        is_active=True,
        is_verified=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Bootstrap admin account created: {email}")
    return admin
