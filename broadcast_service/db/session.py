# broadcast_service/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from broadcast_service.core.config import settings

# The engine handles connection pooling for the configured database.
engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

# SessionLocal is a factory for request-scoped Session objects.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

