import os
from datetime import datetime

from dotenv import load_dotenv
from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Load environment variables
load_dotenv()

# Database Setup
# Default to local SQLite, but allow override for a hosted Postgres
DB_URL = os.getenv("DATABASE_URL", "sqlite:///finance_tracker.db")

Base = declarative_base()


def make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url)
    if url in ("sqlite://", "sqlite:///:memory:"):
        # In-memory databases must share one connection across sessions
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, connect_args={"check_same_thread": False})


engine = make_engine(DB_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# --- Models ---

class KeyValueEntry(Base):
    """One JSON document per storage key (expenses, goals, accounts...)."""

    __tablename__ = "kv_entries"

    key = Column(String, primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

# --- Init DB ---
def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)


def make_session_factory(url: str):
    """Build a ready-to-use session factory for an arbitrary database URL."""
    bound = make_engine(url)
    init_db(bound)
    return sessionmaker(autocommit=False, autoflush=False, bind=bound)
