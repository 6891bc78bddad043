#!/usr/bin/env python3
"""
Initialize database tables for local development
"""
import sys
import os

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.core.config import get_settings
from app.core.database import Base, build_engine

# Import all models to ensure they're registered with Base
import app.models  # noqa: F401


def init_database():
    """Create every waitlist table that does not exist yet"""
    settings = get_settings()
    engine = build_engine(settings)

    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    engine.dispose()


if __name__ == "__main__":
    init_database()
    print("Database initialization complete!")
