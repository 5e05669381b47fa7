#!/usr/bin/env python3
"""Seed a demo account.

Creates (or re-creates) a demo user through the credential store so the
stored password is salted and hashed exactly as registration does it.

Usage:
    DATABASE_URL=sqlite:///./signin.db python scripts/seed_demo_user.py
"""

import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import sessionmaker

from src.database import Base, build_engine
from src.services.credentials import CredentialStore

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./signin.db")

DEMO_NAME = "Demo User"
DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demopass123"


def seed_demo_user():
    """Seed the database with the demo account."""
    from src import models  # noqa: F401

    engine = build_engine(DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine)
    session = Session()

    try:
        store = CredentialStore(session)
        existing_user = store.find_by_email(DEMO_EMAIL)
        if existing_user:
            print("Demo user already exists. Re-creating...")
            store.delete_user(existing_user)

        print("Creating demo user...")
        user = store.register(DEMO_NAME, DEMO_EMAIL, DEMO_PASSWORD, DEMO_PASSWORD)
        print(f"Demo user {user.email} seeded successfully!")

    except Exception as e:
        session.rollback()
        print(f"Error seeding demo user: {e}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    seed_demo_user()
