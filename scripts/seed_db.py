#!/usr/bin/env python3
"""
Create the LevelUp tables and load reference data (categories, onboarding
questions and the public goal catalog). Safe to run repeatedly.
"""

import os
import sys

DEFAULT_DB_URL = "sqlite:///./levelup.db"


def seed_database(db_url):
    """Create missing tables and seed reference rows"""
    # Must be set before levelup.database builds its engine
    os.environ["LEVELUP_DATABASE_URL"] = db_url

    from levelup.database import Base, SessionLocal, engine
    from levelup.models import Category, GoalTemplate, OnboardingQuestion
    from levelup.seed import seed_reference_data

    print(f"Seeding database: {db_url}")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_reference_data(db)
        print(f"  Categories: {db.query(Category).count()}")
        print(f"  Onboarding questions: {db.query(OnboardingQuestion).count()}")
        print(f"  Goal templates: {db.query(GoalTemplate).count()}")
    finally:
        db.close()


if __name__ == "__main__":
    db_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("LEVELUP_DATABASE_URL", DEFAULT_DB_URL)

    try:
        seed_database(db_url)
    except Exception as e:
        print(f"\n✗ Seeding failed: {e}")
        sys.exit(1)

    print("\n✓ Reference data is up to date")
