"""
Script to recreate the database with the current schema
"""
from app.core.database import SessionLocal, engine
from app.models import Base
from app.services.seed import seed_demo


def recreate_db():
    print("Recreating database...")

    # Drop all tables
    print("Dropping existing tables...")
    Base.metadata.drop_all(bind=engine)

    # Create all tables with the current schema
    print("Creating tables...")
    Base.metadata.create_all(bind=engine)

    # Seed demo data
    print("Seeding demo data...")
    db = SessionLocal()
    try:
        user = seed_demo(db)
    except Exception as e:
        print(f"Error seeding data: {e}")
        db.rollback()
        raise
    finally:
        db.close()

    print("Database recreated successfully!")
    print(f"\nDemo user: {user.username} (id {user.id})")


if __name__ == "__main__":
    recreate_db()
