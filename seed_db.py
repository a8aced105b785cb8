"""
Load the demo marketplace (customers, business owners, businesses, malls).

Run with: python seed_db.py [--no-create]

Pass --no-create when the schema is managed by Alembic and already migrated.
"""
import argparse

from dotenv import load_dotenv

load_dotenv()

from app.db.session import SessionLocal, init_db  # noqa: E402
from app.models.business import Business  # noqa: E402
from app.models.mall import Mall  # noqa: E402
from app.models.profile import Profile  # noqa: E402
from app.seed.seed_data import seed_db  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Seed the MallBook database with demo data.")
    parser.add_argument("--no-create", action="store_true", help="skip create_all (schema already migrated)")
    args = parser.parse_args()

    if not args.no_create:
        print("Creating tables...")
        init_db()

    db = SessionLocal()
    try:
        seed_db(db)
        print(
            f"Profiles: {db.query(Profile).count()}, "
            f"businesses: {db.query(Business).count()}, "
            f"malls: {db.query(Mall).count()}"
        )
    finally:
        db.close()


if __name__ == "__main__":
    main()
