import uuid
from sqlalchemy.orm import Session

from app.models.profile import Profile, USER_TYPE_BUSINESS, USER_TYPE_CUSTOMER
from app.models.business import Business
from app.models.mall import Mall
from app.models.booking import Booking
from app.models.message import Message

CUSTOMER_1_ID = uuid.UUID("c0000000-0000-4000-8000-000000000001")
CUSTOMER_2_ID = uuid.UUID("c0000000-0000-4000-8000-000000000002")
OWNER_1_ID = uuid.UUID("b0000000-0000-4000-8000-000000000001")
OWNER_2_ID = uuid.UUID("b0000000-0000-4000-8000-000000000002")


def seed_db(db: Session) -> None:
    """Seed the database with sample data."""

    # Clear existing data (optional - comment out if you want to preserve data)
    db.query(Message).delete()
    db.query(Booking).delete()
    db.query(Business).delete()
    db.query(Mall).delete()
    db.query(Profile).delete()
    db.commit()

    # Profiles (ids match Supabase auth user ids)
    customer1 = Profile(
        id=CUSTOMER_1_ID,
        full_name="Thandi Nkosi",
        email="thandi@example.com",
        phone="+27 82 555 0101",
        user_type=USER_TYPE_CUSTOMER,
    )
    customer2 = Profile(
        id=CUSTOMER_2_ID,
        full_name="Lerato Mokoena",
        email="lerato@example.com",
        phone="+27 83 555 0202",
        user_type=USER_TYPE_CUSTOMER,
    )
    owner1 = Profile(
        id=OWNER_1_ID,
        full_name="Ayesha Patel",
        email="ayesha@glossnails.example.com",
        phone="+27 71 555 0303",
        user_type=USER_TYPE_BUSINESS,
    )
    owner2 = Profile(
        id=OWNER_2_ID,
        full_name="Nomsa Dlamini",
        email="nomsa@tipsandtoes.example.com",
        phone="+27 72 555 0404",
        user_type=USER_TYPE_BUSINESS,
    )
    db.add_all([customer1, customer2, owner1, owner2])
    db.commit()

    # Businesses
    business1 = Business(
        id=uuid.uuid4(),
        owner_id=OWNER_1_ID,
        business_name="Gloss Nail Studio",
        username="glossnails",
        description="Gel, acrylic and nail art.",
    )
    business2 = Business(
        id=uuid.uuid4(),
        owner_id=OWNER_2_ID,
        business_name="Tips & Toes",
        username="tipsandtoes",
        description="Manicures and pedicures.",
    )
    db.add_all([business1, business2])

    # Malls
    db.add_all([
        Mall(id=uuid.uuid4(), name="Sandton City", location="Sandton, Johannesburg"),
        Mall(id=uuid.uuid4(), name="Mall of Africa", location="Midrand"),
        Mall(id=uuid.uuid4(), name="Rosebank Mall", location="Rosebank, Johannesburg"),
    ])
    db.commit()

    print("Database seeded successfully!")
