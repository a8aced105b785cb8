"""Tests for booking creation, the owner notification, and status transitions."""

from datetime import date, timedelta
from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi import status

from app.core.errors import BookingValidationError, InvalidStatusTransition, StoreWriteError
from app.models.booking import Booking
from app.models.message import Message
from app.models.profile import Profile
from app.services.booking_notifier import compose_booking_message, format_booking_date
from app.services.bookings import can_transition, create_booking, update_booking_status
from tests.conftest import TEST_CUSTOMER_UID, TEST_OWNER_UID, TEST_OWNER_UID_2, TestingSessionLocal, auth_header

FUTURE_DATE = date.today() + timedelta(days=30)


def _book(client, token, marketplace, booking_date=FUTURE_DATE, booking_time="14:00"):
    return client.post(
        "/api/v1/bookings",
        headers=auth_header(token),
        json={
            "business_id": str(marketplace["business"].id),
            "mall_id": str(marketplace["mall"].id),
            "booking_date": booking_date.isoformat(),
            "booking_time": booking_time,
        },
    )


def test_format_booking_date_long_form():
    assert format_booking_date(date(2025, 3, 1)) == "Saturday, 01 March 2025"


def test_compose_booking_message_uses_na_for_missing_fields():
    booking = Booking(booking_date=date(2025, 3, 1), booking_time="14:00")
    body = compose_booking_message(booking, None, None)

    assert "Customer: N/A" in body
    assert "Email: N/A" in body
    assert "Mall: N/A" in body
    assert "Time: 14:00" in body


def test_booking_creates_pending_row_and_one_message(db_session, marketplace):
    """Scenario B: one pending booking and exactly one message to the owner."""
    customer, owner = marketplace["customer"], marketplace["owner"]

    booking = create_booking(
        db_session,
        customer,
        business_id=marketplace["business"].id,
        mall_id=marketplace["mall"].id,
        booking_date=date(2025, 3, 1),
        booking_time="14:00",
        today=date(2025, 2, 1),
    )

    assert booking.status == "pending"
    assert booking.customer_name == "Thandi Nkosi"
    assert booking.customer_email == "thandi@example.com"
    assert db_session.query(Booking).count() == 1

    messages = db_session.query(Message).all()
    assert len(messages) == 1
    message = messages[0]
    assert message.sender_id == customer.id
    assert message.receiver_id == owner.id
    assert message.read is False
    assert "14:00" in message.body
    assert "Sandton City" in message.body
    assert "Saturday, 01 March 2025" in message.body
    assert "Customer: Thandi Nkosi" in message.body
    assert "Phone: +27 82 555 0101" in message.body


def test_booking_survives_notification_failure(db_session, marketplace):
    """The booking is kept even when the notification insert fails."""
    with patch(
        "app.services.message_store.MessageStore.append",
        side_effect=StoreWriteError("insert denied"),
    ):
        booking = create_booking(
            db_session,
            marketplace["customer"],
            business_id=marketplace["business"].id,
            mall_id=marketplace["mall"].id,
            booking_date=FUTURE_DATE,
            booking_time="10:00",
        )

    assert booking.status == "pending"
    assert db_session.query(Booking).count() == 1
    assert db_session.query(Message).count() == 0


def test_double_booking_is_allowed(db_session, marketplace):
    for _ in range(2):
        create_booking(
            db_session,
            marketplace["customer"],
            business_id=marketplace["business"].id,
            mall_id=marketplace["mall"].id,
            booking_date=FUTURE_DATE,
            booking_time="10:00",
        )
    assert db_session.query(Booking).count() == 2


@pytest.mark.parametrize(
    "booking_date, booking_time",
    [
        (FUTURE_DATE, "08:00"),
        (FUTURE_DATE, "14:30"),
        (date.today() - timedelta(days=1), "10:00"),
    ],
)
def test_booking_validation_writes_nothing(db_session, marketplace, booking_date, booking_time):
    with pytest.raises(BookingValidationError):
        create_booking(
            db_session,
            marketplace["customer"],
            business_id=marketplace["business"].id,
            mall_id=marketplace["mall"].id,
            booking_date=booking_date,
            booking_time=booking_time,
        )
    assert db_session.query(Booking).count() == 0
    assert db_session.query(Message).count() == 0


def test_business_accounts_cannot_book(db_session, marketplace):
    with pytest.raises(BookingValidationError):
        create_booking(
            db_session,
            marketplace["owner2"],
            business_id=marketplace["business"].id,
            mall_id=marketplace["mall"].id,
            booking_date=FUTURE_DATE,
            booking_time="10:00",
        )


@pytest.mark.parametrize(
    "current, requested, allowed",
    [
        ("pending", "confirmed", True),
        ("pending", "cancelled", True),
        ("confirmed", "cancelled", False),
        ("confirmed", "pending", False),
        ("cancelled", "confirmed", False),
        ("cancelled", "pending", False),
        ("pending", "pending", False),
    ],
)
def test_can_transition(current, requested, allowed):
    assert can_transition(current, requested) is allowed


def test_confirmed_booking_cannot_be_cancelled(db_session, marketplace):
    """Scenario C: pending -> confirmed, then cancelling is rejected."""
    booking = create_booking(
        db_session,
        marketplace["customer"],
        business_id=marketplace["business"].id,
        mall_id=marketplace["mall"].id,
        booking_date=FUTURE_DATE,
        booking_time="14:00",
    )

    confirmed = update_booking_status(db_session, marketplace["owner"], booking.id, "confirmed")
    assert confirmed.status == "confirmed"

    with pytest.raises(InvalidStatusTransition):
        update_booking_status(db_session, marketplace["owner"], booking.id, "cancelled")

    db_session.expire_all()
    assert db_session.get(Booking, booking.id).status == "confirmed"


def test_create_booking_api(client, marketplace, mock_jwks, create_test_token):
    token = create_test_token(sub=TEST_CUSTOMER_UID)
    response = _book(client, token, marketplace)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "pending"
    assert data["booking_time"] == "14:00"
    assert data["mall"]["name"] == "Sandton City"


def test_create_booking_api_rejects_bad_slot(client, marketplace, mock_jwks, create_test_token):
    token = create_test_token(sub=TEST_CUSTOMER_UID)
    response = _book(client, token, marketplace, booking_time="07:00")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_create_booking_api_unknown_business(client, marketplace, mock_jwks, create_test_token):
    token = create_test_token(sub=TEST_CUSTOMER_UID)
    response = client.post(
        "/api/v1/bookings",
        headers=auth_header(token),
        json={
            "business_id": str(uuid4()),
            "mall_id": str(marketplace["mall"].id),
            "booking_date": FUTURE_DATE.isoformat(),
            "booking_time": "10:00",
        },
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_list_bookings_by_role(client, marketplace, mock_jwks, create_test_token):
    customer_token = create_test_token(sub=TEST_CUSTOMER_UID)
    _book(client, customer_token, marketplace)

    as_customer = client.get("/api/v1/bookings", headers=auth_header(customer_token))
    as_owner = client.get("/api/v1/bookings", headers=auth_header(create_test_token(sub=TEST_OWNER_UID)))
    as_other_owner = client.get("/api/v1/bookings", headers=auth_header(create_test_token(sub=TEST_OWNER_UID_2)))

    assert len(as_customer.json()) == 1
    assert len(as_owner.json()) == 1
    assert as_owner.json()[0]["customer_name"] == "Thandi Nkosi"
    assert as_other_owner.json() == []


def test_status_update_api_flow(client, marketplace, mock_jwks, create_test_token):
    booking_id = _book(client, create_test_token(sub=TEST_CUSTOMER_UID), marketplace).json()["id"]
    owner_headers = auth_header(create_test_token(sub=TEST_OWNER_UID))

    confirm = client.patch(f"/api/v1/bookings/{booking_id}/status", headers=owner_headers, json={"status": "confirmed"})
    assert confirm.status_code == status.HTTP_200_OK
    assert confirm.json()["status"] == "confirmed"

    cancel = client.patch(f"/api/v1/bookings/{booking_id}/status", headers=owner_headers, json={"status": "cancelled"})
    assert cancel.status_code == status.HTTP_409_CONFLICT
    assert cancel.json()["detail"]["status"] == "confirmed"


def test_status_update_only_by_owning_business(client, marketplace, mock_jwks, create_test_token):
    booking_id = _book(client, create_test_token(sub=TEST_CUSTOMER_UID), marketplace).json()["id"]

    other_owner = client.patch(
        f"/api/v1/bookings/{booking_id}/status",
        headers=auth_header(create_test_token(sub=TEST_OWNER_UID_2)),
        json={"status": "cancelled"},
    )
    customer = client.patch(
        f"/api/v1/bookings/{booking_id}/status",
        headers=auth_header(create_test_token(sub=TEST_CUSTOMER_UID)),
        json={"status": "cancelled"},
    )

    assert other_owner.status_code == status.HTTP_404_NOT_FOUND
    assert customer.status_code == status.HTTP_403_FORBIDDEN


def test_status_update_rejects_unknown_status(client, marketplace, mock_jwks, create_test_token):
    booking_id = _book(client, create_test_token(sub=TEST_CUSTOMER_UID), marketplace).json()["id"]
    response = client.patch(
        f"/api/v1/bookings/{booking_id}/status",
        headers=auth_header(create_test_token(sub=TEST_OWNER_UID)),
        json={"status": "pending"},
    )
    assert response.status_code == 422


def test_status_change_rejected_after_concurrent_confirm(db_session, marketplace):
    """A session holding a stale pending row cannot cancel a booking another session confirmed."""
    booking = create_booking(
        db_session,
        marketplace["customer"],
        business_id=marketplace["business"].id,
        mall_id=marketplace["mall"].id,
        booking_date=FUTURE_DATE,
        booking_time="11:00",
    )
    assert booking.status == "pending"

    other = TestingSessionLocal()
    try:
        owner = other.get(Profile, marketplace["owner"].id)
        update_booking_status(other, owner, booking.id, "confirmed")
    finally:
        other.close()

    with pytest.raises(InvalidStatusTransition) as exc_info:
        update_booking_status(db_session, marketplace["owner"], booking.id, "cancelled")

    assert exc_info.value.current == "confirmed"
    db_session.expire_all()
    assert db_session.get(Booking, booking.id).status == "confirmed"
