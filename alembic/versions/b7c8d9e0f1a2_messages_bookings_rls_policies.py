"""messages and bookings: RLS policies

Revision ID: b7c8d9e0f1a2
Revises: a1b2c3d4e5f6
Create Date: 2026-10-18

Enables RLS on public.messages and public.bookings so clients talking to
Supabase directly get the same rules the API applies:

- messages: participants can read; only the sender can insert. The
  receiver may update, but only the read column, and only to true. No
  delete policy, so rows are never removed.
- bookings: customers read and insert their own; the owning business reads
  its bookings and may move a pending booking to confirmed or cancelled.
  Only the status column is updatable.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "b7c8d9e0f1a2"
down_revision: Union[str, None] = "a1b2c3d4e5f6"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

POLICIES = {
    "messages": {
        "messages_select_participant": """
            CREATE POLICY messages_select_participant
            ON public.messages
            FOR SELECT
            TO authenticated
            USING (auth.uid() = sender_id OR auth.uid() = receiver_id)
        """,
        "messages_insert_sender": """
            CREATE POLICY messages_insert_sender
            ON public.messages
            FOR INSERT
            TO authenticated
            WITH CHECK (auth.uid() = sender_id)
        """,
        "messages_update_receiver": """
            CREATE POLICY messages_update_receiver
            ON public.messages
            FOR UPDATE
            TO authenticated
            USING (auth.uid() = receiver_id)
            WITH CHECK (auth.uid() = receiver_id AND read = true)
        """,
    },
    "bookings": {
        "bookings_select_customer_or_owner": """
            CREATE POLICY bookings_select_customer_or_owner
            ON public.bookings
            FOR SELECT
            TO authenticated
            USING (
                auth.uid() = customer_id
                OR EXISTS (
                    SELECT 1 FROM public.businesses b
                    WHERE b.id = bookings.business_id AND b.owner_id = auth.uid()
                )
            )
        """,
        "bookings_insert_customer": """
            CREATE POLICY bookings_insert_customer
            ON public.bookings
            FOR INSERT
            TO authenticated
            WITH CHECK (auth.uid() = customer_id)
        """,
        "bookings_update_owner": """
            CREATE POLICY bookings_update_owner
            ON public.bookings
            FOR UPDATE
            TO authenticated
            USING (
                EXISTS (
                    SELECT 1 FROM public.businesses b
                    WHERE b.id = bookings.business_id AND b.owner_id = auth.uid()
                )
                AND status = 'pending'
            )
            WITH CHECK (
                EXISTS (
                    SELECT 1 FROM public.businesses b
                    WHERE b.id = bookings.business_id AND b.owner_id = auth.uid()
                )
                AND status IN ('confirmed', 'cancelled')
            )
        """,
    },
}

# Row policies cannot restrict columns, so UPDATE is narrowed with column grants.
COLUMN_GRANTS = {
    "messages": "read",
    "bookings": "status",
}


def upgrade() -> None:
    conn = op.get_bind()
    for table, policies in POLICIES.items():
        conn.execute(sa.text(f"ALTER TABLE public.{table} ENABLE ROW LEVEL SECURITY"))
        # Drop first so the migration can be re-run safely.
        for name, statement in policies.items():
            conn.execute(sa.text(f'DROP POLICY IF EXISTS "{name}" ON public.{table}'))
            conn.execute(sa.text(statement))
    for table, column in COLUMN_GRANTS.items():
        conn.execute(sa.text(f"REVOKE UPDATE ON public.{table} FROM authenticated"))
        conn.execute(sa.text(f"GRANT UPDATE ({column}) ON public.{table} TO authenticated"))


def downgrade() -> None:
    conn = op.get_bind()
    for table, policies in POLICIES.items():
        for name in policies:
            conn.execute(sa.text(f'DROP POLICY IF EXISTS "{name}" ON public.{table}'))
    for table, column in COLUMN_GRANTS.items():
        conn.execute(sa.text(f"REVOKE UPDATE ({column}) ON public.{table} FROM authenticated"))
        conn.execute(sa.text(f"GRANT UPDATE ON public.{table} TO authenticated"))
    # Do not disable RLS; other systems may rely on it.
