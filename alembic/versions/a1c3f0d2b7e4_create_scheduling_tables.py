"""create_scheduling_tables

Revision ID: a1c3f0d2b7e4
Revises:
Create Date: 2026-10-17 09:12:40.118204

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'a1c3f0d2b7e4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create enums with proper handling
    conn = op.get_bind()

    result = conn.execute(sa.text("SELECT 1 FROM pg_type WHERE typname = 'user_role'"))
    if not result.scalar():
        op.execute("CREATE TYPE user_role AS ENUM ('admin', 'vendor', 'customer')")

    result = conn.execute(sa.text("SELECT 1 FROM pg_type WHERE typname = 'slot_status'"))
    if not result.scalar():
        op.execute("CREATE TYPE slot_status AS ENUM ('available', 'pending', 'booked', 'unavailable', 'break')")

    result = conn.execute(sa.text("SELECT 1 FROM pg_type WHERE typname = 'booking_status'"))
    if not result.scalar():
        op.execute(
            "CREATE TYPE booking_status AS ENUM ('pending_confirmation', 'confirmed', 'cancelled_by_customer', "
            "'cancelled_by_vendor', 'completed', 'no_show', 'rescheduled')"
        )

    user_role = postgresql.ENUM('admin', 'vendor', 'customer', name='user_role', create_type=False)
    slot_status = postgresql.ENUM(
        'available', 'pending', 'booked', 'unavailable', 'break', name='slot_status', create_type=False
    )
    booking_status = postgresql.ENUM(
        'pending_confirmation', 'confirmed', 'cancelled_by_customer', 'cancelled_by_vendor',
        'completed', 'no_show', 'rescheduled', name='booking_status', create_type=False
    )

    # Tenants and their staff
    op.create_table('business_profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('workers',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('business_profile_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['business_profile_id'], ['business_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_workers_business_profile_id'), 'workers', ['business_profile_id'], unique=False)

    op.create_table('services',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('business_profile_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['business_profile_id'], ['business_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_services_business_profile_id'), 'services', ['business_profile_id'], unique=False)
    op.create_index(op.f('ix_services_is_active'), 'services', ['is_active'], unique=False)

    op.create_table('worker_services',
        sa.Column('worker_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('worker_id', 'service_id')
    )

    op.create_table('users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('business_profile_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['business_profile_id'], ['business_profiles.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_role'), 'users', ['role'], unique=False)

    # Schedule aggregate
    op.create_table('schedules',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('worker_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('business_profile_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('effective_start_date', sa.Date(), nullable=False),
        sa.Column('effective_end_date', sa.Date(), nullable=True),
        sa.Column('time_zone_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['business_profile_id'], ['business_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_schedules_worker_id'), 'schedules', ['worker_id'], unique=False)
    op.create_index(op.f('ix_schedules_business_profile_id'), 'schedules', ['business_profile_id'], unique=False)

    op.create_table('schedule_rule_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('schedule_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_working_day', sa.Boolean(), nullable=False),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='ck_schedule_rule_items_day'),
        sa.ForeignKeyConstraint(['schedule_id'], ['schedules.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('schedule_id', 'day_of_week', name='uq_schedule_rule_items_day')
    )
    op.create_index(op.f('ix_schedule_rule_items_schedule_id'), 'schedule_rule_items', ['schedule_id'], unique=False)

    op.create_table('break_rules',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('rule_item_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.CheckConstraint('start_time < end_time', name='ck_break_rules_interval'),
        sa.ForeignKeyConstraint(['rule_item_id'], ['schedule_rule_items.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_break_rules_rule_item_id'), 'break_rules', ['rule_item_id'], unique=False)

    op.create_table('schedule_overrides',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('schedule_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('override_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('is_working_day', sa.Boolean(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.ForeignKeyConstraint(['schedule_id'], ['schedules.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('schedule_id', 'override_date', name='uq_schedule_overrides_date')
    )
    op.create_index(op.f('ix_schedule_overrides_schedule_id'), 'schedule_overrides', ['schedule_id'], unique=False)

    # Slots and bookings
    op.create_table('availability_slots',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('worker_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('business_profile_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', slot_status, nullable=False),
        sa.Column('booking_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('generating_schedule_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('start_time < end_time', name='ck_availability_slots_interval'),
        sa.ForeignKeyConstraint(['business_profile_id'], ['business_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['generating_schedule_id'], ['schedules.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_availability_slots_worker_id'), 'availability_slots', ['worker_id'], unique=False)
    op.create_index(
        op.f('ix_availability_slots_business_profile_id'), 'availability_slots', ['business_profile_id'], unique=False
    )
    op.create_index(op.f('ix_availability_slots_status'), 'availability_slots', ['status'], unique=False)
    op.create_index(op.f('ix_availability_slots_booking_id'), 'availability_slots', ['booking_id'], unique=False)
    op.create_index(
        op.f('ix_availability_slots_generating_schedule_id'), 'availability_slots', ['generating_schedule_id'],
        unique=False
    )
    op.create_index(
        'ix_availability_slots_worker_window', 'availability_slots', ['worker_id', 'start_time', 'end_time'],
        unique=False
    )

    op.create_table('bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('business_profile_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('worker_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('availability_slot_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('booking_start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('booking_end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', booking_status, nullable=False),
        sa.Column('notes_by_customer', sa.Text(), nullable=True),
        sa.Column('notes_by_vendor', sa.Text(), nullable=True),
        sa.Column('price_at_booking', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('rescheduled_to_booking_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['availability_slot_id'], ['availability_slots.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['business_profile_id'], ['business_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_business_profile_id'), 'bookings', ['business_profile_id'], unique=False)
    op.create_index(op.f('ix_bookings_customer_id'), 'bookings', ['customer_id'], unique=False)
    op.create_index(op.f('ix_bookings_service_id'), 'bookings', ['service_id'], unique=False)
    op.create_index(op.f('ix_bookings_worker_id'), 'bookings', ['worker_id'], unique=False)
    op.create_index(op.f('ix_bookings_availability_slot_id'), 'bookings', ['availability_slot_id'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)


def downgrade() -> None:
    op.drop_table('bookings')
    op.drop_table('availability_slots')
    op.drop_table('schedule_overrides')
    op.drop_table('break_rules')
    op.drop_table('schedule_rule_items')
    op.drop_table('schedules')
    op.drop_table('users')
    op.drop_table('worker_services')
    op.drop_table('services')
    op.drop_table('workers')
    op.drop_table('business_profiles')

    op.execute("DROP TYPE IF EXISTS booking_status")
    op.execute("DROP TYPE IF EXISTS slot_status")
    op.execute("DROP TYPE IF EXISTS user_role")
