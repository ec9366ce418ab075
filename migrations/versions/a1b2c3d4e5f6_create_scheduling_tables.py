"""create scheduling tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'businesses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('auto_approve', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'capacity_units',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_id', sa.Integer(), nullable=False),
        sa.Column('department_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('mode', sa.Enum('live', 'slotted', name='queuemode', native_enum=False, length=16), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('slot_duration_minutes', sa.Integer(), nullable=True),
        sa.Column('average_service_minutes', sa.Integer(), nullable=False),
        sa.Column('no_show_grace_minutes', sa.Integer(), nullable=True),
        sa.Column('day_starts_at', sa.Time(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['business_id'], ['businesses.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('business_id', 'department_id', name='uq_unit_department'),
        sa.CheckConstraint('capacity >= 1', name='ck_unit_capacity_positive'),
        sa.CheckConstraint('average_service_minutes >= 0', name='ck_unit_avg_service'),
    )
    op.create_index('ix_capacity_units_business_id', 'capacity_units', ['business_id'])

    op.create_table(
        'operating_windows',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('capacity_unit_id', sa.Integer(), nullable=False),
        sa.Column('weekday', sa.Integer(), nullable=False),
        sa.Column('open_time', sa.Time(), nullable=False),
        sa.Column('close_time', sa.Time(), nullable=False),
        sa.Column('closed', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['capacity_unit_id'], ['capacity_units.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('capacity_unit_id', 'weekday', name='uq_window_unit_weekday'),
        sa.CheckConstraint('weekday BETWEEN 0 AND 6', name='ck_window_weekday'),
    )
    op.create_index('ix_operating_windows_capacity_unit_id', 'operating_windows', ['capacity_unit_id'])

    op.create_table(
        'slots',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('capacity_unit_id', sa.Integer(), nullable=False),
        sa.Column('slot_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('starts_at', sa.DateTime(), nullable=False),
        sa.Column('booked', sa.Integer(), nullable=False),
        sa.Column('last_token', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['capacity_unit_id'], ['capacity_units.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('capacity_unit_id', 'slot_date', 'start_time', name='uq_unit_slot_start'),
        sa.CheckConstraint('booked >= 0', name='ck_slot_booked_non_negative'),
    )
    op.create_index('ix_slots_capacity_unit_id', 'slots', ['capacity_unit_id'])
    op.create_index('ix_slots_slot_date', 'slots', ['slot_date'])

    op.create_table(
        'live_queue_days',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('capacity_unit_id', sa.Integer(), nullable=False),
        sa.Column('service_date', sa.Date(), nullable=False),
        sa.Column('booked', sa.Integer(), nullable=False),
        sa.Column('last_token', sa.Integer(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['capacity_unit_id'], ['capacity_units.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('capacity_unit_id', 'service_date', name='uq_live_unit_day'),
        sa.CheckConstraint('booked >= 0', name='ck_live_booked_non_negative'),
    )
    op.create_index('ix_live_queue_days_capacity_unit_id', 'live_queue_days', ['capacity_unit_id'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('capacity_unit_id', sa.Integer(), nullable=False),
        sa.Column('slot_id', sa.Integer(), nullable=True),
        sa.Column('live_queue_day_id', sa.Integer(), nullable=True),
        sa.Column('queue_key', sa.String(length=64), nullable=False),
        sa.Column('service_date', sa.Date(), nullable=False),
        sa.Column('token', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum('pending', 'confirmed', 'checked-in', 'in-progress', 'completed',
                                    'cancelled', 'no-show', name='bookingstatus', native_enum=False,
                                    length=20), nullable=False),
        sa.Column('customer_name', sa.String(length=120), nullable=False),
        sa.Column('customer_phone', sa.String(length=30), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('check_in_code', sa.String(length=64), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('checked_in_at', sa.DateTime(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('no_show_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_by', sa.Enum('customer', 'business', name='actor', native_enum=False,
                                          length=16), nullable=True),
        sa.Column('cancel_reason', sa.String(length=120), nullable=True),
        sa.Column('position', sa.Integer(), nullable=True),
        sa.Column('estimated_wait_minutes', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['capacity_unit_id'], ['capacity_units.id']),
        sa.ForeignKeyConstraint(['slot_id'], ['slots.id']),
        sa.ForeignKeyConstraint(['live_queue_day_id'], ['live_queue_days.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('queue_key', 'token', name='uq_booking_queue_token'),
        sa.CheckConstraint('token >= 1', name='ck_booking_token_positive'),
    )
    op.create_index('ix_bookings_capacity_unit_id', 'bookings', ['capacity_unit_id'])
    op.create_index('ix_bookings_slot_id', 'bookings', ['slot_id'])
    op.create_index('ix_bookings_live_queue_day_id', 'bookings', ['live_queue_day_id'])
    op.create_index('ix_bookings_queue_key', 'bookings', ['queue_key'])
    op.create_index('ix_bookings_customer_phone', 'bookings', ['customer_phone'])
    op.create_index('ix_bookings_check_in_code', 'bookings', ['check_in_code'], unique=True)

    op.create_table(
        'booking_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=False),
        sa.Column('capacity_unit_id', sa.Integer(), nullable=False),
        sa.Column('slot_id', sa.Integer(), nullable=True),
        sa.Column('old_status', sa.String(length=20), nullable=True),
        sa.Column('new_status', sa.String(length=20), nullable=False),
        sa.Column('actor', sa.String(length=16), nullable=True),
        sa.Column('position', sa.Integer(), nullable=True),
        sa.Column('estimated_wait_minutes', sa.Integer(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id']),
        sa.ForeignKeyConstraint(['capacity_unit_id'], ['capacity_units.id']),
        sa.ForeignKeyConstraint(['slot_id'], ['slots.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_booking_events_booking_id', 'booking_events', ['booking_id'])
    op.create_index('ix_booking_events_capacity_unit_id', 'booking_events', ['capacity_unit_id'])
    op.create_index('ix_booking_events_timestamp', 'booking_events', ['timestamp'])


def downgrade():
    op.drop_table('booking_events')
    op.drop_table('bookings')
    op.drop_table('live_queue_days')
    op.drop_table('slots')
    op.drop_table('operating_windows')
    op.drop_table('capacity_units')
    op.drop_table('businesses')
