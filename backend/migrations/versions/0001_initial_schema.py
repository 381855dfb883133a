"""Initial schema: users, events and their registration/attendance tables

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

user_roles = sa.Enum('volunteer', 'admin', name='userroles')
nss_status = sa.Enum(
    'not_applied', 'pending', 'approved', 'rejected', name='nssapplicationstatus'
)
event_types = sa.Enum(
    'Community Service', 'Educational', 'Cultural', 'Environmental', 'Health',
    'Emergency', 'Other', name='eventtypes',
)
registration_types = sa.Enum('internal', 'public', name='registrationtypes')
event_status = sa.Enum(
    'Upcoming', 'Ongoing', 'Completed', 'Cancelled', 'Postponed', name='eventstatus'
)
volunteer_roles = sa.Enum(
    'Participant', 'Coordinator', 'Team Leader', name='volunteerroles'
)
external_roles = sa.Enum('student', 'staff', name='externalroles')
attendance_status = sa.Enum(
    'present', 'absent', 'late', 'excused', name='attendancestatus'
)
notification_types = sa.Enum(
    'Created', 'Updated', 'Cancelled', 'Reminder', 'Urgent', 'Status Changed',
    name='notificationtypes',
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('password', sa.String(length=100), nullable=False),
        sa.Column('role', user_roles, nullable=False),
        sa.Column('phone', sa.String(length=10), nullable=True),
        sa.Column('college', sa.String(), nullable=True),
        sa.Column('department', sa.String(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('university_roll_no', sa.String(length=20), nullable=True),
        sa.Column('blood_group', sa.String(length=3), nullable=True),
        sa.Column('father_name', sa.String(length=50), nullable=True),
        sa.Column('mother_name', sa.String(length=50), nullable=True),
        sa.Column('address', sa.String(length=500), nullable=True),
        sa.Column('pin_code', sa.String(length=6), nullable=True),
        sa.Column('state', sa.String(length=50), nullable=True),
        sa.Column('district', sa.String(length=50), nullable=True),
        sa.Column('skills', sa.JSON(), nullable=False),
        sa.Column('profile_picture', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('has_applied_to_nss', sa.Boolean(), nullable=False),
        sa.Column('nss_application_status', nss_status, nullable=False),
        sa.Column('nss_application_data', sa.JSON(), nullable=True),
        sa.Column('reapplication_count', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index(
        'ix_users_nss_application_status', 'users', ['nss_application_status']
    )

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('event_type', event_types, nullable=False),
        sa.Column('registration_type', registration_types, nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(length=10), nullable=False),
        sa.Column('end_time', sa.String(length=10), nullable=False),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ends_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location', sa.String(), nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=False),
        sa.Column('current_participants', sa.Integer(), nullable=False),
        sa.Column('requirements', sa.String(), nullable=False),
        sa.Column('status', event_status, nullable=False),
        sa.Column('image', sa.String(), nullable=False),
        sa.Column('last_notification_sent', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_events_starts_at', 'events', ['starts_at'])
    op.create_index('ix_events_ends_at', 'events', ['ends_at'])
    op.create_index('ix_events_status', 'events', ['status'])

    op.create_table(
        'event_registrations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('volunteer_id', sa.Integer(), nullable=False),
        sa.Column('role', volunteer_roles, nullable=False),
        sa.Column('registration_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('attended', sa.Boolean(), nullable=False),
        sa.Column('attendance_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notification_sent', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['volunteer_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'volunteer_id'),
    )

    op.create_table(
        'event_external_participants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=15), nullable=False),
        sa.Column('role', external_roles, nullable=False),
        sa.Column('university_id', sa.String(length=50), nullable=True),
        sa.Column('course', sa.String(length=100), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('blood_group', sa.String(length=3), nullable=False),
        sa.Column('registration_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('attended', sa.Boolean(), nullable=False),
        sa.Column('attendance_date', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'email'),
    )

    op.create_table(
        'event_attendance',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('volunteer_id', sa.Integer(), nullable=False),
        sa.Column('status', attendance_status, nullable=False),
        sa.Column('remarks', sa.String(), nullable=False),
        sa.Column('marked_by_id', sa.Integer(), nullable=False),
        sa.Column('marked_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['volunteer_id'], ['users.id']),
        sa.ForeignKeyConstraint(['marked_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'volunteer_id'),
    )

    op.create_table(
        'event_notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('type', notification_types, nullable=False),
        sa.Column('message', sa.String(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sent_to', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('event_notifications')
    op.drop_table('event_attendance')
    op.drop_table('event_external_participants')
    op.drop_table('event_registrations')
    op.drop_index('ix_events_status', table_name='events')
    op.drop_index('ix_events_ends_at', table_name='events')
    op.drop_index('ix_events_starts_at', table_name='events')
    op.drop_table('events')
    op.drop_index('ix_users_nss_application_status', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (
        notification_types,
        attendance_status,
        external_roles,
        volunteer_roles,
        event_status,
        registration_types,
        event_types,
        nss_status,
        user_roles,
    ):
        enum_type.drop(bind, checkfirst=True)
