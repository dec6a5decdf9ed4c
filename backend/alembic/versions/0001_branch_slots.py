"""branch slots, references and assignments

Revision ID: 0001_branch_slots
Revises:
Create Date: 2025-03-01 00:00:00

"""
from alembic import op
import sqlalchemy as sa

revision = '0001_branch_slots'
down_revision = None
branch_labels = None
depends_on = None

SLOT_STATUSES = ('Available', 'Occupied', 'Cancelled', 'Maintenance')


def _id():
    return sa.Column('id', sa.Text(), primary_key=True)


def _is_active():
    return sa.Column('is_active', sa.Integer(), nullable=False, server_default=sa.text('1'))


def _created_at():
    return sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    # reference tables
    op.create_table(
        'branches',
        _id(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('address', sa.Text()),
        _is_active(),
    )
    op.create_table(
        'facilities',
        _id(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text()),
    )
    op.create_table(
        'rooms',
        _id(),
        sa.Column('branch_id', sa.Text(), sa.ForeignKey('branches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('facility_id', sa.Text(), sa.ForeignKey('facilities.id', ondelete='SET NULL')),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('capacity', sa.Integer()),
        _is_active(),
        sa.UniqueConstraint('branch_id', 'name'),
    )
    op.create_table(
        'staff',
        _id(),
        sa.Column('branch_id', sa.Text(), sa.ForeignKey('branches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('full_name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text()),
        _is_active(),
    )
    op.create_table(
        'timeframes',
        _id(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('start_time', sa.Text(), nullable=False),
        sa.Column('end_time', sa.Text(), nullable=False),
        sa.Column('description', sa.Text()),
    )
    for name in ('slot_types', 'student_levels'):
        op.create_table(
            name,
            _id(),
            sa.Column('name', sa.Text(), nullable=False),
            sa.Column('description', sa.Text()),
        )
    op.create_table(
        'students',
        _id(),
        sa.Column('branch_id', sa.Text(), sa.ForeignKey('branches.id', ondelete='SET NULL')),
        sa.Column('student_level_id', sa.Text(), sa.ForeignKey('student_levels.id', ondelete='SET NULL')),
        sa.Column('full_name', sa.Text(), nullable=False),
        _is_active(),
    )
    op.create_table(
        'packages',
        _id(),
        sa.Column('branch_id', sa.Text(), sa.ForeignKey('branches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        _is_active(),
    )
    op.create_table(
        'package_slot_types',
        sa.Column('package_id', sa.Text(), sa.ForeignKey('packages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('slot_type_id', sa.Text(), sa.ForeignKey('slot_types.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('package_id', 'slot_type_id'),
    )
    op.create_table(
        'student_subscriptions',
        _id(),
        sa.Column('student_id', sa.Text(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('package_id', sa.Text(), sa.ForeignKey('packages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default=sa.text("'Active'")),
        sa.Column('start_date', sa.Text()),
        sa.Column('end_date', sa.Text()),
    )

    # branch slots
    op.create_table(
        'branch_slots',
        _id(),
        sa.Column('branch_id', sa.Text(), sa.ForeignKey('branches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('timeframe_id', sa.Text(), sa.ForeignKey('timeframes.id'), nullable=False),
        sa.Column('slot_type_id', sa.Text(), sa.ForeignKey('slot_types.id'), nullable=False),
        sa.Column('student_level_id', sa.Text(), sa.ForeignKey('student_levels.id', ondelete='SET NULL')),
        sa.Column('week_date', sa.Integer(), nullable=False),
        sa.Column('date', sa.Text()),
        sa.Column(
            'status',
            sa.Enum(*SLOT_STATUSES, name='branch_slot_status'),
            nullable=False,
            server_default=sa.text("'Available'"),
        ),
        _is_active(),
        _created_at(),
        sa.Column('updated_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_branch_slots_branch_week', 'branch_slots', ['branch_id', 'week_date'])
    op.create_index('ix_branch_slots_date', 'branch_slots', ['date'])

    op.create_table(
        'branch_slot_rooms',
        _id(),
        sa.Column('branch_slot_id', sa.Text(), sa.ForeignKey('branch_slots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('room_id', sa.Text(), sa.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False),
        _created_at(),
        sa.UniqueConstraint('branch_slot_id', 'room_id'),
    )
    op.create_table(
        'branch_slot_staff',
        _id(),
        sa.Column('branch_slot_id', sa.Text(), sa.ForeignKey('branch_slots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('staff_id', sa.Text(), sa.ForeignKey('staff.id', ondelete='CASCADE'), nullable=False),
        sa.Column('room_id', sa.Text()),
        sa.Column('role_label', sa.Text()),
        _created_at(),
        sa.UniqueConstraint('branch_slot_id', 'staff_id'),
        sa.ForeignKeyConstraint(
            ['branch_slot_id', 'room_id'],
            ['branch_slot_rooms.branch_slot_id', 'branch_slot_rooms.room_id'],
            ondelete='CASCADE',
        ),
    )


def downgrade():
    op.drop_table('branch_slot_staff')
    op.drop_table('branch_slot_rooms')
    op.drop_index('ix_branch_slots_date', table_name='branch_slots')
    op.drop_index('ix_branch_slots_branch_week', table_name='branch_slots')
    op.drop_table('branch_slots')
    op.drop_table('student_subscriptions')
    op.drop_table('package_slot_types')
    op.drop_table('packages')
    op.drop_table('students')
    op.drop_table('student_levels')
    op.drop_table('slot_types')
    op.drop_table('timeframes')
    op.drop_table('staff')
    op.drop_table('rooms')
    op.drop_table('facilities')
    op.drop_table('branches')
