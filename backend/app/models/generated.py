from uuid import uuid4

from sqlalchemy import Column, Enum, ForeignKey, ForeignKeyConstraint, Index, Integer, Table, Text, UniqueConstraint, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

SLOT_STATUSES = ('Available', 'Occupied', 'Cancelled', 'Maintenance')


def new_id() -> str:
    return str(uuid4())


# ---------------------------------------------------------------------
# Reference data (owned by external catalogs, read-only here)
# ---------------------------------------------------------------------

class Branches(Base):
    __tablename__ = 'branches'

    id = Column(Text, primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    address = Column(Text)
    is_active = Column(Integer, nullable=False, server_default=text('1'))

    rooms = relationship('Rooms', back_populates='branch')
    staff = relationship('Staff', back_populates='branch')
    packages = relationship('Packages', back_populates='branch')
    branch_slots = relationship('BranchSlots', back_populates='branch')


class Facilities(Base):
    __tablename__ = 'facilities'

    id = Column(Text, primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    description = Column(Text)

    rooms = relationship('Rooms', back_populates='facility')


class Rooms(Base):
    __tablename__ = 'rooms'
    __table_args__ = (
        UniqueConstraint('branch_id', 'name'),
    )

    id = Column(Text, primary_key=True, default=new_id)
    branch_id = Column(ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    facility_id = Column(ForeignKey('facilities.id', ondelete='SET NULL'))
    name = Column(Text, nullable=False)
    capacity = Column(Integer)
    is_active = Column(Integer, nullable=False, server_default=text('1'))

    branch = relationship('Branches', back_populates='rooms')
    facility = relationship('Facilities', back_populates='rooms')


class Staff(Base):
    __tablename__ = 'staff'

    id = Column(Text, primary_key=True, default=new_id)
    branch_id = Column(ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    full_name = Column(Text, nullable=False)
    email = Column(Text)
    is_active = Column(Integer, nullable=False, server_default=text('1'))

    branch = relationship('Branches', back_populates='staff')


class Timeframes(Base):
    __tablename__ = 'timeframes'

    id = Column(Text, primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)  # "HH:MM"
    end_time = Column(Text, nullable=False)
    description = Column(Text)


class SlotTypes(Base):
    __tablename__ = 'slot_types'

    id = Column(Text, primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    description = Column(Text)


class StudentLevels(Base):
    __tablename__ = 'student_levels'

    id = Column(Text, primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    description = Column(Text)


class Students(Base):
    __tablename__ = 'students'

    id = Column(Text, primary_key=True, default=new_id)
    branch_id = Column(ForeignKey('branches.id', ondelete='SET NULL'))
    student_level_id = Column(ForeignKey('student_levels.id', ondelete='SET NULL'))
    full_name = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))

    subscriptions = relationship('StudentSubscriptions', back_populates='student')


class Packages(Base):
    __tablename__ = 'packages'

    id = Column(Text, primary_key=True, default=new_id)
    branch_id = Column(ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))

    branch = relationship('Branches', back_populates='packages')
    subscriptions = relationship('StudentSubscriptions', back_populates='package')


t_package_slot_types = Table(
    'package_slot_types', metadata,
    Column('package_id', ForeignKey('packages.id', ondelete='CASCADE'), nullable=False),
    Column('slot_type_id', ForeignKey('slot_types.id', ondelete='CASCADE'), nullable=False),
    UniqueConstraint('package_id', 'slot_type_id')
)


class StudentSubscriptions(Base):
    __tablename__ = 'student_subscriptions'

    id = Column(Text, primary_key=True, default=new_id)
    student_id = Column(ForeignKey('students.id', ondelete='CASCADE'), nullable=False)
    package_id = Column(ForeignKey('packages.id', ondelete='CASCADE'), nullable=False)
    status = Column(Text, nullable=False, server_default=text("'Active'"))
    start_date = Column(Text)  # "YYYY-MM-DD", NULL = open
    end_date = Column(Text)

    student = relationship('Students', back_populates='subscriptions')
    package = relationship('Packages', back_populates='subscriptions')


# ---------------------------------------------------------------------
# Branch slots
# ---------------------------------------------------------------------

class BranchSlots(Base):
    __tablename__ = 'branch_slots'
    __table_args__ = (
        Index('ix_branch_slots_branch_week', 'branch_id', 'week_date'),
        Index('ix_branch_slots_date', 'date'),
    )

    id = Column(Text, primary_key=True, default=new_id)
    branch_id = Column(ForeignKey('branches.id', ondelete='CASCADE'), nullable=False)
    timeframe_id = Column(ForeignKey('timeframes.id'), nullable=False)
    slot_type_id = Column(ForeignKey('slot_types.id'), nullable=False)
    student_level_id = Column(ForeignKey('student_levels.id', ondelete='SET NULL'))
    week_date = Column(Integer, nullable=False)  # 0 = Sunday
    date = Column(Text)  # "YYYY-MM-DD", NULL = recurring weekly
    status = Column(
        Enum(*SLOT_STATUSES, name='branch_slot_status'),
        nullable=False,
        server_default=text("'Available'"),
    )
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(
        Text,
        server_default=text('CURRENT_TIMESTAMP'),
        onupdate=text('CURRENT_TIMESTAMP'),
    )

    branch = relationship('Branches', back_populates='branch_slots')
    timeframe = relationship('Timeframes')
    slot_type = relationship('SlotTypes')
    student_level = relationship('StudentLevels')

    # writes go through explicit statements in services/slots/assignments.py
    rooms = relationship('BranchSlotRooms', viewonly=True)
    staff = relationship('BranchSlotStaff', viewonly=True)


class BranchSlotRooms(Base):
    __tablename__ = 'branch_slot_rooms'
    __table_args__ = (
        UniqueConstraint('branch_slot_id', 'room_id'),
    )

    id = Column(Text, primary_key=True, default=new_id)
    branch_slot_id = Column(ForeignKey('branch_slots.id', ondelete='CASCADE'), nullable=False)
    room_id = Column(ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    room = relationship('Rooms')


class BranchSlotStaff(Base):
    __tablename__ = 'branch_slot_staff'
    __table_args__ = (
        UniqueConstraint('branch_slot_id', 'staff_id'),
        # room_id must be one of the slot's rooms; dropping the room drops the staff row
        ForeignKeyConstraint(
            ['branch_slot_id', 'room_id'],
            ['branch_slot_rooms.branch_slot_id', 'branch_slot_rooms.room_id'],
            ondelete='CASCADE',
        ),
    )

    id = Column(Text, primary_key=True, default=new_id)
    branch_slot_id = Column(ForeignKey('branch_slots.id', ondelete='CASCADE'), nullable=False)
    staff_id = Column(ForeignKey('staff.id', ondelete='CASCADE'), nullable=False)
    room_id = Column(Text)  # NULL = staff without a room
    role_label = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    staff = relationship('Staff')
    room = relationship(
        'Rooms',
        primaryjoin='foreign(BranchSlotStaff.room_id) == Rooms.id',
        viewonly=True,
    )
