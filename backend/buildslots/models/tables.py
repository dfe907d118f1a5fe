from sqlalchemy import Column, Float, ForeignKey, Index, Integer, Text, text

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class SessionTypes(Base):
    __tablename__ = 'session_types'

    builder_id = Column(Integer, nullable=False, index=True)
    title = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Float, nullable=False, server_default=text('0'))
    currency = Column(Text, nullable=False, server_default=text("'USD'"))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    description = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    bookings = relationship('Bookings', back_populates='session_type')


class AvailabilityRules(Base):
    __tablename__ = 'availability_rules'

    builder_id = Column(Integer, nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    start_time = Column(Text, nullable=False)  # "HH:MM"
    end_time = Column(Text, nullable=False)  # "HH:MM", "24:00" allowed
    id = Column(Integer, primary_key=True)
    timezone = Column(Text)
    effective_date = Column(Text)
    expiration_date = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class AvailabilityExceptions(Base):
    __tablename__ = 'availability_exceptions'

    builder_id = Column(Integer, nullable=False)
    date = Column(Text, nullable=False)  # "YYYY-MM-DD"
    is_available = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    start_time = Column(Text)
    end_time = Column(Text)
    reason = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    __table_args__ = (
        Index('ix_availability_exceptions_builder_date', 'builder_id', 'date'),
    )


class SchedulingSettings(Base):
    __tablename__ = 'scheduling_settings'

    builder_id = Column(Integer, nullable=False, unique=True)
    timezone = Column(Text, nullable=False, server_default=text("'UTC'"))
    min_notice_minutes = Column(Integer, nullable=False, server_default=text('60'))
    buffer_minutes = Column(Integer, nullable=False, server_default=text('0'))
    is_accepting_bookings = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    max_advance_days = Column(Integer, server_default=text('30'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class Bookings(Base):
    __tablename__ = 'bookings'

    builder_id = Column(Integer, nullable=False)
    client_id = Column(Integer, nullable=False)
    session_type_id = Column(ForeignKey('session_types.id'), nullable=False)
    date_start = Column(Text, nullable=False)  # UTC "YYYY-MM-DD HH:MM:SS"
    date_end = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    notes = Column(Text)
    cancel_reason = Column(Text)

    session_type = relationship('SessionTypes', back_populates='bookings')

    __table_args__ = (
        Index('ix_bookings_builder_start', 'builder_id', 'date_start'),
        # Two live bookings can never share a start instant for one builder
        Index(
            'uq_bookings_builder_start_active',
            'builder_id',
            'date_start',
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )
