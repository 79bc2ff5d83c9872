from sqlalchemy import Column, String, DateTime, Integer, Text
from tablebook.db.session import Base


class BookingRow(Base):
    """One row of the booking table. ``id`` only preserves append order."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ref = Column(String(64), nullable=True, index=True)
    emp_no = Column(String(64), nullable=True, index=True)
    name = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)    # stored with the text marker
    email = Column(String(255), nullable=True)
    table = Column("table_no", String(64), nullable=True)
    table_id = Column(String(64), nullable=True, index=True)
    date = Column("booking_date", String(64), nullable=True)
    time = Column("time_slot", String(64), nullable=True)
    guests = Column(Integer, nullable=True)
    guest_orders = Column(Text, nullable=True)
    special = Column(Text, nullable=True)
    type = Column("booking_type", String(10), nullable=False, default="BOTH")
    status = Column(String(20), nullable=True, index=True)  # Confirmed, Cancelled, ...
    submitted_at = Column(DateTime(timezone=True), nullable=True)
