"""Doctor model definitions."""

from sqlalchemy import JSON, Column, Integer, String

from clinic_scheduler.database import Base


class Doctor(Base):
    """A doctor and the recurring daily slots they accept appointments in."""
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    specialty = Column(String)
    email = Column(String, unique=True, index=True)
    # Slot windows such as "09:00-10:00", one per bookable slot.
    available_times = Column(JSON, nullable=False, default=list)
