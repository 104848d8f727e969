"""Appointment model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func, text

from clinic_scheduler.database import Base


class Appointment(Base):
    """A booked doctor/patient appointment occupying one slot start."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_doctor_time",
            "doctor_id",
            "appointment_time",
            unique=True,
            sqlite_where=text("status = 'scheduled'"),
            postgresql_where=text("status = 'scheduled'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(Integer, nullable=False)
    appointment_time = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default="scheduled")
    created_at = Column(DateTime, server_default=func.now())

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, doctor_id={self.doctor_id}, "
            f"patient_id={self.patient_id}, time='{self.appointment_time}')>"
        )
