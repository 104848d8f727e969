import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from clinic_scheduler.core import config
from clinic_scheduler.database import Base, SessionLocal, engine, ensure_scheduling_schema
from clinic_scheduler.models import appointment, doctor  # noqa: F401
from clinic_scheduler.repositories.appointment_store import SqlAppointmentStore
from clinic_scheduler.repositories.doctor_directory import SqlDoctorDirectory
from clinic_scheduler.routes import appointment_routes, availability_routes, doctor_routes
from clinic_scheduler.scheduling.coordinator import SchedulingCoordinator
from clinic_scheduler.scheduling.locks import DoctorLockProvider

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


def build_coordinator(session_factory: sessionmaker[Session] = SessionLocal) -> SchedulingCoordinator:
    return SchedulingCoordinator(
        directory=SqlDoctorDirectory(session_factory),
        store=SqlAppointmentStore(session_factory),
        locks=DoctorLockProvider(timeout=config.BOOKING_LOCK_TIMEOUT_SECONDS),
    )


app = FastAPI(title='Clinic Scheduler')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

# One coordinator per process: the doctor locks only serialize requests that share it.
app.state.coordinator = build_coordinator()


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_scheduling_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'Clinic Scheduler API Running'}


app.include_router(availability_routes.router)
app.include_router(appointment_routes.router)
app.include_router(doctor_routes.router)
