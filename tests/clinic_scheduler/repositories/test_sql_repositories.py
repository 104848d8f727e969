from datetime import date, datetime

import pytest

from clinic_scheduler.database import build_engine, ensure_scheduling_schema, reset_schema_check
from clinic_scheduler.repositories.appointment_store import SqlAppointmentStore
from clinic_scheduler.repositories.doctor_directory import SqlDoctorDirectory
from clinic_scheduler.scheduling.errors import DoctorNotFound, InvalidTemplate, RejectionReason, StorageFailure
from clinic_scheduler.scheduling.types import AppointmentRecord, AppointmentStatus, BookingRequest, Created, Rejected

NINE = datetime(2025, 3, 10, 9, 0)


def test_directory_reads_schedule_template(session_factory, add_doctor) -> None:
    doctor_id = add_doctor(available_times=['10:00 - 11:00', '09:00-10:00'])
    directory = SqlDoctorDirectory(session_factory)

    template = directory.get_schedule(doctor_id)

    assert [window.label for window in template.windows] == ['09:00-10:00', '10:00-11:00']
    assert directory.exists(doctor_id)
    assert not directory.exists(doctor_id + 1)


def test_directory_raises_for_missing_doctor(session_factory) -> None:
    with pytest.raises(DoctorNotFound):
        SqlDoctorDirectory(session_factory).get_schedule(123)


def test_directory_rejects_malformed_stored_template(session_factory, add_doctor) -> None:
    doctor_id = add_doctor(available_times=['after lunch'])

    with pytest.raises(InvalidTemplate):
        SqlDoctorDirectory(session_factory).get_schedule(doctor_id)


@pytest.mark.parametrize('available_times', [['09:00-10:00', 900], 5])
def test_directory_rejects_non_text_stored_template(session_factory, add_doctor, available_times) -> None:
    doctor_id = add_doctor(available_times=available_times)

    with pytest.raises(InvalidTemplate):
        SqlDoctorDirectory(session_factory).get_schedule(doctor_id)


@pytest.mark.parametrize('available_times', [['09:00-10:00', 900], 5])
def test_coordinator_reports_non_text_stored_template(sql_coordinator, add_doctor, available_times) -> None:
    doctor_id = add_doctor(available_times=available_times)

    availability = sql_coordinator.get_availability(doctor_id, date(2025, 3, 10))
    booking = sql_coordinator.book(BookingRequest(doctor_id=doctor_id, patient_id=1, start_time=NINE))

    assert isinstance(availability, Rejected)
    assert availability.reason == RejectionReason.INVALID_TEMPLATE
    assert isinstance(booking, Rejected)
    assert booking.reason == RejectionReason.INVALID_TEMPLATE


def test_directory_remove_deletes_doctor(session_factory, add_doctor) -> None:
    doctor_id = add_doctor()
    directory = SqlDoctorDirectory(session_factory)

    directory.remove(doctor_id)

    assert not directory.exists(doctor_id)


def test_store_round_trips_and_filters_by_day(session_factory, add_doctor) -> None:
    doctor_id = add_doctor()
    store = SqlAppointmentStore(session_factory)
    first = store.save(AppointmentRecord(doctor_id=doctor_id, patient_id=4, start_time=NINE))
    store.save(AppointmentRecord(doctor_id=doctor_id, patient_id=4, start_time=datetime(2025, 3, 11, 0, 0)))

    found = store.find_by_doctor_and_date_range(doctor_id, datetime(2025, 3, 10), datetime(2025, 3, 11))

    assert found == [
        AppointmentRecord(
            id=first,
            doctor_id=doctor_id,
            patient_id=4,
            start_time=NINE,
            status=AppointmentStatus.SCHEDULED,
        )
    ]
    assert store.find_by_id(first).start_time == NINE
    assert store.find_by_id(first + 100) is None


def test_store_update_and_delete(session_factory, add_doctor) -> None:
    doctor_id = add_doctor()
    store = SqlAppointmentStore(session_factory)
    appointment_id = store.save(AppointmentRecord(doctor_id=doctor_id, patient_id=4, start_time=NINE))

    store.update_start_time(appointment_id, datetime(2025, 3, 10, 10, 0))
    assert store.find_by_id(appointment_id).start_time == datetime(2025, 3, 10, 10, 0)

    store.delete_by_id(appointment_id)
    assert store.find_by_id(appointment_id) is None


def test_store_delete_all_by_doctor_leaves_other_doctors(session_factory, add_doctor) -> None:
    first_doctor = add_doctor(name='Dr. One')
    second_doctor = add_doctor(name='Dr. Two')
    store = SqlAppointmentStore(session_factory)
    store.save(AppointmentRecord(doctor_id=first_doctor, patient_id=1, start_time=NINE))
    store.save(AppointmentRecord(doctor_id=first_doctor, patient_id=2, start_time=datetime(2025, 3, 10, 10, 0)))
    kept = store.save(AppointmentRecord(doctor_id=second_doctor, patient_id=1, start_time=NINE))

    assert store.delete_all_by_doctor(first_doctor) == 2
    assert store.find_by_id(kept) is not None


def test_unique_index_surfaces_as_storage_failure(session_factory, add_doctor) -> None:
    doctor_id = add_doctor()
    store = SqlAppointmentStore(session_factory)
    store.save(AppointmentRecord(doctor_id=doctor_id, patient_id=1, start_time=NINE))

    with pytest.raises(StorageFailure):
        store.save(AppointmentRecord(doctor_id=doctor_id, patient_id=2, start_time=NINE))


def test_completed_appointment_does_not_block_a_new_booking(session_factory, add_doctor, sql_coordinator) -> None:
    doctor_id = add_doctor()
    store = SqlAppointmentStore(session_factory)
    store.save(
        AppointmentRecord(doctor_id=doctor_id, patient_id=1, start_time=NINE, status=AppointmentStatus.COMPLETED)
    )

    availability = sql_coordinator.get_availability(doctor_id, date(2025, 3, 10))
    outcome = sql_coordinator.book(BookingRequest(doctor_id=doctor_id, patient_id=2, start_time=NINE))

    assert [slot.label for slot in availability.open_slots] == ['09:00-10:00', '10:00-11:00']
    assert isinstance(outcome, Created)
    assert len(store.find_by_doctor_and_date_range(doctor_id, NINE, datetime(2025, 3, 10, 10, 0))) == 2


def test_unreachable_database_raises_storage_failure(broken_session_factory) -> None:
    with pytest.raises(StorageFailure):
        SqlDoctorDirectory(broken_session_factory).exists(1)
    with pytest.raises(StorageFailure):
        SqlAppointmentStore(broken_session_factory).save(
            AppointmentRecord(doctor_id=1, patient_id=1, start_time=NINE)
        )


def test_ensure_scheduling_schema_adds_unique_index_to_existing_table(tmp_path) -> None:
    engine = build_engine(f'sqlite:///{tmp_path / "legacy.db"}')
    with engine.begin() as connection:
        connection.exec_driver_sql(
            'CREATE TABLE appointments (id INTEGER PRIMARY KEY, doctor_id INTEGER, '
            'patient_id INTEGER, appointment_time TIMESTAMP, status VARCHAR)'
        )

    reset_schema_check()
    try:
        ensure_scheduling_schema(engine)
        with engine.connect() as connection:
            partial_by_index = {
                row[1]: row[4] for row in connection.exec_driver_sql("PRAGMA index_list('appointments')")
            }
            columns = {row[1] for row in connection.exec_driver_sql("PRAGMA table_info('appointments')")}
    finally:
        reset_schema_check()
        engine.dispose()

    assert partial_by_index['uq_appointments_doctor_time'] == 1
    assert 'created_at' in columns
