from datetime import date, datetime, time

import pytest
from sqlalchemy import func, select

from carelink.modules.appointments import repository as appointments_repo
from carelink.modules.appointments.models import Appointment, ApptStatus
from carelink.modules.appointments.schemas import AppointmentCreateRequest
from carelink.modules.appointments.service import (
    InvalidSlot,
    NotFound,
    SLOT_TAKEN_MESSAGE,
    SlotExpired,
    SlotTaken,
    Unauthenticated,
    attempt_book,
    cancel_appointment,
    doctor_availability,
    get_day_slots,
)
from carelink.modules.users.models import AuditLog
from factories import make_appointment, make_doctor, make_user

DAY = date(2024, 5, 1)
MORNING = datetime(2024, 4, 30, 9, 0)  # the day before DAY


def _request(doctor_id, slot: str = "10:00", day: date = DAY, notes=None) -> AppointmentCreateRequest:
    return AppointmentCreateRequest(doctor_id=doctor_id, appointment_date=day, slot=slot, notes=notes)


async def _count_active(session, doctor_id, day: date, start: time) -> int:
    stmt = select(func.count()).select_from(Appointment).where(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == day,
        Appointment.start_time == start,
        Appointment.status != ApptStatus.CANCELLED.value,
    )
    return (await session.execute(stmt)).scalar_one()


async def test_book_creates_pending_appointment(session) -> None:
    doctor, _ = await make_doctor(session)
    patient = await make_user(session)

    result = await attempt_book(session, patient, _request(doctor.id, "15:00", notes="chest pain"), MORNING)
    await session.commit()

    assert result.status == "pending"
    assert result.patient_id == patient.id
    assert result.doctor_id == doctor.id
    assert result.start_time == time(15)
    assert result.end_time == time(16)
    assert result.notes == "chest pain"

    logs = (await session.execute(select(AuditLog.action))).scalars().all()
    assert "CREATE_APPOINTMENT" in logs


async def test_book_requires_signed_in_non_anonymous_user(session) -> None:
    doctor, _ = await make_doctor(session)
    guest = await make_user(session, is_anonymous=True)

    with pytest.raises(Unauthenticated):
        await attempt_book(session, None, _request(doctor.id), MORNING)
    with pytest.raises(Unauthenticated):
        await attempt_book(session, guest, _request(doctor.id), MORNING)


@pytest.mark.parametrize("slot", ["09:00", "18:00", "10:30", "noon"])
async def test_book_rejects_slot_outside_catalog(session, slot: str) -> None:
    doctor, _ = await make_doctor(session)
    patient = await make_user(session)

    with pytest.raises(InvalidSlot):
        await attempt_book(session, patient, _request(doctor.id, slot), MORNING)


async def test_book_checks_slot_before_expiry(session) -> None:
    doctor, _ = await make_doctor(session)
    patient = await make_user(session)

    # malformed and in the past: the catalog check wins
    with pytest.raises(InvalidSlot):
        await attempt_book(session, patient, _request(doctor.id, "08:00", day=date(2020, 1, 1)), MORNING)


@pytest.mark.parametrize(
    ("day", "slot"),
    [(date(2024, 4, 29), "16:00"), (date(2024, 5, 1), "14:00"), (date(2024, 5, 1), "15:00")],
)
async def test_book_rejects_expired_slot(session, day: date, slot: str) -> None:
    doctor, _ = await make_doctor(session)
    patient = await make_user(session)
    now = datetime(2024, 5, 1, 15, 10)

    with pytest.raises(SlotExpired):
        await attempt_book(session, patient, _request(doctor.id, slot, day=day), now)


async def test_book_unknown_doctor(session) -> None:
    patient = await make_user(session)
    missing, _ = await make_doctor(session)
    await session.delete(missing)
    await session.commit()

    with pytest.raises(NotFound) as exc_info:
        await attempt_book(session, patient, _request(missing.id), MORNING)

    assert str(exc_info.value) == "doctor_not_found"


async def test_book_taken_slot_fails_without_duplicate(session) -> None:
    doctor, _ = await make_doctor(session)
    patient_a = await make_user(session)
    patient_b = await make_user(session)
    await make_appointment(session, doctor=doctor, patient=patient_a, day=DAY, start=time(10))

    with pytest.raises(SlotTaken) as exc_info:
        await attempt_book(session, patient_b, _request(doctor.id, "10:00"), MORNING)

    assert exc_info.value.message == SLOT_TAKEN_MESSAGE
    assert await _count_active(session, doctor.id, DAY, time(10)) == 1


async def test_confirmed_appointment_also_holds_the_slot(session) -> None:
    doctor, _ = await make_doctor(session)
    patient = await make_user(session)
    await make_appointment(session, doctor=doctor, patient=patient, start=time(11), status=ApptStatus.CONFIRMED)

    with pytest.raises(SlotTaken):
        await attempt_book(session, patient, _request(doctor.id, "11:00"), MORNING)


async def test_unique_index_catches_booking_that_raced_past_the_check(session, monkeypatch) -> None:
    doctor, _ = await make_doctor(session)
    patient_a = await make_user(session)
    patient_b = await make_user(session)
    await make_appointment(session, doctor=doctor, patient=patient_a, day=DAY, start=time(10))

    # Simulate a competing request that read availability before the first insert
    async def stale_read(*args, **kwargs):
        return set()

    monkeypatch.setattr(appointments_repo, "taken_slots", stale_read)

    with pytest.raises(SlotTaken) as exc_info:
        await attempt_book(session, patient_b, _request(doctor.id, "10:00"), MORNING)

    assert exc_info.value.message == SLOT_TAKEN_MESSAGE
    # session is still usable after the rejected insert
    assert await _count_active(session, doctor.id, DAY, time(10)) == 1
    actions = (await session.execute(select(AuditLog.action))).scalars().all()
    assert "CREATE_APPOINTMENT" not in actions


async def test_same_slot_other_doctor_is_free(session) -> None:
    doctor_a, _ = await make_doctor(session, name="Dr. A")
    doctor_b, _ = await make_doctor(session, name="Dr. B")
    patient = await make_user(session)
    await make_appointment(session, doctor=doctor_a, patient=patient, start=time(10))

    result = await attempt_book(session, patient, _request(doctor_b.id, "10:00"), MORNING)

    assert result.doctor_id == doctor_b.id


async def test_cancelling_frees_the_slot(session) -> None:
    doctor, _ = await make_doctor(session)
    patient_a = await make_user(session)
    patient_b = await make_user(session)
    appt = await make_appointment(session, doctor=doctor, patient=patient_a, day=DAY, start=time(10))

    assert time(10) in await appointments_repo.taken_slots(session, doctor_id=doctor.id, day=DAY)

    await cancel_appointment(session, appt.id, patient_a)
    await session.commit()

    assert time(10) not in await appointments_repo.taken_slots(session, doctor_id=doctor.id, day=DAY)

    rebooked = await attempt_book(session, patient_b, _request(doctor.id, "10:00"), MORNING)
    await session.commit()

    assert rebooked.patient_id == patient_b.id
    assert await _count_active(session, doctor.id, DAY, time(10)) == 1


def test_day_slots_for_today_and_min_date() -> None:
    late = datetime(2024, 5, 1, 17, 20)

    result = get_day_slots(date(2024, 5, 1), late)

    assert result.slots == []
    assert result.has_available_slots is False
    assert result.min_selectable_date == date(2024, 5, 2)


async def test_doctor_availability_marks_taken_and_past_slots(session) -> None:
    doctor, _ = await make_doctor(session)
    patient = await make_user(session)
    await make_appointment(session, doctor=doctor, patient=patient, day=DAY, start=time(16))
    await make_appointment(
        session, doctor=doctor, patient=patient, day=DAY, start=time(17), status=ApptStatus.CANCELLED
    )
    now = datetime(2024, 5, 1, 13, 40)

    result = await doctor_availability(session, doctor.id, DAY, now)

    open_slots = [s.slot for s in result.slots if s.available]
    assert len(result.slots) == 8
    assert open_slots == ["14:00", "15:00", "17:00"]
    assert result.min_selectable_date == DAY
    assert result.slots[0].label == "10:00 AM"


async def test_doctor_availability_before_min_date_has_nothing_open(session) -> None:
    doctor, _ = await make_doctor(session)

    result = await doctor_availability(session, doctor.id, date(2024, 4, 1), MORNING)

    assert not any(s.available for s in result.slots)


async def test_doctor_availability_unknown_doctor(session) -> None:
    doctor, _ = await make_doctor(session)
    await session.delete(doctor)
    await session.commit()

    with pytest.raises(NotFound):
        await doctor_availability(session, doctor.id, DAY, MORNING)
