"""
Schedule sessions and serial booking.

``book_serial`` is the only place that hands out serial numbers.  It
locks the session row with ``SELECT ... FOR UPDATE`` so that concurrent
bookers of one session are serialized across the count-then-insert
sequence, while bookers of different sessions proceed in parallel.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.db.models import Count, Max, Q
from django.utils import timezone

from clinic.exceptions import (
    AppointmentNotFound,
    DuplicateBooking,
    InvalidTransition,
    PatientNotFound,
    PatientRequired,
    SessionFull,
    SessionInUse,
    SessionNotFound,
)
from clinic.models import Appointment, DoctorSchedule, Patient
from clinic.services.audit import log_action
from clinic.services.identity import Caller

logger = logging.getLogger(__name__)

ACTIVE = ~Q(status=Appointment.STATUS_CANCELLED)

ALLOWED_TRANSITIONS = {
    Appointment.STATUS_CONFIRMED: {Appointment.STATUS_COMPLETED, Appointment.STATUS_CANCELLED},
    Appointment.STATUS_COMPLETED: set(),
    Appointment.STATUS_CANCELLED: set(),
}

UPCOMING_LIMIT = 50


def schedule_group(schedule_id: int) -> str:
    return f"schedule.{schedule_id}"


def _with_booked_count(qs):
    return qs.annotate(
        booked_count=Count('appointments', filter=~Q(appointments__status=Appointment.STATUS_CANCELLED))
    )


def broadcast_booked(schedule_id: int, serial: int, booked_count: int) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    async_to_sync(channel_layer.group_send)(schedule_group(schedule_id), {
        "type": "schedule.booked",
        "scheduleId": schedule_id,
        "serial": serial,
        "bookedCount": booked_count,
    })


# ---------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------
def book_serial(caller: Caller, schedule_id: int, patient_id: Optional[int] = None,
                *, reason: str = '') -> Appointment:
    if caller.is_patient:
        patient_id = caller.patient_id
    if not patient_id:
        raise PatientRequired()
    if not Patient.objects.filter(id=patient_id).exists():
        raise PatientNotFound()

    with transaction.atomic():
        try:
            schedule = DoctorSchedule.objects.select_for_update().get(id=schedule_id)
        except DoctorSchedule.DoesNotExist:
            raise SessionNotFound()
        # Staff only book into their own doctor's sessions.
        if not caller.is_patient and schedule.doctor_id != caller.doctor_id:
            raise SessionNotFound()

        bookings = Appointment.objects.filter(schedule_id=schedule.id)
        if bookings.filter(ACTIVE, patient_id=patient_id).exists():
            raise DuplicateBooking()

        count = bookings.filter(ACTIVE).count()
        if count >= schedule.max_patients:
            raise SessionFull()

        highest = bookings.aggregate(highest=Max('serial_number'))['highest'] or 0
        serial = max(count, highest) + 1

        appointment = Appointment.objects.create(
            doctor_id=schedule.doctor_id,
            patient_id=patient_id,
            schedule=schedule,
            visit_date=schedule.date,
            visit_time=schedule.start_time,
            serial_number=serial,
            source=Appointment.SOURCE_ONLINE if caller.is_patient else Appointment.SOURCE_RECEPTION,
            status=Appointment.STATUS_CONFIRMED,
            reason=reason,
        )
        log_action(user_id=caller.user_id, action='book_serial', object_type='appointment',
                   object_id=appointment.id,
                   detail={'scheduleId': schedule.id, 'patientId': patient_id, 'serial': serial})

        booked_count = count + 1
        transaction.on_commit(lambda: broadcast_booked(schedule.id, serial, booked_count), robust=True)

    logger.info('Booked serial %s on schedule %s for patient %s', serial, schedule.id, patient_id)
    return appointment


# ---------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------
def create_session(caller: Caller, data: dict) -> DoctorSchedule:
    schedule = DoctorSchedule.objects.create(
        doctor_id=caller.doctor_id,
        date=data['date'],
        session_name=data.get('session_name') or '',
        start_time=data['start_time'],
        end_time=data['end_time'],
        max_patients=data.get('max_patients') or 20,
    )
    log_action(user_id=caller.user_id, action='schedule_create', object_type='schedule',
               object_id=schedule.id, detail={'date': schedule.date.isoformat()})
    logger.info('Doctor %s opened schedule %s on %s', caller.doctor_id, schedule.id, schedule.date)
    return schedule


@transaction.atomic
def delete_session(caller: Caller, schedule_id: int) -> None:
    schedule = (
        DoctorSchedule.objects.select_for_update()
        .filter(id=schedule_id, doctor_id=caller.doctor_id)
        .first()
    )
    if schedule is None:
        raise SessionNotFound()
    if schedule.appointments.filter(ACTIVE).exists():
        raise SessionInUse()
    # Cancelled bookings keep their history with the session reference cleared.
    schedule.delete()
    log_action(user_id=caller.user_id, action='schedule_delete', object_type='schedule',
               object_id=schedule_id, detail={})
    logger.info('Schedule %s deleted by user %s', schedule_id, caller.user_id)


def list_sessions(caller: Caller, view: str = 'current', limit: Optional[int] = None):
    today = timezone.localdate()
    qs = DoctorSchedule.objects.filter(doctor_id=caller.doctor_id)
    if view == 'history':
        qs = qs.filter(date__lt=today).order_by('-date', '-start_time')
    else:
        qs = qs.filter(date__gte=today - timedelta(days=1)).order_by('date', 'start_time')
    qs = _with_booked_count(qs)
    if limit:
        qs = qs[:limit]
    return list(qs)


def list_open_sessions(doctor_id: int, now=None):
    """Sessions from today onward that have not ended yet in local time."""
    local = timezone.localtime(now or timezone.now())
    qs = (
        DoctorSchedule.objects.filter(doctor_id=doctor_id, date__gte=local.date())
        .exclude(date=local.date(), end_time__lte=local.time())
        .order_by('date', 'start_time')
    )
    return list(_with_booked_count(qs))


# ---------------------------------------------------------------------
# Appointments
# ---------------------------------------------------------------------
@transaction.atomic
def update_status(caller: Caller, appointment_id: int, status: str) -> Appointment:
    appointment = (
        Appointment.objects.select_for_update()
        .filter(id=appointment_id, doctor_id=caller.doctor_id)
        .first()
    )
    if appointment is None:
        raise AppointmentNotFound()
    old_status = appointment.status
    if status not in ALLOWED_TRANSITIONS.get(old_status, set()):
        raise InvalidTransition(f'Cannot change status from {old_status} to {status}.')
    appointment.status = status
    appointment.save(update_fields=['status'])
    log_action(user_id=caller.user_id, action='appointment_status', object_type='appointment',
               object_id=appointment.id, detail={'from': old_status, 'to': status})
    logger.info('Appointment %s moved %s -> %s', appointment.id, old_status, status)
    return appointment


def list_appointments(caller: Caller, day: Optional[date] = None, upcoming: bool = False):
    qs = Appointment.objects.select_related('patient').filter(doctor_id=caller.doctor_id)
    if upcoming:
        qs = qs.filter(ACTIVE, visit_date__gte=timezone.localdate())
        return list(qs.order_by('visit_date', 'visit_time', 'serial_number')[:UPCOMING_LIMIT])
    qs = qs.filter(visit_date=day or timezone.localdate())
    return list(qs.order_by('visit_time', 'serial_number'))


def patient_upcoming_appointments(patient_id: int):
    return list(
        Appointment.objects.select_related('doctor', 'doctor__doctor_profile')
        .filter(ACTIVE, patient_id=patient_id, visit_date__gte=timezone.localdate())
        .order_by('visit_date', 'visit_time', 'serial_number')
    )
