"""
Schedule session and serial booking endpoints.

Staff (a doctor, or a receptionist/assistant acting for one) manage the
operating doctor's sessions.  Serial booking is open to patients, who
book for themselves, and to staff, who book on behalf of a patient.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsClinicStaff, IsPatientOrClinicStaff
from ..serializers.booking import (
    BookSerialSerializer,
    ScheduleCreateSerializer,
    SessionListQuerySerializer,
    session_payload,
)
from ..services import booking
from ..services.identity import caller_from_request


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPatientOrClinicStaff])
def book_serial(request):
    """Book the next serial of a session.

    Body: ``schedule_id`` (or ``scheduleId``) and, for staff,
    ``patient_id`` (or ``patientId``).  Patients always book for
    their own record.
    """
    s = BookSerialSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = booking.book_serial(
        caller_from_request(request),
        s.validated_data['schedule_id'],
        s.validated_data.get('patient_id'),
        reason=s.validated_data.get('reason') or '',
    )
    return Response({'message': 'Booking Successful', 'serial': appointment.serial_number},
                    status=status.HTTP_201_CREATED)

book_serial.cls.throttle_scope = 'booking'


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def my_sessions(request):
    q = SessionListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    sessions = booking.list_sessions(
        caller_from_request(request),
        view=q.validated_data['view'],
        limit=q.validated_data.get('limit'),
    )
    return Response([session_payload(s) for s in sessions])


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def create_session(request):
    s = ScheduleCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    schedule = booking.create_session(caller_from_request(request), s.validated_data)
    return Response({'message': 'Schedule created', 'schedule': session_payload(schedule)},
                    status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def delete_session(request, schedule_id: int):
    booking.delete_session(caller_from_request(request), schedule_id)
    return Response({'message': 'Schedule deleted'})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def available_sessions(request):
    """Open sessions of a doctor; staff default to their own doctor."""
    doctor_id = request.query_params.get('doctor_id') or request.query_params.get('doctorId')
    if not doctor_id:
        doctor_id = caller_from_request(request).doctor_id
    try:
        doctor_id = int(doctor_id)
    except (TypeError, ValueError):
        raise ValidationError({'doctor_id': ['A valid doctor id is required.']})
    return Response([session_payload(s) for s in booking.list_open_sessions(doctor_id)])
