"""
Patient portal: self registration, own prescriptions and bookings.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from ..exceptions import PatientNotFound
from ..permissions import IsPatientRole
from ..serializers.booking import appointment_payload
from ..serializers.patient import PortalRegisterSerializer
from ..services import booking, visits
from ..services.identity import caller_from_request
from ..services.patients import patient_summary, register_patient_account


def _own_patient_id(request) -> int:
    patient_id = caller_from_request(request).patient_id
    if patient_id is None:
        raise PatientNotFound('No patient record is linked to this account.')
    return patient_id


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    s = PortalRegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user, patient = register_patient_account(**s.validated_data)
    return Response({
        'message': 'Registration successful',
        'userId': user.id,
        'patient': patient_summary(patient),
    }, status=status.HTTP_201_CREATED)

register.cls.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def my_history(request):
    return Response(visits.portal_history(_own_patient_id(request)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPatientRole])
def my_appointments(request):
    items = booking.patient_upcoming_appointments(_own_patient_id(request))
    data = []
    for appt in items:
        row = appointment_payload(appt)
        row['doctorName'] = appt.doctor.get_full_name() or appt.doctor.username
        data.append(row)
    return Response(data)
