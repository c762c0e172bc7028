from uuid import UUID

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from ..serializers.booking import session_payload
from ..services import booking, visits
from ..services.doctors import is_public_doctor, list_public_doctors


@api_view(['GET'])
@permission_classes([AllowAny])
def doctors(request):
    return Response(list_public_doctors())


@api_view(['GET'])
@permission_classes([AllowAny])
def doctor_schedules(request, doctor_id: int):
    if not is_public_doctor(doctor_id):
        raise NotFound('Doctor not found')
    return Response([session_payload(s) for s in booking.list_open_sessions(doctor_id)])


@api_view(['GET'])
@permission_classes([AllowAny])
def prescription_by_uid(request, uid: UUID):
    return Response(visits.visit_document(visits.visit_by_public_uid(uid)))
