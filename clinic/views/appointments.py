from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsClinicStaff
from ..serializers.booking import AppointmentListQuerySerializer, StatusUpdateSerializer, appointment_payload
from ..services import booking
from ..services.identity import caller_from_request


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def list_appointments(request):
    """Today's bookings by default; ``date=YYYY-MM-DD`` or ``type=upcoming``."""
    q = AppointmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    items = booking.list_appointments(
        caller_from_request(request),
        day=q.validated_data.get('date'),
        upcoming=q.validated_data.get('type') == 'upcoming',
    )
    return Response([appointment_payload(a, with_patient=True) for a in items])


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsClinicStaff])
def update_status(request, appointment_id: int):
    s = StatusUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = booking.update_status(caller_from_request(request), appointment_id, s.validated_data['status'])
    return Response({'message': 'Status updated', 'id': appointment.id, 'status': appointment.status})
